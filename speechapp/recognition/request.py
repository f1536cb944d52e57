"""Streaming recognition request fed by the audio tap."""

import queue
import logging
import threading
from typing import Iterator, Optional

from ..models.audio import AudioBuffer

logger = logging.getLogger(__name__)


class AudioBufferRecognitionRequest:
    """Thread-safe append target for captured audio.

    The audio thread appends buffers while a recognition task drains them.
    Appending after end_audio() is a no-op.
    """

    def __init__(self, should_report_partial_results: bool = True):
        self.should_report_partial_results = should_report_partial_results
        self._chunks: "queue.Queue[Optional[bytes]]" = queue.Queue()
        self._ended = threading.Event()
        self.appended_buffers = 0

    @property
    def is_ended(self) -> bool:
        return self._ended.is_set()

    def append(self, buffer: AudioBuffer) -> None:
        if self._ended.is_set():
            return
        self._chunks.put(buffer.data)
        self.appended_buffers += 1

    def end_audio(self) -> None:
        """Signal that no more audio will follow."""
        if self._ended.is_set():
            return
        self._ended.set()
        self._chunks.put(None)
        logger.debug(f"Recognition request ended after {self.appended_buffers} buffers")

    def audio_chunks(self,
                     stop_event: Optional[threading.Event] = None,
                     poll_interval: float = 0.1) -> Iterator[bytes]:
        """Yield appended audio until end_audio() is called or ``stop_event`` is set."""
        while stop_event is None or not stop_event.is_set():
            try:
                chunk = self._chunks.get(timeout=poll_interval)
            except queue.Empty:
                continue
            if chunk is None:
                return
            yield chunk
