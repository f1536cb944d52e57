"""Audio engine: continuous microphone capture delivered to input node taps."""

import time
import logging
import threading
from dataclasses import dataclass
from threading import Thread, Event
from typing import Callable, Dict, Optional

import pyaudio

from ..models.audio import AudioBuffer, AudioFormat
from .errors import AudioEngineError, MissingInputNodeError

logger = logging.getLogger(__name__)

DEFAULT_BUFFER_SIZE = 1024


@dataclass
class Tap:
    """A callback registered on an input node bus."""
    buffer_size: int
    format: AudioFormat
    on_buffer: Callable[[AudioBuffer], None]


class InputNode:
    """The microphone input of an audio engine. Taps receive every captured buffer."""

    def __init__(self, device_index: Optional[int], device_name: str, audio_format: AudioFormat):
        self.device_index = device_index
        self.device_name = device_name
        self.audio_format = audio_format
        self._taps: Dict[int, Tap] = {}
        self._lock = threading.Lock()

    def output_format(self, bus: int = 0) -> AudioFormat:
        return self.audio_format

    def install_tap(self,
                    bus: int,
                    buffer_size: int,
                    audio_format: AudioFormat,
                    on_buffer: Callable[[AudioBuffer], None]) -> None:
        """Register a callback for every buffer captured on ``bus``.

        Installing on a bus that already has a tap replaces it.
        """
        with self._lock:
            if bus in self._taps:
                logger.warning(f"Replacing existing tap on bus {bus}")
            self._taps[bus] = Tap(buffer_size=buffer_size, format=audio_format, on_buffer=on_buffer)
        logger.debug(f"Tap installed on bus {bus} ({buffer_size} frames/buffer)")

    def remove_tap(self, bus: int = 0) -> None:
        with self._lock:
            removed = self._taps.pop(bus, None)
        if removed:
            logger.debug(f"Tap removed from bus {bus}")

    def has_tap(self, bus: int = 0) -> bool:
        with self._lock:
            return bus in self._taps

    def tap_buffer_size(self, bus: int = 0) -> int:
        with self._lock:
            tap = self._taps.get(bus)
        return tap.buffer_size if tap else DEFAULT_BUFFER_SIZE

    def deliver(self, buffer: AudioBuffer, bus: int = 0) -> None:
        """Hand a captured buffer to the tap on ``bus``, if any."""
        with self._lock:
            tap = self._taps.get(bus)
        if tap:
            tap.on_buffer(buffer)


class AudioEngine:
    """Continuous audio capture on a background thread, feeding the input node."""

    def __init__(self,
                 sample_rate: int = 16000,
                 channels: int = 1,
                 input_device_index: Optional[int] = None,
                 pyaudio_factory: Optional[Callable[[], pyaudio.PyAudio]] = None):
        """Initialize the audio engine.

        Args:
            sample_rate: Audio sample rate (16kHz for speech recognition)
            channels: Number of audio channels (1 for mono)
            input_device_index: PortAudio device index, or None for the default input
            pyaudio_factory: Callable creating the PortAudio host
        """
        self.audio_format = AudioFormat(sample_rate=sample_rate, channels=channels)
        self.input_device_index = input_device_index
        self.pyaudio_factory = pyaudio_factory or pyaudio.PyAudio

        self.pyaudio_instance: Optional[pyaudio.PyAudio] = None
        self._input_node: Optional[InputNode] = None

        # Capture thread management
        self.capture_thread: Optional[Thread] = None
        self.stop_event = Event()
        self.stream = None
        self.is_running = False
        self.total_buffers = 0
        self.peak_level = 0.0

    def _host(self) -> pyaudio.PyAudio:
        if self.pyaudio_instance is None:
            self.pyaudio_instance = self.pyaudio_factory()
        return self.pyaudio_instance

    @property
    def input_node(self) -> InputNode:
        """The microphone input node.

        Raises:
            MissingInputNodeError: if the host has no usable input device
        """
        if self._input_node is None:
            self._input_node = self._find_input_node()
        return self._input_node

    def _find_input_node(self) -> InputNode:
        host = self._host()
        if self.input_device_index is not None:
            candidates = [self.input_device_index]
        else:
            candidates = range(host.get_device_count())

        for index in candidates:
            try:
                info = host.get_device_info_by_index(index)
            except (OSError, ValueError):
                continue
            if int(info.get('maxInputChannels', 0)) > 0:
                logger.info(f"Using input device {index}: {info.get('name', '?')}")
                device_index = index if self.input_device_index is not None else None
                return InputNode(device_index, info.get('name', '?'), self.audio_format)

        raise MissingInputNodeError("No input node detected")

    def prepare(self) -> None:
        """Preallocate the PortAudio host so that start() is fast."""
        self._host()

    def start(self) -> None:
        """Open the input stream and start capturing.

        Raises:
            AudioEngineError: if the stream cannot be opened
        """
        if self.is_running:
            logger.warning("Audio engine already running")
            return

        node = self.input_node
        buffer_size = node.tap_buffer_size(0)
        try:
            self.stream = self._host().open(
                format=self.audio_format.sample_format,
                channels=self.audio_format.channels,
                rate=self.audio_format.sample_rate,
                input=True,
                input_device_index=node.device_index,
                frames_per_buffer=buffer_size,
                stream_callback=None
            )
        except (OSError, ValueError) as e:
            self.stream = None
            raise AudioEngineError(str(e)) from e

        logger.info(f"Audio engine started: {self.audio_format.sample_rate}Hz, "
                    f"{buffer_size} frames/buffer")
        self.stop_event.clear()
        self.total_buffers = 0
        self.capture_thread = Thread(target=self._capture_continuously,
                                     args=(self.stream, buffer_size),
                                     daemon=True)
        self.capture_thread.name = "AudioEngineThread"
        self.is_running = True
        self.capture_thread.start()

    def stop(self) -> None:
        """Stop capturing. Safe to call when the engine is not running."""
        if not self.is_running:
            return

        logger.info("Stopping audio engine")
        self.stop_event.set()
        if self.capture_thread and self.capture_thread.is_alive() \
                and self.capture_thread is not threading.current_thread():
            self.capture_thread.join(timeout=2.0)
            if self.capture_thread.is_alive():
                logger.warning("Audio engine thread did not stop cleanly")

        self.is_running = False
        self.peak_level = 0.0
        logger.info(f"Audio engine stopped. Total buffers: {self.total_buffers}")

    def _capture_continuously(self, stream, buffer_size: int) -> None:
        """Internal method: capture loop in background thread."""
        try:
            while not self.stop_event.is_set():
                data = stream.read(buffer_size, exception_on_overflow=False)
                self.total_buffers += 1
                buffer = AudioBuffer(
                    data=data,
                    frame_count=buffer_size,
                    timestamp=time.time(),
                    format=self.audio_format
                )
                self.peak_level = buffer.peak_level
                self.input_node.deliver(buffer)
        except OSError as e:
            logger.error(f"Audio capture failed: {e}")
        finally:
            stream.stop_stream()
            stream.close()
            if stream is self.stream:
                self.is_running = False
                self.peak_level = 0.0

    def shutdown(self) -> None:
        """Stop the engine and release the PortAudio host."""
        self.stop()
        if self.pyaudio_instance:
            self.pyaudio_instance.terminate()
            self.pyaudio_instance = None
