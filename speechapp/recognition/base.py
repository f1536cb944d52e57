"""Abstract base classes for speech recognizers."""

from abc import ABC, abstractmethod
from typing import Callable, Optional
import logging
import threading

from ..models.recognition import RecognitionResult
from .request import AudioBufferRecognitionRequest

logger = logging.getLogger(__name__)

# Called with (result, None) for every transcription update and (None, error) on failure.
ResultHandler = Callable[[Optional[RecognitionResult], Optional[Exception]], None]
AvailabilityCallback = Callable[[bool], None]


class RecognitionError(Exception):
    """The recognition service could not produce a transcription."""


class RecognitionTask(ABC):
    """Handle of one in-flight recognition."""

    @abstractmethod
    def cancel(self) -> None:
        """Stop recognition. No further results are delivered after this returns."""
        pass

    @property
    @abstractmethod
    def is_cancelled(self) -> bool:
        pass


class SpeechRecognizer(ABC):
    """Abstract base class for streaming speech recognizers."""

    def __init__(self, language: str = "en-US"):
        """Initialize recognizer with language preference."""
        self.language = language
        self._available = True
        self._availability_lock = threading.Lock()
        self._availability_callback: Optional[AvailabilityCallback] = None

    @property
    def available(self) -> bool:
        return self._available

    def set_availability_callback(self, callback: Optional[AvailabilityCallback]) -> None:
        """Register the callback fired whenever availability changes."""
        self._availability_callback = callback

    def check_availability(self) -> None:
        """Ask the service whether it can be used again.

        Returns immediately. A recovery is reported through the availability callback.
        """
        pass

    def _set_available(self, available: bool) -> None:
        with self._availability_lock:
            if available == self._available:
                return
            self._available = available
        logger.info(f"Speech recognizer availability changed: {available}")
        if self._availability_callback:
            self._availability_callback(available)

    @abstractmethod
    def initialize(self) -> bool:
        """Initialize recognizer resources and verify configuration.

        Returns:
            True if initialization successful, False otherwise
        """
        pass

    @abstractmethod
    def recognition_task(self,
                         request: AudioBufferRecognitionRequest,
                         result_handler: ResultHandler) -> RecognitionTask:
        """Start recognizing the audio appended to ``request``.

        ``result_handler`` is called on an arbitrary thread.
        """
        pass

    @abstractmethod
    def cleanup(self) -> None:
        """Clean up recognizer resources."""
        pass
