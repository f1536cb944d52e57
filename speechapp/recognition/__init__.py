"""Speech recognition module for SpeechApp."""

from .base import RecognitionError, RecognitionTask, SpeechRecognizer
from .request import AudioBufferRecognitionRequest
from .google_backend import GoogleSpeechRecognizer, GoogleRecognitionTask

__all__ = [
    "RecognitionError",
    "RecognitionTask",
    "SpeechRecognizer",
    "AudioBufferRecognitionRequest",
    "GoogleSpeechRecognizer",
    "GoogleRecognitionTask",
]
