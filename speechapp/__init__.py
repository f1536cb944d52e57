"""SpeechApp - tap to listen, live speech transcription."""

__version__ = "0.1.0"
