"""Terminal user interface for SpeechApp."""
