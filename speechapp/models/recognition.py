"""Recognition-related data models."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class RecognitionResult:
    """Best-guess transcription delivered by a recognition task."""
    text: str
    is_final: bool = False
    confidence: float = 0.0
    timestamp: datetime = field(default_factory=datetime.now)
