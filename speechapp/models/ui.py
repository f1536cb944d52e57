"""UI-related data models."""

from dataclasses import dataclass
from enum import Enum


IDLE_PROMPT = "Tap to listen"
UNAVAILABLE_MESSAGE = "Recognition is not available."


class Icon(Enum):
    """Microphone image shown next to the transcript."""
    IDLE = "Microphone"
    ACTIVE = "Microphone Filled"


@dataclass(frozen=True)
class ViewState:
    """Snapshot of everything the screen displays."""
    label_text: str = IDLE_PROMPT
    icon: Icon = Icon.IDLE
    button_enabled: bool = True
    listening: bool = False
