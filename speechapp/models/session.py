"""Session-related data models."""

from enum import Enum


class SessionState(Enum):
    """Lifecycle of one recognition session."""
    IDLE = "idle"
    STARTING = "starting"
    LISTENING = "listening"
    FINISHING = "finishing"
