"""Data models for the SpeechApp application."""

from .audio import AudioBuffer, AudioFormat
from .events import (
    AudioSessionFailed,
    AvailabilityChanged,
    EngineFailed,
    PermissionResolved,
    ResultReceived,
    SessionError,
    ToggleRequested,
)
from .permission import AuthorizationStatus
from .recognition import RecognitionResult
from .session import SessionState
from .ui import IDLE_PROMPT, UNAVAILABLE_MESSAGE, Icon, ViewState

__all__ = [
    "AudioBuffer",
    "AudioFormat",
    "AuthorizationStatus",
    "RecognitionResult",
    "SessionState",
    "Icon",
    "ViewState",
    "IDLE_PROMPT",
    "UNAVAILABLE_MESSAGE",
    # Events
    "ToggleRequested",
    "PermissionResolved",
    "ResultReceived",
    "SessionError",
    "AudioSessionFailed",
    "EngineFailed",
    "AvailabilityChanged",
]
