"""Event models consumed by the listening state machine.

Background threads never touch controller state directly. They wrap what
happened in one of these events and post it to the main queue, which hands
them to the controller one at a time.
"""

from dataclasses import dataclass

from .recognition import RecognitionResult


@dataclass(frozen=True)
class ToggleRequested:
    """The user tapped the listen button."""


@dataclass(frozen=True)
class PermissionResolved:
    """The permission service answered an authorization request."""
    granted: bool
    message: str


@dataclass(frozen=True)
class ResultReceived:
    """A partial or final transcription arrived for a session."""
    session_id: int
    result: RecognitionResult


@dataclass(frozen=True)
class SessionError:
    """The recognition task for a session reported an error."""
    session_id: int
    reason: str


@dataclass(frozen=True)
class AudioSessionFailed:
    """Audio session configuration failed while starting a session."""
    reason: str


@dataclass(frozen=True)
class EngineFailed:
    """The audio engine refused to start."""
    reason: str


@dataclass(frozen=True)
class AvailabilityChanged:
    """The recognizer became available or unavailable."""
    available: bool
