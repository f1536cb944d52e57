"""Audio service errors."""


class AudioError(Exception):
    """Base class for audio service failures that carry a human readable reason."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class AudioSessionError(AudioError):
    """The audio session could not be configured or activated."""


class AudioEngineError(AudioError):
    """The audio engine could not be started."""


class MissingInputNodeError(RuntimeError):
    """No audio input device exists. Nothing in the app can work without one."""
