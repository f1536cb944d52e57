"""Audio session and capture engine."""

from .engine import AudioEngine, InputNode
from .errors import AudioEngineError, AudioSessionError, MissingInputNodeError
from .session import AudioSession

__all__ = [
    'AudioEngine',
    'InputNode',
    'AudioSession',
    'AudioEngineError',
    'AudioSessionError',
    'MissingInputNodeError',
]
