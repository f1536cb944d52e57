"""Services for SpeechApp."""

from .main_queue import MainQueue
from .permission_service import Authorizer, ConfigAuthorizer, permission_outcome
from .listening_controller import ListeningController

__all__ = [
    "MainQueue",
    "Authorizer",
    "ConfigAuthorizer",
    "permission_outcome",
    "ListeningController",
]
