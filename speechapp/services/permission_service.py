"""Speech recognition permission service."""

import os
import logging
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Dict, Tuple

from ..config import SpeechAppConfig
from ..models.permission import AuthorizationStatus

logger = logging.getLogger(__name__)

PERMISSION_MESSAGES: Dict[AuthorizationStatus, str] = {
    AuthorizationStatus.AUTHORIZED: "Listening...",
    AuthorizationStatus.DENIED: "Access to speech recognition is denied by the user.",
    AuthorizationStatus.RESTRICTED: "Speech recognition is restricted.",
    AuthorizationStatus.NOT_DETERMINED: "Speech recognition has not been authorized yet.",
}


def permission_outcome(status: AuthorizationStatus) -> Tuple[bool, str]:
    """Map an authorization status to (granted, message)."""
    return status is AuthorizationStatus.AUTHORIZED, PERMISSION_MESSAGES[status]


class Authorizer(ABC):
    """Asks the platform whether speech recognition may be used."""

    @abstractmethod
    def request_authorization(self, callback: Callable[[AuthorizationStatus], None]) -> None:
        """Resolve the current status and pass it to ``callback``, possibly on another thread."""
        pass


class ConfigAuthorizer(Authorizer):
    """Authorizer driven by the app configuration and the Google credentials file.

    An explicit ``permissions.speech_recognition`` value always wins. Otherwise
    the status is derived from the credentials file: not configured means not
    yet authorized, a missing file means denied, an unreadable file means
    restricted.
    """

    def __init__(self, config: SpeechAppConfig):
        self.config = config

    def current_status(self) -> AuthorizationStatus:
        override = self.config.get('permissions.speech_recognition')
        if override:
            try:
                return AuthorizationStatus(str(override).lower())
            except ValueError:
                logger.warning(f"Ignoring unknown permissions.speech_recognition value: {override}")

        creds_path = self.config.get_google_credentials_path()
        if not creds_path:
            return AuthorizationStatus.NOT_DETERMINED

        creds_file = Path(creds_path)
        if not creds_file.is_file():
            logger.warning(f"Google credentials file not found: {creds_path}")
            return AuthorizationStatus.DENIED
        if not os.access(creds_file, os.R_OK):
            logger.warning(f"Google credentials file is not readable: {creds_path}")
            return AuthorizationStatus.RESTRICTED

        return AuthorizationStatus.AUTHORIZED

    def request_authorization(self, callback: Callable[[AuthorizationStatus], None]) -> None:
        def resolve():
            status = self.current_status()
            logger.info(f"Speech recognition authorization: {status.value}")
            callback(status)

        thread = threading.Thread(target=resolve, daemon=True)
        thread.name = "AuthorizationThread"
        thread.start()
