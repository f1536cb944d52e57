"""Audio session: configures the host audio system for recording."""

import logging
from typing import Callable, Optional

import pyaudio

from .errors import AudioSessionError

logger = logging.getLogger(__name__)

CATEGORY_RECORD = "record"
CATEGORY_PLAY_AND_RECORD = "play_and_record"
MODE_DEFAULT = "default"
MODE_MEASUREMENT = "measurement"

SUPPORTED_CATEGORIES = (CATEGORY_RECORD, CATEGORY_PLAY_AND_RECORD)
SUPPORTED_MODES = (MODE_DEFAULT, MODE_MEASUREMENT)


class AudioSession:
    """Shared recording session backed by a PortAudio host."""

    def __init__(self,
                 input_device_index: Optional[int] = None,
                 pyaudio_factory: Optional[Callable[[], pyaudio.PyAudio]] = None):
        self.input_device_index = input_device_index
        self.pyaudio_factory = pyaudio_factory or pyaudio.PyAudio
        self.category: Optional[str] = None
        self.mode: Optional[str] = None
        self.is_active = False
        self.pyaudio_instance: Optional[pyaudio.PyAudio] = None

    def configure(self, category: str, mode: str) -> None:
        """Set the session category and mode.

        Raises:
            AudioSessionError: if the category or mode is not supported
        """
        if category not in SUPPORTED_CATEGORIES:
            raise AudioSessionError(f"Unsupported audio session category '{category}'.")
        if mode not in SUPPORTED_MODES:
            raise AudioSessionError(f"Unsupported audio session mode '{mode}'.")
        self.category = category
        self.mode = mode
        logger.debug(f"Audio session configured: category={category}, mode={mode}")

    def set_active(self, active: bool) -> None:
        """Activate or deactivate the session.

        Activation checks that the configured (or default) input device can be
        queried on the host.

        Raises:
            AudioSessionError: if the session is not configured or the input device is unusable
        """
        if not active:
            self._release()
            return

        if self.category is None:
            raise AudioSessionError("Audio session has not been configured.")
        if self.is_active:
            return

        self.pyaudio_instance = self.pyaudio_factory()
        try:
            if self.input_device_index is None:
                device_info = self.pyaudio_instance.get_default_input_device_info()
            else:
                device_info = self.pyaudio_instance.get_device_info_by_index(self.input_device_index)
        except (OSError, ValueError) as e:
            self._release()
            raise AudioSessionError(f"Input device unavailable: {e}") from e

        if int(device_info.get('maxInputChannels', 0)) <= 0:
            self._release()
            raise AudioSessionError(f"Device '{device_info.get('name', '?')}' cannot record audio.")

        self.is_active = True
        logger.info(f"Audio session active on input device '{device_info.get('name', '?')}'")

    def _release(self) -> None:
        if self.pyaudio_instance:
            self.pyaudio_instance.terminate()
            self.pyaudio_instance = None
        if self.is_active:
            logger.info("Audio session deactivated")
        self.is_active = False
