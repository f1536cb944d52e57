"""Main application entry point for SpeechApp."""

import sys
import argparse
import logging
from pathlib import Path
from typing import Optional

from speechapp.audio.engine import AudioEngine
from speechapp.audio.errors import MissingInputNodeError
from speechapp.audio.session import AudioSession, CATEGORY_RECORD, MODE_MEASUREMENT
from speechapp.recognition.google_backend import GoogleSpeechRecognizer
from speechapp.services.listening_controller import ListeningController
from speechapp.services.main_queue import MainQueue
from speechapp.services.permission_service import ConfigAuthorizer
from speechapp.ui.listening_screen import ListeningScreen
from speechapp.ui.view import ListeningView

from . import __version__
from .config import SpeechAppConfig

logger = logging.getLogger(__name__)


class App:

    def __init__(self, config_path: Optional[str], log_level: Optional[str] = None):
        # Load configuration
        self.config = SpeechAppConfig(config_path)
        # Command line log level wins over config
        level = log_level or self.config.get('logging.level', 'INFO')
        setup_logging(self.config, level)
        self.recognizer: Optional[GoogleSpeechRecognizer] = None
        self.audio_engine: Optional[AudioEngine] = None
        self.audio_session: Optional[AudioSession] = None
        self.screen: Optional[ListeningScreen] = None
        self.controller: Optional[ListeningController] = None

    def init(self) -> None:
        """Build the services and the controller.

        Raises:
            MissingInputNodeError: if there is no microphone
        """
        logger.info("Initializing services...")

        sample_rate = self.config.get('audio.sample_rate', 16000)
        channels = self.config.get('audio.channels', 1)
        input_device_index = self.config.get('audio.input_device_index')
        logger.info(f"Audio settings: {sample_rate}Hz, {channels} channels, device={input_device_index}")

        self.recognizer = GoogleSpeechRecognizer(
            credentials_path=self.config.get_google_credentials_path(),
            sample_rate=sample_rate,
            language=self.config.get('recognition.language', 'en-US'),
            model=self.config.get('recognition.model', 'latest_long'),
            enable_automatic_punctuation=self.config.get('recognition.enable_automatic_punctuation', True)
        )
        if not self.recognizer.initialize():
            # Credential problems are reported as a permission status when the user taps
            logger.warning("Google Speech recognizer not initialized, will retry on first session")

        self.audio_engine = AudioEngine(
            sample_rate=sample_rate,
            channels=channels,
            input_device_index=input_device_index
        )
        self.audio_session = AudioSession(input_device_index=input_device_index)
        main_queue = MainQueue()
        view = ListeningView()
        self.screen = ListeningScreen(main_queue, level_source=lambda: self.audio_engine.peak_level)

        self.controller = ListeningController(
            recognizer=self.recognizer,
            authorizer=ConfigAuthorizer(self.config),
            audio_session=self.audio_session,
            audio_engine=self.audio_engine,
            view=view,
            main_queue=main_queue,
            session_category=self.config.get('audio_session.category', CATEGORY_RECORD),
            session_mode=self.config.get('audio_session.mode', MODE_MEASUREMENT)
        )

    def run(self) -> None:
        try:
            self.screen.run()
        finally:
            self.cleanup()

    def cleanup(self) -> None:
        if self.screen:
            self.screen.close()
        if self.audio_engine:
            self.audio_engine.shutdown()
        if self.audio_session:
            self.audio_session.set_active(False)
        if self.recognizer:
            self.recognizer.cleanup()


def setup_logging(config: SpeechAppConfig, level: str = "INFO") -> None:
    """Set up logging configuration from YAML config."""
    log_file_path = config.get('logging.file_path', 'data/logs/speechapp.log')
    console_output = config.get('logging.console_output', False)

    log_dir = Path(log_file_path).parent
    log_dir.mkdir(parents=True, exist_ok=True)

    handlers = []

    # File handler - always write to file
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(logging.DEBUG)
    file_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    )
    file_handler.setFormatter(file_formatter)
    handlers.append(file_handler)

    # Console handler - only if enabled in config
    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)
        console_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        console_handler.setFormatter(console_formatter)
        handlers.append(console_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger.info("=" * 50)
    logger.info("SpeechApp starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("=" * 50)


def main() -> None:
    """Main entry point for SpeechApp."""
    parser = argparse.ArgumentParser(
        description="SpeechApp - tap to listen, live speech transcription",
        epilog="Keys: SPACE/ENTER=start or stop listening, q=Quit"
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration YAML file (default: speechapp.yaml)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (default: from config, else INFO)"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"SpeechApp v{__version__}"
    )

    args = parser.parse_args()

    app = None
    try:
        app = App(args.config, args.log_level)
        app.init()
        app.run()
    except KeyboardInterrupt:
        if app:
            app.cleanup()
        print("\nGoodbye!")
    except MissingInputNodeError as e:
        if app:
            app.cleanup()
        logger.critical(f"No audio input device: {e}")
        print(f"Fatal: {e}. SpeechApp needs a microphone.")
        sys.exit(1)
    except Exception as e:
        print(f"Error: {e}")
        logging.error(f"Application error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
