"""Pytest configuration and fixtures for SpeechApp tests."""

import time
import logging
from dataclasses import dataclass
from typing import List, Optional
from unittest.mock import Mock, patch

import numpy as np
import pytest

from speechapp.audio.engine import InputNode
from speechapp.audio.errors import AudioEngineError, AudioSessionError, MissingInputNodeError
from speechapp.models.audio import AudioFormat
from speechapp.models.permission import AuthorizationStatus
from speechapp.models.recognition import RecognitionResult
from speechapp.recognition.base import RecognitionError, RecognitionTask, SpeechRecognizer
from speechapp.services.listening_controller import ListeningController
from speechapp.services.main_queue import MainQueue
from speechapp.services.permission_service import Authorizer
from speechapp.ui.view import ListeningView


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without hardware or network")
    config.addinivalue_line("markers", "integration: tests wiring several real components together")
    config.addinivalue_line("markers", "hardware: tests that need a real microphone")


class FakeAuthorizer(Authorizer):
    """Answers immediately, on the calling thread."""

    def __init__(self, status: AuthorizationStatus = AuthorizationStatus.AUTHORIZED):
        self.status = status
        self.requests = 0

    def request_authorization(self, callback):
        self.requests += 1
        callback(self.status)


class FakeRecognitionTask(RecognitionTask):
    def __init__(self, request, result_handler):
        self.request = request
        self.result_handler = result_handler
        self.cancelled = False

    @property
    def is_cancelled(self) -> bool:
        return self.cancelled

    def cancel(self) -> None:
        self.cancelled = True

    def emit(self, text: str, is_final: bool = False) -> None:
        self.result_handler(RecognitionResult(text=text, is_final=is_final), None)

    def fail(self, reason: str) -> None:
        self.result_handler(None, RecognitionError(reason))


class FakeRecognizer(SpeechRecognizer):
    def __init__(self):
        super().__init__("en-US")
        self.tasks: List[FakeRecognitionTask] = []
        self.availability_checks = 0

    def initialize(self) -> bool:
        return True

    def recognition_task(self, request, result_handler) -> FakeRecognitionTask:
        task = FakeRecognitionTask(request, result_handler)
        self.tasks.append(task)
        return task

    def change_availability(self, available: bool) -> None:
        self._set_available(available)

    def check_availability(self) -> None:
        self.availability_checks += 1

    def cleanup(self) -> None:
        pass


class FakeAudioSession:
    def __init__(self, fail_reason: Optional[str] = None):
        self.fail_reason = fail_reason
        self.configured = []
        self.is_active = False

    def configure(self, category: str, mode: str) -> None:
        if self.fail_reason:
            raise AudioSessionError(self.fail_reason)
        self.configured.append((category, mode))

    def set_active(self, active: bool) -> None:
        self.is_active = active


class FakeAudioEngine:
    def __init__(self, start_error: Optional[str] = None, has_input: bool = True):
        self.start_error = start_error
        self.has_input = has_input
        self._input_node = InputNode(None, "Fake Microphone", AudioFormat())
        self.is_running = False
        self.prepared = False
        self.start_calls = 0
        self.stop_calls = 0
        self.peak_level = 0.0

    @property
    def input_node(self) -> InputNode:
        if not self.has_input:
            raise MissingInputNodeError("No input node detected")
        return self._input_node

    def prepare(self) -> None:
        self.prepared = True

    def start(self) -> None:
        self.start_calls += 1
        if self.start_error:
            raise AudioEngineError(self.start_error)
        self.is_running = True

    def stop(self) -> None:
        self.stop_calls += 1
        self.is_running = False


@dataclass
class ControllerHarness:
    controller: ListeningController
    recognizer: FakeRecognizer
    authorizer: FakeAuthorizer
    audio_session: FakeAudioSession
    audio_engine: FakeAudioEngine
    view: ListeningView
    main_queue: MainQueue

    def tap(self) -> None:
        """Press the listen button and let the main queue settle."""
        self.controller.handle_toggle()
        self.main_queue.process_pending()

    @property
    def task(self) -> FakeRecognitionTask:
        return self.recognizer.tasks[-1]


@pytest.fixture
def make_harness():
    """Build a ListeningController wired to fake platform services."""
    def build(status: AuthorizationStatus = AuthorizationStatus.AUTHORIZED,
              start_error: Optional[str] = None,
              session_error: Optional[str] = None,
              has_input: bool = True) -> ControllerHarness:
        recognizer = FakeRecognizer()
        authorizer = FakeAuthorizer(status)
        audio_session = FakeAudioSession(session_error)
        audio_engine = FakeAudioEngine(start_error=start_error, has_input=has_input)
        view = ListeningView(topic="test_view")
        main_queue = MainQueue()
        controller = ListeningController(
            recognizer=recognizer,
            authorizer=authorizer,
            audio_session=audio_session,
            audio_engine=audio_engine,
            view=view,
            main_queue=main_queue,
        )
        return ControllerHarness(controller, recognizer, authorizer, audio_session,
                                 audio_engine, view, main_queue)

    return build


@pytest.fixture
def sample_audio_chunk():
    """Generate a sample audio chunk for testing."""
    # Generate 1024 samples of 16-bit audio (sine wave)
    sample_rate = 16000
    duration = 1024 / sample_rate  # ~0.064 seconds
    freq = 440  # A4 note

    t = np.linspace(0, duration, 1024, False)
    wave_data = np.sin(2 * np.pi * freq * t)

    # Convert to 16-bit integers
    audio_data = (wave_data * 32767).astype(np.int16)
    return audio_data.tobytes()


@pytest.fixture
def mock_pyaudio(sample_audio_chunk):
    """Mock PyAudio for testing without actual audio hardware."""
    with patch('pyaudio.PyAudio') as mock_pyaudio_class:
        mock_pyaudio_instance = Mock()
        mock_stream = Mock()

        def read(frames, exception_on_overflow=True):
            time.sleep(0.005)
            return sample_audio_chunk

        # Configure mock stream
        mock_stream.read.side_effect = read
        mock_stream.stop_stream.return_value = None
        mock_stream.close.return_value = None

        # Configure mock PyAudio instance with one microphone
        devices = [
            {'index': 0, 'name': 'Speakers', 'maxInputChannels': 0},
            {'index': 1, 'name': 'Test Microphone', 'maxInputChannels': 1},
        ]
        mock_pyaudio_instance.open.return_value = mock_stream
        mock_pyaudio_instance.terminate.return_value = None
        mock_pyaudio_instance.get_device_count.return_value = len(devices)
        mock_pyaudio_instance.get_device_info_by_index.side_effect = lambda i: devices[i]
        mock_pyaudio_instance.get_default_input_device_info.return_value = devices[1]

        mock_pyaudio_class.return_value = mock_pyaudio_instance

        yield {
            'class': mock_pyaudio_class,
            'instance': mock_pyaudio_instance,
            'stream': mock_stream,
            'devices': devices,
        }


@pytest.fixture
def temp_config(tmp_path):
    """Write a YAML config file and return its path."""
    def write(content: str) -> str:
        config_file = tmp_path / "speechapp.yaml"
        config_file.write_text(content, encoding="utf-8")
        return str(config_file)

    return write
