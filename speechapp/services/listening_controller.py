"""Listening controller: permission, session lifecycle and transcript display."""

import logging
from typing import Callable, Optional

from ..audio.engine import AudioEngine
from ..audio.errors import AudioEngineError, AudioSessionError
from ..audio.session import AudioSession, CATEGORY_RECORD, MODE_MEASUREMENT
from ..models.events import (
    AudioSessionFailed,
    AvailabilityChanged,
    EngineFailed,
    PermissionResolved,
    ResultReceived,
    SessionError,
    ToggleRequested,
)
from ..models.recognition import RecognitionResult
from ..models.session import SessionState
from ..models.ui import IDLE_PROMPT, UNAVAILABLE_MESSAGE, Icon
from ..recognition.base import RecognitionTask, SpeechRecognizer
from ..recognition.request import AudioBufferRecognitionRequest
from ..ui.view import ListeningView
from .main_queue import MainQueue
from .permission_service import Authorizer, permission_outcome

logger = logging.getLogger(__name__)

TAP_BUS = 0
TAP_BUFFER_SIZE = 1024


class ListeningController:
    """Mediates between the listen button, permission state and one recognition session.

    Every method that touches controller or view state runs on the main queue.
    Callbacks from the permission service, the recognizer and the recognition
    tasks only post events; the handlers registered in ``__init__`` apply them.

    Session lifecycle::

        IDLE -> STARTING -> LISTENING -> FINISHING -> IDLE

    A failure while STARTING goes straight back to IDLE with an error message.
    """

    def __init__(self,
                 recognizer: SpeechRecognizer,
                 authorizer: Authorizer,
                 audio_session: AudioSession,
                 audio_engine: AudioEngine,
                 view: ListeningView,
                 main_queue: MainQueue,
                 session_category: str = CATEGORY_RECORD,
                 session_mode: str = MODE_MEASUREMENT):
        """Initialize the controller.

        Raises:
            MissingInputNodeError: if the audio engine has no input device
        """
        self.recognizer = recognizer
        self.authorizer = authorizer
        self.audio_session = audio_session
        self.audio_engine = audio_engine
        self.view = view
        self.main_queue = main_queue
        self.session_category = session_category
        self.session_mode = session_mode

        self.state = SessionState.IDLE
        self.recognition_request: Optional[AudioBufferRecognitionRequest] = None
        self.recognition_task: Optional[RecognitionTask] = None
        self.session_id = 0
        self._listening = False

        # Startup invariant: without a microphone nothing below can work.
        self.input_node = audio_engine.input_node

        main_queue.register(ToggleRequested, self._on_toggle_requested)
        main_queue.register(PermissionResolved, self._on_permission_resolved)
        main_queue.register(ResultReceived, self._on_result_received)
        main_queue.register(SessionError, self._on_session_error)
        main_queue.register(AudioSessionFailed, self._on_audio_session_failed)
        main_queue.register(EngineFailed, self._on_engine_failed)
        main_queue.register(AvailabilityChanged, self._on_availability_changed)

        recognizer.set_availability_callback(
            lambda available: main_queue.post(AvailabilityChanged(available))
        )
        logger.info("ListeningController initialized")

    @property
    def listening(self) -> bool:
        return self._listening

    @listening.setter
    def listening(self, listening: bool) -> None:
        self._listening = listening
        self.view.listening = listening

    # Public operations

    def handle_toggle(self) -> None:
        """Ask for permission, then start or stop listening on the main queue."""
        self.request_permission(
            lambda granted, message: self.main_queue.post(PermissionResolved(granted, message))
        )

    def request_permission(self, callback: Callable[[bool, str], None]) -> None:
        """Request speech recognition permission.

        Args:
            callback: Called with (granted, message), possibly on another thread
        """
        self.authorizer.request_authorization(
            lambda status: callback(*permission_outcome(status))
        )

    def start_session(self) -> None:
        """Start capturing audio and streaming it to the recognizer."""
        if self.recognition_task is not None:
            self.recognition_task.cancel()
            self.recognition_task = None

        self._transition(SessionState.STARTING)
        try:
            self.audio_session.configure(self.session_category, self.session_mode)
            self.audio_session.set_active(True)
        except AudioSessionError as e:
            self.main_queue.post(AudioSessionFailed(e.reason))
            return

        self.session_id += 1
        session_id = self.session_id
        request = AudioBufferRecognitionRequest(should_report_partial_results=True)
        self.recognition_request = request

        def on_update(result: Optional[RecognitionResult], error: Optional[Exception]) -> None:
            if error is not None:
                self.main_queue.post(SessionError(session_id, str(error)))
            elif result is not None:
                self.main_queue.post(ResultReceived(session_id, result))

        self.recognition_task = self.recognizer.recognition_task(request, on_update)

        # The tap feeds this session's request only, so clearing
        # self.recognition_request never races with the audio thread.
        self.input_node.install_tap(TAP_BUS, TAP_BUFFER_SIZE,
                                    self.input_node.output_format(TAP_BUS),
                                    request.append)

        self.audio_engine.prepare()
        try:
            self.audio_engine.start()
        except AudioEngineError as e:
            self.main_queue.post(EngineFailed(e.reason))
            return

        self._transition(SessionState.LISTENING)
        logger.info(f"Session {session_id} listening")

    def stop_session(self) -> None:
        """Stop capturing and let the recognizer deliver its final result."""
        self.audio_engine.stop()
        if self.recognition_request is not None:
            self.recognition_request.end_audio()
            logger.info(f"Session {self.session_id} audio ended, waiting for final result")

    # Event handlers

    def _on_toggle_requested(self, event: ToggleRequested) -> None:
        if not self.view.button_enabled:
            logger.info("Listen button is disabled, asking the recognizer to check availability")
            self.recognizer.check_availability()
            return
        self.handle_toggle()

    def _on_permission_resolved(self, event: PermissionResolved) -> None:
        if self.listening:
            self.listening = False
            self.view.icon = Icon.IDLE
            if event.granted:
                self.stop_session()
        else:
            self.listening = True
            self.view.icon = Icon.ACTIVE
            self.view.label_text = event.message
            if event.granted:
                self.start_session()

    def _on_result_received(self, event: ResultReceived) -> None:
        if not self._is_current(event.session_id):
            logger.debug(f"Dropping result for finished session {event.session_id}")
            return
        self.view.label_text = event.result.text
        if event.result.is_final:
            self._finish_session()

    def _on_session_error(self, event: SessionError) -> None:
        if not self._is_current(event.session_id):
            logger.debug(f"Dropping error for finished session {event.session_id}")
            return
        logger.warning(f"Recognition error in session {event.session_id}: {event.reason}")
        self._finish_session()

    def _on_audio_session_failed(self, event: AudioSessionFailed) -> None:
        logger.error(f"Audio session failed: {event.reason}")
        self.view.label_text = f"An error occurred when starting audio session. {event.reason}"
        self._transition(SessionState.IDLE)

    def _on_engine_failed(self, event: EngineFailed) -> None:
        # The tap and the recognition task are left in place.
        logger.error(f"Audio engine failed to start: {event.reason}")
        self.view.label_text = f"An error occurred starting audio engine. {event.reason}"
        self._transition(SessionState.IDLE)

    def _on_availability_changed(self, event: AvailabilityChanged) -> None:
        self.view.button_enabled = event.available
        if event.available:
            # Forcing listening=True makes the toggle below take the stop branch.
            self.listening = True
            self.view.label_text = IDLE_PROMPT
            self.handle_toggle()
        else:
            self.view.label_text = UNAVAILABLE_MESSAGE

    # Internals

    def _is_current(self, session_id: int) -> bool:
        return session_id == self.session_id and self.recognition_task is not None

    def _finish_session(self) -> None:
        self._transition(SessionState.FINISHING)
        self.audio_engine.stop()
        self.input_node.remove_tap(TAP_BUS)
        self.recognition_request = None
        self.recognition_task = None
        self.view.label_text = IDLE_PROMPT if self.view.button_enabled else UNAVAILABLE_MESSAGE
        self._transition(SessionState.IDLE)
        logger.info(f"Session {self.session_id} finished")

    def _transition(self, state: SessionState) -> None:
        if state is not self.state:
            logger.debug(f"Session state: {self.state.value} -> {state.value}")
        self.state = state
