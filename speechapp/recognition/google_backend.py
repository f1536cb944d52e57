"""Google Speech-to-Text streaming recognizer."""

import logging
import threading
from datetime import datetime
from typing import Optional

from google.cloud import speech
from google.api_core import exceptions as gax_exceptions
from google.auth import exceptions as auth_exceptions
from google.oauth2 import service_account

from .base import RecognitionError, RecognitionTask, ResultHandler, SpeechRecognizer
from .request import AudioBufferRecognitionRequest
from ..models.recognition import RecognitionResult

logger = logging.getLogger(__name__)


class GoogleRecognitionTask(RecognitionTask):
    """Streams one request to Google on a background thread.

    Google finalizes each utterance separately. Finalized utterances are
    accumulated so that every update carries the whole transcription so far,
    and the result is only marked final once the audio has ended and the
    stream is closed.
    """

    def __init__(self,
                 recognizer: "GoogleSpeechRecognizer",
                 request: AudioBufferRecognitionRequest,
                 result_handler: ResultHandler):
        self.recognizer = recognizer
        self.request = request
        self.result_handler = result_handler
        self._cancelled = threading.Event()
        self.thread = threading.Thread(target=self._run, daemon=True)
        self.thread.name = "GoogleRecognitionTask"

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled.is_set()

    def start(self) -> None:
        self.thread.start()

    def cancel(self) -> None:
        if self._cancelled.is_set():
            return
        logger.debug("Cancelling recognition task")
        self._cancelled.set()

    def _deliver(self, result: Optional[RecognitionResult], error: Optional[Exception]) -> None:
        if self._cancelled.is_set():
            return
        self.result_handler(result, error)

    def _run(self) -> None:
        requests = (
            speech.StreamingRecognizeRequest(audio_content=chunk)
            for chunk in self.request.audio_chunks(stop_event=self._cancelled)
        )
        committed = []
        last_text = ""
        last_confidence = 0.0

        try:
            client = self.recognizer.ensure_client()
            responses = client.streaming_recognize(
                self.recognizer.streaming_config(self.request), requests
            )
            for response in responses:
                if self._cancelled.is_set():
                    break
                self.recognizer._set_available(True)
                if not response.results:
                    continue

                interim = []
                for result in response.results:
                    if not result.alternatives:
                        continue
                    alternative = result.alternatives[0]
                    if result.is_final:
                        committed.append(alternative.transcript.strip())
                        last_confidence = alternative.confidence
                    else:
                        interim.append(alternative.transcript.strip())

                last_text = " ".join(part for part in committed + interim if part)
                logger.debug(f"Partial transcript: '{last_text}'")
                self._deliver(RecognitionResult(text=last_text,
                                                is_final=False,
                                                confidence=last_confidence,
                                                timestamp=datetime.now()), None)
        except RecognitionError as e:
            logger.error(f"Google STT client unavailable: {e}")
            self._deliver(None, e)
            return
        except gax_exceptions.ServiceUnavailable as e:
            logger.error(f"Google STT service unavailable: {e}")
            self.recognizer._set_available(False)
            self._deliver(None, RecognitionError(f"Speech service unavailable: {e.message}"))
            return
        except gax_exceptions.GoogleAPICallError as e:
            logger.error(f"Google STT API call error: {e}")
            self._deliver(None, RecognitionError(f"Speech API error: {e.message}"))
            return

        if self._cancelled.is_set():
            logger.debug("Recognition task cancelled, dropping remaining results")
            return

        final_text = " ".join(part for part in committed if part) or last_text
        if not final_text:
            self._deliver(None, RecognitionError("No speech detected"))
            return

        logger.info(f"Final transcript: '{final_text}'")
        self._deliver(RecognitionResult(text=final_text,
                                        is_final=True,
                                        confidence=last_confidence,
                                        timestamp=datetime.now()), None)


class GoogleSpeechRecognizer(SpeechRecognizer):
    """Google Speech-to-Text streaming API recognizer.

    The Speech client is created on first use, so a missing or broken
    credentials file surfaces as a recognition error instead of a startup
    crash. While the service is unavailable a background thread keeps probing
    it with a short silent clip and reports the recovery.
    """

    def __init__(self,
                 credentials_path: Optional[str] = None,
                 sample_rate: int = 16000,
                 language: str = "en-US",
                 model: str = "latest_long",
                 enable_automatic_punctuation: bool = True,
                 recovery_interval: float = 30.0):
        """Initialize Google Speech recognizer.

        Args:
            credentials_path: Path to Google Cloud service account JSON file. If None,
                              application default credentials are used.
            sample_rate: Sample rate of the streamed audio in Hz
            language: Language code (e.g., 'en-US', 'es-ES')
            model: Recognition model name
            enable_automatic_punctuation: Enable automatic punctuation
            recovery_interval: Seconds between availability probes while the service is down
        """
        super().__init__(language)
        self.credentials_path = credentials_path
        self.sample_rate = sample_rate
        self.enable_automatic_punctuation = enable_automatic_punctuation
        self.recovery_interval = recovery_interval
        self.client: Optional[speech.SpeechClient] = None
        self.project_id = None
        self.service_name = "Google Speech-to-Text"
        self.config = speech.RecognitionConfig(
            encoding=speech.RecognitionConfig.AudioEncoding.LINEAR16,
            sample_rate_hertz=sample_rate,
            language_code=self.language,
            enable_automatic_punctuation=self.enable_automatic_punctuation,
            model=model,
            max_alternatives=1,
        )

        self._client_lock = threading.Lock()
        self._recovery_lock = threading.Lock()
        self._recovery_thread: Optional[threading.Thread] = None
        self._recovery_wakeup = threading.Event()
        self._closed = threading.Event()

    def initialize(self) -> bool:
        """Initialize Google Speech client."""
        try:
            self.ensure_client()
        except RecognitionError as e:
            logger.error(f"{self.service_name} not ready: {e}")
            return False

        logger.info("Google Speech-to-Text recognizer initialized successfully")
        return True

    def ensure_client(self) -> speech.SpeechClient:
        """Return the Speech client, creating it on first use.

        Raises:
            RecognitionError: if the credentials cannot be loaded
        """
        with self._client_lock:
            if self.client is not None:
                return self.client
            try:
                if self.credentials_path:
                    logger.info(f"Loading Google credentials from: {self.credentials_path}")
                    credentials = service_account.Credentials.from_service_account_file(self.credentials_path)
                    self.client = speech.SpeechClient(credentials=credentials)
                    self.project_id = credentials.project_id
                    logger.info(f"Using Google Cloud project: {self.project_id}")
                else:
                    logger.info("No credentials file configured, using application default credentials")
                    self.client = speech.SpeechClient()
            except (OSError, ValueError, auth_exceptions.GoogleAuthError) as e:
                raise RecognitionError(f"Could not load Google credentials: {e}") from e
            return self.client

    def streaming_config(self, request: AudioBufferRecognitionRequest) -> speech.StreamingRecognitionConfig:
        return speech.StreamingRecognitionConfig(
            config=self.config,
            interim_results=request.should_report_partial_results,
            single_utterance=False,
        )

    def recognition_task(self,
                         request: AudioBufferRecognitionRequest,
                         result_handler: ResultHandler) -> GoogleRecognitionTask:
        task = GoogleRecognitionTask(self, request, result_handler)
        task.start()
        logger.debug("Started Google recognition task")
        return task

    def check_availability(self) -> None:
        """Probe the service now instead of waiting for the next scheduled probe."""
        if self.available:
            return
        self._recovery_wakeup.set()
        self._start_recovery()

    def _set_available(self, available: bool) -> None:
        super()._set_available(available)
        if not available:
            self._start_recovery()

    def _start_recovery(self) -> None:
        with self._recovery_lock:
            if self._recovery_thread is not None or self._closed.is_set():
                return
            self._recovery_thread = threading.Thread(target=self._recover, daemon=True)
            self._recovery_thread.name = "GoogleAvailabilityProbe"
            self._recovery_thread.start()

    def _recover(self) -> None:
        logger.info(f"{self.service_name} unavailable, probing every {self.recovery_interval}s")
        while True:
            self._recovery_wakeup.wait(self.recovery_interval)
            self._recovery_wakeup.clear()
            if not self._closed.is_set() and not self.available:
                self._probe()
            with self._recovery_lock:
                # A streaming response may have restored availability in the meantime
                if self.available or self._closed.is_set():
                    self._recovery_thread = None
                    break
        logger.debug("Availability probing stopped")

    def _probe(self) -> bool:
        """Send a short silent clip. Any answer from the service counts as available."""
        silence = b"\x00\x00" * (self.sample_rate // 10)
        try:
            client = self.ensure_client()
            client.recognize(config=self.config, audio=speech.RecognitionAudio(content=silence))
        except RecognitionError as e:
            logger.warning(f"Availability probe failed: {e}")
            return False
        except gax_exceptions.ServiceUnavailable as e:
            logger.info(f"{self.service_name} still unavailable: {e.message}")
            return False
        except gax_exceptions.GoogleAPICallError as e:
            logger.warning(f"{self.service_name} answered the probe with an error: {e.message}")

        logger.info(f"{self.service_name} is reachable again")
        self._set_available(True)
        return True

    def cleanup(self) -> None:
        """Clean up Google Speech client resources."""
        self._closed.set()
        self._recovery_wakeup.set()
        with self._client_lock:
            if self.client is not None:
                self.client.transport.close()
                self.client = None
