"""Unit tests for the permission service."""

import threading
from unittest.mock import patch

import pytest

from speechapp.config import SpeechAppConfig
from speechapp.models.permission import AuthorizationStatus
from speechapp.services.permission_service import (
    PERMISSION_MESSAGES,
    ConfigAuthorizer,
    permission_outcome,
)


@pytest.mark.unit
class TestPermissionOutcome:

    def test_only_authorized_is_granted(self):
        granted = [status for status in AuthorizationStatus if permission_outcome(status)[0]]
        assert granted == [AuthorizationStatus.AUTHORIZED]

    def test_every_status_has_a_message(self):
        assert set(PERMISSION_MESSAGES) == set(AuthorizationStatus)

    def test_authorized_message(self):
        assert permission_outcome(AuthorizationStatus.AUTHORIZED) == (True, "Listening...")


@pytest.mark.unit
class TestConfigAuthorizer:

    def test_not_configured_is_not_determined(self, temp_config):
        config = SpeechAppConfig(temp_config("recognition:\n  language: en-US\n"))

        assert ConfigAuthorizer(config).current_status() is AuthorizationStatus.NOT_DETERMINED

    def test_missing_credentials_file_is_denied(self, temp_config):
        config = SpeechAppConfig(temp_config("google_cloud:\n  credentials_path: missing.json\n"))

        assert ConfigAuthorizer(config).current_status() is AuthorizationStatus.DENIED

    def test_unreadable_credentials_file_is_restricted(self, temp_config, tmp_path):
        (tmp_path / "creds.json").write_text("{}")
        config = SpeechAppConfig(temp_config("google_cloud:\n  credentials_path: creds.json\n"))

        with patch("speechapp.services.permission_service.os.access", return_value=False):
            status = ConfigAuthorizer(config).current_status()

        assert status is AuthorizationStatus.RESTRICTED

    def test_readable_credentials_file_is_authorized(self, temp_config, tmp_path):
        (tmp_path / "creds.json").write_text("{}")
        config = SpeechAppConfig(temp_config("google_cloud:\n  credentials_path: creds.json\n"))

        assert ConfigAuthorizer(config).current_status() is AuthorizationStatus.AUTHORIZED

    @pytest.mark.parametrize("value, expected", [
        ("authorized", AuthorizationStatus.AUTHORIZED),
        ("denied", AuthorizationStatus.DENIED),
        ("Restricted", AuthorizationStatus.RESTRICTED),
        ("not_determined", AuthorizationStatus.NOT_DETERMINED),
    ])
    def test_explicit_setting_wins(self, temp_config, tmp_path, value, expected):
        (tmp_path / "creds.json").write_text("{}")
        config = SpeechAppConfig(temp_config(
            "google_cloud:\n  credentials_path: creds.json\n"
            f"permissions:\n  speech_recognition: {value}\n"
        ))

        assert ConfigAuthorizer(config).current_status() is expected

    def test_unknown_setting_falls_back_to_credentials(self, temp_config):
        config = SpeechAppConfig(temp_config("permissions:\n  speech_recognition: maybe\n"))

        assert ConfigAuthorizer(config).current_status() is AuthorizationStatus.NOT_DETERMINED

    def test_request_answers_on_worker_thread(self, temp_config):
        config = SpeechAppConfig(temp_config("permissions:\n  speech_recognition: denied\n"))
        answered = threading.Event()
        result = {}

        def callback(status):
            result['status'] = status
            result['thread'] = threading.current_thread()
            answered.set()

        ConfigAuthorizer(config).request_authorization(callback)

        assert answered.wait(timeout=2.0)
        assert result['status'] is AuthorizationStatus.DENIED
        assert result['thread'] is not threading.current_thread()
