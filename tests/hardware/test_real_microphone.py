"""Real hardware tests for microphone capture.

These tests require an actual microphone and verify that the audio engine
delivers buffers to an input node tap.

Run with: pytest tests/hardware/ -v -s -m hardware
"""

import time

import pytest

from speechapp.audio.engine import AudioEngine
from speechapp.audio.errors import MissingInputNodeError
from speechapp.audio.session import AudioSession
from speechapp.recognition.request import AudioBufferRecognitionRequest


@pytest.fixture
def engine():
    engine = AudioEngine(sample_rate=16000, channels=1)
    try:
        engine.input_node
    except MissingInputNodeError:
        engine.shutdown()
        pytest.skip("No microphone available")
    yield engine
    engine.shutdown()


@pytest.mark.hardware
class TestRealMicrophone:
    """Tests that require real audio hardware to run."""

    def test_audio_session_activates(self):
        session = AudioSession()
        session.configure("record", "measurement")

        session.set_active(True)
        try:
            assert session.is_active
        finally:
            session.set_active(False)

    def test_tap_receives_3s_of_audio(self, engine):
        print("\n" + "=" * 60)
        print("HARDWARE TEST: 3-second microphone capture")
        print("=" * 60)

        request = AudioBufferRecognitionRequest()
        node = engine.input_node
        node.install_tap(0, 1024, node.output_format(0), request.append)

        engine.prepare()
        engine.start()
        time.sleep(3.0)
        engine.stop()
        request.end_audio()
        node.remove_tap(0)

        audio = b"".join(request.audio_chunks())
        seconds = len(audio) / (16000 * 2)
        print(f"Captured {request.appended_buffers} buffers, {seconds:.2f}s of audio")

        # 16kHz mono, 1024 frames per buffer: roughly 15 buffers per second
        assert request.appended_buffers >= 30
        assert 2.0 <= seconds <= 4.0

    def test_stop_is_prompt(self, engine):
        engine.start()
        time.sleep(0.5)

        start = time.time()
        engine.stop()

        assert not engine.is_running
        assert time.time() - start < 1.0
