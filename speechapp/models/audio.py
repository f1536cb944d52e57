"""Audio-related data models."""

from dataclasses import dataclass

import numpy as np
import pyaudio


@dataclass(frozen=True)
class AudioFormat:
    """PCM format of the buffers delivered by an input node."""
    sample_rate: int = 16000
    channels: int = 1
    sample_format: int = pyaudio.paInt16
    bytes_per_sample: int = 2


@dataclass
class AudioBuffer:
    """A single captured audio chunk with timestamp."""
    data: bytes
    frame_count: int
    timestamp: float  # Time when this buffer was captured
    format: AudioFormat

    @property
    def peak_level(self) -> float:
        """Peak amplitude of the buffer in the 0.0 - 1.0 range."""
        if not self.data:
            return 0.0
        samples = np.frombuffer(self.data, dtype=np.int16)
        if samples.size == 0:
            return 0.0
        return float(np.max(np.abs(samples.astype(np.int32)))) / 32768.0
