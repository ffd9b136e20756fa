"""Pytest configuration and shared fixtures."""

from pathlib import Path

import numpy as np
import pytest

from spectroviz.core.framer import AudioBuffer

# Default sample rate for test audio
TEST_SR = 44100


@pytest.fixture
def sample_rate() -> int:
    """Default sample rate for tests."""
    return TEST_SR


@pytest.fixture
def pure_sine(sample_rate: int) -> tuple[np.ndarray, int]:
    """
    Generate a 2 second, 440Hz sine wave (A4 note).

    Returns:
        Tuple of (audio_signal, sample_rate).
    """
    duration = 2.0
    t = np.arange(int(sample_rate * duration)) / sample_rate
    y = 0.5 * np.sin(2 * np.pi * 440.0 * t)
    return y.astype(np.float32), sample_rate


@pytest.fixture
def sine_buffer(pure_sine) -> AudioBuffer:
    y, sr = pure_sine
    return AudioBuffer.from_array(y, sr)


@pytest.fixture
def silent_stereo() -> AudioBuffer:
    """One second of stereo silence at 48kHz."""
    return AudioBuffer.from_array(np.zeros((48000, 2), dtype=np.float32), 48000)


@pytest.fixture
def temp_audio_file(tmp_path, pure_sine) -> Path:
    """Write the sine fixture to a temporary WAV file."""
    import soundfile as sf

    y, sr = pure_sine
    audio_path = tmp_path / "test_audio.wav"
    sf.write(audio_path, y, sr)
    return audio_path


@pytest.fixture
def silent_audio_file(tmp_path) -> Path:
    """Write one second of stereo silence to a temporary WAV file."""
    import soundfile as sf

    audio_path = tmp_path / "silence.wav"
    sf.write(audio_path, np.zeros((48000, 2), dtype=np.float32), 48000)
    return audio_path


class FakeWriter:
    """Stands in for VideoWriter: records frames instead of encoding."""

    instances = []

    def __init__(self, output_path="visualizer.mp4", width=800, height=600, fps=30, quality="fast"):
        self.output_path = Path(output_path)
        self.width = width
        self.height = height
        self.fps = fps
        self.quality = quality
        self.frames = []
        self.opened = False
        self.closed = False
        FakeWriter.instances.append(self)

    def __enter__(self):
        self.opened = True
        return self

    def __exit__(self, exc_type, exc, tb):
        self.closed = True

    def __call__(self, frame):
        self.frames.append(frame.shape)


@pytest.fixture
def fake_writer_cls():
    FakeWriter.instances = []
    return FakeWriter
