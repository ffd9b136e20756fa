"""
Audio buffer container and STFT framing.

Slices a (possibly multichannel) signal into overlapping, windowed,
mono analysis frames at a fixed hop.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional, Union

import librosa
import numpy as np

from spectroviz.core.window import hann_window
from spectroviz.errors import ConfigError, InputError, InsufficientSamplesError


@dataclass(frozen=True)
class AudioBuffer:
    """
    Decoded audio, read once and never mutated.

    ``samples`` has shape (n_frames, n_channels); in C order that is the
    channel-interleaved sample stream.
    """

    samples: np.ndarray
    sample_rate: float

    def __post_init__(self):
        # Private copy; the caller's array stays writable
        object.__setattr__(
            self, "samples", np.array(self.samples, dtype=np.float32, order="C")
        )
        if self.samples.ndim != 2 or self.samples.shape[1] < 1:
            raise InputError(
                f"expected samples shaped (n_frames, n_channels), got {self.samples.shape}"
            )
        if self.sample_rate <= 0:
            raise InputError(f"sample rate must be positive, got {self.sample_rate}")
        self.samples.setflags(write=False)

    @classmethod
    def from_array(cls, y: np.ndarray, sample_rate: float) -> "AudioBuffer":
        """Build a buffer from a mono (n,) or multichannel (n, channels) array."""
        y = np.asarray(y, dtype=np.float32)
        if y.ndim == 1:
            y = y[:, np.newaxis]
        return cls(samples=y, sample_rate=float(sample_rate))

    @classmethod
    def from_interleaved(
        cls,
        data: np.ndarray,
        sample_rate: float,
        n_channels: int,
    ) -> "AudioBuffer":
        """Build a buffer from a flat channel-interleaved sample stream."""
        data = np.asarray(data, dtype=np.float32).ravel()
        if n_channels < 1 or data.size % n_channels:
            raise InputError(
                f"{data.size} interleaved samples cannot be split into {n_channels} channels"
            )
        return cls.from_array(data.reshape(-1, n_channels), sample_rate)

    @property
    def n_frames(self) -> int:
        """Samples per channel."""
        return self.samples.shape[0]

    @property
    def n_channels(self) -> int:
        return self.samples.shape[1]

    @property
    def duration(self) -> float:
        return self.n_frames / self.sample_rate

    def interleaved(self) -> np.ndarray:
        """Flat view of the channel-interleaved samples."""
        return self.samples.reshape(-1)

    def truncated(self, max_duration: Optional[float]) -> "AudioBuffer":
        """Return a buffer limited to ``max_duration`` seconds."""
        if max_duration is None:
            return self
        limit = int(max_duration * self.sample_rate)
        if limit >= self.n_frames:
            return self
        return AudioBuffer(samples=self.samples[:limit], sample_rate=self.sample_rate)


def load_audio(audio_path: Union[str, Path]) -> AudioBuffer:
    """
    Decode an audio file at its native rate, keeping every channel.

    Args:
        audio_path: Path to audio file (wav, flac, mp3, ...).

    Returns:
        AudioBuffer with float32 samples.
    """
    audio_path = Path(audio_path)
    if not audio_path.is_file():
        raise InputError(f"Audio file not found: {audio_path}")

    try:
        y, sr = librosa.load(audio_path, sr=None, mono=False)
    except Exception as exc:
        raise InputError(f"Could not decode {audio_path}: {exc}") from exc

    # librosa returns (channels, n) for multichannel input
    y = np.atleast_2d(y).T
    return AudioBuffer.from_array(y, sr)


class Framer:
    """
    Produces windowed mono analysis frames from an AudioBuffer.

    Frame ``t`` starts at sample ``t * hop``; every channel is averaged
    at each offset and the result multiplied by the window table.
    """

    def __init__(self, n_fft: int = 1024, hop_length: Optional[int] = None):
        if n_fft < 2:
            raise ConfigError(f"n_fft must be at least 2, got {n_fft}")
        self.n_fft = n_fft
        self.hop_length = hop_length if hop_length is not None else n_fft // 4
        if self.hop_length < 1:
            raise ConfigError(f"hop_length must be positive, got {self.hop_length}")
        self.window = hann_window(n_fft)

    def count_frames(self, n_samples: int) -> int:
        """Number of full frames that fit in ``n_samples`` samples."""
        if n_samples < self.n_fft:
            raise InsufficientSamplesError(n_samples, self.n_fft)
        return 1 + (n_samples - self.n_fft) // self.hop_length

    def frame_times(self, n_frames: int, sample_rate: float) -> np.ndarray:
        """Start time in seconds of each frame."""
        return librosa.frames_to_time(
            np.arange(n_frames),
            sr=sample_rate,
            hop_length=self.hop_length,
        )

    @staticmethod
    def mixdown(buffer: AudioBuffer) -> np.ndarray:
        """Average all channels to a mono float64 signal."""
        return buffer.samples.mean(axis=1, dtype=np.float64)

    def frames(self, buffer: AudioBuffer) -> Iterator[np.ndarray]:
        """
        Lazily yield windowed frames in increasing time order.

        Raises InsufficientSamplesError before yielding anything when the
        buffer is shorter than one frame.
        """
        n_frames = self.count_frames(buffer.n_frames)
        mono = self.mixdown(buffer)
        return self._iter_frames(mono, n_frames)

    def _iter_frames(self, mono: np.ndarray, n_frames: int) -> Iterator[np.ndarray]:
        for t in range(n_frames):
            offset = t * self.hop_length
            yield mono[offset:offset + self.n_fft] * self.window
