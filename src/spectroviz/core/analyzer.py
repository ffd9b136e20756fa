"""
Spectral analysis module.

Turns windowed analysis frames into magnitude spectra over the
non-negative frequencies (DC through Nyquist).
"""

from typing import Iterator, Optional, Tuple

import numpy as np
from scipy import fft as scipy_fft

from spectroviz.config import AnalysisConfig
from spectroviz.core.framer import AudioBuffer, Framer


class SpectralAnalyzer:
    """
    Short-time Fourier transform driver.

    Owns a Framer and applies a real-input FFT to each frame it produces.
    """

    def __init__(self, config: Optional[AnalysisConfig] = None):
        """
        Initialize the analyzer.

        Args:
            config: STFT parameters. Defaults to AnalysisConfig().
        """
        self.config = (config or AnalysisConfig()).validate()
        self.framer = Framer(n_fft=self.config.n_fft, hop_length=self.config.hop)

    @property
    def n_fft(self) -> int:
        return self.config.n_fft

    @property
    def hop_length(self) -> int:
        return self.framer.hop_length

    @property
    def n_bins(self) -> int:
        return self.config.n_bins

    def magnitude(self, frame: np.ndarray) -> np.ndarray:
        """
        Magnitude spectrum of a single windowed frame.

        Args:
            frame: (n_fft,) real samples.

        Returns:
            (n_fft // 2 + 1,) non-negative float64 magnitudes.
        """
        spectrum = scipy_fft.rfft(frame, n=self.n_fft)
        return np.abs(spectrum)

    def frequencies(self, sample_rate: float) -> np.ndarray:
        """Center frequency in Hz of every bin."""
        return scipy_fft.rfftfreq(self.n_fft, d=1.0 / sample_rate)

    def peak_bin(self, magnitude: np.ndarray) -> int:
        """Index of the strongest bin."""
        return int(np.argmax(magnitude))

    def stft(self, buffer: AudioBuffer) -> Iterator[Tuple[int, np.ndarray]]:
        """
        Lazily yield (frame_index, magnitude) pairs in time order.

        Frame-count errors are raised before the first pair is produced.
        """
        frames = self.framer.frames(buffer)
        return ((t, self.magnitude(frame)) for t, frame in enumerate(frames))

    def magnitude_matrix(self, buffer: AudioBuffer) -> np.ndarray:
        """
        Full (n_bins, n_frames) magnitude matrix for a buffer.

        Convenience for offline use; the renderers consume the lazy stream.
        """
        n_frames = self.framer.count_frames(buffer.n_frames)
        matrix = np.empty((self.n_bins, n_frames), dtype=np.float64)
        for t, mag in self.stft(buffer):
            matrix[:, t] = mag
        return matrix
