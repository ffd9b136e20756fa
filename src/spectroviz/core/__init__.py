"""Core STFT analysis modules."""

from spectroviz.core.analyzer import SpectralAnalyzer
from spectroviz.core.framer import AudioBuffer, Framer, load_audio
from spectroviz.core.window import hann_window

__all__ = ["AudioBuffer", "Framer", "SpectralAnalyzer", "hann_window", "load_audio"]
