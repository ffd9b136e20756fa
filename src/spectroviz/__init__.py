"""STFT analysis engine for spectrogram stills and band-energy animations."""

from spectroviz.config import AnalysisConfig, SpectrogramConfig, VisualizerConfig
from spectroviz.core.analyzer import SpectralAnalyzer
from spectroviz.core.framer import AudioBuffer, Framer, load_audio
from spectroviz.pipeline import SpectrumPipeline
from spectroviz.render.bands import BandVisualizer
from spectroviz.render.spectrogram import SpectrogramRenderer

__version__ = "0.1.0"
__all__ = [
    "AnalysisConfig",
    "SpectrogramConfig",
    "VisualizerConfig",
    "AudioBuffer",
    "Framer",
    "load_audio",
    "SpectralAnalyzer",
    "SpectrogramRenderer",
    "BandVisualizer",
    "SpectrumPipeline",
]
