"""Renderers that consume per-frame magnitude spectra."""

from spectroviz.render.bands import BandVisualizer
from spectroviz.render.base import FrameConsumer
from spectroviz.render.spectrogram import SpectrogramRenderer

__all__ = ["BandVisualizer", "FrameConsumer", "SpectrogramRenderer"]
