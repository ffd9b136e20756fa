"""
Base class for renderers driven by the shared STFT loop.
"""

import abc

import numpy as np


class FrameConsumer(abc.ABC):
    """
    Receives magnitude spectra in increasing frame order.

    The pipeline calls ``begin`` once, ``consume`` for every frame and
    ``finish`` after the last frame.
    """

    def begin(self, n_bins: int, n_frames: int, frame_rate: float):
        """Prepare for a run of ``n_frames`` spectra of ``n_bins`` bins each."""
        self.n_bins = n_bins
        self.n_frames = n_frames
        self.frame_rate = frame_rate

    @abc.abstractmethod
    def consume(self, magnitude: np.ndarray, frame_index: int):
        """Handle one frame's magnitude spectrum."""
        pass

    def finish(self):
        """Called once after the final frame."""
        pass
