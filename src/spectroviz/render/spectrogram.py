"""
Log-magnitude spectrogram still renderer.

Accumulates one magnitude column per frame, then log-compresses,
min-max scales to 8 bits and colorizes through a perceptual lookup table.
"""

from pathlib import Path
from typing import Optional, Union

import numpy as np
from matplotlib import colormaps
from PIL import Image

from spectroviz.config import SpectrogramConfig
from spectroviz.errors import ConfigError, DegenerateDataError, OutputError
from spectroviz.render.base import FrameConsumer


def log_compress(matrix: np.ndarray, epsilon: float = 1e-6) -> np.ndarray:
    """Natural log of ``matrix + epsilon``."""
    return np.log(matrix + epsilon)


def normalize_to_uint8(values: np.ndarray) -> np.ndarray:
    """
    Linearly rescale so the global minimum maps to 0 and the maximum to 255.

    Raises:
        DegenerateDataError: if every value is equal.
    """
    lo = float(values.min())
    hi = float(values.max())
    if not hi > lo:
        raise DegenerateDataError(f"all values equal {lo}, min-max range is zero")
    scaled = (values - lo) * (255.0 / (hi - lo))
    return np.clip(np.rint(scaled), 0, 255).astype(np.uint8)


def check_image_format(output_path: Union[str, Path]) -> Path:
    """Raise OutputError unless Pillow can pick a writer from the file extension."""
    output_path = Path(output_path)
    if output_path.suffix.lower() not in Image.registered_extensions():
        raise OutputError(f"Unsupported image extension for {output_path}")
    return output_path


def colormap_lut(name: str = "inferno") -> np.ndarray:
    """
    256-entry RGB lookup table built from a matplotlib colormap.

    Returns:
        (256, 3) uint8 array.
    """
    try:
        cmap = colormaps[name]
    except KeyError:
        raise ConfigError(f"unknown colormap {name!r}") from None
    rgba = cmap(np.linspace(0.0, 1.0, 256))
    return np.rint(rgba[:, :3] * 255).astype(np.uint8)


class SpectrogramRenderer(FrameConsumer):
    """
    Builds a single still image with one column per analysis frame.

    Rows are frequency bins, row 0 (DC) at the top.
    """

    def __init__(
        self,
        config: Optional[SpectrogramConfig] = None,
        epsilon: float = 1e-6,
    ):
        self.cfg = (config or SpectrogramConfig()).validate()
        self.epsilon = epsilon
        self.lut = colormap_lut(self.cfg.colormap)

        self.matrix: Optional[np.ndarray] = None
        self.levels: Optional[np.ndarray] = None
        self.image: Optional[np.ndarray] = None
        self.degenerate = False
        self._written = 0

    def begin(self, n_bins: int, n_frames: int, frame_rate: float):
        super().begin(n_bins, n_frames, frame_rate)
        self.matrix = np.zeros((n_bins, n_frames), dtype=np.float32)
        self.levels = None
        self.image = None
        self.degenerate = False
        self._written = 0

    def consume(self, magnitude: np.ndarray, frame_index: int):
        self.matrix[:, frame_index] = magnitude
        self._written += 1

    def finish(self):
        if self._written != self.n_frames:
            raise RuntimeError(
                f"spectrogram has {self._written} of {self.n_frames} columns written"
            )
        log_mag = log_compress(self.matrix, self.epsilon)
        try:
            self.levels = normalize_to_uint8(log_mag)
        except DegenerateDataError:
            self.degenerate = True
            self.levels = np.full(log_mag.shape, self.cfg.degenerate_level, dtype=np.uint8)
        self.image = self.colorize(self.levels)

    def colorize(self, levels: np.ndarray) -> np.ndarray:
        """Map 8-bit levels to (H, W, 3) RGB through the lookup table."""
        return self.lut[levels]

    def dominant_bin(self) -> int:
        """Row with the largest total magnitude across all frames."""
        return int(np.argmax(self.matrix.sum(axis=1)))

    def save(self, output_path: Union[str, Path]) -> Path:
        """Write the colorized spectrogram as a PNG."""
        if self.image is None:
            raise RuntimeError("finish() must run before save()")
        output_path = Path(output_path)
        try:
            Image.fromarray(self.image).save(output_path)
        except (OSError, ValueError) as exc:
            raise OutputError(f"Could not write {output_path}: {exc}") from exc
        return output_path
