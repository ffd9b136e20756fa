"""
Configuration objects for analysis and rendering.

Every tunable constant of the pipeline lives here with its default so
boundary configurations can be exercised directly.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from spectroviz.errors import ConfigError

# Quality presets understood by the video writer: (preset, crf, pix_fmt)
QUALITY_PRESETS = {
    "high": ("slow", "18", "yuv444p"),
    "medium": ("medium", "23", "yuv420p"),
    "fast": ("ultrafast", "28", "yuv420p"),
}


@dataclass
class AnalysisConfig:
    """STFT parameters shared by every renderer."""

    n_fft: int = 1024
    hop_length: Optional[int] = None  # None -> n_fft // 4 (75% overlap)
    epsilon: float = 1e-6  # added before the log to avoid log(0)
    max_duration: Optional[float] = None  # seconds, truncates the input

    @property
    def hop(self) -> int:
        """Resolved hop size in samples."""
        if self.hop_length is None:
            return max(1, self.n_fft // 4)
        return self.hop_length

    @property
    def n_bins(self) -> int:
        """Number of non-negative frequency bins per frame."""
        return self.n_fft // 2 + 1

    def frame_rate(self, sample_rate: float) -> float:
        """Analysis frames per second for a given sample rate."""
        return sample_rate / self.hop

    def validate(self) -> "AnalysisConfig":
        if self.n_fft < 2:
            raise ConfigError(f"n_fft must be at least 2, got {self.n_fft}")
        if self.hop_length is not None and self.hop_length < 1:
            raise ConfigError(f"hop_length must be positive, got {self.hop_length}")
        if self.epsilon <= 0:
            raise ConfigError(f"epsilon must be positive, got {self.epsilon}")
        if self.max_duration is not None and self.max_duration <= 0:
            raise ConfigError(f"max_duration must be positive, got {self.max_duration}")
        return self


@dataclass
class SpectrogramConfig:
    """Still-image rendering options."""

    colormap: str = "inferno"
    degenerate_level: int = 128  # constant level when the matrix has no range

    def validate(self) -> "SpectrogramConfig":
        if not 0 <= self.degenerate_level <= 255:
            raise ConfigError(
                f"degenerate_level must fit in 8 bits, got {self.degenerate_level}"
            )
        return self


@dataclass
class VisualizerConfig:
    """Band visualizer canvas, geometry and timing."""

    width: int = 800
    height: int = 600

    n_bands: int = 8

    # Frame-rate decimation. None derives it from target_fps.
    decimation: Optional[int] = 6
    target_fps: float = 30.0

    # Ring geometry
    max_radius_ratio: float = 0.45
    radius_floor: float = 60.0
    monotonic_floor: bool = False  # True: max(radius, floor) instead of radius + floor
    ring_thickness: int = 2

    # 8-bit HSV channels for ring colors (hue is spread over 0-180)
    saturation: int = 200
    value: int = 255
    background: Tuple[int, int, int] = (30, 10, 10)

    norm_epsilon: float = 1e-6
    quality: str = "fast"

    @property
    def max_radius(self) -> float:
        return min(self.width, self.height) * self.max_radius_ratio

    @property
    def center(self) -> Tuple[int, int]:
        return (self.width // 2, self.height // 2)

    def decimation_for(self, frame_rate: float) -> int:
        """Keep every Dth analysis frame so frame_rate / D approaches target_fps."""
        if self.decimation is not None:
            return self.decimation
        return max(1, int(round(frame_rate / self.target_fps)))

    def output_fps(self, frame_rate: float) -> int:
        """Integer frame rate of the emitted (decimated) frame sequence."""
        return max(1, int(frame_rate / self.decimation_for(frame_rate) + 0.5))

    def validate(self, n_bins: int) -> "VisualizerConfig":
        if self.width < 1 or self.height < 1:
            raise ConfigError(f"canvas size must be positive, got {self.width}x{self.height}")
        if self.n_bands < 1:
            raise ConfigError(f"n_bands must be positive, got {self.n_bands}")
        if self.n_bands > n_bins:
            raise ConfigError(
                f"n_bands ({self.n_bands}) exceeds the number of frequency bins ({n_bins})"
            )
        if self.decimation is not None and self.decimation < 1:
            raise ConfigError(f"decimation must be positive, got {self.decimation}")
        if self.target_fps <= 0:
            raise ConfigError(f"target_fps must be positive, got {self.target_fps}")
        if self.ring_thickness < 1:
            raise ConfigError(f"ring_thickness must be positive, got {self.ring_thickness}")
        if self.norm_epsilon <= 0:
            raise ConfigError(f"norm_epsilon must be positive, got {self.norm_epsilon}")
        if self.quality not in QUALITY_PRESETS:
            raise ConfigError(
                f"unknown quality {self.quality!r}, expected one of {sorted(QUALITY_PRESETS)}"
            )
        return self
