"""
Concentric-ring band energy visualizer.

Each analysis frame is reduced to a handful of band energies, normalized
against the loudest band of that frame, and drawn as hue-rotated rings.
Only every Dth frame is emitted so the output runs near a video frame rate.
"""

import colorsys
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

import numpy as np
from PIL import Image, ImageDraw

from spectroviz.config import VisualizerConfig
from spectroviz.render.base import FrameConsumer

RGB = Tuple[int, int, int]


@dataclass
class Ring:
    """One band's ring: radius in pixels and RGB stroke color."""

    band: int
    energy: float
    normalized: float
    radius: float
    color: RGB


def band_edges(n_bins: int, n_bands: int) -> np.ndarray:
    """
    Bin boundaries of ``n_bands`` contiguous bands over ``n_bins`` bins.

    Every band is ``n_bins // n_bands`` wide; the last band also takes the
    remainder, so each bin belongs to exactly one band.

    Returns:
        (n_bands + 1,) int array starting at 0 and ending at n_bins.
    """
    width = n_bins // n_bands
    edges = np.arange(n_bands + 1) * width
    edges[-1] = n_bins
    return edges


def band_energies(magnitude: np.ndarray, n_bands: int) -> np.ndarray:
    """Mean magnitude of each band."""
    edges = band_edges(len(magnitude), n_bands)
    sums = np.add.reduceat(magnitude, edges[:-1])
    return sums / np.diff(edges)


def hue_to_rgb(hue: float, saturation: int = 200, value: int = 255) -> RGB:
    """
    Convert an 8-bit half-range HSV color to RGB.

    Args:
        hue: 0-180, covering the full color wheel.
        saturation: 0-255.
        value: 0-255.
    """
    r, g, b = colorsys.hsv_to_rgb((hue % 180) / 180.0, saturation / 255.0, value / 255.0)
    return (int(round(r * 255)), int(round(g * 255)), int(round(b * 255)))


class BandVisualizer(FrameConsumer):
    """
    Renders band energies as concentric unfilled circles.

    Frames are computed for every analysis frame; those whose index is a
    multiple of the decimation factor are handed to ``frame_sink``.
    """

    def __init__(
        self,
        config: Optional[VisualizerConfig] = None,
        frame_sink: Optional[Callable[[np.ndarray], None]] = None,
        color_fn: Callable[[float, int, int], RGB] = hue_to_rgb,
    ):
        """
        Initialize the visualizer.

        Args:
            config: Canvas and geometry settings.
            frame_sink: Receives each emitted (H, W, 3) uint8 frame.
            color_fn: Maps (hue, saturation, value) to an RGB tuple.
        """
        self.cfg = config or VisualizerConfig()
        self.frame_sink = frame_sink
        self.color_fn = color_fn
        self.colors = [
            self.color_fn(self.band_hue(b), self.cfg.saturation, self.cfg.value)
            for b in range(self.cfg.n_bands)
        ]

        self.decimation = self.cfg.decimation or 1
        self.output_fps: Optional[int] = None
        self.frames_computed = 0
        self.frames_emitted = 0
        self.last_rings: List[Ring] = []

    def band_hue(self, band: int) -> int:
        return band * 180 // self.cfg.n_bands

    def begin(self, n_bins: int, n_frames: int, frame_rate: float):
        super().begin(n_bins, n_frames, frame_rate)
        self.cfg.validate(n_bins)
        self.decimation = self.cfg.decimation_for(frame_rate)
        self.output_fps = self.cfg.output_fps(frame_rate)
        self.frames_computed = 0
        self.frames_emitted = 0

    def ring_radius(self, normalized: float) -> float:
        """Scale a 0-1 band level to a radius and apply the visibility floor."""
        radius = normalized * self.cfg.max_radius
        floor = self.cfg.radius_floor
        if self.cfg.monotonic_floor:
            return max(radius, floor)
        if radius < floor:
            radius += floor
        return radius

    def ring_layout(self, energies: np.ndarray) -> List[Ring]:
        """Normalize one frame's band energies and compute ring geometry."""
        normalized = energies / (energies.max() + self.cfg.norm_epsilon)
        return [
            Ring(
                band=b,
                energy=float(energies[b]),
                normalized=float(normalized[b]),
                radius=self.ring_radius(float(normalized[b])),
                color=self.colors[b],
            )
            for b in range(len(energies))
        ]

    def draw_rings(self, rings: List[Ring]) -> np.ndarray:
        """Draw rings centered on a fresh canvas."""
        img = Image.new("RGB", (self.cfg.width, self.cfg.height), tuple(self.cfg.background))
        draw = ImageDraw.Draw(img)
        cx, cy = self.cfg.center
        for ring in rings:
            r = int(ring.radius)
            draw.ellipse(
                [cx - r, cy - r, cx + r, cy + r],
                outline=ring.color,
                width=self.cfg.ring_thickness,
            )
        return np.asarray(img, dtype=np.uint8)

    def render_frame(self, magnitude: np.ndarray) -> np.ndarray:
        """Full per-frame path: band energies, ring layout and canvas."""
        rings = self.ring_layout(band_energies(magnitude, self.cfg.n_bands))
        self.last_rings = rings
        return self.draw_rings(rings)

    def is_emitted(self, frame_index: int) -> bool:
        return frame_index % self.decimation == 0

    def consume(self, magnitude: np.ndarray, frame_index: int):
        frame = self.render_frame(magnitude)
        self.frames_computed += 1
        if not self.is_emitted(frame_index):
            return
        self.frames_emitted += 1
        if self.frame_sink is not None:
            self.frame_sink(frame)
