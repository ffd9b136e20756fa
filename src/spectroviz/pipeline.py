"""
Main analysis pipeline.

Runs the STFT once over a whole signal and fans every magnitude
spectrum out to one or more renderers.
"""

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Iterator, Optional, Tuple, Union

import numpy as np

from spectroviz.config import AnalysisConfig, SpectrogramConfig, VisualizerConfig
from spectroviz.core.analyzer import SpectralAnalyzer
from spectroviz.core.framer import AudioBuffer, load_audio
from spectroviz.errors import ExternalProcessError, OutputError
from spectroviz.io.encoder import VideoWriter, mux_audio
from spectroviz.render.bands import BandVisualizer
from spectroviz.render.base import FrameConsumer
from spectroviz.render.spectrogram import SpectrogramRenderer, check_image_format

ProgressCallback = Callable[[int, int], None]

VIZ_SUFFIX = "_viz.mp4"


@dataclass
class SpectrogramResult:
    """Outcome of a still spectrogram render."""

    output_path: Path
    n_bins: int
    n_frames: int
    dominant_bin: int
    degenerate: bool
    sample_rate: float
    duration: float


@dataclass
class VisualizerResult:
    """Outcome of a band visualizer render."""

    output_path: Path
    video_path: Path
    n_frames: int
    frames_emitted: int
    decimation: int
    output_fps: int
    muxed: bool
    mux_error: Optional[str] = None


def default_viz_path(audio_path: Union[str, Path]) -> Path:
    """Muxed output name: the input's base name plus a fixed suffix."""
    return Path(f"{Path(audio_path).stem}{VIZ_SUFFIX}")


def ensure_writable(output_path: Union[str, Path]) -> Path:
    """Create the parent directory and check the destination can be written."""
    output_path = Path(output_path)
    parent = output_path.parent
    try:
        parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise OutputError(f"Could not create {parent}: {exc}") from exc
    if output_path.is_dir():
        raise OutputError(f"Output path is a directory: {output_path}")
    if not os.access(parent, os.W_OK):
        raise OutputError(f"Output directory is not writable: {parent}")
    return output_path


class SpectrumPipeline:
    """
    Complete audio-to-visual processing pipeline.

    Combines loading, framing, spectral analysis and rendering into a
    single interface. The spectrogram and band renderers are independent
    consumers of the same magnitude stream.
    """

    def __init__(self, config: Optional[AnalysisConfig] = None):
        """
        Initialize the pipeline.

        Args:
            config: STFT parameters shared by every renderer.
        """
        self.config = (config or AnalysisConfig()).validate()
        self.analyzer = SpectralAnalyzer(self.config)

    def load(self, audio_path: Union[str, Path]) -> AudioBuffer:
        """
        Decode audio and apply the configured duration limit.

        Args:
            audio_path: Path to audio file.

        Returns:
            AudioBuffer with every channel at the native rate.
        """
        return load_audio(audio_path).truncated(self.config.max_duration)

    def frame_count(self, buffer: AudioBuffer) -> int:
        """Number of analysis frames, raising if the buffer is too short."""
        return self.analyzer.framer.count_frames(buffer.n_frames)

    def analyze(self, buffer: AudioBuffer) -> Iterator[Tuple[int, np.ndarray]]:
        """Lazy (frame_index, magnitude) stream."""
        return self.analyzer.stft(buffer)

    def run(
        self,
        buffer: AudioBuffer,
        consumers: Iterable[FrameConsumer],
        progress_callback: Optional[ProgressCallback] = None,
    ) -> int:
        """
        Drive every consumer through one pass over the signal.

        Args:
            buffer: Decoded audio.
            consumers: Renderers receiving each magnitude spectrum.
            progress_callback: Optional callback(current_frame, total_frames).

        Returns:
            Number of frames analysed.
        """
        consumers = list(consumers)
        n_frames = self.frame_count(buffer)
        frame_rate = self.config.frame_rate(buffer.sample_rate)

        for consumer in consumers:
            consumer.begin(self.config.n_bins, n_frames, frame_rate)

        for t, magnitude in self.analyze(buffer):
            for consumer in consumers:
                consumer.consume(magnitude, t)
            if progress_callback:
                progress_callback(t + 1, n_frames)

        for consumer in consumers:
            consumer.finish()

        return n_frames

    def render_spectrogram(
        self,
        audio_path: Union[str, Path],
        output_path: Union[str, Path] = "spectrogram.png",
        config: Optional[SpectrogramConfig] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> SpectrogramResult:
        """
        Render a colorized log-magnitude spectrogram to a PNG.

        Args:
            audio_path: Path to input audio file.
            output_path: Destination image.
            config: Colormap options.
            progress_callback: Optional callback(current_frame, total_frames).

        Returns:
            SpectrogramResult describing the written image.
        """
        buffer = self.load(audio_path)
        renderer = SpectrogramRenderer(config, epsilon=self.config.epsilon)
        self.frame_count(buffer)
        output_path = check_image_format(ensure_writable(output_path))

        n_frames = self.run(buffer, [renderer], progress_callback)
        if renderer.degenerate:
            print(
                "Warning: spectrogram has no dynamic range, writing a uniform image",
                file=sys.stderr,
            )
        renderer.save(output_path)

        return SpectrogramResult(
            output_path=output_path,
            n_bins=self.config.n_bins,
            n_frames=n_frames,
            dominant_bin=renderer.dominant_bin(),
            degenerate=renderer.degenerate,
            sample_rate=buffer.sample_rate,
            duration=buffer.duration,
        )

    def render_visualizer(
        self,
        audio_path: Union[str, Path],
        output_path: Union[str, Path, None] = None,
        video_path: Union[str, Path] = "visualizer.mp4",
        config: Optional[VisualizerConfig] = None,
        mux: bool = True,
        frame_sink: Optional[VideoWriter] = None,
        muxer: Optional[Callable[[Path, Path, Path], Path]] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> VisualizerResult:
        """
        Render the band-ring animation and mux it with the source audio.

        Args:
            audio_path: Path to input audio file.
            output_path: Muxed MP4 path (default: <stem>_viz.mp4).
            video_path: Video-only intermediate MP4.
            config: Canvas and geometry settings.
            mux: Run the audio muxing step after encoding.
            frame_sink: Context manager called with each emitted frame;
                defaults to a VideoWriter on ``video_path``.
            muxer: Callable(video_path, audio_path, output_path); defaults to
                mux_audio.
            progress_callback: Optional callback(current_frame, total_frames).

        Returns:
            VisualizerResult. A failed mux leaves the video-only file in
            place and is reported through ``muxed`` and ``mux_error``.
        """
        audio_path = Path(audio_path)
        output_path = Path(output_path) if output_path else default_viz_path(audio_path)

        buffer = self.load(audio_path)
        self.frame_count(buffer)
        cfg = (config or VisualizerConfig()).validate(self.config.n_bins)
        frame_rate = self.config.frame_rate(buffer.sample_rate)

        if frame_sink is not None:
            video_path = getattr(frame_sink, "output_path", video_path)
        video_path = ensure_writable(video_path)
        if mux:
            ensure_writable(output_path)

        if frame_sink is None:
            frame_sink = VideoWriter(
                video_path,
                width=cfg.width,
                height=cfg.height,
                fps=cfg.output_fps(frame_rate),
                quality=cfg.quality,
            )

        with frame_sink:
            visualizer = BandVisualizer(cfg, frame_sink=frame_sink)
            n_frames = self.run(buffer, [visualizer], progress_callback)

        result = VisualizerResult(
            output_path=video_path,
            video_path=video_path,
            n_frames=n_frames,
            frames_emitted=visualizer.frames_emitted,
            decimation=visualizer.decimation,
            output_fps=visualizer.output_fps,
            muxed=False,
        )
        if not mux:
            return result

        muxer = muxer or mux_audio
        print(f"Muxing to {output_path}...", flush=True)
        try:
            muxer(video_path, audio_path, output_path)
        except ExternalProcessError as exc:
            print(
                f"Warning: {exc}. Video-only output kept at {video_path}",
                file=sys.stderr,
            )
            result.mux_error = str(exc)
            return result

        result.output_path = output_path
        result.muxed = True
        return result
