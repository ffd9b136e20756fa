"""
CLI entry point for the band energy ring visualizer.

Usage:
    spectroviz-bands <audio_file> [options]
    python -m spectroviz.cli <audio_file> [options]
"""

import argparse
import sys
import time
from pathlib import Path

from spectroviz.config import QUALITY_PRESETS, AnalysisConfig, VisualizerConfig
from spectroviz.errors import SpectrovizError
from spectroviz.pipeline import SpectrumPipeline


def _progress_bar(current: int, total: int, width: int = 35):
    """Print a progress bar to stdout."""
    pct = current / max(total, 1) * 100
    filled = int(width * current / max(total, 1))
    bar = "#" * filled + "-" * (width - filled)
    if sys.stdout.isatty():
        sys.stdout.write(f"\r[{bar}] {pct:5.1f}%  frame {current}/{total}")
        sys.stdout.flush()
        if current >= total:
            sys.stdout.write("\n")
    else:
        if current % max(1, total // 20) == 0 or current >= total:
            print(f"{pct:5.1f}%  frame {current}/{total}", flush=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="spectroviz-bands",
        description="Audio-reactive concentric ring video renderer",
    )

    parser.add_argument("audio", type=Path, help="Input audio file (wav, flac, mp3)")
    parser.add_argument(
        "-o", "--output",
        type=Path,
        default=None,
        help="Muxed MP4 path (default: <audio stem>_viz.mp4)",
    )
    parser.add_argument(
        "--video",
        type=Path,
        default=Path("visualizer.mp4"),
        help="Video-only intermediate MP4 (default: visualizer.mp4)",
    )

    # Canvas
    parser.add_argument("--width", type=int, default=800, help="Canvas width (default: 800)")
    parser.add_argument("--height", type=int, default=600, help="Canvas height (default: 600)")

    # Analysis
    parser.add_argument("--fft-size", type=int, default=1024, help="Frame length N (default: 1024)")
    parser.add_argument("--hop", type=int, default=None, help="Hop size H (default: N/4)")

    # Visual
    parser.add_argument("-b", "--bands", type=int, default=8, help="Number of rings (default: 8)")
    parser.add_argument(
        "--decimation", type=int, default=6,
        help="Keep every Dth analysis frame (default: 6, 0 derives it from --target-fps)",
    )
    parser.add_argument(
        "--target-fps", type=float, default=30.0,
        help="Target video frame rate when --decimation is 0 (default: 30)",
    )
    parser.add_argument(
        "--monotonic-floor", action="store_true",
        help="Clamp small rings to the floor radius instead of adding it",
    )

    # Output
    parser.add_argument("--no-mux", action="store_true", help="Skip muxing the audio track")
    parser.add_argument(
        "-q", "--quality", type=str, default="fast",
        choices=sorted(QUALITY_PRESETS),
        help="Encoding quality (default: fast)",
    )
    parser.add_argument("--max-duration", type=float, default=None, help="Limit output to N seconds")
    return parser


def main(argv=None) -> int:
    try:
        args = build_parser().parse_args(argv)
    except SystemExit as exc:
        # argparse exits 2 on usage errors
        return 0 if exc.code in (0, None) else 1

    config = VisualizerConfig(
        width=args.width,
        height=args.height,
        n_bands=args.bands,
        decimation=args.decimation or None,
        target_fps=args.target_fps,
        monotonic_floor=args.monotonic_floor,
        quality=args.quality,
    )

    try:
        pipeline = SpectrumPipeline(
            AnalysisConfig(
                n_fft=args.fft_size,
                hop_length=args.hop,
                max_duration=args.max_duration,
            )
        )

        print(f"Rendering band visualizer for: {args.audio}", flush=True)
        t0 = time.time()
        result = pipeline.render_visualizer(
            args.audio,
            output_path=args.output,
            video_path=args.video,
            config=config,
            mux=not args.no_mux,
            progress_callback=_progress_bar,
        )
    except SpectrovizError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    elapsed = time.time() - t0
    print(f"  Frames: {result.n_frames} analysed, {result.frames_emitted} written")
    print(f"  Video: {result.output_fps} fps (every {result.decimation} frames)")
    print(f"  Render+encode took {elapsed:.1f}s")
    print(f"Done! Output: {result.output_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
