"""
CLI entry point for the still spectrogram renderer.

Usage:
    spectroviz-spectrogram <audio_file> [options]
    python -m spectroviz.spectrogram_cli <audio_file> [options]
"""

import argparse
import sys
import time
from pathlib import Path

from spectroviz.cli import _progress_bar
from spectroviz.config import AnalysisConfig, SpectrogramConfig
from spectroviz.errors import SpectrovizError
from spectroviz.pipeline import SpectrumPipeline


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="spectroviz-spectrogram",
        description="Render a log-magnitude STFT spectrogram image",
    )
    parser.add_argument("audio", type=Path, help="Input audio file (wav, flac, mp3)")
    parser.add_argument(
        "-o", "--output",
        type=Path,
        default=Path("spectrogram.png"),
        help="Output PNG path (default: spectrogram.png)",
    )
    parser.add_argument("--fft-size", type=int, default=1024, help="Frame length N (default: 1024)")
    parser.add_argument("--hop", type=int, default=None, help="Hop size H (default: N/4)")
    parser.add_argument("--colormap", type=str, default="inferno", help="Matplotlib colormap name")
    parser.add_argument("--max-duration", type=float, default=None, help="Limit analysis to N seconds")
    return parser


def main(argv=None) -> int:
    try:
        args = build_parser().parse_args(argv)
    except SystemExit as exc:
        # argparse exits 2 on usage errors
        return 0 if exc.code in (0, None) else 1

    try:
        pipeline = SpectrumPipeline(
            AnalysisConfig(
                n_fft=args.fft_size,
                hop_length=args.hop,
                max_duration=args.max_duration,
            )
        )

        print(f"Analyzing audio: {args.audio}", flush=True)
        t0 = time.time()
        result = pipeline.render_spectrogram(
            args.audio,
            args.output,
            SpectrogramConfig(colormap=args.colormap),
            progress_callback=_progress_bar,
        )
    except SpectrovizError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(f"  Duration: {result.duration:.2f}s @ {result.sample_rate:.0f} Hz")
    print(f"  Analysis took {time.time() - t0:.1f}s")
    print(f"Saved {result.output_path} ({result.n_frames}x{result.n_bins})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
