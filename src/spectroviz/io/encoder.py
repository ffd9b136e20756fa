"""
FFmpeg video writer and audio muxer.

Raw RGB frames are piped to ffmpeg via stdin to produce a video-only
MP4; a second ffmpeg run copies that stream next to the original audio.
"""

import subprocess
from pathlib import Path
from typing import Optional, Union

import numpy as np

from spectroviz.config import QUALITY_PRESETS
from spectroviz.errors import ConfigError, ExternalProcessError, OutputError


def _error_tail(stderr: str) -> str:
    """Keep the informative end of an ffmpeg log."""
    # Filter out common non-error ffmpeg messages
    error_lines = [
        line for line in stderr.split("\n")
        if "error" in line.lower() or "invalid" in line.lower()
    ]
    return "\n".join(error_lines[-5:]) if error_lines else stderr[-500:]


class VideoWriter:
    """
    Streams (H, W, 3) uint8 frames into a video-only MP4.

    Usage:
        with VideoWriter(path, 800, 600, fps=29) as writer:
            writer.write(frame)
    """

    def __init__(
        self,
        output_path: Union[str, Path],
        width: int,
        height: int,
        fps: int,
        quality: str = "fast",
    ):
        if quality not in QUALITY_PRESETS:
            raise ConfigError(f"unknown quality {quality!r}")
        self.output_path = Path(output_path)
        self.width = width
        self.height = height
        self.fps = fps
        self.quality = quality
        self.frame_count = 0
        self._proc: Optional[subprocess.Popen] = None

    def command(self) -> list[str]:
        preset, crf, pix_fmt = QUALITY_PRESETS[self.quality]
        return [
            "ffmpeg", "-y",
            "-loglevel", "error",
            # Raw video input from pipe
            "-f", "rawvideo",
            "-pix_fmt", "rgb24",
            "-s", f"{self.width}x{self.height}",
            "-r", str(self.fps),
            "-i", "pipe:0",
            # Video encoding, no audio
            "-an",
            "-c:v", "libx264",
            "-preset", preset,
            "-crf", crf,
            "-pix_fmt", pix_fmt,
            str(self.output_path),
        ]

    def open(self) -> "VideoWriter":
        try:
            self.output_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise OutputError(f"Could not create {self.output_path.parent}: {exc}") from exc

        try:
            self._proc = subprocess.Popen(
                self.command(),
                stdin=subprocess.PIPE,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
            )
        except OSError as exc:
            raise OutputError(f"Could not start ffmpeg for {self.output_path}: {exc}") from exc
        return self

    def write(self, frame: np.ndarray):
        if frame.shape != (self.height, self.width, 3):
            raise ValueError(
                f"frame shape {frame.shape} does not match {(self.height, self.width, 3)}"
            )
        if self._proc is None:
            raise OutputError("video writer is not open")
        try:
            # Ensure contiguous C-order array
            self._proc.stdin.write(np.ascontiguousarray(frame, dtype=np.uint8).tobytes())
        except BrokenPipeError as exc:
            raise OutputError(f"ffmpeg closed the pipe for {self.output_path}") from exc
        self.frame_count += 1

    def close(self) -> Path:
        if self._proc is None:
            return self.output_path
        proc, self._proc = self._proc, None
        try:
            proc.stdin.close()
        except BrokenPipeError:
            pass
        stderr = proc.stderr.read().decode("utf-8", errors="replace")
        proc.wait()

        if proc.returncode != 0:
            raise OutputError(
                f"ffmpeg exited with code {proc.returncode}: {_error_tail(stderr)}"
            )
        return self.output_path

    def __call__(self, frame: np.ndarray):
        self.write(frame)

    def __enter__(self) -> "VideoWriter":
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        if exc_type is None:
            self.close()
        elif self._proc is not None:
            self._proc.kill()
            self._proc.wait()
            self._proc = None


def mux_audio(
    video_path: Union[str, Path],
    audio_path: Union[str, Path],
    output_path: Union[str, Path],
) -> Path:
    """
    Combine a video-only file with the audio track of another file.

    The video stream is copied, the audio re-encoded to AAC, and the
    result trimmed to the shorter stream.

    Raises:
        ExternalProcessError: if ffmpeg is missing or exits non-zero.
    """
    output_path = Path(output_path)
    cmd = [
        "ffmpeg", "-y",
        "-i", str(video_path),
        "-i", str(audio_path),
        "-map", "0:v",
        "-map", "1:a",
        "-c:v", "copy",
        "-c:a", "aac",
        "-b:a", "192k",
        "-shortest",
        str(output_path),
    ]
    try:
        result = subprocess.run(cmd, capture_output=True)
    except OSError as exc:
        raise ExternalProcessError(f"Could not run ffmpeg: {exc}") from exc

    if result.returncode != 0:
        stderr = result.stderr.decode("utf-8", errors="replace")
        raise ExternalProcessError(
            f"ffmpeg mux failed with code {result.returncode}: {_error_tail(stderr)}",
            returncode=result.returncode,
            stderr=stderr[-500:],
        )
    return output_path
