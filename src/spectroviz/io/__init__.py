"""Video output collaborators."""

from spectroviz.io.encoder import VideoWriter, mux_audio

__all__ = ["VideoWriter", "mux_audio"]
