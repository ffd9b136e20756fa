"""
Error types raised by the analysis and rendering stages.

Everything derives from SpectrovizError so front ends can report any
failure with a single handler.
"""


class SpectrovizError(Exception):
    """Base class for all spectroviz failures."""


class InputError(SpectrovizError):
    """Input audio is missing, unreadable or in an unsupported format."""


class ConfigError(SpectrovizError, ValueError):
    """Analysis or rendering parameters are unusable."""


class InsufficientSamplesError(ConfigError):
    """The signal is shorter than a single analysis frame."""

    def __init__(self, n_samples: int, n_fft: int):
        self.n_samples = n_samples
        self.n_fft = n_fft
        super().__init__(
            f"signal has {n_samples} samples per channel, "
            f"fewer than the frame length {n_fft}"
        )


class OutputError(SpectrovizError):
    """An output destination cannot be opened or written."""


class DegenerateDataError(SpectrovizError, ValueError):
    """Every value in a matrix is equal, so min-max scaling is undefined."""


class ExternalProcessError(SpectrovizError):
    """An external helper process exited unsuccessfully."""

    def __init__(self, message: str, returncode: int | None = None, stderr: str = ""):
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message)
