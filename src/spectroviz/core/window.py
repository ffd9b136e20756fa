"""Analysis window tables."""

import numpy as np

from spectroviz.errors import ConfigError


def hann_window(n: int) -> np.ndarray:
    """
    Symmetric Hann window of length ``n``.

    ``w[i] = 0.5 * (1 - cos(2*pi*i / (n - 1)))``, so both end points are zero.

    Args:
        n: Frame length, at least 2.

    Returns:
        (n,) float64 array of attenuation coefficients.
    """
    if n < 2:
        raise ConfigError(f"window length must be at least 2, got {n}")
    i = np.arange(n, dtype=np.float64)
    return 0.5 * (1.0 - np.cos(2.0 * np.pi * i / (n - 1)))
