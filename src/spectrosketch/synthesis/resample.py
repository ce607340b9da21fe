"""
Grid resampling and harmonic shaping.

Both functions operate on a sequence of equal-length vectors (one per time
column) and return a new array; the input is never modified.
"""

import logging
from typing import Optional, Sequence, Union

import numpy as np

from ..dsp_core.linalg import as_matrix

logger = logging.getLogger(__name__)

Vectors = Union[np.ndarray, Sequence[Sequence[float]]]

# Upper bound (exclusive) of the uniform texture noise
NOISE_LEVEL = 0.4


def interpolate_vectors(vectors: Vectors, target_length: int) -> np.ndarray:
    """
    Resample a sequence of vectors to target_length entries.

    Position i of the output reads the source at i * (len - 1) / (target_length - 1)
    and interpolates linearly between the two neighbouring vectors. The last
    output position is clamped to the final source vector.

    Parameters
    ----------
    vectors : array-like
        Shape (n_vectors, dim)
    target_length : int
        Number of output vectors

    Returns
    -------
    np.ndarray
        Shape (target_length, dim). Empty input (or target_length 0) gives
        an empty result; a single input vector is repeated; target_length 1
        gives the first vector.
    """
    vectors = as_matrix(vectors, name='vectors')
    n, dim = vectors.shape

    if n == 0 or target_length <= 0:
        return np.zeros((0, dim))
    if n == 1:
        return np.repeat(vectors, target_length, axis=0)
    if target_length == 1:
        return vectors[:1].copy()

    step = (n - 1) / (target_length - 1)
    positions = np.arange(target_length) * step
    index = np.floor(positions).astype(int)
    fraction = positions - index

    # The final position and anything past the last source vector are
    # clamped to it; i * step can land a hair below n - 1
    at_end = index >= n - 1
    at_end[-1] = True
    index = np.minimum(index, n - 2)
    fraction[at_end] = 0.0
    current = vectors[index]
    nxt = vectors[index + 1]

    result = current + fraction[:, np.newaxis] * (nxt - current)
    result[at_end] = vectors[-1]

    logger.debug(f"interpolate_vectors: {n} -> {target_length} vectors of dim {dim}")
    return result


def harmonic_weights(n_bins: int, step: float, decay: float) -> tuple:
    """
    Deterministic part of the harmonic stack for bins 0..n_bins-1.

    Returns
    -------
    harmonic : np.ndarray
        2 * sin(i / step * pi) ** 4, peaking every `step` bins
    w0 : np.ndarray
        exp(-i / decay), the share given to the harmonic part
    """
    i = np.arange(n_bins)
    harmonic = 2.0 * np.sin(i / step * np.pi) ** 4
    w0 = np.exp(-i / decay)
    return harmonic, w0


def add_harmonic_stacks(
    vectors: Vectors,
    step: float,
    decay: float,
    rng: Optional[np.random.Generator] = None,
) -> np.ndarray:
    """
    Impose an overtone comb plus texture noise on every vector.

    Each value at bin i is multiplied by

        w0 * 2 * sin(i / step * pi) ** 4 + (1 - w0) * U[0, 0.4),  w0 = exp(-i / decay)

    so low bins are dominated by the pitched comb and high bins by noise.
    Every value gets its own noise draw.

    Parameters
    ----------
    vectors : array-like
        Shape (n_vectors, n_bins), typically a linear magnitude spectrogram
    step : float
        Spacing of the comb in bins
    decay : float
        Bin scale of the harmonic-to-noise crossfade
    rng : np.random.Generator, optional
        Source of the noise; pass a seeded generator for reproducible output

    Returns
    -------
    np.ndarray
        Shaped vectors, same shape as input
    """
    if step == 0:
        raise ValueError("step must be non-zero")
    if decay <= 0:
        raise ValueError(f"decay must be positive, got {decay}")

    vectors = as_matrix(vectors, name='vectors')
    if vectors.size == 0:
        return vectors.copy()
    if rng is None:
        rng = np.random.default_rng()

    harmonic, w0 = harmonic_weights(vectors.shape[1], step, decay)
    noise = rng.random(vectors.shape) * NOISE_LEVEL

    weights = w0 * harmonic + (1.0 - w0) * noise
    return weights * vectors
