"""
Griffin-Lim phase reconstruction.

Estimates a waveform whose STFT magnitude approximates a target magnitude
spectrogram by alternating between the signal domain and the STFT domain:

    X_0     = |S| * exp(j * phi_0),  phi_0 ~ U[-pi, pi]
    x_k     = ISTFT(X_k)
    X_{k+1} = |S| * exp(j * angle(STFT(x_k)))

The iteration count is the only stopping criterion.

Usage:
    >>> from spectrosketch.synthesis.griffin_lim import griffin_lim
    >>> y = griffin_lim(magnitudes, frame_size=512, hop_size=64, iterations=32)
"""

import logging
from typing import Callable, Optional, Union

import numpy as np

from ..dsp_core.errors import DimensionMismatchError
from ..dsp_core.linalg import as_matrix
from ..dsp_core.stft import istft, stft

logger = logging.getLogger(__name__)


def griffin_lim(
    target: Union[np.ndarray, list],
    frame_size: int = 512,
    hop_size: int = 64,
    iterations: int = 32,
    rng: Optional[np.random.Generator] = None,
    callback: Optional[Callable[[int, np.ndarray], None]] = None,
) -> np.ndarray:
    """
    Reconstruct a waveform from a magnitude spectrogram.

    Parameters
    ----------
    target : array-like
        Non-negative magnitudes, shape (n_frames, n_bins) with
        n_bins == frame_size // 2 + 1 (one-sided) or frame_size (full)
    frame_size : int
        STFT frame size (power of two)
    hop_size : int
        STFT hop size
    iterations : int
        Number of ISTFT/STFT rounds before the final ISTFT
    rng : np.random.Generator, optional
        Source of the initial phases
    callback : callable, optional
        Called as callback(iteration, complex_spectrogram) after each round

    Returns
    -------
    np.ndarray
        Waveform of length (n_frames - 1) * hop_size + frame_size
    """
    if iterations < 0:
        raise ValueError(f"iterations must be non-negative, got {iterations}")

    target = as_matrix(target, name='target')
    n_frames, n_bins = target.shape
    if n_frames == 0:
        return np.zeros(0)
    if n_bins not in (frame_size, frame_size // 2 + 1):
        raise DimensionMismatchError(
            f"Target has {n_bins} bins; expected {frame_size // 2 + 1} or {frame_size} "
            f"for frame_size={frame_size}"
        )
    if rng is None:
        rng = np.random.default_rng()

    full_spectrum = n_bins == frame_size

    angles = rng.uniform(-np.pi, np.pi, size=target.shape)
    spectrum = target * np.exp(1j * angles)

    for i in range(iterations):
        waveform = istft(spectrum, hop_size=hop_size, frame_size=frame_size)
        rebuilt = stft(waveform, frame_size=frame_size, hop_size=hop_size)
        if full_spectrum:
            rebuilt = _mirror(rebuilt, frame_size)

        # Keep the new phase, enforce the target magnitude
        phase = np.arctan2(rebuilt.imag, rebuilt.real)
        spectrum = target * np.exp(1j * phase)

        if logger.isEnabledFor(logging.DEBUG):
            error = np.mean(np.abs(np.abs(rebuilt) - target))
            logger.debug(f"griffin_lim iteration {i + 1}/{iterations}: magnitude error {error:.6f}")
        if callback is not None:
            callback(i, spectrum)

    return istft(spectrum, hop_size=hop_size, frame_size=frame_size)


def _mirror(one_sided: np.ndarray, frame_size: int) -> np.ndarray:
    """Full frame_size-bin spectrum from a one-sided STFT."""
    return np.concatenate([one_sided, np.conj(one_sided[:, -2:0:-1])], axis=1)


def reconstruction_error(
    signal: np.ndarray,
    target: Union[np.ndarray, list],
    frame_size: int = 512,
    hop_size: int = 64,
) -> float:
    """
    Mean absolute difference between |STFT(signal)| and the target magnitudes.

    Only the first frame_size // 2 + 1 bins of the target are compared.
    """
    target = as_matrix(target, name='target')
    mags = np.abs(stft(signal, frame_size=frame_size, hop_size=hop_size))
    n_frames = min(mags.shape[0], target.shape[0])
    n_bins = frame_size // 2 + 1
    if n_frames == 0:
        return 0.0
    return float(np.mean(np.abs(mags[:n_frames] - target[:n_frames, :n_bins])))
