"""
Mel scale helpers - Hz/mel conversion and mel <-> linear spectrogram mapping.

Two ways of getting from a mel spectrogram back to linear frequency are
provided:

    - mel_to_linear: direct interpolation along the frequency axis. This is
      the path the synthesis pipeline uses.
    - mel_to_linear_filterbank: least-squares inversion of a triangular
      filterbank through its pseudo-inverse.

All conversions use the HTK formula (2595 * log10(1 + f / 700)).
"""

import logging
from typing import Union

import numpy as np

from .errors import DimensionMismatchError
from .linalg import as_matrix, pseudo_inverse

logger = logging.getLogger(__name__)

Number = Union[float, np.ndarray]


def hz_to_mel(hz: Number) -> Number:
    """
    Convert Hz to mel scale.

    Args:
        hz: Frequency in Hz (scalar or array)

    Returns:
        Frequency in mel, same shape as input
    """
    return 2595.0 * np.log10(1.0 + np.asarray(hz, dtype=np.float64) / 700.0)


def mel_to_hz(mel: Number) -> Number:
    """
    Convert mel scale to Hz.

    Args:
        mel: Frequency in mel (scalar or array)

    Returns:
        Frequency in Hz, same shape as input
    """
    return 700.0 * (10.0 ** (np.asarray(mel, dtype=np.float64) / 2595.0) - 1.0)


def mel_frequencies(n_points: int, min_freq: float = 0.0, max_freq: float = 8000.0) -> np.ndarray:
    """
    Compute n_points frequencies in Hz equally spaced on the mel scale.

    Args:
        n_points: Number of points (including both ends)
        min_freq: Lowest frequency in Hz
        max_freq: Highest frequency in Hz

    Returns:
        Array of n_points frequencies in Hz
    """
    mel_points = np.linspace(hz_to_mel(min_freq), hz_to_mel(max_freq), n_points)
    return mel_to_hz(mel_points)


def mel_to_linear(
    mel_spectrogram: Union[np.ndarray, list],
    target_height: int,
    fmax: float,
    sample_rate: float,
) -> np.ndarray:
    """
    Warp a mel spectrogram onto a linear frequency axis by interpolation.

    Output bin b (0 <= b < target_height) sits at
    b / (target_height - 1) * sample_rate / 2 Hz. That frequency is converted
    to mel and mapped to the fractional mel-bin position
    mel / hz_to_mel(fmax) * n_mels; the value is linearly interpolated
    between the floor and ceil bins of that position (ceil clamped to the
    last band). Bins whose floor falls outside [0, n_mels) are zero, which
    silences everything above fmax.

    Args:
        mel_spectrogram: Frames of mel magnitudes, shape (n_frames, n_mels)
        target_height: Number of linear bins per output frame (>= 2)
        fmax: Frequency in Hz of the top of the mel axis
        sample_rate: Sample rate in Hz (the linear axis ends at Nyquist)

    Returns:
        Linear spectrogram, shape (n_frames, target_height)
    """
    if target_height < 2:
        raise ValueError(f"target_height must be at least 2, got {target_height}")
    if fmax <= 0:
        raise ValueError(f"fmax must be positive, got {fmax}")

    mel_spec = as_matrix(mel_spectrogram, name='mel_spectrogram')
    n_frames, n_mels = mel_spec.shape
    linear = np.zeros((n_frames, target_height))
    if n_frames == 0 or n_mels == 0:
        return linear

    normalized_freq = np.arange(target_height) / (target_height - 1)
    positions = hz_to_mel(normalized_freq * sample_rate / 2) / hz_to_mel(fmax) * n_mels

    lower = np.floor(positions).astype(int)
    upper = np.minimum(np.ceil(positions).astype(int), n_mels - 1)
    fraction = positions - lower

    valid = (lower >= 0) & (lower < n_mels)
    lo = lower[valid]
    hi = upper[valid]
    frac = fraction[valid]

    linear[:, valid] = (1.0 - frac) * mel_spec[:, lo] + frac * mel_spec[:, hi]

    logger.debug(
        f"mel_to_linear: {n_mels} mel bands -> {target_height} bins, "
        f"{int(valid.sum())} bins below fmax={fmax}"
    )
    return linear


def mel_filterbank(
    fft_size: int,
    sample_rate: float,
    n_mels: int,
    min_freq: float = 0.0,
    max_freq: float = None,
) -> np.ndarray:
    """
    Create a triangular mel filterbank.

    n_mels + 2 boundary frequencies are spaced equally on the mel scale
    between min_freq and max_freq. Band i rises linearly from 0 at
    boundary i to 1 at boundary i + 1 and falls back to 0 at boundary i + 2.
    Weights are evaluated at the FFT bin frequencies k * sample_rate / fft_size.

    Args:
        fft_size: FFT size
        sample_rate: Sampling rate in Hz
        n_mels: Number of mel bands
        min_freq: Lowest boundary frequency in Hz
        max_freq: Highest boundary frequency in Hz (default: sample_rate / 2)

    Returns:
        Filterbank matrix, shape (n_mels, fft_size // 2 + 1)
    """
    if max_freq is None:
        max_freq = sample_rate / 2.0
    if n_mels <= 0:
        raise ValueError(f"n_mels must be positive, got {n_mels}")

    n_freqs = fft_size // 2 + 1
    fft_freqs = np.arange(n_freqs) * sample_rate / fft_size
    hz_points = mel_frequencies(n_mels + 2, min_freq, max_freq)

    filterbank = np.zeros((n_mels, n_freqs))
    for i in range(n_mels):
        # Three frequencies define the triangle
        left_hz = hz_points[i]
        center_hz = hz_points[i + 1]
        right_hz = hz_points[i + 2]

        rising = (fft_freqs >= left_hz) & (fft_freqs <= center_hz)
        falling = (fft_freqs > center_hz) & (fft_freqs <= right_hz)

        if center_hz > left_hz:
            filterbank[i, rising] = (fft_freqs[rising] - left_hz) / (center_hz - left_hz)
        if right_hz > center_hz:
            filterbank[i, falling] = (right_hz - fft_freqs[falling]) / (right_hz - center_hz)

    return filterbank


def linear_to_mel(linear_spectrogram: Union[np.ndarray, list], filterbank: np.ndarray) -> np.ndarray:
    """
    Project linear frames onto mel bands: mel[t] = filterbank @ linear[t].

    Returns:
        Mel spectrogram, shape (n_frames, n_mels)
    """
    linear = as_matrix(linear_spectrogram, name='linear_spectrogram')
    filterbank = as_matrix(filterbank, name='filterbank')
    if linear.shape[1] != filterbank.shape[1]:
        raise DimensionMismatchError(
            f"Linear frames have {linear.shape[1]} bins but the filterbank expects {filterbank.shape[1]}"
        )
    return linear @ filterbank.T


def mel_to_linear_filterbank(
    mel_spectrogram: Union[np.ndarray, list],
    filterbank: np.ndarray,
) -> np.ndarray:
    """
    Invert a filterbank projection with the filterbank's pseudo-inverse.

    Negative values from the least-squares solution are clipped to zero so
    the result is a valid magnitude spectrogram.

    Returns:
        Linear spectrogram, shape (n_frames, fft_size // 2 + 1)
    """
    mel_spec = as_matrix(mel_spectrogram, name='mel_spectrogram')
    filterbank = as_matrix(filterbank, name='filterbank')
    if mel_spec.shape[1] != filterbank.shape[0]:
        raise DimensionMismatchError(
            f"Mel frames have {mel_spec.shape[1]} bands but the filterbank has {filterbank.shape[0]}"
        )

    fb_pinv = pseudo_inverse(filterbank)  # (n_freqs, n_mels)
    return np.maximum(mel_spec @ fb_pinv.T, 0.0)

