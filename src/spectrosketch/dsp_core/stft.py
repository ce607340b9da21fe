import logging
from typing import Tuple, Union

import numpy as np

from .errors import DimensionMismatchError, InvalidLengthError
from .fft import _fft_rows_inplace, _ifft_rows_inplace, is_power_of_two
from .linalg import as_matrix

logger = logging.getLogger(__name__)

# Window-energy threshold below which ISTFT samples are left unnormalized
WINDOW_SUM_EPS = 1e-6


def _check_frame_params(frame_size: int, hop_size: int) -> None:
    if not is_power_of_two(frame_size):
        raise InvalidLengthError(f"frame_size must be a power of two, got {frame_size}")
    if hop_size <= 0:
        raise ValueError(f"hop_size must be positive, got {hop_size}")


def hann_window(frame_size: int) -> np.ndarray:
    """
    Periodic Hann window: w[i] = 0.5 * (1 - cos(2*pi*i / frame_size)).

    Using frame_size (not frame_size - 1) as the denominator matches the
    "DFT-even" window used for analysis/synthesis, so the same window can
    be applied on both sides of the overlap-add.
    """
    n = np.arange(frame_size)
    return 0.5 * (1.0 - np.cos(2.0 * np.pi * n / frame_size))


def num_frames(signal_length: int, frame_size: int, hop_size: int) -> int:
    """Number of STFT frames: floor((len - frame) / hop) + 1, never negative."""
    return max(0, (signal_length - frame_size) // hop_size + 1)


def stft(
    signal: Union[np.ndarray, list],
    frame_size: int = 512,
    hop_size: int = 256,
) -> np.ndarray:
    """
    Short-time Fourier transform.

    Parameters
    ----------
    signal : np.ndarray
        1-D real signal
    frame_size : int
        Samples per frame (power of two)
    hop_size : int
        Step between frame starts

    Returns
    -------
    np.ndarray
        One-sided complex spectrogram, shape (n_frames, frame_size // 2 + 1)

    Examples
    --------
    >>> import numpy as np
    >>> y = np.random.randn(16000)
    >>> D = stft(y, frame_size=512, hop_size=64)
    >>> D.shape  # (243, 257) -> 243 frames, 257 freq bins
    """
    signal = np.asarray(signal, dtype=np.float64)
    if signal.ndim != 1:
        raise ValueError(f"Input must be 1D, got shape {signal.shape}")
    _check_frame_params(frame_size, hop_size)

    n_bins = frame_size // 2 + 1
    n_frames = num_frames(len(signal), frame_size, hop_size)
    if n_frames == 0:
        return np.zeros((0, n_bins), dtype=np.complex128)

    window = hann_window(frame_size)

    # Extract frames; anything past the end of the signal stays zero
    real = np.zeros((n_frames, frame_size))
    for i in range(n_frames):
        start = i * hop_size
        chunk = signal[start:start + frame_size]
        real[i, :len(chunk)] = chunk
    real *= window
    imag = np.zeros_like(real)

    _fft_rows_inplace(real, imag)

    return real[:, :n_bins] + 1j * imag[:, :n_bins]


def _full_spectrum(spectrogram: np.ndarray, frame_size: int) -> np.ndarray:
    """Expand one-sided frames to frame_size bins using Hermitian symmetry."""
    n_bins = spectrogram.shape[1]
    if n_bins == frame_size:
        return spectrogram
    if n_bins != frame_size // 2 + 1:
        raise DimensionMismatchError(
            f"Spectrogram has {n_bins} bins; expected {frame_size // 2 + 1} "
            f"(one-sided) or {frame_size} (full) for frame_size={frame_size}"
        )
    neg_freqs = np.conj(spectrogram[:, -2:0:-1])
    return np.concatenate([spectrogram, neg_freqs], axis=1)


def istft(
    spectrogram: np.ndarray,
    hop_size: int = 256,
    frame_size: int = 512,
) -> np.ndarray:
    """
    Inverse STFT by weighted overlap-add.

    Each frame is inverse transformed, multiplied by the synthesis window
    and summed into the output. The sum of squared windows is accumulated
    per sample and the output is divided by it wherever it exceeds 1e-6.

    Parameters
    ----------
    spectrogram : np.ndarray
        Complex frames, shape (n_frames, frame_size // 2 + 1) or
        (n_frames, frame_size)
    hop_size : int
        Step between frame starts
    frame_size : int
        Samples per frame (power of two)

    Returns
    -------
    np.ndarray
        Signal of length (n_frames - 1) * hop_size + frame_size
    """
    _check_frame_params(frame_size, hop_size)
    spectrogram = as_matrix(spectrogram, dtype=np.complex128, name='spectrogram')

    n_frames = spectrogram.shape[0]
    if n_frames == 0:
        return np.zeros(0)

    full = _full_spectrum(spectrogram, frame_size)
    real = np.ascontiguousarray(full.real)
    imag = np.ascontiguousarray(full.imag)
    _ifft_rows_inplace(real, imag)

    window = hann_window(frame_size)
    window_sq = window ** 2

    # Calculate output length
    expected_length = (n_frames - 1) * hop_size + frame_size
    y = np.zeros(expected_length)
    window_sum = np.zeros(expected_length)

    for i in range(n_frames):
        start = i * hop_size
        end = start + frame_size
        y[start:end] += real[i] * window
        window_sum[start:end] += window_sq

    # Normalize by window overlap where it is not vanishingly small
    nonzero = window_sum > WINDOW_SUM_EPS
    y[nonzero] /= window_sum[nonzero]

    return y


def magnitude(spectrogram: np.ndarray) -> np.ndarray:
    """Per-bin magnitude |X| of a complex spectrogram."""
    return np.abs(np.asarray(spectrogram))


def spectrogram(
    signal: Union[np.ndarray, list],
    frame_size: int = 512,
    hop_size: int = 256,
    sample_rate: float = 16000,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Magnitude spectrogram of a signal for analysis and display.

    Returns
    -------
    magnitudes : np.ndarray
        Shape (n_frames, frame_size // 2 + 1)
    times : np.ndarray
        Start time in seconds of each frame
    freqs : np.ndarray
        Centre frequency in Hz of each bin
    """
    mags = magnitude(stft(signal, frame_size=frame_size, hop_size=hop_size))
    times = np.arange(mags.shape[0]) * hop_size / sample_rate
    freqs = np.arange(frame_size // 2 + 1) * sample_rate / frame_size
    logger.debug(f"spectrogram: {mags.shape[0]} frames x {mags.shape[1]} bins")
    return mags, times, freqs


def power_to_db(S: np.ndarray, ref: float = 1.0, amin: float = 1e-10, top_db: float = 80.0) -> np.ndarray:
    S = np.maximum(amin, S)
    # Convert to dB
    S_db = 10.0 * np.log10(S / ref)

    # Clip to top_db range
    if S_db.size:
        S_db = np.maximum(S_db, S_db.max() - top_db)
    return S_db


def amplitude_to_db(S: np.ndarray, ref: float = 1.0, amin: float = 1e-5, top_db: float = 80.0) -> np.ndarray:
    # dB = 20 * log10(|S| / ref)
    magnitude_ = np.abs(S)
    return power_to_db(magnitude_ ** 2, ref=ref ** 2, amin=amin ** 2, top_db=top_db)
