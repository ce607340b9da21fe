"""
Radix-2 FFT Implementation using Numba JIT

This module implements the Cooley-Tukey FFT algorithm with Numba JIT acceleration.
Optimizations:
1. Numba JIT compilation (nopython mode)
2. Iterative (non-recursive) implementation - no recursion depth concerns
3. In-place bit-reversal permutation on separate real/imag buffers
4. Cache compiled functions

Only power-of-two lengths are supported. Callers that need another length
must zero-pad explicitly (see ``pad_to_power_of_two``).

A recursive divide-and-conquer version (``fft_recursive``) is kept as a
reference oracle for tests; it is not used on the synthesis path.
"""

import math
from typing import Union

import numpy as np
from numba import jit

from .errors import InvalidLengthError, DimensionMismatchError


def is_power_of_two(n: int) -> bool:
    """Return True if n is a positive power of two."""
    return n > 0 and (n & (n - 1)) == 0


def next_power_of_two(n: int) -> int:
    """Smallest power of two that is >= n (1 for n <= 1)."""
    if n <= 1:
        return 1
    return 1 << (int(n) - 1).bit_length()


def pad_to_power_of_two(x: np.ndarray) -> np.ndarray:
    """Zero-pad a 1-D signal at the end up to the next power of two."""
    x = np.asarray(x)
    n = next_power_of_two(len(x))
    if n == len(x):
        return x.copy()
    return np.pad(x, (0, n - len(x)), mode='constant')


def _check_length(n: int) -> None:
    if not is_power_of_two(n):
        raise InvalidLengthError(f"Transform length must be a power of two, got {n}")


@jit(nopython=True, cache=True)
def _bit_reverse(x: int, n_bits: int) -> int:
    """Reverse the bits of x with n_bits."""
    result = 0
    for _ in range(n_bits):
        result = (result << 1) | (x & 1)
        x >>= 1
    return result


@jit(nopython=True, cache=True)
def _fft_radix2_inplace(real: np.ndarray, imag: np.ndarray) -> None:
    """
    Iterative Cooley-Tukey radix-2 DIT FFT (Numba JIT), in place.

    real and imag must have the same power-of-two length.
    """
    N = real.shape[0]
    n_bits = 0
    while (1 << n_bits) < N:
        n_bits += 1

    # Bit-reversal permutation (swap each pair once)
    for i in range(N):
        j = _bit_reverse(i, n_bits)
        if j > i:
            tmp = real[i]
            real[i] = real[j]
            real[j] = tmp
            tmp = imag[i]
            imag[i] = imag[j]
            imag[j] = tmp

    # Butterfly stages: size 2, 4, 8, ..., N
    stage_size = 2
    while stage_size <= N:
        half_size = stage_size // 2
        angle = -2.0 * math.pi / stage_size

        for k in range(0, N, stage_size):
            for j in range(half_size):
                w_re = math.cos(angle * j)
                w_im = math.sin(angle * j)

                even_idx = k + j
                odd_idx = k + j + half_size

                t_re = real[odd_idx] * w_re - imag[odd_idx] * w_im
                t_im = real[odd_idx] * w_im + imag[odd_idx] * w_re

                real[odd_idx] = real[even_idx] - t_re
                imag[odd_idx] = imag[even_idx] - t_im
                real[even_idx] = real[even_idx] + t_re
                imag[even_idx] = imag[even_idx] + t_im

        stage_size *= 2


@jit(nopython=True, cache=True)
def _fft_rows_inplace(real: np.ndarray, imag: np.ndarray) -> None:
    """Forward FFT of every row of two (n_rows, N) buffers, in place."""
    for i in range(real.shape[0]):
        _fft_radix2_inplace(real[i], imag[i])


@jit(nopython=True, cache=True)
def _ifft_rows_inplace(real: np.ndarray, imag: np.ndarray) -> None:
    """Inverse FFT of every row via the conjugate trick, in place."""
    n_rows, N = real.shape
    for i in range(n_rows):
        for k in range(N):
            imag[i, k] = -imag[i, k]
        _fft_radix2_inplace(real[i], imag[i])
        for k in range(N):
            real[i, k] = real[i, k] / N
            imag[i, k] = -imag[i, k] / N


def fft_inplace(real: np.ndarray, imag: np.ndarray) -> None:
    """
    Transform a complex signal stored as two float64 buffers, in place.

    Parameters
    ----------
    real : np.ndarray
        Real parts, 1-D float64, length N (power of two). Overwritten.
    imag : np.ndarray
        Imaginary parts, same shape and dtype. Overwritten.

    Raises
    ------
    InvalidLengthError
        If N is not a power of two.
    DimensionMismatchError
        If the buffers differ in shape.
    TypeError
        If a buffer is not a writable 1-D float64 ndarray.
    """
    for name, buf in (('real', real), ('imag', imag)):
        if not isinstance(buf, np.ndarray) or buf.dtype != np.float64 or buf.ndim != 1:
            raise TypeError(f"{name} must be a 1-D float64 numpy array")
    if real.shape != imag.shape:
        raise DimensionMismatchError(
            f"real and imag lengths differ: {real.shape[0]} != {imag.shape[0]}"
        )
    _check_length(real.shape[0])
    _fft_radix2_inplace(real, imag)


def fft(x: Union[np.ndarray, list]) -> np.ndarray:
    """
    Compute the 1-D discrete Fourier Transform using Cooley-Tukey FFT.

    Parameters
    ----------
    x : np.ndarray
        Real or complex input of power-of-two length

    Returns
    -------
    np.ndarray
        complex128 spectrum of the same length

    Examples
    --------
    >>> import numpy as np
    >>> x = np.array([1.0, 2.0, 1.0, -1.0, 1.5, 1.0, 0.5, -0.5])
    >>> X = fft(x)
    >>> # Should match numpy.fft.fft(x)
    """
    x = np.asarray(x)
    if x.ndim != 1:
        raise ValueError(f"Input must be 1D, got shape {x.shape}")
    _check_length(x.shape[0])

    real = np.array(x.real, dtype=np.float64)
    imag = np.array(x.imag, dtype=np.float64) if np.iscomplexobj(x) else np.zeros(x.shape[0])
    _fft_radix2_inplace(real, imag)
    return real + 1j * imag


def ifft(X: Union[np.ndarray, list]) -> np.ndarray:
    """
    Compute the 1-D inverse discrete Fourier Transform.

    IFFT(X) = conj(FFT(conj(X))) / N
    """
    X = np.asarray(X, dtype=np.complex128)
    if X.ndim != 1:
        raise ValueError(f"Input must be 1D, got shape {X.shape}")
    N = X.shape[0]
    _check_length(N)
    return np.conj(fft(np.conj(X))) / N


def inverse_fft(X: Union[np.ndarray, list]) -> np.ndarray:
    """Recover a real signal from its (Hermitian) spectrum."""
    return np.real(ifft(X))


def fft_recursive(x: Union[np.ndarray, list]) -> np.ndarray:
    """
    Recursive radix-2 FFT (split even/odd, combine with twiddle factors).

    Same contract as ``fft``. Recursion depth is log2(N), so this is only
    meant as a reference for checking the iterative kernel.
    """
    x = np.asarray(x, dtype=np.complex128)
    N = x.shape[0]
    _check_length(N)

    if N == 1:
        return x.copy()

    even = fft_recursive(x[0::2])
    odd = fft_recursive(x[1::2])

    twiddle = np.exp(-2j * np.pi * np.arange(N // 2) / N) * odd
    return np.concatenate([even + twiddle, even - twiddle])


def fft_frequencies(n_fft: int, sample_rate: float) -> np.ndarray:
    """Frequencies in Hz of bins 0..n_fft/2: bin k -> k * sample_rate / n_fft."""
    _check_length(n_fft)
    return np.arange(n_fft // 2 + 1) * sample_rate / n_fft
