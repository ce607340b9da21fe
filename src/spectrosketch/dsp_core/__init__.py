"""
DSP Core Module - Hand-written FFT, STFT, mel and linear algebra routines

From-scratch implementations of the transforms the synthesis pipeline is
built on.

Modules:
    - fft: radix-2 Cooley-Tukey FFT (iterative, Numba JIT) and a recursive oracle
    - stft: Hann-windowed STFT and weighted overlap-add ISTFT
    - mel: Hz/mel conversion, mel filterbank, mel <-> linear mapping
    - linalg: transpose, multiply, Gauss-Jordan inverse, pseudo-inverse
    - errors: exception types shared by the package
"""

from .errors import (
    SpectroSketchError,
    InvalidLengthError,
    DimensionMismatchError,
    SingularMatrixError,
)
from .fft import (
    fft,
    fft_inplace,
    ifft,
    inverse_fft,
    fft_recursive,
    fft_frequencies,
    is_power_of_two,
    next_power_of_two,
    pad_to_power_of_two,
)
from .stft import stft, istft, hann_window, magnitude, spectrogram, amplitude_to_db
from .mel import (
    hz_to_mel,
    mel_to_hz,
    mel_frequencies,
    mel_to_linear,
    mel_filterbank,
    linear_to_mel,
    mel_to_linear_filterbank,
)
from .linalg import transpose, multiply, apply, invert, pseudo_inverse

__all__ = [
    # Errors
    'SpectroSketchError',
    'InvalidLengthError',
    'DimensionMismatchError',
    'SingularMatrixError',
    # FFT functions
    'fft',
    'fft_inplace',
    'ifft',
    'inverse_fft',
    'fft_recursive',
    'fft_frequencies',
    'is_power_of_two',
    'next_power_of_two',
    'pad_to_power_of_two',
    # STFT functions
    'stft',
    'istft',
    'hann_window',
    'magnitude',
    'spectrogram',
    'amplitude_to_db',
    # Mel functions
    'hz_to_mel',
    'mel_to_hz',
    'mel_frequencies',
    'mel_to_linear',
    'mel_filterbank',
    'linear_to_mel',
    'mel_to_linear_filterbank',
    # Linear algebra
    'transpose',
    'multiply',
    'apply',
    'invert',
    'pseudo_inverse',
]
