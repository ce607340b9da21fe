"""
spectrosketch - turn a hand-drawn mel-scale intensity grid into audio.

The heavy lifting lives in two subpackages:

    - dsp_core: from-scratch FFT, STFT/ISTFT, mel mapping and linear algebra
    - synthesis: grid resampling, harmonic stacking, Griffin-Lim and the
      end-to-end render
"""

from .dsp_core import (
    SpectroSketchError,
    InvalidLengthError,
    DimensionMismatchError,
    SingularMatrixError,
)
from .synthesis import SynthesisConfig, SynthesisResult, SketchGrid, render_grid

__all__ = [
    'SpectroSketchError',
    'InvalidLengthError',
    'DimensionMismatchError',
    'SingularMatrixError',
    'SynthesisConfig',
    'SynthesisResult',
    'SketchGrid',
    'render_grid',
]

__version__ = '1.0.0'
