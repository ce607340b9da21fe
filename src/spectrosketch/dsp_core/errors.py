"""
Exception types raised by the DSP core.

All of them derive from SpectroSketchError so callers can catch the whole
family at once, and from the matching builtin so existing
``except ValueError`` handlers keep working.
"""


class SpectroSketchError(Exception):
    """Base class for errors raised by spectrosketch."""


class InvalidLengthError(SpectroSketchError, ValueError):
    """Transform length is not a power of two."""


class DimensionMismatchError(SpectroSketchError, ValueError):
    """Matrix or spectrogram shapes are incompatible."""


class SingularMatrixError(SpectroSketchError, ArithmeticError):
    """Gaussian elimination hit a (near-)zero pivot."""
