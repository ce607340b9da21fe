"""
Synthesis Module - from a drawn mel grid to a waveform

Modules:
    - resample: grid resizing and harmonic stacking
    - griffin_lim: iterative phase reconstruction
    - sketch: headless drawing surface for authoring grids
    - pipeline: the end-to-end render with its configuration
"""

from .resample import interpolate_vectors, add_harmonic_stacks
from .griffin_lim import griffin_lim, reconstruction_error
from .sketch import SketchGrid
from .pipeline import SynthesisConfig, SynthesisResult, render_grid

__all__ = [
    'interpolate_vectors',
    'add_harmonic_stacks',
    'griffin_lim',
    'reconstruction_error',
    'SketchGrid',
    'SynthesisConfig',
    'SynthesisResult',
    'render_grid',
]
