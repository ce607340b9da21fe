"""
Utility modules.
"""

from .audio import AudioProcessor, normalize_peak, normalize_rms, write_wav
from .logging import setup_logging, get_logger, RunLogger
from .seed import make_rng

__all__ = [
    'AudioProcessor',
    'normalize_peak',
    'normalize_rms',
    'write_wav',
    'setup_logging',
    'get_logger',
    'RunLogger',
    'make_rng',
]
