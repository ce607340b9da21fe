"""
Grid-to-audio synthesis pipeline.

    grid (cols x n_mels)
      -> interpolate_vectors        resize to cols * stretch frames
      -> exp(x) - 1                 input expansion
      -> mel_to_linear              frame_size // 2 + 1 linear bins
      -> add_harmonic_stacks        overtone comb + texture noise
      -> exp(gain * x) - 1          magnitude expansion
      -> griffin_lim                waveform
      -> normalize_rms              optional, divides by 10 x RMS

Each stage returns a new array, all of which are kept on the result.
"""

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

import numpy as np

from ..dsp_core.errors import InvalidLengthError
from ..dsp_core.fft import is_power_of_two
from ..dsp_core.linalg import as_matrix
from ..dsp_core.mel import mel_to_linear
from ..utils.audio import normalize_rms
from ..utils.config import load_config
from ..utils.seed import make_rng
from .griffin_lim import griffin_lim
from .resample import add_harmonic_stacks, interpolate_vectors

logger = logging.getLogger(__name__)


@dataclass
class SynthesisConfig:
    """Parameters of one synthesis run."""
    grid_width: int = 100
    n_mels: int = 80
    stretch: int = 5
    target_width: Optional[int] = None
    frame_size: int = 512
    hop_size: int = 64
    fmax: float = 6000.0
    sample_rate: int = 16000
    iterations: int = 5
    harmonic_step: float = 8.0
    harmonic_decay: float = 200.0
    input_expansion: bool = True
    magnitude_gain: Optional[float] = 5.0
    normalize: bool = True
    seed: Optional[int] = None

    def output_width(self, n_columns: int) -> int:
        """Frames after resizing: target_width if set, else n_columns * stretch."""
        if self.target_width is not None:
            return self.target_width
        return n_columns * self.stretch

    @property
    def n_bins(self) -> int:
        return self.frame_size // 2 + 1

    def validate(self) -> 'SynthesisConfig':
        if not is_power_of_two(self.frame_size):
            raise InvalidLengthError(f"frame_size must be a power of two, got {self.frame_size}")
        if self.hop_size <= 0 or self.hop_size > self.frame_size:
            raise ValueError(f"hop_size must be in [1, frame_size], got {self.hop_size}")
        if self.grid_width <= 0 or self.n_mels <= 0 or self.stretch <= 0:
            raise ValueError("grid_width, n_mels and stretch must be positive")
        if self.target_width is not None and self.target_width < 0:
            raise ValueError(f"target_width must be non-negative, got {self.target_width}")
        if self.sample_rate <= 0:
            raise ValueError(f"sample_rate must be positive, got {self.sample_rate}")
        if not 0 < self.fmax <= self.sample_rate / 2:
            raise ValueError(f"fmax must be in (0, sample_rate / 2], got {self.fmax}")
        if self.iterations < 0:
            raise ValueError(f"iterations must be non-negative, got {self.iterations}")
        if self.harmonic_step == 0 or self.harmonic_decay <= 0:
            raise ValueError("harmonic_step must be non-zero and harmonic_decay positive")
        return self

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> 'SynthesisConfig':
        """
        Build a config from a mapping; a nested 'synthesis' section is used
        when present. Unknown keys are rejected.
        """
        section = config.get('synthesis', config) if isinstance(config, dict) else {}
        section = section or {}
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = set(section) - known
        if unknown:
            raise ValueError(f"Unknown synthesis config keys: {sorted(unknown)}")
        return cls(**section).validate()

    @classmethod
    def from_yaml(cls, path) -> 'SynthesisConfig':
        return cls.from_dict(load_config(path))


@dataclass
class SynthesisResult:
    """All intermediate stages of one run."""
    config: SynthesisConfig
    mel_grid: np.ndarray
    linear_spectrogram: np.ndarray
    harmonic_spectrogram: np.ndarray
    waveform: np.ndarray
    stats: Dict[str, float] = field(default_factory=dict)

    @property
    def duration(self) -> float:
        return len(self.waveform) / self.config.sample_rate


def render_grid(
    grid: Union[np.ndarray, list],
    config: Optional[SynthesisConfig] = None,
    rng: Optional[np.random.Generator] = None,
) -> SynthesisResult:
    """
    Turn an intensity grid into audio.

    Args:
        grid: Intensities, shape (n_columns, n_mels); column = time,
            row 0 = lowest mel band
        config: Synthesis parameters (defaults if None)
        rng: Random generator for noise and phase; built from config.seed if None

    Returns:
        SynthesisResult with every stage and the final waveform
    """
    config = (config or SynthesisConfig()).validate()
    if rng is None:
        rng = make_rng(config.seed)

    grid = as_matrix(grid, name='grid')
    width = config.output_width(grid.shape[0])
    logger.info(f"Rendering grid {grid.shape[0]}x{grid.shape[1]} -> {width} frames")

    mel_grid = interpolate_vectors(grid, width)
    if config.input_expansion:
        mel_grid = np.expm1(mel_grid)

    linear = mel_to_linear(mel_grid, config.n_bins, config.fmax, config.sample_rate)
    logger.info(f"Linear spectrogram: {linear.shape[0]} frames x {linear.shape[1]} bins")

    harmonic = add_harmonic_stacks(linear, config.harmonic_step, config.harmonic_decay, rng=rng)
    if config.magnitude_gain is not None:
        harmonic = np.expm1(config.magnitude_gain * harmonic)

    waveform = griffin_lim(
        harmonic,
        frame_size=config.frame_size,
        hop_size=config.hop_size,
        iterations=config.iterations,
        rng=rng,
    )

    rms = float(np.sqrt(np.mean(waveform ** 2))) if waveform.size else 0.0
    if config.normalize:
        waveform = normalize_rms(waveform)

    stats = {
        'frames': float(harmonic.shape[0]),
        'samples': float(len(waveform)),
        'raw_rms': rms,
        'peak': float(np.abs(waveform).max()) if waveform.size else 0.0,
    }
    logger.info(f"Rendered {len(waveform)} samples (raw RMS {rms:.4f})")

    return SynthesisResult(
        config=config,
        mel_grid=mel_grid,
        linear_spectrogram=linear,
        harmonic_spectrogram=harmonic,
        waveform=waveform,
        stats=stats,
    )
