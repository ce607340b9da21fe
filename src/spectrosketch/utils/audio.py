"""
Audio post-processing and WAV export.

The synthesis core returns an unnormalized float waveform; everything a
caller does with it before playback or download lives here.
"""

from pathlib import Path
from typing import Union

import numpy as np
from scipy.io import wavfile


class AudioProcessor:
    """
    Amplitude normalization of float waveforms.
    """

    @staticmethod
    def normalize(waveform: np.ndarray, method: str = 'peak') -> np.ndarray:
        """
        Normalize audio waveform.

        Args:
            waveform: Input waveform
            method: Normalization method ('peak' or 'rms')

        Returns:
            Normalized waveform (a new array; silent input is returned as is)
        """
        waveform = np.asarray(waveform, dtype=np.float64)

        if method == 'peak':
            max_val = np.abs(waveform).max() if waveform.size else 0.0
            if max_val > 0:
                return waveform / max_val

        elif method == 'rms':
            rms = np.sqrt(np.mean(waveform ** 2)) if waveform.size else 0.0
            if rms > 0:
                return waveform / rms

        else:
            raise ValueError(f"Unknown normalization method: {method}")

        return waveform.copy()


def normalize_rms(waveform: np.ndarray, factor: float = 10.0) -> np.ndarray:
    """
    Divide by factor * RMS so typical Griffin-Lim output lands in [-1, 1].

    A silent waveform is returned unchanged instead of dividing by zero.
    """
    return AudioProcessor.normalize(waveform, method='rms') / factor


def normalize_peak(waveform: np.ndarray, peak: float = 1.0) -> np.ndarray:
    """Scale so the largest absolute sample equals peak; silence stays silent."""
    return AudioProcessor.normalize(waveform, method='peak') * peak


def flip_vector(v: Union[np.ndarray, list]) -> np.ndarray:
    """Reverse a vector (canvas rows run top-down, mel bands bottom-up)."""
    return np.asarray(v)[::-1].copy()


def to_pcm(waveform: np.ndarray, bits_per_sample: int = 16) -> np.ndarray:
    """
    Quantize a float waveform in [-1, 1] to PCM samples.

    16-bit: signed, x * 0x7FFF. 8-bit: unsigned, x * 0x7F + 0x80.
    Values outside [-1, 1] are clipped first.
    """
    waveform = np.clip(np.asarray(waveform, dtype=np.float64), -1.0, 1.0)
    if bits_per_sample == 16:
        return np.trunc(waveform * 0x7FFF).astype(np.int16)
    if bits_per_sample == 8:
        return np.trunc(waveform * 0x7F + 0x80).astype(np.uint8)
    raise ValueError(f"bits_per_sample must be 8 or 16, got {bits_per_sample}")


def write_wav(
    path: Union[str, Path],
    waveform: np.ndarray,
    sample_rate: int = 16000,
    bits_per_sample: int = 16
) -> Path:
    """
    Write a mono PCM WAV file (little-endian RIFF, 44-byte header).

    Args:
        path: Output file path
        waveform: Float samples, expected in [-1, 1]
        sample_rate: Sample rate in Hz
        bits_per_sample: 16 or 8

    Returns:
        Path of the written file
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    wavfile.write(str(path), int(sample_rate), to_pcm(waveform, bits_per_sample))
    return path
