"""
Tests for the synthesis package: grid resampling, harmonic stacking,
Griffin-Lim, the sketch surface and the end-to-end render.

Run:
    pytest tests/test_synthesis.py -v
"""

import numpy as np
import pytest

from spectrosketch.dsp_core import (
    DimensionMismatchError, InvalidLengthError, hz_to_mel, mel_to_hz, spectrogram, stft,
)
from spectrosketch.synthesis import (
    SketchGrid,
    SynthesisConfig,
    add_harmonic_stacks,
    griffin_lim,
    interpolate_vectors,
    reconstruction_error,
    render_grid,
)


class TestInterpolateVectors:
    """Test suite for sequence-axis resampling."""

    def test_identity_at_matching_length(self):
        v = np.random.default_rng(0).random((7, 5))
        assert np.array_equal(interpolate_vectors(v, 7), v)

    def test_single_vector_repeated(self):
        out = interpolate_vectors([[1.0, 2.0, 3.0]], 4)
        assert out.tolist() == [[1.0, 2.0, 3.0]] * 4

    def test_empty(self):
        assert len(interpolate_vectors([], 5)) == 0
        assert interpolate_vectors(np.zeros((0, 3)), 5).shape == (0, 3)

    def test_upsample_is_linear(self):
        out = interpolate_vectors([[0.0], [10.0]], 11)
        assert np.allclose(out[:, 0], np.arange(11))

    def test_downsample_keeps_endpoints(self):
        v = np.random.default_rng(1).random((100, 8))
        out = interpolate_vectors(v, 50)
        assert out.shape == (50, 8)
        assert np.array_equal(out[0], v[0])
        assert np.array_equal(out[-1], v[-1])

    @pytest.mark.parametrize("n,target", [(100, 50), (100, 37), (7, 3), (3, 100)])
    def test_last_output_is_exactly_last_vector(self, n, target):
        """Floating-point step rounding must not leave the final output interpolated."""
        v = np.random.default_rng(n + target).random((n, 8))
        out = interpolate_vectors(v, target)
        assert np.array_equal(out[-1], v[-1])

    def test_target_length_one(self):
        v = [[1.0], [2.0], [3.0]]
        assert interpolate_vectors(v, 1).tolist() == [[1.0]]

    def test_input_not_modified(self):
        v = np.random.default_rng(2).random((5, 3))
        before = v.copy()
        out = interpolate_vectors(v, 5)
        out[0, 0] = -1.0
        assert np.array_equal(v, before)

    def test_ragged_input(self):
        with pytest.raises(DimensionMismatchError):
            interpolate_vectors([[1.0, 2.0], [3.0]], 4)


class TestHarmonicStacks:
    """Test suite for harmonic stacking."""

    def test_seeded_output_is_reproducible(self):
        v = np.ones((4, 64))
        a = add_harmonic_stacks(v, 8, 200, rng=np.random.default_rng(7))
        b = add_harmonic_stacks(v, 8, 200, rng=np.random.default_rng(7))
        assert np.array_equal(a, b)

    def test_zero_input_stays_zero(self):
        out = add_harmonic_stacks(np.zeros((3, 32)), 8, 200, rng=np.random.default_rng(0))
        assert np.all(out == 0)

    def test_harmonic_dominant_with_slow_decay(self):
        """With decay -> infinity the weight is the pure comb 2 * sin(i / step * pi) ** 4."""
        step = 8
        out = add_harmonic_stacks(np.ones((1, 33)), step, 1e12, rng=np.random.default_rng(0))
        i = np.arange(33)
        assert np.allclose(out[0], 2 * np.sin(i / step * np.pi) ** 4, atol=1e-6)
        assert out[0, 4] == pytest.approx(2.0, abs=1e-6)
        assert out[0, 8] == pytest.approx(0.0, abs=1e-6)

    def test_noise_dominant_with_fast_decay(self):
        out = add_harmonic_stacks(np.ones((20, 64)), 8, 1e-3, rng=np.random.default_rng(0))
        noise = out[:, 1:]
        assert np.all(noise >= 0.0) and np.all(noise < 0.4)
        assert noise.std() > 0.05

    def test_scales_input(self):
        rng_a, rng_b = np.random.default_rng(3), np.random.default_rng(3)
        v = np.random.default_rng(4).random((5, 40))
        base = add_harmonic_stacks(np.ones((5, 40)), 8, 200, rng=rng_a)
        shaped = add_harmonic_stacks(v, 8, 200, rng=rng_b)
        assert np.allclose(shaped, base * v)

    def test_empty(self):
        assert add_harmonic_stacks(np.zeros((0, 0)), 8, 200).shape == (0, 0)


class TestGriffinLim:
    """Test suite for Griffin-Lim phase reconstruction."""

    @staticmethod
    def _tone_target(frame_size=256, hop_size=64, n=4096, sr=16000):
        t = np.arange(n) / sr
        y = np.sin(2 * np.pi * 440 * t) + 0.5 * np.sin(2 * np.pi * 1250 * t)
        return np.abs(stft(y, frame_size=frame_size, hop_size=hop_size))

    def test_output_length(self):
        target = self._tone_target()
        y = griffin_lim(target, frame_size=256, hop_size=64, iterations=2, rng=np.random.default_rng(0))
        assert len(y) == (target.shape[0] - 1) * 64 + 256

    def test_zero_target_is_silent(self):
        y = griffin_lim(np.zeros((20, 257)), frame_size=512, hop_size=64, iterations=3,
                        rng=np.random.default_rng(0))
        assert np.abs(y).max() < 1e-12

    def test_seed_reproducibility(self):
        target = self._tone_target()
        a = griffin_lim(target, 256, 64, 4, rng=np.random.default_rng(11))
        b = griffin_lim(target, 256, 64, 4, rng=np.random.default_rng(11))
        assert np.array_equal(a, b)

    def test_converges_with_iterations(self):
        """Magnitude error after 32 iterations is below the error after 1."""
        target = self._tone_target()
        errors = {}
        for iters in [1, 8, 32]:
            y = griffin_lim(target, 256, 64, iters, rng=np.random.default_rng(0))
            errors[iters] = reconstruction_error(y, target, 256, 64)
        print(f"\n[Griffin-Lim] errors by iteration count: {errors}")
        assert errors[32] < errors[1]
        assert errors[8] < errors[1]

    def test_callback_called_each_iteration(self):
        calls = []
        griffin_lim(self._tone_target(), 256, 64, 5, rng=np.random.default_rng(0),
                    callback=lambda i, spec: calls.append((i, spec.shape)))
        assert [i for i, _ in calls] == [0, 1, 2, 3, 4]

    def test_full_spectrum_target(self):
        target = np.abs(np.random.default_rng(0).standard_normal((10, 128)))
        y = griffin_lim(target, frame_size=128, hop_size=32, iterations=2, rng=np.random.default_rng(0))
        assert len(y) == 9 * 32 + 128
        assert np.all(np.isfinite(y))

    def test_empty_target(self):
        assert griffin_lim(np.zeros((0, 257)), 512, 64, 3).shape == (0,)

    def test_bin_mismatch(self):
        with pytest.raises(DimensionMismatchError):
            griffin_lim(np.ones((4, 100)), frame_size=512, hop_size=64, iterations=1)


class TestSketchGrid:
    """Test suite for the headless drawing surface."""

    def test_stroke_top_paints_highest_band(self):
        sketch = SketchGrid(cols=100, rows=80)
        sketch.stroke(0.5, 0.0, 1.0)
        grid = sketch.to_array()
        assert grid[50, 79] == pytest.approx(1.0)
        assert grid[50, 78] < 1.0
        assert grid[:, :70].max() == 0.0

    def test_values_are_clamped(self):
        sketch = SketchGrid(cols=20, rows=20)
        for _ in range(5):
            sketch.stroke(0.5, 0.5, 3.0)
        assert sketch.to_array().max() == 1.0

    def test_falloff(self):
        sketch = SketchGrid(cols=50, rows=50, cell_size=10.0, brush_radius=40.0)
        sketch.stroke(0.5, 0.5, 0.5)
        grid = sketch.to_array()
        row = 50 - 1 - 25
        assert grid[25, row] == pytest.approx(0.5)
        assert grid[27, row] == pytest.approx(0.5 * (1 - 20 / 40) ** 2)
        assert grid[30, row] == 0.0

    def test_stroke_radius_override(self):
        sketch = SketchGrid(cols=50, rows=50, cell_size=10.0, brush_radius=40.0)
        sketch.stroke(0.5, 0.5, 0.5, radius=10.0)
        grid = sketch.to_array()
        row = 50 - 1 - 25
        assert grid[25, row] == pytest.approx(0.5)
        assert grid[26, row] == 0.0
        assert sketch.brush_radius == 40.0

    def test_drag_paints_along_segment(self):
        sketch = SketchGrid(cols=100, rows=80)
        sketch.drag(0.1, 0.5, 0.9, 0.5)
        grid = sketch.to_array()
        assert grid[10:90, 39].min() > 0.0

    def test_clear_and_brush_resize(self):
        sketch = SketchGrid(cols=10, rows=10)
        sketch.stroke(0.5, 0.5, 1.0)
        sketch.clear()
        assert sketch.to_array().max() == 0.0
        sketch.resize_brush(-1000)
        assert sketch.brush_radius == 1.0

    def test_to_array_is_a_copy(self):
        sketch = SketchGrid(cols=10, rows=10)
        grid = sketch.to_array()
        grid[0, 0] = 1.0
        assert sketch.to_array()[0, 0] == 0.0


class TestPipeline:
    """End-to-end scenarios for render_grid."""

    def test_zero_grid_is_silent(self):
        config = SynthesisConfig(target_width=50, fmax=6000, sample_rate=16000, seed=0)
        result = render_grid(np.zeros((100, 80)), config)

        assert result.mel_grid.shape == (50, 80)
        assert result.linear_spectrogram.shape == (50, 257)
        assert np.all(result.linear_spectrogram == 0)
        assert len(result.waveform) == 49 * 64 + 512
        assert np.abs(result.waveform).max() < 1e-9

    def test_impulse_lands_near_its_row_frequency(self):
        """A single drawn cell synthesizes energy near the frequency of its mel row."""
        n_mels, row, fmax, sr = 80, 30, 6000.0, 16000
        grid = np.zeros((100, n_mels))
        grid[50, row] = 1.0

        config = SynthesisConfig(target_width=50, fmax=fmax, sample_rate=sr, iterations=16, seed=0)
        result = render_grid(grid, config)

        assert np.abs(result.waveform).max() > 0.0

        mags, _, freqs = spectrogram(result.waveform, frame_size=512, hop_size=64, sample_rate=sr)
        peak_hz = freqs[np.argmax(mags.sum(axis=0))]
        expected_hz = float(mel_to_hz(row / n_mels * hz_to_mel(fmax)))
        print(f"\n[Impulse] peak {peak_hz:.1f} Hz, expected ~{expected_hz:.1f} Hz")
        assert abs(peak_hz - expected_hz) < 100.0

    def test_seeded_runs_match(self):
        grid = np.random.default_rng(0).random((10, 80)) * 0.3
        config = SynthesisConfig(stretch=2, iterations=2, seed=42)
        a = render_grid(grid, config)
        b = render_grid(grid, config)
        assert np.array_equal(a.waveform, b.waveform)

    def test_normalized_rms(self):
        grid = np.zeros((10, 80))
        grid[:, 20:30] = 0.8
        result = render_grid(grid, SynthesisConfig(stretch=2, iterations=2, seed=1))
        rms = np.sqrt(np.mean(result.waveform ** 2))
        assert rms == pytest.approx(0.1, rel=1e-6)
        assert result.stats['raw_rms'] > 0

    def test_stretch_sets_width(self):
        result = render_grid(np.zeros((12, 80)), SynthesisConfig(stretch=3, iterations=0, seed=0))
        assert result.mel_grid.shape[0] == 36
        assert result.duration == pytest.approx(len(result.waveform) / 16000)

    def test_empty_grid(self):
        result = render_grid(np.zeros((0, 80)), SynthesisConfig(iterations=1, seed=0))
        assert result.waveform.shape == (0,)

    def test_config_validation(self):
        with pytest.raises(InvalidLengthError):
            SynthesisConfig(frame_size=500).validate()
        with pytest.raises(ValueError):
            SynthesisConfig(hop_size=0).validate()
        with pytest.raises(ValueError):
            SynthesisConfig(fmax=9000, sample_rate=16000).validate()
        with pytest.raises(ValueError):
            SynthesisConfig.from_dict({'frame_sise': 512})

    def test_config_from_nested_dict(self):
        config = SynthesisConfig.from_dict({'synthesis': {'frame_size': 256, 'hop_size': 32}})
        assert config.frame_size == 256
        assert config.n_bins == 129
