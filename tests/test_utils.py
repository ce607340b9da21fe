"""
Tests for audio export, configuration, logging, plotting and the CLI.

Run:
    pytest tests/test_utils.py -v
"""

import logging
from pathlib import Path

import numpy as np
import pytest
from scipy.io import wavfile

from spectrosketch.cli import load_grid, main
from spectrosketch.synthesis import SynthesisConfig, render_grid
from spectrosketch.utils.audio import (
    AudioProcessor, flip_vector, normalize_peak, normalize_rms, to_pcm, write_wav,
)
from spectrosketch.utils.config import load_config, save_config
from spectrosketch.utils.logging import RunLogger, setup_logging
from spectrosketch.utils.seed import get_seed_from_config, make_rng

PROJECT_ROOT = Path(__file__).parent.parent


class TestAudio:
    """Test suite for waveform post-processing and WAV export."""

    def test_normalize_rms(self):
        t = np.arange(1600) / 16000
        y = 3.0 * np.sin(2 * np.pi * 440 * t)
        out = normalize_rms(y)
        assert np.sqrt(np.mean(out ** 2)) == pytest.approx(0.1)

    def test_normalize_silence_is_unchanged(self):
        out = normalize_rms(np.zeros(100))
        assert np.all(out == 0)
        assert np.all(np.isfinite(out))

    def test_normalize_peak(self):
        y = np.array([-2.0, 0.0, 1.0])
        assert normalize_peak(y).tolist() == [-1.0, 0.0, 0.5]
        assert normalize_peak(y, peak=0.5).tolist() == [-0.5, 0.0, 0.25]
        assert normalize_peak(np.zeros(4)).tolist() == [0.0] * 4
        assert y.tolist() == [-2.0, 0.0, 1.0]

    def test_unknown_method(self):
        with pytest.raises(ValueError):
            AudioProcessor.normalize(np.ones(3), 'loudness')

    def test_flip_vector(self):
        assert flip_vector([1, 2, 3]).tolist() == [3, 2, 1]

    def test_to_pcm_16(self):
        pcm = to_pcm(np.array([0.0, 1.0, -1.0, 0.5, 2.0]), 16)
        assert pcm.dtype == np.int16
        assert pcm.tolist() == [0, 32767, -32767, 16383, 32767]

    def test_to_pcm_8(self):
        pcm = to_pcm(np.array([0.0, 1.0, -1.0]), 8)
        assert pcm.dtype == np.uint8
        assert pcm.tolist() == [128, 255, 1]
        with pytest.raises(ValueError):
            to_pcm(np.zeros(3), 24)

    @pytest.mark.parametrize("bits,width", [(16, 2), (8, 1)])
    def test_write_wav(self, tmp_path, bits, width):
        y = 0.5 * np.sin(np.linspace(0, 20 * np.pi, 1000))
        path = write_wav(tmp_path / 'out' / 'tone.wav', y, sample_rate=16000, bits_per_sample=bits)

        rate, data = wavfile.read(path)
        assert rate == 16000
        assert len(data) == 1000
        assert path.stat().st_size == 44 + width * 1000
        with open(path, 'rb') as f:
            header = f.read(12)
        assert header[:4] == b'RIFF' and header[8:12] == b'WAVE'


class TestConfig:
    """Test suite for YAML config handling and seeding."""

    def test_default_config_file(self):
        config = SynthesisConfig.from_yaml(PROJECT_ROOT / 'configs' / 'default.yaml')
        assert config == SynthesisConfig()

    def test_save_and_load(self, tmp_path):
        path = tmp_path / 'cfg.yaml'
        save_config({'synthesis': {'iterations': 12, 'seed': 3}}, path)
        raw = load_config(path)
        assert raw == {'synthesis': {'iterations': 12, 'seed': 3}}
        assert SynthesisConfig.from_dict(raw).iterations == 12
        assert get_seed_from_config(raw) == 3

    def test_load_rejects_non_mapping(self, tmp_path):
        path = tmp_path / 'bad.yaml'
        path.write_text('- 1\n- 2\n')
        with pytest.raises(ValueError):
            load_config(path)

    def test_empty_config(self, tmp_path):
        path = tmp_path / 'empty.yaml'
        path.write_text('')
        assert load_config(path) == {}

    def test_null_synthesis_section(self, tmp_path):
        path = tmp_path / 'null.yaml'
        path.write_text('synthesis:\n')
        assert SynthesisConfig.from_yaml(path) == SynthesisConfig()

    def test_make_rng_is_seeded(self):
        assert make_rng(5).random() == make_rng(5).random()
        assert get_seed_from_config({'seed': '7'}) == 7
        assert get_seed_from_config({}) is None


class TestLogging:
    """Test suite for logging helpers."""

    def test_setup_logging_writes_file(self, tmp_path):
        log_file = tmp_path / 'logs' / 'run.log'
        logger = setup_logging(str(log_file), level=logging.DEBUG, name='spectrosketch.test')
        logger.debug('hello from test')
        for handler in logger.handlers:
            handler.flush()
        assert 'hello from test' in log_file.read_text()
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()

    def test_run_logger(self, tmp_path):
        run_logger = RunLogger('unit', log_dir=str(tmp_path))
        run_logger.log_config({'frame_size': 512})
        run_logger.log_results({'raw_rms': 0.25, 'nested': {'frames': 3}})
        run_logger.close()

        text = run_logger.log_file.read_text()
        assert 'frame_size: 512' in text
        assert 'raw_rms: 0.2500' in text
        assert 'frames: 3' in text


class TestPlot:
    """Test suite for stage plots."""

    def test_plot_stages(self, tmp_path):
        from spectrosketch.utils.plot import plot_stages

        grid = np.zeros((10, 80))
        grid[4:6, 30:35] = 0.9
        result = render_grid(grid, SynthesisConfig(stretch=2, iterations=1, seed=0))
        paths = plot_stages(result, str(tmp_path))

        assert len(paths) == 4
        for p in paths:
            assert Path(p).exists()


class TestCLI:
    """Test suite for the command line entry point."""

    def test_render_demo(self, tmp_path):
        out = tmp_path / 'demo.wav'
        code = main(['render', '--demo', '-o', str(out), '--iterations', '1',
                     '--stretch', '1', '--seed', '0', '--log-dir', str(tmp_path / 'logs')])
        assert code == 0
        assert out.exists()
        assert list((tmp_path / 'logs').glob('render_*.log'))

    def test_render_npy_and_csv(self, tmp_path):
        grid = np.zeros((8, 80))
        grid[3, 40] = 1.0
        np.save(tmp_path / 'grid.npy', grid)
        np.savetxt(tmp_path / 'grid.csv', grid, delimiter=',')

        for name in ['grid.npy', 'grid.csv']:
            out = tmp_path / f'{name}.wav'
            code = main(['render', str(tmp_path / name), '-o', str(out),
                         '--iterations', '1', '--bits', '8', '--seed', '1'])
            assert code == 0
            rate, data = wavfile.read(out)
            assert rate == 16000
            assert data.dtype == np.uint8

    def test_render_with_config_and_plot(self, tmp_path):
        cfg = tmp_path / 'cfg.yaml'
        save_config({'synthesis': {'frame_size': 256, 'hop_size': 32, 'iterations': 1, 'stretch': 1}}, cfg)
        np.save(tmp_path / 'grid.npy', np.full((6, 80), 0.5))

        code = main(['render', str(tmp_path / 'grid.npy'), '-o', str(tmp_path / 'x.wav'),
                     '--config', str(cfg), '--plot', str(tmp_path / 'plots')])
        assert code == 0
        assert (tmp_path / 'plots' / 'waveform.png').exists()

    def test_errors_exit_with_status_one(self, tmp_path):
        (tmp_path / 'grid.txt').write_text('0 0\n')
        assert main(['render', str(tmp_path / 'grid.txt'), '-o', str(tmp_path / 'a.wav')]) == 1
        assert main(['render', '--demo', '-o', str(tmp_path / 'b.wav'), '--frame-size', '500']) == 1

    def test_render_requires_input(self):
        with pytest.raises(SystemExit):
            main(['render'])

    def test_null_synthesis_section_in_cli_config(self, tmp_path):
        cfg = tmp_path / 'cfg.yaml'
        cfg.write_text('synthesis:\n')
        code = main(['render', '--demo', '-o', str(tmp_path / 'n.wav'), '--config', str(cfg),
                     '--iterations', '1', '--stretch', '1', '--seed', '0'])
        assert code == 0

    def test_failure_is_logged(self, tmp_path, caplog):
        (tmp_path / 'grid.txt').write_text('0 0\n')
        log_dir = tmp_path / 'logs'
        with caplog.at_level(logging.ERROR, logger='spectrosketch.cli'):
            code = main(['render', str(tmp_path / 'grid.txt'), '-o', str(tmp_path / 'a.wav'),
                         '--log-dir', str(log_dir)])
        assert code == 1
        assert any('render failed' in r.getMessage() for r in caplog.records)

        run_log = next(log_dir.glob('render_*.log')).read_text()
        assert 'Render failed' in run_log
        assert 'ERROR' in run_log

    def test_peak_option(self, tmp_path):
        out = tmp_path / 'loud.wav'
        code = main(['render', '--demo', '-o', str(out), '--iterations', '1',
                     '--stretch', '1', '--seed', '0', '--peak', '0.5'])
        assert code == 0
        _, data = wavfile.read(out)
        assert np.abs(data.astype(int)).max() == 16383

    def test_top_down_grid(self, tmp_path):
        grid = np.array([[0.0, 0.25, 1.0], [0.5, 0.0, 0.0]])
        np.save(tmp_path / 'grid.npy', grid)
        flipped = load_grid(tmp_path / 'grid.npy', top_down=True)
        assert flipped.tolist() == [[1.0, 0.25, 0.0], [0.0, 0.0, 0.5]]
        assert load_grid(tmp_path / 'grid.npy').tolist() == grid.tolist()
