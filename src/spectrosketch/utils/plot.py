import os

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import numpy as np

from ..dsp_core.stft import amplitude_to_db


def _save(fig, save_dir, filename):
    save_path = os.path.join(save_dir, filename)
    fig.savefig(save_path, dpi=150)
    plt.close(fig)
    return save_path


def plot_grid(grid, save_dir, title='Mel Grid', filename='mel_grid.png'):
    """Draw a (frames, bins) array with frequency on the vertical axis."""
    os.makedirs(save_dir, exist_ok=True)
    fig, ax = plt.subplots(figsize=(10, 4))
    ax.imshow(np.asarray(grid).T, origin='lower', aspect='auto', cmap='magma')
    ax.set_title(title)
    ax.set_xlabel('Frame')
    ax.set_ylabel('Bin')
    return _save(fig, save_dir, filename)


def plot_waveform(waveform, sample_rate, save_dir, filename='waveform.png'):
    """Draw the output waveform against time in seconds."""
    os.makedirs(save_dir, exist_ok=True)
    waveform = np.asarray(waveform)
    fig, ax = plt.subplots(figsize=(10, 3))
    ax.plot(np.arange(len(waveform)) / sample_rate, waveform, linewidth=0.5)
    ax.set_title('Waveform')
    ax.set_xlabel('Time (s)')
    ax.set_ylabel('Amplitude')
    ax.grid(True)
    return _save(fig, save_dir, filename)


def plot_stages(result, save_dir):
    """
    Save one image per pipeline stage of a SynthesisResult.

    Returns the list of written paths.
    """
    paths = [
        plot_grid(result.mel_grid, save_dir, 'Resized Mel Grid', 'mel_grid.png'),
        plot_grid(result.linear_spectrogram, save_dir, 'Linear Spectrogram', 'linear_spectrogram.png'),
        plot_grid(
            amplitude_to_db(result.harmonic_spectrogram), save_dir,
            'Harmonic Spectrogram (dB)', 'harmonic_spectrogram.png'
        ),
        plot_waveform(result.waveform, result.config.sample_rate, save_dir),
    ]
    return paths
