#!/usr/bin/env python3
"""
Render a drawn intensity grid to a WAV file.

Usage:
    spectrosketch render GRID.npy -o out.wav [--config CONFIG_PATH] [--plot DIR]
    spectrosketch render --demo -o out.wav --iterations 32 --seed 0
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

import numpy as np
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich import box

from .dsp_core.errors import SpectroSketchError
from .synthesis.pipeline import SynthesisConfig, render_grid
from .synthesis.sketch import SketchGrid
from .utils.audio import flip_vector, normalize_peak, write_wav
from .utils.config import load_config
from .utils.logging import RunLogger, get_logger
from .utils.seed import get_seed_from_config

# Initialize rich console
console = Console()
logger = get_logger(__name__)

# Config fields that can be overridden from the command line
OVERRIDES = {
    'frame_size': int,
    'hop_size': int,
    'iterations': int,
    'stretch': int,
    'target_width': int,
    'fmax': float,
    'sample_rate': int,
    'harmonic_step': float,
    'harmonic_decay': float,
    'seed': int,
}


def load_grid(path: Path, top_down: bool = False) -> np.ndarray:
    """
    Load a (columns, mel bands) grid from .npy or .csv.

    With top_down=True each column is stored canvas style (index 0 = highest
    band) and is flipped so row 0 becomes the lowest band.
    """
    suffix = path.suffix.lower()
    if suffix == '.npy':
        grid = np.load(path)
    elif suffix == '.csv':
        grid = np.loadtxt(path, delimiter=',', ndmin=2)
    else:
        raise ValueError(f"Unsupported grid format '{suffix}' (expected .npy or .csv)")
    if grid.ndim != 2:
        raise ValueError(f"Grid must be 2D, got shape {grid.shape}")
    if top_down:
        grid = np.array([flip_vector(column) for column in grid]).reshape(grid.shape)
    return grid


def demo_grid(config: SynthesisConfig) -> np.ndarray:
    """A rising and a falling stroke across the canvas."""
    sketch = SketchGrid(cols=config.grid_width, rows=config.n_mels)
    sketch.drag(0.05, 0.85, 0.45, 0.55)
    sketch.drag(0.55, 0.4, 0.95, 0.7)
    return sketch.to_array()


def build_config(args: argparse.Namespace) -> SynthesisConfig:
    raw = load_config(args.config) if args.config else {}
    section = dict((raw.get('synthesis') if 'synthesis' in raw else raw) or {})
    if 'seed' not in section:
        seed = get_seed_from_config(raw)
        if seed is not None:
            section['seed'] = seed
    for name in OVERRIDES:
        value = getattr(args, name, None)
        if value is not None:
            section[name] = value
    return SynthesisConfig.from_dict(section)


def print_summary(result, output: Path, plots: List[str]) -> None:
    table = Table(title="Synthesis Summary", box=box.ROUNDED)
    table.add_column("Stage", style="cyan")
    table.add_column("Shape", style="magenta")

    table.add_row("Mel grid", f"{result.mel_grid.shape[0]} x {result.mel_grid.shape[1]}")
    table.add_row("Linear spectrogram", f"{result.linear_spectrogram.shape[0]} x {result.linear_spectrogram.shape[1]}")
    table.add_row("Harmonic spectrogram", f"{result.harmonic_spectrogram.shape[0]} x {result.harmonic_spectrogram.shape[1]}")
    table.add_row("Waveform", f"{len(result.waveform)} samples ({result.duration:.2f} s)")
    console.print(table)

    lines = [f"[green]WAV written to[/green] {output}"]
    lines.extend(f"[blue]Plot[/blue] {p}" for p in plots)
    console.print(Panel("\n".join(lines), title="Output", expand=False))


def cmd_render(args: argparse.Namespace) -> int:
    config = build_config(args)

    run_logger = RunLogger('render', log_dir=args.log_dir) if args.log_dir else None
    try:
        if run_logger:
            run_logger.log_config(config.to_dict())

        if args.demo:
            grid = demo_grid(config)
            source = 'demo sketch'
        else:
            grid = load_grid(Path(args.grid), top_down=args.top_down)
            source = args.grid
        if run_logger:
            run_logger.info(f"Grid: {source}, {grid.shape[0]} columns x {grid.shape[1]} bands")

        with console.status(f"[bold green]Running Griffin-Lim ({config.iterations} iterations)..."):
            result = render_grid(grid, config)

        waveform = normalize_peak(result.waveform, args.peak) if args.peak is not None else result.waveform
        output = write_wav(args.output, waveform, config.sample_rate, args.bits)

        plots = []
        if args.plot:
            from .utils.plot import plot_stages
            plots = plot_stages(result, args.plot)

        if run_logger:
            run_logger.log_results(result.stats)
    except (SpectroSketchError, ValueError, OSError) as e:
        if run_logger:
            run_logger.error(f"Render failed: {e}")
        raise
    finally:
        if run_logger:
            run_logger.close()

    print_summary(result, output, plots)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='spectrosketch',
        description='Synthesize audio from a drawn mel-scale intensity grid'
    )
    subparsers = parser.add_subparsers(dest='command', required=True)

    render = subparsers.add_parser('render', help='Render a grid to WAV')
    render.add_argument('grid', nargs='?', help='Grid file (.npy or .csv), shape (columns, mel bands)')
    render.add_argument('--demo', action='store_true', help='Render a built-in demo sketch instead of a file')
    render.add_argument('-o', '--output', default='output.wav', help='Output WAV path')
    render.add_argument('--config', type=str, default=None, help='YAML config file')
    render.add_argument('--bits', type=int, choices=[8, 16], default=16, help='PCM bit depth')
    render.add_argument('--peak', type=float, default=None,
                        help='Rescale the output so its largest sample equals this level')
    render.add_argument('--top-down', action='store_true',
                        help='Grid columns are stored highest band first (canvas order)')
    render.add_argument('--plot', type=str, default=None, help='Directory for stage plots')
    render.add_argument('--log-dir', type=str, default=None, help='Directory for the run log')
    for name, kind in OVERRIDES.items():
        render.add_argument(f"--{name.replace('_', '-')}", dest=name, type=kind, default=None)
    render.set_defaults(func=cmd_render)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == 'render' and not args.demo and not args.grid:
        parser.error("render needs a grid file or --demo")

    try:
        return args.func(args)
    except (SpectroSketchError, ValueError, OSError) as e:
        logger.error(f"{args.command} failed: {e}")
        console.print(f"[bold red]Error:[/bold red] {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
