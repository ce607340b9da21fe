"""
Logging utilities for synthesis runs.
"""

import logging
import sys
from pathlib import Path
from typing import Optional
from datetime import datetime


def setup_logging(
    log_file: Optional[str] = None,
    level: int = logging.INFO,
    format_string: str = None,
    name: str = None
) -> logging.Logger:
    """
    Set up logging configuration.

    Args:
        log_file: Path to log file (if None, only console output)
        level: Logging level
        format_string: Custom format string
        name: Logger name (if None, uses root logger)

    Returns:
        Configured logger
    """
    if format_string is None:
        format_string = '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s'

    # Get or create logger
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(format_string, datefmt='%Y-%m-%d %H:%M:%S')

    # Console handler (minimal output - the CLI uses rich for main display)
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # File handler (detailed logs)
    if log_file is not None:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str = None) -> logging.Logger:
    """
    Get a logger by name.

    Args:
        name: Logger name

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


class RunLogger:
    """
    Log file for one CLI render: the configuration, the grid source,
    the result summary and any failure, written to
    <log_dir>/<run_name>_<timestamp>.log.

    The file handler sits on the package logger, so DEBUG messages from
    the pipeline and Griffin-Lim land in the same file while the run is open.
    """

    RULE = '-' * 60

    def __init__(
        self,
        run_name: str,
        log_dir: str = 'logs',
        console_level: int = logging.WARNING
    ):
        self.run_name = run_name
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        self.log_file = self.log_dir / f'{run_name}_{timestamp}.log'

        self.logger = setup_logging(
            log_file=str(self.log_file),
            level=logging.DEBUG,
            name='spectrosketch'
        )
        for handler in self.logger.handlers:
            if not isinstance(handler, logging.FileHandler):
                handler.setLevel(console_level)

    def info(self, msg: str):
        self.logger.info(msg)

    def error(self, msg: str):
        self.logger.error(msg)

    def log_config(self, config: dict):
        """Write the synthesis settings, one key per line."""
        self._section(f"{self.run_name} configuration", config)

    def log_results(self, results: dict, title: str = "results"):
        """Write the result summary; floats get four decimals."""
        self._section(f"{self.run_name} {title}", results)

    def _section(self, heading: str, values: dict):
        self.logger.info(self.RULE)
        self.logger.info(heading.upper())
        self._write_items(values, depth=1)
        self.logger.info(self.RULE)

    def _write_items(self, values: dict, depth: int):
        pad = '  ' * depth
        for key, value in values.items():
            if isinstance(value, dict):
                self.logger.info(f"{pad}{key}:")
                self._write_items(value, depth + 1)
            else:
                text = f"{value:.4f}" if isinstance(value, float) else value
                self.logger.info(f"{pad}{key}: {text}")

    def close(self):
        """Detach and close the run's file handler."""
        for handler in list(self.logger.handlers):
            if isinstance(handler, logging.FileHandler):
                self.logger.removeHandler(handler)
                handler.close()
