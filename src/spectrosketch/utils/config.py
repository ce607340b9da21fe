"""
YAML configuration loading.
"""

from pathlib import Path
from typing import Dict, Union

import yaml


def load_config(config_path: Union[str, Path]) -> Dict:
    """Load configuration from YAML file."""
    with open(config_path, 'r') as f:
        config = yaml.safe_load(f)
    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ValueError(f"Config file {config_path} must contain a mapping, got {type(config).__name__}")
    return config


def save_config(config: Dict, config_path: Union[str, Path]) -> None:
    """Write configuration to a YAML file."""
    path = Path(config_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        yaml.safe_dump(config, f, sort_keys=False)
