from typing import Optional

import numpy as np


def make_rng(seed: Optional[int] = None) -> np.random.Generator:
    """Random generator for phase and noise draws; None gives fresh entropy."""
    return np.random.default_rng(seed)


def get_seed_from_config(config: dict) -> Optional[int]:
    if not isinstance(config, dict):
        return None
    seed = config.get('seed', None)
    if seed is not None:
        return int(seed)
    synthesis = config.get('synthesis', {})
    if isinstance(synthesis, dict) and synthesis.get('seed', None) is not None:
        return int(synthesis['seed'])
    return None
