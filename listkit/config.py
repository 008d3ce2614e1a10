"""
Run configuration.

Configs are YAML files (see config/default.yaml). Values present in the file
override DEFAULTS; anything else is rejected.
"""

from pathlib import Path

import yaml

from .errors import InvalidArgument, require_int
from .parallel_map import BACKENDS

DEFAULTS = {
    'sieve_limit': 25,
    'search_threshold': 100,
    'search_values': [25, 50, 100, 150, 200],
    'workload_size': 100_001,
    'fibonacci_modulus': 25,
    'num_workers': None,
    'max_threads': 25,
    'backend': 'process',
}

# Smallest accepted value per integer key
_MINIMUMS = {
    'sieve_limit': 0,
    'workload_size': 0,
    'fibonacci_modulus': 1,
    'max_threads': 1,
}


def validate_config(config: dict) -> dict:
    """Check keys, value types and ranges. Returns the config unchanged."""
    unknown = sorted(set(config) - set(DEFAULTS))
    if unknown:
        raise InvalidArgument(f"unknown config keys: {unknown}")

    for key, minimum in _MINIMUMS.items():
        require_int(key, config[key], minimum)

    threshold = config['search_threshold']
    if isinstance(threshold, bool) or not isinstance(threshold, int):
        raise InvalidArgument(f"search_threshold must be an integer, got {threshold!r}")

    values = config['search_values']
    if not isinstance(values, list) or any(isinstance(v, bool) or not isinstance(v, int) for v in values):
        raise InvalidArgument(f"search_values must be a list of integers, got {values!r}")

    if config['num_workers'] is not None:
        require_int("num_workers", config['num_workers'], 1)

    if config['backend'] not in BACKENDS:
        raise InvalidArgument(f"backend must be one of {sorted(BACKENDS)}, got {config['backend']!r}")

    return config


def load_config(path=None) -> dict:
    """
    Load a YAML config and merge it over DEFAULTS.

    Parameters
    ----------
    path : str or Path, optional
        Config file. None returns the defaults.

    Returns
    -------
    dict
    """
    config = dict(DEFAULTS)
    if path is not None:
        with open(Path(path)) as f:
            loaded = yaml.safe_load(f) or {}
        if not isinstance(loaded, dict):
            raise InvalidArgument(f"config root must be a mapping, got {type(loaded).__name__}")
        config.update(loaded)
    return validate_config(config)
