# network_stats/utils.py
"""
Utility functions for configuration loading and result table assembly.
"""

import logging
from dataclasses import fields
from typing import Any, Dict, List

import pandas as pd
import yaml

from .config import NetworkStatsConfig

logger = logging.getLogger(__name__)

# YAML sections accepted by load_config_file
CONFIG_SECTIONS = ('clustering', 'testing', 'quantitative', 'processing', 'heatmap')


def create_config(**overrides: Any) -> NetworkStatsConfig:
    """Create configuration from keyword overrides."""
    config = NetworkStatsConfig()
    _apply(config, overrides)
    return config


def load_config_file(config_path: str) -> NetworkStatsConfig:
    """Load configuration from YAML file"""
    with open(config_path, 'r') as f:
        config_dict = yaml.safe_load(f) or {}

    config = NetworkStatsConfig()

    for section in CONFIG_SECTIONS:
        if section in config_dict:
            _apply(config, config_dict.pop(section) or {})

    # Top-level keys are accepted as well
    _apply(config, config_dict)

    if isinstance(config.figure_size, list):
        config.figure_size = tuple(config.figure_size)

    return config


def _apply(config: NetworkStatsConfig, values: Dict[str, Any]) -> None:
    known = {f.name for f in fields(config)}
    for key, value in values.items():
        if key in known:
            setattr(config, key, value)
        else:
            logger.warning(f"Unknown configuration parameter: {key}")


def append_result_columns(net: pd.DataFrame,
                          results: Dict[int, List[float]],
                          columns: List[str]) -> pd.DataFrame:
    """
    Return a copy of the network with result columns appended.

    Args:
        net: Network table; left unchanged.
        results: Result values per edge, keyed by zero-based edge position.
        columns: Names of the new columns, one per result value.

    Returns:
        New DataFrame with the network's rows and columns followed by the
        result columns. Edges without results get missing values.
    """
    values = pd.DataFrame.from_dict(results, orient='index', columns=columns).reindex(range(len(net)))
    return net.assign(**{col: values[col].to_numpy(dtype=float) for col in columns})
