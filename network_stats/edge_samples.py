# network_stats/edge_samples.py
"""
Edge sample string decoding.

Each edge of a co-expression network may carry a sample string: one character
per sample, in the column order of the expression matrix. A '1' marks a sample
that belongs to the cluster from which the edge was derived; any other digit
marks a sample that is outside the cluster or missing.
"""

import logging
from typing import Optional

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

SAMPLES_COLUMN = 'Samples'
DIGITS = frozenset('0123456789')


def decode_sample_string(sample_str: str, n_samples: Optional[int] = None) -> np.ndarray:
    """
    Convert a sample string into an array of sample indexes.

    Args:
        sample_str: String of single-digit membership flags.
        n_samples: Expected number of samples. When given, the string length
            must match it.

    Returns:
        Sorted zero-based indexes of the samples flagged with '1'. These
        correspond to column positions in the expression matrix.

    Raises:
        ValueError: If the string contains a non-digit character or its length
            does not match n_samples.
    """
    flags = _parse_flags(sample_str)
    if n_samples is not None and len(flags) != n_samples:
        raise ValueError(
            f"Sample string has {len(flags)} flags but {n_samples} samples were expected."
        )
    return np.flatnonzero(flags == 1)


def get_edge_samples(i: int, net: pd.DataFrame, n_samples: Optional[int] = None) -> np.ndarray:
    """
    Converts an edge sample string into an array of indexes.

    Args:
        i: The zero-based position of the edge in the network.
        net: Network DataFrame with a 'Samples' column.
        n_samples: Expected number of samples (usually the number of columns
            of the expression matrix).

    Returns:
        Zero-based indexes of the samples that are part of the edge's cluster.
    """
    if SAMPLES_COLUMN not in net.columns:
        raise KeyError(f"Network has no '{SAMPLES_COLUMN}' column.")
    return decode_sample_string(net[SAMPLES_COLUMN].iloc[i], n_samples)


def get_sample_matrix(net: pd.DataFrame) -> np.ndarray:
    """
    Generates a matrix containing the edge sample string digits.

    The returned matrix has one row per edge and one column per sample, in
    the same order as the sample strings. Cells are 1 for cluster members and
    0 for everything else.

    Raises:
        KeyError: If the network has no 'Samples' column.
        ValueError: If the network is empty, sample strings differ in length
            or contain non-digit characters.
    """
    if SAMPLES_COLUMN not in net.columns:
        raise KeyError(f"Network has no '{SAMPLES_COLUMN}' column.")
    if net.empty:
        raise ValueError("Network contains no edges.")

    sample_strs = net[SAMPLES_COLUMN].tolist()
    lengths = {len(s) for s in sample_strs}
    if len(lengths) > 1:
        raise ValueError(f"Inconsistent sample string lengths in network: found lengths {sorted(lengths)}")

    rows = [_parse_flags(s) for s in sample_strs]
    return (np.vstack(rows) == 1).astype(int)


def _parse_flags(sample_str: str) -> np.ndarray:
    if not isinstance(sample_str, str):
        raise ValueError(f"Sample string must be a str, got {type(sample_str).__name__}.")
    bad = sorted(set(sample_str) - DIGITS)
    if bad:
        raise ValueError(f"Sample string contains non-numeric characters: {bad}")
    return np.frombuffer(sample_str.encode('ascii'), dtype=np.uint8) - ord('0')
