"""Shared pytest fixtures for all test modules."""

import matplotlib

matplotlib.use("Agg")

import pandas as pd
import pytest

from network_stats.config import NetworkStatsConfig


@pytest.fixture
def quiet_config() -> NetworkStatsConfig:
    """Configuration with the progress bar disabled."""
    return NetworkStatsConfig(progress_bar=False)


@pytest.fixture
def two_edge_network() -> pd.DataFrame:
    """Two edges over four samples with complementary sample clusters."""
    return pd.DataFrame(
        {
            "Source": ["G1", "G3"],
            "Target": ["G2", "G4"],
            "Similarity": [0.91, -0.85],
            "Samples": ["1100", "0011"],
        }
    )


@pytest.fixture
def four_sample_ematrix() -> pd.DataFrame:
    """Expression matrix for four genes over samples S1-S4."""
    return pd.DataFrame(
        [
            [1.0, 2.0, 3.0, 4.0],
            [2.0, 1.0, 4.0, 3.0],
            [5.0, 5.5, 1.0, 0.5],
            [4.0, 4.5, 2.0, 1.5],
        ],
        index=["G1", "G2", "G3", "G4"],
        columns=["S1", "S2", "S3", "S4"],
    )


@pytest.fixture
def group_annotations() -> pd.DataFrame:
    """Annotation field Group = A, A, B, B for samples S1-S4."""
    return pd.DataFrame(
        {
            "Sample": ["S1", "S2", "S3", "S4"],
            "Group": ["A", "A", "B", "B"],
            "Tissue": ["leaf", "root", "leaf", "root"],
        }
    )


@pytest.fixture
def quant_ematrix() -> pd.DataFrame:
    """Six samples; G1 + G2 has group means 3, 5 and 7 across the dose levels."""
    return pd.DataFrame(
        [
            [1.0, 1.0, 2.0, 2.0, 3.0, 3.0],
            [2.1, 1.9, 3.2, 2.8, 4.1, 3.9],
            [0.5, 0.7, 0.2, 0.9, 0.4, 0.3],
        ],
        index=["G1", "G2", "G3"],
        columns=[f"S{k}" for k in range(1, 7)],
    )


@pytest.fixture
def quant_annotations() -> pd.DataFrame:
    """Categorical and numeric traits for the six quantitative samples."""
    return pd.DataFrame(
        {
            "Sample": [f"S{k}" for k in range(1, 7)],
            "Group": ["ctl", "ctl", "high", "high", "low", "low"],
            "Dose": [10, 10, 20, 20, 40, 40],
        }
    )


@pytest.fixture
def quant_network() -> pd.DataFrame:
    """Edge 0 uses all six samples; edge 1 only the two control samples."""
    return pd.DataFrame(
        {
            "Source": ["G1", "G1"],
            "Target": ["G2", "G3"],
            "Similarity": [0.95, 0.80],
            "Samples": ["111111", "110000"],
        }
    )
