# network_stats/config.py
"""
Configuration module for network_stats.
This file defines a dataclass to hold configurable parameters for the analyses,
allowing easy modification of settings like test direction, correction method
and clustering methods.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

@dataclass
class NetworkStatsConfig:
    """
    Configuration class for network_stats analyses.
    This dataclass encapsulates settings that control edge clustering,
    sample-cluster significance testing, quantitative association and
    heatmap rendering.

    Attributes:
        dist_method (str): Distance used between edge sample vectors. Accepts
            R-style names ('manhattan', 'euclidean', ...) or scipy metric names
            (default: 'manhattan').
        hclust_method (str): Linkage method for hierarchical clustering
            (default: 'ward.D2').
        test (str): Category test used by the network annotator, 'fishers' for
            enrichment or 'binomial' for uniqueness (default: 'fishers').
        correction_method (str): Multiple testing correction applied to each
            category p-value (default: 'hochberg').
        fisher_alternative (str): Alternative hypothesis of the enrichment test
            (default: 'greater').
        binomial_alternative (str): Alternative hypothesis of the uniqueness
            test (default: 'less').
        binomial_conf_level (float): Confidence level of the binomial
            proportion interval (default: 0.99).
        joint_correction (bool): Adjust the p-values of all categories of an
            edge together instead of one at a time (default: False).
        prediction_level (float): Level of the prediction interval used by the
            differential quantitative test (default: 0.95).
        progress_bar (bool): Show a tqdm progress bar over edges (default: True).
        verbose (bool): Log contingency tables and raw test results (default: False).
        figure_size (Tuple[float, float]): Heatmap figure size in inches.
        dpi (int): Resolution of written heatmap images.
        membership_colors (List[str]): Colours for non-member / member cells.
    """
    # Edge clustering
    dist_method: str = 'manhattan'
    hclust_method: str = 'ward.D2'

    # Category testing
    test: str = 'fishers'
    correction_method: str = 'hochberg'
    fisher_alternative: str = 'greater'
    binomial_alternative: str = 'less'
    binomial_conf_level: float = 0.99
    joint_correction: bool = False

    # Quantitative association
    prediction_level: float = 0.95

    # Processing
    progress_bar: bool = True
    verbose: bool = False

    # Heatmap output
    figure_size: Tuple[float, float] = (10.0, 70.0)
    dpi: int = 300
    membership_colors: List[str] = field(default_factory=lambda: ["blue", "green"])
    outfile_prefix: Optional[str] = None
