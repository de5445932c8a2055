# network_stats/network_annotator.py
"""
Network Category Annotator module for network_stats.

Tests the sample cluster of every edge against each category of an
annotation field and appends one p-value column per category to a copy of
the network.
"""

import logging
from typing import Callable, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd
from tqdm import tqdm

from .config import NetworkStatsConfig
from .data_loader import DataLoader
from .edge_samples import get_edge_samples
from .statistical_validation import StatisticalValidator, adjust_pvalues, TESTS
from .utils import append_result_columns

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


class NetworkAnnotator:
    """
    Annotates every edge of a network with category significance tests.

    For each edge and each distinct value of an annotation field, the edge's
    sample cluster is tested against the category and the p-value is stored
    in a new column named '<field>_<category>'.
    """

    def __init__(self, config: Optional[NetworkStatsConfig] = None):
        self.config = config or NetworkStatsConfig()
        logger.debug(f"Initializing NetworkAnnotator with config: {vars(self.config)}")
        self.loader = DataLoader()
        self.validator = StatisticalValidator(self.config)

    def analyze_edge_categories(self,
                                i: int,
                                osa: pd.DataFrame,
                                net: pd.DataFrame,
                                ematrix: pd.DataFrame,
                                field: str,
                                test: str = 'binomial',
                                correction: Optional[str] = None,
                                samples: Optional[Sequence[int]] = None,
                                joint_correction: Optional[bool] = None,
                                verbose: Optional[bool] = None) -> pd.Series:
        """
        Performs significance testing of a single edge for every category of a field.

        Args:
            i (int): Zero-based position of the edge in the network.
            osa (pd.DataFrame): Sample annotations with a 'Sample' column.
            net (pd.DataFrame): Network with Source, Target, Similarity and Samples columns.
            ematrix (pd.DataFrame): Expression matrix, samples as columns.
            field (str): Annotation field on which testing is performed.
            test (str, optional): 'fishers' for enrichment or 'binomial' for uniqueness.
                Defaults to 'binomial'.
            correction (str, optional): Multiple testing correction. Defaults to config.
            samples (Sequence[int], optional): Sample indexes that replace the edge's own
                cluster. Ignored when empty.
            joint_correction (bool, optional): Adjust the raw p-values of all categories
                together instead of one at a time. Defaults to config.
            verbose (bool, optional): Log contingency tables and raw test results.

        Returns:
            pd.Series: Adjusted p-values indexed by category.
        """
        if test not in TESTS:
            raise ValueError(f"Unknown test '{test}'; expected one of {TESTS}.")
        correction = correction or self.config.correction_method
        joint_correction = self.config.joint_correction if joint_correction is None else joint_correction

        if samples is not None and len(samples) > 0:
            edge_samples = np.asarray(samples, dtype=int)
        else:
            edge_samples = get_edge_samples(i, net, n_samples=ematrix.shape[1])

        categories = self.validator.categories(osa, field)

        if joint_correction:
            raw = [self.validator.test_category(category, field, osa, ematrix, edge_samples,
                                                test=test, correction='none',
                                                verbose=verbose)
                   for category in categories]
            pvals = adjust_pvalues(raw, method=correction)
        else:
            pvals = [self.validator.test_category(category, field, osa, ematrix, edge_samples,
                                                  test=test, correction=correction,
                                                  verbose=verbose)
                     for category in categories]

        return pd.Series(pvals, index=categories, dtype=float, name=i)

    def analyze_network_categories(self,
                                   net: pd.DataFrame,
                                   osa: pd.DataFrame,
                                   ematrix: pd.DataFrame,
                                   field: str,
                                   test: Optional[str] = None,
                                   correction: Optional[str] = None,
                                   samples: Optional[Sequence[int]] = None,
                                   progress_bar: Optional[bool] = None,
                                   callback: Optional[ProgressCallback] = None,
                                   joint_correction: Optional[bool] = None,
                                   verbose: Optional[bool] = None) -> pd.DataFrame:
        """
        Performs significance testing of each edge in the network for a set of annotation categories.

        Args:
            net (pd.DataFrame): Network with Source, Target, Similarity and Samples columns.
            osa (pd.DataFrame): Sample annotations with a 'Sample' column.
            ematrix (pd.DataFrame): Expression matrix, samples as columns.
            field (str): Annotation field on which testing is performed.
            test (str, optional): 'fishers' or 'binomial'. Defaults to config ('fishers').
            correction (str, optional): Multiple testing correction. Defaults to config.
            samples (Sequence[int], optional): Fixed sample indexes tested for every edge.
            progress_bar (bool, optional): Show a progress bar. Defaults to config.
            callback (callable, optional): Called as callback(done, total) after each edge.
            joint_correction (bool, optional): See analyze_edge_categories.
            verbose (bool, optional): Log contingency tables and raw test results.

        Returns:
            pd.DataFrame: Copy of the network with one '<field>_<category>' column per category.
        """
        test = test or self.config.test
        progress_bar = self.config.progress_bar if progress_bar is None else progress_bar
        self.loader.validate_network(net, require_samples=samples is None or len(samples) == 0)
        categories = self.validator.categories(osa, field)
        columns = [self.category_column(field, category) for category in categories]

        logger.info(f"Testing {len(net)} edges against {len(categories)} '{field}' categories ({test})")

        results: Dict[int, List[float]] = {}
        total = len(net)
        edge_iter = tqdm(range(total), desc=f"Testing {field}", unit="edge") if progress_bar else range(total)
        for i in edge_iter:
            pvals = self.analyze_edge_categories(i, osa, net, ematrix, field, test=test,
                                                 correction=correction, samples=samples,
                                                 joint_correction=joint_correction,
                                                 verbose=verbose)
            results[i] = pvals.reindex(categories).tolist()
            if callback is not None:
                callback(i + 1, total)

        return append_result_columns(net, results, columns)

    @staticmethod
    def category_column(field: str, category) -> str:
        """Result column name for a category; whole-number floats lose the trailing '.0'."""
        if isinstance(category, float) and category.is_integer():
            category = int(category)
        return f"{field}_{category}"


def analyze_network_categories(net: pd.DataFrame, osa: pd.DataFrame, ematrix: pd.DataFrame,
                               field: str, config: Optional[NetworkStatsConfig] = None,
                               **kwargs) -> pd.DataFrame:
    """
    Entry-point function for network category annotation.
    """
    annotator = NetworkAnnotator(config)
    return annotator.analyze_network_categories(net, osa, ematrix, field, **kwargs)
