# network_stats/quantitative.py
"""
Quantitative association of network edges with sample traits.

The expression of an edge's two genes is summed per sample and regressed
against a sample annotation coded as a numeric factor. The slope estimates
the rate of change of the combined mean across the factor levels.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd
import statsmodels.api as sm
from sklearn.preprocessing import LabelEncoder
from tqdm import tqdm

from .config import NetworkStatsConfig
from .data_loader import DataLoader
from .edge_samples import get_edge_samples
from .utils import append_result_columns

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


@dataclass
class EdgeQuantResult:
    """Result of the association test of one edge; all fields are missing when no fit was possible."""
    p: float = np.nan
    roccm: float = np.nan
    model: Optional[object] = None


def factor_codes(values: pd.Series) -> np.ndarray:
    """
    Code annotation values as 1-based factor levels.

    Levels are the sorted distinct non-missing values, so numeric traits keep
    their order. Missing values stay missing.
    """
    codes = np.full(len(values), np.nan)
    mask = values.notna().to_numpy()
    if mask.any():
        codes[mask] = LabelEncoder().fit_transform(values.to_numpy()[mask]) + 1
    return codes


def _n_levels(z: np.ndarray) -> int:
    return len(np.unique(z[~np.isnan(z)]))


def _fit(response: np.ndarray, z: np.ndarray):
    design = sm.add_constant(z, has_constant='add')
    return sm.OLS(response, design, missing='drop').fit()


class QuantitativeAnalyzer:
    """Linear regression of edge expression against quantitative or categorical traits."""

    def __init__(self, config: Optional[NetworkStatsConfig] = None):
        self.config = config or NetworkStatsConfig()
        self.loader = DataLoader()

    def analyze_edge_quant(self,
                           i: int,
                           osa: pd.DataFrame,
                           net: pd.DataFrame,
                           ematrix: pd.DataFrame,
                           field: str,
                           samples: Optional[Sequence[int]] = None,
                           aligned_osa: Optional[pd.DataFrame] = None) -> EdgeQuantResult:
        """
        Performs linear regression of a trait against a single edge in the network.

        Args:
            i: Zero-based position of the edge in the network.
            osa: Sample annotations with a 'Sample' column.
            net: Network with Source, Target and Samples columns.
            ematrix: Expression matrix, genes as rows and samples as columns.
            field: Annotation field used as the covariate.
            samples: Sample indexes that replace the edge's own cluster. Ignored when empty.
            aligned_osa: Annotations already aligned to the expression columns.

        Returns:
            EdgeQuantResult with the slope p-value, the slope (rate of change of
            the combined mean) and the fitted model. When the covariate has fewer
            than two distinct values among the selected samples, all are missing.
        """
        if aligned_osa is None:
            self.loader.validate_annotations(osa, field)
            aligned_osa = self.loader.align_annotations(osa, ematrix)

        source = net['Source'].iloc[i]
        target = net['Target'].iloc[i]

        if samples is not None and len(samples) > 0:
            edge_samples = np.asarray(samples, dtype=int)
        else:
            edge_samples = get_edge_samples(i, net, n_samples=ematrix.shape[1])

        # Expression vectors restricted to the edge's samples
        x = ematrix.loc[source].iloc[edge_samples].to_numpy(dtype=float)
        y = ematrix.loc[target].iloc[edge_samples].to_numpy(dtype=float)
        z = factor_codes(aligned_osa[field].iloc[edge_samples])

        # No regression possible with a single covariate value
        if _n_levels(z) < 2:
            logger.debug(f"Edge {i} ({source}-{target}): '{field}' has fewer than two values; skipping regression.")
            return EdgeQuantResult()

        model = _fit(y + x, z)
        return EdgeQuantResult(p=float(model.pvalues[1]), roccm=float(model.params[1]), model=model)

    def analyze_network_quant(self,
                              net: pd.DataFrame,
                              osa: pd.DataFrame,
                              ematrix: pd.DataFrame,
                              field: str,
                              samples: Optional[Sequence[int]] = None,
                              progress_bar: Optional[bool] = None,
                              callback: Optional[ProgressCallback] = None) -> pd.DataFrame:
        """
        Performs association testing for every edge in the network.

        Returns:
            Copy of the network with a '<field>' p-value column and a
            '<field>_roccm' slope column.
        """
        progress_bar = self.config.progress_bar if progress_bar is None else progress_bar
        self.loader.validate_network(net, require_samples=samples is None or len(samples) == 0)
        self.loader.validate_annotations(osa, field)
        aligned_osa = self.loader.align_annotations(osa, ematrix)

        logger.info(f"Regressing {len(net)} edges against '{field}'")

        results: Dict[int, List[float]] = {}
        total = len(net)
        edge_iter = tqdm(range(total), desc=f"Regressing {field}", unit="edge") if progress_bar else range(total)
        for i in edge_iter:
            result = self.analyze_edge_quant(i, osa, net, ematrix, field, samples=samples,
                                             aligned_osa=aligned_osa)
            results[i] = [result.p, result.roccm]
            if callback is not None:
                callback(i + 1, total)

        return append_result_columns(net, results, [field, f"{field}_roccm"])

    def analyze_edge_diff_quant(self,
                                i: int,
                                osa: pd.DataFrame,
                                net: pd.DataFrame,
                                ematrix: pd.DataFrame,
                                field: str,
                                test_samples: Sequence[int],
                                model_samples: Optional[Sequence[int]] = None,
                                aligned_osa: Optional[pd.DataFrame] = None) -> np.ndarray:
        """
        Scores test samples against a regression model fitted on another sample group.

        The model is fitted on model_samples (or, when not given, the edge's
        own cluster). For each test sample the observed combined expression is
        placed within its prediction interval: -1 at the lower bound, 1 at the
        upper bound and 0 at the centre. Observations outside the interval
        score beyond -1 or 1.

        Args:
            i: Zero-based position of the edge in the network.
            osa: Sample annotations with a 'Sample' column.
            net: Network with Source, Target and Samples columns.
            ematrix: Expression matrix, genes as rows and samples as columns.
            field: Annotation field used as the covariate.
            test_samples: Sample indexes to score.
            model_samples: Sample indexes used to fit the model.
            aligned_osa: Annotations already aligned to the expression columns.

        Returns:
            One score per test sample, all missing when the model samples have
            fewer than two covariate values.
        """
        test_samples = np.asarray(test_samples, dtype=int)
        if test_samples.size == 0:
            raise ValueError("test_samples must contain at least one sample index.")
        if aligned_osa is None:
            self.loader.validate_annotations(osa, field)
            aligned_osa = self.loader.align_annotations(osa, ematrix)

        source = net['Source'].iloc[i]
        target = net['Target'].iloc[i]

        if model_samples is not None and len(model_samples) > 0:
            fit_samples = np.asarray(model_samples, dtype=int)
        else:
            fit_samples = get_edge_samples(i, net, n_samples=ematrix.shape[1])

        x = ematrix.loc[source].to_numpy(dtype=float)
        y = ematrix.loc[target].to_numpy(dtype=float)
        z = factor_codes(aligned_osa[field])

        if _n_levels(z[fit_samples]) < 2:
            logger.debug(f"Edge {i} ({source}-{target}): model samples have fewer than two '{field}' values.")
            return np.full(test_samples.size, np.nan)

        model = _fit(y[fit_samples] + x[fit_samples], z[fit_samples])

        obs = y[test_samples] + x[test_samples]
        design = sm.add_constant(z[test_samples], has_constant='add')
        alpha = 1 - self.config.prediction_level
        frame = model.get_prediction(design).summary_frame(alpha=alpha)
        lower = frame['obs_ci_lower'].to_numpy()
        upper = frame['obs_ci_upper'].to_numpy()
        return (obs - lower) / (upper - lower) * 2 - 1

    def analyze_network_diff_quant(self,
                                   net: pd.DataFrame,
                                   osa: pd.DataFrame,
                                   ematrix: pd.DataFrame,
                                   field: str,
                                   test_samples: Sequence[int],
                                   model_samples: Optional[Sequence[int]] = None,
                                   progress_bar: bool = False,
                                   callback: Optional[ProgressCallback] = None) -> pd.DataFrame:
        """
        Applies analyze_edge_diff_quant to every edge.

        Returns:
            Copy of the network with a '<field>-diff-<test samples>' column
            holding the median score of the test samples for each edge.
        """
        self.loader.validate_network(net, require_samples=model_samples is None or len(model_samples) == 0)
        self.loader.validate_annotations(osa, field)
        aligned_osa = self.loader.align_annotations(osa, ematrix)
        column_name = "-".join([field, 'diff', "_".join(str(s) for s in test_samples)])

        logger.info(f"Scoring {len(test_samples)} test samples on {len(net)} edges for '{field}'")

        medians: Dict[int, List[float]] = {}
        total = len(net)
        edge_iter = tqdm(range(total), desc=f"Scoring {field}", unit="edge") if progress_bar else range(total)
        for i in edge_iter:
            scores = self.analyze_edge_diff_quant(i, osa, net, ematrix, field, test_samples,
                                                  model_samples=model_samples, aligned_osa=aligned_osa)
            medians[i] = [float(np.median(scores))]
            if callback is not None:
                callback(i + 1, total)

        return append_result_columns(net, medians, [column_name])
