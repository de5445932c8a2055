# network_stats/statistical_validation.py
"""
Statistical Validator module for network_stats.
Implements significance testing of edge sample clusters against sample annotations:
1. 2x2 contingency tables of cluster membership versus annotation category
2. Fisher's exact test for category enrichment within a cluster
3. Exact binomial test for category uniqueness within a cluster
4. Multiple testing corrections (Bonferroni, Holm, Hochberg, Hommel, BH, BY)

The correction helper follows the semantics of R's p.adjust, including the
number-of-comparisons argument, so a single p-value can be adjusted against
the number of categories tested in an annotation field.
"""

import logging
from typing import Dict, Iterable, Optional, Sequence

import numpy as np
import pandas as pd
from scipy.stats import binomtest, fisher_exact
from statsmodels.stats.multitest import multipletests

from .config import NetworkStatsConfig
from .data_loader import DataLoader

logger = logging.getLogger(__name__)

# p.adjust method names -> statsmodels multipletests methods (None = no adjustment)
CORRECTION_METHODS: Dict[str, Optional[str]] = {
    'bonferroni': 'bonferroni',
    'holm': 'holm',
    'hochberg': 'simes-hochberg',
    'hommel': 'hommel',
    'BH': 'fdr_bh',
    'fdr': 'fdr_bh',
    'BY': 'fdr_by',
    'none': None,
    'simes-hochberg': 'simes-hochberg',
    'fdr_bh': 'fdr_bh',
    'fdr_by': 'fdr_by',
}

ALTERNATIVES = {
    'two.sided': 'two-sided',
    'two-sided': 'two-sided',
    't': 'two-sided',
    'greater': 'greater',
    'g': 'greater',
    'less': 'less',
    'l': 'less',
}

TESTS = ('fishers', 'binomial')


def resolve_alternative(alternative: str) -> str:
    """Map an alternative hypothesis name (or its initial letter) to scipy's spelling."""
    try:
        return ALTERNATIVES[alternative]
    except KeyError:
        raise ValueError(
            f"Unknown alternative '{alternative}'; expected 'two.sided', 'greater' or 'less'."
        ) from None


def adjust_pvalues(pvalues: Iterable[float],
                   method: str = 'hochberg',
                   n: Optional[int] = None) -> np.ndarray:
    """
    Adjust p-values for multiple comparisons.

    Missing p-values are kept missing and do not count as comparisons. When
    n is larger than the number of p-values, the remaining n - len(pvalues)
    comparisons are treated as p-values of 1, which matches R's p.adjust for
    every supported method.

    Args:
        pvalues: P-values to adjust.
        method: Correction method, 'bonferroni', 'holm', 'hochberg', 'hommel',
            'BH' (or 'fdr'), 'BY' or 'none'. statsmodels names are accepted too.
        n: Number of comparisons (default: number of non-missing p-values).

    Returns:
        Array of adjusted p-values in the input order.

    Raises:
        ValueError: If the method is unknown or n is smaller than the number
            of non-missing p-values.
    """
    if method not in CORRECTION_METHODS:
        raise ValueError(f"Unknown correction method '{method}'. "
                         f"Valid methods: {sorted(CORRECTION_METHODS)}")

    p = np.asarray(list(pvalues), dtype=float).ravel()
    valid = ~np.isnan(p)
    n_valid = int(valid.sum())
    n = n_valid if n is None else int(n)
    if n < n_valid:
        raise ValueError(f"Number of comparisons ({n}) is smaller than the number of p-values ({n_valid}).")

    adjusted = p.copy()
    sm_method = CORRECTION_METHODS[method]
    if sm_method is None or n_valid == 0:
        return adjusted

    padded = np.concatenate([p[valid], np.ones(n - n_valid)])
    _, corrected, _, _ = multipletests(padded, method=sm_method)
    adjusted[valid] = corrected[:n_valid]
    return adjusted


class StatisticalValidator:
    """
    Significance testing of edge sample clusters against annotation categories.

    Two interchangeable tests are available:
    - Enrichment ('fishers'): Fisher's exact test on the cluster/category
      contingency table. Reports whether the category is over-represented in
      the cluster relative to the remaining samples.
    - Uniqueness ('binomial'): exact binomial test of the number of cluster
      samples in the category, with the category's global frequency as the
      success probability.
    """

    def __init__(self, config: Optional[NetworkStatsConfig] = None):
        """
        Initialize the StatisticalValidator.

        Args:
            config: Configuration object supplying the default correction
                method, test directions and binomial confidence level.
        """
        self.config = config or NetworkStatsConfig()
        self.loader = DataLoader()

    def categories(self, osa: pd.DataFrame, field: str) -> np.ndarray:
        """Distinct non-missing values of an annotation field, in order of appearance."""
        self.loader.validate_annotations(osa, field)
        return osa[field].dropna().unique()

    def contingency_table(self,
                          category,
                          field: str,
                          osa: pd.DataFrame,
                          ematrix: pd.DataFrame,
                          cluster_samples: Sequence[int]) -> pd.DataFrame:
        """
        Build the contingency table of one category within a cluster.

                           Is Cat   Not Cat
                          -------------------
          In Cluster      |  n11   |   n12   |
          Not in Cluster  |  n21   |   n22   |
                          -------------------

        Samples whose annotation is missing are counted in neither column.

        Args:
            category: The annotation category to count.
            field: The annotation field holding the category.
            osa: Sample annotations with a 'Sample' column.
            ematrix: Expression matrix; its column names identify the samples.
            cluster_samples: Zero-based expression column positions of the cluster.

        Returns:
            2x2 DataFrame indexed by In_Cluster (Yes/No) with Is_Category (Yes/No) columns.
        """
        self.loader.validate_annotations(osa, field)
        names = self.loader.sample_names(ematrix, cluster_samples)

        in_cluster = osa['Sample'].isin(names).to_numpy()
        values = osa[field]
        is_cat = (values == category).to_numpy()
        not_cat = (values.notna() & (values != category)).to_numpy()

        table = pd.DataFrame(
            [[int((in_cluster & is_cat).sum()), int((in_cluster & not_cat).sum())],
             [int((~in_cluster & is_cat).sum()), int((~in_cluster & not_cat).sum())]],
            index=pd.Index(['Yes', 'No'], name='In_Cluster'),
            columns=pd.Index(['Yes', 'No'], name='Is_Category'),
        )
        return table

    def fisher_test(self,
                    category,
                    field: str,
                    osa: pd.DataFrame,
                    ematrix: pd.DataFrame,
                    cluster_samples: Sequence[int],
                    correction: Optional[str] = None,
                    alternative: Optional[str] = None,
                    n_tests: Optional[int] = None,
                    verbose: Optional[bool] = None) -> float:
        """
        Performs a Fisher's exact test on a set of samples.

        This test reports if the category is enriched within the cluster. It
        does not indicate if the category is significantly more prominent in
        the cluster; for that, use binomial_test.

        Args:
            category: The annotation category to test.
            field: The annotation field holding the category.
            osa: Sample annotations with a 'Sample' column.
            ematrix: Expression matrix; its column names identify the samples.
            cluster_samples: Zero-based expression column positions of the cluster.
            correction: Multiple testing correction (default from config: 'hochberg').
            alternative: 'two.sided', 'greater' or 'less' (default from config: 'greater').
            n_tests: Number of comparisons for the correction (default: number
                of categories in the field).
            verbose: Log the contingency table and raw result.

        Returns:
            The adjusted p-value.
        """
        correction = correction or self.config.correction_method
        alternative = resolve_alternative(alternative or self.config.fisher_alternative)
        verbose = self.config.verbose if verbose is None else verbose

        table = self.contingency_table(category, field, osa, ematrix, cluster_samples)
        odds_ratio, p_value = fisher_exact(table.to_numpy(), alternative=alternative)
        if verbose:
            logger.info(f"{category}\n{table}")
            logger.info(f"Fisher's exact test: odds ratio={odds_ratio}, p-value={p_value} ({alternative})")

        if n_tests is None:
            n_tests = len(self.categories(osa, field))
        return float(adjust_pvalues([p_value], method=correction, n=max(n_tests, 1))[0])

    def binomial_test(self,
                      category,
                      field: str,
                      osa: pd.DataFrame,
                      ematrix: pd.DataFrame,
                      cluster_samples: Sequence[int],
                      correction: Optional[str] = None,
                      alternative: Optional[str] = None,
                      n_tests: Optional[int] = None,
                      verbose: Optional[bool] = None) -> float:
        """
        Performs a binomial test on an edge sample cluster.

        The number of cluster samples annotated with the category is tested
        against the category's frequency across the whole annotation table.
        With the default 'less' alternative a small p-value means the category
        is rarer in the cluster than in the background.

        Args:
            category: The annotation category to test.
            field: The annotation field holding the category.
            osa: Sample annotations with a 'Sample' column.
            ematrix: Expression matrix; its column names identify the samples.
            cluster_samples: Zero-based expression column positions of the cluster.
            correction: Multiple testing correction (default from config: 'hochberg').
            alternative: 'two.sided', 'greater' or 'less' (default from config: 'less').
            n_tests: Number of comparisons for the correction (default: 1, so
                the p-value is only clipped to [0, 1]; pass the number of
                categories to adjust across the field).
            verbose: Log the raw result.

        Returns:
            The adjusted p-value, or NaN when the cluster has no annotated samples.
        """
        correction = correction or self.config.correction_method
        alternative = resolve_alternative(alternative or self.config.binomial_alternative)
        verbose = self.config.verbose if verbose is None else verbose

        table = self.contingency_table(category, field, osa, ematrix, cluster_samples)
        successes = int(table.loc['Yes', 'Yes'])
        failures = int(table.loc['Yes', 'No'])
        if successes + failures == 0:
            logger.warning(f"Binomial test for {field}={category}: cluster has no annotated samples; "
                           f"reporting a missing p-value.")
            return np.nan

        values = osa[field]
        prob_of_success = float((values == category).sum()) / len(values)

        res = binomtest(successes, successes + failures, p=prob_of_success, alternative=alternative)
        ci = res.proportion_ci(confidence_level=self.config.binomial_conf_level)
        logger.debug(f"Binomial test for {field}={category}: {successes}/{successes + failures}, "
                     f"p0={prob_of_success:.4f}, CI=({ci.low:.4f}, {ci.high:.4f})")
        if verbose:
            logger.info(f"{category}: {res}")

        if n_tests is None:
            n_tests = 1
        return float(adjust_pvalues([res.pvalue], method=correction, n=max(n_tests, 1))[0])

    def test_category(self,
                      category,
                      field: str,
                      osa: pd.DataFrame,
                      ematrix: pd.DataFrame,
                      cluster_samples: Sequence[int],
                      test: Optional[str] = None,
                      correction: Optional[str] = None,
                      alternative: Optional[str] = None,
                      n_tests: Optional[int] = None,
                      verbose: Optional[bool] = None) -> float:
        """Dispatch to fisher_test or binomial_test according to test."""
        test = test or self.config.test
        if test == 'fishers':
            return self.fisher_test(category, field, osa, ematrix, cluster_samples,
                                    correction=correction, alternative=alternative,
                                    n_tests=n_tests, verbose=verbose)
        if test == 'binomial':
            return self.binomial_test(category, field, osa, ematrix, cluster_samples,
                                      correction=correction, alternative=alternative,
                                      n_tests=n_tests, verbose=verbose)
        raise ValueError(f"Unknown test '{test}'; expected one of {TESTS}.")
