# network_stats/edge_clustering.py
"""
Hierarchical clustering of network edges by their sample composition.

Every edge is represented by its 0/1 sample membership vector. Pairwise
distances between those vectors are computed with scipy's pdist and merged
into a tree with scipy's linkage.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

import numpy as np
import pandas as pd
from scipy.cluster.hierarchy import fcluster, leaves_list, linkage, to_tree, ClusterNode
from scipy.spatial.distance import pdist

from .config import NetworkStatsConfig
from .edge_samples import get_sample_matrix

logger = logging.getLogger(__name__)

# R dist() names -> scipy pdist metrics
DIST_METHODS = {
    'manhattan': 'cityblock',
    'euclidean': 'euclidean',
    'maximum': 'chebyshev',
    'canberra': 'canberra',
    'binary': 'jaccard',
    'minkowski': 'minkowski',
}

# R hclust() names -> scipy linkage methods
HCLUST_METHODS = {
    'ward.D2': 'ward',
    'single': 'single',
    'complete': 'complete',
    'average': 'average',
    'mcquitty': 'weighted',
    'centroid': 'centroid',
    'median': 'median',
}


@dataclass
class EdgeTree:
    """
    Merge tree over the edges of a network.

    Attributes:
        linkage_matrix: scipy linkage matrix, one row per merge.
        labels: Row labels of the clustered edges, in input order.
        dist_method: scipy metric used for the distances.
        hclust_method: scipy linkage method used for merging.
    """
    linkage_matrix: np.ndarray
    labels: List
    dist_method: str
    hclust_method: str

    @property
    def n_leaves(self) -> int:
        return self.linkage_matrix.shape[0] + 1

    @property
    def n_merges(self) -> int:
        return self.linkage_matrix.shape[0]

    @property
    def heights(self) -> np.ndarray:
        """Linkage distance of each merge."""
        return self.linkage_matrix[:, 2]

    @property
    def leaf_order(self) -> np.ndarray:
        """Positions of the edges in dendrogram order."""
        return leaves_list(self.linkage_matrix)

    def root(self) -> ClusterNode:
        return to_tree(self.linkage_matrix)

    def cut(self, n_clusters: int) -> np.ndarray:
        """Cut the tree into n_clusters flat clusters (1-based labels)."""
        return fcluster(self.linkage_matrix, t=n_clusters, criterion='maxclust')


def resolve_dist_method(dist_method: str) -> str:
    return DIST_METHODS.get(dist_method, dist_method)


def resolve_hclust_method(hclust_method: str) -> str:
    if hclust_method == 'ward.D':
        raise ValueError("'ward.D' is not supported; use 'ward.D2' for Ward's minimum variance method.")
    method = HCLUST_METHODS.get(hclust_method, hclust_method)
    if method not in set(HCLUST_METHODS.values()):
        raise ValueError(f"Unknown linkage method: {hclust_method}")
    return method


def cluster_edges(net: pd.DataFrame,
                  dist_method: Optional[str] = None,
                  hclust_method: Optional[str] = None,
                  config: Optional[NetworkStatsConfig] = None) -> EdgeTree:
    """
    Performs hierarchical clustering of edges in a network based on their sample compositions.

    Args:
        net: Network DataFrame whose rows all carry 'Samples' strings of equal length.
        dist_method: Distance between edge sample vectors (default from config: 'manhattan').
        hclust_method: Linkage method (default from config: 'ward.D2').
        config: Optional configuration supplying the defaults.

    Returns:
        EdgeTree describing the merge tree, with exactly len(net) - 1 merges.

    Raises:
        ValueError: If the network has fewer than two edges or the methods are unknown.
    """
    config = config or NetworkStatsConfig()
    metric = resolve_dist_method(dist_method or config.dist_method)
    method = resolve_hclust_method(hclust_method or config.hclust_method)

    samples = get_sample_matrix(net)
    if samples.shape[0] < 2:
        raise ValueError("At least two edges are required for clustering.")

    logger.info(f"Clustering {samples.shape[0]} edges over {samples.shape[1]} samples "
                f"({metric} distance, {method} linkage)")
    sample_dist = pdist(samples.astype(float), metric=metric)
    tree = linkage(sample_dist, method=method)

    return EdgeTree(
        linkage_matrix=tree,
        labels=list(net.index),
        dist_method=metric,
        hclust_method=method,
    )
