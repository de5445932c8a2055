# network_stats/output_generator.py
"""
Heatmap output for network_stats.

Draws the edge x sample membership matrix with the edge dendrogram on the
rows, samples reordered by one or more annotation fields, and a colour strip
marking each sample's category in the first sort field.
"""

import logging
from pathlib import Path
from typing import Dict, Iterable, Optional, Sequence, Union

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns
from matplotlib.colors import ListedColormap
from seaborn.matrix import ClusterGrid

from .config import NetworkStatsConfig
from .edge_clustering import EdgeTree, cluster_edges
from .edge_samples import get_sample_matrix

logger = logging.getLogger(__name__)


def sample_sort_order(osa: pd.DataFrame, field_order: Sequence[str]) -> np.ndarray:
    """
    Order samples by the given annotation fields.

    Sorting is by the first field, then the second, and so on. Ties keep the
    original sample order and missing values go last.

    Returns:
        Zero-based row positions of osa in sorted order.
    """
    field_order = list(field_order)
    if not field_order:
        raise ValueError("At least one annotation field is required for sorting.")
    missing = [f for f in field_order if f not in osa.columns]
    if missing:
        raise KeyError(f"Annotation fields not found: {missing}")

    positioned = osa[field_order].reset_index(drop=True)
    ordered = positioned.sort_values(field_order, kind='mergesort', na_position='last')
    return ordered.index.to_numpy()


def category_colors(categories: Iterable, rng: Optional[np.random.Generator] = None) -> Dict[str, str]:
    """Assign a random RGB colour to each distinct category."""
    rng = rng or np.random.default_rng()
    colors = {}
    for category in pd.unique(pd.Series(list(categories), dtype=object)):
        r, g, b = (int(v) for v in rng.integers(0, 256, size=3))
        colors[category] = f"#{r:02x}{g:02x}{b:02x}"
    return colors


class OutputGenerator:
    """Renders clustered sample membership heatmaps."""

    def __init__(self, config: Optional[NetworkStatsConfig] = None):
        self.config = config or NetworkStatsConfig()

    def draw_edge_tree_heatmap(self,
                               sample_matrix: np.ndarray,
                               tree: EdgeTree,
                               osa: pd.DataFrame,
                               field_order: Sequence[str],
                               outfile_prefix: Optional[str] = None,
                               rng: Optional[np.random.Generator] = None) -> Union[Path, ClusterGrid]:
        """
        Draws a heatmap with dendrogram with clusters identified.

        Args:
            sample_matrix: Edge x sample 0/1 matrix from get_sample_matrix().
            tree: EdgeTree for the same edges, from cluster_edges().
            osa: Sample annotations, one row per matrix column in the same order.
            field_order: Annotation fields used to reorder the samples.
            outfile_prefix: Prefix of the output image. When not given, the
                figure is left open on the current matplotlib figure manager.
            rng: Random generator for the category colours.

        Returns:
            Path of the written image, or the seaborn ClusterGrid when no
            prefix was given.
        """
        sample_matrix = np.asarray(sample_matrix)
        outfile_prefix = outfile_prefix or self.config.outfile_prefix
        if sample_matrix.shape[0] != tree.n_leaves:
            raise ValueError(
                f"Sample matrix has {sample_matrix.shape[0]} rows but the tree has {tree.n_leaves} leaves."
            )
        if sample_matrix.shape[1] != len(osa):
            raise ValueError(
                f"Sample matrix has {sample_matrix.shape[1]} samples but {len(osa)} annotations were given."
            )

        # Reorder samples according to the field order
        sample_order = sample_sort_order(osa, field_order)
        ordered = pd.DataFrame(sample_matrix[:, sample_order])

        categories = osa[field_order[0]].astype(str).reset_index(drop=True)
        colors = category_colors(categories, rng=rng)
        col_colors = [colors[c] for c in categories.iloc[sample_order]]

        grid = sns.clustermap(
            ordered,
            row_linkage=tree.linkage_matrix,
            col_cluster=False,
            cmap=ListedColormap(self.config.membership_colors),
            vmin=0,
            vmax=1,
            col_colors=col_colors,
            xticklabels=False,
            yticklabels=False,
            figsize=self.config.figure_size,
            cbar_pos=None,
        )
        grid.ax_col_dendrogram.set_visible(False)

        if not outfile_prefix:
            return grid

        outfile = Path(f"{outfile_prefix}.{'-'.join(field_order)}.png")
        outfile.parent.mkdir(parents=True, exist_ok=True)
        grid.savefig(outfile, dpi=self.config.dpi, bbox_inches='tight')
        plt.close(grid.figure)
        logger.info(f"Saved edge heatmap to: {outfile}")
        return outfile

    def draw_edge_list_heatmap(self,
                               edge_indexes: Sequence[int],
                               osa: pd.DataFrame,
                               net: pd.DataFrame,
                               field_order: Sequence[str],
                               outfile_prefix: Optional[str] = None,
                               rng: Optional[np.random.Generator] = None) -> Union[Path, ClusterGrid]:
        """
        Draws a heatmap with dendrogram of a module in the network.

        Args:
            edge_indexes: Zero-based positions of the module's edges.
            osa: Sample annotations, one row per sample in sample string order.
            net: Network with a Samples column.
            field_order: Annotation fields used to reorder the samples.
            outfile_prefix: Prefix of the output image.
            rng: Random generator for the category colours.
        """
        module = net.iloc[list(edge_indexes)]
        tree = cluster_edges(module, config=self.config)
        sample_matrix = get_sample_matrix(module)
        return self.draw_edge_tree_heatmap(sample_matrix, tree, osa, field_order,
                                           outfile_prefix=outfile_prefix, rng=rng)
