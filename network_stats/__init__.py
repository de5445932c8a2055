# network_stats/__init__.py
"""
network_stats: statistical post-processing of gene co-expression networks

Edges produced by a network-construction tool carry the subset of samples
that support them. This package clusters edges by those sample subsets, tests
each edge's samples for enrichment of annotation categories, associates edges
with quantitative traits by linear regression, and draws clustered membership
heatmaps.
"""

from .config import NetworkStatsConfig
from .edge_clustering import EdgeTree, cluster_edges
from .edge_samples import decode_sample_string, get_edge_samples, get_sample_matrix
from .network_annotator import NetworkAnnotator, analyze_network_categories
from .output_generator import OutputGenerator
from .quantitative import EdgeQuantResult, QuantitativeAnalyzer
from .statistical_validation import StatisticalValidator, adjust_pvalues
from .utils import create_config, load_config_file

__version__ = "0.1.0"
