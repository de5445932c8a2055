"""Tests for the clustered membership heatmaps."""

import re

import numpy as np
import pandas as pd
import pytest

from network_stats.config import NetworkStatsConfig
from network_stats.edge_clustering import cluster_edges
from network_stats.edge_samples import get_sample_matrix
from network_stats.output_generator import OutputGenerator, category_colors, sample_sort_order


@pytest.fixture
def small_figure_config():
    return NetworkStatsConfig(figure_size=(3.0, 3.0), dpi=40, progress_bar=False)


@pytest.fixture
def module_network():
    return pd.DataFrame(
        {
            "Source": ["G1", "G2", "G3", "G4"],
            "Target": ["G2", "G3", "G4", "G1"],
            "Similarity": [0.9, 0.88, -0.8, 0.75],
            "Samples": ["1100", "1110", "0011", "0111"],
        }
    )


class TestSampleSortOrder:
    def test_stable_multi_field_sort(self, group_annotations):
        order = sample_sort_order(group_annotations, ["Tissue", "Group"])
        np.testing.assert_array_equal(order, [0, 2, 1, 3])

    def test_ties_keep_original_order(self, group_annotations):
        np.testing.assert_array_equal(sample_sort_order(group_annotations, ["Group"]), [0, 1, 2, 3])

    def test_missing_values_last(self):
        osa = pd.DataFrame({"Sample": ["S1", "S2", "S3"], "Group": [None, "b", "a"]})
        np.testing.assert_array_equal(sample_sort_order(osa, ["Group"]), [2, 1, 0])

    def test_positions_not_labels(self, group_annotations):
        osa = group_annotations.set_index(pd.Index([7, 5, 3, 1]))
        np.testing.assert_array_equal(sample_sort_order(osa, ["Group"]), [0, 1, 2, 3])

    def test_unknown_field(self, group_annotations):
        with pytest.raises(KeyError):
            sample_sort_order(group_annotations, ["Batch"])

    def test_empty_field_order(self, group_annotations):
        with pytest.raises(ValueError):
            sample_sort_order(group_annotations, [])


def test_category_colors_are_hex_and_reproducible():
    first = category_colors(["a", "b", "a"], rng=np.random.default_rng(0))
    second = category_colors(["a", "b", "a"], rng=np.random.default_rng(0))
    assert list(first) == ["a", "b"]
    assert first == second
    assert all(re.fullmatch(r"#[0-9a-f]{6}", c) for c in first.values())


class TestHeatmaps:
    def test_tree_heatmap_written(self, tmp_path, small_figure_config, module_network, group_annotations):
        generator = OutputGenerator(small_figure_config)
        tree = cluster_edges(module_network)
        outfile = generator.draw_edge_tree_heatmap(get_sample_matrix(module_network), tree, group_annotations,
                                                   ["Group"], outfile_prefix=str(tmp_path / "module"),
                                                   rng=np.random.default_rng(1))
        assert outfile == tmp_path / "module.Group.png"
        assert outfile.exists()
        assert outfile.stat().st_size > 0

    def test_list_heatmap_uses_field_order_in_name(self, tmp_path, small_figure_config, module_network,
                                                   group_annotations):
        generator = OutputGenerator(small_figure_config)
        outfile = generator.draw_edge_list_heatmap([0, 1, 3], group_annotations, module_network,
                                                   ["Tissue", "Group"], outfile_prefix=str(tmp_path / "m1"))
        assert outfile.name == "m1.Tissue-Group.png"
        assert outfile.exists()

    def test_grid_returned_without_prefix(self, small_figure_config, module_network, group_annotations):
        import matplotlib.pyplot as plt

        grid = OutputGenerator(small_figure_config).draw_edge_list_heatmap(
            [0, 1, 2, 3], group_annotations, module_network, ["Group"]
        )
        assert grid.dendrogram_row is not None
        assert len(grid.dendrogram_row.reordered_ind) == 4
        plt.close(grid.figure)

    def test_row_count_must_match_tree(self, small_figure_config, module_network, group_annotations):
        tree = cluster_edges(module_network)
        matrix = get_sample_matrix(module_network.iloc[:3])
        with pytest.raises(ValueError, match="leaves"):
            OutputGenerator(small_figure_config).draw_edge_tree_heatmap(matrix, tree, group_annotations, ["Group"])

    def test_annotations_must_match_samples(self, small_figure_config, module_network, group_annotations):
        tree = cluster_edges(module_network)
        with pytest.raises(ValueError, match="annotations"):
            OutputGenerator(small_figure_config).draw_edge_tree_heatmap(
                get_sample_matrix(module_network), tree, group_annotations.iloc[:3], ["Group"]
            )
