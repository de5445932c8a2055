"""Tests for configuration loading and result assembly helpers."""

import logging

import numpy as np
import pandas as pd
import pytest

from network_stats.config import NetworkStatsConfig
from network_stats.data_loader import DataLoader
from network_stats.utils import append_result_columns, create_config, load_config_file


def test_config_defaults():
    config = NetworkStatsConfig()
    assert config.dist_method == "manhattan"
    assert config.hclust_method == "ward.D2"
    assert config.test == "fishers"
    assert config.correction_method == "hochberg"
    assert config.binomial_conf_level == 0.99
    assert config.joint_correction is False


def test_create_config_overrides():
    config = create_config(test="binomial", dpi=72)
    assert config.test == "binomial"
    assert config.dpi == 72


def test_load_config_sections(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "clustering:\n"
        "  dist_method: euclidean\n"
        "  hclust_method: complete\n"
        "testing:\n"
        "  correction_method: BH\n"
        "heatmap:\n"
        "  figure_size: [4, 8]\n"
        "verbose: true\n"
    )
    config = load_config_file(str(path))
    assert config.dist_method == "euclidean"
    assert config.hclust_method == "complete"
    assert config.correction_method == "BH"
    assert config.figure_size == (4, 8)
    assert config.verbose is True


def test_unknown_keys_warn(tmp_path, caplog):
    path = tmp_path / "config.yaml"
    path.write_text("processing:\n  n_jobs: 4\n")
    with caplog.at_level(logging.WARNING, logger="network_stats.utils"):
        config = load_config_file(str(path))
    assert "Unknown configuration parameter: n_jobs" in caplog.text
    assert not hasattr(config, "n_jobs")


def test_empty_config_file(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert load_config_file(str(path)) == NetworkStatsConfig()


class TestAppendResultColumns:
    def test_columns_follow_network(self):
        net = pd.DataFrame({"Source": ["a", "b"], "Target": ["c", "d"]}, index=[10, 11])
        result = append_result_columns(net, {0: [0.1, 1.0], 1: [0.2, 2.0]}, ["p", "slope"])
        assert list(result.columns) == ["Source", "Target", "p", "slope"]
        assert list(result.index) == [10, 11]
        np.testing.assert_allclose(result["p"], [0.1, 0.2])
        assert "p" not in net.columns

    def test_missing_results_are_nan(self):
        net = pd.DataFrame({"Source": ["a", "b"]})
        result = append_result_columns(net, {1: [0.5]}, ["p"])
        assert np.isnan(result["p"].iloc[0])
        assert result["p"].iloc[1] == 0.5


class TestDataLoader:
    def test_missing_network_columns(self):
        with pytest.raises(KeyError, match="Similarity"):
            DataLoader().validate_network(pd.DataFrame({"Source": [], "Target": []}))

    def test_align_annotations_by_name(self, group_annotations, four_sample_ematrix):
        shuffled = group_annotations.iloc[[2, 0, 3, 1]]
        aligned = DataLoader().align_annotations(shuffled, four_sample_ematrix)
        assert list(aligned.index) == ["S1", "S2", "S3", "S4"]
        assert list(aligned["Group"]) == ["A", "A", "B", "B"]

    def test_duplicates_keep_first(self, four_sample_ematrix, caplog):
        osa = pd.DataFrame({"Sample": ["S1", "S1", "S2"], "Group": ["A", "B", "A"]})
        with caplog.at_level(logging.WARNING, logger="network_stats.data_loader"):
            aligned = DataLoader().align_annotations(osa, four_sample_ematrix)
        assert "duplicate" in caplog.text
        assert aligned.loc["S1", "Group"] == "A"
        assert pd.isna(aligned.loc["S3", "Group"])

    def test_sample_index_out_of_range(self, four_sample_ematrix):
        with pytest.raises(ValueError):
            DataLoader().sample_names(four_sample_ematrix, [0, 4])
