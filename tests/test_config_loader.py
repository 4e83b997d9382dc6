"""Tests for igpt.config_loader."""

from __future__ import annotations

import pytest

from igpt.config_loader import load_node_overrides
from igpt.gateway import ConfigurationError


def test_no_path_means_no_overrides():
    assert load_node_overrides("") == {}


def test_missing_file_means_no_overrides(tmp_path):
    assert load_node_overrides(tmp_path / "absent.yaml") == {}


def test_node_values_win_over_defaults(tmp_path):
    path = tmp_path / "nodes.yaml"
    path.write_text(
        "defaults:\n"
        "  timeout: 60\n"
        "  base_url: https://default.example\n"
        "nodes:\n"
        "  lmChatiGpt:\n"
        "    base_url: https://chat.example/v5\n"
        "  embeddingsiGpt:\n"
    )

    overrides = load_node_overrides(path)

    assert overrides["lmChatiGpt"] == {"timeout": 60, "base_url": "https://chat.example/v5"}
    assert overrides["embeddingsiGpt"] == {"timeout": 60, "base_url": "https://default.example"}


def test_invalid_yaml_is_a_configuration_error(tmp_path):
    path = tmp_path / "nodes.yaml"
    path.write_text("nodes: [unclosed\n")

    with pytest.raises(ConfigurationError):
        load_node_overrides(path)


def test_top_level_must_be_a_mapping(tmp_path):
    path = tmp_path / "nodes.yaml"
    path.write_text("- just\n- a list\n")

    with pytest.raises(ConfigurationError):
        load_node_overrides(path)
