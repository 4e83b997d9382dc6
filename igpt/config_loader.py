"""YAML-based per-node overrides.

Deployments that front a different gateway revision can point
``IGPT_NODES_CONFIG_PATH`` at a file like::

    defaults:
      timeout: 60
    nodes:
      lmChatiGpt:
        base_url: https://gateway.example/generativeaiinference/v5
        default_model: claude-sonnet-4
      embeddingsiGpt:
        base_url: https://gateway.example/generativeaiembedding/v3

Node entries are merged over ``defaults`` (node values win). Recognised
keys are ``base_url``, ``default_model`` and ``timeout``.
"""

from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Any

import yaml

from igpt.config import settings
from igpt.gateway.errors import ConfigurationError

logger = logging.getLogger(__name__)


def _read_yaml(path: Path) -> dict[str, Any]:
    """Read and parse the overrides file, returning the full dict."""
    if not path.exists():
        logger.warning("Node overrides file not found at %s, using built-in defaults", path)
        return {"defaults": {}, "nodes": {}}
    with open(path) as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"cannot parse {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path} must contain a mapping at the top level")
    return data


def _apply_defaults(
    node_cfg: dict[str, Any],
    defaults: dict[str, Any],
) -> dict[str, Any]:
    """Merge defaults into a node config (node values take precedence)."""
    merged = copy.deepcopy(defaults)

    for key, value in node_cfg.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value

    return merged


def load_node_overrides(path: str | Path | None = None) -> dict[str, dict[str, Any]]:
    """Load per-node overrides keyed by node name.

    Returns an empty dict when no file is configured.
    """
    if path is None:
        path = settings.nodes_config_path
    if not path:
        return {}

    data = _read_yaml(Path(path))
    defaults = data.get("defaults") or {}
    nodes_cfg = data.get("nodes") or {}

    overrides: dict[str, dict[str, Any]] = {}
    for node_name, raw_cfg in nodes_cfg.items():
        overrides[node_name] = _apply_defaults(raw_cfg or {}, defaults)
        logger.info("Loaded overrides for node '%s' from %s", node_name, path)
    return overrides
