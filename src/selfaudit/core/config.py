"""3-layer configuration system for selfaudit.

Loads and merges configuration from:
1. Default settings (built-in)
2. Project config (.selfaudit/config.yaml)
3. CLI parameters (override)
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Optional

import yaml

CONFIG_DIR = ".selfaudit"
CONFIG_FILE = "config.yaml"

DEFAULT_CONFIG: dict = {
    "project": {
        "name": "",
    },
    "audit": {
        "user_type": "developer",
        "catalog": "",
    },
    "analytics": {
        "mode": "deterministic",
    },
    "output": {
        "format": "markdown",
        "show_warnings": True,
    },
}


def deep_merge(base: dict, override: dict) -> dict:
    """Deep merge two dicts. Arrays are replaced, not merged."""
    result = dict(base)
    for key, value in override.items():
        base_value = result.get(key)
        if isinstance(base_value, dict) and isinstance(value, dict):
            result[key] = deep_merge(base_value, value)
        else:
            result[key] = value
    return result


def config_path_for(project_path: Path) -> Path:
    return project_path / CONFIG_DIR / CONFIG_FILE


def load_project_config(project_path: Path) -> dict:
    """Load project configuration from .selfaudit/config.yaml."""
    config_path = config_path_for(project_path)
    if not config_path.exists():
        return {}
    try:
        content = config_path.read_text(encoding="utf-8-sig")  # utf-8-sig strips BOM
        data = yaml.safe_load(content)
        return data if isinstance(data, dict) else {}
    except Exception:
        return {}


def get_effective_config(
    project_path: Path,
    cli_overrides: Optional[dict] = None,
) -> dict:
    """Get the fully resolved configuration for an audit run."""
    config = copy.deepcopy(DEFAULT_CONFIG)

    project_config = load_project_config(project_path)
    if project_config:
        config = deep_merge(config, project_config)

    if cli_overrides:
        config = deep_merge(config, cli_overrides)

    catalog = config["audit"].get("catalog")
    config["_catalog_path"] = str(project_path / catalog) if catalog else ""
    config["_project_path"] = str(project_path)

    return config


def write_default_config(project_path: Path, project_name: str = "") -> Path:
    """Write a starter .selfaudit/config.yaml; an existing file is left alone."""
    config_path = config_path_for(project_path)
    if config_path.exists():
        return config_path
    config_path.parent.mkdir(parents=True, exist_ok=True)
    data = copy.deepcopy(DEFAULT_CONFIG)
    data["project"]["name"] = project_name or project_path.resolve().name
    config_path.write_text(
        yaml.safe_dump(data, sort_keys=False, allow_unicode=True),
        encoding="utf-8",
    )
    return config_path
