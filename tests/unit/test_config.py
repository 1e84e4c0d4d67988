"""Tests for core/config.py."""

from __future__ import annotations

from pathlib import Path

import yaml

from selfaudit.core.config import (
    DEFAULT_CONFIG,
    deep_merge,
    get_effective_config,
    load_project_config,
    write_default_config,
)


class TestDeepMerge:
    def test_simple_merge(self):
        result = deep_merge({"a": 1, "b": 2}, {"b": 3, "c": 4})
        assert result == {"a": 1, "b": 3, "c": 4}

    def test_nested_merge(self):
        base = {"audit": {"user_type": "developer", "catalog": ""}}
        result = deep_merge(base, {"audit": {"user_type": "organization"}})
        assert result["audit"] == {"user_type": "organization", "catalog": ""}

    def test_arrays_replaced(self):
        result = deep_merge({"tags": ["a", "b"]}, {"tags": ["c"]})
        assert result["tags"] == ["c"]

    def test_base_not_mutated(self):
        base = {"a": {"b": 1}}
        deep_merge(base, {"a": {"b": 2}})
        assert base["a"]["b"] == 1


class TestLoadProjectConfig:
    def test_loads_yaml(self, initialized_project: Path):
        config = load_project_config(initialized_project)
        assert config["project"]["name"] == "test-dapp"
        assert config["audit"]["user_type"] == "organization"

    def test_missing_config(self, tmp_project: Path):
        assert load_project_config(tmp_project) == {}

    def test_corrupt_config(self, tmp_project: Path):
        sa_dir = tmp_project / ".selfaudit"
        sa_dir.mkdir()
        (sa_dir / "config.yaml").write_text("project: [unclosed\n", encoding="utf-8")
        assert load_project_config(tmp_project) == {}

    def test_non_mapping_config(self, tmp_project: Path):
        sa_dir = tmp_project / ".selfaudit"
        sa_dir.mkdir()
        (sa_dir / "config.yaml").write_text("- just\n- a list\n", encoding="utf-8")
        assert load_project_config(tmp_project) == {}

    def test_bom_stripped(self, tmp_project: Path):
        sa_dir = tmp_project / ".selfaudit"
        sa_dir.mkdir()
        (sa_dir / "config.yaml").write_bytes("\ufeffproject:\n  name: bom\n".encode("utf-8"))
        assert load_project_config(tmp_project)["project"]["name"] == "bom"


class TestGetEffectiveConfig:
    def test_defaults(self, tmp_project: Path):
        config = get_effective_config(tmp_project)
        assert config["analytics"]["mode"] == "deterministic"
        assert config["output"]["format"] == "markdown"
        assert config["audit"]["user_type"] == "developer"
        assert config["_catalog_path"] == ""
        assert config["_project_path"] == str(tmp_project)

    def test_project_layer(self, initialized_project: Path):
        config = get_effective_config(initialized_project)
        assert config["audit"]["user_type"] == "organization"
        assert config["output"]["show_warnings"] is True

    def test_cli_overrides_win(self, initialized_project: Path):
        config = get_effective_config(initialized_project, cli_overrides={"audit": {"user_type": "developer"}})
        assert config["audit"]["user_type"] == "developer"
        assert config["project"]["name"] == "test-dapp"

    def test_catalog_resolved_against_project(self, tmp_project: Path):
        config = get_effective_config(tmp_project, cli_overrides={"audit": {"catalog": "qs.yaml"}})
        assert config["_catalog_path"] == str(tmp_project / "qs.yaml")

    def test_defaults_not_mutated(self, tmp_project: Path):
        config = get_effective_config(tmp_project, cli_overrides={"output": {"format": "json"}})
        config["project"]["name"] = "changed"
        assert DEFAULT_CONFIG["output"]["format"] == "markdown"
        assert DEFAULT_CONFIG["project"]["name"] == ""


class TestWriteDefaultConfig:
    def test_creates_file(self, tmp_project: Path):
        path = write_default_config(tmp_project)
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
        assert data["project"]["name"] == "test-dapp"
        assert data["analytics"]["mode"] == "deterministic"

    def test_existing_file_kept(self, initialized_project: Path):
        path = write_default_config(initialized_project, project_name="other")
        assert "organization" in path.read_text(encoding="utf-8")
