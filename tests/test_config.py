"""
Tests for updater.config.loader module.

Tests configuration loading and merging including:
- Built-in defaults
- YAML file loading and deep merging
- Overrides
- Storage path resolution
- Validation and error handling
"""

from __future__ import annotations

from pathlib import Path

import pytest

from updater.config import DEFAULT_CONFIG, ServiceSettings, load_config
from updater.exceptions import ConfigError


class TestConfigLoading:
    """Tests for basic configuration loading."""

    def test_defaults_without_file(self):
        """Test that load_config() returns the built-in defaults."""
        cfg = load_config()

        assert cfg == DEFAULT_CONFIG
        assert cfg is not DEFAULT_CONFIG

    def test_load_file(self, create_yaml_file):
        """Test loading a YAML file over the defaults."""
        path = create_yaml_file(
            "updater.yaml",
            {"versioning": {"prerelease_ordering": "semver"}},
        )

        cfg = load_config(path)

        assert cfg["versioning"]["prerelease_ordering"] == "semver"
        # Untouched sections keep their defaults
        assert cfg["listing"]["default_limit"] == 50
        assert cfg["storage"]["type"] == "memory"

    def test_empty_file(self, tmp_test_dir):
        """Test that an empty YAML file yields the defaults."""
        path = tmp_test_dir / "empty.yaml"
        path.write_text("")

        assert load_config(path) == DEFAULT_CONFIG

    def test_missing_file_raises(self, tmp_test_dir):
        """Test that a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_config(tmp_test_dir / "nonexistent.yaml")


class TestConfigMerging:
    """Tests for configuration merging behavior."""

    def test_dict_deep_merge(self, create_yaml_file):
        """Test that nested dicts are merged key by key."""
        path = create_yaml_file("updater.yaml", {"logging": {"verbose": True}})

        cfg = load_config(path)

        assert cfg["logging"] == {"verbose": True, "debug": False}

    def test_overrides_win_over_file(self, create_yaml_file):
        """Test that overrides are applied last."""
        path = create_yaml_file("updater.yaml", {"listing": {"default_limit": 10}})

        cfg = load_config(path, overrides={"listing": {"default_limit": 20}})

        assert cfg["listing"]["default_limit"] == 20

    def test_relative_storage_path_resolved(self, tmp_test_dir, create_yaml_file):
        """Test that storage.path is resolved against the config directory."""
        path = create_yaml_file(
            "conf/updater.yaml",
            {"storage": {"type": "json", "path": "data/catalog.json"}},
        )

        cfg = load_config(path)

        expected = (tmp_test_dir / "conf" / "data" / "catalog.json").resolve()
        assert Path(cfg["storage"]["path"]) == expected

    def test_absolute_storage_path_kept(self, tmp_test_dir, create_yaml_file):
        """Test that absolute paths are left alone."""
        target = str(tmp_test_dir / "catalog.json")
        path = create_yaml_file(
            "updater.yaml", {"storage": {"type": "json", "path": target}}
        )

        assert load_config(path)["storage"]["path"] == target


class TestConfigErrors:
    """Tests for configuration validation errors."""

    def test_invalid_yaml(self, tmp_test_dir):
        """Test that a YAML syntax error raises ConfigError."""
        path = tmp_test_dir / "bad.yaml"
        path.write_text("storage: [unclosed\n")

        with pytest.raises(ConfigError, match="Error parsing YAML"):
            load_config(path)

    def test_non_mapping_document(self, tmp_test_dir):
        """Test that a top-level list is rejected."""
        path = tmp_test_dir / "list.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ConfigError, match="must contain a YAML mapping"):
            load_config(path)

    @pytest.mark.parametrize(
        "overrides,message",
        [
            ({"storage": {"type": "redis"}}, "Unsupported storage type"),
            ({"versioning": {"prerelease_ordering": "natural"}}, "prerelease_ordering"),
            ({"listing": {"default_limit": 0}}, "default_limit"),
            ({"listing": {"default_limit": True}}, "default_limit"),
            ({"logging": "loud"}, "'logging' must be a mapping"),
        ],
    )
    def test_invalid_values(self, overrides, message):
        """Test each validated value."""
        with pytest.raises(ConfigError, match=message):
            load_config(overrides=overrides)


class TestServiceSettings:
    """Tests for ServiceSettings.from_config."""

    def test_from_config(self):
        """Test typed settings extraction."""
        cfg = load_config(
            overrides={
                "versioning": {"prerelease_ordering": "semver"},
                "listing": {"default_limit": 25},
            }
        )

        settings = ServiceSettings.from_config(cfg)

        assert settings == ServiceSettings(
            prerelease_ordering="semver", default_limit=25
        )

    def test_defaults(self):
        """Test settings for the default configuration."""
        assert ServiceSettings.from_config(load_config()) == ServiceSettings()
