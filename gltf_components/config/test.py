"""Tests for configuration management."""

from pathlib import Path

import pytest

from .lib import (
    DEFAULT_SCHEMA_PATH,
    EnvConfig,
    EnvVar,
    get_environment,
    get_environment_info,
    get_extension_name,
    get_log_level,
    get_schema_path,
    list_environment_variables,
)


class TestGetEnvironment:
    """Tests for the unified get_environment interface."""

    @pytest.mark.unit
    def test_returns_default_when_not_set(self, monkeypatch):
        """Returns default value when env var is not set."""
        monkeypatch.delenv("GLTF_EXTENSION_NAME", raising=False)
        assert get_environment(EnvVar.GLTF_EXTENSION_NAME) == "MOZ_hubs_components"

    @pytest.mark.unit
    def test_override_takes_priority(self, monkeypatch):
        """Override parameter takes highest priority."""
        monkeypatch.setenv("GLTF_EXTENSION_NAME", "EXT_from_env")
        result = get_environment(EnvVar.GLTF_EXTENSION_NAME, override="EXT_override")
        assert result == "EXT_override"

    @pytest.mark.unit
    def test_env_var_overrides_default(self, monkeypatch):
        """Environment variable overrides default value."""
        monkeypatch.setenv("GLTF_EXTENSION_NAME", "EXT_from_env")
        assert get_environment(EnvVar.GLTF_EXTENSION_NAME) == "EXT_from_env"

    @pytest.mark.unit
    def test_empty_value_uses_default(self, monkeypatch):
        """Empty environment values are treated as unset."""
        monkeypatch.setenv("GLTF_COMPONENTS_LOG_LEVEL", "")
        assert get_environment(EnvVar.GLTF_COMPONENTS_LOG_LEVEL) == "INFO"

    @pytest.mark.unit
    def test_path_type_conversion(self, monkeypatch, tmp_path):
        """Path variables are converted from strings."""
        monkeypatch.setenv("GLTF_COMPONENTS_CONFIG", str(tmp_path / "c.json"))
        result = get_environment(EnvVar.GLTF_COMPONENTS_CONFIG)
        assert isinstance(result, Path)
        assert result.name == "c.json"


class TestConvenienceFunctions:
    """Tests for schema path, extension name and log level helpers."""

    @pytest.mark.unit
    def test_schema_path_defaults_to_bundled_document(self, monkeypatch):
        monkeypatch.delenv("GLTF_COMPONENTS_CONFIG", raising=False)
        assert get_schema_path() == DEFAULT_SCHEMA_PATH
        assert DEFAULT_SCHEMA_PATH.exists()

    @pytest.mark.unit
    def test_schema_path_override(self, monkeypatch):
        monkeypatch.setenv("GLTF_COMPONENTS_CONFIG", "/from/env.json")
        assert get_schema_path("other.json") == Path("other.json")
        assert get_schema_path() == Path("/from/env.json")

    @pytest.mark.unit
    def test_extension_name(self, monkeypatch):
        monkeypatch.delenv("GLTF_EXTENSION_NAME", raising=False)
        assert get_extension_name() == "MOZ_hubs_components"
        assert get_extension_name("EXT_test") == "EXT_test"

    @pytest.mark.unit
    def test_log_level(self, monkeypatch):
        monkeypatch.setenv("GLTF_COMPONENTS_LOG_LEVEL", "DEBUG")
        assert get_log_level() == "DEBUG"


class TestIntrospection:
    """Tests for environment variable metadata."""

    @pytest.mark.unit
    def test_info_is_env_config(self):
        info = get_environment_info(EnvVar.GLTF_EXTENSION_NAME)
        assert isinstance(info, EnvConfig)
        assert info.name == "GLTF_EXTENSION_NAME"
        assert info.description

    @pytest.mark.unit
    def test_list_by_category(self):
        export_vars = list_environment_variables("export")
        assert export_vars == [EnvVar.GLTF_EXTENSION_NAME]
        assert len(list_environment_variables()) == len(EnvVar)

    @pytest.mark.unit
    def test_all_names_match_members(self):
        for var in EnvVar:
            assert var.value.name == var.name
