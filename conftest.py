"""Root pytest configuration and fixtures.

This module provides:
- Environment isolation for the GLTF_* configuration variables
- Schema document and scene file factories
- Global test configuration
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import pytest

from gltf_components.config import EnvVar
from gltf_components.schema import SchemaDocument

# =============================================================================
# Environment
# =============================================================================


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove configuration variables so every test sees the defaults."""
    for env_var in EnvVar:
        monkeypatch.delenv(env_var.value.name, raising=False)


# =============================================================================
# Common Test Fixtures
# =============================================================================


@pytest.fixture
def make_schema() -> Callable[..., SchemaDocument]:
    """Factory building a SchemaDocument from component and type dicts.

    Example:
        >>> schema = make_schema({"light": {"properties": {}}})
    """

    def _make(
        components: dict[str, Any] | None = None,
        types: dict[str, Any] | None = None,
    ) -> SchemaDocument:
        return SchemaDocument(
            json.dumps({"components": components or {}, "types": types or {}})
        )

    return _make


@pytest.fixture
def default_schema() -> SchemaDocument:
    """The bundled default-config.json document."""
    return SchemaDocument()


@pytest.fixture
def write_json(tmp_path: Path) -> Callable[[str, Any], Path]:
    """Factory writing a JSON file under the test's tmp_path."""

    def _write(name: str, data: Any) -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        return path

    return _write
