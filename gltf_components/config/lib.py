"""Centralized environment configuration management for gltf-components.

Provides a unified interface for all environment variables with:
- Single `get_environment()` function for all configuration
- Type-safe enum with metadata (default, type, description)
- Consistent resolution: override > environment > default

Example:
    >>> from gltf_components.config import EnvVar, get_environment
    >>>
    >>> # Get values with automatic type conversion
    >>> name = get_environment(EnvVar.GLTF_EXTENSION_NAME)  # Returns str
    >>>
    >>> # Override at runtime
    >>> name = get_environment(EnvVar.GLTF_EXTENSION_NAME, override="EXT_x")
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, overload

DEFAULT_SCHEMA_PATH = Path(__file__).resolve().parent.parent / "default-config.json"

# =============================================================================
# Environment Variable Configuration
# =============================================================================


@dataclass(frozen=True)
class EnvConfig:
    """Metadata for an environment variable.

    Attributes:
        name: Environment variable name (e.g., "GLTF_EXTENSION_NAME").
        default: Default value if not set in environment.
        var_type: Python type for value conversion (str, int, bool, Path).
        description: Human-readable description.
        category: Grouping category for documentation.
    """

    name: str
    default: Any
    var_type: type
    description: str = ""
    category: str = "general"


class EnvVar(Enum):
    """All environment variables used by gltf-components.

    Each member contains an EnvConfig with name, default, type, and description.
    Use with `get_environment()` for type-safe access.

    Categories:
        - schema: Component schema document location
        - export: glTF export settings
        - logging: Log output
    """

    # -------------------------------------------------------------------------
    # Schema Document
    # -------------------------------------------------------------------------
    GLTF_COMPONENTS_CONFIG = EnvConfig(
        name="GLTF_COMPONENTS_CONFIG",
        default=None,  # Falls back to the bundled default-config.json
        var_type=Path,
        description="Path to the component schema document",
        category="schema",
    )

    # -------------------------------------------------------------------------
    # Export
    # -------------------------------------------------------------------------
    GLTF_EXTENSION_NAME = EnvConfig(
        name="GLTF_EXTENSION_NAME",
        default="MOZ_hubs_components",
        var_type=str,
        description="glTF extension that receives exported component data",
        category="export",
    )

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------
    GLTF_COMPONENTS_LOG_LEVEL = EnvConfig(
        name="GLTF_COMPONENTS_LOG_LEVEL",
        default="INFO",
        var_type=str,
        description="Log level for the command line tools",
        category="logging",
    )


# =============================================================================
# Type Conversion Helpers
# =============================================================================


def _parse_bool(value: str) -> bool | None:
    """Parse string to boolean.

    Recognizes: true/false, 1/0, yes/no (case-insensitive).
    Returns None for unrecognized values.
    """
    normalized = value.lower().strip()
    if normalized in ("true", "1", "yes"):
        return True
    if normalized in ("false", "0", "no"):
        return False
    return None


def _convert_value(value: str | None, var_type: type, default: Any) -> Any:
    """Convert string value to target type.

    Args:
        value: Raw string value from environment (or None).
        var_type: Target Python type.
        default: Default value if conversion fails or value is None.

    Returns:
        Converted value or default.
    """
    if value is None or value == "":
        return default

    if var_type is str:
        return value

    if var_type is int:
        try:
            return int(value)
        except ValueError:
            return default

    if var_type is bool:
        result = _parse_bool(value)
        return result if result is not None else default

    if var_type is Path:
        return Path(value)

    # Unknown type, return as-is
    return value


# =============================================================================
# Main Interface
# =============================================================================


@overload
def get_environment(env_var: EnvVar, override: str) -> str: ...
@overload
def get_environment(env_var: EnvVar, override: Path) -> Path: ...
@overload
def get_environment(env_var: EnvVar, override: None = None) -> Any: ...


def get_environment(env_var: EnvVar, override: Any = None) -> Any:
    """Get environment variable value with type conversion.

    Resolution priority:
        1. Explicit override parameter (highest)
        2. Environment variable value
        3. Default from EnvConfig (lowest)

    Args:
        env_var: Environment variable enum member.
        override: Optional override value (bypasses env lookup).

    Returns:
        Value converted to the appropriate type (str, int, bool, or Path).
    """
    config: EnvConfig = env_var.value

    if override is not None:
        return override

    raw_value = os.environ.get(config.name)
    return _convert_value(raw_value, config.var_type, config.default)


def get_environment_info(env_var: EnvVar) -> EnvConfig:
    """Get metadata for an environment variable."""
    return env_var.value


# =============================================================================
# Convenience Functions
# =============================================================================


def get_schema_path(override: Path | str | None = None) -> Path:
    """Get the component schema document path.

    Resolution: override > GLTF_COMPONENTS_CONFIG > bundled default-config.json
    """
    if override is not None:
        return Path(override)

    env_path = get_environment(EnvVar.GLTF_COMPONENTS_CONFIG)
    if env_path:
        return env_path

    return DEFAULT_SCHEMA_PATH


def get_extension_name(override: str | None = None) -> str:
    """Get the glTF extension name used for exported component data."""
    return get_environment(EnvVar.GLTF_EXTENSION_NAME, override=override)


def get_log_level(override: str | None = None) -> str:
    """Get the configured log level name."""
    return get_environment(EnvVar.GLTF_COMPONENTS_LOG_LEVEL, override=override)


def list_environment_variables(category: str | None = None) -> list[EnvVar]:
    """List all environment variables, optionally filtered by category.

    Args:
        category: Filter by category (schema, export, logging).
                 None returns all variables.

    Returns:
        List of EnvVar enum members.
    """
    if category is None:
        return list(EnvVar)

    return [var for var in EnvVar if var.value.category == category]


__all__ = [
    "DEFAULT_SCHEMA_PATH",
    "EnvConfig",
    "EnvVar",
    "get_environment",
    "get_environment_info",
    "get_schema_path",
    "get_extension_name",
    "get_log_level",
    "list_environment_variables",
]
