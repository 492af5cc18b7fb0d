"""Centralized configuration management for gltf-components.

Example:
    >>> from gltf_components.config import EnvVar, get_environment
    >>>
    >>> name = get_environment(EnvVar.GLTF_EXTENSION_NAME)  # "MOZ_hubs_components"
    >>> path = get_schema_path()  # bundled default-config.json unless overridden

Environment Variable Categories:
    schema: Component schema document location
    export: glTF export settings
    logging: Log output for the command line tools
"""

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
