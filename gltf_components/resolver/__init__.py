"""Composite type dependency resolution."""

from .lib import resolve_component_types, resolve_dependent_types

__all__ = ["resolve_dependent_types", "resolve_component_types"]
