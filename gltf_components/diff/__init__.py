"""Structural comparison of component schemas."""

from .lib import PropertyDiff, TypeDiff, diff_properties, diff_types

__all__ = ["PropertyDiff", "TypeDiff", "diff_properties", "diff_types"]
