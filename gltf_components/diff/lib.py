"""Structural comparison of property declarations and type tables.

A generic deep diff cannot tell a changed kind from a changed default. This
comparator works on the declaration shapes directly and reports, for each
property present on both sides, which declaration fields changed.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from gltf_components.schema import PropertyDecl, PropertyKind, TypeDef


@dataclass
class PropertyDiff:
    """Differences between two property declaration maps.

    Attributes:
        added: Properties only present in the new map.
        removed: Properties only present in the old map.
        updated: Properties present in both, mapped to the declaration
            fields (``type``, ``arrayType``, ``default``...) that differ.
    """

    added: dict[str, PropertyDecl] = field(default_factory=dict)
    removed: dict[str, PropertyDecl] = field(default_factory=dict)
    updated: dict[str, set[str]] = field(default_factory=dict)

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.removed or self.updated)

    def kind_changed(self, name: str) -> bool:
        return "type" in self.updated.get(name, ())

    def array_type_changed(self, name: str) -> bool:
        return "arrayType" in self.updated.get(name, ())


@dataclass
class TypeDiff:
    """Differences between two composite type tables."""

    added: set[str] = field(default_factory=set)
    removed: set[str] = field(default_factory=set)
    updated: set[str] = field(default_factory=set)

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.removed or self.updated)

    @property
    def changed(self) -> set[str]:
        """Every type name that differs between the two tables."""
        return self.added | self.removed | self.updated


def _changed_fields(old: Mapping[str, Any], new: Mapping[str, Any]) -> set[str]:
    missing = object()
    return {
        key
        for key in old.keys() | new.keys()
        if old.get(key, missing) != new.get(key, missing)
    }


def diff_properties(
    old: Mapping[str, PropertyDecl] | None,
    new: Mapping[str, PropertyDecl] | None,
) -> PropertyDiff:
    """Classify property declarations as added, removed or updated.

    Args:
        old: Declarations captured earlier (e.g. an instance's frozen schema).
        new: Current declarations.

    Returns:
        PropertyDiff describing the change from ``old`` to ``new``.

    Example:
        >>> old = {"r": PropertyDecl(type="number")}
        >>> new = {"r": PropertyDecl(type="string")}
        >>> diff_properties(old, new).updated
        {'r': {'type'}}
    """
    old = old or {}
    new = new or {}
    result = PropertyDiff()

    for name, decl in new.items():
        if name not in old:
            result.added[name] = decl

    for name, decl in old.items():
        if name not in new:
            result.removed[name] = decl
            continue
        fields = _changed_fields(decl.to_dict(), new[name].to_dict())
        if PropertyKind.ARRAY not in (decl.type, new[name].type):
            # arrayType only means something on array properties.
            fields.discard("arrayType")
        if fields:
            result.updated[name] = fields

    return result


def diff_types(
    old: Mapping[str, TypeDef] | None,
    new: Mapping[str, TypeDef] | None,
) -> TypeDiff:
    """Classify composite types as added, removed or updated.

    A type counts as updated when any part of its definition differs,
    including the declarations of its properties.
    """
    old = old or {}
    new = new or {}
    result = TypeDiff(
        added=set(new) - set(old),
        removed=set(old) - set(new),
    )
    for name in set(old) & set(new):
        if old[name].to_dict() != new[name].to_dict():
            result.updated.add(name)
    return result


__all__ = ["PropertyDiff", "TypeDiff", "diff_properties", "diff_types"]
