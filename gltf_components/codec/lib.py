"""Property codec: defaults, serialization and casting of component values.

Every operation is driven by a property declaration and, for array
properties, the resolved composite type closure. Functions return new values
and never mutate their inputs.

Document representation per kind:
    number/integer/string/boolean: JSON scalar
    color: ``[r, g, b]`` (0..1 floats)
    vec2/vec3/vec4: ``{"x": .., "y": .., ...}``
    nodeRef: ``{"uuid": .., "objectName": ..}``
    array: list of objects keyed by the composite type's property names
"""

import copy
import logging
import math
from collections.abc import Mapping
from typing import Any

from gltf_components.schema import (
    VECTOR_AXES,
    CodecError,
    MalformedTypeDefinition,
    MissingTypeDefinition,
    PropertyDecl,
    PropertyKind,
    TypeDef,
)

from .values import Color, NodeRef

logger = logging.getLogger(__name__)

Types = Mapping[str, TypeDef]

_ZERO_VALUES: dict[PropertyKind, Any] = {
    PropertyKind.NUMBER: 0,
    PropertyKind.INTEGER: 0,
    PropertyKind.STRING: "",
    PropertyKind.BOOLEAN: False,
}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def element_properties(type_name: str, types: Types) -> dict[str, PropertyDecl]:
    """Property declarations of a composite type."""
    type_def = types.get(type_name)
    if type_def is None:
        raise MissingTypeDefinition(
            f'Missing type definition for arrayType "{type_name}"',
            type_name=type_name,
        )
    if type_def.properties is None:
        raise MalformedTypeDefinition(
            f'No "properties" entry for type "{type_name}"',
            type_name=type_name,
        )
    return type_def.properties


# =============================================================================
# Defaults
# =============================================================================


def _zero_value(decl: PropertyDecl) -> Any:
    if decl.type == PropertyKind.COLOR:
        return Color()
    if decl.type in VECTOR_AXES:
        return {axis: 0 for axis in VECTOR_AXES[decl.type]}
    return _ZERO_VALUES[decl.type]


def default_for(decl: PropertyDecl) -> Any:
    """Default value for a property declaration.

    A declared ``default`` is used when present, decoded for the property's
    kind. Otherwise, or when the declared default does not fit the kind, the
    kind's zero value: ``0``, ``""``, ``False``, white, zero vectors. Arrays
    always default to an empty list and node references to an unset
    reference.
    """
    if decl.type == PropertyKind.ARRAY:
        return []
    if decl.type == PropertyKind.NODE_REF:
        return NodeRef()
    if decl.has_default and decl.declared_default is not None:
        try:
            return deserialize(copy.deepcopy(decl.declared_default), decl, {})
        except CodecError as e:
            logger.warning(
                "Ignoring default %r for %s property: %s",
                decl.declared_default,
                decl.type.value,
                e,
            )
    return _zero_value(decl)


def default_element(type_name: str, types: Types) -> dict[str, Any]:
    """A new composite value with every property of the type defaulted."""
    properties = element_properties(type_name, types)
    return {name: default_for(decl) for name, decl in properties.items()}


# =============================================================================
# Serialization
# =============================================================================


def serialize(value: Any, decl: PropertyDecl, types: Types) -> Any:
    """Convert an in-memory value to its document representation.

    Node references serialize to their ``{uuid, objectName}`` pair; they are
    only rewritten to glTF addressing by the export adapter.
    """
    kind = decl.type

    if kind == PropertyKind.COLOR:
        return Color.from_value(value).to_list()
    if kind in VECTOR_AXES:
        return dict(value)
    if kind == PropertyKind.NODE_REF:
        ref = value if isinstance(value, NodeRef) else NodeRef.from_dict(value)
        return ref.to_dict()
    if kind == PropertyKind.ARRAY:
        properties = element_properties(decl.array_type, types)
        return [_serialize_element(item, properties, types) for item in value]
    return value


def _serialize_element(
    item: Mapping[str, Any], properties: Mapping[str, PropertyDecl], types: Types
) -> dict[str, Any]:
    return {
        name: serialize(item[name], prop_decl, types)
        for name, prop_decl in properties.items()
        if name in item
    }


def deserialize(value: Any, decl: PropertyDecl, types: Types) -> Any:
    """Convert a document value back to its in-memory representation.

    Raises:
        CodecError: The value does not fit the declared kind.
        MissingTypeDefinition: An array's composite type is not in ``types``.
    """
    kind = decl.type

    if kind in (PropertyKind.NUMBER, PropertyKind.INTEGER):
        if not _is_number(value):
            raise CodecError(f"Expected a number, got: {value!r}")
        return value
    if kind == PropertyKind.STRING:
        if not isinstance(value, str):
            raise CodecError(f"Expected a string, got: {value!r}")
        return value
    if kind == PropertyKind.BOOLEAN:
        if not isinstance(value, bool):
            raise CodecError(f"Expected a boolean, got: {value!r}")
        return value
    if kind == PropertyKind.COLOR:
        return Color.from_value(value)
    if kind in VECTOR_AXES:
        axes = VECTOR_AXES[kind]
        if not isinstance(value, dict) or not all(
            _is_number(value.get(axis)) for axis in axes
        ):
            raise CodecError(f"Expected a {kind.value} object, got: {value!r}")
        return {axis: value[axis] for axis in axes}
    if kind == PropertyKind.NODE_REF:
        return NodeRef.from_dict(value)

    properties = element_properties(decl.array_type, types)
    if not isinstance(value, list):
        raise CodecError(f'Expected a list of "{decl.array_type}", got: {value!r}')
    result = []
    for item in value:
        if not isinstance(item, dict):
            raise CodecError(f'Expected a "{decl.array_type}" object, got: {item!r}')
        result.append(
            {
                name: deserialize(item[name], prop_decl, types)
                for name, prop_decl in properties.items()
                if name in item
            }
        )
    return result


# =============================================================================
# Casting
# =============================================================================


def _format_number(value: int | float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _parse_number(text: str) -> int | float | None:
    text = text.strip()
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def cast(decl: PropertyDecl, value: Any) -> Any:
    """Coerce a value to a property's (new) declared kind.

    Used during migration when a property's kind changed. Only numeric and
    string values are coerced into each other; every other conversion,
    including any change between scalar and structured kinds, fails.

    Returns:
        The coerced value, or None when there is no safe coercion.

    Example:
        >>> cast(PropertyDecl(type="string"), 5)
        '5'
        >>> cast(PropertyDecl(type="number"), "abc") is None
        True
    """
    kind = decl.type

    if kind == PropertyKind.STRING:
        if isinstance(value, str):
            return value
        if _is_number(value):
            return _format_number(value)
        return None

    if kind == PropertyKind.NUMBER:
        if _is_number(value):
            return value
        if isinstance(value, str):
            return _parse_number(value)
        return None

    if kind == PropertyKind.INTEGER:
        number = _parse_number(value) if isinstance(value, str) else value
        if isinstance(number, int) and not isinstance(number, bool):
            return number
        if isinstance(number, float) and number.is_integer():
            return int(number)
        return None

    if kind == PropertyKind.BOOLEAN and isinstance(value, bool):
        return value

    return None


__all__ = [
    "element_properties",
    "default_for",
    "default_element",
    "serialize",
    "deserialize",
    "cast",
]
