"""Typed shapes for the component schema document.

The schema document is user-editable JSON. It is validated into these models
once, at load time, so the resolver, codec and migration code operate on
checked data instead of raw parsed JSON.

Declarations keep any keys they do not model (``default``, ``description``,
``min``...) so that a declaration dumps back to exactly what the user wrote.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class PropertyKind(str, Enum):
    """Fixed set of kinds a component property can be declared with.

    Scalar kinds hold a single value; ``nodeRef`` is a weak pointer to another
    scene object; ``array`` is a sequence of values of a named composite type.
    """

    NUMBER = "number"
    INTEGER = "integer"
    STRING = "string"
    BOOLEAN = "boolean"
    COLOR = "color"
    VEC2 = "vec2"
    VEC3 = "vec3"
    VEC4 = "vec4"
    NODE_REF = "nodeRef"
    ARRAY = "array"


VECTOR_AXES: dict[PropertyKind, tuple[str, ...]] = {
    PropertyKind.VEC2: ("x", "y"),
    PropertyKind.VEC3: ("x", "y", "z"),
    PropertyKind.VEC4: ("x", "y", "z", "w"),
}


class PropertyDecl(BaseModel):
    """Declaration of a single property of a component or composite type.

    Attributes:
        type: Kind of value the property holds.
        array_type: Composite type name, required when type is ``array``.

    Example:
        >>> decl = PropertyDecl.model_validate({"type": "number", "default": 1})
        >>> decl.declared_default
        1
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True, frozen=True)

    type: PropertyKind = Field(..., description="Kind of the property value")
    array_type: str | None = Field(
        default=None,
        alias="arrayType",
        description="Composite type of array elements",
    )

    @model_validator(mode="after")
    def _require_array_type(self) -> "PropertyDecl":
        if self.type == PropertyKind.ARRAY and not self.array_type:
            raise ValueError('properties of type "array" must declare an arrayType')
        return self

    @property
    def extras(self) -> dict[str, Any]:
        """Keys of the declaration that are not modelled explicitly."""
        return dict(self.model_extra or {})

    @property
    def has_default(self) -> bool:
        return "default" in (self.model_extra or {})

    @property
    def declared_default(self) -> Any:
        return (self.model_extra or {}).get("default")

    def to_dict(self) -> dict[str, Any]:
        """Dump the declaration as it appears in the schema document."""
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


class TypeDef(BaseModel):
    """A named, reusable bag of properties referenced by array properties.

    ``properties`` is None when the document entry has no property list;
    the resolver reports such entries as malformed.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    properties: dict[str, PropertyDecl] | None = None

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


class ComponentDef(BaseModel):
    """Definition of a component that can be attached to scene nodes.

    Attributes:
        properties: Property declarations, in declaration order.
        multiple: Allow more than one instance per node.
        node: Attachable to any node kind.
        nodes: Node kinds the component is attachable to.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    properties: dict[str, PropertyDecl] = Field(default_factory=dict)
    multiple: bool = False
    node: bool = False
    nodes: list[str] = Field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


class SchemaJson(BaseModel):
    """Parsed form of a schema document."""

    model_config = ConfigDict(extra="allow", frozen=True)

    components: dict[str, ComponentDef] = Field(default_factory=dict)
    types: dict[str, TypeDef] = Field(default_factory=dict)


def types_to_dict(types: dict[str, TypeDef]) -> dict[str, Any]:
    """Dump a type table for embedding in a persisted record."""
    return {name: type_def.to_dict() for name, type_def in types.items()}


def types_from_dict(data: dict[str, Any] | None) -> dict[str, TypeDef]:
    """Load a type table embedded in a persisted record."""
    return {name: TypeDef.model_validate(entry) for name, entry in (data or {}).items()}


__all__ = [
    "PropertyKind",
    "VECTOR_AXES",
    "PropertyDecl",
    "TypeDef",
    "ComponentDef",
    "SchemaJson",
    "types_to_dict",
    "types_from_dict",
]
