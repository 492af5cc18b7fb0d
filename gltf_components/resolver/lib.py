"""Composite type dependency resolution.

Array properties name a composite type; composite types may in turn hold
array properties. Interpreting, serializing or migrating a component's data
needs the closure of every composite type reachable from its properties.
"""

from collections.abc import Mapping, Sequence

from gltf_components.schema import (
    CircularTypeDependency,
    MalformedTypeDefinition,
    MissingTypeDefinition,
    PropertyDecl,
    PropertyKind,
    SchemaDocument,
    TypeDef,
)


def resolve_dependent_types(
    properties: Mapping[str, PropertyDecl],
    all_types: Mapping[str, TypeDef],
    visiting: Sequence[str] = (),
) -> dict[str, TypeDef]:
    """Find every composite type that a property set references.

    Follows ``arrayType`` edges depth-first. When the same type is reached
    more than once the first discovery is kept.

    Args:
        properties: Property declarations to resolve.
        all_types: Full type table of the schema document.
        visiting: Types on the current resolution path (cycle detection).

    Returns:
        Subset of ``all_types`` referenced, directly or transitively.

    Raises:
        MissingTypeDefinition: An arrayType has no definition.
        MalformedTypeDefinition: A definition has no properties list.
        CircularTypeDependency: A type depends on itself.

    Example:
        >>> types = {"stop": TypeDef(properties={})}
        >>> props = {"stops": PropertyDecl(type="array", arrayType="stop")}
        >>> list(resolve_dependent_types(props, types))
        ['stop']
    """
    referenced: dict[str, TypeDef] = {}

    for prop_name, decl in properties.items():
        if decl.type != PropertyKind.ARRAY:
            continue

        type_name = decl.array_type
        type_def = all_types.get(type_name)

        if type_def is None:
            raise MissingTypeDefinition(
                f'No matching type definition found for type "{type_name}" '
                f'in property "{prop_name}"',
                type_name=type_name,
                property_name=prop_name,
            )
        if type_def.properties is None:
            raise MalformedTypeDefinition(
                f'No "properties" entry for type "{type_name}" '
                f'in property "{prop_name}"',
                type_name=type_name,
                property_name=prop_name,
            )
        if type_name in visiting:
            raise CircularTypeDependency(
                f'Invalid type definition: arrayType "{type_name}" depends on itself',
                type_name=type_name,
                property_name=prop_name,
            )

        referenced.setdefault(type_name, type_def)

        nested = resolve_dependent_types(
            type_def.properties, all_types, (*visiting, type_name)
        )
        for nested_name, nested_def in nested.items():
            referenced.setdefault(nested_name, nested_def)

    return referenced


def resolve_component_types(schema: SchemaDocument, name: str) -> dict[str, TypeDef]:
    """Resolve the type closure of a component in a schema document.

    Returns an empty table when the document does not define the component.
    """
    component = schema.get_component(name)
    if component is None:
        return {}
    return resolve_dependent_types(component.properties, schema.types)


__all__ = ["resolve_dependent_types", "resolve_component_types"]
