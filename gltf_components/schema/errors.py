"""Exception family for the component schema system.

Every error raised by gltf-components derives from ComponentSchemaError so
callers orchestrating a document-wide operation (export, batch migration)
can catch the whole family in one place.
"""


class ComponentSchemaError(Exception):
    """Base exception for component schema errors."""


class SchemaParseError(ComponentSchemaError):
    """Raised when schema document text is not valid JSON or has the wrong shape."""


class TypeDefinitionError(ComponentSchemaError):
    """Base for configuration errors found while resolving composite types.

    Attributes:
        type_name: The arrayType being resolved.
        property_name: The property that referenced it.
    """

    def __init__(
        self,
        message: str,
        type_name: str | None = None,
        property_name: str | None = None,
    ):
        super().__init__(message)
        self.type_name = type_name
        self.property_name = property_name


class MissingTypeDefinition(TypeDefinitionError):
    """Raised when an arrayType has no entry in the type table."""


class MalformedTypeDefinition(TypeDefinitionError):
    """Raised when a type definition exists but has no properties list."""


class CircularTypeDependency(TypeDefinitionError):
    """Raised when a composite type depends on itself, directly or not."""


class CodecError(ComponentSchemaError):
    """Raised when a stored value cannot be decoded for its declared kind."""


class InvalidComponentProps(ComponentSchemaError):
    """Raised when a component props payload is not an object."""


class SceneFormatError(ComponentSchemaError):
    """Raised when a scene file does not have the expected entity layout."""


class NodeReferenceError(ComponentSchemaError):
    """Base for export-time node reference failures.

    Attributes:
        component_name: Component holding the reference.
        property_name: Property holding the reference.
        node_name: Name of the node the component is attached to.
    """

    def __init__(
        self,
        message: str,
        component_name: str | None = None,
        property_name: str | None = None,
        node_name: str | None = None,
    ):
        super().__init__(message)
        self.component_name = component_name
        self.property_name = property_name
        self.node_name = node_name


class UnsetNodeReference(NodeReferenceError):
    """Raised when a nodeRef property has no uuid at export time."""


class UnresolvedNodeReference(NodeReferenceError):
    """Raised when a nodeRef uuid/objectName does not match any object."""


__all__ = [
    "ComponentSchemaError",
    "SchemaParseError",
    "TypeDefinitionError",
    "MissingTypeDefinition",
    "MalformedTypeDefinition",
    "CircularTypeDependency",
    "CodecError",
    "InvalidComponentProps",
    "SceneFormatError",
    "NodeReferenceError",
    "UnsetNodeReference",
    "UnresolvedNodeReference",
]
