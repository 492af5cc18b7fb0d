"""Schema module - component and composite type definitions.

This module provides:
- Typed models for the user-editable schema document
- The SchemaDocument holding raw text and its parsed form together
- The exception family shared by the whole package

Example usage:
    >>> from gltf_components.schema import SchemaDocument
    >>> doc = SchemaDocument()  # bundled default-config.json
    >>> issues = doc.check()
"""

from .errors import (
    CircularTypeDependency,
    CodecError,
    ComponentSchemaError,
    InvalidComponentProps,
    MalformedTypeDefinition,
    MissingTypeDefinition,
    NodeReferenceError,
    SceneFormatError,
    SchemaParseError,
    TypeDefinitionError,
    UnresolvedNodeReference,
    UnsetNodeReference,
)
from .lib import SchemaDocument, SchemaIssue, load_schema_document, parse_schema_text
from .models import (
    VECTOR_AXES,
    ComponentDef,
    PropertyDecl,
    PropertyKind,
    SchemaJson,
    TypeDef,
    types_from_dict,
    types_to_dict,
)

__all__ = [
    # Models
    "PropertyKind",
    "VECTOR_AXES",
    "PropertyDecl",
    "TypeDef",
    "ComponentDef",
    "SchemaJson",
    "types_to_dict",
    "types_from_dict",
    # Document
    "SchemaDocument",
    "SchemaIssue",
    "load_schema_document",
    "parse_schema_text",
    # Errors
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
