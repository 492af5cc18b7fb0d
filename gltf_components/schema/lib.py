"""Schema document holding the component and composite type definitions.

The document keeps the raw text the user wrote (so their formatting survives
persistence) together with its parsed, validated form. Both are replaced
together by ``set_text``; a text that fails to parse leaves the document
unchanged.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from pydantic import ValidationError

from gltf_components.config import DEFAULT_SCHEMA_PATH

from .errors import SchemaParseError, TypeDefinitionError
from .models import ComponentDef, SchemaJson, TypeDef

logger = logging.getLogger(__name__)


@dataclass
class SchemaIssue:
    """A structural problem found in a schema document.

    Attributes:
        path: Dotted location of the problem (e.g. ``components.a.properties.b``).
        message: Human-readable description.
        error_type: Name of the error kind (e.g. ``CircularTypeDependency``).
    """

    path: str
    message: str
    error_type: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message} ({self.error_type})"


def parse_schema_text(text: str) -> SchemaJson:
    """Parse and validate schema document text.

    Args:
        text: Raw JSON text.

    Returns:
        The validated schema.

    Raises:
        SchemaParseError: If the text is not JSON or does not match the
            expected document shape.
    """
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as e:
        raise SchemaParseError(f"Schema document is not valid JSON: {e}") from e

    if not isinstance(raw, dict):
        raise SchemaParseError(
            f"Schema document must be an object, got: {type(raw).__name__}"
        )

    try:
        return SchemaJson.model_validate(raw)
    except ValidationError as e:
        raise SchemaParseError(f"Invalid schema document: {e}") from e


class SchemaDocument:
    """Raw and parsed versions of a component schema document.

    Attributes:
        text: Raw contents of the document.
        json: Parsed and validated form of ``text``.

    Example:
        >>> doc = SchemaDocument('{"components": {"link": {"properties": {}}}}')
        >>> doc.get_component("link").multiple
        False
    """

    def __init__(self, text: str | None = None):
        self.text: str = ""
        self.json: SchemaJson = SchemaJson()
        self.set_text(text if text is not None else self.default_text())

    @staticmethod
    def default_text() -> str:
        """Contents of the bundled default schema document."""
        return DEFAULT_SCHEMA_PATH.read_text(encoding="utf-8")

    @classmethod
    def from_file(cls, path: Path | str) -> "SchemaDocument":
        """Load a schema document from a UTF-8 JSON file."""
        return cls(Path(path).read_text(encoding="utf-8"))

    def set_text(self, text: str) -> None:
        """Replace the document text and its parsed form atomically."""
        parsed = parse_schema_text(text)
        self.text = text
        self.json = parsed
        logger.debug(
            "Schema document loaded: %d components, %d types",
            len(parsed.components),
            len(parsed.types),
        )

    @property
    def components(self) -> dict[str, ComponentDef]:
        return self.json.components

    @property
    def types(self) -> dict[str, TypeDef]:
        return self.json.types

    def get_component(self, name: str) -> ComponentDef | None:
        """Current definition of a component, or None if it is not declared."""
        return self.json.components.get(name)

    def get_node_names(self) -> set[str]:
        """Unique node kinds named in any component's ``nodes`` field."""
        node_names: set[str] = set()
        for component in self.json.components.values():
            node_names.update(component.nodes)
        return node_names

    def has_components_for_node(self, node_name: str) -> bool:
        """Whether any component can be attached to the given node kind."""
        any_node = any(c.node for c in self.json.components.values())
        return any_node or node_name in self.get_node_names()

    def get_components_for_node(self, node_name: str) -> list[str]:
        """Names of components attachable to the given node kind."""
        return [
            name
            for name, component in self.json.components.items()
            if component.node or node_name in component.nodes
        ]

    def check(self) -> list[SchemaIssue]:
        """Check structural consistency of every component and type.

        Resolves the composite type closure of each component and of each
        type definition, collecting missing, malformed and circular type
        references instead of raising.

        Returns:
            List of issues found (empty if the document is consistent).
        """
        from gltf_components.resolver import resolve_dependent_types

        issues: list[SchemaIssue] = []
        types = self.json.types

        def _record(path: str, error: TypeDefinitionError) -> None:
            where = f"{path}.properties"
            if error.property_name:
                where = f"{where}.{error.property_name}"
            issues.append(SchemaIssue(where, str(error), type(error).__name__))

        for name, component in self.json.components.items():
            try:
                resolve_dependent_types(component.properties, types)
            except TypeDefinitionError as e:
                _record(f"components.{name}", e)

        for name, type_def in types.items():
            if type_def.properties is None:
                issues.append(
                    SchemaIssue(
                        f"types.{name}",
                        f'No "properties" entry for type "{name}"',
                        "MalformedTypeDefinition",
                    )
                )
                continue
            try:
                resolve_dependent_types(type_def.properties, types, (name,))
            except TypeDefinitionError as e:
                _record(f"types.{name}", e)

        return issues


def load_schema_document(path: Path | str | None = None) -> SchemaDocument:
    """Load a schema document, falling back to the bundled default."""
    if path is None:
        return SchemaDocument()
    return SchemaDocument.from_file(path)


__all__ = [
    "SchemaDocument",
    "SchemaIssue",
    "load_schema_document",
    "parse_schema_text",
]
