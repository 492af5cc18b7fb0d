"""Component instances attached to scene nodes.

An instance carries a frozen copy of the schema it was built against: its
component definition and the resolved closure of composite types. The copy
does not follow later edits of the schema document. Drift against the
current document is detected on demand with ``needs_update`` and resolved
with ``get_data_migration``; the current document is always passed in
explicitly.
"""

import copy
import logging
from typing import Any

from pydantic import ValidationError

from gltf_components.codec import cast, default_for, deserialize, serialize
from gltf_components.diff import diff_properties, diff_types
from gltf_components.resolver import resolve_dependent_types
from gltf_components.schema import (
    CodecError,
    ComponentDef,
    InvalidComponentProps,
    PropertyDecl,
    PropertyKind,
    SchemaDocument,
    TypeDef,
    types_from_dict,
    types_to_dict,
)

from .selector import ObjectSelector, Selector

logger = logging.getLogger(__name__)


class ComponentInstance:
    """A schema-typed bundle of data attached to a scene node.

    Attributes:
        name: Component name in the schema document.
        config: Frozen component definition, None for an orphaned stub.
        types: Frozen composite types the definition references.
        data: Property values following ``config.properties``.
        selector: Which object(s) the data is exported onto.
        node: Node the instance is attached to.
        collapsed: Whether the editor shows this entry collapsed.
    """

    def __init__(
        self,
        name: str,
        config: ComponentDef | None = None,
        types: dict[str, TypeDef] | None = None,
        data: dict[str, Any] | None = None,
        selector: Selector | None = None,
        node: Any = None,
        collapsed: bool = False,
    ):
        self.name = name
        self.config = config
        self.types: dict[str, TypeDef] = types or {}
        self.data: dict[str, Any] = data or {}
        self.selector: Selector = selector or ObjectSelector()
        self.node = node
        self.collapsed = collapsed

    def __repr__(self) -> str:
        state = "orphan" if self.is_orphan else f"{len(self.data)} props"
        return f"ComponentInstance({self.name!r}, {state})"

    @classmethod
    def create(
        cls, name: str, schema: SchemaDocument, node: Any = None
    ) -> "ComponentInstance":
        """Build a new instance with default data from the current schema.

        A name the schema does not define yields an orphaned stub with no
        config and no data.

        Raises:
            TypeDefinitionError: The definition references missing, malformed
                or circular composite types.
        """
        config = schema.get_component(name)
        if config is None:
            logger.warning("Component %r is not defined in the schema", name)
            return cls(name, node=node)

        types = resolve_dependent_types(config.properties, schema.types)
        data = {prop: default_for(decl) for prop, decl in config.properties.items()}
        return cls(name, config=config, types=types, data=data, node=node)

    @property
    def is_orphan(self) -> bool:
        return self.config is None

    @property
    def properties(self) -> dict[str, PropertyDecl]:
        """Frozen property declarations (empty for an orphaned stub)."""
        return self.config.properties if self.config else {}

    def _declaration(
        self, prop: str, properties: dict[str, PropertyDecl]
    ) -> PropertyDecl:
        decl = properties.get(prop)
        if decl is None:
            raise CodecError(
                f'Component "{self.name}" has data for undeclared property "{prop}"'
            )
        return decl

    # =========================================================================
    # Persistence
    # =========================================================================

    def serialize(self) -> dict[str, Any]:
        """Self-contained snapshot embedding the frozen schema and the data.

        Returns:
            Record with ``name``, ``selector``, ``config``, ``types`` and
            ``data`` keys.
        """
        properties = self.properties
        data = {
            prop: serialize(value, self._declaration(prop, properties), self.types)
            for prop, value in self.data.items()
        }
        return {
            "name": self.name,
            "selector": self.selector.serialize(),
            "config": self.config.to_dict() if self.config else None,
            "types": types_to_dict(self.types),
            "data": data,
        }

    @classmethod
    def deserialize(
        cls,
        record: Any,
        node: Any = None,
        selector_type: type = ObjectSelector,
    ) -> "ComponentInstance":
        """Rebuild an instance from a persisted record.

        Decoding only uses the schema embedded in the record, never the
        current schema document, so records written against any older
        schema still load.

        Raises:
            InvalidComponentProps: The record is not an object.
            CodecError: The embedded schema or data cannot be decoded.
        """
        if not isinstance(record, dict):
            raise InvalidComponentProps(
                f"Component record must be an object, got: {type(record).__name__}"
            )

        name = record.get("name")
        try:
            raw_config = record.get("config")
            config = (
                ComponentDef.model_validate(raw_config)
                if raw_config is not None
                else None
            )
            types = types_from_dict(record.get("types"))
        except ValidationError as e:
            raise CodecError(
                f"Invalid embedded schema for component {name!r}: {e}"
            ) from e

        instance = cls(name, config=config, types=types, node=node)
        properties = instance.properties
        instance.data = {
            prop: deserialize(value, instance._declaration(prop, properties), types)
            for prop, value in (record.get("data") or {}).items()
        }
        instance.selector = selector_type.deserialize(record.get("selector"), node)
        return instance

    # =========================================================================
    # Drift detection and migration
    # =========================================================================

    def get_latest_config(self, schema: SchemaDocument) -> ComponentDef | None:
        """Current definition of this component, if it still exists."""
        return schema.get_component(self.name)

    def get_latest_dependent_types(self, schema: SchemaDocument) -> dict[str, TypeDef]:
        """Current type closure of this component's definition."""
        latest = self.get_latest_config(schema)
        if latest is None:
            return {}
        return resolve_dependent_types(latest.properties, schema.types)

    def needs_update(self, schema: SchemaDocument) -> bool:
        """Has the frozen schema diverged from the current schema document?

        Compares property declarations and the resolved composite types.
        A component whose definition was removed from the document needs an
        update (it should be deleted).
        """
        latest = self.get_latest_config(schema)
        if latest is None:
            return self.config is not None

        property_diff = diff_properties(self.properties, latest.properties)
        type_diff = diff_types(self.types, self.get_latest_dependent_types(schema))
        outdated = (
            self.config is None
            or property_diff.has_changes
            or type_diff.has_changes
        )
        if outdated:
            logger.debug("Component %r drifted from the schema document", self.name)
        return outdated

    def get_data_migration(self, schema: SchemaDocument) -> dict[str, Any] | None:
        """Migrate this instance's data to the current schema.

        Rules, applied to a deep copy of the data:
            - added property: set to its default
            - removed property: dropped
            - property kind changed: cast, or default when no cast exists
            - property arrayType changed: reset to default (empty list)
            - array property whose composite type closure changed: reset

        Returns:
            The migrated data, or None when the component no longer exists
            and the instance should be deleted. The caller adopts the current
            schema afterwards (see ``adopt_schema``).

        Raises:
            TypeDefinitionError: The current definition is inconsistent.
        """
        new_data = copy.deepcopy(self.data)

        latest = self.get_latest_config(schema)
        if latest is None:
            return None

        latest_properties = latest.properties
        latest_types = resolve_dependent_types(latest_properties, schema.types)
        property_diff = diff_properties(self.properties, latest_properties)
        type_diff = diff_types(self.types, latest_types)

        for prop, decl in property_diff.added.items():
            new_data[prop] = default_for(decl)

        for prop in property_diff.removed:
            new_data.pop(prop, None)

        for prop in property_diff.updated:
            decl = latest_properties[prop]
            if property_diff.kind_changed(prop):
                cast_value = cast(decl, self.data.get(prop))
                if cast_value is None:
                    cast_value = default_for(decl)
                new_data[prop] = cast_value
            if property_diff.array_type_changed(prop):
                # Element-wise migration of the old items is not attempted.
                new_data[prop] = default_for(decl)

        changed_types = type_diff.changed
        if changed_types:
            for prop, decl in latest_properties.items():
                if decl.type != PropertyKind.ARRAY or prop not in new_data:
                    continue
                closure = resolve_dependent_types({prop: decl}, latest_types)
                if changed_types & closure.keys():
                    new_data[prop] = default_for(decl)

        return new_data

    def adopt_schema(self, schema: SchemaDocument, data: dict[str, Any]) -> None:
        """Install migrated data and freeze the current schema.

        Both parts of the new frozen schema are resolved before anything is
        assigned, so a resolution error leaves the instance untouched.
        """
        config = self.get_latest_config(schema)
        types = self.get_latest_dependent_types(schema)
        self.config, self.types, self.data = config, types, data

    # =========================================================================
    # Naming
    # =========================================================================

    def export_name(self) -> str:
        """Name of the component as the runtime sees it.

        Components allowing multiple instances per node get an index suffix
        (``name__0``, ``name__1``...) in attachment order.
        """
        if not (self.config and self.config.multiple):
            return self.name
        attached = getattr(self.node, "components", [self])
        siblings = [c for c in attached if c.name == self.name]
        index = siblings.index(self) if self in siblings else 0
        return f"{self.name}__{index}"


__all__ = ["ComponentInstance"]
