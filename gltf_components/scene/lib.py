"""Scene graph collaborators for component instances.

A scene is a tree of SceneObjects. SceneNodes are the editor-level objects
that carry component instances; node-kind specific behaviour is looked up in
a registry of lifecycle hooks instead of being inherited. The Scene root owns
the schema document every instance is created from and migrated against.
"""

import json
import logging
import uuid as uuid_lib
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from gltf_components.component import ComponentInstance
from gltf_components.schema import (
    ComponentSchemaError,
    InvalidComponentProps,
    SceneFormatError,
    SchemaDocument,
)

logger = logging.getLogger(__name__)

HUBS_COMPONENTS_ENTRY = "hubsComponents"
VISIBLE_ENTRY = "visible"
DEFAULT_NODE_KIND = "Unknown Node"
_ENTITY_KEYS = ("name", "kind", "parent", "components")


# =============================================================================
# Scene graph
# =============================================================================


class SceneObject:
    """A named object in the scene tree.

    Attributes:
        uuid: Identity of the object, unique within a scene.
        name: Object name, used by selectors and scoped lookups.
        parent: Containing object, None for a root.
        children: Contained objects in insertion order.
        user_data: Free-form data bag; export writes glTF extensions here.
    """

    def __init__(self, name: str = "", uuid: str | None = None):
        self.uuid = uuid or str(uuid_lib.uuid4())
        self.name = name
        self.parent: SceneObject | None = None
        self.children: list[SceneObject] = []
        self.user_data: dict[str, Any] = {}
        self.visible = True

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, uuid={self.uuid!r})"

    def add(self, *objects: "SceneObject") -> "SceneObject":
        """Attach objects as children, detaching them from a previous parent."""
        for obj in objects:
            if obj.parent is not None:
                obj.parent.remove(obj)
            obj.parent = self
            self.children.append(obj)
        return self

    def remove(self, *objects: "SceneObject") -> "SceneObject":
        for obj in objects:
            if obj in self.children:
                self.children.remove(obj)
                obj.parent = None
        return self

    def traverse(self) -> Iterator["SceneObject"]:
        """Depth-first walk of this object and its descendants."""
        yield self
        for child in self.children:
            yield from child.traverse()

    def traverse_ancestors(self) -> Iterator["SceneObject"]:
        obj = self.parent
        while obj is not None:
            yield obj
            obj = obj.parent

    def get_object_by_uuid(self, uuid: str) -> "SceneObject | None":
        return next((obj for obj in self.traverse() if obj.uuid == uuid), None)

    def get_object_by_name(self, name: str) -> "SceneObject | None":
        return next((obj for obj in self.traverse() if obj.name == name), None)


# =============================================================================
# Node kinds
# =============================================================================


def _no_hook(node: "SceneNode", *args: Any) -> None:
    pass


@dataclass
class NodeHooks:
    """Lifecycle callbacks implemented per node kind.

    Attributes:
        on_add: Called when the node is added to a scene.
        on_change: Called with the changed property name after an edit.
        on_remove: Called when the node is removed from a scene.
    """

    on_add: Callable[["SceneNode"], None] = _no_hook
    on_change: Callable[["SceneNode", str], None] = _no_hook
    on_remove: Callable[["SceneNode"], None] = _no_hook


# Node kind registry - populated by register_node_kind
_node_kinds: dict[str, NodeHooks] = {}


def register_node_kind(kind: str, hooks: NodeHooks | None = None) -> NodeHooks:
    """Register the lifecycle hooks of a node kind.

    Args:
        kind: Node kind name (e.g. "Model", "Point Light").
        hooks: Callbacks for the kind; no-op hooks when omitted.

    Returns:
        The registered hooks.

    Example:
        >>> register_node_kind("Model", NodeHooks(on_change=refresh_model))
    """
    _node_kinds[kind] = hooks or NodeHooks()
    return _node_kinds[kind]


def get_node_hooks(kind: str) -> NodeHooks:
    """Hooks registered for a node kind, no-op hooks for an unknown kind."""
    return _node_kinds.get(kind) or NodeHooks()


def list_node_kinds() -> list[str]:
    return list(_node_kinds)


# =============================================================================
# Nodes
# =============================================================================


class SceneNode(SceneObject):
    """Scene object carrying a list of component instances.

    Attributes:
        kind: Node kind, matched against the ``nodes`` list of component
            definitions and used to look up lifecycle hooks.
        components: Attached instances, in attachment order.
        components_collapsed: Whether the editor shows the list collapsed.
        entity_entries: Component entries of the loaded entity, written back
            in place with the component list and visibility refreshed.
        entity_extras: Other keys of the loaded entity, kept verbatim.
    """

    def __init__(
        self,
        kind: str = DEFAULT_NODE_KIND,
        name: str | None = None,
        uuid: str | None = None,
    ):
        super().__init__(name if name is not None else kind, uuid)
        self.kind = kind
        self.components: list[ComponentInstance] = []
        self.components_collapsed = True
        self.entity_entries: list[dict[str, Any]] = []
        self.entity_extras: dict[str, Any] = {}

    @property
    def hooks(self) -> NodeHooks:
        return get_node_hooks(self.kind)

    def add_component(self, name: str, schema: SchemaDocument) -> ComponentInstance:
        """Create a component from the current schema and attach it."""
        instance = ComponentInstance.create(name, schema, self)
        self.components.append(instance)
        self.hooks.on_change(self, "components")
        return instance

    def remove_component(self, instance: ComponentInstance) -> None:
        self.components.remove(instance)
        self.hooks.on_change(self, "components")

    def get_components(self, name: str) -> list[ComponentInstance]:
        return [c for c in self.components if c.name == name]

    # =========================================================================
    # Entity serialization
    # =========================================================================

    def serialize_components(self) -> dict[str, Any]:
        """The ``hubsComponents`` entry of this node's entity."""
        return {
            "name": HUBS_COMPONENTS_ENTRY,
            "props": {"value": [c.serialize() for c in self.components]},
        }

    def deserialize_components(self, entity_json: dict[str, Any]) -> list[ComponentInstance]:
        """Load the component list from an entity's ``hubsComponents`` entry.

        A missing entry leaves the node without components.

        Raises:
            InvalidComponentProps: The entry's props or its value are not of
                the expected shape.
            CodecError: A record cannot be decoded with its embedded schema.
        """
        entry = _find_entry(entity_json.get("components") or [], HUBS_COMPONENTS_ENTRY)
        if entry is None:
            self.components = []
            return self.components

        props = entry.get("props")
        if not isinstance(props, dict):
            raise InvalidComponentProps(
                f'Node "{self.name}": "{HUBS_COMPONENTS_ENTRY}" props must be an object'
            )
        records = props.get("value") or []
        if not isinstance(records, list):
            raise InvalidComponentProps(
                f'Node "{self.name}": "{HUBS_COMPONENTS_ENTRY}" value must be a list'
            )
        self.components = [ComponentInstance.deserialize(r, self) for r in records]
        return self.components

    def serialize(self) -> dict[str, Any]:
        """Entity form of the node, keeping unrelated entries in place."""
        entries = []
        written = set()
        for entry in self.entity_entries:
            name = entry.get("name") if isinstance(entry, dict) else None
            if name == HUBS_COMPONENTS_ENTRY:
                entry = self.serialize_components()
            elif name == VISIBLE_ENTRY:
                entry = {"name": VISIBLE_ENTRY, "props": {"visible": self.visible}}
            entries.append(entry)
            written.add(name)

        if not self.visible and VISIBLE_ENTRY not in written:
            entries.append({"name": VISIBLE_ENTRY, "props": {"visible": False}})
        if HUBS_COMPONENTS_ENTRY not in written and self.components:
            entries.append(self.serialize_components())

        entity: dict[str, Any] = {
            **self.entity_extras,
            "name": self.name,
            "components": entries,
        }
        if self.kind != DEFAULT_NODE_KIND:
            entity["kind"] = self.kind
        if isinstance(self.parent, SceneNode):
            entity["parent"] = self.parent.uuid
        return entity

    @classmethod
    def deserialize(cls, uuid: str, entity_json: Any) -> "SceneNode":
        """Build a node from its entity form.

        Raises:
            InvalidComponentProps: The entity or its component entries are
                not of the expected shape.
        """
        if not isinstance(entity_json, dict):
            raise InvalidComponentProps(f'Entity "{uuid}" must be an object')
        entries = entity_json.get("components") or []
        if not isinstance(entries, list):
            raise InvalidComponentProps(f'Entity "{uuid}": "components" must be a list')

        node = cls(
            kind=entity_json.get("kind", DEFAULT_NODE_KIND),
            name=entity_json.get("name", ""),
            uuid=uuid,
        )
        node.entity_entries = list(entries)
        node.entity_extras = {
            k: v for k, v in entity_json.items() if k not in _ENTITY_KEYS
        }

        visible = _find_entry(node.entity_entries, VISIBLE_ENTRY)
        if visible is not None and isinstance(visible.get("props"), dict):
            node.visible = bool(visible["props"].get("visible", True))

        node.deserialize_components(entity_json)
        return node


def _find_entry(entries: Iterable[Any], name: str) -> dict[str, Any] | None:
    return next(
        (e for e in entries if isinstance(e, dict) and e.get("name") == name),
        None,
    )


class Scene(SceneObject):
    """Scene root owning the schema document.

    Example:
        >>> scene = Scene()
        >>> node = scene.add_node(SceneNode("Model"))
        >>> node.add_component("loop-animation", scene.schema)
    """

    def __init__(
        self,
        schema: SchemaDocument | None = None,
        name: str = "Scene",
        uuid: str | None = None,
    ):
        super().__init__(name, uuid)
        self.schema = schema if schema is not None else SchemaDocument()
        self.metadata: dict[str, Any] = {}

    def nodes(self) -> list[SceneNode]:
        return [obj for obj in self.traverse() if isinstance(obj, SceneNode)]

    def add_node(self, node: SceneNode, parent: SceneObject | None = None) -> SceneNode:
        (parent or self).add(node)
        node.hooks.on_add(node)
        return node

    def remove_node(self, node: SceneNode) -> None:
        if node.parent is not None:
            node.parent.remove(node)
        node.hooks.on_remove(node)

    def set_schema_text(self, text: str) -> None:
        """Replace the schema document text.

        Existing instances keep their frozen schema; use
        count_outdated_components and migrate_all_components to bring them
        up to date.
        """
        self.schema.set_text(text)
        logger.info("Schema document replaced (%d components)", len(self.schema.components))


# =============================================================================
# Batched migration
# =============================================================================


@dataclass
class MigrationReport:
    """Outcome of migrating every component instance of a set of nodes.

    Attributes:
        updated: Instances whose data was migrated and schema adopted.
        deleted: Instances dropped because their definition was removed.
        kept: Instances already matching the schema document.
        failed: Instances left untouched, with the error that stopped them.
    """

    updated: list[ComponentInstance] = field(default_factory=list)
    deleted: list[ComponentInstance] = field(default_factory=list)
    kept: list[ComponentInstance] = field(default_factory=list)
    failed: list[tuple[ComponentInstance, ComponentSchemaError]] = field(
        default_factory=list
    )

    @property
    def has_failures(self) -> bool:
        return len(self.failed) > 0

    @property
    def changed(self) -> int:
        return len(self.updated) + len(self.deleted)


def count_outdated_components(nodes: Iterable[SceneNode], schema: SchemaDocument) -> int:
    """Number of attached instances that drifted from the schema document.

    Raises:
        TypeDefinitionError: The schema document is inconsistent.
    """
    return sum(
        1 for node in nodes for component in node.components if component.needs_update(schema)
    )


def migrate_all_components(
    nodes: Iterable[SceneNode], schema: SchemaDocument
) -> MigrationReport:
    """Migrate every instance on every node to the schema document.

    Instances are processed one at a time, in order. Each is either fully
    updated, deleted, or, when resolving the current schema fails, left
    exactly as it was and reported as failed while the others continue.

    Args:
        nodes: Nodes whose components should be migrated.
        schema: The current schema document.

    Returns:
        MigrationReport listing what happened to each instance.
    """
    report = MigrationReport()

    for node in nodes:
        components: list[ComponentInstance] = []
        changed = False
        for component in node.components:
            try:
                if not component.needs_update(schema):
                    report.kept.append(component)
                    components.append(component)
                    continue
                new_data = component.get_data_migration(schema)
                if new_data is not None:
                    component.adopt_schema(schema, new_data)
            except ComponentSchemaError as e:
                logger.error(
                    'Node "%s": failed to migrate component "%s": %s',
                    node.name,
                    component.name,
                    e,
                )
                report.failed.append((component, e))
                components.append(component)
                continue

            if new_data is None:
                logger.info('Node "%s": deleted component "%s"', node.name, component.name)
                report.deleted.append(component)
                changed = True
            else:
                logger.info('Node "%s": migrated component "%s"', node.name, component.name)
                report.updated.append(component)
                components.append(component)
                changed = True

        if changed:
            node.components = components
            node.hooks.on_change(node, "components")

    return report


# =============================================================================
# Scene files
# =============================================================================


def _check_parent_chains(parents: dict[str, str | None]) -> None:
    """Raise SceneFormatError when entity parents form a cycle."""
    rooted: set[str] = set()
    for start in parents:
        path: list[str] = []
        uuid: str | None = start
        while uuid in parents and uuid not in rooted:
            if uuid in path:
                cycle = " -> ".join(path[path.index(uuid) :] + [uuid])
                raise SceneFormatError(f"Entity parents form a cycle: {cycle}")
            path.append(uuid)
            uuid = parents[uuid]
        rooted.update(path)


def scene_from_dict(data: Any, schema: SchemaDocument | None = None) -> Scene:
    """Build a scene from its ``{"entities": {uuid: entity}}`` form.

    Entities naming a ``parent`` are attached under it; the rest are
    attached to the scene root. Keys other than ``entities`` are kept as
    scene metadata.

    Raises:
        SceneFormatError: The data does not have an ``entities`` object, or
            entity parents form a cycle.
        InvalidComponentProps: An entity or its component list is malformed.
    """
    if not isinstance(data, dict) or not isinstance(data.get("entities"), dict):
        raise SceneFormatError('Scene data must be an object with an "entities" object')

    scene = Scene(schema)
    scene.metadata = {k: v for k, v in data.items() if k != "entities"}
    nodes: dict[str, SceneNode] = {}
    parents: dict[str, str | None] = {}
    for uuid, entity in data["entities"].items():
        nodes[uuid] = SceneNode.deserialize(uuid, entity)
        parents[uuid] = entity.get("parent")
    _check_parent_chains(parents)

    for uuid, node in nodes.items():
        parent = nodes.get(parents[uuid]) if parents[uuid] else None
        scene.add_node(node, parent)

    logger.debug("Loaded scene with %d nodes", len(nodes))
    return scene


def scene_to_dict(scene: Scene) -> dict[str, Any]:
    return {
        **scene.metadata,
        "entities": {node.uuid: node.serialize() for node in scene.nodes()},
    }


def load_scene_file(path: Path | str, schema: SchemaDocument | None = None) -> Scene:
    """Read a scene from a JSON file.

    Raises:
        SceneFormatError: The file is not JSON or not a scene.
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise SceneFormatError(f"Invalid JSON in scene file {path}: {e}") from e
    return scene_from_dict(data, schema)


def dump_scene_file(scene: Scene, path: Path | str) -> Path:
    path = Path(path)
    path.write_text(json.dumps(scene_to_dict(scene), indent=2) + "\n", encoding="utf-8")
    return path
