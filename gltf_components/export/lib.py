"""Export adapter: writes component data into glTF extension bags.

Node references are only resolved here. The caller supplies two lookups,
one for the live scene and one for the scene being exported, because
objects inside imported models get fresh uuids in the export copy; the
adapter never scans a scene graph on its own.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from gltf_components.codec import Color, element_properties
from gltf_components.component import ComponentInstance
from gltf_components.config import get_extension_name
from gltf_components.schema import (
    InvalidComponentProps,
    PropertyDecl,
    PropertyKind,
    TypeDef,
    UnresolvedNodeReference,
    UnsetNodeReference,
)

logger = logging.getLogger(__name__)

GLTF_EXTENSIONS_KEY = "gltfExtensions"
SPOKE_UUID_KEY = "MOZ_spoke_uuid"
NODE_REF_PLACEHOLDER = "__noderef"
GLTF_INDEX_KEY = "__gltfIndexForUUID"


@dataclass
class ExportContext:
    """Lookups and settings for one export run.

    Attributes:
        find_in_export_scene: Finds an object by uuid in the export scene,
            then the named object inside its subtree. Used for references
            into model subtrees.
        find_in_live_scene: Finds a node by uuid in the live scene.
        extension_name: Name of the glTF extension bag to write.
    """

    find_in_export_scene: Callable[[str, str], Any]
    find_in_live_scene: Callable[[str], Any]
    extension_name: str = field(default_factory=get_extension_name)

    @classmethod
    def for_scene(
        cls,
        live_scene: Any,
        export_scene: Any = None,
        extension_name: str | None = None,
    ) -> "ExportContext":
        """Build lookups over scene objects exposing ``get_object_by_uuid``.

        Args:
            live_scene: The scene being edited.
            export_scene: The copy being exported; the live scene when omitted.
            extension_name: Overrides the configured extension name.
        """
        export_scene = export_scene if export_scene is not None else live_scene

        def find_in_export_scene(uuid: str, object_name: str) -> Any:
            obj = export_scene.get_object_by_uuid(uuid)
            return obj.get_object_by_name(object_name) if obj is not None else None

        return cls(
            find_in_export_scene=find_in_export_scene,
            find_in_live_scene=live_scene.get_object_by_uuid,
            extension_name=get_extension_name(extension_name),
        )


def add_gltf_component(
    obj: Any,
    name: str,
    props: dict[str, Any] | None = None,
    multiple: bool = False,
    extension_name: str | None = None,
) -> None:
    """Write component props into an object's glTF extension bag.

    Args:
        obj: Target object exposing a ``user_data`` dict.
        name: Component name (the key in the extension bag).
        props: Component props; colors are written as ``[r, g, b]``.
        multiple: Append to a list under ``name`` instead of replacing.
        extension_name: Extension bag name; the configured one when omitted.

    Raises:
        InvalidComponentProps: props is not an object.
    """
    if props is not None and not isinstance(props, dict):
        raise InvalidComponentProps(
            f'glTF component "{name}" props must be an object, got: {type(props).__name__}'
        )

    extension_name = get_extension_name(extension_name)
    extensions = obj.user_data.setdefault(GLTF_EXTENSIONS_KEY, {})
    bag = extensions.setdefault(extension_name, {})

    component_props = {
        key: value.to_list() if isinstance(value, Color) else value
        for key, value in (props or {}).items()
    }
    if multiple:
        bag.setdefault(name, []).append(component_props)
    else:
        bag[name] = component_props


def gltf_index_for_uuid(uuid: str) -> dict[str, str]:
    """Marker replaced by the glTF node index of ``uuid`` when writing the file."""
    return {GLTF_INDEX_KEY: uuid}


def _node_name(instance: ComponentInstance) -> str | None:
    return getattr(instance.node, "name", None)


def _resolve_node_ref(
    ref: dict[str, Any],
    prop: str,
    instance: ComponentInstance,
    context: ExportContext,
) -> Any:
    uuid = ref.get("uuid")
    object_name = ref.get("objectName")
    details = dict(
        component_name=instance.name,
        property_name=prop,
        node_name=_node_name(instance),
    )
    if not uuid:
        raise UnsetNodeReference(
            f'Error on node {_node_name(instance)}: component "{instance.export_name()}" '
            f'has empty nodeRef "{prop}"',
            **details,
        )

    if object_name is not None:
        target = context.find_in_export_scene(uuid, object_name)
    else:
        target = context.find_in_live_scene(uuid)
    if target is None:
        raise UnresolvedNodeReference(
            f'Error on node {_node_name(instance)}: component "{instance.export_name()}" '
            f'references missing object "{object_name or uuid}" in "{prop}"',
            **details,
        )
    return target


def _replace_node_refs(
    data: dict[str, Any],
    properties: dict[str, PropertyDecl],
    types: dict[str, TypeDef],
    instance: ComponentInstance,
    context: ExportContext,
) -> None:
    """Rewrite serialized node references in place, descending into arrays."""
    for prop, value in data.items():
        decl = properties[prop]
        if decl.type == PropertyKind.NODE_REF:
            target = _resolve_node_ref(value, prop, instance, context)
            data[prop] = gltf_index_for_uuid(target.uuid)
            target.user_data[SPOKE_UUID_KEY] = target.uuid
            # Forces the target to become an addressable entity in the output
            add_gltf_component(
                target, NODE_REF_PLACEHOLDER, {}, extension_name=context.extension_name
            )
            logger.debug(
                'Resolved nodeRef "%s" of "%s" to %s', prop, instance.name, target.uuid
            )
        elif decl.type == PropertyKind.ARRAY:
            item_properties = element_properties(decl.array_type, types)
            for item in value:
                _replace_node_refs(item, item_properties, types, instance, context)


def prepare_for_export(
    instance: ComponentInstance, target: Any, context: ExportContext
) -> dict[str, Any] | None:
    """Write one component instance onto an export target.

    The instance is serialized, its node references are replaced with glTF
    index markers, and the result is added to the target's extension bag
    under the component name (appended when the definition allows multiple
    instances).

    Args:
        instance: Component to export.
        target: Object receiving the component, one of its selector matches.
        context: Lookups for node references.

    Returns:
        The exported data, or None for an orphaned stub, which is skipped.

    Raises:
        UnsetNodeReference: A node reference has no uuid.
        UnresolvedNodeReference: A node reference does not resolve.
        TypeDefinitionError: An array's composite type is missing from the
            frozen types.
    """
    if instance.is_orphan:
        logger.warning(
            'Skipping component "%s" on node %s: not defined in the schema',
            instance.name,
            _node_name(instance),
        )
        return None

    data = instance.serialize()["data"]
    _replace_node_refs(data, instance.properties, instance.types, instance, context)

    add_gltf_component(
        target,
        instance.name,
        data,
        multiple=instance.config.multiple,
        extension_name=context.extension_name,
    )
    return data


def prepare_node_for_export(node: Any, context: ExportContext) -> None:
    """Tag a node for export and write each of its components.

    Hidden nodes get a ``visible`` component. Every component is written to
    each object its selector matches.

    Raises:
        NodeReferenceError: A node reference of one of the components is
            unset or does not resolve; export of this node stops.
    """
    node.user_data[SPOKE_UUID_KEY] = node.uuid

    if not node.visible:
        add_gltf_component(
            node, "visible", {"visible": False}, extension_name=context.extension_name
        )

    for component in node.components:
        for obj in component.selector.get_matches(node):
            prepare_for_export(component, obj, context)


def export_extensions(root: Any, extension_name: str | None = None) -> dict[str, Any]:
    """Collect the extension bags written onto objects under ``root``.

    Returns:
        Mapping of object uuid to ``{"name": ..., "extensions": ...}`` for
        every object carrying the given extension.
    """
    extension_name = get_extension_name(extension_name)
    result = {}
    for obj in root.traverse():
        bag = obj.user_data.get(GLTF_EXTENSIONS_KEY, {}).get(extension_name)
        if bag is not None:
            result[obj.uuid] = {"name": obj.name, "extensions": {extension_name: bag}}
    return result


def prepare_scene_for_export(scene: Any, context: ExportContext | None = None) -> ExportContext:
    """Prepare every node of a scene, in tree order.

    The first unset or unresolved reference aborts the export.
    """
    context = context or ExportContext.for_scene(scene)
    nodes = scene.nodes()
    for node in nodes:
        prepare_node_for_export(node, context)
    logger.info("Prepared %d nodes for export", len(nodes))
    return context


__all__ = [
    "ExportContext",
    "add_gltf_component",
    "gltf_index_for_uuid",
    "prepare_for_export",
    "prepare_node_for_export",
    "prepare_scene_for_export",
    "export_extensions",
]
