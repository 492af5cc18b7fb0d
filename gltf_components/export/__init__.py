"""Export module - writes component data into glTF extension bags.

Example usage:
    >>> from gltf_components.export import ExportContext, prepare_scene_for_export
    >>> context = prepare_scene_for_export(scene, ExportContext.for_scene(scene))
"""

from .lib import (
    GLTF_EXTENSIONS_KEY,
    GLTF_INDEX_KEY,
    NODE_REF_PLACEHOLDER,
    SPOKE_UUID_KEY,
    ExportContext,
    add_gltf_component,
    export_extensions,
    gltf_index_for_uuid,
    prepare_for_export,
    prepare_node_for_export,
    prepare_scene_for_export,
)

__all__ = [
    "GLTF_EXTENSIONS_KEY",
    "GLTF_INDEX_KEY",
    "NODE_REF_PLACEHOLDER",
    "SPOKE_UUID_KEY",
    "ExportContext",
    "add_gltf_component",
    "gltf_index_for_uuid",
    "prepare_for_export",
    "prepare_node_for_export",
    "prepare_scene_for_export",
    "export_extensions",
]
