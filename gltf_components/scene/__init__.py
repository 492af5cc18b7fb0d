"""Scene module - nodes carrying component instances, scene files and batch migration.

Example usage:
    >>> from gltf_components.scene import load_scene_file, migrate_all_components
    >>> scene = load_scene_file("scene.json")
    >>> report = migrate_all_components(scene.nodes(), scene.schema)
"""

from .lib import (
    DEFAULT_NODE_KIND,
    HUBS_COMPONENTS_ENTRY,
    MigrationReport,
    NodeHooks,
    Scene,
    SceneNode,
    SceneObject,
    count_outdated_components,
    dump_scene_file,
    get_node_hooks,
    list_node_kinds,
    load_scene_file,
    migrate_all_components,
    register_node_kind,
    scene_from_dict,
    scene_to_dict,
)

__all__ = [
    # Scene graph
    "SceneObject",
    "SceneNode",
    "Scene",
    "DEFAULT_NODE_KIND",
    "HUBS_COMPONENTS_ENTRY",
    # Node kinds
    "NodeHooks",
    "register_node_kind",
    "get_node_hooks",
    "list_node_kinds",
    # Migration
    "MigrationReport",
    "count_outdated_components",
    "migrate_all_components",
    # Files
    "scene_from_dict",
    "scene_to_dict",
    "load_scene_file",
    "dump_scene_file",
]
