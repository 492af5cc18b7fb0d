"""gltf-components: schema-driven components for glTF scene export."""

from gltf_components.component import ComponentInstance, ObjectSelector
from gltf_components.export import ExportContext, prepare_node_for_export
from gltf_components.resolver import resolve_dependent_types
from gltf_components.scene import Scene, SceneNode, migrate_all_components
from gltf_components.schema import ComponentSchemaError, SchemaDocument

__version__ = "0.1.0"

__all__ = [
    # Schema
    "SchemaDocument",
    "ComponentSchemaError",
    "resolve_dependent_types",
    # Components
    "ComponentInstance",
    "ObjectSelector",
    # Scene
    "Scene",
    "SceneNode",
    "migrate_all_components",
    # Export
    "ExportContext",
    "prepare_node_for_export",
]
