"""Unit tests for the export adapter."""

import pytest

from gltf_components.codec import Color, NodeRef
from gltf_components.component import ComponentInstance, ObjectSelector
from gltf_components.scene import Scene, SceneNode, SceneObject
from gltf_components.schema import (
    InvalidComponentProps,
    NodeReferenceError,
    UnresolvedNodeReference,
    UnsetNodeReference,
)

from .lib import (
    ExportContext,
    add_gltf_component,
    export_extensions,
    gltf_index_for_uuid,
    prepare_for_export,
    prepare_node_for_export,
    prepare_scene_for_export,
)

EXT = "MOZ_hubs_components"

COMPONENTS = {
    "trigger": {
        "properties": {
            "target": {"type": "nodeRef"},
            "actions": {"type": "array", "arrayType": "action"},
        }
    },
    "tint": {"multiple": True, "properties": {"color": {"type": "color"}}},
    "link": {"properties": {"href": {"type": "string"}}},
}
TYPES = {
    "action": {
        "properties": {
            "subject": {"type": "nodeRef"},
            "property": {"type": "string", "default": "visible"},
        }
    }
}


def _bag(obj) -> dict:
    return obj.user_data["gltfExtensions"][EXT]


@pytest.fixture
def schema(make_schema):
    return make_schema(COMPONENTS, TYPES)


@pytest.fixture
def scene(schema) -> Scene:
    """Scene with a trigger node, a door node and a model holding a "Lid" object."""
    scene = Scene(schema)
    scene.add_node(SceneNode("Box", name="Trigger", uuid="trigger"))
    scene.add_node(SceneNode("Box", name="Door", uuid="door"))
    model = scene.add_node(SceneNode("Model", name="Chest", uuid="chest"))
    model.add(SceneObject("Lid", uuid="lid"))
    return scene


@pytest.fixture
def context(scene) -> ExportContext:
    return ExportContext.for_scene(scene, extension_name=EXT)


class TestAddGltfComponent:
    """Tests for writing into the extension bag."""

    @pytest.mark.unit
    def test_single_value_replaced(self):
        obj = SceneObject("o")
        add_gltf_component(obj, "link", {"href": "a"}, extension_name=EXT)
        add_gltf_component(obj, "link", {"href": "b"}, extension_name=EXT)
        assert _bag(obj) == {"link": {"href": "b"}}

    @pytest.mark.unit
    def test_multiple_values_appended(self):
        obj = SceneObject("o")
        add_gltf_component(obj, "tint", {"color": Color(1.0, 0.0, 0.0)}, True, EXT)
        add_gltf_component(obj, "tint", {"color": [0.0, 1.0, 0.0]}, True, EXT)
        assert _bag(obj) == {
            "tint": [{"color": [1.0, 0.0, 0.0]}, {"color": [0.0, 1.0, 0.0]}]
        }

    @pytest.mark.unit
    def test_missing_props_written_empty(self):
        obj = SceneObject("o")
        add_gltf_component(obj, "__noderef", extension_name=EXT)
        assert _bag(obj) == {"__noderef": {}}

    @pytest.mark.unit
    @pytest.mark.parametrize("props", ["visible", 1, ["a"]])
    def test_non_object_props_rejected(self, props):
        with pytest.raises(InvalidComponentProps):
            add_gltf_component(SceneObject("o"), "visible", props)

    @pytest.mark.unit
    def test_extension_name_from_environment(self, monkeypatch):
        monkeypatch.setenv("GLTF_EXTENSION_NAME", "EXT_custom")
        obj = SceneObject("o")
        add_gltf_component(obj, "link", {})
        assert obj.user_data["gltfExtensions"] == {"EXT_custom": {"link": {}}}

    @pytest.mark.unit
    def test_index_marker(self):
        assert gltf_index_for_uuid("abc") == {"__gltfIndexForUUID": "abc"}


class TestPrepareForExport:
    """Tests for exporting a single component instance."""

    @pytest.mark.unit
    def test_live_scene_reference(self, scene, context):
        trigger = scene.get_object_by_uuid("trigger")
        door = scene.get_object_by_uuid("door")
        instance = trigger.add_component("trigger", scene.schema)
        instance.data["target"] = NodeRef(uuid="door")

        data = prepare_for_export(instance, trigger, context)

        assert data == {"target": {"__gltfIndexForUUID": "door"}, "actions": []}
        assert _bag(trigger)["trigger"] == data
        assert door.user_data["MOZ_spoke_uuid"] == "door"
        assert _bag(door) == {"__noderef": {}}

    @pytest.mark.unit
    def test_references_inside_arrays(self, scene, context):
        trigger = scene.get_object_by_uuid("trigger")
        instance = trigger.add_component("trigger", scene.schema)
        instance.data["target"] = NodeRef(uuid="door")
        instance.data["actions"] = [
            {"subject": NodeRef(uuid="chest", object_name="Lid"), "property": "open"},
            {"subject": NodeRef(uuid="door"), "property": "visible"},
        ]

        data = prepare_for_export(instance, trigger, context)

        assert data["actions"] == [
            {"subject": {"__gltfIndexForUUID": "lid"}, "property": "open"},
            {"subject": {"__gltfIndexForUUID": "door"}, "property": "visible"},
        ]
        lid = scene.get_object_by_uuid("lid")
        assert lid.user_data["MOZ_spoke_uuid"] == "lid"
        assert "__noderef" in _bag(lid)

    @pytest.mark.unit
    def test_model_references_use_export_scene(self, scene, schema):
        """Objects inside models are looked up in the export copy."""
        export_scene = Scene(schema)
        copy = export_scene.add_node(SceneNode("Model", name="Chest", uuid="chest"))
        exported_lid = SceneObject("Lid", uuid="lid-export")
        copy.add(exported_lid)
        context = ExportContext.for_scene(scene, export_scene, extension_name=EXT)

        trigger = scene.get_object_by_uuid("trigger")
        instance = trigger.add_component("trigger", schema)
        instance.data["target"] = NodeRef(uuid="chest", object_name="Lid")

        data = prepare_for_export(instance, trigger, context)
        assert data["target"] == {"__gltfIndexForUUID": "lid-export"}
        assert exported_lid.user_data["MOZ_spoke_uuid"] == "lid-export"
        assert "gltfExtensions" not in scene.get_object_by_uuid("lid").user_data

    @pytest.mark.unit
    @pytest.mark.parametrize("uuid", ["", None])
    def test_unset_reference(self, scene, context, uuid):
        trigger = scene.get_object_by_uuid("trigger")
        instance = trigger.add_component("trigger", scene.schema)
        instance.data["target"] = NodeRef(uuid=uuid)

        with pytest.raises(UnsetNodeReference) as exc_info:
            prepare_for_export(instance, trigger, context)
        assert exc_info.value.component_name == "trigger"
        assert exc_info.value.property_name == "target"
        assert exc_info.value.node_name == "Trigger"
        assert "gltfExtensions" not in trigger.user_data

    @pytest.mark.unit
    def test_unset_reference_inside_array(self, scene, context):
        trigger = scene.get_object_by_uuid("trigger")
        instance = trigger.add_component("trigger", scene.schema)
        instance.data["target"] = NodeRef(uuid="door")
        instance.data["actions"] = [{"subject": NodeRef(), "property": "visible"}]

        with pytest.raises(UnsetNodeReference) as exc_info:
            prepare_for_export(instance, trigger, context)
        assert exc_info.value.property_name == "subject"

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "ref",
        [NodeRef(uuid="ghost"), NodeRef(uuid="chest", object_name="Handle")],
        ids=["live", "model"],
    )
    def test_unresolved_reference(self, scene, context, ref):
        trigger = scene.get_object_by_uuid("trigger")
        instance = trigger.add_component("trigger", scene.schema)
        instance.data["target"] = ref

        with pytest.raises(UnresolvedNodeReference):
            prepare_for_export(instance, trigger, context)

    @pytest.mark.unit
    def test_multiple_instances_appended(self, scene, context):
        door = scene.get_object_by_uuid("door")
        door.add_component("tint", scene.schema).data["color"] = Color(1.0, 0.0, 0.0)
        door.add_component("tint", scene.schema)

        for instance in door.components:
            prepare_for_export(instance, door, context)
        assert _bag(door)["tint"] == [
            {"color": [1.0, 0.0, 0.0]},
            {"color": [1.0, 1.0, 1.0]},
        ]

    @pytest.mark.unit
    def test_orphan_skipped(self, scene, context):
        door = scene.get_object_by_uuid("door")
        instance = ComponentInstance("ghost", node=door)
        assert prepare_for_export(instance, door, context) is None
        assert door.user_data == {}

    @pytest.mark.unit
    def test_instance_data_untouched(self, scene, context):
        trigger = scene.get_object_by_uuid("trigger")
        instance = trigger.add_component("trigger", scene.schema)
        instance.data["target"] = NodeRef(uuid="door")
        prepare_for_export(instance, trigger, context)
        assert instance.data["target"] == NodeRef(uuid="door")


class TestPrepareNodeForExport:
    """Tests for exporting every component of a node."""

    @pytest.mark.unit
    def test_node_tagged(self, scene, context):
        door = scene.get_object_by_uuid("door")
        door.add_component("link", scene.schema).data["href"] = "https://example.com"
        prepare_node_for_export(door, context)
        assert door.user_data["MOZ_spoke_uuid"] == "door"
        assert _bag(door) == {"link": {"href": "https://example.com"}}

    @pytest.mark.unit
    def test_hidden_node_gets_visible_component(self, scene, context):
        door = scene.get_object_by_uuid("door")
        door.visible = False
        prepare_node_for_export(door, context)
        assert _bag(door) == {"visible": {"visible": False}}

    @pytest.mark.unit
    def test_visible_node_without_components_has_no_bag(self, scene, context):
        door = scene.get_object_by_uuid("door")
        prepare_node_for_export(door, context)
        assert "gltfExtensions" not in door.user_data

    @pytest.mark.unit
    def test_selector_targets_named_objects(self, scene, context):
        chest = scene.get_object_by_uuid("chest")
        instance = chest.add_component("link", scene.schema)
        instance.data["href"] = "https://example.com"
        instance.selector = ObjectSelector("Lid")

        prepare_node_for_export(chest, context)
        lid = scene.get_object_by_uuid("lid")
        assert _bag(lid) == {"link": {"href": "https://example.com"}}
        assert "gltfExtensions" not in chest.user_data

    @pytest.mark.unit
    def test_unset_reference_aborts_node(self, scene, context):
        trigger = scene.get_object_by_uuid("trigger")
        trigger.add_component("trigger", scene.schema)
        with pytest.raises(NodeReferenceError):
            prepare_node_for_export(trigger, context)


class TestPrepareSceneForExport:
    """Tests for whole-scene export."""

    @pytest.mark.unit
    def test_collects_extensions(self, scene):
        trigger = scene.get_object_by_uuid("trigger")
        instance = trigger.add_component("trigger", scene.schema)
        instance.data["target"] = NodeRef(uuid="door")

        context = prepare_scene_for_export(scene, ExportContext.for_scene(scene, extension_name=EXT))
        assert context.extension_name == EXT

        exported = export_extensions(scene, EXT)
        assert set(exported) == {"trigger", "door"}
        assert exported["door"] == {"name": "Door", "extensions": {EXT: {"__noderef": {}}}}
        assert exported["trigger"]["extensions"][EXT]["trigger"]["target"] == {
            "__gltfIndexForUUID": "door"
        }
