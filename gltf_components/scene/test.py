"""Unit tests for the scene graph, scene files and batch migration."""

import json

import pytest

from gltf_components.codec import Color
from gltf_components.schema import (
    InvalidComponentProps,
    MissingTypeDefinition,
    SceneFormatError,
)

from . import lib as scene_lib
from .lib import (
    MigrationReport,
    NodeHooks,
    Scene,
    SceneNode,
    SceneObject,
    count_outdated_components,
    dump_scene_file,
    get_node_hooks,
    load_scene_file,
    migrate_all_components,
    register_node_kind,
    scene_from_dict,
    scene_to_dict,
)

LIGHT = {"properties": {"color": {"type": "color", "default": "#ffffff"}}}
LINK = {"properties": {"href": {"type": "string"}}}


@pytest.fixture
def node_kinds(monkeypatch):
    """Isolated node kind registry."""
    registry: dict[str, NodeHooks] = {}
    monkeypatch.setattr(scene_lib, "_node_kinds", registry)
    return registry


class _HookRecorder:
    def __init__(self):
        self.calls: list[tuple] = []

    def hooks(self) -> NodeHooks:
        return NodeHooks(
            on_add=lambda node: self.calls.append(("add", node.name)),
            on_change=lambda node, prop: self.calls.append(("change", node.name, prop)),
            on_remove=lambda node: self.calls.append(("remove", node.name)),
        )


class TestSceneObject:
    """Tests for the scene tree."""

    @pytest.mark.unit
    def test_add_reparents(self):
        a, b, child = SceneObject("a"), SceneObject("b"), SceneObject("child")
        a.add(child)
        b.add(child)
        assert child.parent is b
        assert a.children == []
        assert b.children == [child]

    @pytest.mark.unit
    def test_traverse_depth_first(self):
        root = SceneObject("root")
        left, right, leaf = SceneObject("left"), SceneObject("right"), SceneObject("leaf")
        root.add(left, right)
        left.add(leaf)
        assert [o.name for o in root.traverse()] == ["root", "left", "leaf", "right"]
        assert [o.name for o in leaf.traverse_ancestors()] == ["left", "root"]

    @pytest.mark.unit
    def test_lookups(self):
        root = SceneObject("root")
        door = SceneObject("Door", uuid="door-1")
        root.add(SceneObject("Frame").add(door))
        assert root.get_object_by_uuid("door-1") is door
        assert root.get_object_by_name("Door") is door
        assert root.get_object_by_uuid("missing") is None
        assert root.get_object_by_name("missing") is None

    @pytest.mark.unit
    def test_generated_uuids_are_unique(self):
        assert SceneObject().uuid != SceneObject().uuid


class TestNodeHooks:
    """Tests for per-kind lifecycle dispatch."""

    @pytest.mark.unit
    def test_unknown_kind_gets_noop_hooks(self, node_kinds):
        hooks = get_node_hooks("Nothing")
        node = SceneNode("Nothing")
        hooks.on_add(node)
        hooks.on_change(node, "components")

    @pytest.mark.unit
    def test_hooks_dispatched_by_kind(self, node_kinds, make_schema):
        recorder = _HookRecorder()
        register_node_kind("Model", recorder.hooks())
        scene = Scene(make_schema({"link": LINK}))

        node = scene.add_node(SceneNode("Model", name="Duck"))
        instance = node.add_component("link", scene.schema)
        node.remove_component(instance)
        scene.remove_node(node)

        assert recorder.calls == [
            ("add", "Duck"),
            ("change", "Duck", "components"),
            ("change", "Duck", "components"),
            ("remove", "Duck"),
        ]
        assert node.parent is None

    @pytest.mark.unit
    def test_other_kinds_not_dispatched(self, node_kinds):
        recorder = _HookRecorder()
        register_node_kind("Model", recorder.hooks())
        Scene().add_node(SceneNode("Box"))
        assert recorder.calls == []


class TestNodeComponents:
    """Tests for attaching and persisting components on a node."""

    @pytest.mark.unit
    def test_add_component_attaches_instance(self, make_schema):
        node = SceneNode("Model")
        instance = node.add_component("light", make_schema({"light": LIGHT}))
        assert node.components == [instance]
        assert instance.node is node
        assert node.get_components("light") == [instance]

    @pytest.mark.unit
    def test_components_entry_round_trip(self, make_schema):
        schema = make_schema({"light": LIGHT, "link": LINK})
        node = SceneNode("Model")
        node.add_component("light", schema).data["color"] = Color(0.5, 0.5, 0.5)
        node.add_component("link", schema).data["href"] = "https://example.com"

        entry = node.serialize_components()
        assert entry["name"] == "hubsComponents"
        assert [r["name"] for r in entry["props"]["value"]] == ["light", "link"]

        loaded = SceneNode("Model")
        components = loaded.deserialize_components({"components": [entry]})
        assert [c.data for c in components] == [c.data for c in node.components]
        assert all(c.node is loaded for c in components)

    @pytest.mark.unit
    def test_missing_entry_means_no_components(self):
        node = SceneNode()
        assert node.deserialize_components({"components": [{"name": "transform"}]}) == []

    @pytest.mark.unit
    @pytest.mark.parametrize("props", ["nope", 3, None])
    def test_non_object_props_rejected(self, props):
        entity = {"components": [{"name": "hubsComponents", "props": props}]}
        with pytest.raises(InvalidComponentProps):
            SceneNode().deserialize_components(entity)

    @pytest.mark.unit
    def test_non_list_value_rejected(self):
        entity = {"components": [{"name": "hubsComponents", "props": {"value": {}}}]}
        with pytest.raises(InvalidComponentProps):
            SceneNode().deserialize_components(entity)


class TestEntitySerialization:
    """Tests for node entity form."""

    @pytest.mark.unit
    def test_unrelated_entries_kept_in_place(self, make_schema):
        transform = {"name": "transform", "props": {"position": {"x": 1, "y": 2, "z": 3}}}
        entity = {
            "name": "Lamp",
            "kind": "Point Light",
            "index": 4,
            "components": [
                transform,
                {"name": "visible", "props": {"visible": True}},
                {"name": "hubsComponents", "props": {"value": []}},
            ],
        }
        node = SceneNode.deserialize("lamp-1", entity)
        node.add_component("light", make_schema({"light": LIGHT}))
        node.visible = False

        out = node.serialize()
        assert out["name"] == "Lamp"
        assert out["kind"] == "Point Light"
        assert out["index"] == 4
        assert out["components"][0] == transform
        assert out["components"][1] == {"name": "visible", "props": {"visible": False}}
        assert [r["name"] for r in out["components"][2]["props"]["value"]] == ["light"]

    @pytest.mark.unit
    def test_visibility_loaded(self):
        entity = {"name": "n", "components": [{"name": "visible", "props": {"visible": False}}]}
        assert SceneNode.deserialize("n-1", entity).visible is False

    @pytest.mark.unit
    def test_new_node_writes_only_what_it_has(self):
        assert SceneNode(name="Empty").serialize() == {"name": "Empty", "components": []}

    @pytest.mark.unit
    def test_bad_entity_rejected(self):
        with pytest.raises(InvalidComponentProps):
            SceneNode.deserialize("x", ["not", "an", "entity"])
        with pytest.raises(InvalidComponentProps):
            SceneNode.deserialize("x", {"name": "x", "components": {"a": 1}})


class TestSceneFiles:
    """Tests for loading and saving scenes."""

    @pytest.mark.unit
    def test_parents_and_metadata(self, make_schema):
        data = {
            "version": 1,
            "entities": {
                "child": {"name": "Child", "parent": "root-node", "components": []},
                "root-node": {"name": "Root", "components": []},
            },
        }
        scene = scene_from_dict(data, make_schema({}))
        child = scene.get_object_by_uuid("child")
        assert child.parent is scene.get_object_by_uuid("root-node")
        assert scene.metadata == {"version": 1}
        assert {n.name for n in scene.nodes()} == {"Root", "Child"}

        out = scene_to_dict(scene)
        assert out["version"] == 1
        assert out["entities"]["child"]["parent"] == "root-node"
        assert "parent" not in out["entities"]["root-node"]

    @pytest.mark.unit
    @pytest.mark.parametrize("data", [[], {}, {"entities": []}])
    def test_not_a_scene(self, data):
        with pytest.raises(SceneFormatError):
            scene_from_dict(data)

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "parents",
        [{"a": "b", "b": "a"}, {"a": "a"}, {"a": "b", "b": "c", "c": "b"}],
    )
    def test_parent_cycle_rejected(self, parents):
        entities = {
            uuid: {"name": uuid, "parent": parent, "components": []}
            for uuid, parent in parents.items()
        }
        with pytest.raises(SceneFormatError, match="cycle"):
            scene_from_dict({"entities": entities})

    @pytest.mark.unit
    def test_unknown_parent_attaches_to_root(self):
        entities = {
            "a": {"name": "A", "parent": "b", "components": []},
            "b": {"name": "B", "parent": "gone", "components": []},
        }
        scene = scene_from_dict({"entities": entities})
        assert scene.get_object_by_uuid("b").parent is scene
        assert set(scene_to_dict(scene)["entities"]) == {"a", "b"}

    @pytest.mark.unit
    def test_file_round_trip(self, tmp_path, make_schema):
        schema = make_schema({"link": LINK})
        scene = Scene(schema)
        node = scene.add_node(SceneNode("Box", name="Sign", uuid="sign"))
        node.add_component("link", schema).data["href"] = "https://example.com"

        path = dump_scene_file(scene, tmp_path / "scene.json")
        loaded = load_scene_file(path, schema)
        sign = loaded.get_object_by_uuid("sign")
        assert sign.kind == "Box"
        assert sign.components[0].data == {"href": "https://example.com"}
        assert loaded.schema is schema

    @pytest.mark.unit
    def test_invalid_json_file(self, tmp_path):
        path = tmp_path / "scene.json"
        path.write_text("{oops", encoding="utf-8")
        with pytest.raises(SceneFormatError):
            load_scene_file(path)


class TestBatchMigration:
    """Tests for migrating every component in a scene."""

    @pytest.fixture
    def scene(self, make_schema) -> Scene:
        schema = make_schema({"light": LIGHT, "link": LINK, "foo": LINK})
        scene = Scene(schema)
        lamp = scene.add_node(SceneNode("Point Light", name="Lamp"))
        lamp.add_component("light", schema)
        lamp.add_component("foo", schema)
        sign = scene.add_node(SceneNode("Box", name="Sign"))
        sign.add_component("link", schema).data["href"] = "https://example.com"
        return scene

    @pytest.mark.unit
    def test_updates_deletes_and_keeps(self, scene, make_schema, node_kinds):
        recorder = _HookRecorder()
        register_node_kind("Point Light", recorder.hooks())
        register_node_kind("Box", recorder.hooks())

        light = {"properties": {**LIGHT["properties"], "intensity": {"type": "number", "default": 1}}}
        latest = make_schema({"light": light, "link": LINK})
        nodes = scene.nodes()

        assert count_outdated_components(nodes, latest) == 2
        report = migrate_all_components(nodes, latest)

        lamp, sign = nodes
        assert [c.name for c in report.updated] == ["light"]
        assert [c.name for c in report.deleted] == ["foo"]
        assert [c.name for c in report.kept] == ["link"]
        assert report.changed == 2
        assert not report.has_failures

        assert [c.name for c in lamp.components] == ["light"]
        assert lamp.components[0].data["intensity"] == 1
        assert sign.components[0].data == {"href": "https://example.com"}
        assert recorder.calls == [("change", "Lamp", "components")]
        assert count_outdated_components(nodes, latest) == 0

    @pytest.mark.unit
    def test_failure_isolated_to_one_instance(self, scene, make_schema):
        broken_light = {
            "properties": {
                **LIGHT["properties"],
                "steps": {"type": "array", "arrayType": "missing"},
            }
        }
        link = {"properties": {"href": {"type": "string"}, "newTab": {"type": "boolean"}}}
        latest = make_schema({"light": broken_light, "link": link, "foo": LINK})

        lamp, sign = scene.nodes()
        light_before = lamp.components[0].serialize()
        report = migrate_all_components(scene.nodes(), latest)

        assert len(report.failed) == 1
        failed, error = report.failed[0]
        assert failed is lamp.components[0]
        assert isinstance(error, MissingTypeDefinition)
        assert lamp.components[0].serialize() == light_before

        assert [c.name for c in report.updated] == ["link"]
        assert sign.components[0].data == {"href": "https://example.com", "newTab": False}

    @pytest.mark.unit
    def test_empty_report(self):
        report = migrate_all_components([], None)
        assert report == MigrationReport()
        assert report.changed == 0

    @pytest.mark.unit
    def test_scene_schema_replaced(self, scene):
        scene.set_schema_text(json.dumps({"components": {"link": LINK}}))
        assert count_outdated_components(scene.nodes(), scene.schema) == 2
