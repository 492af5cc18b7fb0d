"""Unit tests for component instances."""

import pytest

from gltf_components.codec import Color, NodeRef
from gltf_components.schema import (
    CircularTypeDependency,
    CodecError,
    InvalidComponentProps,
)

from .lib import ComponentInstance
from .selector import ObjectSelector

LIGHT = {"properties": {"color": {"type": "color", "default": "#ffffff"}}}

ROUTE_TYPES = {
    "stop": {
        "properties": {
            "waypoint": {"type": "nodeRef"},
            "delay": {"type": "number", "default": 0},
            "actions": {"type": "array", "arrayType": "action"},
        }
    },
    "action": {"properties": {"value": {"type": "string"}}},
}

ROUTE = {
    "properties": {
        "loop": {"type": "boolean", "default": True},
        "stops": {"type": "array", "arrayType": "stop"},
        "tint": {"type": "color"},
        "offset": {"type": "vec3"},
        "target": {"type": "nodeRef"},
    }
}


def _route_data() -> dict:
    return {
        "loop": False,
        "stops": [
            {
                "waypoint": NodeRef(uuid="w1"),
                "delay": 3,
                "actions": [{"value": "open"}],
            },
            {"waypoint": NodeRef(uuid="w2", object_name="Gate"), "delay": 0},
        ],
        "tint": Color(0.2, 0.4, 0.6),
        "offset": {"x": 1, "y": 2, "z": 3},
        "target": NodeRef(uuid="t1"),
    }


class TestCreate:
    """Tests for constructing instances from the current schema."""

    @pytest.mark.unit
    def test_defaults_in_declaration_order(self, make_schema):
        schema = make_schema({"route": ROUTE}, ROUTE_TYPES)
        instance = ComponentInstance.create("route", schema)
        assert list(instance.data) == ["loop", "stops", "tint", "offset", "target"]
        assert instance.data["loop"] is True
        assert instance.data["stops"] == []
        assert instance.data["target"] == NodeRef()
        assert set(instance.types) == {"stop", "action"}
        assert not instance.is_orphan

    @pytest.mark.unit
    def test_unknown_name_builds_orphan_stub(self, make_schema):
        instance = ComponentInstance.create("ghost", make_schema({}))
        assert instance.is_orphan
        assert instance.config is None
        assert instance.types == {}
        assert instance.data == {}

    @pytest.mark.unit
    def test_circular_types_rejected(self, make_schema):
        schema = make_schema(
            {"tree": {"properties": {"root": {"type": "array", "arrayType": "n"}}}},
            {"n": {"properties": {"kids": {"type": "array", "arrayType": "n"}}}},
        )
        with pytest.raises(CircularTypeDependency):
            ComponentInstance.create("tree", schema)

    @pytest.mark.unit
    def test_mismatched_default_uses_zero_value(self, make_schema):
        schema = make_schema({"c": {"properties": {"n": {"type": "number", "default": "1"}}}})
        assert schema.check() == []
        assert ComponentInstance.create("c", schema).data == {"n": 0}

    @pytest.mark.unit
    def test_frozen_schema_ignores_later_edits(self, make_schema):
        schema = make_schema({"light": LIGHT})
        instance = ComponentInstance.create("light", schema)
        schema.set_text('{"components": {}}')
        assert "color" in instance.config.properties


class TestSerialization:
    """Tests for persisting and reloading instances."""

    @pytest.mark.unit
    def test_record_embeds_schema(self, make_schema):
        schema = make_schema({"light": LIGHT})
        record = ComponentInstance.create("light", schema).serialize()
        assert record == {
            "name": "light",
            "selector": {"objectName": None},
            "config": LIGHT,
            "types": {},
            "data": {"color": [1.0, 1.0, 1.0]},
        }

    @pytest.mark.unit
    def test_round_trip_all_kinds(self, make_schema):
        schema = make_schema({"route": ROUTE}, ROUTE_TYPES)
        instance = ComponentInstance.create("route", schema)
        instance.data = _route_data()
        instance.selector = ObjectSelector("Door")

        restored = ComponentInstance.deserialize(instance.serialize())
        assert restored.data == instance.data
        assert restored.config == instance.config
        assert restored.types == instance.types
        assert restored.selector == ObjectSelector("Door")

    @pytest.mark.unit
    def test_round_trip_defaults(self, make_schema):
        schema = make_schema({"route": ROUTE}, ROUTE_TYPES)
        instance = ComponentInstance.create("route", schema)
        restored = ComponentInstance.deserialize(instance.serialize())
        assert restored.data == instance.data

    @pytest.mark.unit
    def test_old_record_loads_after_schema_removed_it(self, make_schema):
        record = ComponentInstance.create(
            "route", make_schema({"route": ROUTE}, ROUTE_TYPES)
        ).serialize()
        record["data"]["stops"] = [{"delay": 4, "actions": []}]
        restored = ComponentInstance.deserialize(record)
        assert restored.data["stops"] == [{"delay": 4, "actions": []}]
        assert restored.needs_update(make_schema({}))

    @pytest.mark.unit
    def test_orphan_round_trip(self):
        record = ComponentInstance("ghost").serialize()
        assert record["config"] is None
        restored = ComponentInstance.deserialize(record)
        assert restored.is_orphan
        assert restored.data == {}

    @pytest.mark.unit
    def test_non_object_record(self):
        with pytest.raises(InvalidComponentProps):
            ComponentInstance.deserialize(["light"])

    @pytest.mark.unit
    def test_data_for_undeclared_property(self, make_schema):
        record = ComponentInstance.create("light", make_schema({"light": LIGHT})).serialize()
        record["data"]["bogus"] = 1
        with pytest.raises(CodecError):
            ComponentInstance.deserialize(record)

    @pytest.mark.unit
    def test_node_is_attached(self, make_schema):
        node = object()
        record = ComponentInstance.create("light", make_schema({"light": LIGHT})).serialize()
        assert ComponentInstance.deserialize(record, node).node is node


class TestNeedsUpdate:
    """Tests for drift detection."""

    @pytest.mark.unit
    def test_fresh_instance_is_current(self, make_schema):
        schema = make_schema({"route": ROUTE}, ROUTE_TYPES)
        assert not ComponentInstance.create("route", schema).needs_update(schema)

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "properties",
        [
            {"color": LIGHT["properties"]["color"], "intensity": {"type": "number"}},
            {},
            {"color": {"type": "string", "default": "#ffffff"}},
        ],
        ids=["added", "removed", "kind-changed"],
    )
    def test_property_changes(self, make_schema, properties):
        schema = make_schema({"light": LIGHT})
        instance = ComponentInstance.create("light", schema)
        schema.set_text(make_schema({"light": {"properties": properties}}).text)
        assert instance.needs_update(schema)

    @pytest.mark.unit
    def test_nested_type_change(self, make_schema):
        schema = make_schema({"route": ROUTE}, ROUTE_TYPES)
        instance = ComponentInstance.create("route", schema)
        types = {**ROUTE_TYPES, "action": {"properties": {"value": {"type": "number"}}}}
        assert instance.needs_update(make_schema({"route": ROUTE}, types))

    @pytest.mark.unit
    def test_removed_component(self, make_schema):
        instance = ComponentInstance.create("light", make_schema({"light": LIGHT}))
        assert instance.needs_update(make_schema({}))

    @pytest.mark.unit
    def test_orphan_stays_orphan(self, make_schema):
        instance = ComponentInstance.create("ghost", make_schema({}))
        assert not instance.needs_update(make_schema({}))
        assert instance.needs_update(make_schema({"ghost": LIGHT}))


class TestDataMigration:
    """Tests for migrating data to the current schema."""

    @pytest.mark.unit
    def test_added_property_gets_default(self, make_schema):
        schema = make_schema({"light": LIGHT})
        instance = ComponentInstance.create("light", schema)
        instance.data["color"] = Color(1.0, 0.0, 0.0)

        latest = make_schema(
            {
                "light": {
                    "properties": {
                        **LIGHT["properties"],
                        "intensity": {"type": "number", "default": 1},
                    }
                }
            }
        )
        assert instance.needs_update(latest)
        assert instance.get_data_migration(latest) == {
            "color": Color(1.0, 0.0, 0.0),
            "intensity": 1,
        }

    @pytest.mark.unit
    def test_kind_change_casts_or_defaults(self, make_schema):
        before = {"properties": {"radius": {"type": "number"}}}
        after = {"properties": {"radius": {"type": "string", "default": "small"}}}
        instance = ComponentInstance.create("ball", make_schema({"ball": before}))

        instance.data["radius"] = 5
        assert instance.get_data_migration(make_schema({"ball": after})) == {
            "radius": "5"
        }

        back = {"properties": {"radius": {"type": "number", "default": 2}}}
        text = ComponentInstance.create("ball", make_schema({"ball": after}))
        text.data["radius"] = "huge"
        assert text.get_data_migration(make_schema({"ball": back})) == {"radius": 2}

    @pytest.mark.unit
    def test_structural_kind_change_resets(self, make_schema):
        before = {"properties": {"points": {"type": "number"}}}
        after = {"properties": {"points": {"type": "array", "arrayType": "stop"}}}
        instance = ComponentInstance.create("p", make_schema({"p": before}))
        instance.data["points"] = 4
        migrated = instance.get_data_migration(make_schema({"p": after}, ROUTE_TYPES))
        assert migrated == {"points": []}

    @pytest.mark.unit
    def test_removed_component_signals_deletion(self, make_schema):
        instance = ComponentInstance.create("foo", make_schema({"foo": LIGHT}))
        assert instance.get_data_migration(make_schema({})) is None

    @pytest.mark.unit
    def test_removed_property_is_dropped(self, make_schema):
        before = {"properties": {"a": {"type": "number"}, "b": {"type": "string"}}}
        after = {"properties": {"a": {"type": "number"}}}
        instance = ComponentInstance.create("c", make_schema({"c": before}))
        instance.data = {"a": 7, "b": "gone"}
        assert instance.get_data_migration(make_schema({"c": after})) == {"a": 7}

    @pytest.mark.unit
    def test_default_change_keeps_data(self, make_schema):
        before = {"properties": {"a": {"type": "number", "default": 1}}}
        after = {"properties": {"a": {"type": "number", "default": 2}}}
        instance = ComponentInstance.create("c", make_schema({"c": before}))
        instance.data["a"] = 9
        latest = make_schema({"c": after})
        assert instance.needs_update(latest)
        assert instance.get_data_migration(latest) == {"a": 9}

    @pytest.mark.unit
    def test_stray_array_type_on_scalar_keeps_data(self, make_schema):
        before = {"properties": {"n": {"type": "number"}}}
        after = {"properties": {"n": {"type": "number", "arrayType": None}}}
        instance = ComponentInstance.create("c", make_schema({"c": before}))
        instance.data["n"] = 42
        latest = make_schema({"c": after})
        assert not instance.needs_update(latest)
        assert instance.get_data_migration(latest) == {"n": 42}

    @pytest.mark.unit
    def test_added_property_with_mismatched_default(self, make_schema):
        instance = ComponentInstance.create("light", make_schema({"light": LIGHT}))
        added = {"intensity": {"type": "number", "default": "bright"}}
        latest = make_schema({"light": {"properties": {**LIGHT["properties"], **added}}})
        assert instance.get_data_migration(latest)["intensity"] == 0

    @pytest.mark.unit
    def test_array_type_change_resets(self, make_schema):
        schema = make_schema({"route": ROUTE}, ROUTE_TYPES)
        instance = ComponentInstance.create("route", schema)
        instance.data = _route_data()

        route = {"properties": {**ROUTE["properties"]}}
        route["properties"]["stops"] = {"type": "array", "arrayType": "action"}
        migrated = instance.get_data_migration(make_schema({"route": route}, ROUTE_TYPES))
        assert migrated["stops"] == []
        assert migrated["loop"] is False

    @pytest.mark.unit
    def test_nested_type_drift_resets_array(self, make_schema):
        """A change two composite levels down still resets the array."""
        schema = make_schema({"route": ROUTE}, ROUTE_TYPES)
        instance = ComponentInstance.create("route", schema)
        instance.data = _route_data()

        types = {
            **ROUTE_TYPES,
            "action": {"properties": {"value": {"type": "string"}, "delay": {"type": "number"}}},
        }
        migrated = instance.get_data_migration(make_schema({"route": ROUTE}, types))
        assert migrated["stops"] == []
        assert migrated["target"] == NodeRef(uuid="t1")

    @pytest.mark.unit
    def test_migration_does_not_touch_instance(self, make_schema):
        schema = make_schema({"route": ROUTE}, ROUTE_TYPES)
        instance = ComponentInstance.create("route", schema)
        instance.data = _route_data()
        before = instance.serialize()

        instance.get_data_migration(make_schema({"route": {"properties": {}}}))
        assert instance.serialize() == before

    @pytest.mark.unit
    def test_migration_is_idempotent(self, make_schema):
        schema = make_schema({"route": ROUTE}, ROUTE_TYPES)
        instance = ComponentInstance.create("route", schema)
        instance.data = _route_data()

        route = {"properties": {**ROUTE["properties"], "speed": {"type": "number"}}}
        route["properties"].pop("loop")
        latest = make_schema(
            {"route": route},
            {**ROUTE_TYPES, "action": {"properties": {"value": {"type": "number"}}}},
        )

        instance.adopt_schema(latest, instance.get_data_migration(latest))
        assert not instance.needs_update(latest)
        assert instance.get_data_migration(latest) == instance.data
        assert instance.data["speed"] == 0
        assert "loop" not in instance.data


class TestExportName:
    """Tests for runtime naming of multi-instance components."""

    class _Node:
        def __init__(self):
            self.components = []

    @pytest.mark.unit
    def test_single_instance_keeps_name(self, make_schema):
        instance = ComponentInstance.create("light", make_schema({"light": LIGHT}))
        assert instance.export_name() == "light"

    @pytest.mark.unit
    def test_multiple_instances_get_index_suffix(self, make_schema):
        schema = make_schema(
            {
                "anim": {"multiple": True, "properties": {}},
                "light": LIGHT,
            }
        )
        node = self._Node()
        first = ComponentInstance.create("anim", schema, node)
        light = ComponentInstance.create("light", schema, node)
        second = ComponentInstance.create("anim", schema, node)
        node.components = [first, light, second]

        assert first.export_name() == "anim__0"
        assert second.export_name() == "anim__1"
        assert light.export_name() == "light"


class TestObjectSelector:
    """Tests for the default selector."""

    class _Obj:
        def __init__(self, name, children=()):
            self.name = name
            self.children = list(children)

        def traverse(self):
            yield self
            for child in self.children:
                yield from child.traverse()

    @pytest.mark.unit
    def test_default_matches_node(self):
        node = self._Obj("root")
        assert ObjectSelector().get_matches(node) == [node]

    @pytest.mark.unit
    def test_named_matches_descendants(self):
        door_a, door_b = self._Obj("Door"), self._Obj("Door")
        node = self._Obj("Door", [self._Obj("Frame", [door_a]), door_b])
        assert ObjectSelector("Door").get_matches(node) == [door_a, door_b]

    @pytest.mark.unit
    def test_serialization(self):
        assert ObjectSelector("Door").serialize() == {"objectName": "Door"}
        assert ObjectSelector.deserialize(None) == ObjectSelector()
        assert ObjectSelector.deserialize({"objectName": "X"}) == ObjectSelector("X")
        with pytest.raises(InvalidComponentProps):
            ObjectSelector.deserialize("X")
