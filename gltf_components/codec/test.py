"""Unit tests for the property codec."""

import pytest

from gltf_components.schema import (
    CodecError,
    MissingTypeDefinition,
    PropertyDecl,
    TypeDef,
)

from .lib import cast, default_element, default_for, deserialize, serialize
from .values import Color, NodeRef


def _decl(kind: str, **extra) -> PropertyDecl:
    return PropertyDecl.model_validate({"type": kind, **extra})


@pytest.fixture
def route_types() -> dict[str, TypeDef]:
    return {
        "stop": TypeDef.model_validate(
            {
                "properties": {
                    "waypoint": {"type": "nodeRef"},
                    "delay": {"type": "number", "default": 2},
                    "tint": {"type": "color"},
                    "actions": {"type": "array", "arrayType": "action"},
                }
            }
        ),
        "action": TypeDef.model_validate(
            {"properties": {"value": {"type": "string"}}}
        ),
    }


class TestColor:
    """Tests for the Color value type."""

    @pytest.mark.unit
    def test_default_is_white(self):
        assert Color() == Color(1.0, 1.0, 1.0)
        assert Color().to_hex() == "#ffffff"

    @pytest.mark.unit
    def test_from_hex(self):
        assert Color.from_hex("#ff0000") == Color(1.0, 0.0, 0.0)
        assert Color.from_hex("00ff00").to_hex() == "#00ff00"

    @pytest.mark.unit
    def test_from_value_accepts_stored_forms(self):
        assert Color.from_value([0.5, 0.25, 0]) == Color(0.5, 0.25, 0.0)
        assert Color.from_value({"r": 0, "g": 1, "b": 0}) == Color(0.0, 1.0, 0.0)

    @pytest.mark.unit
    @pytest.mark.parametrize("bad", ["#fff", [1, 2], [True, 0, 0], 7, None])
    def test_from_value_rejects_garbage(self, bad):
        with pytest.raises(CodecError):
            Color.from_value(bad)


class TestNodeRef:
    """Tests for the NodeRef value type."""

    @pytest.mark.unit
    def test_unset(self):
        assert not NodeRef().is_set
        assert not NodeRef(uuid="").is_set
        assert NodeRef(uuid="abc").is_set

    @pytest.mark.unit
    def test_dict_form(self):
        ref = NodeRef(uuid="abc", object_name="Door")
        assert ref.to_dict() == {"uuid": "abc", "objectName": "Door"}
        assert NodeRef.from_dict(ref.to_dict()) == ref
        assert NodeRef.from_dict(None) == NodeRef()


class TestDefaultFor:
    """Tests for default values."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "kind, expected",
        [
            ("number", 0),
            ("integer", 0),
            ("string", ""),
            ("boolean", False),
            ("color", Color()),
            ("vec2", {"x": 0, "y": 0}),
            ("vec3", {"x": 0, "y": 0, "z": 0}),
            ("vec4", {"x": 0, "y": 0, "z": 0, "w": 0}),
            ("nodeRef", NodeRef()),
        ],
    )
    def test_zero_values(self, kind, expected):
        assert default_for(_decl(kind)) == expected

    @pytest.mark.unit
    def test_array_defaults_to_empty_list(self):
        assert default_for(_decl("array", arrayType="stop")) == []

    @pytest.mark.unit
    def test_declared_defaults(self):
        assert default_for(_decl("number", default=1)) == 1
        assert default_for(_decl("color", default="#ff0000")) == Color(1.0, 0.0, 0.0)
        assert default_for(_decl("vec2", default={"x": 1, "y": 2})) == {"x": 1, "y": 2}

    @pytest.mark.unit
    def test_mismatched_default_falls_back_to_zero_value(self, caplog):
        with caplog.at_level("WARNING", logger="gltf_components.codec.lib"):
            assert default_for(_decl("number", default="1")) == 0
            assert default_for(_decl("color", default="red")) == Color()
        assert "Ignoring default" in caplog.text

    @pytest.mark.unit
    def test_declared_default_is_copied(self):
        decl = _decl("vec2", default={"x": 1, "y": 2})
        value = default_for(decl)
        value["x"] = 99
        assert decl.declared_default == {"x": 1, "y": 2}

    @pytest.mark.unit
    def test_default_element(self, route_types):
        assert default_element("stop", route_types) == {
            "waypoint": NodeRef(),
            "delay": 2,
            "tint": Color(),
            "actions": [],
        }


class TestSerialize:
    """Tests for serialize/deserialize."""

    @pytest.mark.unit
    def test_color_as_triple(self):
        assert serialize(Color(1.0, 0.5, 0.0), _decl("color"), {}) == [1.0, 0.5, 0.0]

    @pytest.mark.unit
    def test_node_ref_stays_unresolved(self):
        ref = NodeRef(uuid="abc")
        assert serialize(ref, _decl("nodeRef"), {}) == {"uuid": "abc", "objectName": None}

    @pytest.mark.unit
    def test_scalars_pass_through(self):
        assert serialize(3.5, _decl("number"), {}) == 3.5
        assert serialize("hi", _decl("string"), {}) == "hi"
        assert serialize(True, _decl("boolean"), {}) is True

    @pytest.mark.unit
    def test_nested_arrays(self, route_types):
        decl = _decl("array", arrayType="stop")
        value = [
            {
                "waypoint": NodeRef(uuid="w1", object_name="Spawn"),
                "delay": 5,
                "tint": Color(0.0, 0.0, 1.0),
                "actions": [{"value": "open"}, {"value": "close"}],
            }
        ]
        document = serialize(value, decl, route_types)
        assert document == [
            {
                "waypoint": {"uuid": "w1", "objectName": "Spawn"},
                "delay": 5,
                "tint": [0.0, 0.0, 1.0],
                "actions": [{"value": "open"}, {"value": "close"}],
            }
        ]
        assert deserialize(document, decl, route_types) == value

    @pytest.mark.unit
    def test_serialize_does_not_alias_vectors(self):
        value = {"x": 1, "y": 2, "z": 3}
        document = serialize(value, _decl("vec3"), {})
        document["x"] = 0
        assert value["x"] == 1

    @pytest.mark.unit
    def test_missing_array_type(self):
        with pytest.raises(MissingTypeDefinition):
            serialize([], _decl("array", arrayType="ghost"), {})

    @pytest.mark.unit
    def test_deserialize_legacy_hex_color(self):
        assert deserialize("#0000ff", _decl("color"), {}) == Color(0.0, 0.0, 1.0)

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "kind, bad",
        [
            ("number", "5"),
            ("number", True),
            ("string", 5),
            ("boolean", 0),
            ("vec2", {"x": 1}),
        ],
    )
    def test_deserialize_rejects_wrong_kind(self, kind, bad):
        with pytest.raises(CodecError):
            deserialize(bad, _decl(kind), {})

    @pytest.mark.unit
    def test_deserialize_rejects_non_list_array(self, route_types):
        with pytest.raises(CodecError):
            deserialize({"delay": 1}, _decl("array", arrayType="stop"), route_types)


class TestCast:
    """Tests for best-effort kind coercion."""

    @pytest.mark.unit
    def test_number_to_string(self):
        assert cast(_decl("string"), 5) == "5"
        assert cast(_decl("string"), 5.0) == "5"
        assert cast(_decl("string"), 2.5) == "2.5"

    @pytest.mark.unit
    def test_string_to_number(self):
        assert cast(_decl("number"), "5") == 5
        assert cast(_decl("number"), " 2.5 ") == 2.5
        assert cast(_decl("number"), "abc") is None
        assert cast(_decl("number"), "nan") is None

    @pytest.mark.unit
    def test_integer_targets(self):
        assert cast(_decl("integer"), 3.0) == 3
        assert cast(_decl("integer"), "7") == 7
        assert cast(_decl("integer"), 3.5) is None

    @pytest.mark.unit
    def test_booleans_are_not_numbers(self):
        assert cast(_decl("string"), True) is None
        assert cast(_decl("number"), False) is None

    @pytest.mark.unit
    def test_zero_is_a_valid_result(self):
        assert cast(_decl("number"), "0") == 0

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "kind, value",
        [
            ("array", 5),
            ("color", "5"),
            ("vec3", 1),
            ("nodeRef", "abc"),
            ("string", [1, 2]),
            ("boolean", "true"),
        ],
    )
    def test_structural_changes_fail(self, kind, value):
        extra = {"arrayType": "stop"} if kind == "array" else {}
        assert cast(_decl(kind, **extra), value) is None
