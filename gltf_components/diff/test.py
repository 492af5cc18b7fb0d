"""Unit tests for schema comparison."""

import pytest

from gltf_components.schema import PropertyDecl, TypeDef

from .lib import diff_properties, diff_types


def _decl(kind: str, **extra) -> PropertyDecl:
    return PropertyDecl.model_validate({"type": kind, **extra})


class TestDiffProperties:
    """Tests for diff_properties."""

    @pytest.mark.unit
    def test_identical(self):
        props = {"a": _decl("number", default=1), "b": _decl("nodeRef")}
        result = diff_properties(props, dict(props))
        assert not result.has_changes

    @pytest.mark.unit
    def test_added_and_removed(self):
        result = diff_properties({"old": _decl("string")}, {"new": _decl("number")})
        assert list(result.added) == ["new"]
        assert list(result.removed) == ["old"]
        assert result.updated == {}

    @pytest.mark.unit
    def test_kind_change_distinguished_from_default_change(self):
        old = {"radius": _decl("number", default=1), "label": _decl("string")}
        new = {"radius": _decl("string", default=1), "label": _decl("string", default="x")}
        result = diff_properties(old, new)
        assert result.kind_changed("radius")
        assert not result.kind_changed("label")
        assert result.updated["label"] == {"default"}

    @pytest.mark.unit
    def test_array_type_change(self):
        old = {"items": _decl("array", arrayType="a")}
        new = {"items": _decl("array", arrayType="b")}
        result = diff_properties(old, new)
        assert result.array_type_changed("items")
        assert not result.kind_changed("items")

    @pytest.mark.unit
    def test_array_type_ignored_on_scalar_kinds(self):
        old = {"n": _decl("number"), "s": _decl("string", arrayType="stale")}
        new = {"n": _decl("number", arrayType=None), "s": _decl("string")}
        assert not diff_properties(old, new).has_changes

    @pytest.mark.unit
    def test_array_type_counts_when_kind_becomes_array(self):
        old = {"items": _decl("string", arrayType="a")}
        new = {"items": _decl("array", arrayType="b")}
        result = diff_properties(old, new)
        assert result.updated["items"] == {"type", "arrayType"}

    @pytest.mark.unit
    def test_none_treated_as_empty(self):
        result = diff_properties(None, {"a": _decl("number")})
        assert list(result.added) == ["a"]
        assert not diff_properties(None, None).has_changes


class TestDiffTypes:
    """Tests for diff_types."""

    @pytest.mark.unit
    def test_classification(self):
        old = {
            "same": TypeDef(properties={"v": _decl("number")}),
            "changed": TypeDef(properties={"v": _decl("number")}),
            "gone": TypeDef(properties={}),
        }
        new = {
            "same": TypeDef(properties={"v": _decl("number")}),
            "changed": TypeDef(properties={"v": _decl("string")}),
            "fresh": TypeDef(properties={}),
        }
        result = diff_types(old, new)
        assert result.added == {"fresh"}
        assert result.removed == {"gone"}
        assert result.updated == {"changed"}
        assert result.changed == {"fresh", "gone", "changed"}

    @pytest.mark.unit
    def test_nested_property_added(self):
        old = {"t": TypeDef(properties={"v": _decl("number")})}
        new = {"t": TypeDef(properties={"v": _decl("number"), "w": _decl("number")})}
        assert diff_types(old, new).updated == {"t"}

    @pytest.mark.unit
    def test_empty(self):
        assert not diff_types({}, None).has_changes
