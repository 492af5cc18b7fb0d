"""Unit tests for the Schema module."""

import json

import pytest

from gltf_components.schema import (
    ComponentDef,
    PropertyDecl,
    PropertyKind,
    SchemaDocument,
    SchemaParseError,
    TypeDef,
    load_schema_document,
    types_from_dict,
    types_to_dict,
)


class TestPropertyDecl:
    """Tests for property declaration parsing."""

    @pytest.mark.unit
    def test_kind_parsed_as_enum(self):
        decl = PropertyDecl.model_validate({"type": "nodeRef"})
        assert decl.type == PropertyKind.NODE_REF
        assert decl.array_type is None

    @pytest.mark.unit
    def test_array_type_alias(self):
        decl = PropertyDecl.model_validate({"type": "array", "arrayType": "stop"})
        assert decl.array_type == "stop"

    @pytest.mark.unit
    def test_array_without_array_type_rejected(self):
        with pytest.raises(ValueError):
            PropertyDecl.model_validate({"type": "array"})

    @pytest.mark.unit
    def test_unknown_kind_rejected(self):
        with pytest.raises(ValueError):
            PropertyDecl.model_validate({"type": "matrix4"})

    @pytest.mark.unit
    def test_extras_round_trip(self):
        """Unmodelled keys survive a load/dump cycle untouched."""
        raw = {"type": "number", "default": 1, "min": 0, "description": "Brightness"}
        decl = PropertyDecl.model_validate(raw)
        assert decl.has_default
        assert decl.declared_default == 1
        assert decl.extras == {"default": 1, "min": 0, "description": "Brightness"}
        assert decl.to_dict() == raw

    @pytest.mark.unit
    def test_no_default(self):
        decl = PropertyDecl(type=PropertyKind.STRING)
        assert not decl.has_default
        assert decl.to_dict() == {"type": "string"}


class TestDefinitions:
    """Tests for component and type definitions."""

    @pytest.mark.unit
    def test_component_defaults(self):
        component = ComponentDef.model_validate({"properties": {}})
        assert component.multiple is False
        assert component.node is False
        assert component.nodes == []

    @pytest.mark.unit
    def test_type_without_properties_is_allowed_at_load(self):
        """Malformed types are reported by the resolver, not the loader."""
        assert TypeDef.model_validate({}).properties is None

    @pytest.mark.unit
    def test_types_dict_round_trip(self):
        raw = {"stop": {"properties": {"delay": {"type": "number", "default": 0}}}}
        assert types_to_dict(types_from_dict(raw)) == raw

    @pytest.mark.unit
    def test_types_from_none(self):
        assert types_from_dict(None) == {}


class TestSchemaDocument:
    """Tests for SchemaDocument text handling."""

    @pytest.mark.unit
    def test_default_document_loads(self):
        doc = SchemaDocument()
        assert doc.text == SchemaDocument.default_text()
        assert "waypoint" in doc.components
        assert doc.check() == []

    @pytest.mark.unit
    def test_text_and_json_stay_in_sync(self):
        doc = SchemaDocument('{"components": {"a": {"properties": {}}}}')
        text = json.dumps({"components": {"b": {"properties": {}}}})
        doc.set_text(text)
        assert doc.text == text
        assert doc.get_component("a") is None
        assert doc.get_component("b") is not None

    @pytest.mark.unit
    def test_failed_parse_leaves_document_unchanged(self):
        original = '{"components": {"a": {"properties": {}}}}'
        doc = SchemaDocument(original)
        with pytest.raises(SchemaParseError):
            doc.set_text("{not json")
        assert doc.text == original
        assert doc.get_component("a") is not None

    @pytest.mark.unit
    def test_wrong_shape_rejected(self):
        with pytest.raises(SchemaParseError):
            SchemaDocument("[1, 2, 3]")
        with pytest.raises(SchemaParseError):
            SchemaDocument('{"components": {"a": {"properties": {"x": {"type": "?"}}}}}')

    @pytest.mark.unit
    def test_missing_sections_default_to_empty(self):
        doc = SchemaDocument("{}")
        assert doc.components == {}
        assert doc.types == {}

    @pytest.mark.unit
    def test_from_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text('{"components": {"x": {}}}', encoding="utf-8")
        doc = load_schema_document(path)
        assert list(doc.components) == ["x"]

    @pytest.mark.unit
    def test_load_without_path_uses_default(self):
        assert load_schema_document().text == SchemaDocument.default_text()


class TestNodeFiltering:
    """Tests for node-kind exposure helpers."""

    @pytest.fixture
    def doc(self) -> SchemaDocument:
        return SchemaDocument(
            json.dumps(
                {
                    "components": {
                        "anywhere": {"node": True, "properties": {}},
                        "models": {"nodes": ["Model", "Image"], "properties": {}},
                        "lights": {"nodes": ["Point Light"], "properties": {}},
                    }
                }
            )
        )

    @pytest.mark.unit
    def test_node_names(self, doc):
        assert doc.get_node_names() == {"Model", "Image", "Point Light"}

    @pytest.mark.unit
    def test_components_for_node(self, doc):
        assert doc.get_components_for_node("Model") == ["anywhere", "models"]
        assert doc.get_components_for_node("Box") == ["anywhere"]

    @pytest.mark.unit
    def test_has_components_for_node(self, doc):
        assert doc.has_components_for_node("Box") is True
        restricted = SchemaDocument(
            '{"components": {"lights": {"nodes": ["Point Light"]}}}'
        )
        assert restricted.has_components_for_node("Point Light") is True
        assert restricted.has_components_for_node("Model") is False


class TestSchemaCheck:
    """Tests for structural consistency checks."""

    @pytest.mark.unit
    def test_missing_type_reported(self):
        doc = SchemaDocument(
            json.dumps(
                {
                    "components": {
                        "route": {
                            "properties": {
                                "stops": {"type": "array", "arrayType": "stop"}
                            }
                        }
                    }
                }
            )
        )
        issues = doc.check()
        assert len(issues) == 1
        assert issues[0].error_type == "MissingTypeDefinition"
        assert issues[0].path == "components.route.properties.stops"

    @pytest.mark.unit
    def test_circular_type_reported_even_if_unreferenced(self):
        doc = SchemaDocument(
            json.dumps(
                {
                    "types": {
                        "node": {
                            "properties": {
                                "children": {"type": "array", "arrayType": "node"}
                            }
                        }
                    }
                }
            )
        )
        issues = doc.check()
        assert [i.error_type for i in issues] == ["CircularTypeDependency"]

    @pytest.mark.unit
    def test_malformed_type_reported(self):
        doc = SchemaDocument('{"types": {"empty": {}}}')
        issues = doc.check()
        assert issues[0].error_type == "MalformedTypeDefinition"
        assert "empty" in str(issues[0])
