"""Unit tests for composite type resolution."""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from gltf_components.schema import (
    CircularTypeDependency,
    MalformedTypeDefinition,
    MissingTypeDefinition,
    PropertyDecl,
    SchemaDocument,
    TypeDef,
)

from .lib import resolve_component_types, resolve_dependent_types


def _array(type_name: str) -> PropertyDecl:
    return PropertyDecl(type="array", arrayType=type_name)


def _type(**props: PropertyDecl) -> TypeDef:
    return TypeDef(properties=props)


class TestResolveDependentTypes:
    """Tests for resolve_dependent_types."""

    @pytest.mark.unit
    def test_scalar_properties_need_no_types(self):
        props = {"a": PropertyDecl(type="number"), "b": PropertyDecl(type="nodeRef")}
        assert resolve_dependent_types(props, {}) == {}

    @pytest.mark.unit
    def test_direct_reference(self):
        stop = _type(delay=PropertyDecl(type="number"))
        result = resolve_dependent_types({"stops": _array("stop")}, {"stop": stop})
        assert result == {"stop": stop}

    @pytest.mark.unit
    def test_transitive_reference(self):
        types = {
            "route": _type(stops=_array("stop")),
            "stop": _type(actions=_array("action")),
            "action": _type(value=PropertyDecl(type="string")),
            "unused": _type(),
        }
        result = resolve_dependent_types({"route": _array("route")}, types)
        assert set(result) == {"route", "stop", "action"}

    @pytest.mark.unit
    def test_shared_dependency_included_once(self):
        """Diamond-shaped references are not mistaken for cycles."""
        types = {
            "left": _type(leaf=_array("leaf")),
            "right": _type(leaf=_array("leaf")),
            "leaf": _type(),
        }
        props = {"l": _array("left"), "r": _array("right")}
        result = resolve_dependent_types(props, types)
        assert list(result) == ["left", "leaf", "right"]

    @pytest.mark.unit
    def test_missing_type(self):
        with pytest.raises(MissingTypeDefinition) as exc_info:
            resolve_dependent_types({"stops": _array("stop")}, {})
        assert exc_info.value.type_name == "stop"
        assert exc_info.value.property_name == "stops"

    @pytest.mark.unit
    def test_missing_nested_type(self):
        types = {"stop": _type(actions=_array("action"))}
        with pytest.raises(MissingTypeDefinition) as exc_info:
            resolve_dependent_types({"stops": _array("stop")}, types)
        assert exc_info.value.type_name == "action"

    @pytest.mark.unit
    def test_malformed_type(self):
        with pytest.raises(MalformedTypeDefinition):
            resolve_dependent_types({"stops": _array("stop")}, {"stop": TypeDef()})

    @pytest.mark.unit
    def test_self_reference(self):
        types = {"tree": _type(children=_array("tree"))}
        with pytest.raises(CircularTypeDependency) as exc_info:
            resolve_dependent_types({"root": _array("tree")}, types)
        assert exc_info.value.type_name == "tree"

    @pytest.mark.unit
    def test_mutual_reference(self):
        types = {"a": _type(b=_array("b")), "b": _type(a=_array("a"))}
        with pytest.raises(CircularTypeDependency):
            resolve_dependent_types({"start": _array("a")}, types)

    @pytest.mark.unit
    def test_inputs_not_mutated(self):
        types = {"stop": _type(delay=PropertyDecl(type="number"))}
        snapshot = dict(types)
        resolve_dependent_types({"stops": _array("stop")}, types)
        assert types == snapshot


@st.composite
def _acyclic_schema(draw):
    """Type table whose arrayType edges only point to later types."""
    count = draw(st.integers(min_value=1, max_value=8))
    names = [f"t{i}" for i in range(count)]
    edges: dict[str, list[str]] = {}
    for i, name in enumerate(names):
        later = names[i + 1 :]
        edges[name] = draw(st.lists(st.sampled_from(later), max_size=3)) if later else []
    types = {
        name: TypeDef(
            properties={
                f"p{j}": _array(target) for j, target in enumerate(edges[name])
            }
        )
        for name in names
    }
    roots = draw(st.lists(st.sampled_from(names), max_size=4))
    props = {f"r{j}": _array(target) for j, target in enumerate(roots)}
    return props, types, edges, roots


class TestResolutionProperties:
    """Property-based checks on the closure computation."""

    @pytest.mark.unit
    @settings(max_examples=100, deadline=None)
    @given(_acyclic_schema())
    def test_closure_is_exactly_reachable_set(self, schema):
        props, types, edges, roots = schema

        reachable: set[str] = set()
        pending = list(roots)
        while pending:
            name = pending.pop()
            if name not in reachable:
                reachable.add(name)
                pending.extend(edges[name])

        result = resolve_dependent_types(props, types)
        assert set(result) == reachable
        for name, type_def in result.items():
            assert type_def is types[name]


class TestResolveComponentTypes:
    """Tests for the document-level helper."""

    @pytest.mark.unit
    def test_default_document(self):
        doc = SchemaDocument()
        assert set(resolve_component_types(doc, "waypoint-route")) == {
            "route-stop",
            "trigger-action",
        }

    @pytest.mark.unit
    def test_unknown_component(self):
        assert resolve_component_types(SchemaDocument(), "nope") == {}
