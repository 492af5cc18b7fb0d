"""Selectors choosing which objects a component's data is exported onto."""

from typing import Any, Protocol

from gltf_components.schema import InvalidComponentProps


class Selector(Protocol):
    """Interface the component core expects from a selector.

    The core treats selectors as opaque: it only persists them and asks
    for matches at export time.
    """

    def serialize(self) -> dict[str, Any] | None:
        """Document form of the selector."""
        ...

    def get_matches(self, node: Any) -> list[Any]:
        """Objects under ``node`` the component should be exported onto."""
        ...


class ObjectSelector:
    """Select the node itself or named objects inside its subtree.

    With no ``object_name`` the component applies to the node it is attached
    to. Otherwise it applies to every descendant carrying that name, which is
    how components reach objects inside an imported model.
    """

    def __init__(self, object_name: str | None = None):
        self.object_name = object_name

    def __eq__(self, other: object) -> bool:
        return isinstance(other, ObjectSelector) and other.object_name == self.object_name

    def __repr__(self) -> str:
        return f"ObjectSelector(object_name={self.object_name!r})"

    def serialize(self) -> dict[str, Any]:
        return {"objectName": self.object_name}

    @classmethod
    def deserialize(cls, spec: Any, node: Any = None) -> "ObjectSelector":
        if spec is None:
            return cls()
        if not isinstance(spec, dict):
            raise InvalidComponentProps(f"Selector must be an object, got: {spec!r}")
        return cls(spec.get("objectName"))

    def get_matches(self, node: Any) -> list[Any]:
        if self.object_name is None:
            return [node]
        return [
            obj
            for obj in node.traverse()
            if obj is not node and obj.name == self.object_name
        ]


__all__ = ["Selector", "ObjectSelector"]
