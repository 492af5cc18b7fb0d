"""Property codec for component data."""

from .lib import (
    cast,
    default_element,
    default_for,
    deserialize,
    element_properties,
    serialize,
)
from .values import Color, NodeRef

__all__ = [
    "Color",
    "NodeRef",
    "element_properties",
    "default_for",
    "default_element",
    "serialize",
    "deserialize",
    "cast",
]
