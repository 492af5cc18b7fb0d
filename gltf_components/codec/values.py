"""In-memory value types for color and node reference properties."""

import re
from dataclasses import dataclass
from typing import Any

from gltf_components.schema import CodecError

HEX_COLOR_PATTERN = re.compile(r"^#?([0-9a-fA-F]{6})$")


@dataclass(frozen=True)
class Color:
    """RGB color with channels in the 0..1 range."""

    r: float = 1.0
    g: float = 1.0
    b: float = 1.0

    @classmethod
    def from_hex(cls, value: str) -> "Color":
        """Parse a ``#rrggbb`` string."""
        match = HEX_COLOR_PATTERN.match(value.strip())
        if not match:
            raise CodecError(f"Invalid hex color: {value!r}")
        digits = match.group(1)
        r, g, b = (int(digits[i : i + 2], 16) / 255 for i in (0, 2, 4))
        return cls(r, g, b)

    @classmethod
    def from_value(cls, value: Any) -> "Color":
        """Decode a color stored as ``[r, g, b]``, ``{r, g, b}`` or ``#rrggbb``."""
        if isinstance(value, Color):
            return value
        if isinstance(value, str):
            return cls.from_hex(value)
        if isinstance(value, dict):
            value = [value.get("r"), value.get("g"), value.get("b")]
        if isinstance(value, (list, tuple)) and len(value) == 3:
            if all(
                isinstance(c, (int, float)) and not isinstance(c, bool) for c in value
            ):
                return cls(float(value[0]), float(value[1]), float(value[2]))
        raise CodecError(f"Invalid color value: {value!r}")

    def to_list(self) -> list[float]:
        return [self.r, self.g, self.b]

    def to_hex(self) -> str:
        channels = (max(0, min(255, round(c * 255))) for c in (self.r, self.g, self.b))
        return "#" + "".join(f"{c:02x}" for c in channels)


@dataclass(frozen=True)
class NodeRef:
    """Weak reference to another object in the scene graph.

    Only resolved at export time. ``object_name`` is set when the target is
    an object inside a model's subtree rather than a scene node.
    """

    uuid: str | None = None
    object_name: str | None = None

    @property
    def is_set(self) -> bool:
        return bool(self.uuid)

    @classmethod
    def from_dict(cls, value: Any) -> "NodeRef":
        if value is None:
            return cls()
        if not isinstance(value, dict):
            raise CodecError(f"Invalid node reference: {value!r}")
        return cls(uuid=value.get("uuid"), object_name=value.get("objectName"))

    def to_dict(self) -> dict[str, Any]:
        return {"uuid": self.uuid, "objectName": self.object_name}


__all__ = ["Color", "NodeRef", "HEX_COLOR_PATTERN"]
