"""Component instances with frozen schemas, drift detection and migration."""

from .lib import ComponentInstance
from .selector import ObjectSelector, Selector

__all__ = ["ComponentInstance", "ObjectSelector", "Selector"]
