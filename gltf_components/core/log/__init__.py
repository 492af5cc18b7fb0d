"""Logging micro API for gltf-components."""

from .lib import get_logger, setup_logging

__all__ = ["get_logger", "setup_logging"]
