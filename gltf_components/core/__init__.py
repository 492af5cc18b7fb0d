"""Core utilities shared across gltf-components."""

from .log import get_logger, setup_logging

__all__ = ["get_logger", "setup_logging"]
