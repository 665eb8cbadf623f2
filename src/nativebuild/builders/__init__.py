"""Builders for the supported output types."""

from .base import Builder
from .desktop import DesktopBuilder
from .registry import builder_types, get_builder, register_builder

__all__ = [
    "Builder",
    "DesktopBuilder",
    "builder_types",
    "get_builder",
    "register_builder",
]
