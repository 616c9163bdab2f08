"""Data models for Quark."""

from .extension import Dependency, DependencyType, ExtensionDescriptor, ExtensionState

__all__ = [
    "Dependency",
    "DependencyType",
    "ExtensionDescriptor",
    "ExtensionState",
]
