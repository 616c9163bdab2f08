"""Extensions package - discovery, state tracking and loading."""

from .extensions import Extensions, PopulateMode
from .handler import BaseHandler, Handler
from .handler_registry import HandlerRegistry
from .loader import ExtensionLoader
from .registry import ExtensionRegistry

__all__ = [
    "Extensions",
    "PopulateMode",
    "Handler",
    "BaseHandler",
    "HandlerRegistry",
    "ExtensionRegistry",
    "ExtensionLoader",
]
