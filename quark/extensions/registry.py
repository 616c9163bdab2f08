"""Extension registry - in-memory storage for extension descriptors."""

from typing import Iterator, Optional

from quark.core.errors import ExtensionNotFoundError, HandlerNotFoundError
from quark.extensions.handler_registry import HandlerRegistry
from quark.models.extension import ExtensionDescriptor, ExtensionState


class ExtensionRegistry:
    """Stores every known extension, keyed by id.

    Only descriptors whose handler exists in the handler registry are
    accepted, except for ERROR entries restored from a cache whose handler
    has since disappeared.
    """

    def __init__(self, handlers: HandlerRegistry):
        self._handlers = handlers
        self._registry: dict[str, ExtensionDescriptor] = {}

    def register(self, descriptor: ExtensionDescriptor, overwrite: bool = False) -> bool:
        """Store a descriptor. Returns False when the id exists and overwrite is off.

        Raises:
            HandlerNotFoundError: the descriptor's handler is not registered
        """
        if not self._handlers.exists(descriptor.handler) and descriptor.state is not ExtensionState.ERROR:
            raise HandlerNotFoundError(descriptor.handler)

        if not overwrite and descriptor.id in self._registry:
            return False

        self._registry[descriptor.id] = descriptor
        return True

    def unregister(self, name: str) -> bool:
        return self._registry.pop(name, None) is not None

    def exists(self, name: str) -> bool:
        return name in self._registry

    def get(self, name: str) -> ExtensionDescriptor:
        """Raises ExtensionNotFoundError for unknown ids."""
        try:
            return self._registry[name]
        except KeyError:
            raise ExtensionNotFoundError(name) from None

    def find(self, name: str) -> Optional[ExtensionDescriptor]:
        return self._registry.get(name)

    def get_handler(self, name: str) -> Optional[str]:
        descriptor = self.find(name)
        return descriptor.handler if descriptor else None

    def get_info(self, name: str) -> Optional[dict]:
        descriptor = self.find(name)
        return descriptor.info if descriptor else None

    def get_by_handler(self, handler: str) -> list[ExtensionDescriptor]:
        """All extensions of a handler, ordered by priority (high first), then id.

        Raises:
            HandlerNotFoundError: unknown handler
        """
        if not self._handlers.exists(handler):
            raise HandlerNotFoundError(handler)

        matches = [d for d in self._registry.values() if d.handler == handler]
        return sorted(matches, key=lambda d: (-d.priority, d.id))

    def get_by_state(self, state: ExtensionState) -> list[ExtensionDescriptor]:
        matches = [d for d in self._registry.values() if d.state is state]
        return sorted(matches, key=lambda d: (-d.priority, d.id))

    def clear(self) -> None:
        self._registry.clear()

    def names(self) -> list[str]:
        return sorted(self._registry)

    def __contains__(self, name: str) -> bool:
        return self.exists(name)

    def __iter__(self) -> Iterator[ExtensionDescriptor]:
        return iter(list(self._registry.values()))

    def __len__(self) -> int:
        return len(self._registry)
