"""Handler registry - maps handler names to handler factories."""

from dataclasses import dataclass, field
from typing import Callable, Iterator, Optional

from quark.core.errors import ConfigError, HandlerNotFoundError
from quark.extensions.handler import Handler
from quark.extensions.handlers.driver import DriverHandler


@dataclass
class HandlerEntry:
    """Registration of one handler."""
    factory: Callable[[], Handler]
    types: list[str] = field(default_factory=list)


class HandlerRegistry:
    """Registry of extension handlers.

    A type is the suffix of an extension directory name: for ``mysql.driver``
    the type is ``driver``. Handlers are instantiated lazily, once.
    """

    def __init__(self, defaults: bool = True):
        self._entries: dict[str, HandlerEntry] = {}
        self._objects: dict[str, Handler] = {}

        if defaults:
            self.register("driver", DriverHandler, ["driver", "engine"])

    def register(self, name: str, factory: Callable[[], Handler], types: list[str]) -> None:
        """Register a handler under ``name`` for the given directory types.

        Raises:
            ConfigError: name already registered, or a type already claimed
        """
        if not name:
            raise ConfigError("Handler name must be a non-empty string")
        if name in self._entries:
            raise ConfigError(f"Handler '{name}' is already registered")

        for type_ in types:
            claimed = self.get_by_type(type_)
            if claimed:
                raise ConfigError(
                    f"Type '{type_}' is already registered for handler '{claimed[0]}'",
                    suggestion="Change or unregister the other handler"
                )

        self._entries[name] = HandlerEntry(factory=factory, types=list(types))

    def unregister(self, name: str) -> bool:
        self._objects.pop(name, None)
        return self._entries.pop(name, None) is not None

    def exists(self, name: Optional[str]) -> bool:
        return name in self._entries

    def get_by_type(self, type_: Optional[str]) -> list[str]:
        """Names of the handlers that accept the given directory type."""
        if not type_:
            return []
        return [name for name, entry in self._entries.items() if type_ in entry.types]

    def get(self, name: str) -> Handler:
        """Get the shared handler instance for ``name``.

        Raises:
            HandlerNotFoundError: no handler registered under ``name``
            ConfigError: the factory did not produce a Handler
        """
        if name not in self._entries:
            raise HandlerNotFoundError(name)

        if name not in self._objects:
            handler = self._entries[name].factory()
            if not isinstance(handler, Handler):
                raise ConfigError(f"Handler '{name}' does not implement the Handler interface")
            self._objects[name] = handler

        return self._objects[name]

    def __contains__(self, name: str) -> bool:
        return self.exists(name)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
