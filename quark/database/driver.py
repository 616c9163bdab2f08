"""Database driver interface implemented by driver extensions."""

from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence


class Driver(ABC):
    """A database connection provided by a driver extension.

    Driver extensions subclass this in their ``driver.py`` and publish the
    class with ``register_driver`` under the ``classname`` of their info file.
    """

    def __init__(self, settings: dict[str, Any]):
        self.settings = settings

    @classmethod
    def driver_available(cls) -> bool:
        """Whether the runtime requirements of the driver are present."""
        return True

    @classmethod
    def test_settings(cls, settings: dict[str, Any]) -> bool:
        """Whether ``settings`` contains what the driver needs to connect."""
        return isinstance(settings, dict)

    @abstractmethod
    def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> int:
        """Run a statement; returns the affected row count."""
        pass

    @abstractmethod
    def query(self, sql: str, params: Optional[Sequence[Any]] = None) -> Any:
        """Run a query and return its result object."""
        pass

    @abstractmethod
    def quote(self, value: Any) -> str:
        pass

    @abstractmethod
    def disconnect(self) -> None:
        pass
