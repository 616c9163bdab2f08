"""Database bootstrap on top of driver extensions."""

from typing import Any, Optional

from quark.core.errors import DriverNotFoundError, QuarkError
from quark.core.logging import get_logger
from quark.database.driver import Driver
from quark.database.drivers import get_driver
from quark.models.extension import ExtensionDescriptor, ExtensionState

logger = get_logger("database")

DRIVER_HANDLER = "driver"


class Database:
    """Wraps the connection of the selected driver extension."""

    def __init__(self, driver: Driver, extension: Optional[str] = None):
        self.driver = driver
        self.extension = extension

    @classmethod
    def from_extensions(
        cls,
        extensions,
        settings: dict[str, Any],
        name: Optional[str] = None
    ) -> "Database":
        """Pick a driver extension, make sure it is loaded and connect.

        With ``name`` that driver extension is used; otherwise the first
        enabled (or loaded) driver wins, falling back to the first new one.
        A new or disabled choice is enabled on the way.

        Raises:
            DriverNotFoundError: no usable driver
        """
        descriptor = cls._select(extensions, name)

        if descriptor.state in (ExtensionState.NEW, ExtensionState.DISABLED):
            logger.info(f"Enabling database driver {descriptor.id}", component="database", extension=descriptor.id)
            try:
                extensions.enable(descriptor.id)
            except QuarkError as e:
                raise DriverNotFoundError(
                    f"Database driver '{descriptor.id}' could not be enabled: {e.message}",
                    driver=descriptor.id,
                    cause=e
                ) from e

        try:
            extensions.load(descriptor.id)
        except QuarkError as e:
            raise DriverNotFoundError(
                f"Database driver '{descriptor.id}' could not be loaded: {e.message}",
                driver=descriptor.id,
                cause=e
            ) from e

        factory = get_driver(descriptor.info["classname"])

        if not factory.driver_available():
            raise DriverNotFoundError(
                f"Database driver '{descriptor.id}' is not available on this system",
                driver=descriptor.id
            )
        if not factory.test_settings(settings):
            raise DriverNotFoundError(
                f"Invalid settings for database driver '{descriptor.id}'",
                driver=descriptor.id,
                suggestion="Check the settings listed in the driver's info.json"
            )

        logger.info(f"Using database driver {descriptor.id}", component="database", extension=descriptor.id)
        return cls(factory(settings), descriptor.id)

    @staticmethod
    def _select(extensions, name: Optional[str]) -> ExtensionDescriptor:
        drivers = extensions.get_by_handler(DRIVER_HANDLER)

        if name is not None:
            for descriptor in drivers:
                if descriptor.id == name:
                    if descriptor.state is ExtensionState.ERROR:
                        raise DriverNotFoundError(
                            f"Database driver '{name}' is in an error state",
                            driver=name,
                            suggestion="Run 'quark --action bundles:reload' after fixing the extension"
                        )
                    return descriptor
            raise DriverNotFoundError(f"Database driver '{name}' is not installed", driver=name)

        for descriptor in drivers:
            if descriptor.state in (ExtensionState.ENABLED, ExtensionState.LOADED):
                return descriptor
        for descriptor in drivers:
            if descriptor.state is ExtensionState.NEW:
                return descriptor

        raise DriverNotFoundError("No usable database driver found")

    def execute(self, sql: str, params=None) -> int:
        return self.driver.execute(sql, params)

    def query(self, sql: str, params=None) -> Any:
        return self.driver.query(sql, params)

    def quote(self, value: Any) -> str:
        return self.driver.quote(value)

    def close(self) -> None:
        self.driver.disconnect()

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
