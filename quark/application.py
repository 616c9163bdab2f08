"""Application bootstrap: extensions first, then the database."""

from typing import Any, Optional

from quark.config import Config, get_config
from quark.core.errors import LoadErrors
from quark.core.logging import get_logger, setup_logging
from quark.database import Database
from quark.extensions import Extensions, HandlerRegistry, PopulateMode

logger = get_logger("application")


class Application:
    """Owns the extension manager and the database of one process."""

    def __init__(self, config: Optional[Config] = None, handlers: Optional[HandlerRegistry] = None):
        self.config = config or get_config()
        self.extensions = Extensions(handlers=handlers, config=self.config)
        self.database: Optional[Database] = None

    def setup_logging(self, force: bool = False) -> None:
        setup_logging(
            level=self.config.log.level,
            format_type=self.config.log.format,
            log_dir=self.config.paths.logs_dir,
            file_enabled=self.config.log.file_enabled,
            console_enabled=self.config.log.console_enabled,
            force=force
        )

    def init_extensions(self) -> list[str]:
        """Populate, cache and load every enabled extension.

        Extensions that fail to load are logged and left in the error state;
        the returned list holds the ids that were loaded.
        """
        self.extensions.set_default_suppliers(self.config)
        self.extensions.populate(PopulateMode(self.config.extensions.populate_mode))

        try:
            loaded = self.extensions.load_all()
        except LoadErrors as e:
            for name, error in e.failures.items():
                logger.error(f"Extension {name} was not loaded: {error}", component="application", extension=name)
            loaded = e.loaded

        self.extensions.cache()
        return loaded

    def init_database(self, settings: dict[str, Any], driver: Optional[str] = None) -> Database:
        """Connect through a driver extension (see Database.from_extensions).

        The extension cache is rewritten when the driver was enabled here.
        """
        self.database = Database.from_extensions(self.extensions, settings, driver)
        self.extensions.cache()
        return self.database
