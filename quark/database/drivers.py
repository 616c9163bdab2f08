"""Table of driver classes published by loaded driver extensions.

The ``classname`` in a driver's info file is looked up here; it is never
turned into a class from the string itself.
"""

import threading
from typing import Callable

from quark.core.errors import ConfigError, DriverNotFoundError
from quark.database.driver import Driver

DriverFactory = Callable[..., Driver]

_drivers: dict[str, DriverFactory] = {}
_lock = threading.Lock()


def register_driver(classname: str, factory: DriverFactory) -> None:
    """Publish a driver class.

    Raises:
        ConfigError: ``classname`` is already taken
    """
    with _lock:
        if classname in _drivers:
            raise ConfigError(f"Database driver '{classname}' is already registered")
        _drivers[classname] = factory


def unregister_driver(classname: str) -> bool:
    with _lock:
        return _drivers.pop(classname, None) is not None


def get_driver(classname: str) -> DriverFactory:
    """Raises DriverNotFoundError when nothing was published under ``classname``."""
    with _lock:
        factory = _drivers.get(classname)
    if factory is None:
        raise DriverNotFoundError(
            f"Database driver class '{classname}' is not registered",
            driver=classname,
            suggestion="Make sure the driver extension calls register_driver() in its driver.py"
        )
    return factory


def registered_drivers() -> list[str]:
    with _lock:
        return sorted(_drivers)
