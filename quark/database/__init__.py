"""Database access through driver extensions."""

from .database import Database
from .driver import Driver
from .drivers import get_driver, register_driver, registered_drivers, unregister_driver

__all__ = [
    "Database",
    "Driver",
    "register_driver",
    "unregister_driver",
    "get_driver",
    "registered_drivers",
]
