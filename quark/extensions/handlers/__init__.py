"""Built-in extension handlers."""

from .driver import DriverHandler

__all__ = ["DriverHandler"]
