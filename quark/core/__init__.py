"""Core package - errors and logging."""

from .errors import QuarkError, format_exception_chain
from .logging import get_logger, setup_logging

__all__ = ["QuarkError", "format_exception_chain", "get_logger", "setup_logging"]
