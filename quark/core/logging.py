"""Structured logging for Quark.

Provides JSON-formatted logs with file and console output.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional
from logging.handlers import RotatingFileHandler


# Record attributes that are promoted out of extra_data
CONTEXT_FIELDS = ("component", "extension", "handler", "state", "path", "success")


class JSONFormatter(logging.Formatter):
    """Format log records as JSON."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key in CONTEXT_FIELDS:
            if hasattr(record, key):
                log_data[key] = getattr(record, key)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra_data"):
            log_data.update(record.extra_data)

        return json.dumps(log_data, default=str)


class ColoredFormatter(logging.Formatter):
    """Colored console formatter for human-readable output."""

    COLORS = {
        "DEBUG": "\033[36m",    # Cyan
        "INFO": "\033[32m",     # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",    # Red
        "CRITICAL": "\033[35m", # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        timestamp = datetime.now().strftime("%H:%M:%S")

        prefix = f"{color}[{timestamp}] {record.levelname:8}{self.RESET}"

        if hasattr(record, "component"):
            prefix += f" [{record.component}]"

        message = record.getMessage()

        extras = []
        if hasattr(record, "extension"):
            extras.append(f"ext={record.extension}")
        if hasattr(record, "handler"):
            extras.append(f"handler={record.handler}")
        if hasattr(record, "state"):
            extras.append(f"state={record.state}")

        if extras:
            message += f" ({', '.join(extras)})"

        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)

        return f"{prefix} {message}"


class QuarkLogger:
    """Logger wrapper with convenience methods for extension lifecycle logging."""

    def __init__(self, name: str, logger: logging.Logger):
        self._name = name
        self._logger = logger

    @property
    def name(self) -> str:
        return self._name

    def debug(self, message: str, **kwargs):
        self._log(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs):
        self._log(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs):
        self._log(logging.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs):
        self._log(logging.ERROR, message, **kwargs)

    def critical(self, message: str, **kwargs):
        self._log(logging.CRITICAL, message, **kwargs)

    def exception(self, message: str, **kwargs):
        kwargs.setdefault("exc_info", True)
        self._log(logging.ERROR, message, **kwargs)

    def _log(self, level: int, message: str, **kwargs):
        """Log with extra context fields."""
        exc_info = kwargs.pop("exc_info", None)
        extra = {}

        for key in CONTEXT_FIELDS:
            if key in kwargs:
                extra[key] = kwargs.pop(key)

        if kwargs:
            extra["extra_data"] = kwargs

        self._logger.log(level, message, extra=extra, exc_info=exc_info)

    # Convenience methods for extension lifecycle events

    def extension_registered(self, name: str, handler: str, path: str):
        self.info(f"Extension registered: {name}", component="registry", extension=name, handler=handler, path=path)

    def extension_rejected(self, name: str, reason: str, path: Optional[str] = None):
        self.debug(f"Extension rejected: {name}: {reason}", component="registry", extension=name, path=path)

    def extension_state_changed(self, name: str, old: str, new: str):
        self.info(f"Extension {name}: {old} -> {new}", component="registry", extension=name, state=new)

    def extension_loaded(self, name: str, handler: str, success: bool):
        level = logging.INFO if success else logging.ERROR
        self._logger.log(
            level,
            f"Extension {'loaded' if success else 'failed to load'}: {name}",
            extra={"component": "loader", "extension": name, "handler": handler, "success": success}
        )


# Global logger registry
_loggers: dict[str, QuarkLogger] = {}
_initialized = False


def setup_logging(
    level: str = "INFO",
    format_type: str = "json",
    log_dir: Optional[Path] = None,
    file_enabled: bool = True,
    console_enabled: bool = True,
    force: bool = False
) -> None:
    """Initialize the logging system.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: "json" or "text"
        log_dir: Directory for log files
        file_enabled: Write logs to file
        console_enabled: Write logs to console (stderr)
        force: Reconfigure even if already initialized
    """
    global _initialized

    if _initialized and not force:
        return

    root = logging.getLogger("quark")
    root.setLevel(getattr(logging, level.upper()))
    for handler in list(root.handlers):
        handler.close()
    root.handlers.clear()

    if console_enabled:
        console = logging.StreamHandler(sys.stderr)
        console.setLevel(logging.DEBUG)

        if format_type == "json":
            console.setFormatter(JSONFormatter())
        else:
            console.setFormatter(ColoredFormatter())

        root.addHandler(console)

    if file_enabled and log_dir:
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / "quark.log"

        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(JSONFormatter())
        root.addHandler(file_handler)

    if not root.handlers:
        root.addHandler(logging.NullHandler())

    _initialized = True


def get_logger(name: str = "quark") -> QuarkLogger:
    """Get a Quark logger instance."""
    if name not in _loggers:
        logger = logging.getLogger(name if name == "quark" else f"quark.{name}")
        _loggers[name] = QuarkLogger(name, logger)
    return _loggers[name]
