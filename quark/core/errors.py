"""Custom exceptions for Quark.

Provides user-friendly error messages and structured error handling.
"""

from typing import Optional, Any


class QuarkError(Exception):
    """Base exception for all Quark errors.

    Provides:
    - User-friendly message
    - Technical details for debugging
    - Suggested fixes when applicable
    """

    def __init__(
        self,
        message: str,
        details: Optional[str] = None,
        suggestion: Optional[str] = None,
        cause: Optional[Exception] = None
    ):
        self.message = message
        self.details = details
        self.suggestion = suggestion
        self.cause = cause
        super().__init__(message)

    def format_user_friendly(self) -> str:
        """Format error for display to user."""
        parts = [self.message]

        if self.details:
            parts.append(f"   Details: {self.details}")

        if self.suggestion:
            parts.append(f"   Try: {self.suggestion}")

        return "\n".join(parts)

    def __str__(self) -> str:
        return self.format_user_friendly()


class ConfigError(QuarkError):
    """Configuration-related errors."""

    def __init__(self, message: str, config_key: Optional[str] = None, **kwargs):
        suggestion = kwargs.pop("suggestion", None)
        if not suggestion and config_key:
            suggestion = f"Set the {config_key} environment variable or add it to .env"
        super().__init__(message, suggestion=suggestion, **kwargs)
        self.config_key = config_key


class SchemaValidationError(QuarkError):
    """A configuration mapping does not match its declared schema."""

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        value: Optional[Any] = None,
        **kwargs
    ):
        details = kwargs.pop("details", None)
        if not details and path:
            details = f"Key: {path}"
            if value is not None:
                details += f", Value: {repr(value)[:50]}"

        super().__init__(message, details=details, **kwargs)
        self.path = path
        self.value = value


class ExtensionError(QuarkError):
    """Extension-related errors."""

    def __init__(
        self,
        message: str,
        extension_name: Optional[str] = None,
        handler: Optional[str] = None,
        **kwargs
    ):
        details = kwargs.pop("details", None)
        if not details:
            parts = []
            if extension_name:
                parts.append(f"Extension: {extension_name}")
            if handler:
                parts.append(f"Handler: {handler}")
            if parts:
                details = ", ".join(parts)

        super().__init__(message, details=details, **kwargs)
        self.extension_name = extension_name
        self.handler = handler


class ExtensionNotFoundError(ExtensionError):
    """The requested extension id is not in the registry."""

    def __init__(self, extension_name: str, **kwargs):
        suggestion = kwargs.pop("suggestion", None) or "Run 'quark --action bundles:reload' to rescan the extensions directory"
        super().__init__(
            f"Extension '{extension_name}' does not exist",
            extension_name=extension_name,
            suggestion=suggestion,
            **kwargs
        )


class HandlerNotFoundError(ExtensionError):
    """No handler is registered under the given name."""

    def __init__(self, handler: str, **kwargs):
        super().__init__(f"Handler '{handler}' does not exist", handler=handler, **kwargs)


class DependencyError(ExtensionError):
    """An extension's dependencies are missing, broken or cyclic."""

    def __init__(
        self,
        message: str,
        extension_name: Optional[str] = None,
        dependency: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, extension_name=extension_name, **kwargs)
        self.dependency = dependency


class NotEnabledError(ExtensionError):
    """An extension was asked to load without being enabled."""

    def __init__(self, extension_name: str, state: str, **kwargs):
        super().__init__(
            f"Extension '{extension_name}' is not enabled (state: {state})",
            extension_name=extension_name,
            suggestion="Enable it first, or load with force=True",
            **kwargs
        )
        self.state = state


class LoadError(ExtensionError):
    """A handler failed to load an extension."""


class LoadErrors(QuarkError):
    """One or more extensions failed while loading all enabled extensions."""

    def __init__(self, failures: dict[str, Exception], loaded: Optional[list[str]] = None):
        self.failures = failures
        self.loaded = loaded or []
        names = ", ".join(sorted(failures))
        super().__init__(
            f"{len(failures)} extension(s) failed to load",
            details=f"Failed: {names}"
        )


class SupplierError(QuarkError):
    """An extension supplier is missing, unavailable or unreadable."""

    def __init__(self, message: str, supplier: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", None)
        if not details and supplier:
            details = f"Supplier: {supplier}"
        super().__init__(message, details=details, **kwargs)
        self.supplier = supplier


class DriverNotFoundError(QuarkError):
    """No usable database driver could be found."""

    def __init__(self, message: str, driver: Optional[str] = None, **kwargs):
        suggestion = kwargs.pop("suggestion", None)
        if not suggestion:
            suggestion = "Install a driver extension (e.g. sqlite.driver) and enable it"
        super().__init__(message, suggestion=suggestion, **kwargs)
        self.driver = driver


def format_exception_chain(error: Exception, max_depth: int = 5) -> str:
    """Format an exception chain for display.

    Handles nested exceptions and provides clean output.
    """
    lines = []
    current = error
    depth = 0

    while current and depth < max_depth:
        if isinstance(current, QuarkError):
            lines.append(current.format_user_friendly())
        else:
            lines.append(f"{type(current).__name__}: {current}")

        current = getattr(current, "__cause__", None) or getattr(current, "cause", None)
        depth += 1

        if current:
            lines.append("   Caused by:")

    return "\n".join(lines)
