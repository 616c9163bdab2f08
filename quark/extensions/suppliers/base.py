"""Supplier interfaces.

Suppliers fill the Extensions manager with the extensions available at that
time. Building suppliers find extensions from scratch (slow, complete);
caching suppliers remember a previous fill including user decisions such as
enabled/disabled (fast).
"""

import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from quark.extensions.extensions import Extensions

# Fields every cached extension record must carry
RECORD_FIELDS = ("path", "type", "handler", "state", "priority", "dependencies", "info")


class Supplier(ABC):
    """Base interface for every extension list supplier."""

    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    def fill(self, extensions: "Extensions") -> None:
        """Fill the given manager with the extensions currently available."""

    @abstractmethod
    def available(self) -> bool:
        """Whether this supplier can fill the registry right now."""


class CachingSupplier(Supplier):
    """Supplier that persists and restores a filled registry."""

    @abstractmethod
    def cache(self, extensions: "Extensions") -> bool:
        """Persist the registry currently in memory."""

    @abstractmethod
    def cacheable(self) -> bool:
        """Whether this supplier can write its cache right now."""


class BuildingSupplier(Supplier):
    """Supplier that discovers extensions itself.

    It cannot remember states, so everything it finds starts out NEW.
    """

    @abstractmethod
    def update(self, extensions: "Extensions") -> None:
        """Add newly found extensions and drop the ones that disappeared."""


def write_atomic(path: Path, content: str) -> None:
    """Replace ``path`` with ``content`` in one step (last writer wins)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise


def is_complete_record(record: dict) -> bool:
    return isinstance(record, dict) and all(key in record for key in RECORD_FIELDS)
