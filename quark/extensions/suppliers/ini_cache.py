"""INI file caching supplier.

One section per extension; structured fields are stored as JSON strings::

    [mysql.driver]
    path = /path/to/extensions/mysql.driver
    type = driver
    handler = driver
    state = enabled
    priority = 90
    dependencies = []
    info = {"description": "...", ...}
"""

import configparser
import io
import json
import os
from pathlib import Path
from typing import TYPE_CHECKING, Any

from quark.core.errors import SupplierError
from quark.core.logging import get_logger
from quark.extensions.suppliers.base import CachingSupplier, RECORD_FIELDS, write_atomic

if TYPE_CHECKING:
    from quark.extensions.extensions import Extensions

logger = get_logger("suppliers.ini")


class INICachingSupplier(CachingSupplier):
    """Stores extension states in an INI file."""

    DEFAULT_FILENAME = "extensions.ini"

    def __init__(self, path: Path):
        self.path = Path(path)

    def available(self) -> bool:
        return self.path.is_file()

    def cacheable(self) -> bool:
        directory = self.path.parent
        if directory.exists():
            return os.access(directory, os.W_OK)
        return os.access(directory.parent, os.W_OK)

    @staticmethod
    def _parser() -> configparser.ConfigParser:
        return configparser.ConfigParser(interpolation=None)

    def read(self) -> dict[str, dict[str, Any]]:
        """Cache records keyed by extension id; incomplete sections are skipped.

        Raises:
            SupplierError: the cache file is unreadable or malformed
        """
        parser = self._parser()
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                parser.read_file(f)
        except (OSError, configparser.Error) as e:
            raise SupplierError(
                f"Could not read extension cache '{self.path}': {e}",
                supplier=self.name,
                cause=e
            ) from e

        records = {}
        for name in parser.sections():
            section = parser[name]
            if not all(key in section for key in RECORD_FIELDS):
                continue
            try:
                records[name] = {
                    "path": section["path"],
                    "type": section["type"],
                    "handler": section["handler"],
                    "state": section["state"],
                    "priority": section.getint("priority"),
                    "dependencies": json.loads(section["dependencies"]),
                    "info": json.loads(section["info"]),
                }
            except ValueError as e:
                logger.warning(f"Skipping malformed cache section {name}: {e}", component="supplier", extension=name)
        return records

    def write(self, records: dict[str, dict[str, Any]]) -> None:
        parser = self._parser()
        for name in sorted(records):
            record = records[name]
            parser[name] = {
                "path": record["path"],
                "type": record["type"],
                "handler": record["handler"],
                "state": record["state"],
                "priority": str(record["priority"]),
                "dependencies": json.dumps(record["dependencies"]),
                "info": json.dumps(record["info"]),
            }

        buffer = io.StringIO()
        parser.write(buffer)
        write_atomic(self.path, buffer.getvalue())

    def cache(self, extensions: "Extensions") -> bool:
        self.write(extensions.to_cache_records())
        return True

    def fill(self, extensions: "Extensions") -> None:
        for name, record in self.read().items():
            if not Path(record["path"]).is_dir():
                logger.debug(f"Dropping stale cache entry {name}", component="supplier", extension=name)
                continue
            extensions.restore(name, record)
