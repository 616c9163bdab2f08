"""JSON file caching supplier.

Cache file structure::

    {
        "mysql.driver": {
            "path": "/path/to/extensions/mysql.driver",
            "type": "driver",
            "handler": "driver",
            "state": "enabled",
            "priority": 90,
            "dependencies": [],
            "info": {...}
        }
    }
"""

import json
import os
from pathlib import Path
from typing import TYPE_CHECKING, Any

from quark.core.errors import SupplierError
from quark.core.logging import get_logger
from quark.extensions.suppliers.base import CachingSupplier, is_complete_record, write_atomic

if TYPE_CHECKING:
    from quark.extensions.extensions import Extensions

logger = get_logger("suppliers.json")


class JSONCachingSupplier(CachingSupplier):
    """Stores extension states in a human readable JSON file."""

    DEFAULT_FILENAME = "extensions.json"

    def __init__(self, path: Path):
        self.path = Path(path)

    def available(self) -> bool:
        return self.path.is_file()

    def cacheable(self) -> bool:
        directory = self.path.parent
        if directory.exists():
            return os.access(directory, os.W_OK)
        return os.access(directory.parent, os.W_OK)

    def read(self) -> dict[str, dict[str, Any]]:
        """Raw cache records keyed by extension id.

        Raises:
            SupplierError: the cache file is unreadable or malformed
        """
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise SupplierError(
                f"Could not read extension cache '{self.path}': {e}",
                supplier=self.name,
                suggestion="Delete the cache file and run 'quark --action bundles:reload'",
                cause=e
            ) from e

        if not isinstance(data, dict):
            raise SupplierError(f"Extension cache '{self.path}' must contain a JSON object", supplier=self.name)

        return data

    def write(self, records: dict[str, dict[str, Any]]) -> None:
        write_atomic(self.path, json.dumps(records, indent=2, sort_keys=True))

    def cache(self, extensions: "Extensions") -> bool:
        self.write(extensions.to_cache_records())
        logger.debug(f"Cached {len(extensions)} extension(s) to {self.path}", component="supplier")
        return True

    def fill(self, extensions: "Extensions") -> None:
        for name, record in self.read().items():
            if not is_complete_record(record) or not Path(record["path"]).is_dir():
                logger.debug(f"Dropping stale cache entry {name}", component="supplier", extension=name)
                continue
            extensions.restore(name, record)
