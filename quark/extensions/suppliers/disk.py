"""Extensions directory scanner (building supplier)."""

from pathlib import Path
from typing import TYPE_CHECKING

from quark.core.errors import SupplierError
from quark.core.logging import get_logger
from quark.extensions.suppliers.base import BuildingSupplier

if TYPE_CHECKING:
    from quark.extensions.extensions import Extensions

logger = get_logger("suppliers.disk")


class DiskBuildingSupplier(BuildingSupplier):
    """Finds extensions by scanning the subdirectories of the extensions directory."""

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def available(self) -> bool:
        if not self.directory.is_dir():
            raise SupplierError(
                f"The extensions directory '{self.directory}' does not exist",
                supplier=self.name,
                suggestion="Create it or point QUARK_EXTENSIONS_DIR at an existing directory"
            )
        return True

    def _candidates(self) -> list[Path]:
        return sorted(
            (p for p in self.directory.iterdir() if p.is_dir() and not p.name.startswith(".")),
            key=lambda p: p.name
        )

    def fill(self, extensions: "Extensions") -> None:
        for path in self._candidates():
            extensions.register(path, path.name)

    def update(self, extensions: "Extensions") -> None:
        existing = set()

        for path in self._candidates():
            existing.add(path.name)
            if not extensions.exists(path.name):
                extensions.register(path, path.name)

        for name in extensions.names():
            if name not in existing:
                logger.info(f"Extension {name} disappeared from disk", component="supplier", extension=name)
                extensions.remove(name)
