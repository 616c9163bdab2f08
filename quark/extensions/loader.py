"""Extension loader - imports extension source files as Python modules."""

import importlib.util
import re
import sys
import types
from pathlib import Path

from quark.core.errors import LoadError
from quark.core.logging import get_logger

logger = get_logger("extensions.loader")

# Parent package under which every extension's modules are registered
ROOT_PACKAGE = "quark_extensions"


class ExtensionLoader:
    """Imports the resource files of an extension directory.

    Each extension gets a synthetic package ``quark_extensions.<safe id>``;
    its files become submodules of that package, so a later file can do::

        from quark_extensions.sqlite_driver.driver import SQLiteDriver
    """

    @staticmethod
    def package_name(extension: str) -> str:
        """Module-safe package name for an extension id ('sqlite.driver' -> 'sqlite_driver')."""
        safe = re.sub(r"\W", "_", extension)
        if safe[:1].isdigit():
            safe = f"_{safe}"
        return f"{ROOT_PACKAGE}.{safe}"

    def module_name(self, extension: str, part: str) -> str:
        return f"{self.package_name(extension)}.{part}"

    def _ensure_package(self, extension: str, name: str, path: Path) -> None:
        if ROOT_PACKAGE not in sys.modules:
            root = types.ModuleType(ROOT_PACKAGE)
            root.__path__ = []
            sys.modules[ROOT_PACKAGE] = root

        existing = sys.modules.get(name)
        if existing is not None:
            owner = getattr(existing, "__extension__", None)
            if owner != extension or list(existing.__path__) != [str(path)]:
                raise LoadError(
                    f"Module package '{name}' is already used by extension '{owner}' at {list(existing.__path__)}",
                    extension_name=extension,
                    suggestion="Rename one of the extension directories"
                )
            return

        package = types.ModuleType(name)
        package.__path__ = [str(path)]
        package.__extension__ = extension
        sys.modules[name] = package
        setattr(sys.modules[ROOT_PACKAGE], name.rsplit(".", 1)[1], package)

    def import_file(self, extension: str, part: str, file_path: Path) -> types.ModuleType:
        """Import one file of an extension and register it in sys.modules.

        Raises:
            LoadError: when the file is missing, raises during import, or its
                package is already used by another extension
        """
        file_path = Path(file_path)
        if not file_path.is_file():
            raise LoadError(f"Required file '{file_path.name}' is missing", extension_name=extension)

        package = self.package_name(extension)
        self._ensure_package(extension, package, file_path.parent)

        name = self.module_name(extension, part)
        if name in sys.modules:
            return sys.modules[name]

        spec = importlib.util.spec_from_file_location(name, file_path)
        if spec is None or spec.loader is None:
            raise LoadError(f"Cannot import '{file_path.name}'", extension_name=extension)

        module = importlib.util.module_from_spec(spec)
        sys.modules[name] = module
        try:
            spec.loader.exec_module(module)
        except Exception as e:
            del sys.modules[name]
            raise LoadError(
                f"Importing '{file_path.name}' failed: {e}",
                extension_name=extension,
                cause=e
            ) from e

        setattr(sys.modules[package], part, module)
        logger.debug(f"Imported {name} from {file_path}", component="loader", extension=extension)
        return module

    def import_files(self, extension: str, directory: Path, parts: list[str]) -> list[types.ModuleType]:
        """Import ``<directory>/<part>.py`` for each part, in order."""
        directory = Path(directory)
        return [self.import_file(extension, part, directory / f"{part}.py") for part in parts]

    def unload(self, extension: str) -> int:
        """Drop an extension's modules from sys.modules. Returns the number removed."""
        package = self.package_name(extension)
        names = [n for n in sys.modules if n == package or n.startswith(package + ".")]
        for name in names:
            del sys.modules[name]
        return len(names)
