"""Handler interface.

Every extension handler implements this interface. It lets the Extensions
manager get info about extensions in a consistent way, and load them.
"""

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Union

from pydantic import ValidationError

from quark.core.errors import ExtensionError, SchemaValidationError
from quark.models.extension import Dependency
from quark.utils.schema import SchemaNode, collection, dictionary, validate_or_raise

# Name of the declarative configuration file inside every extension directory
INFO_FILENAME = "info.json"

PathLike = Union[str, Path]


class Handler(ABC):
    """Abstract base class for extension handlers.

    One instance per category, shared across all extensions of that category.
    """

    @abstractmethod
    def test(self, path: PathLike) -> bool:
        """Check whether the extension at ``path`` is loadable by this handler.

        A negative answer is a normal outcome while scanning, never an error.
        """

    @abstractmethod
    def info(self, path: PathLike) -> dict[str, Any]:
        """Validated info for the extension at ``path``."""

    @abstractmethod
    def dependencies(self, path: PathLike) -> list[Dependency]:
        """Dependencies declared by the extension at ``path``."""

    @abstractmethod
    def load(self, name: str, path: PathLike) -> bool:
        """Load an extension. Only called for enabled extensions."""

    @abstractmethod
    def default_priority(self) -> int:
        """Default priority for this category, 0-100, higher loads first."""


class BaseHandler(Handler):
    """Shared handler behaviour based on an ``info.json`` file.

    Subclasses override ``map`` to declare their own info file structure.
    """

    default_map: SchemaNode = dictionary({
        "title": True,
        "description": True,
        "version": True,
        "author": True,
        "copyright": True,
        "dependencies": collection(dictionary({
            "name": False,
            "type": False,
            "version": False,
        }), optional=True),
    })

    map: SchemaNode = default_map

    def __init__(self):
        self._info: dict[Path, dict[str, Any]] = {}

    def test(self, path: PathLike) -> bool:
        path = Path(path)
        if not path.is_dir():
            return False

        try:
            self.read_info_file(path)
        except ExtensionError:
            return False

        return True

    @staticmethod
    def read_info_file(path: PathLike) -> dict[str, Any]:
        """Parse ``<path>/info.json``.

        Raises:
            ExtensionError: when the file is missing, unreadable or not a JSON object
        """
        file_path = Path(path) / INFO_FILENAME
        if not file_path.is_file():
            raise ExtensionError(f"Extension info file '{file_path}' could not be found")

        try:
            with open(file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise ExtensionError(f"Extension info file '{file_path}' is unreadable: {e}", cause=e) from e

        if not isinstance(data, dict):
            raise ExtensionError(f"Extension info file '{file_path}' must contain a JSON object")

        return data

    def info(self, path: PathLike) -> dict[str, Any]:
        """Read and validate the info file against this handler's ``map``.

        Raises:
            ExtensionError: unreadable info file
            SchemaValidationError: info does not match the schema
        """
        path = Path(path)
        if path not in self._info:
            self._info[path] = validate_or_raise(self.map, self.read_info_file(path))
        return self._info[path]

    def dependencies(self, path: PathLike) -> list[Dependency]:
        result = []
        for index, entry in enumerate(self.info(path).get("dependencies") or []):
            try:
                result.append(Dependency(
                    name=str(entry["name"]),
                    type=entry["type"],
                    version=str(entry["version"]),
                ))
            except ValidationError as e:
                raise SchemaValidationError(
                    f"Invalid dependency entry: {e.errors()[0]['msg']}",
                    path=f"dependencies[{index}]",
                    value=entry,
                    cause=e
                ) from e
        return result

    def forget(self, path: PathLike = None) -> None:
        """Drop cached info for one path, or all of them."""
        if path is None:
            self._info.clear()
        else:
            self._info.pop(Path(path), None)

    def default_priority(self) -> int:
        return 10
