"""Database driver handler."""

from pathlib import Path

from quark.core.logging import get_logger
from quark.extensions.handler import BaseHandler, PathLike
from quark.extensions.loader import ExtensionLoader
from quark.utils.schema import SchemaNode, collection, dictionary

logger = get_logger("extensions.driver")


class DriverHandler(BaseHandler):
    """Loads database drivers.

    On top of the regular info keys a driver declares:

    - ``database``: name of the database it drives, lowercased (``sqlite``)
    - ``classname``: name the driver class registers itself under in the
      driver table (see ``quark.database.drivers``)

    A driver directory must ship ``driver.py``, ``query.py``, ``result.py``
    and ``statement.py``. They are imported in that order, so each file may
    use what the previous ones defined.
    """

    FILES = ("driver", "query", "result", "statement")

    map: SchemaNode = dictionary({
        "title": True,
        "description": False,
        "version": True,
        "author": True,
        "copyright": False,

        "database": False,
        "classname": False,

        "dependencies": collection(dictionary({
            "name": False,
            "type": False,
            "version": False,
        }), optional=True),

        "settings": collection(dictionary({
            "index": False,
            "name": True,
            "description": True,
        }), optional=False),
    })

    def __init__(self, loader: ExtensionLoader = None):
        super().__init__()
        self._loader = loader or ExtensionLoader()

    def test(self, path: PathLike) -> bool:
        if not super().test(path):
            return False

        path = Path(path)
        missing = [f"{part}.py" for part in self.FILES if not (path / f"{part}.py").is_file()]
        if missing:
            logger.debug(f"Driver at {path} is missing {', '.join(missing)}", component="driver", path=str(path))
            return False

        return True

    def load(self, name: str, path: PathLike) -> bool:
        """Import the driver files; the driver module registers its class on import."""
        self._loader.import_files(name, Path(path), list(self.FILES))
        return True

    def default_priority(self) -> int:
        return 90
