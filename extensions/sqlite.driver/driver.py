"""SQLite database driver."""

import sqlite3
from typing import Any, Optional, Sequence

from quark.database import Driver, register_driver


class SQLiteDriver(Driver):
    """Connection to one SQLite database file."""

    def __init__(self, settings: dict[str, Any]):
        super().__init__(settings)
        self.connection = sqlite3.connect(settings["path"])

    @classmethod
    def test_settings(cls, settings: dict[str, Any]) -> bool:
        return isinstance(settings, dict) and bool(settings.get("path"))

    def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> int:
        from quark_extensions.sqlite_driver.statement import Statement

        return Statement(self, sql).execute(params)

    def query(self, sql: str, params: Optional[Sequence[Any]] = None):
        from quark_extensions.sqlite_driver.query import Query

        return Query(self, sql).run(params)

    def quote(self, value: Any) -> str:
        if value is None:
            return "NULL"
        if isinstance(value, bool):
            return "1" if value else "0"
        if isinstance(value, (int, float)):
            return str(value)
        return "'" + str(value).replace("'", "''") + "'"

    def disconnect(self) -> None:
        self.connection.close()


register_driver("SQLiteDriver", SQLiteDriver)
