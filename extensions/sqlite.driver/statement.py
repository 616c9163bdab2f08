"""Write statements."""

from quark_extensions.sqlite_driver.driver import SQLiteDriver


class Statement:
    def __init__(self, driver: SQLiteDriver, sql: str):
        self.driver = driver
        self.sql = sql

    def execute(self, params=None) -> int:
        cursor = self.driver.connection.execute(self.sql, params or ())
        self.driver.connection.commit()
        return cursor.rowcount
