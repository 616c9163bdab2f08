"""Read queries."""

from quark_extensions.sqlite_driver.driver import SQLiteDriver


class Query:
    def __init__(self, driver: SQLiteDriver, sql: str):
        self.driver = driver
        self.sql = sql

    def run(self, params=None):
        from quark_extensions.sqlite_driver.result import Result

        cursor = self.driver.connection.execute(self.sql, params or ())
        return Result(cursor)
