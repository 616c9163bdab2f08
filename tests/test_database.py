"""Tests for driver registration and the database bootstrap."""

import shutil

import pytest

from conftest import dependency, driver_info, project_root
from quark.core.errors import ConfigError, DependencyError, DriverNotFoundError
from quark.database import Database, Driver, get_driver, register_driver, registered_drivers
from quark.extensions import PopulateMode
from quark.models import ExtensionState

SQLITE_DRIVER = project_root / "extensions" / "sqlite.driver"


class MemoryDriver(Driver):
    def execute(self, sql, params=None):
        return 0

    def query(self, sql, params=None):
        return []

    def quote(self, value):
        return repr(value)

    def disconnect(self):
        pass


class TestDriverTable:
    """Tests for the driver class table."""

    def test_register_and_get(self):
        register_driver("MemoryDriver", MemoryDriver)

        assert get_driver("MemoryDriver") is MemoryDriver
        assert registered_drivers() == ["MemoryDriver"]

    def test_duplicate(self):
        register_driver("MemoryDriver", MemoryDriver)

        with pytest.raises(ConfigError):
            register_driver("MemoryDriver", MemoryDriver)

    def test_unknown(self):
        with pytest.raises(DriverNotFoundError):
            get_driver("OracleDriver")


@pytest.fixture
def sqlite_extensions(extensions, extensions_dir):
    shutil.copytree(SQLITE_DRIVER, extensions_dir / "sqlite.driver")
    extensions.populate(PopulateMode.UPDATE)
    return extensions


class TestDatabase:
    """Tests for Database.from_extensions."""

    def test_sample_driver_is_discovered(self, sqlite_extensions):
        descriptor = sqlite_extensions.get("sqlite.driver")

        assert descriptor.state is ExtensionState.NEW
        assert descriptor.info["classname"] == "SQLiteDriver"

    def test_new_driver_is_enabled_and_loaded(self, sqlite_extensions, temp_dir):
        database = Database.from_extensions(sqlite_extensions, {"path": str(temp_dir / "test.db")})

        assert database.extension == "sqlite.driver"
        assert sqlite_extensions.loaded("sqlite.driver")
        assert "SQLiteDriver" in registered_drivers()
        database.close()

    def test_queries_through_the_driver(self, sqlite_extensions):
        with Database.from_extensions(sqlite_extensions, {"path": ":memory:"}) as database:
            database.execute("CREATE TABLE items (name TEXT)")
            assert database.execute("INSERT INTO items VALUES (?)", ["quark"]) == 1

            result = database.query("SELECT name FROM items")

            assert result.first() == {"name": "quark"}
            assert database.quote("it's") == "'it''s'"

    def test_invalid_settings(self, sqlite_extensions):
        with pytest.raises(DriverNotFoundError):
            Database.from_extensions(sqlite_extensions, {})

    def test_enabled_driver_is_preferred(self, sqlite_extensions, extensions_dir, make_extension):
        make_extension("aaa.driver", info=driver_info(classname="MemoryDriver"))
        sqlite_extensions.populate(PopulateMode.UPDATE)
        sqlite_extensions.enable("sqlite.driver")

        with Database.from_extensions(sqlite_extensions, {"path": ":memory:"}) as database:
            assert database.extension == "sqlite.driver"

        assert sqlite_extensions.get("aaa.driver").state is ExtensionState.NEW

    def test_disabled_driver_is_not_chosen_automatically(self, sqlite_extensions):
        sqlite_extensions.disable("sqlite.driver")

        with pytest.raises(DriverNotFoundError):
            Database.from_extensions(sqlite_extensions, {"path": ":memory:"})

    def test_named_disabled_driver_is_enabled(self, sqlite_extensions):
        sqlite_extensions.disable("sqlite.driver")

        with Database.from_extensions(sqlite_extensions, {"path": ":memory:"}, "sqlite.driver") as database:
            assert database.extension == "sqlite.driver"

    def test_named_driver_in_error(self, sqlite_extensions):
        sqlite_extensions.set("sqlite.driver", "state", ExtensionState.ERROR)

        with pytest.raises(DriverNotFoundError):
            Database.from_extensions(sqlite_extensions, {"path": ":memory:"}, "sqlite.driver")

    def test_unknown_named_driver(self, sqlite_extensions):
        with pytest.raises(DriverNotFoundError):
            Database.from_extensions(sqlite_extensions, {"path": ":memory:"}, "mysql.driver")

    def test_no_driver_installed(self, extensions):
        extensions.populate(PopulateMode.UPDATE)

        with pytest.raises(DriverNotFoundError):
            Database.from_extensions(extensions, {"path": ":memory:"})

    def test_driver_that_fails_to_load(self, extensions, make_extension):
        make_extension("bad.driver", code={"driver": "raise ImportError('no client library')\n"})
        extensions.populate(PopulateMode.UPDATE)

        with pytest.raises(DriverNotFoundError) as exc_info:
            Database.from_extensions(extensions, {"path": ":memory:"})

        assert "no client library" in exc_info.value.message
        assert extensions.get("bad.driver").state is ExtensionState.ERROR

    def test_driver_with_missing_dependency(self, extensions, make_extension):
        make_extension("needy.driver", info=driver_info(dependencies=[dependency("absent.driver")]))
        extensions.populate(PopulateMode.UPDATE)

        with pytest.raises(DriverNotFoundError) as exc_info:
            Database.from_extensions(extensions, {"path": ":memory:"})

        assert isinstance(exc_info.value.cause, DependencyError)
        assert extensions.get("needy.driver").state is ExtensionState.NEW
