"""Tests for handlers and the extension loader."""

import sys

import pytest

from conftest import dependency, driver_info
from quark.core.errors import ExtensionError, LoadError, SchemaValidationError
from quark.extensions import BaseHandler, ExtensionLoader
from quark.extensions.handlers import DriverHandler
from quark.models import DependencyType


class TestDriverHandler:
    """Tests for the database driver handler."""

    @pytest.fixture
    def handler(self):
        return DriverHandler()

    def test_accepts_complete_driver(self, handler, make_extension):
        assert handler.test(make_extension("mysql.driver"))

    def test_rejects_missing_driver_file(self, handler, make_extension):
        path = make_extension("mysql.driver", files=("driver", "query", "result"))

        assert not handler.test(path)

    def test_rejects_missing_info_file(self, handler, make_extension):
        assert not handler.test(make_extension("mysql.driver", info=False))

    def test_rejects_unparsable_info_file(self, handler, make_extension):
        assert not handler.test(make_extension("mysql.driver", raw_info="{not json"))

    def test_rejects_missing_directory(self, handler, extensions_dir):
        assert not handler.test(extensions_dir / "ghost.driver")

    def test_info_is_validated(self, handler, make_extension):
        path = make_extension("mysql.driver", info=driver_info(copyright=None))

        with pytest.raises(SchemaValidationError) as exc_info:
            handler.info(path)

        assert exc_info.value.path == "copyright"

    def test_info_is_cached_until_forgotten(self, handler, make_extension):
        path = make_extension("mysql.driver")
        first = handler.info(path)

        (path / "info.json").write_text('{"title": "changed"}')
        assert handler.info(path) is first

        handler.forget(path)
        with pytest.raises(SchemaValidationError):
            handler.info(path)

    def test_unreadable_info_raises_extension_error(self, handler, make_extension):
        path = make_extension("mysql.driver", raw_info="[1, 2]")

        with pytest.raises(ExtensionError):
            handler.info(path)

    def test_dependencies(self, handler, make_extension):
        path = make_extension("mysql.driver", info=driver_info(dependencies=[
            dependency("sql.engine"),
            dependency("framework", "framework", "2.0"),
        ]))

        deps = handler.dependencies(path)

        assert [d.name for d in deps] == ["sql.engine", "framework"]
        assert deps[1].type is DependencyType.FRAMEWORK
        assert deps[1].version == "2.0"

    def test_unknown_dependency_type(self, handler, make_extension):
        path = make_extension("mysql.driver", info=driver_info(dependencies=[dependency("x", "library")]))

        with pytest.raises(SchemaValidationError) as exc_info:
            handler.dependencies(path)

        assert exc_info.value.path == "dependencies[0]"

    def test_priorities(self, handler):
        assert handler.default_priority() == 90
        assert BaseHandler().default_priority() == 10

    def test_load_imports_files_in_order(self, handler, make_extension):
        path = make_extension("mysql.driver", code={
            "driver": "ORDER = ['driver']\n",
            "query": "from quark_extensions.mysql_driver.driver import ORDER\nORDER.append('query')\n",
            "result": "from quark_extensions.mysql_driver.driver import ORDER\nORDER.append('result')\n",
            "statement": "from quark_extensions.mysql_driver.driver import ORDER\nORDER.append('statement')\n",
        })

        assert handler.load("mysql.driver", path)

        module = sys.modules["quark_extensions.mysql_driver.driver"]
        assert module.ORDER == ["driver", "query", "result", "statement"]

    def test_load_failure_raises_load_error(self, handler, make_extension):
        path = make_extension("broken.driver", code={"query": "raise RuntimeError('boom')\n"})

        with pytest.raises(LoadError) as exc_info:
            handler.load("broken.driver", path)

        assert "boom" in exc_info.value.message
        assert isinstance(exc_info.value.cause, RuntimeError)
        assert "quark_extensions.broken_driver.query" not in sys.modules


class TestExtensionLoader:
    """Tests for ExtensionLoader."""

    def test_package_name(self):
        assert ExtensionLoader.package_name("sqlite.driver") == "quark_extensions.sqlite_driver"
        assert ExtensionLoader.package_name("1st.driver") == "quark_extensions._1st_driver"

    def test_missing_file(self, temp_dir):
        with pytest.raises(LoadError):
            ExtensionLoader().import_file("x.driver", "driver", temp_dir / "driver.py")

    def test_import_once(self, temp_dir):
        source = temp_dir / "driver.py"
        source.write_text("COUNTER = []\nCOUNTER.append(1)\n")
        loader = ExtensionLoader()

        first = loader.import_file("x.driver", "driver", source)
        second = loader.import_file("x.driver", "driver", source)

        assert first is second
        assert first.COUNTER == [1]

    def test_unload(self, temp_dir):
        source = temp_dir / "driver.py"
        source.write_text("")
        loader = ExtensionLoader()
        loader.import_file("x.driver", "driver", source)

        assert loader.unload("x.driver") == 2
        assert "quark_extensions.x_driver" not in sys.modules

    def test_ids_sharing_a_package_name(self, temp_dir):
        for directory, who in (("first", "A"), ("second", "B")):
            (temp_dir / directory).mkdir()
            (temp_dir / directory / "driver.py").write_text(f"WHO = {who!r}\n")
        loader = ExtensionLoader()

        module = loader.import_file("my-x.driver", "driver", temp_dir / "first" / "driver.py")
        assert module.WHO == "A"

        with pytest.raises(LoadError) as exc_info:
            loader.import_file("my_x.driver", "driver", temp_dir / "second" / "driver.py")

        assert "my-x.driver" in exc_info.value.message

    def test_same_id_from_another_directory(self, temp_dir):
        for directory in ("old", "new"):
            (temp_dir / directory).mkdir()
            (temp_dir / directory / "driver.py").write_text("")
        loader = ExtensionLoader()
        loader.import_file("x.driver", "driver", temp_dir / "old" / "driver.py")

        with pytest.raises(LoadError):
            loader.import_file("x.driver", "driver", temp_dir / "new" / "driver.py")
