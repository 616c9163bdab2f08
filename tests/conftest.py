"""Pytest configuration and shared fixtures."""

import sys
from pathlib import Path

# Add project root to Python path so 'quark' module is findable
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import json
import logging
import os
import tempfile
from typing import Generator

import pytest

from quark.config import reset_config
from quark.database import drivers
from quark.extensions import BaseHandler, Extensions, HandlerRegistry
from quark.extensions.suppliers import DiskBuildingSupplier, JSONCachingSupplier

DRIVER_FILES = ("driver", "query", "result", "statement")


def driver_info(**overrides) -> dict:
    """A valid driver info file; overriding a key with None removes it."""
    info = {
        "title": "Test driver",
        "description": "Driver used by the tests",
        "version": "1.0",
        "author": "tests",
        "copyright": "MIT",
        "database": "test",
        "classname": "TestDriver",
        "settings": [{"index": "path", "name": "Database file"}],
    }
    for key, value in overrides.items():
        if value is None:
            info.pop(key, None)
        else:
            info[key] = value
    return info


def dependency(name: str, type_: str = "extension", version: str = "1.0") -> dict:
    return {"name": name, "type": type_, "version": version}


class RecordingHandler(BaseHandler):
    """Handler double for 'plugin' directories; remembers what it loaded."""

    def __init__(self):
        super().__init__()
        self.calls = []
        self.failing = set()
        self.refusing = set()

    def load(self, name, path):
        self.calls.append(name)
        if name in self.failing:
            raise RuntimeError(f"cannot load {name}")
        return name not in self.refusing


@pytest.fixture(autouse=True)
def isolated_state(monkeypatch):
    """Keep environment, imported extension modules and drivers per test."""
    for var in list(os.environ):
        if var.startswith("QUARK_"):
            monkeypatch.delenv(var)
    reset_config()

    yield

    for name in [n for n in sys.modules if n == "quark_extensions" or n.startswith("quark_extensions.")]:
        del sys.modules[name]
    for classname in drivers.registered_drivers():
        drivers.unregister_driver(classname)
    logger = logging.getLogger("quark")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    reset_config()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def extensions_dir(temp_dir: Path) -> Path:
    path = temp_dir / "extensions"
    path.mkdir()
    return path


@pytest.fixture
def cache_path(temp_dir: Path) -> Path:
    return temp_dir / "data" / "extensions.json"


@pytest.fixture
def make_extension(extensions_dir: Path):
    """Factory writing an extension directory.

    By default a complete driver: a valid info.json and the four driver files.
    """
    def _make(name: str, info=None, files=DRIVER_FILES, code=None, raw_info=None) -> Path:
        path = extensions_dir / name
        path.mkdir()
        if raw_info is not None:
            (path / "info.json").write_text(raw_info)
        elif info is not False:
            (path / "info.json").write_text(json.dumps(driver_info() if info is None else info))
        code = code or {}
        for part in files:
            (path / f"{part}.py").write_text(code.get(part, ""))
        return path

    return _make


@pytest.fixture
def make_plugin(make_extension):
    """Factory for 'plugin' extensions handled by RecordingHandler."""
    def _make(name: str, dependencies=None) -> Path:
        info = {"title": name}
        if dependencies:
            info["dependencies"] = dependencies
        return make_extension(name, info=info, files=())

    return _make


@pytest.fixture
def extensions(extensions_dir: Path, cache_path: Path) -> Extensions:
    """Extensions manager over the temporary directory with the default handlers."""
    return Extensions(suppliers=[JSONCachingSupplier(cache_path), DiskBuildingSupplier(extensions_dir)])


@pytest.fixture
def plugin_handlers() -> HandlerRegistry:
    handlers = HandlerRegistry()
    handlers.register("plugin", RecordingHandler, ["plugin"])
    return handlers


@pytest.fixture
def plugins(plugin_handlers, extensions_dir: Path, cache_path: Path) -> Extensions:
    """Extensions manager that also knows the recording 'plugin' handler."""
    return Extensions(
        handlers=plugin_handlers,
        suppliers=[JSONCachingSupplier(cache_path), DiskBuildingSupplier(extensions_dir)]
    )


@pytest.fixture
def recorder(plugin_handlers) -> RecordingHandler:
    return plugin_handlers.get("plugin")
