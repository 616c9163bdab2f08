"""Tests for the configuration schema validator."""

import pytest

from conftest import dependency, driver_info
from quark.core.errors import SchemaValidationError
from quark.extensions.handlers import DriverHandler
from quark.utils.schema import collection, dictionary, prop, validate, validate_or_raise


DRIVER_MAP = DriverHandler.map


def test_valid_driver_info_is_accepted():
    result = validate(DRIVER_MAP, driver_info())

    assert result.valid
    assert result
    assert result.value["classname"] == "TestDriver"
    assert result.value["settings"] == [{"index": "path", "name": "Database file", "description": None}]


def test_absent_optional_keys_are_filled_in():
    result = validate(DRIVER_MAP, driver_info(title=None, author=None))

    assert result.valid
    assert result.value["title"] is None
    assert result.value["author"] is None
    assert result.value["dependencies"] == []


def test_undeclared_keys_are_dropped():
    result = validate(DRIVER_MAP, driver_info(homepage="https://example.org"))

    assert result.valid
    assert "homepage" not in result.value


@pytest.mark.parametrize("key", ["description", "copyright", "database", "classname", "settings"])
def test_missing_required_key_reports_its_path(key):
    result = validate(DRIVER_MAP, driver_info(**{key: None}))

    assert not result.valid
    assert result.path == key
    assert key in result.message


def test_null_required_value_counts_as_missing():
    data = driver_info()
    data["copyright"] = None

    result = validate(DRIVER_MAP, data)

    assert not result.valid
    assert result.path == "copyright"


def test_nested_dependency_path():
    deps = [dependency("a.driver"), {"name": "b.driver", "type": "extension"}]

    result = validate(DRIVER_MAP, driver_info(dependencies=deps))

    assert not result.valid
    assert result.path == "dependencies[1].version"


def test_settings_entry_without_index():
    settings = [{"index": "path"}, {"name": "no index"}]

    result = validate(DRIVER_MAP, driver_info(settings=settings))

    assert result.path == "settings[1].index"


def test_required_collection_must_not_be_empty():
    result = validate(DRIVER_MAP, driver_info(settings=[]))

    assert not result.valid
    assert result.path == "settings"


def test_optional_collection_may_be_empty():
    assert validate(DRIVER_MAP, driver_info(dependencies=[])).valid


def test_property_rejects_structures():
    result = validate(DRIVER_MAP, driver_info(description={"en": "text"}))

    assert not result.valid
    assert result.path == "description"


def test_collection_rejects_mapping():
    result = validate(DRIVER_MAP, driver_info(settings={"index": "path"}))

    assert result.path == "settings"


def test_root_must_be_mapping():
    result = validate(DRIVER_MAP, ["not", "a", "mapping"])

    assert not result.valid
    assert result.path is None


def test_boolean_shorthand_is_optional_property():
    schema = dictionary({"a": True, "b": prop(), "c": collection(False, optional=True)})

    assert validate(schema, {"b": 1}).value == {"a": None, "b": 1, "c": []}
    assert validate(schema, {"a": "x"}).path == "b"


def test_collection_of_scalars():
    schema = dictionary({"tags": collection(prop())})

    assert validate(schema, {"tags": ["x", 2, True]}).valid
    assert validate(schema, {"tags": ["x", ["y"]]}).path == "tags[1]"


def test_validate_or_raise():
    assert validate_or_raise(DRIVER_MAP, driver_info())["database"] == "test"

    with pytest.raises(SchemaValidationError) as exc_info:
        validate_or_raise(DRIVER_MAP, driver_info(copyright=None))

    assert exc_info.value.path == "copyright"
