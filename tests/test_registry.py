"""Tests for ExtensionRegistry."""

import pytest

from quark.core.errors import ExtensionNotFoundError, HandlerNotFoundError
from quark.extensions import ExtensionRegistry, HandlerRegistry
from quark.models import ExtensionDescriptor, ExtensionState


def descriptor(name: str, handler: str = "driver", **kwargs) -> ExtensionDescriptor:
    return ExtensionDescriptor(id=name, path=f"/ext/{name}", type="driver", handler=handler, **kwargs)


@pytest.fixture
def registry() -> ExtensionRegistry:
    return ExtensionRegistry(HandlerRegistry())


def test_register_and_get(registry):
    assert registry.register(descriptor("a.driver"))

    assert registry.exists("a.driver")
    assert "a.driver" in registry
    assert registry.get("a.driver").path == "/ext/a.driver"
    assert registry.get_handler("a.driver") == "driver"


def test_duplicate_is_not_replaced(registry):
    registry.register(descriptor("a.driver", priority=50))

    assert not registry.register(descriptor("a.driver", priority=60))
    assert registry.get("a.driver").priority == 50

    assert registry.register(descriptor("a.driver", priority=60), overwrite=True)
    assert registry.get("a.driver").priority == 60


def test_unknown_handler_is_refused(registry):
    with pytest.raises(HandlerNotFoundError):
        registry.register(descriptor("a.theme", handler="theme"))


def test_unknown_handler_allowed_in_error_state(registry):
    assert registry.register(descriptor("a.theme", handler="theme", state=ExtensionState.ERROR))


def test_get_missing(registry):
    with pytest.raises(ExtensionNotFoundError):
        registry.get("missing.driver")
    assert registry.find("missing.driver") is None
    assert registry.get_info("missing.driver") is None


def test_get_by_handler_order(registry):
    registry.register(descriptor("b.driver", priority=10))
    registry.register(descriptor("a.driver", priority=10))
    registry.register(descriptor("c.driver", priority=90))

    assert [d.id for d in registry.get_by_handler("driver")] == ["c.driver", "a.driver", "b.driver"]


def test_get_by_unknown_handler(registry):
    with pytest.raises(HandlerNotFoundError):
        registry.get_by_handler("theme")


def test_get_by_state(registry):
    registry.register(descriptor("a.driver"))
    registry.register(descriptor("b.driver", state=ExtensionState.ENABLED))

    assert [d.id for d in registry.get_by_state(ExtensionState.ENABLED)] == ["b.driver"]
    assert [d.id for d in registry.get_by_state(ExtensionState.NEW)] == ["a.driver"]


def test_registry_has_no_direct_state_writer(registry):
    assert not hasattr(registry, "set_state")


def test_unregister_and_clear(registry):
    registry.register(descriptor("a.driver"))
    registry.register(descriptor("b.driver"))

    assert registry.unregister("a.driver")
    assert registry.names() == ["b.driver"]

    registry.clear()
    assert len(registry) == 0
