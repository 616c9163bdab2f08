"""Extension management and loading.

The Extensions manager uses suppliers to find extensions, handlers to
validate and load them, and an ExtensionRegistry to remember them.

States:
    new       found by a supplier, nobody decided about it yet
    enabled   will be loaded by load_all()
    disabled  explicitly turned off
    loaded    the handler loaded it in this process
    error     the handler failed to load it, or its handler disappeared

There is no automatic new -> enabled transition; a caller (a user through
the CLI, or a subsystem like the database bootstrap) has to decide.
"""

import heapq
import shutil
import threading
from enum import Enum
from pathlib import Path
from typing import Any, Iterator, Optional, Union

from pydantic import ValidationError

from quark.config import Config, get_config
from quark.core.errors import (
    ConfigError,
    DependencyError,
    ExtensionError,
    HandlerNotFoundError,
    LoadError,
    LoadErrors,
    NotEnabledError,
    QuarkError,
    SchemaValidationError,
    SupplierError,
)
from quark.core.logging import get_logger
from quark.extensions.handler_registry import HandlerRegistry
from quark.extensions.registry import ExtensionRegistry
from quark.extensions.suppliers import (
    BuildingSupplier,
    CachingSupplier,
    DiskBuildingSupplier,
    INICachingSupplier,
    JSONCachingSupplier,
    Supplier,
)
from quark.models.extension import ExtensionDescriptor, ExtensionState
from quark.utils.schema import validate

logger = get_logger("extensions")


class PopulateMode(str, Enum):
    """How populate() fills the registry."""
    REFILL = "refill"    # empty the registry, fill it from a building supplier
    UPDATE = "update"    # add new and drop vanished extensions via a building supplier
    CACHED = "cached"    # fill from a caching supplier
    AUTO = "auto"        # cached if a cache is available, update otherwise


class Extensions:
    """Discovers, tracks and loads extensions.

    Construct one per process (the Application or the CLI does) and pass it
    to whoever needs it. Every public operation holds a per-instance lock.
    """

    def __init__(
        self,
        handlers: Optional[HandlerRegistry] = None,
        suppliers: Optional[list[Supplier]] = None,
        config: Optional[Config] = None
    ):
        self._lock = threading.RLock()
        self._config = config
        self._handlers = handlers if handlers is not None else HandlerRegistry()
        self._extensions = ExtensionRegistry(self._handlers)
        self._suppliers: Optional[list[Supplier]] = None
        self._rejected: dict[str, str] = {}
        self._loading: set[str] = set()

        if suppliers is not None:
            self.set_suppliers(suppliers)

    # Suppliers

    @property
    def suppliers(self) -> list[Supplier]:
        return list(self._suppliers or [])

    def set_default_suppliers(self, config: Optional[Config] = None) -> None:
        """Use the configured cache file and the extensions directory scanner."""
        config = config or self._config or get_config()

        if config.extensions.cache_format == "ini":
            cache = INICachingSupplier(config.cache_path)
        else:
            cache = JSONCachingSupplier(config.cache_path)

        self.set_suppliers([cache, DiskBuildingSupplier(config.paths.extensions_dir)])

    def set_suppliers(self, suppliers: list[Supplier]) -> None:
        """Replace the supplier list (order matters: earlier suppliers are tried first).

        Raises:
            ConfigError: empty list or a non-Supplier entry
        """
        suppliers = list(suppliers)
        if not suppliers:
            raise ConfigError("At least one extension supplier is required")
        for supplier in suppliers:
            if not isinstance(supplier, Supplier):
                raise ConfigError(f"{supplier!r} does not implement the Supplier interface")
        self._suppliers = suppliers

    def _require_suppliers(self) -> list[Supplier]:
        if not self._suppliers:
            raise SupplierError(
                "No extension suppliers configured",
                suggestion="Call set_default_suppliers() or set_suppliers() first"
            )
        return self._suppliers

    def _building(self) -> list[BuildingSupplier]:
        return [s for s in self._require_suppliers() if isinstance(s, BuildingSupplier)]

    def _caching(self) -> list[CachingSupplier]:
        return [s for s in self._require_suppliers() if isinstance(s, CachingSupplier)]

    # Population

    def populate(self, mode: Union[PopulateMode, str] = PopulateMode.AUTO) -> bool:
        """Fill the registry using the suppliers.

        Extensions that are already known keep their in-memory descriptor, so
        repeated calls with an unchanged disk and cache are idempotent.

        Returns:
            False when no suitable supplier was available

        Raises:
            SupplierError: no suppliers configured, or a supplier failed
            ValueError: unknown mode
        """
        mode = PopulateMode(mode)

        with self._lock:
            if mode in (PopulateMode.CACHED, PopulateMode.AUTO):
                for supplier in self._caching():
                    if supplier.available():
                        supplier.fill(self)
                        logger.info(f"Populated {len(self)} extension(s) from {supplier.name}", component="registry")
                        return True

            if mode in (PopulateMode.REFILL, PopulateMode.UPDATE, PopulateMode.AUTO):
                for supplier in self._building():
                    if supplier.available():
                        if mode is PopulateMode.REFILL:
                            self._clear()
                            supplier.fill(self)
                        else:
                            supplier.update(self)
                        logger.info(f"Populated {len(self)} extension(s) from {supplier.name}", component="registry")
                        return True

            logger.warning(f"Could not populate the extension registry: no available supplier for mode '{mode.value}'", component="registry")
            return False

    def cache(self) -> bool:
        """Persist the current extension list with every cacheable caching supplier.

        Never called implicitly. Returns False when no supplier could cache.
        """
        with self._lock:
            if len(self._extensions) == 0:
                return True

            found = False
            for supplier in self._caching():
                if supplier.cacheable():
                    supplier.cache(self)
                    found = True
            return found

    def to_cache_records(self) -> dict[str, dict[str, Any]]:
        with self._lock:
            return {d.id: d.to_cache_record() for d in self._extensions}

    def reset(self) -> None:
        """Forget every extension (used before a rescan)."""
        with self._lock:
            self._clear()

    def scan(self, keep_states: bool = False) -> bool:
        """Reset and rebuild the list from disk.

        With ``keep_states`` extensions that were enabled or disabled before
        the rescan get that state back (enabling rechecks dependencies).
        """
        with self._lock:
            previous = {}
            if keep_states:
                previous = {
                    d.id: ExtensionState.ENABLED if d.state is ExtensionState.LOADED else d.state
                    for d in self._extensions
                    if d.state in (ExtensionState.ENABLED, ExtensionState.LOADED, ExtensionState.DISABLED)
                }

            self._clear()
            if not self.populate(PopulateMode.REFILL):
                return False

            # disabled first so enabling sees the final picture
            for name, state in sorted(previous.items(), key=lambda item: item[1] is ExtensionState.ENABLED):
                if not self._extensions.exists(name):
                    continue
                try:
                    self._transition(self._extensions.get(name), state)
                except DependencyError as e:
                    logger.warning(f"Extension {name} left new after rescan: {e.message}", component="registry", extension=name)
            return True

    def _clear(self) -> None:
        self._extensions.clear()
        self._rejected.clear()
        for name in self._handlers:
            handler = self._handlers.get(name)
            if hasattr(handler, "forget"):
                handler.forget()

    # Registration

    def register(self, path: Union[str, Path], name: Optional[str] = None) -> bool:
        """Register the extension at ``path`` if one of its handlers accepts it.

        The handler candidates come from the directory type (``x.driver`` ->
        ``driver``); the first one whose test() passes is used. Rejections
        are logged and remembered in ``rejected``, never raised.
        """
        path = Path(path)
        name = name or self.find_name(path)
        type_ = self.find_type(name)

        with self._lock:
            candidates = self._handlers.get_by_type(type_)
            if not candidates:
                return self._reject(name, f"no handler for type '{type_}'", path)

            for handler_name in candidates:
                handler = self._handlers.get(handler_name)
                if handler.test(path):
                    break
            else:
                return self._reject(name, "not accepted by handler " + ", ".join(candidates), path)

            try:
                info = handler.info(path)
                dependencies = handler.dependencies(path)
            except SchemaValidationError as e:
                logger.warning(
                    f"Extension {name} has an invalid info file: {e.message}",
                    component="registry", extension=name, path=str(path)
                )
                return self._reject(name, f"invalid info at '{e.path}': {e.message}", path)
            except ExtensionError as e:
                return self._reject(name, e.message, path)

            descriptor = ExtensionDescriptor(
                id=name,
                path=str(path),
                type=type_,
                handler=handler_name,
                state=ExtensionState.NEW,
                priority=handler.default_priority(),
                dependencies=dependencies,
                info=info,
            )

            if not self._extensions.register(descriptor):
                return self._reject(name, "an extension with this id is already registered", path)

            self._rejected.pop(name, None)
            logger.extension_registered(name, handler_name, str(path))
            return True

    def restore(self, name: str, record: dict[str, Any]) -> bool:
        """Register an extension from a cache record, keeping its stored state.

        Records whose handler no longer exists, whose directory no longer
        passes the handler test, or whose info no longer matches the
        handler's schema, are restored in state ERROR.
        """
        with self._lock:
            if self._extensions.exists(name):
                return False

            state = record.get("state")
            if state == ExtensionState.LOADED.value:
                state = ExtensionState.ENABLED.value

            handler_name = record.get("handler")
            if not self._handlers.exists(handler_name):
                logger.warning(f"Handler '{handler_name}' for cached extension {name} no longer exists", component="registry", extension=name)
                state = ExtensionState.ERROR.value
            else:
                handler = self._handlers.get(handler_name)
                schema = getattr(handler, "map", None)
                if not handler.test(record.get("path", "")):
                    logger.warning(f"Cached extension {name} no longer passes the {handler_name} handler test", component="registry", extension=name)
                    state = ExtensionState.ERROR.value
                elif schema is not None and not validate(schema, record.get("info")):
                    state = ExtensionState.ERROR.value

            try:
                descriptor = ExtensionDescriptor(
                    id=name,
                    path=record["path"],
                    type=record["type"],
                    handler=handler_name,
                    state=state,
                    priority=record["priority"],
                    dependencies=record["dependencies"],
                    info=record["info"],
                )
            except (KeyError, ValidationError) as e:
                logger.warning(f"Skipping malformed cache record {name}: {e}", component="registry", extension=name)
                return False

            return self._extensions.register(descriptor)

    def remove(self, name: str, physically: bool = False) -> None:
        """Unregister an extension, optionally deleting its directory."""
        with self._lock:
            descriptor = self._extensions.get(name)
            if physically:
                shutil.rmtree(descriptor.path)
            self._extensions.unregister(name)
            handler = self._handlers.get(descriptor.handler) if self._handlers.exists(descriptor.handler) else None
            if hasattr(handler, "forget"):
                handler.forget(descriptor.path)

    def _reject(self, name: str, reason: str, path: Path) -> bool:
        self._rejected[name] = reason
        logger.extension_rejected(name, reason, str(path))
        return False

    @property
    def rejected(self) -> dict[str, str]:
        """Extensions the last scans turned down, with the reason."""
        return dict(self._rejected)

    # Access

    def exists(self, name: str) -> bool:
        return self._extensions.exists(name)

    def get(self, name: str) -> ExtensionDescriptor:
        """Raises ExtensionNotFoundError."""
        return self._extensions.get(name)

    def get_field(self, name: str, field: str) -> Any:
        """Single field of a descriptor.

        Raises:
            ExtensionNotFoundError: unknown extension
            ExtensionError: unknown field
        """
        descriptor = self._extensions.get(name)
        if field not in ExtensionDescriptor.model_fields:
            raise ExtensionError(f"Unknown extension field '{field}'", extension_name=name)
        return getattr(descriptor, field)

    def get_by_handler(self, handler: str) -> list[ExtensionDescriptor]:
        """Extensions of one handler, ordered by priority (high first), then id."""
        with self._lock:
            return self._extensions.get_by_handler(handler)

    def names(self) -> list[str]:
        return self._extensions.names()

    def __contains__(self, name: str) -> bool:
        return self.exists(name)

    def __iter__(self) -> Iterator[ExtensionDescriptor]:
        return iter(sorted(self._extensions, key=lambda d: (-d.priority, d.id)))

    def __len__(self) -> int:
        return len(self._extensions)

    # Mutation

    def set(self, name: str, field: str, value: Any) -> None:
        """Set one descriptor field; the value is validated by the model.

        Setting ``state`` goes through the state machine: enabling checks the
        dependencies and LOADED can only be reached through load().

        Raises:
            ExtensionNotFoundError: unknown extension
            ExtensionError: unknown field, or state LOADED requested
            DependencyError: enabling with missing, broken or cyclic dependencies
            HandlerNotFoundError: ``handler`` set to an unknown handler
            ValueError: the value is not valid for the field
        """
        with self._lock:
            descriptor = self._extensions.get(name)
            if field not in ExtensionDescriptor.model_fields:
                raise ExtensionError(f"Unknown extension field '{field}'", extension_name=name)

            if field == "state":
                self._transition(descriptor, ExtensionState(value))
            elif field == "handler":
                if not self._handlers.exists(value):
                    raise HandlerNotFoundError(value)
                descriptor.handler = value
            else:
                setattr(descriptor, field, value)

    def enable(self, name: str) -> None:
        self.set(name, "state", ExtensionState.ENABLED)

    def disable(self, name: str) -> None:
        self.set(name, "state", ExtensionState.DISABLED)

    def _transition(self, descriptor: ExtensionDescriptor, state: ExtensionState) -> None:
        old = descriptor.state

        if state is ExtensionState.LOADED and old is not ExtensionState.LOADED:
            raise ExtensionError(
                "The loaded state can only be reached by loading the extension",
                extension_name=descriptor.id
            )
        if state is old or (state is ExtensionState.ENABLED and old is ExtensionState.LOADED):
            return
        if state is ExtensionState.ENABLED:
            self._check_dependencies(descriptor)

        descriptor.state = state
        logger.extension_state_changed(descriptor.id, old.value, state.value)

    def _check_dependencies(self, descriptor: ExtensionDescriptor) -> None:
        """Refuse missing or broken dependencies and dependency cycles."""
        for dependency in descriptor.extension_dependencies:
            target = self._extensions.find(dependency)
            if target is None:
                raise DependencyError(
                    f"Extension '{descriptor.id}' depends on '{dependency}', which is not installed",
                    extension_name=descriptor.id,
                    dependency=dependency
                )
            if target.state is ExtensionState.ERROR:
                raise DependencyError(
                    f"Extension '{descriptor.id}' depends on '{dependency}', which is in an error state",
                    extension_name=descriptor.id,
                    dependency=dependency
                )

        cycle = self._find_cycle(descriptor.id)
        if cycle:
            raise DependencyError(
                f"Circular dependency detected: {' -> '.join(cycle)}",
                extension_name=descriptor.id,
                dependency=cycle[1]
            )

    def _find_cycle(self, start: str) -> Optional[list[str]]:
        stack: list[str] = []
        done: set[str] = set()

        def visit(name: str) -> Optional[list[str]]:
            if name in stack:
                return stack[stack.index(name):] + [name]
            if name in done:
                return None
            descriptor = self._extensions.find(name)
            if descriptor is None:
                return None

            stack.append(name)
            for dependency in descriptor.extension_dependencies:
                cycle = visit(dependency)
                if cycle:
                    return cycle
            stack.pop()
            done.add(name)
            return None

        return visit(start)

    # Loading

    def load(self, name: str, force: bool = False) -> bool:
        """Load an extension through its handler.

        A LOADED extension is not loaded again unless ``force`` is set.
        Without ``force`` the extension must be ENABLED. Enabled extension
        dependencies are loaded first.

        Raises:
            ExtensionNotFoundError: unknown extension
            NotEnabledError: not enabled and not forced
            DependencyError: a dependency is missing, not loadable or cyclic
            LoadError: the handler failed; the extension is now in ERROR
        """
        with self._lock:
            descriptor = self._extensions.get(name)

            if descriptor.state is ExtensionState.LOADED and not force:
                return True
            if descriptor.state not in (ExtensionState.ENABLED, ExtensionState.LOADED) and not force:
                raise NotEnabledError(name, descriptor.state.value)
            if name in self._loading:
                raise DependencyError(f"Circular dependency detected while loading '{name}'", extension_name=name)

            self._loading.add(name)
            try:
                self._load_dependencies(descriptor)
                self._dispatch(descriptor)
            finally:
                self._loading.discard(name)

            return True

    def _load_dependencies(self, descriptor: ExtensionDescriptor) -> None:
        for dependency in descriptor.extension_dependencies:
            target = self._extensions.find(dependency)
            if target is None:
                raise DependencyError(
                    f"Cannot load '{descriptor.id}': dependency '{dependency}' is not installed",
                    extension_name=descriptor.id,
                    dependency=dependency
                )
            if target.state is ExtensionState.LOADED:
                continue
            if target.state is not ExtensionState.ENABLED:
                raise DependencyError(
                    f"Cannot load '{descriptor.id}': dependency '{dependency}' is {target.state.value}",
                    extension_name=descriptor.id,
                    dependency=dependency
                )
            self.load(dependency)

    def _dispatch(self, descriptor: ExtensionDescriptor) -> None:
        name = descriptor.id
        try:
            handler = self._handlers.get(descriptor.handler)
        except HandlerNotFoundError as e:
            descriptor.state = ExtensionState.ERROR
            raise LoadError(
                f"Cannot load '{name}': its handler is not available",
                extension_name=name,
                handler=descriptor.handler,
                cause=e
            ) from e

        try:
            success = handler.load(name, descriptor.path)
        except LoadError:
            descriptor.state = ExtensionState.ERROR
            logger.extension_loaded(name, descriptor.handler, False)
            raise
        except Exception as e:
            descriptor.state = ExtensionState.ERROR
            logger.extension_loaded(name, descriptor.handler, False)
            raise LoadError(
                f"Handler '{descriptor.handler}' failed to load '{name}': {e}",
                extension_name=name,
                handler=descriptor.handler,
                cause=e
            ) from e

        if not success:
            descriptor.state = ExtensionState.ERROR
            logger.extension_loaded(name, descriptor.handler, False)
            raise LoadError(
                f"Handler '{descriptor.handler}' could not load '{name}'",
                extension_name=name,
                handler=descriptor.handler
            )

        descriptor.state = ExtensionState.LOADED
        logger.extension_loaded(name, descriptor.handler, True)

    def load_all(self) -> list[str]:
        """Load every enabled extension, dependencies first.

        A failing extension does not stop the others.

        Returns:
            ids loaded by this call

        Raises:
            LoadErrors: after trying everything, when one or more failed
        """
        with self._lock:
            return self._load_many(self._extensions.get_by_state(ExtensionState.ENABLED))

    def load_by_handler(self, handler: str) -> list[str]:
        """Like load_all(), restricted to one handler's extensions."""
        with self._lock:
            enabled = [d for d in self._extensions.get_by_handler(handler) if d.state is ExtensionState.ENABLED]
            return self._load_many(enabled)

    def _load_many(self, descriptors: list[ExtensionDescriptor]) -> list[str]:
        loaded: list[str] = []
        failures: dict[str, Exception] = {}

        for name in self.load_order(descriptors):
            if self._extensions.get(name).state is ExtensionState.LOADED:
                continue
            try:
                self.load(name)
                loaded.append(name)
            except QuarkError as e:
                failures[name] = e
                logger.error(f"Failed to load extension {name}: {e.message}", component="loader", extension=name)

        if failures:
            raise LoadErrors(failures, loaded)
        return loaded

    @staticmethod
    def load_order(descriptors: list[ExtensionDescriptor]) -> list[str]:
        """Topological order over the given descriptors.

        Ties are broken by priority (high first), then id. Members of a
        dependency cycle are appended last in the same tie order.
        """
        by_id = {d.id: d for d in descriptors}
        pending = {d.id: {dep for dep in d.extension_dependencies if dep in by_id} for d in descriptors}
        dependents: dict[str, list[str]] = {name: [] for name in by_id}
        for name, deps in pending.items():
            for dep in deps:
                dependents[dep].append(name)

        heap = [(-by_id[n].priority, n) for n, deps in pending.items() if not deps]
        heapq.heapify(heap)
        order: list[str] = []

        while heap:
            _, name = heapq.heappop(heap)
            order.append(name)
            for dependent in dependents[name]:
                pending[dependent].discard(name)
                if not pending[dependent]:
                    heapq.heappush(heap, (-by_id[dependent].priority, dependent))

        leftover = sorted((d for d in descriptors if d.id not in order), key=lambda d: (-d.priority, d.id))
        return order + [d.id for d in leftover]

    def loaded(self, name: str) -> bool:
        descriptor = self._extensions.find(name)
        return descriptor is not None and descriptor.state is ExtensionState.LOADED

    # Helpers

    @staticmethod
    def find_name(path: Union[str, Path]) -> str:
        """Extension id from its directory path."""
        return Path(path).name

    @staticmethod
    def find_type(name: str) -> Optional[str]:
        """Type from an extension id: the part after the last dot."""
        if "." not in name:
            return None
        return name.rsplit(".", 1)[1] or None
