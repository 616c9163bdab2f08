"""Structural schema validation for declarative configuration files.

A schema is a tree of nodes:

    PROPERTY    a scalar leaf (str, int, float, bool)
    DICTIONARY  a fixed mapping of named keys to child nodes
    COLLECTION  an ordered list whose elements all match one child node

A bare boolean in a dictionary struct is shorthand for a PROPERTY leaf whose
value is its ``optional`` flag::

    dictionary({
        "title": True,          # optional scalar
        "copyright": False,     # required scalar
        "settings": collection(dictionary({"index": False, "name": True})),
    })

Keys that are present in the input but not declared in the schema are
ignored. Validation stops at the first violation and reports its path,
e.g. ``dependencies[2].version``.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

from quark.core.errors import SchemaValidationError


class NodeType(str, Enum):
    """Kinds of schema node."""
    PROPERTY = "property"
    DICTIONARY = "dictionary"
    COLLECTION = "collection"


@dataclass(frozen=True)
class SchemaNode:
    """One node in a configuration schema."""
    type: NodeType
    struct: Any = None
    optional: bool = False


SchemaLike = Union[SchemaNode, bool]


@dataclass
class SchemaResult:
    """Outcome of validating a mapping against a schema."""
    valid: bool
    value: Any = None
    path: Optional[str] = None
    message: Optional[str] = None
    errors: list[str] = field(default_factory=list)

    def __bool__(self) -> bool:
        return self.valid


def prop(optional: bool = False) -> SchemaNode:
    """Scalar leaf."""
    return SchemaNode(NodeType.PROPERTY, optional=optional)


def dictionary(struct: dict[str, SchemaLike], optional: bool = False) -> SchemaNode:
    """Fixed mapping of keys to child nodes."""
    return SchemaNode(NodeType.DICTIONARY, struct=dict(struct), optional=optional)


def collection(element: SchemaLike, optional: bool = False) -> SchemaNode:
    """Ordered list of elements sharing one child node.

    ``optional`` applies to the collection as a whole: an optional
    collection may be absent or empty, a required one must hold at least
    one element.
    """
    return SchemaNode(NodeType.COLLECTION, struct=element, optional=optional)


def _node(schema: SchemaLike) -> SchemaNode:
    if isinstance(schema, bool):
        return prop(optional=schema)
    if isinstance(schema, SchemaNode):
        return schema
    raise TypeError(f"Schema must be a SchemaNode or bool, got {type(schema).__name__}")


def _join(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


def _is_scalar(value: Any) -> bool:
    return isinstance(value, (str, int, float, bool))


def _map(schema: SchemaLike, value: Any, path: str) -> Any:
    node = _node(schema)

    if node.type is NodeType.PROPERTY:
        if not _is_scalar(value):
            raise SchemaValidationError(
                f"Key '{path}' must be a scalar value, got {type(value).__name__}",
                path=path, value=value
            )
        return value

    if node.type is NodeType.DICTIONARY:
        if not isinstance(value, Mapping):
            raise SchemaValidationError(
                f"Key '{path or '<root>'}' must be a mapping, got {type(value).__name__}",
                path=path or None, value=value
            )
        result = {}
        for key, child_schema in node.struct.items():
            child = _node(child_schema)
            child_path = _join(path, key)
            if value.get(key) is None:
                if not child.optional:
                    raise SchemaValidationError(
                        f"Required key '{child_path}' is missing",
                        path=child_path
                    )
                result[key] = [] if child.type is NodeType.COLLECTION else None
                continue
            result[key] = _map(child, value[key], child_path)
        return result

    if node.type is NodeType.COLLECTION:
        if not isinstance(value, (list, tuple)):
            raise SchemaValidationError(
                f"Key '{path}' must be a list, got {type(value).__name__}",
                path=path, value=value
            )
        if not value and not node.optional:
            raise SchemaValidationError(
                f"Collection '{path}' must contain at least one element",
                path=path
            )
        return [_map(node.struct, item, f"{path}[{index}]") for index, item in enumerate(value)]

    raise TypeError(f"Unknown schema node type: {node.type!r}")


def validate(schema: SchemaLike, data: Any) -> SchemaResult:
    """Validate ``data`` against ``schema``.

    Returns a SchemaResult; on success ``value`` holds the mapped data with
    every declared key present (absent optional scalars map to None, absent
    optional collections to an empty list) and undeclared keys dropped.
    """
    try:
        value = _map(schema, data, "")
    except SchemaValidationError as e:
        return SchemaResult(valid=False, path=e.path, message=e.message, errors=[e.message])
    return SchemaResult(valid=True, value=value)


def validate_or_raise(schema: SchemaLike, data: Any) -> Any:
    """Validate and return the mapped value, raising SchemaValidationError on failure."""
    return _map(schema, data, "")
