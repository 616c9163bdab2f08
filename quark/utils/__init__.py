"""Utilities."""

from .schema import SchemaResult, collection, dictionary, prop, validate, validate_or_raise

__all__ = ["SchemaResult", "prop", "dictionary", "collection", "validate", "validate_or_raise"]
