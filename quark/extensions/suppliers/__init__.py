"""Extension list suppliers."""

from .base import BuildingSupplier, CachingSupplier, Supplier
from .disk import DiskBuildingSupplier
from .ini_cache import INICachingSupplier
from .json_cache import JSONCachingSupplier

__all__ = [
    "Supplier",
    "CachingSupplier",
    "BuildingSupplier",
    "DiskBuildingSupplier",
    "JSONCachingSupplier",
    "INICachingSupplier",
]
