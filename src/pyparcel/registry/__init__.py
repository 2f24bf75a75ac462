"""Package registries."""

from pyparcel.registry.base import PackageView, Registry
from pyparcel.registry.memory import MemoryRegistry, RegistryWrite
from pyparcel.registry.pypi import PyPIRegistry, view_from_json

__all__ = [
    "MemoryRegistry",
    "PackageView",
    "PyPIRegistry",
    "Registry",
    "RegistryWrite",
    "view_from_json",
]
