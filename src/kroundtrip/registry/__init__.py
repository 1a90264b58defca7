from kroundtrip.registry.catalog import SchemaCatalog
from kroundtrip.registry.client import RegistryClient

__all__ = [
    "RegistryClient",
    "SchemaCatalog",
]
