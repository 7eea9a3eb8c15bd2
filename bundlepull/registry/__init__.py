"""Registry access — the capability protocol and its HTTP implementation."""

from bundlepull.registry.client import Registry
from bundlepull.registry.protocol import (
    ImagesMetadata,
    ManifestNotFoundError,
    RegistryError,
)

__all__ = ["ImagesMetadata", "ManifestNotFoundError", "Registry", "RegistryError"]
