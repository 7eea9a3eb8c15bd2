"""Registry capability consumed by the puller and the lock rewriter.

The core never talks HTTP itself; it depends on this protocol. Retry or
backoff policy, if any, belongs to an implementation, never to the core.
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import BinaryIO, Protocol, runtime_checkable

from bundlepull.models.manifest import Manifest
from bundlepull.models.references import ImageReference


class RegistryError(RuntimeError):
    """Raised when a registry request fails."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ManifestNotFoundError(RegistryError):
    """Raised when a manifest or blob does not exist in the registry."""


@runtime_checkable
class ImagesMetadata(Protocol):
    """Read-only registry operations, scoped by image reference."""

    def resolve(self, ref: ImageReference) -> str:
        """Return the manifest digest ``ref`` currently points at.

        Raises ``ManifestNotFoundError`` if nothing is there.
        """
        ...

    def manifest(self, ref: ImageReference) -> Manifest:
        """Fetch and decode the manifest for ``ref``."""
        ...

    def open_blob(
        self, ref: ImageReference, digest: str
    ) -> AbstractContextManager[BinaryIO]:
        """Open a blob of ``ref``'s repository as a readable stream."""
        ...

    def exists(self, ref: ImageReference) -> bool:
        """Whether the manifest ``ref`` names is present.

        Returns False only for a definite miss; other failures raise
        ``RegistryError``.
        """
        ...


__all__ = ["ImagesMetadata", "ManifestNotFoundError", "RegistryError"]
