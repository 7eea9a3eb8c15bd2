"""bundlepull data models — all Pydantic v2, all frozen (immutable)."""

from bundlepull.models.lock import (
    BundleLock,
    ImageDesc,
    ImageLocation,
    ImageLock,
)
from bundlepull.models.manifest import BUNDLE_ANNOTATION, Descriptor, Manifest
from bundlepull.models.references import (
    ImageReference,
    InvalidReferenceError,
    with_repository,
)

__all__ = [
    # references
    "ImageReference",
    "InvalidReferenceError",
    "with_repository",
    # manifest
    "BUNDLE_ANNOTATION",
    "Descriptor",
    "Manifest",
    # lock documents
    "BundleLock",
    "ImageDesc",
    "ImageLocation",
    "ImageLock",
]
