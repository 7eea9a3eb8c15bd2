"""Where the reference to pull comes from: an image, a bundle, or a bundle lock.

The three CLI inputs are mutually exclusive. They are collapsed into one
``ReferenceSource`` at the boundary so the rest of the pull never sees
three optional fields.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from bundlepull.core.classifier import PullIntent, UsageError
from bundlepull.core.lockfile import read_bundle_lock
from bundlepull.models.references import ImageReference


class ReferenceSourceKind(str, Enum):
    IMAGE = "image"
    BUNDLE = "bundle"
    LOCK = "lock"


class ReferenceSource(BaseModel):
    """A validated choice of exactly one reference input."""

    model_config = ConfigDict(frozen=True)

    kind: ReferenceSourceKind
    value: str

    @classmethod
    def from_flags(
        cls,
        *,
        image: str | None = None,
        bundle: str | None = None,
        lock: str | None = None,
    ) -> ReferenceSource:
        """Pick the single non-empty input.

        Only inspects its arguments; nothing is read from disk or network.
        """
        chosen: ReferenceSource | None = None
        for kind, value in (
            (ReferenceSourceKind.LOCK, lock),
            (ReferenceSourceKind.IMAGE, image),
            (ReferenceSourceKind.BUNDLE, bundle),
        ):
            if not value:
                continue
            if chosen is not None:
                raise UsageError("Expected only one of image, bundle, or lock")
            chosen = cls(kind=kind, value=value)
        if chosen is None:
            raise UsageError("Expected either image, bundle, or lock")
        return chosen

    @property
    def intent(self) -> PullIntent:
        """Lock files always name bundles."""
        if self.kind is ReferenceSourceKind.IMAGE:
            return PullIntent.IMAGE
        return PullIntent.BUNDLE

    def reference(self) -> ImageReference:
        """Parse the reference; for a lock source, read it from the lock file."""
        if self.kind is ReferenceSourceKind.LOCK:
            bundle_lock = read_bundle_lock(Path(self.value))
            return ImageReference.parse(bundle_lock.spec.image.digest_ref)
        return ImageReference.parse(self.value)
