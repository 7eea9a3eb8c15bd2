"""Image manifest models — the subset of the OCI manifest the puller reads."""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Manifest annotation marking an artifact as a bundle. Only the literal
# value "true" counts.
BUNDLE_ANNOTATION = "io.k14s.imgpkg.bundle"

OCI_MANIFEST_MEDIA_TYPE = "application/vnd.oci.image.manifest.v1+json"
OCI_INDEX_MEDIA_TYPE = "application/vnd.oci.image.index.v1+json"
OCI_CONFIG_MEDIA_TYPE = "application/vnd.oci.image.config.v1+json"
OCI_LAYER_MEDIA_TYPE = "application/vnd.oci.image.layer.v1.tar"
DOCKER_MANIFEST_MEDIA_TYPE = "application/vnd.docker.distribution.manifest.v2+json"
DOCKER_LIST_MEDIA_TYPE = "application/vnd.docker.distribution.manifest.list.v2+json"

MANIFEST_MEDIA_TYPES = (OCI_MANIFEST_MEDIA_TYPE, DOCKER_MANIFEST_MEDIA_TYPE)
INDEX_MEDIA_TYPES = (OCI_INDEX_MEDIA_TYPE, DOCKER_LIST_MEDIA_TYPE)


class ManifestFormatError(ValueError):
    """Raised when manifest bytes are not a usable image manifest."""


class Descriptor(BaseModel):
    """A content descriptor: media type, digest and size of a blob."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    media_type: str = Field(alias="mediaType")
    digest: str
    size: int
    annotations: dict[str, str] = {}


class Manifest(BaseModel):
    """A single-image manifest with its digest and raw bytes."""

    model_config = ConfigDict(frozen=True)

    digest: str
    media_type: str = OCI_MANIFEST_MEDIA_TYPE
    config: Descriptor | None = None
    layers: list[Descriptor] = []
    annotations: dict[str, str] = {}
    raw: bytes = b""

    @property
    def is_bundle(self) -> bool:
        """Whether the bundle annotation is set to the literal "true"."""
        return self.annotations.get(BUNDLE_ANNOTATION) == "true"

    @classmethod
    def from_bytes(
        cls, raw: bytes, digest: str, media_type: str | None = None
    ) -> Manifest:
        """Decode manifest JSON as returned by a registry."""
        try:
            doc: dict[str, Any] = json.loads(raw)
        except ValueError as exc:
            raise ManifestFormatError(f"Decoding manifest {digest}: {exc}") from exc
        if not isinstance(doc, dict):
            raise ManifestFormatError(f"Decoding manifest {digest}: not an object")

        media_type = doc.get("mediaType") or media_type or OCI_MANIFEST_MEDIA_TYPE
        if media_type in INDEX_MEDIA_TYPES or "manifests" in doc:
            raise ManifestFormatError(
                f"Manifest {digest} is an image index; multi-platform images are not supported"
            )

        try:
            return cls(
                digest=digest,
                media_type=media_type,
                config=doc.get("config"),
                layers=doc.get("layers") or [],
                annotations=doc.get("annotations") or {},
                raw=raw,
            )
        except ValueError as exc:
            raise ManifestFormatError(f"Decoding manifest {digest}: {exc}") from exc
