"""Lock document models — the images a bundle depends on, and bundle locks.

An ``ImagesLock`` lives inside every bundle at ``.imgpkg/images.yml``::

    apiVersion: imgpkg.carvel.dev/v1alpha1
    kind: ImagesLock
    spec:
      images:
      - image: registry.example.com/app@sha256:...
        tag: v1.2.0
        name: app
        metadata: {...}

A ``BundleLock`` names a bundle by digest and can be used as the pull source.
Unknown keys are preserved so a rewrite never drops data it did not
understand.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

LOCK_API_VERSION = "imgpkg.carvel.dev/v1alpha1"
IMAGES_LOCK_KIND = "ImagesLock"
BUNDLE_LOCK_KIND = "BundleLock"

BUNDLE_DIR = ".imgpkg"
IMAGE_LOCK_FILE = "images.yml"

_LOCK_MODEL_CONFIG = ConfigDict(
    frozen=True,
    populate_by_name=True,
    extra="allow",
    coerce_numbers_to_str=True,  # unquoted YAML tags such as 7
)


class ImageLocation(BaseModel):
    """Where an image lives: a digest reference and the tag it came from."""

    model_config = _LOCK_MODEL_CONFIG

    digest_ref: str = Field(alias="image")
    original_tag: str | None = Field(None, alias="tag")


class ImageDesc(ImageLocation):
    """One image a bundle depends on."""

    name: str | None = None
    metadata: Any = None


class ImageLockSpec(BaseModel):
    model_config = _LOCK_MODEL_CONFIG

    images: list[ImageDesc] = []


class ImageLock(BaseModel):
    """The lock document embedded in a bundle."""

    model_config = _LOCK_MODEL_CONFIG

    api_version: str = Field(LOCK_API_VERSION, alias="apiVersion")
    kind: str = IMAGES_LOCK_KIND
    spec: ImageLockSpec = ImageLockSpec()

    @property
    def images(self) -> list[ImageDesc]:
        return self.spec.images

    def with_images(self, images: list[ImageDesc]) -> ImageLock:
        """Return a copy of this lock with its image list replaced."""
        return self.model_copy(
            update={"spec": self.spec.model_copy(update={"images": list(images)})}
        )


class BundleLockSpec(BaseModel):
    model_config = _LOCK_MODEL_CONFIG

    image: ImageLocation


class BundleLock(BaseModel):
    """A lock file pinning a bundle to a digest reference."""

    model_config = _LOCK_MODEL_CONFIG

    api_version: str = Field(LOCK_API_VERSION, alias="apiVersion")
    kind: str = BUNDLE_LOCK_KIND
    spec: BundleLockSpec
