"""Image lock rewriting — relocates a bundle's image references all-or-nothing.

A bundle's ``.imgpkg/images.yml`` lists the images it depends on by digest,
usually in the repositories they were originally pushed to. When those
images were copied alongside the bundle, every reference can point at the
bundle's own repository instead.

The rewrite is copy-on-success: the relocated list is built in memory and
written only when every image was found. A single miss leaves the file
byte-for-byte untouched and stops checking further entries.
"""

from __future__ import annotations

import logging
from pathlib import Path

from bundlepull.core.lockfile import image_lock_path, read_image_lock, write_lock
from bundlepull.models.lock import ImageDesc
from bundlepull.models.references import ImageReference, with_repository
from bundlepull.registry.protocol import ImagesMetadata

logger = logging.getLogger(__name__)


class ImageLockRewriter:
    """Points a bundle's image lock at images in the bundle's repository.

    Parameters
    ----------
    registry:
        Used to confirm each relocated image exists.
    file_mode:
        Permission bits of the rewritten lock file.
    """

    def __init__(self, registry: ImagesMetadata, *, file_mode: int = 0o600) -> None:
        self._registry = registry
        self._file_mode = file_mode

    def rewrite(self, bundle_dir: Path, bundle_ref: ImageReference) -> bool:
        """Rewrite the lock in ``bundle_dir``; return whether it was written.

        Raises ``InvalidReferenceError`` if a relocated reference cannot be
        parsed, which means an entry in the lock was malformed.
        """
        lock_path = image_lock_path(bundle_dir)
        lock = read_image_lock(lock_path)
        if not lock.images:
            return False

        logger.info("Locating image lock file images...")
        relocated = self._relocate(lock.images, bundle_ref.context)
        if relocated is None:
            logger.info(
                "One or more images not found in bundle repo. Skipping lock file update"
            )
            return False

        logger.info("All images found in bundle repo. Updating lock file")
        write_lock(lock_path, lock.with_images(relocated), mode=self._file_mode)
        return True

    def _relocate(
        self, images: list[ImageDesc], repository: str
    ) -> list[ImageDesc] | None:
        relocated: list[ImageDesc] = []
        for img in images:
            new_url = with_repository(img.digest_ref, repository)
            candidate = ImageReference.parse(new_url, strict=True)
            if not self._registry.exists(candidate):
                logger.debug("Image %s not found in %s", img.digest_ref, repository)
                return None
            relocated.append(img.model_copy(update={"digest_ref": new_url}))
        return relocated
