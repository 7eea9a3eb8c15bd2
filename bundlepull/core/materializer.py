"""Directory materializer — extracts pulled layers into a destination directory.

This is the inverse of ``bundlepull.core.archiver``: every directory and
regular file recorded in a layer reappears under the destination with the
same relative path and contents. Nothing else is accepted from a layer.
"""

from __future__ import annotations

import logging
import os
import shutil
import tarfile
from pathlib import Path, PurePosixPath
from typing import BinaryIO

from bundlepull.models.manifest import Manifest
from bundlepull.models.references import ImageReference
from bundlepull.registry.protocol import ImagesMetadata

logger = logging.getLogger(__name__)

DIR_MODE = 0o700


class ExtractionError(RuntimeError):
    """Raised when a layer entry cannot be materialized."""

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


def _target_path(dest: Path, name: str) -> Path:
    rel = PurePosixPath(name)
    if rel.is_absolute() or ".." in rel.parts:
        raise ExtractionError(f"Refusing to extract '{name}' outside of '{dest}'", name)
    parts = [p for p in rel.parts if p != "."]
    return dest.joinpath(*parts)


def extract_layer(stream: BinaryIO, dest: Path) -> int:
    """Extract a tar (optionally gzip-compressed) layer stream into ``dest``.

    Returns the number of entries extracted.
    """
    dest = Path(dest)
    count = 0
    try:
        with tarfile.open(fileobj=stream, mode="r|*") as tar:
            for member in tar:
                target = _target_path(dest, member.name)
                if member.isdir():
                    logger.info("dir: %s", member.name.rstrip("/"))
                    os.makedirs(target, mode=DIR_MODE, exist_ok=True)
                elif member.isreg():
                    logger.info("file: %s", member.name)
                    os.makedirs(target.parent, mode=DIR_MODE, exist_ok=True)
                    src = tar.extractfile(member)
                    with open(target, "wb") as out:
                        shutil.copyfileobj(src, out)
                    os.chmod(target, member.mode & 0o777)
                else:
                    raise ExtractionError(
                        f"Unknown file '{member.name}' ({member.type!r})", member.name
                    )
                count += 1
    except (OSError, tarfile.TarError) as exc:
        raise ExtractionError(f"Extracting layer into '{dest}': {exc}") from exc
    return count


class DirImage:
    """Materializes every layer of a pulled image into ``dir_path``.

    Parameters
    ----------
    dir_path:
        Destination directory; must already exist.
    registry:
        Registry to stream layer blobs from.
    ref:
        Reference whose repository holds the blobs.
    manifest:
        The image manifest; layers are extracted in manifest order.
    """

    def __init__(
        self,
        dir_path: Path,
        registry: ImagesMetadata,
        ref: ImageReference,
        manifest: Manifest,
    ) -> None:
        self._dir_path = Path(dir_path)
        self._registry = registry
        self._ref = ref
        self._manifest = manifest

    def as_directory(self) -> None:
        for layer in self._manifest.layers:
            logger.debug("Extracting layer %s", layer.digest)
            with self._registry.open_blob(self._ref, layer.digest) as stream:
                extract_layer(stream, self._dir_path)
