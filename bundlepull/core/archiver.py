"""Deterministic archiver — packages files and directory trees as one tar layer.

The produced stream depends only on the logical tree: entry order comes
from the sorted walk, and every header carries fixed metadata (mode per
entry kind, zero mtime, root ownership, no owner names). Archiving the same
tree twice yields byte-identical tarballs regardless of timestamps,
permissions or inode order on disk.
"""

from __future__ import annotations

import logging
import os
import stat
import tarfile
import tempfile
from collections.abc import Sequence
from pathlib import Path
from typing import BinaryIO

from bundlepull.core.hasher import canonical_json_bytes, file_digest, sha256_digest
from bundlepull.core.walker import WalkAction, walk
from bundlepull.models.manifest import (
    BUNDLE_ANNOTATION,
    OCI_CONFIG_MEDIA_TYPE,
    OCI_LAYER_MEDIA_TYPE,
    OCI_MANIFEST_MEDIA_TYPE,
    Descriptor,
    Manifest,
)

logger = logging.getLogger(__name__)

DIR_MODE = 0o700  # static
FILE_MODE = 0o600  # static
TAR_FORMAT = tarfile.PAX_FORMAT


class ArchiveError(RuntimeError):
    """Raised when a path cannot be added to the archive."""

    def __init__(self, message: str, path: Path | str | None = None) -> None:
        super().__init__(message)
        self.path = path


class NonRegularFileError(ArchiveError):
    """Raised when the tree contains a symlink, device, socket or fifo."""


class FileImage:
    """A packaged single-layer artifact backed by a temporary tar file.

    The instance owns the file: call ``remove()`` (or use it as a context
    manager) once the layer has been consumed.
    """

    def __init__(self, path: Path, bundle: bool) -> None:
        self.path = Path(path)
        self.is_bundle = bundle
        self.digest = file_digest(self.path)
        self.size = self.path.stat().st_size

    @property
    def annotations(self) -> dict[str, str]:
        return {BUNDLE_ANNOTATION: "true"} if self.is_bundle else {}

    def layer(self) -> Descriptor:
        return Descriptor(
            media_type=OCI_LAYER_MEDIA_TYPE, digest=self.digest, size=self.size
        )

    def manifest(self) -> Manifest:
        """Synthesize the OCI manifest this layer would be pushed under."""
        config_bytes = canonical_json_bytes(
            {
                "architecture": "",
                "os": "",
                "rootfs": {"type": "layers", "diff_ids": [self.digest]},
            }
        )
        config = Descriptor(
            media_type=OCI_CONFIG_MEDIA_TYPE,
            digest=sha256_digest(config_bytes),
            size=len(config_bytes),
        )
        layer = self.layer()
        doc: dict = {
            "schemaVersion": 2,
            "mediaType": OCI_MANIFEST_MEDIA_TYPE,
            "config": config.model_dump(by_alias=True, exclude_defaults=True),
            "layers": [layer.model_dump(by_alias=True, exclude_defaults=True)],
        }
        if self.annotations:
            doc["annotations"] = self.annotations
        raw = canonical_json_bytes(doc)
        return Manifest(
            digest=sha256_digest(raw),
            media_type=OCI_MANIFEST_MEDIA_TYPE,
            config=config,
            layers=[layer],
            annotations=self.annotations,
            raw=raw,
        )

    def open(self) -> BinaryIO:
        return open(self.path, "rb")

    def remove(self) -> None:
        self.path.unlink(missing_ok=True)

    def __enter__(self) -> FileImage:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.remove()

    def __repr__(self) -> str:
        return f"FileImage(path={str(self.path)!r}, bundle={self.is_bundle}, digest={self.digest!r})"


class TarImage:
    """Packages input paths into a canonical tar stream.

    Parameters
    ----------
    files:
        Input paths, processed in order. Directories contribute their whole
        tree relative to themselves; bare files contribute their base name.
    exclude_paths:
        Relative paths to leave out. An excluded directory is not descended.
    temp_dir:
        Where the temporary tarball is created. ``None`` = system default.
    """

    def __init__(
        self,
        files: Sequence[Path | str],
        exclude_paths: Sequence[str] = (),
        *,
        temp_dir: Path | None = None,
    ) -> None:
        self._files = [Path(f) for f in files]
        self._exclude_paths = list(exclude_paths)
        self._temp_dir = temp_dir

    def as_file_bundle(self) -> FileImage:
        return self._as_file_image(bundle=True)

    def as_file_image(self) -> FileImage:
        return self._as_file_image(bundle=False)

    def _as_file_image(self, bundle: bool) -> FileImage:
        fd, name = tempfile.mkstemp(
            prefix="bundlepull-tar-image",
            dir=str(self._temp_dir) if self._temp_dir else None,
        )
        try:
            with os.fdopen(fd, "wb") as tmp_file:
                self.write_tarball(tmp_file)
            return FileImage(Path(name), bundle)
        except BaseException:
            os.unlink(name)
            raise

    def write_tarball(self, fileobj: BinaryIO) -> None:
        """Write the canonical tar stream for all inputs to ``fileobj``."""
        with tarfile.open(fileobj=fileobj, mode="w", format=TAR_FORMAT) as tar:
            for path in self._files:
                try:
                    self._add_path(tar, path)
                except OSError as exc:
                    raise ArchiveError(
                        f"Adding file '{path}' to tar: {exc}",
                        exc.filename or path,
                    ) from exc

    def _add_path(self, tar: tarfile.TarFile, path: Path) -> None:
        info = os.stat(path)
        if not stat.S_ISDIR(info.st_mode):
            self._add_file(tar, path, path.name, info)
            return

        def _visit(walked: Path, walked_info: os.stat_result) -> WalkAction:
            rel_path = walked.relative_to(path).as_posix()
            if stat.S_ISDIR(walked_info.st_mode):
                if self.is_excluded(rel_path):
                    return WalkAction.SKIP_DIR
                self._add_dir(tar, rel_path)
                return WalkAction.CONTINUE
            self._add_file(tar, walked, rel_path, walked_info)
            return WalkAction.CONTINUE

        walk(path, _visit)

    def _add_dir(self, tar: tarfile.TarFile, rel_path: str) -> None:
        logger.info("dir: %s", rel_path)
        tar.addfile(_header(rel_path, tarfile.DIRTYPE, DIR_MODE, 0))

    def _add_file(
        self,
        tar: tarfile.TarFile,
        full_path: Path,
        rel_path: str,
        info: os.stat_result,
    ) -> None:
        if not stat.S_ISREG(info.st_mode):
            raise NonRegularFileError(
                f"Expected file '{full_path}' to be a regular file", full_path
            )
        if self.is_excluded(rel_path):
            return

        logger.info("file: %s", rel_path)
        with open(full_path, "rb") as f:
            tar.addfile(
                _header(rel_path, tarfile.REGTYPE, FILE_MODE, info.st_size), f
            )

    def is_excluded(self, rel_path: str) -> bool:
        return rel_path in self._exclude_paths


def _header(name: str, type_: bytes, mode: int, size: int) -> tarfile.TarInfo:
    info = tarfile.TarInfo(name)
    info.type = type_
    info.mode = mode
    info.size = size
    info.mtime = 0
    info.uid = info.gid = 0
    info.uname = info.gname = ""
    return info
