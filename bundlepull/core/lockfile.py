"""YAML encoding and decoding of lock documents."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import TypeVar

import yaml
from pydantic import BaseModel, ValidationError

from bundlepull.models.lock import (
    BUNDLE_DIR,
    IMAGE_LOCK_FILE,
    BundleLock,
    ImageLock,
)

logger = logging.getLogger(__name__)

_M = TypeVar("_M", bound=BaseModel)


class LockFileError(RuntimeError):
    """Raised when a lock file cannot be read, decoded, or written."""

    def __init__(self, message: str, path: Path) -> None:
        super().__init__(message)
        self.path = path


def image_lock_path(bundle_dir: Path) -> Path:
    """Location of the image lock document inside an extracted bundle."""
    return Path(bundle_dir) / BUNDLE_DIR / IMAGE_LOCK_FILE


def _read(path: Path, model: type[_M]) -> _M:
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise LockFileError(f"Reading lock file '{path}': {exc}", path) from exc
    try:
        doc = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise LockFileError(f"Decoding lock file '{path}': {exc}", path) from exc
    try:
        return model.model_validate(doc if doc is not None else {})
    except ValidationError as exc:
        raise LockFileError(f"Decoding lock file '{path}': {exc}", path) from exc


def encode_lock(lock: BaseModel) -> str:
    """Encode a lock model as YAML, keeping document key order."""
    doc = lock.model_dump(by_alias=True, exclude_none=True, mode="json")
    return yaml.safe_dump(doc, sort_keys=False, default_flow_style=False)


def read_image_lock(path: Path) -> ImageLock:
    return _read(path, ImageLock)


def read_bundle_lock(path: Path) -> BundleLock:
    return _read(path, BundleLock)


def write_lock(path: Path, lock: BaseModel, *, mode: int = 0o600) -> None:
    """Overwrite ``path`` with the encoded lock and set its permission bits.

    The mode is applied even when the file already exists.
    """
    path = Path(path)
    data = encode_lock(lock)
    try:
        path.write_text(data, encoding="utf-8")
        os.chmod(path, mode)
    except OSError as exc:
        raise LockFileError(f"Writing lock file '{path}': {exc}", path) from exc
    logger.debug("Wrote lock file %s (%d bytes)", path, len(data))
