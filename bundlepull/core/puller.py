"""Pull orchestration — resolve, classify, materialize, and relocate.

A pull runs strictly in sequence:

1. validate the output path (before anything is touched),
2. resolve the reference to a digest and fetch its manifest,
3. check the manifest against the caller's image/bundle intent,
4. remove and recreate the output directory,
5. extract the layers into it,
6. for bundles, relocate the image lock into the bundle's repository.
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from bundlepull.config import PullConfig
from bundlepull.config import config as default_config
from bundlepull.core.classifier import PullIntent, UsageError, check_intent
from bundlepull.core.materializer import DirImage
from bundlepull.core.reference_source import ReferenceSource
from bundlepull.core.rewriter import ImageLockRewriter
from bundlepull.registry.protocol import ImagesMetadata

logger = logging.getLogger(__name__)

# Output paths that would make the remove-and-recreate step destructive.
DISALLOWED_OUTPUT_PATHS = frozenset({"/", ".", ".."})


class PullResult(BaseModel):
    """Outcome of a completed pull."""

    model_config = ConfigDict(frozen=True)

    reference: str
    digest: str
    output_path: Path
    is_bundle: bool
    lock_rewritten: bool | None = None  # None for plain images


def check_output_path(output_path: Path | str) -> None:
    raw = str(output_path)
    normalized = os.path.normpath(raw)
    if normalized.startswith("//"):  # POSIX normpath keeps exactly two leading slashes
        normalized = "/" + normalized.lstrip("/")
    if raw in DISALLOWED_OUTPUT_PATHS or normalized in DISALLOWED_OUTPUT_PATHS:
        raise UsageError("Disallowed output directory (trying to avoid accidental deletion)")


class Puller:
    """Pulls an image or bundle into a local directory.

    Parameters
    ----------
    registry:
        Registry capability used for resolution, manifests, blobs and
        existence checks.
    config:
        Runtime configuration; the module default if omitted.
    """

    def __init__(self, registry: ImagesMetadata, *, config: PullConfig | None = None) -> None:
        self._registry = registry
        self._config = config or default_config

    def pull(self, source: ReferenceSource, output_path: Path) -> PullResult:
        output_path = Path(output_path)
        check_output_path(output_path)

        ref = source.reference()
        digest = self._registry.resolve(ref)
        pinned = ref.with_digest(digest)
        manifest = self._registry.manifest(pinned)
        check_intent(manifest, source.intent)

        logger.info("Pulling image '%s@%s'", ref.context, digest)

        if output_path.exists() or output_path.is_symlink():
            if output_path.is_dir() and not output_path.is_symlink():
                shutil.rmtree(output_path)
            else:
                output_path.unlink()
        output_path.mkdir(mode=self._config.output_dir_mode, parents=True)

        DirImage(output_path, self._registry, pinned, manifest).as_directory()

        lock_rewritten = None
        if source.intent is PullIntent.BUNDLE:
            rewriter = ImageLockRewriter(
                self._registry, file_mode=self._config.lock_file_mode
            )
            lock_rewritten = rewriter.rewrite(output_path, ref)

        return PullResult(
            reference=str(pinned),
            digest=digest,
            output_path=output_path,
            is_bundle=manifest.is_bundle,
            lock_rewritten=lock_rewritten,
        )
