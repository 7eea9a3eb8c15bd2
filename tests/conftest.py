"""Shared test fixtures for bundlepull."""

from __future__ import annotations

import io
import sys
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO

import pytest

from bundlepull.core.archiver import FileImage, TarImage
from bundlepull.models.manifest import Manifest
from bundlepull.models.references import ImageReference
from bundlepull.registry.protocol import ManifestNotFoundError

DIGEST_A = "sha256:" + "a" * 64
DIGEST_B = "sha256:" + "b" * 64
DIGEST_C = "sha256:" + "c" * 64


class FakeRegistry:
    """In-memory registry implementing the ImagesMetadata protocol.

    Records every call so tests can assert what was (not) asked for.
    """

    def __init__(self) -> None:
        self.manifests: dict[str, Manifest] = {}  # "context@digest" -> manifest
        self.tags: dict[str, str] = {}  # "context:tag" -> digest
        self.blobs: dict[str, bytes] = {}
        self.calls: list[tuple[str, str]] = []

    # -- seeding ---------------------------------------------------------

    def push(self, ref_text: str, file_image: FileImage) -> ImageReference:
        """Store a packaged layer under ``ref_text`` and return the pinned ref."""
        ref = ImageReference.parse(ref_text)
        manifest = file_image.manifest()
        self.blobs[file_image.digest] = file_image.path.read_bytes()
        self.manifests[f"{ref.context}@{manifest.digest}"] = manifest
        if ref.tag:
            self.tags[f"{ref.context}:{ref.tag}"] = manifest.digest
        return ref.with_digest(manifest.digest)

    def add_image(self, context: str, digest: str) -> None:
        """Register an (empty) image so existence checks find it."""
        self.manifests[f"{context}@{digest}"] = Manifest(digest=digest)

    # -- ImagesMetadata ----------------------------------------------------

    def resolve(self, ref: ImageReference) -> str:
        self.calls.append(("resolve", str(ref)))
        if ref.digest:
            if f"{ref.context}@{ref.digest}" not in self.manifests:
                raise ManifestNotFoundError(f"Resolving {ref}: not found", 404)
            return ref.digest
        try:
            return self.tags[f"{ref.context}:{ref.identifier}"]
        except KeyError:
            raise ManifestNotFoundError(f"Resolving {ref}: not found", 404) from None

    def manifest(self, ref: ImageReference) -> Manifest:
        self.calls.append(("manifest", str(ref)))
        digest = self.resolve(ref)
        return self.manifests[f"{ref.context}@{digest}"]

    @contextmanager
    def open_blob(self, ref: ImageReference, digest: str) -> Iterator[BinaryIO]:
        self.calls.append(("open_blob", digest))
        yield io.BytesIO(self.blobs[digest])

    def exists(self, ref: ImageReference) -> bool:
        self.calls.append(("exists", str(ref)))
        return f"{ref.context}@{ref.digest}" in self.manifests

    @property
    def exists_calls(self) -> list[str]:
        return [arg for name, arg in self.calls if name == "exists"]


@pytest.hookimpl(tryfirst=True)
def pytest_sessionfinish(session: pytest.Session, exitstatus: int) -> None:
    """Give pytest's tmp_path cleanup room to remove the deep-tree fixtures.

    Some tests nest directories past the default recursion limit, and
    ``shutil.rmtree`` recurses per level on Python < 3.12.
    """
    sys.setrecursionlimit(max(sys.getrecursionlimit(), 10000))


@pytest.fixture
def tmp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test artifacts."""
    return tmp_path


@pytest.fixture
def fake_registry() -> FakeRegistry:
    """Provide an empty in-memory registry."""
    return FakeRegistry()


@pytest.fixture
def make_tree() -> Callable[[Path, dict[str, bytes | None]], Path]:
    """Factory fixture: build a directory tree from {relative path: content}.

    A ``None`` content creates an (empty) directory.
    """

    def _factory(root: Path, entries: dict[str, bytes | None]) -> Path:
        root.mkdir(parents=True, exist_ok=True)
        for rel, content in entries.items():
            path = root / rel
            if content is None:
                path.mkdir(parents=True, exist_ok=True)
            else:
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_bytes(content)
        return root

    return _factory


@pytest.fixture
def sample_tree(tmp_dir: Path, make_tree: Callable[..., Path]) -> Path:
    """A small tree with nested directories and an empty directory."""
    return make_tree(
        tmp_dir / "src",
        {
            "a.txt": b"alpha\n",
            "b/c.txt": b"charlie\n",
            "b/d/e.bin": bytes(range(256)),
            "empty": None,
            "z.txt": b"zulu\n",
        },
    )


IMAGES_LOCK_YAML = """\
apiVersion: imgpkg.carvel.dev/v1alpha1
kind: ImagesLock
spec:
  images:
  - image: other.example.com/src/app@{digest_a}
    tag: v1.0.0
    name: app
    metadata:
      team: payments
  - image: other.example.com/src/worker@{digest_b}
    tag: v2.3.1
    name: worker
  - image: index.docker.io/library/redis@{digest_c}
    tag: "7"
    name: cache
""".format(digest_a=DIGEST_A, digest_b=DIGEST_B, digest_c=DIGEST_C)


@pytest.fixture
def make_bundle_dir(
    make_tree: Callable[..., Path],
) -> Callable[[Path, str], Path]:
    """Factory fixture: a bundle directory with ``.imgpkg/images.yml``."""

    def _factory(root: Path, lock_yaml: str = IMAGES_LOCK_YAML) -> Path:
        return make_tree(
            root,
            {
                ".imgpkg/images.yml": lock_yaml.encode("utf-8"),
                "config/app.yml": b"replicas: 3\n",
            },
        )

    return _factory


@pytest.fixture
def packaged_bundle(
    tmp_dir: Path, make_bundle_dir: Callable[..., Path]
) -> Iterator[FileImage]:
    """A packaged bundle whose lock names three images."""
    bundle_dir = make_bundle_dir(tmp_dir / "bundle-src")
    with TarImage([bundle_dir]).as_file_bundle() as file_image:
        yield file_image
