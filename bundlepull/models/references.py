"""Image reference parsing — repository plus tag or digest.

Reference grammar follows the Docker/OCI conventions::

    [registry/]repository[:tag][@sha256:<hex>]

Weak parsing fills in defaults (Docker Hub registry, ``library/`` namespace,
``latest`` tag). Strict parsing requires a fully spelled-out digest reference
and is used for references the tool constructs itself.
"""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict

DEFAULT_REGISTRY = "index.docker.io"
DEFAULT_TAG = "latest"

_DIGEST_RE = re.compile(r"^sha256:[a-f0-9]{64}$")
_TAG_RE = re.compile(r"^[\w][\w.-]{0,127}$")
_REGISTRY_RE = re.compile(r"^[a-zA-Z0-9.-]+(?::[0-9]+)?$")
_COMPONENT = r"[a-z0-9]+(?:(?:[._]|__|-+)[a-z0-9]+)*"
_REPOSITORY_RE = re.compile(rf"^{_COMPONENT}(?:/{_COMPONENT})*$")


class InvalidReferenceError(ValueError):
    """Raised when a string cannot be parsed as an image reference."""


def _looks_like_registry(component: str) -> bool:
    return "." in component or ":" in component or component == "localhost"


class ImageReference(BaseModel):
    """A parsed, immutable image reference."""

    model_config = ConfigDict(frozen=True)

    registry: str = DEFAULT_REGISTRY
    repository: str
    tag: str | None = None
    digest: str | None = None

    @classmethod
    def parse(cls, text: str, *, strict: bool = False) -> ImageReference:
        """Parse a reference string.

        With ``strict=True`` the reference must name its registry and full
        repository path explicitly and carry a digest and no tag.
        """
        if not text or text != text.strip():
            raise InvalidReferenceError(f"Invalid image reference: {text!r}")

        name, _, digest = text.partition("@")
        digest = digest or None
        if digest is not None and not _DIGEST_RE.match(digest):
            raise InvalidReferenceError(
                f"Invalid digest in reference {text!r}: must be sha256:<64 hex characters>"
            )

        tag = None
        colon = name.rfind(":")
        if colon > name.rfind("/"):
            name, tag = name[:colon], name[colon + 1:]
            if not _TAG_RE.match(tag):
                raise InvalidReferenceError(f"Invalid tag in reference {text!r}")

        first, slash, rest = name.partition("/")
        if slash and _looks_like_registry(first):
            registry, repository = first, rest
            explicit_registry = True
        else:
            registry, repository = DEFAULT_REGISTRY, name
            explicit_registry = False

        if not _REGISTRY_RE.match(registry):
            raise InvalidReferenceError(f"Invalid registry in reference {text!r}")
        if not _REPOSITORY_RE.match(repository):
            raise InvalidReferenceError(f"Invalid repository in reference {text!r}")

        implicit_namespace = registry == DEFAULT_REGISTRY and "/" not in repository
        if strict:
            if digest is None:
                raise InvalidReferenceError(f"Expected digest reference, got {text!r}")
            if tag is not None:
                raise InvalidReferenceError(
                    f"Digest reference must not carry a tag: {text!r}"
                )
            if not explicit_registry:
                raise InvalidReferenceError(
                    f"Strict validation requires an explicit registry: {text!r}"
                )
            if implicit_namespace:
                raise InvalidReferenceError(
                    f"Strict validation requires the full repository path: {text!r}"
                )
        elif implicit_namespace:
            repository = f"library/{repository}"

        return cls(registry=registry, repository=repository, tag=tag, digest=digest)

    @property
    def context(self) -> str:
        """The ``registry/repository`` part, without tag or digest."""
        return f"{self.registry}/{self.repository}"

    @property
    def identifier(self) -> str:
        """What to ask the registry for: the digest, else the tag."""
        return self.digest or self.tag or DEFAULT_TAG

    def with_digest(self, digest: str) -> ImageReference:
        """Return this reference pinned to ``digest`` (the tag is dropped)."""
        return self.model_copy(update={"tag": None, "digest": digest})

    def __str__(self) -> str:
        text = self.context
        if self.tag:
            text += f":{self.tag}"
        if self.digest:
            text += f"@{self.digest}"
        return text


def with_repository(digest_ref: str, repository: str) -> str:
    """Relocate a ``repo@digest`` reference into ``repository``.

    The digest is kept as-is; only the repository component changes.
    """
    parts = digest_ref.split("@")
    if len(parts) != 2:
        raise InvalidReferenceError(f"Parsing image URL: {digest_ref}")
    return f"{repository}@{parts[1]}"
