"""Tests for ImageReference parsing and repository relocation."""

from __future__ import annotations

import pytest

from bundlepull.models.references import (
    ImageReference,
    InvalidReferenceError,
    with_repository,
)

DIGEST = "sha256:" + "ab" * 32


class TestWeakParsing:
    def test_docker_hub_defaults(self):
        ref = ImageReference.parse("nginx")
        assert ref.registry == "index.docker.io"
        assert ref.repository == "library/nginx"
        assert ref.tag is None
        assert ref.identifier == "latest"

    def test_registry_with_port_and_tag(self):
        ref = ImageReference.parse("localhost:5000/team/app:v1.2")
        assert ref.registry == "localhost:5000"
        assert ref.repository == "team/app"
        assert ref.tag == "v1.2"
        assert ref.context == "localhost:5000/team/app"

    def test_digest_reference(self):
        ref = ImageReference.parse(f"registry.example.com/app@{DIGEST}")
        assert ref.digest == DIGEST
        assert ref.identifier == DIGEST
        assert str(ref) == f"registry.example.com/app@{DIGEST}"

    def test_namespace_without_registry(self):
        ref = ImageReference.parse("dkalinin/app1-bundle")
        assert ref.context == "index.docker.io/dkalinin/app1-bundle"

    def test_with_digest_drops_tag(self):
        ref = ImageReference.parse("registry.example.com/app:v1").with_digest(DIGEST)
        assert ref.tag is None
        assert str(ref) == f"registry.example.com/app@{DIGEST}"

    @pytest.mark.parametrize(
        "text",
        ["", "UPPER/case", "app@sha256:short", "app:bad tag", " app", "app@md5:" + "0" * 32],
    )
    def test_invalid(self, text: str):
        with pytest.raises(InvalidReferenceError):
            ImageReference.parse(text)


class TestStrictParsing:
    def test_accepts_full_digest_reference(self):
        ref = ImageReference.parse(f"index.docker.io/library/redis@{DIGEST}", strict=True)
        assert ref.repository == "library/redis"

    def test_requires_digest(self):
        with pytest.raises(InvalidReferenceError, match="digest"):
            ImageReference.parse("registry.example.com/app:v1", strict=True)

    def test_rejects_implicit_registry(self):
        with pytest.raises(InvalidReferenceError, match="registry"):
            ImageReference.parse(f"team/app@{DIGEST}", strict=True)

    def test_rejects_implicit_namespace(self):
        with pytest.raises(InvalidReferenceError, match="repository path"):
            ImageReference.parse(f"index.docker.io/redis@{DIGEST}", strict=True)

    def test_rejects_tag_and_digest(self):
        with pytest.raises(InvalidReferenceError):
            ImageReference.parse(f"registry.example.com/app:v1@{DIGEST}", strict=True)

    def test_invalid_reference_is_value_error(self):
        assert issubclass(InvalidReferenceError, ValueError)


class TestWithRepository:
    def test_keeps_digest(self):
        relocated = with_repository(
            f"other.example.com/src/app@{DIGEST}", "registry.example.com/team/bundle"
        )
        assert relocated == f"registry.example.com/team/bundle@{DIGEST}"

    @pytest.mark.parametrize("text", ["no-digest-here", "a@b@c"])
    def test_requires_single_at(self, text: str):
        with pytest.raises(InvalidReferenceError, match="Parsing image URL"):
            with_repository(text, "registry.example.com/team/bundle")
