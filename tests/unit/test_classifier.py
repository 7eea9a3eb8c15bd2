"""Tests for check_intent — image/bundle exclusivity."""

from __future__ import annotations

import pytest

from bundlepull.core.classifier import PullIntent, UsageError, check_intent
from bundlepull.models.manifest import BUNDLE_ANNOTATION, Manifest

DIGEST = "sha256:" + "1" * 64


def _manifest(annotations: dict[str, str] | None = None) -> Manifest:
    return Manifest(digest=DIGEST, annotations=annotations or {})


class TestCheckIntent:
    def test_bundle_intent_accepts_bundle(self):
        check_intent(_manifest({BUNDLE_ANNOTATION: "true"}), PullIntent.BUNDLE)

    def test_image_intent_accepts_plain_image(self):
        check_intent(_manifest(), PullIntent.IMAGE)

    def test_image_intent_rejects_bundle(self):
        with pytest.raises(UsageError, match="please use -b instead of --image"):
            check_intent(_manifest({BUNDLE_ANNOTATION: "true"}), PullIntent.IMAGE)

    def test_bundle_intent_rejects_plain_image(self):
        with pytest.raises(UsageError, match="please use --image instead of -b"):
            check_intent(_manifest(), PullIntent.BUNDLE)

    @pytest.mark.parametrize("value", ["false", "True", "yes", ""])
    def test_other_values_are_not_bundles(self, value: str):
        manifest = _manifest({BUNDLE_ANNOTATION: value})
        check_intent(manifest, PullIntent.IMAGE)
        with pytest.raises(UsageError, match="--image"):
            check_intent(manifest, PullIntent.BUNDLE)

    def test_unrelated_annotations_ignored(self):
        manifest = _manifest({"org.opencontainers.image.source": "https://example.com"})
        check_intent(manifest, PullIntent.IMAGE)
