"""Artifact classification — image vs. bundle, checked against caller intent."""

from __future__ import annotations

from enum import Enum

from bundlepull.models.manifest import Manifest


class UsageError(RuntimeError):
    """Raised when the caller asked for something inconsistent.

    Usage errors are raised before anything on disk is touched.
    """


class PullIntent(str, Enum):
    """What the caller says it is pulling."""

    IMAGE = "image"
    BUNDLE = "bundle"


def check_intent(manifest: Manifest, intent: PullIntent) -> None:
    """Reject pulls whose intent does not match the artifact kind.

    Only the bundle annotation with the literal value "true" marks a bundle.
    """
    if intent is PullIntent.IMAGE:
        if manifest.is_bundle:
            raise UsageError(
                "Expected bundle flag when pulling a bundle, "
                "please use -b instead of --image"
            )
    elif not manifest.is_bundle:
        raise UsageError(
            "Expected image flag when pulling an image or index, "
            "please use --image instead of -b"
        )
