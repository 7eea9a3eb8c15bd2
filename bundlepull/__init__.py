"""bundlepull: pull images and bundles from OCI registries onto local disk.

  - Deterministic tar packaging of directory trees (fixed modes, zero
    timestamps, sorted walk, excluded subtrees pruned)
  - Image/bundle classification from the bundle manifest annotation
  - Layer extraction into an output directory
  - All-or-nothing relocation of a bundle's image lock into the bundle's
    own repository
"""

__version__ = "0.1.0"
__description__ = "Pull images and bundles from OCI registries into directories"

from bundlepull.core.archiver import FileImage, TarImage
from bundlepull.core.puller import Puller, PullResult
from bundlepull.core.reference_source import ReferenceSource
from bundlepull.registry import Registry

__all__ = [
    "FileImage",
    "Puller",
    "PullResult",
    "ReferenceSource",
    "Registry",
    "TarImage",
    "__version__",
]
