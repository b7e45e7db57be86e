"""
Domain layer for repovendor.

Contains pure domain objects with no I/O or side effects:
- Dependency: One vendored package and its provenance
- Manifest: The ordered set of dependencies and its invariants
"""

from .dependency import Dependency, FROZEN_BRANCH, is_subpath
from .manifest import Manifest, MANIFEST_VERSION

__all__ = [
    'Dependency',
    'FROZEN_BRANCH',
    'is_subpath',
    'Manifest',
    'MANIFEST_VERSION',
]
