"""
Manifest domain object for repovendor.

The manifest is the ordered list of vendored dependencies. This module holds
only the in-memory collection and its invariants; reading and writing the
file lives in repovendor.infra.manifest_store.

Invariants enforced on insertion:
- no two dependencies share an import path
- no dependency is nested inside another (neither "parent vendored" nor
  "child already vendored")
"""

from typing import Iterator, List, Optional

from ..exit_codes import DependencyConflictError, DependencyNotFoundError
from .dependency import Dependency, is_subpath


MANIFEST_VERSION = 0


class Manifest:
    """
    In-memory manifest.

    Example:
        manifest = Manifest()
        manifest.add_dependency(dep)
        if manifest.has_importpath("github.com/pkg/errors/sub"):
            ...
    """

    def __init__(self, dependencies: Optional[List[Dependency]] = None,
                 version: int = MANIFEST_VERSION):
        self.version = version
        self._dependencies: List[Dependency] = []
        for dep in dependencies or []:
            self.add_dependency(dep)

    @property
    def dependencies(self) -> List[Dependency]:
        """Copy of the dependencies in insertion order."""
        return list(self._dependencies)

    def sorted_dependencies(self) -> List[Dependency]:
        """Dependencies in the stable order used for serialization."""
        return sorted(self._dependencies, key=lambda d: d.importpath)

    def add_dependency(self, dep: Dependency) -> None:
        """
        Add a dependency.

        Raises:
            DependencyConflictError: if the import path is already present,
                a parent of it is vendored, or a child of it is vendored.
        """
        for existing in self._dependencies:
            if existing.importpath == dep.importpath:
                raise DependencyConflictError(
                    f"dependency {dep.importpath} already present in manifest"
                )
            if existing.contains(dep.importpath):
                raise DependencyConflictError(
                    f"a parent of {dep.importpath} is already vendored: {existing.importpath}"
                )
            if dep.contains(existing.importpath):
                raise DependencyConflictError(
                    f"a child of {dep.importpath} is already vendored: {existing.importpath}"
                )
        self._dependencies.append(dep)

    def remove_dependency(self, dep: Dependency) -> None:
        """
        Remove the dependency with the same import path.

        Raises:
            DependencyNotFoundError: if there is no exact match.
        """
        for i, existing in enumerate(self._dependencies):
            if existing.importpath == dep.importpath:
                del self._dependencies[i]
                return
        raise DependencyNotFoundError(dep.importpath)

    def get_dependency_for_importpath(self, path: str) -> Dependency:
        """
        Exact-match lookup.

        Callers that need the nearest vendored ancestor use vendoring().

        Raises:
            DependencyNotFoundError: if no dependency has this import path.
        """
        for dep in self._dependencies:
            if dep.importpath == path:
                return dep
        raise DependencyNotFoundError(path)

    def vendoring(self, path: str) -> Optional[Dependency]:
        """Return the dependency that covers ``path`` (itself or an ancestor)."""
        for dep in self._dependencies:
            if dep.contains(path):
                return dep
        return None

    def has_importpath(self, path: str) -> bool:
        """True if ``path`` or one of its ancestors is vendored."""
        return self.vendoring(path) is not None

    def get_subpackages(self, prefix: str) -> List[Dependency]:
        """All dependencies equal to or below ``prefix``."""
        prefix = prefix.rstrip("/")
        return [d for d in self._dependencies if is_subpath(d.importpath, prefix)]

    def __iter__(self) -> Iterator[Dependency]:
        return iter(list(self._dependencies))

    def __len__(self) -> int:
        return len(self._dependencies)

    def __contains__(self, path: str) -> bool:
        return any(d.importpath == path for d in self._dependencies)

    def __repr__(self) -> str:
        return f"Manifest(version={self.version}, dependencies={len(self)})"
