"""
Dependency domain object for repovendor.

A Dependency is one vendored package: the import path it answers to and the
provenance needed to fetch exactly the same files again.
It's designed to be immutable and serializable for the manifest file.
"""

from dataclasses import dataclass, replace
from typing import Any, Dict


FROZEN_BRANCH = "HEAD"


def is_subpath(path: str, prefix: str) -> bool:
    """True if ``path`` equals ``prefix`` or lies below it, segment-wise."""
    return path == prefix or path.startswith(prefix + "/")


@dataclass(frozen=True)
class Dependency:
    """
    Immutable record of one vendored package.

    Fields mirror the manifest entry:
    - importpath: logical import identity, unique within a manifest
    - repository: canonical repository URL
    - vcs: git, hg, bzr or svn
    - revision: opaque VCS revision id
    - branch: tracked branch; empty or "HEAD" means frozen
    - path: subdirectory of the checkout that holds importpath

    To "update" a Dependency, create a new instance with
    dataclasses.replace().
    """

    importpath: str
    repository: str
    revision: str
    vcs: str = ""
    branch: str = ""
    path: str = ""
    no_tests: bool = True
    all_files: bool = False

    def __post_init__(self):
        # Older manifests store the subpath with a leading slash.
        if self.path != self.path.strip("/"):
            object.__setattr__(self, "path", self.path.strip("/"))

    @property
    def is_frozen(self) -> bool:
        """True when the dependency is pinned rather than tracking a branch."""
        return self.branch in ("", FROZEN_BRANCH)

    @property
    def location(self) -> str:
        """Repository URL joined with the subpath, for display."""
        if self.path:
            return f"{self.repository}/{self.path}"
        return self.repository

    def contains(self, import_path: str) -> bool:
        """True if ``import_path`` is this dependency or one of its subpackages."""
        return is_subpath(import_path, self.importpath)

    def frozen(self) -> 'Dependency':
        """Create a copy pinned to its current revision."""
        return replace(self, branch=FROZEN_BRANCH)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to the manifest representation.

        Key order is fixed and empty optional keys are left out so that
        serialization is deterministic.
        """
        result: Dict[str, Any] = {
            'importpath': self.importpath,
            'repository': self.repository,
        }
        if self.vcs:
            result['vcs'] = self.vcs
        result['revision'] = self.revision
        result['branch'] = self.branch
        if self.path:
            result['path'] = self.path
        if self.no_tests:
            result['notests'] = True
        if self.all_files:
            result['allfiles'] = True
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Dependency':
        """Create from a manifest entry. Raises KeyError/TypeError on bad input."""
        importpath = data['importpath']
        repository = data['repository']
        if not isinstance(importpath, str) or not importpath:
            raise TypeError("importpath must be a non-empty string")
        if not isinstance(repository, str):
            raise TypeError("repository must be a string")
        return cls(
            importpath=importpath,
            repository=repository,
            revision=str(data.get('revision', '')),
            vcs=str(data.get('vcs', '')),
            branch=str(data.get('branch', '')),
            path=str(data.get('path', '')),
            no_tests=bool(data.get('notests', False)),
            all_files=bool(data.get('allfiles', False)),
        )

    def __str__(self) -> str:
        return f"{self.importpath} ({self.location}@{self.revision})"
