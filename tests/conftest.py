"""
Shared fixtures: an in-memory set of fake remote repositories.

Each FakeRepo holds a dict of relative path -> file content. A checkout
writes those files into a fresh temporary directory so that destroy() can
remove it like a real working copy.
"""

import tempfile
from pathlib import Path
from typing import Dict, Optional

import pytest

from repovendor.domain import is_subpath
from repovendor.exit_codes import CheckoutError, RepositoryResolutionError
from repovendor.infra.vcs import RemoteRepo, WorkingCopy
from repovendor.workspace import Workspace


class FakeWorkingCopy(WorkingCopy):

    def __init__(self, directory, repo, revision, branch):
        super().__init__(directory, repo)
        self._revision = revision
        self._branch = branch
        self.destroyed = 0

    def revision(self):
        return self._revision

    def branch(self):
        return self._branch

    def destroy(self):
        self.destroyed += 1
        super().destroy()


class FakeRepo(RemoteRepo):
    vcs = "git"

    def __init__(self, url: str, files: Dict[str, str], workdir: Path,
                 revision: str = "1111", branch: str = "master"):
        super().__init__(url)
        self.files = files
        self.workdir = workdir
        self.revision = revision
        self.branch = branch
        self.checkouts = []
        self.fail: Optional[str] = None

    def checkout(self, branch="", tag="", revision=""):
        self.checkouts.append((branch, tag, revision))
        if self.fail:
            raise CheckoutError(self.fail)
        target = Path(tempfile.mkdtemp(dir=self.workdir))
        for rel, content in self.files.items():
            path = target / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
        return FakeWorkingCopy(target, self, revision or tag or self.revision, branch or self.branch)


class FakeWorld:
    """Maps repository root import paths to FakeRepos."""

    def __init__(self, workdir: Path):
        self.workdir = workdir
        self.repos: Dict[str, FakeRepo] = {}
        self.deductions = []

    def add(self, root: str, files: Dict[str, str], **kwargs) -> FakeRepo:
        repo = FakeRepo(f"https://{root}", files, self.workdir, **kwargs)
        self.repos[root] = repo
        return repo

    def deduce(self, path: str, insecure: bool = False):
        self.deductions.append(path)
        path = path.split("://", 1)[-1]
        for root, repo in self.repos.items():
            if is_subpath(path, root):
                return repo, path[len(root):].strip("/")
        raise RepositoryResolutionError(f"unrecognized import path {path!r}", path)

    def by_url(self, url: str, vcs: str = "", insecure: bool = False) -> FakeRepo:
        for repo in self.repos.values():
            if repo.url == url:
                return repo
        raise RepositoryResolutionError(f"no fake repository at {url}")


def go_file(package: str, *imports: str) -> str:
    """Source of a Go file importing the given paths."""
    lines = [f"package {package}", ""]
    if imports:
        lines.append("import (")
        lines.extend(f'\t"{i}"' for i in imports)
        lines.append(")")
    return "\n".join(lines) + "\n"


@pytest.fixture
def world(tmp_path):
    workdir = tmp_path / "checkouts"
    workdir.mkdir()
    return FakeWorld(workdir)


@pytest.fixture
def workspace(tmp_path):
    root = tmp_path / "project"
    root.mkdir()
    vendor = root / "vendor"
    return Workspace(
        root=root,
        vendor_dir=vendor,
        manifest_file=vendor / "manifest",
        import_path="example.com/me/project",
    )
