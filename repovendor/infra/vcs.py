"""
Version control infrastructure for repovendor.

Provides a clean abstraction over VCS command execution.
A RemoteRepo knows its URL and VCS kind and can produce a WorkingCopy,
a checkout in a temporary directory that is removed by destroy().

All VCS operations go through these classes, making them:
- Easy to replace with fakes in tests
- Consistent in error handling (CheckoutError)
- Isolated from the resolver logic
"""

import logging
import shutil
import subprocess
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional

from ..exit_codes import CheckoutError, RepositoryResolutionError, UserInputError
from .file_ops import remove_tree

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 600
INSECURE_SCHEMES = ("http://", "git://", "bzr://", "svn://")


def run_vcs(command: List[str], cwd: Optional[str] = None,
            timeout: int = DEFAULT_TIMEOUT) -> str:
    """
    Run a VCS command and return its stripped stdout.

    Args:
        command: Command as list (e.g., ['git', 'rev-parse', 'HEAD'])
        cwd: Working directory
        timeout: Command timeout in seconds

    Raises:
        CheckoutError: if the binary is missing, times out or exits non-zero
    """
    cmd_str = ' '.join(command)
    logger.debug(f"Running {cmd_str} in {cwd or '.'}")
    try:
        result = subprocess.run(
            command,
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=timeout
        )
    except FileNotFoundError as e:
        raise CheckoutError(f"{command[0]} is not installed") from e
    except subprocess.TimeoutExpired as e:
        raise CheckoutError(f"{cmd_str} timed out after {timeout}s") from e

    if result.returncode != 0:
        stderr = (result.stderr or '').strip()
        raise CheckoutError(f"{cmd_str} failed: {stderr or 'exit status ' + str(result.returncode)}")
    return (result.stdout or '').strip()


class WorkingCopy(ABC):
    """
    A checkout of a repository at a resolved revision.

    Subclasses implement revision() and branch(); destroy() removes the
    checkout directory.
    """

    def __init__(self, directory: Path, repo: 'RemoteRepo'):
        self.dir = Path(directory)
        self.repo = repo

    @abstractmethod
    def revision(self) -> str:
        """Revision id of the checked out tree."""

    @abstractmethod
    def branch(self) -> str:
        """Checked out branch; "" or "HEAD" when not on a branch."""

    def destroy(self) -> None:
        """Remove the checkout directory."""
        remove_tree(self.dir)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(dir={str(self.dir)!r}, url={self.repo.url!r})"


class RemoteRepo(ABC):
    """A remote repository: its URL, its VCS kind, and how to check it out."""

    vcs: str = ""

    def __init__(self, url: str):
        self.url = url

    @abstractmethod
    def checkout(self, branch: str = "", tag: str = "", revision: str = "") -> WorkingCopy:
        """
        Check out the repository into a new temporary directory.

        Raises:
            CheckoutError: if the VCS command fails
        """

    def _tempdir(self) -> Path:
        return Path(tempfile.mkdtemp(prefix="repovendor-"))

    def _checkout_into(self, workdir: Path, commands: List[List[str]]) -> None:
        try:
            for command in commands:
                run_vcs(command, cwd=str(workdir.parent))
        except CheckoutError:
            shutil.rmtree(workdir.parent, ignore_errors=True)
            raise

    def __eq__(self, other) -> bool:
        if not isinstance(other, RemoteRepo):
            return NotImplemented
        return (self.url, self.vcs) == (other.url, other.vcs)

    def __hash__(self) -> int:
        return hash((self.url, self.vcs))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.url!r})"


class _TempWorkingCopy(WorkingCopy):
    """Working copy living in <tempdir>/src; destroy removes the tempdir."""

    def destroy(self) -> None:
        remove_tree(self.dir.parent)


class GitWorkingCopy(_TempWorkingCopy):

    def revision(self) -> str:
        return run_vcs(['git', 'rev-parse', 'HEAD'], cwd=str(self.dir))

    def branch(self) -> str:
        # "HEAD" when detached (checked out by tag or revision)
        return run_vcs(['git', 'rev-parse', '--abbrev-ref', 'HEAD'], cwd=str(self.dir))


class GitRepo(RemoteRepo):
    vcs = "git"

    def checkout(self, branch: str = "", tag: str = "", revision: str = "") -> WorkingCopy:
        if branch and tag:
            raise UserInputError("only one of branch or tag may be supplied")
        workdir = self._tempdir() / "src"
        clone = ['git', 'clone', '-q']
        if branch or tag:
            clone += ['--branch', branch or tag]
        if not revision:
            clone += ['--depth', '1']
        clone += [self.url, str(workdir)]
        commands = [clone]
        if revision:
            commands.append(['git', '-C', str(workdir), 'checkout', '-q', revision])
        self._checkout_into(workdir, commands)
        return GitWorkingCopy(workdir, self)


class HgWorkingCopy(_TempWorkingCopy):

    def revision(self) -> str:
        return run_vcs(['hg', 'id', '-i', '--debug'], cwd=str(self.dir)).rstrip('+')

    def branch(self) -> str:
        return run_vcs(['hg', 'branch'], cwd=str(self.dir))


class HgRepo(RemoteRepo):
    vcs = "hg"

    def checkout(self, branch: str = "", tag: str = "", revision: str = "") -> WorkingCopy:
        if branch and tag:
            raise UserInputError("only one of branch or tag may be supplied")
        workdir = self._tempdir() / "src"
        clone = ['hg', 'clone', '-q']
        if branch:
            clone += ['-b', branch]
        if tag or revision:
            clone += ['-u', revision or tag]
        clone += [self.url, str(workdir)]
        self._checkout_into(workdir, [clone])
        return HgWorkingCopy(workdir, self)


class BzrWorkingCopy(_TempWorkingCopy):

    def revision(self) -> str:
        return run_vcs(['bzr', 'revno'], cwd=str(self.dir))

    def branch(self) -> str:
        return ""


class BzrRepo(RemoteRepo):
    vcs = "bzr"

    def checkout(self, branch: str = "", tag: str = "", revision: str = "") -> WorkingCopy:
        if branch:
            raise UserInputError("bzr does not support checking out a named branch")
        workdir = self._tempdir() / "src"
        command = ['bzr', 'branch']
        if revision or tag:
            command += ['-r', revision or f"tag:{tag}"]
        command += [self.url, str(workdir)]
        self._checkout_into(workdir, [command])
        return BzrWorkingCopy(workdir, self)


class SvnWorkingCopy(_TempWorkingCopy):

    def revision(self) -> str:
        return run_vcs(['svnversion', '-n'], cwd=str(self.dir))

    def branch(self) -> str:
        return ""


class SvnRepo(RemoteRepo):
    vcs = "svn"

    def checkout(self, branch: str = "", tag: str = "", revision: str = "") -> WorkingCopy:
        if branch or tag:
            raise UserInputError("svn does not support branch or tag checkouts")
        workdir = self._tempdir() / "src"
        command = ['svn', 'checkout', '-q']
        if revision:
            command += ['-r', revision]
        command += [self.url, str(workdir)]
        self._checkout_into(workdir, [command])
        return SvnWorkingCopy(workdir, self)


REPO_TYPES = {
    'git': GitRepo,
    'hg': HgRepo,
    'bzr': BzrRepo,
    'svn': SvnRepo,
}


def new_remote_repo(url: str, vcs: str, insecure: bool = False) -> RemoteRepo:
    """
    Build a RemoteRepo from a recorded URL and VCS kind.

    An empty VCS kind defaults to git, as written by older manifests.

    Raises:
        RepositoryResolutionError: unknown VCS, or an insecure URL without
            the insecure flag
    """
    repo_type = REPO_TYPES.get(vcs or 'git')
    if repo_type is None:
        raise RepositoryResolutionError(f"unsupported VCS {vcs!r} for {url}")
    if url.startswith(INSECURE_SCHEMES) and not insecure:
        raise RepositoryResolutionError(
            f"{url} uses an insecure protocol, use --precaire to allow it"
        )
    return repo_type(url)
