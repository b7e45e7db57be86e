"""
Download cache for repovendor.

Deduplicates repository checkouts across every fetch in one command
invocation. Each (url, vcs, branch, tag, revision) key is checked out at most
once, however many threads ask for it at the same time; the result (working
copy or error) is shared by all of them.

Example:
    with Downloader() as downloader:
        repo, extra = downloader.deduce_remote_repo("github.com/pkg/errors")
        wc = downloader.get(repo)
        ...
    # every working copy has been destroyed here
"""

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from ..domain import is_subpath
from ..infra.remote import deduce_remote_repo
from ..infra.vcs import RemoteRepo, WorkingCopy

logger = logging.getLogger(__name__)

Deducer = Callable[[str, bool], Tuple[RemoteRepo, str]]


@dataclass(frozen=True)
class CacheKey:
    """Identity of one checkout."""
    url: str
    vcs: str
    branch: str = ""
    tag: str = ""
    revision: str = ""


class _CacheEntry:
    """A pending or completed checkout; ``done`` is set once published."""

    def __init__(self):
        self.done = threading.Event()
        self.working_copy: Optional[WorkingCopy] = None
        self.error: Optional[Exception] = None


class Downloader:
    """
    Single-flight cache of working copies and repository deductions.

    The entry map is guarded by one lock that is never held during VCS or
    network I/O: the first caller for a key registers a pending entry, leaves
    the lock, checks out, then publishes. Later callers wait on the entry.
    """

    def __init__(self, deducer: Optional[Deducer] = None):
        """
        Initialize Downloader.

        Args:
            deducer: Function mapping (import path, insecure) to
                (RemoteRepo, extra). Defaults to deduce_remote_repo.
        """
        self._deducer = deducer or deduce_remote_repo
        self._lock = threading.Lock()
        self._entries: Dict[CacheKey, _CacheEntry] = {}
        self._repos_lock = threading.Lock()
        self._repos: Dict[bool, Dict[str, RemoteRepo]] = {False: {}, True: {}}

    def get(self, repo: RemoteRepo, branch: str = "", tag: str = "",
            revision: str = "") -> WorkingCopy:
        """
        Return the working copy for this repository and version, checking
        it out if no other caller has.

        Raises:
            The checkout's exception, for this and every other caller of the
            same key. Errors are not retried.
        """
        key = CacheKey(url=repo.url, vcs=repo.vcs, branch=branch, tag=tag, revision=revision)

        with self._lock:
            entry = self._entries.get(key)
            owner = entry is None
            if owner:
                entry = _CacheEntry()
                self._entries[key] = entry

        if owner:
            logger.debug(f"Checking out {key}")
            try:
                entry.working_copy = repo.checkout(branch, tag, revision)
            except Exception as e:
                entry.error = e
            finally:
                entry.done.set()
        else:
            entry.done.wait()

        if entry.error is not None:
            raise entry.error
        return entry.working_copy

    def deduce_remote_repo(self, path: str, insecure: bool = False) -> Tuple[RemoteRepo, str]:
        """
        Cached version of deduce_remote_repo.

        Any import path at or below an already deduced repository root is
        answered from the cache, nearest root first, so sibling packages of
        one repository are deduced only once. Secure and insecure lookups
        are cached separately.
        """
        cache = self._repos[bool(insecure)]

        with self._repos_lock:
            bases = [base for base in cache if is_subpath(path, base)]
            if bases:
                base = max(bases, key=len)
                return cache[base], path[len(base):].strip("/")

        repo, extra = self._deducer(path, insecure)

        if not path.endswith(extra):
            # Shouldn't happen, but in case just bypass the cache
            logger.debug(f"Not caching {path}: subpath {extra!r} is not a suffix")
            return repo, extra

        base = path[:len(path) - len(extra)].strip("/") if extra else path.strip("/")
        with self._repos_lock:
            cache[base] = repo
        return repo, extra

    def flush(self) -> None:
        """
        Destroy every working copy this downloader produced.

        Waits for in-flight checkouts first. A failing destroy does not stop
        the others; the first error is raised at the end.
        """
        with self._lock:
            entries: List[_CacheEntry] = list(self._entries.values())
            self._entries.clear()

        first_error: Optional[Exception] = None
        for entry in entries:
            entry.done.wait()
            if entry.error is not None or entry.working_copy is None:
                continue
            try:
                entry.working_copy.destroy()
            except Exception as e:
                logger.debug(f"Failed to destroy {entry.working_copy}: {e}")
                if first_error is None:
                    first_error = e

        if first_error is not None:
            raise first_error

    def __enter__(self) -> 'Downloader':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            self.flush()
        except Exception as e:
            if exc_type is None:
                raise
            logger.warning(f"failed to delete temporary checkouts: {e}")
        return False

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
