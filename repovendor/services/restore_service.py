"""
Restore service for repovendor.

Rebuilds the vendor tree from the manifest: every dependency is checked out
at its recorded revision and staged again. The manifest itself is never
modified. Dependencies are processed by a bounded thread pool sharing one
Downloader; a failure is logged and counted without stopping the others.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path

from ..domain import Dependency
from ..exit_codes import PartialSuccessError, UserInputError
from ..infra.file_ops import remove_tree, stage_package
from ..infra.manifest_store import read_manifest
from ..infra.vcs import new_remote_repo
from .downloader import Downloader

logger = logging.getLogger(__name__)

DEFAULT_CONNECTIONS = 8


@dataclass
class RestoreResult:
    """Counts of one restore run, nested manifests included."""
    succeeded: int = 0
    failed: int = 0


class RestoreService:
    """
    Re-fetch every manifest dependency at its pinned revision.

    Branches and tags are ignored: after a history rewrite the revision may
    no longer be reachable from the branch tip.

    Example:
        with Downloader() as downloader:
            service = RestoreService(downloader, connections=4)
            result = service.restore(workspace.manifest_file, workspace.vendor_dir)
    """

    def __init__(self, downloader: Downloader, connections: int = DEFAULT_CONNECTIONS,
                 insecure: bool = False):
        if connections < 1:
            raise UserInputError(f"connections must be at least 1, got {connections}")
        self.downloader = downloader
        self.connections = connections
        self.insecure = insecure
        self._lock = threading.Lock()
        self._result = RestoreResult()

    def restore(self, manifest_file: Path, vendor_dir: Path) -> RestoreResult:
        """
        Restore the vendor tree described by ``manifest_file``.

        Raises:
            ManifestNotFoundError / ManifestCorruptError: if the manifest
                cannot be read
            PartialSuccessError: if any dependency failed
        """
        manifest = read_manifest(manifest_file)
        self._result = RestoreResult()

        with ThreadPoolExecutor(max_workers=self.connections) as executor:
            futures = [
                executor.submit(self._restore_one, dep, Path(vendor_dir), False)
                for dep in manifest
            ]
            for future in futures:
                future.result()

        result = self._result
        if result.failed:
            raise PartialSuccessError(
                f"failed to fetch {result.failed} dependencies",
                succeeded=result.succeeded,
                failed=result.failed,
            )
        return result

    def _restore_one(self, dep: Dependency, vendor_dir: Path, nested: bool) -> None:
        """Worker body: never raises, failures go to the shared counter."""
        try:
            self._download(dep, vendor_dir, nested)
        except Exception as e:
            logger.error(f"{dep.importpath}: {e}")
            self._count(failed=1)
        else:
            self._count(succeeded=1)

    def _download(self, dep: Dependency, vendor_dir: Path, nested: bool) -> None:
        extra = ""
        if not dep.no_tests:
            extra = " (including tests)"
        if dep.all_files:
            extra = " (without file exclusions)"
        logger.info(f"fetching {'recursive ' if nested else ''}{dep.importpath}{extra}")

        repo = new_remote_repo(dep.repository, dep.vcs, self.insecure)
        wc = self.downloader.get(repo, revision=dep.revision)

        dst = vendor_dir.joinpath(*dep.importpath.split('/'))
        src = wc.dir / dep.path if dep.path else wc.dir
        remove_tree(dst)
        stage_package(dst, wc.dir, dep.path, tests=not dep.no_tests, all_files=dep.all_files)

        # Dependencies that vendor their own dependencies. Read from the
        # checkout, the staged copy may have filtered the manifest out.
        nested_manifest = src / "vendor" / "manifest"
        if nested_manifest.exists():
            for sub in read_manifest(nested_manifest):
                self._restore_one(sub, dst / "vendor", True)

    def _count(self, succeeded: int = 0, failed: int = 0) -> None:
        with self._lock:
            self._result.succeeded += succeeded
            self._result.failed += failed
