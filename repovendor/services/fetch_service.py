"""
Fetch service for repovendor.

Vendors an import path and, recursively, every remote package it imports.
Resolution is depth-first and single-threaded per session: each dependency is
checked out through the shared Downloader, staged into the vendor tree,
recorded in the manifest, and then scanned for further imports.

Example:
    with Downloader() as downloader:
        service = FetchService(workspace, downloader, FetchOptions(tag="v1.2.0"))
        deps = service.fetch("github.com/pkg/errors")
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Callable, Iterable, List, Optional

from ..domain import Dependency, Manifest, is_subpath
from ..exit_codes import (
    AlreadyVendoredError,
    DependencyConflictError,
    DependencyFetchError,
    DerivationError,
    ManifestConsistencyError,
    UserInputError,
)
from ..infra.file_ops import prune_empty_parents, remove_tree, stage_package
from ..infra.manifest_store import load_or_empty, read_manifest, write_manifest
from ..infra.remote import strip_scheme
from ..infra.vcs import new_remote_repo
from ..workspace import Workspace
from .downloader import Downloader
from .imports import is_remote_import, scan_imports

logger = logging.getLogger(__name__)


@dataclass
class FetchOptions:
    """Options for fetch and update."""
    branch: str = ""
    tag: str = ""
    revision: str = ""
    recurse: bool = True
    insecure: bool = False
    tests: bool = False       # Stage _test.go files and testdata
    all_files: bool = False   # Stage everything but VCS metadata

    def validate(self) -> None:
        """
        Raises:
            UserInputError: for mutually exclusive version pins
        """
        if self.branch and self.tag:
            raise UserInputError("cannot specify both --branch and --tag")
        if self.tag and self.revision:
            raise UserInputError("cannot specify both --tag and --revision")


@dataclass
class FetchSession:
    """State of one fetch invocation, threaded through every recursive step."""
    manifest: Manifest
    root_import_path: str = ""
    root_repo_url: str = ""
    visited: List[str] = field(default_factory=list)
    fetched: List[Dependency] = field(default_factory=list)

    def seen(self, path: str) -> bool:
        """True if ``path`` or an ancestor was fetched in this session."""
        return any(is_subpath(path, done) for done in self.visited)

    def fetched_here(self, path: str) -> bool:
        return any(dep.importpath == path for dep in self.fetched)


class FetchService:
    """
    Depth-first dependency fetcher.

    Version pins in the options apply only to the repository of the path the
    user asked for; dependencies reached transitively from other
    repositories are checked out at their default branch tip.
    """

    def __init__(
        self,
        workspace: Workspace,
        downloader: Downloader,
        options: Optional[FetchOptions] = None,
        is_remote: Callable[[str], bool] = is_remote_import,
    ):
        """
        Initialize FetchService.

        Args:
            workspace: Project being vendored into
            downloader: Shared checkout cache for this invocation
            options: Fetch options (defaults if None)
            is_remote: Predicate selecting which imports to fetch
        """
        self.workspace = workspace
        self.downloader = downloader
        self.options = options or FetchOptions()
        self.options.validate()
        self.is_remote = is_remote

    def fetch(self, path: str) -> List[Dependency]:
        """
        Vendor ``path`` and, unless recursion is disabled, its dependencies.

        A missing manifest is treated as empty and created.

        Returns:
            The dependencies added, in the order they were fetched

        Raises:
            AlreadyVendoredError: if the manifest already covers ``path``
            UserInputError: if ``path`` belongs to the project itself
            DependencyFetchError: if a transitive dependency fails
        """
        if not self.workspace.import_path:
            logger.warning(
                f"could not determine the import path of {self.workspace.root}, "
                "set general.import_path to refuse fetching the project into itself"
            )
        session = FetchSession(
            manifest=load_or_empty(self.workspace.manifest_file),
            root_import_path=strip_scheme(path),
        )
        self._fetch(path, session, 0)
        return session.fetched

    def update(self, paths: Iterable[str] = (), all_deps: bool = False) -> List[Dependency]:
        """
        Move dependencies to the tip of their recorded branch.

        Frozen dependencies (no branch, or HEAD) are left alone with a
        warning. Newly required imports are fetched afterwards unless
        recursion is disabled.

        Returns:
            The updated dependencies

        Raises:
            UserInputError: if both or neither of paths and all_deps are given
            ManifestNotFoundError: if there is no manifest
            DependencyNotFoundError: if a path is not in the manifest
        """
        paths = [strip_scheme(p).rstrip('/') for p in paths]
        if all_deps and paths:
            raise UserInputError("cannot specify an import path together with --all")
        if not all_deps and not paths:
            raise UserInputError("update: import path or --all flag is missing")

        manifest = read_manifest(self.workspace.manifest_file)
        if all_deps:
            targets = manifest.dependencies
        else:
            targets = [manifest.get_dependency_for_importpath(p) for p in paths]

        updated: List[Dependency] = []
        for old in targets:
            if old.is_frozen:
                logger.warning(f"skipping {old.importpath}: it is frozen at {old.revision}")
                continue
            if old.importpath not in manifest:
                logger.info(f"skipping {old.importpath}, superseded earlier in this update")
                continue
            new, wc_dir = self._update_one(manifest, old)
            updated.append(new)

            if self.options.recurse:
                session = FetchSession(
                    manifest=manifest,
                    root_import_path=new.importpath,
                    root_repo_url=new.repository,
                    visited=[new.importpath],
                )
                self._recurse(new, wc_dir, session, 0)
                updated.extend(session.fetched)
        return updated

    def _update_one(self, manifest: Manifest, old: Dependency):
        repo = new_remote_repo(old.repository, old.vcs, self.options.insecure)
        logger.info(f"updating {old.importpath}")
        wc = self.downloader.get(repo, branch=old.branch)

        new = replace(old, revision=wc.revision(), branch=wc.branch() or old.branch)
        manifest.remove_dependency(old)

        try:
            remove_tree(self.workspace.vendor_path(new.importpath))
            self._stage(new, wc.dir)
        except Exception:
            # The old files are gone; do not leave an entry pointing at them
            write_manifest(self.workspace.manifest_file, manifest)
            raise

        self._add(manifest, new)
        write_manifest(self.workspace.manifest_file, manifest)
        if new.revision != old.revision:
            logger.info(f"{new.importpath}: {old.revision} -> {new.revision}")
        return new, wc.dir

    def _fetch(self, path: str, session: FetchSession, level: int) -> None:
        qualified = path
        path = strip_scheme(path)
        manifest = session.manifest

        if session.seen(path):
            logger.info(f"skipping {path}, already fetched")
            return

        covering = manifest.vendoring(path)
        if covering is not None:
            if level == 0:
                raise AlreadyVendoredError(path, covering.importpath)
            return

        own = self.workspace.import_path
        if own and is_subpath(path, own):
            if level == 0:
                raise UserInputError(f"{path} is part of the project {own}, refusing to vendor it")
            return

        repo, extra = self.downloader.deduce_remote_repo(qualified, self.options.insecure)
        if level == 0:
            session.root_repo_url = repo.url

        if repo.url == session.root_repo_url:
            o = self.options
            wc = self.downloader.get(repo, o.branch, o.tag, o.revision)
        else:
            wc = self.downloader.get(repo)

        logger.info(f"fetching {path}")
        dep = Dependency(
            importpath=path,
            repository=repo.url,
            vcs=repo.vcs,
            revision=wc.revision(),
            branch=wc.branch(),
            path=extra,
            no_tests=not self.options.tests,
            all_files=self.options.all_files,
        )

        # Subpackages are superseded only once the checkout is in hand
        superseded = manifest.get_subpackages(path)
        for sub in superseded:
            manifest.remove_dependency(sub)
        try:
            self._add(manifest, dep)
        except ManifestConsistencyError:
            for sub in superseded:
                manifest.add_dependency(sub)
            raise

        removed = []
        try:
            for sub in superseded:
                if not session.fetched_here(sub.importpath):
                    logger.warning(f"removing {sub.importpath}, superseded by {path}")
                self._remove_vendored(sub)
                removed.append(sub)
            remove_tree(self.workspace.vendor_path(dep.importpath))
            self._stage(dep, wc.dir)
        except Exception:
            manifest.remove_dependency(dep)
            for sub in superseded:
                if sub not in removed:
                    manifest.add_dependency(sub)
            if removed:
                # Their files are gone, so their entries must go too
                write_manifest(self.workspace.manifest_file, manifest)
            raise
        write_manifest(self.workspace.manifest_file, manifest)

        session.visited.append(path)
        session.fetched.append(dep)

        if self.options.recurse:
            self._recurse(dep, wc.dir, session, level)

    def _recurse(self, dep: Dependency, wc_dir, session: FetchSession, level: int) -> None:
        if dep.path and not dep.importpath.endswith(dep.path):
            raise DerivationError(dep.importpath, dep.path)
        prefix = dep.importpath[:len(dep.importpath) - len(dep.path)].rstrip('/')

        imports = scan_imports(
            wc_dir / dep.path if dep.path else wc_dir,
            wc_dir,
            prefix,
            tests=not dep.no_tests,
            all_files=dep.all_files,
        )

        for pkg in sorted(i for i in imports if self.is_remote(i)):
            try:
                self._fetch(pkg, session, level + 1)
            except DependencyFetchError:
                raise
            except Exception as e:
                raise DependencyFetchError(pkg, e) from e

    def _stage(self, dep: Dependency, wc_dir) -> None:
        stage_package(self.workspace.vendor_path(dep.importpath), wc_dir, dep.path,
                      tests=not dep.no_tests, all_files=dep.all_files)

    def _remove_vendored(self, dep: Dependency) -> None:
        dst = self.workspace.vendor_path(dep.importpath)
        remove_tree(dst)
        prune_empty_parents(dst.parent, self.workspace.vendor_dir)

    @staticmethod
    def _add(manifest: Manifest, dep: Dependency) -> None:
        try:
            manifest.add_dependency(dep)
        except DependencyConflictError as e:
            raise ManifestConsistencyError(f"cannot record {dep.importpath}: {e}") from e
