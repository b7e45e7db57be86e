"""
Vendor tree maintenance for repovendor.

Operations that edit the manifest without fetching anything: deleting
dependencies, purging the ones nothing imports, and freezing dependencies at
their current revision.
"""

import logging
from typing import Dict, List, Optional, Set

from ..domain import Dependency, Manifest, is_subpath
from ..exit_codes import DependencyNotFoundError, UserInputError
from ..infra.file_ops import prune_empty_parents, remove_tree
from ..infra.manifest_store import read_manifest, write_manifest
from ..workspace import Workspace
from .imports import scan_imports, unvendor

logger = logging.getLogger(__name__)


def _check_target(command: str, path: Optional[str], all_deps: bool) -> None:
    if not path and not all_deps:
        raise UserInputError(f"{command}: import path or --all flag is missing")
    if path and all_deps:
        raise UserInputError(f"{command}: you cannot specify path and --all flag at once")


class VendorService:
    """
    Manifest maintenance for one workspace.

    Example:
        service = VendorService(workspace)
        removed = service.purge()
    """

    def __init__(self, workspace: Workspace):
        self.workspace = workspace

    def delete(self, path: Optional[str] = None, all_deps: bool = False,
               recurse: bool = False) -> List[Dependency]:
        """
        Remove dependencies from the manifest and the vendor tree.

        Args:
            path: Import path to delete
            all_deps: Delete every dependency
            recurse: Delete every dependency at or below ``path``

        Returns:
            The deleted dependencies

        Raises:
            UserInputError: for a missing or conflicting target, or when a
                parent of ``path`` is what is actually vendored
            DependencyNotFoundError: if nothing matches
        """
        _check_target("delete", path, all_deps)
        manifest = read_manifest(self.workspace.manifest_file)

        if all_deps:
            targets = manifest.dependencies
        else:
            path = path.rstrip('/')
            if recurse:
                targets = manifest.get_subpackages(path)
                if not targets:
                    raise DependencyNotFoundError(f"{path}/...")
            else:
                covering = manifest.vendoring(path)
                if covering is not None and covering.importpath != path:
                    raise UserInputError(
                        "a parent of the specified dependency is vendored, "
                        f"remove that instead: {covering.importpath}"
                    )
                targets = [manifest.get_dependency_for_importpath(path)]

        for dep in targets:
            self._remove(manifest, dep)
        write_manifest(self.workspace.manifest_file, manifest)
        return targets

    def purge(self) -> List[Dependency]:
        """
        Remove every dependency that no source file in the project imports.

        Returns:
            The removed dependencies
        """
        manifest = read_manifest(self.workspace.manifest_file)
        imports = self.project_imports(manifest)

        removed = [d for d in manifest if not _referenced(d, imports)]
        for dep in removed:
            logger.info(f"purging {dep.importpath}")
            self._remove(manifest, dep)
        write_manifest(self.workspace.manifest_file, manifest)
        return removed

    def orphans(self) -> List[Dependency]:
        """Dependencies that no source file in the project imports."""
        manifest = read_manifest(self.workspace.manifest_file)
        imports = self.project_imports(manifest)
        return [d for d in manifest if not _referenced(d, imports)]

    def freeze(self, path: Optional[str] = None, all_deps: bool = False) -> List[Dependency]:
        """
        Pin dependencies to their current revision so update leaves them alone.

        Returns:
            The frozen dependencies
        """
        _check_target("freeze", path, all_deps)
        manifest = read_manifest(self.workspace.manifest_file)

        if all_deps:
            targets = manifest.dependencies
        else:
            targets = [manifest.get_dependency_for_importpath(path.rstrip('/'))]

        frozen = []
        for dep in targets:
            manifest.remove_dependency(dep)
            pinned = dep.frozen()
            manifest.add_dependency(pinned)
            frozen.append(pinned)
        write_manifest(self.workspace.manifest_file, manifest)
        return frozen

    def project_imports(self, manifest: Manifest) -> Dict[str, Set[str]]:
        """
        Every import of the project as bare import paths, keyed by who
        imports it: "" for the project itself, else the importing
        dependency. Test files and unmanaged vendor sources count.
        """
        root = self.workspace.root
        owned = {dep.importpath: self.workspace.vendor_path(dep.importpath) for dep in manifest}

        found = {"": scan_imports(root, root, "", tests=True, all_files=True,
                                  skip=owned.values())}
        for importpath, directory in owned.items():
            if directory.is_dir():
                found[importpath] = scan_imports(directory, root, "", tests=True, all_files=True)
        return {owner: {unvendor(i) for i in imports} for owner, imports in found.items()}

    def _remove(self, manifest: Manifest, dep: Dependency) -> None:
        manifest.remove_dependency(dep)
        dst = self.workspace.vendor_path(dep.importpath)
        remove_tree(dst)
        prune_empty_parents(dst.parent, self.workspace.vendor_dir)


def _referenced(dep: Dependency, imports: Dict[str, Set[str]]) -> bool:
    # A dependency importing its own packages does not keep itself alive
    return any(
        is_subpath(i, dep.importpath)
        for owner, paths in imports.items() if owner != dep.importpath
        for i in paths
    )
