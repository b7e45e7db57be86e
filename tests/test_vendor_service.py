"""
Tests for delete, purge, freeze and orphan detection.
"""

import pytest

from repovendor.domain import Dependency, Manifest, FROZEN_BRANCH
from repovendor.exit_codes import DependencyNotFoundError, UserInputError
from repovendor.infra.manifest_store import read_manifest, write_manifest
from repovendor.services.vendor_service import VendorService


def vendor(workspace, *importpaths):
    """Record and stage one Go file per import path."""
    deps = []
    for path in importpaths:
        deps.append(Dependency(importpath=path, repository=f"https://{path}",
                               revision='r1', branch='master', vcs='git'))
        target = workspace.vendor_path(path)
        target.mkdir(parents=True, exist_ok=True)
        (target / 'x.go').write_text('package x\n')
    write_manifest(workspace.manifest_file, Manifest(deps))


def source(workspace, rel, *imports):
    path = workspace.root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    body = "".join(f'import "{i}"\n' for i in imports)
    path.write_text(f"package p\n\n{body}")


def paths(workspace):
    return [d.importpath for d in read_manifest(workspace.manifest_file)]


class TestDelete:
    """Tests for VendorService.delete."""

    def test_delete_one(self, workspace):
        vendor(workspace, 'github.com/a/a', 'github.com/b/b')

        deleted = VendorService(workspace).delete('github.com/a/a/')

        assert [d.importpath for d in deleted] == ['github.com/a/a']
        assert paths(workspace) == ['github.com/b/b']
        assert not (workspace.vendor_dir / 'github.com' / 'a').exists()
        assert (workspace.vendor_dir / 'github.com' / 'b' / 'b' / 'x.go').exists()

    def test_delete_all(self, workspace):
        vendor(workspace, 'github.com/a/a', 'github.com/b/b', 'golang.org/x/net/context')

        deleted = VendorService(workspace).delete(all_deps=True)

        assert len(deleted) == 3
        assert paths(workspace) == []
        assert [p.name for p in workspace.vendor_dir.iterdir()] == ['manifest']

    def test_delete_recursive(self, workspace):
        vendor(workspace, 'github.com/a/a/one', 'github.com/a/a/two', 'github.com/a/ab')

        deleted = VendorService(workspace).delete('github.com/a/a', recurse=True)

        assert sorted(d.importpath for d in deleted) == ['github.com/a/a/one', 'github.com/a/a/two']
        assert paths(workspace) == ['github.com/a/ab']

    def test_delete_recursive_without_match(self, workspace):
        vendor(workspace, 'github.com/a/a')
        with pytest.raises(DependencyNotFoundError):
            VendorService(workspace).delete('github.com/z/z', recurse=True)

    def test_refuses_subpackage_of_vendored_parent(self, workspace):
        vendor(workspace, 'github.com/a/a')
        with pytest.raises(UserInputError, match="remove that instead: github.com/a/a"):
            VendorService(workspace).delete('github.com/a/a/sub')
        assert paths(workspace) == ['github.com/a/a']

    def test_unknown_path(self, workspace):
        vendor(workspace, 'github.com/a/a')
        with pytest.raises(DependencyNotFoundError):
            VendorService(workspace).delete('github.com/b/b')

    def test_path_and_all_are_exclusive(self, workspace):
        vendor(workspace, 'github.com/a/a')
        service = VendorService(workspace)
        with pytest.raises(UserInputError):
            service.delete('github.com/a/a', all_deps=True)
        with pytest.raises(UserInputError):
            service.delete()


class TestPurgeAndOrphans:
    """Tests for VendorService.purge and orphans."""

    def test_orphans(self, workspace):
        vendor(workspace, 'github.com/a/a', 'github.com/b/b', 'github.com/c/c')
        source(workspace, 'main.go', 'github.com/a/a/sub', 'fmt')
        # Imports from inside the vendor tree count too
        (workspace.vendor_path('github.com/a/a') / 'x.go').write_text(
            'package x\n\nimport "github.com/b/b"\n')

        orphans = VendorService(workspace).orphans()

        assert [d.importpath for d in orphans] == ['github.com/c/c']

    def test_prefix_match_is_segment_wise(self, workspace):
        vendor(workspace, 'github.com/a/a')
        source(workspace, 'main.go', 'github.com/a/ab')

        assert [d.importpath for d in VendorService(workspace).orphans()] == ['github.com/a/a']

    def test_test_files_count_as_importers(self, workspace):
        vendor(workspace, 'github.com/a/a')
        source(workspace, 'main_test.go', 'github.com/a/a')

        assert VendorService(workspace).orphans() == []

    def test_purge_removes_orphans(self, workspace):
        vendor(workspace, 'github.com/a/a', 'github.com/c/c')
        source(workspace, 'cmd/tool/main.go', 'github.com/a/a')

        removed = VendorService(workspace).purge()

        assert [d.importpath for d in removed] == ['github.com/c/c']
        assert paths(workspace) == ['github.com/a/a']
        assert not (workspace.vendor_dir / 'github.com' / 'c').exists()

    def test_self_imports_do_not_keep_a_dependency(self, workspace):
        vendor(workspace, 'github.com/l/lib', 'github.com/b/b')
        lib = workspace.vendor_path('github.com/l/lib')
        (lib / 'lib.go').write_text('package lib\n\nimport "github.com/l/lib/inner"\n')
        (lib / 'inner').mkdir()
        (lib / 'inner' / 'inner.go').write_text('package inner\n')
        # One dependency importing another still counts
        (workspace.vendor_path('github.com/b/b') / 'b.go').write_text(
            'package b\n\nimport "github.com/l/lib"\n')
        source(workspace, 'main.go', 'fmt')

        removed = VendorService(workspace).purge()

        assert [d.importpath for d in removed] == ['github.com/b/b']
        assert paths(workspace) == ['github.com/l/lib']


class TestFreeze:
    """Tests for VendorService.freeze."""

    def test_freeze_one(self, workspace):
        vendor(workspace, 'github.com/a/a', 'github.com/b/b')

        frozen = VendorService(workspace).freeze('github.com/a/a')

        assert [d.branch for d in frozen] == [FROZEN_BRANCH]
        manifest = read_manifest(workspace.manifest_file)
        a = manifest.get_dependency_for_importpath('github.com/a/a')
        assert a.branch == FROZEN_BRANCH
        assert a.revision == 'r1'
        assert a.vcs == 'git'
        assert manifest.get_dependency_for_importpath('github.com/b/b').branch == 'master'

    def test_freeze_all(self, workspace):
        vendor(workspace, 'github.com/a/a', 'github.com/b/b')

        VendorService(workspace).freeze(all_deps=True)

        assert all(d.is_frozen for d in read_manifest(workspace.manifest_file))

    def test_freeze_requires_exact_match(self, workspace):
        vendor(workspace, 'github.com/a/a')
        with pytest.raises(DependencyNotFoundError):
            VendorService(workspace).freeze('github.com/a/a/sub')
