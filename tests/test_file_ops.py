"""
Tests for staging files into the vendor tree.
"""

import os
import stat

import pytest
from unittest.mock import patch

from repovendor.exit_codes import FilesystemError
from repovendor.infra.file_ops import (
    copy_license,
    copy_tree,
    prune_empty_parents,
    remove_tree,
    should_skip,
    stage_package,
)


def write(root, rel, content="x"):
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


def listing(root):
    return sorted(
        str(p.relative_to(root)).replace(os.sep, '/')
        for p in root.rglob('*') if p.is_file() or p.is_symlink()
    )


class TestShouldSkip:
    """Tests for the inclusion rules."""

    @pytest.mark.parametrize('path,is_dir,tests,all_files,expected', [
        ('pkg/a.go', False, False, False, False),
        ('pkg/a.c', False, False, False, False),
        ('pkg/a.syso', False, False, False, False),
        ('pkg/README.md', False, False, False, True),
        ('pkg/a_test.go', False, False, False, True),
        ('pkg/a_test.go', False, True, False, False),
        ('pkg/testdata', True, False, False, True),
        ('pkg/testdata', True, True, False, False),
        ('pkg/testdata/input.txt', False, True, False, False),
        ('pkg/_testdata', True, True, False, False),
        ('pkg/_private', True, True, False, True),
        ('pkg/.hidden', True, False, False, True),
        ('pkg/.hidden.go', False, False, False, True),
        ('pkg/README.md', False, False, True, False),
        ('pkg/.travis.yml', False, False, True, False),
        ('pkg/.git', True, False, True, True),
        ('pkg/.git', False, False, True, False),
        ('pkg/.hg', True, False, True, True),
        ('pkg/.bzr', True, False, True, True),
    ])
    def test_rules(self, path, is_dir, tests, all_files, expected):
        assert should_skip(path, is_dir, tests, all_files) is expected


class TestCopyTree:
    """Tests for copy_tree."""

    def test_copies_only_package_files(self, tmp_path):
        src = tmp_path / 'src'
        write(src, 'a.go')
        write(src, 'a_test.go')
        write(src, 'README.md')
        write(src, 'sub/b.go')
        write(src, 'testdata/t.go')
        write(src, '.git/config')
        dst = tmp_path / 'dst'

        count = copy_tree(dst, src)

        assert count == 2
        assert listing(dst) == ['a.go', 'sub/b.go']

    def test_all_files(self, tmp_path):
        src = tmp_path / 'src'
        write(src, 'a.go')
        write(src, 'README.md')
        write(src, '.git/config')
        dst = tmp_path / 'dst'

        copy_tree(dst, src, all_files=True)

        assert listing(dst) == ['README.md', 'a.go']

    def test_symlinks_are_recreated(self, tmp_path):
        src = tmp_path / 'src'
        write(src, 'a.go')
        os.symlink('a.go', src / 'link.go')
        dst = tmp_path / 'dst'

        copy_tree(dst, src)

        assert (dst / 'link.go').is_symlink()
        assert os.readlink(dst / 'link.go') == 'a.go'

    def test_missing_source(self, tmp_path):
        with pytest.raises(FilesystemError):
            copy_tree(tmp_path / 'dst', tmp_path / 'missing')

    def test_failure_removes_partial_destination(self, tmp_path):
        src = tmp_path / 'src'
        write(src, 'a.go')
        write(src, 'b.go')
        dst = tmp_path / 'dst'
        calls = []

        def flaky_copy(source, target):
            calls.append(source)
            if len(calls) == 2:
                raise OSError("disk full")
            target.write_text("copied")

        with patch('repovendor.infra.file_ops.shutil.copyfile', side_effect=flaky_copy):
            with pytest.raises(FilesystemError, match="disk full"):
                copy_tree(dst, src)

        assert not dst.exists()


class TestCopyLicense:
    """Tests for copy_license."""

    def test_copies_known_licence_names(self, tmp_path):
        src = tmp_path / 'src'
        write(src, 'LICENSE')
        write(src, 'COPYING.txt')
        write(src, 'license.md')
        write(src, 'NOTICE')
        dst = tmp_path / 'dst'

        assert copy_license(dst, src) == 3
        assert listing(dst) == ['COPYING.txt', 'LICENSE', 'license.md']

    def test_no_licence(self, tmp_path):
        src = tmp_path / 'src'
        write(src, 'a.go')
        assert copy_license(tmp_path / 'dst', src) == 0
        assert not (tmp_path / 'dst').exists()


class TestStagePackage:
    """Tests for stage_package."""

    def test_stages_subpackage_with_root_licence(self, tmp_path):
        checkout = tmp_path / 'checkout'
        write(checkout, 'LICENSE')
        write(checkout, 'a.go')
        write(checkout, 'sub/s.go')
        dst = tmp_path / 'dst'

        stage_package(dst, checkout, 'sub')

        assert listing(dst) == ['LICENSE', 's.go']

    def test_licence_failure_removes_staged_files(self, tmp_path):
        checkout = tmp_path / 'checkout'
        write(checkout, 'LICENSE')
        write(checkout, 'a.go')
        dst = tmp_path / 'dst'

        with patch('repovendor.infra.file_ops.copy_license',
                   side_effect=FilesystemError("read-only")):
            with pytest.raises(FilesystemError):
                stage_package(dst, checkout)

        assert not dst.exists()


class TestRemoveTree:
    """Tests for remove_tree and prune_empty_parents."""

    def test_removes_read_only_entries(self, tmp_path):
        target = tmp_path / 'vendor' / 'pkg'
        f = write(target, 'sub/a.go')
        os.chmod(f, stat.S_IREAD)
        os.chmod(f.parent, stat.S_IREAD | stat.S_IEXEC)

        remove_tree(target)

        assert not target.exists()

    def test_missing_path_is_fine(self, tmp_path):
        remove_tree(tmp_path / 'nothing')

    def test_prune_empty_parents(self, tmp_path):
        vendor = tmp_path / 'vendor'
        (vendor / 'github.com' / 'a' / 'b').mkdir(parents=True)
        write(vendor, 'github.com/c/d/d.go')

        prune_empty_parents(vendor / 'github.com' / 'a' / 'b', vendor)

        assert not (vendor / 'github.com' / 'a').exists()
        assert (vendor / 'github.com' / 'c').exists()
        assert vendor.exists()
