"""
File staging for repovendor.

Copies the files of a checked-out package into the vendor tree, applying the
Go package inclusion rules, and removes vendored trees again.
"""

import logging
import os
import shutil
import stat
from pathlib import Path
from typing import Union

from ..exit_codes import FilesystemError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

# https://golang.org/cmd/go/#hdr-File_types
SOURCE_EXTENSIONS = (
    ".go",
    ".c", ".h",
    ".cc", ".cpp", ".cxx", ".hh", ".hpp", ".hxx",
    ".m",
    ".s", ".S",
    ".swig", ".swigcxx",
    ".syso",
)

LICENSE_FILES = ("LICENSE", "LICENCE", "UNLICENSE", "COPYING", "COPYRIGHT")

VCS_METADATA = (".git", ".hg", ".bzr")


def should_skip(path: PathLike, is_dir: bool, tests: bool, all_files: bool) -> bool:
    """
    Decide whether a file or directory stays out of the vendor tree.

    Args:
        path: Path of the entry (only its name and parents matter)
        is_dir: Whether the entry is a directory
        tests: Include _test.go files and testdata directories
        all_files: Include everything except VCS metadata

    Returns:
        True if the entry must be skipped
    """
    path = Path(path)
    name = path.name

    if all_files:
        if name in (".bzr", ".hg") or (name == ".git" and is_dir):
            return True
        return False

    # Everything inside a testdata folder belongs to the tests
    in_testdata = any(part in ("testdata", "_testdata") for part in path.parent.parts)
    if tests and in_testdata:
        return False

    # https://golang.org/cmd/go/#hdr-Description_of_package_lists
    if name.startswith("."):
        return True
    if name.startswith("_") and name != "_testdata":
        return True

    if not tests:
        if is_dir and name in ("testdata", "_testdata"):
            return True
        if not is_dir and name.endswith("_test.go"):
            return True

    if not is_dir and not name.endswith(SOURCE_EXTENSIONS):
        return True

    return False


def copy_tree(dst: PathLike, src: PathLike, tests: bool = False, all_files: bool = False) -> int:
    """
    Copy the package at ``src`` into ``dst``.

    Symlinks are recreated rather than followed. If anything fails the
    partially written ``dst`` is removed before the error is raised.

    Returns:
        Number of files copied

    Raises:
        FilesystemError: if the source is missing or a copy fails
    """
    dst = Path(dst)
    src = Path(src)
    if not src.is_dir():
        raise FilesystemError(f"copy: source {src} is not a directory")

    copied = 0
    try:
        for dirpath, dirnames, filenames in os.walk(src):
            current = Path(dirpath)
            # Prune skipped directories in place so os.walk does not descend
            kept = []
            for dirname in sorted(dirnames):
                entry = current / dirname
                if entry.is_symlink():
                    filenames.append(dirname)
                elif not should_skip(entry, True, tests, all_files):
                    kept.append(dirname)
            dirnames[:] = kept

            for filename in sorted(filenames):
                entry = current / filename
                if should_skip(entry, False, tests, all_files):
                    continue
                target = dst / entry.relative_to(src)
                target.parent.mkdir(parents=True, exist_ok=True)
                if entry.is_symlink():
                    os.symlink(os.readlink(entry), target)
                else:
                    shutil.copyfile(entry, target)
                copied += 1
    except OSError as e:
        remove_tree(dst)
        raise FilesystemError(f"copy {src} -> {dst}: {e}") from e

    return copied


def copy_license(dst: PathLike, src: PathLike) -> int:
    """
    Copy licence files found directly in ``src`` into ``dst``.

    A file matches when its lower-cased name, without a .md or .txt
    suffix, is one of the known licence names.

    Returns:
        Number of licence files copied
    """
    dst = Path(dst)
    src = Path(src)
    candidates = {name.lower() for name in LICENSE_FILES}
    copied = 0
    try:
        for entry in sorted(src.iterdir()):
            if entry.is_dir():
                continue
            stem = entry.name.lower()
            for suffix in (".md", ".txt"):
                if stem.endswith(suffix):
                    stem = stem[:-len(suffix)]
                    break
            if stem in candidates:
                dst.mkdir(parents=True, exist_ok=True)
                shutil.copyfile(entry, dst / entry.name)
                copied += 1
    except OSError as e:
        raise FilesystemError(f"copy license {src} -> {dst}: {e}") from e
    return copied


def _make_writable(func, path, exc_info):
    """rmtree error hook: make the entry and its directory writable, retry once."""
    os.chmod(os.path.dirname(path), stat.S_IRWXU)
    os.chmod(path, stat.S_IRWXU)
    func(path)


def remove_tree(path: PathLike) -> None:
    """
    Remove ``path`` and everything below it.

    Read-only entries are made writable first. A missing path is not an error.

    Raises:
        FilesystemError: if the tree cannot be removed
    """
    path = Path(path)
    if not path.exists() and not path.is_symlink():
        return
    try:
        if path.is_symlink() or path.is_file():
            path.unlink()
        else:
            shutil.rmtree(path, onerror=_make_writable)
    except OSError as e:
        raise FilesystemError(f"remove {path}: {e}") from e


def prune_empty_parents(path: PathLike, stop: PathLike) -> None:
    """Remove empty directories from ``path`` upward, never removing ``stop``."""
    path = Path(path)
    stop = Path(stop)
    while path != stop and stop in path.parents:
        try:
            path.rmdir()
        except OSError:
            return
        path = path.parent


def stage_package(dst: PathLike, checkout: PathLike, subpath: str = "",
                  tests: bool = False, all_files: bool = False) -> None:
    """
    Stage the package at ``checkout/subpath`` into ``dst`` with the licence
    files of the checkout root.

    Nothing is left at ``dst`` if either step fails.
    """
    checkout = Path(checkout)
    src = checkout / subpath if subpath else checkout
    copy_tree(dst, src, tests=tests, all_files=all_files)
    try:
        copy_license(dst, checkout)
    except Exception:
        remove_tree(dst)
        raise
