"""
Import scanning for repovendor.

Reads the import declarations of Go source files and resolves each import the
way the go tool would inside a tree with nested vendor directories: an import
satisfied by the nearest enclosing ``vendor/<import>`` package is rewritten to
that vendored location.
"""

import logging
import os
import posixpath
import re
from pathlib import Path
from typing import Iterable, List, Set, Union

from ..exit_codes import ImportScanError
from ..infra.file_ops import should_skip

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

# String literals are kept, comments are blanked out.
_COMMENTS_RE = re.compile(
    r'("(?:\\.|[^"\\\n])*"|`[^`]*`|\'(?:\\.|[^\'\\\n])*\')|//[^\n]*|/\*.*?\*/',
    re.DOTALL,
)
_PACKAGE_RE = re.compile(r'\s*package\s+[A-Za-z_]\w*\s*;?')
_IMPORT_RE = re.compile(
    r'\s*import\s*(?:\((?P<group>[^)]*)\)|(?P<spec>(?:[A-Za-z_.]\w*\s+)?(?:"[^"\n]*"|`[^`]*`)))\s*;?'
)
_SPEC_RE = re.compile(r'(?:[A-Za-z_.]\w*\s+)?(?:"(?P<dq>[^"\n]*)"|`(?P<bq>[^`]*)`)')


def _strip_comments(source: str) -> str:
    def repl(m):
        if m.group(1):
            return m.group(1)
        # Keep newlines so semicolon insertion boundaries survive
        return '\n' if '\n' in m.group(0) else ' '
    return _COMMENTS_RE.sub(repl, source)


def parse_go_imports(source: str, filename: str = "<source>") -> List[str]:
    """
    Return the import paths declared by a Go source file.

    Only the package clause and the import declarations that follow it are
    read; the rest of the file is ignored.

    Raises:
        ImportScanError: if the file has no package clause
    """
    text = _strip_comments(source)
    m = _PACKAGE_RE.match(text)
    if not m:
        raise ImportScanError(f"{filename}: expected 'package' clause")

    imports: List[str] = []
    pos = m.end()
    while True:
        m = _IMPORT_RE.match(text, pos)
        if not m:
            break
        block = m.group('group') if m.group('group') is not None else m.group('spec')
        for spec in _SPEC_RE.finditer(block):
            path = spec.group('dq') if spec.group('dq') is not None else spec.group('bq')
            imports.append(path)
        pos = m.end()
    return imports


def find_vendor(root: PathLike, start: PathLike, import_path: str) -> str:
    """
    Look for ``import_path`` in a vendor folder at start/vendor or above,
    stopping at root.

    A candidate counts only if it directly holds at least one .go file.

    Returns:
        Path of the vendored package relative to root, with forward slashes,
        or '' if no vendor folder provides it

    Raises:
        ImportScanError: if start is not root or inside it
    """
    root = Path(root)
    start = Path(start)
    try:
        levels = list(start.relative_to(root).parts)
    except ValueError as e:
        raise ImportScanError(f"{start} is not inside {root}") from e

    while True:
        candidate = root.joinpath(*levels, "vendor", *import_path.split("/"))
        if candidate.is_dir():
            for entry in candidate.iterdir():
                if entry.suffix == ".go" and not entry.is_dir():
                    return candidate.relative_to(root).as_posix()
        if not levels:
            return ""
        levels.pop()


def scan_imports(root: PathLike, vendor_root: PathLike, vendor_prefix: str,
                 tests: bool = False, all_files: bool = False,
                 skip: Iterable[PathLike] = ()) -> Set[str]:
    """
    Collect the imports of every Go file under ``root``.

    Args:
        root: Directory to walk
        vendor_root: How far up to look for vendor folders, usually the
            repository root; ``root`` must be inside it
        vendor_prefix: Import path of vendor_root
        tests: Include _test.go files and testdata
        all_files: Apply the all-files staging policy when walking
        skip: Directories left out of the walk

    Returns:
        Set of resolved import paths
    """
    root = Path(root)
    vendor_root = Path(vendor_root)
    skipped = {Path(p) for p in skip}
    found: Set[str] = set()

    for dirpath, dirnames, filenames in os.walk(root):
        current = Path(dirpath)
        dirnames[:] = sorted(
            d for d in dirnames
            if not should_skip(current / d, True, tests, all_files)
            and current / d not in skipped
        )
        for filename in sorted(filenames):
            entry = current / filename
            if should_skip(entry, False, tests, all_files) or entry.suffix != ".go":
                continue
            try:
                source = entry.read_text(encoding="utf-8", errors="replace")
            except OSError as e:
                raise ImportScanError(f"{entry}: {e}") from e

            for pkg in parse_go_imports(source, str(entry)):
                if pkg.startswith(("./", "../")):
                    middle = os.path.relpath(current, vendor_root).replace(os.sep, "/")
                    pkg = posixpath.normpath(posixpath.join(vendor_prefix, middle, pkg))
                vendored = find_vendor(vendor_root, current, pkg)
                if vendored:
                    pkg = posixpath.join(vendor_prefix, vendored)
                found.add(pkg)

    logger.debug(f"Found {len(found)} imports under {root}")
    return found


def is_remote_import(path: str) -> bool:
    """
    Guess whether an import path needs fetching.

    Anything containing a dot is treated as remote. Known to be imprecise:
    standard library paths never contain dots, but local non-standard paths
    may not either.
    """
    return "." in path


def is_remote_import_strict(path: str) -> bool:
    """Stricter guess: the first path segment must look like a host name."""
    return "." in path.split("/", 1)[0]


def unvendor(path: str) -> str:
    """Map a vendor-qualified import path back to the bare import path."""
    if path.startswith("vendor/"):
        return path[len("vendor/"):]
    index = path.rfind("/vendor/")
    if index != -1:
        return path[index + len("/vendor/"):]
    return path
