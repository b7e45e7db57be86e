"""
Project workspace for repovendor.

A Workspace ties together the directories every command works on: the
project root, its vendor directory and manifest file, and the project's own
import path (used to refuse vendoring the project into itself).
"""

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from .config import load_config

logger = logging.getLogger(__name__)

_MODULE_RE = re.compile(r'^\s*module\s+"?([^"\s]+)"?\s*$', re.MULTILINE)


@dataclass
class Workspace:
    """Directories and identity of the project being vendored into."""
    root: Path
    vendor_dir: Path
    manifest_file: Path
    import_path: str = ""

    @classmethod
    def discover(cls, root: Optional[Path] = None,
                 config: Optional[Dict[str, Any]] = None) -> 'Workspace':
        """
        Build the workspace for ``root`` (default: the current directory).

        The project import path comes from general.import_path, else the
        module line of go.mod, else the location under a $GOPATH/src entry.
        When none applies it is left empty and the self-vendoring check is
        disabled.
        """
        config = config or load_config()
        general = config.get('general', {})
        root = Path(root or os.getcwd()).resolve()

        vendor_dir = root / general.get('vendor_directory', 'vendor')
        manifest_file = vendor_dir / general.get('manifest_file', 'manifest')

        import_path = (general.get('import_path') or '').strip('/')
        if not import_path:
            import_path = module_path(root) or gopath_import_path(root)
        if not import_path:
            logger.debug(f"could not determine the import path of {root}")

        return cls(root=root, vendor_dir=vendor_dir,
                   manifest_file=manifest_file, import_path=import_path)

    def vendor_path(self, import_path: str) -> Path:
        """Directory holding the vendored copy of ``import_path``."""
        return self.vendor_dir.joinpath(*import_path.split('/'))


def module_path(root: Path) -> str:
    """Module path declared in root/go.mod, or ''."""
    go_mod = root / 'go.mod'
    try:
        text = go_mod.read_text(encoding='utf-8')
    except OSError:
        return ''
    m = _MODULE_RE.search(text)
    return m.group(1) if m else ''


def gopath_import_path(root: Path) -> str:
    """Import path of root relative to a $GOPATH/src entry, or ''."""
    gopath = os.environ.get('GOPATH') or str(Path.home() / 'go')
    for entry in gopath.split(os.pathsep):
        if not entry:
            continue
        src = Path(entry).resolve() / 'src'
        try:
            relative = root.relative_to(src)
        except ValueError:
            continue
        if relative.parts:
            return relative.as_posix()
    return ''
