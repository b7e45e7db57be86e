"""
Manifest file store for repovendor.

Provides JSON persistence of the manifest with:
- Atomic writes (write to temp, then rename)
- Deterministic, human-diffable formatting
- Validation on load
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Union
import logging

from ..domain import Dependency, Manifest, MANIFEST_VERSION
from ..exit_codes import (
    DependencyConflictError,
    ManifestCorruptError,
    ManifestNotFoundError,
)

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def encode_manifest(manifest: Manifest) -> str:
    """
    Serialize a manifest.

    Dependencies are sorted by import path and indented with tabs, so
    re-encoding an unchanged manifest produces identical bytes.
    """
    data: Dict[str, Any] = {
        'version': manifest.version,
        'dependencies': [d.to_dict() for d in manifest.sorted_dependencies()],
    }
    return json.dumps(data, indent='\t', ensure_ascii=False) + '\n'


def decode_manifest(text: str, source: str = "<manifest>") -> Manifest:
    """
    Parse manifest text.

    Raises:
        ManifestCorruptError: on invalid JSON, wrong shape, unknown version
            or entries that overlap each other.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ManifestCorruptError(source, str(e)) from e

    if not isinstance(data, dict):
        raise ManifestCorruptError(source, "top level is not an object")

    version = data.get('version', MANIFEST_VERSION)
    if version != MANIFEST_VERSION:
        raise ManifestCorruptError(source, f"unsupported version {version!r}")

    entries = data.get('dependencies') or []
    if not isinstance(entries, list):
        raise ManifestCorruptError(source, "dependencies is not a list")

    manifest = Manifest(version=version)
    for i, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise ManifestCorruptError(source, f"dependency #{i} is not an object")
        try:
            dep = Dependency.from_dict(entry)
        except (KeyError, TypeError) as e:
            raise ManifestCorruptError(source, f"dependency #{i}: {e}") from e
        try:
            manifest.add_dependency(dep)
        except DependencyConflictError as e:
            raise ManifestCorruptError(source, str(e)) from e
    return manifest


def read_manifest(path: PathLike) -> Manifest:
    """
    Read the manifest at ``path``.

    Raises:
        ManifestNotFoundError: if the file does not exist
        ManifestCorruptError: if the content is malformed
    """
    path = Path(path)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            text = f.read()
    except FileNotFoundError as e:
        raise ManifestNotFoundError(str(path)) from e
    return decode_manifest(text, str(path))


def load_or_empty(path: PathLike) -> Manifest:
    """Read the manifest, treating a missing file as an empty manifest."""
    try:
        return read_manifest(path)
    except ManifestNotFoundError:
        logger.debug(f"No manifest at {path}, starting from an empty one")
        return Manifest()


def write_manifest(path: PathLike, manifest: Manifest) -> None:
    """
    Write the manifest atomically.

    The content goes to a temp file in the same directory which then replaces
    the target, so a crash leaves either the old or the new file.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    content = encode_manifest(manifest)

    fd, temp_path = tempfile.mkstemp(
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp"
    )

    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())

        # Atomic rename
        os.replace(temp_path, path)

    except Exception:
        # Clean up temp file on error
        try:
            os.unlink(temp_path)
        except OSError:
            pass
        raise
