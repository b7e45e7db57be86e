"""
Infrastructure layer for repovendor.

Contains abstractions for external systems:
- RemoteRepo / WorkingCopy: VCS checkouts (git, hg, bzr, svn)
- deduce_remote_repo: import path to repository resolution
- manifest_store: atomic JSON persistence of the manifest
- file_ops: staging package files into the vendor tree

These provide clean interfaces that can be replaced with fakes for testing.
"""

from .vcs import (
    RemoteRepo,
    WorkingCopy,
    GitRepo,
    HgRepo,
    BzrRepo,
    SvnRepo,
    new_remote_repo,
)
from .remote import deduce_remote_repo, strip_scheme, split_scheme
from .manifest_store import read_manifest, write_manifest, load_or_empty
from .file_ops import copy_tree, copy_license, remove_tree, should_skip, stage_package

__all__ = [
    'RemoteRepo',
    'WorkingCopy',
    'GitRepo',
    'HgRepo',
    'BzrRepo',
    'SvnRepo',
    'new_remote_repo',
    'deduce_remote_repo',
    'strip_scheme',
    'split_scheme',
    'read_manifest',
    'write_manifest',
    'load_or_empty',
    'copy_tree',
    'copy_license',
    'remove_tree',
    'should_skip',
    'stage_package',
]
