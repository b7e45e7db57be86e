"""
repovendor - Vendor Go dependencies with a manifest.

repovendor copies remote Go packages into a project's vendor directory,
records their provenance in vendor/manifest, and can restore the vendor tree
from that record.

Quick Start:
    from repovendor import Downloader, FetchService, Workspace

    workspace = Workspace.discover()
    with Downloader() as downloader:
        deps = FetchService(workspace, downloader).fetch("github.com/pkg/errors")
    for dep in deps:
        print(dep.importpath, dep.revision)

Domain Objects:
    Dependency - One vendored package and its provenance
    Manifest - The set of vendored dependencies

Services:
    Downloader - Single-flight checkout cache for one invocation
    FetchService - Recursive fetch and update
    RestoreService - Parallel restore from the manifest
    VendorService - Delete, purge, freeze, orphans
"""

__version__ = "0.4.0"

# Domain objects
from .domain import Dependency, Manifest

# Infrastructure
from .infra import read_manifest, write_manifest, deduce_remote_repo

# Services
from .services import (
    Downloader,
    FetchService,
    FetchOptions,
    RestoreService,
    VendorService,
)

from .workspace import Workspace

# Configuration
from .config import load_config

__all__ = [
    # Version
    "__version__",
    # Domain objects
    "Dependency",
    "Manifest",
    # Infrastructure
    "read_manifest",
    "write_manifest",
    "deduce_remote_repo",
    # Services
    "Downloader",
    "FetchService",
    "FetchOptions",
    "RestoreService",
    "VendorService",
    "Workspace",
    # Configuration
    "load_config",
]
