"""
Service layer for repovendor.

Contains the logic that orchestrates domain objects and infrastructure:
- Downloader: Single-flight cache of checkouts for one invocation
- FetchService: Depth-first fetch and update of dependencies
- RestoreService: Parallel rebuild of the vendor tree from the manifest
- VendorService: Delete, purge, freeze and orphan detection

Services are the primary API for commands to use.
"""

from .downloader import Downloader
from .fetch_service import FetchService, FetchOptions, FetchSession
from .restore_service import RestoreService, RestoreResult
from .vendor_service import VendorService

__all__ = [
    'Downloader',
    'FetchService',
    'FetchOptions',
    'FetchSession',
    'RestoreService',
    'RestoreResult',
    'VendorService',
]
