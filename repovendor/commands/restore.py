"""
Restore command for repovendor.

Rebuilds the vendor tree from the manifest, fetching every dependency at its
recorded revision.
"""

import click

from ..cli_utils import standard_command, add_common_options, command_context
from ..services.downloader import Downloader
from ..services.restore_service import RestoreService


@click.command('restore')
@click.option('--connections', type=int, default=None,
              help='Number of concurrent downloads (default: restore.connections, 8)')
@add_common_options('precaire', 'verbose', 'quiet')
@click.pass_context
@standard_command()
def restore_handler(ctx, connections, insecure, verbose, quiet, progress=None):
    """
    Restore dependencies from the manifest.

    The manifest is not modified. Dependencies that carry their own
    vendor/manifest are restored recursively.
    """
    config, workspace = command_context(ctx)
    section = config.get('restore', {})
    if connections is None:
        connections = int(section.get('connections', 8))
    insecure = insecure or bool(config.get('fetch', {}).get('insecure'))

    with Downloader() as downloader:
        service = RestoreService(downloader, connections=connections, insecure=insecure)
        with progress.task("Restoring dependencies"):
            result = service.restore(workspace.manifest_file, workspace.vendor_dir)

    progress.success(f"Restored {result.succeeded} package(s)")
    return {'succeeded': result.succeeded, 'failed': result.failed}
