"""
Update command for repovendor.

Moves vendored dependencies to the latest revision of their recorded branch.
"""

import click

from ..cli_utils import standard_command, add_common_options, command_context
from ..services.downloader import Downloader
from ..services.fetch_service import FetchService, FetchOptions
from .fetch import remote_predicate


@click.command('update')
@click.argument('importpath', required=False)
@click.option('--all', 'all_deps', is_flag=True, help='Update all dependencies')
@add_common_options('no_recurse', 'precaire', 'verbose', 'quiet')
@click.pass_context
@standard_command()
def update_handler(ctx, importpath, all_deps, no_recurse, insecure, verbose, quiet, progress=None):
    """
    Replace a vendored dependency with the tip of its branch.

    Frozen dependencies (see freeze) are skipped. New imports introduced by
    the update are fetched unless --no-recurse is given.
    """
    config, workspace = command_context(ctx)
    options = FetchOptions(
        recurse=not no_recurse,
        insecure=insecure or bool(config.get('fetch', {}).get('insecure')),
    )
    paths = [importpath] if importpath else []

    with Downloader() as downloader:
        service = FetchService(workspace, downloader, options, remote_predicate(config))
        deps = service.update(paths, all_deps=all_deps)

    progress.success(f"Updated {len(deps)} package(s)")
    return [dep.to_dict() for dep in deps]
