"""
Fetch command for repovendor.

Vendors a remote import path and, recursively, the remote packages it imports.
"""

import click

from ..cli_utils import standard_command, add_common_options, command_context
from ..services.downloader import Downloader
from ..services.fetch_service import FetchService, FetchOptions
from ..services.imports import is_remote_import, is_remote_import_strict


def remote_predicate(config):
    """Import filter selected by fetch.strict_remote_heuristic."""
    if config.get('fetch', {}).get('strict_remote_heuristic'):
        return is_remote_import_strict
    return is_remote_import


@click.command('fetch')
@click.argument('importpath')
@click.option('--branch', default='', help='Fetch from the named branch (also used by update)')
@click.option('--tag', default='', help='Fetch the specified tag')
@click.option('--revision', default='', help='Fetch a specific revision')
@click.option('-t', '--tests', is_flag=True, help='Also fetch _test.go files and testdata')
@click.option('-a', '--all-files', is_flag=True, help='Fetch all files, ignoring only .git, .hg and .bzr')
@add_common_options('no_recurse', 'precaire', 'verbose', 'quiet')
@click.pass_context
@standard_command()
def fetch_handler(ctx, importpath, branch, tag, revision, tests, all_files,
                  no_recurse, insecure, verbose, quiet, progress=None):
    """
    Vendor an upstream import path.

    The import path may include a URL scheme, which is useful for private
    repositories that cannot be probed.

    Examples:

        repovendor fetch github.com/pkg/errors

        repovendor fetch --tag v1.2.0 --no-recurse github.com/pkg/errors
    """
    config, workspace = command_context(ctx)
    defaults = config.get('fetch', {})
    options = FetchOptions(
        branch=branch,
        tag=tag,
        revision=revision,
        recurse=not no_recurse,
        insecure=insecure or bool(defaults.get('insecure')),
        tests=tests or bool(defaults.get('include_tests')),
        all_files=all_files or bool(defaults.get('include_all')),
    )

    with Downloader() as downloader:
        service = FetchService(workspace, downloader, options, remote_predicate(config))
        deps = service.fetch(importpath)

    progress.success(f"Fetched {len(deps)} package(s)")
    return [dep.to_dict() for dep in deps]
