"""
Freeze command for repovendor.
"""

import click

from ..cli_utils import standard_command, add_common_options, command_context
from ..services.vendor_service import VendorService


@click.command('freeze')
@click.argument('importpath', required=False)
@click.option('--all', 'all_deps', is_flag=True, help='Freeze all dependencies')
@add_common_options('verbose', 'quiet')
@click.pass_context
@standard_command()
def freeze_handler(ctx, importpath, all_deps, verbose, quiet, progress=None):
    """
    Pin dependencies to their current revision.

    A frozen dependency records HEAD as its branch and is skipped by update.
    """
    _, workspace = command_context(ctx)
    deps = VendorService(workspace).freeze(importpath, all_deps=all_deps)
    return [dep.to_dict() for dep in deps]
