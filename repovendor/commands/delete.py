"""
Delete command for repovendor.
"""

import click

from ..cli_utils import standard_command, add_common_options, command_context
from ..services.vendor_service import VendorService


@click.command('delete')
@click.argument('importpath', required=False)
@click.option('--all', 'all_deps', is_flag=True, help='Remove all dependencies')
@click.option('--recurse', '-r', is_flag=True, help='Remove all subpackages of the import path')
@add_common_options('verbose', 'quiet')
@click.pass_context
@standard_command()
def delete_handler(ctx, importpath, all_deps, recurse, verbose, quiet, progress=None):
    """
    Remove a dependency from the vendor tree and the manifest.
    """
    _, workspace = command_context(ctx)
    deps = VendorService(workspace).delete(importpath, all_deps=all_deps, recurse=recurse)
    progress.success(f"Deleted {len(deps)} package(s)")
    return [dep.to_dict() for dep in deps]
