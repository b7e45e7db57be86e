"""
Purge command for repovendor.
"""

import click

from ..cli_utils import standard_command, add_common_options, command_context
from ..services.vendor_service import VendorService


@click.command('purge')
@add_common_options('verbose', 'quiet')
@click.pass_context
@standard_command()
def purge_handler(ctx, verbose, quiet, progress=None):
    """
    Remove dependencies that no package of the project imports.

    Test files and everything under the vendor directory count as importers.
    """
    _, workspace = command_context(ctx)
    deps = VendorService(workspace).purge()
    progress.success(f"Purged {len(deps)} package(s)")
    return [dep.to_dict() for dep in deps]
