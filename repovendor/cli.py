#!/usr/bin/env python3

import copy

import click

from repovendor.commands.fetch import fetch_handler
from repovendor.commands.update import update_handler
from repovendor.commands.delete import delete_handler
from repovendor.commands.list import list_handler
from repovendor.commands.restore import restore_handler
from repovendor.commands.purge import purge_handler
from repovendor.commands.freeze import freeze_handler
from repovendor.commands.config import config_cmd


@click.group()
@click.version_option(package_name='repovendor')
@click.option('--config', 'config_path', type=click.Path(dir_okay=False),
              help='Configuration file (default: REPOVENDOR_CONFIG or ~/.repovendor/config.*)')
@click.option('--debug', is_flag=True, help='Enable debug logging')
@click.pass_context
def cli(ctx, config_path, debug):
    """repovendor - Vendor Go dependencies with a manifest.

    Copies the source of remote Go packages into ./vendor, records where
    each came from in vendor/manifest, and can rebuild the vendor tree from
    that record.
    """
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config_path
    ctx.obj['debug'] = debug


cli.add_command(fetch_handler, name='fetch')
cli.add_command(update_handler, name='update')
cli.add_command(delete_handler, name='delete')
cli.add_command(list_handler, name='list')
cli.add_command(restore_handler, name='restore')
cli.add_command(purge_handler, name='purge')
cli.add_command(freeze_handler, name='freeze')
cli.add_command(config_cmd)


def create_alias(original_cmd, name):
    """Create a hidden alias that runs the same callback."""
    alias = copy.deepcopy(original_cmd)
    alias.name = name
    alias.hidden = True
    return alias


# rebuild was the name of restore in older releases
cli.add_command(create_alias(restore_handler, 'rebuild'))


def main():
    cli()

if __name__ == "__main__":
    main()
