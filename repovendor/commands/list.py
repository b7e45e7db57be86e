"""
List command for repovendor.

Prints the vendored dependencies with a format template, as JSONL or as a
rich table.
"""

import click

from ..cli_utils import standard_command, add_common_options, command_context
from ..exit_codes import UserInputError
from ..infra.manifest_store import read_manifest
from ..render import format_dependency, render_dependency_table
from ..services.vendor_service import VendorService

DEFAULT_FORMAT = "{importpath}\t{location}\t{branch}\t{revision}"


def _unescape(template: str) -> str:
    return template.replace('\\t', '\t').replace('\\n', '\n')


@click.command('list')
@click.option('-f', '--format', 'template', default=DEFAULT_FORMAT, show_default=False,
              help='Format template, e.g. "{importpath} {revision}"')
@click.option('--orphan', is_flag=True, help='Only list dependencies nothing imports')
@click.option('--pretty', is_flag=True, help='Display as a formatted table')
@click.option('--json', 'output_json', is_flag=True, help='Output as JSONL')
@add_common_options('verbose', 'quiet')
@click.pass_context
@standard_command()
def list_handler(ctx, template, orphan, pretty, output_json, verbose, quiet, progress=None):
    """
    List vendored dependencies.

    Template fields: importpath, repository, location, vcs, revision,
    branch, path, notests, allfiles.
    """
    _, workspace = command_context(ctx)
    if orphan:
        deps = VendorService(workspace).orphans()
    else:
        deps = list(read_manifest(workspace.manifest_file))

    if output_json:
        return [dep.to_dict() for dep in deps]

    if pretty:
        render_dependency_table(deps, title="Orphaned dependencies" if orphan else None)
        return None

    template = _unescape(template)
    for dep in deps:
        try:
            line = format_dependency(template, dep)
        except (KeyError, IndexError, ValueError) as e:
            raise UserInputError(f"unable to execute template {template!r}: {e}") from e
        click.echo(line)
    return None
