"""
Rendering functions for repovendor output.

This module handles all pretty-printing and table formatting.
Services return data, this module makes it human-readable.
"""

from rich.table import Table
from rich.console import Console
from rich import box
from typing import List, Optional

from .domain import Dependency

console = Console()


def render_dependency_table(deps: List[Dependency], title: Optional[str] = None) -> None:
    """
    Render vendored dependencies as a pretty table.

    Frozen dependencies show their branch dimmed.
    """
    if not deps:
        console.print("[yellow]No dependencies vendored.[/yellow]")
        return

    table = Table(
        title=title,
        box=box.ROUNDED,
        show_header=True,
        header_style="bold magenta"
    )
    table.add_column("Import path", style="cyan")
    table.add_column("Repository")
    table.add_column("VCS")
    table.add_column("Branch")
    table.add_column("Revision", style="green")

    for dep in deps:
        branch = f"[dim]{dep.branch or '-'}[/dim]" if dep.is_frozen else dep.branch
        table.add_row(
            dep.importpath,
            dep.location,
            dep.vcs or "git",
            branch,
            dep.revision[:12],
        )

    console.print(table)


def format_dependency(template: str, dep: Dependency) -> str:
    """
    Expand a list template such as ``{importpath}\\t{revision}``.

    Available fields are the manifest keys plus ``location``.

    Raises:
        KeyError: for an unknown field
    """
    fields = dep.to_dict()
    fields.setdefault('vcs', '')
    fields.setdefault('path', '')
    fields.setdefault('notests', False)
    fields.setdefault('allfiles', False)
    fields['location'] = dep.location
    return template.format(**fields)
