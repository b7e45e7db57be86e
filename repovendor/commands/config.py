import click
from repovendor.config import load_config
from repovendor.exit_codes import ConfigError
import json


@click.group("config")
def config_cmd():
    """Configuration management commands."""
    pass


@config_cmd.command("show")
@click.option("--pretty", is_flag=True, help="Display as formatted JSON instead of single-line JSONL")
@click.option("--path", is_flag=True, help="Show the config file path being used")
@click.pass_context
def show_config(ctx, pretty, path):
    """Show the current configuration with all merges applied.

    By default, outputs single-line JSON (JSONL format).
    Use --pretty for human-readable formatted output.
    Use --path to see which config file is being used.
    """
    from repovendor.config import get_config_path

    config_path = (ctx.obj or {}).get('config_path')
    if path:
        print(json.dumps({"config_path": str(config_path or get_config_path())}))
        return

    try:
        config = load_config(config_path)
    except ConfigError as e:
        raise click.ClickException(str(e))

    if pretty:
        print(json.dumps(config, indent=2, ensure_ascii=False))
    else:
        # Default: single-line JSON (JSONL)
        print(json.dumps(config, ensure_ascii=False))
