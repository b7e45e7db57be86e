"""
Common CLI utilities and decorators for consistent command behavior.
"""

import json
import sys
import click
from functools import wraps
from typing import Any, Generator
from .progress import get_progress
from .exit_codes import (
    SUCCESS, INTERRUPTED,
    get_exit_code_for_exception, CommandError
)


def standard_command(streaming: bool = False):
    """
    Decorator that provides standard CLI behavior:
    - Progress reporting on stderr
    - Clean JSONL output on stdout
    - Consistent error handling and exit codes

    Args:
        streaming: If True, output JSONL as items are produced.
                  If False, collect results and output at end.
    """
    def decorator(func):

        @wraps(func)
        def wrapper(*args, **kwargs):
            verbose = kwargs.get('verbose', False)
            quiet = kwargs.get('quiet', False)

            # Initialize progress reporter
            progress = get_progress(enabled=verbose or None)

            # Inject progress into kwargs
            kwargs['progress'] = progress

            try:
                result = func(*args, **kwargs)

                if quiet:
                    # In quiet mode, consume the generator but don't output
                    if isinstance(result, Generator):
                        for _ in result:
                            pass
                elif result is None:
                    # Command handles its own output
                    pass
                elif isinstance(result, Generator) and streaming:
                    for item in result:
                        print(json.dumps(item, ensure_ascii=False), flush=True)
                else:
                    output_result(list(result) if isinstance(result, Generator) else result)

                sys.exit(SUCCESS)

            except KeyboardInterrupt:
                progress.error("Interrupted by user")
                sys.exit(INTERRUPTED)
            except click.ClickException:
                # Click exceptions already have their exit code
                raise
            except CommandError as e:
                # Our custom command errors with specific exit codes
                progress.error(str(e))
                if not quiet:
                    error_obj = {
                        "error": str(e),
                        "type": type(e).__name__,
                        "exit_code": e.exit_code
                    }
                    import_path = getattr(e, 'import_path', None)
                    if import_path:
                        error_obj['import_path'] = import_path
                    # Add extra fields for PartialSuccessError
                    if hasattr(e, 'succeeded'):
                        error_obj['succeeded'] = e.succeeded
                        error_obj['failed'] = e.failed
                    print(json.dumps(error_obj, ensure_ascii=False), flush=True)
                sys.exit(e.exit_code)
            except Exception as e:
                progress.error(f"Command failed: {e}")
                if not quiet:
                    error_obj = {
                        "error": str(e),
                        "type": type(e).__name__
                    }
                    print(json.dumps(error_obj, ensure_ascii=False), flush=True)
                sys.exit(get_exit_code_for_exception(e))

        return wrapper
    return decorator


def output_result(result: Any):
    """
    Print a result as JSON lines.

    Args:
        result: A dict, or a list/tuple/generator of dicts
    """
    if isinstance(result, dict):
        print(json.dumps(result, ensure_ascii=False), flush=True)
    else:
        for item in result:
            print(json.dumps(item, ensure_ascii=False), flush=True)


# Standard options that many commands share
common_options = {
    'verbose': click.option('-v', '--verbose', is_flag=True,
                           help='Force progress output even when piped'),
    'quiet': click.option('-q', '--quiet', is_flag=True,
                         help='Suppress data output, show only progress'),
    'precaire': click.option('--precaire', 'insecure', is_flag=True,
                            help='Allow the use of insecure protocols'),
    'no_recurse': click.option('--no-recurse', is_flag=True,
                              help='Do not fetch dependencies recursively'),
}


def add_common_options(*option_names):
    """
    Decorator to add common options to a command.

    Example:
        @add_common_options('verbose', 'precaire')
        def my_command(verbose, insecure):
            ...
    """
    def decorator(func):
        for name in reversed(option_names):
            if name in common_options:
                func = common_options[name](func)
        return func
    return decorator


def command_context(ctx: click.Context):
    """
    Load the configuration and workspace for a command.

    Loading happens inside the command so that configuration errors are
    reported like any other command error.

    Returns:
        Tuple of (config dict, Workspace)
    """
    from .config import configure_logging, load_config
    from .workspace import Workspace

    obj = ctx.obj or {}
    config = load_config(obj.get('config_path'))
    configure_logging(config, debug=obj.get('debug', False))
    return config, Workspace.discover(config=config)
