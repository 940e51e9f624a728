"""routemark CLI - Main Entry Point.

Commands:
    routes  - Print the aggregated route table of one or more targets
    serve   - Serve a router with uvicorn
"""

import json
import sys

import click

from . import __cli_name__
from .loading import import_target, load_table
from .. import __version__
from ..aggregate import RouteTable
from ..config import ConfigLoader, configure_logging, set_config
from ..faults import Fault


@click.group()
@click.version_option(version=__version__, prog_name=__cli_name__)
@click.option('--config', 'config_path', type=click.Path(dir_okay=False), help='YAML/JSON config file')
@click.option('--env-file', type=click.Path(dir_okay=False), help='.env file with RM_* settings')
@click.option('--verbose', '-v', is_flag=True, help='Verbose output')
@click.pass_context
def cli(ctx, config_path, env_file, verbose: bool):
    """Declarative routing metadata for class-based controllers."""
    config = ConfigLoader.load(path=config_path, env_file=env_file).build()
    set_config(config)
    configure_logging("DEBUG" if verbose else config.log_level)
    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose


@cli.command('routes')
@click.argument('targets', nargs=-1, required=True)
@click.option('--json', 'as_json', is_flag=True, help='Print the table as JSON')
@click.pass_context
def routes(ctx, targets, as_json: bool):
    """
    Print the route table built from TARGETS, in order.

    \b
    Examples:
      routemark routes myapp.controllers
      routemark routes myapp.users:UsersController myapp.health:Health
    """
    try:
        table = RouteTable()
        for target in targets:
            table = table + load_table(target)
    except (Fault, ImportError, AttributeError, TypeError) as e:
        click.secho(f"Error: {e}", fg='red', err=True)
        sys.exit(1)

    rows = table.describe()
    if as_json:
        click.echo(json.dumps(rows, indent=2))
        return

    if not rows:
        click.echo("No routes.")
        return

    verb_width = max(len(r['verb']) for r in rows)
    path_width = max(len(r['path']) for r in rows)
    for row in rows:
        verb = click.style(row['verb'].ljust(verb_width), fg='green')
        target = f"{row['controller']}.{row['method']}"
        line = f"{verb}  {row['path'].ljust(path_width)}  {target}"
        if ctx.obj['verbose']:
            line += click.style(f"  [{' -> '.join(row['handlers'])}]", dim=True)
        click.echo(line)
    click.echo(f"\n{len(rows)} routes")


@cli.command('serve')
@click.argument('target')
@click.option('--host', default='127.0.0.1', help='Bind host')
@click.option('--port', default=8000, type=int, help='Bind port')
@click.option('--reload', is_flag=True, help='Reload on code changes')
def serve(target: str, host: str, port: int, reload: bool):
    """
    Serve TARGET (module:attr naming a Router) with uvicorn.

    \b
    Example:
      routemark serve myapp.main:router --port 8080
    """
    from ..server import serve as run_server

    if reload:
        run_server(target, host=host, port=port, reload=True)
        return

    try:
        app = import_target(target)
    except (ImportError, AttributeError) as e:
        click.secho(f"Error: {e}", fg='red', err=True)
        sys.exit(1)
    run_server(app, host=host, port=port)


def main():
    """Main entry point."""
    cli(obj={})


if __name__ == '__main__':
    main()
