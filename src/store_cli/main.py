"""Main entry point for store-cli.

Provides a Typer-based CLI to get, set or remove caches, artifacts and
logs in the build store.
"""

import traceback
from typing import List, Optional

import typer
from rich.console import Console

from store_cli import __version__
from store_cli.config import load_context
from store_cli.core.dispatcher import Dispatcher
from store_cli.core.models import Action
from store_cli.errors import StoreError
from store_cli.logging_config import setup_logging

console = Console()
err_console = Console(stderr=True)

# Create the main Typer app
app = typer.Typer(
    name="store-cli",
    help="get, set or remove items in the build store",
    rich_markup_mode="rich",
)

TYPE_HELP = "Type of the command. For example: cache, artifact, log"
SCOPE_HELP = "Scope of command. For example: event, job, pipeline, build"
KEY_HELP = "Key of the item; for caches and artifacts a local path"


def version_callback(value: bool) -> None:
    """Callback for --version flag."""
    if value:
        console.print(f"store-cli version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """store-cli: get, set or remove items in the build store.

    Build metadata (store URL, token, build/job/event/pipeline ids) is
    read from the SD_* environment variables.

    ## Commands

    * [bold cyan]get[/bold cyan] - Get an item from the store
    * [bold cyan]set[/bold cyan] - Put an item to the store
    * [bold cyan]remove[/bold cyan] - Remove an item from the store

    ## Examples

    [dim]$ store-cli set ~/.m2 --type cache --scope pipeline[/dim]

    [dim]$ store-cli get test-results.xml --type artifact[/dim]
    """
    pass


def _fail(message: str) -> None:
    err_console.print(f"ERROR: {message}", markup=False, highlight=False, soft_wrap=True)


def _run(
    ctx: typer.Context,
    action: Action,
    keys: Optional[List[str]],
    store_type: str,
    scope: str,
) -> None:
    """Run one store action and translate the outcome into an exit code."""
    if not keys or len(keys) != 1:
        typer.echo(ctx.get_help())
        raise typer.Exit()

    try:
        context = load_context()
        setup_logging(context.log_level)
        Dispatcher(context).execute(action, store_type.lower(), scope.lower(), keys[0])
    except StoreError as e:
        _fail(str(e))
        raise typer.Exit(1)
    except Exception as e:
        _fail("Something terrible has happened. Please file a ticket with this info:")
        _fail(f"{e}\n{traceback.format_exc()}")
        raise typer.Exit(1)


@app.command()
def get(
    ctx: typer.Context,
    keys: Optional[List[str]] = typer.Argument(None, metavar="KEY", help=KEY_HELP),
    store_type: str = typer.Option("stable", "--type", help=TYPE_HELP),
    scope: str = typer.Option("", "--scope", help=SCOPE_HELP),
) -> None:
    """Get an item from the store."""
    _run(ctx, Action.GET, keys, store_type, scope)


@app.command("set")
def set_item(
    ctx: typer.Context,
    keys: Optional[List[str]] = typer.Argument(None, metavar="KEY", help=KEY_HELP),
    store_type: str = typer.Option("stable", "--type", help=TYPE_HELP),
    scope: str = typer.Option("", "--scope", help=SCOPE_HELP),
) -> None:
    """Put an item to the store."""
    _run(ctx, Action.SET, keys, store_type, scope)


@app.command()
def remove(
    ctx: typer.Context,
    keys: Optional[List[str]] = typer.Argument(None, metavar="KEY", help=KEY_HELP),
    store_type: str = typer.Option("stable", "--type", help=TYPE_HELP),
    scope: str = typer.Option("", "--scope", help=SCOPE_HELP),
) -> None:
    """Remove an existing item from the store."""
    _run(ctx, Action.REMOVE, keys, store_type, scope)


# Entry point for the CLI
def cli_entry() -> None:
    """Entry point for the CLI application."""
    app()


if __name__ == "__main__":
    cli_entry()
