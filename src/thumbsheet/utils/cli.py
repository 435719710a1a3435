"""Shared CLI error handling and logging setup."""

import functools
import logging
from collections.abc import Callable

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

EXIT_FAILURE = 1
EXIT_INTERRUPT = 130

stderr_console = Console(stderr=True)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging with Rich handler."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=stderr_console, rich_tracebacks=True, show_time=True)],
        force=True,
    )
    # PIL logs every plugin it probes at DEBUG
    logging.getLogger("PIL").setLevel(logging.INFO)


def cli_error_handler(func: Callable) -> Callable:
    """Wrap a CLI command so every failure exits with status 1 and a one-line message.

    With ``verbose=True`` passed to the command the full traceback is printed too.
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        verbose = bool(kwargs.get("verbose"))
        try:
            return func(*args, **kwargs)
        except (typer.Exit, SystemExit):
            raise
        except KeyboardInterrupt:
            stderr_console.print("\n[bold yellow]Interrupted by user[/bold yellow]")
            raise typer.Exit(code=EXIT_INTERRUPT)
        except ValidationError as e:
            stderr_console.print(f"[bold red]Invalid options:[/bold red] {escape(str(e))}")
            raise typer.Exit(code=EXIT_FAILURE)
        except (FileNotFoundError, FileExistsError, ValueError, RuntimeError, OSError) as e:
            if verbose:
                stderr_console.print_exception()
            stderr_console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
            raise typer.Exit(code=EXIT_FAILURE)
        except Exception as e:
            if verbose:
                stderr_console.print_exception()
            stderr_console.print(f"[bold red]Unexpected error:[/bold red] {escape(str(e))}")
            raise typer.Exit(code=EXIT_FAILURE)

    return wrapper
