"""CLI command for filters."""

from rich.console import Console
from rich.table import Table

from thumbsheet.compose.filters import FILTER_DESCRIPTIONS

console = Console()


def filters() -> None:
    """
    List the available image filters.

    Filters are stacked by separating them with a comma, e.g. --filter=cross,fancy.
    'fancy' gives the best results as the last filter.
    """
    table = Table(title="Available image filters")
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    for name, description in FILTER_DESCRIPTIONS.items():
        table.add_row(name, description)
    console.print(table)
    console.print("Stack filters with a comma, e.g. [bold]--filter=cross,fancy[/bold]")
