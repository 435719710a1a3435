"""Console script for thumbsheet."""

import typer

from thumbsheet.generate.cli import generate
from thumbsheet.list_filters.cli import filters

app = typer.Typer(help="Video contact sheets and WebVTT thumbnail tracks.", no_args_is_help=True)

app.command("generate")(generate)
app.command("filters")(filters)


@app.command()
def version():
    """Display version information."""
    typer.echo("thumbsheet v0.1.0")
    raise typer.Exit()


if __name__ == "__main__":
    app()
