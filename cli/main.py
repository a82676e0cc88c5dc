"""
Holder - Command Line Interface

Inspect and exercise a definition set from the shell. Targets are given as
``module:attribute`` where the attribute is a list of definitions or a
zero-argument callable returning one:

    holder order myapp.items:definitions
    holder check myapp.items:definitions
    holder run myapp.items:build_definitions --hold 5
"""
import asyncio
import importlib
from typing import Any, List

import typer
from rich.console import Console
from rich.table import Table

from config import get_settings
from core.errors import ConfigurationError, HolderError
from core.types import ItemDefinition
from di.adapters import expand_per_item
from di.graph import sort_definitions
from di.holder import Holder
from observability.logging import get_logger, setup_logging

app = typer.Typer(
    name="holder",
    help="Holder - dependency-ordered component lifecycle manager",
    add_completion=False,
)

console = Console()


def load_target(target: str) -> List[Any]:
    """Import ``module:attribute`` and return the definition list it names."""
    module_name, _, attribute = target.partition(":")
    if not module_name or not attribute:
        raise typer.BadParameter(f"expected MODULE:ATTRIBUTE, got {target!r}")
    module = importlib.import_module(module_name)
    try:
        value = getattr(module, attribute)
    except AttributeError:
        raise typer.BadParameter(f"module {module_name!r} has no attribute {attribute!r}") from None
    if callable(value):
        value = value()
    return list(value)


def _prepare(target: str, per_item: bool) -> List[Any]:
    definitions = load_target(target)
    if per_item:
        return expand_per_item(definitions)
    return definitions


def _order_table(ordered: List[ItemDefinition]) -> Table:
    table = Table(title="Build Order")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Item", style="cyan")
    table.add_column("Needs")
    table.add_column("Type", style="magenta")
    for position, definition in enumerate(ordered, start=1):
        table.add_row(
            str(position),
            definition.name,
            ", ".join(definition.need) or "-",
            definition.type or "",
        )
    return table


@app.command()
def order(
    target: str = typer.Argument(..., help="MODULE:ATTRIBUTE naming the definitions"),
    per_item: bool = typer.Option(False, "--per-item", help="Expand per-item definitions first"),
):
    """Print the order in which the definitions would be built."""
    try:
        ordered = sort_definitions(_prepare(target, per_item))
    except ConfigurationError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    console.print(_order_table(ordered))


@app.command()
def check(
    target: str = typer.Argument(..., help="MODULE:ATTRIBUTE naming the definitions"),
    per_item: bool = typer.Option(False, "--per-item", help="Expand per-item definitions first"),
):
    """Validate the definitions without building anything."""
    try:
        ordered = sort_definitions(_prepare(target, per_item))
    except ConfigurationError as e:
        console.print(f"[red]Invalid definitions: {e}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]OK[/green] - {len(ordered)} definitions")


@app.command()
def run(
    target: str = typer.Argument(..., help="MODULE:ATTRIBUTE naming the definitions"),
    hold: float = typer.Option(0.0, "--hold", help="Seconds to keep the items loaded"),
    per_item: bool = typer.Option(False, "--per-item", help="Expand per-item definitions first"),
):
    """Load the definitions, show the registry, then close everything."""
    setup_logging(get_settings().logging_config())
    try:
        asyncio.run(_run(_prepare(target, per_item), hold))
    except HolderError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    except Exception as e:
        console.print(f"[red]Error: {type(e).__name__}: {e}[/red]")
        raise typer.Exit(1)


async def _run(definitions: List[Any], hold: float) -> None:
    holder = Holder(logger=get_logger("holder.cli"))
    try:
        await holder.load(definitions)

        table = Table(title="Items")
        table.add_column("Item", style="cyan")
        table.add_column("Value")
        for name, value in holder.items.items():
            table.add_row(name, repr(value))
        console.print(table)

        if hold > 0:
            await asyncio.sleep(hold)
    finally:
        await holder.close()


def main() -> None:
    app()


if __name__ == "__main__":
    main()
