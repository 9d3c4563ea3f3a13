"""
Utility functions for templatev CLI.
"""
import logging
from typing import List, Sequence

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from templatev.models import VariableReference


def setup_logging(level: str = "WARNING") -> None:
    """
    Send templatev log records to a Rich handler on stderr.

    Calling it again replaces the handler instead of adding another one.

    Args:
        level: Logging level name (e.g. "DEBUG", "INFO")
    """
    logger = logging.getLogger("templatev")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = RichHandler(console=Console(stderr=True), show_path=False)
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper(), logging.WARNING))
    logger.propagate = False


def format_references(references: Sequence[VariableReference], title: str) -> None:
    """
    Display variable references as a table.

    Args:
        references: References in template order
        title: Table title
    """
    console = Console()

    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Line", style="dim", justify="right")
    table.add_column("Variable", style="cyan")
    table.add_column("Expression", style="green")

    for ref in references:
        table.add_row(str(ref.lineno), escape(ref.root), escape(ref.expression))

    console.print(table)


def format_missing(missing: List[str]) -> None:
    """Display the list of unbound variables."""
    console = Console()
    console.print(f"[bold red]Missing variables ({len(missing)}):[/bold red]")
    for name in missing:
        console.print(f"  - {escape(name)}")
