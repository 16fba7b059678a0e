from __future__ import annotations
from typing import Iterable, Optional, Tuple

from rich.console import Console
from rich.table import Table
from rich.text import Text


def print_headers(
    console: Console,
    title: str,
    headers: Iterable[Tuple[str, str]],
    status: Optional[str] = None,
) -> None:
    """Render one HTTP message's headers as a table, status line as caption."""
    table = Table(
        title=Text(title),
        title_justify="left",
        caption=Text(status) if status else None,
        caption_justify="left",
        header_style="bold",
    )
    table.add_column("Header", style="cyan", no_wrap=True)
    table.add_column("Value", overflow="fold")
    for name, value in headers:
        table.add_row(Text(name), Text(value))
    console.print(table)
