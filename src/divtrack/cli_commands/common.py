from __future__ import annotations

from contextlib import contextmanager
from datetime import date
from typing import Iterator

import typer
from rich.console import Console

from divtrack.errors import DivtrackError
from divtrack.utils.dates import parse_ymd

console = Console()


@contextmanager
def cli_errors() -> Iterator[None]:
    """Turn domain errors into a red one-line message and exit code 1."""
    try:
        yield
    except DivtrackError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)


def parse_date_option(value: str | None, name: str) -> date | None:
    if value is None:
        return None
    try:
        return parse_ymd(value)
    except ValueError:
        raise typer.BadParameter(f"{name} must be YYYY-MM-DD, got {value!r}")


def services():
    from divtrack.services import build_services

    return build_services()
