from __future__ import annotations

from typing import Optional

import typer

from divtrack.cli_commands.common import cli_errors, console, services


def register(watch_app: typer.Typer) -> None:
    @watch_app.command("lists")
    def watch_lists():
        """Show watchlist names and how many stocks each holds."""
        svc = services()
        items = svc.book.watchlist()
        for i, name in enumerate(svc.book.watchlist_names(), start=1):
            n = sum(1 for w in items if w.list_name == name)
            console.print(f"{i}. [bold]{name}[/bold] ({n})")

    @watch_app.command("show")
    def watch_show(list_name: Optional[str] = typer.Argument(None, help="Watchlist (default: first)")):
        """Stocks in a watchlist with today's price and dividend."""
        from rich.table import Table

        from divtrack.utils.formatting import fmt_money

        svc = services()
        name = list_name or svc.book.watchlist_names()[0]
        items = svc.book.watchlist(name)
        tbl = Table(title=f"Watchlist: {name}")
        tbl.add_column("symbol", style="bold")
        tbl.add_column("name")
        tbl.add_column("price", justify="right")
        tbl.add_column("div/payout", justify="right")
        tbl.add_column("added")
        today = svc.manager.clock()
        for w in items:
            tbl.add_row(
                w.symbol,
                w.name,
                fmt_money(svc.manager.price(w.symbol, today)),
                fmt_money(svc.market.local.get_dividend(w.symbol)),
                w.added_date.strftime("%Y-%m-%d"),
            )
        console.print(tbl)

    @watch_app.command("add")
    def watch_add(
        symbol: str = typer.Argument(..., help="Stock symbol"),
        list_name: Optional[str] = typer.Option(None, "--list", help="Watchlist (default: first)"),
    ):
        """Add a stock to a watchlist."""
        with cli_errors():
            w = services().book.add_watch_stock(symbol, list_name)
        console.print(f"[green]Watching[/green] {w.symbol} {w.name} in {w.list_name}")

    @watch_app.command("remove")
    def watch_remove(
        symbol: str = typer.Argument(..., help="Stock symbol"),
        list_name: Optional[str] = typer.Option(None, "--list", help="Watchlist (default: first)"),
    ):
        """Remove a stock from a watchlist."""
        with cli_errors():
            services().book.remove_watch_stock(symbol, list_name)
        console.print(f"[green]Removed[/green] {symbol.upper()}")

    @watch_app.command("new-list")
    def watch_new_list(name: str = typer.Argument(...)):
        """Create a watchlist."""
        with cli_errors():
            services().book.add_watchlist(name)
        console.print(f"[green]Created[/green] watchlist {name.strip()}")

    @watch_app.command("rename-list")
    def watch_rename_list(old: str = typer.Argument(...), new: str = typer.Argument(...)):
        """Rename a watchlist; its stocks move with it."""
        with cli_errors():
            services().book.rename_watchlist(old, new)
        console.print(f"[green]Renamed[/green] {old} -> {new.strip()}")

    @watch_app.command("delete-list")
    def watch_delete_list(
        name: str = typer.Argument(...),
        yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    ):
        """Delete a watchlist and its stocks. The last remaining list cannot be deleted."""
        if not yes and not typer.confirm(f"Delete watchlist {name} and its stocks?"):
            raise typer.Exit()
        with cli_errors():
            services().book.delete_watchlist(name)
        console.print(f"[green]Deleted[/green] watchlist {name}")
