from __future__ import annotations

import typer

from divtrack.cli_commands.common import cli_errors, console, services


def _metrics_panel(title: str, m) -> "Panel":
    from rich.panel import Panel

    from divtrack.utils.formatting import fmt_money, fmt_pct, fmt_signed_money, fmt_signed_pct, pnl_style

    style = pnl_style(m.total_profit_loss)
    day_style = pnl_style(m.daily_change)
    body = (
        f"Market value:    {fmt_money(m.total_value)}\n"
        f"Invested:        {fmt_money(m.total_investment)}\n"
        f"P/L:             [{style}]{fmt_signed_money(m.total_profit_loss)} ({fmt_signed_pct(m.total_roi)})[/{style}]\n"
        f"Annual dividend: {fmt_money(m.annual_dividend)}  (yield {fmt_pct(m.dividend_yield)})\n"
        f"Today:           [{day_style}]{fmt_signed_money(m.daily_change)} ({fmt_signed_pct(m.daily_change_percentage)})[/{day_style}]\n"
        f"Symbols: {m.stock_count}   lots: {m.normal_stock_count}   regular plans: {m.regular_investment_count}"
    )
    return Panel(body, title=title, expand=False)


def register(bank_app: typer.Typer) -> None:
    @bank_app.command("add")
    def bank_add(name: str = typer.Argument(..., help="Bank or brokerage name")):
        """Add a bank."""
        with cli_errors():
            bank = services().book.add_bank(name)
        console.print(f"[green]Added bank[/green] {bank.name} ({str(bank.id)[:8]})")

    @bank_app.command("list")
    def bank_list():
        """List banks with value, invested amount and annual dividend."""
        from rich.table import Table

        from divtrack.utils.formatting import fmt_money, fmt_signed_pct, pnl_style

        svc = services()
        banks = svc.book.banks()
        if not banks:
            console.print("[dim]No banks yet. Add one with `divtrack bank add NAME`.[/dim]")
            return

        holdings = svc.book.holdings()
        tbl = Table(title="Banks")
        tbl.add_column("id", style="dim")
        tbl.add_column("name", style="bold")
        tbl.add_column("value", justify="right")
        tbl.add_column("invested", justify="right")
        tbl.add_column("ROI", justify="right")
        tbl.add_column("annual div", justify="right")
        tbl.add_column("lots", justify="right")
        for b in banks:
            m = svc.manager.bank_metrics(b.id, holdings)
            style = pnl_style(m.total_roi)
            tbl.add_row(
                str(b.id)[:8],
                b.name,
                fmt_money(m.total_value),
                fmt_money(m.total_investment),
                f"[{style}]{fmt_signed_pct(m.total_roi)}[/{style}]",
                fmt_money(m.annual_dividend),
                str(m.normal_stock_count + m.regular_investment_count),
            )
        console.print(tbl)
        console.print(_metrics_panel("All banks", svc.manager.multi_bank_metrics(banks, holdings)))

    @bank_app.command("show")
    def bank_show(bank: str = typer.Argument(..., help="Bank name or id prefix")):
        """Metrics and merged positions for one bank."""
        from rich.table import Table

        from divtrack.utils.formatting import fmt_int, fmt_money

        svc = services()
        with cli_errors():
            b = svc.book.find_bank(bank)
        holdings = svc.book.holdings()
        console.print(_metrics_panel(b.name, svc.manager.bank_metrics(b.id, holdings)))

        for title, rows in (
            ("Holdings", svc.manager.weighted_normal_holdings(b.id, holdings)),
            ("Regular investments", svc.manager.weighted_regular_investments(b.id, holdings)),
        ):
            if not rows:
                continue
            tbl = Table(title=title)
            tbl.add_column("symbol", style="bold")
            tbl.add_column("name")
            tbl.add_column("shares", justify="right")
            tbl.add_column("div/share", justify="right")
            tbl.add_column("freq", justify="right")
            tbl.add_column("avg cost", justify="right")
            tbl.add_column("annual div", justify="right")
            for w in rows:
                tbl.add_row(
                    w.symbol,
                    w.name,
                    fmt_int(w.total_shares),
                    f"{w.weighted_dividend_per_share:.2f}",
                    str(w.frequency),
                    fmt_money(w.weighted_purchase_price),
                    fmt_money(w.total_annual_dividend()),
                )
            console.print(tbl)

    @bank_app.command("rename")
    def bank_rename(
        bank: str = typer.Argument(..., help="Bank name or id prefix"),
        new_name: str = typer.Argument(..., help="New name"),
    ):
        """Rename a bank."""
        with cli_errors():
            b = services().book.rename_bank(bank, new_name)
        console.print(f"[green]Renamed[/green] to {b.name}")

    @bank_app.command("move")
    def bank_move(
        bank: str = typer.Argument(..., help="Bank name or id prefix"),
        position: int = typer.Argument(..., help="New 1-based position"),
    ):
        """Reorder banks."""
        with cli_errors():
            banks = services().book.move_bank(bank, position - 1)
        console.print(" > ".join(b.name for b in banks))

    @bank_app.command("delete")
    def bank_delete(
        bank: str = typer.Argument(..., help="Bank name or id prefix"),
        yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    ):
        """Delete a bank and all holdings recorded under it."""
        svc = services()
        with cli_errors():
            b = svc.book.find_bank(bank)
            if not yes and not typer.confirm(f"Delete {b.name} and all of its holdings?"):
                raise typer.Exit()
            _, removed = svc.book.delete_bank(str(b.id))
        console.print(f"[green]Deleted[/green] {b.name} and {removed} holding(s)")
