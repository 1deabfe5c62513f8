from __future__ import annotations

from typing import Optional

import typer

from divtrack.cli_commands.common import cli_errors, console, parse_date_option, services


def register(holding_app: typer.Typer) -> None:
    @holding_app.command("add")
    def holding_add(
        bank: str = typer.Argument(..., help="Bank name or id prefix"),
        symbol: str = typer.Argument(..., help="Stock symbol, e.g. 2330"),
        shares: str = typer.Argument(..., help="Number of shares"),
        price: Optional[float] = typer.Option(None, "--price", help="Purchase price per share (default: today's price)"),
        on: Optional[str] = typer.Option(None, "--date", help="Purchase date YYYY-MM-DD (default: today)"),
        dividend: Optional[float] = typer.Option(None, "--dividend", help="Dividend per payout (default: looked up)"),
        frequency: Optional[int] = typer.Option(None, "--frequency", help="Payouts per year: 1, 2, 4 or 12"),
        name: Optional[str] = typer.Option(None, "--name", help="Display name (default: looked up)"),
    ):
        """Record a purchase lot."""
        from divtrack.data.mapper import to_holding

        svc = services()
        purchase_date = parse_date_option(on, "--date") or svc.manager.clock()
        sym = symbol.strip().upper()
        with cli_errors():
            b = svc.book.find_bank(bank)
            info = svc.market.get_stock_info(sym) if sym else None
            if info is not None:
                draft = to_holding(info, b.id, purchase_date)
                name = name or draft.name
                dividend = dividend if dividend is not None else draft.dividend_per_share
                frequency = frequency or draft.frequency
            if price is None and sym:
                price = svc.manager.price(sym, purchase_date)
            h = svc.book.add_holding(
                bank,
                symbol,
                shares,
                name=name,
                dividend_per_share=dividend,
                frequency=frequency,
                purchase_price=price,
                purchase_date=purchase_date,
            )
        console.print(
            f"[green]Added[/green] {h.shares:,} x {h.symbol} {h.name} @ {h.purchase_price or 0:,.2f} ({str(h.id)[:8]})"
        )

    @holding_app.command("list")
    def holding_list(bank: Optional[str] = typer.Option(None, "--bank", help="Only this bank")):
        """List every lot with today's price and P/L."""
        from rich.table import Table

        from divtrack.utils.formatting import fmt_int, fmt_money, fmt_signed_money, fmt_signed_pct, pnl_style

        svc = services()
        with cli_errors():
            holdings = svc.book.holdings()
            if bank is not None:
                holdings = svc.manager.holdings_for_bank(svc.book.find_bank(bank).id, holdings)
        if not holdings:
            console.print("[dim]No holdings.[/dim]")
            return

        bank_names = {b.id: b.name for b in svc.book.banks()}
        prices = svc.manager.current_prices(holdings)

        tbl = Table(title="Holdings")
        tbl.add_column("id", style="dim")
        tbl.add_column("bank")
        tbl.add_column("symbol", style="bold")
        tbl.add_column("name")
        tbl.add_column("shares", justify="right")
        tbl.add_column("avg cost", justify="right")
        tbl.add_column("price", justify="right")
        tbl.add_column("P/L", justify="right")
        tbl.add_column("ROI", justify="right")
        tbl.add_column("DCA")
        for h in holdings:
            px = prices.get(h.symbol)
            pl = h.profit_loss(px) if px is not None else None
            style = pnl_style(pl or 0.0)
            plan = h.regular_investment
            tbl.add_row(
                str(h.id)[:8],
                bank_names.get(h.bank_id, "?"),
                h.symbol,
                h.name,
                fmt_int(h.total_shares),
                fmt_money(h.average_cost()),
                fmt_money(px),
                f"[{style}]{fmt_signed_money(pl)}[/{style}]",
                fmt_signed_pct(h.roi(px)) if px is not None else "n/a",
                f"{plan.amount:,.0f}/{plan.frequency.value}" if plan and plan.is_active else "",
            )
        console.print(tbl)

    @holding_app.command("remove")
    def holding_remove(holding: str = typer.Argument(..., help="Holding id prefix")):
        """Remove a lot."""
        with cli_errors():
            h = services().book.remove_holding(holding)
        console.print(f"[green]Removed[/green] {h.symbol} {h.name} ({str(h.id)[:8]})")

    @holding_app.command("dca")
    def holding_dca(
        holding: str = typer.Argument(..., help="Holding id prefix"),
        amount: float = typer.Argument(..., help="Amount invested each period"),
        frequency: str = typer.Option("monthly", "--frequency", help="weekly, monthly or quarterly"),
        start: Optional[str] = typer.Option(None, "--start", help="First purchase date YYYY-MM-DD (default: today)"),
        end: Optional[str] = typer.Option(None, "--end", help="Last purchase date YYYY-MM-DD"),
        note: Optional[str] = typer.Option(None, "--note"),
        inactive: bool = typer.Option(False, "--inactive", help="Store the plan but pause it"),
    ):
        """Attach (or replace) a regular investment plan and backfill its transactions."""
        from divtrack.models import Frequency

        try:
            freq = Frequency(frequency.lower())
        except ValueError:
            raise typer.BadParameter("--frequency must be weekly, monthly or quarterly")

        svc = services()
        with cli_errors():
            h = svc.book.set_regular_investment(
                holding,
                amount,
                freq,
                start_date=parse_date_option(start, "--start"),
                end_date=parse_date_option(end, "--end"),
                note=note,
                active=not inactive,
            )
            added = svc.book.refresh_regular_investments()
        console.print(f"[green]Plan set[/green] for {h.symbol}: {amount:,.0f} {freq.value}; {added} transaction(s) added")

    @holding_app.command("refresh")
    def holding_refresh():
        """Create missing transactions for every active regular investment plan."""
        with cli_errors():
            added = services().book.refresh_regular_investments()
        console.print(f"[green]Refreshed[/green] regular investments: {added} transaction(s) added")
