from __future__ import annotations

from typing import Optional

import typer

from divtrack.cli_commands.common import cli_errors, console, parse_date_option, services


def register(app: typer.Typer) -> None:
    @app.command("search")
    def search(
        query: str = typer.Argument("", help="Symbol or name fragment"),
        industry: Optional[str] = typer.Option(None, "--industry", help="Browse an industry instead"),
    ):
        """Search the stock catalog."""
        from rich.table import Table

        svc = services()
        if industry is not None:
            results = svc.market.get_stocks_by_industry(industry)
            if not results:
                console.print("Industries: " + ", ".join(svc.market.get_industries()))
        else:
            results = svc.market.search_stocks(query)

        tbl = Table(title="Stocks")
        tbl.add_column("symbol", style="bold")
        tbl.add_column("name")
        for s in results:
            tbl.add_row(s.symbol, s.name)
        console.print(tbl)

    @app.command("price")
    def price(
        symbol: str = typer.Argument(..., help="Stock symbol"),
        on: Optional[str] = typer.Option(None, "--date", help="YYYY-MM-DD (default: today)"),
        as_json: bool = typer.Option(False, "--json", help="Print the stock info as JSON"),
    ):
        """Price, dividend and upcoming payouts for a stock."""
        from rich.table import Table

        from divtrack.utils.formatting import fmt_money
        from divtrack.utils.logging import log_event

        svc = services()
        symbol = symbol.strip().upper()
        d = parse_date_option(on, "--date") or svc.manager.clock()
        with cli_errors():
            info = svc.market.get_stock_info(symbol)
        px = svc.manager.price(symbol, d)

        if as_json:
            log_event("stock_info", {"symbol": symbol, "date": d, "price": px, "info": info})
            return

        name = info.name if info else "unknown"
        console.print(f"[bold]{symbol}[/bold] {name}  {d:%Y-%m-%d}  price {fmt_money(px)}")
        if info is None:
            return
        console.print(
            f"Dividend {info.dividend_per_share:.2f} x {info.frequency}/yr"
            + (f"  industry {info.industry}" if info.industry else "")
        )

        schedule = svc.market.get_dividend_schedule(symbol)
        if schedule:
            tbl = Table(title="Upcoming dividends")
            tbl.add_column("ex-date")
            tbl.add_column("payment")
            tbl.add_column("amount", justify="right")
            for s in schedule:
                tbl.add_row(f"{s.ex_dividend_date:%Y-%m-%d}", f"{s.payment_date:%Y-%m-%d}", f"{s.amount:.3f}")
            console.print(tbl)

    @app.command("dividends")
    def dividends(
        symbol: str = typer.Argument(..., help="Stock symbol"),
        years: int = typer.Option(3, "--years", help="How many past years"),
    ):
        """Dividend history for a stock."""
        from rich.table import Table

        svc = services()
        history = svc.market.get_dividend_history(symbol.strip().upper(), years)
        tbl = Table(title=f"{symbol.upper()} dividend history")
        tbl.add_column("date")
        tbl.add_column("ex-date")
        tbl.add_column("payment")
        tbl.add_column("amount", justify="right")
        for h in history:
            tbl.add_row(f"{h.date:%Y-%m-%d}", f"{h.ex_dividend_date:%Y-%m-%d}", f"{h.payment_date:%Y-%m-%d}", f"{h.amount:.3f}")
        console.print(tbl)
