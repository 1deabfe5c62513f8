from __future__ import annotations

from typing import Optional

import typer

from divtrack.cli_commands.common import console, parse_date_option, services


def register(app: typer.Typer) -> None:
    @app.command("metrics")
    def metrics(
        start: Optional[str] = typer.Option(None, "--start", help="YYYY-MM-DD (default: one year before --end)"),
        end: Optional[str] = typer.Option(None, "--end", help="YYYY-MM-DD (default: today)"),
        bank: Optional[str] = typer.Option(None, "--bank", help="Only this bank"),
    ):
        """Dividend, performance, allocation and risk metrics for lots bought in a date range."""
        from rich.panel import Panel
        from rich.table import Table

        from divtrack.cli_commands.common import cli_errors
        from divtrack.utils.dates import add_months
        from divtrack.utils.formatting import fmt_money, fmt_pct, fmt_signed_money, fmt_signed_pct

        svc = services()
        e = parse_date_option(end, "--end") or svc.manager.clock()
        s = parse_date_option(start, "--start") or add_months(e, -12)
        if s > e:
            raise typer.BadParameter("--start must not be after --end")

        holdings = svc.book.holdings()
        if bank is not None:
            with cli_errors():
                holdings = svc.manager.holdings_for_bank(svc.book.find_bank(bank).id, holdings)

        m = svc.manager.metrics_for_range(s, e, holdings)
        perf, risk = m.performance, m.risk

        console.print(
            Panel(
                f"Invested:        {fmt_money(m.total_investment)}\n"
                f"Annual dividend: {fmt_money(m.annual_dividend)}  (yield on cost {fmt_pct(m.average_yield)})\n"
                f"Symbols:         {m.stock_count}\n"
                f"Total return:    {fmt_signed_money(perf.total_return)} ({fmt_signed_pct(perf.total_return_percentage)})\n"
                f"Time-weighted:   {fmt_signed_pct(perf.time_weighted_return)}   Sharpe {perf.sharpe_ratio:.2f}\n"
                f"Avg holding:     {perf.average_holding_months:.1f} months\n"
                f"Risk:            vol {fmt_pct(risk.volatility, 1)}  beta {risk.beta:.2f}  "
                f"max DD {fmt_pct(risk.max_drawdown, 1)}  top sector {fmt_pct(risk.sector_concentration, 1)}  "
                f"top 5 {fmt_pct(risk.top_holdings_weight, 1)}",
                title=f"{s:%Y-%m-%d} - {e:%Y-%m-%d}",
                expand=False,
            )
        )

        if m.top_performing:
            tbl = Table(title="Top dividend payers")
            tbl.add_column("#", justify="right")
            tbl.add_column("symbol", style="bold")
            tbl.add_column("name")
            tbl.add_column("per payout", justify="right")
            tbl.add_column("payouts/yr", justify="right")
            for i, h in enumerate(m.top_performing[:5], start=1):
                tbl.add_row(str(i), h.symbol, h.name, f"{h.dividend_per_share:.2f}", str(h.frequency))
            console.print(tbl)

        if m.asset_allocation:
            tbl = Table(title="Allocation")
            tbl.add_column("sector")
            tbl.add_column("value", justify="right")
            tbl.add_column("%", justify="right")
            for a in m.asset_allocation:
                tbl.add_row(a.category, fmt_money(a.amount), fmt_pct(a.percentage, 1))
            console.print(tbl)

        if m.trend_data:
            tbl = Table(title="Dividend trend")
            tbl.add_column("date")
            tbl.add_column("annual", justify="right")
            tbl.add_column("yield", justify="right")
            tbl.add_column("lump sum", justify="right")
            tbl.add_column("regular", justify="right")
            for t in m.trend_data:
                tbl.add_row(f"{t.date:%Y-%m-%d}", fmt_money(t.annual_dividend), fmt_pct(t.yield_pct), fmt_money(t.normal_dividend), fmt_money(t.regular_dividend))
            console.print(tbl)

        paid = [d for d in m.monthly_dividends if d.amount]
        if paid:
            tbl = Table(title="Monthly dividends")
            tbl.add_column("month")
            tbl.add_column("total", justify="right")
            tbl.add_column("lump sum", justify="right")
            tbl.add_column("regular", justify="right")
            for d in paid:
                tbl.add_row(f"{d.month:%Y-%m}", fmt_money(d.amount), fmt_money(d.normal_dividend), fmt_money(d.regular_dividend))
            console.print(tbl)

        if m.dividend_growth:
            console.print(
                "Growth: "
                + "  ".join(f"{g.year} {fmt_money(g.annual_dividend, False)} ({fmt_signed_pct(g.growth_rate, 1)})" for g in m.dividend_growth)
            )

        if m.upcoming_dividends:
            tbl = Table(title="Upcoming ex-dividend dates (estimated)")
            tbl.add_column("date")
            tbl.add_column("symbol", style="bold")
            tbl.add_column("name")
            tbl.add_column("per share", justify="right")
            for u in m.upcoming_dividends:
                tbl.add_row(f"{u.ex_dividend_date:%Y-%m-%d}", u.symbol, u.name, f"{u.dividend_amount:.2f}")
            console.print(tbl)
