from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Optional

import typer

from divtrack.cli_commands.common import console, parse_date_option, services

RANGE_LABELS = {"1m": ("Last month", 1), "3m": ("Last 3 months", 3), "6m": ("Last 6 months", 6), "1y": ("Last year", 12), "3y": ("Last 3 years", 36)}


def _resolve_range(range_: str, start: Optional[str], end: Optional[str], today: date) -> tuple[date, date, bool, str]:
    from divtrack.utils.dates import add_months

    s = parse_date_option(start, "--start")
    e = parse_date_option(end, "--end")
    if s is not None or e is not None:
        e = e or today
        s = s or add_months(e, -12)
        if s > e:
            raise typer.BadParameter("--start must not be after --end")
        return s, e, True, ""
    if range_ not in RANGE_LABELS:
        raise typer.BadParameter(f"--range must be one of {', '.join(RANGE_LABELS)}")
    label, months = RANGE_LABELS[range_]
    return add_months(today, -months), today, False, label


def _render(kind: str, range_: str, start, end, csv: Optional[Path]) -> None:
    from rich.table import Table

    from divtrack.utils.formatting import fmt_money, fmt_pct, fmt_signed_money, fmt_signed_pct

    svc = services()
    s, e, custom, label = _resolve_range(range_, start, end, svc.manager.clock())
    holdings = svc.book.holdings()

    if kind == "returns":
        points = svc.reports.investment_return_series(holdings, s, e)
        title, fmt_p, fmt_a = "Investment return", fmt_signed_pct, fmt_signed_money
    else:
        points = svc.reports.dividend_yield_series(holdings, s, e)
        title, fmt_p, fmt_a = "Dividend yield", fmt_pct, fmt_money

    tbl = Table(title=f"{title}: {svc.reports.time_range_title(s, e, custom, label)}")
    tbl.add_column("date")
    tbl.add_column("%", justify="right")
    tbl.add_column("amount", justify="right")
    for p in points:
        tbl.add_row(f"{p.date:%Y-%m-%d}", fmt_p(p.percentage), fmt_a(p.amount))
    console.print(tbl)

    summ = svc.reports.summary(points)
    amt = svc.reports.amount_summary(points)
    console.print(
        f"current {fmt_p(summ.current)}  avg {fmt_p(summ.average)}  min {fmt_p(summ.minimum)}  max {fmt_p(summ.maximum)}"
    )
    console.print(f"amount: current {fmt_a(amt.current)}  avg {fmt_a(amt.average)}")

    if csv is not None:
        csv.parent.mkdir(parents=True, exist_ok=True)
        svc.reports.to_frame(points).to_csv(csv, index=False)
        console.print(f"[green]Wrote[/green] {csv}")


def register(report_app: typer.Typer) -> None:
    @report_app.command("returns")
    def report_returns(
        range_: str = typer.Option("1y", "--range", help="1m, 3m, 6m, 1y or 3y"),
        start: Optional[str] = typer.Option(None, "--start", help="Custom start YYYY-MM-DD"),
        end: Optional[str] = typer.Option(None, "--end", help="Custom end YYYY-MM-DD"),
        csv: Optional[Path] = typer.Option(None, "--csv", help="Also write the series to this CSV file"),
    ):
        """Unrealized return of the portfolio over time."""
        _render("returns", range_, start, end, csv)

    @report_app.command("yield")
    def report_yield(
        range_: str = typer.Option("1y", "--range", help="1m, 3m, 6m, 1y or 3y"),
        start: Optional[str] = typer.Option(None, "--start", help="Custom start YYYY-MM-DD"),
        end: Optional[str] = typer.Option(None, "--end", help="Custom end YYYY-MM-DD"),
        csv: Optional[Path] = typer.Option(None, "--csv", help="Also write the series to this CSV file"),
    ):
        """Annual dividend as a percentage of cost over time."""
        _render("yield", range_, start, end, csv)
