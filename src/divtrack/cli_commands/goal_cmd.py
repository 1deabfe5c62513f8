from __future__ import annotations

import typer

from divtrack.cli_commands.common import cli_errors, console, services


def _projection_table(points, payments_per_year: int):
    from rich.table import Table

    from divtrack.utils.formatting import fmt_money

    tbl = Table(title="Growth projection (year end)")
    tbl.add_column("year", justify="right")
    tbl.add_column("principal", justify="right")
    tbl.add_column("balance", justify="right")
    tbl.add_column("gain", justify="right")
    for i, p in enumerate(points):
        if i == 0 or i % payments_per_year:
            continue
        tbl.add_row(f"{p.year:.0f}", fmt_money(p.principal, False), fmt_money(p.amount, False), fmt_money(p.amount - p.principal, False))
    return tbl


def _plan_panel(plan, goals):
    from rich.panel import Panel

    from divtrack.utils.formatting import fmt_money, fmt_pct

    lines = [
        f"Target:   {fmt_money(plan.target_amount, False)} by {plan.target_year} ({plan.symbol}, {plan.investment_years}y)",
        f"Invest:   {fmt_money(plan.required_amount)} per {plan.frequency_label()}",
        f"Progress: {fmt_money(plan.current_amount, False)} ({fmt_pct(plan.completion_percentage, 1)})",
    ]
    for year, amount, pct in goals.forecast_milestones(plan):
        lines.append(f"After {year}y: {fmt_money(amount, False)} (+{pct:.1f}%)")
    return Panel("\n".join(lines), title=plan.title, expand=False)


def register(goal_app: typer.Typer) -> None:
    @goal_app.command("calc")
    def goal_calc(
        goal: float = typer.Argument(..., help="Target amount"),
        years: int = typer.Option(10, "--years", help="Investment horizon in years"),
        symbol: str = typer.Option("0050", "--symbol", help="Stock whose historical return is assumed"),
        per_year: int = typer.Option(12, "--per-year", help="Payments per year (1, 4 or 12)"),
        as_json: bool = typer.Option(False, "--json"),
    ):
        """How much to invest each period to reach a goal."""
        from divtrack.utils.formatting import fmt_money, fmt_pct
        from divtrack.utils.logging import log_event

        svc = services()
        with cli_errors():
            pmt = svc.goals.required_investment(symbol, goal, years, per_year)
            points = svc.goals.growth_projection(symbol, pmt, years, per_year)

        if as_json:
            log_event("goal_projection", {"symbol": symbol, "payment": pmt, "points": points})
            return

        rate = svc.goals.historical_return(symbol)
        console.print(
            f"Assumed return {fmt_pct(rate * 100, 1)} ({symbol}): invest [bold]{fmt_money(pmt)}[/bold] "
            f"{per_year}x per year for {years} years"
        )
        console.print(_projection_table(points, per_year))

    @goal_app.command("save")
    def goal_save(
        title: str = typer.Argument(..., help="Plan title"),
        goal: float = typer.Argument(..., help="Target amount"),
        years: int = typer.Option(10, "--years"),
        symbol: str = typer.Option("0050", "--symbol"),
        per_year: int = typer.Option(12, "--per-year"),
    ):
        """Create and store an investment plan."""
        svc = services()
        with cli_errors():
            plan = svc.book.save_plan(svc.goals.create_plan(title, goal, symbol, years, per_year))
        console.print(_plan_panel(plan, svc.goals))

    @goal_app.command("list")
    def goal_list():
        """List saved plans."""
        from rich.table import Table

        from divtrack.utils.formatting import fmt_money, fmt_pct

        plans = services().book.plans()
        tbl = Table(title="Investment plans")
        tbl.add_column("id", style="dim")
        tbl.add_column("title", style="bold")
        tbl.add_column("symbol")
        tbl.add_column("target", justify="right")
        tbl.add_column("year", justify="right")
        tbl.add_column("per period", justify="right")
        tbl.add_column("progress", justify="right")
        for p in plans:
            tbl.add_row(
                str(p.id)[:8],
                p.title,
                p.symbol,
                fmt_money(p.target_amount, False),
                str(p.target_year),
                f"{fmt_money(p.required_amount)}/{p.frequency_label()}",
                fmt_pct(p.completion_percentage, 1),
            )
        console.print(tbl)

    @goal_app.command("show")
    def goal_show(plan: str = typer.Argument(..., help="Plan title or id prefix")):
        """Plan details with milestone forecasts."""
        svc = services()
        with cli_errors():
            p = svc.book.find_plan(plan)
        console.print(_plan_panel(p, svc.goals))
        if p.projection_data:
            console.print(_projection_table(p.projection_data, p.investment_frequency))

    @goal_app.command("update")
    def goal_update(
        plan: str = typer.Argument(..., help="Plan title or id prefix"),
        amount: float = typer.Argument(..., help="Total amount invested so far"),
    ):
        """Record progress toward a plan."""
        from divtrack.utils.formatting import fmt_pct

        with cli_errors():
            p = services().book.update_plan_amount(plan, amount)
        console.print(f"[green]Updated[/green] {p.title}: {fmt_pct(p.completion_percentage, 1)} complete")

    @goal_app.command("rename")
    def goal_rename(plan: str = typer.Argument(...), title: str = typer.Argument(...)):
        """Rename a plan."""
        with cli_errors():
            p = services().book.rename_plan(plan, title)
        console.print(f"[green]Renamed[/green] to {p.title}")

    @goal_app.command("delete")
    def goal_delete(plan: str = typer.Argument(..., help="Plan title or id prefix")):
        """Delete a plan."""
        with cli_errors():
            p = services().book.delete_plan(plan)
        console.print(f"[green]Deleted[/green] {p.title}")
