from __future__ import annotations

import typer

app = typer.Typer(add_completion=False, help="Dividend portfolio tracker")
bank_app = typer.Typer(add_completion=False, help="Banks / brokerage accounts")
app.add_typer(bank_app, name="bank")
holding_app = typer.Typer(add_completion=False, help="Holdings and regular investment plans")
app.add_typer(holding_app, name="holding")
watch_app = typer.Typer(add_completion=False, help="Watchlists")
app.add_typer(watch_app, name="watch")
goal_app = typer.Typer(add_completion=False, help="Savings goals and growth projections")
app.add_typer(goal_app, name="goal")
report_app = typer.Typer(add_completion=False, help="Return and dividend yield reports")
app.add_typer(report_app, name="report")
cache_app = typer.Typer(add_completion=False, help="Local price and data caches")
app.add_typer(cache_app, name="cache")


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
):
    from dotenv import load_dotenv

    from divtrack.utils.logging import setup_logging

    load_dotenv()
    setup_logging(verbose)


_COMMANDS_REGISTERED = False


def _register_commands() -> None:
    global _COMMANDS_REGISTERED
    if _COMMANDS_REGISTERED:
        return
    # Import here to keep `divtrack.cli` lightweight at import time.
    from divtrack.cli_commands.bank_cmd import register as register_bank
    from divtrack.cli_commands.cache_cmd import register as register_cache
    from divtrack.cli_commands.goal_cmd import register as register_goal
    from divtrack.cli_commands.holding_cmd import register as register_holding
    from divtrack.cli_commands.market_cmd import register as register_market
    from divtrack.cli_commands.metrics_cmd import register as register_metrics
    from divtrack.cli_commands.report_cmd import register as register_report
    from divtrack.cli_commands.watch_cmd import register as register_watch

    register_bank(bank_app)
    register_holding(holding_app)
    register_watch(watch_app)
    register_market(app)
    register_goal(goal_app)
    register_report(report_app)
    register_metrics(app)
    register_cache(cache_app)
    _COMMANDS_REGISTERED = True


def main():
    _register_commands()
    app()


# Register commands when imported as a console-script entrypoint (`pyproject.toml` uses `divtrack.cli:app`).
_register_commands()


if __name__ == "__main__":
    main()
