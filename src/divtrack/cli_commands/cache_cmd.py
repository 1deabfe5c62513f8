from __future__ import annotations

import typer

from divtrack.cli_commands.common import console, services


def register(cache_app: typer.Typer) -> None:
    @cache_app.command("status")
    def cache_status():
        """Show when market data was last refreshed and which price caches are stored."""
        from divtrack.data.local import PRICE_CACHE_PREFIX

        svc = services()
        last = svc.data_cache.last_update()
        console.print(f"Last refresh: {last:%Y-%m-%d %H:%M}" if last else "Last refresh: never")
        console.print(f"Mode: {'offline' if svc.market.repository.is_offline() else svc.settings.api_base_url}")
        days = [k for k in svc.store.keys() if k.startswith(PRICE_CACHE_PREFIX)]
        console.print(f"Price caches: {', '.join(days) if days else 'none'}")

    @cache_app.command("clear")
    def cache_clear():
        """Drop stored price caches and force a refresh on the next run."""
        from divtrack.data.local import PRICE_CACHE_PREFIX, PRICE_LAST_UPDATE_KEY

        svc = services()
        removed = 0
        for key in svc.store.keys():
            if key.startswith(PRICE_CACHE_PREFIX) or key == PRICE_LAST_UPDATE_KEY:
                svc.store.remove(key)
                removed += 1
        svc.data_cache.clear()
        svc.manager.cache.clear()
        console.print(f"[green]Cleared[/green] {removed} cache file(s)")
