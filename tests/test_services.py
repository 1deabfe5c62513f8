from __future__ import annotations

from datetime import date
from pathlib import Path

from divtrack.services import build_services, refresh_if_stale
from divtrack.storage.store import DataStore


def test_build_services_wires_offline_stack(tmp_path: Path, offline_settings):
    svc = build_services(offline_settings)

    assert svc.store.root == tmp_path / "store"
    assert svc.market.repository.is_offline()
    assert svc.reports.price_service is svc.manager
    assert svc.book.manager is svc.manager
    assert svc.manager.cache.max_size == 1000
    assert svc.goals.historical_return("0050") == 0.09

    px = svc.manager.price("2330", date(2025, 3, 3))
    assert 550.0 * 0.8 <= px <= 550.0 * 1.2


def test_daily_refresh_drops_stale_price_caches(tmp_path: Path, offline_settings):
    DataStore(tmp_path / "store").set("StockPricesCache_2000-01-01", {"2330": 1.0})

    svc = build_services(offline_settings)
    assert "StockPricesCache_2000-01-01" not in svc.store.keys()
    assert svc.data_cache.last_update() is not None
    assert refresh_if_stale(svc) is False

    svc.data_cache.clear()
    assert refresh_if_stale(svc) is True
