from __future__ import annotations

from datetime import date

from divtrack.data.catalog import CATALOG, industry_of, lookup, sector_of
from divtrack.data.local import (
    PRICE_CACHE_PREFIX,
    PRICE_LAST_UPDATE_KEY,
    LocalStockService,
    SeededGenerator,
    seed_for,
    stable_price,
    stable_seed,
)

from conftest import TODAY


def test_stable_seed_uses_whole_key():
    assert stable_seed("2330_20250314") == stable_seed("2330_20250314")
    assert stable_seed("2330_20250314") != stable_seed("2330_20250315")
    assert 0 <= stable_seed("x") < 2**64


def test_seed_for_pinned_value():
    assert seed_for("2330", date(2025, 6, 20)) == 16384969676986201469
    assert seed_for("2330", date(2025, 6, 20)) == stable_seed("2330_20250620")


def test_seeded_generator_is_reproducible():
    a = SeededGenerator(42)
    b = SeededGenerator(42)
    assert [a.next() for _ in range(5)] == [b.next() for _ in range(5)]
    for _ in range(100):
        x = a.uniform(-0.05, 0.05)
        assert -0.05 <= x <= 0.05


def test_stable_price_is_deterministic_and_bounded():
    d = date(2025, 3, 14)
    assert stable_price("2330", d) == stable_price("2330", d)
    assert stable_price("2330", d) != stable_price("2330", date(2025, 3, 15))

    for sym, base in (("2330", 550.0), ("2891", 25.0), ("UNKNOWN", 100.0)):
        for day in range(1, 29):
            px = stable_price(sym, date(2025, 2, day))
            assert base * 0.8 <= px <= base * 1.2


def test_todays_price_is_pinned_in_store(store):
    svc = LocalStockService(store, clock=lambda: TODAY)
    first = svc.get_stock_price("2330", TODAY)
    key = f"{PRICE_CACHE_PREFIX}_{TODAY.isoformat()}"
    assert store.get(key) == {"2330": first}
    assert store.get(PRICE_LAST_UPDATE_KEY) is not None

    store.set(key, {"2330": 1.0})
    assert LocalStockService(store, clock=lambda: TODAY).get_stock_price("2330", TODAY) == 1.0


def test_past_prices_are_not_stored(store):
    svc = LocalStockService(store, clock=lambda: TODAY)
    svc.get_stock_price("2330", date(2025, 1, 2))
    assert store.keys() == []


def test_search_matches_symbol_or_name():
    svc = LocalStockService()
    assert [s.symbol for s in svc.search_stocks("tsmc")] == ["2330"]
    assert {s.symbol for s in svc.search_stocks("financial")} == {"2881", "2882", "2891"}
    assert len(svc.search_stocks("")) == len(CATALOG)
    assert svc.search_stocks("zzz") == []


def test_catalog_lookups():
    svc = LocalStockService()
    assert svc.get_stock_name("2412") == "Chunghwa Telecom"
    assert svc.get_dividend("2330") == 2.75
    assert svc.get_frequency("2881") == 2
    assert svc.get_stock_name("9999") is None
    assert svc.get_dividend("9999") is None

    assert lookup(" 0050 ").name == "Yuanta Taiwan 50"
    assert sector_of("2330") == "Semiconductors"
    assert sector_of("0050") == "Other"
    assert industry_of("2412") == "Communications & Networking"
    assert industry_of("1301") is None


def test_clean_old_price_cache_keeps_today(store):
    store.set(f"{PRICE_CACHE_PREFIX}_2025-06-18", {"2330": 1.0})
    store.set(f"{PRICE_CACHE_PREFIX}_2025-06-19", {"2330": 2.0})
    store.set(f"{PRICE_CACHE_PREFIX}_{TODAY.isoformat()}", {"2330": 3.0})
    store.set("banks", [])

    svc = LocalStockService(store, clock=lambda: TODAY)
    assert svc.clean_old_price_cache() == 2
    assert sorted(store.keys()) == sorted(["banks", f"{PRICE_CACHE_PREFIX}_{TODAY.isoformat()}"])
    assert LocalStockService().clean_old_price_cache() == 0
