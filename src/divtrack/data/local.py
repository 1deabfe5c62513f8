from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable

from divtrack.data.catalog import CATALOG, DEFAULT_BASE_PRICE, lookup
from divtrack.storage.store import DataStore

logger = logging.getLogger(__name__)

PRICE_CACHE_PREFIX = "StockPricesCache"
PRICE_LAST_UPDATE_KEY = "StockPricesLastUpdate"

_MASK64 = (1 << 64) - 1


@dataclass(frozen=True)
class SearchStock:
    symbol: str
    name: str


class SeededGenerator:
    """64-bit linear congruential generator; same seed, same sequence."""

    def __init__(self, seed: int):
        self.state = seed & _MASK64

    def next(self) -> int:
        self.state = (self.state * 1103515245 + 12345) & _MASK64
        return self.state

    def uniform(self, lo: float, hi: float) -> float:
        unit = (self.next() >> 11) * (1.0 / (1 << 53))
        return lo + (hi - lo) * unit


def stable_seed(text: str) -> int:
    """64-bit FNV-1a of `text`; unlike hash() it does not change between runs."""
    h = 0xCBF29CE484222325
    for b in text.encode("utf-8"):
        h = ((h ^ b) * 0x100000001B3) & _MASK64
    return h


def seed_for(symbol: str, on: date) -> int:
    return stable_seed(f"{symbol}_{on.year * 10000 + on.month * 100 + on.day}")


def stable_price(symbol: str, on: date) -> float:
    """
    Deterministic mock close for (symbol, date): base price moved by a seeded
    volatility and trend draw, kept within 20% of base.
    """
    entry = lookup(symbol)
    base = entry.base_price if entry is not None else DEFAULT_BASE_PRICE

    gen = SeededGenerator(seed_for(symbol, on))
    volatility = gen.uniform(-0.05, 0.05)
    trend = gen.uniform(-0.02, 0.03)
    price = base * (1.0 + volatility + trend)

    max_dev = base * 0.2
    return min(max(price, base - max_dev), base + max_dev)


class LocalStockService:
    """
    Offline market data over the built-in catalog.

    Today's prices are pinned in the store for the rest of the day so
    repeated runs agree; other dates are recomputed on demand.
    """

    def __init__(self, store: DataStore | None = None, clock: Callable[[], date] = date.today):
        self.store = store
        self._clock = clock

    def _today_key(self) -> str:
        return f"{PRICE_CACHE_PREFIX}_{self._clock().isoformat()}"

    def _load_price_cache(self) -> dict[str, float]:
        if self.store is None:
            return {}
        raw = self.store.get(self._today_key())
        if not isinstance(raw, dict):
            return {}
        out: dict[str, float] = {}
        for k, v in raw.items():
            try:
                out[str(k)] = float(v)
            except (TypeError, ValueError):
                continue
        return out

    def _save_price_cache(self, cache: dict[str, float]) -> None:
        if self.store is None:
            return
        self.store.set(self._today_key(), cache)
        self.store.set(PRICE_LAST_UPDATE_KEY, datetime.now().isoformat())

    def get_stock_price(self, symbol: str, on: date) -> float | None:
        if on != self._clock():
            return stable_price(symbol, on)

        cache = self._load_price_cache()
        if symbol in cache:
            return cache[symbol]
        price = stable_price(symbol, on)
        cache[symbol] = price
        self._save_price_cache(cache)
        return price

    def search_stocks(self, query: str) -> list[SearchStock]:
        q = query.strip().lower()
        return [
            SearchStock(symbol=e.symbol, name=e.name)
            for e in CATALOG
            if q in e.symbol.lower() or q in e.name.lower()
        ]

    def get_stock_name(self, symbol: str) -> str | None:
        entry = lookup(symbol)
        return entry.name if entry else None

    def get_dividend(self, symbol: str) -> float | None:
        entry = lookup(symbol)
        return entry.dividend_per_share if entry else None

    def get_frequency(self, symbol: str) -> int | None:
        entry = lookup(symbol)
        return entry.frequency if entry else None

    def clean_old_price_cache(self) -> int:
        """Drop per-day price caches other than today's. Returns how many were removed."""
        if self.store is None:
            return 0
        today_key = self._today_key()
        removed = 0
        for key in self.store.keys():
            if key.startswith(PRICE_CACHE_PREFIX) and key != today_key:
                self.store.remove(key)
                removed += 1
        if removed:
            logger.debug("Removed %d stale price cache file(s)", removed)
        return removed
