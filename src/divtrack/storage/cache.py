from __future__ import annotations

import json
import logging
from collections import OrderedDict
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable

from divtrack.config import load_settings
from divtrack.storage.store import DataStore

logger = logging.getLogger(__name__)

LAST_UPDATE_KEY = "last_data_update"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class StockPriceCache:
    """
    In-memory price cache keyed by `<symbol>_<YYYY-MM-DD>`.

    Entries live for one calendar day: the first access on a new day drops
    everything. When more than `max_size` entries accumulate only the most
    recently inserted half is kept.
    """

    def __init__(self, max_size: int = 1000, clock: Callable[[], date] = date.today):
        self.max_size = int(max_size)
        self._clock = clock
        self._prices: OrderedDict[str, float] = OrderedDict()
        self._day: str = ""
        self._reset_if_new_day()

    @staticmethod
    def key(symbol: str, on: date) -> str:
        return f"{symbol}_{on.isoformat()}"

    def __len__(self) -> int:
        return len(self._prices)

    def __contains__(self, key: str) -> bool:
        return key in self._prices

    def clear(self) -> None:
        self._prices.clear()
        self._day = self._clock().isoformat()

    def _reset_if_new_day(self) -> None:
        today = self._clock().isoformat()
        if today != self._day:
            self.clear()

    def _trim(self) -> None:
        if len(self._prices) <= self.max_size:
            return
        keep = self.max_size // 2
        while len(self._prices) > keep:
            self._prices.popitem(last=False)

    def get_price(self, symbol: str, on: date, compute: Callable[[], float | None]) -> float | None:
        self._reset_if_new_day()
        k = self.key(symbol, on)
        if k in self._prices:
            return self._prices[k]
        price = compute()
        if price is None:
            return None
        self._prices[k] = float(price)
        self._trim()
        return float(price)


class DataCacheManager:
    """Tracks when market data was last refreshed, at most once per day."""

    def __init__(self, store: DataStore, clock: Callable[[], datetime] = datetime.now):
        self.store = store
        self._clock = clock

    def last_update(self) -> datetime | None:
        raw = self.store.get(LAST_UPDATE_KEY)
        if not raw:
            return None
        try:
            return datetime.fromisoformat(str(raw))
        except ValueError:
            logger.warning("Ignoring malformed %s value: %r", LAST_UPDATE_KEY, raw)
            return None

    def should_update(self) -> bool:
        last = self.last_update()
        if last is None:
            return True
        return last.date() != self._clock().date()

    def mark_updated(self) -> None:
        self.store.set(LAST_UPDATE_KEY, self._clock().isoformat())

    def clear(self) -> None:
        self.store.remove(LAST_UPDATE_KEY)


# ---------------------------------------------------------------------------
# On-disk JSON cache for API responses
# ---------------------------------------------------------------------------

def cache_root() -> Path:
    root = load_settings().cache_dir
    root.mkdir(parents=True, exist_ok=True)
    return root


def cache_path(key: str, root: Path | None = None) -> Path:
    p = (root or cache_root()) / f"{key}.json"
    p.parent.mkdir(parents=True, exist_ok=True)
    return p


def read_cache(path: Path, *, max_age: timedelta) -> Any | None:
    if not path.exists():
        return None
    age = _utc_now() - datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)
    if age > max_age:
        return None
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.debug("Discarding unreadable cache file %s: %s", path, exc)
        return None


def write_cache(path: Path, obj: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(obj, ensure_ascii=False), encoding="utf-8")
