"""
JSON key-value store for everything the app persists.

One file per key under `<data_dir>/store/<key>.json`. Missing or corrupt
keys read back as empty collections so a damaged file never blocks startup.
"""
from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Iterable, TypeVar

from pydantic import BaseModel, ValidationError

from divtrack.config import load_settings
from divtrack.models import Bank, Holding, InvestmentPlan, WatchStock

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

HOLDINGS_KEY = "stocks"
WATCHLIST_KEY = "watchlist"
BANKS_KEY = "banks"
PLANS_KEY = "investment_plans"
WATCHLIST_NAMES_KEY = "watchlist_names"
DEFAULT_WATCHLIST_NAMES = ["Watchlist 1"]


def default_store_dir() -> Path:
    return load_settings().store_dir


class DataStore:
    def __init__(self, root: str | Path | None = None):
        self.root = Path(root or default_store_dir())
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.root / f"{key}.json"

    # ------------------------------------------------------------------
    # Generic key access
    # ------------------------------------------------------------------

    def get(self, key: str, default: Any = None) -> Any:
        path = self._path(key)
        if not path.exists():
            return default
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Unreadable store key %s: %s", key, exc)
            return default

    def set(self, key: str, value: Any) -> None:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=f".{key}.", suffix=".tmp", dir=str(path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(value, f, ensure_ascii=False, indent=2, default=str)
            os.replace(tmp, path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def remove(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)

    def keys(self) -> list[str]:
        return sorted(p.stem for p in self.root.glob("*.json"))

    # ------------------------------------------------------------------
    # Typed collections
    # ------------------------------------------------------------------

    def _save_models(self, key: str, items: Iterable[BaseModel]) -> None:
        self.set(key, [m.model_dump(mode="json") for m in items])

    def _load_models(self, key: str, model: type[M]) -> list[M]:
        raw = self.get(key)
        if not isinstance(raw, list):
            if raw is not None:
                logger.warning("Store key %s is not a list; ignoring", key)
            return []
        try:
            return [model.model_validate(x) for x in raw]
        except ValidationError as exc:
            logger.warning("Store key %s failed to decode: %s", key, exc)
            return []

    def save_holdings(self, holdings: Iterable[Holding]) -> None:
        self._save_models(HOLDINGS_KEY, holdings)

    def load_holdings(self) -> list[Holding]:
        return self._load_models(HOLDINGS_KEY, Holding)

    def save_watchlist(self, watchlist: Iterable[WatchStock]) -> None:
        self._save_models(WATCHLIST_KEY, watchlist)

    def load_watchlist(self) -> list[WatchStock]:
        return self._load_models(WATCHLIST_KEY, WatchStock)

    def save_banks(self, banks: Iterable[Bank]) -> None:
        self._save_models(BANKS_KEY, banks)

    def load_banks(self) -> list[Bank]:
        return self._load_models(BANKS_KEY, Bank)

    def save_plans(self, plans: Iterable[InvestmentPlan]) -> None:
        self._save_models(PLANS_KEY, plans)

    def load_plans(self) -> list[InvestmentPlan]:
        return self._load_models(PLANS_KEY, InvestmentPlan)

    def save_watchlist_names(self, names: list[str]) -> None:
        self.set(WATCHLIST_NAMES_KEY, list(names))

    def load_watchlist_names(self) -> list[str]:
        raw = self.get(WATCHLIST_NAMES_KEY)
        if isinstance(raw, list) and raw and all(isinstance(x, str) for x in raw):
            return list(raw)
        return list(DEFAULT_WATCHLIST_NAMES)
