from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from uuid import UUID, uuid4

from divtrack.config import Settings, load_settings
from divtrack.data.api import DividendApiClient, DividendRecord
from divtrack.data.local import LocalStockService, SearchStock, SeededGenerator, stable_seed
from divtrack.errors import APIError
from divtrack.utils.dates import add_days, today as _today

logger = logging.getLogger(__name__)

DEFAULT_SIMULATED_DIVIDEND = 2.0


@dataclass(frozen=True)
class StockInfo:
    name: str | None
    dividend_per_share: float | None
    frequency: int | None


@dataclass(frozen=True)
class DividendData:
    date: date
    amount: float
    ex_dividend_date: date
    payment_date: date
    id: UUID = field(default_factory=uuid4)


def frequency_from_periods(records: list[DividendRecord]) -> int:
    """Payouts per year from the period labels ("quarter", "half", "full year")."""
    quarterly = half = 0
    for r in records:
        label = r.dividend_period.lower()
        if "quarter" in label or "季" in label:
            quarterly += 1
        elif "half" in label or "半年" in label:
            half += 1
    if quarterly:
        return 4
    if half:
        return 2
    return 1


def records_to_dividend_data(records: list[DividendRecord]) -> list[DividendData]:
    out: list[DividendData] = []
    for r in records:
        ex = r.ex_dividend_date_obj
        if ex is None:
            continue
        out.append(
            DividendData(
                date=ex,
                amount=r.total_cash_dividend,
                ex_dividend_date=ex,
                payment_date=r.distribution_date_obj or ex,
            )
        )
    return out


class StockRepository:
    """
    Local catalog plus the remote dividend table, with per-symbol caches
    held for the life of the repository.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        client: DividendApiClient | None = None,
        local: LocalStockService | None = None,
    ):
        self.settings = settings or load_settings()
        if client is None and not self.settings.offline:
            client = DividendApiClient(
                self.settings.api_base_url or "",
                timeout=self.settings.api_timeout,
                cache_dir=self.settings.cache_dir,
            )
        self.client = client
        self.local = local or LocalStockService()

        self._dividend_cache: dict[str, list[DividendRecord]] = {}
        self._price_cache: dict[str, dict[date, float]] = {}

    def is_offline(self) -> bool:
        return self.settings.offline or self.client is None

    def _records(self, symbol: str) -> list[DividendRecord]:
        if symbol not in self._dividend_cache:
            if self.client is None:
                raise APIError(0, "offline")
            self._dividend_cache[symbol] = self.client.get_dividend_data(symbol).data
        return self._dividend_cache[symbol]

    def _local_info(self, symbol: str) -> StockInfo:
        return StockInfo(
            name=self.local.get_stock_name(symbol),
            dividend_per_share=self.local.get_dividend(symbol),
            frequency=self.local.get_frequency(symbol),
        )

    def search_stocks(self, query: str) -> list[SearchStock]:
        return self.local.search_stocks(query)

    def get_stock_info(self, symbol: str, today: date | None = None) -> StockInfo:
        if self.is_offline():
            return self._local_info(symbol)

        year = (today or _today()).year
        try:
            records = self._records(symbol)
        except APIError as e:
            logger.warning("Dividend data unavailable for %s, using local catalog: %s", symbol, e)
            return self._local_info(symbol)

        if not records:
            return self._local_info(symbol)

        recent = [r for r in records if r.year is not None and r.year >= year - 2]
        latest = max(recent, key=lambda r: r.year or 0) if recent else None
        return StockInfo(
            name=self.local.get_stock_name(symbol),
            dividend_per_share=latest.total_dividend if latest is not None else 0.0,
            frequency=frequency_from_periods(recent),
        )

    def get_dividend_history(self, symbol: str, years: int = 3, today: date | None = None) -> list[DividendData]:
        today = today or _today()
        if not self.is_offline():
            try:
                records = self._records(symbol)
            except APIError as e:
                logger.warning("Dividend history unavailable for %s, simulating: %s", symbol, e)
            else:
                min_year = today.year - years
                kept = [r for r in records if r.year is not None and r.year >= min_year]
                return records_to_dividend_data(kept)
        return self.simulated_dividend_history(symbol, years, today)

    def simulated_dividend_history(self, symbol: str, years: int, today: date) -> list[DividendData]:
        base = self.local.get_dividend(symbol) or DEFAULT_SIMULATED_DIVIDEND
        frequency = self.local.get_frequency(symbol) or 1

        out: list[DividendData] = []
        for year in range(today.year - years, today.year + 1):
            # One generator per (symbol, year) keeps repeated calls identical.
            gen = SeededGenerator(stable_seed(f"{symbol}:{year}"))
            for period in range(frequency):
                month = 12 // frequency * period + 1
                record_date = date(year, month, 15)
                amount = base / frequency * (1.0 + gen.uniform(-0.2, 0.2))
                out.append(
                    DividendData(
                        date=record_date,
                        amount=amount,
                        ex_dividend_date=add_days(record_date, -14),
                        payment_date=add_days(record_date, 30),
                    )
                )
        out.sort(key=lambda d: d.date, reverse=True)
        return out

    def set_cached_price(self, symbol: str, on: date, price: float) -> None:
        self._price_cache.setdefault(symbol, {})[on] = float(price)

    def get_stock_price(self, symbol: str, on: date) -> float | None:
        cached = self._price_cache.get(symbol, {}).get(on)
        if cached is not None:
            return cached
        return self.local.get_stock_price(symbol, on)
