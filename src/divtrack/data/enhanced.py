"""
Market data facade used by the portfolio engine and the CLI.

Every call prefers the dividend database and degrades to the local catalog
when the service is unreachable, so commands keep working offline.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import date
from typing import Callable

from divtrack.data.catalog import DEFAULT_INDUSTRIES, industry_of
from divtrack.data.local import SearchStock, SeededGenerator, seed_for
from divtrack.data.processor import dividend_frequency, dividend_per_share
from divtrack.data.repository import DividendData, StockRepository, records_to_dividend_data
from divtrack.errors import APIError
from divtrack.utils.dates import add_days, add_months, today as _today

logger = logging.getLogger(__name__)

SCHEDULE_PERIODS = 3


@dataclass(frozen=True)
class StockInfoResponse:
    symbol: str
    name: str
    current_price: float
    dividend_per_share: float
    frequency: int
    industry: str | None = None


class EnhancedStockService:
    def __init__(
        self,
        repository: StockRepository | None = None,
        *,
        max_retries: int | None = None,
        retry_delay: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], date] = _today,
    ):
        self.repository = repository or StockRepository()
        settings = self.repository.settings
        self.max_retries = settings.api_max_retries if max_retries is None else max(0, int(max_retries))
        self.retry_delay = settings.api_retry_delay if retry_delay is None else max(0.0, float(retry_delay))
        self._sleep = sleep
        self._clock = clock

    @property
    def local(self):
        return self.repository.local

    def _with_retries(self, symbol: str, what: str, compute):
        """
        Run `compute(records)` against fresh API data up to max_retries+1 times.
        A zero result is retried while attempts remain. Returns None when every
        attempt failed.
        """
        client = self.repository.client
        if self.repository.is_offline() or client is None:
            return None

        attempt = 0
        while attempt <= self.max_retries:
            try:
                records = client.get_dividend_data(symbol).data
            except APIError as e:
                attempt += 1
                logger.warning("Attempt %d fetching %s for %s failed: %s", attempt, what, symbol, e)
                if attempt > self.max_retries:
                    break
                self._sleep(self.retry_delay)
                continue

            value = compute(records)
            if value <= 0 and attempt < self.max_retries:
                logger.debug("API returned zero %s for %s; retrying", what, symbol)
                attempt += 1
                continue
            return value

        logger.warning("All attempts fetching %s for %s failed; using local catalog", what, symbol)
        return None

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def search_stocks(self, query: str) -> list[SearchStock]:
        return self.repository.search_stocks(query)

    def get_stock_name(self, symbol: str) -> str | None:
        return self.repository.get_stock_info(symbol, self._clock()).name

    def get_dividend(self, symbol: str) -> float | None:
        value = self._with_retries(symbol, "dividend", dividend_per_share)
        if value is None:
            return self.local.get_dividend(symbol)
        return value

    def get_frequency(self, symbol: str) -> int | None:
        value = self._with_retries(symbol, "frequency", dividend_frequency)
        if value is None:
            return self.local.get_frequency(symbol)
        return value

    def get_stock_price(self, symbol: str, on: date) -> float | None:
        """Reference price of the nearest ex-dividend record with up to 5% noise, else the local price."""
        if not self.repository.is_offline() and self.repository.client is not None:
            try:
                records = self.repository.client.get_dividend_data(symbol).data
            except APIError as e:
                logger.debug("Price lookup for %s via dividend table failed: %s", symbol, e)
            else:
                dated = [(r, r.ex_dividend_date_obj) for r in records]
                dated = [(r, d) for r, d in dated if d is not None]
                if dated:
                    nearest, _ = min(dated, key=lambda rd: abs((rd[1] - on).days))
                    ref = nearest.ex_dividend_reference_price
                    if ref is not None:
                        noise = SeededGenerator(seed_for(symbol, on)).uniform(-0.05, 0.05)
                        return ref * (1.0 + noise)
        return self.repository.get_stock_price(symbol, on)

    def get_dividend_history(self, symbol: str, years: int = 3) -> list[DividendData]:
        return self.repository.get_dividend_history(symbol, years, self._clock())

    def get_dividend_schedule(self, symbol: str, today: date | None = None) -> list[DividendData]:
        today = today or self._clock()
        client = self.repository.client
        if not self.repository.is_offline() and client is not None:
            try:
                records = client.get_dividend_data(symbol).data
            except APIError as e:
                logger.warning("Dividend schedule unavailable for %s, simulating: %s", symbol, e)
            else:
                upcoming = [r for r in records if (r.ex_dividend_date_obj or date.min) > today]
                return sorted(records_to_dividend_data(upcoming), key=lambda d: d.ex_dividend_date)
        return self.simulated_dividend_schedule(symbol, today)

    def simulated_dividend_schedule(self, symbol: str, today: date) -> list[DividendData]:
        dps = self.local.get_dividend(symbol) or 2.0
        frequency = self.local.get_frequency(symbol) or 1

        out: list[DividendData] = []
        for i in range(SCHEDULE_PERIODS):
            future = add_months(today, 12 // frequency * (i + 1))
            ex_date = future.replace(day=15)
            out.append(
                DividendData(
                    date=ex_date,
                    amount=dps / frequency * (1.0 + i * 0.05),
                    ex_dividend_date=ex_date,
                    payment_date=add_days(ex_date, 30),
                )
            )
        out.sort(key=lambda d: d.ex_dividend_date)
        return out

    def get_industries(self) -> list[str]:
        return list(DEFAULT_INDUSTRIES)

    def get_stocks_by_industry(self, industry: str) -> list[SearchStock]:
        return [s for s in self.local.search_stocks("") if industry_of(s.symbol) == industry]

    def get_stock_info(self, symbol: str) -> StockInfoResponse | None:
        on = self._clock()
        info = self.repository.get_stock_info(symbol, on)
        if info.name is None:
            return None
        price = self.get_stock_price(symbol, on)
        return StockInfoResponse(
            symbol=symbol,
            name=info.name,
            current_price=price or 0.0,
            dividend_per_share=info.dividend_per_share or 0.0,
            frequency=info.frequency or 1,
            industry=industry_of(symbol),
        )
