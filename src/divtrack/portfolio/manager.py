"""
Portfolio valuation over a set of holdings.

Prices come from any object with `get_stock_price(symbol, date)`; lookups go
through a day-scoped `StockPriceCache` so a single command never asks the
service for the same (symbol, date) twice.

Amounts follow one convention throughout: lump-sum shares always count,
regular-investment shares count only for executed transactions dated on or
before the valuation date.
"""
from __future__ import annotations

import logging
import math
from datetime import date
from typing import TYPE_CHECKING, Callable, Iterable, Protocol
from uuid import UUID

from divtrack.models import Bank, BankPortfolioMetrics, Holding, RegularInvestmentTransaction, WeightedStockInfo, weighted_average
from divtrack.storage.cache import StockPriceCache
from divtrack.utils.dates import add_days, today as _today

if TYPE_CHECKING:
    from divtrack.portfolio.metrics import InvestmentMetrics

logger = logging.getLogger(__name__)


class PriceService(Protocol):
    def get_stock_price(self, symbol: str, on: date) -> float | None: ...


def _pct(part: float, whole: float) -> float:
    return part / whole * 100.0 if whole > 0 else 0.0


class PortfolioManager:
    def __init__(
        self,
        price_service: PriceService,
        cache: StockPriceCache | None = None,
        clock: Callable[[], date] = _today,
    ):
        self.price_service = price_service
        self.cache = cache or StockPriceCache()
        self.clock = clock

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @staticmethod
    def holdings_for_bank(bank_id: UUID, holdings: Iterable[Holding]) -> list[Holding]:
        return [h for h in holdings if h.bank_id == bank_id]

    @staticmethod
    def regular_investments_for_bank(bank_id: UUID, holdings: Iterable[Holding]) -> list[Holding]:
        return [h for h in holdings if h.bank_id == bank_id and h.regular_investment is not None]

    @staticmethod
    def normal_holdings_for_bank(bank_id: UUID, holdings: Iterable[Holding]) -> list[Holding]:
        return [h for h in holdings if h.bank_id == bank_id and h.regular_investment is None]

    @staticmethod
    def holdings_for_symbol(symbol: str, bank_id: UUID, holdings: Iterable[Holding]) -> list[Holding]:
        return [h for h in holdings if h.symbol == symbol and h.bank_id == bank_id]

    # ------------------------------------------------------------------
    # Prices
    # ------------------------------------------------------------------

    def price(self, symbol: str, on: date) -> float | None:
        return self.cache.get_price(symbol, on, lambda: self.price_service.get_stock_price(symbol, on))

    # Lets the manager stand in wherever a price service is expected.
    get_stock_price = price

    def current_prices(self, holdings: Iterable[Holding], on: date | None = None) -> dict[str, float]:
        on = on or self.clock()
        out: dict[str, float] = {}
        for h in holdings:
            if h.symbol in out:
                continue
            px = self.price(h.symbol, on)
            if px is not None:
                out[h.symbol] = px
        return out

    def previous_day_prices(self, holdings: Iterable[Holding], current: date | None = None) -> dict[str, float]:
        return self.current_prices(holdings, add_days(current or self.clock(), -1))

    # ------------------------------------------------------------------
    # Totals
    # ------------------------------------------------------------------

    def total_value(
        self,
        holdings: Iterable[Holding],
        prices: dict[str, float] | None = None,
        on: date | None = None,
    ) -> float:
        on = on or self.clock()
        holdings = list(holdings)
        if prices is None:
            prices = self.current_prices(holdings, on)

        total = 0.0
        for h in holdings:
            px = prices.get(h.symbol)
            if px is None:
                continue
            shares = h.shares + h.executed_regular_shares(on_or_before=on)
            total += float(shares) * px
        return total

    def total_investment(self, holdings: Iterable[Holding], before: date | None = None) -> float:
        before = before or self.clock()
        total = 0.0
        for h in holdings:
            total += float(h.shares) * (h.purchase_price or 0.0)
            total += h.executed_regular_amount(on_or_before=before)
        return total

    def annual_dividend(self, holdings: Iterable[Holding], before: date | None = None) -> float:
        before = before or self.clock()
        total = 0.0
        for h in holdings:
            shares = h.shares + h.executed_regular_shares(on_or_before=before)
            total += float(shares) * h.dividend_per_share * float(h.frequency)
        return total

    def total_roi(self, holdings: Iterable[Holding], prices: dict[str, float] | None = None) -> float:
        holdings = list(holdings)
        value = self.total_value(holdings, prices)
        invested = self.total_investment(holdings)
        return _pct(value - invested, invested)

    @staticmethod
    def daily_change(
        holdings: Iterable[Holding],
        current: dict[str, float],
        previous: dict[str, float],
    ) -> tuple[float, float]:
        """Value change between two price maps, and its percentage of the previous value."""
        change = 0.0
        previous_total = 0.0
        for h in holdings:
            shares = h.shares + h.executed_regular_shares()
            prev = previous.get(h.symbol)
            cur = current.get(h.symbol)
            previous_total += float(shares) * (prev or 0.0)
            if prev is None or cur is None:
                continue
            change += (cur - prev) * float(shares)
        return change, _pct(change, previous_total)

    # ------------------------------------------------------------------
    # Per bank
    # ------------------------------------------------------------------

    def bank_total_value(self, bank_id: UUID, holdings: Iterable[Holding], prices: dict[str, float] | None = None) -> float:
        return self.total_value(self.holdings_for_bank(bank_id, holdings), prices)

    def bank_total_investment(self, bank_id: UUID, holdings: Iterable[Holding]) -> float:
        return self.total_investment(self.holdings_for_bank(bank_id, holdings))

    def bank_annual_dividend(self, bank_id: UUID, holdings: Iterable[Holding]) -> float:
        return self.annual_dividend(self.holdings_for_bank(bank_id, holdings))

    def bank_dividend_yield(self, bank_id: UUID, holdings: Iterable[Holding]) -> float:
        lots = self.holdings_for_bank(bank_id, holdings)
        return _pct(self.annual_dividend(lots), self.total_value(lots))

    def bank_roi(self, bank_id: UUID, holdings: Iterable[Holding]) -> float:
        return self.total_roi(self.holdings_for_bank(bank_id, holdings))

    def bank_daily_change(self, bank_id: UUID, holdings: Iterable[Holding]) -> tuple[float, float]:
        lots = self.holdings_for_bank(bank_id, holdings)
        return self.daily_change(lots, self.current_prices(lots), self.previous_day_prices(lots))

    def bank_metrics(self, bank_id: UUID, holdings: Iterable[Holding]) -> BankPortfolioMetrics:
        holdings = list(holdings)
        lots = self.holdings_for_bank(bank_id, holdings)
        current = self.current_prices(lots)
        previous = self.previous_day_prices(lots)

        value = self.total_value(lots, current)
        invested = self.total_investment(lots)
        dividend = self.annual_dividend(lots)
        change, change_pct = self.daily_change(lots, current, previous)

        return BankPortfolioMetrics(
            total_value=value,
            total_investment=invested,
            total_profit_loss=value - invested,
            total_roi=_pct(value - invested, invested),
            annual_dividend=dividend,
            dividend_yield=_pct(dividend, value),
            daily_change=change,
            daily_change_percentage=change_pct,
            stock_count=len({h.symbol for h in lots}),
            regular_investment_count=len(self.regular_investments_for_bank(bank_id, holdings)),
            normal_stock_count=len(self.normal_holdings_for_bank(bank_id, holdings)),
        )

    def multi_bank_metrics(self, banks: Iterable[Bank], holdings: Iterable[Holding]) -> BankPortfolioMetrics:
        holdings = list(holdings)
        per_bank = [self.bank_metrics(b.id, holdings) for b in banks]

        value = sum(m.total_value for m in per_bank)
        invested = sum(m.total_investment for m in per_bank)
        dividend = sum(m.annual_dividend for m in per_bank)
        change = sum(m.daily_change for m in per_bank)

        return BankPortfolioMetrics(
            total_value=value,
            total_investment=invested,
            total_profit_loss=value - invested,
            total_roi=_pct(value - invested, invested),
            annual_dividend=dividend,
            dividend_yield=_pct(dividend, value),
            daily_change=change,
            daily_change_percentage=_pct(change, value),
            stock_count=sum(m.stock_count for m in per_bank),
            regular_investment_count=sum(m.regular_investment_count for m in per_bank),
            normal_stock_count=sum(m.normal_stock_count for m in per_bank),
        )

    def weighted_holdings(self, bank_id: UUID, holdings: Iterable[Holding]) -> list[WeightedStockInfo]:
        return weighted_average(self.holdings_for_bank(bank_id, holdings), bank_id)

    def weighted_normal_holdings(self, bank_id: UUID, holdings: Iterable[Holding]) -> list[WeightedStockInfo]:
        return weighted_average(self.normal_holdings_for_bank(bank_id, holdings), bank_id)

    def weighted_regular_investments(self, bank_id: UUID, holdings: Iterable[Holding]) -> list[WeightedStockInfo]:
        return weighted_average(self.regular_investments_for_bank(bank_id, holdings), bank_id)

    # ------------------------------------------------------------------
    # Regular investment
    # ------------------------------------------------------------------

    def update_regular_investment(self, holding: Holding, today: date | None = None) -> Holding:
        """
        Return a copy of `holding` with a transaction for every scheduled date
        that has none yet. Dates without a price are skipped and retried on the
        next refresh.
        """
        plan = holding.regular_investment
        if plan is None or not plan.is_active:
            return holding

        today = today or self.clock()
        transactions = list(plan.transactions or [])
        existing = {t.date for t in transactions}

        for d in plan.investment_dates(today):
            if d in existing:
                continue
            px = self.price(holding.symbol, d)
            if px is None or px <= 0:
                logger.debug("No price for %s on %s; skipping scheduled purchase", holding.symbol, d)
                continue
            transactions.append(
                RegularInvestmentTransaction(
                    date=d,
                    amount=plan.amount,
                    shares=int(math.floor(plan.amount / px)),
                    price=px,
                    is_executed=d <= today,
                )
            )

        transactions.sort(key=lambda t: t.date)
        new_plan = plan.model_copy(update={"transactions": transactions})
        return holding.model_copy(update={"regular_investment": new_plan})

    def metrics_for_range(self, start: date, end: date, holdings: Iterable[Holding]) -> "InvestmentMetrics":
        from divtrack.portfolio.metrics import RangeMetricsService

        return RangeMetricsService(list(holdings), self).calculate(start, end)
