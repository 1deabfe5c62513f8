"""
Metrics for holdings purchased within a custom date range.

Most figures consider only lots whose purchase date falls inside
[start, end]; dividend trend, monthly and growth series instead consider
everything bought on or before each sample date so the curves accumulate.
"""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING

from divtrack.data.catalog import BETAS, HIGH_VOLATILITY_SECTORS, sector_of
from divtrack.models import Holding
from divtrack.utils.dates import add_months, end_of_month, months_between

if TYPE_CHECKING:
    from divtrack.portfolio.manager import PortfolioManager

RISK_FREE_RATE = 2.0
BASE_VOLATILITY = 10.0
BASE_MAX_DRAWDOWN = 15.0
DEFAULT_BETA = 1.0
DEFAULT_BETA_PRICE = 100.0

# Months in which each payout frequency is assumed to pay.
PAYOUT_MONTHS: dict[int, frozenset[int]] = {
    1: frozenset({6}),
    2: frozenset({6, 12}),
    4: frozenset({3, 6, 9, 12}),
    12: frozenset(range(1, 13)),
}


@dataclass(frozen=True)
class DividendTrend:
    date: date
    annual_dividend: float
    yield_pct: float
    normal_dividend: float
    regular_dividend: float


@dataclass(frozen=True)
class UpcomingDividend:
    symbol: str
    name: str
    ex_dividend_date: date
    dividend_amount: float


@dataclass(frozen=True)
class PerformanceMetrics:
    total_return: float = 0.0
    total_return_percentage: float = 0.0
    time_weighted_return: float = 0.0
    average_holding_months: float = 0.0
    sharpe_ratio: float = 0.0


@dataclass(frozen=True)
class AssetAllocation:
    category: str
    amount: float
    percentage: float


@dataclass(frozen=True)
class MonthlyDividend:
    month: date
    amount: float
    normal_dividend: float
    regular_dividend: float


@dataclass(frozen=True)
class DividendGrowth:
    year: int
    annual_dividend: float
    growth_rate: float


@dataclass(frozen=True)
class RiskMetrics:
    volatility: float = 0.0
    beta: float = 1.0
    max_drawdown: float = 0.0
    sector_concentration: float = 0.0
    top_holdings_weight: float = 0.0


@dataclass
class InvestmentMetrics:
    total_investment: float = 0.0
    annual_dividend: float = 0.0
    average_yield: float = 0.0
    stock_count: int = 0
    trend_data: list[DividendTrend] = field(default_factory=list)
    top_performing: list[Holding] = field(default_factory=list)
    upcoming_dividends: list[UpcomingDividend] = field(default_factory=list)
    performance: PerformanceMetrics = field(default_factory=PerformanceMetrics)
    asset_allocation: list[AssetAllocation] = field(default_factory=list)
    monthly_dividends: list[MonthlyDividend] = field(default_factory=list)
    dividend_growth: list[DividendGrowth] = field(default_factory=list)
    risk: RiskMetrics = field(default_factory=RiskMetrics)


def trend_step_months(months: int) -> int:
    if months <= 3:
        return 1
    if months <= 12:
        return 2
    if months <= 36:
        return 6
    return 12


def next_ex_dividend_guess(frequency: int, after: date) -> date | None:
    """Next assumed ex-dividend date (the 15th of a payout month) following `after`."""
    y, m = after.year, after.month
    if frequency == 1:
        return date(y + 1 if m >= 6 else y, 6, 15)
    if frequency == 2:
        if m < 6:
            return date(y, 6, 15)
        if m < 12:
            return date(y, 12, 15)
        return date(y + 1, 6, 15)
    if frequency == 4:
        for q in (3, 6, 9, 12):
            if m < q:
                return date(y, q, 15)
        return date(y + 1, 3, 15)
    if frequency == 12:
        if after.day >= 15:
            return date(y + 1, 1, 15) if m == 12 else date(y, m + 1, 15)
        return date(y, m, 15)
    return None


def pays_in_month(frequency: int, month: int) -> bool:
    return month in PAYOUT_MONTHS.get(frequency, frozenset())


class RangeMetricsService:
    def __init__(self, holdings: list[Holding], manager: "PortfolioManager"):
        self.holdings = list(holdings)
        self.manager = manager

    def _in_range(self, start: date, end: date) -> list[Holding]:
        return [h for h in self.holdings if start <= h.purchase_date <= end]

    def _bought_by(self, on: date) -> list[Holding]:
        return [h for h in self.holdings if h.purchase_date <= on]

    @staticmethod
    def _range_shares(h: Holding, start: date, end: date) -> int:
        return h.shares + h.executed_regular_shares(since=start, on_or_before=end)

    def calculate(self, start: date, end: date) -> InvestmentMetrics:
        lots = self._in_range(start, end)
        invested = self.manager.total_investment(lots)
        dividend = self.manager.annual_dividend(lots)

        allocation = self.asset_allocation(start, end)
        return InvestmentMetrics(
            total_investment=invested,
            annual_dividend=dividend,
            average_yield=dividend / invested * 100.0 if invested > 0 else 0.0,
            stock_count=len({h.symbol for h in lots}),
            trend_data=self.trend_data(start, end),
            top_performing=self.top_performing(start, end),
            upcoming_dividends=self.upcoming_dividends(end),
            performance=self.performance(start, end),
            asset_allocation=allocation,
            monthly_dividends=self.monthly_dividends(start, end),
            dividend_growth=self.dividend_growth(start, end),
            risk=self.risk(start, end, allocation),
        )

    def trend_data(self, start: date, end: date) -> list[DividendTrend]:
        step = trend_step_months(max(1, months_between(start, end)))
        out: list[DividendTrend] = []
        n = 0
        current = start
        while current <= end:
            invested = annual = normal = regular = 0.0
            for h in self._bought_by(current):
                executed = h.regular_investment.executed(on_or_before=current) if h.regular_investment else []
                per_share = h.dividend_per_share * h.frequency
                normal_annual = h.shares * per_share
                regular_annual = sum(t.shares for t in executed) * per_share

                invested += h.shares * (h.purchase_price or 0.0) + sum(t.amount for t in executed)
                annual += normal_annual + regular_annual
                normal += normal_annual
                regular += regular_annual

            out.append(
                DividendTrend(
                    date=current,
                    annual_dividend=annual,
                    yield_pct=annual / invested * 100.0 if invested > 0 else 0.0,
                    normal_dividend=normal,
                    regular_dividend=regular,
                )
            )
            # Step from the start date so month-end clamping does not drift.
            n += 1
            current = add_months(start, step * n)
        return out

    def top_performing(self, start: date, end: date) -> list[Holding]:
        """One representative lot per symbol, ordered by the symbol's annual dividend."""
        lots = self._in_range(start, end)
        totals: dict[str, float] = defaultdict(float)
        first: dict[str, Holding] = {}
        for h in lots:
            totals[h.symbol] += self._range_shares(h, start, end) * h.dividend_per_share * h.frequency
            first.setdefault(h.symbol, h)
        ranked = sorted(totals, key=lambda s: totals[s], reverse=True)
        return [first[s] for s in ranked]

    def upcoming_dividends(self, end: date) -> list[UpcomingDividend]:
        horizon = add_months(end, 3)
        seen: set[str] = set()
        out: list[UpcomingDividend] = []
        for h in self._bought_by(end):
            if h.symbol in seen:
                continue
            nxt = next_ex_dividend_guess(h.frequency, end)
            if nxt is None or nxt > horizon:
                continue
            seen.add(h.symbol)
            out.append(UpcomingDividend(symbol=h.symbol, name=h.name, ex_dividend_date=nxt, dividend_amount=h.dividend_per_share))
        out.sort(key=lambda u: (u.ex_dividend_date, u.symbol))
        return out

    def performance(self, start: date, end: date) -> PerformanceMetrics:
        prices = self.manager.current_prices(self.holdings)
        lots = self._in_range(start, end)

        market_value = 0.0
        invested = 0.0
        for h in lots:
            regular_cost = h.executed_regular_amount(since=start, on_or_before=end)
            invested += h.shares * (h.purchase_price or 0.0) + regular_cost
            px = prices.get(h.symbol)
            if px is not None:
                market_value += self._range_shares(h, start, end) * px

        total_return = market_value - invested
        total_pct = total_return / invested * 100.0 if invested > 0 else 0.0

        horizon_end = min(self.manager.clock(), end)
        months = [max(0, months_between(max(h.purchase_date, start), horizon_end)) for h in lots]
        avg_months = sum(months) / max(1, len(months))

        vol = self.volatility(lots)
        return PerformanceMetrics(
            total_return=total_return,
            total_return_percentage=total_pct,
            time_weighted_return=self.time_weighted_return(lots, prices),
            average_holding_months=avg_months,
            sharpe_ratio=(total_pct - RISK_FREE_RATE) / vol if vol > 0 else 0.0,
        )

    @staticmethod
    def time_weighted_return(lots: list[Holding], prices: dict[str, float]) -> float:
        """Mean per-lot price return, discounted by 0.9, in percent."""
        total = 0.0
        for h in lots:
            px = prices.get(h.symbol)
            if px is None:
                continue
            cost = h.purchase_price if h.purchase_price else px
            if cost <= 0:
                continue
            total += (px - cost) / cost * 0.9
        return total / max(1, len(lots)) * 100.0

    def asset_allocation(self, start: date, end: date) -> list[AssetAllocation]:
        prices = self.manager.current_prices(self.holdings)
        amounts: dict[str, float] = defaultdict(float)
        total = 0.0
        for h in self._in_range(start, end):
            px = prices.get(h.symbol)
            if px is None:
                continue
            value = self._range_shares(h, start, end) * px
            amounts[sector_of(h.symbol)] += value
            total += value

        out = [
            AssetAllocation(category=sector, amount=amount, percentage=amount / total * 100.0 if total > 0 else 0.0)
            for sector, amount in amounts.items()
        ]
        out.sort(key=lambda a: a.percentage, reverse=True)
        return out

    def monthly_dividends(self, start: date, end: date) -> list[MonthlyDividend]:
        months = max(1, months_between(start, end))
        lots = self._bought_by(end)
        out: list[MonthlyDividend] = []
        for i in range(months):
            month = add_months(start, i)
            month_end = end_of_month(month)
            normal = regular = 0.0
            for h in lots:
                if not pays_in_month(h.frequency, month.month):
                    continue
                if h.purchase_date <= month_end:
                    normal += h.shares * h.dividend_per_share
                regular += h.executed_regular_shares(since=start, on_or_before=month_end) * h.dividend_per_share
            out.append(MonthlyDividend(month=month, amount=normal + regular, normal_dividend=normal, regular_dividend=regular))
        return out

    def dividend_growth(self, start: date, end: date) -> list[DividendGrowth]:
        last_year = max(start.year, end.year)
        yearly: dict[int, float] = {}
        for year in range(start.year, last_year + 1):
            year_end = date(year, 12, 31)
            yearly[year] = sum(
                (h.shares + h.executed_regular_shares(on_or_before=year_end)) * h.dividend_per_share * h.frequency
                for h in self._bought_by(min(end, year_end))
            )

        if start.year >= end.year:
            return [DividendGrowth(year=start.year, annual_dividend=yearly[start.year], growth_rate=0.0)]

        out: list[DividendGrowth] = []
        for year in range(start.year + 1, end.year + 1):
            prev = yearly.get(year - 1, 0.0)
            cur = yearly.get(year, 0.0)
            rate = (cur / prev - 1.0) * 100.0 if prev > 0 else -100.0
            out.append(DividendGrowth(year=year, annual_dividend=cur, growth_rate=rate))
        return out

    @staticmethod
    def volatility(lots: list[Holding]) -> float:
        diversification = 0.8 if len(lots) > 10 else 1.2
        risky = any(sector_of(h.symbol) in HIGH_VOLATILITY_SECTORS for h in lots)
        return BASE_VOLATILITY * diversification * (1.2 if risky else 0.9)

    @staticmethod
    def beta(lots: list[Holding]) -> float:
        """Cost-weighted beta; lots without a purchase price are valued at 100 per share."""
        total = weighted = 0.0
        for h in lots:
            value = h.shares * (h.purchase_price if h.purchase_price is not None else DEFAULT_BETA_PRICE)
            total += value
            weighted += BETAS.get(h.symbol, DEFAULT_BETA) * value
        return weighted / total if total > 0 else DEFAULT_BETA

    @staticmethod
    def max_drawdown(lots: list[Holding], start: date, end: date) -> float:
        symbols = len({h.symbol for h in lots})
        diversification = 0.7 if symbols > 10 else (0.85 if symbols > 5 else 1.0)
        months = max(1, months_between(start, end))
        horizon = 1.2 if months > 36 else (1.0 if months > 12 else 0.8)
        return BASE_MAX_DRAWDOWN * diversification * horizon

    def risk(self, start: date, end: date, allocation: list[AssetAllocation] | None = None) -> RiskMetrics:
        lots = self._in_range(start, end)
        if allocation is None:
            allocation = self.asset_allocation(start, end)
        return RiskMetrics(
            volatility=self.volatility(lots),
            beta=self.beta(lots),
            max_drawdown=self.max_drawdown(lots, start, end),
            sector_concentration=allocation[0].percentage if allocation else 0.0,
            top_holdings_weight=sum(a.percentage for a in allocation[:5]),
        )
