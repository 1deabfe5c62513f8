from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Iterable, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from divtrack.utils.dates import add_days, add_months, today as _today


class Frequency(str, Enum):
    """Schedule of a regular (dollar-cost averaging) investment plan."""

    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"

    def next_date(self, d: date) -> date:
        if self is Frequency.WEEKLY:
            return add_days(d, 7)
        if self is Frequency.MONTHLY:
            return add_months(d, 1)
        return add_months(d, 3)


# Dividend payouts per year a holding may declare.
PAYOUT_FREQUENCIES = (1, 2, 4, 12)


class RegularInvestmentTransaction(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    date: dt.date
    amount: float
    shares: int
    price: float
    is_executed: bool = False


class RegularInvestment(BaseModel):
    amount: float
    frequency: Frequency = Frequency.MONTHLY
    start_date: date
    end_date: Optional[date] = None
    is_active: bool = True
    note: Optional[str] = None
    transactions: Optional[list[RegularInvestmentTransaction]] = None

    def investment_dates(self, today: date | None = None) -> list[date]:
        """Every scheduled date from start up to end_date (or today when open-ended)."""
        stop = self.end_date or (today or _today())
        out: list[date] = []
        current = self.start_date
        while current <= stop:
            out.append(current)
            current = self.frequency.next_date(current)
        return out

    def executed(self, *, on_or_before: date | None = None, since: date | None = None) -> list[RegularInvestmentTransaction]:
        out = []
        for t in self.transactions or []:
            if not t.is_executed:
                continue
            if on_or_before is not None and t.date > on_or_before:
                continue
            if since is not None and t.date < since:
                continue
            out.append(t)
        return out

    @property
    def total_investment_amount(self) -> float:
        return sum(t.amount for t in self.transactions or [])

    @property
    def total_shares(self) -> int:
        return sum(t.shares for t in self.transactions or [])

    @property
    def average_cost(self) -> float | None:
        if self.total_shares <= 0:
            return None
        return self.total_investment_amount / self.total_shares


class Holding(BaseModel):
    """One purchase lot of a stock at a bank, optionally carrying a regular investment plan."""

    id: UUID = Field(default_factory=uuid4)
    symbol: str
    name: str
    shares: int
    dividend_per_share: float
    dividend_year: int
    is_historical: bool = False
    frequency: int = 1
    purchase_date: date = Field(default_factory=_today)
    purchase_price: Optional[float] = None
    bank_id: UUID
    regular_investment: Optional[RegularInvestment] = None

    @property
    def total_shares(self) -> int:
        if self.regular_investment is not None:
            return self.shares + self.regular_investment.total_shares
        return self.shares

    def executed_regular_shares(self, *, on_or_before: date | None = None, since: date | None = None) -> int:
        if self.regular_investment is None:
            return 0
        return sum(t.shares for t in self.regular_investment.executed(on_or_before=on_or_before, since=since))

    def executed_regular_amount(self, *, on_or_before: date | None = None, since: date | None = None) -> float:
        if self.regular_investment is None:
            return 0.0
        return sum(t.amount for t in self.regular_investment.executed(on_or_before=on_or_before, since=since))

    def annual_dividend(self) -> float:
        return float(self.total_shares) * self.dividend_per_share * float(self.frequency)

    def total_cost(self) -> float | None:
        if self.purchase_price is None:
            return None
        return float(self.shares) * self.purchase_price

    def average_cost(self) -> float | None:
        cost = 0.0
        shares = 0
        if self.purchase_price is not None:
            cost += float(self.shares) * self.purchase_price
            shares += self.shares
        if self.regular_investment is not None:
            cost += self.regular_investment.total_investment_amount
            shares += self.regular_investment.total_shares
        if shares <= 0:
            return None
        return cost / shares

    def profit_loss(self, current_price: float) -> float:
        avg = self.average_cost()
        if avg is None:
            return 0.0
        return float(self.total_shares) * (current_price - avg)

    def roi(self, current_price: float) -> float:
        avg = self.average_cost()
        if avg is None or avg <= 0:
            return 0.0
        return (current_price - avg) / avg * 100.0


class Bank(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    name: str
    created_date: datetime = Field(default_factory=datetime.now)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Bank) and other.id == self.id

    def __hash__(self) -> int:
        return hash(self.id)


class WatchStock(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    symbol: str
    name: str
    added_date: datetime = Field(default_factory=datetime.now)
    list_name: str


class GrowthPoint(BaseModel):
    year: float  # fractional, e.g. 0.25 = end of the first quarter
    amount: float
    principal: float


class InvestmentPlan(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    title: str
    target_amount: float
    current_amount: float = 0.0
    target_year: int
    symbol: str
    investment_years: int
    investment_frequency: int
    created_date: datetime = Field(default_factory=datetime.now)
    required_amount: float
    projection_data: Optional[list[GrowthPoint]] = None

    @property
    def completion_percentage(self) -> float:
        if self.target_amount <= 0:
            return 0.0
        return min(100.0, self.current_amount / self.target_amount * 100.0)

    def frequency_label(self) -> str:
        return {1: "year", 4: "quarter", 12: "month"}.get(self.investment_frequency, "period")


@dataclass(frozen=True)
class WeightedStockInfo:
    """Lots of one symbol merged into a share-weighted view."""

    symbol: str
    name: str
    total_shares: int
    weighted_dividend_per_share: float
    frequency: int
    details: list[Holding] = field(default_factory=list)

    @property
    def weighted_purchase_price(self) -> float | None:
        priced = [h for h in self.details if h.purchase_price is not None]
        shares = sum(h.shares for h in priced)
        if not priced or shares == 0:
            return None
        return sum(float(h.purchase_price) * h.shares for h in priced) / shares

    def total_annual_dividend(self) -> float:
        return float(self.total_shares) * self.weighted_dividend_per_share * float(self.frequency)

    def total_value(self) -> float | None:
        px = self.weighted_purchase_price
        if px is None:
            return None
        return float(self.total_shares) * px


def weighted_average(holdings: Iterable[Holding], bank_id: UUID | None = None) -> list[WeightedStockInfo]:
    lots = [h for h in holdings if bank_id is None or h.bank_id == bank_id]
    groups: dict[str, list[Holding]] = {}
    for h in lots:
        groups.setdefault(h.symbol, []).append(h)

    out: list[WeightedStockInfo] = []
    for symbol, group in groups.items():
        total = sum(h.total_shares for h in group)
        weighted = sum(h.dividend_per_share * h.total_shares for h in group) / total if total > 0 else 0.0
        out.append(
            WeightedStockInfo(
                symbol=symbol,
                name=group[0].name,
                total_shares=total,
                weighted_dividend_per_share=weighted,
                # Lots of one symbol share a payout schedule.
                frequency=group[0].frequency,
                details=group,
            )
        )
    out.sort(key=lambda w: w.symbol)
    return out


@dataclass(frozen=True)
class BankPortfolioMetrics:
    total_value: float
    total_investment: float
    total_profit_loss: float
    total_roi: float
    annual_dividend: float
    dividend_yield: float
    daily_change: float
    daily_change_percentage: float
    stock_count: int
    regular_investment_count: int
    normal_stock_count: int
