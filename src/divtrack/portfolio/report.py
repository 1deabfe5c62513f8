from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Callable, Iterable

import pandas as pd

from divtrack.models import Holding
from divtrack.portfolio.manager import PriceService
from divtrack.utils.dates import add_days, days_between


@dataclass(frozen=True)
class ReportDataPoint:
    date: date
    percentage: float
    amount: float


@dataclass(frozen=True)
class ReportSummary:
    current: float = 0.0
    average: float = 0.0
    minimum: float = 0.0
    maximum: float = 0.0


@dataclass(frozen=True)
class AmountSummary:
    current: float = 0.0
    average: float = 0.0
    total: float = 0.0


def sample_interval_days(span_days: int) -> int:
    if span_days <= 90:
        return 7
    if span_days <= 365:
        return 14
    if span_days <= 1095:
        return 30
    return 60


def sample_dates(start: date, end: date) -> list[date]:
    """Every `sample_interval_days` from start, plus end if the stride skips it."""
    if end < start:
        return []
    step = sample_interval_days(days_between(start, end))
    out: list[date] = []
    current = start
    while current <= end:
        out.append(current)
        current = add_days(current, step)
    if out[-1] != end:
        out.append(end)
    return out


class ReportService:
    def __init__(self, price_service: PriceService):
        self.price_service = price_service

    def _series(
        self,
        holdings: Iterable[Holding],
        start: date,
        end: date,
        point: Callable[[list[Holding], date], tuple[float, float]],
    ) -> list[ReportDataPoint]:
        holdings = list(holdings)
        out = []
        for d in sample_dates(start, end):
            pct, amount = point([h for h in holdings if h.purchase_date <= d], d)
            out.append(ReportDataPoint(date=d, percentage=pct, amount=amount))
        return out

    def investment_return_point(self, holdings: list[Holding], on: date) -> tuple[float, float]:
        """(return %, unrealized P/L) of lots held on `on`, valued at that day's price."""
        invested = market = 0.0
        for h in holdings:
            px = self.price_service.get_stock_price(h.symbol, on)
            if px is None:
                continue
            if h.purchase_price is not None:
                invested += h.shares * h.purchase_price
                market += h.shares * px
            if h.regular_investment is not None:
                for t in h.regular_investment.executed(on_or_before=on):
                    invested += t.amount
                    market += t.shares * px
        pnl = market - invested
        return (pnl / invested * 100.0 if invested > 0 else 0.0), pnl

    @staticmethod
    def dividend_yield_point(holdings: list[Holding], on: date) -> tuple[float, float]:
        """(annual dividend / cost %, annual dividend) of lots held on `on`."""
        invested = annual = 0.0
        for h in holdings:
            per_share = h.dividend_per_share * h.frequency
            if h.purchase_price is not None:
                invested += h.shares * h.purchase_price
                annual += h.shares * per_share
            if h.regular_investment is not None:
                for t in h.regular_investment.executed(on_or_before=on):
                    invested += t.amount
                    annual += t.shares * per_share
        return (annual / invested * 100.0 if invested > 0 else 0.0), annual

    def investment_return_series(self, holdings: Iterable[Holding], start: date, end: date) -> list[ReportDataPoint]:
        return self._series(holdings, start, end, self.investment_return_point)

    def dividend_yield_series(self, holdings: Iterable[Holding], start: date, end: date) -> list[ReportDataPoint]:
        return self._series(holdings, start, end, self.dividend_yield_point)

    @staticmethod
    def summary(points: list[ReportDataPoint]) -> ReportSummary:
        if not points:
            return ReportSummary()
        pcts = [p.percentage for p in points]
        return ReportSummary(current=pcts[-1], average=sum(pcts) / len(pcts), minimum=min(pcts), maximum=max(pcts))

    @staticmethod
    def amount_summary(points: list[ReportDataPoint]) -> AmountSummary:
        if not points:
            return AmountSummary()
        total = sum(p.amount for p in points)
        return AmountSummary(current=points[-1].amount, average=total / len(points), total=total)

    @staticmethod
    def to_frame(points: list[ReportDataPoint]) -> pd.DataFrame:
        df = pd.DataFrame(
            [{"date": p.date, "percentage": p.percentage, "amount": p.amount} for p in points],
            columns=["date", "percentage", "amount"],
        )
        if not df.empty:
            df["date"] = pd.to_datetime(df["date"])
        return df

    @staticmethod
    def time_range_title(start: date, end: date, custom: bool, label: str) -> str:
        if custom:
            return f"{start:%Y/%m/%d} - {end:%Y/%m/%d}"
        return label
