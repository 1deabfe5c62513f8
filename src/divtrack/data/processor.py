from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable
from uuid import UUID, uuid4

from divtrack.data.api import DividendRecord

UNSPECIFIED_PERIOD = "unspecified"


@dataclass(frozen=True)
class ProcessedDividend:
    symbol: str
    dividend_year: str
    dividend_period: str
    ex_dividend_date: date | None
    distribution_date: date | None
    ex_dividend_price: float
    cash_dividend: float
    capital_surplus_dividend: float
    total_cash_dividend: float
    id: UUID = field(default_factory=uuid4)


def process_dividend_data(records: Iterable[DividendRecord]) -> list[ProcessedDividend]:
    """Normalize raw rows: parsed dates, missing numbers as 0, blank period labelled."""
    out: list[ProcessedDividend] = []
    for r in records:
        out.append(
            ProcessedDividend(
                symbol=r.stock_symbol,
                dividend_year=r.dividend_year,
                dividend_period=r.dividend_period or UNSPECIFIED_PERIOD,
                ex_dividend_date=r.ex_dividend_date_obj,
                distribution_date=r.distribution_date_obj,
                ex_dividend_price=r.ex_dividend_reference_price or 0.0,
                cash_dividend=r.cash_dividend_earnings or 0.0,
                capital_surplus_dividend=r.cash_dividend_capital_surplus or 0.0,
                total_cash_dividend=r.total_cash_dividend,
            )
        )
    return out


def dividend_frequency(records: Iterable[DividendRecord]) -> int:
    """
    Payouts per year, inferred from how many rows the latest three dividend
    years carry on average.
    """
    by_year: dict[str, int] = defaultdict(int)
    for r in records:
        by_year[r.dividend_year] += 1

    years = sorted(by_year, reverse=True)[:3]
    if not years:
        return 1
    avg = sum(by_year[y] for y in years) / len(years)
    if avg >= 3.5:
        return 4
    if avg >= 1.5:
        return 2
    return 1


def dividend_per_share(records: Iterable[DividendRecord]) -> float:
    """Total cash dividend over the latest dividend year."""
    rows = list(records)
    years = [r.year for r in rows if r.year is not None]
    latest = max(years) if years else 0
    return sum(r.total_cash_dividend for r in rows if (r.year or 0) == latest)
