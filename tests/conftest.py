"""
Pytest configuration and shared fixtures for divtrack tests.

Usage:
    @pytest.fixture functions are automatically available to all tests.
    Import helpers from conftest when needed.
"""
import sys
from datetime import date
from pathlib import Path
from typing import Optional
from uuid import UUID, uuid4

import pytest


def pytest_configure():
    """
    Ensure `src/` is on sys.path for the src-layout package import (`divtrack`).
    This keeps tests runnable without requiring an editable install.
    """
    root = Path(__file__).resolve().parents[1]
    src = root / "src"
    if src.exists():
        sys.path.insert(0, str(src))


TODAY = date(2025, 6, 20)


# =============================================================================
# Price service stubs
# =============================================================================

class FixedPriceService:
    """Price service returning a fixed price per symbol, with optional per-date overrides."""

    def __init__(self, prices: dict[str, float], by_date: Optional[dict[tuple[str, date], float]] = None):
        self.prices = dict(prices)
        self.by_date = dict(by_date or {})
        self.calls: list[tuple[str, date]] = []

    def get_stock_price(self, symbol: str, on: date) -> Optional[float]:
        self.calls.append((symbol, on))
        if (symbol, on) in self.by_date:
            return self.by_date[(symbol, on)]
        return self.prices.get(symbol)


class FakeDividendClient:
    """
    Stands in for DividendApiClient. Each call consumes the next result:
    a list of raw rows, or an exception to raise. The last result repeats.
    """

    def __init__(self, *results):
        self.results = list(results) or [[]]
        self.calls: list[str] = []

    def get_dividend_data(self, symbol: str, *, use_cache: bool = True):
        from divtrack.data.api import DividendResponse

        self.calls.append(symbol)
        result = self.results[min(len(self.calls), len(self.results)) - 1]
        if isinstance(result, Exception):
            raise result
        return DividendResponse.parse(result)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def store(tmp_path: Path):
    from divtrack.storage.store import DataStore

    return DataStore(tmp_path / "store")


@pytest.fixture
def offline_settings(tmp_path: Path):
    from divtrack.config import Settings

    return Settings(DIVTRACK_DATA_DIR=str(tmp_path), DIVTRACK_OFFLINE=True, DIVTRACK_API_BASE_URL=None)


@pytest.fixture
def online_settings(tmp_path: Path):
    from divtrack.config import Settings

    return Settings(
        DIVTRACK_DATA_DIR=str(tmp_path),
        DIVTRACK_OFFLINE=False,
        DIVTRACK_API_BASE_URL="https://dividends.example.test/",
        DIVTRACK_API_MAX_RETRIES=2,
        DIVTRACK_API_RETRY_DELAY=0.0,
    )


@pytest.fixture
def bank_id() -> UUID:
    return uuid4()


# =============================================================================
# Test Data Helpers
# =============================================================================

def make_holding(
    symbol: str = "2330",
    shares: int = 100,
    dividend_per_share: float = 2.75,
    frequency: int = 4,
    purchase_price: Optional[float] = 500.0,
    purchase_date: date = date(2025, 1, 10),
    bank_id: Optional[UUID] = None,
    transactions: Optional[list[tuple[date, float, int, bool]]] = None,
    plan_amount: float = 10000.0,
    name: Optional[str] = None,
):
    """
    Create a Holding, optionally with a regular investment plan.

    Usage:
        h = make_holding(shares=10, transactions=[(date(2025, 2, 1), 5000.0, 9, True)])
    """
    from divtrack.models import Holding, RegularInvestment, RegularInvestmentTransaction

    plan = None
    if transactions is not None:
        plan = RegularInvestment(
            amount=plan_amount,
            start_date=purchase_date,
            transactions=[
                RegularInvestmentTransaction(date=d, amount=amt, shares=sh, price=amt / sh if sh else 0.0, is_executed=ex)
                for d, amt, sh, ex in transactions
            ],
        )
    return Holding(
        symbol=symbol,
        name=name or f"Stock {symbol}",
        shares=shares,
        dividend_per_share=dividend_per_share,
        dividend_year=purchase_date.year,
        frequency=frequency,
        purchase_date=purchase_date,
        purchase_price=purchase_price,
        bank_id=bank_id or uuid4(),
        regular_investment=plan,
    )


def dividend_row(
    year: str = "2024",
    period: str = "Q1",
    total_cash: float = 4.5,
    total: float = 4.5,
    ex_date: str = "'24/06/13",
    pay_date: Optional[str] = "'24/07/11",
    ref_price: Optional[float] = 850.0,
    symbol: str = "2330",
) -> dict:
    """Raw dividend table row as returned by the REST service."""
    return {
        "id": f"{symbol}-{year}-{period}",
        "date": "2024-06-01",
        "stock_symbol": symbol,
        "dividend_year": year,
        "dividend_period": period,
        "shareholders_meeting_date": "'24/05/28",
        "ex_dividend_date": ex_date,
        "ex_dividend_reference_price": ref_price,
        "cash_dividend_distribution_date": pay_date,
        "cash_dividend_earnings": total_cash,
        "cash_dividend_capital_surplus": None,
        "total_cash_dividend": total_cash,
        "total_dividend": total,
    }
