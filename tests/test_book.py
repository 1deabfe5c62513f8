from __future__ import annotations

from datetime import date
from uuid import UUID

import pytest

from divtrack.data.local import LocalStockService
from divtrack.data.repository import StockRepository
from divtrack.errors import NotFoundError, ValidationError
from divtrack.models import Bank, Frequency
from divtrack.planning.goal import GoalCalculator
from divtrack.portfolio.book import PortfolioBook
from divtrack.portfolio.manager import PortfolioManager

from conftest import TODAY, FixedPriceService


@pytest.fixture
def book(store, offline_settings):
    repo = StockRepository(offline_settings, local=LocalStockService())
    manager = PortfolioManager(FixedPriceService({"2330": 600.0, "0050": 150.0}), clock=lambda: TODAY)
    return PortfolioBook(store, repo, manager, clock=lambda: TODAY)


# =============================================================================
# Banks
# =============================================================================

def test_add_and_find_banks(book):
    cathay = book.add_bank(" Cathay ")
    assert cathay.name == "Cathay"
    assert book.find_bank("Cathay").id == cathay.id
    assert book.find_bank(str(cathay.id)[:6]).id == cathay.id

    with pytest.raises(ValidationError):
        book.add_bank("Cathay")
    with pytest.raises(ValidationError):
        book.add_bank("  ")
    with pytest.raises(NotFoundError):
        book.find_bank("Nope")


def test_ambiguous_id_prefix(book, store):
    store.save_banks(
        [
            Bank(id=UUID("abcd0000-0000-4000-8000-000000000001"), name="One"),
            Bank(id=UUID("abcd0000-0000-4000-8000-000000000002"), name="Two"),
        ]
    )
    with pytest.raises(ValidationError):
        book.find_bank("abcd")
    assert book.find_bank("abcd0000-0000-4000-8000-000000000002").name == "Two"


def test_rename_and_move_banks(book):
    book.add_bank("A")
    book.add_bank("B")
    book.add_bank("C")

    assert book.rename_bank("A", "A").name == "A"
    with pytest.raises(ValidationError):
        book.rename_bank("A", "B")
    book.rename_bank("A", "Alpha")

    assert [b.name for b in book.move_bank("C", 0)] == ["C", "Alpha", "B"]
    assert [b.name for b in book.move_bank("C", 99)] == ["Alpha", "B", "C"]
    assert [b.name for b in book.banks()] == ["Alpha", "B", "C"]


def test_delete_bank_removes_its_holdings(book):
    book.add_bank("A")
    book.add_bank("B")
    book.add_holding("A", "2330", "10", purchase_price=500.0)
    book.add_holding("A", "0050", "5", purchase_price=120.0)
    kept = book.add_holding("B", "2330", "1", purchase_price=500.0)

    bank, removed = book.delete_bank("A")
    assert bank.name == "A"
    assert removed == 2
    assert [h.id for h in book.holdings()] == [kept.id]
    assert [b.name for b in book.banks()] == ["B"]


# =============================================================================
# Holdings
# =============================================================================

def test_add_holding_looks_up_stock_details(book):
    bank = book.add_bank("A")
    h = book.add_holding("A", " 2330 ", "100", purchase_price=500.0, purchase_date=date(2025, 1, 10))

    assert (h.symbol, h.name, h.dividend_per_share, h.frequency) == ("2330", "TSMC", 2.75, 4)
    assert h.bank_id == bank.id
    assert h.shares == 100
    assert h.dividend_year == 2025
    assert h.purchase_date == date(2025, 1, 10)
    assert book.find_holding(str(h.id)[:8]).id == h.id


def test_add_holding_with_explicit_details(book):
    book.add_bank("A")
    h = book.add_holding("A", "xyz", 3, name="Custom", dividend_per_share=1.0, frequency=12)
    assert (h.symbol, h.name, h.frequency, h.purchase_date) == ("XYZ", "Custom", 12, TODAY)
    assert h.purchase_price is None


@pytest.mark.parametrize(
    "symbol,shares,kwargs,error",
    [
        ("9999", "10", {}, NotFoundError),
        ("2330", "0", {}, ValidationError),
        ("2330", "ten", {}, ValidationError),
        ("2330", "10", {"frequency": 3}, ValidationError),
        ("2330", "10", {"purchase_price": 0.0}, ValidationError),
        ("  ", "10", {}, ValidationError),
    ],
)
def test_add_holding_rejects_bad_input(book, symbol, shares, kwargs, error):
    book.add_bank("A")
    with pytest.raises(error):
        book.add_holding("A", symbol, shares, **kwargs)
    assert book.holdings() == []


def test_remove_holding(book):
    book.add_bank("A")
    h = book.add_holding("A", "2330", "10")
    assert book.remove_holding(str(h.id)).id == h.id
    assert book.holdings() == []
    with pytest.raises(NotFoundError):
        book.remove_holding(str(h.id))


def test_regular_investment_refresh_and_reschedule(book):
    book.add_bank("A")
    h = book.add_holding("A", "0050", "10", purchase_price=120.0)

    book.set_regular_investment(str(h.id), 3000.0, Frequency.MONTHLY, start_date=date(2025, 4, 1), note="salary")
    assert book.refresh_regular_investments() == 3

    stored = book.find_holding(str(h.id))
    txns = stored.regular_investment.transactions
    assert [t.date for t in txns] == [date(2025, 4, 1), date(2025, 5, 1), date(2025, 6, 1)]
    assert all(t.shares == 20 for t in txns)
    assert stored.regular_investment.note == "salary"

    # Changing the schedule keeps what already executed.
    book.set_regular_investment(str(h.id), 6000.0, Frequency.QUARTERLY, start_date=date(2025, 6, 20))
    stored = book.find_holding(str(h.id))
    assert len(stored.regular_investment.transactions) == 3
    assert book.refresh_regular_investments() == 1
    assert book.refresh_regular_investments() == 0


def test_regular_investment_validation(book):
    book.add_bank("A")
    h = book.add_holding("A", "0050", "10")
    with pytest.raises(ValidationError):
        book.set_regular_investment(str(h.id), 0.0)
    with pytest.raises(ValidationError):
        book.set_regular_investment(str(h.id), 1000.0, start_date=date(2025, 6, 1), end_date=date(2025, 5, 1))


def test_refresh_requires_price_source(store):
    with pytest.raises(ValidationError):
        PortfolioBook(store).refresh_regular_investments()


# =============================================================================
# Watchlists
# =============================================================================

def test_watchlist_defaults_and_add(book):
    assert book.watchlist_names() == ["Watchlist 1"]
    w = book.add_watch_stock("2330")
    assert (w.symbol, w.name, w.list_name) == ("2330", "TSMC", "Watchlist 1")

    with pytest.raises(ValidationError, match="already in the watchlist"):
        book.add_watch_stock("2330")
    with pytest.raises(NotFoundError):
        book.add_watch_stock("9999")
    with pytest.raises(NotFoundError):
        book.add_watch_stock("2454", "Missing")

    book.add_watchlist("Income")
    book.add_watch_stock("2330", "Income")
    assert len(book.watchlist()) == 2
    assert [x.list_name for x in book.watchlist("Income")] == ["Income"]


def test_watchlist_names_are_unique(book):
    with pytest.raises(ValidationError):
        book.add_watchlist("Watchlist 1")
    with pytest.raises(ValidationError):
        book.add_watchlist(" ")


def test_rename_watchlist_moves_stocks(book):
    book.add_watch_stock("2330")
    assert book.rename_watchlist("Watchlist 1", "Core") == ["Core"]
    assert [w.list_name for w in book.watchlist()] == ["Core"]
    with pytest.raises(NotFoundError):
        book.rename_watchlist("Watchlist 1", "Other")


def test_delete_watchlist(book):
    with pytest.raises(ValidationError):
        book.delete_watchlist("Watchlist 1")

    book.add_watchlist("Income")
    book.add_watch_stock("2330", "Income")
    book.add_watch_stock("2412")
    assert book.delete_watchlist("Income") == ["Watchlist 1"]
    assert [w.symbol for w in book.watchlist()] == ["2412"]


def test_remove_watch_stock(book):
    book.add_watch_stock("2330")
    assert book.remove_watch_stock("2330") == 1
    with pytest.raises(NotFoundError):
        book.remove_watch_stock("2330")


# =============================================================================
# Plans
# =============================================================================

def test_plan_lifecycle(book):
    goals = GoalCalculator()
    plan = book.save_plan(goals.create_plan("House", 1_000_000, "0050", 10, 12, today=TODAY))
    assert book.find_plan("House").id == plan.id

    updated = book.update_plan_amount("House", 250_000)
    assert updated.completion_percentage == 25.0
    with pytest.raises(ValidationError):
        book.update_plan_amount("House", -1)

    assert book.rename_plan(str(plan.id)[:8], "Home").title == "Home"
    with pytest.raises(ValidationError):
        book.rename_plan("Home", " ")

    # Saving again replaces rather than duplicates.
    book.save_plan(book.find_plan("Home"))
    assert len(book.plans()) == 1

    assert book.delete_plan("Home").id == plan.id
    assert book.plans() == []
    with pytest.raises(NotFoundError):
        book.find_plan("Home")
