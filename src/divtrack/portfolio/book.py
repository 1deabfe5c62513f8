"""
Create/update/delete operations over the persisted portfolio.

Every mutating call loads the affected collection, applies the change and
writes it back, so the store is the only state. Lookups accept an exact name
(banks, plans) or a unique id prefix.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Iterable, Sequence, TypeVar

from divtrack.data.repository import StockRepository
from divtrack.errors import NotFoundError, ValidationError
from divtrack.models import PAYOUT_FREQUENCIES, Bank, Frequency, Holding, InvestmentPlan, RegularInvestment, WatchStock
from divtrack.portfolio.manager import PortfolioManager
from divtrack.storage.store import DataStore
from divtrack.utils.dates import today as _today
from divtrack.validation import NotEmptyRule, validate, validate_bank_name, validate_shares

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _resolve(items: Sequence[T], ref: str, kind: str, name: Callable[[T], str] | None = None) -> T:
    ref = ref.strip()
    if name is not None:
        for item in items:
            if name(item) == ref:
                return item
    matches = [item for item in items if str(getattr(item, "id")).startswith(ref.lower())] if ref else []
    if len(matches) == 1:
        return matches[0]
    if len(matches) > 1:
        raise ValidationError(f"Ambiguous {kind} id prefix: {ref}")
    raise NotFoundError(f"No {kind} matches {ref!r}")


class PortfolioBook:
    def __init__(
        self,
        store: DataStore,
        repository: StockRepository | None = None,
        manager: PortfolioManager | None = None,
        clock: Callable[[], date] = _today,
    ):
        self.store = store
        self.repository = repository
        self.manager = manager
        self._clock = clock

    # ------------------------------------------------------------------
    # Banks
    # ------------------------------------------------------------------

    def banks(self) -> list[Bank]:
        return self.store.load_banks()

    def find_bank(self, ref: str) -> Bank:
        return _resolve(self.banks(), ref, "bank", lambda b: b.name)

    def add_bank(self, name: str) -> Bank:
        banks = self.banks()
        validate_bank_name(name, banks).raise_for_failure()
        bank = Bank(name=name.strip())
        banks.append(bank)
        self.store.save_banks(banks)
        return bank

    def rename_bank(self, ref: str, new_name: str) -> Bank:
        banks = self.banks()
        bank = _resolve(banks, ref, "bank", lambda b: b.name)
        validate_bank_name(new_name, banks, exclude_id=bank.id).raise_for_failure()
        renamed = bank.model_copy(update={"name": new_name.strip()})
        self.store.save_banks([renamed if b.id == bank.id else b for b in banks])
        return renamed

    def delete_bank(self, ref: str) -> tuple[Bank, int]:
        """Delete a bank and every holding recorded under it. Returns the bank and the holdings removed."""
        banks = self.banks()
        bank = _resolve(banks, ref, "bank", lambda b: b.name)
        holdings = self.holdings()
        kept = [h for h in holdings if h.bank_id != bank.id]
        self.store.save_holdings(kept)
        self.store.save_banks([b for b in banks if b.id != bank.id])
        return bank, len(holdings) - len(kept)

    def move_bank(self, ref: str, position: int) -> list[Bank]:
        """Move a bank to a 0-based position in the display order (clamped)."""
        banks = self.banks()
        bank = _resolve(banks, ref, "bank", lambda b: b.name)
        banks = [b for b in banks if b.id != bank.id]
        banks.insert(max(0, min(position, len(banks))), bank)
        self.store.save_banks(banks)
        return banks

    # ------------------------------------------------------------------
    # Holdings
    # ------------------------------------------------------------------

    def holdings(self) -> list[Holding]:
        return self.store.load_holdings()

    def find_holding(self, ref: str) -> Holding:
        return _resolve(self.holdings(), ref, "holding")

    def add_holding(
        self,
        bank_ref: str,
        symbol: str,
        shares: str | int,
        *,
        name: str | None = None,
        dividend_per_share: float | None = None,
        frequency: int | None = None,
        purchase_price: float | None = None,
        purchase_date: date | None = None,
    ) -> Holding:
        bank = self.find_bank(bank_ref)
        validate_shares(str(shares)).raise_for_failure()
        symbol = symbol.strip().upper()
        validate(symbol, [NotEmptyRule("Symbol")]).raise_for_failure()
        today = self._clock()

        if name is None or dividend_per_share is None or frequency is None:
            if self.repository is None:
                raise ValidationError(f"Name, dividend and frequency are required for {symbol}")
            info = self.repository.get_stock_info(symbol, today)
            name = name or info.name
            dividend_per_share = dividend_per_share if dividend_per_share is not None else info.dividend_per_share
            frequency = frequency or info.frequency

        if not name:
            raise NotFoundError(f"Unknown stock symbol: {symbol}")
        if frequency not in PAYOUT_FREQUENCIES:
            raise ValidationError(f"Payout frequency must be one of {PAYOUT_FREQUENCIES}")
        if purchase_price is not None and purchase_price <= 0:
            raise ValidationError("Purchase price must be greater than 0")

        holding = Holding(
            symbol=symbol,
            name=name,
            shares=int(str(shares).strip()),
            dividend_per_share=float(dividend_per_share or 0.0),
            dividend_year=today.year,
            frequency=int(frequency),
            purchase_date=purchase_date or today,
            purchase_price=purchase_price,
            bank_id=bank.id,
        )
        holdings = self.holdings()
        holdings.append(holding)
        self.store.save_holdings(holdings)
        return holding

    def remove_holding(self, ref: str) -> Holding:
        holdings = self.holdings()
        target = _resolve(holdings, ref, "holding")
        self.store.save_holdings([h for h in holdings if h.id != target.id])
        return target

    def set_regular_investment(
        self,
        ref: str,
        amount: float,
        frequency: Frequency = Frequency.MONTHLY,
        *,
        start_date: date | None = None,
        end_date: date | None = None,
        note: str | None = None,
        active: bool = True,
    ) -> Holding:
        if amount <= 0:
            raise ValidationError("Regular investment amount must be greater than 0")
        start = start_date or self._clock()
        if end_date is not None and end_date < start:
            raise ValidationError("End date must not precede start date")

        holdings = self.holdings()
        target = _resolve(holdings, ref, "holding")
        previous = target.regular_investment
        plan = RegularInvestment(
            amount=float(amount),
            frequency=frequency,
            start_date=start,
            end_date=end_date,
            is_active=active,
            note=note,
            # Keep executed history when only the schedule changes.
            transactions=[t for t in (previous.transactions or []) if t.is_executed] if previous else None,
        )
        updated = target.model_copy(update={"regular_investment": plan})
        self.store.save_holdings([updated if h.id == target.id else h for h in holdings])
        return updated

    def refresh_regular_investments(self) -> int:
        """Fill in missing scheduled transactions for every holding. Returns how many were added."""
        if self.manager is None:
            raise ValidationError("A price source is required to refresh regular investments")
        today = self._clock()
        added = 0
        refreshed: list[Holding] = []
        for h in self.holdings():
            before = len(h.regular_investment.transactions or []) if h.regular_investment else 0
            h = self.manager.update_regular_investment(h, today)
            after = len(h.regular_investment.transactions or []) if h.regular_investment else 0
            added += after - before
            refreshed.append(h)
        self.store.save_holdings(refreshed)
        logger.debug("Added %d regular investment transaction(s)", added)
        return added

    # ------------------------------------------------------------------
    # Watchlists
    # ------------------------------------------------------------------

    def watchlist_names(self) -> list[str]:
        return self.store.load_watchlist_names()

    def watchlist(self, list_name: str | None = None) -> list[WatchStock]:
        items = self.store.load_watchlist()
        if list_name is None:
            return items
        return [w for w in items if w.list_name == list_name]

    def _check_list_name(self, name: str, names: Iterable[str]) -> str:
        name = name.strip()
        validate(name, [NotEmptyRule("List name")]).raise_for_failure()
        if name in names:
            raise ValidationError(f"A watchlist named {name!r} already exists")
        return name

    def _require_list(self, name: str) -> list[str]:
        names = self.watchlist_names()
        if name not in names:
            raise NotFoundError(f"No watchlist named {name!r}")
        return names

    def add_watchlist(self, name: str) -> list[str]:
        names = self.watchlist_names()
        names.append(self._check_list_name(name, names))
        self.store.save_watchlist_names(names)
        return names

    def rename_watchlist(self, old: str, new: str) -> list[str]:
        names = self._require_list(old)
        new = self._check_list_name(new, [n for n in names if n != old])
        names = [new if n == old else n for n in names]
        items = [w.model_copy(update={"list_name": new}) if w.list_name == old else w for w in self.store.load_watchlist()]
        self.store.save_watchlist(items)
        self.store.save_watchlist_names(names)
        return names

    def delete_watchlist(self, name: str) -> list[str]:
        names = self._require_list(name)
        if len(names) <= 1:
            raise ValidationError("The last watchlist cannot be deleted")
        self.store.save_watchlist([w for w in self.store.load_watchlist() if w.list_name != name])
        names = [n for n in names if n != name]
        self.store.save_watchlist_names(names)
        return names

    def add_watch_stock(self, symbol: str, list_name: str | None = None, name: str | None = None) -> WatchStock:
        names = self.watchlist_names()
        list_name = list_name or names[0]
        if list_name not in names:
            raise NotFoundError(f"No watchlist named {list_name!r}")
        symbol = symbol.strip().upper()
        validate(symbol, [NotEmptyRule("Symbol")]).raise_for_failure()

        items = self.store.load_watchlist()
        if any(w.symbol == symbol and w.list_name == list_name for w in items):
            raise ValidationError("This stock is already in the watchlist")

        if name is None and self.repository is not None:
            name = self.repository.get_stock_info(symbol, self._clock()).name
        if not name:
            raise NotFoundError(f"Unknown stock symbol: {symbol}")

        stock = WatchStock(symbol=symbol, name=name, list_name=list_name)
        items.append(stock)
        self.store.save_watchlist(items)
        return stock

    def remove_watch_stock(self, symbol: str, list_name: str | None = None) -> int:
        names = self.watchlist_names()
        list_name = list_name or names[0]
        symbol = symbol.strip().upper()
        items = self.store.load_watchlist()
        kept = [w for w in items if not (w.symbol == symbol and w.list_name == list_name)]
        if len(kept) == len(items):
            raise NotFoundError(f"{symbol} is not in watchlist {list_name!r}")
        self.store.save_watchlist(kept)
        return len(items) - len(kept)

    # ------------------------------------------------------------------
    # Plans
    # ------------------------------------------------------------------

    def plans(self) -> list[InvestmentPlan]:
        return self.store.load_plans()

    def find_plan(self, ref: str) -> InvestmentPlan:
        return _resolve(self.plans(), ref, "plan", lambda p: p.title)

    def save_plan(self, plan: InvestmentPlan) -> InvestmentPlan:
        plans = [p for p in self.plans() if p.id != plan.id]
        plans.append(plan)
        self.store.save_plans(plans)
        return plan

    def _replace_plan(self, ref: str, **update) -> InvestmentPlan:
        plans = self.plans()
        plan = _resolve(plans, ref, "plan", lambda p: p.title)
        updated = plan.model_copy(update=update)
        self.store.save_plans([updated if p.id == plan.id else p for p in plans])
        return updated

    def rename_plan(self, ref: str, title: str) -> InvestmentPlan:
        validate(title, [NotEmptyRule("Plan title")]).raise_for_failure()
        return self._replace_plan(ref, title=title.strip())

    def update_plan_amount(self, ref: str, current_amount: float) -> InvestmentPlan:
        if current_amount < 0:
            raise ValidationError("Current amount must not be negative")
        return self._replace_plan(ref, current_amount=float(current_amount))

    def delete_plan(self, ref: str) -> InvestmentPlan:
        plans = self.plans()
        plan = _resolve(plans, ref, "plan", lambda p: p.title)
        self.store.save_plans([p for p in plans if p.id != plan.id])
        return plan
