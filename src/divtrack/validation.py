from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, Iterable, Protocol, TypeVar
from uuid import UUID

from divtrack.errors import ValidationError
from divtrack.models import Bank, WatchStock

T = TypeVar("T")


@dataclass(frozen=True)
class ValidationResult:
    ok: bool
    message: str = ""

    @classmethod
    def success(cls) -> "ValidationResult":
        return cls(True)

    @classmethod
    def failure(cls, message: str) -> "ValidationResult":
        return cls(False, message)

    def raise_for_failure(self) -> None:
        if not self.ok:
            raise ValidationError(self.message)


class ValidationRule(Protocol):
    def validate(self, value: str) -> ValidationResult: ...


@dataclass(frozen=True)
class NotEmptyRule:
    field_name: str

    def validate(self, value: str) -> ValidationResult:
        if not value.strip():
            return ValidationResult.failure(f"{self.field_name} cannot be empty")
        return ValidationResult.success()


@dataclass(frozen=True)
class UniqueNameRule(Generic[T]):
    field_name: str
    items: Iterable[T]
    get_value: Callable[[T], str]
    get_id: Callable[[T], UUID] | None = None
    exclude_id: UUID | None = None

    def validate(self, value: str) -> ValidationResult:
        name = value.strip()
        for item in self.items:
            if self.exclude_id is not None and self.get_id is not None and self.get_id(item) == self.exclude_id:
                continue
            if self.get_value(item) == name:
                return ValidationResult.failure(f"A {self.field_name} with this name already exists")
        return ValidationResult.success()


@dataclass(frozen=True)
class NumberRule:
    field_name: str
    min_value: int

    def validate(self, value: str) -> ValidationResult:
        try:
            number = int(value.strip())
        except ValueError:
            return ValidationResult.failure(f"Enter a valid {self.field_name}")
        if number < self.min_value:
            return ValidationResult.failure(f"{self.field_name} must be at least {self.min_value}")
        return ValidationResult.success()


def validate(value: str, rules: Iterable[ValidationRule]) -> ValidationResult:
    """Apply rules in order; the first failure wins."""
    for rule in rules:
        result = rule.validate(value)
        if not result.ok:
            return result
    return ValidationResult.success()


def validate_bank_name(name: str, banks: Iterable[Bank], exclude_id: UUID | None = None) -> ValidationResult:
    return validate(
        name,
        [
            NotEmptyRule("Bank name"),
            UniqueNameRule("bank", list(banks), lambda b: b.name, lambda b: b.id, exclude_id),
        ],
    )


def validate_shares(text: str) -> ValidationResult:
    return validate(text, [NotEmptyRule("Shares"), NumberRule("share count", 1)])


def validate_stock_addition(shares: str, symbol: str, watchlist: Iterable[WatchStock], list_name: str) -> ValidationResult:
    result = validate_shares(shares)
    if not result.ok:
        return result
    if any(w.symbol == symbol and w.list_name == list_name for w in watchlist):
        return ValidationResult.failure("This stock is already in the watchlist")
    return ValidationResult.success()
