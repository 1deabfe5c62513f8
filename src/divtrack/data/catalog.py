"""
Built-in stock catalog used when the dividend database is unreachable.
"""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CatalogEntry:
    symbol: str
    name: str
    dividend_per_share: float  # per payout
    frequency: int  # payouts per year
    base_price: float


CATALOG: tuple[CatalogEntry, ...] = (
    CatalogEntry("2330", "TSMC", 2.75, 4, 550.0),
    CatalogEntry("2317", "Hon Hai", 5.0, 1, 120.0),
    CatalogEntry("2454", "MediaTek", 3.0, 4, 850.0),
    CatalogEntry("2412", "Chunghwa Telecom", 4.5, 4, 120.0),
    CatalogEntry("2308", "Delta Electronics", 3.5, 4, 290.0),
    CatalogEntry("2881", "Fubon Financial", 3.0, 2, 75.0),
    CatalogEntry("2882", "Cathay Financial", 2.5, 2, 45.0),
    CatalogEntry("1301", "Formosa Plastics", 4.0, 1, 110.0),
    CatalogEntry("1303", "Nan Ya Plastics", 3.2, 1, 85.0),
    CatalogEntry("2891", "CTBC Financial", 2.8, 2, 25.0),
    CatalogEntry("0050", "Yuanta Taiwan 50", 2.0, 4, 120.0),
)

DEFAULT_BASE_PRICE = 100.0

SECTORS: dict[str, str] = {
    "2330": "Semiconductors",
    "2317": "Electronics",
    "2454": "Semiconductors",
    "2412": "Telecom",
    "2308": "Electronics",
    "2881": "Financials",
    "2882": "Financials",
    "1301": "Materials",
    "1303": "Materials",
    "2891": "Financials",
}
OTHER_SECTOR = "Other"
HIGH_VOLATILITY_SECTORS = frozenset({"Semiconductors", "Biotech", "Internet"})

# Beta against the TAIEX.
BETAS: dict[str, float] = {
    "2330": 1.1,
    "2317": 1.2,
    "2881": 0.9,
    "2882": 0.85,
    "1301": 0.8,
    "2412": 0.7,
}

DEFAULT_INDUSTRIES: tuple[str, ...] = (
    "Semiconductors",
    "Electronic Components",
    "Computers & Peripherals",
    "Optoelectronics",
    "Communications & Networking",
    "Electronics Distribution",
    "Information Services",
    "Other Electronics",
    "Financials",
    "Building & Construction",
    "Shipping",
    "Biotech",
    "Food",
    "Textiles",
    "Steel",
    "Tourism",
)

# Catalog sector -> industry list entry, for offline industry browsing.
_SECTOR_TO_INDUSTRY = {
    "Semiconductors": "Semiconductors",
    "Electronics": "Electronic Components",
    "Telecom": "Communications & Networking",
    "Financials": "Financials",
}

_BY_SYMBOL = {e.symbol: e for e in CATALOG}


def lookup(symbol: str) -> CatalogEntry | None:
    return _BY_SYMBOL.get(symbol.strip().upper())


def sector_of(symbol: str) -> str:
    return SECTORS.get(symbol, OTHER_SECTOR)


def industry_of(symbol: str) -> str | None:
    return _SECTOR_TO_INDUSTRY.get(SECTORS.get(symbol, ""))
