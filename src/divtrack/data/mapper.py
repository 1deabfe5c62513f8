from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from divtrack.data.enhanced import StockInfoResponse
from divtrack.models import Holding, WatchStock
from divtrack.utils.dates import today as _today


def to_holding(info: StockInfoResponse, bank_id: UUID, today: date | None = None) -> Holding:
    """Draft lot for `info`; shares start at zero until the user enters them."""
    today = today or _today()
    return Holding(
        symbol=info.symbol,
        name=info.name,
        shares=0,
        dividend_per_share=info.dividend_per_share,
        dividend_year=today.year,
        is_historical=False,
        frequency=info.frequency,
        purchase_date=today,
        purchase_price=info.current_price,
        bank_id=bank_id,
    )


def to_watch_stock(info: StockInfoResponse, list_name: str, today: date | None = None) -> WatchStock:
    added = datetime.combine(today, datetime.min.time()) if today else datetime.now()
    return WatchStock(symbol=info.symbol, name=info.name, added_date=added, list_name=list_name)
