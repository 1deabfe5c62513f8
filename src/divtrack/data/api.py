"""
Client for the dividend database REST service.

The service exposes one table per stock (`t_<symbol>`) through
`GET <base>/data?table_name=...`. Responses are either an envelope
`{"success": ..., "data": [...], "message": ...}` or a bare array of rows.
"""
from __future__ import annotations

import logging
import math
from datetime import date, timedelta
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ValidationError, field_validator

from divtrack.errors import APIError
from divtrack.storage.cache import cache_path, read_cache, write_cache
from divtrack.utils.dates import parse_short_ymd

logger = logging.getLogger(__name__)

RESPONSE_CACHE_MAX_AGE = timedelta(days=7)


def _missing(v: Any) -> bool:
    if v is None:
        return True
    if isinstance(v, float) and math.isnan(v):
        return True
    return isinstance(v, str) and v.strip().lower() in {"", "nan", "none", "null"}


class DividendRecord(BaseModel):
    """One row of a `t_<symbol>` dividend table."""

    id: str
    date: str
    stock_symbol: str
    dividend_year: str
    dividend_period: str = ""
    shareholders_meeting_date: str = ""
    ex_dividend_date: str = ""

    ex_dividend_reference_price: Optional[float] = None
    fill_dividend_completion_date: Optional[str] = None
    fill_dividend_days: Optional[int] = None
    cash_dividend_distribution_date: Optional[str] = None
    ex_rights_date: Optional[str] = None
    ex_rights_reference_price: Optional[float] = None
    fill_rights_completion_date: Optional[str] = None
    fill_rights_days: Optional[int] = None
    cash_dividend_earnings: Optional[float] = None
    cash_dividend_capital_surplus: Optional[float] = None
    total_cash_dividend: float = 0.0
    stock_dividend_earnings: Optional[float] = None
    stock_dividend_capital_surplus: Optional[float] = None
    total_stock_dividend: Optional[float] = None
    total_dividend: float = 0.0

    @field_validator("id", "date", "stock_symbol", "dividend_year", mode="before")
    @classmethod
    def _as_text(cls, v: Any) -> str:
        if v is None:
            return ""
        if isinstance(v, float) and v.is_integer():
            return str(int(v))
        return str(v)

    @field_validator("dividend_period", "shareholders_meeting_date", "ex_dividend_date", mode="before")
    @classmethod
    def _text_or_empty(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator(
        "ex_dividend_reference_price",
        "fill_dividend_completion_date",
        "fill_dividend_days",
        "cash_dividend_distribution_date",
        "ex_rights_date",
        "ex_rights_reference_price",
        "fill_rights_completion_date",
        "fill_rights_days",
        "cash_dividend_earnings",
        "cash_dividend_capital_surplus",
        "stock_dividend_earnings",
        "stock_dividend_capital_surplus",
        "total_stock_dividend",
        mode="before",
    )
    @classmethod
    def _nan_to_none(cls, v: Any) -> Any:
        return None if _missing(v) else v

    @field_validator("total_cash_dividend", "total_dividend", mode="before")
    @classmethod
    def _nan_to_zero(cls, v: Any) -> Any:
        return 0.0 if _missing(v) else v

    @property
    def year(self) -> int | None:
        try:
            return int(self.dividend_year)
        except ValueError:
            return None

    @property
    def ex_dividend_date_obj(self) -> date | None:
        return parse_short_ymd(self.ex_dividend_date)

    @property
    def distribution_date_obj(self) -> date | None:
        return parse_short_ymd(self.cash_dividend_distribution_date)


class DividendResponse(BaseModel):
    success: bool = True
    data: list[DividendRecord] = []
    message: Optional[str] = None

    @classmethod
    def parse(cls, payload: Any) -> "DividendResponse":
        if isinstance(payload, list):
            return cls(success=True, data=payload)
        if isinstance(payload, dict):
            return cls.model_validate(payload)
        raise APIError(0, f"unexpected response type: {type(payload).__name__}")


class DividendApiClient:
    def __init__(self, base_url: str, timeout: float = 15.0, cache_dir: Path | None = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = float(timeout)
        self.cache_dir = cache_dir

    def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """GET `<base>/<path>` and return decoded JSON. Raises APIError on any failure."""
        # Lazy import keeps module import free of SSL initialization.
        import requests
        from requests.exceptions import RequestException

        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            r = requests.get(url, params=params or {}, timeout=self.timeout)
        except RequestException as e:
            raise APIError(0, f"network error: {e}") from e

        if not 200 <= r.status_code < 300:
            message = f"request failed: {r.status_code}"
            try:
                body = r.json()
                if isinstance(body, dict) and body.get("message"):
                    message = str(body["message"])
            except ValueError:
                pass
            raise APIError(r.status_code, message)

        try:
            return r.json()
        except ValueError as e:
            raise APIError(r.status_code, f"invalid JSON: {e}") from e

    def get_dividend_data(self, symbol: str, *, use_cache: bool = True) -> DividendResponse:
        table = f"t_{symbol.strip()}"
        cpath = cache_path(f"dividends_{table}", self.cache_dir) if use_cache else None

        try:
            payload = self.get("data", {"table_name": table})
            resp = _parse_response(payload)
        except APIError:
            # Network failed or the body was unusable; fall back to a recent cached copy.
            cached = read_cache(cpath, max_age=RESPONSE_CACHE_MAX_AGE) if cpath is not None else None
            if cached is None:
                raise
            logger.warning("Dividend API unavailable for %s; using cached response", symbol)
            resp = _parse_response(cached)
        else:
            if cpath is not None:
                write_cache(cpath, payload)

        if not resp.success:
            raise APIError(0, resp.message or "request was not successful")
        return resp


def _parse_response(payload: Any) -> DividendResponse:
    try:
        return DividendResponse.parse(payload)
    except ValidationError as e:
        raise APIError(0, f"malformed response: {e}") from e
