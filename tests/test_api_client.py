from __future__ import annotations

import math
from datetime import date
from pathlib import Path
from unittest.mock import MagicMock

import pytest
import requests

from divtrack.data.api import DividendApiClient, DividendRecord, DividendResponse
from divtrack.errors import APIError

from conftest import dividend_row


def _response(status: int = 200, body=None, bad_json: bool = False) -> MagicMock:
    r = MagicMock()
    r.status_code = status
    if bad_json:
        r.json.side_effect = ValueError("Expecting value")
    else:
        r.json.return_value = body
    return r


def test_record_coerces_missing_values():
    row = dividend_row(ref_price=None, pay_date="nan")
    row["ex_dividend_reference_price"] = float("nan")
    row["total_cash_dividend"] = "NaN"
    row["dividend_year"] = 2024.0
    row["dividend_period"] = None

    r = DividendRecord.model_validate(row)
    assert r.ex_dividend_reference_price is None
    assert r.cash_dividend_distribution_date is None
    assert r.total_cash_dividend == 0.0
    assert r.dividend_year == "2024"
    assert r.year == 2024
    assert r.dividend_period == ""
    assert r.ex_dividend_date_obj == date(2024, 6, 13)
    assert r.distribution_date_obj is None
    assert not math.isnan(r.total_dividend)


def test_response_accepts_bare_array_or_envelope():
    bare = DividendResponse.parse([dividend_row()])
    assert bare.success and len(bare.data) == 1

    env = DividendResponse.parse({"success": True, "data": [dividend_row(), dividend_row(period="Q2")]})
    assert [r.dividend_period for r in env.data] == ["Q1", "Q2"]

    with pytest.raises(APIError):
        DividendResponse.parse("oops")


def test_get_dividend_data_requests_symbol_table(monkeypatch, tmp_path: Path):
    fake_get = MagicMock(return_value=_response(body=[dividend_row()]))
    monkeypatch.setattr(requests, "get", fake_get)

    client = DividendApiClient("https://db.example.test/", timeout=3, cache_dir=tmp_path)
    resp = client.get_dividend_data("2330")

    assert resp.data[0].stock_symbol == "2330"
    args, kwargs = fake_get.call_args
    assert args[0] == "https://db.example.test/data"
    assert kwargs["params"] == {"table_name": "t_2330"}
    assert kwargs["timeout"] == 3.0
    assert (tmp_path / "dividends_t_2330.json").exists()


def test_http_error_carries_status_and_message(monkeypatch, tmp_path: Path):
    monkeypatch.setattr(requests, "get", MagicMock(return_value=_response(404, {"message": "table not found"})))
    client = DividendApiClient("https://db.example.test", cache_dir=tmp_path)

    with pytest.raises(APIError) as exc:
        client.get("data", {"table_name": "t_0000"})
    assert exc.value.code == 404
    assert exc.value.message == "table not found"


def test_http_error_without_json_body(monkeypatch):
    monkeypatch.setattr(requests, "get", MagicMock(return_value=_response(503, bad_json=True)))
    with pytest.raises(APIError) as exc:
        DividendApiClient("https://db.example.test").get("data")
    assert exc.value.code == 503
    assert "503" in exc.value.message


def test_invalid_json_on_success(monkeypatch):
    monkeypatch.setattr(requests, "get", MagicMock(return_value=_response(200, bad_json=True)))
    with pytest.raises(APIError):
        DividendApiClient("https://db.example.test").get("data")


def test_unsuccessful_envelope_raises(monkeypatch, tmp_path: Path):
    body = {"success": False, "data": [], "message": "quota exceeded"}
    monkeypatch.setattr(requests, "get", MagicMock(return_value=_response(200, body)))
    with pytest.raises(APIError) as exc:
        DividendApiClient("https://db.example.test", cache_dir=tmp_path).get_dividend_data("2330")
    assert "quota exceeded" in str(exc.value)


def test_network_error_falls_back_to_cached_response(monkeypatch, tmp_path: Path):
    client = DividendApiClient("https://db.example.test", cache_dir=tmp_path)

    monkeypatch.setattr(requests, "get", MagicMock(return_value=_response(body=[dividend_row()])))
    client.get_dividend_data("2330")

    monkeypatch.setattr(requests, "get", MagicMock(side_effect=requests.exceptions.ConnectionError("down")))
    resp = client.get_dividend_data("2330")
    assert len(resp.data) == 1

    with pytest.raises(APIError) as exc:
        client.get_dividend_data("2454")
    assert exc.value.code == 0
    assert "network error" in exc.value.message

    with pytest.raises(APIError):
        client.get_dividend_data("2330", use_cache=False)


@pytest.mark.parametrize(
    "body",
    [
        {"success": True, "data": [{"id": "1", "date": "'24/07/18"}]},
        {"success": True, "data": None},
        [{"dividend_year": "2024"}],
    ],
)
def test_malformed_rows_raise_api_error_and_are_not_cached(monkeypatch, tmp_path: Path, body):
    monkeypatch.setattr(requests, "get", MagicMock(return_value=_response(200, body)))
    client = DividendApiClient("https://db.example.test", cache_dir=tmp_path)

    with pytest.raises(APIError) as exc:
        client.get_dividend_data("2330")
    assert exc.value.code == 0
    assert "malformed response" in exc.value.message
    assert not (tmp_path / "dividends_t_2330.json").exists()


def test_malformed_body_falls_back_to_cached_response(monkeypatch, tmp_path: Path):
    client = DividendApiClient("https://db.example.test", cache_dir=tmp_path)

    monkeypatch.setattr(requests, "get", MagicMock(return_value=_response(body=[dividend_row()])))
    client.get_dividend_data("2330")

    monkeypatch.setattr(requests, "get", MagicMock(return_value=_response(200, {"success": True, "data": None})))
    resp = client.get_dividend_data("2330")
    assert [r.stock_symbol for r in resp.data] == ["2330"]
