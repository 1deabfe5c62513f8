from __future__ import annotations

from datetime import date

import pandas as pd

from divtrack.portfolio.report import ReportDataPoint, ReportService, sample_dates, sample_interval_days

from conftest import FixedPriceService, make_holding


def test_sample_interval_by_span():
    assert [sample_interval_days(d) for d in (30, 90, 91, 365, 366, 1095, 1096)] == [7, 7, 14, 14, 30, 30, 60]


def test_sample_dates_always_end_on_end():
    assert sample_dates(date(2025, 1, 1), date(2025, 1, 31)) == [
        date(2025, 1, 1),
        date(2025, 1, 8),
        date(2025, 1, 15),
        date(2025, 1, 22),
        date(2025, 1, 29),
        date(2025, 1, 31),
    ]
    assert sample_dates(date(2025, 1, 1), date(2025, 1, 1)) == [date(2025, 1, 1)]
    assert sample_dates(date(2025, 2, 1), date(2025, 1, 1)) == []


def test_investment_return_point_includes_executed_regular_lots():
    reports = ReportService(FixedPriceService({"2330": 600.0}))
    lot = make_holding(
        shares=100,
        purchase_price=500.0,
        transactions=[(date(2025, 2, 10), 10000.0, 20, True), (date(2025, 4, 10), 10000.0, 20, True)],
    )

    pct, pnl = reports.investment_return_point([lot], date(2025, 3, 1))
    assert abs(pnl - 12000.0) < 1e-9
    assert abs(pct - 20.0) < 1e-9

    assert reports.investment_return_point([make_holding("9999")], date(2025, 3, 1)) == (0.0, 0.0)


def test_dividend_yield_point():
    lot = make_holding(shares=100, purchase_price=500.0, dividend_per_share=2.75, frequency=4)
    pct, annual = ReportService.dividend_yield_point([lot], date(2025, 3, 1))
    assert abs(annual - 1100.0) < 1e-9
    assert abs(pct - 2.2) < 1e-9
    assert ReportService.dividend_yield_point([], date(2025, 3, 1)) == (0.0, 0.0)


def test_series_only_counts_lots_already_bought():
    reports = ReportService(FixedPriceService({"2330": 600.0}))
    lot = make_holding(shares=100, purchase_price=500.0, purchase_date=date(2025, 1, 10))

    points = reports.investment_return_series([lot], date(2025, 1, 1), date(2025, 1, 31))
    assert [p.percentage for p in points] == [0.0, 0.0, 20.0, 20.0, 20.0, 20.0]
    assert points[-1].amount == 10000.0

    summary = reports.summary(points)
    assert summary.current == 20.0
    assert summary.minimum == 0.0
    assert summary.maximum == 20.0
    assert abs(summary.average - 80.0 / 6) < 1e-9

    amounts = reports.amount_summary(points)
    assert amounts.current == 10000.0
    assert amounts.total == 40000.0

    yields = reports.dividend_yield_series([lot], date(2025, 1, 1), date(2025, 1, 31))
    assert abs(yields[-1].percentage - 2.2) < 1e-9


def test_empty_summaries():
    assert ReportService.summary([]).average == 0.0
    assert ReportService.amount_summary([]).total == 0.0


def test_to_frame():
    points = [ReportDataPoint(date(2025, 1, 1), 1.5, 10.0), ReportDataPoint(date(2025, 1, 8), 2.5, 20.0)]
    df = ReportService.to_frame(points)
    assert list(df.columns) == ["date", "percentage", "amount"]
    assert pd.api.types.is_datetime64_any_dtype(df["date"])
    assert df["amount"].sum() == 30.0

    empty = ReportService.to_frame([])
    assert empty.empty
    assert list(empty.columns) == ["date", "percentage", "amount"]


def test_time_range_title():
    assert ReportService.time_range_title(date(2025, 1, 1), date(2025, 6, 20), True, "") == "2025/01/01 - 2025/06/20"
    assert ReportService.time_range_title(date(2025, 1, 1), date(2025, 6, 20), False, "Last 6 months") == "Last 6 months"
