"""Tests for ranking, statistics and exports."""

from __future__ import annotations

import csv
import io
import json
from datetime import date, timedelta
from decimal import Decimal

from rental_search.domain.models import HttpFailure, NoOfferFailure, Offer, ResultRow, to_cents
from rental_search.domain.services.report import (
    CSV_COLUMNS,
    export_csv,
    export_json,
    render_markdown,
    sort_rows,
    summarize,
)

START = date(2026, 3, 1)


def priced_row(total: str, days: int, offset: int = 0, name: str = "Fiat 500", **offer_fields) -> ResultRow:
    price = Decimal(total)
    return ResultRow(
        pickup_date=START + timedelta(days=offset),
        return_date=START + timedelta(days=offset + days),
        days=days,
        total_price=price,
        price_per_day=to_cents(price / days),
        currency="CHF",
        offer=Offer(price=price, currency="CHF", name=name, **offer_fields),
        status=200,
    )


def failed_row(offset: int, status: int | None = 500) -> ResultRow:
    return ResultRow(
        pickup_date=START + timedelta(days=offset),
        return_date=START + timedelta(days=offset + 10),
        days=10,
        currency="CHF",
        status=status,
        error=HttpFailure(status=status, status_text="Server Error") if status else NoOfferFailure(),
    )


def test_sort_puts_unpriced_last_and_keeps_their_order() -> None:
    unpriced_a = failed_row(0)
    unpriced_b = failed_row(1, status=None)
    rows = [unpriced_a, priced_row("300", 10, 2), unpriced_b, priced_row("100", 10, 3), priced_row("200", 10, 4)]

    ordered = sort_rows(rows)

    assert [row.price_per_day for row in ordered[:3]] == [Decimal("10.00"), Decimal("20.00"), Decimal("30.00")]
    assert ordered[3] is unpriced_a
    assert ordered[4] is unpriced_b


def test_statistics_and_savings() -> None:
    rows = [priced_row("150.00", 10, 0), priced_row("120.00", 12, 1), priced_row("200.00", 8, 2), failed_row(3)]

    report = summarize(rows)

    assert report.total_searches == 4
    assert report.with_price == 3
    assert report.without_price == 1
    stats = report.statistics
    assert stats is not None
    assert stats.min_total == Decimal("120.00")
    assert stats.max_total == Decimal("200.00")
    assert stats.savings == Decimal("80.00")
    assert stats.savings_percent == 40.0
    assert stats.average_total == Decimal("156.67")
    assert stats.min_per_day == Decimal("10.00")
    assert stats.max_per_day == Decimal("25.00")
    assert report.best is not None
    assert report.best.total_price == Decimal("120.00")
    assert report.currencies == ["CHF"]


def test_no_priced_rows_has_no_statistics() -> None:
    report = summarize([failed_row(0), failed_row(1)])

    assert report.statistics is None
    assert report.best is None
    assert report.top == []
    markdown = render_markdown(report)
    assert "Without prices:** 2" in markdown
    assert "Average" not in markdown


def test_top_n_is_limited() -> None:
    rows = [priced_row(str(100 + i), 10, i) for i in range(30)]

    report = summarize(rows, top_n=20)

    assert len(report.top) == 20
    assert len(report.rows) == 30


def test_markdown_contains_best_deal_and_table() -> None:
    rows = [
        priced_row("420.00", 9, 0, name="A very long vehicle name that keeps going", electric=True, prepaid=True, discount="30.00"),
        priced_row("500.00", 8, 1, name="Fiat 500"),
    ]

    markdown = render_markdown(summarize(rows))

    assert "## BEST DEAL" in markdown
    assert "**01/03/2026 → 10/03/2026** (9 days)" in markdown
    assert "**420.00 CHF** total | **46.67 CHF/day**" in markdown
    assert "**Discount:** 30.00" in markdown
    assert "| 1 | 01/03/2026 | 10/03/2026 | 9 |" in markdown
    assert "⚡A very long vehicle name ..." in markdown
    assert "Total savings potential:** 80.00 CHF (16.0%)" in markdown


def test_json_export_keeps_sorted_order_and_all_rows() -> None:
    rows = [failed_row(0), priced_row("300", 10, 1), priced_row("100", 10, 2)]

    records = json.loads(export_json(summarize(rows)))

    assert [record["total_price"] for record in records] == [100.0, 300.0, None]
    assert records[2]["error_kind"] == "http_error"
    assert records[2]["error"] == "HTTP 500 Server Error"
    assert records[0]["pickup"] == "2026-03-03"


def test_csv_export_only_priced_rows() -> None:
    rows = [failed_row(0), priced_row("300", 10, 1, sipp="CDMR"), priced_row("100", 10, 2)]

    parsed = list(csv.reader(io.StringIO(export_csv(summarize(rows)))))

    assert tuple(parsed[0]) == CSV_COLUMNS
    assert len(parsed) == 3
    assert parsed[1][:7] == ["1", "03/03/2026", "13/03/2026", "10", "100.00", "10.00", "CHF"]
    assert parsed[2][0] == "2"
    assert parsed[2][9] == "CDMR"
    assert parsed[2][-1] == "200"


def test_huge_totals_are_summarized() -> None:
    rows = [priced_row("1e30", 10, 0), priced_row("120.00", 12, 1)]

    report = summarize(rows)

    stats = report.statistics
    assert stats is not None
    assert stats.max_total == Decimal("1e30")
    assert stats.max_total.as_tuple().exponent == -2
    assert "## STATISTICS" in render_markdown(report)
