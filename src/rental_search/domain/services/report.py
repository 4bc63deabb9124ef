"""Ranking, statistics and export formats for a finished search."""

from __future__ import annotations

import csv
import io
import json
from collections.abc import Iterable
from decimal import Decimal

from ..models import PriceStatistics, Report, ResultRow, to_cents
from .date_combinations import format_date

CSV_COLUMNS = (
    "Rank",
    "Pickup",
    "Return",
    "Days",
    "Total Price",
    "Price/Day",
    "Currency",
    "Car Name",
    "Car Group",
    "SIPP",
    "Type",
    "Passengers",
    "Luggage",
    "Transmission",
    "Fuel",
    "Prepaid",
    "Rate Code",
    "EV",
    "Status",
)

_NAME_WIDTH = 25


def sort_rows(rows: Iterable[ResultRow]) -> list[ResultRow]:
    """Priced rows by ascending price/day, then unpriced rows in input order."""
    return sorted(
        rows,
        key=lambda row: (
            row.price_per_day is None,
            row.price_per_day if row.price_per_day is not None else Decimal(0),
        ),
    )


def compute_statistics(priced: list[ResultRow]) -> PriceStatistics | None:
    """Statistics over priced rows; None when there are none."""
    if not priced:
        return None
    totals = [row.total_price for row in priced]
    per_day = [row.price_per_day for row in priced]
    min_total = min(totals)
    max_total = max(totals)
    savings = max_total - min_total
    return PriceStatistics(
        average_total=to_cents(sum(totals) / len(totals)),
        average_per_day=to_cents(sum(per_day) / len(per_day)),
        min_total=to_cents(min_total),
        max_total=to_cents(max_total),
        min_per_day=to_cents(min(per_day)),
        max_per_day=to_cents(max(per_day)),
        savings=to_cents(savings),
        savings_percent=round(float(savings / max_total * 100), 1),
    )


def summarize(rows: Iterable[ResultRow], top_n: int = 20) -> Report:
    """Sort rows and compute the report for a run."""
    ordered = sort_rows(rows)
    priced = [row for row in ordered if row.is_priced]

    currencies: list[str] = []
    for row in priced:
        if row.currency not in currencies:
            currencies.append(row.currency)

    return Report(
        rows=ordered,
        best=priced[0] if priced else None,
        top=priced[:top_n],
        total_searches=len(ordered),
        with_price=len(priced),
        without_price=len(ordered) - len(priced),
        statistics=compute_statistics(priced),
        currencies=currencies,
    )


def _report_currency(report: Report) -> str:
    if len(report.currencies) == 1:
        return report.currencies[0]
    if not report.currencies:
        return ""
    return "(mixed currencies)"


def _short_name(name: str) -> str:
    if len(name) > _NAME_WIDTH:
        return name[:_NAME_WIDTH] + "..."
    return name


def _ev_mark(row: ResultRow) -> str:
    return "⚡" if row.offer and row.offer.electric else ""


def _yes_no(flag: bool) -> str:
    return "Yes" if flag else "No"


def render_markdown(report: Report) -> str:
    """Render best deal, ranked table and statistics as Markdown."""
    lines: list[str] = ["# CAR RENTAL PRICE RESULTS", ""]

    best = report.best
    if best is not None and best.offer is not None:
        offer = best.offer
        lines += [
            "## BEST DEAL",
            "",
            f"**{format_date(best.pickup_date)} → {format_date(best.return_date)}** "
            f"({best.days} days)  ",
            f"**{to_cents(best.total_price)} {best.currency}** total | "
            f"**{to_cents(best.price_per_day)} {best.currency}/day**  ",
            f"**Car:** {_ev_mark(best)}{offer.name} ({offer.group})  ",
            f"**Type:** {offer.vehicle_type}  ",
            f"**Passengers:** {offer.passengers} | **Luggage:** {offer.luggage}  ",
            f"**Transmission:** {offer.transmission} | **Fuel:** {offer.fuel}  ",
            f"**Prepaid:** {_yes_no(offer.prepaid)} | **Rate Code:** {offer.rate_code}  ",
        ]
        if offer.discount:
            lines.append(f"**Discount:** {offer.discount}  ")
        lines += ["", "---", ""]

    lines += [
        f"## TOP {len(report.top)} CHEAPEST OPTIONS (by price per day)",
        "",
        "| Rank | Pickup | Return | Days | Total Price | Price/Day | Car | Group | Prepaid |",
        "|------|--------|--------|------|-------------|-----------|-----|-------|---------|",
    ]
    for rank, row in enumerate(report.top, start=1):
        offer = row.offer
        lines.append(
            f"| {rank} | {format_date(row.pickup_date)} | {format_date(row.return_date)} "
            f"| {row.days} | **{to_cents(row.total_price)} {row.currency}** "
            f"| **{to_cents(row.price_per_day)}** | {_ev_mark(row)}{_short_name(offer.name)} "
            f"| {offer.group} | {_yes_no(offer.prepaid)} |"
        )
    lines += ["", "---", ""]

    lines += [
        "## STATISTICS",
        "",
        f"- **Total searches:** {report.total_searches}",
        f"- **With prices:** {report.with_price}",
        f"- **Without prices:** {report.without_price}",
    ]
    stats = report.statistics
    if stats is not None:
        currency = _report_currency(report)
        lines += [
            f"- **Average total price:** {stats.average_total} {currency}",
            f"- **Average price/day:** {stats.average_per_day} {currency}",
            f"- **Highest total:** {stats.max_total} {currency}",
            f"- **Lowest total:** {stats.min_total} {currency}",
            f"- **Highest price/day:** {stats.max_per_day} {currency}",
            f"- **Lowest price/day:** {stats.min_per_day} {currency}",
            f"- **Total savings potential:** {stats.savings} {currency} "
            f"({stats.savings_percent:.1f}%)",
        ]
    lines += ["", "---", "", "_⚡ = Electric Vehicle_", ""]
    return "\n".join(lines)


def export_json(report: Report) -> str:
    """One flat record per row, in report order."""
    return json.dumps([row.to_record() for row in report.rows], indent=2, ensure_ascii=False)


def export_csv(report: Report) -> str:
    """Priced rows only, ranked, with a fixed column set."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_COLUMNS)
    rank = 0
    for row in report.rows:
        if row.offer is None:
            continue
        rank += 1
        offer = row.offer
        writer.writerow(
            (
                rank,
                format_date(row.pickup_date),
                format_date(row.return_date),
                row.days,
                to_cents(row.total_price),
                to_cents(row.price_per_day),
                row.currency,
                offer.name,
                offer.group,
                offer.sipp,
                offer.vehicle_type,
                offer.passengers,
                offer.luggage,
                offer.transmission,
                offer.fuel,
                _yes_no(offer.prepaid),
                offer.rate_code,
                _yes_no(offer.electric),
                row.status if row.status is not None else "N/A",
            )
        )
    return buffer.getvalue()
