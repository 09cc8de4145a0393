"""
Analytics derived from daily aggregates: totals, payment mix, a
zero-filled daily series, best sellers and the CSV export.
"""

from __future__ import annotations

import csv
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Iterable
from zoneinfo import ZoneInfo

import pandas as pd

from .aggregates import STAT_FIELDS
from .config import MAX_RANGE_DAYS, POS_APP_SLUG, POS_TIMEZONE, TOP_PRODUCTS, TOP_PRODUCTS_PER_DAY
from .errors import ValidationError
from .models import DATE_FORMAT, parse_day

ORDER_FIELDS = ["totalOrders", "cashOrders", "cardOrders"]
REVENUE_FIELDS = ["totalRevenue", "cashRevenue", "cardRevenue"]

CSV_HEADER = [
    "Tarih",
    "Toplam Sipariş",
    "Toplam Gelir (TL)",
    "Nakit Sipariş",
    "Nakit Gelir (TL)",
    "Kart Sipariş",
    "Kart Gelir (TL)",
    "En Çok Satılan Ürünler",
]
CSV_TOTAL_LABEL = "TOPLAM"

PRESETS = ("today", "last7", "last30", "ytd", "custom")


@dataclass
class AnalyticsReport:
    start: str
    end: str
    totals: dict[str, Any] = field(default_factory=dict)
    payment_mix: list[dict[str, Any]] = field(default_factory=list)
    series: list[dict[str, Any]] = field(default_factory=list)
    top_products: list[dict[str, Any]] = field(default_factory=list)
    days: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "start": self.start,
            "end": self.end,
            "totals": self.totals,
            "paymentMix": self.payment_mix,
            "series": self.series,
            "topProducts": self.top_products,
            "days": self.days,
        }


# -----------------------------
# Date ranges
# -----------------------------
def today_in(tz: str = POS_TIMEZONE) -> date:
    return datetime.now(ZoneInfo(tz)).date()


def preset_range(preset: str, today: date) -> tuple[date, date]:
    if preset == "today":
        return today, today
    if preset == "last7":
        return today - timedelta(days=6), today
    if preset == "last30":
        return today - timedelta(days=29), today
    if preset == "ytd":
        return date(today.year, 1, 1), today
    raise ValidationError(f"Unknown date range preset: {preset!r}")


def clamp_range(start: date, end: date, edited: str) -> tuple[date, date]:
    """
    Keep a custom range within MAX_RANGE_DAYS.

    `edited` names the endpoint the user just changed ("start" or "end");
    the other endpoint is the one that moves.
    """
    if edited == "start":
        if start > end:
            end = start
        elif (end - start).days > MAX_RANGE_DAYS:
            end = start + timedelta(days=MAX_RANGE_DAYS)
    else:
        if end < start:
            start = end
        elif (end - start).days > MAX_RANGE_DAYS:
            start = end - timedelta(days=MAX_RANGE_DAYS)
    return start, end


def parse_range(start: str, end: str) -> tuple[str, str]:
    parse_day(start)
    parse_day(end)
    if start > end:
        raise ValidationError(f"Start date {start} is after end date {end}")
    return start, end


# -----------------------------
# Report
# -----------------------------
def _daily_frame(aggregates: list[dict[str, Any]], start: str, end: str) -> pd.DataFrame:
    """One row per calendar day in [start, end]; missing days are zeros."""
    rows = [
        {"date": a["date"], **{name: a.get(name, 0) for name in STAT_FIELDS}}
        for a in aggregates
        if start <= a["date"] <= end
    ]
    df = pd.DataFrame(rows, columns=["date", *STAT_FIELDS])
    df["date"] = pd.to_datetime(df["date"], format=DATE_FORMAT)
    for name in STAT_FIELDS:
        df[name] = pd.to_numeric(df[name], errors="coerce").fillna(0).astype(float)

    index = pd.date_range(start, end, freq="D", name="date")
    daily = df.groupby("date")[list(STAT_FIELDS)].sum().reindex(index, fill_value=0)
    daily[ORDER_FIELDS] = daily[ORDER_FIELDS].astype(int)
    daily[REVENUE_FIELDS] = daily[REVENUE_FIELDS].astype(float).round(2)
    return daily


def _ranked(counts: dict[str, int], limit: int) -> list[dict[str, Any]]:
    if not counts:
        return []
    # stable sort keeps first-encountered order for equal quantities
    ranked = pd.Series(counts, dtype="int64").sort_values(ascending=False, kind="stable").head(limit)
    return [{"product": product, "quantity": int(qty)} for product, qty in ranked.items()]


def _merge_counts(aggregates: Iterable[dict[str, Any]]) -> dict[str, int]:
    merged: dict[str, int] = {}
    for daily in aggregates:
        for product, qty in daily.get("itemCounts", {}).items():
            merged[product] = merged.get(product, 0) + int(qty)
    return merged


def _row(ts: pd.Timestamp, row: pd.Series) -> dict[str, Any]:
    out: dict[str, Any] = {"date": ts.strftime(DATE_FORMAT)}
    for name in ORDER_FIELDS:
        out[name] = int(row[name])
    for name in REVENUE_FIELDS:
        out[name] = float(row[name])
    return out


def build_report(aggregates: list[dict[str, Any]], start: str, end: str) -> AnalyticsReport:
    start, end = parse_range(start, end)
    in_range = sorted(
        (a for a in aggregates if start <= a["date"] <= end), key=lambda a: a["date"]
    )
    daily = _daily_frame(in_range, start, end)

    sums = daily.sum()
    totals = {name: int(sums[name]) for name in ORDER_FIELDS}
    totals.update({name: round(float(sums[name]), 2) for name in REVENUE_FIELDS})

    series = [_row(ts, row) for ts, row in daily.iterrows()]

    days = []
    for a in in_range:
        if a.get("totalOrders", 0) <= 0:
            continue
        card = _row(pd.Timestamp(a["date"]), daily.loc[pd.Timestamp(a["date"])])
        card["topProducts"] = _ranked(_merge_counts([a]), TOP_PRODUCTS_PER_DAY)
        days.append(card)

    return AnalyticsReport(
        start=start,
        end=end,
        totals=totals,
        payment_mix=[
            {"name": "Nakit", "value": totals["cashOrders"]},
            {"name": "Kart", "value": totals["cardOrders"]},
        ],
        series=series,
        top_products=_ranked(_merge_counts(in_range), TOP_PRODUCTS),
        days=days,
    )


# -----------------------------
# CSV export
# -----------------------------
def _format_products(products: list[dict[str, Any]]) -> str:
    return ", ".join(f"{p['product']} ({p['quantity']})" for p in products)


def _csv_row(label: str, stats: dict[str, Any], products: list[dict[str, Any]]) -> list[str]:
    return [
        label,
        str(stats["totalOrders"]),
        f"{stats['totalRevenue']:.2f}",
        str(stats["cashOrders"]),
        f"{stats['cashRevenue']:.2f}",
        str(stats["cardOrders"]),
        f"{stats['cardRevenue']:.2f}",
        _format_products(products),
    ]


def export_csv(report: AnalyticsReport) -> bytes:
    """UTF-8 CSV with a BOM so spreadsheet apps pick the right encoding."""
    products_by_day = {d["date"]: d["topProducts"] for d in report.days}
    rows = [
        _csv_row(point["date"], point, products_by_day.get(point["date"], []))
        for point in report.series
    ]
    rows.append(_csv_row(CSV_TOTAL_LABEL, report.totals, report.top_products))

    frame = pd.DataFrame(rows, columns=CSV_HEADER)
    text = frame.to_csv(index=False, quoting=csv.QUOTE_ALL, lineterminator="\n")
    return ("\ufeff" + text).encode("utf-8")


def export_filename(start: str, end: str) -> str:
    return f"{POS_APP_SLUG}-analytics-{start}-{end}.csv"
