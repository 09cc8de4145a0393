"""
Per-day rollups of the order history.

Each calendar month is one document in ``monthlyAggregates``::

    {
        "month": "2024-03",
        "dailyStats": {
            "2024-03-01": {
                "date": "2024-03-01",
                "totalRevenue": 350, "totalOrders": 1,
                "cashRevenue": 350, "cashOrders": 1,
                "cardRevenue": 0, "cardOrders": 0,
                "itemCounts": {"Americano": 2},
                "lastUpdated": <timestamp>,
            }
        },
        "lastUpdated": <timestamp>,
    }

Writes read the whole month, change it in memory and write it back.
There is no transaction: two tills updating the same month at the same
time can lose one of the updates (last write wins).
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Iterable

from .config import AGGREGATES_COLLECTION
from .db import backend_errors
from .models import Order, empty_daily_aggregate, month_of, parse_day

logger = logging.getLogger(__name__)

STAT_FIELDS = (
    "totalRevenue",
    "totalOrders",
    "cashRevenue",
    "cashOrders",
    "cardRevenue",
    "cardOrders",
)


def _money(value: float) -> float:
    # keeps apply/reverse pairs exact for amounts with two decimals
    return round(value, 2)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


# -----------------------------
# Pure updates on documents
# -----------------------------
def apply_to_day(daily: dict[str, Any], order: Order) -> None:
    method = order.payment_method
    amount = _money(order.total)
    daily["totalOrders"] = daily.get("totalOrders", 0) + 1
    daily["totalRevenue"] = _money(daily.get("totalRevenue", 0) + amount)
    daily[f"{method}Orders"] = daily.get(f"{method}Orders", 0) + 1
    daily[f"{method}Revenue"] = _money(daily.get(f"{method}Revenue", 0) + amount)

    counts = daily.setdefault("itemCounts", {})
    for item in order.items:
        counts[item.product] = counts.get(item.product, 0) + item.quantity


def reverse_from_day(daily: dict[str, Any], order: Order) -> None:
    method = order.payment_method
    amount = _money(order.total)
    daily["totalOrders"] = max(0, daily.get("totalOrders", 0) - 1)
    daily["totalRevenue"] = max(0, _money(daily.get("totalRevenue", 0) - amount))
    daily[f"{method}Orders"] = max(0, daily.get(f"{method}Orders", 0) - 1)
    daily[f"{method}Revenue"] = max(0, _money(daily.get(f"{method}Revenue", 0) - amount))

    counts = daily.setdefault("itemCounts", {})
    for item in order.items:
        remaining = counts.get(item.product, 0) - item.quantity
        if remaining > 0:
            counts[item.product] = remaining
        else:
            counts.pop(item.product, None)


def apply_to_month(month_doc: dict[str, Any], order: Order, now: datetime) -> dict[str, Any]:
    day = order.day
    daily_stats = month_doc.setdefault("dailyStats", {})
    daily = daily_stats.get(day) or empty_daily_aggregate(day)
    apply_to_day(daily, order)
    daily["lastUpdated"] = now
    daily_stats[day] = daily
    month_doc["month"] = month_of(day)
    month_doc["lastUpdated"] = now
    return month_doc


def reverse_from_month(month_doc: dict[str, Any], order: Order, now: datetime) -> bool:
    """Subtract the order from its day. Returns True when the month is left empty."""
    day = order.day
    daily_stats = month_doc.setdefault("dailyStats", {})
    daily = daily_stats.get(day)
    if daily is None:
        logger.warning("No aggregate for %s while reversing order %s", day, order.id)
        return not daily_stats

    reverse_from_day(daily, order)
    if daily["totalOrders"] <= 0:
        del daily_stats[day]
    else:
        daily["lastUpdated"] = now
    month_doc["lastUpdated"] = now
    return not daily_stats


def fold_orders(orders: Iterable[Order]) -> dict[str, dict[str, Any]]:
    """Recompute daily aggregates straight from raw orders."""
    folded: dict[str, dict[str, Any]] = {}
    for order in sorted(orders, key=lambda o: o.date):
        daily = folded.setdefault(order.day, empty_daily_aggregate(order.day))
        apply_to_day(daily, order)
    return folded


def months_between(start: str, end: str) -> list[str]:
    year, month = int(start[:4]), int(start[5:7])
    end_year, end_month = int(end[:4]), int(end[5:7])
    months = []
    while (year, month) <= (end_year, end_month):
        months.append(f"{year:04d}-{month:02d}")
        month += 1
        if month > 12:
            year, month = year + 1, 1
    return months


# -----------------------------
# Firestore-backed maintainer
# -----------------------------
class AggregateMaintainer:
    def __init__(self, db, clock: Callable[[], datetime] = _utc_now):
        self.db = db
        self.clock = clock

    def _month_ref(self, month: str):
        return self.db.collection(AGGREGATES_COLLECTION).document(month)

    def _load_month(self, month: str) -> dict[str, Any]:
        snap = self._month_ref(month).get()
        if snap.exists:
            return snap.to_dict() or {"month": month, "dailyStats": {}}
        return {"month": month, "dailyStats": {}}

    def apply_order(self, order: Order) -> None:
        month = month_of(order.day)
        with backend_errors("update daily statistics"):
            doc = self._load_month(month)
            apply_to_month(doc, order, self.clock())
            self._month_ref(month).set(doc)
        logger.info("Aggregate for %s updated with order %s", order.day, order.id)

    def reverse_order(self, order: Order) -> None:
        month = month_of(order.day)
        with backend_errors("update daily statistics"):
            doc = self._load_month(month)
            if reverse_from_month(doc, order, self.clock()):
                self._month_ref(month).delete()
                logger.info("Aggregate month %s removed", month)
            else:
                self._month_ref(month).set(doc)
        logger.info("Order %s removed from aggregate for %s", order.id, order.day)

    def fetch_range(self, start: str, end: str) -> list[dict[str, Any]]:
        """DailyAggregates with start <= date <= end, chronologically."""
        parse_day(start)
        parse_day(end)
        found = []
        with backend_errors("load analytics data"):
            for month in months_between(start, end):
                snap = self._month_ref(month).get()
                if not snap.exists:
                    continue
                for day, stats in (snap.to_dict() or {}).get("dailyStats", {}).items():
                    if start <= day <= end:
                        found.append({**stats, "date": day})
        found.sort(key=lambda d: d["date"])
        logger.info("Loaded %d daily aggregates from %s to %s", len(found), start, end)
        return found

    def rebuild(self, orders: Iterable[Order]) -> int:
        """Overwrite every month document with a fold of the raw orders."""
        now = self.clock()
        months: dict[str, dict[str, Any]] = {}
        for day, daily in fold_orders(orders).items():
            daily["lastUpdated"] = now
            doc = months.setdefault(
                month_of(day), {"month": month_of(day), "dailyStats": {}, "lastUpdated": now}
            )
            doc["dailyStats"][day] = daily

        with backend_errors("rebuild daily statistics"):
            collection = self.db.collection(AGGREGATES_COLLECTION)
            for snap in collection.stream():
                if snap.id not in months:
                    collection.document(snap.id).delete()
            for month, doc in months.items():
                collection.document(month).set(doc)
        logger.info("Rebuilt %d aggregate months", len(months))
        return len(months)

