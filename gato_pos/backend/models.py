"""Order and aggregate records as they are stored in Firestore."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

from .config import NOTE_MAX_LENGTH
from .errors import ValidationError

PaymentMethod = Literal["cash", "card"]
PAYMENT_METHODS = ("cash", "card")

DATE_FORMAT = "%Y-%m-%d"
DATETIME_FORMAT = "%Y-%m-%d %H:%M"


@dataclass
class LineItem:
    product: str
    price: float
    quantity: int = 1

    @property
    def subtotal(self) -> float:
        return self.price * self.quantity

    def to_dict(self) -> dict[str, Any]:
        return {"product": self.product, "price": self.price, "quantity": self.quantity}


@dataclass
class Order:
    """A finalized order. Immutable once stored, except for deletion."""

    items: list[LineItem]
    total: float
    payment_method: PaymentMethod
    date: str
    note: str | None = None
    id: str | None = None
    created_at: Any = None

    @property
    def day(self) -> str:
        return day_of(self.date)

    def to_document(self) -> dict[str, Any]:
        doc: dict[str, Any] = {
            "items": [item.to_dict() for item in self.items],
            "total": self.total,
            "paymentMethod": self.payment_method,
            "date": self.date,
        }
        if self.note:
            doc["note"] = self.note
        return doc

    def to_dict(self) -> dict[str, Any]:
        """JSON view used by the HTTP layer."""
        out = self.to_document()
        out["id"] = self.id
        if isinstance(self.created_at, datetime):
            out["createdAt"] = self.created_at.isoformat()
        return out

    @classmethod
    def from_document(cls, doc_id: str | None, data: dict[str, Any]) -> "Order":
        return cls(
            id=doc_id,
            items=[
                LineItem(
                    product=str(item["product"]),
                    price=item["price"],
                    quantity=int(item["quantity"]),
                )
                for item in data.get("items", [])
            ],
            total=data.get("total", 0),
            payment_method=data.get("paymentMethod", "cash"),
            date=str(data.get("date", "")),
            note=data.get("note") or None,
            created_at=data.get("createdAt"),
        )


def day_of(date: str) -> str:
    """'2024-03-01 14:05' -> '2024-03-01'."""
    return date.strip()[:10]


def month_of(day: str) -> str:
    return day[:7]


def parse_day(day: str) -> datetime:
    try:
        return datetime.strptime(day, DATE_FORMAT)
    except ValueError:
        raise ValidationError(f"Invalid date: {day!r}") from None


def parse_order_date(value: str) -> datetime:
    """Accepts 'YYYY-MM-DD HH:MM' or a bare 'YYYY-MM-DD', nothing else."""
    for fmt in (DATETIME_FORMAT, DATE_FORMAT):
        try:
            return datetime.strptime(value.strip(), fmt)
        except ValueError:
            continue
    raise ValidationError(f"Invalid order date: {value!r}")


def has_cents_only(amount: float) -> bool:
    return round(amount, 2) == amount


def empty_daily_aggregate(day: str) -> dict[str, Any]:
    return {
        "date": day,
        "totalRevenue": 0,
        "totalOrders": 0,
        "cashRevenue": 0,
        "cashOrders": 0,
        "cardRevenue": 0,
        "cardOrders": 0,
        "itemCounts": {},
    }


def items_total(items: list[LineItem]) -> float:
    return sum(item.price * item.quantity for item in items)


def validate_order(order: Order) -> None:
    """Reject orders the aggregate maintainer should never see."""
    if not order.items:
        raise ValidationError("Order has no items")
    for item in order.items:
        if not item.product:
            raise ValidationError("Line item without a product")
        if item.price < 0:
            raise ValidationError(f"Negative price for {item.product}")
        if not has_cents_only(item.price):
            raise ValidationError(f"Price of {item.product} has more than 2 decimals")
        if not isinstance(item.quantity, int) or item.quantity < 1:
            raise ValidationError(f"Invalid quantity for {item.product}")
    if order.payment_method not in PAYMENT_METHODS:
        raise ValidationError(f"Unknown payment method: {order.payment_method!r}")
    if order.note and len(order.note) > NOTE_MAX_LENGTH:
        raise ValidationError(f"Note longer than {NOTE_MAX_LENGTH} characters")
    parse_order_date(order.date)
    # caller-supplied totals are not trusted
    expected = round(items_total(order.items), 2)
    if round(order.total, 2) != expected:
        raise ValidationError(f"Order total {order.total} does not match its items ({expected})")
