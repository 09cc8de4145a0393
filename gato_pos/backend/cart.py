from dataclasses import dataclass, field
from datetime import datetime
from zoneinfo import ZoneInfo

from .config import NOTE_MAX_LENGTH, POS_TIMEZONE
from .errors import ValidationError
from .menu import MenuCatalog
from .models import DATETIME_FORMAT, LineItem, Order, PaymentMethod


class OrderBuilder:
    """
    In-progress order lines.
    A line never holds a quantity <= 0; it is dropped instead.
    """

    def __init__(self, catalog: MenuCatalog):
        self.catalog = catalog
        self._lines: list[LineItem] = []

    @property
    def lines(self) -> list[LineItem]:
        return [LineItem(l.product, l.price, l.quantity) for l in self._lines]

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def add_line(self, product: str) -> None:
        if not product:
            return
        menu_item = self.catalog.find_item(product)
        if menu_item is None:
            return

        existing = next((l for l in self._lines if l.product == product), None)
        if existing:
            existing.quantity += 1
        else:
            self._lines.append(LineItem(menu_item.product, menu_item.price, 1))

    def adjust_quantity(self, index: int, delta: int) -> None:
        if index < 0 or index >= len(self._lines):
            return
        line = self._lines[index]
        line.quantity += delta
        if line.quantity <= 0:
            del self._lines[index]

    def total(self) -> float:
        return sum(l.price * l.quantity for l in self._lines)

    def reset(self) -> None:
        self._lines = []


@dataclass
class OrderDraft:
    builder: OrderBuilder
    payment_method: PaymentMethod = "cash"
    note: str = ""
    timezone: str = field(default=POS_TIMEZONE)

    def set_note(self, text: str) -> None:
        # edits past the limit are dropped, like the text area's maxLength
        if len(text) <= NOTE_MAX_LENGTH:
            self.note = text

    def to_order(self, now: datetime | None = None) -> Order:
        if self.builder.is_empty:
            raise ValidationError("Cannot submit an empty order")
        now = now or datetime.now(ZoneInfo(self.timezone))
        if now.tzinfo is not None:
            now = now.astimezone(ZoneInfo(self.timezone))
        return Order(
            items=self.builder.lines,
            total=self.builder.total(),
            payment_method=self.payment_method,
            date=now.strftime(DATETIME_FORMAT),
            note=self.note.strip() or None,
        )

    def reset(self) -> None:
        self.builder.reset()
        self.note = ""
