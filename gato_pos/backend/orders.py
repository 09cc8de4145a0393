from __future__ import annotations

import logging
from dataclasses import dataclass

from firebase_admin import firestore

from .aggregates import AggregateMaintainer
from .config import ORDERS_COLLECTION
from .db import backend_errors
from .errors import NotFoundError, PersistenceError
from .models import Order, day_of, parse_day, validate_order

logger = logging.getLogger(__name__)

CREATE_STATS_WARNING = (
    "Sipariş kaydedildi ancak günlük istatistikler güncellenemedi. "
    "İstatistikleri yeniden hesaplayın."
)
DELETE_STATS_WARNING = (
    "Sipariş silindi ancak günlük istatistikler güncellenemedi. "
    "İstatistikleri yeniden hesaplayın."
)


@dataclass
class WriteResult:
    """Outcome of a create/delete. The order write stands even when stats failed."""

    order: Order
    stats_synced: bool = True
    warning: str | None = None

    def to_dict(self) -> dict:
        return {
            "order": self.order.to_dict(),
            "statsSynced": self.stats_synced,
            "warning": self.warning,
        }


class OrderStore:
    def __init__(self, db, maintainer: AggregateMaintainer | None = None):
        self.db = db
        self.maintainer = maintainer or AggregateMaintainer(db)

    @property
    def _collection(self):
        return self.db.collection(ORDERS_COLLECTION)

    def create(self, order: Order) -> WriteResult:
        validate_order(order)
        order.total = round(order.total, 2)
        with backend_errors("save order"):
            _, doc_ref = self._collection.add(
                {**order.to_document(), "createdAt": firestore.SERVER_TIMESTAMP}
            )
        order.id = doc_ref.id
        logger.info("Order %s saved (%s, %s)", order.id, order.date, order.total)
        return self._sync(self.maintainer.apply_order, order, CREATE_STATS_WARNING)

    def list(self) -> list[Order]:
        with backend_errors("load orders"):
            query = self._collection.order_by("createdAt", direction=firestore.Query.DESCENDING)
            return [Order.from_document(snap.id, snap.to_dict()) for snap in query.stream()]

    def list_in_range(self, start: str, end: str) -> list[Order]:
        parse_day(start)
        parse_day(end)
        return [o for o in self.list() if start <= day_of(o.date) <= end]

    def get(self, order_id: str) -> Order:
        with backend_errors("load order"):
            snap = self._collection.document(order_id).get()
        if not snap.exists:
            raise NotFoundError(f"Order {order_id} not found")
        return Order.from_document(snap.id, snap.to_dict())

    def delete(self, order_id: str) -> WriteResult:
        order = self.get(order_id)
        with backend_errors("delete order"):
            self._collection.document(order_id).delete()
        logger.info("Order %s deleted", order_id)
        return self._sync(self.maintainer.reverse_order, order, DELETE_STATS_WARNING)

    def rebuild_aggregates(self) -> int:
        return self.maintainer.rebuild(self.list())

    def _sync(self, update, order: Order, warning: str) -> WriteResult:
        # no rollback: the order write already happened
        try:
            update(order)
        except PersistenceError:
            logger.error("Daily aggregate out of sync after order %s", order.id)
            return WriteResult(order=order, stats_synced=False, warning=warning)
        return WriteResult(order=order)
