import copy
import itertools
from datetime import datetime, timedelta, timezone

import pytest
from firebase_admin import firestore
from google.api_core.exceptions import ServiceUnavailable

from gato_pos.backend.aggregates import AggregateMaintainer
from gato_pos.backend.menu import MenuCatalog
from gato_pos.backend.models import LineItem, Order
from gato_pos.backend.orders import OrderStore


# ------------------------------ Fake Firestore -------------------------------


class FakeSnapshot:
    def __init__(self, ref, data):
        self.reference = ref
        self.id = ref.id
        self._data = data

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return copy.deepcopy(self._data) if self._data is not None else None


class FakeDocRef:
    def __init__(self, collection, doc_id):
        self.collection = collection
        self.id = doc_id

    def get(self):
        self.collection.db.check("get", self.collection.name)
        return FakeSnapshot(self, self.collection.docs.get(self.id))

    def set(self, data):
        self.collection.db.check("set", self.collection.name)
        self.collection.docs[self.id] = copy.deepcopy(data)

    def delete(self):
        self.collection.db.check("delete", self.collection.name)
        self.collection.docs.pop(self.id, None)


class FakeQuery:
    def __init__(self, collection, field, direction):
        self.collection = collection
        self.field = field
        self.direction = direction

    def stream(self):
        snaps = list(self.collection.stream())
        reverse = self.direction == firestore.Query.DESCENDING
        return iter(sorted(snaps, key=lambda s: s.to_dict()[self.field], reverse=reverse))


class FakeCollection:
    def __init__(self, db, name):
        self.db = db
        self.name = name
        self.docs = {}

    def document(self, doc_id):
        return FakeDocRef(self, doc_id)

    def add(self, data):
        self.db.check("add", self.name)
        doc_id = f"{self.name}-{next(self.db.ids)}"
        # server timestamps resolve to a strictly increasing clock
        resolved = {
            k: (self.db.tick() if v is firestore.SERVER_TIMESTAMP else v) for k, v in data.items()
        }
        self.docs[doc_id] = copy.deepcopy(resolved)
        return self.db.tick(), FakeDocRef(self, doc_id)

    def order_by(self, field, direction=None):
        return FakeQuery(self, field, direction)

    def stream(self):
        self.db.check("stream", self.name)
        return iter([FakeSnapshot(FakeDocRef(self, i), d) for i, d in list(self.docs.items())])


class FakeFirestore:
    """Just enough of the Firestore client surface for the store code."""

    def __init__(self):
        self.collections = {}
        self.ids = itertools.count(1)
        self.failures = {}
        self._clock = datetime(2024, 3, 1, tzinfo=timezone.utc)

    def collection(self, name):
        return self.collections.setdefault(name, FakeCollection(self, name))

    def tick(self):
        self._clock += timedelta(seconds=1)
        return self._clock

    def fail(self, op, collection, error=None):
        self.failures[(op, collection)] = error or ServiceUnavailable(f"{op} on {collection} unavailable")

    def check(self, op, collection):
        if (op, collection) in self.failures:
            raise self.failures[(op, collection)]


# ------------------------------ Fixtures -------------------------------------


@pytest.fixture()
def fake_db():
    return FakeFirestore()


@pytest.fixture()
def maintainer(fake_db):
    return AggregateMaintainer(fake_db, clock=lambda: datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture()
def store(fake_db, maintainer):
    return OrderStore(fake_db, maintainer)


@pytest.fixture()
def catalog():
    return MenuCatalog.from_file()


def _make_order(items, payment="cash", date="2024-03-01 10:00", note=None):
    """items: list of (product, price, quantity)."""
    lines = [LineItem(p, price, q) for p, price, q in items]
    return Order(
        items=lines,
        total=sum(price * q for _, price, q in items),
        payment_method=payment,
        date=date,
        note=note,
    )


@pytest.fixture()
def make_order():
    return _make_order
