import pytest
from google.auth.exceptions import RefreshError

from gato_pos.backend.errors import NotFoundError, PersistenceError, ValidationError
from gato_pos.backend.orders import CREATE_STATS_WARNING, DELETE_STATS_WARNING


def test_create_assigns_id_and_updates_aggregate(fake_db, store, make_order):
    result = store.create(make_order([("Americano", 175, 2)], note="no sugar"))

    assert result.stats_synced is True
    assert result.order.id in fake_db.collection("orders").docs
    saved = fake_db.collection("orders").docs[result.order.id]
    assert saved["note"] == "no sugar"
    assert saved["paymentMethod"] == "cash"
    assert "createdAt" in saved

    daily = fake_db.collection("monthlyAggregates").docs["2024-03"]["dailyStats"]["2024-03-01"]
    assert daily["totalOrders"] == 1
    assert daily["itemCounts"] == {"Americano": 2}


def test_list_is_newest_first(store, make_order):
    first = store.create(make_order([("Latte", 195, 1)], date="2024-03-02 09:00")).order
    second = store.create(make_order([("Mocha", 230, 1)], date="2024-03-01 09:00")).order

    orders = store.list()
    assert [o.id for o in orders] == [second.id, first.id]
    assert orders[0].items[0].product == "Mocha"


def test_list_in_range_filters_by_day(store, make_order):
    store.create(make_order([("Latte", 195, 1)], date="2024-03-01 23:59"))
    store.create(make_order([("Mocha", 230, 1)], date="2024-03-02 00:01"))

    orders = store.list_in_range("2024-03-01", "2024-03-01")
    assert [o.date for o in orders] == ["2024-03-01 23:59"]


def test_delete_reverses_aggregate(fake_db, store, make_order):
    order = store.create(make_order([("Americano", 175, 2)])).order
    result = store.delete(order.id)

    assert result.stats_synced is True
    assert order.id not in fake_db.collection("orders").docs
    assert fake_db.collection("monthlyAggregates").docs == {}


def test_delete_missing_order(store):
    with pytest.raises(NotFoundError):
        store.delete("nope")


@pytest.mark.parametrize(
    "items,payment,total,date",
    [
        ([], "cash", 0, "2024-03-01 10:00"),
        ([("Latte", 195, 1)], "crypto", 195, "2024-03-01 10:00"),
        ([("Latte", 195, 1)], "cash", 999, "2024-03-01 10:00"),
        ([("Latte", 195, 1)], "cash", 195, "yesterday"),
        ([("Latte", 195, 1)], "cash", 195, "2024-03-01garbage"),
        ([("Latte", 195, 1)], "cash", 195.01, "2024-03-01 10:00"),
        ([("Cookie", 0.005, 1)], "cash", 0.005, "2024-03-01 10:00"),
        ([("Latte", -1, 1)], "cash", -1, "2024-03-01 10:00"),
    ],
)
def test_create_rejects_invalid_orders(fake_db, store, make_order, items, payment, total, date):
    order = make_order(items, payment=payment, date=date)
    order.total = total
    with pytest.raises(ValidationError):
        store.create(order)
    assert fake_db.collection("orders").docs == {}


def test_create_rejects_long_note(store, make_order):
    with pytest.raises(ValidationError):
        store.create(make_order([("Latte", 195, 1)], note="x" * 301))


def test_write_failure_is_persistence_error(fake_db, store, make_order):
    fake_db.fail("add", "orders")
    with pytest.raises(PersistenceError):
        store.create(make_order([("Latte", 195, 1)]))


def test_aggregate_failure_keeps_order(fake_db, store, make_order):
    fake_db.fail("set", "monthlyAggregates")
    result = store.create(make_order([("Latte", 195, 1)]))

    assert result.stats_synced is False
    assert result.warning == CREATE_STATS_WARNING
    assert result.order.id in fake_db.collection("orders").docs


def test_rebuild_reconciles_after_failure(fake_db, store, make_order):
    fake_db.fail("set", "monthlyAggregates")
    store.create(make_order([("Latte", 195, 1)]))
    fake_db.failures.clear()

    assert store.rebuild_aggregates() == 1
    daily = fake_db.collection("monthlyAggregates").docs["2024-03"]["dailyStats"]["2024-03-01"]
    assert daily["totalOrders"] == 1


def test_get_returns_stored_order(store, make_order):
    created = store.create(make_order([("Kek", 240, 2)], payment="card")).order
    fetched = store.get(created.id)
    assert fetched.total == 480
    assert fetched.payment_method == "card"
    assert fetched.note is None


def test_delete_aggregate_failure_keeps_deletion(fake_db, store, make_order):
    order = store.create(make_order([("Latte", 195, 1)])).order
    fake_db.fail("set", "monthlyAggregates")
    fake_db.fail("delete", "monthlyAggregates")

    result = store.delete(order.id)

    assert result.stats_synced is False
    assert result.warning == DELETE_STATS_WARNING
    assert order.id not in fake_db.collection("orders").docs


def test_auth_failure_on_aggregate_is_reported(fake_db, store, make_order):
    fake_db.fail("get", "monthlyAggregates", RefreshError("token expired"))
    result = store.create(make_order([("Latte", 195, 1)]))

    assert result.stats_synced is False
    assert result.order.id in fake_db.collection("orders").docs


def test_auth_failure_on_write_is_persistence_error(fake_db, store, make_order):
    fake_db.fail("add", "orders", RefreshError("token expired"))
    with pytest.raises(PersistenceError):
        store.create(make_order([("Latte", 195, 1)]))


def test_create_stores_total_in_cents(fake_db, store, make_order):
    # 0.1 * 3 == 0.30000000000000004
    result = store.create(make_order([("Cookie", 0.1, 3)]))

    assert fake_db.collection("orders").docs[result.order.id]["total"] == 0.3
    daily = fake_db.collection("monthlyAggregates").docs["2024-03"]["dailyStats"]["2024-03-01"]
    assert daily["totalRevenue"] == 0.3


def test_create_accepts_bare_day(store, make_order):
    result = store.create(make_order([("Latte", 195, 1)], date="2024-03-01"))
    assert result.order.day == "2024-03-01"
