from streamlit.testing.v1 import AppTest

from gato_pos.backend.orders import DELETE_STATS_WARNING


def _history_script():
    import streamlit as st

    from gato_pos.backend.models import LineItem, Order
    from gato_pos.backend.orders import DELETE_STATS_WARNING
    from gato_pos.dashboard.views import order_history

    class FakeClient:
        def list_orders(self):
            if st.session_state.get("deleted"):
                return []
            return [Order([LineItem("Latte", 195, 1)], 195, "cash", "2024-03-01 10:00", id="o1")]

        def delete_order(self, order_id):
            st.session_state.deleted = True
            return {"statsSynced": False, "warning": DELETE_STATS_WARNING}

    order_history.render(FakeClient())


def _entry_script():
    import streamlit as st

    from gato_pos.dashboard.views import order_entry

    class FakeClient:
        def menu(self):
            return [{"category": "Kahve", "product": "Americano", "price": 175}]

        def create_order(self, order):
            st.session_state.setdefault("created", []).append(order.to_document())
            return {"statsSynced": True, "warning": None}

    order_entry.render(FakeClient())


def test_delete_warning_shows_on_history():
    at = AppTest.from_function(_history_script)
    at.run()
    at.button(key="del-o1").click().run()
    at.button(key="yes-o1").click().run()

    assert [w.value for w in at.warning] == [DELETE_STATS_WARNING]
    assert at.info[0].value == "Henüz sipariş bulunmamaktadır."
    assert "order_warning" not in at.session_state


def test_submit_sends_order_once_and_clears_flag():
    at = AppTest.from_function(_entry_script)
    at.run()
    at.selectbox(key="product-choice").select("Kahve|Americano").run()
    next(b for b in at.button if b.label == "Ekle").click().run()

    at.button(key="submit-order").click().run()

    created = at.session_state["created"]
    assert len(created) == 1
    assert created[0]["total"] == 175
    assert "submitting" not in at.session_state
    assert at.success[0].value == "Sipariş başarıyla kaydedildi!"
