import streamlit as st

from gato_pos.dashboard.utils.api_client import ApiError, PosApiClient

PAYMENT_NAMES = {"cash": "Nakit", "card": "Kart"}


def render(client: PosApiClient):
    st.header("Sipariş Geçmişi")

    warning = st.session_state.pop("history_warning", None)
    if warning:
        st.warning(warning)

    try:
        orders = client.list_orders()
    except ApiError as e:
        st.error(str(e))
        return

    if not orders:
        st.info("Henüz sipariş bulunmamaktadır.")
        return

    pending = st.session_state.get("confirm_delete")

    for order in orders:
        with st.container(border=True):
            col_date, col_pay = st.columns(2)
            col_date.markdown(f"**Tarih:** {order.date}")
            col_pay.markdown(f"**Ödeme:** {PAYMENT_NAMES.get(order.payment_method, order.payment_method)}")

            for item in order.items:
                st.write(f"{item.quantity}x {item.product} - {item.subtotal:g} TL")

            if order.note:
                st.markdown(f"**Not:** {order.note}")

            col_total, col_delete = st.columns([4, 1])
            col_total.markdown(f"**Toplam: {order.total:g} TL**")

            if pending == order.id:
                st.warning("Bu siparişi silmek istediğinizden emin misiniz?")
                yes, no = st.columns(2)
                if yes.button("Evet, sil", key=f"yes-{order.id}", type="primary"):
                    st.session_state.confirm_delete = None
                    try:
                        result = client.delete_order(order.id)
                    except ApiError as e:
                        st.error(f"Sipariş silinirken hata oluştu. {e}")
                        return
                    if result.get("warning"):
                        st.session_state.history_warning = result["warning"]
                    st.rerun()
                if no.button("Vazgeç", key=f"no-{order.id}"):
                    st.session_state.confirm_delete = None
                    st.rerun()
            elif col_delete.button("Sil", key=f"del-{order.id}"):
                st.session_state.confirm_delete = order.id
                st.rerun()
