import streamlit as st

from gato_pos.backend.cart import OrderBuilder, OrderDraft
from gato_pos.backend.config import NOTE_MAX_LENGTH
from gato_pos.backend.errors import ValidationError
from gato_pos.backend.menu import MenuCatalog, MenuItem
from gato_pos.dashboard.utils.api_client import ApiError, PosApiClient

PAYMENT_LABELS = {"cash": "Nakit Alındı", "card": "Kart Alındı"}


def _catalog(client: PosApiClient) -> MenuCatalog:
    if "menu" not in st.session_state:
        rows = client.menu()
        st.session_state.menu = MenuCatalog(
            [MenuItem(r["category"], r["product"], r["price"]) for r in rows]
        )
    return st.session_state.menu


def _draft(client: PosApiClient) -> OrderDraft:
    if "draft" not in st.session_state:
        st.session_state.draft = OrderDraft(OrderBuilder(_catalog(client)))
    return st.session_state.draft


def _product_selector(catalog: MenuCatalog, draft: OrderDraft):
    options = [""]
    labels = {"": "Ürün Seçin..."}
    for category, items in catalog.grouped_menu().items():
        for item in items:
            key = f"{category}|{item.product}"
            options.append(key)
            labels[key] = f"{category} · {item.product} - {item.price:g} TL"

    col_sel, col_btn = st.columns([4, 1])
    choice = col_sel.selectbox(
        "Ürün", options, format_func=labels.get, label_visibility="collapsed", key="product-choice"
    )
    if col_btn.button("Ekle", use_container_width=True):
        draft.builder.add_line(choice.split("|", 1)[1] if choice else "")
        st.rerun()


def render(client: PosApiClient):
    st.header("Sipariş Ekranı")

    try:
        catalog = _catalog(client)
    except ApiError as e:
        st.error(str(e))
        return
    draft = _draft(client)

    _product_selector(catalog, draft)

    if st.session_state.pop("order_saved", False):
        st.success("Sipariş başarıyla kaydedildi!")
    warning = st.session_state.pop("order_warning", None)
    if warning:
        st.warning(warning)

    if draft.builder.is_empty:
        st.session_state.pop("submitting", None)
        return

    st.subheader("Mevcut Sipariş")
    for index, line in enumerate(draft.builder.lines):
        c_name, c_minus, c_qty, c_plus, c_price = st.columns([4, 1, 1, 1, 2])
        c_name.write(line.product)
        if c_minus.button("−", key=f"minus-{index}"):
            draft.builder.adjust_quantity(index, -1)
            st.rerun()
        c_qty.write(f"**{line.quantity}**")
        if c_plus.button("+", key=f"plus-{index}"):
            draft.builder.adjust_quantity(index, 1)
            st.rerun()
        c_price.write(f"{line.subtotal:g} TL")

    st.markdown(f"### Toplam: {draft.builder.total():g} TL")

    if draft.note.strip():
        st.info(f"**Not:** {draft.note}")

    st.markdown("#### Ödeme Yöntemi:")
    pay_cash, pay_card = st.columns(2)
    for col, method in ((pay_cash, "cash"), (pay_card, "card")):
        kind = "primary" if draft.payment_method == method else "secondary"
        if col.button(PAYMENT_LABELS[method], type=kind, use_container_width=True):
            draft.payment_method = method
            st.rerun()

    st.markdown("#### Not (İsteğe Bağlı):")
    draft.set_note(
        st.text_area(
            "Not",
            value=draft.note,
            max_chars=NOTE_MAX_LENGTH,
            placeholder="Sipariş ile ilgili not ekleyebilirsiniz...",
            label_visibility="collapsed",
        )
    )
    st.caption(f"{len(draft.note)}/{NOTE_MAX_LENGTH} karakter")

    # the click only flags the submit; the next run shows the disabled button and sends it
    submitting = st.session_state.get("submitting", False)
    label = "İşleniyor..." if submitting else "Siparişi Tamamla"
    if st.button(label, type="primary", disabled=submitting, key="submit-order"):
        st.session_state.submitting = True
        st.rerun()

    if submitting:
        st.session_state.submitting = False
        try:
            with st.spinner("İşleniyor..."):
                result = client.create_order(draft.to_order())
        except (ApiError, ValidationError) as e:
            st.error(f"Sipariş kaydedilirken hata oluştu. {e}")
            return
        draft.reset()
        st.session_state.order_saved = True
        st.session_state.order_warning = result.get("warning")
        st.rerun()
