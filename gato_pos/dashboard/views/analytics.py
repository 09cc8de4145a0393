import pandas as pd
import plotly.express as px
import streamlit as st

from gato_pos.backend.analytics import clamp_range, export_filename, preset_range, today_in
from gato_pos.backend.config import MAX_RANGE_DAYS
from gato_pos.dashboard.utils.api_client import ApiError, PosApiClient

PRESET_LABELS = {
    "today": "Bugün",
    "last7": "Son 7 Gün",
    "last30": "Son 30 Gün",
    "ytd": "Yılbaşından Beri",
    "custom": "Özel Aralık",
}


def _clamp(edited: str):
    start, end = clamp_range(st.session_state.range_start, st.session_state.range_end, edited)
    st.session_state.range_start = start
    st.session_state.range_end = end


def _date_range():
    today = today_in()
    preset = st.radio(
        "Tarih aralığı",
        list(PRESET_LABELS),
        format_func=PRESET_LABELS.get,
        horizontal=True,
        index=1,
    )
    if preset != "custom":
        return preset_range(preset, today)

    if "range_start" not in st.session_state:
        st.session_state.range_start, st.session_state.range_end = preset_range("last30", today)

    col_s, col_e = st.columns(2)
    col_s.date_input("Başlangıç", key="range_start", on_change=_clamp, args=("start",))
    col_e.date_input("Bitiş", key="range_end", on_change=_clamp, args=("end",))
    st.caption(f"En fazla {MAX_RANGE_DAYS} gün seçilebilir.")
    return st.session_state.range_start, st.session_state.range_end


def render(client: PosApiClient):
    st.header("Analytics & İstatistikler")

    start, end = _date_range()
    start_s, end_s = start.isoformat(), end.isoformat()

    try:
        with st.spinner("Yükleniyor..."):
            report = client.analytics(start_s, end_s)
    except ApiError as e:
        st.error(str(e))
        return

    totals = report["totals"]
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Toplam Sipariş", totals["totalOrders"])
    col2.metric("Toplam Gelir", f"{totals['totalRevenue']:,.2f} TL")
    col3.metric("Nakit Gelir", f"{totals['cashRevenue']:,.2f} TL")
    col4.metric("Kart Gelir", f"{totals['cardRevenue']:,.2f} TL")

    try:
        csv_bytes = client.export_csv(start_s, end_s)
    except ApiError as e:
        st.error(str(e))
    else:
        st.download_button(
            "CSV İndir",
            csv_bytes,
            file_name=export_filename(start_s, end_s),
            mime="text/csv",
        )

    with st.expander("İstatistikleri yeniden hesapla"):
        st.caption("Sipariş listesi ile istatistikler uyuşmuyorsa tüm geçmişten yeniden hesaplar.")
        if st.button("Yeniden Hesapla"):
            try:
                months = client.rebuild_analytics()
            except ApiError as e:
                st.error(str(e))
            else:
                st.success(f"{months} ay yeniden hesaplandı.")

    if totals["totalOrders"] == 0:
        st.info("Bu tarih aralığında sipariş bulunmamaktadır.")
        return

    # ---------------- CHARTS ----------------
    series = pd.DataFrame(report["series"])
    trend = series.melt(
        id_vars="date",
        value_vars=["totalRevenue", "totalOrders"],
        var_name="metric",
        value_name="value",
    ).replace({"metric": {"totalRevenue": "Gelir (TL)", "totalOrders": "Sipariş Sayısı"}})
    st.plotly_chart(
        px.bar(trend, x="date", y="value", color="metric", barmode="group",
               title="Günlük Gelir Trendi"),
        use_container_width=True,
    )

    col_pie, col_top = st.columns(2)
    mix = pd.DataFrame(report["paymentMix"])
    col_pie.plotly_chart(
        px.pie(mix, names="name", values="value", title="Ödeme Yöntemi Dağılımı",
               color="name", color_discrete_map={"Nakit": "#4caf50", "Kart": "#2196f3"}),
        use_container_width=True,
    )

    top = pd.DataFrame(report["topProducts"])
    col_top.plotly_chart(
        px.bar(top, x="product", y="quantity", title="En Çok Satılan Ürünler (Top 10)",
               text_auto=True),
        use_container_width=True,
    )

    # ---------------- DAILY BREAKDOWN ----------------
    st.markdown("### Günlük Detay")
    for day in report["days"]:
        with st.container(border=True):
            head, orders_badge, revenue_badge = st.columns([3, 1, 1])
            head.subheader(day["date"])
            orders_badge.markdown(f"**{day['totalOrders']} sipariş**")
            revenue_badge.markdown(f"**{day['totalRevenue']:,.2f} TL**")
            st.write(f"💵 Nakit: {day['cashOrders']}   💳 Kart: {day['cardOrders']}")
            st.markdown("**En Çok Satılan Ürünler:**")
            for item in day["topProducts"]:
                st.write(f"{item['product']} - {item['quantity']}x")

