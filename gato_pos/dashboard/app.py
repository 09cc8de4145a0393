import streamlit as st

from gato_pos.backend.auth import LoginForm, Session, SessionStore
from gato_pos.dashboard.utils.api_client import ApiError, PosApiClient, RemoteSessionGate
from gato_pos.dashboard.views import analytics, order_entry, order_history

# ---------------- CONFIG ----------------
st.set_page_config(page_title="Gato Coffee Bar", page_icon="☕", layout="wide")

VIEWS = {
    "Sipariş Oluştur": order_entry.render,
    "Sipariş Geçmişi": order_history.render,
    "İstatistikler": analytics.render,
}


@st.cache_resource
def get_client() -> PosApiClient:
    return PosApiClient()


def session_store() -> SessionStore:
    return SessionStore()


# ---------------- SESSION ----------------
if "session" not in st.session_state:
    st.session_state.session = session_store().load()
if "login_form" not in st.session_state:
    st.session_state.login_form = LoginForm()


def login_screen(client: PosApiClient):
    form: LoginForm = st.session_state.login_form

    st.title("☕ Gato Coffee Bar")
    st.caption("Yönetim Paneli")

    with st.form("login"):
        form.username = st.text_input("Kullanıcı Adı", value=form.username,
                                      placeholder="Kullanıcı adınızı giriniz")
        form.set_pin(st.text_input("PIN Kodu (6 haneli)", value=form.pin,
                                   type="password", max_chars=6, placeholder="••••••"))
        submitted = st.form_submit_button("Giriş Yap")

    if submitted:
        try:
            username = form.submit(RemoteSessionGate(client))
        except ApiError as e:
            form.error = str(e)
            username = None
        if username:
            session = Session(authenticated=True, username=username)
            session_store().save(session)
            st.session_state.session = session
            st.session_state.login_form = LoginForm()
        # redraw so a cleared PIN shows up empty
        st.rerun()

    if form.error:
        st.error(form.error)


def logout():
    session_store().clear()
    st.session_state.session = Session()
    st.session_state.login_form = LoginForm()


# ---------------- MAIN ----------------
client = get_client()
session: Session = st.session_state.session

if not session.authenticated:
    login_screen(client)
    st.stop()

head_l, head_r = st.columns([4, 1])
head_l.title("☕ Gato Coffee Bar")
head_r.markdown(f"👤 **{session.username}**")
if head_r.button("Çıkış Yap"):
    logout()
    st.rerun()

if client.state.error:
    banner_l, banner_r = st.columns([10, 1])
    banner_l.warning(f"⚠️ {client.state.error}")
    if banner_r.button("✕", key="dismiss-error"):
        client.dismiss_error()
        st.rerun()

view = st.radio("Görünüm", list(VIEWS), horizontal=True, label_visibility="collapsed")
VIEWS[view](client)

st.markdown("---")
st.caption("Gato Coffee Bar POS | Powered by Streamlit + FastAPI + Firestore")
