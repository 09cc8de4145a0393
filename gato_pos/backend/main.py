import logging
from typing import List, Literal, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field

from .aggregates import AggregateMaintainer
from .analytics import build_report, export_csv, export_filename, parse_range
from .auth import CredentialSource, SessionGate
from .config import LOG_LEVEL, NOTE_MAX_LENGTH
from .db import get_db
from .errors import PosError
from .menu import MenuCatalog, get_catalog
from .models import LineItem, Order
from .orders import OrderStore

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Gato Coffee Bar POS")


# -----------------------------
# Request bodies
# -----------------------------
class LoginIn(BaseModel):
    username: str = ""
    pin: str = ""


class LineItemIn(BaseModel):
    product: str
    price: float = Field(ge=0)
    quantity: int = Field(ge=1)


class OrderIn(BaseModel):
    items: List[LineItemIn]
    total: float
    paymentMethod: Literal["cash", "card"]
    date: str
    note: Optional[str] = Field(default=None, max_length=NOTE_MAX_LENGTH)

    def to_order(self) -> Order:
        return Order(
            items=[LineItem(i.product, i.price, i.quantity) for i in self.items],
            total=self.total,
            payment_method=self.paymentMethod,
            date=self.date,
            note=(self.note or "").strip() or None,
        )


# -----------------------------
# Dependencies
# -----------------------------
def get_order_store() -> OrderStore:
    db = get_db()
    return OrderStore(db, AggregateMaintainer(db))


def get_maintainer() -> AggregateMaintainer:
    return AggregateMaintainer(get_db())


def get_gate() -> SessionGate:
    return SessionGate(CredentialSource.from_env())


def get_menu() -> MenuCatalog:
    return get_catalog()


# -----------------------------
# Error mapping
# -----------------------------
@app.exception_handler(PosError)
async def pos_error_handler(request: Request, exc: PosError):
    logger.warning("%s %s -> %s: %s", request.method, request.url.path, type(exc).__name__, exc)
    return JSONResponse(status_code=exc.status_code, content={"detail": str(exc)})


# -----------------------------
# Session
# -----------------------------
@app.post("/login")
def login(body: LoginIn, gate: SessionGate = Depends(get_gate)):
    username = gate.login(body.username, body.pin)
    return {"username": username}


# -----------------------------
# Menu
# -----------------------------
@app.get("/menu")
def menu(catalog: MenuCatalog = Depends(get_menu)):
    return catalog.to_list()


# -----------------------------
# Orders
# -----------------------------
@app.post("/orders", status_code=201)
def create_order(body: OrderIn, store: OrderStore = Depends(get_order_store)):
    result = store.create(body.to_order())
    return result.to_dict()


@app.get("/orders")
def list_orders(store: OrderStore = Depends(get_order_store)):
    return [order.to_dict() for order in store.list()]


@app.delete("/orders/{order_id}")
def delete_order(order_id: str, store: OrderStore = Depends(get_order_store)):
    result = store.delete(order_id)
    return result.to_dict()


# -----------------------------
# Analytics
# -----------------------------
@app.get("/analytics")
def analytics(start: str, end: str, maintainer: AggregateMaintainer = Depends(get_maintainer)):
    start, end = parse_range(start, end)
    report = build_report(maintainer.fetch_range(start, end), start, end)
    return report.to_dict()


@app.get("/analytics/export")
def analytics_export(start: str, end: str, maintainer: AggregateMaintainer = Depends(get_maintainer)):
    start, end = parse_range(start, end)
    report = build_report(maintainer.fetch_range(start, end), start, end)
    filename = export_filename(start, end)
    return Response(
        content=export_csv(report),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.post("/analytics/rebuild")
def analytics_rebuild(store: OrderStore = Depends(get_order_store)):
    months = store.rebuild_aggregates()
    return {"months": months}
