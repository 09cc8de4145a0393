"""HTTP client the dashboard uses to reach the POS backend."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from gato_pos.backend.config import API_URL
from gato_pos.backend.errors import AuthError, ValidationError
from gato_pos.backend.models import Order

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Any failed call, carrying the message shown in the banner."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class RequestState:
    loading: bool = False
    error: str | None = None


class PosApiClient:
    def __init__(self, base_url: str = API_URL, client: httpx.Client | None = None):
        # no timeout: a call waits until the backend answers or fails
        self._client = client or httpx.Client(base_url=base_url, timeout=None)
        self.state = RequestState()

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        self.state.loading = True
        self.state.error = None
        try:
            res = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error("Backend unreachable: %s", e)
            self.state.error = "Sunucuya ulaşılamadı. Lütfen tekrar deneyin."
            raise ApiError(self.state.error) from e
        finally:
            self.state.loading = False

        if res.is_error:
            try:
                detail = res.json().get("detail", res.text)
            except ValueError:
                detail = res.text
            if not isinstance(detail, str):
                detail = "Geçersiz istek"
            self.state.error = detail
            raise ApiError(detail, res.status_code)
        return res

    def dismiss_error(self) -> None:
        self.state.error = None

    def login(self, username: str, pin: str) -> str:
        res = self._request("POST", "/login", json={"username": username, "pin": pin})
        return res.json()["username"]

    def menu(self) -> list[dict[str, Any]]:
        return self._request("GET", "/menu").json()

    def create_order(self, order: Order) -> dict[str, Any]:
        return self._request("POST", "/orders", json=order.to_document()).json()

    def list_orders(self) -> list[Order]:
        data = self._request("GET", "/orders").json()
        return [Order.from_document(d.get("id"), d) for d in data]

    def delete_order(self, order_id: str) -> dict[str, Any]:
        return self._request("DELETE", f"/orders/{order_id}").json()

    def analytics(self, start: str, end: str) -> dict[str, Any]:
        return self._request("GET", "/analytics", params={"start": start, "end": end}).json()

    def export_csv(self, start: str, end: str) -> bytes:
        return self._request(
            "GET", "/analytics/export", params={"start": start, "end": end}
        ).content

    def rebuild_analytics(self) -> int:
        return self._request("POST", "/analytics/rebuild").json()["months"]


class RemoteSessionGate:
    """Session gate backed by the backend's /login endpoint."""

    def __init__(self, client: PosApiClient):
        self.client = client

    def login(self, username: str, pin: str) -> str:
        try:
            return self.client.login(username, pin)
        except ApiError as e:
            if e.status_code == 400:
                self.client.dismiss_error()
                raise ValidationError(str(e)) from e
            if e.status_code == 401:
                self.client.dismiss_error()
                raise AuthError(str(e)) from e
            raise
