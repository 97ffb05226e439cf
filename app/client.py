"""
Guest Ordering Client

Python counterpart of the guest menu page: fetch the public menu for a
table's QR code, keep a cart (persisted per table) and check out.

Usage:
    with OrderingClient("http://localhost:5000") as api:
        view = api.get_public_menu("RES1A2B3C4D5E", "QR9F8E7D6C5B")
        cart = Cart()
        cart.add(view.entries[0])
        confirmation = checkout(api, view.res_id, view.qr_id, cart,
                                name="Asha", phone="+919876543210")
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

import httpx

from app.services.cart import (
    ALL_CATEGORIES,
    Cart,
    CartStore,
    MenuEntry,
    filter_entries,
    flatten_menu,
    menu_categories,
)

logger = logging.getLogger(__name__)

GUEST_EMAIL = "guest@example.com"
NO_ESTIMATE = "—"


class OrderingAPIError(Exception):
    """The ordering API rejected a request or answered with something unusable."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


@dataclass
class PublicMenuView:
    """Public menu of one table, flattened for display."""
    res_id: str
    qr_id: str
    restaurant: dict[str, Any]
    qr_code: dict[str, Any]
    menu: dict[str, list[dict[str, Any]]]
    entries: list[MenuEntry] = field(default_factory=list)

    @property
    def categories(self) -> list[str]:
        return menu_categories(self.menu)

    def filter(self, category: str = ALL_CATEGORIES, vegetarian_only: bool = False) -> list[MenuEntry]:
        return filter_entries(self.entries, category, vegetarian_only)

    def entry(self, menu_id: str) -> Optional[MenuEntry]:
        for e in self.entries:
            if e.menu_id == menu_id:
                return e
        return None


@dataclass
class OrderConfirmation:
    """What the guest sees after a successful checkout."""
    order_id: str
    customer_info: dict[str, str]
    items: list[dict[str, Any]]
    total: float
    timestamp: str
    status: str = "Pending"
    estimated_time: str = NO_ESTIMATE


def format_estimated_time(value: Any) -> str:
    if isinstance(value, bool):
        return NO_ESTIMATE
    if isinstance(value, (int, float)):
        return f"{value:g} mins"
    return value or NO_ESTIMATE


class OrderingClient:
    """
    Thin JSON client for the public ordering endpoints.

    Pass an existing httpx.Client (for example FastAPI's TestClient) via
    `http` to reuse its transport.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:5000",
        timeout: float = 30.0,
        http: Optional[httpx.Client] = None,
    ):
        self._owns_http = http is None
        self.http = http or httpx.Client(base_url=base_url, timeout=timeout)

    def __enter__(self) -> "OrderingClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_http:
            self.http.close()

    def _request(self, method: str, path: str, **kwargs) -> dict[str, Any]:
        try:
            response = self.http.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"{method} {path} failed: {e}")
            raise OrderingAPIError(str(e))

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.is_error:
            message = body.get("message") if isinstance(body, dict) else None
            raise OrderingAPIError(message or f"HTTP {response.status_code}", response.status_code)
        return body if isinstance(body, dict) else {}

    def get_public_menu(self, res_id: str, qr_id: str) -> PublicMenuView:
        body = self._request("GET", f"/api/menu/public/{res_id}/{qr_id}")
        data = body.get("data") or {}
        menu = data.get("menu") or {}
        return PublicMenuView(
            res_id=res_id,
            qr_id=qr_id,
            restaurant=data.get("restaurant") or {},
            qr_code=data.get("qrCode") or {},
            menu=menu,
            entries=flatten_menu(menu),
        )

    def place_order(self, payload: dict[str, Any]) -> dict[str, Any]:
        body = self._request("POST", "/api/orders", json=payload)
        return body.get("data") or body

    def track_order(self, order_id: str) -> dict[str, Any]:
        body = self._request("GET", f"/api/orders/track/{order_id}")
        return body.get("data") or {}


def build_order_payload(
    res_id: str,
    qr_id: str,
    cart: Cart,
    name: str,
    phone: str,
    email: Optional[str] = None,
    special_request: str = "",
) -> dict[str, Any]:
    return {
        "resID": res_id,
        "qrID": qr_id,
        "customer": {
            "name": name,
            "phone": phone,
            "email": email or GUEST_EMAIL,
        },
        "items": cart.to_order_items(),
        "specialRequest": special_request or "",
    }


def checkout(
    client: OrderingClient,
    res_id: str,
    qr_id: str,
    cart: Cart,
    name: str,
    phone: str,
    email: Optional[str] = None,
    special_request: str = "",
    store: Optional[CartStore] = None,
) -> OrderConfirmation:
    """
    Submit the cart as an order.

    On success the cart (and its persisted copy, when a store is given)
    is cleared. On failure the cart is left untouched.

    Raises:
        OrderingAPIError: empty cart, rejected order, or no orderID returned
    """
    if cart.is_empty:
        raise OrderingAPIError("Cart is empty")

    payload = build_order_payload(res_id, qr_id, cart, name, phone, email, special_request)
    data = client.place_order(payload)
    if not data or not data.get("orderID"):
        raise OrderingAPIError("Failed to place order")

    confirmation = OrderConfirmation(
        order_id=data["orderID"],
        customer_info={
            "name": payload["customer"]["name"],
            "phone": payload["customer"]["phone"],
            "email": payload["customer"]["email"],
            "specialInstructions": special_request or "",
        },
        items=cart.to_list(),
        total=cart.total,
        timestamp=data.get("createdAt") or datetime.now(timezone.utc).isoformat(),
        status=data.get("status") or "Pending",
        estimated_time=format_estimated_time(data.get("estimatedTime")),
    )

    cart.clear()
    if store is not None:
        store.delete(res_id, qr_id)

    logger.info(f"Order {confirmation.order_id} placed for {res_id}/{qr_id}")
    return confirmation
