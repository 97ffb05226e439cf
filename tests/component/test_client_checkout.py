"""Component tests for the guest ordering client against the running app."""

import pytest

from app.client import OrderingAPIError, OrderingClient, checkout
from app.services.cart import Cart, CartStore


@pytest.fixture
def api(client) -> OrderingClient:
    return OrderingClient(http=client)


@pytest.fixture
def full_cart(api, seeded) -> Cart:
    view = api.get_public_menu(seeded["res_id"], seeded["qr_id"])
    cart = Cart()
    cart.add(view.entry(seeded["paneer"]), quantity=2)
    cart.add(view.entry(seeded["chicken"]), variant="Full")
    cart.add(view.entry(seeded["chai"]), quantity=3)
    cart.set_instructions(seeded["paneer"], "extra mint chutney")
    return cart


@pytest.mark.component
class TestPublicMenuView:
    """Test suite for OrderingClient.get_public_menu."""

    def test_view(self, api, seeded) -> None:
        """Test that the public menu view carries restaurant, table and entries."""
        view = api.get_public_menu(seeded["res_id"], seeded["qr_id"])

        assert view.restaurant["name"] == "Spice Route"
        assert view.qr_code["tableNumber"] == "T1"
        assert view.categories == ["All", "Starters", "Mains", "Beverages"]
        # special items first
        assert view.entries[0].name == "Paneer Tikka"
        assert [e.name for e in view.filter(vegetarian_only=True)] == ["Paneer Tikka", "Masala Chai"]

    def test_variant_entry_keeps_base_price(self, api, seeded) -> None:
        """Test that a variant item keeps its base price on the entry."""
        chicken = api.get_public_menu(seeded["res_id"], seeded["qr_id"]).entry(seeded["chicken"])

        assert chicken.price == 0.0
        assert chicken.lowest_price == 220.0
        assert [v["name"] for v in chicken.available_variants] == ["Half", "Full"]

    def test_unknown_table(self, api, seeded) -> None:
        """Test that an unknown table raises an API error with status 404."""
        with pytest.raises(OrderingAPIError) as exc_info:
            api.get_public_menu(seeded["res_id"], "QRNOPE")
        assert exc_info.value.status_code == 404
        assert exc_info.value.message == "QR code not found or inactive"


@pytest.mark.component
class TestCheckout:
    """Test suite for checkout()."""

    def test_cart_matches_server_totals(self, api, seeded, full_cart) -> None:
        """Test that the client cart totals equal the server's totals."""
        assert full_cart.total == 1097.0

        confirmation = checkout(api, seeded["res_id"], seeded["qr_id"], full_cart, name="Asha Rao", phone="+919876543210")

        tracked = api.track_order(confirmation.order_id)
        assert tracked["total"] == confirmation.total == 1097.0

    def test_confirmation(self, api, seeded, full_cart) -> None:
        """Test that checkout returns the order id, totals and estimated time."""
        confirmation = checkout(
            api,
            seeded["res_id"],
            seeded["qr_id"],
            full_cart,
            name="Asha Rao",
            phone="+919876543210",
            special_request="Window seat",
        )

        assert confirmation.order_id.startswith("ORD-")
        assert confirmation.status == "pending"
        assert confirmation.estimated_time == "25 mins"
        assert confirmation.customer_info["email"] == "guest@example.com"
        assert confirmation.customer_info["specialInstructions"] == "Window seat"
        assert len(confirmation.items) == 3
        assert full_cart.is_empty

    def test_clears_persisted_cart(self, api, seeded, full_cart, tmp_path) -> None:
        """Test that a successful checkout deletes the stored cart."""
        store = CartStore(tmp_path)
        path = store.save(seeded["res_id"], seeded["qr_id"], full_cart)

        checkout(api, seeded["res_id"], seeded["qr_id"], full_cart, name="Asha", phone="9876543210", store=store)

        assert not path.exists()

    def test_queues_tasks(self, api, seeded, full_cart, celery_tasks) -> None:
        """Test that checkout queues the notification and ledger tasks."""
        confirmation = checkout(api, seeded["res_id"], seeded["qr_id"], full_cart, name="Asha", phone="9876543210")

        sent = celery_tasks["notify"].delay.call_args.args[0]
        assert sent["order_id"] == confirmation.order_id
        assert sent["customer_email"] == "guest@example.com"

    def test_empty_cart(self, api, seeded) -> None:
        """Test that an empty cart is refused before any request."""
        with pytest.raises(OrderingAPIError, match="Cart is empty"):
            checkout(api, seeded["res_id"], seeded["qr_id"], Cart(), name="Asha", phone="9876543210")

    def test_rejected_order_keeps_cart(self, api, client, seeded, full_cart, admin_headers, tmp_path) -> None:
        """Test that a rejected order leaves the stored cart in place."""
        store = CartStore(tmp_path)
        path = store.save(seeded["res_id"], seeded["qr_id"], full_cart)
        client.patch(f"/api/menu/{seeded['chai']}/availability", json={"isAvailable": False}, headers=admin_headers)

        with pytest.raises(OrderingAPIError) as exc_info:
            checkout(api, seeded["res_id"], seeded["qr_id"], full_cart, name="Asha", phone="9876543210", store=store)

        assert exc_info.value.status_code == 400
        assert "not available" in exc_info.value.message
        assert len(full_cart) == 3
        assert path.exists()
