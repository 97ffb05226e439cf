"""Component tests for order placement, tracking and staff order handling."""

import io

import pytest
from openpyxl import load_workbook


@pytest.mark.component
class TestPlaceOrder:
    """Test suite for POST /api/orders."""

    def test_server_side_totals(self, client, order_payload) -> None:
        """Test that totals are computed on the server."""
        response = client.post("/api/orders", json=order_payload)

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        data = body["data"]
        assert data["orderID"].startswith("ORD-")
        assert data["status"] == "pending"
        assert data["tableNumber"] == "T1"
        assert data["subtotal"] == 1020.0
        assert data["tax"] == 77.0
        assert data["total"] == 1097.0
        assert data["createdAt"]

    def test_estimated_time_is_slowest_item(self, client, order_payload) -> None:
        """Test that the estimated time is the slowest item's preparation time."""
        data = client.post("/api/orders", json=order_payload).json()["data"]
        assert data["estimatedTime"] == 25

    def test_estimated_time_default(self, client, seeded) -> None:
        """Test that the estimated time defaults when no item sets one."""
        payload = {
            "resID": seeded["res_id"],
            "qrID": seeded["qr_id"],
            "customer": {"name": "Dev", "phone": "9876543210"},
            "items": [{"menuID": seeded["chai"], "quantity": 1}],
        }
        data = client.post("/api/orders", json=payload).json()["data"]
        assert data["estimatedTime"] == 20
        assert data["total"] == 44.0

    def test_line_items(self, client, order_payload) -> None:
        """Test that order lines snapshot name, variant and price."""
        items = client.post("/api/orders", json=order_payload).json()["data"]["items"]

        assert [(i["name"], i["variantName"], i["quantity"]) for i in items] == [
            ("Paneer Tikka", None, 2),
            ("Butter Chicken", "Full", 1),
            ("Masala Chai", None, 3),
        ]
        assert items[0]["unitPrice"] == 250.0
        assert items[0]["taxPercentage"] == 5.0
        assert items[0]["specialInstructions"] == "extra mint chutney"
        assert items[1]["unitPrice"] == 400.0
        assert items[1]["taxPercentage"] == 10.0
        assert items[2]["lineTotal"] == 120.0

    def test_client_totals_are_ignored(self, client, order_payload) -> None:
        """Test that totals sent by the client are ignored."""
        order_payload["total"] = 1.0
        order_payload["items"][0]["price"] = 1.0
        data = client.post("/api/orders", json=order_payload).json()["data"]
        assert data["total"] == 1097.0

    def test_queues_background_tasks(self, client, order_payload, celery_tasks) -> None:
        """Test that placing an order queues notification and ledger tasks."""
        order_id = client.post("/api/orders", json=order_payload).json()["data"]["orderID"]

        celery_tasks["export"].delay.assert_called_once()
        record = celery_tasks["export"].delay.call_args.args[0]
        assert record["order_id"] == order_id
        assert record["total"] == 1097.0
        assert record["order_status"] == "pending"

        celery_tasks["notify"].delay.assert_called_once()
        message = celery_tasks["notify"].delay.call_args.args[0]
        assert message["order_id"] == order_id
        assert message["restaurant_name"] == "Spice Route"
        assert message["customer_email"] == "asha@spiceroute.in"

    def test_unknown_item_rejected(self, client, order_payload, celery_tasks) -> None:
        """Test that an unknown menu item is rejected."""
        order_payload["items"].append({"menuID": "MENUDOESNOTEXIST", "quantity": 1})
        response = client.post("/api/orders", json=order_payload)

        assert response.status_code == 400
        assert response.json()["success"] is False
        celery_tasks["export"].delay.assert_not_called()

    def test_unavailable_item_rejected(self, client, order_payload, seeded) -> None:
        """Test that an unavailable item is rejected."""
        order_payload["items"] = [{"menuID": seeded["soup"], "quantity": 1}]
        response = client.post("/api/orders", json=order_payload)
        assert response.status_code == 400
        assert "not available" in response.json()["message"]

    def test_unavailable_variant_rejected(self, client, order_payload, seeded) -> None:
        """Test that an unavailable variant is rejected."""
        order_payload["items"] = [{"menuID": seeded["chicken"], "quantity": 1, "variantName": "Quarter"}]
        assert client.post("/api/orders", json=order_payload).status_code == 400

    def test_unknown_variant_rejected(self, client, order_payload, seeded) -> None:
        """Test that an unknown variant is rejected."""
        order_payload["items"] = [{"menuID": seeded["chicken"], "quantity": 1, "variantName": "Family"}]
        assert client.post("/api/orders", json=order_payload).status_code == 400

    def test_variant_required(self, client, order_payload, seeded) -> None:
        """Test that an item with variants needs one named."""
        order_payload["items"] = [{"menuID": seeded["chicken"], "quantity": 1}]
        response = client.post("/api/orders", json=order_payload)
        assert response.status_code == 400
        assert "choose a variant" in response.json()["message"]

    def test_empty_items_fail_validation(self, client, order_payload) -> None:
        """Test that an order without items fails validation."""
        order_payload["items"] = []
        response = client.post("/api/orders", json=order_payload)

        assert response.status_code == 400
        body = response.json()
        assert body["message"] == "Validation failed"
        assert body["errors"]

    def test_zero_quantity_fails_validation(self, client, order_payload) -> None:
        """Test that a zero quantity fails validation."""
        order_payload["items"][0]["quantity"] = 0
        assert client.post("/api/orders", json=order_payload).status_code == 400

    def test_bad_phone_fails_validation(self, client, order_payload) -> None:
        """Test that a malformed phone number fails validation."""
        order_payload["customer"]["phone"] = "call me"
        assert client.post("/api/orders", json=order_payload).status_code == 400

    def test_blank_email_is_allowed(self, client, order_payload) -> None:
        """Test that a blank email is accepted."""
        order_payload["customer"]["email"] = ""
        assert client.post("/api/orders", json=order_payload).status_code == 201

    def test_unknown_table(self, client, order_payload) -> None:
        """Test that an unknown table returns 404."""
        order_payload["qrID"] = "QRUNKNOWN"
        assert client.post("/api/orders", json=order_payload).status_code == 404

    def test_inactive_table(self, client, order_payload, seeded, admin_headers) -> None:
        """Test that an inactive table returns 404."""
        client.put(f"/api/qr/{seeded['qr_id']}", json={"isActive": False}, headers=admin_headers)
        assert client.post("/api/orders", json=order_payload).status_code == 404

    def test_inactive_restaurant(self, client, order_payload, seeded, admin_headers) -> None:
        """Test that an inactive restaurant returns 404."""
        client.put(f"/api/admin/restaurants/{seeded['res_id']}", json={"isActive": False}, headers=admin_headers)
        assert client.post("/api/orders", json=order_payload).status_code == 404


@pytest.mark.component
class TestTrackOrder:
    """Test suite for the public tracking endpoint."""

    def test_track(self, client, placed_order) -> None:
        """Test that tracking returns status, time and totals."""
        response = client.get(f"/api/orders/track/{placed_order['orderID']}")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["orderID"] == placed_order["orderID"]
        assert data["status"] == "pending"
        assert data["estimatedTime"] == 25
        assert data["subtotal"] == 1020.0
        assert data["tax"] == 77.0
        assert data["total"] == 1097.0

    def test_unknown_order(self, client) -> None:
        """Test that tracking an unknown order returns 404."""
        assert client.get("/api/orders/track/ORD-000000-XXXXXX").status_code == 404


@pytest.mark.component
class TestStaffOrders:
    """Test suite for staff order listing, status and export."""

    def test_requires_token(self, client, placed_order) -> None:
        """Test that listing orders needs a token."""
        assert client.get("/api/orders", params={"resID": "x"}).status_code == 401

    def test_admin_list_needs_restaurant(self, client, admin_headers, placed_order) -> None:
        """Test that an admin must name a restaurant to list orders."""
        assert client.get("/api/orders", headers=admin_headers).status_code == 400

    def test_admin_list(self, client, admin_headers, seeded, placed_order) -> None:
        """Test that an admin lists a named restaurant's orders."""
        response = client.get("/api/orders", params={"resID": seeded["res_id"]}, headers=admin_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 1
        assert body["orders"][0]["orderID"] == placed_order["orderID"]
        assert body["orders"][0]["customerName"] == "Asha Rao"
        assert len(body["orders"][0]["items"]) == 3

    def test_subadmin_list_is_scoped(self, client, subadmin_headers, placed_order) -> None:
        """Test that a subadmin only lists their own restaurant's orders."""
        body = client.get("/api/orders", headers=subadmin_headers).json()
        assert body["total"] == 1

    def test_pagination_and_status_filter(self, client, subadmin_headers, order_payload) -> None:
        """Test that listing paginates and filters by status."""
        for _ in range(3):
            client.post("/api/orders", json=order_payload)

        page = client.get("/api/orders", params={"skip": 1, "limit": 1}, headers=subadmin_headers).json()
        assert page["total"] == 3
        assert len(page["orders"]) == 1

        served = client.get("/api/orders", params={"status": "served"}, headers=subadmin_headers).json()
        assert served["total"] == 0

    def test_invalid_status_filter(self, client, subadmin_headers) -> None:
        """Test that an unknown status filter fails validation."""
        assert client.get("/api/orders", params={"status": "lost"}, headers=subadmin_headers).status_code == 400

    def test_get_order(self, client, subadmin_headers, placed_order) -> None:
        """Test that staff can fetch one order by its id."""
        response = client.get(f"/api/orders/{placed_order['orderID']}", headers=subadmin_headers)
        assert response.status_code == 200
        assert response.json()["data"]["specialRequest"] == "Window seat"

    def test_update_status(self, client, subadmin_headers, placed_order) -> None:
        """Test that staff can change an order's status."""
        order_id = placed_order["orderID"]
        response = client.patch(f"/api/orders/{order_id}/status", json={"status": "Preparing"}, headers=subadmin_headers)

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "preparing"
        assert client.get(f"/api/orders/track/{order_id}").json()["data"]["status"] == "preparing"

    def test_any_status_may_be_set(self, client, subadmin_headers, placed_order) -> None:
        """Test that any status may follow any other."""
        order_id = placed_order["orderID"]
        for value in ["served", "pending", "cancelled", "accepted"]:
            response = client.patch(f"/api/orders/{order_id}/status", json={"status": value}, headers=subadmin_headers)
            assert response.status_code == 200

    def test_invalid_status(self, client, subadmin_headers, placed_order) -> None:
        """Test that an unknown status is rejected."""
        response = client.patch(
            f"/api/orders/{placed_order['orderID']}/status",
            json={"status": "teleported"},
            headers=subadmin_headers,
        )
        assert response.status_code == 400
        assert "Invalid status" in response.json()["message"]

    def test_other_restaurant_forbidden(self, client, admin_headers, subadmin_headers, placed_order) -> None:
        """Test that a subadmin cannot touch another restaurant's order."""
        other = client.post("/api/admin/restaurants", json={"name": "Other Place"}, headers=admin_headers).json()["data"]
        response = client.get("/api/orders", params={"resID": other["resID"]}, headers=subadmin_headers)
        assert response.status_code == 403

    def test_export(self, client, subadmin_headers, placed_order) -> None:
        """Test that the export is a workbook with one row per order."""
        response = client.get("/api/orders/export", headers=subadmin_headers)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith(
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
        )
        assert "attachment" in response.headers["content-disposition"]

        rows = list(load_workbook(io.BytesIO(response.content)).active.iter_rows(values_only=True))
        assert rows[0][0] == "order_id"
        assert rows[1][0] == placed_order["orderID"]
        assert "2x Paneer Tikka" in rows[1][rows[0].index("items")]
