"""Component tests for the public menu, categories and menu item management."""

import pytest


@pytest.mark.component
class TestPublicMenu:
    """Test suite for GET /api/menu/public/{resID}/{qrID}."""

    def test_grouped_by_category(self, client, seeded) -> None:
        """Test that the public menu groups available items by category."""
        response = client.get(f"/api/menu/public/{seeded['res_id']}/{seeded['qr_id']}")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["restaurant"]["name"] == "Spice Route"
        assert data["restaurant"]["currency"] == "INR"
        assert data["qrCode"]["tableNumber"] == "T1"
        assert list(data["menu"]) == ["Starters", "Mains", "Beverages"]
        assert [i["name"] for i in data["menu"]["Starters"]] == ["Paneer Tikka"]

    def test_price_is_lowest_available_variant(self, client, seeded) -> None:
        """Test that a variant item shows its cheapest available variant price."""
        data = client.get(f"/api/menu/public/{seeded['res_id']}/{seeded['qr_id']}").json()["data"]

        chicken = data["menu"]["Mains"][0]
        assert chicken["price"] == 220.0
        assert chicken["basePrice"] == 0.0
        assert len(chicken["variants"]) == 3

        paneer = data["menu"]["Starters"][0]
        assert paneer["price"] == 250.0
        assert paneer["isSpecialItem"] is True

    def test_hidden_inactive_category(self, client, seeded, admin_headers) -> None:
        """Test that an inactive category is left off the public menu."""
        client.put(
            f"/api/categories/{seeded['categories']['Beverages']}",
            json={"isActive": False},
            headers=admin_headers,
        )
        data = client.get(f"/api/menu/public/{seeded['res_id']}/{seeded['qr_id']}").json()["data"]
        assert "Beverages" not in data["menu"]

    def test_uncategorized_items_under_other(self, client, seeded, admin_headers) -> None:
        """Test that items without a category appear under Other."""
        client.post(
            "/api/menu",
            json={"resID": seeded["res_id"], "name": "Plain Naan", "price": 30},
            headers=admin_headers,
        )
        data = client.get(f"/api/menu/public/{seeded['res_id']}/{seeded['qr_id']}").json()["data"]
        assert [i["name"] for i in data["menu"]["Other"]] == ["Plain Naan"]

    def test_counts_scans(self, client, seeded, admin_headers) -> None:
        """Test that each public menu fetch counts a scan."""
        for _ in range(2):
            client.get(f"/api/menu/public/{seeded['res_id']}/{seeded['qr_id']}")

        data = client.get(f"/api/qr/{seeded['qr_id']}", headers=admin_headers).json()["data"]
        assert data["scanCount"] == 2
        assert data["lastScannedAt"] is not None

    def test_unknown_table(self, client, seeded) -> None:
        """Test that an unknown table returns 404."""
        response = client.get(f"/api/menu/public/{seeded['res_id']}/QRNOPE")
        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "QR code not found or inactive"}

    def test_unknown_restaurant(self, client, seeded) -> None:
        """Test that an unknown restaurant returns 404."""
        response = client.get(f"/api/menu/public/RESNOPE/{seeded['qr_id']}")
        assert response.status_code == 404
        assert response.json()["message"] == "Restaurant not found"


@pytest.mark.component
class TestCategories:
    """Test suite for /api/categories."""

    def test_public_listing_in_sort_order(self, client, seeded) -> None:
        """Test that public categories come back in sort order."""
        response = client.get("/api/categories", params={"resID": seeded["res_id"]})

        assert response.status_code == 200
        assert [c["name"] for c in response.json()["data"]] == ["Starters", "Mains", "Beverages"]

    def test_inactive_visible_to_staff_only(self, client, seeded, admin_headers) -> None:
        """Test that inactive categories are only listed for staff."""
        client.put(f"/api/categories/{seeded['categories']['Mains']}", json={"isActive": False}, headers=admin_headers)

        public = client.get("/api/categories", params={"resID": seeded["res_id"]}).json()["data"]
        staff = client.get("/api/categories", params={"resID": seeded["res_id"]}, headers=admin_headers).json()["data"]
        assert len(public) == 2
        assert len(staff) == 3

    def test_duplicate_name(self, client, seeded, admin_headers) -> None:
        """Test that a duplicate category name returns 409."""
        response = client.post(
            "/api/categories",
            json={"resID": seeded["res_id"], "name": "starters"},
            headers=admin_headers,
        )
        assert response.status_code == 409
        assert response.json()["message"] == "Category already exists"

    def test_rename_to_existing(self, client, seeded, admin_headers) -> None:
        """Test that renaming onto an existing category name returns 409."""
        response = client.put(
            f"/api/categories/{seeded['categories']['Mains']}",
            json={"name": "Beverages"},
            headers=admin_headers,
        )
        assert response.status_code == 409

    def test_create_requires_token(self, client, seeded) -> None:
        """Test that creating a category needs a token."""
        response = client.post("/api/categories", json={"resID": seeded["res_id"], "name": "Desserts"})
        assert response.status_code == 401

    def test_subadmin_creates_for_own_restaurant(self, client, seeded, subadmin_headers) -> None:
        """Test that a subadmin creates categories in their own restaurant."""
        response = client.post("/api/categories", json={"name": "Desserts", "sortOrder": 4}, headers=subadmin_headers)

        assert response.status_code == 201
        assert response.json()["data"]["resID"] == seeded["res_id"]

    def test_delete_in_use(self, client, seeded, admin_headers) -> None:
        """Test that a category with items cannot be deleted."""
        response = client.delete(f"/api/categories/{seeded['categories']['Starters']}", headers=admin_headers)
        assert response.status_code == 400

    def test_delete_empty(self, client, seeded, admin_headers) -> None:
        """Test that an empty category can be deleted."""
        created = client.post(
            "/api/categories",
            json={"resID": seeded["res_id"], "name": "Desserts"},
            headers=admin_headers,
        ).json()["data"]

        response = client.delete(f"/api/categories/{created['id']}", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["success"] is True


@pytest.mark.component
class TestMenuItems:
    """Test suite for staff menu item management."""

    def test_list(self, client, seeded, subadmin_headers) -> None:
        """Test that staff see every item of their restaurant."""
        response = client.get("/api/menu", headers=subadmin_headers)

        assert response.status_code == 200
        names = [i["name"] for i in response.json()["data"]]
        assert names == ["Butter Chicken", "Masala Chai", "Paneer Tikka", "Seasonal Soup"]

    def test_list_filters(self, client, seeded, subadmin_headers) -> None:
        """Test that the item list filters by category and availability."""
        starters = client.get(
            "/api/menu",
            params={"categoryId": seeded["categories"]["Starters"]},
            headers=subadmin_headers,
        ).json()["data"]
        assert {i["name"] for i in starters} == {"Paneer Tikka", "Seasonal Soup"}

        unavailable = client.get("/api/menu", params={"isAvailable": "false"}, headers=subadmin_headers).json()["data"]
        assert [i["name"] for i in unavailable] == ["Seasonal Soup"]

    def test_get_item_includes_category_name(self, client, seeded, admin_headers) -> None:
        """Test that a fetched item includes its category name."""
        data = client.get(f"/api/menu/{seeded['paneer']}", headers=admin_headers).json()["data"]

        assert data["category"] == "Starters"
        assert data["taxPercentage"] == 5.0
        assert data["menuID"].startswith("MENU")

    def test_update(self, client, seeded, admin_headers) -> None:
        """Test that price and category can be updated."""
        response = client.put(
            f"/api/menu/{seeded['chai']}",
            json={"price": 45, "categoryId": seeded["categories"]["Starters"]},
            headers=admin_headers,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["price"] == 45.0
        assert data["category"] == "Starters"

    def test_null_keeps_required_fields(self, client, seeded, admin_headers) -> None:
        """Test that null for a required field leaves it unchanged."""
        response = client.put(
            f"/api/menu/{seeded['paneer']}",
            json={"name": None, "price": None, "isAvailable": None},
            headers=admin_headers,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["name"] == "Paneer Tikka"
        assert data["price"] == 250.0
        assert data["isAvailable"] is True

    def test_null_clears_optional_fields(self, client, seeded, admin_headers) -> None:
        """Test that null clears the optional fields."""
        response = client.put(
            f"/api/menu/{seeded['paneer']}",
            json={"taxPercentage": None, "categoryId": None, "preparationTime": None},
            headers=admin_headers,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["taxPercentage"] is None
        assert data["category"] is None
        assert data["preparationTime"] is None

    def test_update_variants(self, client, seeded, admin_headers) -> None:
        """Test that an update replaces the variant list."""
        response = client.put(
            f"/api/menu/{seeded['chicken']}",
            json={"variants": [{"name": "Full", "price": 420}]},
            headers=admin_headers,
        )
        assert response.json()["data"]["variants"] == [{"name": "Full", "price": 420.0, "isAvailable": True}]

    def test_duplicate_variant_names(self, client, seeded, admin_headers) -> None:
        """Test that duplicate variant names fail validation."""
        response = client.post(
            "/api/menu",
            json={
                "resID": seeded["res_id"],
                "name": "Lassi",
                "variants": [{"name": "Sweet", "price": 60}, {"name": "Sweet", "price": 70}],
            },
            headers=admin_headers,
        )
        assert response.status_code == 400

    def test_foreign_category(self, client, seeded, admin_headers) -> None:
        """Test that an item cannot use another restaurant's category."""
        other = client.post("/api/admin/restaurants", json={"name": "Other Place"}, headers=admin_headers).json()["data"]
        category = client.post(
            "/api/categories",
            json={"resID": other["resID"], "name": "Snacks"},
            headers=admin_headers,
        ).json()["data"]

        response = client.post(
            "/api/menu",
            json={"resID": seeded["res_id"], "name": "Samosa", "price": 20, "categoryId": category["id"]},
            headers=admin_headers,
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Category does not belong to this restaurant"

    def test_toggle_availability(self, client, seeded, admin_headers) -> None:
        """Test that toggling availability shows the item on the public menu."""
        response = client.patch(
            f"/api/menu/{seeded['soup']}/availability",
            json={"isAvailable": True},
            headers=admin_headers,
        )
        assert response.json()["data"]["isAvailable"] is True

        data = client.get(f"/api/menu/public/{seeded['res_id']}/{seeded['qr_id']}").json()["data"]
        assert "Seasonal Soup" in [i["name"] for i in data["menu"]["Starters"]]

    def test_delete(self, client, seeded, admin_headers) -> None:
        """Test that a deleted item is gone."""
        assert client.delete(f"/api/menu/{seeded['soup']}", headers=admin_headers).status_code == 200
        assert client.get(f"/api/menu/{seeded['soup']}", headers=admin_headers).status_code == 404

    def test_subadmin_cannot_touch_other_restaurant(self, client, seeded, admin_headers, subadmin_headers) -> None:
        """Test that a subadmin cannot read or delete another restaurant's item."""
        other = client.post("/api/admin/restaurants", json={"name": "Other Place"}, headers=admin_headers).json()["data"]
        item = client.post(
            "/api/menu",
            json={"resID": other["resID"], "name": "Dosa", "price": 90},
            headers=admin_headers,
        ).json()["data"]

        assert client.get(f"/api/menu/{item['menuID']}", headers=subadmin_headers).status_code == 403
        assert client.delete(f"/api/menu/{item['menuID']}", headers=subadmin_headers).status_code == 403
