"""Shared pytest fixtures and configuration for all tests."""

import os
import tempfile

# settings are read once at import time; point them at throwaway resources first
os.environ["ENV_MODE"] = "development"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["REDIS_URL"] = "redis://127.0.0.1:6399/0"
os.environ["FRONTEND_URL"] = "http://localhost:3000"
os.environ["JWT_SECRET"] = "test-secret-key-with-enough-length-for-hs256"
os.environ["DATA_DIRECTORY"] = tempfile.mkdtemp(prefix="qr-ordering-tests-")

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

ADMIN_EMAIL = "owner@spiceroute.in"
ADMIN_PASSWORD = "admin-password-1"
SUBADMIN_EMAIL = "manager@spiceroute.in"
SUBADMIN_PASSWORD = "manager-password-1"


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def celery_tasks(monkeypatch) -> dict[str, MagicMock]:
    """Replace the Celery tasks the order router dispatches."""
    import app.api.orders as orders_api

    tasks = {"notify": MagicMock(), "export": MagicMock()}
    monkeypatch.setattr(orders_api, "send_order_notifications", tasks["notify"])
    monkeypatch.setattr(orders_api, "export_order_to_excel", tasks["export"])
    return tasks


@pytest.fixture
def client(celery_tasks):
    """TestClient with a fresh in-memory database per test."""
    from app.main import app as fastapi_app

    with TestClient(fastapi_app) as test_client:
        yield test_client


@pytest.fixture
def admin_headers(client) -> dict[str, str]:
    response = client.post(
        "/api/auth/register",
        json={"name": "Platform Owner", "email": ADMIN_EMAIL, "password": ADMIN_PASSWORD},
    )
    assert response.status_code == 201, response.text
    return bearer(response.json()["token"])


@pytest.fixture
def restaurant(client, admin_headers) -> dict:
    response = client.post(
        "/api/admin/restaurants",
        json={
            "name": "Spice Route",
            "description": "North Indian kitchen",
            "email": "hello@spiceroute.in",
            "phone": "+91 80 4000 1234",
            "currency": "INR",
        },
        headers=admin_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest.fixture
def subadmin_headers(client, admin_headers, restaurant) -> dict[str, str]:
    response = client.post(
        "/api/admin/subadmins",
        json={
            "name": "Floor Manager",
            "email": SUBADMIN_EMAIL,
            "password": SUBADMIN_PASSWORD,
            "resID": restaurant["resID"],
        },
        headers=admin_headers,
    )
    assert response.status_code == 201, response.text

    login = client.post("/api/auth/login", json={"email": SUBADMIN_EMAIL, "password": SUBADMIN_PASSWORD})
    assert login.status_code == 200, login.text
    return bearer(login.json()["token"])


@pytest.fixture
def seeded(client, admin_headers, restaurant) -> dict:
    """
    A restaurant with three categories, four items and one table.

    Paneer Tikka  250, 5% tax, 15 min, special, veg
    Butter Chicken  variants Half 220 / Full 400 / Quarter (unavailable), default tax, 25 min
    Masala Chai  40, default tax, veg
    Seasonal Soup  unavailable
    """
    res_id = restaurant["resID"]

    def create_category(name: str, sort_order: int) -> int:
        response = client.post(
            "/api/categories",
            json={"resID": res_id, "name": name, "sortOrder": sort_order},
            headers=admin_headers,
        )
        assert response.status_code == 201, response.text
        return response.json()["data"]["id"]

    def create_item(payload: dict) -> dict:
        response = client.post("/api/menu", json={"resID": res_id, **payload}, headers=admin_headers)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    starters = create_category("Starters", 1)
    mains = create_category("Mains", 2)
    beverages = create_category("Beverages", 3)

    paneer = create_item({
        "categoryId": starters,
        "name": "Paneer Tikka",
        "price": 250,
        "taxPercentage": 5,
        "preparationTime": 15,
        "isVegetarian": True,
        "isSpecialItem": True,
    })
    chicken = create_item({
        "categoryId": mains,
        "name": "Butter Chicken",
        "price": 0,
        "preparationTime": 25,
        "variants": [
            {"name": "Half", "price": 220},
            {"name": "Full", "price": 400},
            {"name": "Quarter", "price": 150, "isAvailable": False},
        ],
    })
    chai = create_item({"categoryId": beverages, "name": "Masala Chai", "price": 40, "isVegetarian": True})
    soup = create_item({"categoryId": starters, "name": "Seasonal Soup", "price": 180, "isAvailable": False})

    qr = client.post("/api/qr", json={"resID": res_id, "tableNumber": "T1"}, headers=admin_headers)
    assert qr.status_code == 201, qr.text

    return {
        "res_id": res_id,
        "qr_id": qr.json()["data"]["qrID"],
        "categories": {"Starters": starters, "Mains": mains, "Beverages": beverages},
        "paneer": paneer["menuID"],
        "chicken": chicken["menuID"],
        "chai": chai["menuID"],
        "soup": soup["menuID"],
    }


@pytest.fixture
def order_payload(seeded) -> dict:
    """2x Paneer Tikka, 1x Butter Chicken (Full), 3x Masala Chai: 1020 + 77 tax = 1097."""
    return {
        "resID": seeded["res_id"],
        "qrID": seeded["qr_id"],
        "customer": {"name": "Asha Rao", "phone": "+91 98765 43210", "email": "asha@spiceroute.in"},
        "items": [
            {"menuID": seeded["paneer"], "quantity": 2, "specialInstructions": "extra mint chutney"},
            {"menuID": seeded["chicken"], "quantity": 1, "variantName": "Full"},
            {"menuID": seeded["chai"], "quantity": 3},
        ],
        "specialRequest": "Window seat",
    }


@pytest.fixture
def placed_order(client, order_payload) -> dict:
    response = client.post("/api/orders", json=order_payload)
    assert response.status_code == 201, response.text
    return response.json()["data"]
