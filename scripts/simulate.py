"""
Rush-Hour Simulation Script

Fires concurrent guest orders from several table QR codes at a running
API to exercise order placement, pricing and the Celery ledger export.
Run from project root:

    python scripts/simulate.py --res RES1A2B3C4D5E --qr QR9F8E7D6C5B --qr QR0A1B2C3D4E
"""

import argparse
import asyncio
import os
import random
import sys
import time
from datetime import datetime
from typing import Any

import httpx

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.client import OrderingAPIError, OrderingClient, PublicMenuView, build_order_payload
from app.services.cart import Cart

# Windows event loop fix
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

# Configuration
API_BASE_URL = "http://localhost:5000"
TOTAL_ORDERS = 50

# Sample data for random guests
FIRST_NAMES = ["Asha", "Rohan", "Meera", "Kabir", "Isha", "Arjun", "Nisha", "Vikram", "Priya", "Dev"]
LAST_NAMES = ["Rao", "Shah", "Iyer", "Kapoor", "Menon", "Gupta", "Nair", "Das", "Joshi", "Bose"]
REQUESTS = ["", "", "Less spicy please", "Birthday at this table", "Serve starters first"]


def random_customer() -> dict[str, str]:
    first = random.choice(FIRST_NAMES)
    last = random.choice(LAST_NAMES)
    return {
        "name": f"{first} {last}",
        "phone": f"+9198{random.randint(10000000, 99999999)}",
    }


def random_cart(view: PublicMenuView) -> Cart:
    """Fill a cart with 1-4 random menu picks, choosing a variant where required."""
    cart = Cart()
    for _ in range(random.randint(1, 4)):
        entry = random.choice(view.entries)
        variants = entry.available_variants
        if entry.has_variants and not variants:
            continue
        variant = random.choice(variants)["name"] if variants else None
        cart.add(entry, variant=variant, quantity=random.randint(1, 3))
    return cart


async def send_order(
    client: httpx.AsyncClient,
    order_num: int,
    view: PublicMenuView,
) -> dict[str, Any]:
    """Place one random order from one table."""
    cart = random_cart(view)
    customer = random_customer()
    payload = build_order_payload(
        view.res_id,
        view.qr_id,
        cart,
        name=customer["name"],
        phone=customer["phone"],
        special_request=random.choice(REQUESTS),
    )
    start_time = time.time()

    try:
        response = await client.post(f"{API_BASE_URL}/api/orders", json=payload, timeout=30.0)
    except httpx.HTTPError as e:
        return {
            "order_num": order_num,
            "success": False,
            "error": str(e)[:100],
            "time": round(time.time() - start_time, 3),
            "table": view.qr_id,
        }

    elapsed = round(time.time() - start_time, 3)
    if response.status_code == 201:
        data = response.json().get("data", {})
        return {
            "order_num": order_num,
            "success": True,
            "order_id": data.get("orderID"),
            "total": data.get("total", 0),
            "display_total": cart.total,
            "time": elapsed,
            "table": view.qr_id,
        }
    return {
        "order_num": order_num,
        "success": False,
        "error": response.text[:100],
        "time": elapsed,
        "table": view.qr_id,
    }


# =============================================================================
# MAIN SIMULATION RUNNER
# =============================================================================

async def run_simulation(views: list[PublicMenuView], num_orders: int = TOTAL_ORDERS) -> dict[str, Any]:
    print("=" * 70)
    print("🔥 RUSH-HOUR SIMULATION - CONCURRENT QR ORDERS")
    print("=" * 70)
    print(f"📋 Total Orders: {num_orders}")
    print(f"🎯 Target: {API_BASE_URL}")
    print(f"🪑 Tables: {', '.join(v.qr_id for v in views)}")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    start_time = time.time()
    async with httpx.AsyncClient() as client:
        tasks = [send_order(client, i + 1, random.choice(views)) for i in range(num_orders)]
        results = await asyncio.gather(*tasks)
    total_time = round(time.time() - start_time, 2)

    successful = [r for r in results if r["success"]]
    failed = [r for r in results if not r["success"]]

    print("\n" + "=" * 70)
    print("📊 SIMULATION RESULTS")
    print("=" * 70)
    print(f"\n✅ Successful Orders: {len(successful)}/{num_orders}")
    print(f"❌ Failed Orders: {len(failed)}/{num_orders}")
    print(f"⏱️  Total Time: {total_time}s")

    if successful:
        avg_time = round(sum(r["time"] for r in successful) / len(successful), 3)
        total_revenue = sum(r["total"] for r in successful)
        drift = [r for r in successful if abs(r["total"] - r["display_total"]) > 0.01]

        print(f"\n📈 Performance Metrics:")
        print(f"   Average Response: {avg_time}s")
        print(f"   Fastest: {min(r['time'] for r in successful)}s")
        print(f"   Slowest: {max(r['time'] for r in successful)}s")
        print(f"   💰 Total Revenue: {total_revenue:.2f}")
        print(f"   🧮 Cart/server total mismatches: {len(drift)}")

    if failed:
        print(f"\n⚠️  Failed Order Details (showing first 5):")
        for f in failed[:5]:
            print(f"   Order #{f['order_num']} [{f['table']}]: {f.get('error', 'Unknown error')}")

    print("\n" + "=" * 70)
    print("🔍 VERIFICATION STEPS")
    print("=" * 70)
    print("1. Check Celery terminal - all export tasks should complete")
    print("2. Run: python scripts/verify.py")
    print("=" * 70)

    return {
        "total": num_orders,
        "successful": len(successful),
        "failed": len(failed),
        "total_time": total_time,
        "results": results,
    }


def load_menus(res_id: str, qr_ids: list[str]) -> list[PublicMenuView]:
    """Pre-flight: fetch each table's menu once."""
    views = []
    with OrderingClient(API_BASE_URL) as api:
        for qr_id in qr_ids:
            try:
                view = api.get_public_menu(res_id, qr_id)
            except OrderingAPIError as e:
                print(f"   ❌ {qr_id}: {e.message}")
                continue
            if not view.entries:
                print(f"   ⚠️ {qr_id}: menu is empty")
                continue
            print(f"   ✅ {qr_id}: {len(view.entries)} items in {len(view.menu)} categories")
            views.append(view)
    return views


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Rush-hour order simulation")
    parser.add_argument("--res", required=True, help="Restaurant resID")
    parser.add_argument("--qr", action="append", required=True, help="Table qrID (repeatable)")
    parser.add_argument("--orders", type=int, default=TOTAL_ORDERS, help="Number of orders")
    parser.add_argument("--url", default=API_BASE_URL, help="API base URL")
    args = parser.parse_args()

    API_BASE_URL = args.url.rstrip("/")

    print("\n🧪 Loading table menus...")
    menus = load_menus(args.res, args.qr)
    if not menus:
        print("\n❌ No usable tables. Check resID/qrID and that the menu has items.")
        sys.exit(1)

    asyncio.run(run_simulation(menus, num_orders=args.orders))
