"""
Storefront Simulation Script

Walks the running API through repeated customer sessions: load the menu,
fill the cart, check out, then (optionally) have the admin complete each
order. The storefront keeps a single cart, so sessions run one at a time.

Run from project root: python scripts/simulate.py --orders 10

Author: Khalil Bannouri
Version: 1.0.0
"""

import argparse
import asyncio
import random
import sys
import time
from datetime import datetime
from typing import Any, Optional

import httpx

# Windows event loop fix
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

# Configuration
API_BASE_URL = "http://localhost:8001"
TOTAL_ORDERS = 10

FIRST_NAMES = ["Aarav", "Diya", "Kabir", "Meera", "Rohan", "Isha", "Vihaan", "Anaya", "Arjun", "Sara"]
REVIEWS = [None, "Less sugar please", "Extra nuts", "Birthday treat", "Pack separately"]


def generate_random_customer() -> dict[str, str]:
    """Generate a checkout form that passes validation."""
    return {
        "name": random.choice(FIRST_NAMES),
        "phone": f"98{random.randint(10000000, 99999999)}",
        "email": "",
        "table": str(random.randint(1, 12)),
        "review": random.choice(REVIEWS) or "",
    }


# =============================================================================
# CUSTOMER SESSION
# =============================================================================

async def run_session(
    client: httpx.AsyncClient,
    session_num: int,
    product_ids: list[int],
) -> dict[str, Any]:
    """Add random items and check out."""
    start_time = time.time()

    try:
        await client.delete(f"{API_BASE_URL}/api/cart")
        for product_id in random.sample(product_ids, k=random.randint(1, min(3, len(product_ids)))):
            for _ in range(random.randint(1, 3)):
                response = await client.post(
                    f"{API_BASE_URL}/api/cart/items",
                    json={"product_id": product_id},
                )
                response.raise_for_status()

        response = await client.post(
            f"{API_BASE_URL}/api/checkout",
            json=generate_random_customer(),
            timeout=45.0,
        )
        elapsed = round(time.time() - start_time, 3)

        if response.status_code == 200:
            data = response.json()
            return {
                "session": session_num,
                "success": True,
                "order_id": data.get("order_id"),
                "total": data.get("total_amount", 0),
                "time": elapsed,
            }
        return {
            "session": session_num,
            "success": False,
            "error": response.text[:100],
            "time": elapsed,
        }
    except httpx.HTTPError as e:
        return {
            "session": session_num,
            "success": False,
            "error": str(e)[:100],
            "time": round(time.time() - start_time, 3),
        }


async def complete_orders(
    client: httpx.AsyncClient,
    password: str,
    order_ids: list[str],
) -> int:
    """Log in as admin and mark the placed orders completed."""
    response = await client.post(f"{API_BASE_URL}/admin/login", json={"password": password})
    if response.status_code != 200:
        print(f"   ❌ Admin login failed: {response.text[:100]}")
        return 0

    completed = 0
    for order_id in order_ids:
        response = await client.patch(
            f"{API_BASE_URL}/admin/orders/{order_id}/status",
            json={"status": "completed"},
        )
        if response.status_code == 200:
            completed += 1
    await client.post(f"{API_BASE_URL}/admin/logout")
    return completed


# =============================================================================
# MAIN SIMULATION RUNNER
# =============================================================================

async def run_simulation(
    num_orders: int = TOTAL_ORDERS,
    admin_password: Optional[str] = None,
) -> dict[str, Any]:
    print("=" * 70)
    print("🍦 STOREFRONT SIMULATION")
    print("=" * 70)
    print(f"📋 Sessions: {num_orders}")
    print(f"🎯 Target: {API_BASE_URL}")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    results = []
    start_time = time.time()

    async with httpx.AsyncClient(timeout=30.0) as client:
        response = await client.get(f"{API_BASE_URL}/api/menu", params={"category": "all"})
        response.raise_for_status()
        product_ids = [p["id"] for p in response.json()["grid"]["products"]]
        if not product_ids:
            print("❌ Menu is empty; nothing to order")
            return {"total": num_orders, "successful": 0, "failed": num_orders, "results": []}

        for i in range(num_orders):
            result = await run_session(client, i + 1, product_ids)
            status = "✅" if result["success"] else "❌"
            print(f"   {status} Session #{result['session']} ({result['time']}s)")
            results.append(result)

        successful = [r for r in results if r["success"]]
        failed = [r for r in results if not r["success"]]

        completed = 0
        if admin_password and successful:
            print("\n🧾 Completing orders as admin...")
            completed = await complete_orders(
                client, admin_password, [r["order_id"] for r in successful]
            )

    total_time = round(time.time() - start_time, 2)

    print("\n" + "=" * 70)
    print("📊 SIMULATION RESULTS")
    print("=" * 70)
    print(f"\n✅ Successful Orders: {len(successful)}/{num_orders}")
    print(f"❌ Failed Orders: {len(failed)}/{num_orders}")
    print(f"⏱️  Total Time: {total_time}s")

    if successful:
        avg_time = round(sum(r["time"] for r in successful) / len(successful), 3)
        total_revenue = sum(r.get("total", 0) for r in successful)
        print(f"\n📈 Average Session: {avg_time}s")
        print(f"   💰 Total Revenue: ₹{total_revenue:.2f}")

    if admin_password:
        print(f"   🧾 Completed by admin: {completed}/{len(successful)}")

    if failed:
        print("\n⚠️  Failed Session Details (showing first 5):")
        for f in failed[:5]:
            print(f"   Session #{f['session']}: {f.get('error', 'Unknown error')}")

    print("=" * 70)

    return {
        "total": num_orders,
        "successful": len(successful),
        "failed": len(failed),
        "completed": completed,
        "total_time": total_time,
        "results": results,
    }


def main():
    global API_BASE_URL

    parser = argparse.ArgumentParser(description="Storefront Simulation")
    parser.add_argument("--orders", "-n", type=int, default=TOTAL_ORDERS, help="Number of sessions")
    parser.add_argument("--url", default=API_BASE_URL, help="API base URL")
    parser.add_argument("--admin-password", default=None, help="Complete orders as admin afterwards")
    args = parser.parse_args()
    API_BASE_URL = args.url.rstrip("/")

    summary = asyncio.run(run_simulation(args.orders, args.admin_password))
    sys.exit(0 if summary["failed"] == 0 else 1)


if __name__ == "__main__":
    main()
