#!/usr/bin/env python3
"""
Cancellation and refund flow script.

DO NOT ADD BUSINESS LOGIC HERE.
This script only orchestrates API calls.
All rules live in the backend.

Usage:
    python scripts/flow_refund_and_cancel.py --booking-id <UUID>
    python scripts/flow_refund_and_cancel.py --booking-id <UUID> --order-id <UUID> --cancelled-by host

Flow:
    1. Cancel booking
    2. Show refund for the booking
    3. Show refund for the whole order (if --order-id)
"""

import argparse
import json
import sys

import httpx

BASE_URL = "http://localhost:8000"
API = "/api/v1"


def api_request(method: str, endpoint: str, data: dict | None = None, params: dict | None = None) -> dict:
    """Make API request."""
    url = f"{BASE_URL}{API}{endpoint}"

    if method == "GET":
        response = httpx.get(url, params=params, timeout=10.0)
    elif method == "POST":
        response = httpx.post(url, json=data or {}, timeout=10.0)
    else:
        raise ValueError(f"Unknown method: {method}")

    return {"status": response.status_code, "data": response.json() if response.text else {}}


def print_step(step: int, title: str):
    """Print step header."""
    print(f"\n{'='*60}")
    print(f"STEP {step}: {title}")
    print("="*60)


def print_result(result: dict) -> bool:
    if result["status"] >= 400:
        print(f"ERROR ({result['status']}): {json.dumps(result['data'], indent=2)}")
        return False
    print(f"Status: {result['status']}")
    print(json.dumps(result["data"], indent=2))
    return True


def main():
    parser = argparse.ArgumentParser(description="Cancellation and refund flow")
    parser.add_argument("--booking-id", required=True, help="Booking UUID")
    parser.add_argument("--order-id", help="Order UUID for the bulk refund summary")
    parser.add_argument("--cancelled-by", default="guest", choices=["guest", "host", "admin"])
    parser.add_argument("--reason", default="Plans changed")
    args = parser.parse_args()

    # Step 1: Cancel
    print_step(1, f"Cancel booking (by {args.cancelled_by})")
    cancel = api_request("POST", f"/bookings/{args.booking_id}/cancel", {
        "cancelled_by": args.cancelled_by,
        "reason": args.reason,
    })
    if not print_result(cancel):
        sys.exit(1)

    # Step 2: Booking refund
    print_step(2, "Refund for booking")
    print_result(api_request("GET", f"/bookings/{args.booking_id}/refund"))

    # Step 3: Order refund
    if args.order_id:
        print_step(3, "Refund for whole order")
        print_result(api_request("GET", f"/bookings/{args.booking_id}/refund", params={"orderId": args.order_id}))

    print("\n" + "="*60)
    print("FLOW COMPLETE")
    print("="*60)


if __name__ == "__main__":
    main()
