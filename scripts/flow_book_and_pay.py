#!/usr/bin/env python3
"""
Checkout and mobile money payment flow script.

DO NOT ADD BUSINESS LOGIC HERE.
This script only orchestrates API calls.
All rules live in the backend.

Usage:
    python scripts/flow_book_and_pay.py --property-id <UUID> --check-in 2026-04-01 --check-out 2026-04-04
    python scripts/flow_book_and_pay.py --property-id <UUID> --check-in 2026-04-01 --check-out 2026-04-04 \
        --phone 250781234567 --simulate-callback COMPLETED

Flow:
    1. Check availability
    2. Create checkout (one order, one booking)
    3. Initiate mobile money deposit for the order
    4. Optionally post a provider callback (sandbox only)
    5. Check payment status
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
        response = httpx.get(url, params=params, timeout=30.0)
    elif method == "POST":
        response = httpx.post(url, json=data or {}, timeout=30.0)
    else:
        raise ValueError(f"Unknown method: {method}")

    return {"status": response.status_code, "data": response.json() if response.text else {}}


def print_step(step: int, title: str):
    """Print step header."""
    print(f"\n{'='*60}")
    print(f"STEP {step}: {title}")
    print("="*60)


def print_result(result: dict, fields: list[str] | None = None):
    """Print result, optionally filtering fields."""
    if result["status"] >= 400:
        print(f"ERROR ({result['status']}): {json.dumps(result['data'], indent=2)}")
        return False

    print(f"Status: {result['status']}")
    if fields:
        filtered = {k: result["data"].get(k) for k in fields if k in result["data"]}
        print(json.dumps(filtered, indent=2))
    else:
        print(json.dumps(result["data"], indent=2))
    return True


def main():
    parser = argparse.ArgumentParser(description="Checkout and mobile money payment flow")
    parser.add_argument("--property-id", required=True, help="Property UUID")
    parser.add_argument("--check-in", required=True, help="Check-in date (YYYY-MM-DD)")
    parser.add_argument("--check-out", required=True, help="Check-out date (YYYY-MM-DD)")
    parser.add_argument("--name", default="Test Traveler")
    parser.add_argument("--email", default="traveler@example.com")
    parser.add_argument("--phone", default="250781234567", help="Payer MSISDN")
    parser.add_argument("--payment-method", default="mtn_momo", choices=["mtn_momo", "airtel_money"])
    parser.add_argument(
        "--simulate-callback",
        choices=["COMPLETED", "FAILED", "REJECTED", "CANCELLED"],
        help="Post a provider callback with this status instead of waiting for the real one",
    )
    args = parser.parse_args()

    item = {
        "item_type": "property",
        "reference_id": args.property_id,
        "check_in": args.check_in,
        "check_out": args.check_out,
    }

    # Step 1: Check availability
    print_step(1, "Check availability")
    availability = api_request("POST", "/availability/check", {"items": [item]})
    if not print_result(availability):
        sys.exit(1)
    if not availability["data"].get("all_available"):
        print("ERROR: Property not available for these dates")
        sys.exit(1)

    # Step 2: Create checkout
    print_step(2, "Create checkout")
    checkout = api_request("POST", "/checkout", {
        "name": args.name,
        "email": args.email,
        "phone": args.phone,
        "payment_method": args.payment_method,
        "items": [item],
    })
    if not print_result(checkout, ["order_id", "booking_ids", "total_amount", "currency"]):
        sys.exit(1)
    order_id = checkout["data"]["order_id"]

    # Step 3: Initiate deposit
    print_step(3, "Initiate mobile money deposit")
    deposit = api_request("POST", "/deposits", {
        "orderId": order_id,
        "phoneNumber": args.phone,
        "paymentMethod": args.payment_method,
    })
    if not print_result(deposit):
        sys.exit(1)
    deposit_id = deposit["data"]["depositId"]

    # Step 4: Simulated callback
    if args.simulate_callback:
        print_step(4, f"Post {args.simulate_callback} callback")
        callback = {
            "depositId": deposit_id,
            "status": args.simulate_callback,
            "metadata": [{"fieldName": "orderId", "fieldValue": order_id}],
        }
        if args.simulate_callback != "COMPLETED":
            callback["failureReason"] = {"failureCode": "OTHER_ERROR", "failureMessage": "Simulated failure"}
        if not print_result(api_request("POST", "/payment-callback", callback)):
            sys.exit(1)
    else:
        print("\nApprove the payment on the phone, then re-run the status check below.")

    # Step 5: Payment status
    print_step(5, "Check payment status")
    status_result = api_request("GET", "/payment-status", params={"depositId": deposit_id, "orderId": order_id})
    print_result(status_result, ["depositId", "pawapayStatus", "bookingStatus", "paymentStatus", "failureMessage"])

    print("\n" + "="*60)
    print(f"FLOW COMPLETE: order {order_id}, deposit {deposit_id}")
    print("="*60)


if __name__ == "__main__":
    main()
