"""Main API router that includes all endpoint routers."""

from fastapi import APIRouter

from app.api.v1 import bookings, checkout, payments, payouts

api_router = APIRouter()

# Payments
api_router.include_router(payments.router, tags=["Payments"])

# Payouts
api_router.include_router(payouts.router, tags=["Payouts"])

# Bookings
api_router.include_router(bookings.router, tags=["Bookings"])

# Checkout
api_router.include_router(checkout.router, tags=["Checkout"])
