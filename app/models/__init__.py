"""Database models."""

from app.models.admin import AuditLog, PaymentAnomaly
from app.models.booking import Booking, CheckoutRequest
from app.models.listing import Property, Tour, TourPackage, TransportVehicle
from app.models.payment import HostPayout, PaymentTransaction

__all__ = [
    # Listing
    "Property",
    "Tour",
    "TourPackage",
    "TransportVehicle",
    # Booking
    "Booking",
    "CheckoutRequest",
    # Payment
    "PaymentTransaction",
    "HostPayout",
    # Admin
    "AuditLog",
    "PaymentAnomaly",
]
