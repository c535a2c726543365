"""Booking-related database models."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Date, DateTime, ForeignKey, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.database import Base, JSONType


class CheckoutRequest(Base):
    """One guest checkout; its id is the ``order_id`` shared by sibling bookings."""

    __tablename__ = "checkout_requests"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, index=True)  # null for guest checkout

    # Contact
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(30))

    # Payment
    payment_method: Mapped[str | None] = mapped_column(String(30))  # mtn_momo, airtel_money
    payment_status: Mapped[str] = mapped_column(
        String(20), default="pending"
    )  # pending, paid, failed, awaiting_callback
    payment_reference: Mapped[str | None] = mapped_column(String(64), index=True)  # provider deposit id
    payment_error: Mapped[str | None] = mapped_column(Text)

    total_amount: Mapped[Decimal] = mapped_column(Numeric(14, 3), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="RWF")

    # {"items": [{item_type, reference_id, price, currency, ...}]}; item prices here are authoritative
    checkout_metadata: Mapped[dict | None] = mapped_column("metadata", JSONType)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class Booking(Base):
    """One bookable line item: a stay, a tour or a vehicle rental."""

    __tablename__ = "bookings"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    order_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("checkout_requests.id"), index=True
    )  # null for single-item bookings
    guest_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, index=True)
    host_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, index=True)

    # Exactly one listing reference, matching booking_type
    booking_type: Mapped[str] = mapped_column(
        String(20), nullable=False
    )  # property, tour, tour_package, transport
    property_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("properties.id"), index=True
    )
    tour_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, index=True)  # tours.id or tour_packages.id
    transport_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("transport_vehicles.id"), index=True
    )

    # Dates (check_out exclusive)
    check_in: Mapped[date | None] = mapped_column(Date, index=True)
    check_out: Mapped[date | None] = mapped_column(Date, index=True)

    # Pricing, guest-facing total in major units of currency
    total_price: Mapped[Decimal] = mapped_column(Numeric(14, 3), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="RWF")

    # Status
    status: Mapped[str] = mapped_column(
        String(30), default="pending_confirmation", index=True
    )  # pending_confirmation, confirmed, cancelled, completed
    payment_status: Mapped[str] = mapped_column(
        String(20), default="pending"
    )  # pending, paid, failed, awaiting_callback
    payment_reference: Mapped[str | None] = mapped_column(String(64), index=True)
    payment_method: Mapped[str | None] = mapped_column(String(30))

    # Captured from the listing at creation so later listing edits do not change refund terms
    cancellation_policy_type: Mapped[str | None] = mapped_column(String(20))

    # Cancellation
    cancelled_by: Mapped[str | None] = mapped_column(String(10))  # guest, host, admin
    cancellation_reason: Mapped[str | None] = mapped_column(Text)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Timestamps
    confirmed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    @property
    def listing_id(self) -> uuid.UUID | None:
        return self.property_id or self.tour_id or self.transport_id

    @property
    def nights(self) -> int:
        """Calculate number of nights."""
        if not self.check_in or not self.check_out:
            return 0
        return (self.check_out - self.check_in).days
