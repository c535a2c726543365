"""Payment-related database models."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.database import Base, JSONType


class PaymentTransaction(Base):
    """Mobile money deposit, one row per provider deposit id."""

    __tablename__ = "payment_transactions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    transaction_id: Mapped[str] = mapped_column(
        String(64), unique=True, nullable=False, index=True
    )  # provider deposit id
    booking_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("bookings.id"))
    order_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("checkout_requests.id"))

    # Amount actually requested from the payer (after FX)
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 3), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="RWF")

    provider: Mapped[str] = mapped_column(String(30), default="pawapay")
    payment_method: Mapped[str | None] = mapped_column(String(30))  # mtn_momo, airtel_money
    phone_number: Mapped[str | None] = mapped_column(String(30))

    # Status (INITIATED → ACCEPTED → SUBMITTED → COMPLETED | FAILED | REJECTED | CANCELLED)
    status: Mapped[str] = mapped_column(String(20), default="INITIATED", index=True)
    failure_code: Mapped[str | None] = mapped_column(String(60))
    failure_reason: Mapped[str | None] = mapped_column(Text)  # guest-facing, normalized
    provider_response: Mapped[dict | None] = mapped_column(JSONType)

    terminal_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class HostPayout(Base):
    """Host payout model."""

    __tablename__ = "host_payouts"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    host_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)

    # Payout Details
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 3), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="RWF")
    phone_number: Mapped[str | None] = mapped_column(String(30))
    provider: Mapped[str | None] = mapped_column(String(20))  # MTN, AIRTEL

    # Status (state machine: pending → processing → completed | failed)
    status: Mapped[str] = mapped_column(
        String(20), default="pending"
    )  # pending, processing, completed, failed

    # Gateway
    provider_payout_id: Mapped[str | None] = mapped_column(String(64), unique=True)
    provider_status: Mapped[str | None] = mapped_column(String(30))
    provider_response: Mapped[dict | None] = mapped_column(JSONType)
    failure_reason: Mapped[str | None] = mapped_column(Text)
    admin_notes: Mapped[str | None] = mapped_column(Text)

    # Timestamps
    processed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
