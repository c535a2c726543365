"""Initial database schema.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-18

Creates the tables used by payment reconciliation:
- Listings (properties, tours, tour packages, vehicles)
- Checkout requests and bookings
- Payment transactions and host payouts
- Audit logs and payment anomalies
"""

from typing import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers
revision: str = "001_initial"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create all database tables."""

    # ==================== LISTINGS ====================
    op.create_table(
        "properties",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("host_id", postgresql.UUID(as_uuid=True), nullable=False, index=True),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text),
        sa.Column("price_per_night", sa.Numeric(12, 3), nullable=False),
        sa.Column("currency", sa.String(3), default="RWF"),
        sa.Column("is_published", sa.Boolean, default=False),
        sa.Column("cancellation_policy", sa.String(20)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "tours",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("host_id", postgresql.UUID(as_uuid=True), nullable=False, index=True),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("price_per_person", sa.Numeric(12, 3), nullable=False),
        sa.Column("currency", sa.String(3), default="RWF"),
        sa.Column("is_published", sa.Boolean, default=False),
        sa.Column("cancellation_policy_type", sa.String(20)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "tour_packages",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("host_id", postgresql.UUID(as_uuid=True), nullable=False, index=True),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("price_per_adult", sa.Numeric(12, 3), nullable=False),
        sa.Column("currency", sa.String(3), default="RWF"),
        sa.Column("status", sa.String(20), default="pending"),
        sa.Column("cancellation_policy_type", sa.String(20)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "transport_vehicles",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("host_id", postgresql.UUID(as_uuid=True), nullable=False, index=True),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("price_per_day", sa.Numeric(12, 3), nullable=False),
        sa.Column("currency", sa.String(3), default="RWF"),
        sa.Column("is_published", sa.Boolean, default=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # ==================== CHECKOUT & BOOKINGS ====================
    op.create_table(
        "checkout_requests",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), index=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(30)),
        sa.Column("payment_method", sa.String(30)),
        sa.Column("payment_status", sa.String(20), default="pending"),
        sa.Column("payment_reference", sa.String(64), index=True),
        sa.Column("payment_error", sa.Text),
        sa.Column("total_amount", sa.Numeric(14, 3), nullable=False),
        sa.Column("currency", sa.String(3), default="RWF"),
        sa.Column("metadata", postgresql.JSONB),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), onupdate=sa.func.now()),
    )

    op.create_table(
        "bookings",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("order_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("checkout_requests.id"), index=True),
        sa.Column("guest_id", postgresql.UUID(as_uuid=True), index=True),
        sa.Column("host_id", postgresql.UUID(as_uuid=True), index=True),
        sa.Column("booking_type", sa.String(20), nullable=False),
        sa.Column("property_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("properties.id"), index=True),
        sa.Column("tour_id", postgresql.UUID(as_uuid=True), index=True),
        sa.Column("transport_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("transport_vehicles.id"), index=True),
        sa.Column("check_in", sa.Date, index=True),
        sa.Column("check_out", sa.Date, index=True),
        sa.Column("total_price", sa.Numeric(14, 3), nullable=False),
        sa.Column("currency", sa.String(3), default="RWF"),
        sa.Column("status", sa.String(30), default="pending_confirmation", index=True),
        sa.Column("payment_status", sa.String(20), default="pending"),
        sa.Column("payment_reference", sa.String(64), index=True),
        sa.Column("payment_method", sa.String(30)),
        sa.Column("cancellation_policy_type", sa.String(20)),
        sa.Column("cancelled_by", sa.String(10)),
        sa.Column("cancellation_reason", sa.Text),
        sa.Column("cancelled_at", sa.DateTime(timezone=True)),
        sa.Column("confirmed_at", sa.DateTime(timezone=True)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), onupdate=sa.func.now()),
    )

    # ==================== PAYMENTS ====================
    op.create_table(
        "payment_transactions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("transaction_id", sa.String(64), unique=True, nullable=False, index=True),
        sa.Column("booking_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("bookings.id")),
        sa.Column("order_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("checkout_requests.id")),
        sa.Column("amount", sa.Numeric(14, 3), nullable=False),
        sa.Column("currency", sa.String(3), default="RWF"),
        sa.Column("provider", sa.String(30), default="pawapay"),
        sa.Column("payment_method", sa.String(30)),
        sa.Column("phone_number", sa.String(30)),
        sa.Column("status", sa.String(20), default="INITIATED", index=True),
        sa.Column("failure_code", sa.String(60)),
        sa.Column("failure_reason", sa.Text),
        sa.Column("provider_response", postgresql.JSONB),
        sa.Column("terminal_at", sa.DateTime(timezone=True)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), onupdate=sa.func.now()),
    )

    op.create_table(
        "host_payouts",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("host_id", postgresql.UUID(as_uuid=True), nullable=False, index=True),
        sa.Column("amount", sa.Numeric(14, 3), nullable=False),
        sa.Column("currency", sa.String(3), default="RWF"),
        sa.Column("phone_number", sa.String(30)),
        sa.Column("provider", sa.String(20)),
        sa.Column("status", sa.String(20), default="pending"),
        sa.Column("provider_payout_id", sa.String(64), unique=True),
        sa.Column("provider_status", sa.String(30)),
        sa.Column("provider_response", postgresql.JSONB),
        sa.Column("failure_reason", sa.Text),
        sa.Column("admin_notes", sa.Text),
        sa.Column("processed_at", sa.DateTime(timezone=True)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), onupdate=sa.func.now()),
    )

    # ==================== AUDIT ====================
    op.create_table(
        "audit_logs",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("action", sa.String(100), nullable=False, index=True),
        sa.Column("resource_type", sa.String(50), nullable=False, index=True),
        sa.Column("resource_id", sa.String(64), index=True),
        sa.Column("old_values", postgresql.JSONB),
        sa.Column("new_values", postgresql.JSONB),
        sa.Column("channel", sa.String(30)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), index=True),
    )

    op.create_table(
        "payment_anomalies",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("deposit_id", sa.String(64), nullable=False, index=True),
        sa.Column("authoritative_status", sa.String(20), nullable=False),
        sa.Column("observed_status", sa.String(20), nullable=False),
        sa.Column("channel", sa.String(30), nullable=False),
        sa.Column("payload", postgresql.JSONB),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )


def downgrade() -> None:
    """Drop all database tables in reverse order."""
    op.drop_table("payment_anomalies")
    op.drop_table("audit_logs")
    op.drop_table("host_payouts")
    op.drop_table("payment_transactions")
    op.drop_table("bookings")
    op.drop_table("checkout_requests")
    op.drop_table("transport_vehicles")
    op.drop_table("tour_packages")
    op.drop_table("tours")
    op.drop_table("properties")
