"""Financial audit trail service."""

import logging
from datetime import UTC, datetime
from typing import Any

from app.models.admin import AuditLog, PaymentAnomaly
from app.repositories.base import StorageSession

logger = logging.getLogger(__name__)


class AuditService:
    """Service for immutable financial audit logging.

    Entries are written through the caller's storage session so they commit
    or roll back together with the change they describe.
    """

    # Financial actions that require audit logging
    FINANCIAL_ACTIONS = {
        "deposit_initiated",
        "deposit_status_applied",
        "booking_confirmed",
        "booking_cancelled",
        "checkout_created",
        "payout_initiated",
        "payout_status_applied",
    }

    async def log_financial_action(
        self,
        session: StorageSession,
        action: str,
        resource_type: str,
        resource_id: Any,
        old_values: dict[str, Any] | None = None,
        new_values: dict[str, Any] | None = None,
        channel: str | None = None,
    ) -> AuditLog:
        """Log a financial action (immutable).

        Args:
            session: Open storage session
            action: Action name (e.g., "deposit_status_applied")
            resource_type: Resource type (e.g., "deposit", "payout")
            resource_id: Resource ID (provider deposit id, booking id, ...)
            old_values: Previous state
            new_values: New state
            channel: callback, status_check, initiation, api or script

        Returns:
            Created audit log entry
        """
        if action not in self.FINANCIAL_ACTIONS:
            logger.warning(f"Audit action '{action}' is not a registered financial action")

        audit = AuditLog(
            action=action,
            resource_type=resource_type,
            resource_id=str(resource_id) if resource_id is not None else None,
            old_values=old_values,
            new_values=new_values,
            channel=channel,
            created_at=datetime.now(UTC),
        )
        await session.add_audit_log(audit)
        return audit

    async def log_deposit_transition(
        self,
        session: StorageSession,
        deposit_id: str,
        old_status: str | None,
        new_status: str,
        booking_ids: list[str],
        order_id: str | None,
        channel: str,
    ) -> AuditLog:
        """Log one applied deposit status change and the bookings it touched."""
        return await self.log_financial_action(
            session=session,
            action="deposit_status_applied",
            resource_type="deposit",
            resource_id=deposit_id,
            old_values={"status": old_status} if old_status else None,
            new_values={
                "status": new_status,
                "booking_ids": booking_ids,
                "order_id": order_id,
            },
            channel=channel,
        )

    async def log_payout_action(
        self,
        session: StorageSession,
        action: str,
        payout_id: Any,
        old_status: str,
        new_status: str,
        provider_status: str | None,
        channel: str = "api",
    ) -> AuditLog:
        """Log payout status change."""
        return await self.log_financial_action(
            session=session,
            action=action,
            resource_type="payout",
            resource_id=payout_id,
            old_values={"status": old_status},
            new_values={"status": new_status, "provider_status": provider_status},
            channel=channel,
        )

    async def record_anomaly(
        self,
        session: StorageSession,
        deposit_id: str,
        authoritative_status: str,
        observed_status: str,
        channel: str,
        payload: dict | None = None,
    ) -> PaymentAnomaly:
        """Record a conflicting terminal status; the stored status stays authoritative."""
        anomaly = PaymentAnomaly(
            deposit_id=deposit_id,
            authoritative_status=authoritative_status,
            observed_status=observed_status,
            channel=channel,
            payload=payload,
            created_at=datetime.now(UTC),
        )
        await session.add_anomaly(anomaly)
        return anomaly


audit_service = AuditService()
