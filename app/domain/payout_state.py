"""Host payout state machine.

States:
- pending: Payout row created, nothing sent to the provider yet
- processing: Provider accepted the payout and is moving funds
- completed: Funds delivered to the host's wallet
- failed: Provider rejected or failed the payout

completed and failed are terminal; a terminal payout is never rewritten.
"""

from enum import Enum

from app.core.exceptions import ValidationError


class PayoutStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class PayoutProviderStatus(str, Enum):
    """Payout status as reported by the provider."""

    ACCEPTED = "ACCEPTED"
    SUBMITTED = "SUBMITTED"
    ENQUEUED = "ENQUEUED"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"
    DUPLICATE_IGNORED = "DUPLICATE_IGNORED"


PAYOUT_TRANSITIONS = {
    PayoutStatus.PENDING: {PayoutStatus.PROCESSING, PayoutStatus.COMPLETED, PayoutStatus.FAILED},
    PayoutStatus.PROCESSING: {PayoutStatus.COMPLETED, PayoutStatus.FAILED},
    PayoutStatus.COMPLETED: set(),
    PayoutStatus.FAILED: set(),
}

TERMINAL_PAYOUT_STATUSES = frozenset({PayoutStatus.COMPLETED, PayoutStatus.FAILED})

# DUPLICATE_IGNORED means the provider already holds this payout id; the
# original request is still in flight, so it is tracked as processing
PROVIDER_STATUS_MAPPING: dict[PayoutProviderStatus, PayoutStatus] = {
    PayoutProviderStatus.ACCEPTED: PayoutStatus.PROCESSING,
    PayoutProviderStatus.SUBMITTED: PayoutStatus.PROCESSING,
    PayoutProviderStatus.ENQUEUED: PayoutStatus.PROCESSING,
    PayoutProviderStatus.DUPLICATE_IGNORED: PayoutStatus.PROCESSING,
    PayoutProviderStatus.COMPLETED: PayoutStatus.COMPLETED,
    PayoutProviderStatus.FAILED: PayoutStatus.FAILED,
    PayoutProviderStatus.REJECTED: PayoutStatus.FAILED,
    PayoutProviderStatus.CANCELLED: PayoutStatus.FAILED,
}

_unmapped = set(PayoutProviderStatus) - set(PROVIDER_STATUS_MAPPING)
if _unmapped:
    raise RuntimeError(f"Payout statuses without a mapping: {sorted(s.value for s in _unmapped)}")


def map_provider_status(provider_status: str | None) -> PayoutStatus:
    """Local payout status for a provider status.

    Unknown or missing provider statuses are treated as still processing;
    only an explicit rejection or failure marks a payout failed.
    """
    try:
        return PROVIDER_STATUS_MAPPING[PayoutProviderStatus(provider_status)]
    except ValueError:
        return PayoutStatus.PROCESSING


def assert_payout_transition(current: str, target: str) -> None:
    """Validate payout state transition.

    Args:
        current: Current payout status
        target: Target payout status

    Raises:
        ValidationError: If transition is not allowed
    """
    allowed = PAYOUT_TRANSITIONS.get(PayoutStatus(current), set())
    if PayoutStatus(target) not in allowed:
        raise ValidationError(
            f"Invalid payout transition: {current} → {target}"
        )
