"""Deposit (mobile money payment) state machine.

Provider statuses move INITIATED -> ACCEPTED -> SUBMITTED -> terminal.
Terminal statuses are COMPLETED, FAILED, REJECTED and CANCELLED; once a
deposit is terminal its status is never rewritten.

Every provider status maps onto a (booking status, payment status) pair.
The mapping is checked for completeness at import time so a new provider
status cannot silently fall through to a default.
"""

from enum import Enum

from app.domain.booking_state import BookingStatus, PaymentStatus


class DepositStatus(str, Enum):
    """Deposit status as reported by the provider."""

    INITIATED = "INITIATED"
    ACCEPTED = "ACCEPTED"
    SUBMITTED = "SUBMITTED"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


class TransitionDecision(str, Enum):
    """What to do with an incoming status given the stored one."""

    APPLY = "apply"
    DUPLICATE = "duplicate"
    STALE = "stale"
    CONFLICT = "conflict"


TERMINAL_STATUSES = frozenset(
    {
        DepositStatus.COMPLETED,
        DepositStatus.FAILED,
        DepositStatus.REJECTED,
        DepositStatus.CANCELLED,
    }
)

FAILURE_STATUSES = TERMINAL_STATUSES - {DepositStatus.COMPLETED}

STATUS_MAPPING: dict[DepositStatus, tuple[BookingStatus, PaymentStatus]] = {
    DepositStatus.INITIATED: (BookingStatus.PENDING_CONFIRMATION, PaymentStatus.PENDING),
    DepositStatus.ACCEPTED: (BookingStatus.PENDING_CONFIRMATION, PaymentStatus.PENDING),
    DepositStatus.SUBMITTED: (BookingStatus.PENDING_CONFIRMATION, PaymentStatus.PENDING),
    DepositStatus.COMPLETED: (BookingStatus.CONFIRMED, PaymentStatus.PAID),
    DepositStatus.FAILED: (BookingStatus.PENDING_CONFIRMATION, PaymentStatus.FAILED),
    DepositStatus.REJECTED: (BookingStatus.PENDING_CONFIRMATION, PaymentStatus.FAILED),
    DepositStatus.CANCELLED: (BookingStatus.PENDING_CONFIRMATION, PaymentStatus.FAILED),
}

_unmapped = set(DepositStatus) - set(STATUS_MAPPING)
if _unmapped:
    raise RuntimeError(f"Deposit statuses without a booking mapping: {sorted(s.value for s in _unmapped)}")

# Progress order of the non-terminal statuses
_PROGRESS = {
    DepositStatus.INITIATED: 0,
    DepositStatus.ACCEPTED: 1,
    DepositStatus.SUBMITTED: 2,
}


def is_terminal(status: str | DepositStatus | None) -> bool:
    return status is not None and DepositStatus(status) in TERMINAL_STATUSES


def map_deposit_status(status: str | DepositStatus) -> tuple[BookingStatus, PaymentStatus]:
    """Booking and payment status implied by a provider deposit status."""
    return STATUS_MAPPING[DepositStatus(status)]


def classify_transition(
    current: str | DepositStatus | None,
    incoming: str | DepositStatus,
) -> TransitionDecision:
    """Decide how an incoming provider status relates to the stored one.

    Args:
        current: Stored status, None when the deposit has no record yet
        incoming: Status just reported by callback or status check

    Returns:
        TransitionDecision:
        - APPLY for new information (no record, forward progress, first terminal)
        - DUPLICATE for the same status seen again
        - STALE for a status older than the stored one, incl. non-terminal after terminal
        - CONFLICT for a different terminal status after a terminal one
    """
    incoming = DepositStatus(incoming)
    if current is None:
        return TransitionDecision.APPLY

    current = DepositStatus(current)
    if current == incoming:
        return TransitionDecision.DUPLICATE

    if current in TERMINAL_STATUSES:
        if incoming in TERMINAL_STATUSES:
            return TransitionDecision.CONFLICT
        return TransitionDecision.STALE

    if incoming in TERMINAL_STATUSES:
        return TransitionDecision.APPLY

    if _PROGRESS[incoming] < _PROGRESS[current]:
        return TransitionDecision.STALE
    return TransitionDecision.APPLY
