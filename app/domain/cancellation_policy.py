"""Cancellation policy domain logic.

Each policy is a list of refund tiers ordered by ``min_days`` descending.
The applicable tier is the first one whose ``min_days`` the guest still
meets, i.e. the most generous tier they qualify for.

Policies:
- flexible: Full refund 1+ days before start, nothing after
- moderate: Full refund 7+ days before, 50% from 3 days, 0% after
- standard: Full refund 14+ days before, 50% from 7 days, 0% after
- strict: Full refund 30+ days before, 50% from 14 days, 0% after
- fair: Full refund 7+ days before, 50% from 2 days, 0% after (default)
- non_refundable: No refund
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum


class CancellationPolicy(str, Enum):
    """Cancellation policy types."""

    FLEXIBLE = "flexible"
    MODERATE = "moderate"
    STANDARD = "standard"
    STRICT = "strict"
    FAIR = "fair"
    NON_REFUNDABLE = "non_refundable"


DEFAULT_POLICY = CancellationPolicy.FAIR


@dataclass(frozen=True)
class RefundTier:
    """One step of a refund schedule."""

    min_days: int
    percentage: Decimal
    description: str


POLICY_RULES: dict[CancellationPolicy, list[RefundTier]] = {
    CancellationPolicy.FLEXIBLE: [
        RefundTier(1, Decimal("100"), "Full refund (1+ days notice)"),
        RefundTier(0, Decimal("0"), "No refund (less than 1 day notice)"),
    ],
    CancellationPolicy.MODERATE: [
        RefundTier(7, Decimal("100"), "Full refund (7+ days notice)"),
        RefundTier(3, Decimal("50"), "50% refund (3-6 days notice)"),
        RefundTier(0, Decimal("0"), "No refund (less than 3 days notice)"),
    ],
    CancellationPolicy.STANDARD: [
        RefundTier(14, Decimal("100"), "Full refund (14+ days notice)"),
        RefundTier(7, Decimal("50"), "50% refund (7-13 days notice)"),
        RefundTier(0, Decimal("0"), "No refund (less than 7 days notice)"),
    ],
    CancellationPolicy.STRICT: [
        RefundTier(30, Decimal("100"), "Full refund (30+ days notice)"),
        RefundTier(14, Decimal("50"), "50% refund (14-29 days notice)"),
        RefundTier(0, Decimal("0"), "No refund (less than 14 days notice)"),
    ],
    CancellationPolicy.FAIR: [
        RefundTier(7, Decimal("100"), "Full refund (7+ days notice)"),
        RefundTier(2, Decimal("50"), "50% refund (2-6 days notice)"),
        RefundTier(0, Decimal("0"), "No refund (less than 2 days notice)"),
    ],
    CancellationPolicy.NON_REFUNDABLE: [
        RefundTier(0, Decimal("0"), "Non-refundable"),
    ],
}


def resolve_policy(policy: str | CancellationPolicy | None) -> CancellationPolicy:
    """Parse a stored policy value; missing or unknown values become ``fair``."""
    if isinstance(policy, CancellationPolicy):
        return policy
    if not policy:
        return DEFAULT_POLICY
    try:
        return CancellationPolicy(policy.strip().lower())
    except ValueError:
        return DEFAULT_POLICY


def refund_tier_for(policy: str | CancellationPolicy | None, days_until_start: int) -> RefundTier:
    """Find the refund tier a cancellation qualifies for.

    Args:
        policy: The cancellation policy type
        days_until_start: Whole calendar days until check-in / tour start

    Returns:
        RefundTier: The tier with the largest ``min_days <= days_until_start``;
        the policy's last tier when the start date has already passed
    """
    rules = POLICY_RULES[resolve_policy(policy)]

    for tier in rules:
        if days_until_start >= tier.min_days:
            return tier

    return rules[-1]


def days_until(start_date: date, today: date) -> int:
    """Whole calendar days between today and a start date (both at midnight)."""
    return (start_date - today).days


def get_policy_description(policy: str | CancellationPolicy | None) -> str:
    """Get human-readable policy description."""
    rules = POLICY_RULES[resolve_policy(policy)]
    return ". ".join(tier.description for tier in rules)
