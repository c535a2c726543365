"""Guest-facing messages for failed mobile money payments.

Callback and status-check paths both go through ``normalize_failure_reason``
so a guest sees the same text whichever channel delivered the failure.
"""

INSUFFICIENT_BALANCE = "Insufficient balance. Please top up your mobile money account and try again."
PAYER_NOT_FOUND = "This phone number is not registered for mobile money. Please check the number and try again."
DECLINED = "The payment was declined. Please approve the request on your phone and try again."
EXPIRED = "The payment request expired before it was approved. Please try again."
DUPLICATE = "A payment for this booking is already in progress."
CANCELLED = "The payment was cancelled."
GENERIC = "Payment failed. Please try again or use a different payment method."

PROVIDER_CODES: dict[str, str] = {
    "INSUFFICIENT_BALANCE": INSUFFICIENT_BALANCE,
    "NOT_ENOUGH_FUNDS": INSUFFICIENT_BALANCE,
    "PAYER_NOT_FOUND": PAYER_NOT_FOUND,
    "PAYER_LIMIT_REACHED": DECLINED,
    "PAYMENT_NOT_APPROVED": DECLINED,
    "TRANSACTION_DECLINED": DECLINED,
    "TRANSACTION_EXPIRED": EXPIRED,
    "TIMEOUT": EXPIRED,
    "DUPLICATE_DEPOSIT_ID": DUPLICATE,
    "DUPLICATE_TRANSACTION": DUPLICATE,
    "CANCELLED": CANCELLED,
    "USER_CANCELLED": CANCELLED,
}

# (keywords, message) checked in order against the provider's free text
KEYWORD_RULES: list[tuple[tuple[str, ...], str]] = [
    (("insufficient", "not enough", "balance"), INSUFFICIENT_BALANCE),
    (("not found", "not registered", "invalid msisdn", "unknown subscriber"), PAYER_NOT_FOUND),
    (("declin", "not approved", "rejected", "denied"), DECLINED),
    (("expire", "timeout", "timed out"), EXPIRED),
    (("duplicate",), DUPLICATE),
    (("cancel",), CANCELLED),
]


def normalize_failure_reason(code: str | None = None, message: str | None = None) -> str:
    """Map a provider failure code and/or message to a fixed guest message.

    Args:
        code: Provider failure code, e.g. ``INSUFFICIENT_BALANCE``
        message: Provider free-text failure message

    Returns:
        str: One of the fixed messages defined in this module
    """
    if code:
        known = PROVIDER_CODES.get(code.strip().upper())
        if known:
            return known

    text = " ".join(part for part in (code, message) if part).lower()
    for keywords, reason in KEYWORD_RULES:
        if any(keyword in text for keyword in keywords):
            return reason

    return GENERIC
