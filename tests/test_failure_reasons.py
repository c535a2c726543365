from app.domain import failure_reasons
from app.domain.failure_reasons import normalize_failure_reason


def test_known_codes_win():
    assert normalize_failure_reason("INSUFFICIENT_BALANCE") == failure_reasons.INSUFFICIENT_BALANCE
    assert normalize_failure_reason("payer_not_found", "declined") == failure_reasons.PAYER_NOT_FOUND


def test_keywords_in_free_text():
    assert normalize_failure_reason(None, "Subscriber has not enough funds") == failure_reasons.INSUFFICIENT_BALANCE
    assert normalize_failure_reason("OTHER_ERROR", "Request timed out") == failure_reasons.EXPIRED
    assert normalize_failure_reason(None, "User cancelled the prompt") == failure_reasons.CANCELLED


def test_unrecognised_failure_is_generic():
    assert normalize_failure_reason() == failure_reasons.GENERIC
    assert normalize_failure_reason("OTHER_ERROR", "Something odd") == failure_reasons.GENERIC
