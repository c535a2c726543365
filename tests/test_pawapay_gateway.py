import json
from decimal import Decimal

import httpx
import pytest

from app.gateways.base import ProviderUnavailable
from app.gateways.pawapay import PawaPayGateway, metadata_to_dict, normalize_msisdn


def gateway_for(handler, token="test-token"):
    return PawaPayGateway(
        base_url="https://pawapay.test",
        api_token=token,
        timeout=1.0,
        transport=httpx.MockTransport(handler),
    )


def test_normalize_msisdn():
    assert normalize_msisdn("0788 123-456") == "250788123456"
    assert normalize_msisdn("+250 788 123 456") == "250788123456"
    assert normalize_msisdn("788123456") == "250788123456"


def test_metadata_accepts_list_or_dict():
    assert metadata_to_dict([{"fieldName": "orderId", "fieldValue": "o-1"}]) == {"orderId": "o-1"}
    assert metadata_to_dict({"bookingId": "b-1", "skip": None}) == {"bookingId": "b-1"}
    assert metadata_to_dict(None) == {}


async def test_initiate_deposit_sends_provider_payload():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"depositId": "dep-1", "status": "ACCEPTED"})

    result = await gateway_for(handler).initiate_deposit(
        "dep-1", Decimal("1234.6"), "RWF", "mtn_momo", "0788123456", {"orderId": "o-1"}
    )

    assert result.accepted and result.status == "ACCEPTED"
    assert seen["auth"] == "Bearer test-token"
    body = seen["body"]
    assert body["amount"] == "1235"
    assert body["correspondent"] == "MTN_MOMO_RWA"
    assert body["payer"]["address"]["value"] == "250788123456"
    assert body["metadata"] == [{"fieldName": "orderId", "fieldValue": "o-1"}]


async def test_rejected_deposit_is_not_accepted():
    def handler(request):
        return httpx.Response(
            200,
            json={
                "depositId": "dep-1",
                "status": "REJECTED",
                "rejectionReason": {"rejectionCode": "INVALID_AMOUNT", "rejectionMessage": "Too small"},
            },
        )

    result = await gateway_for(handler).initiate_deposit("dep-1", Decimal("50"), "RWF", "airtel_money", "0731234567")

    assert not result.accepted
    assert (result.failure_code, result.failure_message) == ("INVALID_AMOUNT", "Too small")


async def test_get_deposit_reads_first_array_entry():
    def handler(request):
        assert request.url.path == "/deposits/dep-1"
        return httpx.Response(
            200,
            json=[
                {
                    "depositId": "dep-1",
                    "status": "FAILED",
                    "requestedAmount": "100000",
                    "currency": "RWF",
                    "failureReason": {"failureCode": "PAYER_NOT_FOUND", "failureMessage": "Unknown payer"},
                    "metadata": [{"fieldName": "bookingId", "fieldValue": "b-1"}],
                }
            ],
        )

    result = await gateway_for(handler).get_deposit("dep-1")

    assert result.found
    assert result.status == "FAILED"
    assert result.amount == Decimal("100000")
    assert result.failure_code == "PAYER_NOT_FOUND"
    assert result.metadata == {"bookingId": "b-1"}


@pytest.mark.parametrize("response", [httpx.Response(200, json=[]), httpx.Response(404, json={})])
async def test_unknown_deposit_is_not_found(response):
    result = await gateway_for(lambda request: response).get_deposit("dep-x")
    assert not result.found


async def test_timeouts_and_server_errors_are_transient():
    def timeout(request):
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(ProviderUnavailable):
        await gateway_for(timeout).get_deposit("dep-1")
    with pytest.raises(ProviderUnavailable):
        await gateway_for(lambda request: httpx.Response(503, text="down")).get_deposit("dep-1")
    with pytest.raises(ProviderUnavailable):
        await gateway_for(lambda request: httpx.Response(200, text="<html>")).get_deposit("dep-1")


async def test_missing_token_never_calls_provider():
    def handler(request):
        raise AssertionError("provider called without a token")

    with pytest.raises(ProviderUnavailable):
        await gateway_for(handler, token="").get_deposit("dep-1")


async def test_payout_roundtrip():
    def handler(request):
        if request.method == "POST":
            body = json.loads(request.content)
            assert body["correspondent"] == "AIRTEL_RWA"
            assert body["recipient"]["address"]["value"] == "250731234567"
            return httpx.Response(200, json={"payoutId": body["payoutId"], "status": "ACCEPTED"})
        return httpx.Response(200, json=[{"payoutId": "p-1", "status": "COMPLETED"}])

    gateway = gateway_for(handler)
    created = await gateway.initiate_payout("p-1", Decimal("5000"), "RWF", "airtel", "0731234567", "Host payout")
    fetched = await gateway.get_payout("p-1")

    assert created.accepted and created.status == "ACCEPTED"
    assert fetched.status == "COMPLETED"


async def test_failure_reason_error_message_is_read():
    def handler(request):
        return httpx.Response(
            200,
            json={"depositId": "dep-1", "status": "FAILED", "failureReason": {"errorMessage": "Insufficient balance"}},
        )

    result = await gateway_for(handler).get_deposit("dep-1")

    assert result.failure_message == "Insufficient balance"
