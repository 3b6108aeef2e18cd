"""Tests for the management and usage HTTP clients."""

import httpx
import pytest

from plangate.clients.management import ManagementClient
from plangate.clients.usage import UsageClient
from plangate.common.exceptions import (
    BillingLookupError,
    EntitlementsUnavailableError,
    UsageUnavailableError,
)
from plangate.entitlements.limits import UNLIMITED_SENTINEL
from plangate.entitlements.resolver import resolve_limit


def _transport(handler):
    requests = []

    def _record(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request)

    return httpx.MockTransport(_record), requests


def _management(handler, **kwargs):
    transport, requests = _transport(handler)
    return ManagementClient("https://billing.test/", transport=transport, **kwargs), requests


class TestBillingCustomer:
    async def test_returns_customer_id(self):
        client, requests = _management(
            lambda r: httpx.Response(200, json={"id": "kp_1", "billing": {"customer_id": "cus_9"}})
        )
        async with client:
            assert await client.get_billing_customer_id("kp_1") == "cus_9"

        req = requests[0]
        assert req.url.path == "/api/v1/user"
        assert req.url.params["id"] == "kp_1"
        assert req.url.params["expand"] == "billing"

    @pytest.mark.parametrize("body", [{}, {"billing": None}, {"billing": {}}, {"billing": {"customer_id": ""}}])
    async def test_missing_customer_is_none(self, body):
        client, _ = _management(lambda r: httpx.Response(200, json=body))
        async with client:
            assert await client.get_billing_customer_id("kp_1") is None

    async def test_http_error_raises(self):
        client, _ = _management(lambda r: httpx.Response(404, json={"error": "no such user"}))
        async with client:
            with pytest.raises(BillingLookupError):
                await client.get_billing_customer_id("kp_1")

    async def test_timeout_raises(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        client, _ = _management(handler)
        async with client:
            with pytest.raises(BillingLookupError) as exc:
                await client.get_billing_customer_id("kp_1")
        assert exc.value.code == "BILLING_LOOKUP_FAILED"

    async def test_bearer_token_sent(self):
        client, requests = _management(
            lambda r: httpx.Response(200, json={"billing": {"customer_id": "c"}}),
            token="m2m-token",
        )
        async with client:
            await client.get_billing_customer_id("kp_1")
        assert requests[0].headers["Authorization"] == "Bearer m2m-token"


class TestEntitlements:
    async def test_parses_entitlements(self):
        body = {
            "entitlements": [
                {
                    "feature_code": "tracked_accounts",
                    "max": 2147483647,
                    "plans": [{"key": "free", "entitlement_limit_max": 2}],
                },
            ],
        }
        client, requests = _management(lambda r: httpx.Response(200, json=body))
        async with client:
            ents = await client.get_entitlements("cus_9")

        assert ents[0].feature_key == "tracked_accounts"
        assert ents[0].plans[0].plan_code == "free"
        params = requests[0].url.params
        assert requests[0].url.path == "/api/v1/billing/entitlements"
        assert params["customer_id"] == "cus_9"
        assert params["expand"] == "plans"
        assert params["max_value"] == str(UNLIMITED_SENTINEL)

    async def test_missing_list_is_empty(self):
        client, _ = _management(lambda r: httpx.Response(200, json={}))
        async with client:
            assert await client.get_entitlements("cus_9") == []

    async def test_server_error_raises(self):
        client, _ = _management(lambda r: httpx.Response(503))
        async with client:
            with pytest.raises(EntitlementsUnavailableError):
                await client.get_entitlements("cus_9")

    async def test_invalid_json_raises(self):
        client, _ = _management(lambda r: httpx.Response(200, content=b"<html>"))
        async with client:
            with pytest.raises(EntitlementsUnavailableError):
                await client.get_entitlements("cus_9")

    async def test_malformed_sibling_keeps_tracked_feature(self):
        body = {"entitlements": [
            {"feature_key": "seats", "max": "n/a"},
            None,
            {"feature_key": "tracked_accounts", "max": 50},
        ]}
        client, _ = _management(lambda r: httpx.Response(200, json=body))
        async with client:
            ents = await client.get_entitlements("cus_9")
        assert [e.feature_key for e in ents] == ["seats", "tracked_accounts"]
        assert resolve_limit(ents, "tracked_accounts", "free") == 50

    async def test_non_list_raises(self):
        client, _ = _management(lambda r: httpx.Response(200, json={"entitlements": "nope"}))
        async with client:
            with pytest.raises(EntitlementsUnavailableError):
                await client.get_entitlements("cus_9")


class TestUsage:
    def _client(self, handler):
        transport, requests = _transport(handler)
        client = UsageClient(
            "https://app.test/api/users/{subject_id}/accounts/count",
            transport=transport,
        )
        return client, requests

    async def test_reads_count(self):
        client, requests = self._client(lambda r: httpx.Response(200, json={"kindeId": "kp_1", "count": 4}))
        async with client:
            snapshot = await client.get_usage("kp_1")
        assert snapshot.count == 4
        assert snapshot.subject_id == "kp_1"
        assert str(requests[0].url) == "https://app.test/api/users/kp_1/accounts/count"

    async def test_subject_defaults_to_requested_id(self):
        client, _ = self._client(lambda r: httpx.Response(200, json={"count": 0}))
        async with client:
            snapshot = await client.get_usage("kp_7")
        assert snapshot.subject_id == "kp_7"

    @pytest.mark.parametrize("body", [{}, {"count": -1}, {"count": "many"}])
    async def test_malformed_raises(self, body):
        client, _ = self._client(lambda r: httpx.Response(200, json=body))
        async with client:
            with pytest.raises(UsageUnavailableError):
                await client.get_usage("kp_1")

    async def test_connection_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        client, _ = self._client(handler)
        async with client:
            with pytest.raises(UsageUnavailableError):
                await client.get_usage("kp_1")
