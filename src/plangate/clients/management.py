"""
Billing management API client.

Resolves a user's billing customer and reads that customer's entitlements,
expanded per plan.
"""

from typing import Any, Optional

import httpx

from plangate.clients.http import get_json
from plangate.common.exceptions import (
    BillingLookupError,
    EntitlementsUnavailableError,
)
from plangate.common.logging import get_logger
from plangate.entitlements.limits import UNLIMITED_SENTINEL
from plangate.entitlements.schemas import Entitlement, parse_entitlements

logger = get_logger("clients.management")


class ManagementClient:
    """Async client for the billing management API."""

    def __init__(
        self,
        base_url: str,
        token: str = "",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def get_billing_customer_id(self, user_id: str) -> Optional[str]:
        """Return the billing customer id for ``user_id``, or None if the user has none."""
        data = await get_json(
            self._http, "/api/v1/user", BillingLookupError,
            params={"id": user_id, "expand": "billing"},
        )
        billing = data.get("billing") or {}
        customer_id = billing.get("customer_id") if isinstance(billing, dict) else None
        if not customer_id:
            logger.info("User has no billing customer", extra={"user_id": user_id})
            return None
        return str(customer_id)

    async def get_entitlements(
        self,
        customer_id: str,
        feature_max_fallback: int = UNLIMITED_SENTINEL,
    ) -> list[Entitlement]:
        """
        Fetch every entitlement of ``customer_id`` with per-plan breakdowns.

        ``feature_max_fallback`` is what the API reports in place of a null
        max, so unlimited features arrive as the sentinel instead of null.
        """
        data = await get_json(
            self._http, "/api/v1/billing/entitlements", EntitlementsUnavailableError,
            params={
                "customer_id": customer_id,
                "expand": "plans",
                "max_value": str(feature_max_fallback),
            },
        )
        raw = data.get("entitlements")
        if raw is not None and not isinstance(raw, list):
            raise EntitlementsUnavailableError("entitlements is not a list")
        return parse_entitlements(raw)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "ManagementClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
