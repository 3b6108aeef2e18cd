"""Contracts for the services the plan-change gate talks to."""

from typing import Optional, Protocol, Sequence

from plangate.entitlements.schemas import Entitlement
from plangate.gating.schemas import UsageSnapshot


class BillingIdentityLookup(Protocol):
    async def get_billing_customer_id(self, user_id: str) -> Optional[str]: ...


class EntitlementsLookup(Protocol):
    async def get_entitlements(
        self, customer_id: str, feature_max_fallback: int
    ) -> list[Entitlement]: ...


class UsageLookup(Protocol):
    async def get_usage(self, subject_id: str) -> UsageSnapshot: ...


class DenyEmitter(Protocol):
    def emit_deny(self, summary: str, reasons: Sequence[str]) -> None: ...


class CollectingEmitter:
    """Holds the single deny emitted during one evaluation."""

    def __init__(self) -> None:
        self.summary: Optional[str] = None
        self.reasons: list[str] = []
        self.calls = 0

    @property
    def denied(self) -> bool:
        return self.calls > 0

    def emit_deny(self, summary: str, reasons: Sequence[str]) -> None:
        self.calls += 1
        self.summary = summary
        self.reasons = list(reasons)

