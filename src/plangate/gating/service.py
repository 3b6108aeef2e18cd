"""Plan-change gate: sequences the lookups and issues the allow/deny decision."""

import asyncio
import enum
from dataclasses import dataclass, field
from typing import Any, Awaitable, Optional, TypeVar

from plangate.common.config import PlanGateSettings
from plangate.common.exceptions import InputMissingError
from plangate.common.logging import get_logger
from plangate.entitlements.limits import Limit
from plangate.entitlements.resolver import NO_ENTITLEMENT, resolve_plan_limit
from plangate.entitlements.schemas import Entitlement
from plangate.gating.collaborators import (
    BillingIdentityLookup,
    DenyEmitter,
    EntitlementsLookup,
    UsageLookup,
)
from plangate.gating.decision import (
    Deny,
    GateOutcome,
    billing_unverified,
    build_summary,
    decide,
    decide_without_usage,
)
from plangate.gating.schemas import PlanChangeRequest, PlanSelectionEvent

logger = get_logger("gating")

T = TypeVar("T")


class GateState(str, enum.Enum):
    START = "start"
    VALIDATING_INPUT = "validating_input"
    RESOLVING_CUSTOMER = "resolving_customer"
    FETCHING_ENTITLEMENTS = "fetching_entitlements"
    FETCHING_USAGE = "fetching_usage"
    DECIDING = "deciding"
    ALLOWED = "allowed"
    DENIED = "denied"
    ABORTED = "aborted"

    @property
    def terminal(self) -> bool:
        return self in (GateState.ALLOWED, GateState.DENIED, GateState.ABORTED)


@dataclass
class GateEvaluation:
    """Everything one evaluation observed, for the host response and for logs."""

    state: GateState = GateState.START
    request: Optional[PlanChangeRequest] = None
    outcome: Optional[GateOutcome] = None
    customer_id: Optional[str] = None
    limit: Optional[Limit] = None
    usage: Optional[int] = None
    trail: list[GateState] = field(default_factory=lambda: [GateState.START])

    @property
    def allowed(self) -> bool:
        # Aborted evaluations never block the plan change.
        return self.outcome is None or self.outcome.allowed

    def advance(self, state: GateState) -> None:
        logger.debug("Gate %s -> %s", self.state.value, state.value, extra={"state": state.value})
        self.state = state
        self.trail.append(state)


class PlanChangeGate:
    """
    Decides whether a user may switch to a requested (usually lower) plan.

    Missing trigger fields skip the check entirely. An unresolvable billing
    customer is a hard deny. Entitlement and usage lookup failures degrade:
    no entitlements resolves the tracked feature to 0, and missing usage is
    handled by ``settings.usage_fallback_policy``.
    """

    def __init__(
        self,
        settings: PlanGateSettings,
        billing: BillingIdentityLookup,
        entitlements: EntitlementsLookup,
        usage: UsageLookup,
    ):
        self.settings = settings
        self.billing = billing
        self.entitlements = entitlements
        self.usage = usage

    async def _call(self, step: GateState, awaitable: Awaitable[T]) -> Optional[T]:
        """Await one collaborator call under the configured timeout.

        Any failure, timeout included, is logged and reported as ``None``.
        Cancellation propagates.
        """
        try:
            return await asyncio.wait_for(awaitable, timeout=self.settings.request_timeout)
        except asyncio.TimeoutError:
            logger.warning("Collaborator timed out during %s", step.value, extra={"state": step.value})
        except Exception:
            logger.warning("Collaborator failed during %s", step.value, extra={"state": step.value}, exc_info=True)
        return None

    async def evaluate(
        self,
        event: PlanSelectionEvent,
        emitter: DenyEmitter,
    ) -> GateEvaluation:
        """Run one evaluation. A deny is emitted at most once; allow emits nothing."""
        evaluation = GateEvaluation()

        evaluation.advance(GateState.VALIDATING_INPUT)
        try:
            request = PlanChangeRequest.from_event(event)
        except InputMissingError as e:
            logger.info(
                "Skipping plan change check: %s", e.message,
                extra={
                    "user_id": event.context.user.id,
                    "organization_code": event.context.organization.code,
                    "requested_plan_code": event.context.billing.requested_plan_code,
                },
            )
            evaluation.advance(GateState.ABORTED)
            return evaluation
        evaluation.request = request

        outcome = await self._run(request, evaluation)
        evaluation.outcome = outcome
        if isinstance(outcome, Deny):
            try:
                emitter.emit_deny(outcome.summary, outcome.reasons)
            except Exception:
                logger.error("Failed to emit deny outcome", exc_info=True)
            evaluation.advance(GateState.DENIED)
        else:
            evaluation.advance(GateState.ALLOWED)
        return evaluation

    async def _run(self, request: PlanChangeRequest, evaluation: GateEvaluation) -> GateOutcome:
        log_extra: dict[str, Any] = {
            "user_id": request.user_id,
            "organization_code": request.organization_code,
            "requested_plan_code": request.requested_plan_code,
        }

        # 1) Identify the billing customer
        evaluation.advance(GateState.RESOLVING_CUSTOMER)
        customer_id = await self._call(
            GateState.RESOLVING_CUSTOMER,
            self.billing.get_billing_customer_id(request.user_id),
        )
        if not customer_id:
            logger.warning("No billing customer for user", extra=log_extra)
            return billing_unverified()
        evaluation.customer_id = customer_id
        log_extra["customer_id"] = customer_id

        # 2) Entitlements with per-plan expansion
        evaluation.advance(GateState.FETCHING_ENTITLEMENTS)
        entitlements: Optional[list[Entitlement]] = await self._call(
            GateState.FETCHING_ENTITLEMENTS,
            self.entitlements.get_entitlements(customer_id, self.settings.feature_max_fallback),
        )
        if not entitlements:
            logger.warning("No entitlements returned, tracked feature resolves to 0", extra=log_extra)
            entitlements = []

        # 3) Live usage
        evaluation.advance(GateState.FETCHING_USAGE)
        snapshot = await self._call(
            GateState.FETCHING_USAGE,
            self.usage.get_usage(request.user_id),
        )
        if snapshot is None:
            logger.warning(
                "Usage unavailable, applying %s fallback",
                self.settings.usage_fallback_policy, extra=log_extra,
            )

        # 4) Compare
        evaluation.advance(GateState.DECIDING)
        feature_key = self.settings.tracked_feature_key
        try:
            limit = resolve_plan_limit(entitlements, feature_key, request.requested_plan_code)
        except ValueError:
            logger.warning(
                "Malformed limit for %s, treating entitlements as unavailable", feature_key,
                extra=log_extra, exc_info=True,
            )
            limit = NO_ENTITLEMENT
        evaluation.limit = limit
        logger.info(
            "Requested plan limit %s", limit,
            extra={**log_extra, "feature_key": feature_key, "limit": limit.as_int()},
        )

        summary = build_summary(request.requested_plan_code, request.current_plan_code)
        label = self.settings.tracked_feature_label
        if snapshot is None:
            return decide_without_usage(
                limit, label,
                conservative=self.settings.usage_fallback_policy == "conservative",
                summary=summary,
            )
        evaluation.usage = snapshot.count
        return decide(snapshot.count, limit, label, summary=summary)
