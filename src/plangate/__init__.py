"""PlanGate: usage-based gate for subscription plan downgrades."""

from plangate.entitlements.limits import UNLIMITED_SENTINEL, Bounded, Unlimited, normalize
from plangate.entitlements.resolver import resolve_limit, resolve_plan_limit
from plangate.gating.decision import Allow, Deny, decide
from plangate.gating.service import GateState, PlanChangeGate

__all__ = [
    "UNLIMITED_SENTINEL",
    "Bounded",
    "Unlimited",
    "normalize",
    "resolve_limit",
    "resolve_plan_limit",
    "Allow",
    "Deny",
    "decide",
    "GateState",
    "PlanChangeGate",
]
__version__ = "0.1.0"
