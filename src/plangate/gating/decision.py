"""Usage-vs-limit gating decision."""

from dataclasses import dataclass
from typing import Optional, Union

from plangate.entitlements.limits import Limit, Unlimited, parse_limit

BILLING_UNVERIFIED_MESSAGE = "We couldn't verify your billing profile. Please try again."

DENY_REASON_TEMPLATE = "Delete {feature_label} to {limit} or fewer (currently {usage})."


@dataclass(frozen=True)
class Allow:
    """The plan change may proceed."""

    allowed = True


@dataclass(frozen=True)
class Deny:
    """The plan change is blocked; ``reasons`` tell the user what to fix."""

    summary: str
    reasons: tuple[str, ...] = ()

    allowed = False


GateOutcome = Union[Allow, Deny]

ALLOW = Allow()


def plan_display_name(plan_code: str) -> str:
    """``free`` -> ``Free``, ``pro_annual`` -> ``Pro Annual``."""
    return plan_code.replace("_", " ").replace("-", " ").title()


def build_summary(requested_plan_code: str = "", current_plan_code: str = "") -> str:
    """Leading line of a deny, naming the plans involved when they are known."""
    if requested_plan_code and current_plan_code:
        return (
            f"To move from {plan_display_name(current_plan_code)} to the "
            f"{plan_display_name(requested_plan_code)} plan you first need to:"
        )
    if requested_plan_code:
        return f"To move to the {plan_display_name(requested_plan_code)} plan you first need to:"
    return "To change your plan you first need to:"


def deny_reason(feature_label: str, limit: Limit, usage: Union[int, str]) -> str:
    return DENY_REASON_TEMPLATE.format(feature_label=feature_label, limit=limit, usage=usage)


def _as_limit(limit: Union[Limit, int]) -> Limit:
    if isinstance(limit, int):
        return parse_limit(limit)
    return limit


def decide(
    usage: int,
    limit: Union[Limit, int],
    feature_label: str,
    summary: Optional[str] = None,
) -> GateOutcome:
    """Allow iff ``usage <= limit``; otherwise deny with a remediation reason."""
    limit = _as_limit(limit)
    if usage <= limit.as_int():
        return ALLOW
    return Deny(
        summary=summary or build_summary(),
        reasons=(deny_reason(feature_label, limit, usage),),
    )


def decide_without_usage(
    limit: Union[Limit, int],
    feature_label: str,
    conservative: bool = True,
    summary: Optional[str] = None,
) -> GateOutcome:
    """
    Decide when live usage could not be read.

    Optimistically this always allows. Conservatively only an unlimited
    target plan is allowed, since any bounded limit might already be exceeded.
    """
    limit = _as_limit(limit)
    if not conservative or isinstance(limit, Unlimited):
        return ALLOW
    return Deny(
        summary=summary or build_summary(),
        reasons=(deny_reason(feature_label, limit, "unknown"),),
    )


def billing_unverified() -> Deny:
    return Deny(summary=BILLING_UNVERIFIED_MESSAGE)
