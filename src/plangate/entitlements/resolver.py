"""Resolve the effective limit of a feature under a requested plan."""

from typing import Optional, Sequence

from plangate.entitlements.limits import Bounded, Limit
from plangate.entitlements.schemas import Entitlement, PlanLimitEntry

# No entitlement for the feature at all means the plan grants none of it.
NO_ENTITLEMENT = Bounded(0)


def find_entitlement(
    entitlements: Sequence[Entitlement],
    feature_key: str,
) -> Optional[Entitlement]:
    """First entitlement whose feature key (any alias) equals ``feature_key``."""
    return next((e for e in entitlements if e.matches(feature_key)), None)


def find_plan_entry(
    entitlement: Entitlement,
    plan_code: str,
) -> Optional[PlanLimitEntry]:
    """First per-plan entry whose plan identifier (any alias) equals ``plan_code``."""
    return next((p for p in entitlement.plans if p.matches(plan_code)), None)


def resolve_plan_limit(
    entitlements: Sequence[Entitlement],
    feature_key: str,
    requested_plan_code: str,
) -> Limit:
    """
    Resolve the limit ``feature_key`` would have on ``requested_plan_code``.

    A per-plan entry wins over the entitlement's overall max. A missing max
    is unlimited, while a missing entitlement resolves to 0.

    A matched per-plan entry is authoritative even when it carries no max:
    it resolves to unlimited rather than falling through to the overall max.
    Raises ValueError if the chosen raw max is not numeric.
    """
    entitlement = find_entitlement(entitlements, feature_key)
    if entitlement is None:
        return NO_ENTITLEMENT

    plan_entry = find_plan_entry(entitlement, requested_plan_code)
    if plan_entry is not None:
        return plan_entry.limit
    return entitlement.limit


def resolve_limit(
    entitlements: Sequence[Entitlement],
    feature_key: str,
    requested_plan_code: str,
) -> int:
    """Integer form of :func:`resolve_plan_limit` (unlimited is ``2147483647``)."""
    return resolve_plan_limit(entitlements, feature_key, requested_plan_code).as_int()
