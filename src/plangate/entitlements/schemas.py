"""Canonical entitlement shapes.

The billing API is not consistent about field names: a feature may be keyed
by ``feature_key`` or ``feature_code``, a plan by ``plan_code``, ``key`` or
``code``, and a max by ``entitlement_limit_max`` or ``max``. Every known
variant is mapped into one canonical model here, so resolution code never
looks at raw field names.
"""

from typing import Any, Iterable, Optional

from pydantic import BaseModel, ConfigDict, ValidationError, model_validator

from plangate.common.logging import get_logger
from plangate.entitlements.limits import Limit, parse_limit

logger = get_logger("entitlements")

FEATURE_KEY_FIELDS = ("feature_key", "feature_code")
PLAN_CODE_FIELDS = ("plan_code", "key", "code")
LIMIT_FIELDS = ("entitlement_limit_max", "max")


def _identifiers(data: dict[str, Any], fields: tuple[str, ...]) -> tuple[str, ...]:
    return tuple(data[f] for f in fields if isinstance(data.get(f), str))


def _first_present(data: dict[str, Any], fields: tuple[str, ...]) -> Any:
    for f in fields:
        if data.get(f) is not None:
            return data[f]
    return None


class PlanLimitEntry(BaseModel):
    """A feature's limit under one specific plan."""

    model_config = ConfigDict(frozen=True)

    identifiers: tuple[str, ...] = ()
    # Raw upstream value; classified by parse_limit only when it is resolved
    max_value: Any = None

    @model_validator(mode="before")
    @classmethod
    def _from_raw(cls, data: Any) -> Any:
        if not isinstance(data, dict) or "identifiers" in data:
            return data
        return {
            "identifiers": _identifiers(data, PLAN_CODE_FIELDS),
            "max_value": _first_present(data, LIMIT_FIELDS),
        }

    @property
    def plan_code(self) -> str:
        return self.identifiers[0] if self.identifiers else ""

    @property
    def limit(self) -> Limit:
        return parse_limit(self.max_value)

    def matches(self, plan_code: str) -> bool:
        return plan_code in self.identifiers


class Entitlement(BaseModel):
    """One feature's entitlement configuration across plans."""

    model_config = ConfigDict(frozen=True)

    identifiers: tuple[str, ...] = ()
    max_value: Any = None
    plans: tuple[PlanLimitEntry, ...] = ()

    @model_validator(mode="before")
    @classmethod
    def _from_raw(cls, data: Any) -> Any:
        if not isinstance(data, dict) or "identifiers" in data:
            return data
        return {
            "identifiers": _identifiers(data, FEATURE_KEY_FIELDS),
            "max_value": _first_present(data, LIMIT_FIELDS),
            "plans": data.get("plans") or (),
        }

    @property
    def feature_key(self) -> str:
        return self.identifiers[0] if self.identifiers else ""

    @property
    def limit(self) -> Limit:
        """Overall limit. A non-numeric raw max raises ValueError here."""
        return parse_limit(self.max_value)

    def matches(self, feature_key: str) -> bool:
        return feature_key in self.identifiers


def parse_entitlements(raw: Optional[Iterable[Any]]) -> list[Entitlement]:
    """Map a raw ``entitlements`` array from the billing API to canonical models.

    Records that cannot be mapped at all are skipped so they cannot hide the
    rest of the list. Limits stay raw until resolved; see ``Entitlement.limit``.
    """
    if not raw:
        return []
    entitlements = []
    for index, item in enumerate(raw):
        try:
            entitlements.append(Entitlement.model_validate(item))
        except ValidationError as e:
            logger.warning("Skipping malformed entitlement %d: %s", index, e.errors()[0]["msg"])
    return entitlements
