"""Pydantic schemas for the plan-selection trigger and gate responses."""

from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from plangate.common.exceptions import InputMissingError


class BillingContext(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    requested_plan_code: Optional[str] = Field(default=None, alias="requestedPlanCode")
    current_plan_code: Optional[str] = Field(default=None, alias="currentPlanCode")


class OrganizationContext(BaseModel):
    code: Optional[str] = None


class UserContext(BaseModel):
    id: Optional[str] = None


class PlanSelectionContext(BaseModel):
    billing: BillingContext = Field(default_factory=BillingContext)
    organization: OrganizationContext = Field(default_factory=OrganizationContext)
    user: UserContext = Field(default_factory=UserContext)

    @field_validator("billing", "organization", "user", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        return {} if value is None else value


class PlanSelectionEvent(BaseModel):
    """Inbound trigger raised by the host when a user picks a new plan."""

    context: PlanSelectionContext = Field(default_factory=PlanSelectionContext)

    @field_validator("context", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        return {} if value is None else value


class PlanChangeRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: str
    organization_code: str
    requested_plan_code: str
    current_plan_code: str = ""

    @classmethod
    def from_event(cls, event: PlanSelectionEvent) -> "PlanChangeRequest":
        """Extract the required fields, raising InputMissingError if any is empty."""
        ctx = event.context
        fields = {
            "user_id": ctx.user.id,
            "organization_code": ctx.organization.code,
            "requested_plan_code": ctx.billing.requested_plan_code,
        }
        missing = tuple(name for name, value in fields.items() if not value)
        if missing:
            raise InputMissingError(
                f"Plan selection is missing: {', '.join(missing)}",
                missing=missing,
            )
        return cls(**fields, current_plan_code=ctx.billing.current_plan_code or "")


class UsageSnapshot(BaseModel):
    """Current consumption of the tracked feature for one subject."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    subject_id: str = Field(
        default="",
        validation_alias=AliasChoices("subjectId", "kindeId", "subject_id"),
    )
    count: int = Field(..., ge=0)


class PlanSelectionResponse(BaseModel):
    """Outcome handed back to the host; a deny carries summary and reasons."""

    state: str
    allowed: bool
    summary: str = ""
    reasons: list[str] = Field(default_factory=list)
    limit: Optional[int] = None
    usage: Optional[int] = None
