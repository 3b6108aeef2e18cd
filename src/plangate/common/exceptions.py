"""PlanGate exception hierarchy."""


class PlanGateError(Exception):
    """Base exception for all PlanGate errors."""

    def __init__(self, message: str = "", code: str = "PLANGATE_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class InputMissingError(PlanGateError):
    """Raised when the plan-selection trigger lacks a required field."""

    def __init__(self, message: str = "Required trigger fields are missing", missing: tuple[str, ...] = ()):
        self.missing = missing
        super().__init__(message, code="INPUT_MISSING")


class CollaboratorError(PlanGateError):
    """Raised when an upstream lookup fails, times out or returns garbage."""

    def __init__(self, message: str = "Collaborator call failed", code: str = "COLLABORATOR_ERROR"):
        super().__init__(message, code=code)


class BillingLookupError(CollaboratorError):
    """Raised when the billing customer for a user cannot be resolved."""

    def __init__(self, message: str = "Billing customer lookup failed"):
        super().__init__(message, code="BILLING_LOOKUP_FAILED")


class EntitlementsUnavailableError(CollaboratorError):
    """Raised when the entitlements lookup fails."""

    def __init__(self, message: str = "Entitlements unavailable"):
        super().__init__(message, code="ENTITLEMENTS_UNAVAILABLE")


class UsageUnavailableError(CollaboratorError):
    """Raised when live usage cannot be read."""

    def __init__(self, message: str = "Usage unavailable"):
        super().__init__(message, code="USAGE_UNAVAILABLE")
