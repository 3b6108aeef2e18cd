"""Dependency injection singletons for PlanGate."""

from plangate.clients.management import ManagementClient
from plangate.clients.usage import UsageClient
from plangate.common.config import get_settings
from plangate.gating.service import PlanChangeGate

_management: ManagementClient | None = None
_usage: UsageClient | None = None
_gate: PlanChangeGate | None = None


def get_management_client() -> ManagementClient:
    global _management
    if _management is None:
        settings = get_settings()
        _management = ManagementClient(
            settings.management_url,
            token=settings.management_token,
            timeout=settings.request_timeout,
        )
    return _management


def get_usage_client() -> UsageClient:
    global _usage
    if _usage is None:
        settings = get_settings()
        _usage = UsageClient(
            settings.usage_url,
            token=settings.usage_token,
            timeout=settings.request_timeout,
        )
    return _usage


def get_gate() -> PlanChangeGate:
    global _gate
    if _gate is None:
        management = get_management_client()
        _gate = PlanChangeGate(
            get_settings(),
            billing=management,
            entitlements=management,
            usage=get_usage_client(),
        )
    return _gate


async def close_clients() -> None:
    """Close any HTTP clients that were opened and drop the singletons."""
    if _management is not None:
        await _management.aclose()
    if _usage is not None:
        await _usage.aclose()
    reset_singletons()


def reset_singletons() -> None:
    """Reset all singletons (for testing)."""
    global _management, _usage, _gate
    _management = None
    _usage = None
    _gate = None
