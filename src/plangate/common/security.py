"""API key authentication dependency."""

from fastapi import Header, HTTPException


async def require_api_key(
    x_plangate_api_key: str = Header(..., alias="X-PlanGate-Api-Key"),
) -> str:
    """FastAPI dependency that validates the host's API key from header."""
    from plangate.common.config import get_settings

    settings = get_settings()
    if x_plangate_api_key != settings.api_key:
        raise HTTPException(status_code=403, detail="Invalid API key")
    return x_plangate_api_key
