"""PlanGate configuration via pydantic-settings."""

import warnings
from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from plangate.entitlements.limits import UNLIMITED_SENTINEL

_INSECURE_DEFAULTS = {
    "api_key": "insecure-gate-key-change-me",
}


class PlanGateSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="PLANGATE_")

    environment: str = "development"
    log_level: str = "INFO"

    # API
    api_title: str = "PlanGate"
    api_version: str = "0.1.0"
    api_key: str = "insecure-gate-key-change-me"
    host: str = "0.0.0.0"
    port: int = 8080
    api_prefix: str = ""
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:8000"]

    # Billing / entitlements management API
    management_url: str = "http://localhost:9000"
    management_token: str = ""

    # Live usage endpoint; {subject_id} is replaced with the user id
    usage_url: str = "http://localhost:8000/api/users/{subject_id}/accounts/count"
    usage_token: str = ""

    request_timeout: float = 10.0  # seconds, per collaborator call

    # Tracked feature
    tracked_feature_key: str = "tracked_accounts"
    tracked_feature_label: str = "tracked accounts"
    feature_max_fallback: int = UNLIMITED_SENTINEL

    # What to do when live usage cannot be read
    usage_fallback_policy: Literal["conservative", "optimistic"] = "conservative"

    def validate_for_production(self) -> None:
        """Raise if insecure defaults are used in non-development environments."""
        insecure_fields = [
            field
            for field, default in _INSECURE_DEFAULTS.items()
            if getattr(self, field) == default
        ]

        if self.environment != "development" and insecure_fields:
            env_vars = ", ".join(f"PLANGATE_{f.upper()}" for f in insecure_fields)
            raise RuntimeError(
                f"Insecure default values detected in '{self.environment}' environment. "
                f"Set these environment variables to secure values: {env_vars}. "
                "Generate secrets with: python -c \"import secrets; print(secrets.token_urlsafe(48))\""
            )

        if insecure_fields:
            warnings.warn(
                "Using insecure default key, set PLANGATE_API_KEY for production",
                UserWarning,
                stacklevel=2,
            )


@lru_cache
def get_settings() -> PlanGateSettings:
    settings = PlanGateSettings()
    settings.validate_for_production()
    return settings
