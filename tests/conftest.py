"""Shared test fixtures for PlanGate."""

import asyncio
import os

import pytest
from httpx import ASGITransport, AsyncClient

from plangate.common.config import PlanGateSettings
from plangate.entitlements.schemas import parse_entitlements
from plangate.gating.collaborators import CollectingEmitter
from plangate.gating.schemas import PlanSelectionEvent, UsageSnapshot
from plangate.gating.service import PlanChangeGate


API_KEY = "test-gate-api-key"

# Entitlements API response for a customer whose "free" plan allows 2
# tracked accounts and whose other plans are uncapped.
TRACKED_ACCOUNTS_RESPONSE = {
    "entitlements": [
        {
            "feature_key": "tracked_accounts",
            "entitlement_limit_max": None,
            "plans": [{"plan_code": "free", "entitlement_limit_max": 2}],
        },
    ],
}


def make_event(user_id="kp_user_1", org_code="org_1", plan="free", current_plan="pro"):
    return PlanSelectionEvent.model_validate({
        "context": {
            "billing": {"requestedPlanCode": plan, "currentPlanCode": current_plan},
            "organization": {"code": org_code},
            "user": {"id": user_id},
        },
    })


class FakeBilling:
    def __init__(self, customer_id="cus_1", error=None, delay=0.0):
        self.customer_id = customer_id
        self.error = error
        self.delay = delay
        self.calls = []

    async def get_billing_customer_id(self, user_id):
        self.calls.append(user_id)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.customer_id


class FakeEntitlements:
    def __init__(self, raw=None, error=None, delay=0.0):
        self.raw = TRACKED_ACCOUNTS_RESPONSE["entitlements"] if raw is None else raw
        self.error = error
        self.delay = delay
        self.calls = []

    async def get_entitlements(self, customer_id, feature_max_fallback):
        self.calls.append((customer_id, feature_max_fallback))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return parse_entitlements(self.raw)


class FakeUsage:
    def __init__(self, count=3, error=None, delay=0.0):
        self.count = count
        self.error = error
        self.delay = delay
        self.calls = []

    async def get_usage(self, subject_id):
        self.calls.append(subject_id)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return UsageSnapshot(subject_id=subject_id, count=self.count)


def make_settings(**overrides) -> PlanGateSettings:
    defaults = {"api_key": API_KEY, "request_timeout": 0.5}
    defaults.update(overrides)
    return PlanGateSettings(**defaults)


def make_gate(billing=None, entitlements=None, usage=None, **settings_overrides):
    return PlanChangeGate(
        make_settings(**settings_overrides),
        billing=billing or FakeBilling(),
        entitlements=entitlements or FakeEntitlements(),
        usage=usage or FakeUsage(),
    )


@pytest.fixture
def emitter():
    return CollectingEmitter()


@pytest.fixture
def app():
    """Create a test app with a known API key."""
    os.environ["PLANGATE_API_KEY"] = API_KEY
    os.environ["PLANGATE_ENVIRONMENT"] = "development"

    # Clear caches and singletons so new env vars take effect
    from plangate.common.config import get_settings
    get_settings.cache_clear()

    from plangate.deps import reset_singletons
    reset_singletons()

    from plangate.app import create_app
    yield create_app()

    reset_singletons()
    get_settings.cache_clear()


@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def gate_headers():
    return {"X-PlanGate-Api-Key": API_KEY}


@pytest.fixture
def gate_factory():
    return make_gate


@pytest.fixture
def event_factory():
    return make_event


@pytest.fixture
def fakes():
    """Fake collaborator classes, so tests can build them with custom behaviour."""

    class Fakes:
        Billing = FakeBilling
        Entitlements = FakeEntitlements
        Usage = FakeUsage

    return Fakes
