"""
Shared test fixtures and configuration.

This module provides:
- A controllable clock for window/TTL tests
- In-memory fakes for the external collaborators (commerce, identity,
  presence, notifications) that record every call
- Workflow factory wired onto those fakes
"""

from collections.abc import Callable

import pytest

from claimgate.adapters.ratelimit.memory import InMemoryRateLimitStore
from claimgate.domain.exceptions import (
    CommerceLookupError,
    IdentityLookupError,
    NotificationDeliveryError,
    PresenceLookupError,
)
from claimgate.domain.identity import IdentityResolver
from claimgate.domain.models import ClaimRecord, OrderRecord, PlatformUser
from claimgate.domain.notifications import NotificationEmitter
from claimgate.domain.orders import OrderValidator
from claimgate.domain.rate_limiter import RateLimiter
from claimgate.domain.workflow import ClaimWorkflow

AVATAR_URL = "https://tr.rbxcdn.com/avatar/150/150/AvatarHeadshot/Png"


class FakeClock:
    """Manually advanced epoch-seconds clock."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeCommerceOracle:
    """Orders keyed by name; records every lookup."""

    def __init__(self, orders: dict[str, list[OrderRecord]] | None = None) -> None:
        self.orders = orders or {}
        self.calls: list[str] = []
        self.fail = False

    def find_orders(self, order_name: str) -> list[OrderRecord]:
        self.calls.append(order_name)
        if self.fail:
            raise CommerceLookupError("oracle down")
        return list(self.orders.get(order_name, []))


class FakeIdentityDirectory:
    """Users keyed by handle; avatars keyed by id."""

    def __init__(self) -> None:
        self.users: dict[str, PlatformUser] = {}
        self.avatars: dict[int, str] = {}
        self.user_calls: list[str] = []
        self.avatar_calls: list[int] = []
        self.fail_user_lookup = False
        self.fail_avatar_lookup = False

    def add_user(self, handle: str, numeric_id: int, display_name: str = "", avatar: str | None = AVATAR_URL) -> None:
        self.users[handle] = PlatformUser(numeric_id=numeric_id, name=handle, display_name=display_name)
        if avatar is not None:
            self.avatars[numeric_id] = avatar

    def find_user(self, handle: str) -> PlatformUser | None:
        self.user_calls.append(handle)
        if self.fail_user_lookup:
            raise IdentityLookupError("users API down")
        return self.users.get(handle)

    def find_avatar_url(self, numeric_id: int) -> str | None:
        self.avatar_calls.append(numeric_id)
        if self.fail_avatar_lookup:
            raise IdentityLookupError("thumbnails API down")
        return self.avatars.get(numeric_id)


class FakePresenceService:
    """Presence types keyed by agent id; ids in ``failing`` raise."""

    def __init__(self, presence: dict[str, int | None] | None = None) -> None:
        self.presence = presence or {}
        self.failing: set[str] = set()
        self.calls: list[str] = []

    def fetch_presence_type(self, agent_id: str) -> int | None:
        self.calls.append(agent_id)
        if agent_id in self.failing:
            raise PresenceLookupError(f"presence lookup failed for {agent_id}")
        return self.presence.get(agent_id)


class FakeNotificationSink:
    """Collects claim records; optionally rejects them."""

    def __init__(self) -> None:
        self.records: list[ClaimRecord] = []
        self.fail = False

    def send_claim(self, record: ClaimRecord) -> None:
        if self.fail:
            raise NotificationDeliveryError("webhook returned 500")
        self.records.append(record)


def _order(
    financial_status: str | None = "paid",
    fulfillment_status: str | None = None,
    email: str | None = "a@b.com",
) -> OrderRecord:
    return OrderRecord(
        financial_status=financial_status,
        fulfillment_status=fulfillment_status,
        email=email,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def oracle() -> FakeCommerceOracle:
    """Oracle knowing one claimable order, #1234 for a@b.com."""
    return FakeCommerceOracle({"#1234": [_order(fulfillment_status="unfulfilled")]})


@pytest.fixture
def directory() -> FakeIdentityDirectory:
    """Directory knowing one user, builder_bob (id 42)."""
    directory = FakeIdentityDirectory()
    directory.add_user("builder_bob", 42, display_name="Bob")
    return directory


@pytest.fixture
def presence_service() -> FakePresenceService:
    return FakePresenceService()


@pytest.fixture
def sink() -> FakeNotificationSink:
    return FakeNotificationSink()


@pytest.fixture
def rate_limit_store() -> InMemoryRateLimitStore:
    return InMemoryRateLimitStore()


@pytest.fixture
def make_workflow(
    oracle: FakeCommerceOracle,
    directory: FakeIdentityDirectory,
    sink: FakeNotificationSink,
    rate_limit_store: InMemoryRateLimitStore,
    clock: FakeClock,
) -> Callable[..., ClaimWorkflow]:
    """Factory wiring a workflow onto the fakes; limits are overridable."""

    def factory(max_attempts: int = 5, rate_limit_max: int = 100, window_seconds: float = 60) -> ClaimWorkflow:
        return ClaimWorkflow(
            rate_limiter=RateLimiter(
                store=rate_limit_store,
                max_attempts=rate_limit_max,
                window_seconds=window_seconds,
                clock=clock,
            ),
            order_validator=OrderValidator(oracle),
            identity_resolver=IdentityResolver(directory),
            notifier=NotificationEmitter(sink),
            max_attempts=max_attempts,
        )

    return factory
