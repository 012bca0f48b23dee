"""
Unit tests for API v1 claim routes.

Tests endpoint responses with the workflow wired onto in-memory fakes.
"""

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from claimgate.adapters.session.memory import InMemorySessionStore
from claimgate.api.dependencies import get_claim_workflow, get_client_key, get_presence_poller
from claimgate.api.v1.routes import router
from claimgate.config.settings import Settings, get_settings
from claimgate.domain.presence import PresencePoller

VALID = {"orderNumber": "1234", "email": "a@b.com", "handle": "builder_bob"}


@pytest.fixture
def app(make_workflow, presence_service, clock) -> FastAPI:
    """Create test FastAPI application with fakes injected."""
    test_app = FastAPI()
    test_app.include_router(router, prefix="/v1")
    test_app.state.session_store = InMemorySessionStore(clock=clock)

    workflow = make_workflow(max_attempts=3, rate_limit_max=100)
    test_app.dependency_overrides[get_claim_workflow] = lambda: workflow
    test_app.dependency_overrides[get_presence_poller] = lambda: PresencePoller(presence_service)
    test_app.dependency_overrides[get_settings] = lambda: Settings(
        delivery_agent_id="7",
        delivery_agent_server_url="https://www.roblox.com/share?code=abc",
    )
    return test_app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Create test client for the application."""
    return TestClient(app)


def verified_session(client: TestClient) -> dict:
    response = client.post("/v1/verify", json=VALID)
    assert response.status_code == 200
    return response.json()


class TestVerifyEndpoint:
    """Tests for POST /v1/verify endpoint."""

    def test_success_returns_identity(self, client: TestClient) -> None:
        response = client.post("/v1/verify", json=VALID)

        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["step"] == "CONFIRM"
        assert data["sessionId"]
        assert data["identity"]["numericId"] == 42
        assert data["identity"]["displayName"] == "Bob"

    def test_missing_fields_return_400(self, client: TestClient) -> None:
        """Blank fields are a counted failure, not a schema error."""
        response = client.post("/v1/verify", json={"orderNumber": "1234"})

        assert response.status_code == 400
        data = response.json()
        assert data["ok"] is False
        assert data["reason"] == "input_invalid"
        assert data["step"] == "VERIFY"
        assert data["attemptsRemaining"] == 2

    def test_order_rule_returns_422(self, client: TestClient) -> None:
        response = client.post("/v1/verify", json={**VALID, "email": "c@d.com"})

        assert response.status_code == 422
        assert response.json()["reason"] == "email_mismatch"

    def test_unknown_handle_returns_404(self, client: TestClient) -> None:
        response = client.post("/v1/verify", json={**VALID, "handle": "ghost_user_zzz"})

        assert response.status_code == 404
        assert response.json()["reason"] == "identity_not_found"

    def test_lookup_failure_returns_502(self, client: TestClient, oracle) -> None:
        oracle.fail = True
        response = client.post("/v1/verify", json=VALID)

        assert response.status_code == 502
        assert response.json()["reason"] == "lookup_failed"

    def test_failures_accumulate_on_the_session(self, client: TestClient) -> None:
        first = client.post("/v1/verify", json={**VALID, "email": "c@d.com"}).json()
        second = client.post("/v1/verify", json={**VALID, "email": "c@d.com", "sessionId": first["sessionId"]}).json()

        assert second["sessionId"] == first["sessionId"]
        assert second["attemptsRemaining"] == 1

    def test_blocked_session_returns_403(self, client: TestClient) -> None:
        """After max failures the session refuses even valid input."""
        session_id = None
        for _ in range(3):
            body = {**VALID, "email": "c@d.com"}
            if session_id:
                body["sessionId"] = session_id
            session_id = client.post("/v1/verify", json=body).json()["sessionId"]

        response = client.post("/v1/verify", json={**VALID, "sessionId": session_id})

        assert response.status_code == 403
        assert response.json()["reason"] == "blocked"
        assert response.json()["attemptsRemaining"] == 0

    def test_unknown_session_id_starts_new_session(self, client: TestClient) -> None:
        response = client.post("/v1/verify", json={**VALID, "sessionId": "expired"})

        assert response.status_code == 200
        assert response.json()["sessionId"] != "expired"

    def test_verify_twice_returns_409(self, client: TestClient) -> None:
        session_id = verified_session(client)["sessionId"]

        response = client.post("/v1/verify", json={**VALID, "sessionId": session_id})

        assert response.status_code == 409
        assert response.json()["reason"] == "invalid_transition"


class TestRateLimiting:
    """Tests for the per-client rate limit."""

    def test_rate_limited_returns_429_with_retry_after(self, app: FastAPI, make_workflow) -> None:
        workflow = make_workflow(max_attempts=10, rate_limit_max=2)
        app.dependency_overrides[get_claim_workflow] = lambda: workflow
        client = TestClient(app)

        for _ in range(2):
            client.post("/v1/verify", json={**VALID, "email": "c@d.com"})
        response = client.post("/v1/verify", json=VALID)

        assert response.status_code == 429
        assert response.json()["reason"] == "rate_limited"
        assert response.headers["Retry-After"] == "60"

    def test_rate_limited_new_session_is_not_kept(self, app: FastAPI, make_workflow) -> None:
        """Throttled requests without a session id leave the registry alone."""
        workflow = make_workflow(max_attempts=10, rate_limit_max=2)
        app.dependency_overrides[get_claim_workflow] = lambda: workflow
        client = TestClient(app)
        sessions = app.state.session_store

        for _ in range(2):
            client.post("/v1/verify", json={**VALID, "email": "c@d.com"})
        assert len(sessions) == 2

        for _ in range(20):
            response = client.post("/v1/verify", json=VALID)
            assert response.status_code == 429
            assert "sessionId" not in response.json()

        assert len(sessions) == 2

    def test_rate_limited_existing_session_counts_attempt(self, app: FastAPI, make_workflow) -> None:
        workflow = make_workflow(max_attempts=10, rate_limit_max=1)
        app.dependency_overrides[get_claim_workflow] = lambda: workflow
        client = TestClient(app)

        session_id = client.post("/v1/verify", json={**VALID, "email": "c@d.com"}).json()["sessionId"]
        response = client.post("/v1/verify", json={**VALID, "sessionId": session_id})

        assert response.status_code == 429
        assert response.json()["sessionId"] == session_id
        assert response.json()["attemptsRemaining"] == 8


class TestBackEndpoint:
    """Tests for POST /v1/back endpoint."""

    def test_back_returns_to_verify(self, client: TestClient) -> None:
        session_id = verified_session(client)["sessionId"]

        response = client.post("/v1/back", json={"sessionId": session_id})

        assert response.status_code == 200
        assert response.json() == {"ok": True, "sessionId": session_id, "step": "VERIFY"}

    def test_back_from_verify_returns_409(self, client: TestClient) -> None:
        session_id = client.post("/v1/verify", json={**VALID, "email": "c@d.com"}).json()["sessionId"]

        response = client.post("/v1/back", json={"sessionId": session_id})

        assert response.status_code == 409

    def test_unknown_session_returns_404(self, client: TestClient) -> None:
        response = client.post("/v1/back", json={"sessionId": "nope"})

        assert response.status_code == 404
        assert response.json()["reason"] == "session_not_found"


class TestConfirmEndpoint:
    """Tests for POST /v1/confirm endpoint."""

    def confirm_body(self, verified: dict) -> dict:
        return {**VALID, "sessionId": verified["sessionId"], "identity": verified["identity"]}

    def test_confirm_submits_claim(self, client: TestClient, sink) -> None:
        verified = verified_session(client)

        response = client.post("/v1/confirm", json=self.confirm_body(verified))

        assert response.status_code == 200
        assert response.json()["step"] == "CLAIM"
        assert len(sink.records) == 1
        assert sink.records[0].order_number == "#1234"

    def test_second_confirm_returns_409(self, client: TestClient, sink) -> None:
        verified = verified_session(client)
        client.post("/v1/confirm", json=self.confirm_body(verified))

        response = client.post("/v1/confirm", json=self.confirm_body(verified))

        assert response.status_code == 409
        assert len(sink.records) == 1

    def test_mismatched_identity_returns_409(self, client: TestClient, sink) -> None:
        verified = verified_session(client)
        body = self.confirm_body(verified)
        body["identity"] = {**body["identity"], "numericId": 99}

        response = client.post("/v1/confirm", json=body)

        assert response.status_code == 409
        assert response.json()["reason"] == "session_mismatch"
        assert sink.records == []

    def test_notification_failure_returns_502_and_stays_in_confirm(self, client: TestClient, sink) -> None:
        verified = verified_session(client)
        sink.fail = True

        response = client.post("/v1/confirm", json=self.confirm_body(verified))

        assert response.status_code == 502
        assert response.json()["reason"] == "notification_failed"
        assert response.json()["step"] == "CONFIRM"

        sink.fail = False
        retry = client.post("/v1/confirm", json=self.confirm_body(verified))
        assert retry.status_code == 200

    def test_confirm_from_verify_returns_409(self, client: TestClient, sink) -> None:
        verified = verified_session(client)
        client.post("/v1/back", json={"sessionId": verified["sessionId"]})

        response = client.post("/v1/confirm", json=self.confirm_body(verified))

        assert response.status_code == 409
        assert sink.records == []


class TestPresenceEndpoints:
    """Tests for GET /v1/presence and /v1/agent."""

    def test_presence_maps_ids(self, client: TestClient, presence_service) -> None:
        presence_service.presence = {"1": 1, "2": 0}

        response = client.get("/v1/presence", params=[("ids", "1"), ("ids", "2")])

        assert response.status_code == 200
        assert response.json() == {"presences": {"1": True, "2": False}}

    def test_presence_requires_ids(self, client: TestClient) -> None:
        assert client.get("/v1/presence").status_code == 422

    def test_agent_online_includes_server_url(self, client: TestClient, presence_service) -> None:
        presence_service.presence = {"7": 2}

        data = client.get("/v1/agent").json()

        assert data["online"] is True
        assert data["profileUrl"] == "https://www.roblox.com/users/7/profile"
        assert data["serverUrl"] == "https://www.roblox.com/share?code=abc"

    def test_agent_offline_omits_server_url(self, client: TestClient, presence_service) -> None:
        presence_service.presence = {"7": 0}

        data = client.get("/v1/agent").json()

        assert data["online"] is False
        assert "serverUrl" not in data

    def test_no_agent_configured_returns_404(self, app: FastAPI) -> None:
        app.dependency_overrides[get_settings] = lambda: Settings(delivery_agent_id="")
        assert TestClient(app).get("/v1/agent").status_code == 404


class TestClientKey:
    """Tests for the rate-limit client key dependency."""

    @staticmethod
    def key_client(trusted_proxy_hops: int = 0) -> TestClient:
        key_app = FastAPI()
        key_app.dependency_overrides[get_settings] = lambda: Settings(trusted_proxy_hops=trusted_proxy_hops)

        @key_app.get("/key")
        def key(client_key: str = Depends(get_client_key)) -> dict:
            return {"key": client_key}

        return TestClient(key_app)

    def test_forwarded_header_ignored_without_trusted_proxy(self) -> None:
        """A client cannot pick its own key by sending X-Forwarded-For."""
        response = self.key_client().get("/key", headers={"X-Forwarded-For": "203.0.113.9"})
        assert response.json() == {"key": "testclient"}

    def test_one_trusted_proxy_uses_rightmost_hop(self) -> None:
        response = self.key_client(1).get("/key", headers={"X-Forwarded-For": "203.0.113.9, 10.0.0.1"})
        assert response.json() == {"key": "10.0.0.1"}

    def test_two_trusted_proxies_use_second_from_right(self) -> None:
        response = self.key_client(2).get(
            "/key", headers={"X-Forwarded-For": "6.6.6.6, 203.0.113.9, 10.0.0.1"}
        )
        assert response.json() == {"key": "203.0.113.9"}

    def test_too_few_hops_falls_back_to_peer(self) -> None:
        response = self.key_client(2).get("/key", headers={"X-Forwarded-For": "203.0.113.9"})
        assert response.json() == {"key": "testclient"}

    def test_falls_back_to_peer_address(self) -> None:
        assert self.key_client(1).get("/key").json() == {"key": "testclient"}
