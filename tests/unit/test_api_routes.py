"""Route tests for the HTTP adapter using FastAPI's TestClient."""

import time

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from fortress.core.config import get_settings
from fortress.main import API_V1_PREFIX, create_app
from fortress.settlement.executor import SettlementStatus
from tests.conftest import (
    AUDITOR_WALLET,
    OTHER_STANDARD_WALLET,
    RECIPIENT_WALLET,
    REVIEWER_WALLET,
    STANDARD_WALLET,
    FixedSettlementExecutor,
)

TRANSACTIONS = f"{API_V1_PREFIX}/transactions"
AUDIT = f"{API_V1_PREFIX}/audit"
AUTH_ME = f"{API_V1_PREFIX}/auth/me"


def auth_header(sub: str, wallet: str, role: str) -> dict[str, str]:
    token = jwt.encode(
        {"sub": sub, "wallet": wallet, "role": role, "exp": int(time.time()) + 3600},
        get_settings().security.token_secret.get_secret_value(),
        algorithm="HS256",
    )
    return {"Authorization": f"Bearer {token}"}


def principal_url(wallet: str) -> str:
    return f"{API_V1_PREFIX}/auth/principals/{wallet}"


STANDARD = auth_header("principal-standard", STANDARD_WALLET, "standard")
OTHER_STANDARD = auth_header("principal-standard-2", OTHER_STANDARD_WALLET, "standard")
REVIEWER = auth_header("principal-reviewer", REVIEWER_WALLET, "reviewer")
AUDITOR = auth_header("principal-auditor", AUDITOR_WALLET, "auditor")


@pytest.fixture
def app():
    return create_app()


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        app.state.transaction_service.settlement_executor = FixedSettlementExecutor()
        yield test_client


def submit(client: TestClient, amount: str = "10", headers: dict | None = None):
    return client.post(
        TRANSACTIONS,
        json={"amount": amount, "recipient": RECIPIENT_WALLET, "description": "invoice 42"},
        headers=headers or STANDARD,
    )


class TestHealthRoutes:
    def test_health(self, client):
        response = client.get(f"{API_V1_PREFIX}/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_ready_reports_audit_entries(self, client):
        response = client.get(f"{API_V1_PREFIX}/health/ready")
        assert response.status_code == 200
        assert response.json() == {"status": "ready", "audit_entries": 0}

    def test_live(self, client):
        assert client.get(f"{API_V1_PREFIX}/health/live").json() == {"status": "alive"}


class TestAuthentication:
    def test_missing_token(self, client):
        response = client.get(TRANSACTIONS)
        assert response.status_code == 401
        assert response.json()["detail"] == "Missing authorization header"

    def test_invalid_token(self, client):
        response = client.get(TRANSACTIONS, headers={"Authorization": "Bearer garbage"})
        assert response.status_code == 401

    def test_expired_token(self, client):
        token = jwt.encode(
            {"sub": "p", "wallet": STANDARD_WALLET, "role": "standard", "exp": int(time.time()) - 5},
            get_settings().security.token_secret.get_secret_value(),
            algorithm="HS256",
        )
        response = client.get(TRANSACTIONS, headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401


class TestCreateTransaction:
    def test_create(self, client):
        response = submit(client)

        assert response.status_code == 201
        body = response.json()
        assert body["transaction"]["status"] == "pending"
        assert body["transaction"]["description"] == "invoice 42"
        assert body["fraud_check"] == {"passed": True, "risk_level": "low", "flags": []}

    def test_body_validation(self, client):
        response = client.post(
            TRANSACTIONS,
            json={"amount": "0", "recipient": "nope", "description": ""},
            headers=STANDARD,
        )
        assert response.status_code == 422

    def test_self_transfer(self, client):
        response = client.post(
            TRANSACTIONS,
            json={"amount": "1", "recipient": STANDARD_WALLET, "description": "x"},
            headers=STANDARD,
        )
        assert response.status_code == 400

    def test_auditor_forbidden(self, client):
        response = submit(client, headers=AUDITOR)
        assert response.status_code == 403
        assert response.json()["errors"] == {"required_permission": "transaction:create"}

    def test_rapid_submissions_blocked(self, client):
        for _ in range(3):
            assert submit(client, "0.1").status_code == 201

        response = submit(client, "0.1")

        assert response.status_code == 422
        body = response.json()
        assert body["detail"] == "Transaction blocked due to security concerns"
        assert body["errors"]["risk_level"] == "high"


class TestReadTransactions:
    def test_list_scoped_to_owner(self, client):
        submit(client)
        submit(client, headers=OTHER_STANDARD)

        own = client.get(TRANSACTIONS, headers=STANDARD).json()
        everything = client.get(TRANSACTIONS, headers=AUDITOR).json()

        assert own["total"] == 1
        assert everything["total"] == 2

    def test_get_own_and_others(self, client):
        transaction_id = submit(client).json()["transaction"]["id"]

        assert client.get(f"{TRANSACTIONS}/{transaction_id}", headers=STANDARD).status_code == 200
        assert client.get(f"{TRANSACTIONS}/{transaction_id}", headers=OTHER_STANDARD).status_code == 403
        assert client.get(f"{TRANSACTIONS}/{transaction_id}", headers=AUDITOR).status_code == 200

    def test_get_missing(self, client):
        assert client.get(f"{TRANSACTIONS}/missing", headers=REVIEWER).status_code == 404

    def test_pending_queue(self, client):
        transaction_id = submit(client).json()["transaction"]["id"]

        response = client.get(f"{TRANSACTIONS}/pending", headers=REVIEWER)

        assert response.status_code == 200
        assert [t["id"] for t in response.json()["transactions"]] == [transaction_id]
        assert client.get(f"{TRANSACTIONS}/pending", headers=STANDARD).status_code == 403


class TestDecisions:
    def test_approve(self, client):
        transaction_id = submit(client).json()["transaction"]["id"]

        response = client.patch(
            f"{TRANSACTIONS}/{transaction_id}", json={"action": "approve"}, headers=REVIEWER
        )

        assert response.status_code == 200
        assert response.json()["status"] == "completed"
        assert response.json()["settlement_reference"].startswith("0x")

    def test_second_decision_conflicts(self, client):
        transaction_id = submit(client).json()["transaction"]["id"]
        client.patch(f"{TRANSACTIONS}/{transaction_id}", json={"action": "reject"}, headers=REVIEWER)

        response = client.patch(
            f"{TRANSACTIONS}/{transaction_id}", json={"action": "approve"}, headers=REVIEWER
        )

        assert response.status_code == 409

    def test_settlement_failure(self, app, client):
        app.state.transaction_service.settlement_executor = FixedSettlementExecutor(
            SettlementStatus.FAILED
        )
        transaction_id = submit(client).json()["transaction"]["id"]

        response = client.patch(
            f"{TRANSACTIONS}/{transaction_id}", json={"action": "approve"}, headers=REVIEWER
        )

        assert response.status_code == 502
        current = client.get(f"{TRANSACTIONS}/{transaction_id}", headers=REVIEWER).json()
        assert current["status"] == "rejected"

    def test_standard_cannot_decide(self, client):
        transaction_id = submit(client).json()["transaction"]["id"]

        response = client.patch(
            f"{TRANSACTIONS}/{transaction_id}", json={"action": "approve"}, headers=STANDARD
        )

        assert response.status_code == 403

    def test_unknown_action(self, client):
        transaction_id = submit(client).json()["transaction"]["id"]

        response = client.patch(
            f"{TRANSACTIONS}/{transaction_id}", json={"action": "escalate"}, headers=REVIEWER
        )

        assert response.status_code == 422


class TestAuditRoutes:
    def test_audit_listing(self, client):
        transaction_id = submit(client).json()["transaction"]["id"]
        client.patch(f"{TRANSACTIONS}/{transaction_id}", json={"action": "reject"}, headers=REVIEWER)

        response = client.get(AUDIT, headers=AUDITOR)

        assert response.status_code == 200
        body = response.json()
        assert body["integrity_valid"] is True
        assert [e["action"] for e in body["logs"]] == ["TRANSACTION_REJECTED", "TRANSACTION_CREATED"]
        assert body["pagination"] == {"limit": 100, "offset": 0, "total": 2}

    def test_audit_pagination_clamped(self, client):
        response = client.get(AUDIT, params={"limit": 10_000, "offset": -3}, headers=REVIEWER)

        assert response.status_code == 200
        assert response.json()["pagination"]["limit"] == 500
        assert response.json()["pagination"]["offset"] == 0

    def test_standard_cannot_read_audit(self, client):
        assert client.get(AUDIT, headers=STANDARD).status_code == 403

    def test_verify_detects_tampering(self, app, client):
        submit(client)
        submit(client)
        entries = app.state.audit_ledger.repository._entries
        entries[0] = entries[0].model_copy(update={"metadata": {"amount": "1000000"}})

        response = client.get(f"{AUDIT}/verify", headers=AUDITOR)

        assert response.status_code == 200
        assert response.json() == {
            "integrity_valid": False,
            "entries": 2,
            "broken_at_sequence": 0,
        }
        assert client.get(AUDIT, headers=AUDITOR).json()["integrity_valid"] is False


class TestPrincipalRoutes:
    def test_me_registers_caller_once(self, app, client):
        first = client.get(AUTH_ME, headers=STANDARD)
        second = client.get(AUTH_ME, headers=STANDARD)

        assert first.status_code == 200
        body = first.json()
        assert body["id"] == "principal-standard"
        assert body["wallet_address"] == STANDARD_WALLET
        assert body["role"] == "standard"
        assert second.json() == body
        entries = app.state.audit_ledger.repository._entries
        assert [e.action.value for e in entries] == ["AUTH_SUCCESS"]

    def test_me_for_auditor(self, client):
        response = client.get(AUTH_ME, headers=AUDITOR)

        assert response.status_code == 200
        assert response.json()["role"] == "auditor"

    def test_me_requires_token(self, client):
        assert client.get(AUTH_ME).status_code == 401

    def test_lookup_principal(self, client):
        assert client.get(principal_url(STANDARD_WALLET), headers=AUDITOR).status_code == 404

        client.get(AUTH_ME, headers=STANDARD)
        response = client.get(principal_url(STANDARD_WALLET), headers=AUDITOR)

        assert response.status_code == 200
        assert response.json()["id"] == "principal-standard"

    def test_lookup_requires_profile_read_all(self, client):
        client.get(AUTH_ME, headers=OTHER_STANDARD)
        response = client.get(principal_url(OTHER_STANDARD_WALLET), headers=STANDARD)

        assert response.status_code == 403
        assert response.json()["errors"] == {"required_permission": "profile:read:all"}

    def test_lookup_malformed_wallet(self, client):
        assert client.get(principal_url("0x123"), headers=REVIEWER).status_code == 400

    def test_assign_role(self, app, client):
        client.get(AUTH_ME, headers=STANDARD)

        response = client.put(
            f"{principal_url(STANDARD_WALLET)}/role", json={"role": "auditor"}, headers=REVIEWER
        )

        assert response.status_code == 200
        assert response.json()["role"] == "auditor"
        entry = app.state.audit_ledger.repository._entries[-1]
        assert entry.action.value == "ROLE_ASSIGNED"
        assert entry.actor_id == "principal-reviewer"
        assert entry.metadata == {"previous_role": "standard", "role": "auditor"}

    def test_assign_role_requires_user_manage(self, client):
        client.get(AUTH_ME, headers=OTHER_STANDARD)

        for headers in (STANDARD, AUDITOR):
            response = client.put(
                f"{principal_url(OTHER_STANDARD_WALLET)}/role",
                json={"role": "reviewer"},
                headers=headers,
            )
            assert response.status_code == 403

    def test_assign_role_unknown_principal(self, client):
        response = client.put(
            f"{principal_url(STANDARD_WALLET)}/role", json={"role": "auditor"}, headers=REVIEWER
        )
        assert response.status_code == 404

    def test_assign_role_unknown_role(self, client):
        client.get(AUTH_ME, headers=STANDARD)

        response = client.put(
            f"{principal_url(STANDARD_WALLET)}/role", json={"role": "admin"}, headers=REVIEWER
        )
        assert response.status_code == 422
