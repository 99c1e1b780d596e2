"""
HTTP API
"""
from datetime import timedelta

import pytest

from cardops.core.exceptions import StorageError
from cardops.core.security import create_access_token
from cardops.services.approval_service import ApprovalService
from cardops.services.request_service import RequestService
from cardops.schemas.approval import ApprovalCardCreate
from cardops.utils.dates import utcnow
from tests.conftest import submission_json


@pytest.fixture
def created(client):
    response = client.post("/api/v1/requests", json=submission_json())
    assert response.status_code == 201
    return response.json()["data"]


class TestHealth:

    def test_health(self, client):
        assert client.get("/health").json()["status"] == "healthy"

    def test_db_health(self, client):
        response = client.get("/health/db")
        assert response.status_code == 200
        assert response.json()["connection_test"] is True


class TestAuth:

    def test_wrong_password(self, client):
        response = client.post("/api/v1/auth/login", json={"email": "admin@cardops.test", "password": "nope"})
        assert response.status_code == 401

    def test_admin_routes_need_token(self, client):
        assert client.get("/api/v1/requests").status_code == 401

    def test_invalid_token(self, client):
        response = client.get("/api/v1/requests", headers={"Authorization": "Bearer garbage"})
        assert response.status_code == 403

    def test_non_admin_token(self, client):
        token = create_access_token({"sub": "collector@example.com", "role": "customer"})
        response = client.get("/api/v1/requests", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 403


class TestSubmission:

    def test_create_request(self, client, created, notifier):
        assert created["status"] == "pending"
        assert created["current_step"] == 1
        assert [c["card_name"] for c in created["cards"]] == ["Charizard", "Pikachu"]
        assert [s["status"] for s in created["steps"]] == ["completed"] + ["pending"] * 5

        assert len(notifier.sent) == 1
        assert notifier.sent[0].recipient == "collector@example.com"
        assert created["id"] in notifier.sent[0].body

    def test_validation_error(self, client, notifier):
        payload = submission_json()
        payload["country"] = None
        payload["plan_type"] = None

        response = client.post("/api/v1/requests", json=payload)
        assert response.status_code == 400
        assert response.json()["ok"] is False
        assert response.json()["error"] == "Validation error"
        assert notifier.sent == []

    def test_storage_error_detail_not_exposed(self, client, monkeypatch):
        def failing_create(db, data):
            raise StorageError("UNIQUE constraint failed: users.email")

        monkeypatch.setattr(RequestService, "create_request", staticmethod(failing_create))

        response = client.post("/api/v1/requests", json=submission_json())
        assert response.status_code == 500
        assert response.json() == {"ok": False, "error": "Internal Server Error"}

    def test_public_progress_hides_admin_fields(self, client, created):
        response = client.get(f"/api/v1/public/requests/{created['id']}/progress")
        assert response.status_code == 200

        data = response.json()["data"]
        assert set(data) == {"id", "status", "current_step", "created_at", "customer_name", "steps"}
        assert set(data["steps"][0]) == {"step_number", "step_name", "status", "notes", "updated_at"}

    def test_public_progress_unknown(self, client):
        response = client.get("/api/v1/public/requests/missing/progress")
        assert response.status_code == 404
        assert response.json()["error"] == "Not found"


class TestAdminConsole:

    def test_list_and_get(self, client, admin_headers, created):
        listing = client.get("/api/v1/requests", headers=admin_headers).json()
        assert listing["meta"]["total"] == 1
        assert listing["data"][0]["id"] == created["id"]

        by_email = client.get("/api/v1/requests?email=collector@example.com", headers=admin_headers).json()
        assert by_email["meta"]["total"] == 1

        detail = client.get(f"/api/v1/requests/{created['id']}", headers=admin_headers).json()["data"]
        assert detail["user"]["email"] == "collector@example.com"

    def test_step_update_with_detail_fields(self, client, admin_headers, created, notifier):
        response = client.put(
            f"/api/v1/requests/{created['id']}/step/3?notify_customer=true",
            json={"status": "completed", "notes": "fee received", "tracking_number": "T123"},
            headers=admin_headers,
        )
        assert response.status_code == 200

        data = response.json()["data"]
        assert data["current_step"] == 3
        assert data["steps"][2]["status"] == "completed"
        assert data["steps"][2]["updated_by"] == "admin@cardops.test"
        assert data["step_details"][0]["data"] == {"tracking_number": "T123"}

        assert notifier.sent[-1].subject == "Progress update: Agency fee payment"

        history = client.get(f"/api/v1/requests/{created['id']}/history", headers=admin_headers).json()["data"]
        assert history[0]["new_status"] == "completed"

        logs = client.get("/api/v1/admin-logs", headers=admin_headers).json()["data"]
        assert logs[0]["action"] == "request.step"
        assert logs[0]["target_id"] == created["id"]

    def test_step_patch_without_notification(self, client, admin_headers, created, notifier):
        sent_before = len(notifier.sent)
        response = client.patch(f"/api/v1/requests/{created['id']}/step/2", json={}, headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["data"]["steps"][1]["status"] == "current"
        assert len(notifier.sent) == sent_before

    def test_invalid_step(self, client, admin_headers, created):
        response = client.put(f"/api/v1/requests/{created['id']}/step/7", json={}, headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid step"

    def test_step_on_unknown_request(self, client, admin_headers):
        response = client.put("/api/v1/requests/missing/step/2", json={}, headers=admin_headers)
        assert response.status_code == 404

    def test_status_and_user_update(self, client, admin_headers, created):
        response = client.patch(
            f"/api/v1/requests/{created['id']}/status",
            json={"status": "in_progress", "admin_notes": "priority"},
            headers=admin_headers,
        )
        assert response.json()["data"]["status"] == "in_progress"

        response = client.patch(
            f"/api/v1/users/{created['user_id']}", json={"phone": "080-1234-5678"}, headers=admin_headers
        )
        assert response.json()["data"]["phone"] == "080-1234-5678"

    def test_messages(self, client, admin_headers, created):
        response = client.post(
            "/api/v1/messages",
            json={"request_id": created["id"], "sender": "collector@example.com", "recipient": "admin", "body": "Hi"},
            headers=admin_headers,
        )
        assert response.status_code == 201
        message_id = response.json()["data"]["id"]

        listing = client.get(f"/api/v1/messages?request_id={created['id']}", headers=admin_headers).json()
        assert [m["body"] for m in listing["data"]] == ["Hi"]

        response = client.patch(f"/api/v1/requests/{created['id']}/messages/read", headers=admin_headers)
        assert response.json()["data"] == {"updated": 1}

        response = client.patch(f"/api/v1/messages/{message_id}/read", headers=admin_headers)
        assert response.json()["data"]["is_read"] is True

        logs = client.get("/api/v1/admin-logs", headers=admin_headers).json()["data"]
        assert logs[0]["action"] == "message.create"
        assert logs[0]["target_id"] == str(message_id)
        assert logs[0]["details"]["request_id"] == created["id"]

    def test_payments_and_statistics(self, client, admin_headers, created):
        response = client.post(
            f"/api/v1/requests/{created['id']}/payments",
            json={"payment_type": "agency_fee", "amount": 5000},
            headers=admin_headers,
        )
        assert response.status_code == 201
        payment_id = response.json()["data"]["id"]

        response = client.patch(f"/api/v1/payments/{payment_id}", json={"status": "paid"}, headers=admin_headers)
        assert response.json()["data"]["payment_date"] is not None

        payments = client.get(f"/api/v1/requests/{created['id']}/payments", headers=admin_headers).json()["data"]
        assert payments[0]["status"] == "paid"

        logs = client.get("/api/v1/admin-logs", headers=admin_headers).json()["data"]
        assert [entry["action"] for entry in logs[:2]] == ["payment.status", "payment.create"]
        assert logs[0]["details"] == {"status": "paid"}

        stats = client.get("/api/v1/statistics", headers=admin_headers).json()["data"]
        assert stats["total_requests"] == 1
        assert stats["requests_by_country"] == {"usa": 1}


class TestApprovals:

    def _create(self, client, admin_headers):
        response = client.post(
            "/api/v1/approvals",
            json={
                "customer_name": "Aki Tanaka",
                "customer_email": "collector@example.com",
                "total_price": 15000,
                "cards": [
                    {"card_name": "Charizard", "grade": "PSA 10", "price": 10000},
                    {"card_name": "Pikachu", "grade": "PSA 9", "price": 3000},
                    {"card_name": "Mew", "grade": "PSA 8", "price": 2000},
                ],
            },
            headers=admin_headers,
        )
        assert response.status_code == 201
        return response.json()["data"]

    def test_full_flow(self, client, admin_headers, notifier):
        approval = self._create(client, admin_headers)
        key = approval["approval_key"]
        assert approval["status"] == "pending"
        assert len(approval["cards"]) == 3
        assert notifier.sent[-1].recipient == "collector@example.com"
        assert key in notifier.sent[-1].body

        public = client.get(f"/api/v1/public/approvals/{key}").json()["data"]
        assert "customer_email" not in public
        assert public["total_price"] == 15000

        response = client.post(
            f"/api/v1/public/approvals/{key}/submit",
            json={"cards": [
                {"card_name": "Charizard", "decision": "approved"},
                {"card_name": "Pikachu", "decision": "rejected"},
            ]},
        )
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "submitted"
        assert notifier.sent[-1].recipient == "ops@cardops.test"
        assert "Approved: 1" in notifier.sent[-1].body

        again = client.post(f"/api/v1/public/approvals/{key}/submit", json={"cards": []})
        assert again.status_code == 409

        admin_view = client.get(f"/api/v1/approvals/{key}", headers=admin_headers).json()["data"]
        assert [c["customer_decision"] for c in admin_view["cards"]] == ["approved", "rejected", None]

    def test_expired_link(self, client, admin_headers, database):
        with database.session_scope() as db:
            approval = ApprovalService.create_approval(
                db,
                "Aki",
                "collector@example.com",
                [ApprovalCardCreate(card_name="Mew", price=100)],
                expiration_hours=1,
                now=utcnow() - timedelta(hours=3),
            )
            key = approval.approval_key

        assert client.get(f"/api/v1/public/approvals/{key}").status_code == 410
        response = client.post(f"/api/v1/public/approvals/{key}/submit", json={"cards": []})
        assert response.status_code == 410
        assert response.json()["error"] == "Expired"

    def test_unknown_key(self, client):
        assert client.get("/api/v1/public/approvals/nope").status_code == 404

    def test_list(self, client, admin_headers):
        self._create(client, admin_headers)
        listing = client.get("/api/v1/approvals?status=pending", headers=admin_headers).json()
        assert len(listing["data"]) == 1
