"""Tests for the FastAPI API endpoints."""

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from nagar_rakshak.api.app import create_app
from nagar_rakshak.config.settings import Settings
from nagar_rakshak.models.complaint import Complaint
from nagar_rakshak.models.notice import Toast
from nagar_rakshak.notification.gateway import NotificationGateway
from nagar_rakshak.notifier.toasts import Notifier
from nagar_rakshak.record_store.store import RecordStore, RecordStoreError

BASE_TIME = datetime(2024, 3, 1, 9, 0, 0)


class AuditFailingStore(RecordStore):
    def __init__(self):
        super().__init__(db_path=":memory:")
        self.fail_audit = True

    def insert_status_update(self, record):
        if self.fail_audit:
            raise RecordStoreError("insert rejected")
        return super().insert_status_update(record)


class InterleavedNotifier(Notifier):
    """Notifier whose latest toast always belongs to some other request."""

    @property
    def latest(self):
        return Toast(
            title="Error fetching complaints",
            description="raised by another request",
            created_at=datetime.utcnow(),
        )


def _seed(store: RecordStore, count: int) -> None:
    for n in range(1, count + 1):
        store.insert_complaint(Complaint(
            id=f"c{n}",
            complaint_code=f"NR-{n:04d}",
            issue_type="Road Repair" if n % 2 == 0 else "Water Supply",
            status="Resolved" if n % 4 == 0 else "Registered",
            gps_latitude=18.5 if n == 1 else None,
            gps_longitude=73.8 if n == 1 else None,
            created_at=BASE_TIME + timedelta(minutes=n),
        ))


def _client(store=None, notifier=None, **settings_overrides) -> TestClient:
    store = store or RecordStore(db_path=":memory:")
    settings = Settings(_env_file=None, **settings_overrides)
    app = create_app(
        store=store, settings=settings, gateway=NotificationGateway(), notifier=notifier
    )
    return TestClient(app)


@pytest.fixture
def store():
    s = RecordStore(db_path=":memory:")
    _seed(s, 8)
    return s


@pytest.fixture
def client(store):
    return _client(store)


ASSIGNMENT = {
    "status": "Assigned",
    "worker_name": "Ravi Kumar",
    "worker_contact": "9876543210",
    "note": "Urgent",
}


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"


class TestComplaintEndpoints:
    def test_first_page(self, client):
        data = client.get("/complaints").json()
        assert [c["id"] for c in data["complaints"]] == ["c8", "c7", "c6", "c5", "c4"]
        assert data["total_count"] == 8
        assert data["has_next"] is True
        assert data["has_previous"] is False

    def test_second_page(self, client):
        data = client.get("/complaints", params={"page": 2}).json()
        assert [c["id"] for c in data["complaints"]] == ["c3", "c2", "c1"]
        assert data["has_next"] is False
        assert data["has_previous"] is True

    def test_filters(self, client):
        data = client.get("/complaints", params={"status": "Resolved"}).json()
        assert data["total_count"] == 2
        data = client.get(
            "/complaints", params={"status": "all", "issue_type": "Road Repair"}
        ).json()
        assert data["total_count"] == 4

    def test_invalid_page(self, client):
        assert client.get("/complaints", params={"page": 0}).status_code == 422

    def test_stats(self, client):
        data = client.get("/complaints/stats").json()
        assert data == {"pending": 6, "in_progress": 0, "resolved": 2, "total": 8}

    def test_get_complaint(self, client):
        assert client.get("/complaints/c1").json()["complaint_code"] == "NR-0001"
        assert client.get("/complaints/missing").status_code == 404

    def test_ingest(self, client):
        response = client.post("/complaints/ingest", json={
            "complaint_code": "NR-0100",
            "issue_type": "Drainage",
            "city": "Nashik",
        })
        assert response.status_code == 200
        assert client.get("/complaints").json()["complaints"][0]["complaint_code"] == "NR-0100"

    def test_ingest_duplicate_code(self, client):
        response = client.post("/complaints/ingest", json={
            "complaint_code": "NR-0001", "issue_type": "Drainage",
        })
        assert response.status_code == 409


class TestAssignmentEndpoints:
    def test_assign_writes_update_and_audit(self, client):
        response = client.post("/complaints/c1/assign", json=ASSIGNMENT)
        assert response.status_code == 200
        assert response.json()["assigned_contact"] == "9876543210"

        complaint = client.get("/complaints/c1").json()
        assert complaint["status"] == "Assigned"
        assert complaint["assigned_to"] == "Ravi Kumar"

        trail = client.get("/complaints/c1/updates").json()
        assert len(trail) == 1
        assert trail[0]["note"] == "Urgent"

    def test_missing_fields(self, client):
        response = client.post(
            "/complaints/c1/assign", json={**ASSIGNMENT, "worker_contact": ""}
        )
        assert response.status_code == 422
        assert "worker_contact" in response.json()["detail"]
        assert client.get("/complaints/c1/updates").json() == []

    def test_unknown_status_rejected(self, client):
        response = client.post("/complaints/c1/assign", json={**ASSIGNMENT, "status": "Bogus"})
        assert response.status_code == 422
        assert "Bogus" in response.json()["detail"]
        assert client.get("/complaints/c1").json()["status"] == "Registered"

    def test_rejection_detail_not_taken_from_shared_notifier(self, store):
        client = _client(store, notifier=InterleavedNotifier())

        response = client.post(
            "/complaints/c1/assign", json={**ASSIGNMENT, "worker_name": ""}
        )

        assert response.status_code == 422
        assert response.json()["detail"] == "Missing fields: worker_name"

    def test_resolved_complaint_conflict(self, client):
        assert client.post("/complaints/c4/assign", json=ASSIGNMENT).status_code == 409

    def test_unknown_complaint(self, client):
        assert client.post("/complaints/nope/assign", json=ASSIGNMENT).status_code == 404

    def test_partial_failure_reported(self):
        store = AuditFailingStore()
        _seed(store, 1)
        client = _client(store)

        response = client.post("/complaints/c1/assign", json=ASSIGNMENT)

        assert response.status_code == 502
        detail = response.json()["detail"]
        assert detail["complaint_updated"] is True
        assert detail["audited"] is False
        assert detail["queued_for_retry"] is False

    def test_retry_disabled(self, client):
        assert client.post("/assignments/retry-audits").status_code == 404

    def test_retry_enabled(self):
        store = AuditFailingStore()
        _seed(store, 1)
        client = _client(store, AUDIT_RETRY_ENABLED=True)

        detail = client.post("/complaints/c1/assign", json=ASSIGNMENT).json()["detail"]
        assert detail["queued_for_retry"] is True

        store.fail_audit = False
        response = client.post("/assignments/retry-audits")
        assert response.json() == {"written": 1, "pending": 0}
        assert len(client.get("/complaints/c1/updates").json()) == 1


class TestMapEndpoint:
    def test_markers(self, client):
        data = client.get("/map/markers").json()
        assert [m["id"] for m in data["markers"]] == ["c1"]
        assert data["zoom"] == 5


class TestNotificationEndpoints:
    def test_preflight(self, client):
        response = client.options("/notifications/send-credentials")
        assert response.status_code == 200
        assert response.text == "ok"
        assert response.headers["access-control-allow-origin"] == "*"

    def test_send_credentials_fallback(self, client):
        response = client.post("/notifications/send-credentials", json={
            "phone": "+911234567890", "username": "ward7", "password": "p@ss",
        })
        assert response.status_code == 200
        assert response.json()["success"] is True

    def test_send_credentials_bad_phone(self, client):
        response = client.post("/notifications/send-credentials", json={
            "phone": "+91123", "username": "ward7", "password": "p@ss",
        })
        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_send_credentials_bad_json(self, client):
        response = client.post(
            "/notifications/send-credentials",
            content=b"{oops",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400
