import json

import pytest
from fastapi.testclient import TestClient

from regdesk.api.deps import get_notifier, get_sessions
from regdesk.db.session import get_db
from regdesk.main import app
from regdesk.services.notifier import TemplateKind
from regdesk.services.record_store import USERS, RecordStore

FORM = {
    "fullName": "Ada Obi",
    "email": "a@b.com",
    "phone": "08030000000",
    "community": "Bori",
    "lgaOrigin": "Khana",
    "ageRange": "25-34",
    "occupation": "Teacher",
    "reason": "To represent my community",
    "attendanceMode": "In person",
}


@pytest.fixture
def client(session_factory, notifier):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin(session_factory):
    db = session_factory()
    RecordStore(db).append(USERS, {"username": "admin", "password": "s3cret", "status": "active"})
    db.close()


def test_root_and_health(client):
    assert client.get("/").json()["status"] == "operational"
    assert client.get("/api/health").json()["status"] == "healthy"


def test_submit_json_then_duplicate(client, notifier):
    first = client.post("/api/submit", json=FORM)
    assert first.status_code == 200
    assert first.json()["success"] is True
    assert "timestamp" in first.json()

    again = client.post("/api/submit", json={**FORM, "email": "A@B.com "})
    assert again.status_code == 200
    assert again.json()["success"] is False
    assert again.json()["error"] == "DuplicateEmail"


def test_submit_form_encoded(client):
    response = client.post("/api/submit", data={**FORM, "email": "form@b.com"})
    assert response.json()["success"] is True


def test_submit_text_plain_json_body(client):
    response = client.post(
        "/api/submit",
        content=json.dumps({**FORM, "email": "plain@b.com"}),
        headers={"Content-Type": "text/plain"},
    )
    assert response.json()["success"] is True


def test_submit_missing_fields_reports_failure(client):
    response = client.post("/api/submit", json={"email": "a@b.com"})
    assert response.status_code == 200
    assert response.json()["success"] is False
    assert response.json()["error"] == "ValidationError"


def test_records_and_stats(client):
    client.post("/api/submit", json=FORM)

    pending = client.get("/api/records", params={"type": "pending"}).json()
    assert pending["success"] is True
    assert pending["data"][0]["email"] == "a@b.com"

    group = client.get("/api/records", params={"type": "group", "group": "Khana"}).json()
    assert group["data"][0]["approval_status"] == ""

    stats = client.get("/api/records", params={"type": "stats"}).json()
    assert stats["stats"]["Khana"] == {"pending": 1, "approved": 0, "total": 1}


def test_approve_flow(client, notifier):
    timestamp = client.post("/api/submit", json=FORM).json()["timestamp"]

    body = {"lga": "Khana", "email": "a@b.com", "timestamp": timestamp, "issuedCode": "4321"}
    approved = client.post("/api/approve", json=body).json()
    assert approved["success"] is True
    assert approved["code"] == "4321"
    assert notifier.sent[-1][1] is TemplateKind.ATTENDANCE_CODE

    again = client.post("/api/approve", json=body).json()
    assert again["success"] is False
    assert again["error"] == "AlreadyApproved"

    verified = client.get("/api/records", params={"type": "verified"}).json()
    assert [r["code"] for r in verified["data"]] == ["4321"]
    assert client.get("/api/records", params={"type": "pending"}).json()["data"] == []


def test_approve_with_unparseable_timestamp(client):
    response = client.post("/api/approve", json={"lga": "Khana", "email": "a@b.com", "timestamp": "yesterday"})
    assert response.status_code == 200
    assert response.json()["success"] is False
    assert response.json()["error"] == "ValidationError"


def test_auth_actions(client, admin):
    login = client.post("/api/auth", json={"action": "login", "username": "Admin", "password": "s3cret"}).json()
    assert login["success"] is True
    token = login["token"]

    valid = client.post("/api/auth", json={"action": "validateToken", "token": token}).json()
    assert valid["valid"] is True
    assert valid["username"] == "admin"

    info = client.post("/api/auth", data={"action": "getUserInfo", "token": token}).json()
    assert info == {"success": True, "message": "User found", "username": "admin", "status": "active"}

    assert client.post("/api/auth", json={"action": "logout", "token": token}).json()["success"] is True

    invalid = client.post("/api/auth", json={"action": "validateToken", "token": token}).json()
    assert invalid["valid"] is False
    assert invalid["error"] == "InvalidToken"


def test_auth_unknown_action(client):
    response = client.post("/api/auth", json={"action": "dance"}).json()
    assert response["success"] is False


def test_internal_errors_are_not_leaked(client):
    class Broken:
        def login(self, username, password):
            raise RuntimeError("database password is hunter2")

    app.dependency_overrides[get_sessions] = lambda: Broken()
    response = client.post("/api/auth", json={"action": "login", "username": "x", "password": "y"})

    assert response.status_code == 200
    assert response.json() == {"success": False, "message": "Internal server error"}
