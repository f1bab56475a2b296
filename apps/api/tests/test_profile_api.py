"""
Integration tests for profile, onboarding and dashboard endpoints
"""
from datetime import date
from fastapi.testclient import TestClient

from core import auth
from core.database import SessionLocal
from core.security import create_access_token
from models import Profile
from services import experiment_service


class TestProfile:

    def test_provisioned_on_first_request(self, client, auth_headers, user_id):
        response = client.get("/v1/profile", headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["id"] == str(user_id)
        assert data["is_first_time"] is True
        assert data["onboarded_at"] is None
        assert data["streak"] == 0

    def test_onboarding_is_idempotent(self, client, auth_headers):
        first = client.post("/v1/profile/onboarded", headers=auth_headers).json()
        assert first["is_first_time"] is False
        second = client.post("/v1/profile/onboarded", headers=auth_headers).json()
        assert second["onboarded_at"][:19] == first["onboarded_at"][:19]

    def test_token_without_subject(self, client):
        token = create_access_token({"email": "a@example.com"})
        response = client.get("/v1/profile", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    def test_subject_must_be_uuid(self, client):
        token = create_access_token({"sub": "user-123"})
        response = client.get("/v1/profile", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    def test_wrong_audience(self, client, user_id):
        token = create_access_token({"sub": str(user_id), "aud": "someone-else"})
        response = client.get("/v1/profile", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401


class TestDashboard:

    def test_empty_dashboard(self, client, auth_headers):
        response = client.get("/v1/dashboard", headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["active_experiment"] is None
        assert data["experiment_progress"] is None
        assert data["experiments"] == []
        assert data["recent_logs"] == []
        assert data["today_logs"] == []

    def test_snapshot(self, client, auth_headers, experiment_payload):
        created = client.post("/v1/experiments", json=experiment_payload, headers=auth_headers).json()
        client.post("/v1/logs", json={"entry_type": "before_sit", "ratings": {"state": 3}}, headers=auth_headers)
        client.post(
            "/v1/logs",
            json={"entry_type": "eod", "entry_date": "2026-01-01", "ratings": {"state": 4}},
            headers=auth_headers,
        )

        data = client.get("/v1/dashboard", headers=auth_headers).json()
        assert data["active_experiment"]["id"] == created["id"]
        assert data["experiment_progress"]["current_day"] == 1
        assert len(data["experiments"]) == 1
        assert len(data["recent_logs"]) == 2
        assert [e["entry_date"] for e in data["today_logs"]] == [date.today().isoformat()]

    def test_failed_load_fails_the_whole_refresh(self, client, auth_headers, experiment_payload, monkeypatch):
        from main import app

        client.post("/v1/experiments", json=experiment_payload, headers=auth_headers)

        def lost_connection(*args, **kwargs):
            raise RuntimeError("server closed the connection unexpectedly")

        monkeypatch.setattr(experiment_service, "list_recent_logs", lost_connection)
        with TestClient(app, raise_server_exceptions=False) as unguarded:
            response = unguarded.get("/v1/dashboard", headers=auth_headers)

        assert response.status_code == 500
        assert response.json() == {"detail": "Internal server error"}


def test_concurrent_first_requests_share_one_profile(db_session, user_id, monkeypatch):
    # The other request inserted and committed the row after this one looked
    db_session.add(Profile(id=user_id, vow="May all beings be at ease"))
    db_session.commit()

    find_profile = auth._find_profile
    lookups = []

    def missed_first_lookup(db, uid):
        lookups.append(uid)
        return None if len(lookups) == 1 else find_profile(db, uid)

    monkeypatch.setattr(auth, "_find_profile", missed_first_lookup)
    db = SessionLocal()
    try:
        profile = auth.provision_profile(db, user_id)
        assert profile.vow == "May all beings be at ease"
        assert db.query(Profile).count() == 1
    finally:
        db.close()


def test_health_and_ping(client):
    assert client.get("/ping").json() == {"pong": True}
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["chat"] == "unconfigured"
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert "X-Process-Time" in response.headers
