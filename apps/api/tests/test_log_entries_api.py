"""
Integration tests for Log Entries API endpoints
"""
import pytest
from datetime import date


@pytest.fixture
def active_experiment(client, auth_headers, experiment_payload):
    response = client.post("/v1/experiments", json=experiment_payload, headers=auth_headers)
    assert response.status_code == 201
    return response.json()


def _log(client, headers, **body):
    body.setdefault("entry_type", "before_sit")
    return client.post("/v1/logs", json=body, headers=headers)


class TestCreateLogEntry:
    """Test POST /v1/logs endpoint"""

    def test_defaults_to_active_experiment_and_today(self, client, auth_headers, active_experiment):
        response = _log(client, auth_headers, ratings={"state": 5, "body_ease": 2})
        assert response.status_code == 201
        data = response.json()
        assert data["experiment_id"] == active_experiment["id"]
        assert data["entry_date"] == date.today().isoformat()
        assert data["ratings"] == {"state": 5, "body_ease": 2}

    def test_blank_notes_and_zero_duration_are_dropped(self, client, auth_headers, active_experiment):
        data = _log(
            client, auth_headers, entry_type="after_sit", notes="   ", sit_duration_minutes=0, technique_notes=""
        ).json()
        assert data["notes"] is None
        assert data["technique_notes"] is None
        assert data["sit_duration_minutes"] is None

    def test_keeps_duration_and_notes(self, client, auth_headers, active_experiment):
        data = _log(client, auth_headers, entry_type="after_sit", notes=" Calm ", sit_duration_minutes=25).json()
        assert data["notes"] == "Calm"
        assert data["sit_duration_minutes"] == 25

    def test_no_active_experiment(self, client, auth_headers):
        response = _log(client, auth_headers, ratings={"state": 4})
        assert response.status_code == 404

    def test_unknown_metric(self, client, auth_headers, active_experiment):
        response = _log(client, auth_headers, ratings={"focus": 4})
        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR_RATINGS"
        assert response.json()["field"] == "ratings"

    @pytest.mark.parametrize("ratings", [{"state": 0}, {"state": 8}, {"body_ease": 6}])
    def test_rating_outside_scale(self, client, auth_headers, active_experiment, ratings):
        assert _log(client, auth_headers, ratings=ratings).status_code == 422

    def test_invalid_entry_type(self, client, auth_headers, active_experiment):
        assert _log(client, auth_headers, entry_type="lunch").status_code == 422

    def test_closed_experiment(self, client, auth_headers, active_experiment):
        client.post(f"/v1/experiments/{active_experiment['id']}/abandon", headers=auth_headers)
        response = _log(client, auth_headers, experiment_id=active_experiment["id"], ratings={"state": 3})
        assert response.status_code == 409

    def test_other_users_experiment(self, client, auth_headers, other_auth_headers, active_experiment):
        response = _log(client, other_auth_headers, experiment_id=active_experiment["id"])
        assert response.status_code == 404


class TestReadLogEntries:

    def test_today_and_next_type(self, client, auth_headers, active_experiment):
        assert client.get("/v1/logs/next-type", headers=auth_headers).json() == {
            "entry_type": "before_sit",
            "logged_today": [],
        }

        _log(client, auth_headers, entry_type="before_sit")
        data = client.get("/v1/logs/next-type", headers=auth_headers).json()
        assert data["entry_type"] == "after_sit"

        _log(client, auth_headers, entry_type="after_sit")
        assert client.get("/v1/logs/next-type", headers=auth_headers).json()["entry_type"] == "eod"

        _log(client, auth_headers, entry_type="eod")
        data = client.get("/v1/logs/next-type", headers=auth_headers).json()
        assert data["entry_type"] == "after_sit"
        assert sorted(data["logged_today"]) == ["after_sit", "before_sit", "eod"]

        today = client.get("/v1/logs/today", headers=auth_headers).json()
        assert [e["entry_type"] for e in today] == ["before_sit", "after_sit", "eod"]

    def test_today_without_experiment(self, client, auth_headers):
        assert client.get("/v1/logs/today", headers=auth_headers).json() == []

    def test_recent_across_experiments(self, client, auth_headers, active_experiment, experiment_payload):
        _log(client, auth_headers, entry_date="2026-01-10")
        client.post(f"/v1/experiments/{active_experiment['id']}/abandon", headers=auth_headers)
        client.post("/v1/experiments", json=experiment_payload, headers=auth_headers)
        _log(client, auth_headers, entry_date="2026-02-01")

        recent = client.get("/v1/logs/recent", headers=auth_headers).json()
        assert [e["entry_date"] for e in recent] == ["2026-02-01", "2026-01-10"]
        assert len(client.get("/v1/logs/recent", params={"limit": 1}, headers=auth_headers).json()) == 1
