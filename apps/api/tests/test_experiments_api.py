"""
Integration tests for Experiments API endpoints

Lifecycle (create, complete, abandon), ownership, progress and chart data.
"""
import pytest
from datetime import date, timedelta
from uuid import uuid4
from sqlalchemy.exc import IntegrityError

from models import Experiment, Profile
from services import experiment_service


def _create(client, headers, payload, **overrides):
    body = dict(payload, **overrides)
    return client.post("/v1/experiments", json=body, headers=headers)


class TestCreateExperiment:
    """Test POST /v1/experiments endpoint"""

    def test_create_success(self, client, auth_headers, experiment_payload):
        response = _create(client, auth_headers, experiment_payload)
        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "active"
        assert data["start_date"] == date.today().isoformat()
        assert data["end_date"] == (date.today() + timedelta(days=14)).isoformat()
        assert data["conclusion"] is None
        assert [m["id"] for m in data["metrics"]] == ["state", "clarity", "body_ease"]
        assert data["metrics"][0]["scale"] == [1, 7]
        assert data["metrics"][2]["scale"] == [1, 5]

    def test_explicit_start_date(self, client, auth_headers, experiment_payload):
        response = _create(client, auth_headers, experiment_payload, start_date="2026-01-10", duration_days=7)
        assert response.status_code == 201
        assert response.json()["end_date"] == "2026-01-17"

    def test_requires_auth(self, client, experiment_payload):
        response = client.post("/v1/experiments", json=experiment_payload)
        assert response.status_code == 401

    def test_rejects_garbage_token(self, client, experiment_payload):
        response = client.post(
            "/v1/experiments", json=experiment_payload, headers={"Authorization": "Bearer not-a-jwt"}
        )
        assert response.status_code == 401

    @pytest.mark.parametrize("duration", [0, -1])
    def test_rejects_non_positive_duration(self, client, auth_headers, experiment_payload, duration):
        response = _create(client, auth_headers, experiment_payload, duration_days=duration)
        assert response.status_code == 422

    def test_rejects_no_metrics(self, client, auth_headers, experiment_payload):
        response = _create(client, auth_headers, experiment_payload, metrics=[])
        assert response.status_code == 422

    def test_rejects_duplicate_metric_ids(self, client, auth_headers, experiment_payload):
        metrics = [{"name": "State"}, {"name": "state"}]
        response = _create(client, auth_headers, experiment_payload, metrics=metrics)
        assert response.status_code == 422

    def test_rejects_inverted_scale(self, client, auth_headers, experiment_payload):
        response = _create(client, auth_headers, experiment_payload, metrics=[{"name": "State", "scale": [7, 1]}])
        assert response.status_code == 422

    def test_rejects_blank_title(self, client, auth_headers, experiment_payload):
        response = _create(client, auth_headers, experiment_payload, title="   ")
        assert response.status_code == 422

    def test_only_one_active(self, client, auth_headers, experiment_payload):
        assert _create(client, auth_headers, experiment_payload).status_code == 201
        response = _create(client, auth_headers, experiment_payload)
        assert response.status_code == 409
        assert response.json()["error_code"] == "CONFLICT"

    def test_concurrent_create_is_a_conflict(self, client, auth_headers, experiment_payload, monkeypatch):
        assert _create(client, auth_headers, experiment_payload).status_code == 201

        # A second request that read "no active experiment" before the first one committed
        monkeypatch.setattr(experiment_service, "get_active_experiment", lambda db, user_id: None)
        response = _create(client, auth_headers, experiment_payload)
        assert response.status_code == 409
        assert response.json()["error_code"] == "CONFLICT"

        monkeypatch.undo()
        assert len(client.get("/v1/experiments", headers=auth_headers).json()) == 1


def _experiment_row(user_id, status):
    return Experiment(
        user_id=user_id,
        title="Row",
        hypothesis="h",
        protocol="p",
        metrics=[],
        duration_days=7,
        start_date=date(2026, 1, 1),
        status=status,
    )


def test_database_allows_one_active_experiment_per_user(db_session, user_id):
    db_session.add(Profile(id=user_id))
    db_session.flush()
    db_session.add_all([
        _experiment_row(user_id, "completed"),
        _experiment_row(user_id, "abandoned"),
        _experiment_row(user_id, "active"),
    ])
    db_session.commit()

    db_session.add(_experiment_row(user_id, "active"))
    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()


class TestReadExperiments:

    def test_active_is_null_without_one(self, client, auth_headers):
        response = client.get("/v1/experiments/active", headers=auth_headers)
        assert response.status_code == 200
        assert response.json() is None

    def test_list_newest_first(self, client, auth_headers, experiment_payload):
        first = _create(client, auth_headers, experiment_payload, title="First").json()
        client.post(f"/v1/experiments/{first['id']}/abandon", headers=auth_headers)
        _create(client, auth_headers, experiment_payload, title="Second")

        titles = [e["title"] for e in client.get("/v1/experiments", headers=auth_headers).json()]
        assert titles == ["Second", "First"]
        assert client.get("/v1/experiments/active", headers=auth_headers).json()["title"] == "Second"

    def test_other_users_experiment_is_not_found(self, client, auth_headers, other_auth_headers, experiment_payload):
        created = _create(client, auth_headers, experiment_payload).json()
        response = client.get(f"/v1/experiments/{created['id']}", headers=other_auth_headers)
        assert response.status_code == 404

    def test_unknown_id(self, client, auth_headers):
        response = client.get(f"/v1/experiments/{uuid4()}", headers=auth_headers)
        assert response.status_code == 404
        assert response.json()["error_code"] == "NOT_FOUND"


class TestCloseExperiment:

    def test_complete_with_conclusion(self, client, auth_headers, experiment_payload):
        created = _create(client, auth_headers, experiment_payload).json()
        response = client.post(
            f"/v1/experiments/{created['id']}/complete",
            json={"conclusion": "  Mornings helped a little  "},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["status"] == "completed"
        assert response.json()["conclusion"] == "Mornings helped a little"

    def test_abandon(self, client, auth_headers, experiment_payload):
        created = _create(client, auth_headers, experiment_payload).json()
        response = client.post(f"/v1/experiments/{created['id']}/abandon", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "abandoned"
        assert response.json()["conclusion"] is None

    def test_closed_is_terminal(self, client, auth_headers, experiment_payload):
        created = _create(client, auth_headers, experiment_payload).json()
        client.post(f"/v1/experiments/{created['id']}/abandon", headers=auth_headers)

        assert client.post(f"/v1/experiments/{created['id']}/abandon", headers=auth_headers).status_code == 409
        response = client.post(
            f"/v1/experiments/{created['id']}/complete", json={"conclusion": "x"}, headers=auth_headers
        )
        assert response.status_code == 409

    def test_complete_requires_conclusion(self, client, auth_headers, experiment_payload):
        created = _create(client, auth_headers, experiment_payload).json()
        response = client.post(
            f"/v1/experiments/{created['id']}/complete", json={"conclusion": ""}, headers=auth_headers
        )
        assert response.status_code == 422


class TestProgress:

    def test_progress_mid_window(self, client, auth_headers, experiment_payload):
        start = date.today() - timedelta(days=2)
        created = _create(client, auth_headers, experiment_payload, start_date=start.isoformat()).json()
        response = client.get(f"/v1/experiments/{created['id']}/progress", headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["current_day"] == 3
        assert data["days_completed"] == 2
        assert data["days_remaining"] == 12

    def test_progress_after_end_is_clamped(self, client, auth_headers, experiment_payload):
        start = date.today() - timedelta(days=30)
        created = _create(
            client, auth_headers, experiment_payload, start_date=start.isoformat(), duration_days=7
        ).json()
        data = client.get(f"/v1/experiments/{created['id']}/progress", headers=auth_headers).json()
        assert data["current_day"] == 7
        assert data["days_remaining"] == 0
        assert data["progress"] == 1.0


class TestChart:

    @pytest.fixture
    def experiment_with_logs(self, client, auth_headers, experiment_payload):
        created = _create(client, auth_headers, experiment_payload, start_date="2026-01-10").json()
        entries = [
            ("2026-01-11", "after_sit", {"state": 6}),
            ("2026-01-10", "before_sit", {"state": 2, "clarity": 3}),
            ("2026-01-10", "after_sit", {"state": 4}),
            ("2026-01-10", "after_sit", {"state": 6, "clarity": 5}),
        ]
        for day, entry_type, ratings in entries:
            response = client.post(
                "/v1/logs",
                json={"entry_type": entry_type, "entry_date": day, "ratings": ratings},
                headers=auth_headers,
            )
            assert response.status_code == 201
        return created

    def test_aggregated(self, client, auth_headers, experiment_with_logs):
        response = client.get(
            f"/v1/experiments/{experiment_with_logs['id']}/chart",
            params={"types": "after_sit"},
            headers=auth_headers,
        )
        assert response.status_code == 200
        data = response.json()
        assert data["points"] == [
            {"date": "2026-01-10", "state": 5, "clarity": 5},
            {"date": "2026-01-11", "state": 6},
        ]
        assert data["count"] == 2

    def test_raw(self, client, auth_headers, experiment_with_logs):
        data = client.get(
            f"/v1/experiments/{experiment_with_logs['id']}/chart",
            params={"aggregate": "false"},
            headers=auth_headers,
        ).json()
        assert data["count"] == 4
        dates = [p["date"] for p in data["points"]]
        assert dates == sorted(dates)

    def test_series(self, client, auth_headers, experiment_with_logs):
        data = client.get(
            f"/v1/experiments/{experiment_with_logs['id']}/series/clarity", headers=auth_headers
        ).json()
        assert sorted(p["value"] for p in data["series"]) == [3, 5]
        assert {p["date"] for p in data["series"]} == {"2026-01-10"}
        assert data["count"] == 2

    def test_series_unknown_metric(self, client, auth_headers, experiment_with_logs):
        response = client.get(
            f"/v1/experiments/{experiment_with_logs['id']}/series/focus", headers=auth_headers
        )
        assert response.status_code == 404

    def test_experiment_logs_most_recent_first(self, client, auth_headers, experiment_with_logs):
        data = client.get(f"/v1/experiments/{experiment_with_logs['id']}/logs", headers=auth_headers).json()
        assert len(data) == 4
        assert data[0]["entry_date"] == "2026-01-11"

        since = client.get(
            f"/v1/experiments/{experiment_with_logs['id']}/logs",
            params={"since": "2026-01-11"},
            headers=auth_headers,
        ).json()
        assert len(since) == 1
