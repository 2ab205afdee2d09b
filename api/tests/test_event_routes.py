"""HTTP-level tests for /api/events and /api/users against in-memory repositories."""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import asyncpg
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from core.db import Database
from events.dependencies import get_event_repository
from events.repository import EventRepository
from tests.conftest import STATIC_TOKEN
from tests.fakes import FakeEventRepository, FakeUserRepository

BEARER = {"Authorization": f"Bearer {STATIC_TOKEN}"}


def _utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def _ids(payload: list[dict]) -> list[int]:
    return [item["id"] for item in payload]


class TestAccess:
    def test_requires_session(self, client: TestClient) -> None:
        resp = client.get("/api/events/all")
        assert resp.status_code == 401

    def test_static_token_is_accepted(self, client: TestClient, event_repo: FakeEventRepository) -> None:
        event_repo.add(type="DutyTech1", start_date=_utc(2024, 1, 1))
        resp = client.get("/api/events/all", headers=BEARER)
        assert resp.status_code == 200
        assert len(resp.json()) == 1

    def test_unlisted_bearer_is_rejected(self, client: TestClient) -> None:
        resp = client.get("/api/events/all", headers={"Authorization": "Bearer guessed"})
        assert resp.status_code == 401


class TestCreate:
    def test_defaults_and_owner_from_session(self, session_client: TestClient, viewer: dict) -> None:
        resp = session_client.post(
            "/api/events/",
            json={"type": "DutyTech1", "start_date": "2024-01-01T09:00:00Z"},
        )

        assert resp.status_code == 201
        body = resp.json()
        assert body["type"] == "DutyTech1"
        assert body["title"] == ""
        assert body["end_date"] is None
        assert body["all_day"] is True
        assert body["recurring_type"] == ""
        assert body["recurring_interval"] == 0
        assert body["user_id"] == viewer["id"]
        assert "user" not in body

        fetched = session_client.get(f"/api/events/{body['id']}")
        assert fetched.status_code == 200
        assert fetched.json() == body

    def test_session_owner_wins_over_body_user_id(self, session_client: TestClient, viewer: dict) -> None:
        resp = session_client.post(
            "/api/events/",
            json={"type": "DutyTech1", "start_date": "2024-01-01T09:00:00Z", "user_id": 77},
        )
        assert resp.json()["user_id"] == viewer["id"]

    def test_known_recurrence_sets_interval(self, session_client: TestClient) -> None:
        resp = session_client.post(
            "/api/events/",
            json={"type": "Standup", "start_date": "2024-01-01T09:00:00Z", "recurring_type": "weekly"},
        )
        assert resp.json()["recurring_interval"] == 604_800

    def test_unknown_recurrence_keeps_explicit_interval(self, session_client: TestClient) -> None:
        resp = session_client.post(
            "/api/events/",
            json={
                "type": "Standup",
                "start_date": "2024-01-01T09:00:00Z",
                "recurring_type": "custom",
                "recurring_interval": 3600,
            },
        )
        assert resp.json()["recurring_interval"] == 3600

    def test_static_token_caller_must_name_owner(self, client: TestClient) -> None:
        resp = client.post(
            "/api/events/",
            headers=BEARER,
            json={"type": "DutyTech1", "start_date": "2024-01-01T09:00:00Z"},
        )
        assert resp.status_code == 400

    def test_static_token_caller_with_owner(self, client: TestClient) -> None:
        resp = client.post(
            "/api/events/",
            headers=BEARER,
            json={"type": "DutyTech1", "start_date": "2024-01-01T09:00:00Z", "user_id": 5},
        )
        assert resp.status_code == 201
        assert resp.json()["user_id"] == 5

    def test_missing_type_is_bad_request(self, session_client: TestClient) -> None:
        resp = session_client.post("/api/events/", json={"start_date": "2024-01-01T09:00:00Z"})
        assert resp.status_code == 400

    def test_unparseable_start_date_is_bad_request(self, session_client: TestClient) -> None:
        resp = session_client.post("/api/events/", json={"type": "DutyTech1", "start_date": "soon"})
        assert resp.status_code == 400


class TestRead:
    def test_null_events_are_hidden(self, session_client: TestClient, event_repo: FakeEventRepository) -> None:
        kept = event_repo.add(type="DutyTech1", start_date=_utc(2024, 1, 1))
        hidden = event_repo.add(type="", start_date=_utc(2024, 1, 2))

        listed = session_client.get("/api/events/all").json()
        assert _ids(listed) == [kept["id"]]

        assert session_client.get(f"/api/events/{hidden['id']}").status_code == 404
        assert session_client.get("/api/events/", params={"id": hidden["id"]}).status_code == 404

    def test_missing_event_is_not_found(self, session_client: TestClient) -> None:
        assert session_client.get("/api/events/999").status_code == 404

    def test_empty_result_is_an_empty_list(self, session_client: TestClient) -> None:
        resp = session_client.get("/api/events/", params={"type": "Nothing"})
        assert resp.status_code == 200
        assert resp.json() == []

    def test_no_filters_returns_everything(self, session_client: TestClient, event_repo: FakeEventRepository) -> None:
        event_repo.add(type="A", start_date=_utc(2024, 1, 1))
        event_repo.add(type="B", start_date=_utc(2024, 1, 2))
        resp = session_client.get("/api/events/")
        assert resp.status_code == 200
        assert len(resp.json()) == 2

    def test_id_filter_returns_single_object(
        self, session_client: TestClient, event_repo: FakeEventRepository
    ) -> None:
        row = event_repo.add(type="DutyTech1", start_date=_utc(2024, 1, 1))
        resp = session_client.get("/api/events/", params={"id": row["id"], "type": "ignored"})
        assert resp.status_code == 200
        assert resp.json()["id"] == row["id"]

    def test_user_type_and_range(self, session_client: TestClient, event_repo: FakeEventRepository) -> None:
        contained = event_repo.add(
            type="DutyTech1", user_id=5, start_date=_utc(2024, 1, 2), end_date=_utc(2024, 1, 3), all_day=False
        )
        all_day_overhang = event_repo.add(
            type="DutyTech1", user_id=5, start_date=_utc(2024, 1, 10), end_date=_utc(2024, 2, 10), all_day=True
        )
        event_repo.add(
            type="DutyTech1", user_id=5, start_date=_utc(2024, 1, 10), end_date=_utc(2024, 2, 10), all_day=False
        )
        event_repo.add(type="DutyTech2", user_id=5, start_date=_utc(2024, 1, 5), end_date=_utc(2024, 1, 6))
        event_repo.add(type="DutyTech1", user_id=6, start_date=_utc(2024, 1, 5), end_date=_utc(2024, 1, 6))

        resp = session_client.get(
            "/api/events/",
            params={"user_id": 5, "type": "DutyTech1", "start_date": "2024-01-01", "end_date": "2024-01-31"},
        )

        assert resp.status_code == 200
        assert _ids(resp.json()) == [contained["id"], all_day_overhang["id"]]

    def test_exact_date_matches_whole_day(self, session_client: TestClient, event_repo: FakeEventRepository) -> None:
        morning = event_repo.add(type="A", start_date=_utc(2024, 1, 2, 8, 0))
        evening = event_repo.add(type="B", start_date=_utc(2024, 1, 2, 23, 30))
        event_repo.add(type="C", start_date=_utc(2024, 1, 3))

        resp = session_client.get("/api/events/", params={"date": "2024-01-02"})

        assert _ids(resp.json()) == [morning["id"], evening["id"]]

    def test_invalid_date_is_bad_request(self, session_client: TestClient) -> None:
        resp = session_client.get("/api/events/", params={"date": "02/01/2024"})
        assert resp.status_code == 400
        assert resp.json()["detail"].startswith("date")

    def test_half_range_is_bad_request(self, session_client: TestClient) -> None:
        resp = session_client.get("/api/events/", params={"start_date": "2024-01-01"})
        assert resp.status_code == 400

    def test_expand_user_nests_owner(
        self, session_client: TestClient, event_repo: FakeEventRepository, viewer: dict
    ) -> None:
        row = event_repo.add(type="DutyTech1", start_date=_utc(2024, 1, 1), user_id=viewer["id"])

        listed = session_client.get("/api/events/all", params={"expand": "user"}).json()
        single = session_client.get(f"/api/events/{row['id']}", params={"expand": "user"}).json()

        expected = {"id": viewer["id"], "username": "einstein", "role": "Viewer"}
        assert listed[0]["user"] == expected
        assert single["user"] == expected


class TestUpdate:
    def test_partial_update_only_touches_given_fields(
        self, session_client: TestClient, event_repo: FakeEventRepository
    ) -> None:
        row = event_repo.add(type="DutyTech1", title="Before", start_date=_utc(2024, 1, 1))

        resp = session_client.patch(f"/api/events/{row['id']}", json={"title": "After"})

        assert resp.status_code == 200
        assert resp.json()["title"] == "After"
        assert resp.json()["type"] == "DutyTech1"

    def test_recurring_type_recomputes_interval(
        self, session_client: TestClient, event_repo: FakeEventRepository
    ) -> None:
        row = event_repo.add(type="DutyTech1", start_date=_utc(2024, 1, 1))
        resp = session_client.patch(f"/api/events/{row['id']}", json={"recurring_type": "monthly"})
        assert resp.json()["recurring_interval"] == 2_628_000

    def test_null_type_is_rejected(self, session_client: TestClient, event_repo: FakeEventRepository) -> None:
        row = event_repo.add(type="DutyTech1", start_date=_utc(2024, 1, 1))
        resp = session_client.patch(f"/api/events/{row['id']}", json={"type": None})
        assert resp.status_code == 400
        assert event_repo.rows[row["id"]]["type"] == "DutyTech1"

    def test_end_date_can_be_cleared(self, session_client: TestClient, event_repo: FakeEventRepository) -> None:
        row = event_repo.add(type="DutyTech1", start_date=_utc(2024, 1, 1), end_date=_utc(2024, 1, 2))
        resp = session_client.patch(f"/api/events/{row['id']}", json={"end_date": None})
        assert resp.status_code == 200
        assert resp.json()["end_date"] is None

    def test_missing_event(self, session_client: TestClient) -> None:
        assert session_client.patch("/api/events/999", json={"title": "x"}).status_code == 404


class TestDelete:
    def test_delete_then_missing(self, session_client: TestClient, event_repo: FakeEventRepository) -> None:
        row = event_repo.add(type="DutyTech1", start_date=_utc(2024, 1, 1))

        first = session_client.delete(f"/api/events/{row['id']}")
        second = session_client.delete(f"/api/events/{row['id']}")

        assert first.status_code == 200
        assert first.json() == {"data": True}
        assert second.status_code == 404
        assert event_repo.rows == {}


class TestUsers:
    def test_list_users(self, session_client: TestClient, user_repo: FakeUserRepository, viewer: dict) -> None:
        user_repo.add("newton", "Admin")
        resp = session_client.get("/api/users/all")
        assert resp.status_code == 200
        assert [user["username"] for user in resp.json()] == ["einstein", "newton"]

    def test_get_user(self, session_client: TestClient, viewer: dict) -> None:
        resp = session_client.get(f"/api/users/{viewer['id']}")
        assert resp.json() == {"user": {"id": viewer["id"], "username": "einstein", "role": "Viewer"}}

    def test_unknown_user(self, session_client: TestClient) -> None:
        assert session_client.get("/api/users/999").status_code == 404

    def test_users_require_auth(self, client: TestClient) -> None:
        assert client.get("/api/users/all").status_code == 401


class TestUnknownOwner:
    @pytest.fixture
    def sql_events(self, app: FastAPI) -> AsyncMock:
        db = AsyncMock(spec=Database)
        db.fetch_one.side_effect = asyncpg.ForeignKeyViolationError("events_user_id_fkey")
        app.dependency_overrides[get_event_repository] = lambda: EventRepository(db)
        return db

    def test_create_for_missing_user(self, client: TestClient, sql_events: AsyncMock) -> None:
        resp = client.post(
            "/api/events/",
            headers=BEARER,
            json={"type": "DutyTech1", "start_date": "2024-01-01T09:00:00Z", "user_id": 999},
        )
        assert resp.status_code == 400
        assert resp.json() == {"detail": "user_id does not exist."}

    def test_reassign_to_missing_user(self, client: TestClient, sql_events: AsyncMock) -> None:
        resp = client.patch("/api/events/1", headers=BEARER, json={"user_id": 999})
        assert resp.status_code == 400
        assert resp.json() == {"detail": "user_id does not exist."}
