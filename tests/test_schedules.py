"""Tests for the schedule endpoints and ``ScheduleService``."""

from __future__ import annotations

import pytest

from family_schedule_api.app.core import db
from family_schedule_api.app.core.config import settings
from tests.conftest import PARENT_ID, add_schedule, count_rows, register_child


class TestCreateSchedule:
    def test_create_and_list(self, client, parent_headers):
        child_id = register_child(client, parent_headers)
        response = client.post(
            "/schedules",
            json={
                "child_id": child_id,
                "title": "Consulta",
                "description": "Pediatra",
                "start_time": "2024-01-10T09:00",
                "end_time": "2024-01-10T10:00",
                "type": "medico",
            },
            headers=parent_headers,
        )
        assert response.status_code == 201
        schedule_id = response.json()["id"]
        assert schedule_id > 0

        [schedule] = client.get(f"/children/{child_id}/schedules", headers=parent_headers).json()
        assert schedule["id"] == schedule_id
        assert schedule["child_id"] == child_id
        assert schedule["created_by_parent_id"] == PARENT_ID
        assert schedule["title"] == "Consulta"
        assert schedule["description"] == "Pediatra"
        assert schedule["type"] == "medico"
        assert schedule["start_time"].startswith("2024-01-10T09:00")
        assert schedule["end_time"].startswith("2024-01-10T10:00")

    def test_description_is_optional(self, client, parent_headers):
        child_id = register_child(client, parent_headers)
        add_schedule(client, parent_headers, child_id)
        [schedule] = client.get(f"/children/{child_id}/schedules", headers=parent_headers).json()
        assert schedule["description"] is None

    def test_missing_fields_are_reported_together(self, client, parent_headers):
        response = client.post("/schedules", json={"description": "only this"}, headers=parent_headers)
        assert response.status_code == 400
        message = response.json()["message"]
        for field in ("child_id", "title", "start_time", "end_time", "type"):
            assert field in message
        assert "description" not in message
        assert count_rows("schedules") == 0

    def test_unknown_child_is_an_internal_failure(self, client, parent_headers):
        response = client.post(
            "/schedules",
            json={
                "child_id": 9999,
                "title": "Consulta",
                "start_time": "2024-01-10T09:00",
                "end_time": "2024-01-10T10:00",
                "type": "medico",
            },
            headers=parent_headers,
        )
        assert response.status_code == 500
        assert response.json() == {"message": "Internal server error."}
        assert count_rows("schedules") == 0

    def test_end_before_start_is_accepted(self, client, parent_headers):
        child_id = register_child(client, parent_headers)
        add_schedule(client, parent_headers, child_id, start="2024-01-10T10:00", end="2024-01-10T09:00")
        assert count_rows("schedules") == 1


class TestListSchedules:
    def test_ordered_by_start_time(self, client, parent_headers):
        child_id = register_child(client, parent_headers)
        add_schedule(client, parent_headers, child_id, title="T3", start="2024-03-01T08:00", end="2024-03-01T09:00")
        add_schedule(client, parent_headers, child_id, title="T1", start="2024-01-01T08:00", end="2024-01-01T09:00")
        add_schedule(client, parent_headers, child_id, title="T2", start="2024-02-01T08:00", end="2024-02-01T09:00")
        response = client.get(f"/children/{child_id}/schedules", headers=parent_headers)
        assert response.status_code == 200
        assert [schedule["title"] for schedule in response.json()] == ["T1", "T2", "T3"]

    def test_ordered_by_instant_across_utc_offsets(self, client, parent_headers):
        child_id = register_child(client, parent_headers)
        add_schedule(
            client, parent_headers, child_id, title="later", start="2024-01-10T08:00:00Z", end="2024-01-10T09:00:00Z"
        )
        # 07:00 UTC
        add_schedule(
            client,
            parent_headers,
            child_id,
            title="earlier",
            start="2024-01-10T09:00:00+02:00",
            end="2024-01-10T10:00:00+02:00",
        )
        schedules = client.get(f"/children/{child_id}/schedules", headers=parent_headers).json()
        assert [schedule["title"] for schedule in schedules] == ["earlier", "later"]
        assert schedules[0]["start_time"].startswith("2024-01-10T07:00")
        assert schedules[0]["end_time"].startswith("2024-01-10T08:00")

    def test_only_the_requested_child(self, client, parent_headers):
        ana = register_child(client, parent_headers)
        bia = register_child(client, parent_headers, full_name="Bia Souza", cpf="222.222.222-22")
        add_schedule(client, parent_headers, ana, title="Ana")
        add_schedule(client, parent_headers, bia, title="Bia")
        titles = [s["title"] for s in client.get(f"/children/{bia}/schedules", headers=parent_headers).json()]
        assert titles == ["Bia"]

    def test_unknown_child_lists_nothing(self, client, parent_headers):
        response = client.get("/children/9999/schedules", headers=parent_headers)
        assert response.status_code == 200
        assert response.json() == []

    def test_child_id_beyond_integer_range_lists_nothing(self, client, parent_headers):
        response = client.get("/children/99999999999999999999/schedules", headers=parent_headers)
        assert response.status_code == 200
        assert response.json() == []

    def test_store_failure_is_internal(self, client, parent_headers):
        db.execute("DROP TABLE schedules")
        response = client.get("/children/1/schedules", headers=parent_headers)
        assert response.status_code == 500
        assert "schedules" not in response.json()["message"]


class TestDeleteSchedule:
    def test_delete(self, client, parent_headers):
        child_id = register_child(client, parent_headers)
        schedule_id = add_schedule(client, parent_headers, child_id)
        response = client.delete(f"/schedules/{schedule_id}", headers=parent_headers)
        assert response.status_code == 200
        assert client.get(f"/children/{child_id}/schedules", headers=parent_headers).json() == []

    def test_missing_schedule_is_not_found(self, client, parent_headers):
        child_id = register_child(client, parent_headers)
        add_schedule(client, parent_headers, child_id)
        response = client.delete("/schedules/9999", headers=parent_headers)
        assert response.status_code == 404
        assert response.json() == {"message": "Schedule not found."}
        assert count_rows("schedules") == 1

    def test_deleting_twice(self, client, parent_headers):
        child_id = register_child(client, parent_headers)
        schedule_id = add_schedule(client, parent_headers, child_id)
        assert client.delete(f"/schedules/{schedule_id}", headers=parent_headers).status_code == 200
        assert client.delete(f"/schedules/{schedule_id}", headers=parent_headers).status_code == 404

    def test_id_beyond_integer_range_is_not_found(self, client, parent_headers):
        response = client.delete("/schedules/99999999999999999999", headers=parent_headers)
        assert response.status_code == 404
        assert response.json() == {"message": "Schedule not found."}


class TestChildDeletionCascade:
    def test_deleting_a_child_removes_its_schedules(self, client, parent_headers):
        child_id = register_child(client, parent_headers)
        add_schedule(client, parent_headers, child_id, title="A")
        add_schedule(client, parent_headers, child_id, title="B", start="2024-01-11T09:00", end="2024-01-11T10:00")
        assert client.delete(f"/children/{child_id}", headers=parent_headers).status_code == 200
        assert client.get(f"/children/{child_id}/schedules", headers=parent_headers).json() == []
        assert client.get("/children", headers=parent_headers).json() == []
        assert count_rows("schedules") == 0
        assert count_rows("parent_children") == 0

    def test_end_to_end_scenario(self, client, parent_headers):
        response = client.post(
            "/children",
            json={"full_name": "Ana Silva", "cpf": "111.111.111-11", "birth_date": "2015-03-02"},
            headers=parent_headers,
        )
        assert response.status_code == 201
        child_id = response.json()["id"]
        assert isinstance(child_id, int)

        response = client.post(
            "/schedules",
            json={
                "child_id": child_id,
                "title": "Consulta",
                "start_time": "2024-01-10T09:00",
                "end_time": "2024-01-10T10:00",
                "type": "medico",
            },
            headers=parent_headers,
        )
        assert response.status_code == 201

        schedules = client.get(f"/children/{child_id}/schedules", headers=parent_headers).json()
        assert [s["title"] for s in schedules] == ["Consulta"]

        assert client.delete(f"/children/{child_id}", headers=parent_headers).status_code == 200

        response = client.get(f"/children/{child_id}/schedules", headers=parent_headers)
        assert response.status_code == 200
        assert response.json() == []


class TestOwnership:
    def test_other_parent_can_use_any_child_by_default(self, client, parent_headers, other_parent_headers):
        child_id = register_child(client, parent_headers)
        schedule_id = add_schedule(client, other_parent_headers, child_id)
        listed = client.get(f"/children/{child_id}/schedules", headers=other_parent_headers).json()
        assert [s["id"] for s in listed] == [schedule_id]
        assert client.delete(f"/schedules/{schedule_id}", headers=other_parent_headers).status_code == 200

    @pytest.fixture
    def enforced(self, database, monkeypatch):
        monkeypatch.setattr(settings, "enforce_ownership", True)

    def test_enforced_create(self, enforced, client, parent_headers, other_parent_headers):
        child_id = register_child(client, parent_headers)
        response = client.post(
            "/schedules",
            json={
                "child_id": child_id,
                "title": "Consulta",
                "start_time": "2024-01-10T09:00",
                "end_time": "2024-01-10T10:00",
                "type": "medico",
            },
            headers=other_parent_headers,
        )
        assert response.status_code == 404
        assert count_rows("schedules") == 0
        add_schedule(client, parent_headers, child_id)
        assert count_rows("schedules") == 1

    def test_enforced_list(self, enforced, client, parent_headers, other_parent_headers):
        child_id = register_child(client, parent_headers)
        add_schedule(client, parent_headers, child_id)
        assert client.get(f"/children/{child_id}/schedules", headers=other_parent_headers).status_code == 404
        assert len(client.get(f"/children/{child_id}/schedules", headers=parent_headers).json()) == 1

    def test_enforced_delete(self, enforced, client, parent_headers, other_parent_headers):
        child_id = register_child(client, parent_headers)
        schedule_id = add_schedule(client, parent_headers, child_id)
        assert client.delete(f"/schedules/{schedule_id}", headers=other_parent_headers).status_code == 404
        assert count_rows("schedules") == 1
        assert client.delete(f"/schedules/{schedule_id}", headers=parent_headers).status_code == 200

    def test_enforced_list_with_id_beyond_integer_range(self, enforced, client, parent_headers):
        response = client.get("/children/99999999999999999999/schedules", headers=parent_headers)
        assert response.status_code == 404
        assert response.json() == {"message": "Child not found."}
