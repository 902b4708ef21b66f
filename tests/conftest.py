"""Shared pytest fixtures for the test suite.

Fixture overview
----------------
database        : fresh migrated SQLite file per test; settings reset to
                  the documented defaults (strict identity, no ownership
                  checks)
client          : ``TestClient`` around a newly built app, started so the
                  lifespan hook runs
parent_headers  : identity header for parent 7
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from family_schedule_api.app.core import db
from family_schedule_api.app.core.config import settings
from family_schedule_api.app.main import create_app

PARENT_ID = 7
OTHER_PARENT_ID = 8


@pytest.fixture
def database(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "database_url", f"sqlite:///{tmp_path / 'family_schedule.db'}")
    monkeypatch.setattr(settings, "db_pool_size", 5)
    monkeypatch.setattr(settings, "db_pool_timeout", 5.0)
    monkeypatch.setattr(settings, "api_prefix", "")
    monkeypatch.setattr(settings, "identity_header", "X-User-Id")
    monkeypatch.setattr(settings, "identity_strict", True)
    monkeypatch.setattr(settings, "enforce_ownership", False)
    db.dispose_engine()
    db.init_db()
    yield db
    db.dispose_engine()


@pytest.fixture
def client(database):
    with TestClient(create_app()) as test_client:
        yield test_client


@pytest.fixture
def parent_headers() -> dict:
    return {"X-User-Id": str(PARENT_ID)}


@pytest.fixture
def other_parent_headers() -> dict:
    return {"X-User-Id": str(OTHER_PARENT_ID)}


def count_rows(table: str) -> int:
    return db.query(f"SELECT COUNT(*) AS n FROM {table}")[0]["n"]


def register_child(client, headers, full_name="Ana Silva", cpf="111.111.111-11", birth_date="2015-03-02") -> int:
    response = client.post(
        "/children",
        json={"full_name": full_name, "cpf": cpf, "birth_date": birth_date},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["id"]


def add_schedule(client, headers, child_id, title="Consulta", start="2024-01-10T09:00", end="2024-01-10T10:00", type_="medico", **extra) -> int:
    payload = {"child_id": child_id, "title": title, "start_time": start, "end_time": end, "type": type_}
    payload.update(extra)
    response = client.post("/schedules", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["id"]
