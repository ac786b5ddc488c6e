from __future__ import annotations

from datetime import datetime, timezone

import pytest

from src.attendance_hr.attendance_hr.container import build_container
from src.attendance_hr.attendance_hr.main import create_app

from tests.fakes import InMemoryDataClient, seed_organization


@pytest.fixture
def fixed_now():
    # Wednesday
    return datetime(2026, 3, 4, 9, 10, tzinfo=timezone.utc)


@pytest.fixture
def memory_data():
    return InMemoryDataClient()


@pytest.fixture
def session_store():
    return {}


@pytest.fixture
def container(memory_data, session_store):
    return build_container(data=memory_data, session_store=session_store)


@pytest.fixture
def org(container):
    return seed_organization(container)


@pytest.fixture
def app(memory_data):
    app = create_app("config.testing", data_client=memory_data)
    return app


@pytest.fixture
def app_container(app):
    return app.extensions["attendance_hr"]


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def login(client):
    def _login(email: str, password: str):
        resp = client.post("/api/auth/login", json={"email": email, "password": password})
        assert resp.status_code == 200, resp.get_json()
        return resp

    return _login
