"""Fixtures: a throwaway data directory, services and a Flask client."""

from __future__ import annotations

import hashlib

import pytest

from app import create_app
from services import SEED_PROJECTS, PROJECTS, CommentService, PostService, ProjectService
from store import Store

ADMIN_PASSWORD = "hunter2"


@pytest.fixture
def store(tmp_path):
    return Store(tmp_path / "data", defaults={PROJECTS: SEED_PROJECTS})


@pytest.fixture
def comments(store):
    return CommentService(store)


@pytest.fixture
def posts(store, comments):
    return PostService(store, comments)


@pytest.fixture
def projects(store):
    return ProjectService(store)


@pytest.fixture
def app(tmp_path):
    app = create_app(
        {
            "TESTING": True,
            "DATA_DIR": tmp_path / "site",
            "ADMIN_PASSWORD_HASH": hashlib.sha256(ADMIN_PASSWORD.encode()).hexdigest(),
            "SESSION_SWEEP_ENABLED": False,
        }
    )
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_client(client):
    response = client.post("/admin/login", data={"password": ADMIN_PASSWORD})
    assert response.status_code == 302
    return client


@pytest.fixture
def content(app):
    return app.extensions["content"]
