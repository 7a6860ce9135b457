import os
import tempfile
import uuid
from urllib.parse import parse_qs, urlparse

# Settings are read at import time, so the environment goes first
os.environ.setdefault("SESSION_SECRET", "test-session-secret-0123456789abcdefghijklmnop")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="equipment-uploads-")
os.environ["PUBLIC_BASE_URL"] = "http://testserver"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.db import Base, get_db
from app.main import app
from app.models.user import User
from app.services import mailer
from app.services.identity import Identity


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def db(engine):
    TestingSession = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    with TestingSession() as session:
        yield session


@pytest.fixture()
def client(engine):
    TestingSession = sessionmaker(bind=engine, autoflush=False, autocommit=False)

    def override_get_db():
        with TestingSession() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def identity(db):
    user = User(id=str(uuid.uuid4()), email="crew@example.com")
    db.add(user)
    db.commit()
    return Identity(id=user.id, email=user.email)


@pytest.fixture()
def outbox(monkeypatch):
    sent = []
    monkeypatch.setattr(mailer, "send_magic_link", lambda email, link: sent.append((email, link)))
    return sent


def code_from_link(link: str) -> str:
    return parse_qs(urlparse(link).query)["code"][0]


def api_login(client, outbox, email="crew@example.com") -> dict:
    r = client.post("/api/auth/magic-link", json={"email": email})
    assert r.status_code == 200
    code = code_from_link(outbox[-1][1])
    r = client.post("/api/auth/exchange", json={"code": code})
    assert r.status_code == 200
    return {"Authorization": f"Bearer {r.json()['access_token']}"}


def web_login(client, outbox, email="crew@example.com"):
    r = client.post("/login", data={"email": email})
    assert r.status_code == 200
    code = code_from_link(outbox[-1][1])
    r = client.get("/auth/callback", params={"code": code}, follow_redirects=False)
    assert r.status_code == 303
    return r
