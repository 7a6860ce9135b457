from datetime import timedelta

from conftest import api_login, code_from_link, web_login

from app.core.clock import as_utc, utcnow
from app.core.config import settings
from app.models.magic_link import MagicLinkRequest
from app.models.session import UserSession
from app.models.user import User


def test_magic_link_login_and_me(client, outbox, db):
    r = client.post("/api/auth/magic-link", json={"email": "  Foreman@Example.com "})
    assert r.status_code == 200
    assert r.json() == {"ok": True}

    email, link = outbox[-1]
    assert email == "foreman@example.com"
    assert link.startswith("http://testserver/auth/callback?code=")

    req = db.query(MagicLinkRequest).one()
    assert req.email == "foreman@example.com"
    # only a hash of the secret is stored
    assert code_from_link(link).split(".", 1)[1] not in req.code_hash

    r = client.post("/api/auth/exchange", json={"code": code_from_link(link)})
    assert r.status_code == 200
    data = r.json()
    assert data["token_type"] == "bearer"

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {data['access_token']}"})
    assert me.status_code == 200
    assert me.json()["email"] == "foreman@example.com"
    assert db.query(User).count() == 1


def test_second_login_reuses_user(client, outbox, db):
    api_login(client, outbox, "crew@example.com")
    api_login(client, outbox, "CREW@example.com")
    assert db.query(User).count() == 1


def test_code_is_single_use(client, outbox):
    client.post("/api/auth/magic-link", json={"email": "crew@example.com"})
    code = code_from_link(outbox[-1][1])

    assert client.post("/api/auth/exchange", json={"code": code}).status_code == 200
    r = client.post("/api/auth/exchange", json={"code": code})
    assert r.status_code == 401
    assert r.json() == {"detail": "This login link has already been used"}


def test_expired_code_is_rejected(client, outbox, db):
    client.post("/api/auth/magic-link", json={"email": "crew@example.com"})
    code = code_from_link(outbox[-1][1])

    req = db.query(MagicLinkRequest).one()
    req.expires_at = utcnow() - timedelta(minutes=1)
    db.commit()

    r = client.post("/api/auth/exchange", json={"code": code})
    assert r.status_code == 401
    assert r.json() == {"detail": "This login link has expired"}


def test_tampered_code_is_rejected(client, outbox):
    client.post("/api/auth/magic-link", json={"email": "crew@example.com"})
    request_id = code_from_link(outbox[-1][1]).split(".", 1)[0]

    for bad in (f"{request_id}.not-the-secret", "garbage", ""):
        r = client.post("/api/auth/exchange", json={"code": bad})
        assert r.status_code == 401
        assert r.json() == {"detail": "Invalid login link"}


def test_invalid_email_is_422(client, outbox):
    r = client.post("/api/auth/magic-link", json={"email": "not-an-email"})
    assert r.status_code == 422
    assert outbox == []


def test_me_requires_session(client):
    assert client.get("/api/auth/me").status_code == 401
    r = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})
    assert r.status_code == 401
    assert r.json() == {"detail": "Not authenticated"}


def test_web_callback_sets_cookie_and_redirects(client, outbox):
    r = web_login(client, outbox)
    assert r.headers["location"] == "/equipment"
    assert settings.SESSION_COOKIE_NAME in r.headers["set-cookie"]

    page = client.get("/equipment")
    assert page.status_code == 200
    assert "Equipment" in page.text
    assert "crew@example.com" in page.text


def test_web_callback_error_goes_back_to_login(client):
    r = client.get("/auth/callback", params={"error": "access_denied"}, follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/login?error=access_denied"

    r = client.get("/auth/callback", params={"code": "nope"}, follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"].startswith("/login?error=")

    page = client.get(r.headers["location"])
    assert "Invalid login link" in page.text


def test_login_page_confirms_email_sent(client, outbox):
    r = client.post("/login", data={"email": "crew@example.com"})
    assert r.status_code == 200
    assert "Check your email" in r.text
    assert outbox[-1][0] == "crew@example.com"


def test_logout_clears_session(client, outbox):
    web_login(client, outbox)
    assert client.get("/equipment", follow_redirects=False).status_code == 200

    r = client.post("/auth/logout", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/"

    r = client.get("/equipment", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/login"


def test_logout_revokes_session_token(client, outbox, db):
    web_login(client, outbox)
    token = client.cookies[settings.SESSION_COOKIE_NAME]
    bearer = {"Authorization": f"Bearer {token}"}
    assert client.get("/api/auth/me", headers=bearer).status_code == 200

    client.post("/auth/logout", follow_redirects=False)

    r = client.get("/api/auth/me", headers=bearer)
    assert r.status_code == 401
    assert db.query(UserSession).one().revoked_at is not None


def test_api_logout_only_ends_that_session(client, outbox):
    phone = api_login(client, outbox)
    laptop = api_login(client, outbox)

    r = client.post("/api/auth/logout", headers=phone)
    assert r.status_code == 200
    assert r.json() == {"ok": True}

    assert client.get("/api/auth/me", headers=phone).status_code == 401
    assert client.get("/api/auth/me", headers=laptop).status_code == 200
    assert client.post("/api/auth/logout", headers=phone).status_code == 401


def test_web_login_rejects_malformed_email(client, outbox):
    for bad in ("crew@", "crew@nodot", "not an email"):
        r = client.post("/login", data={"email": bad})
        assert r.status_code == 400
        assert "Enter a valid email address" in r.text
    assert outbox == []

    r = client.post("/login", data={"email": "  Crew@Example.com "})
    assert r.status_code == 200
    assert outbox[-1][0] == "crew@example.com"


def test_stale_magic_links_are_pruned(client, outbox, db):
    api_login(client, outbox, "crew@example.com")

    client.post("/api/auth/magic-link", json={"email": "crew@example.com"})
    expired = db.query(MagicLinkRequest).filter(MagicLinkRequest.consumed_at.is_(None)).one()
    expired.expires_at = utcnow() - timedelta(minutes=1)
    db.commit()

    client.post("/api/auth/magic-link", json={"email": "other@example.com"})
    client.post("/api/auth/magic-link", json={"email": "crew@example.com"})

    db.expire_all()
    rows = db.query(MagicLinkRequest).filter(MagicLinkRequest.email == "crew@example.com").all()
    assert len(rows) == 1
    assert rows[0].consumed_at is None
    assert as_utc(rows[0].expires_at) > utcnow()
    assert db.query(MagicLinkRequest).filter(MagicLinkRequest.email == "other@example.com").count() == 1
