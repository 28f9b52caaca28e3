from __future__ import annotations

import asyncio
import json

import httpx

from persistence.seed import DEMO_PASSWORD


def _login(client, email: str = "analyst@demo.local", password: str = DEMO_PASSWORD, ip: str = "10.1.1.1"):
    return client.post(
        "/auth/login",
        json={"email": email, "password": password},
        headers={"X-Forwarded-For": ip},
    )


def test_login_creates_session_and_persists(client, sandbox_env):
    r = _login(client)
    assert r.status_code == 200, r.text
    body = r.json()["data"]
    assert body["user"]["email"] == "analyst@demo.local"
    assert body["user"]["lastLoginAt"]
    assert body["accessToken"] and body["refreshToken"]

    on_disk = json.loads((sandbox_env / "db.json").read_text(encoding="utf-8"))
    assert on_disk["sessions"][0]["refreshToken"] == body["refreshToken"]
    assert on_disk["sessions"][0]["ip"] == "10.1.1.1"
    assert on_disk["auditLogs"][0]["action"] == "auth.login"

    me = client.get("/me", headers={"Authorization": f"Bearer {body['accessToken']}"})
    assert me.status_code == 200
    assert me.json()["data"]["id"] == "u_analyst"


def test_email_lookup_is_case_insensitive(client):
    assert _login(client, email="Analyst@Demo.Local").status_code == 200


def test_repeated_failures_are_rate_limited_before_credential_check(client):
    for _ in range(5):
        r = _login(client, password="wrong")
        assert r.status_code == 401
        assert r.json()["error"]["code"] == "INVALID_CREDENTIALS"

    # even the right password is refused now
    r = _login(client)
    assert r.status_code == 429
    assert r.json()["error"]["code"] == "RATE_LIMITED"
    assert "retry-after" in {k.lower() for k in r.headers}

    # a different client address is counted separately
    assert _login(client, ip="10.9.9.9").status_code == 200


def test_unknown_account_counts_as_failure(client):
    for _ in range(5):
        assert _login(client, email="ghost@demo.local").status_code == 401
    assert _login(client, email="ghost@demo.local").status_code == 429


def test_success_resets_failure_count(client):
    for _ in range(4):
        assert _login(client, password="wrong").status_code == 401
    assert _login(client).status_code == 200
    for _ in range(4):
        assert _login(client, password="wrong").status_code == 401
    assert _login(client).status_code == 200


def test_refresh_and_logout(client):
    tokens = _login(client).json()["data"]

    r = client.post("/auth/refresh", json={"refreshToken": tokens["refreshToken"]})
    assert r.status_code == 200
    assert r.json()["data"]["accessToken"]

    r = client.post("/auth/logout", json={"refreshToken": tokens["refreshToken"]})
    assert r.status_code == 200
    assert r.json()["data"] == {"success": True}

    r = client.post("/auth/refresh", json={"refreshToken": tokens["refreshToken"]})
    assert r.status_code == 401
    assert r.json()["error"]["code"] == "INVALID_REFRESH"


def test_invalid_input_and_missing_token(client):
    r = client.post("/auth/login", json={"email": "not-an-email", "password": ""})
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "VALIDATION_ERROR"

    assert client.get("/me").status_code == 401
    assert client.get("/me", headers={"Authorization": "Bearer nope"}).status_code == 401


def test_demo_accounts_lists_seeded_users(client):
    r = client.get("/auth/demo-accounts")
    assert r.status_code == 200
    emails = {a["email"] for a in r.json()["data"]["accounts"]}
    assert "superadmin@demo.local" in emails
    assert r.json()["data"]["password"] == DEMO_PASSWORD


def test_concurrent_wrong_passwords_are_capped(sandbox_env):
    import app as app_module

    app = app_module.create_app()

    async def _attempt(http: httpx.AsyncClient) -> int:
        r = await http.post(
            "/auth/login",
            json={"email": "analyst@demo.local", "password": "wrong"},
            headers={"X-Forwarded-For": "10.2.2.2"},
        )
        return r.status_code

    async def _run() -> list[int]:
        async with app_module.lifespan(app):
            transport = httpx.ASGITransport(app=app)
            async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http:
                return await asyncio.gather(*(_attempt(http) for _ in range(10)))

    statuses = asyncio.run(_run())
    assert sorted(statuses) == [401] * 5 + [429] * 5


def test_suspended_account_does_not_use_up_attempts(client):
    doc = client.app.state.store.read()
    next(u for u in doc.users if u.id == "u_viewer").status = "suspended"

    for _ in range(6):
        r = _login(client, email="viewer@demo.local")
        assert r.status_code == 403
        assert r.json()["error"]["code"] == "USER_SUSPENDED"
