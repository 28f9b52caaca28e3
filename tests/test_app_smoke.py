from __future__ import annotations

import asyncio
import json

import pytest

from persistence import CURRENT_SEED_VERSION, CorruptStateError


def test_app_smoke_routes(client, sandbox_env):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["data"] == {"ok": True}
    assert r.json()["meta"]["requestId"]

    # startup layout and seeded state
    assert (sandbox_env / "uploads").is_dir()
    assert (sandbox_env / "reports" / "executive_demo_1.html").exists()
    doc = json.loads((sandbox_env / "db.json").read_text(encoding="utf-8"))
    assert doc["meta"]["version"] == CURRENT_SEED_VERSION
    assert len(doc["users"]) == 5

    r = client.get("/nope")
    assert r.status_code == 404


def test_corrupt_state_aborts_startup(sandbox_env):
    import app as app_module

    sandbox_env.mkdir(parents=True, exist_ok=True)
    (sandbox_env / "db.json").write_text("{truncated", encoding="utf-8")

    app = app_module.create_app()

    async def _boot():
        async with app_module.lifespan(app):
            pass

    with pytest.raises(CorruptStateError):
        asyncio.run(_boot())


def test_running_module_serves_with_configured_address(sandbox_env, monkeypatch: pytest.MonkeyPatch):
    import runpy

    import uvicorn

    calls: list[dict] = []
    monkeypatch.setenv("HOST", "127.0.0.1")
    monkeypatch.setenv("PORT", "9123")
    monkeypatch.setenv("LOG_LEVEL", "INFO")
    monkeypatch.setattr(uvicorn, "run", lambda app, **kwargs: calls.append(kwargs))

    runpy.run_module("app", run_name="__main__")

    assert calls == [{"host": "127.0.0.1", "port": 9123, "log_level": "info"}]
