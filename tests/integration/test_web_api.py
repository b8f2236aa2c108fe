from __future__ import annotations

from typing import Any

import pytest

from compilepad.core.config import PlaygroundSettings
from compilepad.core.models import CompileMode
from compilepad.core.session import CompileSession
from compilepad.web import create_app


def _make_client(app: Any) -> Any:
    pytest.importorskip("httpx")  # required by fastapi/starlette TestClient
    from fastapi.testclient import TestClient

    return TestClient(app)


def _manual_session(source: str = "x = 1\n") -> CompileSession:
    settings = PlaygroundSettings(compiler="CPython", compile_mode=CompileMode.MANUAL)
    return CompileSession(settings, source=source)


def test_state_after_startup() -> None:
    with _make_client(create_app(_manual_session())) as client:
        resp = client.get("/api/state")
        assert resp.status_code == 200
        state = resp.json()
        assert state["ready"] is True
        assert state["busy_state"] == "success"
        assert state["status_message"] == "Compiled successfully"
        assert state["compiler"] == "CPython"
        assert state["can_download"] is True


def test_edit_compile_and_download() -> None:
    with _make_client(create_app(_manual_session())) as client:
        resp = client.post("/api/source", json={"text": "def f(:\n"})
        assert resp.status_code == 200
        assert resp.json()["scheduled"] is False

        state = client.post("/api/compile").json()
        assert state["busy_state"] == "failure"
        assert state["error_count"] == 1
        assert state["editor"]["annotations"][0]["row"] == 0
        assert state["editor"]["annotations"][0]["type"] == "error"
        assert len(state["notifications"]) == 1

        resp = client.get("/api/artifact")
        assert resp.status_code == 404
        assert resp.json()["error"] == "No compiled binary available"

        client.post("/api/source", json={"text": "def f():\n    return 1\n"})
        state = client.post("/api/compile", json={"mode": "manual"}).json()
        assert state["busy_state"] == "success"

        resp = client.get("/api/artifact")
        assert resp.status_code == 200
        assert resp.headers["content-type"] == "application/octet-stream"
        assert 'filename="cpython.module.wasm"' in resp.headers["content-disposition"]
        assert len(resp.content) > 16


def test_settings_and_output() -> None:
    with _make_client(create_app(_manual_session())) as client:
        resp = client.put("/api/settings/wide_address_mode", json={"value": True})
        assert resp.status_code == 200
        assert resp.json()["options"]["wide_address_mode"] is True

        resp = client.get("/api/output")
        assert resp.json()["type"] == "text"
        assert "uintptr=8" in resp.json()["output"]

        resp = client.get("/api/output", params={"type": "binary"})
        body = resp.json()
        assert body["type"] == "binary"
        assert body["output"].startswith("00000000  ")
        assert body["binary_size"].endswith("B")

        resp = client.put("/api/settings/turbo", json={"value": True})
        assert resp.status_code == 400
        assert "Unknown compile option" in resp.json()["error"]


def test_dismiss_notification() -> None:
    with _make_client(create_app(_manual_session())) as client:
        client.post("/api/source", json={"text": "def f(:\n"})
        notifications = client.post("/api/compile").json()["notifications"]
        assert len(notifications) == 1

        resp = client.delete(f"/api/notifications/{notifications[0]['key']}")
        assert resp.status_code == 200
        assert resp.json() == {"removed": True, "notifications": []}

        resp = client.delete("/api/notifications/999")
        assert resp.json()["removed"] is False


def test_compile_mode_and_compiler() -> None:
    with _make_client(create_app(_manual_session())) as client:
        resp = client.put("/api/compile-mode", json={"mode": "decompile"})
        assert resp.status_code == 200
        assert resp.json()["compile_mode"] == "decompile"

        resp = client.put("/api/compile-mode", json={"mode": "sideways"})
        assert resp.status_code == 422

        resp = client.put("/api/compiler", json={"compiler": "Missing"})
        body = resp.json()
        assert body["available"] is False
        assert body["state"]["busy_state"] == "failure"
        assert body["state"]["outcome"] == "internal_error"

        body = client.put("/api/compiler", json={"compiler": "CPython"}).json()
        assert body["available"] is True
        assert body["state"]["busy_state"] == "success"


def test_auto_mode_debounces() -> None:
    import time

    settings = PlaygroundSettings(compiler="CPython", compile_mode=CompileMode.AUTO, auto_compile_delay_ms=20)
    session = CompileSession(settings, source="x = 1\n")
    with _make_client(create_app(session)) as client:
        resp = client.post("/api/source", json={"text": "x = (\n"})
        assert resp.json()["scheduled"] is True

        state: dict[str, Any] = {}
        for _ in range(50):
            time.sleep(0.02)
            state = client.get("/api/state").json()
            if state["busy_state"] == "failure":
                break
        assert state["busy_state"] == "failure"
        assert state["notifications"] == []
        assert len(state["editor"]["annotations"]) == 1
