"""Tests for the optional HTTP selection channel.

The FastAPI app is exercised through httpx's ASGITransport; every test points
PIDE_DIR at a temporary directory, so requests land in a throwaway file.
"""

import asyncio
import json

import pytest
from httpx import ASGITransport, AsyncClient

from pide.reader import SelectionReader
from pide.store import SelectionRecord, now_ms, write_selection

_loop = asyncio.new_event_loop()


def _run(coro):
    """Drive a coroutine to completion on a persistent event loop."""
    return _loop.run_until_complete(coro)


@pytest.fixture()
def selection_path(tmp_path, monkeypatch):
    monkeypatch.setenv("PIDE_DIR", str(tmp_path / ".pi"))
    return tmp_path / ".pi" / "ide-selection.json"


@pytest.fixture()
def client(selection_path):
    """httpx AsyncClient bound to the FastAPI app via ASGI transport."""
    from pide.server import app

    transport = ASGITransport(app=app)
    c = AsyncClient(transport=transport, base_url="http://testserver")
    yield c
    _run(c.aclose())


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


def test_health_returns_200_ok(client):
    resp = _run(client.get("/health"))
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


# ---------------------------------------------------------------------------
# GET /selection
# ---------------------------------------------------------------------------


def test_get_returns_404_without_selection(client):
    resp = _run(client.get("/selection"))
    assert resp.status_code == 404


def test_get_returns_current_record(client, selection_path):
    write_selection(SelectionRecord.create("/p/x.py", "print(1)", 3, 3, ide="vscode"), selection_path)

    resp = _run(client.get("/selection"))
    assert resp.status_code == 200
    body = resp.json()
    assert body["file"] == "/p/x.py"
    assert body["startLine"] == 3
    assert body["ide"] == "vscode"


def test_get_hides_stale_record(client, selection_path):
    stale = SelectionRecord.create("/p/x.py", ide="vscode", timestamp=now_ms() - 2 * 60 * 60 * 1000)
    write_selection(stale, selection_path)

    resp = _run(client.get("/selection"))
    assert resp.status_code == 404


def test_get_treats_malformed_file_as_absent(client, selection_path):
    selection_path.parent.mkdir(parents=True)
    selection_path.write_text("{not json")

    resp = _run(client.get("/selection"))
    assert resp.status_code == 404


# ---------------------------------------------------------------------------
# POST /selection
# ---------------------------------------------------------------------------


def test_post_writes_shared_file(client, selection_path):
    resp = _run(client.post("/selection", json={
        "file": "/p/y.py",
        "selection": "a\nb",
        "startLine": 8,
        "endLine": 9,
        "ide": "zed",
    }))
    assert resp.status_code == 200

    on_disk = json.loads(selection_path.read_text())
    assert on_disk["file"] == "/p/y.py"
    assert (on_disk["startLine"], on_disk["endLine"]) == (8, 9)
    assert on_disk["ide"] == "zed"
    assert resp.json() == on_disk


def test_post_defaults_ide_tag(client, selection_path):
    resp = _run(client.post("/selection", json={"file": "/p/y.py"}))
    assert resp.status_code == 200
    assert json.loads(selection_path.read_text())["ide"] == "http"


def test_post_is_visible_to_readers(client, selection_path):
    reader = SelectionReader(selection_path)
    _run(client.post("/selection", json={"file": "/p/z.py", "selection": "x", "startLine": 4, "endLine": 4}))

    assert reader.refresh() is True
    assert reader.reference() == "/p/z.py:4"


def test_post_rejects_missing_file(client, selection_path):
    resp = _run(client.post("/selection", json={"selection": "x"}))
    assert resp.status_code == 422
    assert not selection_path.exists()


def test_post_rejects_bad_line_numbers(client, selection_path):
    resp = _run(client.post("/selection", json={"file": "/p/y.py", "selection": "x", "startLine": 0, "endLine": 1}))
    assert resp.status_code == 422


def test_post_reports_write_failure(client, tmp_path, monkeypatch):
    blocker = tmp_path / "blocker"
    blocker.write_text("")
    monkeypatch.setenv("PIDE_DIR", str(blocker))

    resp = _run(client.post("/selection", json={"file": "/p/y.py"}))
    assert resp.status_code == 503


# ---------------------------------------------------------------------------
# DELETE /selection
# ---------------------------------------------------------------------------


def test_delete_clears_and_is_idempotent(client, selection_path):
    write_selection(SelectionRecord.create("/p/x.py", ide="vscode"), selection_path)

    resp = _run(client.delete("/selection"))
    assert resp.status_code == 200
    assert resp.json() == {"status": "cleared"}
    assert not selection_path.exists()

    resp = _run(client.delete("/selection"))
    assert resp.status_code == 200


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------


def test_runner_refuses_when_disabled(monkeypatch):
    import pide.run as run_mod

    calls = []
    monkeypatch.setattr(run_mod.config, "HTTP_ENABLED", False)
    monkeypatch.setattr(run_mod.uvicorn, "run", lambda *a, **kw: calls.append((a, kw)))

    assert run_mod.main() is False
    assert calls == []

    assert run_mod.main(force=True) is True
    assert calls[0][0] == ("pide.server:app",)
