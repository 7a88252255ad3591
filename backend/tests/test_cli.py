"""Tests for the command-line client."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
from typer.testing import CliRunner

from crop_rag.cli import main as cli

runner = CliRunner()


class _Response:
    def __init__(self, status_code: int, payload: Any) -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = str(payload)

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self) -> Any:
        return self._payload


@pytest.fixture
def recorder(monkeypatch: pytest.MonkeyPatch) -> list[dict[str, Any]]:
    calls: list[dict[str, Any]] = []
    responses: dict[tuple[str, str], _Response] = {
        ("POST", "/ingest"): _Response(200, {"ok": True, "inserted": 2, "message": "", "files": []}),
        ("POST", "/qa"): _Response(200, {"answer": "Water early.", "sources": [{"id": "guide.txt", "score": 0.91}], "raw": None}),
        ("DELETE", "/store"): _Response(200, {"ok": True}),
    }

    def fake_request(method: str, url: str, timeout: int, **kwargs: Any) -> _Response:
        path = url.split("5000", 1)[-1]
        calls.append({"method": method, "url": url, **kwargs})
        return responses.get((method, path), _Response(500, {"error": "boom", "message": "boom"}))

    monkeypatch.delenv("CROPRAG_HOST", raising=False)
    monkeypatch.setattr(cli.requests, "request", fake_request)
    return calls


def test_ingest_uploads_files(recorder: list[dict[str, Any]], tmp_path: Path) -> None:
    doc = tmp_path / "guide.txt"
    doc.write_text("Water early in the day.")

    result = runner.invoke(cli.app, ["ingest", str(doc)])

    assert result.exit_code == 0, result.output
    assert '"inserted": 2' in result.output
    name, content, mime = recorder[0]["files"][0][1]
    assert (name, content, mime) == ("guide.txt", b"Water early in the day.", "text/plain")


def test_ask_prints_answer_and_sources(recorder: list[dict[str, Any]]) -> None:
    result = runner.invoke(cli.app, ["ask", "When to water?", "--top-k", "3"])

    assert result.exit_code == 0, result.output
    assert "Water early." in result.output
    assert "- guide.txt (0.910)" in result.output
    assert recorder[0]["json"] == {"query": "When to water?", "topK": 3}


def test_store_clear_requires_confirmation(recorder: list[dict[str, Any]]) -> None:
    result = runner.invoke(cli.app, ["store", "clear"], input="n\n")
    assert result.exit_code != 0
    assert recorder == []

    result = runner.invoke(cli.app, ["store", "clear", "--yes"])
    assert result.exit_code == 0
    assert recorder[0]["method"] == "DELETE"


def test_error_response_exits_nonzero(recorder: list[dict[str, Any]]) -> None:
    result = runner.invoke(cli.app, ["store", "show"])
    assert result.exit_code == 1
