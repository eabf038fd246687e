import json
from pathlib import Path

import httpx
import pytest

from crpt_api.cli import main
from crpt_api.client import DocumentClient
from crpt_api.settings import Settings


def _write_inputs(tmp_path: Path, count: int) -> tuple[list[str], str]:
    paths = []
    for index in range(count):
        path = tmp_path / f"doc-{index}.json"
        path.write_text(json.dumps({"docId": f"doc-{index}", "products": []}), encoding="utf-8")
        paths.append(str(path))
    signature = tmp_path / "signature.txt"
    signature.write_text("signed\n", encoding="utf-8")
    return paths, str(signature)


def _patch_transport(monkeypatch: pytest.MonkeyPatch, status_code: int) -> list[httpx.Request]:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(status_code, text="{}")

    def make_client(settings: Settings) -> DocumentClient:
        return DocumentClient(settings, transport=httpx.MockTransport(handler))

    monkeypatch.setattr("crpt_api.api.DocumentClient", make_client)
    monkeypatch.setenv("CRPT_API_TOKEN", "cli-token")
    return seen


def test_cli_submit_all_ok(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    seen = _patch_transport(monkeypatch, 200)
    documents, signature = _write_inputs(tmp_path, 3)

    code = main(["submit", *documents, "--signature-file", signature, "--limit", "5"])
    captured = capsys.readouterr()

    assert code == 0
    assert sum(line.startswith("ok ") for line in captured.out.splitlines()) == 3
    assert len(seen) == 3
    assert all(request.headers["Authorization"] == "Bearer cli-token" for request in seen)


def test_cli_submit_reports_failures(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    _patch_transport(monkeypatch, 500)
    documents, signature = _write_inputs(tmp_path, 2)

    code = main(["submit", *documents, "--signature-file", signature, "--limit", "2"])
    captured = capsys.readouterr()

    assert code == 1
    assert sum(line.startswith("failed ") for line in captured.out.splitlines()) == 2
    assert "API error: 500" in captured.out


def test_cli_submit_rejects_zero_limit(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    _patch_transport(monkeypatch, 200)
    documents, signature = _write_inputs(tmp_path, 1)

    code = main(["submit", *documents, "--signature-file", signature, "--limit", "0"])
    captured = capsys.readouterr()

    assert code == 2
    assert "request_limit must be > 0" in captured.err


def test_cli_submit_rejects_invalid_document(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    _patch_transport(monkeypatch, 200)
    bad = tmp_path / "bad.json"
    bad.write_text("[1, 2]", encoding="utf-8")
    signature = tmp_path / "signature.txt"
    signature.write_text("signed", encoding="utf-8")

    code = main(["submit", str(bad), "--signature-file", str(signature)])
    captured = capsys.readouterr()

    assert code == 2
    assert "must contain a JSON object" in captured.err


def test_cli_without_command_prints_help(capsys: pytest.CaptureFixture[str]) -> None:
    assert main([]) == 0
    assert "crpt-api" in capsys.readouterr().out
