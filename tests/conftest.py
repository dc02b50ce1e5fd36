"""Shared test fixtures for notioncli tests."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx
import pytest
from typer.testing import CliRunner

from notioncli.http import ApiTransport

NOTION_ENV = (
    "NOTION_TOKEN",
    "NOTION_VERSION",
    "NOTION_TIMEOUT",
    "NOTION_RETRIES",
    "NOTION_PRETTY",
    "NOTION_BASE_URL",
)


@pytest.fixture(autouse=True)
def config_dir(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """Point the config file and ops registry at a temp dir; clear NOTION_* vars."""
    for name in NOTION_ENV:
        monkeypatch.delenv(name, raising=False)
    target = tmp_path / "notion-cli"
    monkeypatch.setenv("NOTION_CLI_CONFIG_DIR", str(target))
    return target


@pytest.fixture
def runner() -> CliRunner:
    """Provide a CLI test runner."""
    return CliRunner()


@pytest.fixture
def mock_api(monkeypatch: pytest.MonkeyPatch) -> Callable[[Callable[[httpx.Request], httpx.Response]], list[httpx.Request]]:
    """Route command requests through ``httpx.MockTransport``.

    Returns an installer; the list it returns collects every request sent.
    """

    def install(handler: Callable[[httpx.Request], httpx.Response]) -> list[httpx.Request]:
        sent: list[httpx.Request] = []

        def record(request: httpx.Request) -> httpx.Response:
            sent.append(request)
            return handler(request)

        def factory(config: Any) -> ApiTransport:
            return ApiTransport(config, transport=httpx.MockTransport(record), sleep=lambda _: None)

        monkeypatch.setattr("notioncli.context.build_transport", factory)
        return sent

    return install


def parse_envelope(output: str) -> dict[str, Any]:
    """Return the envelope line from captured stdout, skipping log and stream lines."""
    for line in output.splitlines():
        if not line.startswith("{"):
            continue
        payload = json.loads(line)
        if isinstance(payload, dict) and "status" in payload and "metadata" in payload:
            return payload
    raise AssertionError(f"no envelope in output: {output!r}")
