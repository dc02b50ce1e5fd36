"""End-to-end tests for the ``notion`` command tree."""

from __future__ import annotations

import base64
import json
from pathlib import Path

import httpx
import pytest
from conftest import parse_envelope
from typer.testing import CliRunner

from notioncli import __version__
from notioncli.app import app
from notioncli.ops import OperationStatus, OpsRegistry, default_registry_path


def invoke(runner: CliRunner, *args: str, token: bool = True, input: str | None = None):
    env = {"NOTION_TOKEN": "secret"} if token else {}
    return runner.invoke(app, list(args), env=env, input=input, prog_name="notion")


# -- argument and auth errors ---------------------------------------------


def test_oauth_token_requires_grant_type(runner: CliRunner) -> None:
    result = invoke(runner, "oauth", "token", "--client-id", "x", "--client-secret", "y", token=False)
    assert result.exit_code == 2
    payload = parse_envelope(result.stdout)
    assert payload["status"] == "error"
    assert payload["error"]["code"] == "INVALID_ARGUMENT"
    assert payload["metadata"]["command"] == "oauth token"


def test_missing_token_is_auth_failed(runner: CliRunner) -> None:
    result = invoke(runner, "users", "list", token=False)
    assert result.exit_code == 10
    payload = parse_envelope(result.stdout)
    assert payload["error"]["code"] == "AUTH_FAILED"
    assert payload["metadata"]["command"] == "users list"


def test_token_stdin_conflicts_with_stdin_json(runner: CliRunner) -> None:
    result = invoke(runner, "search", "--token-stdin", "--filter", "-", token=False, input="tok\n")
    assert result.exit_code == 2
    payload = parse_envelope(result.stdout)
    assert payload["error"]["code"] == "INVALID_ARGUMENT"
    assert payload["error"]["context"] == {"conflict": "stdin"}


@pytest.mark.parametrize(
    "args",
    [
        ("pages", "get"),
        ("blocks", "get"),
        ("data-sources", "query"),
        ("databases", "get"),
        ("comments", "get"),
        ("file-uploads", "get"),
        ("users", "get"),
    ],
)
def test_missing_id_is_missing_argument(runner: CliRunner, args: tuple[str, ...]) -> None:
    result = invoke(runner, *args)
    assert result.exit_code == 2
    payload = parse_envelope(result.stdout)
    assert payload["error"]["code"] == "MISSING_ARGUMENT"
    assert payload["error"]["suggested_action"].endswith("or --id")


def test_file_uploads_create_requires_flags(runner: CliRunner) -> None:
    result = invoke(runner, "file-uploads", "create")
    assert result.exit_code == 2
    assert parse_envelope(result.stdout)["error"]["code"] == "INVALID_ARGUMENT"


def test_ops_get_requires_id(runner: CliRunner) -> None:
    result = invoke(runner, "ops", "get")
    assert result.exit_code == 2
    payload = parse_envelope(result.stdout)
    assert payload["error"]["code"] == "MISSING_ARGUMENT"
    assert payload["error"]["message"] == "Op id is required"


def test_request_requires_path(runner: CliRunner) -> None:
    result = invoke(runner, "request", "--method", "GET")
    assert result.exit_code == 2
    assert parse_envelope(result.stdout)["error"]["code"] == "INVALID_ARGUMENT"


def test_unknown_command_still_emits_envelope(runner: CliRunner) -> None:
    result = invoke(runner, "pages", "explode")
    assert result.exit_code == 2
    assert parse_envelope(result.stdout)["error"]["code"] == "INVALID_ARGUMENT"


def test_unexpected_exception_is_internal_error(runner: CliRunner, monkeypatch: pytest.MonkeyPatch) -> None:
    def explode(config: object) -> None:
        raise RuntimeError("kaboom")

    monkeypatch.setattr("notioncli.context.build_transport", explode)
    result = invoke(runner, "users", "me")
    assert result.exit_code == 125
    payload = parse_envelope(result.stdout)
    assert payload["status"] == "error"
    assert payload["error"]["code"] == "INTERNAL_ERROR"
    assert payload["error"]["message"] == "kaboom"
    assert payload["error"]["recoverable"] is False
    assert payload["metadata"]["command"] == "users me"
    envelopes = [line for line in result.stdout.splitlines() if line.startswith("{")]
    assert len(envelopes) == 1


def test_parse_error_honours_output_flags(runner: CliRunner, tmp_path: Path) -> None:
    target = tmp_path / "error.json"
    result = invoke(runner, "request", "--method", "GET", "--output-file", str(target), "--pretty")
    assert result.exit_code == 2
    copy = json.loads(target.read_text(encoding="utf-8"))
    assert copy["error"]["code"] == "INVALID_ARGUMENT"
    assert target.read_text(encoding="utf-8").startswith("{\n  ")


def test_parse_error_honours_pretty_env(runner: CliRunner) -> None:
    result = runner.invoke(app, ["request", "--method", "GET"], env={"NOTION_PRETTY": "1"}, prog_name="notion")
    assert result.exit_code == 2
    assert result.stdout.startswith("{\n  ")


def test_invalid_json_input(runner: CliRunner) -> None:
    result = invoke(runner, "pages", "create", "--parent", "{oops", "--properties", "{}")
    assert result.exit_code == 2
    assert parse_envelope(result.stdout)["error"]["code"] == "INVALID_ARGUMENT"


def test_error_line_on_stderr(runner: CliRunner) -> None:
    result = invoke(runner, "users", "list", token=False)
    assert "AUTH_FAILED: Missing Notion token" in result.output


def test_quiet_suppresses_error_line(runner: CliRunner) -> None:
    result = invoke(runner, "users", "list", "--quiet", token=False)
    assert result.exit_code == 10
    assert "AUTH_FAILED: Missing Notion token" not in result.output


# -- dry runs and validation ------------------------------------------------


def test_databases_create_dry_run(runner: CliRunner) -> None:
    result = invoke(runner, "databases", "create", "--parent", "{}", "--title", "[]", "--properties", "{}", "--dry-run")
    assert result.exit_code == 40
    payload = parse_envelope(result.stdout)
    assert payload["status"] == "success"
    assert payload["data"] == {"dry_run": True, "request": {"parent": {}, "title": [], "properties": {}}}


def test_comments_create_dry_run(runner: CliRunner) -> None:
    result = invoke(runner, "comments", "create", "--rich-text", "[]", "--dry-run")
    assert result.exit_code == 40
    assert parse_envelope(result.stdout)["data"]["dry_run"] is True


def test_dry_run_reads_json_from_file(runner: CliRunner, tmp_path: Path) -> None:
    props = tmp_path / "props.json"
    props.write_text('{"Name": {"title": []}}', encoding="utf-8")
    result = invoke(
        runner, "pages", "create", "--parent", '{"page_id": "p1"}', "--properties", f"@{props}", "--dry-run"
    )
    assert result.exit_code == 40
    assert parse_envelope(result.stdout)["data"]["request"]["properties"] == {"Name": {"title": []}}


def test_validation_failure_lists_errors(runner: CliRunner) -> None:
    result = invoke(runner, "databases", "create", "--parent", "{}", "--title", "{}", "--properties", "{}", "--dry-run")
    assert result.exit_code == 2
    payload = parse_envelope(result.stdout)
    assert payload["error"]["message"] == "Input validation failed"
    assert payload["error"]["context"]["errors"][0].startswith("/title ")


def test_no_validate_skips_schema(runner: CliRunner) -> None:
    result = invoke(
        runner, "databases", "create", "--parent", "{}", "--title", "{}", "--properties", "{}", "--dry-run", "--no-validate"
    )
    assert result.exit_code == 40


def test_dry_run_sends_nothing(runner: CliRunner, mock_api) -> None:
    sent = mock_api(lambda request: httpx.Response(200, json={}))
    result = invoke(runner, "blocks", "append-children", "b1", "--children", "[]", "--dry-run")
    assert result.exit_code == 40
    assert sent == []


# -- requests against the mocked API ---------------------------------------


def test_users_me(runner: CliRunner, mock_api) -> None:
    sent = mock_api(lambda request: httpx.Response(200, json={"object": "user", "id": "bot"}))
    result = invoke(runner, "users", "me")
    assert result.exit_code == 0
    payload = parse_envelope(result.stdout)
    assert payload["data"] == {"object": "user", "id": "bot"}
    assert payload["metadata"]["command"] == "users me"
    assert sent[0].headers["Authorization"] == "Bearer secret"
    assert sent[0].url.path == "/v1/users/me"


def test_id_flag_overrides_positional(runner: CliRunner, mock_api) -> None:
    sent = mock_api(lambda request: httpx.Response(200, json={"object": "page"}))
    result = invoke(runner, "pages", "get", "positional", "--id", "flagged")
    assert result.exit_code == 0
    assert sent[0].url.path == "/v1/pages/flagged"


def test_root_flags_reach_leaf_commands(runner: CliRunner, mock_api) -> None:
    sent = mock_api(lambda request: httpx.Response(200, json={}))
    result = runner.invoke(app, ["--token", "root-token", "--notion-version", "2022-06-28", "users", "me"])
    assert result.exit_code == 0
    assert sent[0].headers["Authorization"] == "Bearer root-token"
    assert sent[0].headers["Notion-Version"] == "2022-06-28"


def test_token_from_stdin(runner: CliRunner, mock_api) -> None:
    sent = mock_api(lambda request: httpx.Response(200, json={}))
    result = invoke(runner, "users", "me", "--token-stdin", token=False, input="piped-token\n")
    assert result.exit_code == 0
    assert sent[0].headers["Authorization"] == "Bearer piped-token"


def test_idempotency_key_header(runner: CliRunner, mock_api) -> None:
    sent = mock_api(lambda request: httpx.Response(200, json={"object": "page"}))
    result = invoke(runner, "pages", "update", "p1", "--no-archived", "--idempotency-key", "k-1")
    assert result.exit_code == 0
    assert sent[0].method == "PATCH"
    assert sent[0].headers["Idempotency-Key"] == "k-1"
    assert json.loads(sent[0].content) == {"archived": False}


def test_upstream_not_found(runner: CliRunner, mock_api) -> None:
    mock_api(lambda request: httpx.Response(404, json={"code": "object_not_found", "message": "Could not find page"}))
    result = invoke(runner, "pages", "get", "p1")
    assert result.exit_code == 4
    payload = parse_envelope(result.stdout)
    assert payload["error"]["code"] == "RESOURCE_NOT_FOUND"
    assert payload["error"]["message"] == "Could not find page"
    assert payload["error"]["context"] == {"status": 404, "notion_code": "object_not_found"}


def test_search_sends_body(runner: CliRunner, mock_api) -> None:
    sent = mock_api(lambda request: httpx.Response(200, json={"results": [], "has_more": False}))
    result = invoke(runner, "search", "--query", "Meals", "--page-size", "10")
    assert result.exit_code == 0
    assert sent[0].url.path == "/v1/search"
    assert json.loads(sent[0].content) == {"query": "Meals", "page_size": 10}


def _paged(request: httpx.Request) -> httpx.Response:
    cursor = request.url.params.get("start_cursor")
    if cursor is None:
        return httpx.Response(200, json={"results": [{"id": "u1"}, {"id": "u2"}], "has_more": True, "next_cursor": "c2"})
    return httpx.Response(200, json={"results": [{"id": "u3"}], "has_more": False, "next_cursor": None})


def test_list_all_collects_pages(runner: CliRunner, mock_api) -> None:
    sent = mock_api(_paged)
    result = invoke(runner, "users", "list", "--all")
    assert result.exit_code == 0
    payload = parse_envelope(result.stdout)
    assert payload["data"] == {"results": [{"id": "u1"}, {"id": "u2"}, {"id": "u3"}], "total": 3}
    assert len(sent) == 2


def test_list_all_ndjson_streams(runner: CliRunner, mock_api) -> None:
    mock_api(_paged)
    result = invoke(runner, "users", "list", "--all", "--ndjson")
    assert result.exit_code == 0
    lines = [json.loads(line) for line in result.stdout.splitlines() if line.startswith('{"type"')]
    assert lines == [
        {"type": "item", "data": {"id": "u1"}},
        {"type": "item", "data": {"id": "u2"}},
        {"type": "item", "data": {"id": "u3"}},
        {"type": "summary", "data": {"count": 3}},
    ]
    assert '"status"' not in result.stdout


def test_data_source_query_all_uses_body_cursor(runner: CliRunner, mock_api) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        if "start_cursor" not in body:
            return httpx.Response(200, json={"results": [1], "has_more": True, "next_cursor": "n2"})
        return httpx.Response(200, json={"results": [2], "has_more": False})

    sent = mock_api(handler)
    result = invoke(runner, "data-sources", "query", "ds1", "--filter", '{"property": "Done"}', "--all")
    assert result.exit_code == 0
    assert parse_envelope(result.stdout)["data"]["total"] == 2
    assert json.loads(sent[1].content) == {"filter": {"property": "Done"}, "start_cursor": "n2"}


def test_blocks_delete_partial(runner: CliRunner, mock_api) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/bad"):
            return httpx.Response(404, json={"code": "object_not_found", "message": "missing"})
        return httpx.Response(200, json={"id": request.url.path.rsplit("/", 1)[-1], "archived": True})

    mock_api(handler)
    result = invoke(runner, "blocks", "delete", "good", "bad")
    assert result.exit_code == 3
    payload = parse_envelope(result.stdout)
    assert payload["status"] == "partial"
    assert payload["data"]["succeeded"] == [{"id": "good", "archived": True}]
    assert payload["data"]["failed"][0]["id"] == "bad"
    assert payload["data"]["failed"][0]["error"]["code"] == "RESOURCE_NOT_FOUND"


def test_blocks_delete_all_succeed(runner: CliRunner, mock_api) -> None:
    mock_api(lambda request: httpx.Response(200, json={"archived": True}))
    result = invoke(runner, "blocks", "delete", "a", "b")
    assert result.exit_code == 0
    assert parse_envelope(result.stdout)["data"] == [{"archived": True}, {"archived": True}]


def test_request_passthrough(runner: CliRunner, mock_api) -> None:
    sent = mock_api(lambda request: httpx.Response(200, json={"ok": True}))
    result = invoke(runner, "request", "--method", "get", "--path", "users", "--query", '{"page_size": 3}')
    assert result.exit_code == 0
    assert sent[0].method == "GET"
    assert sent[0].url.path == "/v1/users"
    assert sent[0].url.params["page_size"] == "3"


def test_request_rejects_traversal(runner: CliRunner, mock_api) -> None:
    sent = mock_api(lambda request: httpx.Response(200, json={}))
    result = invoke(runner, "request", "--method", "GET", "--path", "/pages/%2e%2e/admin")
    assert result.exit_code == 2
    assert parse_envelope(result.stdout)["error"]["message"] == "Path traversal is not allowed"
    assert sent == []


def test_oauth_token_uses_basic_auth(runner: CliRunner, mock_api) -> None:
    sent = mock_api(lambda request: httpx.Response(200, json={"access_token": "a"}))
    result = invoke(
        runner,
        "oauth", "token",
        "--grant-type", "authorization_code",
        "--code", "c1",
        "--client-id", "id",
        "--client-secret", "shh",
        token=False,
    )
    assert result.exit_code == 0
    expected = base64.b64encode(b"id:shh").decode()
    assert sent[0].headers["Authorization"] == f"Basic {expected}"
    assert json.loads(sent[0].content) == {"grant_type": "authorization_code", "code": "c1"}


# -- file uploads and ops ----------------------------------------------------


def test_file_upload_create_body(runner: CliRunner, mock_api) -> None:
    sent = mock_api(lambda request: httpx.Response(200, json={"id": "f1", "status": "pending"}))
    result = invoke(runner, "file-uploads", "create", "--file-name", "a.txt", "--content-type", "text/plain")
    assert result.exit_code == 0
    assert json.loads(sent[0].content) == {"filename": "a.txt", "content_type": "text/plain"}


def test_file_upload_send_async_records_receipt(runner: CliRunner, mock_api, tmp_path: Path) -> None:
    upload = tmp_path / "a.txt"
    upload.write_text("hello", encoding="utf-8")
    sent = mock_api(lambda request: httpx.Response(200, json={"id": "f1", "status": "uploaded"}))

    result = invoke(runner, "file-uploads", "send", "f1", "--file", str(upload), "--async")
    assert result.exit_code == 0
    data = parse_envelope(result.stdout)["data"]
    assert data["status"] == "COMPLETED"
    assert data["poll"] == {"method": "GET", "path": "/file_uploads/f1"}
    assert data["metadata"]["response"] == {"id": "f1", "status": "uploaded"}
    assert sent[0].url.path == "/v1/file_uploads/f1/send"

    stored = OpsRegistry(default_registry_path()).get(data["op_id"])
    assert stored is not None
    assert stored.status is OperationStatus.COMPLETED


def test_file_upload_send_async_failure_marks_receipt(runner: CliRunner, mock_api, tmp_path: Path) -> None:
    upload = tmp_path / "a.txt"
    upload.write_text("hello", encoding="utf-8")
    mock_api(lambda request: httpx.Response(403, json={"code": "restricted_resource", "message": "nope"}))

    result = invoke(runner, "file-uploads", "send", "f1", "--file", str(upload), "--async")
    assert result.exit_code == 11
    receipts = OpsRegistry(default_registry_path()).read()
    assert len(receipts) == 1
    assert receipts[0].status is OperationStatus.FAILED
    assert receipts[0].error is not None
    assert receipts[0].error.code == "PERMISSION_DENIED"


def test_file_upload_send_missing_file(runner: CliRunner, tmp_path: Path) -> None:
    result = invoke(runner, "file-uploads", "send", "f1", "--file", str(tmp_path / "nope.txt"))
    assert result.exit_code == 2
    assert parse_envelope(result.stdout)["error"]["code"] == "INVALID_ARGUMENT"


def test_ops_get_and_list(runner: CliRunner) -> None:
    registry = OpsRegistry(default_registry_path())
    done = registry.append(registry.create_receipt(status=OperationStatus.COMPLETED))
    registry.append(registry.create_receipt(status=OperationStatus.IN_PROGRESS))

    got = invoke(runner, "ops", "get", done.op_id, token=False)
    assert got.exit_code == 0
    assert parse_envelope(got.stdout)["data"]["op_id"] == done.op_id

    listed = invoke(runner, "ops", "list", "--status", "completed", token=False)
    assert listed.exit_code == 0
    data = parse_envelope(listed.stdout)["data"]
    assert data["total"] == 1
    assert data["results"][0]["op_id"] == done.op_id


def test_ops_get_unknown(runner: CliRunner) -> None:
    result = invoke(runner, "ops", "get", "op_missing", token=False)
    assert result.exit_code == 4
    assert parse_envelope(result.stdout)["error"]["message"] == "Op not found"


def test_ops_wait_polls_until_uploaded(runner: CliRunner, mock_api) -> None:
    registry = OpsRegistry(default_registry_path())
    receipt = registry.append(
        registry.create_receipt(status=OperationStatus.IN_PROGRESS, poll={"method": "GET", "path": "/file_uploads/f1"})
    )
    sent = mock_api(lambda request: httpx.Response(200, json={"id": "f1", "status": "uploaded"}))

    result = invoke(runner, "ops", "wait", receipt.op_id, "--interval", "0")
    assert result.exit_code == 0
    data = parse_envelope(result.stdout)["data"]
    assert data["status"] == "COMPLETED"
    assert sent[0].url.path == "/v1/file_uploads/f1"


def test_ops_wait_timeout(runner: CliRunner) -> None:
    registry = OpsRegistry(default_registry_path())
    receipt = registry.append(registry.create_receipt(status=OperationStatus.IN_PROGRESS))
    result = invoke(runner, "ops", "wait", receipt.op_id, "--timeout", "0", token=False)
    assert result.exit_code == 20
    assert parse_envelope(result.stdout)["error"]["message"] == "Op wait timed out"


# -- config -------------------------------------------------------------------


def test_config_set_get_unset(runner: CliRunner, config_dir: Path) -> None:
    set_result = invoke(runner, "config", "set", "profile.work.timeout_ms", "5000", token=False)
    assert set_result.exit_code == 0
    assert parse_envelope(set_result.stdout)["data"] == {"ok": True, "path": "profile.work.timeout_ms"}

    stored = json.loads((config_dir / "config.json").read_text(encoding="utf-8"))
    assert stored == {"profiles": {"work": {"timeout_ms": 5000}}, "default_profile": "work"}

    got = invoke(runner, "config", "get", "profile.work.timeout_ms", token=False)
    assert parse_envelope(got.stdout)["data"] == {"value": 5000}

    invoke(runner, "config", "unset", "profile.work.timeout_ms", token=False)
    got = invoke(runner, "config", "get", "profile.work.timeout_ms", token=False)
    assert parse_envelope(got.stdout)["data"] == {"value": None}


def test_config_token_feeds_requests(runner: CliRunner, mock_api) -> None:
    sent = mock_api(lambda request: httpx.Response(200, json={}))
    assert invoke(runner, "config", "set", "token", "from-file", token=False).exit_code == 0
    result = invoke(runner, "users", "me", token=False)
    assert result.exit_code == 0
    assert sent[0].headers["Authorization"] == "Bearer from-file"


@pytest.mark.parametrize(
    ("key", "message"),
    [
        ("profile.work", "Config key must be profile.<name>.<field>"),
        ("profile.work.colour", "Unknown profile config field"),
        ("color", "Unknown config key"),
    ],
)
def test_config_rejects_bad_keys(runner: CliRunner, key: str, message: str) -> None:
    result = invoke(runner, "config", "get", key, token=False)
    assert result.exit_code == 2
    assert parse_envelope(result.stdout)["error"]["message"] == message


# -- output and help -----------------------------------------------------------


def test_output_file_copy(runner: CliRunner, mock_api, tmp_path: Path) -> None:
    mock_api(lambda request: httpx.Response(200, json={"id": "bot"}))
    target = tmp_path / "envelope.json"
    result = invoke(runner, "users", "me", "--output-file", str(target), "--pretty")
    assert result.exit_code == 0
    copy = json.loads(target.read_text(encoding="utf-8"))
    assert copy["data"] == {"id": "bot"}
    assert target.read_text(encoding="utf-8").startswith("{\n  ")


def test_help_json(runner: CliRunner) -> None:
    result = runner.invoke(app, ["--help-json"], prog_name="notion")
    assert result.exit_code == 0
    tree = json.loads(result.stdout)
    assert tree["name"] == "notion"
    assert tree["version"] == __version__
    names = {command["name"] for command in tree["commands"]}
    assert {"pages", "blocks", "search", "request", "ops", "config", "file-uploads", "data-sources"} <= names
    assert any(flag["name"] == "--token" for flag in tree["global_flags"])
    assert {"code": 40, "meaning": "Dry run: changes pending"} in tree["exit_codes"]


def test_version(runner: CliRunner) -> None:
    result = runner.invoke(app, ["--version"], prog_name="notion")
    assert result.exit_code == 0
    assert result.stdout.strip() == __version__
