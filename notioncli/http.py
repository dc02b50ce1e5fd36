"""HTTP request engine for the Notion API.

One logical request runs through this lifecycle:

1. Validate the request path (no parent-directory traversal).
2. Build auth, version, content-type and idempotency headers.
3. Send the request; on ``2xx`` return the parsed JSON body.
4. On ``429`` wait for ``Retry-After`` (default 1 s) and retry.
5. On a timed-out or failed connection retry immediately.
6. On anything else raise the mapped :class:`~notioncli.errors.CliError`.

At most ``retries + 1`` physical attempts are made; when they run out the
last error is raised.
"""

from __future__ import annotations

import json
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Literal, Union
from urllib.parse import unquote

import httpx

from notioncli.config import ResolvedConfig
from notioncli.errors import CliError, ErrorCode, InputError, InternalError, is_recoverable, map_http_status
from notioncli.observability import get_logger

log = get_logger("notioncli.http")

DEFAULT_RETRY_AFTER_S = 1.0

_SUGGESTED_ACTIONS: dict[int, str] = {
    401: "Check the integration token (--token, --token-stdin or NOTION_TOKEN)",
    403: "Share the resource with the integration or request the missing capability",
    404: "Verify the id and that the integration has access to it",
    429: "Retry after the Retry-After interval",
}


@dataclass(frozen=True)
class JsonBody:
    payload: Any
    kind: Literal["json"] = "json"


@dataclass(frozen=True)
class MultipartBody:
    """Multipart form body; ``files`` maps field -> (filename, content, content type)."""

    files: Mapping[str, tuple[str, bytes, str | None]]
    fields: Mapping[str, str] = field(default_factory=dict)
    kind: Literal["multipart"] = "multipart"


RequestBody = Union[JsonBody, MultipartBody]


@dataclass(frozen=True)
class RequestDescriptor:
    """Everything needed to issue one logical API request."""

    method: str
    path: str
    query: Mapping[str, Any] | None = None
    body: RequestBody | None = None
    idempotency_key: str | None = None
    content_type: str | None = None
    extra_headers: Mapping[str, str] | None = None


@dataclass(frozen=True)
class ApiResponse:
    status: int
    data: Any
    headers: httpx.Headers


def validate_path(path: str) -> str:
    """Reject request paths that could escape the API namespace.

    The path is percent-decoded and lower-cased first, so ``..%2f`` and
    double-encoded ``%252e`` variants are caught as well.
    """

    lowered = unquote(path).lower()
    if ".." in lowered or "%2e" in lowered:
        raise InputError(
            "Path traversal is not allowed",
            suggested_action="Provide a safe API path",
            context={"path": path},
        )
    return path if path.startswith("/") else f"/{path}"


def encode_query(query: Mapping[str, Any] | None) -> dict[str, str]:
    if not query:
        return {}
    params: dict[str, str] = {}
    for key, value in query.items():
        if value is None:
            continue
        if isinstance(value, bool):
            params[key] = "true" if value else "false"
        else:
            params[key] = str(value)
    return params


def build_headers(config: ResolvedConfig, descriptor: RequestDescriptor) -> dict[str, str]:
    headers = {"Notion-Version": config.notion_version}
    if config.token:
        headers["Authorization"] = f"Bearer {config.token}"

    if descriptor.content_type:
        headers["Content-Type"] = descriptor.content_type
    elif descriptor.body is None or descriptor.body.kind == "json":
        headers["Content-Type"] = "application/json"

    if descriptor.idempotency_key:
        headers["Idempotency-Key"] = descriptor.idempotency_key

    if descriptor.extra_headers:
        headers.update(descriptor.extra_headers)
    return headers


def parse_retry_after(response: httpx.Response) -> float:
    """Return the ``Retry-After`` delay in seconds, defaulting to 1 s."""
    raw = response.headers.get("retry-after")
    if raw is None:
        return DEFAULT_RETRY_AFTER_S
    try:
        return max(0.0, float(raw))
    except ValueError:
        return DEFAULT_RETRY_AFTER_S


def _decode_body(response: httpx.Response) -> Any:
    if not response.content:
        return {}
    return response.json()


def error_from_response(response: httpx.Response) -> CliError:
    """Translate a non-2xx response into a taxonomy error."""

    status = response.status_code
    try:
        body = _decode_body(response)
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}

    code = map_http_status(status)
    message = body.get("message") or f"Request failed with {status}"
    return CliError(
        code,
        str(message),
        recoverable=is_recoverable(code) or status == 429 or status >= 500,
        suggested_action=_SUGGESTED_ACTIONS.get(status),
        context={"status": status, "notion_code": body.get("code")},
    )


class ApiTransport:
    """Synchronous transport that applies the retry policy to every request.

    Parameters
    ----------
    config:
        Resolved configuration supplying token, version, timeout and retries.
    transport:
        Optional ``httpx`` transport; tests pass an ``httpx.MockTransport``.
    sleep:
        Delay function used for ``Retry-After`` backoff.
    """

    def __init__(
        self,
        config: ResolvedConfig,
        *,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._config = config
        self._sleep = sleep
        self._client = httpx.Client(
            timeout=httpx.Timeout(config.timeout_s),
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> ApiTransport:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _send(self, url: str, descriptor: RequestDescriptor, headers: dict[str, str]) -> httpx.Response:
        kwargs: dict[str, Any] = {"headers": headers, "params": encode_query(descriptor.query)}
        body = descriptor.body
        if body is not None and body.kind == "multipart":
            kwargs["files"] = dict(body.files)
            kwargs["data"] = dict(body.fields)
        elif body is not None:
            kwargs["content"] = json.dumps(body.payload, ensure_ascii=False).encode("utf-8")
        return self._client.request(descriptor.method.upper(), url, **kwargs)

    def request(self, descriptor: RequestDescriptor) -> ApiResponse:
        """Execute ``descriptor`` and return the decoded 2xx response.

        Raises
        ------
        CliError
            ``INVALID_ARGUMENT`` for an unsafe path (before any network
            call), ``TIMEOUT`` when every attempt timed out, or the code
            mapped from the final non-2xx status.
        """

        path = validate_path(descriptor.path)
        url = f"{self._config.base_url}{path}"
        headers = build_headers(self._config, descriptor)
        method = descriptor.method.upper()
        max_attempts = self._config.retries + 1
        last_error: CliError | None = None
        last_cause: Exception | None = None

        for attempt in range(1, max_attempts + 1):
            log.debug(
                "request",
                extra={"extra_fields": {"method": method, "path": path, "attempt": attempt, "max_attempts": max_attempts}},
            )
            t0 = time.monotonic()
            try:
                response = self._send(url, descriptor, headers)
            except httpx.TimeoutException as exc:
                last_cause = exc
                last_error = CliError(
                    ErrorCode.TIMEOUT,
                    f"Request timed out after {self._config.timeout_ms}ms",
                    recoverable=True,
                    suggested_action="Retry with a higher --timeout value",
                    context={"timeout_ms": self._config.timeout_ms},
                )
                self._log_retry(method, path, attempt, max_attempts, "timeout")
                continue
            except httpx.TransportError as exc:
                last_cause = exc
                last_error = InternalError(
                    f"Network error on {method} {path}: {exc}",
                    context={"attempt": attempt},
                )
                self._log_retry(method, path, attempt, max_attempts, "network_error")
                continue

            elapsed_ms = round((time.monotonic() - t0) * 1000, 2)
            log.debug(
                "response",
                extra={"extra_fields": {"method": method, "path": path, "status": response.status_code, "latency_ms": elapsed_ms}},
            )

            if 200 <= response.status_code < 300:
                try:
                    data = _decode_body(response)
                except ValueError as exc:
                    raise InternalError(
                        f"Invalid JSON in response from {method} {path}",
                        context={"status": response.status_code},
                    ) from exc
                return ApiResponse(status=response.status_code, data=data, headers=response.headers)

            error = error_from_response(response)
            if response.status_code == 429 and attempt < max_attempts:
                delay = parse_retry_after(response)
                self._log_retry(method, path, attempt, max_attempts, "rate_limited", delay_s=delay)
                self._sleep(delay)
                last_error, last_cause = error, None
                continue
            raise error

        assert last_error is not None
        raise last_error from last_cause

    @staticmethod
    def _log_retry(
        method: str,
        path: str,
        attempt: int,
        max_attempts: int,
        reason: str,
        *,
        delay_s: float = 0.0,
    ) -> None:
        log.warning(
            "request attempt failed",
            extra={
                "extra_fields": {
                    "method": method,
                    "path": path,
                    "attempt": attempt,
                    "max_attempts": max_attempts,
                    "reason": reason,
                    "retry": attempt < max_attempts,
                    "delay_s": delay_s,
                }
            },
        )
