"""Request-body models used to validate command input before it is sent.

The models check shape (which keys are required, object vs. array vs.
scalar) and leave the detailed Notion semantics to the API itself. Unknown
keys are allowed so newer API fields pass through untouched.
"""

from __future__ import annotations

from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from notioncli.errors import InputError

JsonObject = dict[str, Any]
RichText = list[Any]


class RequestBody(BaseModel):
    model_config = ConfigDict(extra="allow")


class PageCreateBody(RequestBody):
    parent: JsonObject
    properties: JsonObject
    children: list[JsonObject] | None = None
    icon: JsonObject | None = None
    cover: JsonObject | None = None


class PageUpdateBody(RequestBody):
    properties: JsonObject | None = None
    archived: bool | None = None
    in_trash: bool | None = None
    icon: JsonObject | None = None
    cover: JsonObject | None = None


class PageMoveBody(RequestBody):
    parent: JsonObject


class BlockUpdateBody(RequestBody):
    archived: bool | None = None
    in_trash: bool | None = None


class BlockAppendBody(RequestBody):
    children: list[JsonObject] = Field(max_length=100)
    after: str | None = None


class SearchBody(RequestBody):
    query: str | None = None
    filter: JsonObject | None = None
    sort: JsonObject | None = None
    page_size: int | None = Field(default=None, ge=1, le=100)
    start_cursor: str | None = None


class DataSourceQueryBody(RequestBody):
    filter: JsonObject | None = None
    sorts: list[JsonObject] | None = None
    page_size: int | None = Field(default=None, ge=1, le=100)
    start_cursor: str | None = None


class DataSourceCreateBody(RequestBody):
    parent: JsonObject
    title: RichText
    properties: JsonObject
    icon: JsonObject | None = None
    cover: JsonObject | None = None


class DataSourceUpdateBody(RequestBody):
    title: RichText | None = None
    description: RichText | None = None
    properties: JsonObject | None = None
    icon: JsonObject | None = None
    cover: JsonObject | None = None


class DatabaseCreateBody(DataSourceCreateBody):
    description: RichText | None = None


class DatabaseUpdateBody(DataSourceUpdateBody):
    pass


class CommentCreateBody(RequestBody):
    parent: JsonObject | None = None
    discussion_id: str | None = None
    rich_text: RichText


class FileUploadCreateBody(RequestBody):
    filename: str | None = None
    content_type: str | None = None
    mode: str | None = None
    number_of_parts: int | None = Field(default=None, ge=1)


class FileUploadCompleteBody(RequestBody):
    pass


class OAuthTokenBody(RequestBody):
    grant_type: str
    code: str | None = None
    redirect_uri: str | None = None
    refresh_token: str | None = None
    external_account: Union[str, JsonObject, None] = None


class OAuthTokenRefBody(RequestBody):
    """Body of ``/oauth/introspect`` and ``/oauth/revoke``."""

    token: str


def _location(loc: tuple[Any, ...]) -> str:
    if not loc:
        return "(root)"
    return "/" + "/".join(str(part) for part in loc)


def format_errors(exc: ValidationError) -> list[str]:
    """Render each violation as ``<location> <message>``."""
    return [f"{_location(err['loc'])} {err['msg']}".strip() for err in exc.errors()]


def validate_body(model: type[BaseModel], data: Any) -> tuple[bool, list[str]]:
    try:
        model.model_validate(data)
    except ValidationError as exc:
        return False, format_errors(exc)
    return True, []


def ensure_valid(model: type[BaseModel], data: Any, *, enabled: bool = True) -> None:
    """Raise ``INVALID_ARGUMENT`` listing every violation, unless disabled."""

    if not enabled or data is None:
        return
    valid, errors = validate_body(model, data)
    if not valid:
        raise InputError(
            "Input validation failed",
            suggested_action="Fix the input to match the schema",
            context={"errors": errors},
        )
