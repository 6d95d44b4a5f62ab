import json
from typing import Union

import pytest
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError
from starlette.exceptions import HTTPException

from ai_starter.api.responses import (
    api_error,
    api_method_not_allowed,
    api_success,
    api_validation_error,
    classify_error,
    error_body,
    success_body,
    with_error_handling,
)
from ai_starter.core.config import settings
from ai_starter.core.errors import (
    DownstreamUnavailableError,
    ErrorKind,
    GenerationError,
    ValidationError,
)


class _Payload(BaseModel):
    name: str = Field(..., min_length=1)
    count: int


def _pydantic_error() -> PydanticValidationError:
    try:
        _Payload.model_validate({"name": "", "count": "many"})
    except PydanticValidationError as e:
        return e
    raise AssertionError("expected validation to fail")


def _body(resp) -> dict:
    return json.loads(resp.body)


def test_success_envelope():
    resp = api_success({"x": 1}, status=201)
    assert resp.status_code == 201
    assert _body(resp) == {"success": True, "data": {"x": 1}}


def test_success_body_encodes_models():
    assert success_body(_Payload(name="a", count=2)) == {"success": True, "data": {"name": "a", "count": 2}}


def test_envelope_builders_are_idempotent():
    assert success_body([1, 2]) == success_body([1, 2])
    ts = "2026-01-01T00:00:00+00:00"
    a = error_body("boom", {"k": 1}, development=True, timestamp=ts)
    b = error_body("boom", {"k": 1}, development=True, timestamp=ts)
    assert a == b


def test_error_body_shape_and_iso_timestamp():
    body = error_body("boom", development=False)
    assert body["success"] is False
    assert body["error"] == "boom"
    assert "details" not in body
    # round-trips through fromisoformat
    from datetime import datetime

    datetime.fromisoformat(body["timestamp"])


def test_details_only_in_development():
    assert error_body("x", "secret", development=True)["details"] == "secret"
    assert "details" not in error_body("x", "secret", development=False)


def test_method_not_allowed_has_allow_header():
    resp = api_method_not_allowed(["GET", "POST"])
    assert resp.status_code == 405
    assert resp.headers["allow"] == "GET, POST"
    assert _body(resp) == {"success": False, "error": "Method not allowed", "allowedMethods": ["GET", "POST"]}


def test_validation_error_has_one_issue_per_field():
    resp = api_validation_error(_pydantic_error(), development=False)
    body = _body(resp)
    assert resp.status_code == 400
    assert body["error"] == "Validation failed"
    assert sorted(i["path"][0] for i in body["issues"]) == ["count", "name"]
    assert "details" not in body


@pytest.mark.parametrize(
    "exc, status, kind",
    [
        (ValidationError([{"path": ["a"], "message": "bad", "code": "x"}]), 400, ErrorKind.VALIDATION),
        (_pydantic_error(), 400, ErrorKind.VALIDATION),
        (RequestValidationError([{"loc": ("body", "a"), "msg": "bad", "type": "missing"}]), 400, ErrorKind.VALIDATION),
        (NotImplementedError("later"), 501, ErrorKind.NOT_IMPLEMENTED),
        (RuntimeError("export is not yet implemented"), 501, ErrorKind.NOT_IMPLEMENTED),
        (DownstreamUnavailableError("Database connection failed"), 503, ErrorKind.DOWNSTREAM_UNAVAILABLE),
        (ConnectionRefusedError(111, "Connection refused"), 503, ErrorKind.DOWNSTREAM_UNAVAILABLE),
        (KeyError("connect ECONNREFUSED 127.0.0.1:5432"), 503, ErrorKind.DOWNSTREAM_UNAVAILABLE),
        (GenerationError("model down"), 500, ErrorKind.GENERATION),
        (ValueError("anything"), 500, ErrorKind.UNKNOWN),
    ],
)
def test_classification(exc, status, kind):
    c = classify_error(exc, development=False)
    assert c.status_code == status
    assert c.kind == kind


def test_validation_wins_over_markers():
    exc = ValidationError([{"path": ["a"], "message": "not yet implemented", "code": "x"}], "ECONNREFUSED")
    assert classify_error(exc).status_code == 400


def test_downstream_tag_is_found_through_cause_chain():
    try:
        try:
            raise DownstreamUnavailableError("Generation provider unavailable")
        except DownstreamUnavailableError as e:
            raise GenerationError("task failed") from e
    except GenerationError as outer:
        c = classify_error(outer)
    assert c.status_code == 503
    assert c.message == "Generation provider unavailable"


def test_marker_message_maps_to_database_failure():
    c = classify_error(Exception("connect ECONNREFUSED"), development=False)
    assert c.message == "Database connection failed"


def test_generic_error_redacted_outside_development():
    c = classify_error(RuntimeError("password=hunter2"), development=False)
    assert c.message == "Internal server error"
    assert c.details is None


def test_generic_error_in_development_carries_traceback():
    try:
        raise RuntimeError("kaboom")
    except RuntimeError as e:
        c = classify_error(e, development=True)
    assert c.message == "kaboom"
    assert "Traceback" in c.details


def test_http_exception_keeps_status():
    assert classify_error(HTTPException(404, "Task 'x' not found")).status_code == 404
    c = classify_error(HTTPException(405, headers={"Allow": "GET, HEAD"}))
    assert c.allowed_methods == ["GET", "HEAD"]


def test_non_exception_values_are_unknown_500():
    c = classify_error("just a string")
    assert c.status_code == 500
    assert c.message == "Unknown error occurred"


class _Unprintable(Exception):
    def __str__(self):
        raise RuntimeError("no str for you")


@pytest.mark.parametrize(
    "exc",
    [
        ValueError("x"),
        _Unprintable(),
        NotImplementedError(),
        DownstreamUnavailableError(),
        ConnectionRefusedError(),
        GenerationError("g"),
        HTTPException(403),
        _pydantic_error(),
    ],
)
async def test_wrapper_never_raises(exc):
    async def handler():
        raise exc

    resp = await with_error_handling(handler)()
    assert resp.status_code >= 400
    assert _body(resp)["success"] is False


async def test_wrapper_passes_results_through():
    sentinel = api_success({"ok": True})

    async def handler(a, b=2):
        return sentinel

    assert await with_error_handling(handler)(1, b=3) is sentinel


async def test_wrapper_accepts_sync_handlers():
    def handler():
        raise NotImplementedError("soon")

    resp = await with_error_handling(handler)()
    assert resp.status_code == 501


async def test_wrapper_redacts_in_production(monkeypatch):
    monkeypatch.setattr(settings, "APP_ENV", "production")

    async def handler():
        raise RuntimeError("internal detail")

    body = _body(await with_error_handling(handler)())
    assert body["error"] == "Internal server error"
    assert "details" not in body
    assert "internal detail" not in json.dumps(body)


async def test_wrapper_includes_details_in_development(monkeypatch):
    monkeypatch.setattr(settings, "APP_ENV", "development")

    async def handler():
        raise RuntimeError("internal detail")

    body = _body(await with_error_handling(handler)())
    assert body["error"] == "internal detail"
    assert "Traceback" in body["details"]


def test_api_error_status_default():
    assert api_error("x").status_code == 500


class _UnionPayload(BaseModel):
    n: Union[int, bool]
    name: str = Field(..., min_length=1)


def _union_error(raw) -> PydanticValidationError:
    try:
        _UnionPayload.model_validate(raw)
    except PydanticValidationError as e:
        return e
    raise AssertionError("expected validation to fail")


def test_request_union_field_is_one_issue():
    raw = {"n": "zzz", "name": ""}
    errors = [{**e, "loc": ("body",) + tuple(e["loc"])} for e in _union_error(raw).errors()]
    c = classify_error(RequestValidationError(errors, body=raw), development=False)
    assert c.status_code == 400
    assert sorted(tuple(i["path"]) for i in c.issues) == [("body", "n"), ("body", "name")]
    union = next(i for i in c.issues if i["path"] == ["body", "n"])
    assert union["code"] == "invalid_union"


def test_raw_pydantic_union_field_is_one_issue():
    resp = api_validation_error(_union_error({"n": "zzz", "name": "ok"}), development=False)
    issues = _body(resp)["issues"]
    assert issues == [{"path": ["n"], "message": issues[0]["message"], "code": "invalid_union"}]


def test_task_validation_error_keeps_one_issue_per_field():
    from ai_starter.tasks.base import Task

    task = Task(name="u", input_schema=_UnionPayload, output_schema=_Payload, prompt=lambda d: "?")
    with pytest.raises(ValidationError) as ei:
        task.validate_input({"n": [1], "name": ""})
    c = classify_error(ei.value)
    assert c.status_code == 400
    assert sorted(tuple(i["path"]) for i in c.issues) == [("n",), ("name",)]


def test_same_bad_value_in_two_top_level_fields_stays_two_issues():
    # identical inputs on sibling fields must not be mistaken for union members
    class Two(BaseModel):
        a: int
        b: int

    with pytest.raises(PydanticValidationError) as ei:
        Two.model_validate({"a": "x", "b": "x"})
    c = classify_error(ei.value)
    assert sorted(tuple(i["path"]) for i in c.issues) == [("a",), ("b",)]
