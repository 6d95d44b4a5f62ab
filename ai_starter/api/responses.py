"""
Uniform API responses and error classification.
What it provides:
- Success / error / method-not-allowed envelope builders
- JSONResponse helpers for the common statuses
- classify_error: total mapping from any failure to (status, message, details)
- with_error_handling: route wrapper that never lets an exception escape

And, the main purpose:
One place where failures become user-visible statuses and messages.
"""


import functools
import inspect
import traceback
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from ai_starter.api.types import ErrorEnvelope, MethodNotAllowedEnvelope, SuccessEnvelope
from ai_starter.core.config import settings
from ai_starter.core.errors import (
    DownstreamUnavailableError,
    ErrorKind,
    ValidationError,
    pydantic_issues,
)
from ai_starter.core.logging import get_logger

log = get_logger("api.responses")

# Legacy message markers, still honoured after the tagged checks
NOT_IMPLEMENTED_MARKER = "not yet implemented"
CONNECTION_REFUSED_MARKER = "ECONNREFUSED"


def _is_dev(development: Optional[bool]) -> bool:
    return settings.is_development if development is None else development


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _encode(value: Any) -> Any:
    try:
        return jsonable_encoder(value)
    except (TypeError, ValueError):
        return repr(value)


# ----------------------------
# Envelope builders (pure)
# ----------------------------
def success_body(data: Any) -> Dict[str, Any]:
    return SuccessEnvelope(data=_encode(data)).model_dump()


def error_body(
    message: str,
    details: Any = None,
    *,
    issues: Optional[List[Dict[str, Any]]] = None,
    development: Optional[bool] = None,
    timestamp: Optional[str] = None,
) -> Dict[str, Any]:
    body = ErrorEnvelope(
        error=message,
        details=_encode(details) if (_is_dev(development) and details) else None,
        timestamp=timestamp or _now(),
    ).model_dump(exclude_none=True)
    if issues is not None:
        # field-level problems are client-facing, so they are kept in every mode
        body["issues"] = _encode(issues)
    return body


def method_not_allowed_body(allowed_methods: List[str]) -> Dict[str, Any]:
    return MethodNotAllowedEnvelope(allowedMethods=list(allowed_methods)).model_dump()


# ----------------------------
# Response helpers
# ----------------------------
def api_success(data: Any, status: int = 200) -> JSONResponse:
    return JSONResponse(success_body(data), status_code=status)


def api_error(
    message: str,
    status: int = 500,
    details: Any = None,
    *,
    issues: Optional[List[Dict[str, Any]]] = None,
    development: Optional[bool] = None,
) -> JSONResponse:
    dev = _is_dev(development)
    body = error_body(message, details, issues=issues, development=dev)
    if dev:
        log.error(f"[API Error {status}]: {message} {details!r}")
    return JSONResponse(body, status_code=status)


def api_validation_error(error: Any, *, development: Optional[bool] = None) -> JSONResponse:
    issues = error.issues if isinstance(error, ValidationError) else pydantic_issues(error)
    return api_error("Validation failed", 400, issues, issues=issues, development=development)


def api_not_found(resource: str = "Resource") -> JSONResponse:
    return api_error(f"{resource} not found", 404)


def api_unauthorized(message: str = "Unauthorized") -> JSONResponse:
    return api_error(message, 401)


def api_forbidden(message: str = "Forbidden") -> JSONResponse:
    return api_error(message, 403)


def api_method_not_allowed(allowed_methods: List[str]) -> JSONResponse:
    return JSONResponse(
        method_not_allowed_body(allowed_methods),
        status_code=405,
        headers={"Allow": ", ".join(allowed_methods)},
    )


# ----------------------------
# Classification
# ----------------------------
@dataclass(frozen=True)
class ClassifiedError:
    kind: ErrorKind
    status_code: int
    message: str
    details: Any = None
    issues: Optional[List[Dict[str, Any]]] = None
    allowed_methods: Optional[List[str]] = None


def _safe_message(exc: Any) -> str:
    try:
        return str(exc)
    except Exception:
        return f"<unprintable {type(exc).__name__}>"


def _cause_chain(exc: BaseException, limit: int = 10) -> Iterator[BaseException]:
    seen = set()
    cur: Optional[BaseException] = exc
    while cur is not None and id(cur) not in seen and len(seen) < limit:
        seen.add(id(cur))
        yield cur
        cur = cur.__cause__


def _format_traceback(exc: BaseException) -> str:
    try:
        return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    except Exception:
        return _safe_message(exc)


def classify_error(exc: Any, *, development: Optional[bool] = None) -> ClassifiedError:
    """
    First match wins:
    validation (400) -> not implemented (501) -> downstream unavailable (503)
    -> HTTP exceptions keep their status -> everything else (500).
    Accepts any value; non-exceptions become a generic 500.
    """
    dev = _is_dev(development)

    if not isinstance(exc, BaseException):
        return ClassifiedError(ErrorKind.UNKNOWN, 500, "Unknown error occurred")

    if isinstance(exc, ValidationError):
        return ClassifiedError(ErrorKind.VALIDATION, 400, "Validation failed", exc.issues, issues=exc.issues)
    if isinstance(exc, (PydanticValidationError, RequestValidationError)):
        issues = pydantic_issues(exc)
        return ClassifiedError(ErrorKind.VALIDATION, 400, "Validation failed", issues, issues=issues)

    chain = list(_cause_chain(exc))
    messages = [_safe_message(e) for e in chain]

    if any(isinstance(e, NotImplementedError) for e in chain) or any(NOT_IMPLEMENTED_MARKER in m for m in messages):
        return ClassifiedError(ErrorKind.NOT_IMPLEMENTED, 501, "Feature not implemented", messages[0])

    tagged = next((e for e in chain if isinstance(e, DownstreamUnavailableError)), None)
    if tagged is not None:
        return ClassifiedError(ErrorKind.DOWNSTREAM_UNAVAILABLE, 503, _safe_message(tagged))
    if any(isinstance(e, ConnectionRefusedError) for e in chain) or any(CONNECTION_REFUSED_MARKER in m for m in messages):
        return ClassifiedError(ErrorKind.DOWNSTREAM_UNAVAILABLE, 503, "Database connection failed")

    if isinstance(exc, StarletteHTTPException):
        allowed = None
        if exc.status_code == 405:
            allow = (exc.headers or {}).get("Allow", "")
            allowed = [m.strip() for m in allow.split(",") if m.strip()]
        return ClassifiedError(ErrorKind.UNKNOWN, exc.status_code, _safe_message(exc.detail), allowed_methods=allowed)

    kind = getattr(exc, "kind", ErrorKind.UNKNOWN)
    if not isinstance(kind, ErrorKind):
        kind = ErrorKind.UNKNOWN
    return ClassifiedError(
        kind,
        500,
        messages[0] if dev else "Internal server error",
        _format_traceback(exc) if dev else None,
    )


def error_response(exc: Any, *, development: Optional[bool] = None) -> JSONResponse:
    try:
        c = classify_error(exc, development=development)
        if c.allowed_methods is not None:
            return api_method_not_allowed(c.allowed_methods)
        return api_error(c.message, c.status_code, c.details, issues=c.issues, development=development)
    except Exception:
        log.exception("Error classification failed")
        return JSONResponse(error_body("Unknown error occurred", development=False), status_code=500)


def with_error_handling(handler):
    """
    Wrap a route handler so any exception becomes an error envelope.
    Results pass through unchanged; the signature is preserved for FastAPI.
    """

    @functools.wraps(handler)
    async def wrapper(*args, **kwargs):
        try:
            result = handler(*args, **kwargs)
            if inspect.isawaitable(result):
                result = await result
            return result
        except Exception as exc:
            return error_response(exc)

    return wrapper
