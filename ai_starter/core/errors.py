"""
Error taxonomy shared by tasks, the LLM client and the API layer.
What it defines:
- ErrorKind tags set at the point of failure
- AppError base with the HTTP status each kind maps to
- Validation / downstream / generation failures

And, the main purpose:
Let the response layer switch on a tag instead of reading messages.
"""


from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple


_NO_DATA = object()


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    NOT_IMPLEMENTED = "not_implemented"
    DOWNSTREAM_UNAVAILABLE = "downstream_unavailable"
    GENERATION = "generation"
    UNKNOWN = "unknown"


class AppError(Exception):
    kind: ErrorKind = ErrorKind.UNKNOWN
    status_code: int = 500


class ValidationError(AppError):
    """Client input did not match a schema. `issues` has one entry per violated field."""

    kind = ErrorKind.VALIDATION
    status_code = 400

    def __init__(self, issues: List[Dict[str, Any]], message: str = "Validation failed"):
        super().__init__(message)
        self.issues = issues

    @classmethod
    def from_pydantic(cls, exc, data: Any = _NO_DATA) -> "ValidationError":
        return cls(pydantic_issues(exc, data))


class DownstreamUnavailableError(AppError):
    kind = ErrorKind.DOWNSTREAM_UNAVAILABLE
    status_code = 503

    def __init__(self, message: str = "Downstream service unavailable", service: Optional[str] = None):
        super().__init__(message)
        self.service = service


class GenerationError(AppError):
    """Model call or task failed and no fallback was available."""

    kind = ErrorKind.GENERATION
    status_code = 500


def _field_path(loc: Tuple[Any, ...], data: Any, missing: bool = False) -> Tuple[List[Any], bool]:
    # Walk the input alongside `loc`. Union members add a tag segment
    # ("int", "bool", "ModelA", ...) that never indexes into the data;
    # everything below a tag is reported on the union's own field.
    path: List[Any] = []
    node = data
    for i, seg in enumerate(loc):
        if isinstance(node, Mapping) and seg in node:
            path.append(seg)
            node = node[seg]
        elif isinstance(node, (list, tuple)) and isinstance(seg, int):
            path.append(seg)
            node = node[seg] if -len(node) <= seg < len(node) else None
        elif missing and i == len(loc) - 1:
            path.append(seg)
        elif isinstance(seg, str):
            return path, True
        else:
            path.append(seg)
            node = None
    return path, False


def _sibling_paths(errors: List[Dict[str, Any]]) -> List[Tuple[List[Any], bool]]:
    # No input to walk: a trailing union tag shows up as several errors that
    # share a parent loc and the same input value. Top-level fields are never
    # union tags, so a tag needs a parent.
    def parent(err):
        loc = tuple(err.get("loc", ()))
        if len(loc) < 2 or not isinstance(loc[-1], str) or err.get("type") in ("missing", "extra_forbidden"):
            return None
        return loc[:-1], repr(err.get("input"))

    counts: Dict[Any, int] = {}
    for err in errors:
        key = parent(err)
        if key is not None:
            counts[key] = counts.get(key, 0) + 1

    paths = []
    for err in errors:
        key = parent(err)
        loc = list(err.get("loc", ()))
        if key is not None and counts[key] > 1:
            paths.append((loc[:-1], True))
        else:
            paths.append((loc, False))
    return paths


def _error_paths(exc, data: Any) -> List[Tuple[List[Any], bool]]:
    errors = exc.errors()
    if data is not _NO_DATA:
        return [_field_path(tuple(e.get("loc", ())), data, e.get("type") == "missing") for e in errors]

    body = getattr(exc, "body", None)  # fastapi RequestValidationError keeps the parsed body
    if body is None:
        return _sibling_paths(errors)

    paths = []
    for e in errors:
        loc = tuple(e.get("loc", ()))
        if loc[:1] == ("body",):
            path, union = _field_path(loc[1:], body, e.get("type") == "missing")
            paths.append((["body"] + path, union))
        else:
            paths.append((list(loc), False))
    return paths


def pydantic_issues(exc, data: Any = _NO_DATA) -> List[Dict[str, Any]]:
    """
    One issue per violated field, for pydantic.ValidationError and fastapi
    RequestValidationError. Pass the validated input as `data` so union-member
    segments can be told apart from real keys. A union field that failed gets a
    single issue with code "invalid_union" and the member messages joined.
    """
    grouped: Dict[Tuple[str, ...], Dict[str, Any]] = {}
    for err, (path, union) in zip(exc.errors(), _error_paths(exc, data)):
        key = tuple(str(p) for p in path)
        msg = err.get("msg", "")
        code = "invalid_union" if union else err.get("type", "")
        issue = grouped.get(key)
        if issue is None:
            grouped[key] = {"path": list(key), "message": msg, "code": code}
        elif msg not in issue["message"].split("; "):
            issue["message"] = f"{issue['message']}; {msg}"
    return list(grouped.values())
