"""
Request authentication.
What it does:
- Matches public routes by regex
- Bypasses auth for local browser testing (development only)
- Requires a bearer token everywhere else

And, the main purpose:
Keep every non-public route behind a token.
"""


import re
import secrets
from typing import Callable, Iterable

from fastapi import Request

from ai_starter.api.responses import api_unauthorized
from ai_starter.core.config import settings
from ai_starter.core.logging import get_logger

log = get_logger("auth")


def create_route_matcher(patterns: Iterable[str]) -> Callable[[str], bool]:
    compiled = [re.compile(f"^{p}$") for p in patterns]

    def matches(path: str) -> bool:
        return any(c.match(path) for c in compiled)

    return matches


def _bearer_token(request: Request) -> str:
    header = request.headers.get("authorization", "")
    scheme, _, token = header.partition(" ")
    return token.strip() if scheme.lower() == "bearer" else ""


is_public_route = create_route_matcher(settings.PUBLIC_ROUTES)


async def auth_middleware(request: Request, call_next):
    path = request.url.path
    is_public = is_public_route(path)
    log.debug(f"[MIDDLEWARE] {request.method} {path} - isPublic: {is_public}")

    if settings.is_development and settings.AUTH_BYPASS:
        log.debug(f"[MIDDLEWARE] Bypassing auth for testing: {path}")
        return await call_next(request)

    if not is_public:
        token = _bearer_token(request)
        if not settings.API_TOKEN or not token or not secrets.compare_digest(token.encode(), settings.API_TOKEN.encode()):
            return api_unauthorized()

    return await call_next(request)
