"""Middleware scoping the audit actor to a single request."""

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from .audit import clear_current_user


class AuditContextMiddleware(BaseHTTPMiddleware):
    """Start every request with no audit actor.

    The authentication dependency sets the actor once the bearer token is
    verified; requests that never authenticate (login, refresh) must not
    inherit one.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        clear_current_user()
        try:
            return await call_next(request)
        finally:
            clear_current_user()
