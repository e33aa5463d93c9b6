"""Bind the authenticated caller to the request context"""
import logging
from collections.abc import Callable

from fastapi import Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from src.infrastructure.config.settings import get_settings
from src.shared.context import clear_current_user, set_current_user
from src.shared.enums import ActorType

logger = logging.getLogger(__name__)


class RequestIdentityMiddleware(BaseHTTPMiddleware):
    """
    Copy the user id set by the upstream authentication gateway into the
    request context.

    The header is trusted as-is; this service never authenticates callers.
    Requests without the header run with no current user and are rejected
    with 401 by the access endpoints.
    """

    def __init__(self, app, header_name: str | None = None) -> None:
        super().__init__(app)
        self.header_name = header_name or get_settings().identity_header

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        user_id = (request.headers.get(self.header_name) or "").strip() or None
        ip_address = request.client.host if request.client else None
        if user_id:
            set_current_user(user_id, ActorType.USER, ip_address=ip_address)
        else:
            logger.debug(f"No {self.header_name} header on {request.method} {request.url.path}")
            clear_current_user()
        try:
            return await call_next(request)
        finally:
            clear_current_user()
