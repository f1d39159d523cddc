"""Middleware configuration for FastAPI application."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
import uuid

from starlette.datastructures import MutableHeaders

from identity_directory.core.settings import get_logging_settings
from identity_directory.infra.logging.context import clear_log_context, set_log_context

if TYPE_CHECKING:
    from fastapi import FastAPI
    from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)


class RequestIDMiddleware:
    """Tag every HTTP request with a request id.

    The id comes from the ``X-Request-ID`` header or is generated. It is
    stored in ``request.state.request_id``, bound into the logging context for
    the duration of the request and echoed in the response headers.

    Usage:
        app = FastAPI()
        app.add_middleware(RequestIDMiddleware)
    """

    header_name = "x-request-id"

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = self._extract(scope) or str(uuid.uuid4())
        scope.setdefault("state", {})["request_id"] = request_id
        set_log_context(request_id=request_id)

        async def send_with_header(message: Message) -> None:
            if message["type"] == "http.response.start":
                MutableHeaders(scope=message).append(self.header_name, request_id)
            await send(message)

        try:
            await self.app(scope, receive, send_with_header)
        finally:
            clear_log_context()

    def _extract(self, scope: Scope) -> str | None:
        for name, value in scope.get("headers", []):
            if name == self.header_name.encode("latin-1"):
                return value.decode("latin-1").strip() or None
        return None


def configure_middleware(app: FastAPI) -> None:
    """Configure middleware for the application.

    Args:
        app: FastAPI application instance.
    """
    if get_logging_settings().include_request_id:
        app.add_middleware(RequestIDMiddleware)
        logger.debug("Request ID middleware enabled")


__all__ = ["RequestIDMiddleware", "configure_middleware"]
