"""Correlation ID middleware for request tracing."""

import uuid
from contextvars import ContextVar

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

CORRELATION_HEADER = "X-Correlation-ID"

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")


def get_correlation_id() -> str:
    """Current request's correlation ID, or "" outside a request."""
    return correlation_id_var.get()


def generate_correlation_id() -> str:
    return uuid.uuid4().hex[:16]


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """
    Tags each request with a correlation ID.

    The ID comes from the X-Correlation-ID request header when the client
    sends one, otherwise a new one is generated. It is echoed back in the
    response headers and picked up by CorrelationIdFilter for log lines.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or generate_correlation_id()
        token = correlation_id_var.set(correlation_id)
        try:
            response = await call_next(request)
            response.headers[CORRELATION_HEADER] = correlation_id
            return response
        finally:
            correlation_id_var.reset(token)
