# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Per-request logging context for the analysis API."""

import logging
import re
import time
import uuid

from fastapi import Request
from opentelemetry import trace
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from hapf_core.logconfig import RequestContext, request_duration_var, request_endpoint_var

LOGGER = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
# Client-supplied ids are echoed back and logged, so keep them short and inert.
_CLIENT_ID_RE = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


def resolve_request_id(request: Request) -> str:
    """Pick the id logged for ``request``.

    A well-formed ``X-Request-ID`` from the client wins, then the trace id of
    the active OpenTelemetry span, then a fresh UUID.
    """
    supplied = request.headers.get(REQUEST_ID_HEADER, "")
    if _CLIENT_ID_RE.match(supplied):
        return supplied
    span_ctx = trace.get_current_span().get_span_context()
    if span_ctx and span_ctx.trace_id:
        return format(span_ctx.trace_id, "032x")
    return str(uuid.uuid4())


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Fill the logging context variables around each request.

    ``endpoint`` starts as the raw path and is narrowed to the matched route
    template once routing has happened, so the completion line groups the
    same way the request metrics do.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = resolve_request_id(request)
        RequestContext.set(request_id, endpoint=request.url.path)

        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        route = request.scope.get("route")
        if route is not None:
            request_endpoint_var.set(route.path)
        request_duration_var.set(f"{elapsed_ms:.2f}")
        LOGGER.debug(f"{request.method} {request.url.path} -> {response.status_code}")

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
