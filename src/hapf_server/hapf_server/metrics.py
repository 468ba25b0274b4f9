# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Prometheus metrics for the analysis API.

All series carry the ``hapf_`` prefix. Request series are labelled by route
template so that path parameters cannot blow up label cardinality.
"""

import logging
import time
from typing import Iterable, Optional

from fastapi import Request
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from hapf_common.analysis import DependencyGraph, Diagnostic

LOGGER = logging.getLogger(__name__)

# Probes and the scrape itself are not counted.
_SKIP_PATHS = frozenset(("/metrics", "/healthz/live", "/healthz/ready"))
UNMATCHED_ENDPOINT = "<unmatched>"


REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
    namespace="hapf",
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    namespace="hapf",
    buckets=(0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

ANALYSIS_DURATION = Histogram(
    "analysis_duration_seconds",
    "Time spent analysing one document",
    ["operation"],
    namespace="hapf",
    buckets=(0.0005, 0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0),
)

DIAGNOSTICS_EMITTED = Counter(
    "diagnostics_emitted_total",
    "Diagnostics returned to clients",
    ["code"],
    namespace="hapf",
)

GRAPH_NODES = Histogram(
    "graph_nodes",
    "Nodes per extracted dependency graph",
    namespace="hapf",
    buckets=(1, 2, 5, 10, 20, 50, 100, 200, 500),
)


def endpoint_label(request: Request) -> str:
    """Return the matched route template (``/v0/graph``), never the raw path."""
    route = request.scope.get("route")
    path = getattr(route, "path", None)
    return path if path else UNMATCHED_ENDPOINT


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Middleware that records request count and duration as Prometheus metrics."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path in _SKIP_PATHS:
            return await call_next(request)

        method = request.method
        start = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start

        # the router stores the matched route in the shared scope
        endpoint = endpoint_label(request)
        REQUEST_COUNT.labels(
            method=method, endpoint=endpoint, status_code=response.status_code
        ).inc()
        REQUEST_DURATION.labels(method=method, endpoint=endpoint).observe(duration)

        return response


def record_analysis(
    operation: str,
    duration: float,
    diagnostics: Optional[Iterable[Diagnostic]] = None,
    graph: Optional[DependencyGraph] = None,
):
    """Record one analysis run: its duration, emitted diagnostics and graph size."""
    ANALYSIS_DURATION.labels(operation=operation).observe(duration)
    for diagnostic in diagnostics or []:
        DIAGNOSTICS_EMITTED.labels(code=diagnostic.code.value).inc()
    if graph is not None:
        GRAPH_NODES.observe(len(graph.nodes))


async def metrics_endpoint() -> Response:
    """Handler for the /metrics endpoint; returns Prometheus exposition format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
