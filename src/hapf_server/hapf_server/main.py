# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""HAPF analysis API.

Endpoints are plain ``def`` functions, so FastAPI runs each analysis in its
threadpool; the analysis itself holds no shared state.
"""

import logging
import time
from typing import Optional

from fastapi import APIRouter, FastAPI, HTTPException
from fastapi.responses import JSONResponse

from hapf_common.analysis import (
    active_module_hints,
    analyze,
    build_document_graph,
    check_document,
    run_metrics,
    runtime_failure_diagnostics,
)
from hapf_core.cli.config import HapfConfig, get_config
from hapf_server.health import DependencyStatus, get_detailed_health, get_readiness
from hapf_server.logging_middleware import RequestContextMiddleware
from hapf_server.metrics import PrometheusMiddleware, metrics_endpoint, record_analysis
from hapf_server.models import (
    AnalyzeResponse,
    DiagnosticModel,
    DiagnosticsResponse,
    DocumentRequest,
    GraphModel,
    HealthDependencyModel,
    HealthReportModel,
    MarkerModel,
    RunMetricsModel,
    RuntimeMarkersRequest,
    RuntimeMarkersResponse,
)

LOGGER = logging.getLogger(__name__)


def _check_size(source: str, config: HapfConfig):
    size = len(source.encode("utf-8"))
    if size > config.max_document_bytes:
        raise HTTPException(
            status_code=413,
            detail=(
                f"Document too large: {size} bytes exceeds max_document_bytes "
                f"({config.max_document_bytes})"
            ),
        )


def build_router(config: HapfConfig) -> APIRouter:
    router = APIRouter(prefix="/v0")

    def _passes(request: DocumentRequest) -> Optional[int]:
        return request.passes if request.passes is not None else config.layout_passes

    @router.post("/analyze", response_model=AnalyzeResponse)
    def analyze_document(request: DocumentRequest) -> AnalyzeResponse:
        _check_size(request.source, config)
        start = time.perf_counter()
        result = analyze(
            request.source,
            active_module_hint=request.active_module_hint,
            passes=_passes(request),
            spacing=config.layout_spacing(),
        )
        record_analysis("analyze", time.perf_counter() - start, result.diagnostics, result.graph)
        LOGGER.info(
            f"Analyzed document: {len(result.diagnostics)} diagnostic(s), "
            f"{len(result.graph.nodes)} node(s)"
        )
        return AnalyzeResponse(
            diagnostics=[DiagnosticModel.from_diagnostic(d) for d in result.diagnostics],
            markers=[MarkerModel.from_diagnostic(d) for d in result.diagnostics],
            graph=GraphModel.from_graph(result.graph),
        )

    @router.post("/diagnostics", response_model=DiagnosticsResponse)
    def document_diagnostics(request: DocumentRequest) -> DiagnosticsResponse:
        _check_size(request.source, config)
        start = time.perf_counter()
        diagnostics = check_document(request.source)
        record_analysis("diagnostics", time.perf_counter() - start, diagnostics)
        return DiagnosticsResponse.from_diagnostics(diagnostics)

    @router.post("/graph", response_model=GraphModel)
    def document_graph(request: DocumentRequest) -> GraphModel:
        _check_size(request.source, config)
        start = time.perf_counter()
        graph = build_document_graph(
            request.source,
            active_module_hint=request.active_module_hint,
            passes=_passes(request),
            spacing=config.layout_spacing(),
        )
        record_analysis("graph", time.perf_counter() - start, graph=graph)
        return GraphModel.from_graph(graph)

    @router.post("/runtime-markers", response_model=RuntimeMarkersResponse)
    def runtime_markers(request: RuntimeMarkersRequest) -> RuntimeMarkersResponse:
        _check_size(request.source, config)
        result = request.to_simulation_result()
        for step in result.steps:
            LOGGER.debug(f"[{step.module}] {step.log_line()}")
        hints = active_module_hints(result)
        markers = []
        if request.failed_module:
            markers = runtime_failure_diagnostics(request.source, request.failed_module)
            LOGGER.warning(
                f"Module '{request.failed_module}' failed; {len(markers)} line(s) marked"
            )
        return RuntimeMarkersResponse(
            active_modules=hints,
            markers=[MarkerModel.from_diagnostic(d) for d in markers],
            metrics=RunMetricsModel.from_run_metrics(run_metrics(result, request.latency_ms)),
        )

    return router


def build_health_router() -> APIRouter:
    router = APIRouter(prefix="/healthz")

    @router.get("/live")
    def liveness():
        return {"status": "alive"}

    @router.get("/ready")
    def readiness():
        if get_readiness():
            return {"status": "ready"}
        return JSONResponse({"status": "not ready"}, status_code=503)

    @router.get("", response_model=HealthReportModel)
    def health():
        report = get_detailed_health()
        body = HealthReportModel(
            status=report.status,
            dependencies=[
                HealthDependencyModel(
                    name=d.name,
                    status=DependencyStatus(d.status).value,
                    latency_ms=d.latency_ms,
                    detail=d.detail,
                )
                for d in report.dependencies
            ],
        )
        status_code = 503 if report.status == "unhealthy" else 200
        return JSONResponse(body.model_dump(), status_code=status_code)

    return router


def create_app(config: Optional[HapfConfig] = None) -> FastAPI:
    """Build the API application. Uses the process-wide config when none is given."""
    config = config or get_config()

    app = FastAPI(
        title="HAPF analysis API",
        description="Diagnostics and dependency graphs for HAPF documents.",
    )
    app.state.config = config
    app.add_middleware(PrometheusMiddleware)
    # outermost middleware
    app.add_middleware(RequestContextMiddleware)

    app.include_router(build_router(config))
    app.include_router(build_health_router())
    app.add_api_route("/metrics", metrics_endpoint, methods=["GET"], include_in_schema=False)
    return app
