# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

import uuid
from unittest.mock import MagicMock, patch

import httpx
import pytest
from fastapi import FastAPI
from fastapi.responses import JSONResponse

from hapf_core.logconfig import request_duration_var, request_endpoint_var, request_id_var
from hapf_server.logging_middleware import RequestContextMiddleware

TRACE_ID = 0xABCDEF1234567890ABCDEF1234567890


def _mock_span(trace_id: int) -> MagicMock:
    span = MagicMock()
    span.get_span_context.return_value = MagicMock(trace_id=trace_id)
    return span


@pytest.fixture
def captured():
    return {}


@pytest.fixture
def context_app(captured):
    """A bare app whose handlers record the logging context they observe."""
    app = FastAPI()
    app.add_middleware(RequestContextMiddleware)

    @app.post("/v0/documents/{name}")
    async def save(name: str):
        captured["rid"] = request_id_var.get()
        captured["endpoint"] = request_endpoint_var.get()
        return JSONResponse({"name": name})

    return app


async def _request(app, method, path, headers=None):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        return await client.request(method, path, headers=headers)


# ---------------------------------------------------------------------------
# Request id resolution
# ---------------------------------------------------------------------------


@pytest.mark.anyio
async def test_generates_uuid_without_trace(context_app, captured):
    with patch(
        "hapf_server.logging_middleware.trace.get_current_span", return_value=_mock_span(0)
    ):
        resp = await _request(context_app, "POST", "/v0/documents/a")

    rid = resp.headers["x-request-id"]
    assert str(uuid.UUID(rid)) == rid
    assert captured["rid"] == rid


@pytest.mark.anyio
async def test_uses_trace_id_when_span_active(context_app):
    with patch(
        "hapf_server.logging_middleware.trace.get_current_span",
        return_value=_mock_span(TRACE_ID),
    ):
        resp = await _request(context_app, "POST", "/v0/documents/a")

    assert resp.headers["x-request-id"] == format(TRACE_ID, "032x")


@pytest.mark.anyio
async def test_client_request_id_wins_over_trace(context_app, captured):
    with patch(
        "hapf_server.logging_middleware.trace.get_current_span",
        return_value=_mock_span(TRACE_ID),
    ):
        resp = await _request(
            context_app, "POST", "/v0/documents/a", headers={"X-Request-ID": "editor-42"}
        )

    assert resp.headers["x-request-id"] == "editor-42"
    assert captured["rid"] == "editor-42"


@pytest.mark.anyio
async def test_malformed_client_request_id_ignored(context_app):
    with patch(
        "hapf_server.logging_middleware.trace.get_current_span", return_value=_mock_span(0)
    ):
        resp = await _request(
            context_app, "POST", "/v0/documents/a", headers={"X-Request-ID": "bad id; drop"}
        )

    rid = resp.headers["x-request-id"]
    assert rid != "bad id; drop"
    assert str(uuid.UUID(rid)) == rid


# ---------------------------------------------------------------------------
# Endpoint and duration
# ---------------------------------------------------------------------------


@pytest.mark.anyio
async def test_handler_sees_raw_path(context_app, captured):
    await _request(context_app, "POST", "/v0/documents/report")
    assert captured["endpoint"] == "/v0/documents/report"


@pytest.mark.anyio
async def test_endpoint_narrowed_to_route_template(context_app):
    await _request(context_app, "POST", "/v0/documents/report")
    assert request_endpoint_var.get() == "/v0/documents/{name}"


@pytest.mark.anyio
async def test_unmatched_path_keeps_raw_endpoint(context_app):
    resp = await _request(context_app, "GET", "/nowhere")
    assert resp.status_code == 404
    assert request_endpoint_var.get() == "/nowhere"


@pytest.mark.anyio
async def test_duration_recorded(context_app):
    await _request(context_app, "POST", "/v0/documents/a")
    duration = request_duration_var.get()
    assert duration != ""
    assert float(duration) >= 0
