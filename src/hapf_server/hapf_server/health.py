# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Health check logic for the HAPF analysis API.

Provides liveness, readiness, and detailed health checks. The service has no
network dependencies; readiness means the configuration loads and the analyzer
produces the expected result for a known document.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List

from pydantic import ValidationError

from hapf_common.analysis import NodeKind, analyze
from hapf_core.cli.config import load_config

LOGGER = logging.getLogger(__name__)

SELF_TEST_DOCUMENT = """\
module "selftest.source" { contract: { output: String } }
module "selftest.sink" { contract: { input: String } runtime: { model: "none" } }
pipeline "selftest" {
  let value = run selftest.source(input.seed)
  run selftest.sink(value)
}
"""


class DependencyStatus(str, Enum):
    healthy = "healthy"
    unhealthy = "unhealthy"


@dataclass
class DependencyHealth:
    name: str
    status: DependencyStatus
    latency_ms: float
    detail: str = ""


@dataclass
class HealthReport:
    status: str  # "healthy", "degraded", or "unhealthy"
    dependencies: List[DependencyHealth] = field(default_factory=list)


def _timed(name: str, check: Callable[[], str]) -> DependencyHealth:
    """Run *check*; an empty return means healthy, otherwise it describes the failure."""
    start = time.perf_counter()
    detail = check()
    latency = (time.perf_counter() - start) * 1000
    status = DependencyStatus.unhealthy if detail else DependencyStatus.healthy
    return DependencyHealth(name=name, status=status, latency_ms=latency, detail=detail)


def _self_test_analyzer() -> str:
    result = analyze(SELF_TEST_DOCUMENT)
    if result.diagnostics:
        return f"self-test produced {len(result.diagnostics)} diagnostic(s)"
    modules = result.graph.nodes_of_kind(NodeKind.MODULE)
    if len(modules) != 2 or len(result.graph.edges) != 3:
        return (
            f"self-test graph has {len(modules)} module node(s) and "
            f"{len(result.graph.edges)} edge(s), expected 2 and 3"
        )
    return ""


def _self_test_config() -> str:
    try:
        load_config()
    except (ValidationError, ValueError, OSError) as exc:
        return str(exc)
    return ""


def check_analyzer() -> DependencyHealth:
    """Analyse a known document and compare against the expected result."""
    return _timed("analyzer", _self_test_analyzer)


def check_config() -> DependencyHealth:
    """Check that the configuration still loads from the environment and config file."""
    return _timed("config", _self_test_config)


def get_detailed_health() -> HealthReport:
    """Run all checks and return a full health report."""
    results = [check_analyzer(), check_config()]
    for result in results:
        if result.status == DependencyStatus.unhealthy:
            LOGGER.warning(f"Health check '{result.name}' failed: {result.detail}")

    unhealthy = [r for r in results if r.status == DependencyStatus.unhealthy]
    analyzer_down = any(
        r.name == "analyzer" and r.status == DependencyStatus.unhealthy for r in results
    )

    if not unhealthy:
        overall = "healthy"
    elif analyzer_down:
        overall = "unhealthy"
    else:
        overall = "degraded"

    return HealthReport(status=overall, dependencies=results)


def get_readiness() -> bool:
    """Check if the service is ready to accept requests.

    Requires the analyzer self-test to pass.
    """
    return check_analyzer().status == DependencyStatus.healthy
