# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Request and response bodies of the analysis API."""

from dataclasses import asdict
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from hapf_common.analysis import DependencyGraph, Diagnostic, RunMetrics, SimulationResult


class DocumentRequest(BaseModel):
    source: str
    active_module_hint: Optional[str] = None
    passes: Optional[int] = Field(default=None, ge=1)


class DiagnosticModel(BaseModel):
    start_line: int
    start_col: int
    end_line: int
    end_col: int
    message: str
    severity: str
    code: str
    suggestion: Optional[str] = None

    @classmethod
    def from_diagnostic(cls, diagnostic: Diagnostic) -> "DiagnosticModel":
        return cls(**diagnostic.to_dict())


class MarkerModel(BaseModel):
    """Editor marker in the editor's own field naming."""

    startLineNumber: int
    startColumn: int
    endLineNumber: int
    endColumn: int
    message: str
    severity: int

    @classmethod
    def from_diagnostic(cls, diagnostic: Diagnostic) -> "MarkerModel":
        return cls(**diagnostic.to_marker())


class PositionModel(BaseModel):
    x: int
    y: int


class NodeModel(BaseModel):
    id: str
    kind: str
    label: str
    rank: int
    position: PositionModel
    active: bool


class EdgeModel(BaseModel):
    id: str
    source: str
    target: str
    kind: str


class GraphModel(BaseModel):
    nodes: List[NodeModel]
    edges: List[EdgeModel]

    @classmethod
    def from_graph(cls, graph: DependencyGraph) -> "GraphModel":
        return cls(**graph.to_dict())


class DiagnosticsResponse(BaseModel):
    diagnostics: List[DiagnosticModel]
    markers: List[MarkerModel]

    @classmethod
    def from_diagnostics(cls, diagnostics: List[Diagnostic]) -> "DiagnosticsResponse":
        return cls(
            diagnostics=[DiagnosticModel.from_diagnostic(d) for d in diagnostics],
            markers=[MarkerModel.from_diagnostic(d) for d in diagnostics],
        )


class AnalyzeResponse(BaseModel):
    diagnostics: List[DiagnosticModel]
    markers: List[MarkerModel]
    graph: GraphModel


class StepModel(BaseModel):
    module: str
    message: str = ""
    data_preview: Optional[str] = None


class UsageModel(BaseModel):
    prompt_tokens: int = Field(default=0, ge=0)
    completion_tokens: int = Field(default=0, ge=0)
    total_tokens: int = Field(default=0, ge=0)


class RuntimeMarkersRequest(BaseModel):
    """A simulator trace replayed against its source document."""

    source: str
    steps: List[StepModel] = Field(default_factory=list)
    output: Any = None
    usage: Optional[UsageModel] = None
    latency_ms: float = Field(default=0, ge=0)
    failed_module: Optional[str] = None

    def to_simulation_result(self) -> SimulationResult:
        return SimulationResult.from_dict(self.model_dump(include={"steps", "output", "usage"}))


class RunMetricsModel(BaseModel):
    total_latency_ms: int
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int
    estimated_cost: float

    @classmethod
    def from_run_metrics(cls, metrics: RunMetrics) -> "RunMetricsModel":
        return cls(**asdict(metrics))


class RuntimeMarkersResponse(BaseModel):
    active_modules: List[str]
    markers: List[MarkerModel]
    metrics: RunMetricsModel


class HealthDependencyModel(BaseModel):
    name: str
    status: str
    latency_ms: float
    detail: str = ""


class HealthReportModel(BaseModel):
    status: str
    dependencies: List[HealthDependencyModel]
