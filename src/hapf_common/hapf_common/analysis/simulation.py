# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Interface to an external pipeline simulator and helpers for replaying its trace.

The simulator itself (a hosted model that fabricates an execution trace) lives
outside this package; only the shapes it exchanges and the analysis derived
from a trace are defined here.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .block_scanner import code_mask
from .diagnostics import Diagnostic, DiagnosticCode, Severity
from .graph_builder import MODULE_PREFIX
from .line_tracker import LineIndex


@dataclass
class SimulationStep:
    module: str
    message: str
    data_preview: Optional[str] = None

    def log_line(self) -> str:
        preview = f" [Data: {self.data_preview}]" if self.data_preview else ""
        return f"{self.message}{preview}"


@dataclass
class TokenUsage:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


@dataclass
class SimulationResult:
    steps: List[SimulationStep] = field(default_factory=list)
    output: Any = None
    usage: Optional[TokenUsage] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SimulationResult":
        steps = [
            SimulationStep(
                module=s["module"],
                message=s.get("message", ""),
                data_preview=s.get("data_preview"),
            )
            for s in data.get("steps") or []
        ]
        usage = data.get("usage")
        return cls(
            steps=steps,
            output=data.get("output"),
            usage=TokenUsage(**usage) if usage else None,
        )


# USD per million tokens of the hosted simulator model
PROMPT_TOKEN_COST = 0.075
COMPLETION_TOKEN_COST = 0.30


@dataclass(frozen=True)
class RunMetrics:
    total_latency_ms: int
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int
    estimated_cost: float


def run_metrics(result: SimulationResult, latency_ms: float) -> RunMetrics:
    """Summarise one simulated run: wall-clock latency, token counts and cost.

    A trace without usage counts as zero tokens.
    """
    usage = result.usage or TokenUsage()
    cost = (
        usage.prompt_tokens * PROMPT_TOKEN_COST + usage.completion_tokens * COMPLETION_TOKEN_COST
    ) / 1_000_000
    return RunMetrics(
        total_latency_ms=round(latency_ms),
        prompt_tokens=usage.prompt_tokens,
        completion_tokens=usage.completion_tokens,
        total_tokens=usage.total_tokens,
        estimated_cost=cost,
    )


class SimulationService(ABC):
    """Collaborator that produces an execution trace for a document."""

    @abstractmethod
    def simulate(self, source: str, input_payload: str) -> SimulationResult:
        raise NotImplementedError


def active_module_hints(result: SimulationResult) -> List[str]:
    """Module names in the order a trace replay highlights them.

    Consecutive repeats collapse into one entry.
    """
    hints: List[str] = []
    for step in result.steps:
        if step.module and (not hints or hints[-1] != step.module):
            hints.append(step.module)
    return hints


def runtime_failure_diagnostics(text: str, failed_module: str) -> List[Diagnostic]:
    """Error markers spanning every line that calls *failed_module*.

    A ``mod-`` node-id prefix on *failed_module* is tolerated.
    """
    name = failed_module
    if name.startswith(MODULE_PREFIX):
        name = name[len(MODULE_PREFIX) :]
    if not name:
        return []

    call_re = re.compile(rf"\brun\s+{re.escape(name)}(?![\w.])")
    mask = code_mask(text)
    index = LineIndex(text)
    diagnostics: List[Diagnostic] = []
    for line in range(1, index.line_count + 1):
        line_start = index.line_start(line)
        line_text = index.line_text(line)
        if not any(mask[line_start + m.start()] for m in call_re.finditer(line_text)):
            continue
        diagnostics.append(
            Diagnostic(
                start_line=line,
                start_col=1,
                end_line=line,
                end_col=len(line_text) + 1,
                message=(
                    f"RUNTIME ERROR: Module '{failed_module}' crashed during execution. "
                    "Check logs for details."
                ),
                severity=Severity.ERROR,
                code=DiagnosticCode.RUNTIME_FAILURE,
            )
        )
    return diagnostics
