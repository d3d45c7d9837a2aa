"""
Validation Request/Response Models — API contract and run summary schemas.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from sopgate.models.correction_models import CorrectionLoopResult, Suggestion
from sopgate.models.metric_models import GatingDecision, MetricSummary
from sopgate.models.rule_models import (
    Category,
    RuleDiagnostic,
    RuleViolation,
    RuleWarning,
    ValidationResult,
)


class FileInput(BaseModel):
    """A single file submitted for validation."""

    path: str = Field(..., description="File path (absolute or relative)")
    content: str = Field(..., description="File source content")


class LoadDiagnostic(BaseModel):
    """A file that could not be read or decoded and was skipped."""

    file: str
    error: str


class ValidationSummary(BaseModel):
    """Aggregate outcome of one validation run."""

    run_id: str
    timestamp: str
    files_analyzed: int = 0
    categories: list[Category] = Field(default_factory=list)
    results: list[ValidationResult] = Field(default_factory=list)
    metrics: list[MetricSummary] = Field(default_factory=list)
    total_score: float = Field(default=1.0, ge=0.0, le=1.0)
    passed: bool = True
    reason: str | None = Field(default=None, description="First failing gating check")
    blockers: int = 0
    warnings: int = 0
    suggestions: int = 0
    load_diagnostics: list[LoadDiagnostic] = Field(default_factory=list)
    rule_diagnostics: list[RuleDiagnostic] = Field(default_factory=list)

    @property
    def exit_code(self) -> int:
        return 0 if self.passed else 1


class FileCheckResult(BaseModel):
    """Single-file check with categories auto-selected from the filename."""

    filename: str
    passed: bool
    score: float = Field(..., ge=0.0, le=1.0)
    categories: list[Category] = Field(default_factory=list)
    blockers: list[RuleViolation] = Field(default_factory=list)
    violations: list[RuleViolation] = Field(
        default_factory=list, description="Non-blocking violations"
    )
    warnings: list[RuleWarning] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    fixes: list[Suggestion] = Field(default_factory=list)
    gating: GatingDecision
    summary: str = ""


# ── API request/response bodies ──


class ValidateRequest(BaseModel):
    """Request body for POST /validate."""

    files: list[FileInput] = Field(default_factory=list)
    categories: list[str] | None = None
    rules: list[str] | None = None
    sops: list[str] | None = None
    profile: str | None = Field(
        default=None, description="Gating profile name ('default' or 'strict')"
    )


class CheckRequest(BaseModel):
    """Request body for POST /check."""

    path: str
    content: str
    categories: list[str] | None = None


class CorrectRequest(BaseModel):
    """Request body for POST /correct."""

    files: list[FileInput] = Field(default_factory=list)
    categories: list[str] | None = None
    max_iterations: int | None = Field(default=None, ge=1)
    fix_rules: list[str] | None = None
    skip_rules: list[str] = Field(default_factory=list)


class CorrectResponse(BaseModel):
    message: Literal["correction_complete", "error"] = "correction_complete"
    results: list[CorrectionLoopResult] = Field(default_factory=list)
    suggestions: list[Suggestion] = Field(default_factory=list)
    load_diagnostics: list[LoadDiagnostic] = Field(default_factory=list)


class AuditEntry(BaseModel):
    """Audit metadata for an API run."""

    run_id: str
    action: Literal["validate", "check", "correct"]
    files_analyzed: int
    categories: list[str] = Field(default_factory=list)
    total_score: float | None = None
    passed: bool
    blockers: int = 0
    warnings: int = 0
    fixes_applied: int = 0
    duration_ms: float = 0.0
