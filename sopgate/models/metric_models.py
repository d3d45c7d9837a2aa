"""
Scoring & Gating Data Models — Metric definitions, deduction schedules, gating policy.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from sopgate.models.rule_models import Category, Severity


class PassPolicy(str, Enum):
    """How a category decides its own `passed` flag."""

    NO_CRITICAL = "no_critical"
    NO_BLOCKING = "no_blocking"  # no critical and no high violations
    NO_VIOLATIONS = "no_violations"
    MIN_SCORE = "min_score"
    ALWAYS = "always"


class DeductionSchedule(BaseModel):
    """Per-category penalty constants applied to a starting score of 1.0."""

    model_config = ConfigDict(frozen=True)

    critical: float = Field(default=0.0, ge=0.0, description="Penalty per critical violation")
    high: float = Field(default=0.0, ge=0.0, description="Penalty per high violation")
    medium: float = Field(default=0.0, ge=0.0, description="Penalty per medium violation")
    warning: float = Field(default=0.0, ge=0.0, description="Penalty per warning")
    pass_policy: PassPolicy = PassPolicy.NO_CRITICAL
    pass_score: float = Field(
        default=0.0, ge=0.0, le=1.0, description="Minimum score under PassPolicy.MIN_SCORE"
    )

    def penalty_for(self, severity: Severity) -> float:
        return {
            Severity.CRITICAL: self.critical,
            Severity.HIGH: self.high,
            Severity.MEDIUM: self.medium,
        }[severity]


class Thresholds(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    pass_: float = Field(..., alias="pass", ge=0.0, le=1.0)
    warn: float = Field(..., ge=0.0, le=1.0)
    fail: float = Field(..., ge=0.0, le=1.0)


class MetricDefinition(BaseModel):
    """Static weighting and blocking configuration for one category."""

    model_config = ConfigDict(frozen=True)

    name: str
    display_name: str
    description: str = ""
    category: Category
    sop: str
    weight: float = Field(..., gt=0.0)
    block_on_fail: bool = False
    thresholds: Thresholds


class GatingConfig(BaseModel):
    """Pure gating policy. Alternate profiles are alternate instances."""

    model_config = ConfigDict(frozen=True)

    minimum_score: float = Field(default=0.85, ge=0.0, le=1.0)
    block_on_blockers: bool = True
    fail_on_warnings: bool = False
    max_blockers: int = Field(default=0, ge=0)
    max_warnings: int = Field(default=50, ge=0)
    blocking_severities: frozenset[Severity] = Field(
        default=frozenset({Severity.CRITICAL, Severity.HIGH}),
        description="Violation severities that count as blockers",
    )


class GatingDecision(BaseModel):
    passed: bool
    reason: str | None = None
    total_score: float = Field(..., ge=0.0, le=1.0)
    blocker_count: int = 0
    warning_count: int = 0


class MetricSummary(BaseModel):
    """One row of the metrics breakdown in a validation summary."""

    name: str
    category: Category
    sop: str
    score: float
    passed: bool
    block_on_fail: bool
    violation_count: int
    warning_count: int
