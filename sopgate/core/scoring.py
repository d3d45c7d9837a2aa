"""
Category Scoring — Deduction schedules and per-category pass decisions.

score = clamp(1.0 - sum(severity penalty per violation) - warning penalty * warnings)

Each category keeps its own penalty constants and pass policy. Suggestions
never affect the score.
"""

from __future__ import annotations

from typing import Sequence

from sopgate.models.metric_models import DeductionSchedule, PassPolicy
from sopgate.models.rule_models import Category, RuleViolation, RuleWarning, Severity

GENERAL_PRACTICES_DEDUCTIONS = DeductionSchedule(
    critical=0.3, high=0.1, medium=0.0, warning=0.02, pass_policy=PassPolicy.NO_CRITICAL
)

DEFAULT_DEDUCTIONS: dict[Category, DeductionSchedule] = {
    Category.SUPABASE_AUTH: DeductionSchedule(
        critical=0.2, high=0.2, medium=0.2, pass_policy=PassPolicy.NO_CRITICAL
    ),
    Category.TENANT_ISOLATION: DeductionSchedule(
        critical=0.3, high=0.15, pass_policy=PassPolicy.NO_BLOCKING
    ),
    Category.AUDIT_LOGGING: DeductionSchedule(warning=0.1, pass_policy=PassPolicy.ALWAYS),
    Category.PRISMA_QUERIES: DeductionSchedule(
        critical=0.3, high=0.15, medium=0.05, pass_policy=PassPolicy.NO_BLOCKING
    ),
    Category.TRANSACTIONS: DeductionSchedule(
        critical=0.2, high=0.2, medium=0.2, pass_policy=PassPolicy.NO_VIOLATIONS
    ),
    Category.CODE_SAFETY: DeductionSchedule(
        critical=0.15, high=0.15, medium=0.15, pass_policy=PassPolicy.NO_CRITICAL
    ),
    Category.EXCEPTION_TYPES: DeductionSchedule(
        critical=0.3, high=0.15, medium=0.15, pass_policy=PassPolicy.MIN_SCORE, pass_score=0.9
    ),
    Category.LOGGING: DeductionSchedule(critical=0.3, pass_policy=PassPolicy.NO_CRITICAL),
    Category.EXTERNAL_SERVICES: DeductionSchedule(
        critical=0.2, high=0.2, medium=0.2, warning=0.05, pass_policy=PassPolicy.NO_VIOLATIONS
    ),
    Category.JOB_PROCESSING: DeductionSchedule(
        critical=0.2, high=0.2, medium=0.2, warning=0.1, pass_policy=PassPolicy.NO_VIOLATIONS
    ),
    Category.API_DESIGN: DeductionSchedule(critical=0.25, pass_policy=PassPolicy.NO_CRITICAL),
    Category.CODE_QUALITY: DeductionSchedule(
        critical=0.1, high=0.1, medium=0.1, warning=0.02, pass_policy=PassPolicy.NO_VIOLATIONS
    ),
    Category.SECURITY: GENERAL_PRACTICES_DEDUCTIONS,
    Category.ERROR_HANDLING: GENERAL_PRACTICES_DEDUCTIONS,
    Category.PERFORMANCE: GENERAL_PRACTICES_DEDUCTIONS,
    Category.RELIABILITY: GENERAL_PRACTICES_DEDUCTIONS,
    Category.MAINTAINABILITY: GENERAL_PRACTICES_DEDUCTIONS,
}


def clamp_score(value: float) -> float:
    return max(0.0, min(1.0, value))


def score_category(
    violations: Sequence[RuleViolation],
    warnings: Sequence[RuleWarning],
    schedule: DeductionSchedule,
) -> float:
    penalty = sum(schedule.penalty_for(v.severity) for v in violations)
    penalty += schedule.warning * len(warnings)
    return clamp_score(1.0 - penalty)


def category_passed(
    score: float,
    violations: Sequence[RuleViolation],
    schedule: DeductionSchedule,
) -> bool:
    policy = schedule.pass_policy
    if policy is PassPolicy.ALWAYS:
        return True
    if policy is PassPolicy.NO_VIOLATIONS:
        return not violations
    if policy is PassPolicy.MIN_SCORE:
        return score >= schedule.pass_score
    if policy is PassPolicy.NO_BLOCKING:
        return not any(v.severity in (Severity.CRITICAL, Severity.HIGH) for v in violations)
    return not any(v.severity is Severity.CRITICAL for v in violations)
