"""
Metrics & Gating — Metric registry, weighted aggregation, and the pass/fail gate.

Gating checks run in a fixed order and the first failing check is the reason:

    1. blocking violations above max_blockers   (if block_on_blockers)
    2. warnings above max_warnings              (if fail_on_warnings)
    3. any block_on_fail metric below its fail threshold
    4. weighted total below minimum_score

The weighted total only covers categories that were evaluated. With none
evaluated it is 1.0.
"""

from __future__ import annotations

import logging
from typing import Mapping, Sequence

from sopgate.core.errors import ConfigurationError
from sopgate.core.scoring import clamp_score
from sopgate.models.metric_models import (
    GatingConfig,
    GatingDecision,
    MetricDefinition,
    MetricSummary,
    Thresholds,
)
from sopgate.models.rule_models import Category, ValidationResult

logger = logging.getLogger("sopgate.core.metrics")


def _metric(
    name: str,
    display_name: str,
    category: Category,
    sop: str,
    weight: float,
    block_on_fail: bool,
    thresholds: tuple[float, float, float],
    description: str = "",
) -> MetricDefinition:
    pass_, warn, fail = thresholds
    return MetricDefinition(
        name=name,
        display_name=display_name,
        description=description,
        category=category,
        sop=sop,
        weight=weight,
        block_on_fail=block_on_fail,
        thresholds=Thresholds(pass_=pass_, warn=warn, fail=fail),
    )


METRIC_DEFINITIONS: tuple[MetricDefinition, ...] = (
    _metric(
        "supabase-auth-compliance", "Supabase Auth Compliance",
        Category.SUPABASE_AUTH, "2-supabase", 0.15, True, (1.0, 0.95, 0.9),
        "JWKS verification, guard ordering, no token logging",
    ),
    _metric(
        "tenant-isolation", "Tenant Isolation",
        Category.TENANT_ISOLATION, "2-supabase", 0.15, True, (1.0, 0.95, 0.9),
        "Organization scoping and soft-delete filters on reads",
    ),
    _metric(
        "audit-log-coverage", "Audit Log Coverage",
        Category.AUDIT_LOGGING, "2-supabase", 0.05, False, (1.0, 0.8, 0.5),
    ),
    _metric(
        "prisma-query-compliance", "Prisma Query Compliance",
        Category.PRISMA_QUERIES, "3-database-prisma", 0.15, True, (1.0, 0.9, 0.8),
        "Ordering, pagination, N+1 and hard-delete checks",
    ),
    _metric(
        "transaction-compliance", "Transaction Compliance",
        Category.TRANSACTIONS, "3-database-prisma", 0.10, True, (1.0, 0.9, 0.8),
        "Multi-table writes wrapped in $transaction",
    ),
    _metric(
        "code-safety-compliance", "Code Safety Patterns",
        Category.CODE_SAFETY, "4-code-safety-patterns", 0.05, False, (1.0, 0.8, 0.6),
    ),
    _metric(
        "exception-type-compliance", "Exception Type Compliance",
        Category.EXCEPTION_TYPES, "5-error-handling-logging", 0.10, False, (0.95, 0.85, 0.7),
    ),
    _metric(
        "logging-compliance", "Logging Compliance",
        Category.LOGGING, "5-error-handling-logging", 0.05, False, (1.0, 0.8, 0.6),
    ),
    _metric(
        "external-service-compliance", "External Service Patterns",
        Category.EXTERNAL_SERVICES, "6-external-services-timing", 0.05, False, (1.0, 0.7, 0.5),
    ),
    _metric(
        "job-processing-compliance", "Job Processing Compliance",
        Category.JOB_PROCESSING, "7-queue-job-processing", 0.05, False, (1.0, 0.7, 0.5),
    ),
    _metric(
        "api-design-compliance", "API Design Compliance",
        Category.API_DESIGN, "8-api-design-patterns", 0.05, True, (1.0, 0.9, 0.8),
    ),
    _metric(
        "code-quality", "Code Quality",
        Category.CODE_QUALITY, "9-testing-code-quality", 0.05, False, (1.0, 0.7, 0.5),
    ),
    _metric(
        "security-practices", "Security Practices",
        Category.SECURITY, "general-practices", 0.10, True, (1.0, 0.9, 0.7),
    ),
    _metric(
        "error-handling-practices", "Error Handling Practices",
        Category.ERROR_HANDLING, "general-practices", 0.05, False, (1.0, 0.8, 0.6),
    ),
    _metric(
        "performance-practices", "Performance Practices",
        Category.PERFORMANCE, "general-practices", 0.05, False, (1.0, 0.7, 0.5),
    ),
    _metric(
        "reliability-practices", "Reliability Practices",
        Category.RELIABILITY, "general-practices", 0.05, False, (1.0, 0.8, 0.6),
    ),
    _metric(
        "maintainability-practices", "Maintainability Practices",
        Category.MAINTAINABILITY, "general-practices", 0.05, False, (1.0, 0.7, 0.5),
    ),
)

DEFAULT_GATING_CONFIG = GatingConfig()

STRICT_GATING_CONFIG = GatingConfig(
    minimum_score=0.95,
    block_on_blockers=True,
    fail_on_warnings=True,
    max_blockers=0,
    max_warnings=0,
)

GATING_PROFILES: dict[str, GatingConfig] = {
    "default": DEFAULT_GATING_CONFIG,
    "strict": STRICT_GATING_CONFIG,
}


def get_gating_config(name: str) -> GatingConfig:
    if name not in GATING_PROFILES:
        raise ConfigurationError(
            f"Unknown gating profile: {name}. Available: {', '.join(GATING_PROFILES)}"
        )
    return GATING_PROFILES[name]


def metrics_by_category(
    metrics: Sequence[MetricDefinition] = METRIC_DEFINITIONS,
) -> dict[Category, MetricDefinition]:
    return {metric.category: metric for metric in metrics}


def get_metric(category: Category) -> MetricDefinition:
    for metric in METRIC_DEFINITIONS:
        if metric.category == category:
            return metric
    raise ConfigurationError(f"No metric defined for category: {category.value}")


def get_metrics_by_sop(sop: str) -> list[MetricDefinition]:
    return [metric for metric in METRIC_DEFINITIONS if metric.sop == sop]


def get_blocking_metrics() -> list[MetricDefinition]:
    return [metric for metric in METRIC_DEFINITIONS if metric.block_on_fail]


def calculate_weighted_score(
    scores: Mapping[Category, float],
    metrics: Sequence[MetricDefinition] = METRIC_DEFINITIONS,
) -> float:
    """
    Weighted mean of the evaluated category scores.

    Sums run in registry order, so the result does not depend on the order
    in which categories were evaluated.
    """
    total_weight = 0.0
    weighted = 0.0
    for metric in metrics:
        if metric.category in scores:
            weighted += scores[metric.category] * metric.weight
            total_weight += metric.weight
    if total_weight == 0:
        return 1.0
    return clamp_score(weighted / total_weight)


def evaluate_gating(
    scores: Mapping[Category, float],
    blocker_count: int,
    warning_count: int,
    config: GatingConfig = DEFAULT_GATING_CONFIG,
    metrics: Sequence[MetricDefinition] = METRIC_DEFINITIONS,
) -> GatingDecision:
    total = calculate_weighted_score(scores, metrics)

    def decision(passed: bool, reason: str | None = None) -> GatingDecision:
        return GatingDecision(
            passed=passed,
            reason=reason,
            total_score=total,
            blocker_count=blocker_count,
            warning_count=warning_count,
        )

    if config.block_on_blockers and blocker_count > config.max_blockers:
        return decision(False, f"{blocker_count} blocking violations (max: {config.max_blockers})")

    if config.fail_on_warnings and warning_count > config.max_warnings:
        return decision(False, f"{warning_count} warnings (max: {config.max_warnings})")

    for metric in metrics:
        if not metric.block_on_fail or metric.category not in scores:
            continue
        score = scores[metric.category]
        if score < metric.thresholds.fail:
            return decision(
                False,
                f"Blocking metric {metric.display_name} score {score * 100:.1f}% "
                f"below threshold {metric.thresholds.fail * 100:.1f}%",
            )

    if total < config.minimum_score:
        return decision(
            False,
            f"Total score {total * 100:.1f}% below minimum {config.minimum_score * 100:.1f}%",
        )

    return decision(True)


def count_blockers(results: Sequence[ValidationResult], config: GatingConfig) -> int:
    return sum(
        1
        for result in results
        for violation in result.violations
        if violation.severity in config.blocking_severities
    )


def gate_results(
    results: Sequence[ValidationResult],
    config: GatingConfig = DEFAULT_GATING_CONFIG,
    metrics: Sequence[MetricDefinition] = METRIC_DEFINITIONS,
) -> GatingDecision:
    """Gate a set of category results."""
    known = metrics_by_category(metrics)
    scores: dict[Category, float] = {}
    for result in results:
        if result.category not in known:
            logger.warning(f"No metric for category {result.category.value}; excluded from total")
            continue
        scores[result.category] = result.score

    warning_count = sum(len(result.warnings) for result in results)
    gating = evaluate_gating(scores, count_blockers(results, config), warning_count, config, metrics)
    logger.info(
        f"Gating {'passed' if gating.passed else 'failed'}: "
        f"total={gating.total_score:.3f} blockers={gating.blocker_count} "
        f"warnings={gating.warning_count}"
    )
    return gating


def summarize_metrics(
    results: Sequence[ValidationResult],
    metrics: Sequence[MetricDefinition] = METRIC_DEFINITIONS,
) -> list[MetricSummary]:
    known = metrics_by_category(metrics)
    summaries: list[MetricSummary] = []
    for result in results:
        metric = known.get(result.category)
        summaries.append(
            MetricSummary(
                name=metric.display_name if metric else result.metric_name,
                category=result.category,
                sop=result.sop,
                score=result.score,
                passed=result.passed,
                block_on_fail=metric.block_on_fail if metric else False,
                violation_count=len(result.violations),
                warning_count=len(result.warnings),
            )
        )
    return summaries
