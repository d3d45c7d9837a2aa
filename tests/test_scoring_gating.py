"""
Tests for category scoring, weighted aggregation, and the gating decision.
"""

import pytest

from sopgate.core.errors import ConfigurationError
from sopgate.core.metrics import (
    DEFAULT_GATING_CONFIG,
    METRIC_DEFINITIONS,
    STRICT_GATING_CONFIG,
    calculate_weighted_score,
    evaluate_gating,
    gate_results,
    get_blocking_metrics,
    get_gating_config,
    get_metric,
    get_metrics_by_sop,
    summarize_metrics,
)
from sopgate.core.scoring import DEFAULT_DEDUCTIONS, category_passed, score_category
from sopgate.models.rule_models import (
    Category,
    RuleViolation,
    RuleWarning,
    Severity,
    ValidationResult,
)


def _violation(severity, rule_id="R-1"):
    return RuleViolation(file="a.ts", line=1, rule_id=rule_id, message="m", severity=severity)


def _warning(rule_id="W-1"):
    return RuleWarning(file="a.ts", line=1, rule_id=rule_id, message="m")


# ── Scoring ──


def test_exception_types_deductions():
    schedule = DEFAULT_DEDUCTIONS[Category.EXCEPTION_TYPES]
    score = score_category([_violation(Severity.MEDIUM), _violation(Severity.MEDIUM)], [], schedule)
    assert abs(score - 0.7) < 1e-9
    assert category_passed(score, [], schedule) is False
    assert category_passed(0.9, [], schedule) is True


def test_audit_logging_always_passes():
    schedule = DEFAULT_DEDUCTIONS[Category.AUDIT_LOGGING]
    warnings = [_warning() for _ in range(3)]
    score = score_category([], warnings, schedule)
    assert abs(score - 0.7) < 1e-9
    assert category_passed(score, [], schedule) is True


def test_tenant_isolation_fails_on_high():
    schedule = DEFAULT_DEDUCTIONS[Category.TENANT_ISOLATION]
    high = [_violation(Severity.HIGH)]
    assert abs(score_category(high, [], schedule) - 0.85) < 1e-9
    assert category_passed(0.85, high, schedule) is False
    assert category_passed(0.85, [_violation(Severity.MEDIUM)], schedule) is True


def test_transactions_fail_on_any_violation():
    schedule = DEFAULT_DEDUCTIONS[Category.TRANSACTIONS]
    assert category_passed(0.8, [_violation(Severity.HIGH)], schedule) is False
    assert category_passed(1.0, [], schedule) is True


def test_score_never_negative():
    schedule = DEFAULT_DEDUCTIONS[Category.SUPABASE_AUTH]
    violations = [_violation(Severity.CRITICAL) for _ in range(8)]
    assert score_category(violations, [], schedule) == 0.0


def test_every_category_has_a_schedule_and_metric():
    assert set(DEFAULT_DEDUCTIONS) == set(Category)
    assert {m.category for m in METRIC_DEFINITIONS} == set(Category)


# ── Metric registry ──


def test_metric_lookups():
    assert get_metric(Category.TRANSACTIONS).name == "transaction-compliance"
    assert [m.category for m in get_metrics_by_sop("3-database-prisma")] == [
        Category.PRISMA_QUERIES,
        Category.TRANSACTIONS,
    ]
    blocking = {m.name for m in get_blocking_metrics()}
    assert "security-practices" in blocking
    assert "code-quality" not in blocking


def test_gating_profiles():
    assert get_gating_config("default") is DEFAULT_GATING_CONFIG
    assert get_gating_config("strict") is STRICT_GATING_CONFIG
    with pytest.raises(ConfigurationError, match="Unknown gating profile"):
        get_gating_config("lenient")


# ── Aggregation ──


def test_weighted_score_uses_only_evaluated_categories():
    scores = {Category.SUPABASE_AUTH: 1.0, Category.CODE_QUALITY: 0.5}
    # (1.0 * 0.15 + 0.5 * 0.05) / 0.20
    assert abs(calculate_weighted_score(scores) - 0.875) < 1e-9


def test_weighted_score_is_order_independent():
    forward = {Category.SECURITY: 0.9, Category.LOGGING: 0.4, Category.TRANSACTIONS: 0.8}
    backward = dict(reversed(list(forward.items())))
    assert calculate_weighted_score(forward) == calculate_weighted_score(backward)


def test_no_categories_scores_perfect():
    assert calculate_weighted_score({}) == 1.0
    decision = evaluate_gating({}, 0, 0)
    assert decision.passed is True
    assert decision.total_score == 1.0


# ── Gating ──


def test_total_below_minimum():
    decision = evaluate_gating({Category.CODE_QUALITY: 0.8}, 0, 0)
    assert decision.passed is False
    assert decision.reason == "Total score 80.0% below minimum 85.0%"


def test_blockers_fail_first():
    decision = evaluate_gating({Category.CODE_QUALITY: 0.2}, 2, 100, STRICT_GATING_CONFIG)
    assert decision.passed is False
    assert decision.reason == "2 blocking violations (max: 0)"
    assert decision.blocker_count == 2


def test_strict_profile_fails_on_warnings():
    scores = {Category.CODE_QUALITY: 1.0}
    assert evaluate_gating(scores, 0, 1).passed is True
    decision = evaluate_gating(scores, 0, 1, STRICT_GATING_CONFIG)
    assert decision.passed is False
    assert decision.reason == "1 warnings (max: 0)"


def test_blocking_metric_below_fail_threshold():
    decision = evaluate_gating({Category.SECURITY: 0.6, Category.CODE_QUALITY: 1.0}, 0, 0)
    assert decision.passed is False
    assert decision.reason == "Blocking metric Security Practices score 60.0% below threshold 70.0%"


def test_non_blocking_metric_below_threshold_passes():
    scores = {Category.SUPABASE_AUTH: 1.0, Category.TENANT_ISOLATION: 1.0, Category.LOGGING: 0.5}
    # (0.15 + 0.15 + 0.025) / 0.35
    decision = evaluate_gating(scores, 0, 0)
    assert decision.passed is True
    assert decision.reason is None


def test_gate_results_counts_blocking_severities():
    results = [
        ValidationResult(
            category=Category.SECURITY,
            metric_name="security-practices",
            score=0.9,
            passed=True,
            violations=[_violation(Severity.HIGH)],
        ),
        ValidationResult(
            category=Category.PRISMA_QUERIES,
            metric_name="prisma-query-compliance",
            score=0.95,
            passed=True,
            violations=[_violation(Severity.MEDIUM)],
            warnings=[_warning(), _warning()],
        ),
    ]
    decision = gate_results(results)
    assert decision.blocker_count == 1
    assert decision.warning_count == 2
    assert decision.reason == "1 blocking violations (max: 0)"


def test_summarize_metrics_uses_display_names():
    results = [
        ValidationResult(
            category=Category.TRANSACTIONS,
            metric_name="transaction-compliance",
            sop="3-database-prisma",
            score=1.0,
            passed=True,
        )
    ]
    [summary] = summarize_metrics(results)
    assert summary.name == "Transaction Compliance"
    assert summary.block_on_fail is True
    assert summary.violation_count == 0
