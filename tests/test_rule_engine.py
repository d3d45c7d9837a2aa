"""
Tests for the Rule Engine — bucket routing, ordering, faults, and scoring.
"""

from sopgate.core.catalog import RuleCatalog, RuleGroup
from sopgate.core.rule_engine import RuleEngine
from sopgate.core.test_harness import BUILTIN_CASES, run_cases
from sopgate.models.rule_models import Bucket, Category, Finding, Rule, Severity


def _flag(token, message="found"):
    def check(line, line_number, ctx):
        return Finding(message, "fix it") if token in line else None

    return check


def _boom(line, line_number, ctx):
    raise RuntimeError("rule bug")


def _engine(*rules, category=Category.SECURITY):
    return RuleEngine(RuleCatalog([RuleGroup(category, "m", "general-practices", tuple(rules))]))


def test_findings_route_by_severity_and_override():
    engine = _engine(
        Rule("T-CRIT", "c", Category.SECURITY, Severity.CRITICAL, _flag("a")),
        Rule("T-MED", "m", Category.SECURITY, Severity.MEDIUM, _flag("a")),
        Rule("T-ESC", "e", Category.SECURITY, Severity.MEDIUM, _flag("a"), bucket=Bucket.VIOLATION),
        Rule("T-SUG", "s", Category.SECURITY, Severity.MEDIUM, _flag("a"), bucket=Bucket.SUGGESTION),
    )
    result = engine.run_category(Category.SECURITY, {"f.ts": "a"})

    assert [v.rule_id for v in result.violations] == ["T-CRIT", "T-ESC"]
    assert [w.rule_id for w in result.warnings] == ["T-MED"]
    assert result.suggestions == ["f.ts:1 - found"]
    assert result.violations[0].fix == "fix it"


def test_findings_follow_file_line_rule_order():
    engine = _engine(
        Rule("R-1", "1", Category.SECURITY, Severity.HIGH, _flag("x")),
        Rule("R-2", "2", Category.SECURITY, Severity.HIGH, _flag("x")),
    )
    result = engine.run_category(Category.SECURITY, {"a.ts": "x\ny\nx", "b.ts": "x"})
    order = [(v.file, v.line, v.rule_id) for v in result.violations]
    assert order == [
        ("a.ts", 1, "R-1"),
        ("a.ts", 1, "R-2"),
        ("a.ts", 3, "R-1"),
        ("a.ts", 3, "R-2"),
        ("b.ts", 1, "R-1"),
        ("b.ts", 1, "R-2"),
    ]


def test_suggestions_are_deduplicated():
    engine = _engine(
        Rule("S-1", "1", Category.SECURITY, Severity.MEDIUM, _flag("x", "same"), bucket=Bucket.SUGGESTION),
        Rule("S-2", "2", Category.SECURITY, Severity.MEDIUM, _flag("x", "same"), bucket=Bucket.SUGGESTION),
    )
    result = engine.run_category(Category.SECURITY, {"a.ts": "x"})
    assert result.suggestions == ["a.ts:1 - same"]


def test_faulty_rule_becomes_diagnostic():
    engine = _engine(
        Rule("BAD-1", "bad", Category.SECURITY, Severity.CRITICAL, _boom),
        Rule("OK-1", "ok", Category.SECURITY, Severity.HIGH, _flag("x")),
    )
    result = engine.run_category(Category.SECURITY, {"a.ts": "x\nx"})

    assert [v.rule_id for v in result.violations] == ["OK-1", "OK-1"]
    assert len(result.diagnostics) == 2
    assert result.diagnostics[0].rule_id == "BAD-1"
    assert "RuntimeError" in result.diagnostics[0].error


def test_general_practice_scoring():
    engine = _engine(
        Rule("C-1", "c", Category.SECURITY, Severity.CRITICAL, _flag("crit")),
        Rule("H-1", "h", Category.SECURITY, Severity.HIGH, _flag("high")),
        Rule("M-1", "m", Category.SECURITY, Severity.MEDIUM, _flag("med")),
    )
    result = engine.run_category(Category.SECURITY, {"a.ts": "high\nmed\nmed"})
    # 1.0 - 0.1 (high) - 2 * 0.02 (warnings)
    assert abs(result.score - 0.86) < 1e-9
    assert result.passed is True

    result = engine.run_category(Category.SECURITY, {"a.ts": "crit"})
    assert abs(result.score - 0.7) < 1e-9
    assert result.passed is False


def test_score_is_clamped_at_zero():
    engine = _engine(Rule("C-1", "c", Category.SECURITY, Severity.CRITICAL, _flag("x")))
    result = engine.run_category(Category.SECURITY, {"a.ts": "\n".join(["x"] * 10)})
    assert result.score == 0.0


def test_rule_filter_restricts_category(engine, service_with_violations):
    files = {"src/users/users.service.ts": service_with_violations}
    result = engine.run_category(Category.EXCEPTION_TYPES, files, rule_ids={"INV-LOGGER"})
    assert [v.rule_id for v in result.violations] == ["INV-LOGGER"]


def test_empty_input_scores_perfect(engine):
    result = engine.run_category(Category.TRANSACTIONS, {})
    assert result.score == 1.0
    assert result.passed is True
    assert result.files_analyzed == 0


def test_run_single_rule(engine):
    findings = engine.run_single_rule("SEC-001", "a.ts", "eval(x);\nok();")
    assert len(findings) == 1


def test_builtin_harness_cases_pass(engine):
    outcomes = run_cases(engine)
    assert len(outcomes) == len(BUILTIN_CASES)
    failures = {o.case.name: o.mismatches for o in outcomes if not o.passed}
    assert failures == {}
