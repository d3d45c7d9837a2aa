"""
Tests for the self-correction loop, fix patterns, and prerequisite imports.
"""

import pytest

from sopgate.engine.fix_patterns import (
    FIX_PATTERNS,
    PatternEdit,
    apply_pattern,
    fixable_rule_ids,
    original_line,
    patterns_for,
)
from sopgate.engine.prerequisites import add_missing_imports, missing_symbols
from sopgate.engine.self_correction import SelfCorrectionEngine
from sopgate.models.correction_models import CorrectionConfig
from sopgate.models.rule_models import RuleViolation, Severity

FILENAME = "src/users/users.service.ts"

TEAM_QUERIES = """async load(orgId: string, id: string) {
  const team = await this.prisma.teams.findFirst({
    where: {
      id,
    } });
  const sessions = await this.prisma.sessions.findMany({ where: { organization_id: orgId } });
  return { team, sessions };
}"""


@pytest.fixture
def corrector(engine):
    return SelfCorrectionEngine(engine)


def _pattern(rule_id):
    return patterns_for({rule_id})[0]


# ── Full loop ──


def test_loop_fixes_error_type_and_console(corrector, service_with_violations):
    result = corrector.run(FILENAME, service_with_violations, CorrectionConfig(max_iterations=3))

    assert result.initial_violations == 2
    assert result.iterations == 1
    assert result.success is True
    assert result.final_violations == 0

    fixes = result.history[0].applied_fixes
    assert [(f.rule_id, f.line) for f in fixes] == [
        ("INV-ERROR-TYPE", 10),
        ("INV-LOGGER", 12),
        ("INV-IMPORT", 1),
    ]

    content = result.final_content
    assert "throw new NotFoundException('User not found')" in content
    assert "this.logger.log('found user')" in content
    assert "console." not in content
    assert content.startswith(
        "import { Injectable, Logger, NotFoundException } from '@nestjs/common';"
    )


def test_corrected_content_needs_no_further_iterations(corrector, service_with_violations):
    first = corrector.run(FILENAME, service_with_violations)
    second = corrector.run(FILENAME, first.final_content)
    assert second.initial_violations == 0
    assert second.iterations == 0
    assert second.final_content == first.final_content


def test_skip_rules_leaves_violation_in_place(corrector, service_with_violations):
    config = CorrectionConfig(max_iterations=3, skip_rules=["INV-LOGGER"])
    result = corrector.run(FILENAME, service_with_violations, config)

    assert result.success is False
    assert [v.rule_id for v in result.remaining_violations] == ["INV-LOGGER"]
    assert "console.log('found user')" in result.final_content
    # second iteration finds nothing applicable and stops
    assert result.iterations == 2
    assert result.history[-1].applied_fixes == []


def test_fix_rules_restricts_patterns(corrector, service_with_violations):
    config = CorrectionConfig(fix_rules=["INV-LOGGER"])
    step = corrector.apply_fixes(
        FILENAME, service_with_violations, corrector.validate(FILENAME, service_with_violations), config
    )
    assert [f.rule_id for f in step.applied_fixes] == ["INV-LOGGER"]
    assert [v.rule_id for v in step.remaining_violations] == ["INV-ERROR-TYPE"]
    assert "import { Injectable, Logger } from '@nestjs/common';" in step.corrected_content


def test_fix_lines_refer_to_content_before_earlier_rewrites(corrector):
    violations = [
        RuleViolation(
            file=FILENAME, line=2, rule_id="INV-PRISMA-SOFT-DELETE", message="m", severity=Severity.HIGH
        ),
        RuleViolation(
            file=FILENAME, line=6, rule_id="INV-PRISMA-ORDERBY", message="m", severity=Severity.MEDIUM
        ),
    ]
    step = corrector.apply_fixes(FILENAME, TEAM_QUERIES, violations)

    # the soft-delete rewrite collapses the where clause from four lines to two
    assert "where: { id, deleted_at: null } })" in step.corrected_content
    assert [(f.rule_id, f.line) for f in step.applied_fixes] == [
        ("INV-PRISMA-SOFT-DELETE", 2),
        ("INV-PRISMA-ORDERBY", 6),
    ]


def test_clean_file_is_untouched(corrector, clean_service):
    result = corrector.run("src/health/health.service.ts", clean_service)
    assert result.iterations == 0
    assert result.success is True
    assert result.final_content == clean_service


def test_correct_files_keeps_input_order(corrector, service_with_violations, clean_service):
    files = {
        "src/b.service.ts": service_with_violations,
        "src/a.service.ts": clean_service,
        "src/c.service.ts": service_with_violations,
    }
    results = corrector.correct_files(files, max_workers=3)
    assert [r.filename for r in results] == list(files)
    assert [r.success for r in results] == [True, True, True]


# ── Fix patterns ──


def test_error_keyword_maps_to_exception():
    content = 'throw new Error("Invalid email");\nthrow new Error(\'Access denied\');'
    for fix in patterns_for({"INV-ERROR-TYPE"}):
        content, _ = apply_pattern(fix, content)
    assert content == (
        'throw new BadRequestException("Invalid email");\n'
        "throw new ForbiddenException('Access denied');"
    )


def test_unrecognized_error_message_is_left_alone():
    content = "throw new Error('Something broke');"
    for fix in patterns_for({"INV-ERROR-TYPE"}):
        content, edits = apply_pattern(fix, content)
        assert edits == []
    assert content == "throw new Error('Something broke');"


def test_soft_delete_pattern_is_idempotent():
    fix = _pattern("INV-PRISMA-SOFT-DELETE")
    content = "const team = await this.prisma.teams.findFirst({ where: { id } });"
    once, edits = apply_pattern(fix, content)
    assert once == (
        "const team = await this.prisma.teams.findFirst({ where: { id, deleted_at: null } });"
    )
    assert len(edits) == 1
    twice, edits = apply_pattern(fix, once)
    assert twice == once
    assert edits == []


def test_order_by_pattern():
    fix = _pattern("INV-PRISMA-ORDERBY")
    content = "return this.prisma.teams.findMany({ where: { organization_id: orgId } });"
    fixed, edits = apply_pattern(fix, content)
    assert fixed == (
        "return this.prisma.teams.findMany({ where: { organization_id: orgId }, "
        "orderBy: { created_at: 'desc' } });"
    )
    assert apply_pattern(fix, fixed)[1] == []


def test_edit_records_line_span():
    fix = _pattern("INV-LOGGER")
    _, edits = apply_pattern(fix, "a();\nb();\nconsole.error(e);")
    assert [(e.start_line, e.end_line, e.after) for e in edits] == [(3, 3, "this.logger.error(")]


def test_fixable_rules():
    assert fixable_rule_ids() == {
        "INV-ERROR-TYPE",
        "INV-LOGGER",
        "INV-PRISMA-SOFT-DELETE",
        "INV-PRISMA-ORDERBY",
    }
    assert len(FIX_PATTERNS) == 6


# ── Prerequisite imports ──


def test_import_prepended_when_module_not_imported():
    content, fixes = add_missing_imports("const x = 1;\n", ["throw new BadRequestException('x')"])
    assert content == "import { BadRequestException } from '@nestjs/common';\nconst x = 1;\n"
    assert [(f.rule_id, f.line) for f in fixes] == [("INV-IMPORT", 1)]


def test_no_import_when_symbol_already_present():
    content = "import { Injectable, NotFoundException } from '@nestjs/common';\n"
    new_content, fixes = add_missing_imports(content, ["throw new NotFoundException('x')"])
    assert new_content == content
    assert fixes == []


def test_only_introduced_symbols_are_considered():
    content = "export class A {}\n"
    assert missing_symbols(content, ["this.logger.log("]) == []


# ── Line mapping ──


def test_original_line_shifts_past_collapsed_edit():
    collapsed = PatternEdit(start_line=2, end_line=5, before="a\nb\nc\nd", after="a\nd")
    assert original_line(1, [[collapsed]]) == 1
    assert original_line(3, [[collapsed]]) == 3
    assert original_line(4, [[collapsed]]) == 6


def test_original_line_walks_back_through_every_pass():
    grown = PatternEdit(start_line=1, end_line=1, before="x", after="x\ny")
    collapsed = PatternEdit(start_line=4, end_line=6, before="a\nb\nc", after="abc")
    # line 5 after both passes was line 7 after the first, line 6 originally
    assert original_line(5, [[grown], [collapsed]]) == 6
