"""
Rule Engine — Runs a category's rules over every line of every file.

For each file, each line, and each rule of the category (in that order) the
engine builds a LineContext, runs the check, and routes a finding into the
violation, warning, or suggestion bucket. A rule that raises is recorded as
a diagnostic and contributes no finding.
"""

from __future__ import annotations

import logging
import time
from typing import Collection, Mapping, Sequence

from sopgate.core.catalog import RuleCatalog
from sopgate.core.errors import ConfigurationError
from sopgate.core.line_context import LineContext, iter_line_contexts
from sopgate.core.scoring import DEFAULT_DEDUCTIONS, category_passed, score_category
from sopgate.models.metric_models import DeductionSchedule
from sopgate.models.rule_models import (
    Bucket,
    Category,
    Finding,
    Rule,
    RuleDiagnostic,
    RuleViolation,
    RuleWarning,
    ValidationResult,
)

logger = logging.getLogger("sopgate.core.rule_engine")


class RuleEngine:
    """
    Deterministic rule engine.

    Holds no per-run state, so one instance may evaluate several categories
    concurrently.
    """

    def __init__(
        self,
        catalog: RuleCatalog,
        deductions: Mapping[Category, DeductionSchedule] | None = None,
        preceding_window: int | None = None,
        following_window: int | None = None,
    ) -> None:
        self.catalog = catalog
        self.deductions = dict(DEFAULT_DEDUCTIONS if deductions is None else deductions)
        self.preceding_window = preceding_window
        self.following_window = following_window

    def run_category(
        self,
        category: Category,
        files: Mapping[str, str],
        rule_ids: Collection[str] | None = None,
    ) -> ValidationResult:
        """
        Run one category against all files.

        Args:
            category: Category to evaluate.
            files: Mapping of file path -> decoded content.
            rule_ids: Optional restriction to a subset of the category's rules.

        Returns:
            ValidationResult with score, pass flag, and the three finding buckets.
        """
        group = self.catalog.group(category)
        schedule = self.deductions.get(category)
        if schedule is None:
            raise ConfigurationError(f"No deduction schedule for category: {category.value}")

        rules = group.rules
        if rule_ids is not None:
            rules = tuple(rule for rule in rules if rule.rule_id in rule_ids)

        start = time.monotonic()
        violations: list[RuleViolation] = []
        warnings: list[RuleWarning] = []
        suggestions: list[str] = []
        diagnostics: list[RuleDiagnostic] = []
        seen_suggestions: set[str] = set()

        for filename, content in files.items():
            for ctx in iter_line_contexts(
                filename, content, self.preceding_window, self.following_window
            ):
                for rule in rules:
                    finding = self._check(rule, ctx, diagnostics)
                    if finding is None:
                        continue
                    bucket = rule.resolved_bucket
                    if bucket is Bucket.VIOLATION:
                        violations.append(
                            RuleViolation(
                                file=filename,
                                line=ctx.line_number,
                                rule_id=rule.rule_id,
                                message=finding.message,
                                severity=rule.severity,
                                fix=finding.suggested_fix,
                            )
                        )
                    elif bucket is Bucket.WARNING:
                        warnings.append(
                            RuleWarning(
                                file=filename,
                                line=ctx.line_number,
                                rule_id=rule.rule_id,
                                message=finding.message,
                            )
                        )
                    else:
                        text = f"{filename}:{ctx.line_number} - {finding.message}"
                        if text not in seen_suggestions:
                            seen_suggestions.add(text)
                            suggestions.append(text)

        score = score_category(violations, warnings, schedule)
        passed = category_passed(score, violations, schedule)
        elapsed = (time.monotonic() - start) * 1000
        logger.info(
            f"{category.value}: score={score:.3f} passed={passed} "
            f"violations={len(violations)} warnings={len(warnings)} "
            f"files={len(files)} ({elapsed:.1f}ms)"
        )

        return ValidationResult(
            category=category,
            metric_name=group.metric_name,
            sop=group.sop,
            score=score,
            passed=passed,
            violations=violations,
            warnings=warnings,
            suggestions=suggestions,
            diagnostics=diagnostics,
            files_analyzed=len(files),
        )

    def run(
        self,
        categories: Sequence[Category],
        files: Mapping[str, str],
    ) -> list[ValidationResult]:
        """Run several categories sequentially, in the given order."""
        return [self.run_category(category, files) for category in categories]

    def collect_violations(
        self,
        categories: Sequence[Category],
        files: Mapping[str, str],
    ) -> list[RuleViolation]:
        return [v for result in self.run(categories, files) for v in result.violations]

    def run_single_rule(self, rule_id: str, filename: str, content: str) -> list[Finding]:
        """Run a single rule against a single file, returning raw findings."""
        rule = self.catalog.rule(rule_id)
        diagnostics: list[RuleDiagnostic] = []
        findings: list[Finding] = []
        for ctx in iter_line_contexts(
            filename, content, self.preceding_window, self.following_window
        ):
            finding = self._check(rule, ctx, diagnostics)
            if finding is not None:
                findings.append(finding)
        return findings

    @staticmethod
    def _check(
        rule: Rule, ctx: LineContext, diagnostics: list[RuleDiagnostic]
    ) -> Finding | None:
        try:
            return rule.check(ctx.line, ctx.line_number, ctx)
        except Exception as e:
            # A faulty rule must not abort the category
            logger.warning(
                f"Rule {rule.rule_id} failed on {ctx.filename}:{ctx.line_number}: "
                f"{type(e).__name__}: {e}"
            )
            diagnostics.append(
                RuleDiagnostic(
                    rule_id=rule.rule_id,
                    category=rule.category,
                    file=ctx.filename,
                    line=ctx.line_number,
                    error=f"{type(e).__name__}: {e}",
                )
            )
            return None
