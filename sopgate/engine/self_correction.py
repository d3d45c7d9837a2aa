"""
Self-Correction Loop — Validate, apply fix patterns, re-check, repeat.

Per file:
1. Validate the selected categories to get the initial violations
2. Apply every eligible fix pattern, then add any imports the fixes need
3. Re-scan the corrected source
4. Stop when nothing is left, a pass applies no fix, or the iteration cap
   is reached

The loop only ever runs fix patterns, so it terminates: every iteration
either records at least one edit or ends the loop.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from typing import Mapping, Sequence

from sopgate.config import settings
from sopgate.core.rule_engine import RuleEngine
from sopgate.core.selection import SOP_CATEGORIES
from sopgate.engine.fix_patterns import (
    FIX_PATTERNS,
    FixPattern,
    PatternEdit,
    apply_pattern,
    original_line,
)
from sopgate.engine.prerequisites import add_missing_imports
from sopgate.engine.rescan import rescan_corrected_source
from sopgate.models.correction_models import (
    AppliedFix,
    CorrectionConfig,
    CorrectionLoopResult,
    CorrectionResult,
)
from sopgate.models.rule_models import Category, RuleViolation

logger = logging.getLogger("sopgate.engine.self_correction")


class SelfCorrectionEngine:
    """
    Bounded fix-and-recheck loop over the rule engine.

    Args:
        engine: Rule engine used for validation and re-scans.
        categories: Categories to validate. Defaults to every SOP category
            present in the engine's catalog.
        patterns: Fix patterns to draw from.
    """

    def __init__(
        self,
        engine: RuleEngine,
        categories: Sequence[Category] | None = None,
        patterns: Sequence[FixPattern] = FIX_PATTERNS,
    ) -> None:
        self.engine = engine
        if categories is None:
            categories = [c for c in SOP_CATEGORIES if c in engine.catalog]
        self.categories = tuple(categories)
        self.patterns = tuple(patterns)

    def eligible_patterns(
        self, violations: Sequence[RuleViolation], config: CorrectionConfig
    ) -> list[FixPattern]:
        present = {v.rule_id for v in violations}
        eligible: list[FixPattern] = []
        for fix in self.patterns:
            if fix.rule_id not in present or fix.rule_id in config.skip_rules:
                continue
            if config.fix_rules is not None and fix.rule_id not in config.fix_rules:
                continue
            eligible.append(fix)
        return eligible

    def validate(self, filename: str, content: str) -> list[RuleViolation]:
        return self.engine.collect_violations(self.categories, {filename: content})

    def apply_fixes(
        self,
        filename: str,
        content: str,
        violations: Sequence[RuleViolation],
        config: CorrectionConfig | None = None,
    ) -> CorrectionResult:
        """One Apply + Re-check pass."""
        config = config or CorrectionConfig()
        corrected = content
        applied: list[AppliedFix] = []
        introduced: list[str] = []
        fixed_rules: set[str] = set()
        passes: list[list[PatternEdit]] = []

        for fix in self.eligible_patterns(violations, config):
            corrected, edits = apply_pattern(fix, corrected)
            if not edits:
                logger.debug(f"{fix.rule_id} pattern matched nothing in {filename}")
                continue
            # violation lines refer to `content`, edits to the text after earlier passes
            spans = [
                replace(
                    edit,
                    start_line=original_line(edit.start_line, passes),
                    end_line=original_line(edit.end_line, passes),
                )
                for edit in edits
            ]
            passes.append(edits)
            targets = [v for v in violations if v.rule_id == fix.rule_id]
            applied.extend(_record_fixes(fix, spans, targets))
            introduced.extend(edit.after for edit in edits)
            fixed_rules.add(fix.rule_id)

        if introduced:
            corrected, import_fixes = add_missing_imports(corrected, introduced)
            applied.extend(import_fixes)

        if not applied:
            return CorrectionResult(
                original_content=content,
                corrected_content=content,
                remaining_violations=list(violations),
            )

        rescan = rescan_corrected_source(
            self.engine, self.categories, filename, corrected, fixed_rules, violations
        )
        return CorrectionResult(
            original_content=content,
            corrected_content=corrected,
            applied_fixes=applied,
            remaining_violations=rescan.remaining,
        )

    def run(
        self, filename: str, content: str, config: CorrectionConfig | None = None
    ) -> CorrectionLoopResult:
        config = config or CorrectionConfig(max_iterations=settings.max_correction_iterations)
        violations = self.validate(filename, content)
        initial = len(violations)
        history: list[CorrectionResult] = []
        current = content

        while violations and len(history) < config.max_iterations:
            step = self.apply_fixes(filename, current, violations, config)
            history.append(step)
            if not step.applied_fixes:
                logger.info(f"{filename}: no applicable fixes for {len(violations)} violation(s)")
                break
            current = step.corrected_content
            violations = step.remaining_violations

        success = not violations
        logger.info(
            f"{filename}: {initial} -> {len(violations)} violation(s) "
            f"in {len(history)} iteration(s), success={success}"
        )
        return CorrectionLoopResult(
            filename=filename,
            iterations=len(history),
            initial_violations=initial,
            final_violations=len(violations),
            history=history,
            final_content=current,
            remaining_violations=list(violations),
            success=success,
        )

    def correct_files(
        self,
        files: Mapping[str, str],
        config: CorrectionConfig | None = None,
        max_workers: int | None = None,
    ) -> list[CorrectionLoopResult]:
        """Correct independent files concurrently. Results follow input order."""
        workers = max_workers or settings.max_workers
        if workers <= 1 or len(files) <= 1:
            return [self.run(name, content, config) for name, content in files.items()]
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="sopgate-correct") as pool:
            futures = [
                pool.submit(self.run, name, content, config) for name, content in files.items()
            ]
            return [future.result() for future in futures]


def _record_fixes(
    fix: FixPattern, edits: Sequence[PatternEdit], targets: Sequence[RuleViolation]
) -> list[AppliedFix]:
    """One AppliedFix per violation an edit covers, or per edit if it covers none."""
    records: list[AppliedFix] = []
    covered: set[int] = set()
    for edit in edits:
        hits = [
            i
            for i, v in enumerate(targets)
            if edit.start_line <= v.line <= edit.end_line and i not in covered
        ]
        lines = [targets[i].line for i in hits] or [edit.start_line]
        covered.update(hits)
        for line in lines:
            records.append(
                AppliedFix(
                    rule_id=fix.rule_id,
                    line=line,
                    description=fix.description,
                    before=edit.before,
                    after=edit.after,
                )
            )
    return records
