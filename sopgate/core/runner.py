"""
Validation Runner — Full run: select, load, evaluate, aggregate, gate.

Categories are independent, so they are evaluated concurrently on a thread
pool; results are collected in selection order so the summary does not
depend on scheduling.
"""

from __future__ import annotations

import logging
import uuid
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Iterable, Mapping, Sequence

from sopgate.config import settings
from sopgate.core.loader import LoadedSources, decode_sources
from sopgate.core.metrics import (
    DEFAULT_GATING_CONFIG,
    METRIC_DEFINITIONS,
    gate_results,
    metrics_by_category,
    summarize_metrics,
)
from sopgate.core.rule_engine import RuleEngine
from sopgate.core.selection import Selection, resolve_selection, select_categories_for_file
from sopgate.engine.suggestions import generate_suggestions
from sopgate.models.metric_models import GatingConfig, GatingDecision, MetricDefinition
from sopgate.models.rule_models import (
    Category,
    RuleViolation,
    RuleWarning,
    Severity,
    ValidationResult,
)
from sopgate.models.validation_models import FileCheckResult, ValidationSummary

logger = logging.getLogger("sopgate.core.runner")


class ValidationRunner:
    def __init__(
        self,
        engine: RuleEngine,
        metrics: Sequence[MetricDefinition] = METRIC_DEFINITIONS,
        max_workers: int | None = None,
    ) -> None:
        self.engine = engine
        self.metrics = tuple(metrics)
        self.max_workers = max_workers or settings.max_workers

    def run(
        self,
        sources: Mapping[str, str | bytes | None] | LoadedSources,
        categories: Iterable[str | Category] | None = None,
        rule_ids: Iterable[str] | None = None,
        sops: Iterable[str] | None = None,
        gating: GatingConfig | None = None,
    ) -> ValidationSummary:
        """
        Validate a set of files.

        Args:
            sources: Path -> content (str or UTF-8 bytes), or pre-read files
                from loader.read_files.
            categories: Category names to run.
            rule_ids: Rule IDs to run; narrows their owning categories.
            sops: SOP identifiers whose categories to run.
            gating: Gating policy. Defaults to DEFAULT_GATING_CONFIG.

        Returns:
            ValidationSummary. Unreadable files appear as load diagnostics.

        Raises:
            ConfigurationError: an unknown category, rule, or SOP was requested.
        """
        selection = resolve_selection(self.engine.catalog, categories, rule_ids, sops)
        loaded = sources if isinstance(sources, LoadedSources) else decode_sources(sources)
        gating = gating or DEFAULT_GATING_CONFIG

        results = self._evaluate(selection, loaded.contents)
        decision = gate_results(results, gating, self.metrics)

        summary = ValidationSummary(
            run_id=uuid.uuid4().hex[:8],
            timestamp=datetime.now(timezone.utc).isoformat(),
            files_analyzed=len(loaded.contents),
            categories=list(selection.categories),
            results=results,
            metrics=summarize_metrics(results, self.metrics),
            total_score=decision.total_score,
            passed=decision.passed,
            reason=decision.reason,
            blockers=decision.blocker_count,
            warnings=decision.warning_count,
            suggestions=sum(len(r.suggestions) for r in results),
            load_diagnostics=loaded.diagnostics,
            rule_diagnostics=[d for r in results for d in r.diagnostics],
        )
        logger.info(
            f"Run {summary.run_id}: {summary.files_analyzed} files, "
            f"{len(results)} categories, score={summary.total_score:.3f}, "
            f"passed={summary.passed}"
        )
        return summary

    def check_file(
        self,
        filename: str,
        content: str,
        categories: Iterable[str | Category] | None = None,
        gating: GatingConfig | None = None,
    ) -> FileCheckResult:
        """Check one file, picking categories from its name unless given."""
        selected = list(categories) if categories else list(select_categories_for_file(filename))
        summary = self.run({filename: content}, categories=selected, gating=gating)

        known = metrics_by_category(self.metrics)
        blockers: list[RuleViolation] = []
        violations: list[RuleViolation] = []
        for result in summary.results:
            metric = known.get(result.category)
            for v in result.violations:
                if (metric and metric.block_on_fail) or v.severity is Severity.CRITICAL:
                    blockers.append(v)
                else:
                    violations.append(v)

        warnings = [w for r in summary.results for w in r.warnings]
        suggestions = [s for r in summary.results for s in r.suggestions]
        gating_decision = GatingDecision(
            passed=summary.passed,
            reason=summary.reason,
            total_score=summary.total_score,
            blocker_count=summary.blockers,
            warning_count=summary.warnings,
        )

        return FileCheckResult(
            filename=filename,
            passed=summary.passed,
            score=summary.total_score,
            categories=summary.categories,
            blockers=blockers,
            violations=violations,
            warnings=warnings,
            suggestions=suggestions,
            fixes=generate_suggestions(blockers + violations) if not summary.passed else [],
            gating=gating_decision,
            summary=_file_summary(summary.passed, summary.total_score, blockers, violations, warnings),
        )

    def _evaluate(
        self, selection: Selection, files: Mapping[str, str]
    ) -> list[ValidationResult]:
        categories = selection.categories
        if self.max_workers <= 1 or len(categories) <= 1:
            return [
                self.engine.run_category(c, files, selection.rule_ids_for(c))
                for c in categories
            ]
        with ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="sopgate-validate"
        ) as pool:
            futures = [
                pool.submit(self.engine.run_category, c, files, selection.rule_ids_for(c))
                for c in categories
            ]
            return [future.result() for future in futures]


def _file_summary(
    passed: bool,
    score: float,
    blockers: Sequence[RuleViolation],
    violations: Sequence[RuleViolation],
    warnings: Sequence[RuleWarning],
) -> str:
    if passed and not blockers and not violations:
        return f"PASSED - Score: {score * 100:.0f}%"
    if passed:
        return f"PASSED with {len(blockers) + len(violations)} issues - Score: {score * 100:.0f}%"
    parts = [f"FAILED - Score: {score * 100:.0f}%"]
    if blockers:
        parts.append(f"{len(blockers)} blocking violations")
    if violations:
        parts.append(f"{len(violations)} violations")
    if warnings:
        parts.append(f"{len(warnings)} warnings")
    return ", ".join(parts)
