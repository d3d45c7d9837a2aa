"""
Report Formatters — Plain-text and Markdown renderings of a validation run.
"""

from __future__ import annotations

from sopgate.models.validation_models import ValidationSummary

MAX_LISTED_FINDINGS = 20


def _pct(score: float) -> str:
    return f"{score * 100:.1f}%"


def render_text(summary: ValidationSummary) -> str:
    lines = [
        f"SOP validation {summary.run_id} - {'PASSED' if summary.passed else 'FAILED'}",
        f"Total score: {_pct(summary.total_score)}",
        f"Files analyzed: {summary.files_analyzed}",
        f"Blockers: {summary.blockers}  Warnings: {summary.warnings}  "
        f"Suggestions: {summary.suggestions}",
    ]
    if summary.reason:
        lines.append(f"Reason: {summary.reason}")
    lines.append("")

    for metric in summary.metrics:
        status = "PASS" if metric.passed else "FAIL"
        blocking = " [blocking]" if metric.block_on_fail else ""
        lines.append(
            f"  {status}  {metric.name:<30} {_pct(metric.score):>7}  "
            f"violations={metric.violation_count} warnings={metric.warning_count}{blocking}"
        )

    violations = [v for r in summary.results for v in r.violations]
    if violations:
        lines.append("")
        lines.append("Violations:")
        for v in violations[:MAX_LISTED_FINDINGS]:
            lines.append(f"  {v.file}:{v.line} [{v.severity.value}] {v.rule_id}: {v.message}")
        if len(violations) > MAX_LISTED_FINDINGS:
            lines.append(f"  ... and {len(violations) - MAX_LISTED_FINDINGS} more")

    for diag in summary.load_diagnostics:
        lines.append(f"Skipped {diag.file}: {diag.error}")

    return "\n".join(lines)


def render_markdown(summary: ValidationSummary) -> str:
    """Markdown report suitable for a pull request comment."""
    status = "Passed" if summary.passed else "Failed"
    lines = [
        f"## SOP Validation: {status}",
        "",
        f"**Total score:** {_pct(summary.total_score)} | "
        f"**Blockers:** {summary.blockers} | **Warnings:** {summary.warnings} | "
        f"**Files:** {summary.files_analyzed}",
    ]
    if summary.reason:
        lines += ["", f"> {summary.reason}"]

    lines += [
        "",
        "| Metric | SOP | Score | Status | Violations | Warnings |",
        "|---|---|---|---|---|---|",
    ]
    for metric in summary.metrics:
        status_cell = "pass" if metric.passed else "**fail**"
        lines.append(
            f"| {metric.name} | {metric.sop} | {_pct(metric.score)} | {status_cell} "
            f"| {metric.violation_count} | {metric.warning_count} |"
        )

    violations = [v for r in summary.results for v in r.violations]
    if violations:
        lines += ["", "### Violations", ""]
        for v in violations[:MAX_LISTED_FINDINGS]:
            fix = f" Fix: {v.fix}" if v.fix else ""
            lines.append(f"- `{v.file}:{v.line}` **{v.rule_id}** ({v.severity.value}): {v.message}{fix}")
        if len(violations) > MAX_LISTED_FINDINGS:
            lines.append(f"- ... and {len(violations) - MAX_LISTED_FINDINGS} more")

    if summary.load_diagnostics:
        lines += ["", "### Skipped files", ""]
        lines += [f"- `{d.file}`: {d.error}" for d in summary.load_diagnostics]

    return "\n".join(lines) + "\n"
