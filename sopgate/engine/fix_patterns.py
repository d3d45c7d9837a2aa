"""
Fix Patterns — Mechanical regex rewrites for rules with a known fix.

Each pattern targets one rule. Replacements are either a template string
(with \\g<n> group references) or a function of the match. A pattern whose
replacement leaves a match unchanged records no edit, which is how the
soft-delete pattern stays idempotent.

Partial patterns only cover common shapes of the violation; a violation they
miss stays in place for a human.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Sequence

logger = logging.getLogger("sopgate.engine.fix_patterns")

Replacement = str | Callable[[re.Match[str]], str]


@dataclass(frozen=True)
class FixPattern:
    rule_id: str
    pattern: re.Pattern[str]
    replacement: Replacement
    description: str
    partial: bool = False


@dataclass(frozen=True)
class PatternEdit:
    """One substituted match, with 1-based line span in the pre-edit text."""

    start_line: int
    end_line: int
    before: str
    after: str


def apply_pattern(fix: FixPattern, content: str) -> tuple[str, list[PatternEdit]]:
    """Apply one pattern to `content`, returning new text and the edits made."""
    edits: list[PatternEdit] = []

    def _replace(match: re.Match[str]) -> str:
        before = match.group(0)
        if isinstance(fix.replacement, str):
            after = match.expand(fix.replacement)
        else:
            after = fix.replacement(match)
        if after != before:
            start_line = content.count("\n", 0, match.start()) + 1
            edits.append(
                PatternEdit(
                    start_line=start_line,
                    end_line=start_line + before.count("\n"),
                    before=before,
                    after=after,
                )
            )
        return after

    corrected = fix.pattern.sub(_replace, content)
    if edits:
        logger.debug(f"{fix.rule_id}: {len(edits)} edit(s) - {fix.description}")
    return corrected, edits


def original_line(line: int, passes: Sequence[Sequence[PatternEdit]]) -> int:
    """
    Map a line number in the text produced by `passes` back to the text they
    started from. Each pass holds edits in its own pre-edit coordinates, in
    source order. A line inside rewritten text maps into the span it replaced.
    """
    for edits in reversed(passes):
        delta = 0
        for edit in edits:
            start = edit.start_line + delta
            if line < start:
                break
            if line <= start + edit.after.count("\n"):
                line = edit.start_line + min(line - start, edit.end_line - edit.start_line)
                delta = 0
                break
            delta += edit.after.count("\n") - edit.before.count("\n")
        line -= delta
    return line


def _add_deleted_at(match: re.Match[str]) -> str:
    prefix, _entity, conditions, suffix = match.groups()
    if "deleted_at" in conditions:
        return match.group(0)
    cleaned = conditions.strip().rstrip(",").rstrip()
    return f"{prefix} {cleaned}, deleted_at: null {suffix}"


def _add_order_by(match: re.Match[str]) -> str:
    query, close = match.groups()
    return f"{query.rstrip()}, orderBy: {{ created_at: 'desc' }} {close}"


CONSOLE_LOGGER_METHODS = {
    "log": "log",
    "info": "log",
    "error": "error",
    "warn": "warn",
    "debug": "debug",
}


def _console_to_logger(match: re.Match[str]) -> str:
    method = match.group(1)
    return f"this.logger.{CONSOLE_LOGGER_METHODS[method]}("


def _generic_error(keyword: str, exception: str) -> FixPattern:
    return FixPattern(
        rule_id="INV-ERROR-TYPE",
        pattern=re.compile(
            r"throw\s+new\s+Error\(\s*(['\"])([^'\"]*" + keyword + r"[^'\"]*)\1\s*\)",
            re.IGNORECASE,
        ),
        replacement=f"throw new {exception}(\\g<1>\\g<2>\\g<1>)",
        description=f"Replace generic Error with {exception}",
        partial=True,
    )


FIX_PATTERNS: tuple[FixPattern, ...] = (
    _generic_error(r"not\s*found", "NotFoundException"),
    _generic_error(r"invalid", "BadRequestException"),
    _generic_error(r"denied", "ForbiddenException"),
    FixPattern(
        rule_id="INV-LOGGER",
        pattern=re.compile(r"console\.(log|info|error|warn|debug)\("),
        replacement=_console_to_logger,
        description="Replace console.* with this.logger.*",
    ),
    FixPattern(
        rule_id="INV-PRISMA-SOFT-DELETE",
        pattern=re.compile(
            r"(prisma\.(organizations|organization_users|organization_roles|teams|rubrics"
            r"|role_plays|tracks)\.find\w+\(\s*\{\s*where:\s*\{)([^}]+)(\}\s*\}\))"
        ),
        replacement=_add_deleted_at,
        description="Add deleted_at: null to where clause",
        partial=True,
    ),
    FixPattern(
        rule_id="INV-PRISMA-ORDERBY",
        pattern=re.compile(r"(\.findMany\(\s*\{\s*where:\s*\{[^}]+\}\s*)(\}\))"),
        replacement=_add_order_by,
        description="Add orderBy: { created_at: 'desc' } to findMany",
        partial=True,
    ),
)


def patterns_for(rule_ids: set[str], patterns: Sequence[FixPattern] = FIX_PATTERNS) -> list[FixPattern]:
    return [fix for fix in patterns if fix.rule_id in rule_ids]


def fixable_rule_ids(patterns: Sequence[FixPattern] = FIX_PATTERNS) -> set[str]:
    return {fix.rule_id for fix in patterns}
