"""
Code Quality Rules — TODO markers, any types, commented-out code, magic numbers.
"""

from __future__ import annotations

import re

from sopgate.core.line_context import LineContext
from sopgate.models.rule_models import Bucket, Category, Finding, Rule, Severity

CATEGORY = Category.CODE_QUALITY
METRIC_NAME = "code-quality"
SOP = "9-testing-code-quality"

TODO_MARKER = re.compile(r"//\s*(TODO|FIXME|HACK|XXX)", re.IGNORECASE)
ANY_ANNOTATION = re.compile(r":\s*any\s*[;,=)]")
ANY_CAST = re.compile(r"as\s+any")
COMMENTED_CODE = re.compile(r"^\s*//\s*(await|return|const|let|var|if|for|while)\s")
MAGIC_NUMBER = re.compile(r"[^a-zA-Z0-9_](1000|2000|3000|5000|10000|60000|86400)\s*[),;]")


def check_todo(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    if TODO_MARKER.search(line):
        return Finding("Unresolved TODO/FIXME comment.")
    return None


def check_any_type(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    if ANY_ANNOTATION.search(line) or ANY_CAST.search(line):
        return Finding("Usage of 'any' type reduces type safety.")
    return None


def check_commented_code(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    if COMMENTED_CODE.search(line):
        return Finding("Commented-out code should be removed.")
    return None


def check_magic_number(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    if MAGIC_NUMBER.search(line) and "const" not in line and "//" not in line:
        return Finding("Magic number detected. Consider using a named constant.")
    return None


def check_injectable_clock(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    if line_number != 1 or not ctx.filename.endswith(".service.ts"):
        return None
    content = ctx.full_content
    if "new Date()" in content and "Date = new Date" not in content:
        return Finding("Consider making time injectable for testability.")
    return None


RULES: tuple[Rule, ...] = (
    Rule(
        rule_id="INV-TODO",
        name="Resolve TODO markers",
        category=CATEGORY,
        severity=Severity.MEDIUM,
        check=check_todo,
    ),
    Rule(
        rule_id="INV-ANY-TYPE",
        name="Avoid any",
        category=CATEGORY,
        severity=Severity.MEDIUM,
        check=check_any_type,
    ),
    Rule(
        rule_id="SUGGEST-COMMENTED-CODE",
        name="Remove commented-out code",
        category=CATEGORY,
        severity=Severity.MEDIUM,
        check=check_commented_code,
        bucket=Bucket.SUGGESTION,
    ),
    Rule(
        rule_id="SUGGEST-MAGIC-NUMBER",
        name="Name numeric constants",
        category=CATEGORY,
        severity=Severity.MEDIUM,
        check=check_magic_number,
        bucket=Bucket.SUGGESTION,
    ),
    Rule(
        rule_id="SUGGEST-INJECTABLE-CLOCK",
        name="Injectable clock",
        category=CATEGORY,
        severity=Severity.MEDIUM,
        check=check_injectable_clock,
        bucket=Bucket.SUGGESTION,
    ),
)
