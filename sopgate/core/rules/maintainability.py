"""
Maintainability Rules — magic numbers, deep nesting, dead code, any, long functions.
"""

from __future__ import annotations

import re

from sopgate.core.line_context import LineContext
from sopgate.models.rule_models import Category, Finding, Rule, Severity

CATEGORY = Category.MAINTAINABILITY
METRIC_NAME = "maintainability-practices"
SOP = "general-practices"

MAGIC_NUMBER = re.compile(r"[^a-zA-Z0-9_](86400|3600|1000|60000|5000|10000|30000)[^0-9]")
DECLARATION = re.compile(r"const|let|var|=\s*\d+;?\s*//")
NESTED_OPEN = re.compile(r"=>\s*\{|function\s*\(|\{\s*$")
COMMENTED_CODE = re.compile(
    r"^\s*//\s*(const|let|var|if|for|while|return|await|function|class|import)\s"
)
ANY_TYPE = re.compile(r":\s*any\s*[;,=)\]]|as\s+any\b")
FUNCTION_DECLARATION = re.compile(r"async\s+\w+\s*\(|function\s+\w+\s*\(")

MAX_INDENT = 20
MAX_FUNCTION_LINES = 50
FUNCTION_SCAN_LINES = 100


def function_length(lines: list[str]) -> int:
    """Line count of the brace block opened in `lines`, 0 if none opens."""
    depth = 0
    started = False
    count = 0
    for text in lines:
        if "{" in text:
            started = True
            depth += text.count("{")
        if "}" in text:
            depth -= text.count("}")
        if started:
            count += 1
            if depth <= 0:
                break
    return count


def check_magic_number(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    if MAGIC_NUMBER.search(line) and not DECLARATION.search(line):
        return Finding("Magic number - consider using a named constant.")
    return None


def check_deep_nesting(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    indent = len(line) - len(line.lstrip())
    if indent > MAX_INDENT and NESTED_OPEN.search(line):
        return Finding("Deep nesting detected - consider extracting to a function.")
    return None


def check_commented_code(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    if COMMENTED_CODE.search(line):
        return Finding("Commented-out code should be removed.")
    return None


def check_any_type(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    if ANY_TYPE.search(line):
        return Finding("Avoid using any type - use proper types or unknown.")
    return None


def check_function_length(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    if not FUNCTION_DECLARATION.search(line):
        return None
    length = function_length(ctx.ahead(FUNCTION_SCAN_LINES))
    if length > MAX_FUNCTION_LINES:
        return Finding(f"Function is {length} lines - consider splitting.")
    return None


RULES: tuple[Rule, ...] = (
    Rule("MAINT-001", "Named constants", CATEGORY, Severity.MEDIUM, check_magic_number),
    Rule("MAINT-002", "Shallow nesting", CATEGORY, Severity.MEDIUM, check_deep_nesting),
    Rule("MAINT-003", "No commented-out code", CATEGORY, Severity.MEDIUM, check_commented_code),
    Rule("MAINT-004", "No any", CATEGORY, Severity.MEDIUM, check_any_type),
    Rule("MAINT-005", "Short functions", CATEGORY, Severity.MEDIUM, check_function_length),
)
