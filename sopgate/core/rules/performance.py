"""
Performance Rules — sequential awaits, sync I/O, closures in loops, linear lookups.
"""

from __future__ import annotations

import re

from sopgate.core.line_context import LineContext
from sopgate.models.rule_models import Category, Finding, Rule, Severity

CATEGORY = Category.PERFORMANCE
METRIC_NAME = "performance-practices"
SOP = "general-practices"

LOOP = re.compile(r"for\s*\(|\.forEach\(|while\s*\(")
PLAIN_LOOP = re.compile(r"for\s*\(|while\s*\(")
AWAIT = re.compile(r"await\s")
PROMISE_ALL = re.compile(r"Promise\.all")
SYNC_IO = re.compile(r"readFileSync|writeFileSync|existsSync|readdirSync|statSync")
MODULE_LOAD = re.compile(r"require\s*\(|import")
CLOSURE = re.compile(r"function\s*\(|=>\s*\{")
ARRAY_METHOD = re.compile(r"\.(map|filter|reduce|forEach|find|some|every)\(")
INCLUDES = re.compile(r"\.includes\(")


def check_sequential_await(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    if not LOOP.search(line):
        return None
    body = "\n".join(ctx.following_lines[:15])
    if AWAIT.search(body) and not PROMISE_ALL.search(body):
        return Finding(
            "Sequential await in loop - consider Promise.all for parallel execution.",
            "Use Promise.all(items.map(async (item) => ...))",
        )
    return None


def check_sync_io(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    if SYNC_IO.search(line) and not MODULE_LOAD.search(line):
        return Finding("Synchronous file operation blocks the event loop.")
    return None


def check_closure_in_loop(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    if not PLAIN_LOOP.search(line):
        return None
    body = "\n".join(ctx.following_lines[:10])
    if CLOSURE.search(body) and not ARRAY_METHOD.search(body):
        return Finding("Function created inside loop.")
    return None


def check_linear_lookup(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    if not INCLUDES.search(line):
        return None
    if LOOP.search("\n".join(ctx.behind(10))):
        return Finding("Array.includes() inside loop - consider using a Set.")
    return None


RULES: tuple[Rule, ...] = (
    Rule("PERF-001", "Parallel awaits", CATEGORY, Severity.MEDIUM, check_sequential_await),
    Rule("PERF-002", "Async file I/O", CATEGORY, Severity.MEDIUM, check_sync_io),
    Rule("PERF-003", "No closures in loops", CATEGORY, Severity.MEDIUM, check_closure_in_loop),
    Rule("PERF-004", "Set lookups in loops", CATEGORY, Severity.MEDIUM, check_linear_lookup),
)
