"""
Error Handling Rules — empty catches, console-only handlers, unguarded awaits.
"""

from __future__ import annotations

import re

from sopgate.core.line_context import LineContext
from sopgate.models.rule_models import Category, Finding, Rule, Severity

CATEGORY = Category.ERROR_HANDLING
METRIC_NAME = "error-handling-practices"
SOP = "general-practices"

EMPTY_CATCH_INLINE = re.compile(r"catch\s*\([^)]*\)\s*\{\s*\}")
CATCH_OPEN = re.compile(r"catch\s*\([^)]*\)\s*\{$")
CLOSING_BRACE = re.compile(r"^\s*\}")
CONSOLE_ONLY_CATCH = re.compile(r"catch\s*\([^)]*\)\s*\{\s*console\.log")
ASYNC_FUNCTION = re.compile(r"async\s+\w+\s*\([^)]*\)\s*\{")
AWAIT = re.compile(r"await\s")
HANDLED = re.compile(r"try\s*\{|\.catch\(")
NEW_PROMISE = re.compile(r"new\s+Promise\s*\(")
REJECT_PARAM = re.compile(r"reject|_")
EMPTY_ERROR = re.compile(r"throw\s+new\s+\w*Error\s*\(\s*\)")


def check_empty_catch(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    if EMPTY_CATCH_INLINE.search(line):
        return Finding(
            "Empty catch block swallows errors silently.",
            "Log the error or rethrow with context",
        )
    following = ctx.following_lines
    if CATCH_OPEN.search(line) and following and CLOSING_BRACE.search(following[0]):
        return Finding(
            "Empty catch block swallows errors silently.",
            "Log the error or rethrow with context",
        )
    return None


def check_console_only_catch(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    if CONSOLE_ONLY_CATCH.search(line):
        return Finding(
            "Catch block only logs to console without proper handling.",
            "Use a structured logger and handle or rethrow the error",
        )
    return None


def check_unguarded_await(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    if not ASYNC_FUNCTION.search(line):
        return None
    body = "\n".join(ctx.following_lines[:20])
    if AWAIT.search(body) and not HANDLED.search(body):
        return Finding("Async function without error handling.")
    return None


def check_promise_reject(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    if NEW_PROMISE.search(line) and not REJECT_PARAM.search(line):
        return Finding("Promise constructor without reject handler.")
    return None


def check_empty_error(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    if EMPTY_ERROR.search(line):
        return Finding("Error thrown without message.")
    return None


RULES: tuple[Rule, ...] = (
    Rule("ERR-001", "No empty catch", CATEGORY, Severity.HIGH, check_empty_catch),
    Rule("ERR-002", "No console-only catch", CATEGORY, Severity.MEDIUM, check_console_only_catch),
    Rule("ERR-003", "Handle async errors", CATEGORY, Severity.MEDIUM, check_unguarded_await),
    Rule("ERR-004", "Promise reject path", CATEGORY, Severity.MEDIUM, check_promise_reject),
    Rule("ERR-005", "Error messages", CATEGORY, Severity.MEDIUM, check_empty_error),
)
