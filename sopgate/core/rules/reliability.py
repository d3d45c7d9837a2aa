"""
Reliability Rules — floating promises, parameter mutation, unbounded HTTP calls.
"""

from __future__ import annotations

import re

from sopgate.core.line_context import LineContext
from sopgate.models.rule_models import Category, Finding, Rule, Severity

CATEGORY = Category.RELIABILITY
METRIC_NAME = "reliability-practices"
SOP = "general-practices"

BARE_SERVICE_CALL = re.compile(r"^\s*this\.\w+\.(\w+)\([^)]*\);?\s*$")
ASYNC_VERB = re.compile(r"^(create|update|delete|save|send|fetch|post|get|put|patch)")
PROPERTY_ASSIGNMENT = re.compile(r"^\s*(\w+)\.\w+\s*=")
PARAMETER_LIST = re.compile(r"\(([^)]+)\)")
HTTP_CLIENT = re.compile(r"fetch\(|axios\.|httpService\.")
TIMEOUT_HINT = re.compile(r"timeout|signal|AbortController")


def check_floating_promise(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    match = BARE_SERVICE_CALL.search(line)
    if not match or "await" in line:
        return None
    if ASYNC_VERB.search(match.group(1)):
        return Finding(
            "Potential floating promise - async call without await.",
            "Add await or handle the returned promise",
        )
    return None


def check_parameter_mutation(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    match = PROPERTY_ASSIGNMENT.search(line)
    if not match or not ctx.inside_function:
        return None
    signature = PARAMETER_LIST.search("\n".join(ctx.preceding_lines))
    if not signature:
        return None
    params = [part.strip().split(":")[0].strip() for part in signature.group(1).split(",")]
    name = match.group(1)
    if name in params:
        return Finding(
            f"Mutating function parameter '{name}'",
            "Create a copy of the parameter before modifying",
        )
    return None


def check_http_timeout(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    if HTTP_CLIENT.search(line) and not TIMEOUT_HINT.search(line):
        return Finding("HTTP request without explicit timeout.")
    return None


RULES: tuple[Rule, ...] = (
    Rule("REL-001", "Await async calls", CATEGORY, Severity.HIGH, check_floating_promise),
    Rule("REL-003", "No parameter mutation", CATEGORY, Severity.MEDIUM, check_parameter_mutation),
    Rule("REL-004", "HTTP timeouts", CATEGORY, Severity.MEDIUM, check_http_timeout),
)
