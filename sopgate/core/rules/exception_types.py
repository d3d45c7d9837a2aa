"""
Exception Type Rules — NestJS exceptions, Logger usage, sensitive log fields.

Generic `throw new Error(` and `console.*` calls are medium severity but land
in the violation bucket. Both have mechanical fixes in engine.fix_patterns.
"""

from __future__ import annotations

import re

from sopgate.core.line_context import LineContext
from sopgate.models.rule_models import Bucket, Category, Finding, Rule, Severity

CATEGORY = Category.EXCEPTION_TYPES
METRIC_NAME = "exception-type-compliance"
SOP = "5-error-handling-logging"

GENERIC_ERROR = re.compile(r"throw\s+new\s+Error\(")
CONSOLE_CALL = re.compile(r"console\.(log|debug|error|warn|info)\(")
LOGGER_CALL = re.compile(r"logger\.(log|debug|error|warn)\(")
SENSITIVE_FIELD = re.compile(r"password|secret|token|apiKey|api_key|jwt", re.IGNORECASE)
CATCH_CLAUSE = re.compile(r"catch\s*\(\s*(\w+)\s*\)")
EXCEPTION_RETHROW = re.compile(r"throw\s+new\s+\w+Exception\(")


def check_generic_error(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    if GENERIC_ERROR.search(line):
        return Finding(
            "Using generic Error instead of NestJS exception.",
            "Use NotFoundException, BadRequestException, etc.",
        )
    return None


def check_console_logging(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    if CONSOLE_CALL.search(line):
        return Finding(
            "Using console.* instead of NestJS Logger.",
            "Use this.logger.log/error/warn/debug",
        )
    return None


def check_sensitive_logging(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    if LOGGER_CALL.search(line) and SENSITIVE_FIELD.search(line):
        return Finding(
            "Potential sensitive data in log statement.",
            "Remove credentials and tokens from log arguments",
        )
    return None


def check_error_context(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    if not CATCH_CLAUSE.search(line):
        return None
    block = "\n".join(ctx.ahead(10))
    if EXCEPTION_RETHROW.search(block) and ".message" not in block and ".stack" not in block:
        return Finding("Exception thrown without preserving original error context.")
    return None


RULES: tuple[Rule, ...] = (
    Rule(
        rule_id="INV-ERROR-TYPE",
        name="NestJS exception types",
        category=CATEGORY,
        severity=Severity.MEDIUM,
        check=check_generic_error,
        bucket=Bucket.VIOLATION,
    ),
    Rule(
        rule_id="INV-LOGGER",
        name="NestJS Logger over console",
        category=CATEGORY,
        severity=Severity.MEDIUM,
        check=check_console_logging,
        bucket=Bucket.VIOLATION,
    ),
    Rule(
        rule_id="INV-LOG-SENSITIVE",
        name="No sensitive data in logs",
        category=CATEGORY,
        severity=Severity.CRITICAL,
        check=check_sensitive_logging,
    ),
    Rule(
        rule_id="INV-ERROR-CONTEXT",
        name="Preserve error context on rethrow",
        category=CATEGORY,
        severity=Severity.MEDIUM,
        check=check_error_context,
    ),
)
