"""
External Service Rules — retries, explicit delays, and leaked upstream errors.
"""

from __future__ import annotations

import re

from sopgate.core.line_context import LineContext
from sopgate.models.rule_models import Bucket, Category, Finding, Rule, Severity

CATEGORY = Category.EXTERNAL_SERVICES
METRIC_NAME = "external-service-compliance"
SOP = "6-external-services-timing"

HTTP_CALL = re.compile(
    r"httpService\.(get|post|put|patch|delete)\("
    r"|axios\.(get|post|put|patch|delete)\("
    r"|fetch\("
)
EXPLICIT_DELAY = re.compile(r"await\s+new\s+Promise.*setTimeout|await\s+sleep\(")
CATCH_CLAUSE = re.compile(r"catch\s*\([^)]+\)")
EXPOSED_ERROR = re.compile(
    r"throw\s+new\s+\w+Exception\([^)]*error\.|throw\s+new\s+\w+Exception\([^)]*\.message"
)
EXTERNAL_HINT = re.compile(r"external|http|api")

RETRY_RADIUS = 30


def check_retry_logic(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    if not HTTP_CALL.search(line):
        return None
    window = "\n".join(ctx.behind(RETRY_RADIUS) + ctx.ahead(RETRY_RADIUS))
    if "retry" in window or "attempt" in window:
        return None
    return Finding("External HTTP call may lack retry logic.")


def check_explicit_delay(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    if EXPLICIT_DELAY.search(line):
        return Finding(
            "Consider if explicit delay is necessary or if polling/events would be better."
        )
    return None


def check_error_exposure(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    if not CATCH_CLAUSE.search(line):
        return None
    if not EXPOSED_ERROR.search("\n".join(ctx.ahead(10))):
        return None
    if EXTERNAL_HINT.search("\n".join(ctx.ahead(5))):
        return Finding("External service error details may be exposed to client.")
    return None


RULES: tuple[Rule, ...] = (
    Rule(
        rule_id="INV-EXTERNAL-RETRY",
        name="Retry external calls",
        category=CATEGORY,
        severity=Severity.MEDIUM,
        check=check_retry_logic,
    ),
    Rule(
        rule_id="SUGGEST-EXPLICIT-DELAY",
        name="Avoid fixed delays",
        category=CATEGORY,
        severity=Severity.MEDIUM,
        check=check_explicit_delay,
        bucket=Bucket.SUGGESTION,
    ),
    Rule(
        rule_id="INV-EXTERNAL-ERROR-EXPOSE",
        name="Hide upstream error details",
        category=CATEGORY,
        severity=Severity.MEDIUM,
        check=check_error_exposure,
    ),
)
