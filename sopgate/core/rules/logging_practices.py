"""
Logging Rules — Logger initialization, contextual messages, secrets, env access.
"""

from __future__ import annotations

import re

from sopgate.core.line_context import LineContext
from sopgate.models.rule_models import Bucket, Category, Finding, Rule, Severity

CATEGORY = Category.LOGGING
METRIC_NAME = "logging-compliance"
SOP = "5-error-handling-logging"

LOGGER_INIT_MARKERS = (
    "private readonly logger = new Logger(",
    "private logger = new Logger(",
)
BARE_LOG_MESSAGE = re.compile(r"this\.logger\.(log|error|warn)\(['\"][\w\s]+['\"]\s*\)")
SECRET_KEY_LITERAL = re.compile(r"['\"]sk-[a-zA-Z0-9]+['\"]")
API_KEY_ASSIGNMENT = re.compile(r"api[_-]?key\s*[:=]\s*['\"][^'\"]+['\"]", re.IGNORECASE)
ENV_ACCESS = re.compile(r"process\.env\.(\w+)")


def check_logger_init(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    if line_number != 1 or not ctx.filename.endswith(".service.ts"):
        return None
    content = ctx.full_content
    if any(marker in content for marker in LOGGER_INIT_MARKERS):
        return None
    if "this.logger" in content:
        return Finding(
            "Service uses this.logger but Logger is not properly initialized.",
            "Add: private readonly logger = new Logger(ServiceName.name)",
        )
    return None


def check_log_context(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    if not BARE_LOG_MESSAGE.search(line):
        return None
    if "${" in line or "+ " in line or ", {" in line:
        return None
    return Finding("Log message lacks context (IDs, state).")


def check_hardcoded_secret(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    if SECRET_KEY_LITERAL.search(line) or API_KEY_ASSIGNMENT.search(line):
        return Finding(
            "Potential hardcoded secret detected.",
            "Load the value from configuration or the environment",
        )
    return None


def check_env_validation(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    match = ENV_ACCESS.search(line)
    if not match:
        return None
    name = match.group(1)
    nearby = "\n".join(ctx.ahead(5))
    if f"if (!{name}" in nearby or "?? " in nearby or "|| " in nearby:
        return None
    return Finding(f"Environment variable {name} used without validation.")


RULES: tuple[Rule, ...] = (
    Rule(
        rule_id="INV-LOGGER-INIT",
        name="Logger initialized in services",
        category=CATEGORY,
        severity=Severity.MEDIUM,
        check=check_logger_init,
        bucket=Bucket.VIOLATION,
    ),
    Rule(
        rule_id="INV-LOG-CONTEXT",
        name="Contextual log messages",
        category=CATEGORY,
        severity=Severity.MEDIUM,
        check=check_log_context,
    ),
    Rule(
        rule_id="INV-HARDCODED-SECRET",
        name="No hardcoded secrets",
        category=CATEGORY,
        severity=Severity.CRITICAL,
        check=check_hardcoded_secret,
    ),
    Rule(
        rule_id="SUGGEST-ENV-VALIDATION",
        name="Validate environment variables",
        category=CATEGORY,
        severity=Severity.MEDIUM,
        check=check_env_validation,
        bucket=Bucket.SUGGESTION,
    ),
)
