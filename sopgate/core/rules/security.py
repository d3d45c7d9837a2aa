"""
Security Rules — eval, dynamic functions, XSS sinks, secrets, injection.

General-practice rules route by severity: critical and high land as
violations, medium as warnings.
"""

from __future__ import annotations

import re

from sopgate.core.line_context import LineContext
from sopgate.models.rule_models import Category, Finding, Rule, Severity

CATEGORY = Category.SECURITY
METRIC_NAME = "security-practices"
SOP = "general-practices"

EVAL_CALL = re.compile(r"\beval\s*\(")
FUNCTION_CONSTRUCTOR = re.compile(r"new\s+Function\s*\(")
INNER_HTML = re.compile(r"\.innerHTML\s*=")
SANITIZED = re.compile(r"sanitize|escape|encode", re.IGNORECASE)
OPENAI_KEY = re.compile(r"['\"]sk-[a-zA-Z0-9]{20,}['\"]")
PASSWORD_LITERAL = re.compile(r"password\s*[:=]\s*['\"][^'\"]{4,}['\"](?!.*\$\{)", re.IGNORECASE)
PLACEHOLDER = re.compile(r"example|test|mock", re.IGNORECASE)
AWS_KEY = re.compile(r"AKIA[0-9A-Z]{16}")
RAW_QUERY = re.compile(r"\$queryRaw`.*\$\{|\$executeRaw`.*\$\{")
PRISMA_SQL_HELPER = re.compile(r"Prisma\.sql|Prisma\.join")
CONCATENATED_SQL = re.compile(r"(SELECT|INSERT|UPDATE|DELETE).*\+\s*['\"]?\s*\w+")
SHELL_EXEC = re.compile(r"child_process|exec\(|spawn\(|execSync\(")
INTERPOLATION = re.compile(r"\$\{|\+\s*\w+")


def check_eval(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    if EVAL_CALL.search(line):
        return Finding(
            "Avoid eval() - it can execute arbitrary code.",
            "Use JSON.parse() for data or refactor to avoid dynamic code execution",
        )
    return None


def check_function_constructor(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    if FUNCTION_CONSTRUCTOR.search(line):
        return Finding(
            "Avoid new Function() - similar risks to eval().",
            "Refactor to use regular functions",
        )
    return None


def check_inner_html(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    if INNER_HTML.search(line) and not SANITIZED.search(line):
        return Finding(
            "Direct innerHTML assignment can lead to XSS.",
            "Use textContent or sanitize HTML with DOMPurify",
        )
    return None


def check_hardcoded_credentials(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    if OPENAI_KEY.search(line) or AWS_KEY.search(line):
        return Finding(
            "Potential hardcoded credential detected.",
            "Use environment variables or a secrets manager",
        )
    if PASSWORD_LITERAL.search(line) and not PLACEHOLDER.search(line):
        return Finding(
            "Potential hardcoded credential detected.",
            "Use environment variables or a secrets manager",
        )
    return None


def check_sql_injection(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    unsafe_raw = RAW_QUERY.search(line) and not PRISMA_SQL_HELPER.search(line)
    if unsafe_raw or CONCATENATED_SQL.search(line):
        return Finding(
            "Potential SQL injection vulnerability.",
            "Use parameterized queries or Prisma.sql template tag",
        )
    return None


def check_command_injection(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    if SHELL_EXEC.search(line) and INTERPOLATION.search(line):
        return Finding(
            "Potential command injection - user input in shell command.",
            "Use execFile with an argument array or validate/sanitize input",
        )
    return None


RULES: tuple[Rule, ...] = (
    Rule("SEC-001", "No eval", CATEGORY, Severity.CRITICAL, check_eval),
    Rule("SEC-002", "No Function constructor", CATEGORY, Severity.HIGH, check_function_constructor),
    Rule("SEC-003", "No raw innerHTML", CATEGORY, Severity.CRITICAL, check_inner_html),
    Rule("SEC-004", "No hardcoded credentials", CATEGORY, Severity.CRITICAL, check_hardcoded_credentials),
    Rule("SEC-005", "No SQL injection", CATEGORY, Severity.CRITICAL, check_sql_injection),
    Rule("SEC-006", "No command injection", CATEGORY, Severity.CRITICAL, check_command_injection),
)
