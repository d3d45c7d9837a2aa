"""
Supabase Auth Rules — JWT verification, token hygiene, and guard ordering.

Decode-only JWT handling and tokens in logs are critical. A controller that
applies role or permission guards without JwtAuthGuard first is a warning.
"""

from __future__ import annotations

import re

from sopgate.core.line_context import LineContext
from sopgate.models.rule_models import Category, Finding, Rule, Severity

CATEGORY = Category.SUPABASE_AUTH
METRIC_NAME = "supabase-auth-compliance"
SOP = "2-supabase"

DECODE_ONLY = re.compile(r"jwt\.decode\(|decodeJwt\(")
TOKEN_IN_LOGGER = re.compile(r"logger\.(log|debug|error|warn)\(.*token", re.IGNORECASE)
JWT_IN_CONSOLE = re.compile(r"console\.(log|debug|error|warn)\(.*jwt", re.IGNORECASE)
SERVICE_ROLE_KEY = re.compile(r"service.?role.?key", re.IGNORECASE)
USE_GUARDS = re.compile(r"@UseGuards\(([^)]+)\)")


def check_decode_only(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    if DECODE_ONLY.search(line) and "verify" not in line:
        return Finding(
            "Decode-only JWT handling detected. Must use JWKS validation.",
            "Replace with Supabase JWKS verification",
        )
    return None


def check_token_logging(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    if TOKEN_IN_LOGGER.search(line) or JWT_IN_CONSOLE.search(line):
        return Finding(
            "Potential token/JWT logging detected.",
            "Remove token from log statement",
        )
    return None


def check_service_role_client(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    if SERVICE_ROLE_KEY.search(line) and "client" in ctx.filename.lower():
        return Finding(
            "Service role key referenced in client-side file.",
            "Use the service role key only in server-side code",
        )
    return None


def check_guard_order(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    if not ctx.filename.endswith(".controller.ts"):
        return None
    if "@UseGuards(JwtAuthGuard)" in ctx.full_content:
        return None
    for match in USE_GUARDS.finditer(line):
        guards = match.group(1)
        if ("RolesGuard" in guards or "PermissionsGuard" in guards) and "JwtAuthGuard" not in guards:
            return Finding("RolesGuard/PermissionsGuard used without JwtAuthGuard first.")
    return None


RULES: tuple[Rule, ...] = (
    Rule(
        rule_id="INV-SUPABASE-1",
        name="JWKS verification",
        category=CATEGORY,
        severity=Severity.CRITICAL,
        check=check_decode_only,
        description="JWTs must be verified against JWKS, never only decoded",
    ),
    Rule(
        rule_id="INV-SUPABASE-8",
        name="No token logging",
        category=CATEGORY,
        severity=Severity.CRITICAL,
        check=check_token_logging,
    ),
    Rule(
        rule_id="INV-SUPABASE-SERVICE-ROLE",
        name="Service role key stays server-side",
        category=CATEGORY,
        severity=Severity.CRITICAL,
        check=check_service_role_client,
    ),
    Rule(
        rule_id="INV-SUPABASE-2",
        name="JwtAuthGuard before role guards",
        category=CATEGORY,
        severity=Severity.MEDIUM,
        check=check_guard_order,
    ),
)
