"""
Audit Logging Rule — Mutations of audited entities must write an audit log.

The enclosing function is approximated by slicing the file from the last
"async " before the mutation to the first '}' at least 100 characters past it.
"""

from __future__ import annotations

import re

from sopgate.core.line_context import LineContext
from sopgate.models.rule_models import Category, Finding, Rule, Severity

CATEGORY = Category.AUDIT_LOGGING
METRIC_NAME = "audit-log-coverage"
SOP = "2-supabase"

AUDITED_ENTITIES = ("organizations", "role_plays", "assessments", "users", "rubrics")
MUTATION = re.compile(
    r"prisma\.(" + "|".join(AUDITED_ENTITIES) + r")\.(create|update)\("
)
LOOKAHEAD_CHARS = 100


def check_audit_log(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    if not ctx.filename.endswith(".service.ts"):
        return None
    match = MUTATION.search(line)
    if not match:
        return None

    content = ctx.full_content
    position = ctx.offset + match.start()
    start = max(content.rfind("async ", 0, position + 1), 0)
    end = content.find("}", position + LOOKAHEAD_CHARS)
    body = content[start : end if end >= 0 else len(content)]
    if "audit" in body:
        return None

    entity, operation = match.groups()
    return Finding(
        f"{operation.capitalize()} operation on {entity} may be missing audit log.",
        "Record the change with the audit log service",
    )


RULES: tuple[Rule, ...] = (
    Rule(
        rule_id="INV-AUDIT-LOG",
        name="Audit log on critical mutations",
        category=CATEGORY,
        severity=Severity.MEDIUM,
        check=check_audit_log,
    ),
)
