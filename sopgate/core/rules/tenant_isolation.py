"""
Tenant Isolation Rules — organization scoping, soft-delete filters, cache keys.

Read queries are inspected through a short where-block: the query line plus
up to nine following lines, stopping at the first line that closes the call.
"""

from __future__ import annotations

import re

from sopgate.core.line_context import LineContext
from sopgate.models.rule_models import Category, Finding, Rule, Severity

CATEGORY = Category.TENANT_ISOLATION
METRIC_NAME = "tenant-isolation"
SOP = "2-supabase"

SOFT_DELETE_ENTITIES = (
    "organizations",
    "organization_users",
    "organization_roles",
    "teams",
    "rubrics",
    "role_plays",
    "tracks",
)
GLOBAL_ENTITIES = frozenset({"internal_users", "evaluation_model_configs"})

READ_QUERY = re.compile(r"prisma\.(\w+)\.(findMany|findFirst|findUnique|count|aggregate)")
CACHE_CALL = re.compile(r"cache\.(get|set|del)\(|cacheManager\.")
CACHE_KEY = re.compile(r"['\"]([\w:]+)['\"]")

WHERE_BLOCK_LINES = 10


def where_block(ctx: LineContext) -> str:
    parts: list[str] = []
    for text in ctx.ahead(WHERE_BLOCK_LINES):
        parts.append(text)
        if "});" in text or ")];" in text:
            break
    return "\n".join(parts)


def check_org_filter(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    match = READ_QUERY.search(line)
    if not match:
        return None
    entity = match.group(1)
    if entity in GLOBAL_ENTITIES:
        return None
    block = where_block(ctx)
    if "organization_id" in block or "org_id" in block:
        return None
    return Finding(f"Query on {entity} may be missing organization_id filter.")


def check_soft_delete_filter(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    match = READ_QUERY.search(line)
    if not match:
        return None
    entity = match.group(1)
    if not any(name in entity for name in SOFT_DELETE_ENTITIES):
        return None
    if "deleted_at" in where_block(ctx):
        return None
    return Finding(
        f"Query on {entity} missing deleted_at: null filter.",
        "Add deleted_at: null to where clause",
    )


def check_cache_key(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    if not CACHE_CALL.search(line):
        return None
    key = CACHE_KEY.search(line)
    if key and "org" not in key.group(1) and "${" not in key.group(1):
        return Finding("Cache key may not be org-scoped.")
    return None


RULES: tuple[Rule, ...] = (
    Rule(
        rule_id="INV-SUPABASE-4",
        name="Organization filter on reads",
        category=CATEGORY,
        severity=Severity.MEDIUM,
        check=check_org_filter,
    ),
    Rule(
        rule_id="INV-PRISMA-SOFT-DELETE",
        name="Soft-delete filter on reads",
        category=CATEGORY,
        severity=Severity.HIGH,
        check=check_soft_delete_filter,
        description="Soft-deletable entities must be read with deleted_at: null",
    ),
    Rule(
        rule_id="INV-SUPABASE-6",
        name="Org-scoped cache keys",
        category=CATEGORY,
        severity=Severity.MEDIUM,
        check=check_cache_key,
    ),
)
