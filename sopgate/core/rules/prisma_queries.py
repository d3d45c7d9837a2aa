"""
Prisma Query Rules — ordering, pagination, N+1 access, counting, and deletes.

INV-PRISMA-ORDERBY and INV-PRISMA-COUNT are medium severity but land in the
violation bucket: unordered lists and in-memory counts break callers.
"""

from __future__ import annotations

import re

from sopgate.core.line_context import LineContext
from sopgate.models.rule_models import Bucket, Category, Finding, Rule, Severity

CATEGORY = Category.PRISMA_QUERIES
METRIC_NAME = "prisma-query-compliance"
SOP = "3-database-prisma"

FIND_MANY = re.compile(r"\.findMany\(")
LOOP_START = re.compile(r"for\s*\(|\.forEach\(|\.map\(")
AWAITED_READ = re.compile(
    r"await\s+.*prisma\.\w+\.(findFirst|findUnique|findMany|count)", re.DOTALL
)
LENGTH_ON_QUERY = re.compile(r"\.findMany\([^)]*\)\.length|\.length\s*$")
INCLUDE_BLOCK = re.compile(r"include:\s*\{")
INCLUDED_RELATION = re.compile(r":\s*true")
HARD_DELETE = re.compile(r"prisma\.(organizations|teams|rubrics|role_plays)\.delete\(")

QUERY_BLOCK_LINES = 15
LOOP_BLOCK_LINES = 30


def query_block(ctx: LineContext) -> str:
    parts: list[str] = []
    for text in ctx.ahead(QUERY_BLOCK_LINES):
        parts.append(text)
        if "});" in text:
            break
    return "\n".join(parts)


def check_order_by(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    if FIND_MANY.search(line) and "orderBy" not in query_block(ctx):
        return Finding(
            "findMany query missing orderBy clause.",
            "Add orderBy: { created_at: 'desc' } or appropriate field",
        )
    return None


def check_pagination(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    if not FIND_MANY.search(line):
        return None
    block = query_block(ctx)
    if "take" not in block and "skip" not in block:
        return Finding("findMany query may need pagination (take/skip).")
    return None


def check_n_plus_one(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    if not LOOP_START.search(line):
        return None
    if AWAITED_READ.search(ctx.block(LOOP_BLOCK_LINES)):
        return Finding(
            "Potential N+1 query: database call inside loop.",
            "Use include, a single findMany with an IN filter, or batch the lookups",
        )
    return None


def check_count_query(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    if not LENGTH_ON_QUERY.search(line):
        return None
    recent = "\n".join(ctx.behind(5) + [line])
    if "findMany" in recent and ".length" in line:
        return Finding(
            "Using findMany().length instead of count().",
            "Use prisma.model.count() instead",
        )
    return None


def check_select_over_include(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    if not INCLUDE_BLOCK.search(line):
        return None
    block = "\n".join(ctx.ahead(10))
    if len(INCLUDED_RELATION.findall(block)) == 1:
        return Finding("Consider using select instead of include for single relation.")
    return None


def check_hard_delete(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    match = HARD_DELETE.search(line)
    if match:
        return Finding(
            f"Hard delete on {match.group(1)} - use soft delete (deleted_at).",
            "Use update with deleted_at: new Date() instead",
        )
    return None


RULES: tuple[Rule, ...] = (
    Rule(
        rule_id="INV-PRISMA-ORDERBY",
        name="Deterministic list ordering",
        category=CATEGORY,
        severity=Severity.MEDIUM,
        check=check_order_by,
        bucket=Bucket.VIOLATION,
    ),
    Rule(
        rule_id="INV-PRISMA-PAGINATION",
        name="Paginated list queries",
        category=CATEGORY,
        severity=Severity.MEDIUM,
        check=check_pagination,
    ),
    Rule(
        rule_id="INV-PRISMA-N+1",
        name="No queries inside loops",
        category=CATEGORY,
        severity=Severity.HIGH,
        check=check_n_plus_one,
    ),
    Rule(
        rule_id="INV-PRISMA-COUNT",
        name="count() over findMany().length",
        category=CATEGORY,
        severity=Severity.MEDIUM,
        check=check_count_query,
        bucket=Bucket.VIOLATION,
    ),
    Rule(
        rule_id="SUGGEST-PRISMA-SELECT",
        name="Prefer select for single relation",
        category=CATEGORY,
        severity=Severity.MEDIUM,
        check=check_select_over_include,
        bucket=Bucket.SUGGESTION,
    ),
    Rule(
        rule_id="INV-PRISMA-HARD-DELETE",
        name="No hard deletes on soft-delete entities",
        category=CATEGORY,
        severity=Severity.CRITICAL,
        check=check_hard_delete,
    ),
)
