"""
Transaction Rule — Multi-table mutations must share a $transaction.

Fires on the line that opens a named async function, whose signature may span
several lines. The function body is taken by brace matching from the
declaration onward; if it mutates more than one table through
`prisma.<table>.create|update|delete(` and never mentions `$transaction`, the
function is flagged. Writes made through a transaction client (`tx.<table>`)
are not counted.
"""

from __future__ import annotations

import re

from sopgate.core.line_context import LineContext
from sopgate.models.rule_models import Category, Finding, Rule, Severity

CATEGORY = Category.TRANSACTIONS
METRIC_NAME = "transaction-compliance"
SOP = "3-database-prisma"

ASYNC_HEAD = re.compile(r"async\s+(?:function\s+)?\w+\s*\(")
ASYNC_FUNCTION = re.compile(
    r"async\s+(?:function\s+)?(\w+)\s*\([^)]*\)\s*(?::\s*[^{]+)?\s*\{"
)
TABLE_MUTATION = re.compile(r"prisma\.(\w+)\.(?:create|update|delete)\(")


def mutated_tables(body: str) -> list[str]:
    """Distinct table names mutated in `body`, in order of first write."""
    tables: list[str] = []
    for table in TABLE_MUTATION.findall(body):
        if table not in tables:
            tables.append(table)
    return tables


def check_multi_table_transaction(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    head = ASYNC_HEAD.search(line)
    if not head:
        return None
    # parameter lists and return types may run over several lines
    match = ASYNC_FUNCTION.match(ctx.full_content, ctx.offset + head.start())
    if not match:
        return None
    body = ctx.block(len(ctx.lines) - ctx.index, col=head.start())
    if "$transaction" in body:
        return None
    if len(mutated_tables(body)) > 1:
        return Finding(
            f"Function {match.group(1)} has multi-table mutations without $transaction.",
            "Wrap related writes in prisma.$transaction(async (tx) => { ... })",
        )
    return None


RULES: tuple[Rule, ...] = (
    Rule(
        rule_id="INV-PRISMA-TRANSACTION",
        name="Atomic multi-table writes",
        category=CATEGORY,
        severity=Severity.HIGH,
        check=check_multi_table_transaction,
        description="Writes to more than one table must run inside prisma.$transaction",
    ),
)
