"""
Code Safety Rules — premature status updates and stale closure captures.
"""

from __future__ import annotations

import re

from sopgate.core.line_context import LineContext
from sopgate.models.rule_models import Bucket, Category, Finding, Rule, Severity

CATEGORY = Category.CODE_SAFETY
METRIC_NAME = "code-safety-compliance"
SOP = "4-code-safety-patterns"

COMPLETE_STEP = re.compile(r"step:\s*['\"][\w_]*complete['\"]")
COMPLETE_STATUS = re.compile(r"status.*complete", re.IGNORECASE)
STATUS_UPDATE = re.compile(r"updateStatus|setStatus|progress")
PENDING_WORK = re.compile(r"await\s+this\.\w+\(|fetch|prisma\.")
CLOSURE_START = re.compile(r"retryOperation\(|setTimeout\(|setInterval\(|\)\s*=>\s*\{")
NULL_CHECK = re.compile(r"if\s*\(\s*!(\w+)\s*\)")


def check_status_accuracy(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    if not (COMPLETE_STEP.search(line) or COMPLETE_STATUS.search(line)):
        return None
    if not STATUS_UPDATE.search("\n".join(ctx.behind(10))):
        return None
    if PENDING_WORK.search("\n".join(ctx.following_lines[:9])):
        return Finding(
            "Status set to complete but work continues after. Ensure status reflects actual state.",
            "Move the completion update after the remaining work",
        )
    return None


def check_closure_capture(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    if not CLOSURE_START.search(line):
        return None
    checked = NULL_CHECK.findall("\n".join(ctx.behind(15)))
    closure = "\n".join(ctx.ahead(10))
    for name in checked:
        if f"{name}." in closure:
            return Finding(
                f"Variable '{name}' used in closure after null check. "
                "Consider capturing value before closure."
            )
    return None


RULES: tuple[Rule, ...] = (
    Rule(
        rule_id="INV-STATUS-ACCURACY",
        name="Status reflects actual state",
        category=CATEGORY,
        severity=Severity.MEDIUM,
        check=check_status_accuracy,
    ),
    Rule(
        rule_id="SUGGEST-CLOSURE-CAPTURE",
        name="Capture narrowed values before closures",
        category=CATEGORY,
        severity=Severity.MEDIUM,
        check=check_closure_capture,
        bucket=Bucket.SUGGESTION,
    ),
)
