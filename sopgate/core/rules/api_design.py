"""
API Design Rules — controller docs, guards on mutating routes, DTO validation.
"""

from __future__ import annotations

import re

from sopgate.core.line_context import LineContext
from sopgate.models.rule_models import Bucket, Category, Finding, Rule, Severity

CATEGORY = Category.API_DESIGN
METRIC_NAME = "api-design-compliance"
SOP = "8-api-design-patterns"

MUTATING_ROUTE = re.compile(r"@(Post|Put|Patch|Delete)\(")
ANY_ROUTE = re.compile(r"@(Get|Post|Put|Patch|Delete)\(")
DTO_FIELD = re.compile(r"^\s+\w+\s*:\s*(string|number|boolean)")


def is_controller(filename: str) -> bool:
    return filename.endswith(".controller.ts")


def check_api_docs(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    if line_number == 1 and is_controller(ctx.filename) and "@ApiTags" not in ctx.full_content:
        return Finding("Controller missing @ApiTags decorator.")
    return None


def check_route_guard(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    if not is_controller(ctx.filename) or not MUTATING_ROUTE.search(line):
        return None
    if "@UseGuards(" in ctx.full_content:
        return None
    if any("@UseGuards" in text for text in ctx.behind(5)):
        return None
    return Finding(
        "Mutating endpoint may be missing guards.",
        "Add @UseGuards(JwtAuthGuard) to the controller or the handler",
    )


def check_api_operation(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    if not is_controller(ctx.filename) or not ANY_ROUTE.search(line):
        return None
    if any("@ApiOperation" in text for text in ctx.behind(3) + [line]):
        return None
    return Finding("Endpoint missing @ApiOperation documentation.")


def check_dto_validation(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    if "/dto/" not in ctx.filename or not DTO_FIELD.search(line) or "?" in line:
        return None
    decorators = "\n".join(ctx.behind(3))
    if "@Is" in decorators or "@Valid" in decorators:
        return None
    return Finding("DTO field may be missing validation decorator.")


RULES: tuple[Rule, ...] = (
    Rule(
        rule_id="INV-API-DOCS",
        name="Swagger tags on controllers",
        category=CATEGORY,
        severity=Severity.MEDIUM,
        check=check_api_docs,
    ),
    Rule(
        rule_id="INV-API-GUARD",
        name="Guards on mutating endpoints",
        category=CATEGORY,
        severity=Severity.CRITICAL,
        check=check_route_guard,
    ),
    Rule(
        rule_id="SUGGEST-API-OPERATION",
        name="Swagger operation docs",
        category=CATEGORY,
        severity=Severity.MEDIUM,
        check=check_api_operation,
        bucket=Bucket.SUGGESTION,
    ),
    Rule(
        rule_id="INV-DTO-VALIDATION",
        name="Validated DTO fields",
        category=CATEGORY,
        severity=Severity.MEDIUM,
        check=check_dto_validation,
    ),
)
