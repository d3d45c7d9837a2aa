"""
Category Selection — SOP mapping, filename-based selection, and run selection.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from sopgate.core.catalog import RuleCatalog
from sopgate.core.errors import ConfigurationError
from sopgate.models.rule_models import Category

SOP_CATEGORY_MAP: dict[str, tuple[Category, ...]] = {
    "2-supabase": (Category.SUPABASE_AUTH, Category.TENANT_ISOLATION, Category.AUDIT_LOGGING),
    "3-database-prisma": (Category.PRISMA_QUERIES, Category.TRANSACTIONS),
    "4-code-safety-patterns": (Category.CODE_SAFETY,),
    "5-error-handling-logging": (Category.EXCEPTION_TYPES, Category.LOGGING),
    "6-external-services-timing": (Category.EXTERNAL_SERVICES,),
    "7-queue-job-processing": (Category.JOB_PROCESSING,),
    "8-api-design-patterns": (Category.API_DESIGN,),
    "9-testing-code-quality": (Category.CODE_QUALITY,),
    "general-practices": (
        Category.SECURITY,
        Category.ERROR_HANDLING,
        Category.PERFORMANCE,
        Category.RELIABILITY,
        Category.MAINTAINABILITY,
    ),
}

# Categories a run evaluates when nothing is requested explicitly.
SOP_CATEGORIES: tuple[Category, ...] = tuple(
    category
    for sop, categories in SOP_CATEGORY_MAP.items()
    if sop != "general-practices"
    for category in categories
)

# (filename predicate, categories) in match order; first match wins.
_FILE_PATTERNS: tuple[tuple[str, tuple[Category, ...]], ...] = (
    (
        ".service.ts",
        (
            Category.EXCEPTION_TYPES,
            Category.LOGGING,
            Category.PRISMA_QUERIES,
            Category.TRANSACTIONS,
            Category.TENANT_ISOLATION,
            Category.CODE_SAFETY,
            Category.EXTERNAL_SERVICES,
            Category.CODE_QUALITY,
        ),
    ),
    (".controller.ts", (Category.API_DESIGN, Category.SUPABASE_AUTH, Category.CODE_QUALITY)),
)


def _dedupe(categories: Iterable[Category]) -> tuple[Category, ...]:
    ordered: list[Category] = []
    for category in categories:
        if category not in ordered:
            ordered.append(category)
    return tuple(ordered)


def select_categories_for_file(filename: str) -> tuple[Category, ...]:
    """Pick the categories relevant to a file from its name."""
    for suffix, categories in _FILE_PATTERNS:
        if filename.endswith(suffix):
            return _dedupe(categories)
    if "processor" in filename or "consumer" in filename:
        return _dedupe(
            (
                Category.JOB_PROCESSING,
                Category.EXCEPTION_TYPES,
                Category.LOGGING,
                Category.TENANT_ISOLATION,
                Category.CODE_QUALITY,
            )
        )
    if "/dto/" in filename:
        return (Category.API_DESIGN, Category.CODE_QUALITY)
    if "repository" in filename:
        return (
            Category.PRISMA_QUERIES,
            Category.TRANSACTIONS,
            Category.TENANT_ISOLATION,
            Category.CODE_QUALITY,
        )
    if "guard" in filename:
        return (Category.SUPABASE_AUTH, Category.CODE_QUALITY)
    return (Category.EXCEPTION_TYPES, Category.LOGGING, Category.CODE_QUALITY)


def parse_category(value: str | Category) -> Category:
    if isinstance(value, Category):
        return value
    try:
        return Category(value)
    except ValueError:
        raise ConfigurationError(f"Unknown category: {value}") from None


@dataclass(frozen=True)
class Selection:
    """Resolved categories for a run plus optional per-category rule filters."""

    categories: tuple[Category, ...]
    rule_filters: dict[Category, frozenset[str]] = field(default_factory=dict)

    def rule_ids_for(self, category: Category) -> frozenset[str] | None:
        return self.rule_filters.get(category)


def resolve_selection(
    catalog: RuleCatalog,
    categories: Iterable[str | Category] | None = None,
    rule_ids: Iterable[str] | None = None,
    sops: Iterable[str] | None = None,
) -> Selection:
    """
    Resolve requested categories, SOPs, and rule IDs against the catalog.

    Everything is validated before any rule runs; an unknown name raises
    ConfigurationError. Rule IDs narrow the category that owns them to just
    those rules. With no request at all, every SOP category in the catalog
    is selected.
    """
    ordered: list[Category] = []

    for value in categories or ():
        category = parse_category(value)
        if category not in catalog:
            raise ConfigurationError(f"Unknown category: {category.value}")
        ordered.append(category)

    for sop in sops or ():
        if sop not in SOP_CATEGORY_MAP:
            raise ConfigurationError(
                f"Unknown SOP: {sop}. Available: {', '.join(SOP_CATEGORY_MAP)}"
            )
        ordered.extend(c for c in SOP_CATEGORY_MAP[sop] if c in catalog)

    filters: dict[Category, set[str]] = {}
    for rule_id in rule_ids or ():
        rule = catalog.rule(rule_id)
        filters.setdefault(rule.category, set()).add(rule_id)
        ordered.append(rule.category)

    if not ordered:
        ordered = [c for c in SOP_CATEGORIES if c in catalog]

    return Selection(
        categories=_dedupe(ordered),
        rule_filters={category: frozenset(ids) for category, ids in filters.items()},
    )
