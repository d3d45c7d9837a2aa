"""
Rule Catalog — Registry of every rule, grouped by category.

The catalog is built once and never mutated. Rule IDs are unique across all
categories; a duplicate is a configuration error raised at build time.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Iterator

from sopgate.core.errors import ConfigurationError
from sopgate.models.rule_models import Category, Rule

from sopgate.core.rules import (
    api_design,
    audit_logging,
    code_quality,
    code_safety,
    error_handling,
    exception_types,
    external_services,
    job_processing,
    logging_practices,
    maintainability,
    performance,
    prisma_queries,
    reliability,
    security,
    supabase_auth,
    tenant_isolation,
    transactions,
)

# Registry order is evaluation and reporting order.
RULE_MODULES = (
    supabase_auth,
    tenant_isolation,
    audit_logging,
    prisma_queries,
    transactions,
    code_safety,
    exception_types,
    logging_practices,
    external_services,
    job_processing,
    api_design,
    code_quality,
    security,
    error_handling,
    performance,
    reliability,
    maintainability,
)


@dataclass(frozen=True)
class RuleGroup:
    """All rules of one category plus the metric and SOP they report under."""

    category: Category
    metric_name: str
    sop: str
    rules: tuple[Rule, ...]

    @property
    def rule_ids(self) -> tuple[str, ...]:
        return tuple(rule.rule_id for rule in self.rules)


class RuleCatalog:
    """Immutable category -> rules registry with rule-id lookup."""

    def __init__(self, groups: Iterable[RuleGroup]) -> None:
        by_category: dict[Category, RuleGroup] = {}
        by_id: dict[str, Rule] = {}

        for group in groups:
            if group.category in by_category:
                raise ConfigurationError(f"Duplicate category: {group.category.value}")
            for rule in group.rules:
                if rule.category != group.category:
                    raise ConfigurationError(
                        f"Rule {rule.rule_id} declares category {rule.category.value} "
                        f"but is registered under {group.category.value}"
                    )
                if rule.rule_id in by_id:
                    raise ConfigurationError(f"Duplicate rule ID: {rule.rule_id}")
                by_id[rule.rule_id] = rule
            by_category[group.category] = group

        self._groups = MappingProxyType(by_category)
        self._rules = MappingProxyType(by_id)

    @property
    def categories(self) -> tuple[Category, ...]:
        return tuple(self._groups)

    def group(self, category: Category) -> RuleGroup:
        if category not in self._groups:
            raise ConfigurationError(f"Unknown category: {category.value}")
        return self._groups[category]

    def rules_for(self, category: Category) -> tuple[Rule, ...]:
        return self.group(category).rules

    def rule(self, rule_id: str) -> Rule:
        if rule_id not in self._rules:
            raise ConfigurationError(f"Unknown rule: {rule_id}")
        return self._rules[rule_id]

    def subset(self, categories: Iterable[Category]) -> RuleCatalog:
        """A new catalog restricted to `categories`, in registry order."""
        wanted = set(categories)
        return RuleCatalog(group for group in self if group.category in wanted)

    def __contains__(self, category: object) -> bool:
        return category in self._groups

    def __iter__(self) -> Iterator[RuleGroup]:
        return iter(self._groups.values())

    def __len__(self) -> int:
        return len(self._rules)


def build_default_catalog() -> RuleCatalog:
    return RuleCatalog(
        RuleGroup(
            category=module.CATEGORY,
            metric_name=module.METRIC_NAME,
            sop=module.SOP,
            rules=tuple(module.RULES),
        )
        for module in RULE_MODULES
    )
