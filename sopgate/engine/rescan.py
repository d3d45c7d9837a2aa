"""
Re-Scan Module — Re-runs the rule engine on corrected source to verify fixes.

After a pass of fix patterns:
1. Re-run the selected categories on the corrected source
2. Check which fixed rules were eliminated
3. Report rules that appear now but did not before
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Collection, Sequence

from sopgate.core.rule_engine import RuleEngine
from sopgate.models.rule_models import Category, RuleViolation

logger = logging.getLogger("sopgate.engine.rescan")


@dataclass
class RescanResult:
    """Result of re-scanning corrected code."""

    remaining: list[RuleViolation] = field(default_factory=list)
    eliminated_rules: list[str] = field(default_factory=list)
    persisting_rules: list[str] = field(default_factory=list)
    new_rules_introduced: list[str] = field(default_factory=list)
    details: str = ""

    @property
    def passed(self) -> bool:
        return not self.remaining


def rescan_corrected_source(
    engine: RuleEngine,
    categories: Sequence[Category],
    filename: str,
    corrected: str,
    fixed_rule_ids: Collection[str],
    previous: Sequence[RuleViolation],
) -> RescanResult:
    """
    Re-scan corrected source.

    Args:
        engine: Rule engine used for the original validation
        categories: Categories to re-run
        filename: File path for context
        corrected: Source after fixes
        fixed_rule_ids: Rules that had at least one fix applied this pass
        previous: Violations before this pass

    Returns:
        RescanResult with the remaining violations and per-rule outcome
    """
    remaining = engine.collect_violations(categories, {filename: corrected})
    remaining_ids = {v.rule_id for v in remaining}
    previous_ids = {v.rule_id for v in previous}

    result = RescanResult(remaining=remaining)
    for rule_id in sorted(set(fixed_rule_ids)):
        if rule_id in remaining_ids:
            result.persisting_rules.append(rule_id)
        else:
            result.eliminated_rules.append(rule_id)
    result.new_rules_introduced = sorted(remaining_ids - previous_ids)

    parts = [f"{len(remaining)} violation(s) remaining"]
    if result.eliminated_rules:
        parts.append(f"eliminated {', '.join(result.eliminated_rules)}")
    if result.persisting_rules:
        parts.append(f"partially fixed {', '.join(result.persisting_rules)}")
    if result.new_rules_introduced:
        parts.append(f"new {', '.join(result.new_rules_introduced)}")
    result.details = f"Re-scan {filename}: {'; '.join(parts)}"

    if result.new_rules_introduced:
        logger.warning(result.details)
    else:
        logger.info(result.details)
    return result
