"""
FastAPI Dependencies — Shared singletons injected via Depends().
"""

from __future__ import annotations

from functools import lru_cache

from sopgate.audit.logger import AuditLogger
from sopgate.core.catalog import RuleCatalog, build_default_catalog
from sopgate.core.rule_engine import RuleEngine
from sopgate.core.runner import ValidationRunner
from sopgate.engine.self_correction import SelfCorrectionEngine


@lru_cache
def get_catalog() -> RuleCatalog:
    """Shared rule catalog, built once."""
    return build_default_catalog()


@lru_cache
def get_rule_engine() -> RuleEngine:
    return RuleEngine(get_catalog())


@lru_cache
def get_runner() -> ValidationRunner:
    return ValidationRunner(get_rule_engine())


@lru_cache
def get_correction_engine() -> SelfCorrectionEngine:
    return SelfCorrectionEngine(get_rule_engine())


@lru_cache
def get_audit_logger() -> AuditLogger:
    """Shared audit logger singleton."""
    return AuditLogger()
