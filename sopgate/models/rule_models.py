"""
Rule Engine Data Models — Rules, findings, violations, and per-category results.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from sopgate.core.line_context import LineContext


class Severity(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"


class Bucket(str, Enum):
    """Where a rule's findings land in a ValidationResult."""

    VIOLATION = "violation"
    WARNING = "warning"
    SUGGESTION = "suggestion"


# Default severity -> bucket routing. Rules may override with Rule.bucket.
SEVERITY_BUCKETS: dict[Severity, Bucket] = {
    Severity.CRITICAL: Bucket.VIOLATION,
    Severity.HIGH: Bucket.VIOLATION,
    Severity.MEDIUM: Bucket.WARNING,
}


class Category(str, Enum):
    # SOP categories
    SUPABASE_AUTH = "supabase-auth"
    TENANT_ISOLATION = "tenant-isolation"
    AUDIT_LOGGING = "audit-logging"
    PRISMA_QUERIES = "prisma-queries"
    TRANSACTIONS = "transactions"
    CODE_SAFETY = "code-safety"
    EXCEPTION_TYPES = "exception-types"
    LOGGING = "logging"
    EXTERNAL_SERVICES = "external-services"
    JOB_PROCESSING = "job-processing"
    API_DESIGN = "api-design"
    CODE_QUALITY = "code-quality"

    # General practices
    SECURITY = "security"
    ERROR_HANDLING = "error-handling"
    PERFORMANCE = "performance"
    RELIABILITY = "reliability"
    MAINTAINABILITY = "maintainability"


@dataclass(frozen=True)
class Finding:
    """Transient result of a single rule check."""

    message: str
    suggested_fix: str | None = None


RuleCheckFn = Callable[[str, int, "LineContext"], Finding | None]


@dataclass(frozen=True)
class Rule:
    """A single line-level check. Stateless and immutable."""

    rule_id: str
    name: str
    category: Category
    severity: Severity
    check: RuleCheckFn
    description: str = ""
    bucket: Bucket | None = None

    @property
    def resolved_bucket(self) -> Bucket:
        return self.bucket or SEVERITY_BUCKETS[self.severity]


class RuleViolation(BaseModel):
    """A blocking-bucket finding tied to a file and line."""

    model_config = ConfigDict(frozen=True)

    file: str = Field(..., description="File path where violation was found")
    line: int = Field(..., description="1-based line number of violation")
    rule_id: str = Field(..., description="Unique rule identifier, e.g. 'INV-ERROR-TYPE'")
    message: str = Field(..., description="Human-readable violation message")
    severity: Severity
    fix: str | None = Field(default=None, description="Suggested remediation")


class RuleWarning(BaseModel):
    """An advisory finding. Never blocks gating by itself."""

    model_config = ConfigDict(frozen=True)

    file: str
    line: int
    rule_id: str
    message: str


class RuleDiagnostic(BaseModel):
    """A rule check that raised instead of returning a finding."""

    rule_id: str
    category: Category
    file: str
    line: int
    error: str = Field(..., description="Exception type and message")


class ValidationResult(BaseModel):
    """Result of running one category against a set of files."""

    category: Category
    metric_name: str
    sop: str = ""
    score: float = Field(..., ge=0.0, le=1.0)
    passed: bool
    violations: list[RuleViolation] = Field(default_factory=list)
    warnings: list[RuleWarning] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    diagnostics: list[RuleDiagnostic] = Field(default_factory=list)
    files_analyzed: int = 0
