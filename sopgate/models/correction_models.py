"""
Self-Correction Data Models — Applied fixes and per-iteration correction records.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from sopgate.models.rule_models import RuleViolation


class CorrectionConfig(BaseModel):
    """Controls which fix patterns may run and how many passes are allowed."""

    max_iterations: int = Field(default=3, ge=1)
    fix_rules: list[str] | None = Field(
        default=None,
        description="Allow-list of rule IDs to fix. If None, every eligible rule is fixed.",
    )
    skip_rules: list[str] = Field(
        default_factory=list, description="Rule IDs never fixed automatically"
    )


class AppliedFix(BaseModel):
    """A single mechanical rewrite the correction engine performed."""

    rule_id: str
    line: int
    description: str
    before: str = ""
    after: str = ""


class CorrectionResult(BaseModel):
    """Outcome of one Apply + Re-check iteration."""

    original_content: str
    corrected_content: str
    applied_fixes: list[AppliedFix] = Field(default_factory=list)
    remaining_violations: list[RuleViolation] = Field(default_factory=list)


class CorrectionLoopResult(BaseModel):
    """Final state of the correction loop for one file."""

    filename: str
    iterations: int = 0
    initial_violations: int = 0
    final_violations: int = 0
    history: list[CorrectionResult] = Field(default_factory=list)
    final_content: str
    remaining_violations: list[RuleViolation] = Field(default_factory=list)
    success: bool = False

    @property
    def applied_fixes(self) -> list[AppliedFix]:
        return [fix for step in self.history for fix in step.applied_fixes]


class Suggestion(BaseModel):
    """Remediation guidance for a rule that still has violations."""

    rule_id: str
    message: str
    code_example: str | None = None
