"""
Validation Routes — POST /validate, POST /check

/validate runs the selected categories over all submitted files and gates
the result. With ?format=markdown the response is a Markdown report instead
of JSON. /check validates one file with categories picked from its name.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import PlainTextResponse

from sopgate.api.dependencies import get_audit_logger, get_runner
from sopgate.audit.logger import AuditLogger
from sopgate.config import settings
from sopgate.core.errors import ConfigurationError
from sopgate.core.metrics import get_gating_config
from sopgate.core.runner import ValidationRunner
from sopgate.models.validation_models import (
    AuditEntry,
    CheckRequest,
    FileCheckResult,
    ValidateRequest,
    ValidationSummary,
)
from sopgate.report.formatters import render_markdown

logger = logging.getLogger("sopgate.api.validate")

router = APIRouter()


@router.post("/validate", response_model=ValidationSummary)
async def validate(
    request: ValidateRequest,
    format: Literal["json", "markdown"] = "json",
    runner: ValidationRunner = Depends(get_runner),
    audit: AuditLogger = Depends(get_audit_logger),
):
    """
    Validate files against SOP categories.

    Request body:
        - files: list of {path, content}
        - categories / rules / sops: optional selection (default: all SOP categories)
        - profile: optional gating profile name

    Unknown categories, rules, SOPs, or profiles are rejected with 400.
    """
    if not request.files:
        raise HTTPException(status_code=400, detail="No files provided")

    start = time.monotonic()
    try:
        gating = get_gating_config(request.profile or settings.gating_profile)
        summary = await asyncio.to_thread(
            runner.run,
            {f.path: f.content for f in request.files},
            categories=request.categories,
            rule_ids=request.rules,
            sops=request.sops,
            gating=gating,
        )
    except ConfigurationError as e:
        logger.warning(f"Rejected validation request: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    audit.log(
        AuditEntry(
            run_id=summary.run_id,
            action="validate",
            files_analyzed=summary.files_analyzed,
            categories=[c.value for c in summary.categories],
            total_score=round(summary.total_score, 4),
            passed=summary.passed,
            blockers=summary.blockers,
            warnings=summary.warnings,
            duration_ms=round((time.monotonic() - start) * 1000, 2),
        )
    )

    if format == "markdown":
        return PlainTextResponse(render_markdown(summary), media_type="text/markdown")
    return summary


@router.post("/check", response_model=FileCheckResult)
async def check(
    request: CheckRequest,
    runner: ValidationRunner = Depends(get_runner),
    audit: AuditLogger = Depends(get_audit_logger),
):
    """Check a single file; categories default to those matching its name."""
    start = time.monotonic()
    try:
        gating = get_gating_config(settings.gating_profile)
        result = await asyncio.to_thread(
            runner.check_file,
            request.path,
            request.content,
            categories=request.categories,
            gating=gating,
        )
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    audit.log(
        AuditEntry(
            run_id=f"check-{int(time.time())}",
            action="check",
            files_analyzed=1,
            categories=[c.value for c in result.categories],
            total_score=round(result.score, 4),
            passed=result.passed,
            blockers=len(result.blockers),
            warnings=len(result.warnings),
            duration_ms=round((time.monotonic() - start) * 1000, 2),
        )
    )
    return result
