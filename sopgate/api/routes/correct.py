"""
Correction Route — POST /correct

Runs the self-correction loop on each submitted file and returns the
corrected sources with the fixes applied and suggestions for what remains.
Files that cannot be loaded are reported as load diagnostics.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid

from fastapi import APIRouter, Depends, HTTPException

from sopgate.api.dependencies import get_audit_logger, get_correction_engine
from sopgate.audit.logger import AuditLogger
from sopgate.config import settings
from sopgate.core.errors import ConfigurationError
from sopgate.core.loader import decode_sources
from sopgate.core.selection import resolve_selection
from sopgate.engine.self_correction import SelfCorrectionEngine
from sopgate.engine.suggestions import generate_suggestions
from sopgate.models.correction_models import CorrectionConfig
from sopgate.models.validation_models import AuditEntry, CorrectRequest, CorrectResponse

logger = logging.getLogger("sopgate.api.correct")

router = APIRouter()


@router.post("/correct", response_model=CorrectResponse)
async def correct(
    request: CorrectRequest,
    default_engine: SelfCorrectionEngine = Depends(get_correction_engine),
    audit: AuditLogger = Depends(get_audit_logger),
):
    """
    Auto-fix mechanical violations.

    Request body:
        - files: list of {path, content}
        - categories: optional categories to validate (default: all SOP categories)
        - max_iterations: optional iteration cap
        - fix_rules / skip_rules: optional allow/deny lists of rule IDs
    """
    if not request.files:
        raise HTTPException(status_code=400, detail="No files provided")

    engine = default_engine
    if request.categories:
        try:
            selection = resolve_selection(default_engine.engine.catalog, request.categories)
        except ConfigurationError as e:
            raise HTTPException(status_code=400, detail=str(e))
        engine = SelfCorrectionEngine(default_engine.engine, selection.categories)

    config = CorrectionConfig(
        max_iterations=request.max_iterations or settings.max_correction_iterations,
        fix_rules=request.fix_rules,
        skip_rules=request.skip_rules,
    )
    loaded = decode_sources({f.path: f.content for f in request.files})
    for diag in loaded.diagnostics:
        logger.warning(f"Skipping {diag.file}: {diag.error}")

    start = time.monotonic()
    results = await asyncio.to_thread(engine.correct_files, loaded.contents, config)

    remaining = [v for result in results for v in result.remaining_violations]
    fixes_applied = sum(len(result.applied_fixes) for result in results)
    audit.log(
        AuditEntry(
            run_id=uuid.uuid4().hex[:8],
            action="correct",
            files_analyzed=len(results),
            categories=[c.value for c in engine.categories],
            passed=all(result.success for result in results),
            blockers=len(remaining),
            fixes_applied=fixes_applied,
            duration_ms=round((time.monotonic() - start) * 1000, 2),
        )
    )
    logger.info(f"Corrected {len(results)} files: {fixes_applied} fixes applied")

    return CorrectResponse(
        results=results,
        suggestions=generate_suggestions(remaining),
        load_diagnostics=loaded.diagnostics,
    )
