"""
Health Check Route — GET /health
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from sopgate.api.dependencies import get_catalog
from sopgate.config import settings
from sopgate.core.catalog import RuleCatalog

router = APIRouter()


@router.get("/health")
async def health(catalog: RuleCatalog = Depends(get_catalog)):
    """Health check endpoint."""
    return {
        "status": "ok",
        "version": "1.0.0",
        "categories": len(catalog.categories),
        "rules": len(catalog),
        "gating_profile": settings.gating_profile,
    }
