"""
SOPGate FastAPI Application — SOP compliance gate for NestJS/Prisma code.

  POST /validate → run SOP categories over files, score and gate the result
  POST /check    → validate one file with categories picked from its name
  POST /correct  → auto-fix mechanical violations, re-check, repeat
  GET  /health   → {"status": "ok", ...}
"""

from __future__ import annotations

import logging

from dotenv import load_dotenv
load_dotenv()

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from sopgate.api.routes.correct import router as correct_router
from sopgate.api.routes.health import router as health_router
from sopgate.api.routes.validate import router as validate_router
from sopgate.config import settings

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("sopgate")

app = FastAPI(
    title="SOPGate",
    description="Line-level SOP compliance validation with weighted gating and auto-correction",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router)
app.include_router(validate_router)
app.include_router(correct_router)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    body = await request.body()
    logger.error(f"Validation Error. Raw body: {body.decode('utf-8', 'replace')[:500]} | Errors: {exc.errors()}")
    return JSONResponse(
        status_code=422,
        content={"detail": exc.errors(), "body": body.decode("utf-8", "replace")[:100]},
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port)
