"""
Job Processing Rules — idempotent, tenant-aware, logged queue processors.

Most checks only apply to files whose name contains "processor" or
"consumer". The retry-configuration suggestion applies to any file that
enqueues jobs.
"""

from __future__ import annotations

import re

from sopgate.core.line_context import LineContext
from sopgate.models.rule_models import Bucket, Category, Finding, Rule, Severity

CATEGORY = Category.JOB_PROCESSING
METRIC_NAME = "job-processing-compliance"
SOP = "7-queue-job-processing"

ENTRYPOINTS = ("async process(", "async execute(")
IDEMPOTENCY_MARKERS = ("already", "processed", "idempotent", "skip")
SIDE_EFFECTS = ("sendEmail", "notify", "webhook", "create(")
JOB_TYPE = re.compile(r"Job<[^>]+>|interface.*JobData")
ENQUEUE = re.compile(r"\.add\(|\.addJob\(")


def is_processor(filename: str) -> bool:
    return "processor" in filename or "consumer" in filename


def check_idempotency(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    if line_number != 1 or not is_processor(ctx.filename):
        return None
    content = ctx.full_content
    if not any(entry in content for entry in ENTRYPOINTS):
        return None
    if any(marker in content for marker in IDEMPOTENCY_MARKERS):
        return None
    if any(effect in content for effect in SIDE_EFFECTS):
        return Finding("Job processor may not be idempotent. Consider checking if already processed.")
    return None


def check_job_tenant(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    if not is_processor(ctx.filename) or not JOB_TYPE.search(line):
        return None
    block = "\n".join(ctx.ahead(15))
    if "organizationId" in block or "organization_id" in block:
        return None
    return Finding("Job data may be missing organizationId for tenant isolation.")


def check_job_logging(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    if line_number != 1 or not is_processor(ctx.filename):
        return None
    content = ctx.full_content
    if "this.logger.log" in content or "this.logger.error" in content:
        return None
    return Finding("Job processor should log start/completion/failure.")


def check_retry_config(line: str, line_number: int, ctx: LineContext) -> Finding | None:
    if not ENQUEUE.search(line):
        return None
    call = "\n".join(ctx.ahead(10))
    if "attempts" in call or "backoff" in call:
        return None
    return Finding("Job added without explicit retry configuration.")


RULES: tuple[Rule, ...] = (
    Rule(
        rule_id="INV-JOB-IDEMPOTENT",
        name="Idempotent processors",
        category=CATEGORY,
        severity=Severity.MEDIUM,
        check=check_idempotency,
    ),
    Rule(
        rule_id="INV-JOB-TENANT",
        name="Tenant id in job data",
        category=CATEGORY,
        severity=Severity.MEDIUM,
        check=check_job_tenant,
    ),
    Rule(
        rule_id="INV-JOB-LOGGING",
        name="Processor lifecycle logging",
        category=CATEGORY,
        severity=Severity.MEDIUM,
        check=check_job_logging,
    ),
    Rule(
        rule_id="SUGGEST-JOB-RETRY",
        name="Explicit job retry options",
        category=CATEGORY,
        severity=Severity.MEDIUM,
        check=check_retry_config,
        bucket=Bucket.SUGGESTION,
    ),
)
