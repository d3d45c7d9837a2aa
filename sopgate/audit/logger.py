"""
Audit Logger — Structured JSON-lines audit trail.

Records every API run with: timestamp, run_id, action, files analyzed,
categories, total score, gating outcome, fixes applied, and duration.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from pathlib import Path

from sopgate.config import settings
from sopgate.models.validation_models import AuditEntry

logger = logging.getLogger("sopgate.audit")


class AuditLogger:
    """Appends audit entries to a JSON-lines file."""

    def __init__(self, log_path: str | None = None) -> None:
        self.log_path = Path(log_path or settings.audit_log_path)
        self._lock = threading.Lock()

    def log(self, entry: AuditEntry) -> None:
        record = {
            "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
            **entry.model_dump(),
        }
        try:
            with self._lock, open(self.log_path, "a", encoding="utf-8") as f:
                f.write(json.dumps(record) + "\n")
        except OSError as e:
            logger.error(f"Failed to write audit log: {e}")

    def read_recent(self, count: int = 50, action: str | None = None) -> list[dict]:
        """Most recent `count` entries, optionally only one action. Malformed lines are skipped."""
        if not self.log_path.exists():
            return []

        entries: list[dict] = []
        with open(self.log_path, encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    record = json.loads(line)
                except json.JSONDecodeError:
                    logger.warning(f"Skipping malformed audit line in {self.log_path}")
                    continue
                if action is None or record.get("action") == action:
                    entries.append(record)

        return entries[-count:]
