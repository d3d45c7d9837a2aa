"""
Source Loader — Turns paths or raw payloads into decoded file contents.

Files that cannot be read, are not valid UTF-8, or exceed the configured size
limit are skipped and reported as LoadDiagnostics. They never reach the rule
engine and never count as analyzed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Mapping

from sopgate.config import settings
from sopgate.models.validation_models import LoadDiagnostic

logger = logging.getLogger("sopgate.core.loader")


@dataclass
class LoadedSources:
    contents: dict[str, str] = field(default_factory=dict)
    diagnostics: list[LoadDiagnostic] = field(default_factory=list)

    def skip(self, path: str, error: str) -> None:
        logger.warning(f"Skipping {path}: {error}")
        self.diagnostics.append(LoadDiagnostic(file=path, error=error))


def _decode(
    loaded: LoadedSources, path: str, raw: str | bytes | None, max_bytes: int
) -> None:
    if raw is None:
        loaded.skip(path, "No content")
        return
    if isinstance(raw, bytes):
        if len(raw) > max_bytes:
            loaded.skip(path, f"File exceeds {max_bytes} bytes")
            return
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            loaded.skip(path, f"Not valid UTF-8: {e}")
            return
    elif len(raw.encode("utf-8")) > max_bytes:
        loaded.skip(path, f"File exceeds {max_bytes} bytes")
        return
    loaded.contents[path] = raw


def decode_sources(
    sources: Mapping[str, str | bytes | None], max_bytes: int | None = None
) -> LoadedSources:
    """Decode in-memory payloads keyed by path. Input order is preserved."""
    limit = settings.max_file_size_bytes if max_bytes is None else max_bytes
    loaded = LoadedSources()
    for path, raw in sources.items():
        _decode(loaded, path, raw, limit)
    return loaded


def read_files(
    paths: Iterable[str | Path], max_bytes: int | None = None
) -> LoadedSources:
    """Read files from disk. Unreadable paths become diagnostics."""
    limit = settings.max_file_size_bytes if max_bytes is None else max_bytes
    loaded = LoadedSources()
    for path in paths:
        key = str(path)
        try:
            raw = Path(path).read_bytes()
        except OSError as e:
            loaded.skip(key, f"{type(e).__name__}: {e}")
            continue
        _decode(loaded, key, raw, limit)
    logger.info(
        f"Loaded {len(loaded.contents)} files ({len(loaded.diagnostics)} skipped)"
    )
    return loaded
