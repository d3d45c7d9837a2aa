"""
Prerequisite Imports — Keep NestJS symbols introduced by fixes importable.

After a pass of fix patterns, any known symbol that appears in the rewritten
text but is not imported from '@nestjs/common' is added, either merged into
the existing import from that module or prepended as a new import line.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable

from sopgate.models.correction_models import AppliedFix

logger = logging.getLogger("sopgate.engine.prerequisites")

IMPORT_RULE_ID = "INV-IMPORT"
NESTJS_COMMON = "@nestjs/common"

PREREQUISITE_SYMBOLS: dict[str, str] = {
    "NotFoundException": NESTJS_COMMON,
    "BadRequestException": NESTJS_COMMON,
    "ForbiddenException": NESTJS_COMMON,
    "UnauthorizedException": NESTJS_COMMON,
    "ConflictException": NESTJS_COMMON,
    "Logger": NESTJS_COMMON,
}

COMMON_IMPORT = re.compile(r"import\s*\{([^}]+)\}\s*from\s*['\"]@nestjs/common['\"]")


def is_imported(symbol: str, content: str) -> bool:
    return re.search(r"import\s*\{[^}]*\b" + symbol + r"\b[^}]*\}", content) is not None


def missing_symbols(content: str, introduced: Iterable[str]) -> list[str]:
    """Known symbols used in `introduced` text that `content` does not import."""
    text = "\n".join(introduced)
    return [
        symbol
        for symbol in PREREQUISITE_SYMBOLS
        if re.search(r"\b" + symbol + r"\b", text) and not is_imported(symbol, content)
    ]


def add_missing_imports(
    content: str, introduced: Iterable[str]
) -> tuple[str, list[AppliedFix]]:
    """
    Add imports for symbols the fixes introduced.

    Args:
        content: Source after fix patterns ran.
        introduced: Replacement texts produced by those fix patterns.

    Returns:
        (new content, applied INV-IMPORT fixes). Content is unchanged when
        nothing is missing.
    """
    missing = missing_symbols(content, introduced)
    if not missing:
        return content, []

    existing = COMMON_IMPORT.search(content)
    if existing:
        names = [name.strip() for name in existing.group(1).split(",") if name.strip()]
        statement = f"import {{ {', '.join(names + missing)} }} from '{NESTJS_COMMON}'"
        line = content.count("\n", 0, existing.start()) + 1
        content = content[: existing.start()] + statement + content[existing.end() :]
        fix = AppliedFix(
            rule_id=IMPORT_RULE_ID,
            line=line,
            description=f"Add {', '.join(missing)} to existing {NESTJS_COMMON} import",
            before=existing.group(0),
            after=statement,
        )
    else:
        block = "\n".join(f"import {{ {symbol} }} from '{NESTJS_COMMON}';" for symbol in missing)
        content = f"{block}\n{content}"
        fix = AppliedFix(
            rule_id=IMPORT_RULE_ID,
            line=1,
            description=f"Import {', '.join(missing)} from {NESTJS_COMMON}",
            after=block,
        )

    logger.info(f"Added imports: {', '.join(missing)}")
    return content, [fix]
