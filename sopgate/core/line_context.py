"""
Line Context Builder — Bounded heuristic context for a single source line.

Structure is inferred from raw text only. Enclosing function and try/catch
detection walk backward from the current line with a whole-line brace
balance. A start line counts once the balance is no longer positive, so a
signature whose "{" sits on a later line still encloses its body. Braces
inside strings can mislead the scan. That is accepted.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import cached_property
from typing import Iterator, Sequence

from sopgate.config import settings

FUNCTION_START = re.compile(r"async\s+\w+|function\s+\w+")
CLASS_START = re.compile(r"^(?:export\s+)?class\s+\w+")
TRY_START = re.compile(r"try\s*\{|catch\s*\([^)]*\)\s*\{")


def scan_enclosing(lines: Sequence[str], index: int, start: re.Pattern[str]) -> bool:
    """
    Backward scan for an enclosing block start.

    One running balance is kept over whole lines, +1 per '}' and -1 per '{'.
    The first line matching `start` while the balance is at most zero wins.
    """
    balance = 0
    for i in range(index, -1, -1):
        line = lines[i]
        balance += line.count("}") - line.count("{")
        if balance <= 0 and start.search(line):
            return True
    return False


def scan_class(lines: Sequence[str], index: int) -> bool:
    """Backward scan for any class declaration. No brace balancing."""
    return any(CLASS_START.search(lines[i]) for i in range(index, -1, -1))


def brace_block(lines: Sequence[str], start: int, limit: int, col: int = 0) -> str:
    """
    Text from lines[start] (from column `col`) up to the brace that closes the
    first '{' encountered, looking at no more than `limit` lines.

    If no brace opens or the block does not close in range, everything scanned
    is returned.
    """
    parts: list[str] = []
    depth = 0
    opened = False
    for i in range(start, min(start + limit, len(lines))):
        text = lines[i][col:] if i == start else lines[i]
        for pos, ch in enumerate(text):
            if ch == "{":
                depth += 1
                opened = True
            elif ch == "}":
                depth -= 1
                if opened and depth == 0:
                    parts.append(text[: pos + 1])
                    return "\n".join(parts)
        parts.append(text)
    return "\n".join(parts)


@dataclass(frozen=True, eq=False)
class LineContext:
    """
    Heuristic context for one line of one file.

    Built per line by the rule engine and discarded after every rule in the
    category has seen it. Windows and structural flags are computed on first
    access.
    """

    filename: str
    full_content: str
    lines: Sequence[str] = field(repr=False)
    index: int
    preceding_window: int = 15
    following_window: int = 30

    @property
    def line(self) -> str:
        return self.lines[self.index]

    @property
    def line_number(self) -> int:
        return self.index + 1

    @cached_property
    def offset(self) -> int:
        """Character offset of the current line within full_content."""
        return sum(len(text) + 1 for text in self.lines[: self.index])

    @cached_property
    def preceding_lines(self) -> tuple[str, ...]:
        return tuple(self.lines[max(0, self.index - self.preceding_window) : self.index])

    @cached_property
    def following_lines(self) -> tuple[str, ...]:
        end = self.index + 1 + self.following_window
        return tuple(self.lines[self.index + 1 : end])

    @cached_property
    def inside_function(self) -> bool:
        return scan_enclosing(self.lines, self.index, FUNCTION_START)

    @cached_property
    def inside_class(self) -> bool:
        return scan_class(self.lines, self.index)

    @cached_property
    def inside_exception_handler(self) -> bool:
        return scan_enclosing(self.lines, self.index, TRY_START)

    def ahead(self, count: int) -> list[str]:
        """The current line plus following lines, `count` lines in total."""
        return list(self.lines[self.index : self.index + count])

    def behind(self, count: int) -> list[str]:
        """Up to `count` lines immediately before the current line."""
        return list(self.lines[max(0, self.index - count) : self.index])

    def block(self, limit: int, col: int = 0) -> str:
        """Brace-bounded block starting at the current line."""
        return brace_block(self.lines, self.index, limit, col)


def build_line_context(
    filename: str,
    content: str,
    lines: Sequence[str],
    index: int,
    preceding_window: int | None = None,
    following_window: int | None = None,
) -> LineContext:
    return LineContext(
        filename=filename,
        full_content=content,
        lines=lines,
        index=index,
        preceding_window=(
            settings.preceding_window if preceding_window is None else preceding_window
        ),
        following_window=(
            settings.following_window if following_window is None else following_window
        ),
    )


def iter_line_contexts(
    filename: str,
    content: str,
    preceding_window: int | None = None,
    following_window: int | None = None,
) -> Iterator[LineContext]:
    """Yield one LineContext per line of `content`, in order."""
    lines = tuple(content.split("\n"))
    for index in range(len(lines)):
        yield build_line_context(
            filename, content, lines, index, preceding_window, following_window
        )
