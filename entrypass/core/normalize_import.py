"""Import Normalization — pure preparation of raw import lines into unique codes.

Invariants:
    - All functions are PURE: no IO, no async, no DB
    - Codes are trimmed; empty-after-trim and over-length lines are dropped
    - Only the first non-empty line may be discarded as a header, and only when
      looks_like_code rejects it; an over-length first line is dropped and uses up
      the header slot
    - Output codes are unique and keep first-seen order
    - len(codes) + dropped == len(lines)

Design Decisions:
    - Header detection is a caller-supplied predicate: the import surface owns the
      notion of what a code looks like, the engine only applies it
    - Default predicate compiled from settings.code_pattern (non-numeric first line = header)
"""

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from entrypass.core.domain_types import MAX_CODE_LENGTH

LooksLikeCode = Callable[[str], bool]

DEFAULT_CODE_PATTERN = r"^(?=[A-Za-z0-9_-]*\d)[A-Za-z0-9_-]+$"


@dataclass(frozen=True)
class PreparedImport:
    """Unique codes to hand to the store, plus lines dropped before the store."""
    codes: list[str]
    dropped: int
    header: str | None = None


def normalize_code(raw: str) -> str:
    return raw.strip()


def pattern_predicate(pattern: str = DEFAULT_CODE_PATTERN) -> LooksLikeCode:
    """Build a looks_like_code predicate from a regex (full match)."""
    compiled = re.compile(pattern)

    def looks_like_code(candidate: str) -> bool:
        return compiled.fullmatch(candidate) is not None

    return looks_like_code


def prepare_import(
    lines: Sequence[str], looks_like_code: LooksLikeCode | None = None,
) -> PreparedImport:
    """Trim, drop empties and a leading header, dedupe."""
    seen: dict[str, None] = {}
    dropped = 0
    header = None
    first_candidate = True
    for raw in lines:
        code = normalize_code(raw)
        if not code:
            dropped += 1
            continue
        if len(code) > MAX_CODE_LENGTH:
            first_candidate = False
            dropped += 1
            continue
        if first_candidate:
            first_candidate = False
            if looks_like_code is not None and not looks_like_code(code):
                header = code
                dropped += 1
                continue
        if code in seen:
            dropped += 1
            continue
        seen[code] = None
    return PreparedImport(codes=list(seen), dropped=dropped, header=header)
