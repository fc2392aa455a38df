# snapshot_scout/crawler/classifier.py
"""
Pattern tiers deciding whether a URL plausibly names a WAX snapshot.

Primary patterns need the "wax" marker next to a snapshot-like file
extension. Fallback patterns accept any archive that does not mention an
excluded network; they are tried only after primary matching and directory
descent both came up empty.
"""
from __future__ import annotations

import re
from typing import Pattern, Sequence

__all__ = ("PRIMARY_PATTERNS", "FALLBACK_PATTERNS", "PatternClassifier")

_EXT = r"\.(bin|tar\.gz|zst|gz)$"
_EXT_BZ2 = r"\.(bin|tar\.gz|zst|gz|bz2)$"
_EXCLUDED = r"^(?!.*\b(fio|jungle)\b)"

PRIMARY_PATTERNS: Sequence[Pattern[str]] = (
    re.compile(r"wax.*" + _EXT, re.IGNORECASE),
    re.compile(r"wax.*main.*" + _EXT_BZ2, re.IGNORECASE),
    re.compile(r"snapshot.*wax.*main.*" + _EXT_BZ2, re.IGNORECASE),
    re.compile(r"wax.*snapshot.*" + _EXT_BZ2, re.IGNORECASE),
)

FALLBACK_PATTERNS: Sequence[Pattern[str]] = (
    re.compile(_EXCLUDED + r".*snapshot.*" + _EXT, re.IGNORECASE),
    re.compile(_EXCLUDED + r".*?" + _EXT, re.IGNORECASE),
)


class PatternClassifier:
    """Pure, two-tier URL classifier."""

    def __init__(
        self,
        primary: Sequence[Pattern[str]] = PRIMARY_PATTERNS,
        fallback: Sequence[Pattern[str]] = FALLBACK_PATTERNS,
    ) -> None:
        self.primary = tuple(primary)
        self.fallback = tuple(fallback)

    def classify(self, url: str, primary_only: bool = False) -> bool:
        if any(p.search(url) for p in self.primary):
            return True
        if primary_only:
            return False
        return any(p.search(url) for p in self.fallback)
