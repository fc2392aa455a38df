# snapshot_scout/crawler/scoring.py
"""
Relevance scoring for discovered links.

Scores only order links relative to each other; classification then walks
the ranked list and can stop at the first plausible snapshot.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, List, Literal, Pattern, Sequence

from snapshot_scout.crawler.models import Link

__all__ = ("ScoreRule", "SCORE_RULES", "LinkScorer")


@dataclass(frozen=True, slots=True)
class ScoreRule:
    """Adds *weight* when *pattern* is found in the lower-cased *field*."""

    field: Literal["href", "text"]
    pattern: Pattern[str]
    weight: int

    def applies(self, link: Link) -> bool:
        value = link.href if self.field == "href" else link.text
        return self.pattern.search(value.lower()) is not None


SCORE_RULES: Sequence[ScoreRule] = (
    ScoreRule("href", re.compile("wax"), 5),
    ScoreRule("text", re.compile("wax"), 4),
    ScoreRule("href", re.compile("mainnet"), 3),
    ScoreRule("href", re.compile("snapshot"), 2),
    ScoreRule("href", re.compile(r"(\.bin|\.gz|\.zst)$"), 2),
    ScoreRule("href", re.compile("latest"), 1),
    ScoreRule("href", re.compile(r"\d{6,}"), 1),
)


class LinkScorer:
    """Additive point system over a link's URL and anchor text."""

    def __init__(self, rules: Iterable[ScoreRule] = SCORE_RULES) -> None:
        self.rules = tuple(rules)
        if any(r.weight < 0 for r in self.rules):
            raise ValueError("score weights must be non-negative")

    def score(self, link: Link) -> int:
        return sum(rule.weight for rule in self.rules if rule.applies(link))

    def rank(self, links: Iterable[Link]) -> List[Link]:
        """Sort by descending score; ties keep discovery order."""
        return sorted(links, key=self.score, reverse=True)
