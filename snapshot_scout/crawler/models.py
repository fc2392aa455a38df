# snapshot_scout/crawler/models.py
"""
Data models for the snapshot crawler.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Set

from bs4 import BeautifulSoup


@dataclass(frozen=True, slots=True)
class Link:
    """An absolute, resolved anchor discovered on a page."""

    text: str
    href: str


@dataclass(slots=True)
class PageData:
    """A loaded page: the URL it was requested with and its document tree."""

    url: str
    document: BeautifulSoup


@dataclass(slots=True)
class CrawlContext:
    """
    State of one provider's crawl.

    ``visited`` only grows; it is shared by the child contexts created with
    :meth:`descend`, so a URL is fetched at most once per crawl.
    """

    max_depth: int
    depth: int = 0
    visited: Set[str] = field(default_factory=set)

    @property
    def exhausted(self) -> bool:
        return self.depth > self.max_depth

    def descend(self) -> CrawlContext:
        return CrawlContext(max_depth=self.max_depth, depth=self.depth + 1, visited=self.visited)

    def claim(self, url: str) -> bool:
        """Mark *url* visited; False if it already was."""
        if url in self.visited:
            return False
        self.visited.add(url)
        return True
