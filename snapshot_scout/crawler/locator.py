# snapshot_scout/crawler/locator.py
"""
Bounded-depth search for the most probable snapshot URL on a provider site.

For every page the locator ranks the same-site links, then tries in order:

1. a link matching a primary snapshot pattern;
2. descent into directory-like links, wax-mentioning ones first, returning
   the first subtree that yields a result;
3. a link matching a fallback pattern.

Depth is bounded by ``CrawlContext.max_depth`` and every URL is fetched at
most once per crawl.
"""
from __future__ import annotations

import asyncio
import re
from typing import List, Optional, Protocol
from urllib.parse import urlparse

from aiohttp import ClientError
from bs4 import ParserRejectedMarkup

from snapshot_scout.config import ScoutConfig
from snapshot_scout.crawler.classifier import PatternClassifier
from snapshot_scout.crawler.link_extractor import extract_links
from snapshot_scout.crawler.models import CrawlContext, Link, PageData
from snapshot_scout.crawler.scoring import LinkScorer
from snapshot_scout.logger import logger

__all__ = ("Loader", "SnapshotLocator")


class Loader(Protocol):
    async def load(self, url: str) -> Optional[PageData]:
        ...


def _mentions_wax(link: Link) -> bool:
    return "wax" in link.href.lower() or "wax" in link.text.lower()


class SnapshotLocator:
    """Finds a snapshot URL starting from a provider landing page."""

    def __init__(
        self,
        loader: Loader,
        config: ScoutConfig,
        classifier: Optional[PatternClassifier] = None,
        scorer: Optional[LinkScorer] = None,
    ) -> None:
        self.loader = loader
        self.config = config
        self.classifier = classifier or PatternClassifier()
        self.scorer = scorer or LinkScorer()
        self.avoid_domains = frozenset(config.avoid_domains)
        self.avoid_paths = re.compile(config.avoid_paths, re.IGNORECASE)
        self.paired_hosts = config.paired_hosts

    def new_context(self) -> CrawlContext:
        return CrawlContext(max_depth=self.config.max_depth)

    async def locate(self, start_url: str, context: Optional[CrawlContext] = None) -> Optional[str]:
        """Return the snapshot URL found under *start_url*, or None."""
        ctx = context if context is not None else self.new_context()
        return await self._search(start_url, ctx)

    async def _search(self, url: str, ctx: CrawlContext) -> Optional[str]:
        if ctx.exhausted:
            return None
        try:
            return await self._search_page(url, ctx)
        except (ValueError, ClientError, asyncio.TimeoutError, ParserRejectedMarkup) as exc:
            logger.debug("Giving up on %s: %r", url, exc)
            return None

    async def _search_page(self, url: str, ctx: CrawlContext) -> Optional[str]:
        host = urlparse(url).hostname or ""
        if host in self.avoid_domains:
            return None

        if ctx.depth == 0 and host in self.config.host_aliases:
            alias = self.config.host_aliases[host]
            logger.debug("Trying %s before legacy host %s", alias, host)
            found = await self._search(alias, ctx.descend())
            if found:
                return found

        if not ctx.claim(url):
            return None
        page = await self.loader.load(url)
        if page is None:
            return None

        ranked = self.scorer.rank(extract_links(page, self.paired_hosts))

        for link in ranked:
            if self.classifier.classify(link.href, primary_only=True):
                logger.info("Found snapshot: %s", link.href)
                return link.href

        for directory in self.directory_candidates(ranked):
            logger.debug("Descending into %s (depth %d)", directory.href, ctx.depth + 1)
            found = await self._search(directory.href, ctx.descend())
            if found:
                return found

        for link in ranked:
            if self.classifier.classify(link.href, primary_only=False):
                logger.info("Found snapshot: %s", link.href)
                return link.href

        return None

    def directory_candidates(self, links: List[Link]) -> List[Link]:
        """Directory-like links worth descending into, wax-mentioning ones first."""
        dirs = []
        for link in links:
            href = link.href.lower()
            hinted = _mentions_wax(link) or "mainnet" in href or "snapshot" in href
            looks_like_dir = link.href.endswith("/") or "." not in link.href
            if hinted and looks_like_dir and not self.avoid_paths.search(href):
                dirs.append(link)
        return sorted(dirs, key=_mentions_wax, reverse=True)
