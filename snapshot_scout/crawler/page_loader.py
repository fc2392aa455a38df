# snapshot_scout/crawler/page_loader.py
"""
Page loading: fetch a URL and turn it into a navigable document.

Sites are served by interchangeable page sources. :class:`JSONIndexSource`
handles hosts that publish ``data/snapshots.json`` instead of a directory
listing; :class:`HTMLSource` handles everything else. The loader keeps no
memory of previous calls; cycle avoidance belongs to the caller.
"""
from __future__ import annotations

import asyncio
from typing import Any, Iterable, List, Optional, Sequence
from urllib.parse import urljoin, urlparse

from aiohttp import ClientError, ClientSession, ClientTimeout
from bs4 import BeautifulSoup, ParserRejectedMarkup

from snapshot_scout.config import ScoutConfig
from snapshot_scout.crawler.models import PageData
from snapshot_scout.logger import logger

__all__ = ("PageSource", "HTMLSource", "JSONIndexSource", "PageLoader")

_HTML_TYPES = ("text/html", "application/xhtml+xml")
_FETCH_ERRORS = (
    ClientError, asyncio.TimeoutError, UnicodeDecodeError, ValueError, ParserRejectedMarkup,
)


class PageSource:
    """A way of turning a site URL into a document."""

    def matches(self, url: str) -> bool:
        raise NotImplementedError

    async def load(self, session: ClientSession, url: str) -> Optional[BeautifulSoup]:
        raise NotImplementedError


class HTMLSource(PageSource):
    """Plain GET of an HTML page; anything that is not HTML is rejected."""

    def __init__(self, user_agent: str, timeout: float) -> None:
        self.headers = {"User-Agent": user_agent, "Accept": "text/html,application/xhtml+xml"}
        self.timeout = ClientTimeout(total=timeout)

    def matches(self, url: str) -> bool:
        return True

    async def load(self, session: ClientSession, url: str) -> Optional[BeautifulSoup]:
        try:
            async with session.get(url, headers=self.headers, timeout=self.timeout) as resp:
                if not 200 <= resp.status < 300:
                    logger.debug("HTTP %s for %s", resp.status, url)
                    return None
                ctype = resp.headers.get("Content-Type")
                if ctype and not any(t in ctype.lower() for t in _HTML_TYPES):
                    logger.debug("Skipping %s: content type %s", url, ctype)
                    return None
                html = await resp.text(errors="replace")
            return BeautifulSoup(html, "html.parser")
        except _FETCH_ERRORS as exc:
            logger.debug("Failed to load %s: %r", url, exc)
            return None


class JSONIndexSource(PageSource):
    """
    Sites that list snapshots in ``data/snapshots.json``.

    Each entry's ``name`` carries an HTML anchor fragment; the synthesized
    document holds one ``<a>`` per entry with the text ``wax-snapshot``.
    """

    INDEX_PATH = "data/snapshots.json"
    LINK_TEXT = "wax-snapshot"

    def __init__(self, hosts: Iterable[str], user_agent: str, timeout: float) -> None:
        self.hosts = tuple(h.lower() for h in hosts)
        self.headers = {"User-Agent": user_agent, "Accept": "application/json"}
        self.timeout = ClientTimeout(total=timeout)

    def matches(self, url: str) -> bool:
        host = (urlparse(url).hostname or "").lower()
        return any(host == h or host.endswith("." + h) for h in self.hosts)

    async def load(self, session: ClientSession, url: str) -> Optional[BeautifulSoup]:
        index_url = urljoin(url, self.INDEX_PATH)
        try:
            async with session.get(index_url, headers=self.headers, timeout=self.timeout) as resp:
                if not 200 <= resp.status < 300:
                    logger.debug("HTTP %s for %s", resp.status, index_url)
                    return None
                entries = await resp.json(content_type=None)
            if not isinstance(entries, list):
                logger.debug("Unexpected index format at %s", index_url)
                return None
            return self.build_document(url, entries)
        except _FETCH_ERRORS as exc:
            logger.debug("Failed to load %s: %r", index_url, exc)
            return None

    def build_document(self, base_url: str, entries: List[Any]) -> BeautifulSoup:
        doc = BeautifulSoup("<html><body></body></html>", "html.parser")
        for entry in entries:
            if not isinstance(entry, dict) or not isinstance(entry.get("name"), str):
                continue
            anchor = BeautifulSoup(entry["name"], "html.parser").find("a")
            filename = anchor.get("href") if anchor is not None else None
            if not isinstance(filename, str) or not filename:
                continue
            try:
                href = urljoin(base_url, filename)
            except ValueError:
                continue
            tag = doc.new_tag("a", href=href)
            tag.string = self.LINK_TEXT
            doc.body.append(tag)
        return doc


class PageLoader:
    """
    Tries each matching page source in order; the first document wins.

    Never raises for network or content problems; returns None instead.
    """

    def __init__(self, session: ClientSession, sources: Sequence[PageSource]) -> None:
        self.session = session
        self.sources = tuple(sources)

    @classmethod
    def from_config(cls, session: ClientSession, config: ScoutConfig) -> PageLoader:
        return cls(
            session,
            [
                JSONIndexSource(config.json_index_hosts, config.user_agent, config.page_timeout),
                HTMLSource(config.user_agent, config.page_timeout),
            ],
        )

    async def load(self, url: str) -> Optional[PageData]:
        for source in self.sources:
            if not source.matches(url):
                continue
            document = await source.load(self.session, url)
            if document is not None:
                return PageData(url, document)
        return None
