# snapshot_scout/crawler/link_extractor.py
"""
Link extraction and host-scoping rules for the snapshot crawler.
"""
from __future__ import annotations

from typing import Collection, Dict, List, Mapping, Optional
from urllib.parse import urljoin, urlparse

from bs4.element import Tag

from snapshot_scout.crawler.models import Link, PageData
from snapshot_scout.logger import logger

__all__ = ("registrable_domain", "is_same_site", "extract_links")

_SKIP_PREFIXES = ("javascript:",)


def registrable_domain(host: str) -> str:
    """Last two labels of *host* (``a.b.example.com`` -> ``example.com``)."""
    return ".".join(host.split(".")[-2:])


def is_same_site(
    base_url: str, url: str, paired_hosts: Optional[Mapping[str, Collection[str]]] = None
) -> bool:
    """
    True if *url* belongs to the site of *base_url*.

    *paired_hosts* maps a page host to the foreign hosts it may link to; the
    pairing is one-way. Otherwise the registrable domains must match or *url*
    must extend *base_url* textually.
    """
    base_host = urlparse(base_url).hostname or ""
    host = urlparse(url).hostname or ""
    if paired_hosts and host in paired_hosts.get(base_host, ()):
        return True
    if base_host and registrable_domain(base_host) == registrable_domain(host):
        return True
    return url.startswith(base_url)


def extract_links(
    page: PageData, paired_hosts: Optional[Mapping[str, Collection[str]]] = None
) -> List[Link]:
    """
    Collect same-site links from anchors and ``<link rel="alternate">``.

    Links are resolved against the page URL and deduplicated by href; the
    first anchor text seen for an href wins.
    """
    found: Dict[str, Link] = {}
    for tag in page.document.select('a, link[rel="alternate"]'):
        if not isinstance(tag, Tag):
            continue
        href_val = tag.get("href")
        if not isinstance(href_val, str):
            continue
        raw = href_val.strip()
        if not raw or raw == "#" or raw.startswith(_SKIP_PREFIXES):
            continue
        try:
            absolute = urljoin(page.url, raw)
            scheme = urlparse(absolute).scheme
            same_site = is_same_site(page.url, absolute, paired_hosts)
        except ValueError as exc:
            logger.debug("Skipping malformed link %r on %s: %s", raw, page.url, exc)
            continue
        if scheme not in ("http", "https") or not same_site:
            continue
        if absolute not in found:
            found[absolute] = Link(text=tag.get_text(strip=True), href=absolute)
    return list(found.values())
