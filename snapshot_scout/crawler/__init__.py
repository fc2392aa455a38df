"""Snapshot-locating crawler: classification, scoring, page loading, traversal."""
from snapshot_scout.crawler.classifier import PatternClassifier
from snapshot_scout.crawler.locator import SnapshotLocator
from snapshot_scout.crawler.models import CrawlContext, Link, PageData
from snapshot_scout.crawler.page_loader import HTMLSource, JSONIndexSource, PageLoader, PageSource
from snapshot_scout.crawler.scoring import LinkScorer

__all__ = [
    "CrawlContext",
    "HTMLSource",
    "JSONIndexSource",
    "Link",
    "LinkScorer",
    "PageData",
    "PageLoader",
    "PageSource",
    "PatternClassifier",
    "SnapshotLocator",
]
