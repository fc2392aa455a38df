# File: tests/conftest.py
from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Callable, Dict, List, Optional

import pytest
import pytest_asyncio
from aiohttp import ClientSession, web
from bs4 import BeautifulSoup

from snapshot_scout.config import ScoutConfig
from snapshot_scout.crawler.models import PageData


def pytest_configure(config):
    """Register custom markers so that `--strict-markers` does not fail."""
    config.addinivalue_line(
        "markers",
        "slow: marks tests as slow (deselect with '-m \"not slow\"')",
    )


class FakeLoader:
    """In-memory page loader: URL -> HTML, records every load in order."""

    def __init__(self, pages: Dict[str, str]) -> None:
        self.pages = pages
        self.calls: List[str] = []

    async def load(self, url: str) -> Optional[PageData]:
        self.calls.append(url)
        html = self.pages.get(url)
        if html is None:
            return None
        return PageData(url, BeautifulSoup(html, "html.parser"))


@pytest.fixture()
def config() -> ScoutConfig:
    """Default configuration with short timeouts for tests."""
    return ScoutConfig(page_timeout=2.0, test_duration=1.0, timeout_grace=2.0)


@pytest.fixture()
def fake_loader() -> Callable[[Dict[str, str]], FakeLoader]:
    return FakeLoader


@pytest_asyncio.fixture
async def session() -> AsyncIterator[ClientSession]:
    async with ClientSession() as s:
        yield s


@pytest_asyncio.fixture
async def serve_app(unused_tcp_port: int):
    """Return a coroutine that starts *app* on a free port and gives its base URL."""
    runners: List[web.AppRunner] = []

    async def _serve(app: web.Application) -> str:
        runner = web.AppRunner(app)
        await runner.setup()
        site = web.TCPSite(runner, "localhost", unused_tcp_port)
        await site.start()
        runners.append(runner)
        return f"http://localhost:{unused_tcp_port}"

    try:
        yield _serve
    finally:
        for runner in runners:
            await runner.cleanup()
