# File: tests/test_locator.py
from __future__ import annotations

from collections import Counter

import pytest
from aiohttp import web

from snapshot_scout.config import ScoutConfig
from snapshot_scout.crawler.locator import SnapshotLocator
from snapshot_scout.crawler.models import CrawlContext, Link
from snapshot_scout.crawler.page_loader import PageLoader

ROOT = "https://snap.example.com/"


# --------------------------------------------------------------------------- #
#                       Crawl-graph tests (in-memory site)                     #
# --------------------------------------------------------------------------- #


@pytest.mark.asyncio()
async def test_primary_match_returned_without_descent(fake_loader, config):
    loader = fake_loader(
        {ROOT: '<a href="/wax/">WAX</a><a href="wax-mainnet-snapshot-2024.tar.gz">dl</a>'}
    )
    found = await SnapshotLocator(loader, config).locate(ROOT)
    assert found == ROOT + "wax-mainnet-snapshot-2024.tar.gz"
    assert loader.calls == [ROOT]


@pytest.mark.asyncio()
async def test_excluded_network_suppresses_fallback(fake_loader, config):
    loader = fake_loader(
        {
            ROOT: '<a href="/snapshots/">backups</a>',
            ROOT + "snapshots/": '<a href="fio-snapshot.bin">fio</a>',
        }
    )
    assert await SnapshotLocator(loader, config).locate(ROOT) is None
    assert loader.calls == [ROOT, ROOT + "snapshots/"]


@pytest.mark.asyncio()
async def test_never_descends_past_max_depth(fake_loader, config):
    pages = {}
    for depth in range(7):
        url = ROOT + "wax/" * depth
        pages[url] = '<a href="wax/">next</a>'
    pages[ROOT + "wax/" * 6] = '<a href="wax-snapshot.bin">dl</a>'
    loader = fake_loader(pages)

    assert await SnapshotLocator(loader, config).locate(ROOT) is None
    assert ROOT + "wax/" * 6 not in loader.calls
    assert loader.calls[-1] == ROOT + "wax/" * 5


@pytest.mark.asyncio()
async def test_snapshot_at_max_depth_is_found(fake_loader, config):
    pages = {ROOT + "wax/" * d: '<a href="wax/">next</a>' for d in range(5)}
    pages[ROOT + "wax/" * 5] = '<a href="wax-snapshot.bin">dl</a>'
    loader = fake_loader(pages)

    found = await SnapshotLocator(loader, config).locate(ROOT)
    assert found == ROOT + "wax/" * 5 + "wax-snapshot.bin"


@pytest.mark.asyncio()
async def test_cycle_fetches_each_url_once(fake_loader, config):
    a, b = ROOT + "snapshots/a/", ROOT + "snapshots/b/"
    loader = fake_loader(
        {
            ROOT: '<a href="/snapshots/a/">a</a>',
            a: '<a href="/snapshots/b/">b</a><a href="/">home</a>',
            b: '<a href="/snapshots/a/">a</a><a href="/snapshots/b/">self</a>',
        }
    )
    assert await SnapshotLocator(loader, config).locate(ROOT) is None
    assert Counter(loader.calls) == {ROOT: 1, a: 1, b: 1}


@pytest.mark.asyncio()
async def test_wax_directories_tried_before_higher_scored_ones(fake_loader, config):
    mainnet = ROOT + "mainnet-snapshots-20240101/"
    chain = ROOT + "chain/"
    loader = fake_loader(
        {
            ROOT: '<a href="/mainnet-snapshots-20240101/">archive</a><a href="/chain/">WAX</a>',
            mainnet: '<a href="state.bin">state</a>',
            chain: '<a href="state.bin">state</a>',
        }
    )
    found = await SnapshotLocator(loader, config).locate(ROOT)
    assert found == chain + "state.bin"
    assert mainnet not in loader.calls


@pytest.mark.asyncio()
async def test_first_successful_subdirectory_wins(fake_loader, config):
    first, second = ROOT + "wax-a/", ROOT + "wax-b/"
    loader = fake_loader(
        {
            ROOT: '<a href="/wax-a/">a</a><a href="/wax-b/">b</a>',
            first: '<a href="old.tar.gz">old</a>',
            second: '<a href="wax-mainnet-latest.tar.gz">new</a>',
        }
    )
    found = await SnapshotLocator(loader, config).locate(ROOT)
    assert found == first + "old.tar.gz"
    assert second not in loader.calls


@pytest.mark.asyncio()
async def test_fallback_used_after_empty_descent(fake_loader, config):
    loader = fake_loader(
        {
            ROOT: '<a href="/snapshots/">dir</a><a href="chain.tar.gz">archive</a>',
            ROOT + "snapshots/": "<p>empty</p>",
        }
    )
    found = await SnapshotLocator(loader, config).locate(ROOT)
    assert found == ROOT + "chain.tar.gz"
    assert loader.calls == [ROOT, ROOT + "snapshots/"]


@pytest.mark.asyncio()
async def test_avoid_paths_and_files_are_not_descended(fake_loader, config):
    loader = fake_loader(
        {
            ROOT: (
                '<a href="/jungle-snapshots/">jungle</a>'
                '<a href="/wax/notes.txt">notes</a>'
                '<a href="/telos/wax/">telos</a>'
            ),
        }
    )
    assert await SnapshotLocator(loader, config).locate(ROOT) is None
    assert loader.calls == [ROOT]


@pytest.mark.asyncio()
async def test_avoided_domain_is_never_fetched(fake_loader, config):
    loader = fake_loader({})
    assert await SnapshotLocator(loader, config).locate("https://github.com/org/snapshots") is None
    assert loader.calls == []


@pytest.mark.asyncio()
async def test_foreign_links_ignored(fake_loader, config):
    loader = fake_loader({ROOT: '<a href="https://mirror.example.net/wax-snapshot.bin">m</a>'})
    assert await SnapshotLocator(loader, config).locate(ROOT) is None


@pytest.mark.asyncio()
async def test_alias_host_tried_first(fake_loader):
    config = ScoutConfig(host_aliases={"old.example.org": "https://new.example.org/"})
    loader = fake_loader({"https://new.example.org/": '<a href="wax-snapshot.bin">dl</a>'})

    found = await SnapshotLocator(loader, config).locate("https://old.example.org/")
    assert found == "https://new.example.org/wax-snapshot.bin"
    assert loader.calls == ["https://new.example.org/"]


@pytest.mark.asyncio()
async def test_legacy_host_examined_when_alias_finds_nothing(fake_loader):
    config = ScoutConfig(host_aliases={"old.example.org": "https://new.example.org/"})
    loader = fake_loader({"https://old.example.org/": '<a href="wax-snapshot.bin">dl</a>'})

    found = await SnapshotLocator(loader, config).locate("https://old.example.org/")
    assert found == "https://old.example.org/wax-snapshot.bin"
    assert loader.calls == ["https://new.example.org/", "https://old.example.org/"]


@pytest.mark.asyncio()
async def test_alias_only_applies_at_entry(fake_loader):
    config = ScoutConfig(host_aliases={"old.example.org": "https://new.example.org/"})
    loader = fake_loader(
        {
            "https://snapshots.example.org/": '<a href="https://old.example.org/wax/">old</a>',
        }
    )
    await SnapshotLocator(loader, config).locate("https://snapshots.example.org/")
    assert "https://new.example.org/" not in loader.calls
    assert "https://old.example.org/wax/" in loader.calls


@pytest.mark.asyncio()
async def test_paired_hosts_cross_reference(fake_loader, config):
    base = "https://snapshots.waxsweden.org/"
    loader = fake_loader({base: '<a href="https://snapshots-cdn.eossweden.org/files/latest.bin">dl</a>'})
    found = await SnapshotLocator(loader, config).locate(base)
    assert found == "https://snapshots-cdn.eossweden.org/files/latest.bin"


@pytest.mark.asyncio()
async def test_cdn_host_may_not_link_back_to_paired_host(fake_loader, config):
    base = "https://snapshots-cdn.eossweden.org/"
    loader = fake_loader({base: '<a href="https://snapshots.waxsweden.org/wax-snapshot.bin">dl</a>'})
    assert await SnapshotLocator(loader, config).locate(base) is None


@pytest.mark.asyncio()
async def test_each_crawl_gets_fresh_context(fake_loader, config):
    loader = fake_loader({ROOT: '<a href="wax-snapshot.bin">dl</a>'})
    locator = SnapshotLocator(loader, config)

    assert await locator.locate(ROOT) == ROOT + "wax-snapshot.bin"
    assert await locator.locate(ROOT) == ROOT + "wax-snapshot.bin"
    assert loader.calls == [ROOT, ROOT]


@pytest.mark.asyncio()
async def test_shared_context_blocks_refetch(fake_loader, config):
    loader = fake_loader({ROOT: '<a href="wax-snapshot.bin">dl</a>'})
    locator = SnapshotLocator(loader, config)
    ctx = CrawlContext(max_depth=config.max_depth)

    assert await locator.locate(ROOT, ctx) is not None
    assert await locator.locate(ROOT, ctx) is None
    assert ctx.visited == {ROOT}


@pytest.mark.asyncio()
async def test_malformed_start_url_is_absent(fake_loader, config):
    loader = fake_loader({})
    assert await SnapshotLocator(loader, config).locate("http://[broken") is None


def test_directory_candidates(config, fake_loader):
    locator = SnapshotLocator(fake_loader({}), config)
    links = [
        Link("", "http://localhost/snapshots/"),
        Link("", "http://localhost/mainnet"),
        Link("", "http://localhost/wax-files/"),
        Link("", "http://localhost/wax-file.bin"),
        Link("", "https://x.io/mainnet"),
        Link("", "http://localhost/misc/"),
        Link("", "http://localhost/testnet-wax/"),
        Link("WAX", "http://localhost/chain/"),
    ]
    assert [l.href for l in locator.directory_candidates(links)] == [
        "http://localhost/wax-files/",
        "http://localhost/chain/",
        "http://localhost/snapshots/",
        "http://localhost/mainnet",
    ]


def test_context_depth_accounting():
    ctx = CrawlContext(max_depth=1)
    child = ctx.descend()
    grandchild = child.descend()
    assert not child.exhausted
    assert grandchild.exhausted
    assert child.visited is ctx.visited
    assert ctx.claim("u") and not grandchild.claim("u")


# --------------------------------------------------------------------------- #
#                       End-to-end tests (aiohttp test server)                 #
# --------------------------------------------------------------------------- #


@pytest.mark.asyncio()
async def test_locate_over_http(serve_app, session, config):
    app = web.Application()
    hits = Counter()

    async def root(_):
        hits["/"] += 1
        return web.Response(
            text='<a href="/wax/">WAX</a><a href="wax-mainnet-snapshot-2024.tar.gz">dl</a>',
            content_type="text/html",
        )

    async def wax(_):
        hits["/wax/"] += 1
        return web.Response(text="<p>nothing</p>", content_type="text/html")

    app.router.add_get("/", root)
    app.router.add_get("/wax/", wax)
    base = await serve_app(app)

    locator = SnapshotLocator(PageLoader.from_config(session, config), config)
    assert await locator.locate(base + "/") == base + "/wax-mainnet-snapshot-2024.tar.gz"
    assert hits == {"/": 1}


@pytest.mark.asyncio()
async def test_descent_over_http(serve_app, session, config):
    app = web.Application()

    async def root(_):
        return web.Response(
            text='<a href="/snapshots/">snapshots</a><a href="/about">about</a>',
            content_type="text/html",
        )

    async def listing(_):
        return web.Response(
            text='<a href="../">up</a><a href="wax-20240101.bin">wax-20240101.bin</a>',
            content_type="text/html",
        )

    app.router.add_get("/", root)
    app.router.add_get("/snapshots/", listing)
    base = await serve_app(app)

    locator = SnapshotLocator(PageLoader.from_config(session, config), config)
    assert await locator.locate(base + "/") == base + "/snapshots/wax-20240101.bin"


@pytest.mark.asyncio()
async def test_json_index_provider(serve_app, session):
    config = ScoutConfig(page_timeout=2.0, json_index_hosts=("localhost",))
    app = web.Application()

    async def index(_):
        return web.json_response([{"name": "<a href='s1.bin'>f</a>"}])

    app.router.add_get("/data/snapshots.json", index)
    base = await serve_app(app)

    locator = SnapshotLocator(PageLoader.from_config(session, config), config)
    assert await locator.locate(base + "/") == base + "/s1.bin"


@pytest.mark.asyncio()
async def test_unparseable_sibling_does_not_abort_descent(serve_app, session, config):
    app = web.Application()

    async def root(_):
        return web.Response(
            text='<a href="/wax-a/">wax-a</a><a href="/wax-b/">wax-b</a>',
            content_type="text/html",
        )

    async def broken(_):
        return web.Response(text="<![bogus[ junk", content_type="text/html")

    async def listing(_):
        return web.Response(
            text='<a href="wax-mainnet.tar.gz">wax-mainnet.tar.gz</a>', content_type="text/html"
        )

    app.router.add_get("/", root)
    app.router.add_get("/wax-a/", broken)
    app.router.add_get("/wax-b/", listing)
    base = await serve_app(app)

    locator = SnapshotLocator(PageLoader.from_config(session, config), config)
    assert await locator.locate(base + "/") == base + "/wax-b/wax-mainnet.tar.gz"
