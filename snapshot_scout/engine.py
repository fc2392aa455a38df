# File: snapshot_scout/engine.py
"""snapshot_scout.engine: оркестрация конвейера провайдеры → поиск снапшотов → замер скорости."""

from __future__ import annotations

import asyncio
from typing import List, Optional, Sequence

from aiohttp import ClientSession

from snapshot_scout.aggregator import RunReport
from snapshot_scout.config import ScoutConfig
from snapshot_scout.crawler.locator import SnapshotLocator
from snapshot_scout.crawler.page_loader import PageLoader
from snapshot_scout.logger import logger
from snapshot_scout.models import Provider, SnapshotCandidate, SpeedTestResult
from snapshot_scout.providers import ProducerRegistry
from snapshot_scout.speedtest import ProgressCallback, ThroughputTester

__all__ = ["find_snapshots", "run_speed_tests", "run_pipeline", "locate_only"]


def open_session(config: ScoutConfig) -> ClientSession:
    """Общая HTTP-сессия запуска; таймауты задаются на уровне запросов."""
    return ClientSession(headers={"User-Agent": config.user_agent})


async def find_snapshots(
    providers: Sequence[Provider], config: ScoutConfig, session: ClientSession
) -> List[SnapshotCandidate]:
    """Ищет снапшот для каждого провайдера; порядок провайдеров сохраняется.

    Каждый обход получает собственный CrawlContext, поэтому провайдеры
    можно обходить параллельно (не более config.concurrency одновременно).
    """
    locator = SnapshotLocator(PageLoader.from_config(session, config), config)
    semaphore = asyncio.Semaphore(config.concurrency)

    async def _locate(provider: Provider) -> SnapshotCandidate:
        async with semaphore:
            logger.info("Checking provider: %s (%s)", provider.name, provider.url)
            try:
                url = await locator.locate(provider.url)
            except Exception as exc:
                logger.warning("Обход %s завершился ошибкой: %s", provider.name, exc)
                url = None
            if url is None:
                logger.info("No snapshot found for %s", provider.name)
            return SnapshotCandidate(name=provider.name, snapshot_url=url)

    return list(await asyncio.gather(*(_locate(p) for p in providers)))


async def run_speed_tests(
    candidates: Sequence[SnapshotCandidate],
    config: ScoutConfig,
    session: ClientSession,
    progress: Optional[ProgressCallback] = None,
) -> List[SpeedTestResult]:
    """Последовательно замеряет скорость для кандидатов с найденным URL."""
    tester = ThroughputTester.from_config(session, config, progress=progress)
    located = [c for c in candidates if c.snapshot_url]
    logger.info(
        "Starting speed tests: %d endpoints, %.0f seconds each", len(located), config.test_duration
    )
    results: List[SpeedTestResult] = []
    for candidate in located:
        result = await tester.measure(candidate)
        if result.ok:
            logger.info(
                "%s: %.2f Mbps, %.2f MB",
                result.name, result.speed_mbps, (result.bytes_received or 0) / 1048576,
            )
        else:
            logger.info("%s: error: %s", result.name, result.error)
        results.append(result)
    return results


async def run_pipeline(
    config: ScoutConfig,
    providers: Optional[Sequence[Provider]] = None,
    progress: Optional[ProgressCallback] = None,
) -> RunReport:
    """Полный запуск; без явного списка провайдеры читаются из реестра."""
    async with open_session(config) as session:
        if providers is None:
            registry = ProducerRegistry(session, str(config.rpc_endpoint), config.page_timeout)
            providers = await registry.fetch_providers()
        candidates = await find_snapshots(providers, config, session)
        results = await run_speed_tests(candidates, config, session, progress)
    return RunReport(candidates=candidates, results=results)


async def locate_only(
    config: ScoutConfig, providers: Optional[Sequence[Provider]] = None
) -> List[SnapshotCandidate]:
    """Только поиск снапшотов, без замеров скорости."""
    async with open_session(config) as session:
        if providers is None:
            registry = ProducerRegistry(session, str(config.rpc_endpoint), config.page_timeout)
            providers = await registry.fetch_providers()
        return await find_snapshots(providers, config, session)
