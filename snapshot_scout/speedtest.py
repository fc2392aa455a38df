# snapshot_scout/speedtest.py
"""
Throughput tester: a fixed-duration timed download per snapshot URL.

The transfer is aborted as soon as the test window is over; the snapshot is
never downloaded in full. Network errors are recorded in the result, never
raised.
"""
from __future__ import annotations

import asyncio
from typing import Callable, Optional

from aiohttp import ClientError, ClientSession, ClientTimeout

from snapshot_scout.config import ScoutConfig
from snapshot_scout.logger import logger
from snapshot_scout.models import SnapshotCandidate, SpeedTestResult, utc_timestamp

__all__ = ("ProgressCallback", "transfer_rate_mbps", "ThroughputTester")

#: called with (bytes received so far, instantaneous rate in Mbps)
ProgressCallback = Callable[[int, float], None]


def transfer_rate_mbps(received: int, elapsed: float) -> float:
    """Megabits per second for *received* bytes over *elapsed* seconds."""
    if elapsed <= 0:
        return 0.0
    return received * 8 / 1_000_000 / elapsed


class ThroughputTester:
    """Measures download speed of snapshot candidates, one at a time."""

    def __init__(
        self,
        session: ClientSession,
        duration: float = 10.0,
        grace: float = 5.0,
        user_agent: Optional[str] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> None:
        self.session = session
        self.duration = duration
        self.timeout = ClientTimeout(total=duration + grace)
        self.headers = {"User-Agent": user_agent} if user_agent else {}
        self.progress = progress

    @classmethod
    def from_config(
        cls,
        session: ClientSession,
        config: ScoutConfig,
        progress: Optional[ProgressCallback] = None,
    ) -> ThroughputTester:
        return cls(
            session,
            duration=config.test_duration,
            grace=config.timeout_grace,
            user_agent=config.user_agent,
            progress=progress,
        )

    async def measure(self, candidate: SnapshotCandidate) -> SpeedTestResult:
        url = candidate.snapshot_url
        timestamp = utc_timestamp()
        if not url:
            return SpeedTestResult(
                name=candidate.name, url="", status="error", timestamp=timestamp,
                error="no snapshot URL",
            )

        logger.info("Testing %s (%s)", candidate.name, url)
        loop = asyncio.get_running_loop()
        received = 0
        start = loop.time()
        try:
            async with self.session.get(url, headers=self.headers, timeout=self.timeout) as resp:
                if not 200 <= resp.status < 300:
                    return SpeedTestResult(
                        name=candidate.name, url=url, status="error", timestamp=timestamp,
                        error=f"HTTP {resp.status}",
                    )
                window = asyncio.timeout_at(start + self.duration)
                try:
                    async with window:
                        async for chunk in resp.content.iter_any():
                            received += len(chunk)
                            self._report(received, transfer_rate_mbps(received, loop.time() - start))
                except TimeoutError:
                    if not window.expired():
                        raise
                    # test window is over: abort instead of draining the body
                    resp.close()
        except (ClientError, asyncio.TimeoutError, OSError) as exc:
            message = str(exc) or exc.__class__.__name__
            logger.warning("Speed test for %s failed: %s", candidate.name, message)
            return SpeedTestResult(
                name=candidate.name, url=url, status="error", timestamp=timestamp, error=message,
            )

        elapsed = loop.time() - start
        return SpeedTestResult(
            name=candidate.name,
            url=url,
            status="success",
            timestamp=timestamp,
            speed_mbps=transfer_rate_mbps(received, elapsed),
            bytes_received=received,
            elapsed_seconds=elapsed,
        )

    def _report(self, received: int, rate: float) -> None:
        if self.progress is not None:
            self.progress(received, rate)
        else:
            logger.debug("Received: %.2f MB, Speed: %.2f Mbps", received / 1048576, rate)
