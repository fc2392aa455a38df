# File: snapshot_scout/aggregator.py
"""snapshot_scout.aggregator: сводка результатов поиска снапшотов и замеров скорости."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from snapshot_scout.models import SnapshotCandidate, SpeedTestResult


@dataclass(slots=True)
class SpeedSummary:
    """Итоги замеров: средняя скорость, лучший и худший провайдер, ошибки."""

    total: int = 0
    successful: int = 0
    average_mbps: Optional[float] = None
    fastest: Optional[Tuple[str, float]] = None
    slowest: Optional[Tuple[str, float]] = None
    failed: List[Tuple[str, str]] = field(default_factory=list)


@dataclass(slots=True)
class RunReport:
    """Результат одного запуска: кандидаты по провайдерам и замеры скорости."""

    candidates: List[SnapshotCandidate] = field(default_factory=list)
    results: List[SpeedTestResult] = field(default_factory=list)

    @property
    def located(self) -> List[SnapshotCandidate]:
        """Кандидаты, для которых найден URL снапшота."""
        return [c for c in self.candidates if c.snapshot_url]

    def summary(self) -> SpeedSummary:
        return summarize(self.results)

    def json(self, *, pretty: bool = False) -> str:
        """JSON-представление отчёта."""
        output = {
            "candidates": [c.to_dict() for c in self.candidates],
            "results": [r.to_dict() for r in self.results],
        }
        return json.dumps(output, ensure_ascii=False, indent=2 if pretty else None)


def summarize(results: List[SpeedTestResult]) -> SpeedSummary:
    """Считает сводку по списку результатов."""
    summary = SpeedSummary(total=len(results))
    ok = [r for r in results if r.ok and r.speed_mbps is not None]
    summary.successful = len(ok)
    summary.failed = [(r.name, r.error or "") for r in results if not r.ok]
    if ok:
        summary.average_mbps = sum(r.speed_mbps for r in ok) / len(ok)
        best = max(ok, key=lambda r: r.speed_mbps)
        worst = min(ok, key=lambda r: r.speed_mbps)
        summary.fastest = (best.name, best.speed_mbps)
        summary.slowest = (worst.name, worst.speed_mbps)
    return summary


def format_summary(summary: SpeedSummary) -> List[str]:
    """Строки итоговой сводки для консоли."""
    lines = ["Test Summary:", "-" * 40]
    if summary.average_mbps is not None:
        lines.append(f"Average Speed: {summary.average_mbps:.2f} Mbps")
        lines.append(f"Fastest: {summary.fastest[0]} ({summary.fastest[1]:.2f} Mbps)")
        lines.append(f"Slowest: {summary.slowest[0]} ({summary.slowest[1]:.2f} Mbps)")
    lines.append(f"Successful tests: {summary.successful}/{summary.total}")
    if summary.failed:
        lines.append("")
        lines.append("Failed endpoints:")
        lines.extend(f"- {name}: {error}" for name, error in summary.failed)
    return lines
