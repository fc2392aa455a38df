# snapshot_scout/report/json_report.py

"""
Генерация JSON-отчёта для проекта SnapshotScout.

Отчёт: массив записей SpeedTestResult, записываемый один раз в конце
запуска в файл с ISO-8601 меткой времени в имени.
"""
from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional

from snapshot_scout.models import SpeedTestResult


def report_filename(now: Optional[datetime] = None) -> str:
    """Имя файла отчёта; ``:`` и ``.`` в метке времени заменяются на ``-``."""
    now = now or datetime.now(timezone.utc)
    stamp = now.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return "snapshot-speed-test-{}.json".format(stamp.replace(":", "-").replace(".", "-"))


def render_json(
    results: Iterable[SpeedTestResult],
    output_dir: Path | str = ".",
    now: Optional[datetime] = None,
) -> Path:
    """
    Сохраняет результаты замеров в JSON-файл в каталоге output_dir.

    :param results: результаты ThroughputTester
    :param output_dir: каталог для отчёта (создаётся при необходимости)
    :param now: момент запуска для имени файла (по умолчанию текущее время UTC)
    :return: Path сохранённого файла

    Пример:
    ```python
    from snapshot_scout.report.json_report import render_json
    report_path = render_json(report.results, 'reports')
    print(f"Results saved to {report_path}")
    ```
    """
    directory = Path(output_dir)
    directory.mkdir(parents=True, exist_ok=True)
    output = directory / report_filename(now)

    data = [r.to_dict() for r in results]

    with output.open('w', encoding='utf-8') as f:
        json.dump(data, f, ensure_ascii=False, indent=2)

    return output
