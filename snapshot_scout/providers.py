# snapshot_scout/providers.py
"""
Источники списка провайдеров.

* :class:`ProducerRegistry` читает on-chain таблицу ``producerjson`` через
  ``/v1/chain/get_table_rows`` и оставляет записи с непустым
  ``org.chain_resources``.
* :func:`load_providers` читает тот же список из YAML/JSON-файла.
"""
from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from aiohttp import ClientSession, ClientTimeout

from snapshot_scout.logger import logger
from snapshot_scout.models import Provider

__all__ = ("clean_provider_url", "providers_from_rows", "ProducerRegistry", "load_providers")

_PARENS_RE = re.compile(r"^\(+|\)+$")


def clean_provider_url(url: str) -> str:
    """Убирает обрамляющие скобки и пробелы: ``(https://x/)`` -> ``https://x/``."""
    return _PARENS_RE.sub("", url.strip()).strip()


def providers_from_rows(rows: List[Dict[str, Any]]) -> List[Provider]:
    """Преобразует строки таблицы producerjson в список провайдеров."""
    providers: List[Provider] = []
    for row in rows:
        try:
            meta = json.loads(row.get("json") or "{}")
        except (TypeError, json.JSONDecodeError) as exc:
            logger.warning("Пропуск строки producerjson %s: %s", row.get("owner", "?"), exc)
            continue
        if not isinstance(meta, dict):
            continue
        org = meta.get("org")
        resources = org.get("chain_resources") if isinstance(org, dict) else None
        name = meta.get("producer_account_name")
        if not isinstance(resources, str) or not resources or not name:
            continue
        providers.append(Provider(name=name, url=clean_provider_url(resources)))
    return providers


class ProducerRegistry:
    """Клиент on-chain реестра провайдеров."""

    def __init__(self, session: ClientSession, endpoint: str, timeout: float = 15.0) -> None:
        self.session = session
        self.endpoint = endpoint.rstrip("/")
        self.timeout = ClientTimeout(total=timeout)

    async def fetch_providers(self, limit: int = 100) -> List[Provider]:
        """Читает таблицу producerjson; ошибки сети пробрасываются вызывающему."""
        query = {
            "json": True,
            "code": "producerjson",
            "scope": "producerjson",
            "table": "producerjson",
            "lower_bound": "",
            "upper_bound": "",
            "limit": limit,
            "reverse": False,
        }
        url = f"{self.endpoint}/v1/chain/get_table_rows"
        async with self.session.post(url, json=query, timeout=self.timeout) as resp:
            resp.raise_for_status()
            data = await resp.json(content_type=None)
        rows = data.get("rows", []) if isinstance(data, dict) else []
        providers = providers_from_rows(rows)
        logger.info("Реестр: %d записей, %d с chain_resources", len(rows), len(providers))
        return providers


def load_providers(path: Union[str, Path]) -> List[Provider]:
    """Читает список ``[{name, url}, ...]`` из YAML или JSON."""
    p = Path(path)
    if not p.is_file():
        raise FileNotFoundError(f"Providers file not found: {p}")
    text = p.read_text(encoding="utf-8")
    try:
        data: Optional[Any] = json.loads(text) if p.suffix.lower() == ".json" else yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ValueError(f"Неправильный файл провайдеров {p}: {exc}") from exc
    if not isinstance(data, list):
        raise TypeError(f"Ожидался список провайдеров, получено {type(data).__name__}")
    providers = [Provider.model_validate(item) for item in data]
    return [p.model_copy(update={"url": clean_provider_url(p.url)}) for p in providers]
