# === FILE: snapshot_scout/config.py ===
"""
Загрузка и валидация конфигурации SnapshotScout.

Значения по умолчанию совпадают с фиксированными константами обхода
(глубина 5, таймаут страницы 15 с, тест скорости 10 с), поэтому запуск
без файла конфигурации ведёт себя так же, как эталонный прогон.
Используется Pydantic для описания схемы и проверки данных.
"""
from __future__ import annotations

import errno
import json
import os
import re
from pathlib import Path
from typing import Any, Dict, Tuple, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    ValidationError,
    field_validator,
)

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)

DEFAULT_AVOID_PATHS = (
    r"hyperion|light_api|jungle|telos|fio|libre|NEAR|qry|test|ultra|kylin|volt|proton|daobet"
)


def _normalize_hosts(v: Any) -> Any:
    if isinstance(v, (list, tuple)):
        return tuple(str(h).strip().lower() for h in v)
    return v


class ScoutConfig(BaseModel):
    """Конфигурация одного запуска: поиск снапшотов и замер скорости."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    rpc_endpoint: HttpUrl = Field(
        "https://wax.qaraqol.com",
        validate_default=True,
        description="API-узел для чтения таблицы producerjson.",
    )
    max_depth: int = Field(5, ge=0, description="Максимальная глубина спуска по каталогам.")
    page_timeout: float = Field(15.0, gt=0, description="Таймаут загрузки одной страницы (секунд).")
    test_duration: float = Field(10.0, gt=0, description="Длительность замера скорости (секунд).")
    timeout_grace: float = Field(5.0, ge=0, description="Запас к таймауту запроса при замере.")
    user_agent: str = Field(BROWSER_USER_AGENT, min_length=1, description="Заголовок User-Agent.")
    concurrency: int = Field(1, ge=1, description="Число провайдеров, обходимых параллельно.")

    avoid_domains: Tuple[str, ...] = Field(
        ("github.com", "gitlab.com", "bitbucket.org"),
        description="Хосты, которые никогда не обходятся.",
    )
    avoid_paths: str = Field(
        DEFAULT_AVOID_PATHS, description="Регулярное выражение для чужих сетей в путях каталогов."
    )
    host_aliases: Dict[str, str] = Field(
        default_factory=lambda: {"snapshots.eossweden.org": "https://snapshots.waxsweden.org/"},
        description="Устаревший хост -> канонический URL, пробуемый первым.",
    )
    paired_hosts: Dict[str, Tuple[str, ...]] = Field(
        default_factory=lambda: {
            host: ("snapshots-cdn.eossweden.org", "snapshots.waxsweden.org")
            for host in ("snapshots.waxsweden.org", "snapshots.eossweden.org")
        },
        description="Хост страницы -> чужие хосты, на которые ей разрешено ссылаться.",
    )
    json_index_hosts: Tuple[str, ...] = Field(
        ("blokcrafters.io",),
        description="Хосты, отдающие data/snapshots.json вместо HTML.",
    )
    output_dir: Path = Field(Path("."), description="Каталог для JSON-отчёта.")

    @field_validator("avoid_paths")
    def _check_regex(cls, v: str) -> str:
        try:
            re.compile(v)
        except re.error as exc:
            raise ValueError(f"avoid_paths не является регулярным выражением: {exc}") from exc
        return v

    @field_validator("avoid_domains", "json_index_hosts", mode="before")
    def _lower_hosts(cls, v: Any) -> Any:
        return _normalize_hosts(v)

    @field_validator("paired_hosts", mode="before")
    def _lower_paired(cls, v: Any) -> Any:
        if isinstance(v, dict):
            return {str(k).strip().lower(): _normalize_hosts(t) for k, t in v.items()}
        return v

    @property
    def request_timeout(self) -> float:
        """Общий таймаут одного запроса при замере скорости."""
        return self.test_duration + self.timeout_grace


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Неправильный YAML в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень YAML должен быть mapping, получено {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Неправильный JSON в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень JSON должен быть mapping, получено {type(data).__name__}")
    return data


def load_config(path: Union[str, Path, None]) -> ScoutConfig:
    """
    Читает YAML или JSON и возвращает проверенный объект ScoutConfig.
    Без пути возвращает конфигурацию по умолчанию.
    При отсутствии указанного файла бросает FileNotFoundError.
    """
    if path is None:
        return ScoutConfig()

    path_obj = Path(path).expanduser().resolve()
    if not path_obj.is_file():
        raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        data = _read_yaml(path_obj)
    elif suffix == ".json":
        data = _read_json(path_obj)
    else:
        raise ValueError(f"Неподдерживаемый формат конфига: {suffix}")

    try:
        return ScoutConfig(**data)
    except ValidationError:
        raise
