#!/usr/bin/env python3
"""
Точка входа SnapshotScout для командной строки.

Команды:
  run       Найти снапшоты, замерить скорость и сохранить отчёт
  locate    Только найти снапшоты и вывести их в JSON
  config    Показать текущую конфигурацию

Общие опции:
  --config PATH       Путь к YAML/JSON-конфигу (по умолчанию встроенные значения)
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (stdout, если не указан)
  --log-format FORMAT Формат логирования

Пример:
  snapshot-scout run --providers providers.yaml --output-dir reports --html reports/report.html
"""
import asyncio
import json
import sys
from pathlib import Path

import click

from snapshot_scout import __version__
from snapshot_scout.aggregator import RunReport, format_summary
from snapshot_scout.config import load_config
from snapshot_scout.engine import locate_only, run_pipeline
from snapshot_scout.logger import init_logging
from snapshot_scout.models import Provider
from snapshot_scout.providers import clean_provider_url, load_providers
from snapshot_scout.report.html_report import render_html
from snapshot_scout.report.json_report import render_json

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


def print_progress(received: int, speed: float) -> None:
    click.echo(f"\rReceived: {received / 1048576:.2f} MB, Speed: {speed:.2f} Mbps", nl=False)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='SnapshotScout, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Путь к файлу конфигурации YAML/JSON.'
)
@click.option(
    '--log-level', 'log_level',
    default='INFO', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Уровень логирования'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Путь к файлу логов (stdout, если не указан)'
)
@click.option(
    '--log-format', 'log_format',
    default='%(asctime)s %(levelname)s %(message)s',
    show_default=True,
    help='Строка формата для логов'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """Группа команд SnapshotScout CLI."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    try:
        cfg = load_config(config_path)
    except Exception as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg


def _read_providers(providers_file):
    if providers_file is None:
        return None
    try:
        return load_providers(providers_file)
    except Exception as e:
        print_error(f'Ошибка чтения списка провайдеров: {e}')


@cli.command('run', context_settings=CONTEXT_SETTINGS)
@click.option(
    '--providers', '-p', 'providers_file',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='YAML/JSON со списком провайдеров (иначе читается on-chain реестр)'
)
@click.option(
    '--output-dir', '-o', 'output_dir',
    default=None,
    type=click.Path(file_okay=False, path_type=Path),
    help='Каталог для JSON-отчёта (override output_dir)'
)
@click.option(
    '--html', 'html_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить HTML-отчёт в файл'
)
@click.option(
    '--duration', '-d', 'duration',
    type=float,
    default=None,
    help='Длительность замера скорости, секунд (override test_duration)'
)
@click.option(
    '--concurrency', '-n', 'concurrency',
    type=int,
    default=None,
    help='Сколько провайдеров обходить параллельно (override concurrency)'
)
@click.pass_context
def run(ctx, providers_file, output_dir, html_output, duration, concurrency):
    """Найти снапшоты, замерить скорость и сохранить отчёт."""
    cfg = ctx.obj['config']
    overrides = {}
    if output_dir is not None:
        overrides['output_dir'] = output_dir
    if duration is not None:
        overrides['test_duration'] = duration
    if concurrency is not None:
        overrides['concurrency'] = concurrency
    if overrides:
        try:
            cfg = cfg.model_validate({**cfg.model_dump(mode="json"), **overrides})
        except Exception as e:
            print_error(f'Неверные параметры: {e}')

    providers = _read_providers(providers_file)
    try:
        report: RunReport = asyncio.run(run_pipeline(cfg, providers, print_progress))
    except Exception as e:
        print_error(f'Ошибка при запуске: {e}')

    click.echo()
    try:
        saved_json = render_json(report.results, cfg.output_dir)
        click.echo(f'Results saved to {saved_json}')
    except Exception as e:
        print_error(f'Ошибка при сохранении JSON: {e}')

    if html_output:
        try:
            saved_html = render_html(report, None, html_output)
            click.echo(f'HTML report: {saved_html}')
        except Exception as e:
            print_error(f'Ошибка при сохранении HTML: {e}')

    for line in format_summary(report.summary()):
        click.echo(line)


@cli.command('locate', context_settings=CONTEXT_SETTINGS)
@click.argument('urls', nargs=-1)
@click.option(
    '--providers', '-p', 'providers_file',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='YAML/JSON со списком провайдеров'
)
@click.option(
    '--pretty', is_flag=True,
    help='Преформатировать JSON-вывод (отступ 2)'
)
@click.pass_context
def locate(ctx, urls, providers_file, pretty):
    """Только найти снапшоты (URL из аргументов, файла или реестра)."""
    cfg = ctx.obj['config']
    providers = _read_providers(providers_file)
    if urls:
        extra = [Provider(name=u, url=clean_provider_url(u)) for u in urls]
        providers = (providers or []) + extra
    try:
        candidates = asyncio.run(locate_only(cfg, providers))
    except Exception as e:
        print_error(f'Ошибка при поиске: {e}')

    indent = 2 if pretty else None
    click.echo(json.dumps([c.to_dict() for c in candidates], ensure_ascii=False, indent=indent))


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Показать текущую конфигурацию в JSON."""
    cfg = ctx.obj['config']
    click.echo(cfg.model_dump_json(indent=2))


if __name__ == "__main__":
    cli()
