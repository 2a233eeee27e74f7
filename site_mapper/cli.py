# === FILE: site_mapper/cli.py ===
#!/usr/bin/env python3
"""
Точка входа SiteMapper для командной строки.

Команды:
  crawl URL   Обойти сайт и вывести/сохранить sitemap.xml
  serve       Запустить HTTP API
  config      Показать текущую конфигурацию

Общие опции:
  --config PATH       Путь к YAML/JSON-конфигу (default: configs/default.yaml, если есть)
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (stderr, если не указан)

Команда crawl опции:
  --max-pages INT     Лимит страниц (override crawl.max_pages)
  --changefreq FREQ   changefreq для всех записей (weekly)
  --priority FLOAT    priority для всех записей (0.5)
  --lastmod           Добавить <lastmod> с текущей датой UTC
  --output PATH       Сохранить sitemap в файл вместо stdout
  --stats             Вывести статистику обхода (JSON, stderr)
  --debug             Вывести трассировку обхода (JSON, stderr)
  --crawl-timeout SEC Таймаут всего обхода (секунд)

Пример:
  site-mapper crawl https://example.com --max-pages 20 --lastmod -o sitemap.xml --stats
"""
import asyncio
import json
import sys
from pathlib import Path

import click

from site_mapper import __version__
from site_mapper.config import apply_env_overrides, load_config
from site_mapper.crawler.crawler import SeedURLError
from site_mapper.crawler.models import CrawlRequest
from site_mapper.engine import build_sitemap
from site_mapper.logger import init_logging
from site_mapper.report.sitemap import CHANGE_FREQUENCIES, SitemapOptions
from site_mapper.server.app import run_server

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='SiteMapper, version %(version)s')
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
    help='Путь к файлу логов (stderr, если не указан)'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file):
    """Группа команд SiteMapper CLI."""
    init_logging(level=log_level, log_file=str(log_file) if log_file else None)
    try:
        cfg = load_config(config_path)
    except Exception as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg


@cli.command('crawl', context_settings=CONTEXT_SETTINGS)
@click.argument('url')
@click.option('--max-pages', '-n', 'max_pages', type=click.IntRange(min=1), default=None,
              help='Лимит страниц в sitemap (override crawl.max_pages)')
@click.option('--changefreq', 'changefreq', type=click.Choice(CHANGE_FREQUENCIES),
              default='weekly', show_default=True, help='changefreq для всех записей')
@click.option('--priority', 'priority', type=click.FloatRange(0.0, 1.0),
              default=0.5, show_default=True, help='priority для всех записей')
@click.option('--lastmod', is_flag=True, help='Добавить <lastmod> с текущей датой UTC')
@click.option('--output', '-o', 'output',
              default=None,
              type=click.Path(writable=True, dir_okay=False, path_type=Path),
              help='Сохранить sitemap в файл')
@click.option('--stats', 'show_stats', is_flag=True, help='Вывести статистику обхода в stderr')
@click.option('--debug', 'show_debug', is_flag=True, help='Вывести трассировку обхода в stderr')
@click.option('--crawl-timeout', 'crawl_timeout', type=float, default=None,
              help='Таймаут всего обхода (секунд)')
@click.pass_context
def crawl(ctx, url, max_pages, changefreq, priority, lastmod, output, show_stats, show_debug, crawl_timeout):
    """Обойти сайт начиная с URL и сгенерировать sitemap."""
    cfg = ctx.obj['config']
    request = CrawlRequest(
        seed_url=url,
        max_pages=max_pages or cfg.crawl.max_pages,
        request_timeout=cfg.crawl.request_timeout,
        include_debug=show_debug,
    )
    options = SitemapOptions(change_frequency=changefreq, priority=priority, include_last_modified=lastmod)
    try:
        build = asyncio.run(build_sitemap(request, options, settings=cfg.crawl, timeout=crawl_timeout))
    except SeedURLError as e:
        print_error(f'Некорректный URL: {e}')
    except asyncio.TimeoutError:
        print_error(f'Обход не завершён за {crawl_timeout} секунд')
    except Exception as e:
        print_error(f'Ошибка при обходе: {e}')

    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(build.xml, encoding='utf-8')
        click.echo(f'Sitemap: {output}', err=True)
    else:
        click.echo(build.xml)

    if show_stats:
        click.echo(json.dumps(build.crawl.stats.to_dict(), indent=2), err=True)
    if show_debug:
        click.echo(json.dumps(build.crawl.debug_dicts(), ensure_ascii=False, indent=2), err=True)


@cli.command('serve', context_settings=CONTEXT_SETTINGS)
@click.option('--host', 'host', default=None, help='Адрес (override server.host)')
@click.option('--port', '-p', 'port', type=click.IntRange(0, 65535), default=None,
              help='Порт (override server.port / $PORT)')
@click.pass_context
def serve(ctx, host, port):
    """Запустить HTTP API генератора sitemap."""
    cfg = apply_env_overrides(ctx.obj['config'])
    update = {k: v for k, v in (('host', host), ('port', port)) if v is not None}
    if update:
        cfg = cfg.model_copy(update={'server': cfg.server.model_copy(update=update)})
    run_server(cfg)


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Показать текущую конфигурацию в JSON."""
    cfg = ctx.obj['config']
    click.echo(cfg.model_dump_json(indent=2))


if __name__ == "__main__":
    cli()
