# File: tests/test_cli.py
"""Тесты для CLI (`site_mapper/cli.py`) с использованием click.testing.CliRunner.
Проверяют команды `crawl`, `serve`, `config`, `--version`, а также обработку ошибок.
"""
import asyncio
import inspect
import json

import pytest
from click.testing import CliRunner

import site_mapper.cli as cli_module
from site_mapper.cli import cli
from site_mapper.crawler.crawler import SeedURLError
from site_mapper.crawler.models import CrawlResult, CrawlStats, TraceEntry
from site_mapper.engine import SitemapBuild
from site_mapper.report.sitemap import render_sitemap


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    """Без configs/default.yaml в рабочем каталоге."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("PORT", raising=False)
    monkeypatch.delenv("ALLOWED_ORIGINS", raising=False)
    return tmp_path


@pytest.fixture()
def fake_build(monkeypatch):
    """Патчим build_sitemap: без сети, запоминаем аргументы."""
    calls = []

    async def _fake(request, options=None, *, settings=None, timeout=None):
        calls.append({"request": request, "options": options, "settings": settings, "timeout": timeout})
        urls = ["https://example.com/", "https://example.com/a"]
        result = CrawlResult(
            discovered=urls,
            visited=urls,
            stats=CrawlStats(urls_discovered=2, urls_in_sitemap=2, crawl_time_seconds=0.5),
            debug=[TraceEntry(urls[0], urls[0], "fetching")] if request.include_debug else None,
        )
        return SitemapBuild(xml=render_sitemap(urls, options), crawl=result)

    monkeypatch.setattr(cli_module, "build_sitemap", _fake)
    return calls


def test_cli_module_is_patchable():
    import site_mapper

    assert inspect.ismodule(cli_module)
    assert site_mapper.cli is cli_module
    assert site_mapper.main_cli is cli
    assert callable(cli_module.build_sitemap)
    assert callable(cli_module.run_server)


def test_version_option():
    runner = CliRunner()
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "SiteMapper" in result.output


def test_show_config_defaults():
    runner = CliRunner()
    result = runner.invoke(cli, ["config"])
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["crawl"]["max_pages"] == 50
    assert data["rate_limit"]["sitemap_max"] == 20


def test_show_config_from_file(isolated_cwd):
    cfg_file = isolated_cwd / "config.json"
    cfg_file.write_text(json.dumps({"server": {"port": 8080}}), encoding="utf-8")
    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(cfg_file), "config"])
    assert result.exit_code == 0
    assert json.loads(result.output)["server"]["port"] == 8080


def test_invalid_config_file(isolated_cwd):
    cfg_file = isolated_cwd / "bad.yaml"
    cfg_file.write_text("crawl:\n  max_pages: -1\n", encoding="utf-8")
    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(cfg_file), "config"])
    assert result.exit_code == 1
    assert "Ошибка загрузки конфигурации" in result.output


def test_crawl_stdout(fake_build):
    runner = CliRunner()
    result = runner.invoke(cli, ["crawl", "https://example.com"])
    assert result.exit_code == 0
    assert "<loc>https://example.com/a</loc>" in result.output
    call = fake_build[0]
    assert call["request"].seed_url == "https://example.com"
    assert call["request"].max_pages == 50
    assert call["options"].change_frequency == "weekly"
    assert call["timeout"] is None


def test_crawl_options(fake_build):
    runner = CliRunner()
    result = runner.invoke(
        cli,
        ["crawl", "https://example.com", "-n", "7", "--changefreq", "daily", "--priority", "0.9", "--lastmod",
         "--crawl-timeout", "30"],
    )
    assert result.exit_code == 0
    assert "<lastmod>" in result.output
    assert "<priority>0.9</priority>" in result.output
    call = fake_build[0]
    assert call["request"].max_pages == 7
    assert call["options"].include_last_modified is True
    assert call["timeout"] == 30.0


def test_crawl_max_pages_from_config(fake_build, isolated_cwd):
    cfg_file = isolated_cwd / "config.yaml"
    cfg_file.write_text("crawl:\n  max_pages: 12\n  request_timeout: 2.5\n", encoding="utf-8")
    runner = CliRunner()
    result = runner.invoke(cli, ["-c", str(cfg_file), "crawl", "https://example.com"])
    assert result.exit_code == 0
    assert fake_build[0]["request"].max_pages == 12
    assert fake_build[0]["request"].request_timeout == 2.5


def test_crawl_output_file(fake_build, isolated_cwd):
    out = isolated_cwd / "out" / "sitemap.xml"
    runner = CliRunner()
    result = runner.invoke(cli, ["crawl", "https://example.com", "-o", str(out), "--stats"])
    assert result.exit_code == 0
    assert out.exists()
    assert out.read_text(encoding="utf-8").count("<url>") == 2
    assert "urlsInSitemap" in result.output


def test_crawl_debug(fake_build):
    runner = CliRunner()
    result = runner.invoke(cli, ["crawl", "https://example.com", "--debug"])
    assert result.exit_code == 0
    assert fake_build[0]["request"].include_debug is True
    assert '"action": "fetching"' in result.output


def test_crawl_invalid_priority(fake_build):
    runner = CliRunner()
    result = runner.invoke(cli, ["crawl", "https://example.com", "--priority", "2"])
    assert result.exit_code == 2
    assert fake_build == []


def test_crawl_bad_seed(monkeypatch):
    async def bad(request, options=None, *, settings=None, timeout=None):
        raise SeedURLError("cannot normalize seed URL")

    monkeypatch.setattr(cli_module, "build_sitemap", bad)
    runner = CliRunner()
    result = runner.invoke(cli, ["crawl", "not a url"])
    assert result.exit_code == 1
    assert "Некорректный URL" in result.output


def test_crawl_timeout(monkeypatch):
    async def slow(request, options=None, *, settings=None, timeout=None):
        raise asyncio.TimeoutError()

    monkeypatch.setattr(cli_module, "build_sitemap", slow)
    runner = CliRunner()
    result = runner.invoke(cli, ["crawl", "https://example.com", "--crawl-timeout", "1"])
    assert result.exit_code == 1
    assert "не завершён" in result.output


def test_serve_uses_env_and_options(monkeypatch):
    captured = []
    monkeypatch.setattr(cli_module, "run_server", captured.append)
    monkeypatch.setenv("PORT", "4000")
    monkeypatch.setenv("ALLOWED_ORIGINS", "https://a.example,https://b.example")

    runner = CliRunner()
    result = runner.invoke(cli, ["serve"])
    assert result.exit_code == 0
    assert captured[-1].server.port == 4000
    assert captured[-1].server.allowed_origins == ["https://a.example", "https://b.example"]

    result = runner.invoke(cli, ["serve", "--host", "127.0.0.1", "-p", "5000"])
    assert result.exit_code == 0
    assert captured[-1].server.port == 5000
    assert captured[-1].server.host == "127.0.0.1"
