# site_mapper/__init__.py
"""
SiteMapper package initializer.
Defines package version and exposes CLI as ``main_cli``.

``site_mapper.cli`` stays the command module (tests patch its
``build_sitemap``/``run_server``); the click group is ``site_mapper.cli.cli``.
"""
__version__ = "2.0.0"

# Expose CLI entry point
from site_mapper.cli import cli as main_cli  # noqa: E402

__all__ = ["__version__", "main_cli"]
