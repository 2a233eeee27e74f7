# File: site_mapper/parser/sitemap_parser.py
"""site_mapper.parser.sitemap_parser: Модуль для парсинга sitemap.xml и извлечения URL."""

from __future__ import annotations

from typing import List, Union

from lxml import etree


def parse_sitemap(xml_content: Union[str, bytes]) -> List[str]:
    """Разбирает XML content sitemap и возвращает список URL из тегов <loc>.

    Args:
        xml_content: строка или байты с содержимым sitemap.xml.

    Returns:
        Список URL, найденных в <loc> тегах, в порядке документа.

    Raises:
        ValueError: документ пустой или не разбирается даже в режиме recover.
    """
    if isinstance(xml_content, str):
        xml_content = xml_content.encode("utf-8")
    parser = etree.XMLParser(ns_clean=True, recover=True, resolve_entities=False)
    try:
        root = etree.fromstring(xml_content, parser=parser)
    except etree.XMLSyntaxError as exc:
        raise ValueError(f"sitemap document is not XML: {exc}") from exc
    if root is None:
        raise ValueError("sitemap document is empty or not XML")
    locs = root.findall(".//{*}loc")
    return [loc.text.strip() for loc in locs if loc.text]


__all__ = ["parse_sitemap"]
