"""Sitemap and sitemap-index parsing."""

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field


@dataclass
class SitemapEntries:
    """Locations listed by one sitemap document."""

    pages: list[str] = field(default_factory=list)
    sitemaps: list[str] = field(default_factory=list)


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def parse_sitemap(xml_text: str) -> SitemapEntries | None:
    """
    Parse a ``urlset`` or ``sitemapindex`` document.

    Returns:
        The page and child-sitemap locations, or None if the text is not
        a sitemap
    """
    try:
        root = ET.fromstring(xml_text.strip())
    except ET.ParseError:
        return None

    kind = _local_name(root.tag)
    if kind not in ("urlset", "sitemapindex"):
        return None

    entries = SitemapEntries()
    target = entries.pages if kind == "urlset" else entries.sitemaps
    for child in root:
        for node in child:
            if _local_name(node.tag) == "loc" and node.text and node.text.strip():
                target.append(node.text.strip())
    return entries
