"""HTML text and title extraction helpers."""

import re
from urllib.parse import urlparse

from bs4 import BeautifulSoup

# Page chrome that never carries document content
STRIP_SELECTORS = "script, style, noscript, nav, header, footer, aside, .sidebar, .menu"

WHITESPACE_PATTERN = re.compile(r"\s+")
PIPE_SUFFIX_PATTERN = re.compile(r"\s*\|[^|]*$")
DASH_SUFFIX_PATTERN = re.compile(r"\s+[-–—]\s+(?:(?!\s[-–—]\s).)*$")


def collapse_whitespace(text: str) -> str:
    return WHITESPACE_PATTERN.sub(" ", text).strip()


def extract_text(html: str) -> str:
    """Return the case-folded body text of a page, without navigation chrome."""
    soup = BeautifulSoup(html, "html.parser")
    for element in soup.select(STRIP_SELECTORS):
        element.decompose()

    body = soup.body or soup
    return collapse_whitespace(body.get_text(" ")).lower()


def extract_title(html: str, url: str) -> str:
    """
    Pick a display title for a page.

    Order: first ``h1``, then ``<title>``, then the last URL path segment.
    A trailing ``| Site Name`` or `` - Site Name`` suffix is removed.
    """
    soup = BeautifulSoup(html, "html.parser")

    title = ""
    h1 = soup.find("h1")
    if h1 is not None:
        title = collapse_whitespace(h1.get_text(" "))

    if not title and soup.title is not None:
        title = collapse_whitespace(soup.title.get_text(" "))

    if not title:
        segments = [p for p in urlparse(url).path.split("/") if p]
        title = segments[-1].replace("-", " ").replace("_", " ") if segments else ""

    title = PIPE_SUFFIX_PATTERN.sub("", title)
    title = DASH_SUFFIX_PATTERN.sub("", title).strip()
    return title or "Untitled"


def extract_page_name(url: str) -> str:
    """Derive a display slug from the last URL path segment."""
    segments = [p for p in urlparse(url).path.split("/") if p]
    page_name = segments[-1] if segments else "index"
    return page_name.replace("-", " ").replace("_", " ")


def extract_links(html: str) -> list[str]:
    """Return raw ``href`` values of all anchors, in document order."""
    soup = BeautifulSoup(html, "html.parser")
    return [a["href"] for a in soup.find_all("a", href=True)]
