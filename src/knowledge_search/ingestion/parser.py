"""Markdown title extraction and search-text normalization."""

import re
from pathlib import PurePosixPath
from urllib.parse import unquote, urlparse


class MarkdownParser:
    """Turn raw markdown into case-folded plain text for matching."""

    # Regex patterns
    HEADING_PATTERN = re.compile(r"^#[ \t]+(.+)$", re.MULTILINE)
    CODE_BLOCK_PATTERN = re.compile(r"```.*?(?:```|\Z)", re.DOTALL)
    INLINE_CODE_PATTERN = re.compile(r"`[^`\n]+`")
    PUNCTUATION_PATTERN = re.compile(r"[#*_`~>|\[\]()!]")
    WHITESPACE_PATTERN = re.compile(r"\s+")

    def extract_title(self, content: str) -> str | None:
        """Return the text of the first ``# heading`` line, if any."""
        match = self.HEADING_PATTERN.search(content)
        if match:
            return match.group(1).strip()
        return None

    def title_from_url(self, url: str) -> str:
        """Fallback title: last path segment without extension, separators as spaces."""
        segments = [p for p in urlparse(url).path.split("/") if p]
        if not segments:
            return "Untitled"
        stem = PurePosixPath(unquote(segments[-1])).stem
        return stem.replace("-", " ").replace("_", " ").strip() or "Untitled"

    def normalize(self, content: str) -> str:
        """
        Reduce markdown to searchable text.

        Fenced code blocks and inline code are dropped entirely, markdown
        punctuation is removed, whitespace collapsed, and the result
        lowercased.
        """
        text = self.CODE_BLOCK_PATTERN.sub(" ", content)
        text = self.INLINE_CODE_PATTERN.sub(" ", text)
        text = self.PUNCTUATION_PATTERN.sub(" ", text)
        text = self.WHITESPACE_PATTERN.sub(" ", text).strip()
        return text.lower()


# Singleton parser instance
_parser = None


def get_parser() -> MarkdownParser:
    """Get the singleton parser instance."""
    global _parser
    if _parser is None:
        _parser = MarkdownParser()
    return _parser
