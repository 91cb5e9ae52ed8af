"""Text and markup helpers."""

from __future__ import annotations

import html
import re
from html.parser import HTMLParser

WHITESPACE_RE = re.compile(r"\s+")
SENTENCE_END_RE = re.compile(r"[.!?]+")

_BLOCK_TAGS = {"br", "div", "p", "li", "h1", "h2", "h3", "h4", "h5", "h6", "tr", "blockquote"}


def normalize(text: str) -> str:
    """Collapse whitespace and strip."""
    return WHITESPACE_RE.sub(" ", text).strip()


class _TextExtractor(HTMLParser):
    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.parts: list[str] = []

    def handle_starttag(self, tag: str, attrs) -> None:
        if tag in _BLOCK_TAGS and self.parts and not self.parts[-1].endswith("\n"):
            self.parts.append("\n")

    def handle_endtag(self, tag: str) -> None:
        if tag in _BLOCK_TAGS and tag != "br":
            self.parts.append("\n")

    def handle_data(self, data: str) -> None:
        self.parts.append(data)


def html_to_text(markup: str) -> str:
    """Extract the visible text of editor markup, keeping line breaks."""
    if not markup:
        return ""
    parser = _TextExtractor()
    parser.feed(markup)
    parser.close()
    text = "".join(parser.parts)
    return re.sub(r"\n{3,}", "\n\n", text).strip()


def text_to_html(text: str) -> str:
    """Escape plain text and map newlines to line breaks."""
    return html.escape(text).replace("\n", "<br>")


def word_count(text: str) -> int:
    return len([word for word in text.split() if word])


def sentence_count(text: str) -> int:
    """Count sentence terminators (runs of ``.``, ``!`` or ``?``)."""
    return len(SENTENCE_END_RE.findall(text))


def preview(text: str, limit: int = 150) -> str:
    text = normalize(text)
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


__all__ = [
    "normalize",
    "html_to_text",
    "text_to_html",
    "word_count",
    "sentence_count",
    "preview",
]
