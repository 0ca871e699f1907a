"""Local hyperlink extraction from Markdown files.

Markdown is parsed with markdown-it-py (CommonMark plus tables). Inline
tokens only carry the line range of their block, so the exact position of
each link destination is recovered from the source text: inside the block,
every ``](`` outside a code span is a candidate, and a candidate is accepted
when its destination normalizes to the URL markdown-it reported for the link.
Reference definitions (``[label]: target``) are located the same way, from
their ``]:`` marker; reference style links themselves carry no destination.

The URL markdown-it reports is unescaped and percent-encoded, which mangles
Windows style paths such as ``..\\docs\\file.md``. The raw source substring is
therefore used as the link's URL.
"""

from __future__ import annotations

import bisect
import logging
import posixpath
import string
from collections.abc import Iterator
from urllib.parse import unquote

from markdown_it import MarkdownIt
from markdown_it.common.utils import unescapeAll

from docassembler.ingest.catalog import FileCatalog, normalize_path
from docassembler.model.manifest import PROTOCOLS, LinkRecord, LinkType

logger = logging.getLogger(__name__)

_ASCII_PUNCT = frozenset(string.punctuation)
_WHITESPACE = " \t\r\n"


def build_markdown_parser() -> MarkdownIt:
    return MarkdownIt(
        "commonmark", {"store_labels": True, "inline_definitions": True}
    ).enable(["table", "strikethrough"])


def classify_url(url: str) -> LinkType:
    """Classify a URL by protocol, or as local file or resource."""
    if not url.strip():
        return LinkType.EMPTY
    lowered = url.lower()
    for prefix, link_type in PROTOCOLS:
        if lowered.startswith(prefix):
            return link_type
    path, _ = split_topic(url)
    ext = posixpath.splitext(path.replace("\\", "/"))[1]
    if ext.lower() == ".md" or ext == "":
        return LinkType.LOCAL
    return LinkType.RESOURCE


def topic_index(url: str) -> int:
    """Index of the ``#`` delimiter, else of ``?``, else -1."""
    pos = url.find("#")
    if pos == -1:
        pos = url.find("?")
    return pos


def split_topic(url: str) -> tuple[str, str]:
    pos = topic_index(url)
    if pos == -1:
        return url, ""
    return url[:pos], url[pos:]


def decode_url(url: str) -> str:
    """Percent-decode the path part of a relative URL and use ``/`` separators."""
    path, topic = split_topic(url)
    if not posixpath.isabs(path.replace("\\", "/")):
        path = unquote(path)
    return normalize_path(path) + topic


class MarkdownLinkExtractor:
    """Extract local links, with their source spans, from Markdown files."""

    def __init__(self, catalog: FileCatalog | None = None, md: MarkdownIt | None = None) -> None:
        self.catalog = catalog or FileCatalog()
        self.md = md or build_markdown_parser()

    def extract_local_links(self, base_path: str, file_path: str) -> list[LinkRecord]:
        """Return the local links of a Markdown file ordered by span start.

        Args:
            base_path: Documentation root, used to expand a leading ``~``
            file_path: Markdown file to parse

        Raises:
            FileNotFoundError: If file_path doesn't exist
        """
        full_path = self.catalog.get_full_path(file_path)
        if not self.catalog.exists(full_path):
            raise FileNotFoundError(f"File not found: '{file_path}'")

        text = self.catalog.read_text(full_path)
        line_starts = _line_starts(text)
        claimed: set[int] = set()
        links: list[LinkRecord] = []

        for href, region, marker in self._link_targets(text, line_starts):
            found = self._find_destination(text, region, href, claimed, marker)
            if found is None:
                logger.debug("Could not locate link '%s' in %s", href, full_path)
                continue
            start, raw, pointy = found
            claimed.add(start)
            if pointy:
                continue

            link = self._make_link(base_path, full_path, raw, start, line_starts)
            if link is not None:
                links.append(link)

        links.sort(key=lambda x: x.span_start)
        logger.debug("Found %d local links in %s", len(links), full_path)
        return links

    def _link_targets(
        self, text: str, line_starts: list[int]
    ) -> Iterator[tuple[str, tuple[int, int], str]]:
        """Yield ``(href, region, marker)`` for inline links, images and link definitions.

        ``marker`` is the text that precedes the destination in the source:
        ``](`` for inline links, ``]:`` for reference definitions.
        """
        last_map: list[int] | None = None
        for block in self.md.parse(text):
            if block.map:
                last_map = block.map
            if block.type == "definition":
                # reference style links share the destination of their definition
                region = _region(block.map, line_starts, len(text))
                yield str(block.meta.get("url") or ""), region, "]:"
                continue
            if block.type != "inline" or not block.children:
                continue
            region = _region(last_map, line_starts, len(text))
            for child in block.children:
                if child.type not in ("link_open", "image"):
                    continue
                if child.markup == "autolink" or child.info == "auto":
                    continue
                if child.meta.get("label"):
                    continue
                href = child.attrGet("src") if child.type == "image" else child.attrGet("href")
                yield str(href or ""), region, "]("

    def _find_destination(
        self,
        text: str,
        region: tuple[int, int],
        href: str,
        claimed: set[int],
        marker: str = "](",
    ) -> tuple[int, str, bool] | None:
        start, end = region
        code = _code_spans(text, start, end)
        idx = text.find(marker, start, end)
        while idx != -1:
            if _in_spans(idx, code) or not _opens_bracket(text, start, idx, code):
                idx = text.find(marker, idx + 2, end)
                continue
            pos = idx + 2
            while pos < end and text[pos] in _WHITESPACE:
                pos += 1
            if pos < end and text[pos] == "<":
                close = text.find(">", pos + 1, end)
                if close != -1:
                    raw = text[pos + 1 : close]
                    if pos + 1 not in claimed and self._same_url(raw, href):
                        return pos + 1, raw, True
            else:
                raw = _scan_destination(text, pos, end)
                if pos not in claimed and self._same_url(raw, href):
                    return pos, raw, False
            idx = text.find(marker, idx + 2, end)
        return None

    def _same_url(self, raw: str, href: str) -> bool:
        return self.md.normalizeLink(unescapeAll(raw)) == href

    def _make_link(
        self, base_path: str, file_path: str, raw: str, start: int, line_starts: list[int]
    ) -> LinkRecord | None:
        if not raw.strip():
            # empty links are not an error, there's nothing to resolve
            return None
        link_type = classify_url(raw)
        if link_type not in (LinkType.LOCAL, LinkType.RESOURCE):
            return None

        url = raw
        if url.startswith("~"):
            url = normalize_path(base_path).rstrip("/") + "/" + url[1:].lstrip("/\\")
        url = decode_url(url)

        pos = topic_index(url)
        topic = "" if pos == -1 else url[pos:]
        if pos == 0:
            full_path = ""
        else:
            path = url if pos == -1 else url[:pos]
            if not posixpath.isabs(path):
                path = posixpath.join(posixpath.dirname(file_path), path)
            full_path = posixpath.normpath(path)

        line = bisect.bisect_right(line_starts, start)
        return LinkRecord(
            file_path=file_path,
            original_url=raw,
            url=url,
            link_type=link_type,
            span_start=start,
            span_end=start + len(raw) - 1,
            line=line,
            column=start - line_starts[line - 1] + 1,
            url_topic=topic,
            url_full_path=full_path,
        )


def _line_starts(text: str) -> list[int]:
    starts = [0]
    idx = text.find("\n")
    while idx != -1:
        starts.append(idx + 1)
        idx = text.find("\n", idx + 1)
    return starts


def _region(line_map: list[int] | None, line_starts: list[int], length: int) -> tuple[int, int]:
    if not line_map:
        return 0, length
    begin, finish = line_map
    start = line_starts[begin] if begin < len(line_starts) else length
    end = line_starts[finish] if finish < len(line_starts) else length
    return start, end


def _escaped(text: str, pos: int, start: int) -> bool:
    """True when ``text[pos]`` is preceded by an odd run of backslashes."""
    count = 0
    while pos - count - 1 >= start and text[pos - count - 1] == "\\":
        count += 1
    return count % 2 == 1


def _code_spans(text: str, start: int, end: int) -> list[tuple[int, int]]:
    """Half-open ranges of the inline code spans in ``text[start:end]``.

    A run of backticks opens a span that is closed by the next run of the
    same length; a run without a closing run is literal text.
    """
    spans: list[tuple[int, int]] = []
    i = start
    while i < end:
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if ch != "`":
            i += 1
            continue
        j = i
        while j < end and text[j] == "`":
            j += 1
        size = j - i
        k = j
        close = -1
        while k < end:
            if text[k] != "`":
                k += 1
                continue
            m = k
            while m < end and text[m] == "`":
                m += 1
            if m - k == size:
                close = m
                break
            k = m
        if close == -1:
            i = j
            continue
        spans.append((i, close))
        i = close
    return spans


def _in_spans(pos: int, spans: list[tuple[int, int]]) -> bool:
    return any(lo <= pos < hi for lo, hi in spans)


def _opens_bracket(text: str, start: int, close: int, code: list[tuple[int, int]]) -> bool:
    """Check that the ``]`` at ``close`` ends a bracket opened by an unescaped ``[``."""
    if _escaped(text, close, start):
        return False
    depth = 0
    pos = close
    while pos >= start:
        ch = text[pos]
        if ch in "[]" and not _in_spans(pos, code) and not _escaped(text, pos, start):
            depth += 1 if ch == "]" else -1
            if depth == 0:
                return True
        pos -= 1
    return False


def _scan_destination(text: str, pos: int, end: int) -> str:
    """Scan a CommonMark link destination that isn't in angle brackets."""
    level = 0
    i = pos
    while i < end:
        ch = text[i]
        if ch == "\\" and i + 1 < end and text[i + 1] in _ASCII_PUNCT:
            i += 2
            continue
        if ch in _WHITESPACE or ord(ch) < 0x20:
            break
        if ch == "(":
            level += 1
        elif ch == ")":
            if level == 0:
                break
            level -= 1
        i += 1
    return text[pos:i]


def extract_local_links(
    base_path: str, file_path: str, catalog: FileCatalog | None = None
) -> list[LinkRecord]:
    """Convenience wrapper around :class:`MarkdownLinkExtractor`."""
    return MarkdownLinkExtractor(catalog).extract_local_links(base_path, file_path)


__all__ = [
    "MarkdownLinkExtractor",
    "build_markdown_parser",
    "classify_url",
    "decode_url",
    "extract_local_links",
    "split_topic",
    "topic_index",
]
