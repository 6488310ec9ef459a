"""Inline link collection and asynchronous citation title resolution.

WHY: Reports cite web pages as inline links. The exported document must
show a bracketed reference number in the text and a formatted entry in
the bibliography, using the page's own title. Fetching titles is slow,
so lookups run concurrently while the scan continues.

HOW: CitationCollector.rewrite() finds the first ``[label](url)`` in a
line, replaces it with ``label [N]``, records a Citation, and fires one
asyncio task that fetches the page and extracts its <title> with
BeautifulSoup. resolve_all() awaits every task and returns the citations
in index order with their resolved text.

RULES:
- Indices are 1-based, global, and assigned in order of first appearance
- A repeated URL gets a new index (no deduplication)
- Only the first link per line is rewritten; later links stay as written
- Successful lookups are formatted with CITATION_TEMPLATE and today's date
- Any failure (transport error, HTTP status >= 400, empty title) yields
  UNRESOLVED_CITATION_TEXT and never affects sibling lookups
- Results are keyed by citation index, never by completion order
"""

from __future__ import annotations

import asyncio
import logging
import re
from datetime import date
from typing import Dict, List, Optional, Tuple

from bs4 import BeautifulSoup

from docx_export.config import (
    CITATION_DATE_FORMAT,
    CITATION_TEMPLATE,
    UNRESOLVED_CITATION_TEXT,
)
from docx_export.core.ir import Citation
from docx_export.errors import CitationResolutionError, DocxExportError

logger = logging.getLogger(__name__)

# [label](url) not preceded by "!", so Markdown image syntax is left alone.
# The url may hold one level of balanced parentheses: wiki/Foo_(bar).
_LINK_RE = re.compile(r"(?<!!)\[([^\[\]]+)\]\(\s*((?:[^()\s]|\([^()\s]*\))+)\s*\)")


def find_link(line: str) -> Optional[Tuple[str, str, Tuple[int, int]]]:
    """Return (label, url, span) of the first inline link, or None."""
    match = _LINK_RE.search(line)
    if match is None:
        return None
    return match.group(1).strip(), match.group(2), match.span()


def extract_title(html: str) -> str:
    """Extract a page title from HTML.

    WHY: Bibliography entries use the page's own title rather than the
    link label, which is often just "here" or "source".

    HOW: Parse with BeautifulSoup's built-in html.parser. Prefer <title>;
    fall back to the og:title meta tag. Whitespace is collapsed.

    RULES:
    - Raises CitationResolutionError when no non-empty title exists
    """
    soup = BeautifulSoup(html, "html.parser")
    title = ""
    if soup.title is not None and soup.title.string:
        title = soup.title.string
    else:
        meta = soup.find("meta", attrs={"property": "og:title"})
        if meta is not None and meta.get("content"):
            title = str(meta["content"])
    title = " ".join(title.split())
    if not title:
        raise CitationResolutionError("Page has no title")
    return title


def format_reference(title: str, url: str, accessed: date) -> str:
    return CITATION_TEMPLATE.format(
        title=title,
        url=url,
        date=accessed.strftime(CITATION_DATE_FORMAT),
    )


class CitationCollector:
    """Assigns citation indices during the scan and resolves them afterwards.

    RULES:
    - Construct and use inside a running event loop (rewrite() fires tasks)
    - loader must provide ``await fetch(url) -> FetchResult``
    - today is injected so repeated runs format identical dates
    """

    def __init__(self, loader, today: Optional[date] = None) -> None:
        self._loader = loader
        self._today = today or date.today()
        self._citations: List[Citation] = []
        self._tasks: Dict[int, asyncio.Task] = {}

    @property
    def citations(self) -> List[Citation]:
        """Citations collected so far, unresolved, in index order."""
        return list(self._citations)

    def rewrite(self, line: str) -> Tuple[str, Optional[int]]:
        """Replace the first inline link in ``line`` with ``label [N]``.

        Args:
            line: A source line outside any code fence.

        Returns:
            (rewritten line, citation index) — the index is None when the
            line holds no link.
        """
        found = find_link(line)
        if found is None:
            return line, None

        label, url, (start, end) = found
        index = len(self._citations) + 1
        self._citations.append(Citation(index=index, source_url=url, label=label))
        self._tasks[index] = asyncio.create_task(self._resolve(url))

        rest = line[end:]
        if _LINK_RE.search(rest):
            logger.debug("Line has more than one link; only the first is cited: %r", line)
        return "{}{} [{}]{}".format(line[:start], label, index, rest), index

    async def _resolve(self, url: str) -> str:
        try:
            result = await self._loader.fetch(url)
            if result.status >= 400:
                raise CitationResolutionError("HTTP {}".format(result.status))
            title = extract_title(result.body)
        except DocxExportError as e:
            logger.warning("Could not resolve citation %s: %s", url, e)
            return UNRESOLVED_CITATION_TEXT
        return format_reference(title, url, self._today)

    async def resolve_all(self) -> List[Citation]:
        """Await every lookup and return resolved citations in index order."""
        indices = sorted(self._tasks)
        results = await asyncio.gather(
            *(self._tasks[i] for i in indices), return_exceptions=True
        )
        resolved_by_index: Dict[int, str] = {}
        for index, result in zip(indices, results):
            if isinstance(result, BaseException):
                logger.warning("Citation %d lookup failed: %s", index, result)
                resolved_by_index[index] = UNRESOLVED_CITATION_TEXT
            else:
                resolved_by_index[index] = result

        return [
            Citation(
                index=c.index,
                source_url=c.source_url,
                label=c.label,
                resolved_text=resolved_by_index.get(c.index, UNRESOLVED_CITATION_TEXT),
            )
            for c in self._citations
        ]
