"""Single-pass conversion of markup lines into an ordered Document IR.

WHY: The exported document depends on several pieces of running state —
chapter/section/picture counters, the open code fence, the open list
run, the citation index — that interact line by line. Image loading and
citation lookups are slow and run concurrently, yet the final block
order must match the source exactly. This module is the bridge between
the raw markup and the IR every renderer consumes.

HOW: DocumentAssembler walks the lines once, synchronously. Each line is
classified, counters are updated, and the line yields at most one slot:
either a finished block or an asyncio task (image load) that resolves
to one. Slots are keyed by source line index. After the pass, all tasks
and citation lookups are awaited together, slots are reassembled in line
index order, and the document is framed with the table of contents
placeholder and the bibliography.

RULES:
- States: BODY, CODE_FENCE, LIST_RUN; transitions follow the classifier
- A list run flushes before the line that ends it is processed
- "---" sets a pending page break for the next emitted block
- Chapter and excluded headings always start a new page
- Counters change only during the synchronous scan, before any task for
  the line is created, so numbering never depends on I/O latency
- An open list or fence at end of input is flushed/closed implicitly
- Blank lines emit nothing; plain text is trimmed (code is not)
- Output order: TocPlaceholder, body blocks, bibliography
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from datetime import date
from enum import Enum
from typing import Dict, List, Optional, Set, Union

from docx_export.config import (
    BIBLIOGRAPHY_TITLE,
    IMAGE_TARGET_WIDTH,
    STYLE_CENTER,
    STYLE_CHAPTER,
    STYLE_PARAGRAPH,
    STYLE_STANDARD,
    TOC_TITLE,
)
from docx_export.core.bibliography import build_bibliography
from docx_export.core.citations import CitationCollector
from docx_export.core.classifier import TokenKind, classify_line, line_content
from docx_export.core.code_block import CodeBlockExtractor
from docx_export.core.images import (
    ImageResolver,
    caption_text,
    is_caption,
    missing_image_block,
    substitute_picture_placeholders,
)
from docx_export.core.ir import (
    Block,
    Document,
    Heading,
    ListKind,
    Paragraph,
    TocPlaceholder,
)
from docx_export.core.lists import ListGrouper
from docx_export.core.numbering import NumberingState

logger = logging.getLogger(__name__)

_LIST_KINDS = {
    TokenKind.ORDERED_ITEM: ListKind.ORDERED,
    TokenKind.BULLET_ITEM: ListKind.BULLETED,
}


class AssemblerState(str, Enum):
    BODY = "body"
    CODE_FENCE = "code_fence"
    LIST_RUN = "list_run"


class DocumentAssembler:
    """Drives one conversion pass over a markup buffer.

    WHY: Keeping all per-pass state on one object (instead of module
    globals or loop-local flags) makes the state machine inspectable and
    every pass independent.

    HOW: convert() = begin() + feed() per line + finish(). The step-wise
    API exists so tests can observe state transitions line by line.

    RULES:
    - loader must provide ``read_binary(path)`` and ``fetch(url)`` coroutines
    - feed() and finish() must run inside an event loop
    - today is injected so repeated runs produce identical documents
    """

    def __init__(
        self,
        loader,
        today: Optional[date] = None,
        image_width: int = IMAGE_TARGET_WIDTH,
        bibliography_title: str = BIBLIOGRAPHY_TITLE,
        toc_title: str = TOC_TITLE,
    ) -> None:
        self._loader = loader
        self._today = today
        self._image_width = image_width
        self._bibliography_title = bibliography_title
        self._toc_title = toc_title
        self.begin()

    # ------------------------------------------------------------------
    # Pass lifecycle
    # ------------------------------------------------------------------

    def begin(self) -> None:
        """Reset all per-pass state."""
        self.numbering = NumberingState()
        self._citations: Optional[CitationCollector] = None
        self._images = ImageResolver(self._loader, target_width=self._image_width)
        self._lists = ListGrouper()
        self._fence = CodeBlockExtractor()
        self._slots: Dict[int, Union[Block, asyncio.Task]] = {}
        self._image_sources: Dict[int, str] = {}
        self._break_lines: Set[int] = set()
        self._pending_page_break = False
        self._after_image = False
        self._line_index = 0

    @property
    def state(self) -> AssemblerState:
        if self._fence.is_open:
            return AssemblerState.CODE_FENCE
        if self._lists.open_kind is not None:
            return AssemblerState.LIST_RUN
        return AssemblerState.BODY

    @property
    def list_kind(self) -> Optional[ListKind]:
        """Kind of the open list run, when state is LIST_RUN."""
        return self._lists.open_kind

    def _collector(self) -> CitationCollector:
        # Created lazily: the collector fires tasks and needs a running loop.
        if self._citations is None:
            self._citations = CitationCollector(self._loader, today=self._today)
        return self._citations

    async def convert(self, text: str) -> Document:
        """Convert a whole markup buffer into a Document.

        Args:
            text: UTF-8 markup, newline separated.

        Returns:
            The ordered Document, validated against its scheme tables.
        """
        self.begin()
        for line in split_lines(text):
            self.feed(line)
        return await self.finish()

    # ------------------------------------------------------------------
    # Synchronous scan
    # ------------------------------------------------------------------

    def _emit(self, line_index: int, block: Union[Block, asyncio.Task]) -> None:
        self._slots[line_index] = block
        if self._pending_page_break:
            self._break_lines.add(line_index)
            self._pending_page_break = False

    def _flush_list(self) -> None:
        for line_index, item in self._lists.close():
            self._slots[line_index] = item

    def _inline(self, text: str) -> tuple:
        """Apply citation rewriting and picture placeholders to inline text."""
        text, citation_index = self._collector().rewrite(text)
        return substitute_picture_placeholders(text, self.numbering), citation_index

    def feed(self, line: str) -> None:
        """Process one source line."""
        index = self._line_index
        self._line_index += 1

        kind = classify_line(line, in_fence=self._fence.is_open)
        after_image = self._after_image
        self._after_image = False

        if kind is TokenKind.FENCE_TOGGLE:
            self._flush_list()
            self._fence.toggle()
            return
        if kind is TokenKind.CODE_LINE:
            self._emit(index, self._fence.emit(line))
            return

        list_kind = _LIST_KINDS.get(kind)
        if list_kind is None or list_kind is not self._lists.open_kind:
            self._flush_list()

        if kind is TokenKind.BLANK:
            return
        if kind is TokenKind.PAGE_BREAK:
            self._pending_page_break = True
            return

        if list_kind is not None:
            text, citation_index = self._inline(line_content(line, kind))
            for line_index, item in self._lists.add(list_kind, text, index, citation_index=citation_index):
                self._slots[line_index] = item
            if self._pending_page_break:
                self._break_lines.add(index)
                self._pending_page_break = False
            return

        if kind is TokenKind.IMAGE_EMBED:
            source = line_content(line, kind)
            self._image_sources[index] = source
            self._emit(index, self._images.schedule(source))
            self._after_image = True
            return

        if kind in (TokenKind.CHAPTER_HEADING, TokenKind.SECTION_HEADING, TokenKind.EXCLUDED_HEADING):
            self._emit(index, self._heading(kind, line))
            return

        if after_image and is_caption(line):
            caption = caption_text(line, self.numbering.next_picture())
            text, citation_index = self._collector().rewrite(caption)
            self._emit(index, Paragraph(text=text, style=STYLE_CENTER, citation_index=citation_index))
            return

        text, citation_index = self._inline(line_content(line, kind))
        self._emit(index, Paragraph(text=text, style=STYLE_STANDARD, citation_index=citation_index))

    def _heading(self, kind: TokenKind, line: str) -> Heading:
        title, _ = self._inline(line_content(line, kind))
        if kind is TokenKind.CHAPTER_HEADING:
            label = str(self.numbering.next_chapter())
            return Heading(
                text="{}. {}".format(label, title),
                title=title,
                level=1,
                label=label,
                style=STYLE_CHAPTER,
                page_break_before=True,
            )
        if kind is TokenKind.SECTION_HEADING:
            label = self.numbering.next_section()
            return Heading(
                text="{}. {}".format(label, title),
                title=title,
                level=2,
                label=label,
                style=STYLE_PARAGRAPH,
            )
        return Heading(
            text=title,
            title=title,
            level=1,
            style=STYLE_CHAPTER,
            page_break_before=True,
        )

    # ------------------------------------------------------------------
    # Collective await and reassembly
    # ------------------------------------------------------------------

    async def finish(self) -> Document:
        """Flush open state, await pending work, and build the Document."""
        self._flush_list()
        self._fence.finish()

        pending = {i: slot for i, slot in self._slots.items() if isinstance(slot, asyncio.Task)}
        if pending:
            keys = sorted(pending)
            results = await asyncio.gather(*(pending[k] for k in keys), return_exceptions=True)
            for key, result in zip(keys, results):
                if isinstance(result, BaseException):
                    logger.warning("Image on line %d failed: %s", key + 1, result)
                    self._slots[key] = missing_image_block(self._image_sources[key])
                else:
                    self._slots[key] = result

        citations = await self._collector().resolve_all()

        body: List[Block] = []
        for line_index in sorted(self._slots):
            block = self._slots[line_index]
            if line_index in self._break_lines and not block.page_break_before:
                block = dataclasses.replace(block, page_break_before=True)
            body.append(block)

        blocks: List[Block] = [TocPlaceholder(title=self._toc_title)]
        blocks.extend(body)
        blocks.extend(build_bibliography(
            citations,
            instance_id=self._lists.allocate_instance(),
            title=self._bibliography_title,
        ))

        document = Document(blocks=tuple(blocks), citations=tuple(citations))
        document.validate()
        logger.info(
            "Converted %d lines into %d blocks (%d chapters, %d pictures, %d citations)",
            self._line_index,
            len(blocks),
            self.numbering.chapter_number,
            self.numbering.picture_number,
            len(citations),
        )
        return document


def split_lines(text: str) -> List[str]:
    """Split a buffer into lines, dropping the newline (and any CR).

    A leading UTF-8 byte order mark is removed.
    """
    if text.startswith("\ufeff"):
        text = text[1:]
    if not text:
        return []
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


async def convert_markdown(
    text: str,
    loader,
    today: Optional[date] = None,
    **options,
) -> Document:
    """Convenience wrapper: one DocumentAssembler, one pass."""
    return await DocumentAssembler(loader, today=today, **options).convert(text)
