"""Intermediate representation dataclasses for converted documents.

WHY: The markup is a flat list of lines with no structure. Renderers
(DOCX, plain text preview) each need headings, paragraphs, list items,
images and bibliography entries — but serialize them differently. The IR
provides a single, well-typed intermediate form that all renderers
consume, decoupling conversion from rendering.

HOW: Seven frozen block dataclasses form a closed tagged variant. Each
carries a ``kind`` tag (BlockKind) so renderers dispatch on the tag
instead of probing optional fields. Citation and ListGroup hold the
running state the assembler builds blocks from, and Document is the
top-level container handed to a renderer.

RULES:
- Blocks are immutable once produced; list order is the only ordering
- Every block has a style name from STYLES and a page_break_before flag
- numbering_reference, when set, must name a scheme in NUMBERING_SCHEMES
- Image payloads are raw bytes with display size in pixels
- Citation.resolved_text is None only while the lookup is pending
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

from docx_export.config import (
    NUMBERING_BULLET,
    NUMBERING_DECIMAL,
    STYLE_CENTER,
    STYLE_CHAPTER,
    STYLE_CODE,
    STYLE_PARAGRAPH,
    STYLE_STANDARD,
    TOC_TITLE,
)
from docx_export.errors import DocumentValidationError

# Named numbering schemes and their level-0 format.
NUMBERING_SCHEMES: Dict[str, str] = {
    NUMBERING_DECIMAL: "decimal",
    NUMBERING_BULLET: "bullet",
}

# Paragraph style ids and the Word style names they are created under.
STYLES: Dict[str, str] = {
    STYLE_STANDARD: "Standard",
    STYLE_CHAPTER: "Chapter",
    STYLE_PARAGRAPH: "Paragraph",
    STYLE_CENTER: "Center",
    STYLE_CODE: "Code",
}


class BlockKind(str, Enum):
    HEADING = "heading"
    PARAGRAPH = "paragraph"
    IMAGE = "image"
    CODE_LINE = "code_line"
    LIST_ITEM = "list_item"
    TOC_PLACEHOLDER = "toc_placeholder"
    BIBLIOGRAPHY_ENTRY = "bibliography_entry"


class ListKind(str, Enum):
    ORDERED = "ordered"
    BULLETED = "bulleted"

    @property
    def numbering_reference(self) -> str:
        return NUMBERING_DECIMAL if self is ListKind.ORDERED else NUMBERING_BULLET


@dataclass(frozen=True)
class Heading:
    """A chapter, section, or excluded heading.

    RULES:
    - text: display text including the number label ("1.1. Detail")
    - title: heading text without markers or label
    - label: "1" / "1.1", or None for excluded headings
    - level: 1 for chapters and excluded headings, 2 for sections
    """

    text: str
    title: str
    level: int
    label: Optional[str] = None
    style: str = STYLE_CHAPTER
    page_break_before: bool = False
    kind: BlockKind = field(default=BlockKind.HEADING, init=False)


@dataclass(frozen=True)
class Paragraph:
    """Body text, warnings for unresolvable images, and figure captions."""

    text: str
    style: str = STYLE_STANDARD
    citation_index: Optional[int] = None
    page_break_before: bool = False
    kind: BlockKind = field(default=BlockKind.PARAGRAPH, init=False)


@dataclass(frozen=True)
class Image:
    """An embedded picture scaled to the display width.

    RULES:
    - data: image bytes in a format Word can embed (PNG when re-encoded)
    - width/height: display size in pixels, aspect ratio preserved
    - source: the path written in the embed syntax
    """

    data: bytes = field(repr=False)
    width: int
    height: int
    source: str
    style: str = STYLE_CENTER
    page_break_before: bool = False
    kind: BlockKind = field(default=BlockKind.IMAGE, init=False)


@dataclass(frozen=True)
class CodeLine:
    """One verbatim line from inside a code fence."""

    text: str
    style: str = STYLE_CODE
    page_break_before: bool = False
    kind: BlockKind = field(default=BlockKind.CODE_LINE, init=False)


@dataclass(frozen=True)
class ListItem:
    """One item of an ordered or bulleted list run.

    Items sharing ``instance_id`` and ``numbering_reference`` form one
    run whose visible numbering restarts at 1.
    """

    text: str
    numbering_reference: str
    instance_id: int
    style: str = STYLE_STANDARD
    citation_index: Optional[int] = None
    page_break_before: bool = False
    kind: BlockKind = field(default=BlockKind.LIST_ITEM, init=False)


@dataclass(frozen=True)
class TocPlaceholder:
    """Marks where the renderer inserts the table of contents field."""

    title: str = TOC_TITLE
    style: str = STYLE_CENTER
    page_break_before: bool = False
    kind: BlockKind = field(default=BlockKind.TOC_PLACEHOLDER, init=False)


@dataclass(frozen=True)
class BibliographyEntry:
    """One numbered reference in the closing bibliography."""

    index: int
    text: str
    source_url: str
    instance_id: int
    numbering_reference: str = NUMBERING_DECIMAL
    style: str = STYLE_STANDARD
    page_break_before: bool = False
    kind: BlockKind = field(default=BlockKind.BIBLIOGRAPHY_ENTRY, init=False)


Block = Union[
    Heading,
    Paragraph,
    Image,
    CodeLine,
    ListItem,
    TocPlaceholder,
    BibliographyEntry,
]


@dataclass(frozen=True)
class Citation:
    """An inline link rewritten to a bracketed index.

    RULES:
    - index: 1-based, order of first appearance, never changes
    - resolved_text: None while pending, then the formatted reference or
      the fixed placeholder when the lookup failed
    """

    index: int
    source_url: str
    label: str
    resolved_text: Optional[str] = None


@dataclass
class ListGroup:
    """Consecutive list lines of one kind sharing a numbering instance.

    ``line_indices`` and ``citation_indices`` run parallel to ``items`` so
    flushed ListItem blocks keep their source position and citation.
    """

    kind: ListKind
    instance_id: int
    items: List[str] = field(default_factory=list)
    line_indices: List[int] = field(default_factory=list)
    citation_indices: List[Optional[int]] = field(default_factory=list)


@dataclass(frozen=True)
class Document:
    """The complete converted document handed to a renderer.

    RULES:
    - blocks: TocPlaceholder first, then body blocks in source line
      order, then the bibliography heading and entries
    - numbering_schemes / styles: the tables renderers must provide
    - citations: resolved citations in index order
    """

    blocks: Tuple[Block, ...]
    citations: Tuple[Citation, ...] = ()
    numbering_schemes: Dict[str, str] = field(default_factory=lambda: dict(NUMBERING_SCHEMES))
    styles: Dict[str, str] = field(default_factory=lambda: dict(STYLES))

    def validate(self) -> None:
        """Raise DocumentValidationError if a block names an unknown scheme or style."""
        for position, block in enumerate(self.blocks):
            reference = getattr(block, "numbering_reference", None)
            if reference is not None and reference not in self.numbering_schemes:
                raise DocumentValidationError(
                    "Block {} ({}) references unknown numbering scheme {!r}".format(
                        position, block.kind.value, reference
                    )
                )
            if block.style not in self.styles:
                raise DocumentValidationError(
                    "Block {} ({}) uses unknown style {!r}".format(
                        position, block.kind.value, block.style
                    )
                )
