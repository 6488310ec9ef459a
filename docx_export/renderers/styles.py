"""Page geometry, paragraph styles, and numbering schemes for DOCX output.

WHY: The exported report follows a fixed layout (Times New Roman 14 pt,
one-and-a-half spacing, 3 cm binding margin, numbered pages except the
title page). Keeping the palette as plain data makes it easy to adjust
without touching the rendering code.

HOW: Module-level dataclass instances and dicts consumed by
DocxRenderer. Lengths are stored in millimetres/points and converted
with python-docx units at render time.

RULES:
- Style keys match config.STYLE_* and the Document style table
- Numbering keys match config.NUMBERING_* and the Document scheme table
- "base-numbering" has three decimal levels, 12.5 mm indent per level
- "bullet-points" has one level using the Symbol font middle dot
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

from docx_export.config import (
    NUMBERING_BULLET,
    NUMBERING_DECIMAL,
    STYLE_CENTER,
    STYLE_CHAPTER,
    STYLE_CODE,
    STYLE_PARAGRAPH,
    STYLE_STANDARD,
)

BODY_FONT = "Times New Roman"
BODY_FONT_SIZE_PT = 14.0
BODY_LINE_SPACING = 1.5
CODE_FONT = "Courier New"


@dataclass(frozen=True)
class PageSetup:
    width_mm: float = 210.0
    height_mm: float = 297.0
    margin_top_mm: float = 20.0
    margin_right_mm: float = 20.0
    margin_bottom_mm: float = 20.0
    margin_left_mm: float = 30.0
    title_page: bool = True
    page_number_start: int = 1


@dataclass(frozen=True)
class ParagraphStyle:
    """Formatting of one paragraph style, based on Normal.

    The Word style name comes from the document's style table.
    """

    font_size_pt: Optional[float] = None
    bold: bool = False
    font: Optional[str] = None
    alignment: Optional[str] = None  # "center" / "justify" / "left"
    first_line_indent_mm: Optional[float] = None
    line_spacing: Optional[float] = None
    space_before_pt: Optional[float] = None
    space_after_pt: Optional[float] = None
    outline_level: Optional[int] = None
    keep_with_next: bool = False


@dataclass(frozen=True)
class NumberingLevel:
    level: int
    fmt: str  # w:numFmt value: "decimal" / "bullet"
    text: str  # w:lvlText value
    indent_left_mm: float = 0.0
    font: Optional[str] = None


PAGE_SETUP = PageSetup()

PARAGRAPH_STYLES: Dict[str, ParagraphStyle] = {
    STYLE_STANDARD: ParagraphStyle(
        first_line_indent_mm=12.5,
    ),
    STYLE_CHAPTER: ParagraphStyle(
        font_size_pt=16.0,
        bold=True,
        first_line_indent_mm=0.0,
        outline_level=0,
        keep_with_next=True,
    ),
    STYLE_PARAGRAPH: ParagraphStyle(
        bold=True,
        first_line_indent_mm=12.5,
        space_before_pt=6.0,
        space_after_pt=6.0,
        outline_level=1,
        keep_with_next=True,
    ),
    STYLE_CODE: ParagraphStyle(
        font=CODE_FONT,
        font_size_pt=12.0,
        alignment="left",
        first_line_indent_mm=0.0,
        line_spacing=1.0,
    ),
    STYLE_CENTER: ParagraphStyle(
        alignment="center",
        first_line_indent_mm=0.0,
    ),
}


def _decimal_level(level: int) -> NumberingLevel:
    return NumberingLevel(
        level=level,
        fmt="decimal",
        text="%{}.".format(level + 1),
        indent_left_mm=level * 12.5,
    )


NUMBERING_LEVELS: Dict[str, List[NumberingLevel]] = {
    NUMBERING_DECIMAL: [_decimal_level(0), _decimal_level(1), _decimal_level(2)],
    NUMBERING_BULLET: [
        NumberingLevel(level=0, fmt="bullet", text="·", font="Symbol"),
    ],
}

TOC_INSTRUCTION = 'TOC \\o "1-2" \\h \\z \\u'
TOC_UPDATE_HINT = "Update the field (F9) to build the table of contents."
