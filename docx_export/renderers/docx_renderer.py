"""Word (.docx) renderer built on python-docx.

WHY: The point of the exporter is a paginated Word file that follows the
report layout: styled chapters and sections, restartable numbered and
bulleted lists, embedded figures, an updatable table of contents, and
page numbers in the footer.

HOW: A fresh python-docx Document is configured from renderers/styles.py
(Normal font, five named paragraph styles, A4 geometry, footers), then
every IR block is appended in order, dispatching on ``block.kind``.
python-docx has no numbering API, so abstract numbering definitions and
per-instance ``w:num`` entries are written into the numbering part as
raw OXML. The TOC is a ``w:fldSimple`` field that Word fills in when the
document is opened (``updateFields`` is switched on).

RULES:
- Each (numbering reference, instance id) pair gets its own w:num with a
  startOverride of 1, so separate runs restart their numbering
- Images are embedded at their IR pixel size (96 dpi, 9525 EMU per px)
- page_break_before maps to the paragraph property, not a break run
- First page (title page) has an empty footer; other pages show PAGE
- The Document is validated before rendering
- Characters XML 1.0 forbids are replaced with U+FFFD
- Paragraph styles are created under their display names
"""

from __future__ import annotations

import io
import logging
import re
from typing import Dict, Tuple

from docx import Document as create_document
from docx.enum.style import WD_STYLE_TYPE
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.image.exceptions import UnrecognizedImageError
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Emu, Mm, Pt

from docx_export.config import MISSING_IMAGE_TEMPLATE
from docx_export.core.ir import BlockKind, Document
from docx_export.renderers.base import BaseRenderer, RendererOutput
from docx_export.renderers.styles import (
    BODY_FONT,
    BODY_FONT_SIZE_PT,
    BODY_LINE_SPACING,
    NUMBERING_LEVELS,
    PAGE_SETUP,
    PARAGRAPH_STYLES,
    TOC_INSTRUCTION,
    TOC_UPDATE_HINT,
    NumberingLevel,
    ParagraphStyle,
)

logger = logging.getLogger(__name__)

DOCX_MEDIA_TYPE = (
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
)
EMU_PER_PIXEL = 9525

# Control characters XML 1.0 forbids, plus the two noncharacters U+FFFE and U+FFFF.
_XML_ILLEGAL_RE = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\ufffe\uffff]")

_ALIGNMENTS = {
    "center": WD_ALIGN_PARAGRAPH.CENTER,
    "justify": WD_ALIGN_PARAGRAPH.JUSTIFY,
    "left": WD_ALIGN_PARAGRAPH.LEFT,
}

# Elements that follow w:outlineLvl / w:pgNumType in their parents' schema order.
_OUTLINE_SUCCESSORS = ("w:divId", "w:cnfStyle", "w:rPr", "w:sectPr", "w:pPrChange")
_PGNUM_SUCCESSORS = (
    "w:cols", "w:formProt", "w:vAlign", "w:noEndnote", "w:titlePg",
    "w:textDirection", "w:bidi", "w:rtlGutter", "w:docGrid",
    "w:printerSettings", "w:sectPrChange",
)


def xml_safe(text: str) -> str:
    """Replace characters lxml refuses with U+FFFD."""
    return _XML_ILLEGAL_RE.sub("\ufffd", text)


def _mm_to_twips(mm: float) -> int:
    return int(round(mm * 1440 / 25.4))


def _set_val(element, tag: str, value) -> OxmlElement:
    child = OxmlElement(tag)
    child.set(qn("w:val"), str(value))
    element.append(child)
    return child


# ---------------------------------------------------------------------------
# Document setup
# ---------------------------------------------------------------------------


def configure_normal_style(doc) -> None:
    normal = doc.styles["Normal"]
    normal.font.name = BODY_FONT
    normal.font.size = Pt(BODY_FONT_SIZE_PT)
    normal.paragraph_format.alignment = WD_ALIGN_PARAGRAPH.JUSTIFY
    normal.paragraph_format.line_spacing = BODY_LINE_SPACING
    normal.paragraph_format.space_before = Pt(0)
    normal.paragraph_format.space_after = Pt(0)


def add_paragraph_style(doc, name: str, spec: ParagraphStyle) -> None:
    """Create one named paragraph style based on Normal."""
    style = doc.styles.add_style(name, WD_STYLE_TYPE.PARAGRAPH)
    style.base_style = doc.styles["Normal"]
    style.quick_style = True

    if spec.font is not None:
        style.font.name = spec.font
    if spec.font_size_pt is not None:
        style.font.size = Pt(spec.font_size_pt)
    style.font.bold = spec.bold

    fmt = style.paragraph_format
    if spec.alignment is not None:
        fmt.alignment = _ALIGNMENTS[spec.alignment]
    if spec.first_line_indent_mm is not None:
        fmt.first_line_indent = Mm(spec.first_line_indent_mm)
    if spec.line_spacing is not None:
        fmt.line_spacing = spec.line_spacing
    if spec.space_before_pt is not None:
        fmt.space_before = Pt(spec.space_before_pt)
    if spec.space_after_pt is not None:
        fmt.space_after = Pt(spec.space_after_pt)
    if spec.keep_with_next:
        fmt.keep_with_next = True

    if spec.outline_level is not None:
        p_pr = style.element.get_or_add_pPr()
        outline = OxmlElement("w:outlineLvl")
        outline.set(qn("w:val"), str(spec.outline_level))
        p_pr.insert_element_before(outline, *_OUTLINE_SUCCESSORS)


def add_page_field(paragraph) -> None:
    field = OxmlElement("w:fldSimple")
    field.set(qn("w:instr"), "PAGE")
    run = OxmlElement("w:r")
    text = OxmlElement("w:t")
    text.text = "1"
    run.append(text)
    field.append(run)
    paragraph._p.append(field)


def configure_section(doc) -> None:
    """Apply A4 geometry, margins, title page, and page numbering."""
    section = doc.sections[0]
    section.page_width = Mm(PAGE_SETUP.width_mm)
    section.page_height = Mm(PAGE_SETUP.height_mm)
    section.top_margin = Mm(PAGE_SETUP.margin_top_mm)
    section.right_margin = Mm(PAGE_SETUP.margin_right_mm)
    section.bottom_margin = Mm(PAGE_SETUP.margin_bottom_mm)
    section.left_margin = Mm(PAGE_SETUP.margin_left_mm)
    section.different_first_page_header_footer = PAGE_SETUP.title_page

    footer_paragraph = section.footer.paragraphs[0]
    footer_paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
    footer_paragraph.paragraph_format.first_line_indent = Mm(0)
    add_page_field(footer_paragraph)
    if PAGE_SETUP.title_page:
        section.first_page_footer.paragraphs[0].text = ""

    sect_pr = section._sectPr
    for existing in sect_pr.findall(qn("w:pgNumType")):
        sect_pr.remove(existing)
    pg_num = OxmlElement("w:pgNumType")
    pg_num.set(qn("w:fmt"), "decimal")
    pg_num.set(qn("w:start"), str(PAGE_SETUP.page_number_start))
    sect_pr.insert_element_before(pg_num, *_PGNUM_SUCCESSORS)


def enable_update_fields(doc) -> None:
    """Ask Word to refresh fields (TOC, PAGE) when the file is opened."""
    settings = doc.settings.element
    for existing in settings.findall(qn("w:updateFields")):
        settings.remove(existing)
    update = OxmlElement("w:updateFields")
    update.set(qn("w:val"), "true")
    settings.append(update)


# ---------------------------------------------------------------------------
# Numbering
# ---------------------------------------------------------------------------


def _build_level(spec: NumberingLevel) -> OxmlElement:
    lvl = OxmlElement("w:lvl")
    lvl.set(qn("w:ilvl"), str(spec.level))
    _set_val(lvl, "w:start", 1)
    _set_val(lvl, "w:numFmt", spec.fmt)
    _set_val(lvl, "w:lvlText", spec.text)
    _set_val(lvl, "w:lvlJc", "left")

    p_pr = OxmlElement("w:pPr")
    ind = OxmlElement("w:ind")
    ind.set(qn("w:left"), str(_mm_to_twips(spec.indent_left_mm)))
    ind.set(qn("w:firstLine"), "0")
    p_pr.append(ind)
    lvl.append(p_pr)

    if spec.font is not None:
        r_pr = OxmlElement("w:rPr")
        fonts = OxmlElement("w:rFonts")
        fonts.set(qn("w:ascii"), spec.font)
        fonts.set(qn("w:hAnsi"), spec.font)
        fonts.set(qn("w:hint"), "default")
        r_pr.append(fonts)
        lvl.append(r_pr)
    return lvl


class NumberingRegistry:
    """Writes numbering definitions and hands out numIds per list instance.

    WHY: Word restarts a list only when its paragraphs use a different
    ``w:num``. Each IR (reference, instance_id) pair therefore maps to
    its own num, all sharing the reference's abstract definition.
    """

    def __init__(self, doc) -> None:
        self._numbering = doc.part.numbering_part._element
        self._abstract_ids: Dict[str, int] = {}
        self._num_ids: Dict[Tuple[str, int], int] = {}

    def _next_id(self, tag: str, attr: str) -> int:
        ids = [
            int(child.get(qn(attr)))
            for child in self._numbering
            if child.tag == qn(tag) and child.get(qn(attr)) is not None
        ]
        return max(ids, default=0) + 1

    def register_schemes(self, schemes: Dict[str, str]) -> None:
        for reference in schemes:
            levels = NUMBERING_LEVELS[reference]
            abstract_id = self._next_id("w:abstractNum", "w:abstractNumId")
            abstract = OxmlElement("w:abstractNum")
            abstract.set(qn("w:abstractNumId"), str(abstract_id))
            _set_val(abstract, "w:multiLevelType", "hybridMultilevel" if len(levels) > 1 else "singleLevel")
            for level in levels:
                abstract.append(_build_level(level))

            # abstractNum elements must precede every w:num
            first_num = self._numbering.find(qn("w:num"))
            if first_num is not None:
                first_num.addprevious(abstract)
            else:
                self._numbering.append(abstract)
            self._abstract_ids[reference] = abstract_id

    def num_id(self, reference: str, instance_id: int) -> int:
        key = (reference, instance_id)
        if key in self._num_ids:
            return self._num_ids[key]

        num_id = self._next_id("w:num", "w:numId")
        num = OxmlElement("w:num")
        num.set(qn("w:numId"), str(num_id))
        _set_val(num, "w:abstractNumId", self._abstract_ids[reference])
        override = OxmlElement("w:lvlOverride")
        override.set(qn("w:ilvl"), "0")
        _set_val(override, "w:startOverride", 1)
        num.append(override)
        self._numbering.append(num)

        self._num_ids[key] = num_id
        return num_id


def apply_numbering(paragraph, num_id: int, level: int = 0) -> None:
    num_pr = paragraph._p.get_or_add_pPr().get_or_add_numPr()
    num_pr.get_or_add_ilvl().val = level
    num_pr.get_or_add_numId().val = num_id


# ---------------------------------------------------------------------------
# Renderer
# ---------------------------------------------------------------------------


class DocxRenderer(BaseRenderer):
    """Renders the Document IR into a .docx file."""

    @property
    def name(self) -> str:
        return "Word document"

    def render(self, document: Document) -> list[RendererOutput]:
        document.validate()

        doc = create_document()
        configure_normal_style(doc)
        for style_id, name in document.styles.items():
            add_paragraph_style(doc, name, PARAGRAPH_STYLES[style_id])
        configure_section(doc)
        enable_update_fields(doc)

        numbering = NumberingRegistry(doc)
        numbering.register_schemes(document.numbering_schemes)

        for block in document.blocks:
            paragraph = self._render_block(doc, block, document.styles[block.style], numbering)
            if block.page_break_before:
                paragraph.paragraph_format.page_break_before = True

        buffer = io.BytesIO()
        doc.save(buffer)
        logger.debug("Rendered %d blocks into %d bytes", len(document.blocks), buffer.tell())
        return [RendererOutput(suffix=".docx", content=buffer.getvalue(), media_type=DOCX_MEDIA_TYPE)]

    def _render_block(self, doc, block, style: str, numbering: NumberingRegistry):
        kind = block.kind
        if kind is BlockKind.TOC_PLACEHOLDER:
            doc.add_paragraph(style=style).add_run(xml_safe(block.title)).bold = True
            paragraph = doc.add_paragraph()
            field = OxmlElement("w:fldSimple")
            field.set(qn("w:instr"), TOC_INSTRUCTION)
            run = OxmlElement("w:r")
            text = OxmlElement("w:t")
            text.text = TOC_UPDATE_HINT
            run.append(text)
            field.append(run)
            paragraph._p.append(field)
            return paragraph

        if kind is BlockKind.IMAGE:
            paragraph = doc.add_paragraph(style=style)
            try:
                paragraph.add_run().add_picture(
                    io.BytesIO(block.data),
                    width=Emu(block.width * EMU_PER_PIXEL),
                    height=Emu(block.height * EMU_PER_PIXEL),
                )
            except UnrecognizedImageError:
                logger.warning("Image %s has a format Word cannot embed", block.source)
                paragraph.text = xml_safe(MISSING_IMAGE_TEMPLATE.format(path=block.source))
            return paragraph

        if kind in (BlockKind.LIST_ITEM, BlockKind.BIBLIOGRAPHY_ENTRY):
            paragraph = doc.add_paragraph(xml_safe(block.text), style=style)
            apply_numbering(paragraph, numbering.num_id(block.numbering_reference, block.instance_id))
            return paragraph

        # HEADING, PARAGRAPH, CODE_LINE
        return doc.add_paragraph(xml_safe(block.text), style=style)
