"""Plain text preview renderer.

WHY: Checking numbering, citation indices, and block order is much
faster in a text file than in Word. This is the simplest output format
and serves as the baseline proof that the pluggable renderer pattern
works.

HOW: Iterates the IR blocks in order and writes one line per block.
List items and bibliography entries are numbered per (reference,
instance) the same way Word would number them, so restarts are visible.

RULES:
- Headings are followed by an underline (= for level 1, - for level 2)
- Ordered items and bibliography entries: "N. text", N restarts per instance
- Bullet items: "• text"
- Code lines are written verbatim with a four-space indent
- Images: "[image source WxH]"
- page_break_before writes a form feed line before the block
- Output suffix: "-preview.txt", media type "text/plain"
"""

from __future__ import annotations

from typing import Dict, List, Tuple

from docx_export.config import NUMBERING_BULLET
from docx_export.core.ir import BlockKind, Document
from docx_export.renderers.base import BaseRenderer, RendererOutput

_UNDERLINES = {1: "=", 2: "-"}


class PlainTextRenderer(BaseRenderer):

    @property
    def name(self) -> str:
        return "Plain text preview"

    def render(self, document: Document) -> list[RendererOutput]:
        lines: List[str] = []
        counters: Dict[Tuple[str, int], int] = {}

        for block in document.blocks:
            if block.page_break_before and lines:
                lines.append("\f")
            kind = block.kind

            if kind is BlockKind.TOC_PLACEHOLDER:
                lines.append("[{}]".format(block.title))
            elif kind is BlockKind.HEADING:
                lines.append(block.text)
                lines.append(_UNDERLINES.get(block.level, "-") * len(block.text))
            elif kind is BlockKind.CODE_LINE:
                lines.append("    " + block.text)
            elif kind is BlockKind.IMAGE:
                lines.append("[image {} {}x{}]".format(block.source, block.width, block.height))
            elif kind in (BlockKind.LIST_ITEM, BlockKind.BIBLIOGRAPHY_ENTRY):
                key = (block.numbering_reference, block.instance_id)
                counters[key] = counters.get(key, 0) + 1
                if block.numbering_reference == NUMBERING_BULLET:
                    lines.append("• {}".format(block.text))
                else:
                    lines.append("{}. {}".format(counters[key], block.text))
            else:
                lines.append(block.text)

        content = "\n".join(lines) + "\n"
        return [RendererOutput(suffix="-preview.txt", content=content, media_type="text/plain")]
