"""Closing bibliography built from resolved citations.

WHY: Every inline link becomes a numbered reference; the document ends
with the list those numbers point to.

HOW: build_bibliography() takes the citations already resolved by the
CitationCollector (in index order) and emits a chapter-styled heading
followed by one BibliographyEntry per citation.

RULES:
- Entries appear in citation index order, one per citation
- Entries use "base-numbering" with an instance id of their own, so the
  list restarts at 1 regardless of body lists
- The heading starts a new page and carries no number label
- With no citations only the heading is emitted
"""

from __future__ import annotations

from typing import List, Sequence

from docx_export.config import BIBLIOGRAPHY_TITLE, NUMBERING_DECIMAL, STYLE_CHAPTER
from docx_export.core.ir import Block, BibliographyEntry, Citation, Heading


def build_bibliography(
    citations: Sequence[Citation],
    instance_id: int,
    title: str = BIBLIOGRAPHY_TITLE,
) -> List[Block]:
    """Build the bibliography heading and entries.

    Args:
        citations: Resolved citations; order is re-established by index.
        instance_id: Numbering instance reserved for the bibliography.
        title: Heading text.

    Returns:
        The heading block followed by the entry blocks.
    """
    blocks: List[Block] = [
        Heading(
            text=title,
            title=title,
            level=1,
            style=STYLE_CHAPTER,
            page_break_before=True,
        )
    ]
    for citation in sorted(citations, key=lambda c: c.index):
        if citation.resolved_text is None:
            raise ValueError(
                "Citation {} is still pending; resolve before building the "
                "bibliography".format(citation.index)
            )
        blocks.append(BibliographyEntry(
            index=citation.index,
            text=citation.resolved_text,
            source_url=citation.source_url,
            instance_id=instance_id,
            numbering_reference=NUMBERING_DECIMAL,
        ))
    return blocks
