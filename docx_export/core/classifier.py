"""Line classification for the supported markup subset.

WHY: The assembler decides what to do with every source line — open a
chapter, extend a list, emit verbatim code — based on a single token
kind. Keeping the rules in one pure function makes the recognized syntax
easy to test line by line.

HOW: classify_line() checks the rules in a fixed order and returns the
first match. line_content() extracts the payload (heading text, list
item text, embed target) for the kinds that carry one.

RULES:
- Fence toggle is checked first and short-circuits everything else
- Inside a fence every other line is CODE_LINE, whatever it contains
- "---" alone on a line is a page break, never a bullet item
- "N. text" is ordered, "- text" is bulleted
- "# text" is a chapter, "## text" a section; headings whose normalized
  text is in EXCLUDED_HEADINGS become EXCLUDED_HEADING
- "![[target]]" alone on a line is an image embed
- Partial matches ("#Title", "1.item", "-item", "### deep") fall through
  to PLAIN_TEXT and never raise
"""

from __future__ import annotations

import re
from enum import Enum

from docx_export.config import (
    CHAPTER_PREFIX,
    EMBED_CLOSE,
    EMBED_OPEN,
    EXCLUDED_HEADINGS,
    FENCE_MARKER,
    PAGE_BREAK_MARKER,
    SECTION_PREFIX,
)

_ORDERED_RE = re.compile(r"^(\d+)\.\s+(\S.*)$")
_BULLET_RE = re.compile(r"^-\s+(\S.*)$")

# Trailing punctuation ignored when matching excluded headings ("Conclusion.")
_HEADING_TRAILING = ".:;!?"


class TokenKind(str, Enum):
    FENCE_TOGGLE = "fence_toggle"
    CODE_LINE = "code_line"
    BLANK = "blank"
    PAGE_BREAK = "page_break"
    ORDERED_ITEM = "ordered_item"
    BULLET_ITEM = "bullet_item"
    CHAPTER_HEADING = "chapter_heading"
    SECTION_HEADING = "section_heading"
    EXCLUDED_HEADING = "excluded_heading"
    IMAGE_EMBED = "image_embed"
    PLAIN_TEXT = "plain_text"


def normalize_heading(text: str) -> str:
    """Lowercase, trim, and collapse whitespace for exclusion matching."""
    return " ".join(text.strip().rstrip(_HEADING_TRAILING).split()).lower()


def is_excluded_heading(text: str) -> bool:
    return normalize_heading(text) in EXCLUDED_HEADINGS


def _heading_text(line: str, prefix: str) -> str | None:
    if not line.startswith(prefix):
        return None
    text = line[len(prefix):].strip()
    return text or None


def _embed_target(line: str) -> str | None:
    stripped = line.strip()
    if not (stripped.startswith(EMBED_OPEN) and stripped.endswith(EMBED_CLOSE)):
        return None
    inner = stripped[len(EMBED_OPEN):-len(EMBED_CLOSE)]
    # Obsidian-style alias/size suffix: ![[diagram.png|300]]
    target = inner.split("|", 1)[0].strip()
    return target or None


def classify_line(line: str, in_fence: bool = False) -> TokenKind:
    """Map one raw source line to its token kind.

    Args:
        line: The source line without its trailing newline.
        in_fence: True while a code fence is open.

    Returns:
        Exactly one TokenKind.
    """
    if line.rstrip() == FENCE_MARKER:
        return TokenKind.FENCE_TOGGLE
    if in_fence:
        return TokenKind.CODE_LINE

    stripped = line.strip()
    if not stripped:
        return TokenKind.BLANK
    if stripped == PAGE_BREAK_MARKER:
        return TokenKind.PAGE_BREAK
    if _ORDERED_RE.match(stripped):
        return TokenKind.ORDERED_ITEM
    if _BULLET_RE.match(stripped):
        return TokenKind.BULLET_ITEM

    chapter = _heading_text(line, CHAPTER_PREFIX)
    if chapter is not None:
        if is_excluded_heading(chapter):
            return TokenKind.EXCLUDED_HEADING
        return TokenKind.CHAPTER_HEADING

    section = _heading_text(line, SECTION_PREFIX)
    if section is not None:
        if is_excluded_heading(section):
            return TokenKind.EXCLUDED_HEADING
        return TokenKind.SECTION_HEADING

    if _embed_target(line) is not None:
        return TokenKind.IMAGE_EMBED
    return TokenKind.PLAIN_TEXT


def line_content(line: str, kind: TokenKind) -> str:
    """Extract the payload a token kind carries.

    RULES:
    - Headings: text after the marker, trimmed
    - List items: text after the "N. " / "- " marker
    - Image embeds: the target path (alias suffix dropped)
    - CODE_LINE: the line unchanged
    - Everything else: the line trimmed
    """
    if kind is TokenKind.CODE_LINE:
        return line
    if kind in (TokenKind.CHAPTER_HEADING, TokenKind.SECTION_HEADING, TokenKind.EXCLUDED_HEADING):
        text = _heading_text(line, CHAPTER_PREFIX)
        if text is None:
            text = _heading_text(line, SECTION_PREFIX)
        return text or ""
    if kind is TokenKind.ORDERED_ITEM:
        match = _ORDERED_RE.match(line.strip())
        return match.group(2) if match else line.strip()
    if kind is TokenKind.BULLET_ITEM:
        match = _BULLET_RE.match(line.strip())
        return match.group(1) if match else line.strip()
    if kind is TokenKind.IMAGE_EMBED:
        return _embed_target(line) or ""
    return line.strip()
