"""Configuration constants, markup syntax tokens, and .env loading.

WHY: Centralizes all configurable values so they are easy to find,
update, and override. Syntax tokens, the excluded heading list, and the
bibliography wording are plain data structures — not buried in logic —
so the recognized dialect can be adjusted in one place.

HOW: python-dotenv loads the .env file on import. Constants are defined
as module-level strings, ints, and frozensets. Values that users tune per
machine (image width, fetch timeout, titles) can be overridden through
DOCX_EXPORT_* environment variables.

RULES:
- Syntax tokens are fixed; they define the recognized markup subset
- EXCLUDED_HEADINGS is compared against lowercased, trimmed heading text
- Style and numbering names must match the renderer's tables
- All defaults can be overridden via environment variables
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

# Load .env from the project root (where the script is run from)
load_dotenv()

# ---------------------------------------------------------------------------
# Markup syntax
# ---------------------------------------------------------------------------

FENCE_MARKER = "```"
PAGE_BREAK_MARKER = "---"
CHAPTER_PREFIX = "# "
SECTION_PREFIX = "## "
BULLET_PREFIX = "- "
EMBED_OPEN = "![["
EMBED_CLOSE = "]]"
PICTURE_PLACEHOLDER = "{img}"
"""Replaced with the next picture number wherever it appears outside a fence."""

CAPTION_LABEL = "Figure"

# Headings that start a new page with chapter styling but never get a number.
EXCLUDED_HEADINGS: frozenset[str] = frozenset({
    "introduction",
    "conclusion",
    "references",
    "contents",
    "table of contents",
    "bibliography",
    "list of literature",
    "abstract",
    "appendix",
    "введение",
    "заключение",
    "содержание",
    "список литературы",
})

# ---------------------------------------------------------------------------
# Style and numbering names shared with the renderers
# ---------------------------------------------------------------------------

STYLE_STANDARD = "standard"
STYLE_CHAPTER = "chapter"
STYLE_PARAGRAPH = "paragraph"
STYLE_CENTER = "center"
STYLE_CODE = "code"

NUMBERING_DECIMAL = "base-numbering"
NUMBERING_BULLET = "bullet-points"

# ---------------------------------------------------------------------------
# Degradation placeholders and bibliography wording
# ---------------------------------------------------------------------------

UNRESOLVED_CITATION_TEXT = "Source title unavailable [Electronic resource]."
"""Fixed bibliography text used when a citation title cannot be fetched."""

MISSING_IMAGE_TEMPLATE = "[Image not found: {path}]"

CITATION_TEMPLATE = (
    "{title} [Electronic resource]. Access mode: {url} (accessed: {date})."
)
CITATION_DATE_FORMAT = "%d.%m.%Y"

BIBLIOGRAPHY_TITLE = os.getenv("DOCX_EXPORT_BIBLIOGRAPHY_TITLE", "References")
TOC_TITLE = os.getenv("DOCX_EXPORT_TOC_TITLE", "Contents")

# ---------------------------------------------------------------------------
# Resource loading and layout defaults
# ---------------------------------------------------------------------------

IMAGE_TARGET_WIDTH = int(os.getenv("DOCX_EXPORT_IMAGE_WIDTH", "500"))
"""Display width in pixels every embedded image is scaled to."""

FETCH_TIMEOUT_S = float(os.getenv("DOCX_EXPORT_FETCH_TIMEOUT", "20"))
USER_AGENT = os.getenv(
    "DOCX_EXPORT_USER_AGENT",
    "markdown-docx-export/0.1 (+https://pypi.org/project/markdown-docx-export/)",
)

DEFAULT_OUTPUT_STEM = os.getenv("DOCX_EXPORT_OUTPUT_STEM", "exported-document")
"""Output file stem used when the markup is read from stdin."""
