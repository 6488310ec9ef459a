"""Document renderer registry — pluggable output formats.

WHY: The CLI needs a single lookup to find the right renderer by name.
A central dict makes it trivial to add new formats: create the renderer
class, import it here, add one line.

HOW: RENDERERS maps string keys to renderer *classes* (not instances).
Callers instantiate as needed: ``renderer = RENDERERS["docx"]()``.

RULES:
- Keys are snake_case identifiers (used in CLI flags)
- Values are BaseRenderer subclasses (not instances)
- Every renderer listed here must be importable without side effects
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from docx_export.renderers.docx_renderer import DocxRenderer
from docx_export.renderers.plain_text import PlainTextRenderer

if TYPE_CHECKING:
    from docx_export.renderers.base import BaseRenderer

RENDERERS: dict[str, type[BaseRenderer]] = {
    "docx": DocxRenderer,
    "plain_text": PlainTextRenderer,
}

DEFAULT_RENDERERS = ("docx",)
