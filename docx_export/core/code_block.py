"""Verbatim code fence handling.

WHY: Code listings must reach the document exactly as written: leading
spaces, blank lines, and lines that look like headings or list items
included.

HOW: CodeBlockExtractor tracks whether a fence is open. The assembler
toggles it on every fence marker and routes every line seen while it is
open to emit(), bypassing all other transforms.

RULES:
- Fence markers produce no block
- Lines inside a fence are not trimmed or rewritten in any way
- An unterminated fence is closed implicitly at end of input
"""

from __future__ import annotations

import logging

from docx_export.core.ir import CodeLine

logger = logging.getLogger(__name__)


class CodeBlockExtractor:

    def __init__(self) -> None:
        self.is_open = False

    def toggle(self) -> bool:
        """Flip the fence state and return True if a fence is now open."""
        self.is_open = not self.is_open
        return self.is_open

    def emit(self, line: str) -> CodeLine:
        return CodeLine(text=line)

    def finish(self) -> None:
        """Close a fence left open at end of input."""
        if self.is_open:
            logger.info("Unterminated code fence closed at end of document")
            self.is_open = False
