"""Abstract base renderer and output container.

WHY: Every output format consumes the same Document IR but produces
different file content. This base class enforces a consistent interface
so the CLI (and any host integration) can work with any renderer
generically.

HOW: BaseRenderer is an ABC with two requirements — a ``name`` property
and a ``render()`` method. RendererOutput is a plain dataclass that
bundles a file suffix with its content (string or bytes) and MIME type.

RULES:
- Subclasses MUST implement ``name`` (human-readable) and ``render()``
- ``render()`` returns a list — current renderers return one item
- ``suffix`` includes the extension, e.g. ``".docx"``
- The caller is responsible for prepending the source filename stem
- Renderers dispatch on ``block.kind``; they never mutate the Document
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from docx_export.core.ir import Document


@dataclass
class RendererOutput:
    """One output file produced by a renderer.

    Attributes:
        suffix: File suffix appended to the source stem,
                e.g. ``".docx"`` → ``"report.docx"``.
        content: The file content as bytes (DOCX) or a string (preview).
        media_type: MIME type for the content.
    """

    suffix: str
    content: str | bytes
    media_type: str


class BaseRenderer(ABC):
    """Abstract base for all Document renderers.

    To add a new output format:
    1. Create a new file in renderers/
    2. Subclass BaseRenderer
    3. Implement render() and name
    4. Register in RENDERERS dict in renderers/__init__.py
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable format name, e.g. 'Word document'."""

    @abstractmethod
    def render(self, document: Document) -> list[RendererOutput]:
        """Serialize the Document IR into one or more output files.

        Args:
            document: The complete converted document: ordered blocks,
                      numbering scheme table, and style table.

        Returns:
            List of RendererOutput objects, each containing a file suffix,
            content string/bytes, and MIME type.
        """
