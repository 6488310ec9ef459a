"""Markdown to DOCX export — lightweight markup to a paginated Word file.

WHY: Notes written in a small Markdown dialect (chapters, sections, lists,
code fences, embedded images, inline links) need to become a formatted
report: numbered headings, a table of contents, captioned figures and a
bibliography built from the links. No word processor ingests that directly.

HOW: Three-stage pipeline — load (resource loader for images and web
pages), assemble (core conversion engine producing a Document IR), render
(pluggable renderers, DOCX via python-docx). Each stage is independently
testable.

RULES:
- All renderers consume the same Document IR
- Adding a new output format = one new renderer module, no core changes
- The IR is the stable contract between assembly and rendering
"""

__version__ = "0.1.0"
