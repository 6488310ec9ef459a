"""Core conversion engine and intermediate representation modules.

WHY: The core package contains the stable heart of the exporter — the
IR dataclasses and the single forward pass that turns markup lines into
ordered blocks. These are consumed by all renderers and must remain
backward-compatible.

HOW: ir.py defines the data structures. classifier.py, numbering.py,
citations.py, images.py, lists.py and code_block.py each own one piece
of the running state. assembler.py drives the pass, bibliography.py
builds the closing reference list.

RULES:
- IR dataclasses are the contract — change with care
- Conversion logic is format-agnostic — no renderer-specific logic here
- All I/O goes through the resource loader passed to the assembler
"""
