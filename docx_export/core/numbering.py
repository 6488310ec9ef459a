"""Chapter, section, and picture counters for one conversion pass.

WHY: Heading labels ("2.3"), figure captions ("Figure 4") and the
``{img}`` placeholder all depend on running counters. Keeping them in an
explicit object owned by the assembler (instead of module globals) makes
every pass independent and the counter values deterministic.

HOW: NumberingState is a small mutable dataclass. Each ``next_*`` method
increments a counter and returns the new value or label.

RULES:
- paragraph_number resets to 0 whenever chapter_number increments
- Counters never decrement; there is no undo
- Only the synchronous line scan calls these methods
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class NumberingState:
    chapter_number: int = 0
    paragraph_number: int = 0
    picture_number: int = 0

    def next_chapter(self) -> int:
        """Start a new chapter and return its number."""
        self.chapter_number += 1
        self.paragraph_number = 0
        return self.chapter_number

    def next_section(self) -> str:
        """Start a new section and return its ``"{chapter}.{paragraph}"`` label.

        A section before the first chapter is labelled ``"0.N"``.
        """
        self.paragraph_number += 1
        return "{}.{}".format(self.chapter_number, self.paragraph_number)

    def next_picture(self) -> int:
        self.picture_number += 1
        return self.picture_number
