"""Unit tests for the line classifier.

WHY: Every transform the assembler applies starts with one token kind.
A line classified wrongly becomes a wrong heading number, a broken list
run, or a code line that gets rewritten.

HOW: Table-style tests per token kind, plus the fence short-circuit,
partial-syntax fallthrough, and payload extraction via line_content().

RULES:
- Classification never raises, whatever the input.
"""

import pytest

from docx_export.core.classifier import (
    TokenKind,
    classify_line,
    is_excluded_heading,
    line_content,
    normalize_heading,
)


class TestFence:
    """Fence markers toggle, and everything inside a fence is code."""

    def test_fence_marker(self):
        assert classify_line("```") is TokenKind.FENCE_TOGGLE

    def test_fence_marker_trailing_space(self):
        assert classify_line("```   ") is TokenKind.FENCE_TOGGLE

    def test_fence_marker_closes_inside_fence(self):
        assert classify_line("```", in_fence=True) is TokenKind.FENCE_TOGGLE

    @pytest.mark.parametrize("line", [
        "# Heading", "## Section", "- item", "1. item", "---", "", "![[a.png]]",
        "[link](http://x)",
    ])
    def test_everything_inside_fence_is_code(self, line):
        assert classify_line(line, in_fence=True) is TokenKind.CODE_LINE

    def test_fence_with_language_is_not_a_toggle(self):
        assert classify_line("```python") is TokenKind.PLAIN_TEXT


class TestStructuralLines:

    @pytest.mark.parametrize("line", ["", "   ", "\t"])
    def test_blank(self, line):
        assert classify_line(line) is TokenKind.BLANK

    @pytest.mark.parametrize("line", ["---", "  ---  "])
    def test_page_break(self, line):
        assert classify_line(line) is TokenKind.PAGE_BREAK

    def test_page_break_is_not_a_bullet(self):
        assert classify_line("---") is not TokenKind.BULLET_ITEM

    @pytest.mark.parametrize("line", ["1. first", "12.  twelfth", "  3. indented"])
    def test_ordered_item(self, line):
        assert classify_line(line) is TokenKind.ORDERED_ITEM

    @pytest.mark.parametrize("line", ["- first", "-   spaced", "  - indented"])
    def test_bullet_item(self, line):
        assert classify_line(line) is TokenKind.BULLET_ITEM

    def test_image_embed(self):
        assert classify_line("![[diagram.png]]") is TokenKind.IMAGE_EMBED

    def test_image_embed_with_alias(self):
        assert classify_line("![[diagram.png|300]]") is TokenKind.IMAGE_EMBED

    def test_plain_text(self):
        assert classify_line("Just a sentence.") is TokenKind.PLAIN_TEXT


class TestHeadings:

    def test_chapter(self):
        assert classify_line("# Methods") is TokenKind.CHAPTER_HEADING

    def test_section(self):
        assert classify_line("## Sampling") is TokenKind.SECTION_HEADING

    @pytest.mark.parametrize("line", [
        "# Introduction",
        "# CONCLUSION",
        "#  References ",
        "# Table of Contents",
        "## Conclusion.",
        "# Введение",
        "# Список литературы",
    ])
    def test_excluded(self, line):
        assert classify_line(line) is TokenKind.EXCLUDED_HEADING

    def test_intro_is_not_excluded(self):
        assert classify_line("# Intro") is TokenKind.CHAPTER_HEADING


class TestPartialSyntax:
    """Lines that almost match a rule fall through to plain text."""

    @pytest.mark.parametrize("line", [
        "#Heading",
        "### Deep heading",
        "# ",
        "1.item",
        "-item",
        "- ",
        "see ![[a.png]] inline",
        "![[]]",
        "--",
    ])
    def test_falls_through(self, line):
        assert classify_line(line) is TokenKind.PLAIN_TEXT


class TestLineContent:

    def test_heading_text(self):
        assert line_content("# Methods  ", TokenKind.CHAPTER_HEADING) == "Methods"

    def test_section_text(self):
        assert line_content("## Sampling", TokenKind.SECTION_HEADING) == "Sampling"

    def test_ordered_marker_removed(self):
        assert line_content("3. third item", TokenKind.ORDERED_ITEM) == "third item"

    def test_bullet_marker_removed(self):
        assert line_content("  - nested look", TokenKind.BULLET_ITEM) == "nested look"

    def test_embed_target(self):
        assert line_content("![[img/a.png|200]]", TokenKind.IMAGE_EMBED) == "img/a.png"

    def test_code_line_unchanged(self):
        assert line_content("    indented  ", TokenKind.CODE_LINE) == "    indented  "

    def test_plain_text_trimmed(self):
        assert line_content("  padded  ", TokenKind.PLAIN_TEXT) == "padded"


class TestNormalizeHeading:

    def test_collapses_whitespace_and_case(self):
        assert normalize_heading("  Table   of Contents: ") == "table of contents"

    def test_is_excluded(self):
        assert is_excluded_heading("Bibliography")
        assert not is_excluded_heading("Results")
