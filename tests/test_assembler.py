"""Tests for the single-pass document assembler.

WHY: The assembler is where every piece of running state meets:
counters, the open fence, the open list run, citation indices, pending
page breaks, and out-of-order image/citation tasks. A mistake here shows
up as wrong numbering or blocks in the wrong order in every export.

HOW: Tests convert small markup snippets with the in-memory FakeLoader
and a fixed date, then inspect the resulting block sequence:
  - the end-to-end example (chapter, citation, break, section, bullets)
  - chapter/section labels and excluded headings
  - citation order and bibliography framing
  - verbatim code fences
  - list runs and numbering instances
  - image loading, captions, and failure degradation
  - page break placement
  - empty input and idempotence
  - state machine transitions observed line by line

RULES:
- Every conversion uses FIXED_DATE so citation text is reproducible.
- Block 0 is always the TocPlaceholder; tests slice it off via _body().
"""

import asyncio

from docx_export.config import (
    BIBLIOGRAPHY_TITLE,
    NUMBERING_BULLET,
    NUMBERING_DECIMAL,
    STYLE_CENTER,
    STYLE_CHAPTER,
    STYLE_CODE,
    STYLE_PARAGRAPH,
    STYLE_STANDARD,
    UNRESOLVED_CITATION_TEXT,
)
from docx_export.core.assembler import (
    AssemblerState,
    DocumentAssembler,
    convert_markdown,
    split_lines,
)
from docx_export.core.ir import BlockKind, ListKind

from conftest import FIXED_DATE, FakeLoader, html_page, make_png


def _convert(text, loader=None, **options):
    return asyncio.run(convert_markdown(text, loader or FakeLoader(), today=FIXED_DATE, **options))


def _body(document):
    """Blocks between the TOC placeholder and the bibliography heading."""
    blocks = list(document.blocks[1:])
    last_heading = max(i for i, b in enumerate(blocks) if b.kind is BlockKind.HEADING)
    return blocks[:last_heading]


class TestEndToEnd:

    def test_example_document(self, example_markup, example_loader):
        doc = _convert(example_markup, example_loader)
        kinds = [b.kind for b in doc.blocks]
        assert kinds == [
            BlockKind.TOC_PLACEHOLDER,
            BlockKind.HEADING,
            BlockKind.PARAGRAPH,
            BlockKind.HEADING,
            BlockKind.LIST_ITEM,
            BlockKind.LIST_ITEM,
            BlockKind.HEADING,
            BlockKind.BIBLIOGRAPHY_ENTRY,
        ]
        _, chapter, para, section, item1, item2, bib_heading, entry = doc.blocks

        assert chapter.text == "1. Intro"
        assert chapter.style == STYLE_CHAPTER
        assert chapter.page_break_before

        assert para.text == "Some text Site [1] more."
        assert para.style == STYLE_STANDARD
        assert para.citation_index == 1

        assert section.text == "1.1. Detail"
        assert section.label == "1.1"
        assert section.style == STYLE_PARAGRAPH
        assert section.page_break_before

        assert [item1.text, item2.text] == ["item one", "item two"]
        assert item1.numbering_reference == NUMBERING_BULLET
        assert item1.instance_id == item2.instance_id

        assert bib_heading.text == BIBLIOGRAPHY_TITLE
        assert bib_heading.page_break_before
        assert entry.source_url == "http://x"
        assert entry.index == 1
        assert entry.text == (
            "Example Site [Electronic resource]. Access mode: http://x "
            "(accessed: 01.03.2024)."
        )
        assert entry.numbering_reference == NUMBERING_DECIMAL
        assert entry.instance_id > item1.instance_id

    def test_citations_attached_to_document(self, example_markup, example_loader):
        doc = _convert(example_markup, example_loader)
        (citation,) = doc.citations
        assert citation.index == 1
        assert citation.label == "Site"
        assert citation.resolved_text.startswith("Example Site")


    def test_url_with_parentheses_is_cited(self):
        url = "https://en.wikipedia.org/wiki/Foo_(bar)"
        loader = FakeLoader(pages={url: html_page("Foo")})
        doc = _convert("See [W]({}) ok\n".format(url), loader)
        (citation,) = doc.citations
        assert citation.index == 1
        assert citation.source_url == url
        assert citation.resolved_text.startswith("Foo")
        assert _body(doc)[0].text == "See W [1] ok"


class TestHeadings:

    def test_section_labels(self):
        doc = _convert("# A\n## a1\n## a2\n# B\n## b1\n## b2\n")
        labels = [b.label for b in _body(doc) if b.kind is BlockKind.HEADING and b.level == 2]
        assert labels == ["1.1", "1.2", "2.1", "2.2"]

    def test_excluded_heading_is_not_numbered(self):
        doc = _convert("# Introduction\ntext\n# Methods\n## Sampling\n")
        intro, _, methods, sampling = _body(doc)
        assert intro.text == "Introduction"
        assert intro.label is None
        assert intro.page_break_before
        assert intro.style == STYLE_CHAPTER
        assert methods.text == "1. Methods"
        assert sampling.text == "1.1. Sampling"

    def test_excluded_section_does_not_advance_counter(self):
        doc = _convert("# Methods\n## Conclusion\n## Real\n")
        _, excluded, real = _body(doc)
        assert excluded.text == "Conclusion"
        assert excluded.style == STYLE_CHAPTER
        assert real.text == "1.1. Real"

    def test_deep_heading_is_plain_text(self):
        doc = _convert("### Not supported\n")
        (para,) = _body(doc)
        assert para.kind is BlockKind.PARAGRAPH
        assert para.text == "### Not supported"


class TestCitations:

    def test_first_appearance_order_across_lines(self):
        loader = FakeLoader(
            pages={"u1": html_page("One"), "u2": html_page("Two")},
            delays={"u1": 0.05},
        )
        doc = _convert("[A](u1) first\n[B](u2) second\n[A2](u1) third\n", loader)
        body = _body(doc)
        assert [b.citation_index for b in body] == [1, 2, 3]
        entries = [b for b in doc.blocks if b.kind is BlockKind.BIBLIOGRAPHY_ENTRY]
        assert [e.source_url for e in entries] == ["u1", "u2", "u1"]
        assert entries[0].text.startswith("One ")
        assert entries[1].text.startswith("Two ")

    def test_dead_link_degrades_to_placeholder(self):
        doc = _convert("See [gone](http://dead.example) here.\n")
        (entry,) = [b for b in doc.blocks if b.kind is BlockKind.BIBLIOGRAPHY_ENTRY]
        assert entry.text == UNRESOLVED_CITATION_TEXT

    def test_citation_inside_list_item(self):
        loader = FakeLoader(pages={"u": html_page("T")})
        doc = _convert("- see [src](u)\n", loader)
        (item,) = _body(doc)
        assert item.text == "see src [1]"
        assert item.citation_index == 1

    def test_custom_bibliography_title(self):
        doc = _convert("text\n", bibliography_title="Sources")
        assert doc.blocks[-1].text == "Sources"


class TestCodeFence:

    def test_content_is_verbatim(self):
        loader = FakeLoader()
        markup = "```\n# not a heading\n- not an item\n  [x](http://y)  \n\n![[a.png]]\n```\n"
        doc = _convert(markup, loader)
        code = [b for b in doc.blocks if b.kind is BlockKind.CODE_LINE]
        assert [b.text for b in code] == [
            "# not a heading",
            "- not an item",
            "  [x](http://y)  ",
            "",
            "![[a.png]]",
        ]
        assert all(b.style == STYLE_CODE for b in code)
        assert doc.citations == ()
        assert loader.fetched_urls == []
        assert loader.read_paths == []

    def test_unterminated_fence_closes_at_end(self):
        doc = _convert("```\ncode line\n")
        (line,) = [b for b in doc.blocks if b.kind is BlockKind.CODE_LINE]
        assert line.text == "code line"

    def test_fence_closes_open_list(self):
        doc = _convert("- a\n```\nx\n```\n- b\n")
        a, code, b = _body(doc)
        assert code.kind is BlockKind.CODE_LINE
        assert a.instance_id != b.instance_id


class TestLists:

    def test_reopened_list_gets_new_instance(self):
        doc = _convert("1. a\n2. b\nbetween\n1. c\n")
        a, b, between, c = _body(doc)
        assert a.instance_id == b.instance_id
        assert c.instance_id != a.instance_id
        assert between.kind is BlockKind.PARAGRAPH

    def test_kind_change_starts_new_run(self):
        doc = _convert("1. ordered\n- bullet\n")
        ordered, bullet = _body(doc)
        assert ordered.numbering_reference == NUMBERING_DECIMAL
        assert bullet.numbering_reference == NUMBERING_BULLET
        assert ordered.instance_id != bullet.instance_id

    def test_blank_line_ends_run(self):
        doc = _convert("- a\n\n- b\n")
        a, b = _body(doc)
        assert a.instance_id != b.instance_id

    def test_items_keep_source_order(self):
        doc = _convert("intro\n- a\n- b\noutro\n")
        assert [b.text for b in _body(doc)] == ["intro", "a", "b", "outro"]


class TestImages:

    def test_image_and_caption(self, png_1000x500):
        loader = FakeLoader(images={"pic.png": png_1000x500})
        doc = _convert("![[pic.png]]\nFigure: Overview\n", loader)
        image, caption = _body(doc)
        assert image.kind is BlockKind.IMAGE
        assert (image.width, image.height) == (500, 250)
        assert caption.text == "Figure 1 – Overview"
        assert caption.style == STYLE_CENTER

    def test_caption_only_right_after_image(self):
        doc = _convert("Figure: lonely\n")
        (para,) = _body(doc)
        assert para.text == "Figure: lonely"
        assert para.style == STYLE_STANDARD

    def test_missing_image_does_not_stop_conversion(self):
        doc = _convert("![[gone.png]]\nAfter the image.\n# Next\n")
        warning, after, heading = _body(doc)
        assert warning.kind is BlockKind.PARAGRAPH
        assert warning.text == "[Image not found: gone.png]"
        assert warning.style == STYLE_CENTER
        assert after.text == "After the image."
        assert heading.text == "1. Next"

    def test_slow_image_keeps_line_order(self):
        loader = FakeLoader(
            images={"slow.png": make_png(100, 100), "fast.png": make_png(200, 100)},
            delays={"slow.png": 0.05},
        )
        doc = _convert("![[slow.png]]\n![[fast.png]]\n", loader)
        assert [b.source for b in _body(doc)] == ["slow.png", "fast.png"]

    def test_picture_placeholder_numbers(self, png_1000x500):
        loader = FakeLoader(images={"pic.png": png_1000x500})
        doc = _convert("![[pic.png]]\nFigure: First\nAs shown in figure {img}.\n", loader)
        _, _, text = _body(doc)
        assert text.text == "As shown in figure 2."

    def test_image_width_option(self, png_1000x500):
        loader = FakeLoader(images={"pic.png": png_1000x500})
        doc = _convert("![[pic.png]]\n", loader, image_width=250)
        (image,) = _body(doc)
        assert (image.width, image.height) == (250, 125)


class TestPageBreaks:

    def test_break_applies_to_next_block(self):
        doc = _convert("first\n---\nsecond\nthird\n")
        first, second, third = _body(doc)
        assert not first.page_break_before
        assert second.page_break_before
        assert not third.page_break_before

    def test_break_skips_blank_lines(self):
        doc = _convert("first\n---\n\n\nsecond\n")
        _, second = _body(doc)
        assert second.page_break_before

    def test_break_before_list_marks_first_item(self):
        doc = _convert("text\n---\n- a\n- b\n")
        _, a, b = _body(doc)
        assert a.page_break_before
        assert not b.page_break_before

    def test_break_before_code_line(self):
        doc = _convert("---\n```\ncode\n```\n")
        (code,) = _body(doc)
        assert code.page_break_before


class TestEmptyAndIdempotent:

    def test_empty_input(self):
        doc = _convert("")
        assert [b.kind for b in doc.blocks] == [BlockKind.TOC_PLACEHOLDER, BlockKind.HEADING]
        assert doc.blocks[1].text == BIBLIOGRAPHY_TITLE
        assert doc.citations == ()

    def test_whitespace_only_input(self):
        doc = _convert("\n   \n\n")
        assert len(doc.blocks) == 2

    def test_same_input_same_document(self, example_markup, png_1000x500):
        markup = example_markup + "![[pic.png]]\nFigure: x\n1. a\n```\ncode\n```\n"
        loader = FakeLoader(
            images={"pic.png": png_1000x500},
            pages={"http://x": html_page("Example Site")},
        )
        assert _convert(markup, loader) == _convert(markup, loader)

    def test_assembler_reusable(self, example_markup, example_loader):
        assembler = DocumentAssembler(example_loader, today=FIXED_DATE)
        first = asyncio.run(assembler.convert(example_markup))
        second = asyncio.run(assembler.convert(example_markup))
        assert first == second
        assert assembler.numbering.chapter_number == 1


class TestStateMachine:

    def test_transitions(self):
        assembler = DocumentAssembler(FakeLoader(), today=FIXED_DATE)
        assert assembler.state is AssemblerState.BODY

        assembler.feed("1. one")
        assert assembler.state is AssemblerState.LIST_RUN
        assert assembler.list_kind is ListKind.ORDERED

        assembler.feed("- two")
        assert assembler.state is AssemblerState.LIST_RUN
        assert assembler.list_kind is ListKind.BULLETED

        assembler.feed("```")
        assert assembler.state is AssemblerState.CODE_FENCE
        assembler.feed("- inside")
        assert assembler.state is AssemblerState.CODE_FENCE

        assembler.feed("```")
        assert assembler.state is AssemblerState.BODY

    def test_plain_line_returns_to_body(self):
        assembler = DocumentAssembler(FakeLoader(), today=FIXED_DATE)
        assembler.feed("- item")
        assembler.feed("text")
        assert assembler.state is AssemblerState.BODY
        assert assembler.list_kind is None


class TestSplitLines:

    def test_trailing_newline_dropped(self):
        assert split_lines("a\nb\n") == ["a", "b"]

    def test_crlf(self):
        assert split_lines("a\r\nb\r\n") == ["a", "b"]

    def test_empty(self):
        assert split_lines("") == []

    def test_byte_order_mark_stripped(self):
        assert split_lines("\ufeff# Intro\r\nbody\r\n") == ["# Intro", "body"]

    def test_byte_order_mark_only(self):
        assert split_lines("\ufeff") == []

    def test_byte_order_mark_document(self):
        heading, para = _body(_convert("\ufeff# Intro\ntext\n"))
        assert heading.kind is BlockKind.HEADING
        assert heading.text == "1. Intro"
        assert para.text == "text"

    def test_crlf_document(self):
        doc = _convert("# A\r\ntext\r\n")
        heading, para = _body(doc)
        assert heading.text == "1. A"
        assert para.text == "text"
