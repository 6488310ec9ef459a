"""Shared test fixtures for the docx_export test suite.

WHY: Most conversion tests need images and web pages, but must never
touch the disk layout of the developer's machine or the network. A fake
resource loader with the same two coroutines as ResourceLoader keeps the
tests deterministic and fast.

HOW: FakeLoader serves image bytes and HTML pages from dicts, with
optional per-resource delays so tests can force out-of-order completion.
PNG payloads are generated in memory with Pillow.

RULES:
- Missing images raise ResourceNotFoundError, missing pages NetworkError,
  exactly like the real loader.
- FIXED_DATE is the "today" injected into every conversion that
  resolves citations, so bibliography text is reproducible.
"""

import asyncio
import io
from datetime import date

import pytest
from PIL import Image as PILImage

from docx_export.errors import NetworkError, ResourceNotFoundError
from docx_export.loader import FetchResult

FIXED_DATE = date(2024, 3, 1)


def make_png(width: int, height: int, color=(200, 30, 30), fmt="PNG") -> bytes:
    """Encode a solid-color image of the given pixel size (PNG by default)."""
    buffer = io.BytesIO()
    PILImage.new("RGB", (width, height), color).save(buffer, format=fmt)
    return buffer.getvalue()


def html_page(title: str) -> str:
    return "<html><head><title>{}</title></head><body><p>Body</p></body></html>".format(title)


class FakeLoader:
    """In-memory stand-in for ResourceLoader.

    Pages may be given as HTML strings (served with status 200) or as
    ready-made FetchResult objects to simulate HTTP error statuses.
    """

    def __init__(self, images=None, pages=None, delays=None):
        self.images = dict(images or {})
        self.pages = dict(pages or {})
        self.delays = dict(delays or {})
        self.read_paths = []
        self.fetched_urls = []

    async def read_binary(self, path):
        self.read_paths.append(path)
        await asyncio.sleep(self.delays.get(path, 0))
        if path not in self.images:
            raise ResourceNotFoundError(path)
        return self.images[path]

    async def fetch(self, url):
        self.fetched_urls.append(url)
        await asyncio.sleep(self.delays.get(url, 0))
        page = self.pages.get(url)
        if page is None:
            raise NetworkError(url, "connection refused")
        if isinstance(page, FetchResult):
            return page
        return FetchResult(status=200, body=page)


@pytest.fixture
def png_1000x500():
    """A 2:1 PNG; scaled to the default 500 px width it is 500x250."""
    return make_png(1000, 500)


@pytest.fixture
def fake_loader():
    """An empty FakeLoader; tests fill in images/pages as needed."""
    return FakeLoader()


@pytest.fixture
def example_markup():
    """The end-to-end example: chapter, cited paragraph, break, section, bullets."""
    return (
        "# Intro\n"
        "Some text [Site](http://x) more.\n"
        "---\n"
        "## Detail\n"
        "- item one\n"
        "- item two\n"
    )


@pytest.fixture
def example_loader():
    """Loader that resolves the single citation of example_markup."""
    return FakeLoader(pages={"http://x": html_page("Example Site")})
