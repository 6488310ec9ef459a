"""Exception hierarchy for the exporter.

WHY: The conversion degrades per block instead of failing, so callers
rarely see these exceptions — but the loader, citation resolver, and
image resolver need typed errors to decide which placeholder to emit.

HOW: Every exception derives from DocxExportError. Loader errors carry
the offending path or URL.

RULES:
- ResourceNotFoundError: local binary resource missing or unreadable
- NetworkError: transport failure while fetching a URL
- CitationResolutionError: page fetched but no usable title (HTTP error,
  empty or missing <title>)
- DocumentValidationError: a block references an unknown numbering scheme
"""

from __future__ import annotations


class DocxExportError(Exception):
    """Base class for all exporter errors."""


class ResourceNotFoundError(DocxExportError):
    """Raised when a binary resource (image) cannot be read."""

    def __init__(self, path: str, reason: str = "not found") -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Resource {path!r}: {reason}")


class NetworkError(DocxExportError):
    """Raised when a URL cannot be fetched because of a transport failure."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to fetch {url}: {reason}")


class CitationResolutionError(DocxExportError):
    """Raised when a fetched page does not yield a usable title."""


class DocumentValidationError(DocxExportError):
    """Raised when a Document violates the numbering reference invariant."""
