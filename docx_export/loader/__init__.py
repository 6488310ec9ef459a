"""Resource loader package — async access to images and cited pages.

WHY: The conversion engine needs image bytes for embeds and HTML pages
for citation titles. This package encapsulates all file and HTTP access
behind one async loader class.

HOW: Uses httpx.AsyncClient for non-blocking HTTP and a worker thread
for local reads. Fetch results are returned as a small typed dataclass.

RULES:
- All HTTP calls go through ResourceLoader (no direct httpx usage elsewhere)
- Loader errors are typed (ResourceNotFoundError, NetworkError)
"""

from docx_export.loader.client import FetchResult, ResourceLoader

__all__ = ["FetchResult", "ResourceLoader"]
