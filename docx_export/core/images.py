"""Image embed resolution, display scaling, and figure captions.

WHY: ``![[diagram.png]]`` lines must become embedded pictures of a
consistent width in the exported document. A missing or corrupt file
must not abort the export, and figure captions need running numbers.

HOW: ImageResolver.schedule() fires one asyncio task per embed that
loads the bytes through the resource loader, reads the natural size with
Pillow, and scales it to IMAGE_TARGET_WIDTH. Failures degrade to a short
centered warning paragraph. Caption helpers rewrite the line following
an image and substitute ``{img}`` placeholders with picture numbers.

RULES:
- Display width is fixed; height scales by the same ratio (min 1 px)
- Image blocks use the "center" style
- ResourceNotFoundError or an unidentifiable image → warning Paragraph
- Formats Word cannot embed are re-encoded as PNG
- Caption after an image: "Figure: text" → "Figure N – text", centered
- Picture numbers come from NumberingState, taken during the scan
"""

from __future__ import annotations

import asyncio
import io
import logging
import re
from typing import Tuple, Union

from PIL import Image as PILImage
from PIL import UnidentifiedImageError

from docx_export.config import (
    CAPTION_LABEL,
    IMAGE_TARGET_WIDTH,
    MISSING_IMAGE_TEMPLATE,
    PICTURE_PLACEHOLDER,
    STYLE_CENTER,
)
from docx_export.core.ir import Image, Paragraph
from docx_export.core.numbering import NumberingState
from docx_export.errors import ResourceNotFoundError

logger = logging.getLogger(__name__)

# "Figure", "Figure: text", "Figure {img} - text"; "Figure shows..." is body text.
_CAPTION_RE = re.compile(
    r"^{}(?:\s*{})?\s*(?:[.:\-–—]\s*(.*))?$".format(
        re.escape(CAPTION_LABEL), re.escape(PICTURE_PLACEHOLDER)
    ),
    re.IGNORECASE,
)
_CAPTION_SEPARATOR = "–"

# Formats python-docx can embed as-is.
EMBEDDABLE_FORMATS = frozenset({"PNG", "JPEG", "GIF", "BMP", "TIFF"})


def scaled_size(width: int, height: int, target_width: int = IMAGE_TARGET_WIDTH) -> Tuple[int, int]:
    """Scale (width, height) to ``target_width`` preserving aspect ratio."""
    if width <= 0 or height <= 0:
        raise ValueError("Image dimensions must be positive, got {}x{}".format(width, height))
    return target_width, max(1, round(height * target_width / width))


def embeddable_image(data: bytes, source: str) -> Tuple[bytes, Tuple[int, int]]:
    """Return bytes Word can embed along with the natural size.

    PNG, JPEG, GIF, BMP and TIFF pass through untouched. Anything else
    Pillow can decode (WebP, ICO, ...) is re-encoded as PNG.

    Raises:
        ResourceNotFoundError: the bytes are not a decodable image.
    """
    try:
        with PILImage.open(io.BytesIO(data)) as img:
            fmt = img.format
            if fmt in EMBEDDABLE_FORMATS:
                return data, img.size
            if img.mode not in ("RGB", "RGBA", "L", "LA", "P"):
                img = img.convert("RGBA")
            buf = io.BytesIO()
            img.save(buf, format="PNG")
            logger.debug("Image %s re-encoded from %s to PNG", source, fmt or "unknown")
            return buf.getvalue(), img.size
    except (UnidentifiedImageError, OSError) as e:
        raise ResourceNotFoundError(source, "unreadable image: {}".format(e)) from e


def missing_image_block(source: str) -> Paragraph:
    return Paragraph(text=MISSING_IMAGE_TEMPLATE.format(path=source), style=STYLE_CENTER)


def is_caption(line: str) -> bool:
    return _CAPTION_RE.match(line.strip()) is not None


def caption_text(line: str, picture_number: int) -> str:
    """Rewrite a caption template line with its picture number.

    "Figure: System overview" → "Figure 3 – System overview"
    """
    match = _CAPTION_RE.match(line.strip())
    rest = (match.group(1) or "") if match else line.strip()
    rest = rest.replace(PICTURE_PLACEHOLDER, "").strip()
    if not rest:
        return "{} {}".format(CAPTION_LABEL, picture_number)
    return "{} {} {} {}".format(CAPTION_LABEL, picture_number, _CAPTION_SEPARATOR, rest)


def substitute_picture_placeholders(line: str, state: NumberingState) -> str:
    """Replace every ``{img}`` with the next picture number, left to right."""
    if PICTURE_PLACEHOLDER not in line:
        return line
    parts = line.split(PICTURE_PLACEHOLDER)
    out = [parts[0]]
    for part in parts[1:]:
        out.append(str(state.next_picture()))
        out.append(part)
    return "".join(out)


class ImageResolver:
    """Loads embedded images concurrently and builds Image blocks.

    RULES:
    - loader must provide ``await read_binary(path) -> bytes``
    - schedule() must be called inside a running event loop
    """

    def __init__(self, loader, target_width: int = IMAGE_TARGET_WIDTH) -> None:
        self._loader = loader
        self._target_width = target_width

    def schedule(self, source: str) -> asyncio.Task:
        """Fire the load for ``source`` and return its task."""
        return asyncio.create_task(self.resolve(source))

    async def resolve(self, source: str) -> Union[Image, Paragraph]:
        """Load and scale one image, degrading to a warning paragraph."""
        try:
            data = await self._loader.read_binary(source)
            data, (width, height) = embeddable_image(data, source)
        except ResourceNotFoundError as e:
            logger.warning("Image %s skipped: %s", source, e.reason)
            return missing_image_block(source)

        display_width, display_height = scaled_size(width, height, self._target_width)
        logger.debug(
            "Image %s: %dx%d scaled to %dx%d",
            source, width, height, display_width, display_height,
        )
        return Image(
            data=data,
            width=display_width,
            height=display_height,
            source=source,
        )
