"""Extraction Stage - Produce one raster per page.

PDFs are rendered page by page with PyMuPDF (fitz) at a fixed scale
and re-encoded as JPEG. Standalone images get their pending rotation
applied with OpenCV; unrotated images pass through untouched.
"""

import asyncio
import io
import logging
from pathlib import Path
from typing import Optional

import cv2
import fitz  # PyMuPDF
import numpy as np
from PIL import Image

from scan2doc.config import settings
from scan2doc.errors import ExtractionError
from scan2doc.models import PageRaster, SourceItem, SourceKind

log = logging.getLogger(__name__)

# Encoders OpenCV can write, keyed by file extension
EXTENSION_MIME_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".tif": "image/tiff",
    ".tiff": "image/tiff",
    ".bmp": "image/bmp",
}

_ROTATE_CODES = {
    90: cv2.ROTATE_90_CLOCKWISE,
    180: cv2.ROTATE_180,
    270: cv2.ROTATE_90_COUNTERCLOCKWISE,
}


def page_display_name(file_name: str, page_number: int) -> str:
    """Display name of one page rendered from a PDF."""
    return f"{file_name} [Page {page_number}]"


def image_format(name: str) -> tuple[str, str]:
    """Return (extension, mime type) used to re-encode an image file.

    Unknown extensions are re-encoded as PNG.
    """
    suffix = Path(name).suffix.lower()
    if suffix in EXTENSION_MIME_TYPES:
        return suffix, EXTENSION_MIME_TYPES[suffix]
    return ".png", "image/png"


def decode_image(data: bytes) -> Optional[np.ndarray]:
    """Decode encoded image bytes, keeping channels and depth."""
    buffer = np.frombuffer(data, dtype=np.uint8)
    if buffer.size == 0:
        return None
    return cv2.imdecode(buffer, cv2.IMREAD_UNCHANGED)


def rotate_image(data: bytes, degrees: int, extension: str = ".png") -> bytes:
    """Rotate encoded image bytes clockwise around the image center.

    90 and 270 degrees swap width and height. 0 returns the input bytes.

    Raises:
        ExtractionError: If the image cannot be decoded or re-encoded.
    """
    degrees = degrees % 360
    if degrees == 0:
        return data
    if degrees not in _ROTATE_CODES:
        raise ValueError(f"Rotation must be a multiple of 90, got {degrees}")

    image = decode_image(data)
    if image is None:
        raise ExtractionError("Image could not be decoded for rotation")

    rotated = cv2.rotate(image, _ROTATE_CODES[degrees])
    ok, encoded = cv2.imencode(extension, rotated)
    if not ok:
        raise ExtractionError(f"Rotated image could not be encoded as {extension}")
    return encoded.tobytes()


class PageExtractor:
    """Turns a source item into page rasters ready for analysis.

    Rendering is sequential, one page at a time, to keep memory flat for
    long PDFs. A page that fails to render is logged and skipped.
    """

    def __init__(
        self,
        render_scale: Optional[float] = None,
        jpeg_quality: Optional[int] = None,
    ):
        """Initialize extractor.

        Args:
            render_scale: PDF zoom factor (default from settings, 2.0).
            jpeg_quality: JPEG quality for rendered PDF pages (default 95).
        """
        self.render_scale = render_scale or settings.render_scale
        self.jpeg_quality = jpeg_quality or settings.jpeg_quality

    def extract(self, item: SourceItem) -> list[PageRaster]:
        """Extract page rasters from one source item.

        Raises:
            ExtractionError: If the item yields no usable page.
        """
        if item.kind == SourceKind.PDF:
            return self.render_pdf(item)
        return [self.prepare_image(item)]

    async def extract_async(self, item: SourceItem) -> list[PageRaster]:
        """Run ``extract`` off the event loop."""
        return await asyncio.to_thread(self.extract, item)

    def prepare_image(self, item: SourceItem) -> PageRaster:
        """Apply the pending rotation of an image item."""
        extension, mime_type = image_format(item.name)
        if item.rotation == 0:
            return PageRaster(
                name=item.name,
                data=item.data,
                mime_type=mime_type,
                source_kind=SourceKind.IMAGE,
            )

        log.info("Applying %d degree rotation to %s", item.rotation, item.name)
        return PageRaster(
            name=item.name,
            data=rotate_image(item.data, item.rotation, extension),
            mime_type=mime_type,
            source_kind=SourceKind.IMAGE,
        )

    def render_pdf(self, item: SourceItem) -> list[PageRaster]:
        """Render every page of a PDF item to JPEG.

        Display names count rendered pages only, so a skipped page leaves
        no gap; ``page_index`` keeps the page's position in the PDF.
        """
        try:
            pdf_doc = fitz.open(stream=item.data, filetype="pdf")
        except Exception as exc:
            raise ExtractionError(f"Could not open PDF {item.name}: {exc}") from exc

        rasters = []
        try:
            matrix = fitz.Matrix(self.render_scale, self.render_scale)
            for page_num in range(len(pdf_doc)):
                try:
                    pixmap = pdf_doc[page_num].get_pixmap(matrix=matrix, alpha=False)
                    data = self._pixmap_to_jpeg(pixmap)
                except Exception as exc:
                    log.warning("Error rendering page %d of %s: %s", page_num + 1, item.name, exc)
                    continue

                rasters.append(
                    PageRaster(
                        name=page_display_name(item.name, len(rasters) + 1),
                        data=data,
                        mime_type="image/jpeg",
                        source_kind=SourceKind.PDF,
                        page_index=page_num + 1,
                    )
                )
        finally:
            pdf_doc.close()

        if not rasters:
            raise ExtractionError(f"Could not extract any pages from PDF {item.name}")

        log.info("Rendered %d pages from %s", len(rasters), item.name)
        return rasters

    def _pixmap_to_jpeg(self, pixmap) -> bytes:
        """Encode an RGB pixmap as JPEG."""
        image = Image.frombytes("RGB", (pixmap.width, pixmap.height), pixmap.samples)
        buffer = io.BytesIO()
        image.save(buffer, format="JPEG", quality=self.jpeg_quality)
        return buffer.getvalue()
