"""Region Cropping Stage - Cut visual blocks out of page rasters.

Converts a normalized 0-1000 bounding box to pixels, pads it, clamps
it to the image and extracts the region as PNG. Degenerate boxes fall
back to the whole page.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

import cv2

from scan2doc.config import settings
from scan2doc.errors import CropError
from scan2doc.models import NormalizedBox
from scan2doc.pipeline.stage_extract import decode_image

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class CropResult:
    """PNG bytes of a cropped region and its pixel size."""

    data: bytes
    width: int
    height: int
    is_full_page: bool = False


def compute_crop_rect(
    box: NormalizedBox,
    width: int,
    height: int,
    padding: int = 5,
) -> Optional[tuple[int, int, int, int]]:
    """Compute the padded pixel rectangle for a box.

    Args:
        box: Normalized box (0-1000, y before x).
        width: Image width in pixels.
        height: Image height in pixels.
        padding: Pixels added on every side before clamping.

    Returns:
        (left, top, right, bottom) in pixels, or None when the box is
        degenerate and the whole image should be used instead.
    """
    if not box.is_ordered:
        return None

    pixel_x, pixel_y, pixel_w, pixel_h = box.to_pixels(width, height)

    final_x = max(0.0, pixel_x - padding)
    final_y = max(0.0, pixel_y - padding)
    final_w = min(width - final_x, pixel_w + padding * 2)
    final_h = min(height - final_y, pixel_h + padding * 2)

    if final_w <= 0 or final_h <= 0:
        return None

    left = int(final_x)
    top = int(final_y)
    right = min(width, left + int(final_w))
    bottom = min(height, top + int(final_h))

    if right <= left or bottom <= top:
        return None

    return left, top, right, bottom


def crop_region(image_data: bytes, box: NormalizedBox, padding: Optional[int] = None) -> CropResult:
    """Extract a region from encoded image bytes as PNG.

    Pure function of its inputs; safe to retry.

    Raises:
        CropError: If the image cannot be decoded or the crop encoded.
    """
    if padding is None:
        padding = settings.crop_padding

    image = decode_image(image_data)
    if image is None:
        raise CropError("Image load failed")

    height, width = image.shape[:2]
    rect = compute_crop_rect(box, width, height, padding)

    if rect is None:
        log.debug("Degenerate box %s, using whole %dx%d image", box.as_list(), width, height)
        region = image
    else:
        left, top, right, bottom = rect
        region = image[top:bottom, left:right]

    try:
        ok, encoded = cv2.imencode(".png", region)
    except cv2.error as exc:
        raise CropError(f"Crop failed: {exc}") from exc
    if not ok:
        raise CropError("Crop failed")

    region_height, region_width = region.shape[:2]
    return CropResult(
        data=encoded.tobytes(),
        width=region_width,
        height=region_height,
        is_full_page=rect is None,
    )


async def crop_region_async(
    image_data: bytes, box: NormalizedBox, padding: Optional[int] = None
) -> CropResult:
    """Run ``crop_region`` off the event loop."""
    return await asyncio.to_thread(crop_region, image_data, box, padding)
