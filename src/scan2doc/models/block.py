"""Content block models produced by layout analysis."""

import math
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import Field, TypeAdapter

from scan2doc.textutils import sanitize_text

from .base import CROP_TYPES, BlockType, FrozenModel, NormalizedBox


class TextBlock(FrozenModel):
    """Narrative block rendered as styled text."""

    type: Literal["heading", "subheading", "author", "paragraph", "image_description"]
    text: str = ""

    @property
    def block_type(self) -> BlockType:
        return BlockType(self.type)


class CropBlock(FrozenModel):
    """Visual block rendered as a region cropped from the page raster."""

    type: Literal["table_crop", "formula_crop", "image_crop"]
    text: str = ""
    bbox: Optional[NormalizedBox] = None

    @property
    def block_type(self) -> BlockType:
        return BlockType(self.type)


ContentBlock = Annotated[Union[TextBlock, CropBlock], Field(discriminator="type")]

_block_adapter = TypeAdapter(ContentBlock)

_KNOWN_TYPES = {t.value for t in BlockType} - {BlockType.TABLE_ROW.value}


def _coerce_box(value: Any) -> Optional[list[int]]:
    """Return the box as four ints, or None if it is not usable."""
    if not isinstance(value, (list, tuple)) or len(value) != 4:
        return None
    coords = []
    for v in value:
        if isinstance(v, bool) or not isinstance(v, (int, float)) or not math.isfinite(v):
            return None
        coords.append(int(round(v)))
    return coords


def parse_block(raw: Any) -> Union[TextBlock, CropBlock]:
    """Build a typed block from one raw analysis JSON object.

    ``table_row`` and unknown kinds become paragraphs. Malformed
    bounding boxes are dropped rather than trusted.
    """
    if not isinstance(raw, dict):
        return TextBlock(type="paragraph", text=sanitize_text(str(raw)))

    block_type = raw.get("type")
    if block_type not in _KNOWN_TYPES:
        block_type = BlockType.PARAGRAPH.value

    text = raw.get("text")
    data: dict[str, Any] = {
        "type": block_type,
        "text": sanitize_text(text if isinstance(text, str) else ("" if text is None else str(text))),
    }

    if BlockType(block_type) in CROP_TYPES:
        coords = _coerce_box(raw.get("boundingBox", raw.get("bounding_box")))
        if coords is not None:
            data["bbox"] = NormalizedBox.from_list(coords)

    return _block_adapter.validate_python(data)
