"""Assembly Stage - Build the output element tree from ordered pages.

Narrative blocks become styled text. Table, formula and figure blocks
are cropped from the page raster and embedded with a caption; a crop
that fails becomes an inline error line and assembly carries on.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Union

from scan2doc.config import settings
from scan2doc.errors import CropError
from scan2doc.models import (
    CROP_TYPES,
    AssemblyPage,
    BlockType,
    CropBlock,
    DocumentElement,
    DocumentTree,
    HeadingElement,
    ImageElement,
    ParagraphElement,
    ParagraphStyle,
    TextBlock,
)
from scan2doc.pipeline.stage_crop import crop_region_async

log = logging.getLogger(__name__)

SUMMARY_HEADING = "SUMMARY"
SUMMARY_SEPARATOR = "--- DOCUMENT TEXT ---"

# Literal text the analysis service uses for "no caption"
NULL_CAPTION = "null"

DEFAULT_CAPTIONS = {
    BlockType.TABLE_CROP: "Table",
    BlockType.FORMULA_CROP: "Formula",
    BlockType.IMAGE_CROP: "Figure",
}


def caption_for(block: CropBlock) -> str:
    """Caption text for a cropped block."""
    if block.text != NULL_CAPTION:
        return block.text
    return DEFAULT_CAPTIONS[block.block_type]


def display_size(width: int, height: int, max_size: int) -> tuple[int, int]:
    """Scale pixel dimensions down to fit a square display box."""
    scale = min(1.0, max_size / width, max_size / height)
    return max(1, round(width * scale)), max(1, round(height * scale))


def text_element(block: Union[TextBlock, CropBlock]) -> DocumentElement:
    """Styled text element for a block that is not embedded as an image."""
    block_type = block.block_type
    if block_type == BlockType.HEADING:
        return HeadingElement(text=block.text, level=1)
    if block_type == BlockType.SUBHEADING:
        return HeadingElement(text=block.text, level=2)
    if block_type == BlockType.AUTHOR:
        return ParagraphElement(text=block.text, style=ParagraphStyle.AUTHOR)
    # paragraph, image_description, table_row and anything unrecognised
    return ParagraphElement(text=block.text, style=ParagraphStyle.BODY)


def summary_elements(summary: str) -> list[DocumentElement]:
    """Leading summary section: heading, body and separator."""
    return [
        HeadingElement(text=SUMMARY_HEADING, level=1, centered=True),
        ParagraphElement(text=summary, style=ParagraphStyle.SUMMARY),
        ParagraphElement(text=SUMMARY_SEPARATOR, style=ParagraphStyle.SEPARATOR),
    ]


@dataclass
class AssemblyResult:
    """Element tree plus crop bookkeeping."""

    tree: DocumentTree
    crops: int = 0
    crop_failures: list[str] = field(default_factory=list)


class DocumentAssembler:
    """Walks ordered pages and builds the output element tree."""

    def __init__(
        self,
        max_display: Optional[int] = None,
        padding: Optional[int] = None,
    ):
        """Initialize assembler.

        Args:
            max_display: Largest width/height of an embedded crop in points.
            padding: Crop padding in pixels.
        """
        self.max_display = max_display or settings.crop_max_display
        self.padding = settings.crop_padding if padding is None else padding

    @staticmethod
    def is_crop_eligible(block: Union[TextBlock, CropBlock], page: AssemblyPage) -> bool:
        """Crop only typed visual blocks with a box on a page that kept its raster."""
        return (
            block.block_type in CROP_TYPES
            and getattr(block, "bbox", None) is not None
            and bool(page.image)
        )

    async def assemble(
        self,
        pages: list[AssemblyPage],
        summary: Optional[str] = None,
    ) -> AssemblyResult:
        """Build the element tree for pages already in reading order."""
        elements: list[DocumentElement] = []
        result = AssemblyResult(tree=DocumentTree())

        if summary:
            elements.extend(summary_elements(summary))

        for page in pages:
            for block in page.blocks:
                if self.is_crop_eligible(block, page):
                    elements.extend(await self._crop_elements(block, page, result))
                else:
                    elements.append(text_element(block))

        result.tree = DocumentTree(elements=tuple(elements))
        return result

    async def _crop_elements(
        self,
        block: CropBlock,
        page: AssemblyPage,
        result: AssemblyResult,
    ) -> list[DocumentElement]:
        """Image and caption for one crop block, or an error line."""
        try:
            crop = await crop_region_async(page.image, block.bbox, self.padding)
        except CropError as exc:
            log.error("Crop error on %s (%s): %s", page.name, block.type, exc)
            result.crop_failures.append(f"{page.name}: {exc}")
            return [ParagraphElement(text=f"[Display error: {block.text}]", style=ParagraphStyle.ERROR)]

        result.crops += 1
        width, height = display_size(crop.width, crop.height, self.max_display)
        return [
            ImageElement(data=crop.data, width=width, height=height),
            ParagraphElement(text=f"[{caption_for(block)}]", style=ParagraphStyle.CAPTION),
        ]
