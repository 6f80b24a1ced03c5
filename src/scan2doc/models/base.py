"""Base models and common types for the assembly pipeline."""

from enum import Enum

from pydantic import BaseModel, ConfigDict


class SourceKind(str, Enum):
    """Kind of an ingested source file."""

    IMAGE = "image"
    PDF = "pdf"


class FolderStatus(str, Enum):
    """Status of a folder batch. Transitions only move forward."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


class BlockType(str, Enum):
    """Kinds of content blocks returned by layout analysis."""

    HEADING = "heading"
    SUBHEADING = "subheading"
    AUTHOR = "author"
    PARAGRAPH = "paragraph"
    IMAGE_DESCRIPTION = "image_description"
    TABLE_ROW = "table_row"  # never produced, read as paragraph
    TABLE_CROP = "table_crop"
    FORMULA_CROP = "formula_crop"
    IMAGE_CROP = "image_crop"


# Blocks rendered from a cropped region of the page raster
CROP_TYPES = frozenset({BlockType.TABLE_CROP, BlockType.FORMULA_CROP, BlockType.IMAGE_CROP})

# Blocks left out of the summary input. formula_crop text stays in.
SUMMARY_EXCLUDED_TYPES = frozenset({BlockType.IMAGE_CROP, BlockType.TABLE_CROP})


class NormalizedBox(BaseModel):
    """Bounding box on a 0-1000 scale, y before x.

    Ordering (ymin < ymax, xmin < xmax) is not enforced here; the
    region cropper handles degenerate boxes.
    """

    model_config = ConfigDict(frozen=True)

    ymin: int
    xmin: int
    ymax: int
    xmax: int

    @classmethod
    def from_list(cls, values: list[int]) -> "NormalizedBox":
        """Build from an [ymin, xmin, ymax, xmax] list."""
        ymin, xmin, ymax, xmax = values
        return cls(ymin=ymin, xmin=xmin, ymax=ymax, xmax=xmax)

    def as_list(self) -> list[int]:
        return [self.ymin, self.xmin, self.ymax, self.xmax]

    @property
    def is_ordered(self) -> bool:
        """True when the box has positive extent on both axes."""
        return self.ymin < self.ymax and self.xmin < self.xmax

    def to_pixels(self, width: int, height: int) -> tuple[float, float, float, float]:
        """Convert to pixel (x, y, width, height) for an image of the given size."""
        return (
            self.xmin / 1000 * width,
            self.ymin / 1000 * height,
            (self.xmax - self.xmin) / 1000 * width,
            (self.ymax - self.ymin) / 1000 * height,
        )


class FrozenModel(BaseModel):
    """Base class for immutable snapshots passed between stages."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)


