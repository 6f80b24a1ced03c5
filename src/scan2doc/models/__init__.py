"""Data models for the scan-to-document pipeline.

Pydantic models describe everything that flows between stages:
- Ingestion: RawFile -> SourceItem -> FolderBatch
- Extraction/analysis: PageRaster -> PageAnalysis -> AssemblyPage
- Assembly: DocumentTree of heading, paragraph and image elements
- Reporting: ItemOutcome aggregated into a FolderReport
"""

from .base import (
    CROP_TYPES,
    SUMMARY_EXCLUDED_TYPES,
    BlockType,
    FolderStatus,
    FrozenModel,
    NormalizedBox,
    SourceKind,
)
from .block import ContentBlock, CropBlock, TextBlock, parse_block
from .element import (
    DocumentElement,
    DocumentTree,
    HeadingElement,
    ImageElement,
    ParagraphElement,
    ParagraphStyle,
)
from .page import AssemblyPage, PageAnalysis, PageDescriptor, PageRaster
from .report import FolderReport, ItemOutcome
from .source import FolderBatch, RawFile, SourceItem

__all__ = [
    # Base types
    "BlockType",
    "CROP_TYPES",
    "FolderStatus",
    "FrozenModel",
    "NormalizedBox",
    "SourceKind",
    "SUMMARY_EXCLUDED_TYPES",
    # Blocks
    "ContentBlock",
    "CropBlock",
    "TextBlock",
    "parse_block",
    # Sources
    "FolderBatch",
    "RawFile",
    "SourceItem",
    # Pages
    "AssemblyPage",
    "PageAnalysis",
    "PageDescriptor",
    "PageRaster",
    # Output tree
    "DocumentElement",
    "DocumentTree",
    "HeadingElement",
    "ImageElement",
    "ParagraphElement",
    "ParagraphStyle",
    # Reports
    "FolderReport",
    "ItemOutcome",
]
