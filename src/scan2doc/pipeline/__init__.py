"""Pipeline stages for assembling scanned pages into one document.

Stages, in order:
1. stage_ingest - Group files by folder, natural sort
2. stage_extract - PDF pages to JPEG, pending image rotation
3. stage_analyze - Layout analysis service boundary
4. stage_reorder - Reading order hint with page-number fallback
5. stage_summary - Optional document summary
6. stage_assemble - Element tree with cropped tables/formulas/figures

The orchestrator runs the stages folder by folder.
"""

from .natural_sort import natural_compare, natural_key, natural_sort
from .orchestrator import CancellationToken, PipelineOrchestrator, RunResult, artifact_name
from .stage_analyze import AnalysisOutcome, analyze_page, parse_analysis
from .stage_assemble import AssemblyResult, DocumentAssembler
from .stage_crop import CropResult, compute_crop_rect, crop_region
from .stage_extract import PageExtractor, rotate_image
from .stage_ingest import ingest, scan_directory
from .stage_reorder import ReorderResult, fallback_order, reorder_pages, validate_permutation
from .stage_summary import build_summary_text, summarize_pages

__all__ = [
    # Ingest
    "ingest",
    "natural_compare",
    "natural_key",
    "natural_sort",
    "scan_directory",
    # Extract
    "PageExtractor",
    "rotate_image",
    # Analyze
    "AnalysisOutcome",
    "analyze_page",
    "parse_analysis",
    # Crop
    "CropResult",
    "compute_crop_rect",
    "crop_region",
    # Reorder
    "ReorderResult",
    "fallback_order",
    "reorder_pages",
    "validate_permutation",
    # Summary
    "build_summary_text",
    "summarize_pages",
    # Assemble
    "AssemblyResult",
    "DocumentAssembler",
    # Orchestration
    "CancellationToken",
    "PipelineOrchestrator",
    "RunResult",
    "artifact_name",
]
