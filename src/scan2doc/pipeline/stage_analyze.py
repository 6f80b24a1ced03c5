"""Layout Analysis Stage - Turn page rasters into structured blocks.

Wraps the external layout analysis service. Responses are validated
into typed blocks; a failed call degrades to a single placeholder
paragraph for that page so the folder keeps going.
"""

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Any, Optional

from scan2doc.errors import AnalysisError, ConfigurationError
from scan2doc.models import AssemblyPage, BlockType, PageAnalysis, PageRaster, parse_block
from scan2doc.services.base import LayoutAnalyzer

log = logging.getLogger(__name__)

# Endings that suggest a sentence runs on to the next page
INCOMPLETE_PATTERNS = [
    r",\s*$",  # Ends with comma
    r":\s*$",  # Ends with colon
    r";\s*$",  # Ends with semicolon
    r"-\s*$",  # Ends with hyphen (word break)
    r"\band\s*$",
    r"\bor\s*$",
    r"\bthe\s*$",
    r"\ba\s*$",
]

_INCOMPLETE = [re.compile(p, re.IGNORECASE) for p in INCOMPLETE_PATTERNS]

_NARRATIVE_TYPES = {BlockType.PARAGRAPH, BlockType.HEADING, BlockType.SUBHEADING}


def looks_truncated(text: str) -> bool:
    """Check whether text ends mid-sentence."""
    text = text.rstrip()
    if not text:
        return False
    return any(p.search(text) for p in _INCOMPLETE)


def parse_analysis(raw: Any) -> PageAnalysis:
    """Validate a raw analysis response into a PageAnalysis.

    Raises:
        AnalysisError: If the response is not an object with a block list.
    """
    if not isinstance(raw, dict):
        raise AnalysisError(f"Expected a JSON object, got {type(raw).__name__}")

    raw_blocks = raw.get("blocks")
    if not isinstance(raw_blocks, list):
        raise AnalysisError("Analysis response has no 'blocks' list")

    blocks = [parse_block(b) for b in raw_blocks]

    page_number = raw.get("pageNumber", raw.get("page_number"))
    if isinstance(page_number, bool) or not isinstance(page_number, int) or page_number < 1:
        page_number = None

    continuing = raw.get("hasContinuingSentence", raw.get("has_continuing_sentence"))
    if not isinstance(continuing, bool):
        narrative = [b for b in blocks if b.block_type in _NARRATIVE_TYPES and b.text]
        continuing = bool(narrative) and looks_truncated(narrative[-1].text)

    return PageAnalysis(
        page_number=page_number,
        blocks=blocks,
        has_continuing_sentence=continuing,
    )


def error_analysis(page_name: str) -> PageAnalysis:
    """Placeholder analysis for a page the service could not process."""
    return PageAnalysis(
        blocks=[parse_block({"type": "paragraph", "text": f"[Page processing error: {page_name}]"})],
        has_continuing_sentence=False,
    )


@dataclass
class AnalysisOutcome:
    """Page ready for assembly, plus the error if analysis degraded."""

    page: AssemblyPage
    error: Optional[AnalysisError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def analyze_page(
    analyzer: LayoutAnalyzer,
    raster: PageRaster,
    language: str,
    timeout: Optional[float] = None,
) -> AnalysisOutcome:
    """Analyse one page raster, never raising for service failures.

    Args:
        analyzer: Layout analysis collaborator.
        raster: Page image to analyse.
        language: Target language, or "Original" to keep source text.
        timeout: Seconds to wait for the service before giving up.

    Returns:
        AnalysisOutcome whose page carries the raster for later cropping.
    """
    error = None
    try:
        analysis = await asyncio.wait_for(
            analyzer.analyze(raster.data, raster.mime_type, language),
            timeout=timeout,
        )
    except AnalysisError as exc:
        error = exc
    except asyncio.TimeoutError:
        error = AnalysisError(f"Analysis timed out after {timeout}s")
    except ConfigurationError:
        raise
    except Exception as exc:
        error = AnalysisError(f"Analysis service failed: {exc}")

    if error is not None:
        log.warning("Analysis failed for %s: %s", raster.name, error)
        analysis = error_analysis(raster.name)

    page = AssemblyPage(
        name=raster.name,
        analysis=analysis,
        image=raster.data,
        mime_type=raster.mime_type,
        source_kind=raster.source_kind,
    )
    return AnalysisOutcome(page=page, error=error)
