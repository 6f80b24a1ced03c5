"""Summary Stage - Summarize the ordered document text.

Only runs when enabled. image_crop and table_crop text is left out of
the input; formula_crop text is kept.
"""

import asyncio
import logging
from typing import Optional

from scan2doc.config import settings
from scan2doc.errors import ConfigurationError
from scan2doc.models import SUMMARY_EXCLUDED_TYPES, AssemblyPage
from scan2doc.services.base import Summarizer
from scan2doc.textutils import clean_markdown, sanitize_text

log = logging.getLogger(__name__)


def build_summary_text(pages: list[AssemblyPage]) -> str:
    """Concatenate eligible block text: spaces within a page, blank lines between pages."""
    return "\n\n".join(
        " ".join(b.text for b in page.blocks if b.block_type not in SUMMARY_EXCLUDED_TYPES)
        for page in pages
    )


def normalize_summary(text: str) -> str:
    """Strip Markdown markers, then control characters and outer whitespace.

    Trimming runs last so a leading "## " leaves no stray space.
    """
    return sanitize_text(clean_markdown(text))


async def summarize_pages(
    summarizer: Summarizer,
    pages: list[AssemblyPage],
    language: str,
    max_chars: Optional[int] = None,
    timeout: Optional[float] = None,
) -> Optional[str]:
    """Produce a cleaned summary, or None if the service fails or returns nothing."""
    max_chars = max_chars or settings.summary_max_chars
    full_text = sanitize_text(build_summary_text(pages)[:max_chars])

    try:
        raw = await asyncio.wait_for(summarizer.summarize(full_text, language), timeout=timeout)
    except asyncio.TimeoutError:
        log.warning("Summary generation timed out after %ss", timeout)
        return None
    except ConfigurationError:
        raise
    except Exception as exc:
        log.warning("Summary generation failed: %s", exc)
        return None

    summary = normalize_summary(raw or "")
    if not summary:
        log.warning("Summary service returned no text")
        return None
    return summary
