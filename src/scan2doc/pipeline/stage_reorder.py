"""Reordering Stage - Restore reading order across pages.

Asks the ranking service for a permutation based on page numbers and
text continuity. Anything other than an exact permutation is rejected
and pages are sorted by detected page number instead.
"""

import asyncio
import logging
import sys
from dataclasses import dataclass
from typing import Any, Optional

from scan2doc.config import settings
from scan2doc.errors import ConfigurationError, ReorderHintInvalid
from scan2doc.models import AssemblyPage, BlockType, PageDescriptor
from scan2doc.services.base import PageRanker

log = logging.getLogger(__name__)

# Pages without a detected number sort after every numbered page
MISSING_PAGE_NUMBER = sys.maxsize

# Blocks whose text is used for the first/last excerpts
EXCERPT_TYPES = frozenset({BlockType.PARAGRAPH, BlockType.HEADING})


def build_descriptors(pages: list[AssemblyPage], excerpt_chars: int = 100) -> list[PageDescriptor]:
    """Summarize each page for the ranking service."""
    descriptors = []
    for index, page in enumerate(pages):
        texts = [b.text for b in page.blocks if b.block_type in EXCERPT_TYPES and b.text.strip()]
        first = texts[0][:excerpt_chars] if texts else ""
        last = texts[-1][-excerpt_chars:] if texts else ""
        descriptors.append(
            PageDescriptor(
                temp_id=index,
                file_name=page.name,
                detected_page_num=page.page_number,
                first_sentence=first,
                last_sentence=last,
            )
        )
    return descriptors


def validate_permutation(hint: Any, count: int) -> list[int]:
    """Check that a hint is a permutation of range(count).

    Raises:
        ReorderHintInvalid: On wrong type, wrong length, out-of-range
            values or duplicates.
    """
    if not isinstance(hint, (list, tuple)):
        raise ReorderHintInvalid(f"Expected a list of indices, got {type(hint).__name__}")
    if len(hint) != count:
        raise ReorderHintInvalid(f"Expected {count} indices, got {len(hint)}")

    seen = set()
    for value in hint:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ReorderHintInvalid(f"Non-integer index {value!r}")
        if not 0 <= value < count:
            raise ReorderHintInvalid(f"Index {value} out of range 0..{count - 1}")
        if value in seen:
            raise ReorderHintInvalid(f"Duplicate index {value}")
        seen.add(value)
    return list(hint)


def fallback_order(pages: list[AssemblyPage]) -> list[AssemblyPage]:
    """Sort by detected page number; unnumbered pages last, ties by position."""
    indexed = sorted(
        enumerate(pages),
        key=lambda pair: (
            pair[1].page_number if pair[1].page_number is not None else MISSING_PAGE_NUMBER,
            pair[0],
        ),
    )
    return [page for _, page in indexed]


@dataclass
class ReorderResult:
    """Ordered pages and how the order was decided."""

    pages: list[AssemblyPage]
    strategy: str  # "passthrough", "hint" or "fallback"
    reason: Optional[str] = None


async def reorder_pages(
    ranker: PageRanker,
    pages: list[AssemblyPage],
    excerpt_chars: Optional[int] = None,
    timeout: Optional[float] = None,
) -> ReorderResult:
    """Put pages in reading order.

    Never raises for ranking failures; the deterministic page-number
    sort is used instead.
    """
    if len(pages) <= 1:
        return ReorderResult(pages=list(pages), strategy="passthrough")

    descriptors = build_descriptors(pages, excerpt_chars or settings.excerpt_chars)

    try:
        hint = await asyncio.wait_for(ranker.rank(descriptors), timeout=timeout)
        order = validate_permutation(hint, len(pages))
    except ReorderHintInvalid as exc:
        reason = f"invalid hint: {exc}"
    except asyncio.TimeoutError:
        reason = f"ranking timed out after {timeout}s"
    except ConfigurationError:
        raise
    except Exception as exc:
        reason = f"ranking failed: {exc}"
    else:
        return ReorderResult(pages=[pages[i] for i in order], strategy="hint")

    log.warning("Reordering fell back to page numbers (%s)", reason)
    return ReorderResult(pages=fallback_order(pages), strategy="fallback", reason=reason)
