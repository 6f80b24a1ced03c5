"""External service collaborators.

- base: Protocols for every external boundary
- llm: OpenAI-compatible layout analysis, ranking and summary services
- docx_writer: Word serialization of the element tree
"""

from .base import DocumentWriter, LayoutAnalyzer, PageRanker, Summarizer

__all__ = [
    "DocumentWriter",
    "LayoutAnalyzer",
    "PageRanker",
    "Summarizer",
]
