"""Collaborator interfaces for the external services.

Each boundary is a Protocol so tests and alternative backends can be
swapped in without touching the pipeline.
"""

from typing import Protocol

from scan2doc.models import DocumentTree, PageAnalysis, PageDescriptor


class LayoutAnalyzer(Protocol):
    """Extracts structured layout from one page image."""

    async def analyze(self, image: bytes, mime_type: str, language: str) -> PageAnalysis:
        """Analyse a page. May raise; callers degrade failures to a placeholder."""
        ...


class PageRanker(Protocol):
    """Suggests a reading order for a set of pages."""

    async def rank(self, descriptors: list[PageDescriptor]) -> list[int]:
        """Return page ``temp_id`` values in reading order. May raise."""
        ...


class Summarizer(Protocol):
    """Writes a summary of the document text."""

    async def summarize(self, text: str, language: str) -> str:
        ...


class DocumentWriter(Protocol):
    """Serializes an element tree to a binary document."""

    extension: str

    def render(self, tree: DocumentTree) -> bytes:
        ...
