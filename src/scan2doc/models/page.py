"""Page-level models: analysis results and assembly inputs."""

from typing import Optional

from pydantic import ConfigDict, Field

from .base import FrozenModel, SourceKind
from .block import ContentBlock


class PageAnalysis(FrozenModel):
    """Structured layout of one page as returned by the analysis service."""

    page_number: Optional[int] = Field(None, ge=1, description="Page number printed on the page")
    blocks: list[ContentBlock] = Field(default_factory=list)
    has_continuing_sentence: bool = Field(
        default=False, description="Final sentence looks cut off"
    )


class PageRaster(FrozenModel):
    """One raster produced by the page extractor."""

    name: str = Field(..., description="Display name, page-qualified for PDF pages")
    data: bytes
    mime_type: str
    source_kind: SourceKind
    page_index: Optional[int] = Field(None, description="1-indexed page within a PDF")


class AssemblyPage(FrozenModel):
    """
    A page ready for ordering and assembly.

    Carries the raster that was analysed so crop blocks can be cut
    from the same pixels the analysis saw.
    """

    name: str
    analysis: PageAnalysis
    image: Optional[bytes] = None
    mime_type: Optional[str] = None
    source_kind: SourceKind = SourceKind.IMAGE

    @property
    def page_number(self) -> Optional[int]:
        return self.analysis.page_number

    @property
    def blocks(self) -> list[ContentBlock]:
        return self.analysis.blocks


class PageDescriptor(FrozenModel):
    """Compact page summary sent to the ranking service."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    temp_id: int = Field(..., ge=0, alias="tempId")
    file_name: str = Field(..., alias="fileName")
    detected_page_num: Optional[int] = Field(None, alias="detectedPageNum")
    first_sentence: str = Field("", alias="firstSentence")
    last_sentence: str = Field("", alias="lastSentence")

    def to_request(self) -> dict:
        """Wire form with camelCase keys."""
        return self.model_dump(by_alias=True)
