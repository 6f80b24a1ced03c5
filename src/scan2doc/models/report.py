"""Per-item outcomes and per-folder reports."""

from typing import Optional

from pydantic import BaseModel, Field

from scan2doc.errors import Scan2DocError


class ItemOutcome(BaseModel):
    """Result of extracting and analysing one source item."""

    item_id: str
    name: str
    ok: bool
    pages: int = Field(default=0, ge=0)
    error_kind: Optional[str] = None
    error_message: Optional[str] = None

    @classmethod
    def success(cls, item_id: str, name: str, pages: int) -> "ItemOutcome":
        return cls(item_id=item_id, name=name, ok=True, pages=pages)

    @classmethod
    def failure(cls, item_id: str, name: str, error: Exception) -> "ItemOutcome":
        kind = error.kind if isinstance(error, Scan2DocError) else type(error).__name__
        return cls(
            item_id=item_id,
            name=name,
            ok=False,
            error_kind=kind,
            error_message=str(error),
        )


class FolderReport(BaseModel):
    """Aggregated outcome of processing one folder."""

    folder_name: str
    outcomes: list[ItemOutcome] = Field(default_factory=list)
    pages_analysed: int = 0
    reorder_strategy: Optional[str] = Field(
        None, description="'hint', 'fallback' or 'passthrough'"
    )
    summary_produced: bool = False
    crop_failures: int = 0
    artifact_name: Optional[str] = None
    error: Optional[str] = None

    @property
    def failed_items(self) -> list[ItemOutcome]:
        return [o for o in self.outcomes if not o.ok]

    @property
    def succeeded(self) -> bool:
        return self.error is None and self.artifact_name is not None
