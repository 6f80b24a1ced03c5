"""Source file and folder batch models."""

from typing import Literal, Optional

from pydantic import Field

from .base import FolderStatus, FrozenModel, SourceKind

Rotation = Literal[0, 90, 180, 270]

_FORWARD_TRANSITIONS = {
    FolderStatus.PENDING: {FolderStatus.PROCESSING},
    FolderStatus.PROCESSING: {FolderStatus.COMPLETED, FolderStatus.ERROR},
    FolderStatus.COMPLETED: set(),
    FolderStatus.ERROR: set(),
}


class RawFile(FrozenModel):
    """A file as handed over by the surrounding application."""

    relative_path: str = Field(..., description="Path including the selected folder name")
    data: bytes
    mime_type: Optional[str] = None

    @property
    def name(self) -> str:
        return self.relative_path.replace("\\", "/").split("/")[-1]


class SourceItem(FrozenModel):
    """
    One ingested input file.

    Rotation and inclusion belong to the surrounding application; the
    pipeline only reads them.
    """

    id: str = Field(..., description="folder_name_size, unique within a run")
    name: str
    path: str
    data: bytes = Field(repr=False)
    kind: SourceKind
    included: bool = True
    rotation: Rotation = 0

    @property
    def size(self) -> int:
        return len(self.data)

    def with_rotation(self, degrees: int) -> "SourceItem":
        """Return a copy with a new pending rotation (any multiple of 90)."""
        normalized = degrees % 360
        if normalized not in (0, 90, 180, 270):
            raise ValueError(f"Rotation must be a multiple of 90, got {degrees}")
        return self.model_copy(update={"rotation": normalized})

    def with_included(self, included: bool) -> "SourceItem":
        return self.model_copy(update={"included": included})


class FolderBatch(FrozenModel):
    """
    Unit of work: one output document per input folder.

    Immutable; every state change produces a new snapshot via
    ``transition``.
    """

    folder_name: str
    items: tuple[SourceItem, ...] = ()
    status: FolderStatus = FolderStatus.PENDING
    artifact: Optional[bytes] = Field(None, repr=False)
    artifact_name: Optional[str] = None
    phase: Optional[str] = Field(None, description="Current phase while processing")

    @property
    def included_items(self) -> list[SourceItem]:
        return [item for item in self.items if item.included]

    @property
    def is_terminal(self) -> bool:
        return not _FORWARD_TRANSITIONS[self.status]

    def transition(self, status: FolderStatus, **updates) -> "FolderBatch":
        """Move to a new status, rejecting anything but a forward step."""
        if status not in _FORWARD_TRANSITIONS[self.status]:
            raise ValueError(
                f"Invalid transition for folder {self.folder_name!r}: "
                f"{self.status.value} -> {status.value}"
            )
        return self.model_copy(update={"status": status, "phase": None, **updates})

    def at_phase(self, phase: str) -> "FolderBatch":
        """Snapshot marking a phase boundary of a processing folder."""
        if self.status != FolderStatus.PROCESSING:
            raise ValueError(f"Folder {self.folder_name!r} is not processing")
        return self.model_copy(update={"phase": phase})

    def replace_item(self, item: SourceItem) -> "FolderBatch":
        """Return a copy with the item of the same id replaced."""
        if all(existing.id != item.id for existing in self.items):
            raise KeyError(item.id)
        items = tuple(item if existing.id == item.id else existing for existing in self.items)
        return self.model_copy(update={"items": items})

    def find(self, name: str) -> Optional[SourceItem]:
        """Look up an item by display name."""
        for item in self.items:
            if item.name == name:
                return item
        return None
