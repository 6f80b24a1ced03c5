"""Ingestion Stage - Group raw files into folder batches.

Files are grouped by their immediate parent directory, filtered to
images and PDFs, given deterministic identifiers and naturally sorted.
"""

import logging
import mimetypes
import re
from pathlib import Path
from typing import Iterable, Optional

from scan2doc.models import FolderBatch, RawFile, SourceItem, SourceKind
from scan2doc.pipeline.natural_sort import natural_sort

log = logging.getLogger(__name__)

ROOT_FOLDER_NAME = "Root"

_IMAGE_EXTENSIONS = re.compile(r"\.(jpe?g|png|tiff?|bmp)$", re.IGNORECASE)
_PDF_EXTENSION = re.compile(r"\.pdf$", re.IGNORECASE)


def classify(name: str, mime_type: Optional[str] = None) -> Optional[SourceKind]:
    """Return the source kind for an accepted file, or None to exclude it.

    A PDF match wins over an image match.
    """
    mime_type = mime_type or ""
    if mime_type == "application/pdf" or _PDF_EXTENSION.search(name):
        return SourceKind.PDF
    if mime_type.startswith("image/") or _IMAGE_EXTENSIONS.search(name):
        return SourceKind.IMAGE
    return None


def folder_name_for(relative_path: str) -> str:
    """Immediate parent directory of a relative path, or the root group name."""
    parts = relative_path.replace("\\", "/").split("/")
    return parts[-2] if len(parts) > 1 else ROOT_FOLDER_NAME


def make_item_id(folder_name: str, name: str, size: int) -> str:
    """Deterministic identifier from folder, file name and byte size."""
    return f"{folder_name}_{name}_{size}"


def ingest(files: Iterable[RawFile]) -> list[FolderBatch]:
    """Group raw files into folder batches.

    Files with the same (name, size) in one folder collapse to a single
    entry; the later file wins. Folders keep the order in which they
    were first seen.
    """
    groups: dict[str, dict[str, SourceItem]] = {}

    for raw in files:
        kind = classify(raw.name, raw.mime_type)
        if kind is None:
            log.debug("Skipping unsupported file %s", raw.relative_path)
            continue

        folder_name = folder_name_for(raw.relative_path)
        item = SourceItem(
            id=make_item_id(folder_name, raw.name, len(raw.data)),
            name=raw.name,
            path=raw.relative_path,
            data=raw.data,
            kind=kind,
        )
        groups.setdefault(folder_name, {})[item.id] = item

    return [
        FolderBatch(
            folder_name=folder_name,
            items=tuple(natural_sort(items.values(), key=lambda i: i.name)),
        )
        for folder_name, items in groups.items()
    ]


def scan_directory(root: Path) -> list[RawFile]:
    """Read every file under ``root`` as a raw ingestion input.

    Relative paths start with the root directory name, so files directly
    inside ``root`` are grouped under it.
    """
    root = Path(root).resolve()
    if not root.is_dir():
        raise NotADirectoryError(f"Input directory not found: {root}")

    raw_files = []
    for path in sorted(p for p in root.rglob("*") if p.is_file()):
        relative = Path(root.name) / path.relative_to(root)
        mime_type, _ = mimetypes.guess_type(path.name)
        raw_files.append(
            RawFile(relative_path=relative.as_posix(), data=path.read_bytes(), mime_type=mime_type)
        )
    return raw_files
