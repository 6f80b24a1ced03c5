"""Pytest configuration and fixtures."""

import asyncio
from typing import Optional

import cv2
import numpy as np
import pytest

from scan2doc.models import (
    AssemblyPage,
    DocumentTree,
    PageAnalysis,
    SourceItem,
    SourceKind,
    parse_block,
)


def encode_png(image: np.ndarray) -> bytes:
    ok, encoded = cv2.imencode(".png", image)
    assert ok
    return encoded.tobytes()


def random_image(width: int, height: int, seed: int = 0) -> np.ndarray:
    """Noise image so rotations and crops are distinguishable."""
    rng = np.random.default_rng(seed)
    return rng.integers(0, 256, size=(height, width, 3), dtype=np.uint8)


def make_page(
    name: str,
    blocks: list[dict],
    page_number: Optional[int] = None,
    image: Optional[bytes] = None,
) -> AssemblyPage:
    return AssemblyPage(
        name=name,
        analysis=PageAnalysis(
            page_number=page_number,
            blocks=[parse_block(b) for b in blocks],
        ),
        image=image,
        mime_type="image/png" if image else None,
        source_kind=SourceKind.IMAGE,
    )


def make_item(
    name: str,
    data: bytes,
    folder: str = "scans",
    kind: SourceKind = SourceKind.IMAGE,
    rotation: int = 0,
) -> SourceItem:
    return SourceItem(
        id=f"{folder}_{name}_{len(data)}",
        name=name,
        path=f"{folder}/{name}",
        data=data,
        kind=kind,
        rotation=rotation,
    )


class StubAnalyzer:
    """Returns queued analyses in call order; exceptions in the queue are raised."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    async def analyze(self, image: bytes, mime_type: str, language: str) -> PageAnalysis:
        self.calls.append((image, mime_type, language))
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response


class StubRanker:
    def __init__(self, order=None, error: Optional[Exception] = None):
        self.order = order
        self.error = error
        self.calls = []

    async def rank(self, descriptors):
        self.calls.append(descriptors)
        if self.error is not None:
            raise self.error
        return self.order


class StubSummarizer:
    def __init__(self, text: str = "Summary text.", error: Optional[Exception] = None):
        self.text = text
        self.error = error
        self.calls = []

    async def summarize(self, text: str, language: str) -> str:
        self.calls.append((text, language))
        if self.error is not None:
            raise self.error
        return self.text


class StubWriter:
    extension = ".docx"

    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.trees: list[DocumentTree] = []

    def render(self, tree: DocumentTree) -> bytes:
        self.trees.append(tree)
        if self.error is not None:
            raise self.error
        return b"DOCX"


def run(coro):
    """Drive a coroutine to completion from a plain test."""
    return asyncio.run(coro)


@pytest.fixture
def png_image():
    """A 200x100 noise PNG and its decoded array."""
    image = random_image(200, 100)
    return encode_png(image), image


@pytest.fixture
def output_dir(tmp_path):
    """Create a temporary output directory."""
    out_dir = tmp_path / "output"
    out_dir.mkdir()
    return out_dir
