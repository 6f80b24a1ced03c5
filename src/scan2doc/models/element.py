"""Output element tree handed to the document writer."""

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import Field

from .base import FrozenModel


class ParagraphStyle(str, Enum):
    """Visual styles of text elements."""

    BODY = "body"  # justified, standard line spacing
    AUTHOR = "author"  # centered, bold italic
    CAPTION = "caption"
    ERROR = "error"
    SEPARATOR = "separator"
    SUMMARY = "summary"  # justified, wide line spacing


class HeadingElement(FrozenModel):
    kind: Literal["heading"] = "heading"
    text: str
    level: int = Field(..., ge=1, le=3)
    centered: bool = False


class ParagraphElement(FrozenModel):
    kind: Literal["paragraph"] = "paragraph"
    text: str
    style: ParagraphStyle = ParagraphStyle.BODY


class ImageElement(FrozenModel):
    """Embedded PNG, sized in display points."""

    kind: Literal["image"] = "image"
    data: bytes = Field(repr=False)
    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)


DocumentElement = Annotated[
    Union[HeadingElement, ParagraphElement, ImageElement], Field(discriminator="kind")
]


class DocumentTree(FrozenModel):
    """Ordered elements of one output document."""

    elements: tuple[DocumentElement, ...] = ()

    def texts(self) -> list[str]:
        """Text of every text-bearing element, in order."""
        return [e.text for e in self.elements if not isinstance(e, ImageElement)]
