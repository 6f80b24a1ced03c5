"""Tests for DOCX serialization, read back with python-docx."""

import io

import pytest
from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Pt

from conftest import encode_png, random_image
from scan2doc.errors import AssemblyError
from scan2doc.models import (
    DocumentTree,
    HeadingElement,
    ImageElement,
    ParagraphElement,
    ParagraphStyle,
)
from scan2doc.services.docx_writer import CAPTION_COLOR, ERROR_COLOR, DocxWriter


def render(*elements) -> Document:
    data = DocxWriter().render(DocumentTree(elements=tuple(elements)))
    return Document(io.BytesIO(data))


class TestDocxWriter:
    """Tests for DocxWriter."""

    def test_empty_document(self):
        """An empty tree still produces a valid document."""
        document = render()
        assert [p.text for p in document.paragraphs if p.text] == []

    def test_headings(self):
        document = render(
            HeadingElement(text="SUMMARY", level=1, centered=True),
            HeadingElement(text="Methods", level=2),
        )
        summary, methods = [p for p in document.paragraphs if p.text]

        assert summary.style.name == "Heading 1"
        assert summary.alignment == WD_ALIGN_PARAGRAPH.CENTER
        assert methods.style.name == "Heading 2"
        assert methods.paragraph_format.keep_with_next is True

    def test_paragraph_styles(self):
        document = render(
            ParagraphElement(text="Body text."),
            ParagraphElement(text="A. Author", style=ParagraphStyle.AUTHOR),
            ParagraphElement(text="[Table]", style=ParagraphStyle.CAPTION),
            ParagraphElement(text="[Display error: x]", style=ParagraphStyle.ERROR),
            ParagraphElement(text="Summary.", style=ParagraphStyle.SUMMARY),
        )
        body, author, caption, error, summary = [p for p in document.paragraphs if p.text]

        assert body.text == "Body text."
        assert body.alignment == WD_ALIGN_PARAGRAPH.JUSTIFY
        assert author.runs[0].bold and author.runs[0].italic
        assert author.alignment == WD_ALIGN_PARAGRAPH.CENTER
        assert caption.runs[0].italic
        assert caption.runs[0].font.color.rgb == CAPTION_COLOR
        assert error.runs[0].font.color.rgb == ERROR_COLOR
        assert summary.runs[0].font.size == Pt(12)
        assert summary.paragraph_format.line_spacing == 1.5

    def test_image_embedded(self):
        png = encode_png(random_image(90, 50))
        document = render(ImageElement(data=png, width=90, height=50))

        (shape,) = document.inline_shapes
        assert shape.width == Pt(90)
        assert shape.height == Pt(50)

    def test_invalid_image_raises_assembly_error(self):
        with pytest.raises(AssemblyError):
            DocxWriter().render(
                DocumentTree(elements=(ImageElement(data=b"not an image", width=10, height=10),))
            )

    def test_extension(self):
        assert DocxWriter.extension == ".docx"
