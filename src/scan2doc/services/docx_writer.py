"""DOCX serialization of the assembled element tree (python-docx)."""

import io
import logging

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Pt, RGBColor

from scan2doc.errors import AssemblyError
from scan2doc.models import (
    DocumentTree,
    HeadingElement,
    ImageElement,
    ParagraphElement,
    ParagraphStyle,
)

log = logging.getLogger(__name__)

CAPTION_COLOR = RGBColor(0x66, 0x66, 0x66)
SEPARATOR_COLOR = RGBColor(0x99, 0x99, 0x99)
ERROR_COLOR = RGBColor(0xFF, 0x00, 0x00)


class DocxWriter:
    """Serialization collaborator producing Word documents."""

    extension = ".docx"

    def render(self, tree: DocumentTree) -> bytes:
        """Serialize the tree.

        Raises:
            AssemblyError: If python-docx fails to build or save the document.
        """
        try:
            document = Document()
            for element in tree.elements:
                if isinstance(element, HeadingElement):
                    self._add_heading(document, element)
                elif isinstance(element, ImageElement):
                    self._add_image(document, element)
                else:
                    self._add_paragraph(document, element)

            buffer = io.BytesIO()
            document.save(buffer)
        except Exception as exc:
            raise AssemblyError(f"DOCX serialization failed: {exc}") from exc
        return buffer.getvalue()

    def _add_heading(self, document, element: HeadingElement) -> None:
        paragraph = document.add_heading(element.text, level=element.level)
        paragraph.paragraph_format.keep_with_next = True
        paragraph.paragraph_format.space_before = Pt(20 if element.level == 1 else 15)
        paragraph.paragraph_format.space_after = Pt(10)
        if element.centered:
            paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER

    def _add_image(self, document, element: ImageElement) -> None:
        paragraph = document.add_paragraph()
        paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
        paragraph.paragraph_format.space_before = Pt(10)
        paragraph.paragraph_format.space_after = Pt(5)
        paragraph.add_run().add_picture(
            io.BytesIO(element.data), width=Pt(element.width), height=Pt(element.height)
        )

    def _add_paragraph(self, document, element: ParagraphElement) -> None:
        paragraph = document.add_paragraph()
        run = paragraph.add_run(element.text)
        fmt = paragraph.paragraph_format
        style = element.style

        if style == ParagraphStyle.AUTHOR:
            run.bold = True
            run.italic = True
            paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
            fmt.space_after = Pt(10)
        elif style == ParagraphStyle.CAPTION:
            run.italic = True
            run.font.color.rgb = CAPTION_COLOR
            paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
            fmt.space_after = Pt(15)
        elif style == ParagraphStyle.ERROR:
            run.font.color.rgb = ERROR_COLOR
        elif style == ParagraphStyle.SEPARATOR:
            run.font.color.rgb = SEPARATOR_COLOR
            paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
            fmt.space_after = Pt(20)
        elif style == ParagraphStyle.SUMMARY:
            run.font.size = Pt(12)
            paragraph.alignment = WD_ALIGN_PARAGRAPH.JUSTIFY
            fmt.line_spacing = 1.5
            fmt.space_after = Pt(30)
        else:
            paragraph.alignment = WD_ALIGN_PARAGRAPH.JUSTIFY
            fmt.line_spacing = 1.15
            fmt.space_after = Pt(10)
