"""
Render picturebook books into printable flip-book PDFs.
"""

from __future__ import annotations

import base64
import binascii
import logging
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Optional

import requests
from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_JUSTIFY
from reportlab.lib.pagesizes import A4, LETTER
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.units import inch, mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas
from reportlab.platypus import Frame, Paragraph

from picturebook.pipeline import Book, BookPage

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "My Picture Book"


@dataclass(frozen=True)
class PageLayoutConfig:
    text_background: colors.Color
    image_background: colors.Color
    cover_background: colors.Color
    accent_color: colors.Color
    text_color: colors.Color
    caption_color: colors.Color


DEFAULT_LAYOUT = PageLayoutConfig(
    text_background=colors.HexColor("#FFF8EC"),
    image_background=colors.HexColor("#EEF6F0"),
    cover_background=colors.HexColor("#3E7C6B"),
    accent_color=colors.HexColor("#F2B84B"),
    text_color=colors.HexColor("#2E2A24"),
    caption_color=colors.HexColor("#5A5F52"),
)


PAGE_SIZES = {
    "a4": A4,
    "letter": LETTER,
    "square": (8 * inch, 8 * inch),
}


class StorybookPDFBuilder:
    """
    Render a :class:`Book` into a printable PDF.

    The builder creates a cover page followed by one text page and one illustration
    page for every book page, so the printed result reads like an open flip-book.
    """

    def __init__(
        self,
        *,
        page_size: tuple[float, float] = PAGE_SIZES["square"],
        margin_mm: float = 18.0,
        layout: PageLayoutConfig = DEFAULT_LAYOUT,
        request_timeout: float = 30.0,
        body_font: str = "Helvetica",
        heading_font: str = "Helvetica-Bold",
    ) -> None:
        self.page_size = page_size
        self.margin = margin_mm * mm
        self.layout = layout
        self.request_timeout = request_timeout

        self.body_font = body_font
        self.heading_font = heading_font

        self.title_style = ParagraphStyle(
            name="BookTitle",
            fontName="Helvetica-Bold",
            fontSize=28,
            leading=32,
            alignment=TA_CENTER,
            textColor=colors.white,
            spaceAfter=12,
        )
        self.subtitle_style = ParagraphStyle(
            name="BookSubtitle",
            fontName="Helvetica",
            fontSize=16,
            leading=20,
            alignment=TA_CENTER,
            textColor=colors.white,
            spaceAfter=18,
        )
        self.heading_style = ParagraphStyle(
            name="PageHeading",
            fontName=self.heading_font,
            fontSize=22,
            leading=26,
            alignment=TA_CENTER,
            textColor=self.layout.text_color,
            spaceAfter=14,
        )
        self.body_style = ParagraphStyle(
            name="Body",
            fontName=self.body_font,
            fontSize=18,
            leading=27,
            alignment=TA_JUSTIFY,
            textColor=self.layout.text_color,
            spaceAfter=16,
        )
        self.footer_style = ParagraphStyle(
            name="Footer",
            fontName="Helvetica-Oblique",
            fontSize=10,
            leading=12,
            alignment=TA_CENTER,
            textColor=self.layout.caption_color,
        )

    def build_from_yaml(
        self,
        book_path: Path | str,
        output_path: Path | str,
        *,
        title: str = DEFAULT_TITLE,
    ) -> None:
        book = Book.from_yaml(book_path)
        self.build(book, output_path, title=title)

    def build(self, book: Book, output_path: Path | str, *, title: str = DEFAULT_TITLE) -> None:
        output_file = Path(output_path)
        output_file.parent.mkdir(parents=True, exist_ok=True)

        pdf = canvas.Canvas(str(output_file), pagesize=self.page_size)
        width, height = self.page_size

        self._draw_cover_page(pdf, title, len(book.pages), width, height)

        for number, page in enumerate(book.pages, start=1):
            self._draw_text_page(pdf, page, number, width, height)
            self._draw_image_page(pdf, page, number, width, height)

        pdf.save()
        logger.info("Rendered %d page(s) to %s", len(book.pages), output_file)

    # ------------------------------------------------------------------ cover rendering

    def _draw_cover_page(
        self,
        pdf: canvas.Canvas,
        title: str,
        page_count: int,
        width: float,
        height: float,
    ) -> None:
        pdf.setFillColor(self.layout.cover_background)
        pdf.rect(0, 0, width, height, stroke=0, fill=1)

        frame = Frame(
            self.margin,
            self.margin,
            width - 2 * self.margin,
            height - 2 * self.margin,
            showBoundary=0,
        )
        frame.addFromList(
            [
                Paragraph(title, self.title_style),
                Paragraph(f"An illustrated story in {page_count} pages", self.subtitle_style),
            ],
            pdf,
        )
        pdf.showPage()

    # ------------------------------------------------------------------ text pages

    def _draw_text_page(
        self,
        pdf: canvas.Canvas,
        page: BookPage,
        number: int,
        width: float,
        height: float,
    ) -> None:
        pdf.setFillColor(self.layout.text_background)
        pdf.rect(0, 0, width, height, stroke=0, fill=1)

        bubble_width = width - (self.margin * 2 * 0.6)
        bubble_height = height - (self.margin * 2 * 0.6)
        bubble_x = (width - bubble_width) / 2
        bubble_y = (height - bubble_height) / 2

        pdf.saveState()
        pdf.setFillColor(self._lighten(self.layout.accent_color, 0.75))
        pdf.roundRect(bubble_x, bubble_y, bubble_width, bubble_height, 26, stroke=0, fill=1)
        pdf.restoreState()

        content_width = bubble_width - (self.margin * 2 * 0.3)
        content_height = bubble_height - (self.margin * 2 * 0.3)
        frame = Frame(
            bubble_x + (bubble_width - content_width) / 2,
            bubble_y + (bubble_height - content_height) / 2,
            content_width,
            content_height,
            showBoundary=0,
        )

        paragraphs = [Paragraph(f"Page {number}", self.heading_style)]
        paragraphs.extend(
            Paragraph(block.replace("\n", "<br/>"), self.body_style)
            for block in filter(None, (chunk.strip() for chunk in page.generated_text.split("\n\n")))
        )
        frame.addFromList(paragraphs, pdf)
        pdf.showPage()

    # ------------------------------------------------------------------ image pages

    def _draw_image_page(
        self,
        pdf: canvas.Canvas,
        page: BookPage,
        number: int,
        width: float,
        height: float,
    ) -> None:
        pdf.setFillColor(self.layout.image_background)
        pdf.rect(0, 0, width, height, stroke=0, fill=1)

        image_reader = self._load_image(page.image_url) if page.image_url else None

        if image_reader is not None:
            img_width, img_height = image_reader.getSize()
            scale = min(width / img_width, height / img_height)
            draw_width = img_width * scale
            draw_height = img_height * scale
            pdf.drawImage(
                image_reader,
                (width - draw_width) / 2,
                (height - draw_height) / 2,
                draw_width,
                draw_height,
                preserveAspectRatio=True,
                mask="auto",
            )

        self._draw_footer(pdf, f"Illustration for Page {number}", width)
        pdf.showPage()

    # ------------------------------------------------------------------ helpers

    def _draw_footer(self, pdf: canvas.Canvas, text: str, width: float) -> None:
        footer_frame = Frame(
            self.margin,
            10,
            width - 2 * self.margin,
            20,
            showBoundary=0,
        )
        footer_frame.addFromList([Paragraph(text, self.footer_style)], pdf)

    def _load_image(self, url: str) -> Optional[ImageReader]:
        if url.startswith("data:"):
            data = decode_data_uri(url)
            return ImageReader(BytesIO(data)) if data is not None else None
        return self._fetch_image(url)

    def _fetch_image(self, url: str) -> Optional[ImageReader]:
        try:
            response = requests.get(url, timeout=self.request_timeout)
            response.raise_for_status()
        except requests.RequestException:
            logger.warning("Could not download illustration from %s", url)
            return None
        return ImageReader(BytesIO(response.content))

    @staticmethod
    def _lighten(color: colors.Color, amount: float = 0.5) -> colors.Color:
        amount = max(0.0, min(amount, 1.0))
        r = color.red + (1 - color.red) * amount
        g = color.green + (1 - color.green) * amount
        b = color.blue + (1 - color.blue) * amount
        return colors.Color(r, g, b)

def decode_data_uri(uri: str) -> bytes | None:
    """Return the payload of a base64 ``data:`` URI, or ``None`` if it is malformed."""
    header, _, payload = uri.partition(",")
    if not header.startswith("data:") or not header.endswith(";base64") or not payload:
        return None
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        return None
