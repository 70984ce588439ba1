"""Combined cover letter PDF rendered from the planned page contents."""

from typing import List, Optional, Sequence

from fpdf import FPDF
from fpdf.enums import XPos, YPos

from visa_assistant.schemas.layout import FinancialData, PageContent
from visa_assistant.services.rendering.sanitize import sanitize_for_pdf
from visa_assistant.utils.logging import get_logger

LOGGER = get_logger(__name__)

PAGE_FORMAT = "Letter"
MARGIN = 72
FONT_FAMILY = "Times"
BODY_SIZE = 12
LINE_HEIGHT = 19
ROW_INDENT = 20


class CombinedDocument(FPDF):
    """Letter-size Times document with a 1 inch margin on every side."""

    def __init__(self, font_family: str = FONT_FAMILY, font_size: int = BODY_SIZE, margin: float = MARGIN):
        super().__init__(orientation="P", unit="pt", format=PAGE_FORMAT)
        self.font_family_name = font_family
        self.body_size = font_size
        self.set_margins(margin, margin, margin)
        self.set_auto_page_break(auto=True, margin=margin)

    def write_line(self, text: str, style: str = "", size: Optional[int] = None, align: str = "L", height: float = LINE_HEIGHT):
        self.set_font(self.font_family_name, style, size or self.body_size)
        self.cell(0, height, sanitize_for_pdf(text), align=align, new_x=XPos.LMARGIN, new_y=YPos.NEXT)

    def write_paragraph(self, text: str, align: str = "J", spacing: float = 14):
        self.set_font(self.font_family_name, "", self.body_size)
        self.multi_cell(0, LINE_HEIGHT, sanitize_for_pdf(text), align=align, new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        self.ln(spacing)

    def write_row(self, label: str, value: str, bold: bool = False):
        self.set_font(self.font_family_name, "B" if bold else "", self.body_size)
        width = self.w - self.l_margin - self.r_margin - ROW_INDENT
        self.set_x(self.l_margin + ROW_INDENT)
        self.cell(width / 2, LINE_HEIGHT, sanitize_for_pdf(label))
        self.cell(width / 2, LINE_HEIGHT, sanitize_for_pdf(value), align="R", new_x=XPos.LMARGIN, new_y=YPos.NEXT)


class CombinedPdfRenderer:
    """Draws each ``PageContent`` on its own page.

    Args:
        font_family: Core font family
        font_size: Body text size in points
        margin: Page margin in points
    """

    def __init__(self, font_family: str = FONT_FAMILY, font_size: int = BODY_SIZE, margin: float = MARGIN):
        self.font_family = font_family
        self.font_size = font_size
        self.margin = margin

    def render(self, pages: Sequence[PageContent]) -> bytes:
        """Render pages to PDF bytes."""
        pdf = CombinedDocument(self.font_family, self.font_size, self.margin)
        for page in pages:
            pdf.add_page()
            self._draw_page(pdf, page)
        content = bytes(pdf.output())
        LOGGER.info(
            f"Rendered combined PDF with {len(pages)} pages",
            extra={"pages": len(pages), "bytes": len(content)},
        )
        return content

    def _draw_page(self, pdf: CombinedDocument, page: PageContent) -> None:
        if page.letterhead:
            self._draw_letterhead(pdf, page.letterhead_title)

        if page.cover_title and page.letterhead_title != "COVER LETTER":
            pdf.write_line("COVER LETTER", style="B", size=16, height=24)
            pdf.ln(8)

        if page.cover_header:
            pdf.set_font(pdf.font_family_name, "", pdf.body_size)
            pdf.multi_cell(0, 18, sanitize_for_pdf(page.cover_header), align="L", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
            pdf.ln(20)

        for paragraph in page.cover_body or []:
            pdf.write_paragraph(paragraph, spacing=20)

        if page.financial is not None:
            self._draw_financial(pdf, page.financial)

        if page.personal_heading and page.letterhead_title != "PERSONAL STATEMENT":
            pdf.ln(20)
            pdf.write_line("PERSONAL STATEMENT", style="B", size=14)
            pdf.ln(12)

        for paragraph in page.personal_paragraphs or []:
            pdf.write_paragraph(paragraph)

        if page.signature is not None:
            self._draw_signature(pdf, page.signature)

        if page.exhibit_heading and page.letterhead_title != "EXHIBIT LIST":
            pdf.ln(20)
            pdf.write_line("EXHIBIT LIST", style="B", size=14)
            pdf.ln(12)

        for item in page.exhibit_items or []:
            pdf.write_line(item, height=18)

    def _draw_letterhead(self, pdf: CombinedDocument, title: Optional[str]) -> None:
        pdf.write_line(title or "", style="B", size=14, height=20)
        y = pdf.get_y() + 4
        pdf.set_draw_color(26, 26, 26)
        pdf.set_line_width(1)
        pdf.line(pdf.l_margin, y, pdf.w - pdf.r_margin, y)
        pdf.set_y(y + 12)

    def _draw_financial(self, pdf: CombinedDocument, data: FinancialData) -> None:
        req = data.financial_requirements
        res = data.available_resources
        pdf.ln(16)

        pdf.write_line("Financial Requirements:", style="B")
        rows = [
            ("Tuition:", req.tuition, False),
            ("Living Expenses:", req.living_expenses, False),
            ("Total Required:", req.total_required, True),
        ]
        self._draw_rows(pdf, rows)

        pdf.ln(12)
        pdf.write_line("Available Financial Resources:", style="B")
        rows = []
        if res.personal_funds is not None:
            rows.append(("Personal funds:", res.personal_funds, False))
        if res.sponsor_name and res.sponsor_amount:
            rows.append((f"Financial sponsorship by {res.sponsor_name}:", res.sponsor_amount, False))
        rows.append(("Total Available:", res.total_available, True))
        self._draw_rows(pdf, rows)
        pdf.ln(16)

    @staticmethod
    def _draw_rows(pdf: CombinedDocument, rows: List[tuple]) -> None:
        for label, value, bold in rows:
            if value:
                pdf.write_row(label, f"USD ${value}", bold=bold)

    def _draw_signature(self, pdf: CombinedDocument, name: str) -> None:
        pdf.ln(60)
        y = pdf.get_y()
        pdf.set_draw_color(0, 0, 0)
        pdf.set_line_width(0.75)
        pdf.line(pdf.l_margin, y, pdf.l_margin + 216, y)
        pdf.set_y(y + 4)
        pdf.write_line("Signature", size=10, height=14)
        if name:
            pdf.write_line(name, height=18)
