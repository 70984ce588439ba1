"""DOCX application package export."""

from datetime import date
from io import BytesIO
from typing import Optional, Sequence

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Inches, Pt

from visa_assistant.database.models import GeneratedDocument
from visa_assistant.schemas.aggregation import AggregatedApplicationData
from visa_assistant.utils.dates import long_date
from visa_assistant.utils.logging import get_logger

LOGGER = get_logger(__name__)

FONT_NAME = "Times New Roman"

DOCUMENT_TITLES = {
    "cover_letter": "Cover Letter",
    "personal_statement": "Personal Statement",
    "program_justification": "Program Justification",
    "ties_to_country": "Ties to Home Country",
    "sponsor_letter": "Sponsor Letter",
    "exhibit_list": "Exhibit List",
}


class DocxPackageBuilder:
    """Builds the application package: title page, applicant details, generated letters and uploads."""

    def build(
        self,
        data: AggregatedApplicationData,
        generated: Sequence[GeneratedDocument],
        today: Optional[date] = None,
    ) -> bytes:
        doc = self._create_document()
        self._add_title_page(doc, data, today or date.today())
        self._add_applicant_table(doc, data)

        for item in generated:
            doc.add_page_break()
            self._add_heading(doc, DOCUMENT_TITLES.get(item.document_type, item.document_type.replace("_", " ").title()))
            version = doc.add_paragraph()
            run = version.add_run(f"Version {item.version}")
            run.italic = True
            run.font.size = Pt(10)
            for paragraph in (p.strip() for p in (item.content or "").split("\n\n")):
                if paragraph:
                    doc.add_paragraph(paragraph)

        self._add_uploads_table(doc, data)

        buffer = BytesIO()
        doc.save(buffer)
        content = buffer.getvalue()
        LOGGER.info(
            "Built DOCX application package",
            extra={"application_id": data.application.id, "generated_documents": len(generated), "bytes": len(content)},
        )
        return content

    @staticmethod
    def _create_document() -> Document:
        doc = Document()
        for section in doc.sections:
            section.top_margin = Inches(1)
            section.bottom_margin = Inches(1)
            section.left_margin = Inches(1)
            section.right_margin = Inches(1)
        style = doc.styles["Normal"]
        style.font.name = FONT_NAME
        style.font.size = Pt(12)
        return doc

    @staticmethod
    def _add_heading(doc: Document, text: str, level: int = 1) -> None:
        heading = doc.add_heading(text, level=level)
        for run in heading.runs:
            run.font.name = FONT_NAME

    def _add_title_page(self, doc: Document, data: AggregatedApplicationData, today: date) -> None:
        title = doc.add_paragraph()
        title.alignment = WD_ALIGN_PARAGRAPH.CENTER
        run = title.add_run("Visa Application Package")
        run.bold = True
        run.font.size = Pt(20)

        subtitle = doc.add_paragraph()
        subtitle.alignment = WD_ALIGN_PARAGRAPH.CENTER
        subtitle.add_run(f"Form I-539: Change of Status to {data.application.visa_type or 'F-1'}")

        for line in (data.user.full_name or "", f"Prepared on {long_date(today)}"):
            if line:
                paragraph = doc.add_paragraph(line)
                paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
        doc.add_page_break()

    def _add_applicant_table(self, doc: Document, data: AggregatedApplicationData) -> None:
        self._add_heading(doc, "Applicant Information")
        passport = data.documents.passport
        i20 = data.documents.i20
        address = data.application.current_address
        rows = [
            ("Name", data.user.full_name or (passport.name if passport else None) or ""),
            ("Email", data.user.email or ""),
            ("Country", data.application.country),
            ("Visa Type", data.application.visa_type),
            ("Passport Number", (passport.passport_number if passport else None) or ""),
            ("School", (i20.school_name if i20 else None) or ""),
            ("SEVIS ID", (i20.sevis_id if i20 else None) or ""),
            ("Address", ", ".join(p for p in (
                address.street if address else "",
                address.city if address else "",
                address.state if address else "",
                address.zip_code if address else "",
            ) if p)),
        ]
        table = doc.add_table(rows=0, cols=2)
        table.style = "Table Grid"
        for label, value in rows:
            cells = table.add_row().cells
            cells[0].text = label
            cells[1].text = value or "-"

    def _add_uploads_table(self, doc: Document, data: AggregatedApplicationData) -> None:
        doc.add_page_break()
        self._add_heading(doc, "Uploaded Documents")
        if not data.document_list:
            doc.add_paragraph("No documents uploaded.")
            return
        table = doc.add_table(rows=1, cols=3)
        table.style = "Table Grid"
        header = table.rows[0].cells
        header[0].text = "Name"
        header[1].text = "Type"
        header[2].text = "Status"
        for item in data.document_list:
            cells = table.add_row().cells
            cells[0].text = item.name
            cells[1].text = item.type
            cells[2].text = item.status
