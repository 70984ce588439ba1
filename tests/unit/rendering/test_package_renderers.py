"""Unit tests for the combined PDF and DOCX package renderers."""

from io import BytesIO
from uuid import uuid4

import fitz  # PyMuPDF
from docx import Document

from visa_assistant.database.models import GeneratedDocument
from visa_assistant.schemas.layout import AvailableResources, FinancialData, FinancialRequirements, PageContent
from visa_assistant.services.rendering.combined_pdf import CombinedPdfRenderer
from visa_assistant.services.rendering.docx_export import DocxPackageBuilder


def _generated(document_type: str, content: str, version: int = 1) -> GeneratedDocument:
    return GeneratedDocument(
        id=uuid4(),
        application_id=uuid4(),
        user_id="user-123",
        document_type=document_type,
        content=content,
        version=version,
        is_current=True,
    )


class TestCombinedPdfRenderer:

    def test_one_pdf_page_per_planned_page(self):
        pages = [
            PageContent(
                letterhead=True,
                letterhead_title="COVER LETTER",
                cover_title=True,
                cover_header="RE: Form I-539, Application to Change Status – São Paulo",
                cover_body=["Dear Officer,", "I respectfully request a change of status."],
            ),
            PageContent(
                financial=FinancialData(
                    financial_requirements=FinancialRequirements(tuition="9,000", total_required="9,000"),
                    available_resources=AvailableResources(personal_funds="12,346", total_available="12,346"),
                ),
                signature="Maria Silva",
            ),
            PageContent(exhibit_heading=True, exhibit_items=["A. Passport", "B. Form I-94"]),
        ]

        content = CombinedPdfRenderer().render(pages)

        assert content.startswith(b"%PDF")
        with fitz.open(stream=content, filetype="pdf") as doc:
            assert doc.page_count == 3
            assert "Sao Paulo" in doc[0].get_text()
            assert "USD $12,346" in doc[1].get_text()


class TestDocxPackageBuilder:

    def test_package_contains_letters_and_uploads(self, aggregated_data, today):
        generated = [
            _generated("cover_letter", "Dear Officer,\n\nPlease find enclosed my application.", version=2),
            _generated("exhibit_list", "A. Passport"),
        ]

        content = DocxPackageBuilder().build(aggregated_data, generated, today)

        assert content.startswith(b"PK")
        doc = Document(BytesIO(content))
        texts = [p.text for p in doc.paragraphs]
        assert "Visa Application Package" in texts
        assert "Prepared on March 1, 2025" in texts
        assert "Cover Letter" in texts
        assert "Version 2" in texts
        assert "Please find enclosed my application." in texts
        uploads = doc.tables[-1]
        assert [c.text for c in uploads.rows[0].cells] == ["Name", "Type", "Status"]
        assert len(uploads.rows) == 1 + len(aggregated_data.document_list)

    def test_applicant_table_falls_back_to_dash(self, aggregated_data, today):
        aggregated_data.documents.i20 = None

        content = DocxPackageBuilder().build(aggregated_data, [], today)

        table = Document(BytesIO(content)).tables[0]
        rows = {r.cells[0].text: r.cells[1].text for r in table.rows}
        assert rows["School"] == "-"
        assert rows["Passport Number"] == "BR1234567"
