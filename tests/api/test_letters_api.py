"""API tests for the cover letter and export endpoints."""

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from visa_assistant.api.v1.dependencies import get_letter_service, get_text_transform_service
from visa_assistant.core.auth import get_current_user
from visa_assistant.core.exceptions import ConfigurationError, TemplateValidationError, UpstreamServiceError
from visa_assistant.main import app
from visa_assistant.services.letters.rules import ValidationResult
from visa_assistant.services.rendering.form_fill import FormFillResult

BASE = "/api/v1/letters"


@pytest.fixture
def service(current_user):
    mock = MagicMock()
    app.dependency_overrides[get_current_user] = lambda: current_user
    app.dependency_overrides[get_letter_service] = lambda: mock
    return mock


class TestValidateAndGenerate:

    def test_validate_reports_errors_and_context(self, test_client, service):
        service.validate_letter = AsyncMock(return_value=(
            ValidationResult(valid=False, errors=["entry_date is required"], warnings=[]),
            {"entry_date": "", "requested_status": "F-1"},
        ))

        response = test_client.get(f"{BASE}/{uuid4()}/validate")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["valid"] is False
        assert data["errors"] == ["entry_date is required"]
        assert data["context"]["requested_status"] == "F-1"

    def test_generate_with_invalid_context_is_422_with_all_errors(self, test_client, service):
        service.generate_cover_letter = AsyncMock(side_effect=TemplateValidationError(
            ["entry_date is required", "signatory_name is required"],
            ["applicant_address_line1 seems too short"],
        ))

        response = test_client.post(f"{BASE}/{uuid4()}/generate")

        assert response.status_code == 422
        detail = response.json()["detail"]
        assert detail["title"] == "Letter Validation Failed"
        assert detail["errors"] == ["entry_date is required", "signatory_name is required"]
        assert detail["warnings"] == ["applicant_address_line1 seems too short"]

    def test_unknown_generated_document_type_is_422(self, test_client, service):
        response = test_client.put(f"{BASE}/{uuid4()}/documents/resume", json={"content": "text"})

        assert response.status_code == 422


class TestDownloads:

    def test_combined_pdf(self, test_client, service):
        service.render_combined_pdf = AsyncMock(return_value=b"%PDF-1.4")

        response = test_client.get(f"{BASE}/{uuid4()}/pdf")

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert response.content == b"%PDF-1.4"

    def test_filled_i539_headers(self, test_client, service):
        service.fill_i539 = AsyncMock(return_value=FormFillResult(
            success=True, filled=True, pdf_bytes=b"%PDF-filled", method="acroform",
        ))
        application_id = uuid4()

        response = test_client.get(f"{BASE}/{application_id}/i539")

        assert response.status_code == 200
        assert response.headers["X-Form-Filled"] == "true"
        assert response.headers["X-Form-Method"] == "acroform"
        assert f'filename="i-539-{application_id}.pdf"' in response.headers["content-disposition"]

    def test_blank_i539_is_still_served(self, test_client, service):
        service.fill_i539 = AsyncMock(return_value=FormFillResult(
            success=True, filled=False, pdf_bytes=b"%PDF-blank", method="blank",
        ))

        response = test_client.get(f"{BASE}/{uuid4()}/i539")

        assert response.status_code == 200
        assert response.headers["X-Form-Filled"] == "false"
        assert response.content == b"%PDF-blank"

    def test_unavailable_i539_is_502(self, test_client, service):
        service.fill_i539 = AsyncMock(return_value=FormFillResult(
            success=False, error="Could not obtain the I-539 form",
        ))

        response = test_client.get(f"{BASE}/{uuid4()}/i539")

        assert response.status_code == 502
        assert response.json()["detail"]["title"] == "Form Unavailable"

    def test_upstream_failures_hide_provider_details(self, test_client, service):
        service.render_combined_pdf = AsyncMock(side_effect=UpstreamServiceError(
            "llm request failed with status 401", service="llm", upstream_message="Incorrect API key sk-123",
        ))

        response = test_client.get(f"{BASE}/{uuid4()}/pdf")

        assert response.status_code == 502
        assert "sk-123" not in response.text

    def test_fill_guide_is_html(self, test_client, service):
        service.fill_guide = AsyncMock(return_value="<html><title>I-539 Fill Guide</title></html>")

        response = test_client.get(f"{BASE}/{uuid4()}/fill-guide")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")

    def test_docx_download(self, test_client, service):
        service.export_docx = AsyncMock(return_value=b"PK\x03\x04")

        response = test_client.get(f"{BASE}/{uuid4()}/docx")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith(
            "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
        )


@pytest.fixture
def transformer(current_user):
    mock = MagicMock()
    app.dependency_overrides[get_current_user] = lambda: current_user
    app.dependency_overrides[get_text_transform_service] = lambda: mock
    return mock


class TestTransformSelection:

    def test_selection_is_rewritten(self, test_client, transformer, current_user):
        transformer.transform = AsyncMock(return_value="I intend to study English in the United States.")
        application_id = uuid4()

        response = test_client.post(
            f"{BASE}/{application_id}/transform",
            json={"text": "I want study english in USA", "command": "uscis"},
        )

        assert response.status_code == 200
        assert response.json()["data"] == {
            "text": "I intend to study English in the United States.",
            "command": "uscis",
        }
        args = transformer.transform.await_args.args
        assert args[0] == application_id
        assert args[1] == "I want study english in USA"
        assert args[2].value == "uscis"
        assert args[3] == current_user

    def test_command_defaults_to_rewrite(self, test_client, transformer):
        transformer.transform = AsyncMock(return_value="Rewritten.")

        response = test_client.post(f"{BASE}/{uuid4()}/transform", json={"text": "Some text"})

        assert response.status_code == 200
        assert response.json()["data"]["command"] == "rewrite"

    def test_unknown_command_is_422(self, test_client, transformer):
        response = test_client.post(f"{BASE}/{uuid4()}/transform", json={"text": "Some text", "command": "poetic"})

        assert response.status_code == 422
        transformer.transform.assert_not_called()

    def test_model_failure_hides_provider_message(self, test_client, transformer):
        transformer.transform = AsyncMock(side_effect=UpstreamServiceError(
            "llm request failed with status 429", service="llm", upstream_message="Rate limit for org-abc123",
        ))

        response = test_client.post(f"{BASE}/{uuid4()}/transform", json={"text": "Some text"})

        assert response.status_code == 502
        assert "org-abc123" not in response.text

    def test_unconfigured_ai_is_503(self, test_client, transformer):
        transformer.transform = AsyncMock(side_effect=ConfigurationError("AI service not configured. Set LLM_API_KEY."))

        response = test_client.post(f"{BASE}/{uuid4()}/transform", json={"text": "Some text"})

        assert response.status_code == 503
        assert response.json()["detail"]["detail"] == "AI service not configured. Set LLM_API_KEY."
