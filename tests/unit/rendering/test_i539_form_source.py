"""Unit tests for the I-539 source chain."""

from unittest.mock import AsyncMock, patch

import pytest

from visa_assistant.core.config import FormSettings
from visa_assistant.core.exceptions import APIClientError
from visa_assistant.services.rendering.form_source import FormSource


def _settings(tmp_path, **overrides) -> FormSettings:
    values = {
        "I539_LOCAL_ACROFORM_PATH": str(tmp_path / "missing-acroform.pdf"),
        "I539_LOCAL_XFA_PATH": str(tmp_path / "missing-xfa.pdf"),
        "I539_ACROFORM_URL": "",
        "PDFREST_API_KEY": "",
    }
    values.update(overrides)
    return FormSettings(**values)


class TestFormSource:

    @pytest.mark.asyncio
    async def test_local_acroform_wins(self, tmp_path):
        local = tmp_path / "acroform.pdf"
        local.write_bytes(b"%PDF-local")
        source = FormSource(_settings(tmp_path, I539_LOCAL_ACROFORM_PATH=str(local)))

        with patch.object(FormSource, "_download", new=AsyncMock()) as download:
            assert await source.get_form_bytes() == b"%PDF-local"
        download.assert_not_called()

    @pytest.mark.asyncio
    async def test_remote_acroform_before_uscis(self, tmp_path):
        source = FormSource(_settings(tmp_path, I539_ACROFORM_URL="https://forms.example.com/i-539.pdf"))

        with patch.object(FormSource, "_download", new=AsyncMock(return_value=b"%PDF-remote")) as download:
            assert await source.get_form_bytes() == b"%PDF-remote"
        download.assert_awaited_once_with("https://forms.example.com/i-539.pdf")

    @pytest.mark.asyncio
    async def test_failed_conversion_falls_back_to_blank_form(self, tmp_path):
        source = FormSource(_settings(tmp_path, PDFREST_API_KEY="key"))

        with patch.object(FormSource, "_download", new=AsyncMock(return_value=b"%PDF-xfa")), patch.object(
            FormSource, "convert_xfa_to_acroform", new=AsyncMock(return_value=None)
        ) as convert:
            assert await source.get_form_bytes() == b"%PDF-xfa"
        convert.assert_awaited_once_with(b"%PDF-xfa")

    @pytest.mark.asyncio
    async def test_nothing_available(self, tmp_path):
        source = FormSource(_settings(tmp_path))

        with patch.object(FormSource, "_download", new=AsyncMock(return_value=None)):
            with pytest.raises(APIClientError, match="Could not obtain"):
                await source.get_form_bytes()
