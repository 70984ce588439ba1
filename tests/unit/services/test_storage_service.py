"""Unit tests for StorageService."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from visa_assistant.core.exceptions import AppError
from visa_assistant.services.storage_service import StorageService


@pytest.fixture
def storage():
    return StorageService(bucket="documents")


class TestUploadBytes:

    @pytest.mark.asyncio
    async def test_upload_returns_public_url(self, storage):
        with patch("httpx.AsyncClient.post", new_callable=AsyncMock) as mock_post:
            mock_post.return_value = MagicMock(status_code=200, text="{}")

            url = await storage.upload_bytes("user-123/app/passport-1.pdf", b"%PDF", "application/pdf")

        assert url == "https://test.supabase.co/storage/v1/object/public/documents/user-123/app/passport-1.pdf"
        call = mock_post.call_args
        assert call.args[0] == "https://test.supabase.co/storage/v1/object/documents/user-123/app/passport-1.pdf"
        assert call.kwargs["headers"]["Content-Type"] == "application/pdf"
        assert call.kwargs["content"] == b"%PDF"

    @pytest.mark.asyncio
    async def test_failed_upload_raises(self, storage):
        with patch("httpx.AsyncClient.post", new_callable=AsyncMock) as mock_post:
            mock_post.return_value = MagicMock(status_code=400, text="Bucket not found")

            with pytest.raises(AppError, match="Bucket not found"):
                await storage.upload_bytes("p.pdf", b"x", "application/pdf")

    @pytest.mark.asyncio
    async def test_transport_error_raises(self, storage):
        with patch("httpx.AsyncClient.post", new_callable=AsyncMock) as mock_post:
            mock_post.side_effect = httpx.ConnectError("connection refused")

            with pytest.raises(AppError, match="Storage upload error"):
                await storage.upload_bytes("p.pdf", b"x", "application/pdf")


class TestDelete:

    @pytest.mark.asyncio
    async def test_delete_sends_prefix(self, storage):
        with patch("httpx.AsyncClient.request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = MagicMock(status_code=200, text="[]")

            await storage.delete("user-123/app/passport-1.pdf")

        assert mock_request.call_args.args[0] == "DELETE"
        assert mock_request.call_args.kwargs["json"] == {"prefixes": ["user-123/app/passport-1.pdf"]}


class TestSignedUploadUrl:

    @pytest.mark.asyncio
    async def test_relative_url_is_made_absolute(self, storage):
        response = MagicMock(status_code=200, text="")
        response.json.return_value = {"url": "/object/upload/sign/documents/p.pdf?token=abc123"}
        with patch("httpx.AsyncClient.post", new_callable=AsyncMock) as mock_post:
            mock_post.return_value = response

            signed = await storage.create_signed_upload_url("p.pdf")

        assert signed == {
            "signed_url": "https://test.supabase.co/storage/v1/object/upload/sign/documents/p.pdf?token=abc123",
            "storage_path": "p.pdf",
            "token": "abc123",
        }

    @pytest.mark.asyncio
    async def test_missing_url(self, storage):
        response = MagicMock(status_code=200, text="")
        response.json.return_value = {}
        with patch("httpx.AsyncClient.post", new_callable=AsyncMock) as mock_post:
            mock_post.return_value = response

            with pytest.raises(AppError, match="did not contain url"):
                await storage.create_signed_upload_url("p.pdf")
