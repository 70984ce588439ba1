"""Storage service for Supabase storage operations."""

from typing import Any, Dict, Optional
from urllib.parse import parse_qs, urlparse

import httpx

from visa_assistant.core.config import settings
from visa_assistant.core.exceptions import AppError
from visa_assistant.utils.logging import get_logger

LOGGER = get_logger(__name__)


class StorageService:
    """Uploads, removes and signs objects in a Supabase storage bucket."""

    def __init__(self, bucket: Optional[str] = None):
        self.url = settings.supabase_url
        self.service_role_key = settings.supabase_service_role_key
        self.bucket = bucket or settings.storage_bucket
        self.base_api_url = f"{self.url}/storage/v1"
        self.headers = {
            "Authorization": f"Bearer {self.service_role_key}",
            "apikey": self.service_role_key,
        }

    def public_url(self, path: str) -> str:
        return f"{self.base_api_url}/object/public/{self.bucket}/{path}"

    async def upload_bytes(self, path: str, content: bytes, content_type: str) -> str:
        """Upload bytes to the bucket.

        Args:
            path: Object path within the bucket
            content: File content
            content_type: MIME type

        Returns:
            Public URL of the stored object

        Raises:
            AppError: If the upload fails
        """
        upload_url = f"{self.base_api_url}/object/{self.bucket}/{path}"
        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    upload_url,
                    headers={**self.headers, "Content-Type": content_type or "application/octet-stream"},
                    content=content,
                    timeout=settings.http_timeout,
                )
        except httpx.HTTPError as e:
            LOGGER.error(f"Error uploading file to Supabase: {str(e)}", exc_info=True)
            raise AppError(f"Storage upload error: {str(e)}", original_error=e)

        if response.status_code != 200:
            LOGGER.error(
                f"Failed to upload file to Supabase: {response.text}",
                extra={"bucket": self.bucket, "path": path, "status_code": response.status_code},
            )
            raise AppError(f"Upload failed: {response.text}")

        LOGGER.info("Uploaded object", extra={"bucket": self.bucket, "path": path, "size": len(content)})
        return self.public_url(path)

    async def delete(self, path: str) -> None:
        """Remove an object from the bucket.

        Raises:
            AppError: If the removal fails
        """
        try:
            async with httpx.AsyncClient() as client:
                response = await client.request(
                    "DELETE",
                    f"{self.base_api_url}/object/{self.bucket}",
                    headers=self.headers,
                    json={"prefixes": [path]},
                    timeout=settings.http_timeout,
                )
        except httpx.HTTPError as e:
            LOGGER.error(f"Error deleting file from Supabase: {str(e)}", exc_info=True)
            raise AppError(f"Storage delete error: {str(e)}", original_error=e)

        if response.status_code != 200:
            LOGGER.error(
                f"Failed to delete file from Supabase: {response.text}",
                extra={"bucket": self.bucket, "path": path, "status_code": response.status_code},
            )
            raise AppError(f"Delete failed: {response.text}")

    async def create_signed_upload_url(self, path: str) -> Dict[str, Any]:
        """Issue a signed URL the client can upload to directly.

        Returns:
            Dict with ``signed_url``, ``storage_path`` and ``token``

        Raises:
            AppError: If URL generation fails
        """
        url = f"{self.base_api_url}/object/upload/sign/{self.bucket}/{path}"
        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(url, headers=self.headers, timeout=settings.http_timeout)
        except httpx.HTTPError as e:
            LOGGER.error(f"Error generating signed upload URL: {str(e)}", exc_info=True)
            raise AppError(f"Signed URL error: {str(e)}", original_error=e)

        if response.status_code != 200:
            LOGGER.error(
                f"Failed to generate signed upload URL: {response.text}",
                extra={"bucket": self.bucket, "path": path, "status_code": response.status_code},
            )
            raise AppError(f"Signed URL generation failed: {response.text}")

        signed_path = response.json().get("url")
        if not signed_path:
            raise AppError("Supabase response did not contain url")

        # Supabase returns a path relative to /storage/v1
        signed_url = signed_path if signed_path.startswith("http") else f"{self.base_api_url}{signed_path}"
        token = parse_qs(urlparse(signed_url).query).get("token", [None])[0]
        return {"signed_url": signed_url, "storage_path": path, "token": token}
