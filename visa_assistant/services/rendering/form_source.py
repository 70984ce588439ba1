"""Locates the I-539 PDF through a chain of progressively weaker sources.

Order: local AcroForm file, remote AcroForm URL, pdfRest XFA to AcroForm
conversion, then the local XFA file or the USCIS download. Each step falls
through to the next on any failure.
"""

import asyncio
from pathlib import Path
from typing import Optional

import httpx

from visa_assistant.core.config import FormSettings
from visa_assistant.core.exceptions import APIClientError
from visa_assistant.utils.logging import get_logger

LOGGER = get_logger(__name__)


class FormSource:
    """Fetches the I-539 bytes.

    Args:
        form_settings: Paths, URLs and pdfRest credentials
        timeout: HTTP timeout in seconds
    """

    def __init__(self, form_settings: FormSettings, timeout: int = 60):
        self.settings = form_settings
        self.timeout = timeout

    async def get_form_bytes(self) -> bytes:
        """Return the best available I-539.

        Raises:
            APIClientError: If not even the blank XFA form can be obtained
        """
        local = self._read_local(self.settings.local_acroform_path)
        if local:
            LOGGER.info("Using local I-539 AcroForm", extra={"path": self.settings.local_acroform_path})
            return local

        if self.settings.acroform_url:
            remote = await self._download(self.settings.acroform_url)
            if remote:
                LOGGER.info("Using remote I-539 AcroForm")
                return remote

        if self.settings.pdfrest_api_key.strip():
            try:
                xfa = await self.get_xfa_bytes()
                converted = await self.convert_xfa_to_acroform(xfa)
            except APIClientError as e:
                LOGGER.warning(f"pdfRest conversion skipped: {e}")
                converted = None
            if converted:
                LOGGER.info("Using pdfRest-converted I-539 AcroForm")
                return converted

        return await self.get_xfa_bytes()

    async def get_xfa_bytes(self) -> bytes:
        """Local XFA form, else the USCIS download."""
        local = self._read_local(self.settings.local_xfa_path)
        if local:
            return local
        downloaded = await self._download(self.settings.uscis_url)
        if not downloaded:
            raise APIClientError("Could not obtain the I-539 form")
        return downloaded

    async def convert_xfa_to_acroform(self, pdf_bytes: bytes) -> Optional[bytes]:
        """Convert an XFA form with pdfRest; polls ``request-status`` for async jobs.

        Returns:
            Converted bytes, or None when conversion fails
        """
        key = self.settings.pdfrest_api_key.strip()
        if not key:
            return None
        headers = {"Accept": "application/json", "Api-Key": key}
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.settings.pdfrest_acroforms_url,
                    headers=headers,
                    files={"file": ("i-539.pdf", pdf_bytes, "application/pdf")},
                )
                payload = response.json()
                if payload.get("outputUrl"):
                    return await self._fetch_output(client, payload["outputUrl"], key)

                request_id = payload.get("requestId")
                if not request_id:
                    LOGGER.warning(
                        "pdfRest returned neither outputUrl nor requestId",
                        extra={"status_code": response.status_code},
                    )
                    return None

                for attempt in range(self.settings.pdfrest_poll_attempts):
                    await asyncio.sleep(self.settings.pdfrest_poll_interval)
                    status = await client.get(f"{self.settings.pdfrest_status_url}/{request_id}", headers=headers)
                    output_url = status.json().get("outputUrl")
                    if output_url:
                        return await self._fetch_output(client, output_url, key)
                    if status.status_code != 202:
                        LOGGER.warning(
                            f"pdfRest job {request_id} stopped on attempt {attempt + 1}",
                            extra={"status_code": status.status_code},
                        )
                        break
        except (httpx.HTTPError, ValueError) as e:
            LOGGER.warning(f"pdfRest conversion failed: {e}")
        return None

    @staticmethod
    async def _fetch_output(client: httpx.AsyncClient, url: str, key: str) -> Optional[bytes]:
        response = await client.get(url, headers={"Api-Key": key})
        if response.status_code != 200:
            return None
        return response.content or None

    async def _download(self, url: str) -> Optional[bytes]:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
                response = await client.get(url)
                response.raise_for_status()
                return response.content or None
        except httpx.HTTPError as e:
            LOGGER.warning(f"I-539 download failed: {e}", extra={"url": url})
            return None

    @staticmethod
    def _read_local(path: str) -> Optional[bytes]:
        if not path:
            return None
        try:
            content = Path(path).read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            LOGGER.warning(f"Could not read {path}: {e}")
            return None
        return content or None
