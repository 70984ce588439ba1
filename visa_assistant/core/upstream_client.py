import asyncio
from typing import Any, Dict, Optional

import httpx
from httpx import HTTPStatusError, TimeoutException

from visa_assistant.core.exceptions import APITimeoutError, UpstreamServiceError
from visa_assistant.utils.logging import get_logger

LOGGER = get_logger(__name__)


def upstream_error_message(response: httpx.Response) -> Optional[str]:
    """Pull ``error.message`` (or a plain ``message``) out of an error body."""
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    error = body.get("error")
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if isinstance(error, str) and error:
        return error
    message = body.get("message")
    return str(message) if message else None


class BaseUpstreamClient:
    """Base client for JSON-over-HTTP upstream services (LLM, Document AI).

    Handles auth headers, timeouts, bounded retries and error mapping.
    Every failure surfaces as ``UpstreamServiceError`` carrying the provider's
    own message when the body had one.
    """

    service_name = "upstream"

    def __init__(
        self,
        api_key: str,
        base_url: str,
        timeout: int = 60,
        max_retries: int = 1,
        retry_delay: int = 2,
    ):
        """Initialize the client.

        Args:
            api_key: Bearer token for the service
            base_url: Base URL for the API
            timeout: Request timeout in seconds
            max_retries: Total attempts; 1 means a single request
            retry_delay: Base delay for exponential backoff
        """
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.retry_delay = retry_delay
        self.logger = LOGGER

    async def call_api(
        self,
        endpoint: str = "",
        method: str = "POST",
        payload: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """Call the API.

        Args:
            endpoint: Path appended to ``base_url``
            method: HTTP method
            payload: JSON body (query params for GET)
            headers: Extra headers

        Returns:
            Parsed JSON response

        Raises:
            UpstreamServiceError: Non-success status or unreadable response
            APITimeoutError: Every attempt timed out
        """
        url = f"{self.base_url}{endpoint}" if endpoint else self.base_url

        request_headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        if headers:
            request_headers.update(headers)

        self.logger.debug(
            f"Calling {self.service_name} API: {url}",
            extra={"method": method, "timeout": self.timeout},
        )

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            for attempt in range(self.max_retries):
                try:
                    if method.upper() == "GET":
                        response = await client.get(url, headers=request_headers, params=payload)
                    else:
                        response = await client.post(url, headers=request_headers, json=payload)

                    response.raise_for_status()
                    return response.json()

                except HTTPStatusError as e:
                    await self._handle_http_error(e, attempt, url)

                except TimeoutException as e:
                    await self._handle_timeout_error(e, attempt, url)

                except (httpx.HTTPError, ValueError) as e:
                    await self._handle_generic_error(e, attempt, url)

        raise UpstreamServiceError(
            f"Failed to call {self.service_name} API after {self.max_retries} attempts",
            service=self.service_name,
        )

    async def _handle_http_error(self, error: HTTPStatusError, attempt: int, url: str):
        status_code = error.response.status_code
        upstream_message = upstream_error_message(error.response)

        self.logger.warning(
            f"{self.service_name} HTTP error (Attempt {attempt + 1}/{self.max_retries})",
            extra={
                "url": url,
                "status_code": status_code,
                "error_body": error.response.text[:500],
            },
        )

        # Client errors other than rate limiting are not retried
        if (400 <= status_code < 500 and status_code != 429) or attempt >= self.max_retries - 1:
            raise UpstreamServiceError(
                f"{self.service_name} request failed with status {status_code}",
                service=self.service_name,
                upstream_message=upstream_message,
                original_error=error,
            ) from error

        await self._wait_before_retry(attempt)

    async def _handle_timeout_error(self, error: TimeoutException, attempt: int, url: str):
        self.logger.warning(
            f"{self.service_name} timeout (Attempt {attempt + 1}/{self.max_retries})",
            extra={"url": url},
        )

        if attempt < self.max_retries - 1:
            await self._wait_before_retry(attempt)
        else:
            raise APITimeoutError(
                f"{self.service_name} timed out after {self.max_retries} attempts",
                original_error=error,
            ) from error

    async def _handle_generic_error(self, error: Exception, attempt: int, url: str):
        self.logger.warning(
            f"{self.service_name} error (Attempt {attempt + 1}/{self.max_retries})",
            extra={"url": url, "error": str(error)},
        )

        if attempt < self.max_retries - 1:
            await self._wait_before_retry(attempt)
        else:
            raise UpstreamServiceError(
                f"{self.service_name} error: {str(error)}",
                service=self.service_name,
                original_error=error,
            ) from error

    async def _wait_before_retry(self, attempt: int):
        """Exponential backoff wait."""
        await asyncio.sleep(self.retry_delay * (2 ** attempt))
