"""
Segmentation Client - HTTP client for the background segmentation service.

The model runs out of process. It accepts an image upload and answers with
a PNG of the same dimensions whose background pixels are transparent.
"""

import logging
from typing import Optional

import httpx

from core.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)


class SegmentationClient:
    """Async HTTP client for the segmentation collaborator"""

    def __init__(self, service_url: Optional[str], timeout_seconds: float = 60.0):
        """
        Initialize the segmentation client.

        Args:
            service_url: Endpoint accepting a multipart ``file`` upload
            timeout_seconds: Request timeout in seconds
        """
        self.service_url = service_url
        self.timeout_seconds = timeout_seconds
        self._http_client: Optional[httpx.AsyncClient] = None

    @property
    def configured(self) -> bool:
        return bool(self.service_url)

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client."""
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.AsyncClient(timeout=self.timeout_seconds)
        return self._http_client

    async def close(self):
        """Close the HTTP client."""
        if self._http_client and not self._http_client.is_closed:
            await self._http_client.aclose()
            self._http_client = None

    async def segment(self, data: bytes, filename: str) -> bytes:
        """
        Send an image for segmentation.

        Args:
            data: Encoded source image
            filename: Source name (sent as the upload's file name)

        Returns:
            Encoded subject image (PNG with transparent background)

        Raises:
            ExternalServiceError: Not configured, unreachable, timed out or
                answered with an error
        """
        if not self.configured:
            raise ExternalServiceError("Segmentation service is not configured", source_name=filename)

        client = await self._get_http_client()

        try:
            response = await client.post(
                self.service_url,
                files={"file": (filename, data, "application/octet-stream")},
            )
            response.raise_for_status()

        except httpx.HTTPStatusError as e:
            logger.error(
                f"[Segmentation] HTTP error {e.response.status_code} for {filename}: {e.response.text[:200]}"
            )
            raise ExternalServiceError(
                f"Segmentation service answered {e.response.status_code}", source_name=filename
            ) from e

        except httpx.TimeoutException as e:
            logger.error(f"[Segmentation] Timed out after {self.timeout_seconds}s for {filename}")
            raise ExternalServiceError("Segmentation service timed out", source_name=filename) from e

        except httpx.RequestError as e:
            logger.error(f"[Segmentation] Request to {self.service_url} failed: {e}")
            raise ExternalServiceError(
                f"Segmentation service unreachable: {e}", source_name=filename
            ) from e

        if not response.content:
            raise ExternalServiceError("Segmentation service returned no image", source_name=filename)

        logger.debug(f"[Segmentation] {filename}: {len(response.content)} bytes returned")
        return response.content
