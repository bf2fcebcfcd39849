"""
Generation service client.

Async HTTP client for the remote generation service: image and video job
submission, job status, video combination and the credit ledger.
"""

from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from shared.config import settings
from shared.errors import RetryableError
from shared.logging import get_logger
from shared.models.job import JobStatusResponse, JobSubmissionRequest, JobSubmissionResponse
from shared.models.video import CombineRequest, CombineResponse

logger = get_logger("generation_client")


class GenerationClient:
    """Thin async wrapper over the generation service HTTP API."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize generation client.

        Args:
            base_url: Service base URL (defaults to settings.api_base_url)
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout if timeout is not None else settings.request_timeout_seconds,
            transport=transport,
        )

    async def _request(
        self,
        method: str,
        path: str,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        try:
            response = await self._client.request(method, path, json=json_body)
        except httpx.HTTPError as e:
            logger.warning(
                f"Request to {path} failed: {str(e)}",
                extra={"path": path, "method": method},
            )
            raise RetryableError(f"Request to {path} failed: {str(e)}") from e

        try:
            body = response.json()
        except ValueError as e:
            raise RetryableError(
                f"Malformed response from {path} (HTTP {response.status_code})"
            ) from e

        if not isinstance(body, dict):
            raise RetryableError(f"Unexpected response body from {path}")

        # Error bodies still carry {success: false, error} for submissions
        if response.status_code >= 500 and "success" not in body:
            raise RetryableError(
                body.get("error") or f"Server error from {path} (HTTP {response.status_code})"
            )
        return body

    async def _submit(self, path: str, request: JobSubmissionRequest) -> JobSubmissionResponse:
        body = await self._request("POST", path, request.to_wire())
        try:
            return JobSubmissionResponse.model_validate(body)
        except PydanticValidationError as e:
            raise RetryableError(f"Invalid submission response from {path}") from e

    async def _status(self, path: str) -> JobStatusResponse:
        body = await self._request("GET", path)
        try:
            return JobStatusResponse.model_validate(body)
        except PydanticValidationError as e:
            raise RetryableError(f"Invalid status response from {path}") from e

    # Images

    async def start_image_job(self, request: JobSubmissionRequest) -> JobSubmissionResponse:
        return await self._submit("/api/generate-scenes-async", request)

    async def get_image_job_status(self, job_id: str) -> JobStatusResponse:
        return await self._status(f"/api/image/status/{job_id}")

    # Video: first/last frame interpolation

    async def start_interpolation_video_job(
        self, request: JobSubmissionRequest
    ) -> JobSubmissionResponse:
        return await self._submit("/api/video/veo-scenes", request)

    async def get_interpolation_job_status(self, job_id: str) -> JobStatusResponse:
        return await self._status(f"/api/video/veo-status/{job_id}")

    # Video: full scene payload

    async def start_scene_video_job(self, request: JobSubmissionRequest) -> JobSubmissionResponse:
        return await self._submit("/api/video/comfy-scenes", request)

    async def get_scene_video_job_status(self, job_id: str) -> JobStatusResponse:
        return await self._status(f"/api/video/status/{job_id}")

    # Combine

    async def combine_videos(self, request: CombineRequest) -> CombineResponse:
        """Combine clips into one export (synchronous on the service side)."""
        body = await self._request("POST", "/api/video/combine", request.to_wire())
        try:
            return CombineResponse.model_validate(body)
        except PydanticValidationError as e:
            raise RetryableError("Invalid combine response") from e

    # Credits

    async def get_credits(self, user_id: str) -> int:
        """
        Get a user's credit balance.

        Returns:
            Current balance (0 if the service omits it)
        """
        body = await self._request("GET", f"/api/credits/{user_id}")
        try:
            return int(body.get("credits", 0))
        except (TypeError, ValueError) as e:
            raise RetryableError("Invalid credit balance response") from e

    async def deduct_credits(self, user_id: str, amount: int, reason: str) -> Dict[str, Any]:
        """
        Deduct credits from a user's balance.

        Raises:
            RetryableError: If the request fails or the service rejects it
        """
        body = await self._request(
            "POST",
            "/api/credits/deduct",
            {"userId": user_id, "amount": amount, "reason": reason},
        )
        if body.get("success") is False:
            raise RetryableError(body.get("error") or "Credit deduction rejected")
        return body

    async def close(self):
        """Close the underlying HTTP client."""
        await self._client.aclose()
