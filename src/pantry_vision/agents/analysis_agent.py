import logging

import httpx
from pydantic import ValidationError

from pantry_vision.errors import AnalysisError
from pantry_vision.schema import AnalysisResponse, AnalysisResult, CapturedImage

logger = logging.getLogger(__name__)


class AnalysisAgent:
    """Client for the pantry analysis service."""

    def __init__(self, client: httpx.AsyncClient, base_url: str):
        self.client = client
        self.endpoint = f"{base_url.rstrip('/')}/api/analyze-pantry"

    async def analyze(self, image: CapturedImage) -> AnalysisResult:
        """
        Upload one image and return the detected ingredients and clarifying questions.

        Exactly one request is made; failures are raised as AnalysisError and never retried.
        """
        if not image.data:
            raise AnalysisError("image is empty")

        files = {"file": (image.filename, image.data, image.content_type)}
        logger.info("Analyzing %s (%d bytes)", image.filename, len(image.data))

        try:
            response = await self.client.post(self.endpoint, files=files)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise AnalysisError(f"transport failure: {exc}") from exc

        if not response.is_success:
            raise AnalysisError("analysis service rejected the image", status_code=response.status_code)

        try:
            body = AnalysisResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise AnalysisError(f"malformed analysis response: {exc}", status_code=response.status_code) from exc

        result = AnalysisResult.from_response(body)
        logger.info(
            "Analysis found %d ingredients and %d questions",
            len(result.ingredients),
            len(result.questions),
        )
        return result
