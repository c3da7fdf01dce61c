import logging
from typing import Sequence

import httpx
from pydantic import ValidationError

from pantry_vision.errors import GenerationError
from pantry_vision.schema import UNANSWERED, GenerateRequest, Recipe, RecipeResponse

logger = logging.getLogger(__name__)


class RecipeAgent:
    def __init__(self, client: httpx.AsyncClient, base_url: str):
        self.client = client
        self.endpoint = f"{base_url.rstrip('/')}/api/generate-recipe"

    async def generate(self, ingredients: Sequence[str], answers: Sequence[str]) -> Recipe:
        # Completeness is the caller's job; placeholders are still never sent.
        payload = GenerateRequest(
            ingredients_found=list(ingredients),
            user_answers=[answer for answer in answers if answer != UNANSWERED],
        )
        logger.info(
            "Requesting recipe for %d ingredients with %d answers",
            len(payload.ingredients_found),
            len(payload.user_answers),
        )

        try:
            response = await self.client.post(self.endpoint, json=payload.model_dump())
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise GenerationError(f"transport failure: {exc}") from exc

        if not response.is_success:
            raise GenerationError("recipe service returned an error", status_code=response.status_code)

        try:
            data = RecipeResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise GenerationError(f"malformed recipe response: {exc}", status_code=response.status_code) from exc

        recipe = Recipe.from_response(data)
        logger.info("Received recipe %r with %d steps", recipe.title, len(recipe.steps))
        return recipe
