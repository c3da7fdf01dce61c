from pydantic import BaseModel, ConfigDict
from typing import List


class GenerateRequest(BaseModel):
    ingredients_found: List[str]
    user_answers: List[str]


class RecipeResponse(BaseModel):
    """Wire body returned by the generate-recipe endpoint."""
    recipe_title: str
    steps: List[str]
    missing_items: List[str] = []


class Recipe(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    steps: tuple[str, ...]  # execution order
    missing_items: tuple[str, ...] = ()

    @classmethod
    def from_response(cls, response: RecipeResponse) -> "Recipe":
        return cls(
            title=response.recipe_title,
            steps=tuple(response.steps),
            missing_items=tuple(response.missing_items),
        )
