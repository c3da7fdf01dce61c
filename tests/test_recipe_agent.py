import json

import httpx
import pytest

from pantry_vision.agents import RecipeAgent
from pantry_vision.errors import GenerationError
from pantry_vision.schema import Recipe

BASE_URL = "http://pantry.test"

RECIPE_BODY = {
    "recipe_title": "Savory Custard",
    "steps": ["Whisk egg and milk", "Season", "Bake for 25 minutes"],
    "missing_items": ["nutmeg"],
}


def make_agent(handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return RecipeAgent(client, BASE_URL)


@pytest.mark.asyncio
async def test_generate_posts_json_and_parses_recipe():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=RECIPE_BODY)

    recipe = await make_agent(handler).generate(["egg", "milk"], ["No"])

    assert len(seen) == 1
    assert str(seen[0].url) == "http://pantry.test/api/generate-recipe"
    assert json.loads(seen[0].read()) == {"ingredients_found": ["egg", "milk"], "user_answers": ["No"]}
    assert recipe == Recipe(
        title="Savory Custard",
        steps=("Whisk egg and milk", "Season", "Bake for 25 minutes"),
        missing_items=("nutmeg",),
    )


@pytest.mark.asyncio
async def test_unanswered_entries_are_not_sent():
    bodies = []

    def handler(request):
        bodies.append(json.loads(request.read()))
        return httpx.Response(200, json=RECIPE_BODY)

    await make_agent(handler).generate(["egg"], ["", "Italian", "", "30 min"])

    assert bodies[0]["user_answers"] == ["Italian", "30 min"]


@pytest.mark.asyncio
async def test_empty_missing_items():
    body = {"recipe_title": "Omelette", "steps": ["Cook"], "missing_items": []}
    recipe = await make_agent(lambda request: httpx.Response(200, json=body)).generate(["egg"], ["No"])
    assert recipe.missing_items == ()


@pytest.mark.asyncio
async def test_http_error_raises():
    with pytest.raises(GenerationError) as exc_info:
        await make_agent(lambda request: httpx.Response(422)).generate(["egg"], ["No"])
    assert exc_info.value.status_code == 422


@pytest.mark.asyncio
async def test_timeout_raises():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(GenerationError):
        await make_agent(handler).generate(["egg"], ["No"])


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        {"steps": ["Cook"], "missing_items": []},
        {"recipe_title": "Omelette", "steps": "Cook", "missing_items": []},
        ["not", "an", "object"],
    ],
)
async def test_malformed_body_raises(body):
    with pytest.raises(GenerationError):
        await make_agent(lambda request: httpx.Response(200, json=body)).generate(["egg"], ["No"])


@pytest.mark.asyncio
async def test_invalid_base_url_raises_generation_error():
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(200, json=RECIPE_BODY)))
    agent = RecipeAgent(client, "http://[::1")

    with pytest.raises(GenerationError) as exc_info:
        await agent.generate(["egg"], ["No"])
    assert isinstance(exc_info.value.__cause__, httpx.InvalidURL)
