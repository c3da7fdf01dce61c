"""
Pytest fixtures for pantry_vision tests.
"""

import asyncio
from typing import List, Optional, Sequence

import pytest

from pantry_vision.errors import AnalysisError, CaptureCancelled, GenerationError
from pantry_vision.schema import AnalysisResult, CapturedImage, Question, Recipe
from pantry_vision.session_machine import SessionMachine


class FakeCapture:
    """Capture provider returning a canned image, or raising a canned error."""

    def __init__(self, image: Optional[CapturedImage] = None, error: Optional[Exception] = None):
        self.image = image or CapturedImage(data=b"\xff\xd8jpeg", filename="camera-photo.jpg", content_type="image/jpeg")
        self.error = error
        self.camera_calls = 0
        self.file_selections: List[object] = []

    async def acquire_from_camera(self) -> CapturedImage:
        self.camera_calls += 1
        if self.error:
            raise self.error
        return self.image

    async def acquire_from_file(self, selection) -> CapturedImage:
        self.file_selections.append(selection)
        if selection is None:
            raise CaptureCancelled("no file selected")
        if self.error:
            raise self.error
        return self.image


class FakeAnalysis:
    def __init__(self, result: Optional[AnalysisResult] = None, error: Optional[AnalysisError] = None):
        self.result = result
        self.error = error
        self.calls: List[CapturedImage] = []
        self.gate: Optional[asyncio.Event] = None

    async def analyze(self, image: CapturedImage) -> AnalysisResult:
        self.calls.append(image)
        if self.gate is not None:
            await self.gate.wait()
        if self.error:
            raise self.error
        return self.result


class FakeRecipes:
    def __init__(self, recipe: Optional[Recipe] = None, error: Optional[GenerationError] = None):
        self.recipe = recipe
        self.error = error
        self.calls: List[tuple] = []
        self.gate: Optional[asyncio.Event] = None

    async def generate(self, ingredients: Sequence[str], answers: Sequence[str]) -> Recipe:
        self.calls.append((list(ingredients), list(answers)))
        if self.gate is not None:
            await self.gate.wait()
        if self.error:
            raise self.error
        return self.recipe


@pytest.fixture
def egg_milk_analysis():
    return AnalysisResult(
        ingredients=("egg", "milk"),
        questions=(Question(prompt="Dairy-free?", options=("Yes", "No")),),
    )


@pytest.fixture
def two_question_analysis():
    return AnalysisResult(
        ingredients=("tomato", "egg", "basil"),
        questions=(
            Question(prompt="How much time do you have?", options=("15 min", "30 min", "1 hour")),
            Question(prompt="Any cuisine preference?", options=("Italian", "Chinese")),
        ),
    )


@pytest.fixture
def omelette_recipe():
    return Recipe(
        title="Fluffy Omelette",
        steps=("Beat the eggs", "Heat the pan", "Cook until set"),
        missing_items=("chives",),
    )


@pytest.fixture
def capture():
    return FakeCapture()


@pytest.fixture
def analysis(egg_milk_analysis):
    return FakeAnalysis(result=egg_milk_analysis)


@pytest.fixture
def recipes(omelette_recipe):
    return FakeRecipes(recipe=omelette_recipe)


@pytest.fixture
def machine(capture, analysis, recipes):
    return SessionMachine(capture=capture, analysis=analysis, recipes=recipes)


@pytest.fixture
def jpeg_image():
    return CapturedImage(data=b"\xff\xd8\xff\xe0fridge", filename="fridge.jpg", content_type="image/jpeg")


@pytest.fixture
def make_machine(capture, recipes):
    """Build a machine whose analysis step returns the given result."""

    def _make(result: AnalysisResult) -> SessionMachine:
        return SessionMachine(capture=capture, analysis=FakeAnalysis(result=result), recipes=recipes)

    return _make
