from pydantic import BaseModel, ConfigDict, Field
from typing import List


class QuestionPayload(BaseModel):
    question: str
    options: List[str] = Field(min_length=1)


class AnalysisResponse(BaseModel):
    """Wire body returned by the analyze-pantry endpoint."""
    ingredients_found: List[str]
    questions: List[QuestionPayload]


class Question(BaseModel):
    model_config = ConfigDict(frozen=True)

    prompt: str
    options: tuple[str, ...] = Field(min_length=1)


class AnalysisResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    ingredients: tuple[str, ...]
    questions: tuple[Question, ...]

    @classmethod
    def from_response(cls, response: AnalysisResponse) -> "AnalysisResult":
        # Questions are kept verbatim and in service order.
        return cls(
            ingredients=tuple(response.ingredients_found),
            questions=tuple(
                Question(prompt=q.question, options=tuple(q.options))
                for q in response.questions
            ),
        )
