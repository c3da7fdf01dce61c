from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from pantry_vision.schema.analysis_schema import Question
from pantry_vision.schema.recipe_schema import Recipe

UNANSWERED = ""


class Stage(str, Enum):
    IDLE = "IDLE"
    ANALYZING = "ANALYZING"
    QUESTIONS = "QUESTIONS"
    GENERATING_RECIPE = "GENERATING_RECIPE"
    RECIPE = "RECIPE"


class Overlay(str, Enum):
    """Transient surface shown on top of the current stage."""
    NONE = "NONE"
    SOURCE_PICKER = "SOURCE_PICKER"
    CAMERA = "CAMERA"


class CapturedImage(BaseModel):
    model_config = ConfigDict(frozen=True)

    data: bytes = Field(min_length=1)
    filename: str = "image"
    content_type: str = "application/octet-stream"


class Session(BaseModel):
    """
    Mutable root for one pass through the capture -> recipe flow.

    Owned by SessionMachine; replaced wholesale on start over.
    """
    session_id: int
    stage: Stage = Stage.IDLE
    captured_image: Optional[CapturedImage] = None
    ingredients: List[str] = []
    questions: List[Question] = []
    answers: List[str] = []
    recipe: Optional[Recipe] = None

    @property
    def all_answered(self) -> bool:
        return len(self.answers) == len(self.questions) and all(
            answer != UNANSWERED for answer in self.answers
        )


class SessionSnapshot(BaseModel):
    """Read-only view handed to the presentation layer."""
    model_config = ConfigDict(frozen=True)

    session_id: int
    stage: Stage
    overlay: Overlay
    busy: bool
    error: Optional[str]
    has_image: bool
    ingredients: tuple[str, ...]
    questions: tuple[Question, ...]
    answers: tuple[str, ...]
    recipe: Optional[Recipe]

    @property
    def can_confirm(self) -> bool:
        return self.stage == Stage.QUESTIONS and all(
            answer != UNANSWERED for answer in self.answers
        )

    @classmethod
    def of(cls, session: Session, overlay: Overlay, busy: bool, error: Optional[str]) -> "SessionSnapshot":
        return cls(
            session_id=session.session_id,
            stage=session.stage,
            overlay=overlay,
            busy=busy,
            error=error,
            has_image=session.captured_image is not None,
            ingredients=tuple(session.ingredients),
            questions=tuple(session.questions),
            answers=tuple(session.answers),
            recipe=session.recipe,
        )
