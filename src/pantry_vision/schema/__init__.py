from .analysis_schema import Question, QuestionPayload, AnalysisResponse, AnalysisResult
from .recipe_schema import Recipe, RecipeResponse, GenerateRequest
from .session_schema import UNANSWERED, Stage, Overlay, CapturedImage, Session, SessionSnapshot
__all__ = ["Question", "QuestionPayload", "AnalysisResponse", "AnalysisResult", "Recipe", "RecipeResponse",
           "GenerateRequest", "UNANSWERED", "Stage", "Overlay", "CapturedImage", "Session", "SessionSnapshot"]
