from .capture_agent import CaptureProvider, OpenCVCaptureProvider
from .analysis_agent import AnalysisAgent
from .recipe_agent import RecipeAgent
__all__ = ["CaptureProvider", "OpenCVCaptureProvider", "AnalysisAgent", "RecipeAgent"]
