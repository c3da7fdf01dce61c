"""
Session state machine for the capture -> analyze -> questions -> recipe flow.

The machine owns the single Session, the overlay shown on top of it and the
user-facing error. The presentation layer forwards intents through the
transition methods and renders the SessionSnapshot it receives from
``snapshot()`` or from a ``subscribe()`` listener.

All methods must be called from one event loop. Entering ANALYZING or
GENERATING_RECIPE happens before the first ``await`` of the corresponding
call, so a second capture or confirm can never race a request in flight.
"""

import itertools
from contextlib import asynccontextmanager
import logging
from typing import Any, AsyncIterator, Callable, List, Optional

import httpx

from pantry_vision.agents import AnalysisAgent, CaptureProvider, OpenCVCaptureProvider, RecipeAgent
from pantry_vision.config import ClientSettings
from pantry_vision.logging_config import configure_logging
from pantry_vision.errors import (
    AnalysisError,
    CaptureCancelled,
    CaptureError,
    GenerationError,
    SessionValidationError,
)
from pantry_vision.schema import UNANSWERED, CapturedImage, Overlay, Session, SessionSnapshot, Stage

logger = logging.getLogger(__name__)

ANALYSIS_FAILED_MESSAGE = "Something went wrong. Please try again."
GENERATION_FAILED_MESSAGE = "Failed to generate recipe."
CAPTURE_FAILED_MESSAGE = "Could not read the image. Please try again."

Listener = Callable[[SessionSnapshot], None]


class SessionMachine:
    def __init__(self, capture: CaptureProvider, analysis: AnalysisAgent, recipes: RecipeAgent):
        self.capture = capture
        self.analysis = analysis
        self.recipes = recipes

        self._ids = itertools.count(1)
        self._session = Session(session_id=next(self._ids))
        self._overlay = Overlay.NONE
        self._error: Optional[str] = None
        self._in_flight: Optional[int] = None  # session_id owning the pending request
        self._listeners: List[Listener] = []

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    @property
    def stage(self) -> Stage:
        return self._session.stage

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot.of(
            self._session,
            overlay=self._overlay,
            busy=self._in_flight is not None,
            error=self._error,
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener called with a fresh snapshot after every change."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)

    # ------------------------------------------------------------------
    # Overlays
    # ------------------------------------------------------------------

    def open_source_picker(self) -> None:
        self._require_idle("open the image source picker")
        self._overlay = Overlay.SOURCE_PICKER
        self._notify()

    def open_camera(self) -> None:
        self._require_idle("open the camera")
        self._overlay = Overlay.CAMERA
        self._notify()

    def close_overlay(self) -> None:
        # Closing the camera view is how a camera capture gets cancelled.
        if self._overlay is Overlay.NONE:
            return
        self._overlay = Overlay.NONE
        self._notify()

    # ------------------------------------------------------------------
    # Capture and analysis
    # ------------------------------------------------------------------

    async def capture_from_camera(self) -> bool:
        self._require_idle("capture a photo")
        if self._overlay is not Overlay.CAMERA:
            raise SessionValidationError("camera is not open")

        session_id = self._session.session_id
        try:
            image = await self.capture.acquire_from_camera()
        except CaptureCancelled:
            logger.info("Camera capture cancelled")
            self.close_overlay()
            return False
        except CaptureError as exc:
            logger.error("Camera capture failed: %s", exc)
            self._capture_failed(session_id)
            return False

        if not self._is_current(session_id) or self._overlay is not Overlay.CAMERA:
            logger.info("Camera closed before the frame arrived; dropping it")
            return False
        return await self.submit_image(image)

    async def capture_from_file(self, selection: Any) -> bool:
        self._require_idle("select a file")

        session_id = self._session.session_id
        try:
            image = await self.capture.acquire_from_file(selection)
        except CaptureCancelled:
            logger.info("File selection cancelled")
            return False
        except CaptureError as exc:
            logger.error("File capture failed: %s", exc)
            self._capture_failed(session_id)
            return False

        if not self._is_current(session_id):
            logger.info("Session replaced while reading the file; dropping it")
            return False
        return await self.submit_image(image)

    def _capture_failed(self, session_id: int) -> None:
        if not self._is_current(session_id):
            return
        self._overlay = Overlay.NONE
        self._error = CAPTURE_FAILED_MESSAGE
        self._notify()

    async def submit_image(self, image: CapturedImage) -> bool:
        """
        Move IDLE -> ANALYZING and analyze the image.

        Returns True once the session reaches QUESTIONS. On failure the session is
        back at IDLE with the image discarded and ``error`` set for the user.
        """
        self._require_idle("submit an image")
        if self._in_flight is not None:
            raise SessionValidationError("a request is already in flight")

        session = self._session
        session.captured_image = image
        self._overlay = Overlay.NONE
        self._error = None
        self._in_flight = session.session_id

        try:
            self._set_stage(Stage.ANALYZING)
            result = await self.analysis.analyze(image)
        except AnalysisError as exc:
            if self._discard_if_stale(session, "analysis failure"):
                return False
            logger.error("Analysis failed for session %d: %s", session.session_id, exc)
            self._revert(session, Stage.IDLE, ANALYSIS_FAILED_MESSAGE)
            return False
        except BaseException:
            logger.exception("Unexpected error while analyzing for session %d", session.session_id)
            self._revert(session, Stage.IDLE, ANALYSIS_FAILED_MESSAGE)
            raise

        if self._discard_if_stale(session, "analysis result"):
            return False
        self._in_flight = None
        session.ingredients = list(result.ingredients)
        session.questions = list(result.questions)
        session.answers = [UNANSWERED] * len(result.questions)
        self._set_stage(Stage.QUESTIONS)
        return True

    # ------------------------------------------------------------------
    # Questions and recipe generation
    # ------------------------------------------------------------------

    def select_answer(self, index: int, option: str) -> None:
        session = self._session
        if session.stage is not Stage.QUESTIONS:
            raise SessionValidationError(f"cannot answer questions while {session.stage.value}")
        if not 0 <= index < len(session.questions):
            raise SessionValidationError(
                f"question index {index} out of range, must be 0-{len(session.questions) - 1}"
            )
        question = session.questions[index]
        if option not in question.options:
            raise SessionValidationError(f"{option!r} is not an option for {question.prompt!r}")

        session.answers[index] = option
        self._notify()

    async def confirm(self) -> bool:
        """
        Move QUESTIONS -> GENERATING_RECIPE and request the recipe.

        A no-op returning False, with no request made, unless every question
        has been answered.
        """
        session = self._session
        if session.stage is not Stage.QUESTIONS or not session.all_answered or self._in_flight is not None:
            logger.warning("Confirm ignored for session %d at %s", session.session_id, session.stage.value)
            return False

        self._error = None
        self._in_flight = session.session_id

        try:
            self._set_stage(Stage.GENERATING_RECIPE)
            recipe = await self.recipes.generate(list(session.ingredients), list(session.answers))
        except GenerationError as exc:
            if self._discard_if_stale(session, "generation failure"):
                return False
            logger.error("Recipe generation failed for session %d: %s", session.session_id, exc)
            self._revert(session, Stage.QUESTIONS, GENERATION_FAILED_MESSAGE)
            return False
        except BaseException:
            logger.exception("Unexpected error while generating for session %d", session.session_id)
            self._revert(session, Stage.QUESTIONS, GENERATION_FAILED_MESSAGE)
            raise

        if self._discard_if_stale(session, "recipe"):
            return False
        self._in_flight = None
        session.recipe = recipe
        self._set_stage(Stage.RECIPE)
        return True

    # ------------------------------------------------------------------
    # Reset
    # ------------------------------------------------------------------

    def start_over(self) -> None:
        """Discard the session and return to IDLE. Pending responses for it will be dropped."""
        previous = self._session
        self._session = Session(session_id=next(self._ids))
        self._overlay = Overlay.NONE
        self._error = None
        self._in_flight = None
        logger.info("Session %d discarded at %s; started %d",
                    previous.session_id, previous.stage.value, self._session.session_id)
        self._notify()

    def dismiss_error(self) -> None:
        if self._error is None:
            return
        self._error = None
        self._notify()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _is_current(self, session_id: int) -> bool:
        return self._session.session_id == session_id

    def _discard_if_stale(self, session: Session, what: str) -> bool:
        if self._session is session:
            return False
        logger.warning("Discarding stale %s for replaced session %d", what, session.session_id)
        return True

    def _revert(self, session: Session, stage: Stage, message: str) -> None:
        """Fall back to a stable stage after a failed request. Answers are kept."""
        if self._session is not session:
            return
        self._in_flight = None
        self._error = message
        if stage is Stage.IDLE:
            session.captured_image = None
        self._set_stage(stage)

    def _require_idle(self, action: str) -> None:
        if self._session.stage is not Stage.IDLE:
            raise SessionValidationError(f"cannot {action} while {self._session.stage.value}")

    def _set_stage(self, stage: Stage) -> None:
        logger.info("Session %d: %s -> %s", self._session.session_id, self._session.stage.value, stage.value)
        self._session.stage = stage
        self._notify()


def create_session_machine(settings: ClientSettings, client: httpx.AsyncClient) -> SessionMachine:
    """Wire both service clients and the OpenCV capture provider around a shared HTTP client."""
    return SessionMachine(
        capture=OpenCVCaptureProvider(camera_index=settings.camera_index),
        analysis=AnalysisAgent(client, settings.api_url),
        recipes=RecipeAgent(client, settings.api_url),
    )


@asynccontextmanager
async def open_session_machine(settings: Optional[ClientSettings] = None) -> AsyncIterator[SessionMachine]:
    """
    Build a ready-to-use machine from settings (read from the environment by default).

    Applies the configured log level and owns the HTTP client, which is closed on exit.
    """
    settings = settings or ClientSettings.from_env()
    configure_logging(settings.log_level)
    async with settings.http_client() as client:
        yield create_session_machine(settings, client)
