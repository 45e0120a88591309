from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from poster_architect.config import settings
from poster_architect.editor.finals import FinalsCollection
from poster_architect.editor.geometry import DisplayRect, Size
from poster_architect.editor.history import EditHistory
from poster_architect.editor.mask import mask_for_selection
from poster_architect.editor.selection import SelectionPhase, SelectionTracker
from poster_architect.errors import GeometryUnavailable, PosterError, RemoteFailure, ValidationError
from poster_architect.providers.base import PosterImage, PosterProvider

logger = logging.getLogger(__name__)

SUGGESTING_MESSAGE = "AI is generating a concept..."
LOADING_MESSAGES = [
    "Analyzing product essence...",
    "Conceptualizing visual harmony...",
    "Mixing digital color palettes...",
    "Engaging neural art generators...",
    "Architecting poster structure...",
    "Applying futuristic finish...",
    "Finalizing creative output...",
]


class SessionPhase(str, Enum):
    IDLE = "idle"
    SUGGESTING = "suggesting"
    GENERATING = "generating"
    EDITING = "editing"


@dataclass(frozen=True)
class SessionSnapshot:
    phase: SessionPhase
    pending: bool
    status_text: str
    error: str | None
    aspect_ratio: str
    concept: str
    edit_instruction: str
    product_image_count: int
    history_length: int
    history_index: int
    can_undo: bool
    can_redo: bool
    has_poster: bool
    selection_phase: SelectionPhase
    selection: DisplayRect | None
    finals_count: int

    @property
    def edit_placeholder(self) -> str:
        if self.selection_phase == SelectionPhase.SELECTED:
            return "Describe change for selected area..."
        return "Describe change for whole image..."


def loading_message(tick: int) -> str:
    return LOADING_MESSAGES[tick % len(LOADING_MESSAGES)]


def build_poster_prompt(concept: str, aspect_ratio: str) -> str:
    return (
        "Create a visually stunning, professional promotional poster featuring the product "
        "in the provided image(s).\n"
        f'- Concept: "{concept}".\n'
        f"- The poster's aspect ratio must be {aspect_ratio}.\n"
        "- Completely replace the original background with a new, creative one that fits the concept. "
        "The product should be perfectly integrated.\n"
        "- The final output should be a high-quality, eye-catching advertisement. "
        "Do not add any text unless specified in the concept."
    )


class PosterSession:
    """
    Owns every piece of cross-component editor state: uploads, history,
    selection, finals, and the single in-flight operation.

    Remote triggers (upload, generate, submit_edit) are refused while another
    one is pending; nothing is queued. Failures land in the single `error` slot
    and never touch history.
    """

    def __init__(self, provider: PosterProvider, aspect_ratio: str | None = None) -> None:
        self.provider = provider
        self.product_images: list[PosterImage] = []
        self.aspect_ratio = aspect_ratio or settings.default_aspect_ratio
        self.concept = ""
        self.edit_instruction = ""
        self.history = EditHistory()
        self.selection = SelectionTracker()
        self.finals = FinalsCollection()
        self.phase = SessionPhase.IDLE
        self.status_text = ""
        self.error: str | None = None
        self._request_id = 0

    @property
    def pending(self) -> bool:
        return self.phase != SessionPhase.IDLE

    # ---- remote operations ----

    async def upload(self, images: list[PosterImage]) -> bool:
        """New product images: start over and ask the model for a concept."""
        if self._refuse("upload") or not images:
            return False

        self.history.reset()
        self.selection.clear()
        self.error = None
        self.concept = ""
        self.product_images = list(images)

        request_id = self._begin(SessionPhase.SUGGESTING, SUGGESTING_MESSAGE)
        try:
            suggestion = await self.provider.suggest_concept(self.product_images)
        except RemoteFailure as exc:
            if self._is_current(request_id):
                self._report(exc)
            return False
        else:
            if not self._is_current(request_id):
                return False
            self.concept = suggestion
            return True
        finally:
            self._finish(request_id)

    async def generate(self) -> bool:
        if self._refuse("generate"):
            return False
        if not self.product_images or not self.concept.strip():
            self._report(ValidationError("Please upload product images and describe your concept."))
            return False

        prompt = build_poster_prompt(self.concept, self.aspect_ratio)
        request_id = self._begin(SessionPhase.GENERATING, loading_message(0))
        try:
            result = await self.provider.generate(self.product_images, prompt)
        except RemoteFailure as exc:
            if self._is_current(request_id):
                self._report(exc)
            return False
        else:
            if not self._is_current(request_id):
                return False
            self.history.seed(result)
            self.selection.clear()
            self.edit_instruction = ""
            return True
        finally:
            self._finish(request_id)

    async def submit_edit(self, displayed: Size | None = None, instruction: str | None = None) -> bool:
        """
        Edit the poster under the history cursor. With a finished selection the
        edit is masked to it; otherwise it applies to the whole poster.
        `displayed` is the on-screen size of the poster the selection was drawn on.
        """
        if self._refuse("edit"):
            return False
        if instruction is not None:
            self.edit_instruction = instruction

        base = self.history.current()
        if base is None or not self.edit_instruction.strip():
            self._report(ValidationError("Cannot edit without a generated poster and an instruction."))
            return False

        mask = self._build_mask(base, displayed)
        request_id = self._begin(SessionPhase.EDITING, loading_message(0))
        try:
            result = await self.provider.edit(base, self.edit_instruction, mask)
        except RemoteFailure as exc:
            if self._is_current(request_id):
                self._report(exc)
            return False
        else:
            if not self._is_current(request_id):
                return False
            self.history.commit(result)
            return True
        finally:
            if self._is_current(request_id):
                self.selection.clear()
                self.edit_instruction = ""
            self._finish(request_id)

    # ---- local operations ----

    def undo(self) -> bool:
        if self._refuse("undo"):
            return False
        return self.history.undo()

    def redo(self) -> bool:
        if self._refuse("redo"):
            return False
        return self.history.redo()

    def save_to_finals(self) -> bool:
        current = self.history.current()
        if current is None:
            return False
        return self.finals.add(current)

    def set_concept(self, concept: str) -> bool:
        if self.phase == SessionPhase.SUGGESTING:
            return False
        self.concept = concept
        return True

    def set_edit_instruction(self, instruction: str) -> bool:
        if self.pending:
            return False
        self.edit_instruction = instruction
        return True

    def set_aspect_ratio(self, aspect_ratio: str) -> None:
        if aspect_ratio not in settings.aspect_ratios:
            raise ValidationError(
                f"aspect ratio must be one of {', '.join(settings.aspect_ratios)}, got '{aspect_ratio}'"
            )
        self.aspect_ratio = aspect_ratio

    def dismiss_error(self) -> None:
        self.error = None

    # ---- selection gestures ----

    def pointer_down(self, x: float, y: float) -> bool:
        if self.history.current() is None:
            return False
        return self.selection.pointer_down(x, y)

    def pointer_move(self, x: float, y: float) -> DisplayRect | None:
        return self.selection.pointer_move(x, y)

    def pointer_up(self) -> DisplayRect | None:
        return self.selection.pointer_up()

    def pointer_leave(self) -> DisplayRect | None:
        return self.selection.pointer_leave()

    def clear_selection(self) -> None:
        self.selection.clear()

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            phase=self.phase,
            pending=self.pending,
            status_text=self.status_text,
            error=self.error,
            aspect_ratio=self.aspect_ratio,
            concept=self.concept,
            edit_instruction=self.edit_instruction,
            product_image_count=len(self.product_images),
            history_length=len(self.history),
            history_index=self.history.index,
            can_undo=self.history.can_undo,
            can_redo=self.history.can_redo,
            has_poster=self.history.current() is not None,
            selection_phase=self.selection.phase,
            selection=self.selection.rect,
            finals_count=len(self.finals),
        )

    # ---- internals ----

    def _build_mask(self, base: PosterImage, displayed: Size | None) -> PosterImage | None:
        if self.selection.phase == SelectionPhase.DRAGGING:
            self.selection.pointer_up()
        selection = self.selection.selection
        if selection is None:
            return None

        try:
            natural = Size(*base.size)
        except OSError:
            natural = Size(0, 0)
        try:
            return mask_for_selection(selection, displayed or Size(0, 0), natural)
        except GeometryUnavailable as exc:
            logger.debug("No mask for edit: %s", exc)
            return None

    def _refuse(self, action: str) -> bool:
        if self.pending:
            logger.warning("Refusing %s while %s is in flight", action, self.phase.value)
            return True
        return False

    def _begin(self, phase: SessionPhase, status_text: str) -> int:
        self._request_id += 1
        self.phase = phase
        self.status_text = status_text
        self.error = None
        self.selection.enabled = False
        logger.info("Started %s (request %d)", phase.value, self._request_id)
        return self._request_id

    def _is_current(self, request_id: int) -> bool:
        if request_id != self._request_id:
            logger.warning("Dropping stale completion for request %d (latest %d)", request_id, self._request_id)
            return False
        return True

    def _finish(self, request_id: int) -> None:
        if request_id != self._request_id:
            return
        logger.info("Finished %s (request %d)", self.phase.value, request_id)
        self.phase = SessionPhase.IDLE
        self.status_text = ""
        self.selection.enabled = True

    def _report(self, exc: PosterError) -> None:
        if isinstance(exc, RemoteFailure):
            logger.error("%s: %s", type(exc).__name__, exc)
        self.error = str(exc)
