"""Two-stage analysis/render workflow controller."""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import Callable, List, Optional, Protocol

from modules.generation.client import PromptResult
from modules.generation.errors import ErrorKind, GenerationError, PersistenceError
from modules.generation.messages import DEFAULT_LOCALE, delete_failure_message, message_for
from modules.generation.styles import AspectRatio, VisualStyle, parse_ratio, parse_style
from modules.services.history_service import HistoryStore, WorkflowRecord, new_record_id, now_millis
from modules.workflow.state import ActiveView, Stage, WorkflowError, WorkflowState

logger = logging.getLogger(__name__)

StateListener = Callable[[WorkflowState], None]


class WorkflowGenerator(Protocol):
    """The two generation calls the controller depends on."""

    def analyze_and_prompt(
        self, input_text: str, style: VisualStyle, ratio: AspectRatio
    ) -> PromptResult:
        ...

    def render_image(self, prompt: str, ratio: AspectRatio) -> str:
        ...


class WorkflowController:
    """Owns the working state and sequences analysis before rendering.

    Every public transition replaces the state snapshot, notifies subscribers
    and returns the new snapshot. Busy flags are always released, whatever the
    outcome of the underlying call.
    """

    def __init__(
        self,
        generator: WorkflowGenerator,
        history_store: HistoryStore,
        locale: str = DEFAULT_LOCALE,
        initial_state: Optional[WorkflowState] = None,
    ) -> None:
        self.generator = generator
        self.history_store = history_store
        self.locale = locale
        self._state = initial_state or WorkflowState()
        self._history: List[WorkflowRecord] = []
        self._listeners: List[StateListener] = []
        self._busy_lock = threading.RLock()

    @property
    def state(self) -> WorkflowState:
        return self._state

    @property
    def history(self) -> tuple[WorkflowRecord, ...]:
        return tuple(self._history)

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call ``listener`` after every state change; returns an unsubscribe function."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # Editable inputs ----------------------------------------------------------
    def set_input(self, input_text: str) -> WorkflowState:
        return self._update(input_text=input_text)

    def set_style(self, style: str | VisualStyle) -> WorkflowState:
        return self._update(style=parse_style(style))

    def set_ratio(self, ratio: str | AspectRatio) -> WorkflowState:
        return self._update(aspect_ratio=parse_ratio(ratio))

    def set_view(self, view: ActiveView) -> WorkflowState:
        return self._update(active_view=view)

    def dismiss_error(self) -> WorkflowState:
        return self._update(error=None)

    # Transitions --------------------------------------------------------------
    def load_history(self) -> tuple[WorkflowRecord, ...]:
        """Read persisted history; the store recovers from corrupt data itself."""
        self._history = list(self.history_store.load())
        self._notify()
        return self.history

    def start_analysis(
        self,
        input_text: str,
        style: str | VisualStyle,
        ratio: str | AspectRatio,
    ) -> WorkflowState:
        """Stage 1: analyze the stimulus and derive the visual prompt."""
        style = parse_style(style)
        ratio = parse_ratio(ratio)
        # Gradio runs callbacks on worker threads; busy check and set happen under one lock
        with self._busy_lock:
            if self._state.is_busy:
                logger.warning("Ignoring analysis request while a stage is running")
                return self._state

            if not input_text.strip():
                return self._update(
                    input_text=input_text,
                    style=style,
                    aspect_ratio=ratio,
                    error=self._error(ErrorKind.EMPTY_INPUT),
                    stage=Stage.IDLE,
                )

            self._update(
                input_text=input_text,
                style=style,
                aspect_ratio=ratio,
                analysis_text="",
                visual_prompt="",
                image_data=None,
                error=None,
                is_analyzing=True,
                stage=Stage.ANALYZING,
            )

        changes: dict = {"stage": Stage.IDLE}
        try:
            result = self.generator.analyze_and_prompt(input_text, style, ratio)
            if not result.visual_prompt:
                changes["error"] = self._error(ErrorKind.EMPTY_ANALYSIS_RESULT)
            else:
                changes.update(
                    analysis_text=result.analysis,
                    visual_prompt=result.visual_prompt,
                    stage=Stage.ANALYZED_READY,
                )
        except GenerationError as exc:
            logger.error("Analysis error (%s): %s", exc.kind.value, exc)
            changes["error"] = self._error(exc.kind)
        except Exception:  # noqa: BLE001
            logger.exception("Unexpected analysis failure")
            changes["error"] = self._error(ErrorKind.TRANSPORT_ERROR)
        finally:
            changes["is_analyzing"] = False
            self._update(**changes)
        return self._state

    def start_render(self) -> WorkflowState:
        """Stage 2: render the current prompt and record the completed run."""
        with self._busy_lock:
            current = self._state
            if not current.visual_prompt:
                return current
            if current.is_busy:
                logger.warning("Ignoring render request while a stage is running")
                return current

            self._update(error=None, is_rendering=True, stage=Stage.RENDERING)

        changes: dict = {"stage": Stage.ANALYZED_READY}
        try:
            image_data = self.generator.render_image(current.visual_prompt, current.aspect_ratio)
            changes.update(image_data=image_data, stage=Stage.COMPLETE)
            record = WorkflowRecord(
                id=new_record_id(),
                created_at=now_millis(),
                source_text=current.input_text,
                style=current.style,
                aspect_ratio=current.aspect_ratio,
                analysis_text=current.analysis_text,
                visual_prompt=current.visual_prompt,
                image_data=image_data,
            )
            self._persist(record, changes)
        except GenerationError as exc:
            logger.error("Generation error (%s): %s", exc.kind.value, exc)
            changes["error"] = self._error(exc.kind)
        except Exception:  # noqa: BLE001
            logger.exception("Unexpected render failure")
            changes["error"] = self._error(ErrorKind.TRANSPORT_ERROR)
        finally:
            changes["is_rendering"] = False
            self._update(**changes)
        return self._state

    def restore(self, record: WorkflowRecord) -> WorkflowState:
        """Copy a history record into the working state."""
        return self._update(
            input_text=record.source_text,
            style=record.style,
            aspect_ratio=record.aspect_ratio,
            analysis_text=record.analysis_text,
            visual_prompt=record.visual_prompt,
            image_data=record.image_data,
            error=None,
            stage=Stage.COMPLETE if record.image_data else Stage.ANALYZED_READY,
            active_view=ActiveView.GENERATE,
        )

    def restore_by_id(self, record_id: str) -> WorkflowState:
        """Restore the history record with ``record_id``; unknown ids change nothing."""
        for record in self._history:
            if record.id == record_id:
                return self.restore(record)
        logger.warning("History record %s not found", record_id)
        return self._state

    def delete_record(self, record_id: str) -> tuple[WorkflowRecord, ...]:
        """Remove a record from history; working fields stay as they are, the error slot is reset."""
        try:
            self._history = list(self.history_store.remove(record_id))
        except PersistenceError as exc:
            logger.error("Failed to delete history record %s: %s", record_id, exc)
            self._update(
                error=WorkflowError(
                    kind=ErrorKind.PERSISTENCE_WRITE_ERROR,
                    message=delete_failure_message(self.locale),
                )
            )
        else:
            self._update(error=None)
        return self.history

    # Internal helpers ---------------------------------------------------------
    def _persist(self, record: WorkflowRecord, changes: dict) -> None:
        try:
            self._history = list(self.history_store.insert(record))
        except PersistenceError as exc:
            logger.error("Failed to save history: %s", exc)
            changes["error"] = self._error(ErrorKind.PERSISTENCE_WRITE_ERROR)

    def _error(self, kind: ErrorKind) -> WorkflowError:
        return WorkflowError(kind=kind, message=message_for(kind, self.locale))

    def _update(self, **changes) -> WorkflowState:
        self._state = replace(self._state, **changes)
        self._notify()
        return self._state

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self._state)
