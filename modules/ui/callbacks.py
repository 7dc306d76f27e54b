"""Callback implementations for the Gradio interface."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional

from config.settings import AppConfig
from modules.generation.messages import status_for
from modules.services.history_service import WorkflowRecord
from modules.utils.image_utils import to_pil_image
from modules.workflow.controller import WorkflowController
from modules.workflow.state import WorkflowState

logger = logging.getLogger(__name__)

SNIPPET_LENGTH = 60


def build_callbacks(config: AppConfig, controller: WorkflowController) -> dict[str, Any]:
    """Return a dictionary of Gradio callback functions."""

    def _text(key: str) -> str:
        return status_for(key, config.locale)

    def _status(state: WorkflowState, success_key: str) -> str:
        if state.error is not None:
            return f"⚠️ {state.error.message}"
        return _text(success_key)

    def _image(data_uri: Optional[str]) -> Optional[Any]:
        try:
            return to_pil_image(data_uri)
        except (ValueError, OSError) as exc:
            logger.warning("Cannot decode image payload: %s", exc)
            return None

    def _label(record: WorkflowRecord) -> str:
        created = datetime.fromtimestamp(record.created_at / 1000.0).strftime("%Y-%m-%d %H:%M")
        snippet = " ".join(record.source_text.split())
        if len(snippet) > SNIPPET_LENGTH:
            snippet = snippet[: SNIPPET_LENGTH - 3] + "..."
        return f"{created} · {record.style.value} · {record.aspect_ratio.value} · {snippet}"

    def _history_choices() -> list[tuple[str, str]]:
        return [(_label(record), record.id) for record in controller.history]

    def _history_gallery() -> list[tuple[Any, str]]:
        items = []
        for record in controller.history:
            image = _image(record.image_data)
            if image is not None:
                items.append((image, _label(record)))
        return items

    def on_load() -> tuple[list[tuple[str, str]], list[tuple[Any, str]]]:
        controller.load_history()
        return _history_choices(), _history_gallery()

    def on_analyze(
        input_text: str,
        style: str,
        ratio: str,
    ) -> tuple[str, str, Optional[Any], str]:
        state = controller.start_analysis(
            input_text or "",
            style or config.default_style,
            ratio or config.default_ratio,
        )
        return (
            state.analysis_text,
            state.visual_prompt,
            _image(state.image_data),
            _status(state, "analysis_done"),
        )

    def on_render() -> tuple[Optional[Any], str, list[tuple[str, str]], list[tuple[Any, str]]]:
        before = controller.state
        state = controller.start_render()
        if state is before:
            return _image(state.image_data), _text("ready"), _history_choices(), _history_gallery()
        return (
            _image(state.image_data),
            _status(state, "render_done"),
            _history_choices(),
            _history_gallery(),
        )

    def on_restore(record_id: str) -> tuple[str, str, str, str, str, Optional[Any], str]:
        state = controller.restore_by_id(record_id or "")
        key = "restored" if any(item.id == record_id for item in controller.history) else "not_found"
        return (
            state.input_text,
            state.style.value,
            state.aspect_ratio.value,
            state.analysis_text,
            state.visual_prompt,
            _image(state.image_data),
            _text(key),
        )

    def on_delete(record_id: str) -> tuple[list[tuple[str, str]], list[tuple[Any, str]], str]:
        if not record_id:
            return _history_choices(), _history_gallery(), _text("not_found")
        controller.delete_record(record_id)
        return _history_choices(), _history_gallery(), _status(controller.state, "deleted")

    def on_dismiss_error() -> str:
        controller.dismiss_error()
        return _text("ready")

    return {
        "on_load": on_load,
        "on_analyze": on_analyze,
        "on_render": on_render,
        "on_restore": on_restore,
        "on_delete": on_delete,
        "on_dismiss_error": on_dismiss_error,
    }
