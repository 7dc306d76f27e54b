"""Gradio UI callback tests."""

from __future__ import annotations

import io

import pytest
from PIL import Image

from config.settings import AppConfig
from modules.generation.client import PromptResult
from modules.generation.errors import ErrorKind, NoImageReturnedError, TransportError
from modules.generation.messages import message_for, status_for
from modules.generation.styles import AspectRatio, VisualStyle
from modules.services.history_service import PersistentHistoryStore
from modules.services.storage_service import MemoryStorage
from modules.ui import callbacks
from modules.utils.image_utils import encode_data_uri
from modules.workflow.controller import WorkflowController


def png_data_uri() -> str:
    buffer = io.BytesIO()
    Image.new("RGB", (4, 4), color=(200, 40, 40)).save(buffer, format="PNG")
    return encode_data_uri(buffer.getvalue(), "image/png")


class DummyGenerator:
    """Minimal generation client stub returning fixed results."""

    def __init__(self) -> None:
        self.render_error: Exception | None = None

    def analyze_and_prompt(self, input_text, style, ratio):
        return PromptResult(analysis=f"analysis of {input_text}", visual_prompt=f"{style.value} scene")

    def render_image(self, prompt, ratio):
        if self.render_error is not None:
            raise self.render_error
        return png_data_uri()


def build_callbacks(generator: DummyGenerator | None = None, storage: MemoryStorage | None = None):
    config = AppConfig()
    controller = WorkflowController(
        generator or DummyGenerator(),
        PersistentHistoryStore(storage or MemoryStorage(), config.history_key),
        locale=config.locale,
    )
    return controller, callbacks.build_callbacks(config, controller)


def test_on_analyze_success():
    _, cb = build_callbacks()

    analysis, prompt, image, status = cb["on_analyze"]("Urbanisasi", "FLAT", "1:1")

    assert analysis == "analysis of Urbanisasi"
    assert prompt == "FLAT scene"
    assert image is None
    assert status == status_for("analysis_done")


def test_on_analyze_empty_input_reports_error():
    _, cb = build_callbacks()

    analysis, prompt, image, status = cb["on_analyze"]("", "FLAT", "1:1")

    assert analysis == ""
    assert prompt == ""
    assert message_for(ErrorKind.EMPTY_INPUT) in status


def test_on_analyze_falls_back_to_default_style_and_ratio():
    controller, cb = build_callbacks()

    cb["on_analyze"]("text", None, None)

    assert controller.state.style is VisualStyle.THREE_D
    assert controller.state.aspect_ratio is AspectRatio.LANDSCAPE


def test_on_render_before_analysis_is_noop():
    controller, cb = build_callbacks()

    image, status, choices, gallery = cb["on_render"]()

    assert image is None
    assert status == status_for("ready")
    assert choices == []
    assert controller.history == ()


def test_on_render_success_updates_history():
    controller, cb = build_callbacks()
    cb["on_analyze"]("Migrasi", "SKETCH", "9:16")

    image, status, choices, gallery = cb["on_render"]()

    assert isinstance(image, Image.Image)
    assert status == status_for("render_done")
    assert len(choices) == 1
    assert choices[0][1] == controller.history[0].id
    assert "SKETCH" in choices[0][0]
    assert len(gallery) == 1


def test_on_render_failure_shows_error():
    generator = DummyGenerator()
    generator.render_error = NoImageReturnedError("empty")
    _, cb = build_callbacks(generator)
    cb["on_analyze"]("Migrasi", "SKETCH", "9:16")

    image, status, choices, _ = cb["on_render"]()

    assert image is None
    assert message_for(ErrorKind.NO_IMAGE_RETURNED) in status
    assert choices == []


def test_on_restore_and_delete_round_trip():
    storage = MemoryStorage()
    controller, cb = build_callbacks(storage=storage)
    cb["on_analyze"]("Stratifikasi sosial", "REALISTIC", "16:9")
    cb["on_render"]()
    record_id = controller.history[0].id
    cb["on_analyze"]("something else", "FLAT", "1:1")

    input_text, style, ratio, analysis, prompt, image, status = cb["on_restore"](record_id)

    assert input_text == "Stratifikasi sosial"
    assert style == "REALISTIC"
    assert ratio == "16:9"
    assert prompt == "REALISTIC scene"
    assert isinstance(image, Image.Image)
    assert status == status_for("restored")

    choices, gallery, status = cb["on_delete"](record_id)

    assert choices == []
    assert gallery == []
    assert status == status_for("deleted")
    assert controller.state.input_text == "Stratifikasi sosial"


def test_on_delete_after_failed_analysis_reports_deleted():
    generator = DummyGenerator()
    controller, cb = build_callbacks(generator)
    cb["on_analyze"]("Mobilitas sosial", "FLAT", "1:1")
    cb["on_render"]()
    record_id = controller.history[0].id

    def failing_analysis(input_text, style, ratio):
        raise TransportError("offline")

    generator.analyze_and_prompt = failing_analysis
    *_, failed_status = cb["on_analyze"]("Mobilitas sosial", "FLAT", "1:1")
    assert message_for(ErrorKind.TRANSPORT_ERROR) in failed_status

    choices, _, status = cb["on_delete"](record_id)

    assert choices == []
    assert status == status_for("deleted")


def test_on_restore_unknown_id():
    _, cb = build_callbacks()

    *_, status = cb["on_restore"]("missing")

    assert status == status_for("not_found")


def test_on_load_reads_existing_history():
    storage = MemoryStorage()
    _, first = build_callbacks(storage=storage)
    first["on_analyze"]("text", "FLAT", "1:1")
    first["on_render"]()

    _, cb = build_callbacks(storage=storage)
    choices, gallery = cb["on_load"]()

    assert len(choices) == 1
    assert len(gallery) == 1


def test_on_dismiss_error():
    controller, cb = build_callbacks()
    cb["on_analyze"]("", "FLAT", "1:1")

    status = cb["on_dismiss_error"]()

    assert controller.state.error is None
    assert status == status_for("ready")


@pytest.mark.parametrize("payload", ["data:image/png;base64,@@@@", "data:image/png;base64,AAAA"])
def test_broken_image_payload_is_not_fatal(payload):
    generator = DummyGenerator()
    generator.render_image = lambda prompt, ratio: payload
    _, cb = build_callbacks(generator)
    cb["on_analyze"]("text", "FLAT", "1:1")

    image, status, choices, gallery = cb["on_render"]()

    assert image is None
    assert len(choices) == 1
    assert gallery == []
