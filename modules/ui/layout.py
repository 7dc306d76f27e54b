"""Gradio layout composition for the analysis and rendering workflow."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Sequence

import gradio as gr

from config.settings import AppConfig
from modules.generation.client import GenerationClient
from modules.generation.messages import status_for
from modules.generation.styles import RATIO_LABELS, AspectRatio, StylePresetRegistry
from modules.services.history_service import PersistentHistoryStore
from modules.services.storage_service import JsonFileStorage
from modules.ui.callbacks import build_callbacks
from modules.workflow.controller import WorkflowController


def _load_style_registry(config: AppConfig) -> StylePresetRegistry:
    registry = StylePresetRegistry()
    registry.load_from_file(Path(config.assets_dir) / "styles.json")
    return registry


def _style_choices(registry: StylePresetRegistry) -> Sequence[tuple[str, str]]:
    return [(preset.label or preset.style.value, preset.style.value) for preset in registry.list_presets()]


def _ratio_choices() -> Sequence[tuple[str, str]]:
    return [(RATIO_LABELS[ratio], ratio.value) for ratio in AspectRatio]


def build_controller(config: AppConfig) -> WorkflowController:
    """Wire the generation client and history store into a controller."""
    client = GenerationClient(config, style_registry=_load_style_registry(config))
    store = PersistentHistoryStore(
        JsonFileStorage(Path(config.history_path)),
        key=config.history_key,
        capacity=config.history_limit,
    )
    return WorkflowController(client, store, locale=config.locale)


def build_app(config: AppConfig, controller: WorkflowController | None = None) -> Any:
    """Compose and return the Gradio application."""
    controller = controller or build_controller(config)
    callbacks_map = build_callbacks(config, controller)
    style_choices = _style_choices(_load_style_registry(config))
    ratio_choices = _ratio_choices()

    def _history_outputs(choices, gallery):
        return gr.update(choices=choices, value=None), gallery

    def _on_load():
        return _history_outputs(*callbacks_map["on_load"]())

    def _on_render():
        image, status, choices, gallery = callbacks_map["on_render"]()
        history_select, history_gallery = _history_outputs(choices, gallery)
        return image, status, history_select, history_gallery

    def _on_restore(record_id):
        *fields, status = callbacks_map["on_restore"](record_id)
        return (*fields, status, gr.update(selected="generate"))

    def _on_delete(record_id):
        choices, gallery, status = callbacks_map["on_delete"](record_id)
        history_select, history_gallery = _history_outputs(choices, gallery)
        return history_select, history_gallery, status

    with gr.Blocks(title="Visual Soal Pro") as demo:
        gr.Markdown("## Visual Soal Pro\nStimulus teks → analisis → prompt visual → gambar")
        status = gr.Markdown(status_for("ready", config.locale))
        dismiss_btn = gr.Button("Tutup pesan", size="sm")

        with gr.Tabs(selected="generate") as tabs:
            with gr.Tab("Generator", id="generate"):
                with gr.Row():
                    with gr.Column(scale=4):
                        input_text = gr.Textbox(
                            label="Soal / stimulus",
                            lines=8,
                            placeholder="Tempelkan teks soal atau stimulus di sini",
                        )
                        with gr.Row():
                            style_select = gr.Dropdown(
                                label="Gaya visual",
                                choices=list(style_choices),
                                value=config.default_style,
                            )
                            ratio_select = gr.Radio(
                                label="Rasio",
                                choices=list(ratio_choices),
                                value=config.default_ratio,
                            )
                        analyze_btn = gr.Button("Analisis & buat prompt", variant="primary")
                        analysis = gr.Textbox(label="Analisis", lines=6, interactive=False)
                        visual_prompt = gr.Textbox(
                            label="Prompt visual (English)",
                            lines=6,
                            interactive=False,
                        )
                        render_btn = gr.Button("Buat gambar", variant="primary")

                    with gr.Column(scale=8):
                        output_image = gr.Image(label="Hasil", type="pil", interactive=False)

            with gr.Tab("Riwayat", id="history"):
                history_select = gr.Dropdown(label="Riwayat tersimpan", choices=[], value=None)
                with gr.Row():
                    restore_btn = gr.Button("Muat ke generator")
                    delete_btn = gr.Button("Hapus", variant="stop")
                history_gallery = gr.Gallery(label="Galeri", columns=4, height="auto")

        demo.load(fn=_on_load, inputs=None, outputs=[history_select, history_gallery])

        analyze_btn.click(
            fn=callbacks_map["on_analyze"],
            inputs=[input_text, style_select, ratio_select],
            outputs=[analysis, visual_prompt, output_image, status],
        )

        render_btn.click(
            fn=_on_render,
            inputs=None,
            outputs=[output_image, status, history_select, history_gallery],
        )

        restore_btn.click(
            fn=_on_restore,
            inputs=[history_select],
            outputs=[
                input_text,
                style_select,
                ratio_select,
                analysis,
                visual_prompt,
                output_image,
                status,
                tabs,
            ],
        )

        delete_btn.click(
            fn=_on_delete,
            inputs=[history_select],
            outputs=[history_select, history_gallery, status],
        )

        dismiss_btn.click(fn=callbacks_map["on_dismiss_error"], inputs=None, outputs=[status])

    return demo
