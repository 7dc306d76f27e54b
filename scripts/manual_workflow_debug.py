"""One-off script for running the full analysis + render workflow against the real APIs."""

from pathlib import Path

from config.settings import load_config
from modules.generation.client import GenerationClient
from modules.generation.styles import AspectRatio, VisualStyle
from modules.services.history_service import PersistentHistoryStore
from modules.services.storage_service import JsonFileStorage
from modules.utils.image_utils import save_data_uri
from modules.utils.logging import setup_logging
from modules.workflow.controller import WorkflowController


def main() -> None:
    # 1. Real configuration, history kept apart from the app's own file
    config = load_config()
    setup_logging(config)

    client = GenerationClient(config)
    store = PersistentHistoryStore(
        JsonFileStorage(Path("debug_history.json")),
        key=config.history_key,
        capacity=config.history_limit,
    )
    controller = WorkflowController(client, store, locale=config.locale)
    controller.load_history()

    # 2. Stage 1
    stimulus = (
        "Di sebuah desa, warga bergotong royong membersihkan saluran air "
        "menjelang musim hujan, sementara para pemuda mengatur jadwal ronda."
    )
    state = controller.start_analysis(stimulus, VisualStyle.FLAT, AspectRatio.LANDSCAPE)
    print("Backend:", client.default_backend(), client.warnings or "")
    if state.error:
        print("Analysis failed:", state.error.kind.value, state.error.message)
        return
    print("Analysis:", state.analysis_text)
    print("Prompt:", state.visual_prompt)

    # 3. Stage 2
    state = controller.start_render()
    if state.error:
        print("Render failed:", state.error.kind.value, state.error.message)
    if state.image_data:
        out_path = save_data_uri(state.image_data, Path("."), "debug_workflow_output")
        print("Image saved:", out_path.resolve())
    print("History size:", len(controller.history))


if __name__ == "__main__":
    main()
