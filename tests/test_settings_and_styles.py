"""Configuration, style preset and image helper tests."""

from __future__ import annotations

import io
import json
import logging

import pytest
from PIL import Image

from config.settings import DEFAULT_IMAGE_MODEL, DEFAULT_TEXT_MODEL, AppConfig, load_config
from modules.generation.errors import ErrorKind, is_not_found
from modules.generation.messages import MESSAGES, message_for
from modules.generation.styles import (
    STYLE_PROMPTS,
    AspectRatio,
    StylePresetRegistry,
    VisualStyle,
    parse_ratio,
    parse_style,
)
from modules.utils.image_utils import decode_data_uri, encode_data_uri, save_data_uri, to_pil_image
from modules.utils.logging import resolve_level, setup_logging

ENV_NAMES = (
    "GEMINI_API_KEY",
    "GOOGLE_API_KEY",
    "API_KEY",
    "TEXT_MODEL",
    "IMAGE_MODEL",
    "TEXT_BACKEND",
    "TEXT_TEMPERATURE",
    "OPENAI_API_KEY",
    "SILICONFLOW_API_KEY",
    "OPENAI_BASE_URL",
    "SILICONFLOW_BASE_URL",
    "OPENAI_MODEL",
    "SILICONFLOW_MODEL",
    "ANTHROPIC_API_KEY",
    "CLAUDE_MODEL",
    "HISTORY_PATH",
    "HISTORY_LIMIT",
    "APP_LOCALE",
    "LOG_DIR",
    "LOG_LEVEL",
)


@pytest.fixture
def clean_env(monkeypatch):
    # setenv first so that values written by load_config are undone afterwards
    for name in ENV_NAMES:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    yield monkeypatch


def test_load_config_defaults(clean_env, tmp_path):
    config = load_config(str(tmp_path / "missing.env"))

    assert config.google_api_key is None
    assert config.text_model == DEFAULT_TEXT_MODEL
    assert config.image_model == DEFAULT_IMAGE_MODEL
    assert config.temperature == pytest.approx(0.3)
    assert config.history_limit == 50
    assert config.log_level == "INFO"
    assert config.locale == "id"
    assert config.metadata == {}


def test_load_config_reads_env_file(clean_env, tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text(
        "\n".join(
            [
                "# comment",
                "GEMINI_API_KEY=gem-key",
                "TEXT_BACKEND=GPT",
                "SILICONFLOW_API_KEY=sf-key",
                "SILICONFLOW_BASE_URL=https://api.example.test/v1",
                "HISTORY_LIMIT=10",
                "HISTORY_PATH=" + str(tmp_path / "h.json"),
                "APP_LOCALE=EN",
                "TEXT_TEMPERATURE=not-a-number",
                "LOG_LEVEL=debug",
            ]
        ),
        encoding="utf-8",
    )

    config = load_config(str(env_file))

    assert config.google_api_key == "gem-key"
    assert config.text_backend == "gpt"
    assert config.openai_key == "sf-key"
    assert config.metadata["openai_base_url"] == "https://api.example.test/v1"
    assert config.history_limit == 10
    assert config.history_path == tmp_path / "h.json"
    assert config.locale == "en"
    assert config.log_level == "DEBUG"
    assert config.temperature == pytest.approx(0.3)


def test_style_registry_has_one_template_per_style():
    registry = StylePresetRegistry()

    presets = registry.list_presets()

    assert [preset.style for preset in presets] == list(VisualStyle)
    assert all(preset.template == STYLE_PROMPTS[preset.style] for preset in presets)


def test_style_registry_overrides_from_file(tmp_path):
    path = tmp_path / "styles.json"
    path.write_text(
        json.dumps(
            [
                {"style": "SKETCH", "template": "charcoal on paper", "label": "Charcoal"},
                {"style": "WATERCOLOR", "template": "ignored"},
            ]
        ),
        encoding="utf-8",
    )
    registry = StylePresetRegistry()

    registry.load_from_file(path)

    assert registry.get(VisualStyle.SKETCH).template == "charcoal on paper"
    assert registry.get("SKETCH").label == "Charcoal"
    assert len(registry.list_presets()) == 4


def test_parse_enums_accept_values_and_names():
    assert parse_style("3D") is VisualStyle.THREE_D
    assert parse_style("three_d") is VisualStyle.THREE_D
    assert parse_ratio("16:9") is AspectRatio.LANDSCAPE
    assert parse_ratio("portrait") is AspectRatio.PORTRAIT
    with pytest.raises(ValueError):
        parse_ratio("4:3")


def test_every_error_kind_has_messages():
    for locale in MESSAGES:
        for kind in ErrorKind:
            assert message_for(kind, locale)
    assert message_for(ErrorKind.EMPTY_INPUT, "fr") == message_for(ErrorKind.EMPTY_INPUT, "id")


def test_is_not_found_detection():
    class StatusError(Exception):
        status_code = 404

    assert is_not_found(StatusError("missing"))
    assert is_not_found(RuntimeError("404 NOT_FOUND models/x"))
    assert not is_not_found(RuntimeError("500 INTERNAL"))


def test_data_uri_helpers(tmp_path):
    buffer = io.BytesIO()
    Image.new("RGB", (3, 2)).save(buffer, format="PNG")
    data_uri = encode_data_uri(buffer.getvalue(), "image/png")

    mime_type, raw = decode_data_uri(data_uri)
    image = to_pil_image(data_uri)
    out_path = save_data_uri(data_uri, tmp_path / "out", "sample")

    assert mime_type == "image/png"
    assert raw == buffer.getvalue()
    assert image.size == (3, 2)
    assert out_path.name == "sample.png"
    assert out_path.read_bytes() == raw
    assert to_pil_image(None) is None
    with pytest.raises(ValueError):
        decode_data_uri("https://example.test/image.png")


@pytest.mark.parametrize(
    ("name", "expected"),
    [("DEBUG", logging.DEBUG), ("warning", logging.WARNING), (" error ", logging.ERROR), ("loud", logging.INFO)],
)
def test_resolve_level(name, expected):
    assert resolve_level(name) == expected


def test_setup_logging_applies_configured_level(tmp_path):
    root = logging.getLogger()
    previous = root.level
    try:
        logger = setup_logging(AppConfig(log_dir=tmp_path / "logs", log_level="DEBUG"))

        assert root.level == logging.DEBUG
        assert logger.isEnabledFor(logging.DEBUG)
        assert (tmp_path / "logs").is_dir()
    finally:
        root.setLevel(previous)
