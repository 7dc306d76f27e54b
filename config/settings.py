"""Configuration helpers for the Visual Soal project."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

DEFAULT_TEXT_MODEL = "gemini-3-flash-preview"
DEFAULT_IMAGE_MODEL = "gemini-2.5-flash-image"
HISTORY_KEY = "visual_soal_history_v1"


@dataclass(slots=True)
class AppConfig:
    """Centralized application configuration."""

    assets_dir: Path = Path("assets")
    google_api_key: Optional[str] = None
    text_model: str = DEFAULT_TEXT_MODEL
    image_model: str = DEFAULT_IMAGE_MODEL
    text_backend: str = "gemini"
    temperature: float = 0.3
    anthropic_key: Optional[str] = None
    openai_key: Optional[str] = None
    log_dir: Path = Path("logs")
    log_level: str = "INFO"
    history_path: Path = Path("data/history.json")
    history_key: str = HISTORY_KEY
    history_limit: int = 50
    locale: str = "id"
    default_style: str = "3D"
    default_ratio: str = "16:9"
    metadata: dict[str, Any] = field(default_factory=dict)


def _load_env_file(path: Path) -> None:
    """Populate environment variables from a simple KEY=VALUE .env file."""
    if not path.exists():
        return

    for line in path.read_text(encoding="utf-8").splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        key, value = stripped.split("=", 1)
        os.environ[key.strip()] = value.strip()


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return max(1, int(raw))
    except ValueError:
        return default


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """Return an AppConfig instance with environment-aware settings."""
    env_path = Path(config_path) if config_path else Path(".env")
    _load_env_file(env_path)

    google_api_key = os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY") or os.getenv("API_KEY")
    openai_key = os.getenv("OPENAI_API_KEY") or os.getenv("SILICONFLOW_API_KEY")
    openai_base_url = os.getenv("OPENAI_BASE_URL") or os.getenv("SILICONFLOW_BASE_URL")
    openai_model = os.getenv("OPENAI_MODEL") or os.getenv("SILICONFLOW_MODEL")
    claude_model = os.getenv("CLAUDE_MODEL")

    metadata: dict[str, Any] = {}
    if openai_base_url:
        metadata["openai_base_url"] = openai_base_url
    if openai_model:
        metadata["openai_model"] = openai_model
    if claude_model:
        metadata["claude_model"] = claude_model

    history_path = Path(os.getenv("HISTORY_PATH", "data/history.json")).expanduser()
    log_dir = Path(os.getenv("LOG_DIR", "logs")).expanduser()

    return AppConfig(
        google_api_key=google_api_key,
        text_model=os.getenv("TEXT_MODEL") or DEFAULT_TEXT_MODEL,
        image_model=os.getenv("IMAGE_MODEL") or DEFAULT_IMAGE_MODEL,
        text_backend=(os.getenv("TEXT_BACKEND") or "gemini").lower(),
        temperature=_float_env("TEXT_TEMPERATURE", 0.3),
        anthropic_key=os.getenv("ANTHROPIC_API_KEY"),
        openai_key=openai_key,
        log_dir=log_dir,
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
        history_path=history_path,
        history_limit=_int_env("HISTORY_LIMIT", 50),
        locale=(os.getenv("APP_LOCALE") or "id").lower(),
        metadata=metadata,
    )
