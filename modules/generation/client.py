"""Analysis and image generation via third-party model APIs."""

from __future__ import annotations

import importlib
import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from google import genai
from google.genai import types

from config.settings import AppConfig
from modules.generation.errors import (
    EmptyResponseError,
    GenerationError,
    MalformedResponseError,
    ModelUnavailableError,
    NoImageReturnedError,
    TransportError,
    is_not_found,
)
from modules.generation.styles import AspectRatio, StylePresetRegistry, VisualStyle, parse_ratio, parse_style
from modules.utils.image_utils import encode_data_uri

logger = logging.getLogger(__name__)

JSON_MIME_TYPE = "application/json"

INSTRUCTION_TEMPLATE = """
Role: Expert Educational Illustrator & Sociologist.
Task: Convert the provided Sociology stimulus (text) into a precise visual description (prompt) for an AI image generator.

Style: {style_template}
Aspect Ratio: {ratio}

Steps:
1. Analyze the input to identify key sociological concepts.
2. Formulate a visual scene (concrete, avoiding abstract symbols).
3. Construct a detailed English prompt.

Output JSON format strictly:
{{
  "analysis": "Bahasa Indonesia explanation",
  "visualPrompt": "English image prompt"
}}
""".strip()


@dataclass(slots=True)
class PromptResult:
    """Outcome of the analysis stage."""

    analysis: str
    visual_prompt: str


@dataclass(slots=True)
class AnalysisRequest:
    """Information passed to text backends."""

    instruction: str
    input_text: str
    temperature: float
    response_mime_type: str
    metadata: Dict[str, Any]


TextBackend = Callable[[AnalysisRequest], Optional[str]]


def extract_json_object(text: Optional[str]) -> Dict[str, Any]:
    """Parse the span between the first ``{`` and the last ``}`` of a model reply."""
    if not text:
        raise EmptyResponseError("Model response was empty")

    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end < start:
        raise MalformedResponseError("No JSON object found in model response")

    try:
        data = json.loads(text[start : end + 1])
    except json.JSONDecodeError as exc:
        logger.error("JSON parse error: %s; raw text: %r", exc, text)
        raise MalformedResponseError(f"Invalid JSON in model response: {exc}") from exc

    return data


def parse_prompt_result(text: Optional[str]) -> PromptResult:
    """Turn raw backend text into a PromptResult."""
    data = extract_json_object(text)
    analysis = data.get("analysis")
    visual_prompt = data.get("visualPrompt")
    return PromptResult(
        analysis=str(analysis) if analysis is not None else "",
        visual_prompt=str(visual_prompt) if visual_prompt is not None else "",
    )


def extract_image_data(response: Any) -> str:
    """Return the first inline image part of a generate-content response as a data URI."""
    for candidate in getattr(response, "candidates", None) or []:
        content = getattr(candidate, "content", None)
        for part in getattr(content, "parts", None) or []:
            inline = getattr(part, "inline_data", None)
            if inline is not None and inline.data:
                return encode_data_uri(inline.data, getattr(inline, "mime_type", None))
    raise NoImageReturnedError("Model returned no image data")


class GenerationClient:
    """Wrapper around the analysis (text) and render (image) model calls."""

    def __init__(
        self,
        config: AppConfig,
        genai_client: Any = None,
        style_registry: Optional[StylePresetRegistry] = None,
    ) -> None:
        self.config = config
        self.style_registry = style_registry or StylePresetRegistry()
        self._genai_client = genai_client
        self._backends: Dict[str, TextBackend] = {}
        self.warnings: list[str] = []
        self._auto_register_backends()

    def register_backend(self, name: str, backend: TextBackend) -> None:
        """Register a text backend for the analysis stage."""
        self._backends[name.lower()] = backend

    def clear_backends(self) -> None:
        """Remove all text backends (mainly for tests)."""
        self._backends.clear()

    def has_backend(self, name: str) -> bool:
        """Return True when backend exists."""
        return name.lower() in self._backends

    def available_backends(self) -> list[str]:
        """Return registered text backends ordered by preference."""
        priority = {"gemini": 0, "gpt": 1, "claude": 2}
        return sorted(self._backends.keys(), key=lambda item: (priority.get(item, 99), item))

    def default_backend(self) -> str:
        """Return the configured backend when registered, else the preferred one."""
        configured = self.config.text_backend.lower()
        if configured in self._backends:
            return configured
        choices = self.available_backends()
        if choices:
            return choices[0]
        return configured

    def build_instruction(self, style: str | VisualStyle, ratio: str | AspectRatio) -> str:
        """Return the analysis instruction for a style/ratio pair."""
        preset = self.style_registry.get(style)
        return INSTRUCTION_TEMPLATE.format(
            style_template=preset.template,
            ratio=parse_ratio(ratio).value,
        )

    def build_request(
        self, input_text: str, style: str | VisualStyle, ratio: str | AspectRatio
    ) -> AnalysisRequest:
        """Build the analysis request; depends only on its arguments and static config."""
        return AnalysisRequest(
            instruction=self.build_instruction(style, ratio),
            input_text=input_text,
            temperature=self.config.temperature,
            response_mime_type=JSON_MIME_TYPE,
            metadata=dict(self.config.metadata),
        )

    def analyze_and_prompt(
        self,
        input_text: str,
        style: str | VisualStyle,
        ratio: str | AspectRatio,
        backend: Optional[str] = None,
    ) -> PromptResult:
        """Run the analysis stage and return the parsed analysis and visual prompt."""
        request = self.build_request(input_text, parse_style(style), parse_ratio(ratio))
        name = (backend or self.default_backend()).lower()
        handler = self._backends.get(name)
        if handler is None:
            detail = f"Text backend '{name}' is not available"
            if self.warnings:
                detail += ": " + "; ".join(self.warnings)
            raise TransportError(detail)

        try:
            raw = handler(request)
        except GenerationError:
            raise
        except Exception as exc:  # noqa: BLE001
            logger.error("Error generating prompt via %s: %s", name, exc)
            raise TransportError(str(exc)) from exc

        return parse_prompt_result(raw)

    def render_image(self, prompt: str, ratio: str | AspectRatio) -> str:
        """Run the render stage and return the image as a data URI."""
        client = self._get_genai_client()
        config = types.GenerateContentConfig(
            response_modalities=["IMAGE", "TEXT"],
            image_config=types.ImageConfig(aspect_ratio=parse_ratio(ratio).value),
        )
        contents = [types.Content(role="user", parts=[types.Part.from_text(text=prompt)])]

        try:
            response = client.models.generate_content(
                model=self.config.image_model,
                contents=contents,
                config=config,
            )
        except Exception as exc:  # noqa: BLE001
            logger.error("Error generating image: %s", exc)
            if is_not_found(exc):
                raise ModelUnavailableError(str(exc)) from exc
            raise TransportError(str(exc)) from exc

        return extract_image_data(response)

    # Internal helpers ---------------------------------------------------------
    def _get_genai_client(self) -> Any:
        if self._genai_client is None:
            if not self.config.google_api_key:
                raise TransportError("No Google API key configured. Set GEMINI_API_KEY.")
            self._genai_client = genai.Client(api_key=self.config.google_api_key)
        return self._genai_client

    def _auto_register_backends(self) -> None:
        """Register backends automatically when keys and SDKs are available."""
        self._register_gemini_backend()
        self._register_openai_backend()
        self._register_claude_backend()

    def _register_gemini_backend(self) -> None:
        if self._genai_client is None and not self.config.google_api_key:
            return

        def _gemini_backend(request: AnalysisRequest) -> Optional[str]:
            response = self._get_genai_client().models.generate_content(
                model=self.config.text_model,
                contents=request.input_text,
                config=types.GenerateContentConfig(
                    system_instruction=request.instruction,
                    response_mime_type=request.response_mime_type,
                    temperature=request.temperature,
                ),
            )
            return response.text

        self.register_backend("gemini", _gemini_backend)

    def _extract_openai_text(self, completion: Any) -> str:
        if getattr(completion, "output_text", None):
            return str(completion.output_text)

        output = getattr(completion, "output", None)
        if output:
            parts = []
            for item in output:
                if getattr(item, "type", "") == "message":
                    for content in getattr(item, "content", []):
                        if getattr(content, "type", "") == "output_text":
                            parts.append(getattr(content, "text", ""))
            joined = "\n".join(parts).strip()
            if joined:
                return joined

        choices = getattr(completion, "choices", None)
        if choices:
            text = getattr(choices[0].message, "content", None)
            if isinstance(text, str):
                return text

        return ""

    def _register_openai_backend(self) -> None:
        if not self.config.openai_key:
            return
        try:
            openai_module = importlib.import_module("openai")
        except ImportError as exc:
            self.warnings.append(f"Cannot import openai: {exc}")
            return

        base_url = self.config.metadata.get("openai_base_url")
        client_kwargs = {"api_key": self.config.openai_key}
        if base_url:
            client_kwargs["base_url"] = base_url
        client = openai_module.OpenAI(**client_kwargs)

        def _gpt_backend(request: AnalysisRequest) -> Optional[str]:
            model_name = request.metadata.get("openai_model", "gpt-4o-mini")

            # OpenAI-compatible providers usually only expose chat completions.
            if base_url:
                completion = client.chat.completions.create(
                    model=model_name,
                    messages=[
                        {"role": "system", "content": request.instruction},
                        {"role": "user", "content": request.input_text},
                    ],
                    response_format={"type": "json_object"},
                    temperature=request.temperature,
                )
            else:
                completion = client.responses.create(
                    model=model_name,
                    instructions=request.instruction,
                    input=request.input_text,
                    text={"format": {"type": "json_object"}},
                    temperature=request.temperature,
                )
            return self._extract_openai_text(completion)

        self.register_backend("gpt", _gpt_backend)

    def _register_claude_backend(self) -> None:
        if not self.config.anthropic_key:
            return
        try:
            anthropic_module = importlib.import_module("anthropic")
        except ImportError as exc:  # pragma: no cover - optional dependency
            self.warnings.append(f"Cannot import anthropic: {exc}")
            return

        client = anthropic_module.Anthropic(api_key=self.config.anthropic_key)

        def _claude_backend(request: AnalysisRequest) -> Optional[str]:
            message = client.messages.create(
                model=request.metadata.get("claude_model", "claude-3-5-haiku-latest"),
                max_tokens=1024,
                system=request.instruction + "\nReturn only the JSON object.",
                temperature=request.temperature,
                messages=[{"role": "user", "content": request.input_text}],
            )
            if not message.content:
                return None
            return "".join(getattr(block, "text", "") for block in message.content)

        self.register_backend("claude", _claude_backend)
