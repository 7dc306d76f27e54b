"""Visual style and aspect ratio presets."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, List

logger = logging.getLogger(__name__)


class VisualStyle(str, Enum):
    """Closed set of rendering styles offered to the user."""

    THREE_D = "3D"
    REALISTIC = "REALISTIC"
    FLAT = "FLAT"
    SKETCH = "SKETCH"


class AspectRatio(str, Enum):
    """Closed set of output aspect ratios."""

    LANDSCAPE = "16:9"
    SQUARE = "1:1"
    PORTRAIT = "9:16"


STYLE_PROMPTS: Dict[VisualStyle, str] = {
    VisualStyle.THREE_D: (
        "3D render, Pixar style animation, educational illustration, soft volumetric lighting,"
        " vibrant but balanced colors, high fidelity 8k."
    ),
    VisualStyle.REALISTIC: (
        "Cinematic documentary photography, national geographic style, highly detailed,"
        " 8k resolution, sociology context."
    ),
    VisualStyle.FLAT: (
        "Corporate memphis art style, modern vector illustration, flat design, clean lines,"
        " educational infographic style, pastel colors."
    ),
    VisualStyle.SKETCH: (
        "Academic pencil sketch, architectural drawing style, graphite on paper, detailed shading,"
        " cross-hatching, black and white."
    ),
}

STYLE_LABELS: Dict[VisualStyle, str] = {
    VisualStyle.THREE_D: "3D Render",
    VisualStyle.REALISTIC: "Realistic",
    VisualStyle.FLAT: "Flat Illustration",
    VisualStyle.SKETCH: "Sketch",
}

RATIO_LABELS: Dict[AspectRatio, str] = {
    AspectRatio.LANDSCAPE: "Landscape (16:9)",
    AspectRatio.SQUARE: "Square (1:1)",
    AspectRatio.PORTRAIT: "Portrait (9:16)",
}


def parse_style(value: str | VisualStyle) -> VisualStyle:
    """Accept either the enum, its value or its member name."""
    if isinstance(value, VisualStyle):
        return value
    try:
        return VisualStyle(value)
    except ValueError:
        try:
            return VisualStyle[str(value).upper()]
        except KeyError as exc:
            raise ValueError(f"Unknown visual style '{value}'") from exc


def parse_ratio(value: str | AspectRatio) -> AspectRatio:
    """Accept either the enum, its value or its member name."""
    if isinstance(value, AspectRatio):
        return value
    try:
        return AspectRatio(value)
    except ValueError:
        try:
            return AspectRatio[str(value).upper()]
        except KeyError as exc:
            raise ValueError(f"Unknown aspect ratio '{value}'") from exc


@dataclass(slots=True, frozen=True)
class StylePreset:
    """Visual description template injected into the analysis instruction."""

    style: VisualStyle
    template: str
    label: str = ""


class StylePresetRegistry:
    """Registry holding exactly one template per visual style."""

    def __init__(self) -> None:
        self._presets: Dict[VisualStyle, StylePreset] = {
            style: StylePreset(style=style, template=template, label=STYLE_LABELS[style])
            for style, template in STYLE_PROMPTS.items()
        }

    def load_from_file(self, path: Path) -> None:
        """Override templates from a JSON list of {"style", "template"} entries."""
        if not path.exists():
            return
        with path.open("r", encoding="utf-8") as fp:
            data = json.load(fp)
        for entry in data:
            try:
                style = parse_style(entry["style"])
            except (KeyError, ValueError):
                logger.warning("Ignoring style override %r", entry)
                continue
            self.add(
                StylePreset(
                    style=style,
                    template=entry.get("template") or STYLE_PROMPTS[style],
                    label=entry.get("label") or STYLE_LABELS[style],
                )
            )

    def add(self, preset: StylePreset) -> None:
        """Replace the template of an existing style."""
        self._presets[preset.style] = preset

    def list_presets(self) -> List[StylePreset]:
        """Return all presets in enumeration order."""
        return [self._presets[style] for style in VisualStyle]

    def get(self, style: str | VisualStyle) -> StylePreset:
        """Retrieve the preset for a style."""
        return self._presets[parse_style(style)]
