"""Snapshot of the live working state."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from modules.generation.errors import ErrorKind
from modules.generation.styles import AspectRatio, VisualStyle


class Stage(str, Enum):
    IDLE = "idle"
    ANALYZING = "analyzing"
    ANALYZED_READY = "analyzed_ready"
    RENDERING = "rendering"
    COMPLETE = "complete"


class ActiveView(str, Enum):
    GENERATE = "generate"
    HISTORY = "history"


@dataclass(slots=True, frozen=True)
class WorkflowError:
    """The single error currently shown to the user."""

    kind: ErrorKind
    message: str


@dataclass(slots=True, frozen=True)
class WorkflowState:
    """Immutable view of the run in progress; replaced on every transition."""

    input_text: str = ""
    style: VisualStyle = VisualStyle.THREE_D
    aspect_ratio: AspectRatio = AspectRatio.LANDSCAPE
    analysis_text: str = ""
    visual_prompt: str = ""
    image_data: Optional[str] = None
    is_analyzing: bool = False
    is_rendering: bool = False
    error: Optional[WorkflowError] = None
    stage: Stage = Stage.IDLE
    active_view: ActiveView = ActiveView.GENERATE

    @property
    def is_busy(self) -> bool:
        return self.is_analyzing or self.is_rendering

    @property
    def can_render(self) -> bool:
        return bool(self.visual_prompt) and not self.is_busy

    @property
    def error_message(self) -> Optional[str]:
        return self.error.message if self.error else None
