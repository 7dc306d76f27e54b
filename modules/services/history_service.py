"""Workflow history persistence."""

from __future__ import annotations

import json
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol

from modules.generation.errors import ErrorKind, PersistenceReadError
from modules.generation.styles import AspectRatio, VisualStyle, parse_ratio, parse_style
from modules.services.storage_service import KeyValueStorage

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 50


def new_record_id() -> str:
    return uuid.uuid4().hex


def now_millis() -> float:
    return time.time() * 1000.0


@dataclass(slots=True, frozen=True)
class WorkflowRecord:
    """A completed run: both analysis and image succeeded."""

    id: str
    created_at: float
    source_text: str
    style: VisualStyle
    aspect_ratio: AspectRatio
    analysis_text: str
    visual_prompt: str
    image_data: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the stored document's key names."""
        payload: Dict[str, Any] = {
            "id": self.id,
            "timestamp": self.created_at,
            "input": self.source_text,
            "style": self.style.value,
            "ratio": self.aspect_ratio.value,
            "analysis": self.analysis_text,
            "visualPrompt": self.visual_prompt,
        }
        if self.image_data:
            payload["imageBase64"] = self.image_data
        return payload

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorkflowRecord":
        """Build a record from its stored form; raises on missing or invalid fields."""
        try:
            return cls(
                id=str(data["id"]),
                created_at=float(data["timestamp"]),
                source_text=str(data["input"]),
                style=parse_style(data["style"]),
                aspect_ratio=parse_ratio(data["ratio"]),
                analysis_text=str(data.get("analysis") or ""),
                visual_prompt=str(data["visualPrompt"]),
                image_data=data.get("imageBase64") or None,
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise PersistenceReadError(f"Invalid history record: {exc}") from exc


class HistoryStore(Protocol):
    """Capacity-bounded, newest-first history of completed workflows."""

    def load(self) -> List[WorkflowRecord]:
        ...

    def insert(self, record: WorkflowRecord) -> List[WorkflowRecord]:
        ...

    def remove(self, record_id: str) -> List[WorkflowRecord]:
        ...


class PersistentHistoryStore:
    """History kept as a JSON array under a single storage key."""

    def __init__(
        self,
        storage: KeyValueStorage,
        key: str,
        capacity: int = DEFAULT_CAPACITY,
    ) -> None:
        self.storage = storage
        self.key = key
        self.capacity = capacity
        self._records: List[WorkflowRecord] = []

    @property
    def records(self) -> List[WorkflowRecord]:
        return list(self._records)

    def load(self) -> List[WorkflowRecord]:
        """Read the stored history; corrupt data yields an empty history."""
        try:
            self._records = self._decode(self.storage.get(self.key))
        except PersistenceReadError as exc:
            logger.error("Failed to parse history (%s): %s", ErrorKind.PERSISTENCE_READ_ERROR.value, exc)
            self._records = []
        return self.records

    def insert(self, record: WorkflowRecord) -> List[WorkflowRecord]:
        """Prepend a record, evicting the oldest beyond capacity."""
        updated = [record, *self._records]
        if len(updated) > self.capacity:
            evicted = updated[self.capacity :]
            logger.debug("Evicting %d history record(s): %s", len(evicted), [item.id for item in evicted])
            updated = updated[: self.capacity]
        self._write(updated)
        return self.records

    def remove(self, record_id: str) -> List[WorkflowRecord]:
        """Drop the record with ``record_id``; unknown ids are ignored."""
        self._write([item for item in self._records if item.id != record_id])
        return self.records

    # Internal helpers ---------------------------------------------------------
    def _write(self, records: List[WorkflowRecord]) -> None:
        payload = json.dumps([item.to_dict() for item in records], ensure_ascii=False)
        self.storage.set(self.key, payload)
        self._records = records

    @staticmethod
    def _decode(raw: Optional[str]) -> List[WorkflowRecord]:
        if not raw:
            return []
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise PersistenceReadError(f"History is not valid JSON: {exc}") from exc
        if not isinstance(data, list):
            raise PersistenceReadError("History is not a JSON array")
        records = []
        for entry in data:
            if not isinstance(entry, dict):
                raise PersistenceReadError("History entry is not an object")
            records.append(WorkflowRecord.from_dict(entry))
        return records
