"""Error taxonomy shared by the generation client, history store and controller."""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Every failure the workflow can report."""

    EMPTY_INPUT = "EmptyInput"
    EMPTY_ANALYSIS_RESULT = "EmptyAnalysisResult"
    MALFORMED_RESPONSE = "MalformedResponse"
    EMPTY_RESPONSE = "EmptyResponse"
    NO_IMAGE_RETURNED = "NoImageReturned"
    MODEL_UNAVAILABLE = "ModelUnavailable"
    TRANSPORT_ERROR = "TransportError"
    PERSISTENCE_READ_ERROR = "PersistenceReadError"
    PERSISTENCE_WRITE_ERROR = "PersistenceWriteError"


class GenerationError(Exception):
    """Base error carrying a taxonomy kind and an optional technical detail."""

    kind: ErrorKind = ErrorKind.TRANSPORT_ERROR

    def __init__(self, detail: Optional[str] = None, *, kind: Optional[ErrorKind] = None) -> None:
        if kind is not None:
            self.kind = kind
        self.detail = detail
        super().__init__(detail or self.kind.value)


class MalformedResponseError(GenerationError):
    kind = ErrorKind.MALFORMED_RESPONSE


class EmptyResponseError(GenerationError):
    kind = ErrorKind.EMPTY_RESPONSE


class NoImageReturnedError(GenerationError):
    kind = ErrorKind.NO_IMAGE_RETURNED


class ModelUnavailableError(GenerationError):
    kind = ErrorKind.MODEL_UNAVAILABLE


class TransportError(GenerationError):
    kind = ErrorKind.TRANSPORT_ERROR


class PersistenceError(GenerationError):
    """Raised by the storage layer."""

    kind = ErrorKind.PERSISTENCE_WRITE_ERROR


class PersistenceReadError(PersistenceError):
    kind = ErrorKind.PERSISTENCE_READ_ERROR


class PersistenceWriteError(PersistenceError):
    kind = ErrorKind.PERSISTENCE_WRITE_ERROR


def is_not_found(exc: BaseException) -> bool:
    """Return True when a transport exception signals a missing/unavailable model."""
    for attr in ("code", "status_code", "status"):
        value = getattr(exc, attr, None)
        if value == 404 or value == "NOT_FOUND":
            return True
    message = str(exc)
    return "404" in message or "NOT_FOUND" in message
