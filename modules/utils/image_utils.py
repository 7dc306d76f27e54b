"""Utility helpers for encoding and decoding generated image payloads."""

from __future__ import annotations

import base64
import binascii
import io
from pathlib import Path
from typing import Optional, Tuple

from PIL import Image

DEFAULT_IMAGE_MIME = "image/png"

_EXTENSIONS = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/webp": ".webp",
    "image/gif": ".gif",
}


def encode_data_uri(data: bytes | str, mime_type: Optional[str] = None) -> str:
    """Build a ``data:`` URI; ``str`` payloads are assumed to be base64 already."""
    if isinstance(data, (bytes, bytearray)):
        payload = base64.b64encode(bytes(data)).decode("ascii")
    else:
        payload = data
    return f"data:{mime_type or DEFAULT_IMAGE_MIME};base64,{payload}"


def decode_data_uri(data_uri: str) -> Tuple[str, bytes]:
    """Split a base64 ``data:`` URI into its media type and raw bytes."""
    if not data_uri.startswith("data:") or ";base64," not in data_uri:
        raise ValueError("Not a base64 data URI")
    header, payload = data_uri[len("data:"):].split(";base64,", 1)
    try:
        raw = base64.b64decode(payload, validate=True)
    except binascii.Error as exc:
        raise ValueError(f"Invalid base64 payload: {exc}") from exc
    return header or DEFAULT_IMAGE_MIME, raw


def to_pil_image(data_uri: Optional[str]) -> Optional[Image.Image]:
    """Decode a data URI into a PIL image for display, or None when absent."""
    if not data_uri:
        return None
    _, raw = decode_data_uri(data_uri)
    image = Image.open(io.BytesIO(raw))
    image.load()
    return image


def save_data_uri(data_uri: str, output_dir: Path, stem: str) -> Path:
    """Write the image payload to ``output_dir`` and return the file path."""
    mime_type, raw = decode_data_uri(data_uri)
    output_dir.mkdir(parents=True, exist_ok=True)
    out_path = output_dir / f"{stem}{_EXTENSIONS.get(mime_type, '.png')}"
    out_path.write_bytes(raw)
    return out_path
