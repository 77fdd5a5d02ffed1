"""Ordered photo lists fed by URLs or local image files."""

import asyncio
import base64
import logging
import mimetypes
from dataclasses import dataclass, field
from pathlib import Path

from catalog_admin.domain.errors import PhotoIngestionBusy

_logger = logging.getLogger(__name__)


async def read_embedded_image(path: str | Path) -> str:
    """Read an image file off the event loop and return it as a data URL."""
    file_path = Path(path)
    image_bytes = await asyncio.to_thread(file_path.read_bytes)
    return to_data_url(image_bytes, _guess_from_name(file_path.name))


def to_data_url(image_bytes: bytes, fallback_mime: str | None = None) -> str:
    """Convert bytes to a base64 data URL."""
    mime_type = _detect_mime_type(image_bytes) or fallback_mime
    if mime_type is None:
        raise ValueError("Selected file is not a supported image")
    encoded = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:{mime_type};base64,{encoded}"


def _detect_mime_type(image_bytes: bytes) -> str | None:
    """Infer an image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:6] in {b"GIF87a", b"GIF89a"}:
        return "image/gif"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return None


def _guess_from_name(name: str) -> str | None:
    guessed, _ = mimetypes.guess_type(name)
    if guessed and guessed.startswith("image/"):
        return guessed
    return None


@dataclass
class PhotoList:
    """Photos in insertion order, addressed by position.

    While a file is being read both add operations are rejected, so appends
    never interleave.
    """

    items: list[str] = field(default_factory=list)
    warn_bytes: int = 2 * 1024 * 1024
    _busy: bool = field(default=False, init=False)

    @property
    def busy(self) -> bool:
        return self._busy

    def add_url(self, url: str) -> int:
        """Append a photo URL and return its position."""
        self._ensure_idle()
        cleaned = url.strip()
        if not cleaned:
            raise ValueError("Photo URL is empty")
        return self._append(cleaned)

    async def add_file(self, path: str | Path) -> int:
        """Embed one local image file and append it; returns its position."""
        self._ensure_idle()
        self._busy = True
        try:
            data_url = await read_embedded_image(path)
        finally:
            self._busy = False
        if len(data_url) > self.warn_bytes:
            _logger.warning(
                "Embedded photo from %s is %d bytes; entity payloads are not size-limited",
                Path(path).name,
                len(data_url),
            )
        return self._append(data_url)

    def remove(self, index: int) -> str:
        """Remove the photo at a position; later entries shift down by one."""
        if not 0 <= index < len(self.items):
            raise IndexError(f"No photo at position {index}")
        return self.items.pop(index)

    def _ensure_idle(self) -> None:
        if self._busy:
            raise PhotoIngestionBusy("A photo is still being read")

    def _append(self, photo: str) -> int:
        self.items.append(photo)
        return len(self.items) - 1

    def __len__(self) -> int:
        return len(self.items)
