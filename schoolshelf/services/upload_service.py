"""Image upload storage with content-signature validation."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import BinaryIO

from schoolshelf.core.exceptions import ValidationError
from schoolshelf.utils.ids import new_id

logger = logging.getLogger(__name__)

SIGNATURE_PREFIX_BYTES = 12
CHUNK_SIZE = 64 * 1024

EXTENSION_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
}
ALLOWED_MIME_TYPES = frozenset(EXTENSION_TYPES.values())


def detect_image_type(prefix: bytes) -> str | None:
    """Return the MIME type whose magic bytes open `prefix`, if any."""
    if prefix.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if prefix.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if prefix.startswith((b"GIF87a", b"GIF89a")):
        return "image/gif"
    if len(prefix) >= 12 and prefix[:4] == b"RIFF" and prefix[8:12] == b"WEBP":
        return "image/webp"
    return None


def read_prefix(path: str | os.PathLike[str]) -> bytes:
    with open(path, "rb") as handle:
        return handle.read(SIGNATURE_PREFIX_BYTES)


def matches_signature(path: str | os.PathLike[str], declared_mime: str) -> bool:
    """True when the stored bytes really are `declared_mime`."""
    return detect_image_type(read_prefix(path)) == declared_mime


class UploadService:
    """Stores one image under `upload_dir` and hands back its public URL."""

    def __init__(self, upload_dir: str, max_bytes: int, url_prefix: str = "/uploads"):
        self.upload_dir = Path(upload_dir)
        self.max_bytes = max_bytes
        self.url_prefix = url_prefix.rstrip("/")

    def _check_metadata(self, filename: str | None, content_type: str | None) -> str:
        extension = Path(filename or "").suffix.lower()
        if extension not in EXTENSION_TYPES:
            raise ValidationError("Only JPEG, PNG, GIF and WebP images are allowed.")
        if content_type not in ALLOWED_MIME_TYPES:
            raise ValidationError("Only JPEG, PNG, GIF and WebP images are allowed.")
        return extension

    def _write(self, source: BinaryIO, target: Path) -> None:
        written = 0
        with open(target, "wb") as handle:
            while True:
                chunk = source.read(CHUNK_SIZE)
                if not chunk:
                    break
                written += len(chunk)
                if written > self.max_bytes:
                    raise ValidationError(
                        f"File is too large. Maximum {self.max_bytes // (1024 * 1024) or 1}MB."
                    )
                handle.write(chunk)
        if written == 0:
            raise ValidationError("Uploaded file is empty.")

    def store(self, source: BinaryIO, filename: str | None, content_type: str | None) -> dict[str, str]:
        """Persist `source`; the file is removed again unless its bytes match both
        the declared MIME type and the extension."""
        extension = self._check_metadata(filename, content_type)
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        stored_name = f"{new_id()}{extension}"
        target = self.upload_dir / stored_name

        try:
            self._write(source, target)
            detected = detect_image_type(read_prefix(target))
            if detected is None or detected != content_type or detected != EXTENSION_TYPES[extension]:
                logger.warning(
                    "upload.signature_mismatch",
                    extra={"event": "upload.signature_mismatch"},
                )
                raise ValidationError("File content does not match its declared type.")
        except ValidationError:
            target.unlink(missing_ok=True)
            raise

        return {"url": f"{self.url_prefix}/{stored_name}", "filename": stored_name}
