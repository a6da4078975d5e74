"""File storage for portfolio images.

Files are written under a random name that keeps the original extension,
first to a temporary ``.part`` file and then renamed into place, so a stored
name never points at a partially written file.
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from pathlib import Path, PurePath
from uuid import uuid4

from breezeline.errors import ValidationError

logger = logging.getLogger(__name__)

# content type -> (accepted extensions, canonical extension, magic prefixes)
IMAGE_TYPES: dict[str, tuple[frozenset[str], str, tuple[bytes, ...]]] = {
    "image/jpeg": (frozenset({".jpg", ".jpeg"}), ".jpg", (b"\xff\xd8\xff",)),
    "image/png": (frozenset({".png"}), ".png", (b"\x89PNG\r\n\x1a\n",)),
    "image/gif": (frozenset({".gif"}), ".gif", (b"GIF87a", b"GIF89a")),
    "image/webp": (frozenset({".webp"}), ".webp", (b"RIFF",)),
}


@dataclass
class ImageUpload:
    """An uploaded file, already read into memory by the web layer."""

    content: bytes
    filename: str | None = None
    content_type: str | None = None


def _looks_like(content_type: str, content: bytes) -> bool:
    _, _, prefixes = IMAGE_TYPES[content_type]
    if not any(content.startswith(prefix) for prefix in prefixes):
        return False
    if content_type == "image/webp":
        return content[8:12] == b"WEBP"
    return True


class ImageStorage:
    """Stores and removes image files in one directory."""

    def __init__(
        self,
        directory: Path,
        max_bytes: int = 5 * 1024 * 1024,
        allowed_content_types: tuple[str, ...] = tuple(IMAGE_TYPES),
    ):
        self.directory = Path(directory)
        self.max_bytes = max_bytes
        self.allowed_content_types = tuple(t for t in allowed_content_types if t in IMAGE_TYPES)

    def ensure_directory(self) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)

    def validate(self, upload: ImageUpload) -> str:
        """Check an upload against the policy and return the extension to store it with.

        Raises:
            ValidationError: If the file is empty, too large, or not an allowed image
        """
        if not upload.content:
            raise ValidationError("Image file is required", field="image")
        if len(upload.content) > self.max_bytes:
            raise ValidationError(
                f"Image exceeds the maximum size of {self.max_bytes // (1024 * 1024)} MB",
                field="image",
            )

        content_type = (upload.content_type or "").split(";")[0].strip().lower()
        if content_type not in self.allowed_content_types:
            raise ValidationError("Only image files are allowed", field="image")

        extensions, canonical, _ = IMAGE_TYPES[content_type]
        suffix = PurePath(upload.filename or "").suffix.lower()
        if suffix and suffix not in extensions:
            raise ValidationError("File extension does not match the image type", field="image")
        if not _looks_like(content_type, upload.content):
            raise ValidationError("Only image files are allowed", field="image")
        return suffix or canonical

    def path_for(self, name: str) -> Path:
        # Stored names are generated basenames; anything else is rejected
        if not name or PurePath(name).name != name or name.startswith("."):
            raise ValueError(f"Invalid stored image name: {name!r}")
        return self.directory / name

    def _write(self, name: str, content: bytes) -> None:
        self.ensure_directory()
        final = self.path_for(name)
        partial = self.directory / f".{name}.part"
        with open(partial, "wb") as fh:
            fh.write(content)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(partial, final)

    async def save(self, upload: ImageUpload) -> str:
        """Validate and store an upload. Returns the generated file name."""
        extension = self.validate(upload)
        name = f"{uuid4().hex}{extension}"
        await asyncio.to_thread(self._write, name, upload.content)
        logger.info("Stored image %s (%d bytes)", name, len(upload.content))
        return name

    async def delete(self, name: str | None) -> bool:
        """Remove a stored file. Missing files are not an error."""
        if not name:
            return False
        try:
            path = self.path_for(name)
        except ValueError:
            logger.warning("Refusing to delete unexpected image path %r", name)
            return False
        try:
            await asyncio.to_thread(path.unlink)
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.error("Failed to delete image %s: %s", name, e)
            return False
        return True
