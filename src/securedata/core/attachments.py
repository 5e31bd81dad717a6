"""Attachment storage for account records.

Uploaded files live in a single confined directory under generated names
(``{time_ns}-{random}{ext}``). Names are write-once, so concurrent uploads
never need locking. Serving strips every directory component from the
requested name and only ever opens regular files directly inside the root.
"""

import asyncio
import logging
import re
import secrets
import time
from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from types import MappingProxyType
from typing import Protocol
from urllib.parse import unquote

from securedata.core.config import MAX_UPLOAD_BYTES, UPLOAD_DIR
from securedata.core.errors import NotFound, PayloadTooLarge

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024

DEFAULT_CONTENT_TYPE = "application/octet-stream"

CONTENT_TYPES: Mapping[str, str] = MappingProxyType(
    {
        ".png": "image/png",
        ".jpg": "image/jpeg",
        ".jpeg": "image/jpeg",
        ".gif": "image/gif",
        ".pdf": "application/pdf",
        ".doc": "application/msword",
        ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    }
)

_EXTENSION_RE = re.compile(r"^\.[A-Za-z0-9]{1,10}$")


class Upload(Protocol):
    """What ``store`` needs from an upload (FastAPI's UploadFile fits)."""

    filename: str | None

    async def read(self, size: int = -1) -> bytes: ...


def content_type_for(filename: str) -> str:
    """Look up the MIME type for a filename by extension."""
    return CONTENT_TYPES.get(PurePosixPath(filename).suffix.lower(), DEFAULT_CONTENT_TYPE)


def sanitize_filename(requested: str) -> str:
    """
    Reduce a requested name to a bare file name.

    URL-decodes, then drops every directory component ('/' or '\\'
    separated). Returns "" for names that cannot refer to a file.
    """
    name = PurePosixPath(unquote(requested).replace("\\", "/")).name
    if name in ("", ".", ".."):
        return ""
    return name


@dataclass(frozen=True)
class ServedFile:
    """A confined file ready to be streamed back to a client."""

    path: Path
    filename: str
    content_type: str
    length: int

    def headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": self.content_type,
            "Content-Length": str(self.length),
            "Content-Disposition": f'inline; filename="{self.filename}"',
            "Cache-Control": "no-cache",
            "Accept-Ranges": "bytes",
        }
        if self.content_type.startswith("image/"):
            headers["Access-Control-Allow-Origin"] = "*"
            headers["Cross-Origin-Resource-Policy"] = "cross-origin"
        return headers

    async def stream(self, chunk_size: int = CHUNK_SIZE) -> AsyncIterator[bytes]:
        """
        Yield the file in chunks.

        The handle is released as soon as the consumer stops iterating,
        including when the surrounding task is cancelled on disconnect.
        """
        handle = open(self.path, "rb")
        try:
            while True:
                chunk = await asyncio.to_thread(handle.read, chunk_size)
                if not chunk:
                    break
                yield chunk
        finally:
            handle.close()


class AttachmentManager:
    """Stores, serves and removes uploaded attachments."""

    def __init__(self, root: Path | str | None = None, max_bytes: int | None = None):
        """
        Initialize attachment manager.

        Args:
            root: Upload directory (defaults to UPLOAD_DIR)
            max_bytes: Upload size cap (defaults to MAX_UPLOAD_BYTES)
        """
        self.root = Path(root) if root else UPLOAD_DIR
        self.max_bytes = MAX_UPLOAD_BYTES if max_bytes is None else max_bytes

    def _generate_name(self, original: str | None) -> str:
        suffix = PurePosixPath((original or "").replace("\\", "/")).suffix
        if not _EXTENSION_RE.match(suffix):
            suffix = ""
        return f"{time.time_ns()}-{secrets.randbelow(10**9)}{suffix}"

    async def store(self, upload: Upload) -> str:
        """
        Write an upload into the confined directory.

        Args:
            upload: File-like upload exposing filename and async read()

        Returns:
            Stored file name, relative to the upload root

        Raises:
            PayloadTooLarge: If the upload exceeds max_bytes
        """
        self.root.mkdir(parents=True, exist_ok=True)
        name = self._generate_name(upload.filename)
        target = self.root / name

        written = 0
        try:
            with open(target, "xb") as f:
                while True:
                    chunk = await upload.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    written += len(chunk)
                    if written > self.max_bytes:
                        raise PayloadTooLarge(
                            f"File exceeds the {self.max_bytes} byte limit"
                        )
                    await asyncio.to_thread(f.write, chunk)
        except BaseException:
            target.unlink(missing_ok=True)
            raise

        logger.info("Stored attachment %s (%d bytes)", name, written)
        return name

    def resolve(self, requested: str) -> Path:
        """
        Map a requested name to an existing file inside the root.

        Raises:
            NotFound: If the sanitized name does not exist in the root
        """
        name = sanitize_filename(requested)
        if not name:
            raise NotFound("File not found")

        root = self.root.resolve()
        path = (root / name).resolve()
        if path.parent != root or not path.is_file():
            logger.info("File not found: %s", requested)
            raise NotFound("File not found")
        return path

    def serve(self, requested: str) -> ServedFile:
        """Look up a stored file and describe it for streaming."""
        path = self.resolve(requested)
        return ServedFile(
            path=path,
            filename=path.name,
            content_type=content_type_for(path.name),
            length=path.stat().st_size,
        )

    def remove(self, stored: str | None) -> bool:
        """
        Best-effort delete of a stored attachment.

        Failures are logged, never raised.

        Returns:
            True if a file was deleted
        """
        if not stored:
            return False
        try:
            path = self.resolve(stored)
            path.unlink()
        except NotFound:
            logger.warning("Attachment %s already gone, nothing to delete", stored)
            return False
        except OSError as exc:
            logger.warning("Error deleting attachment %s: %s", stored, exc)
            return False
        logger.info("Deleted attachment %s", path.name)
        return True

