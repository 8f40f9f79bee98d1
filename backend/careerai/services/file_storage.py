"""File storage for chat uploads. Local filesystem under FILE_STORAGE_PATH."""
import uuid
import aiofiles
from pathlib import Path, PurePosixPath
from careerai.config import settings
from careerai.exceptions import NotFoundError, UploadRejectedError

CHAT_FILES_DIR = "chat-files"
PUBLIC_URL_PREFIX = "uploads"

ALLOWED_MIME_TYPES = {
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "text/plain",
    "text/csv",
}


def to_storage_relative(path: str, public_base_url: str | None = None) -> str:
    """Normalize a stored attachment path to one relative to the storage root.

    Accepts public URLs (``<PUBLIC_BASE_URL>/uploads/chat-files/x.pdf``),
    absolute URL paths (``/uploads/chat-files/x.pdf``) and already relative
    paths; all become ``chat-files/x.pdf``.
    """
    base = (public_base_url if public_base_url is not None else settings.PUBLIC_BASE_URL).rstrip("/")
    rel = path.strip()
    if base and rel.startswith(base):
        rel = rel[len(base):]
    rel = rel.lstrip("/")
    if rel.startswith(PUBLIC_URL_PREFIX + "/"):
        rel = rel[len(PUBLIC_URL_PREFIX) + 1:]
    return rel


class FileStorageService:
    """Handles chat file read/write on local disk."""

    def __init__(self, base_path: str | None = None, public_base_url: str | None = None):
        self.base_path = Path(base_path or settings.FILE_STORAGE_PATH)
        self.public_base_url = (
            public_base_url if public_base_url is not None else settings.PUBLIC_BASE_URL
        ).rstrip("/")

    def _resolve(self, relative_path: str) -> Path:
        """Map a storage-relative path onto disk, refusing anything outside the root."""
        rel = PurePosixPath(relative_path)
        if rel.is_absolute() or ".." in rel.parts:
            raise NotFoundError("File", relative_path)
        return self.base_path.joinpath(*rel.parts)

    def public_url(self, relative_path: str) -> str:
        return f"{self.public_base_url}/{PUBLIC_URL_PREFIX}/{relative_path}"

    async def save_upload(self, file_bytes: bytes, original_name: str, mime_type: str | None) -> dict:
        """Validate and save an uploaded chat file. Returns attachment metadata."""
        if mime_type not in ALLOWED_MIME_TYPES:
            raise UploadRejectedError(f"File type not allowed: {mime_type}")
        if len(file_bytes) > settings.MAX_UPLOAD_BYTES:
            raise UploadRejectedError(
                f"File exceeds the {settings.MAX_UPLOAD_BYTES} byte limit", too_large=True
            )

        ext = Path(original_name).suffix
        stored_name = f"{uuid.uuid4()}{ext}"
        target_dir = self.base_path / CHAT_FILES_DIR
        target_dir.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(target_dir / stored_name, "wb") as f:
            await f.write(file_bytes)

        return {
            "stored_name": stored_name,
            "original_name": original_name,
            "storage_path": self.public_url(f"{CHAT_FILES_DIR}/{stored_name}"),
            "kind": ext,
            "size_bytes": len(file_bytes),
            "mime_type": mime_type,
        }

    def chat_file_path(self, stored_name: str) -> Path:
        """Disk path of a chat upload by stored name. Raises NotFoundError if absent."""
        path = self._resolve(f"{CHAT_FILES_DIR}/{stored_name}")
        if not path.is_file():
            raise NotFoundError("File", stored_name)
        return path

    async def read(self, relative_path: str) -> bytes:
        """Read file bytes from a storage-relative path."""
        async with aiofiles.open(self._resolve(relative_path), "rb") as f:
            return await f.read()


file_storage = FileStorageService()
