"""
Local file storage for book cover images.

Files live in one flat directory and are served by the API under /uploads/.
The store knows nothing about book records; it only validates, writes and
deletes image files.
"""

import random
import time
from pathlib import Path
from typing import List, Optional, Union

import structlog

from .errors import StorageIOError, UploadRejected
from .models import UPLOADS_URL_PREFIX, ImageUpload, MediaKind, StoredAsset

logger = structlog.get_logger(__name__)

MAX_UPLOAD_BYTES = 5 * 1024 * 1024

EXTENSION_KINDS = {
    ".jpg": MediaKind.JPEG,
    ".jpeg": MediaKind.JPEG,
    ".png": MediaKind.PNG,
    ".gif": MediaKind.GIF,
}

CONTENT_TYPE_KINDS = {
    "image/jpeg": MediaKind.JPEG,
    "image/png": MediaKind.PNG,
    "image/gif": MediaKind.GIF,
}

# Attempts at picking a fresh name if an exclusive create ever collides
MAX_NAME_ATTEMPTS = 5


def _format_size(size: int) -> str:
    if size % (1024 * 1024) == 0:
        return f"{size // (1024 * 1024)} MB"
    return f"{size} bytes"


class AssetStore:
    """
    Filesystem-backed image store.

    Files are named book-<epoch-ms>-<random>.<ext> and are opened with
    exclusive create, so concurrent uploads never overwrite each other.
    """

    def __init__(self, root: Union[str, Path] = "uploads", max_bytes: int = MAX_UPLOAD_BYTES):
        self.root = Path(root)
        self.max_bytes = max_bytes

    def validate(self, upload: ImageUpload) -> MediaKind:
        """
        Check an upload's extension, declared content type and size.

        Args:
            upload: Image received from the client

        Returns:
            The media kind both the extension and content type agree on

        Raises:
            UploadRejected: if any check fails
        """
        extension = Path(upload.filename).suffix.lower()
        extension_kind = EXTENSION_KINDS.get(extension)
        content_type = (upload.content_type or "").split(";", 1)[0].strip().lower()
        content_kind = CONTENT_TYPE_KINDS.get(content_type)

        if extension_kind is None or content_kind is None:
            raise UploadRejected(
                "Only image files are allowed! (.jpg, .jpeg, .png, .gif)"
            )
        if extension_kind != content_kind:
            raise UploadRejected(
                f"File extension '{extension}' does not match content type '{content_type}'"
            )
        if upload.size_bytes > self.max_bytes:
            raise UploadRejected(
                f"File too large: limit is {_format_size(self.max_bytes)}",
                status_code=413,
            )
        return extension_kind

    def store(self, upload: ImageUpload) -> StoredAsset:
        """
        Validate and persist an upload under a newly generated name.

        Returns:
            StoredAsset whose reference is the /uploads/ path to embed as imageUrl

        Raises:
            UploadRejected: if validation fails; nothing is written
            StorageIOError: if the file cannot be written
        """
        media_kind = self.validate(upload)
        extension = Path(upload.filename).suffix.lower()

        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error("Failed to create uploads directory", root=str(self.root), error=str(e))
            raise StorageIOError("Failed to store image") from e

        for _ in range(MAX_NAME_ATTEMPTS):
            filename = self.generate_filename(extension)
            path = self.root / filename
            try:
                with open(path, "xb") as f:
                    f.write(upload.data)
            except FileExistsError:
                logger.warning("Generated filename already taken", filename=filename)
                continue
            except OSError as e:
                path.unlink(missing_ok=True)
                logger.error("Failed to write image", filename=filename, error=str(e))
                raise StorageIOError("Failed to store image") from e

            logger.debug("Stored image", filename=filename, size_bytes=upload.size_bytes)
            return StoredAsset(
                filename=filename,
                size_bytes=upload.size_bytes,
                media_kind=media_kind,
                reference=UPLOADS_URL_PREFIX + filename,
            )

        raise StorageIOError("Failed to store image: could not generate a unique filename")

    @staticmethod
    def generate_filename(extension: str) -> str:
        """Build book-<epoch-ms>-<random>.<ext>."""
        timestamp = int(time.time() * 1000)
        suffix = random.randint(0, 10 ** 9)
        return f"book-{timestamp}-{suffix}{extension}"

    def owns(self, reference: Optional[str]) -> bool:
        """Whether a reference points into this store rather than at an external URL."""
        return bool(reference) and reference.startswith(UPLOADS_URL_PREFIX)

    def path_for(self, reference: str) -> Optional[Path]:
        """
        Resolve a /uploads/ reference to its file path.

        Returns None for external URLs and for references that would
        escape the uploads directory.
        """
        if not self.owns(reference):
            return None
        name = reference[len(UPLOADS_URL_PREFIX):]
        path = (self.root / name).resolve()
        if path.parent != self.root.resolve():
            return None
        return path

    def list_references(self) -> List[str]:
        """References for every stored image, sorted by filename."""
        if not self.root.is_dir():
            return []
        return sorted(
            UPLOADS_URL_PREFIX + path.name
            for path in self.root.glob("book-*")
            if path.is_file()
        )

    def delete(self, reference: Optional[str]) -> bool:
        """
        Delete the file behind a reference.

        Missing files and references the store does not own are ignored,
        so deleting is idempotent.

        Returns:
            bool: True if a file was removed

        Raises:
            StorageIOError: if an existing file cannot be removed
        """
        path = self.path_for(reference) if reference else None
        if path is None:
            logger.debug("Skipping delete of non-local reference", reference=reference)
            return False
        if not path.exists():
            return False
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.error("Failed to delete image", reference=reference, error=str(e))
            raise StorageIOError("Failed to delete image") from e

        logger.debug("Deleted image", reference=reference)
        return True
