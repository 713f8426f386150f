"""
Media store collaborators.

The complaint core only keeps ``PhotoRef`` values; bytes live behind a
``MediaStore``. Forgetting a reference is best effort from the core's point
of view.
"""

import uuid
from pathlib import Path
from typing import Optional, Protocol

from servicedesk.config.settings import get_settings
from servicedesk.core.exceptions import ValidationError
from servicedesk.core.logging import get_logger
from servicedesk.schemas.complaint import PhotoRef

logger = get_logger(__name__)

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp", ".heic"}


class MediaStore(Protocol):
    def upload(self, blob: bytes, filename: str) -> PhotoRef:
        ...

    def forget(self, stored_id: str) -> None:
        ...


class LocalMediaStore:
    """
    Filesystem media store for development.

    Files are written under ``UPLOAD_DIR`` with a random name and served
    from ``url_prefix``.
    """

    def __init__(self, upload_dir: Optional[str] = None, url_prefix: str = "/uploads"):
        self.root = Path(upload_dir or get_settings().UPLOAD_DIR)
        self.url_prefix = url_prefix.rstrip("/")

    def upload(self, blob: bytes, filename: str) -> PhotoRef:
        suffix = Path(filename or "").suffix.lower()
        if suffix not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                f"Unsupported image type: {suffix or 'none'}",
                field_errors={"filename": [f"allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))}"]},
            )
        if not blob:
            raise ValidationError("Empty upload", field_errors={"blob": ["file is empty"]})

        self.root.mkdir(parents=True, exist_ok=True)
        stored_id = f"{uuid.uuid4().hex}{suffix}"
        (self.root / stored_id).write_bytes(blob)
        logger.debug(f"Stored upload {filename} as {stored_id}")
        return PhotoRef(url=f"{self.url_prefix}/{stored_id}", stored_id=stored_id)

    def forget(self, stored_id: str) -> None:
        path = self._path_for(stored_id)
        path.unlink(missing_ok=True)
        logger.debug(f"Forgot media {stored_id}")

    def exists(self, stored_id: str) -> bool:
        return self._path_for(stored_id).is_file()

    def _path_for(self, stored_id: str) -> Path:
        if not stored_id or Path(stored_id).name != stored_id:
            raise ValidationError("Invalid stored id", field_errors={"stored_id": ["invalid"]})
        return self.root / stored_id
