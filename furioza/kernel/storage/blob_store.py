"""
Blob storage for avatar images.

The kernel only ever persists the public URL returned by ``upload``.
"""

from pathlib import Path, PurePosixPath
from typing import Optional, Protocol

from furioza.config import get_settings
from furioza.kernel.errors import ValidationError
from furioza.logging_config import get_logger

logger = get_logger(__name__)


class BlobStore(Protocol):
    """Opaque object store returning a public URL for each upload."""

    def upload(self, key: str, data: bytes) -> str:
        ...


class LocalBlobStore:
    """Filesystem-backed blob store served from a static URL prefix."""

    def __init__(self, root: Optional[str] = None, public_base_url: Optional[str] = None):
        settings = get_settings()
        self.root = Path(root or settings.blob_root)
        self.public_base_url = (public_base_url or settings.blob_public_base_url).rstrip("/")

    def upload(self, key: str, data: bytes) -> str:
        relative = self._safe_key(key)
        path = self.root.joinpath(*relative.parts)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)

        logger.info("Blob stored", extra={"blob_key": str(relative), "size": len(data)})
        return f"{self.public_base_url}/{relative}"

    @staticmethod
    def _safe_key(key: str) -> PurePosixPath:
        relative = PurePosixPath(key)
        if not key or relative.is_absolute() or ".." in relative.parts:
            raise ValidationError(f"Invalid blob key: {key!r}", field="key")
        return relative
