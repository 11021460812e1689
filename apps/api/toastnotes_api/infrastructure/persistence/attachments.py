from __future__ import annotations

import logging
from pathlib import Path
from typing import BinaryIO, Callable

from toastnotes_api.domain.entities import Attachment
from toastnotes_api.domain.exceptions import StorageError, TooLarge
from toastnotes_api.util import now_ms, safe_upload_filename

logger = logging.getLogger("toastnotes.store")

_CHUNK = 64 * 1024


class ImageAttachmentStore:
    """
    Writes uploaded images to ``<notes_dir>/images``.

    Files are named ``<epoch-ms>-<sanitized original name>`` and written
    unconditionally: two uploads of the same name within one millisecond
    overwrite each other.
    """

    def __init__(
        self,
        images_dir: Path,
        public_prefix: str,
        *,
        max_bytes: int | None = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.images_dir = images_dir
        self.public_prefix = "/" + public_prefix.strip("/")
        self.max_bytes = max_bytes
        self.clock = clock

    def ensure_dir(self) -> None:
        self.images_dir.mkdir(parents=True, exist_ok=True)

    def url_for(self, filename: str) -> str:
        return f"{self.public_prefix}/images/{filename}"

    def _copy(self, data: BinaryIO, fh: BinaryIO) -> int:
        size = 0
        while True:
            chunk = data.read(_CHUNK)
            if not chunk:
                return size
            size += len(chunk)
            if self.max_bytes is not None and size > self.max_bytes:
                raise TooLarge()
            fh.write(chunk)

    def store(self, original_filename: str, data: BinaryIO) -> Attachment:
        filename = f"{self.clock()}-{safe_upload_filename(original_filename)}"
        target = self.images_dir / filename
        try:
            self.ensure_dir()
            with open(target, "wb") as fh:
                size = self._copy(data, fh)
        except TooLarge:
            target.unlink(missing_ok=True)
            logger.warning("attachment_too_large", extra={"file": filename, "limit": self.max_bytes})
            raise
        except OSError as e:
            raise StorageError("Failed to store image") from e
        logger.info("attachment_upload", extra={"file": filename, "bytes": size})
        return Attachment(filename=filename, url=self.url_for(filename), size=size)
