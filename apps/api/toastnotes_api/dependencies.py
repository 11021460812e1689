from functools import lru_cache

from toastnotes_api.infrastructure.config import load_settings
from toastnotes_api.infrastructure.persistence.attachments import ImageAttachmentStore
from toastnotes_api.infrastructure.persistence.file_store import FileNoteStore


@lru_cache()
def get_settings():
    return load_settings()


@lru_cache()
def get_store():
    settings = get_settings()
    return FileNoteStore(settings.notes_dir, max_list_depth=settings.max_list_depth)


@lru_cache()
def get_attachments():
    settings = get_settings()
    return ImageAttachmentStore(settings.images_dir, settings.public_prefix, max_bytes=settings.max_body_bytes)


def clear_caches() -> None:
    get_settings.cache_clear()
    get_store.cache_clear()
    get_attachments.cache_clear()
