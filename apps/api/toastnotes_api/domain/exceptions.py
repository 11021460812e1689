from __future__ import annotations


class NoteStoreError(Exception):
    status_code = 500
    message = "storage_error"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class MissingName(NoteStoreError):
    status_code = 400
    message = "No note name"


class InvalidPath(NoteStoreError, ValueError):
    status_code = 400
    message = "Invalid path"


class NotFound(NoteStoreError):
    status_code = 404
    message = "Note not found"


class Conflict(NoteStoreError):
    status_code = 409
    message = "A note with the new name already exists"


class StorageError(NoteStoreError):
    status_code = 500
    message = "Failed to save"


class TooLarge(NoteStoreError):
    status_code = 413
    message = "request_too_large"
