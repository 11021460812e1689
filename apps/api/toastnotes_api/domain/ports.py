from __future__ import annotations

from typing import BinaryIO, Protocol, runtime_checkable

from toastnotes_api.domain.entities import Attachment, NoteEntry


@runtime_checkable
class NoteRepository(Protocol):
    def save(self, name: str | None, content: str) -> str:
        ...

    def open(self, name: str | None) -> str:
        ...

    def delete(self, name: str | None) -> str:
        ...

    def rename(self, old_name: str | None, new_name: str | None) -> str:
        ...

    def list_names(self) -> list[str]:
        ...

    def list_with_content(self) -> list[NoteEntry]:
        ...


@runtime_checkable
class AttachmentRepository(Protocol):
    def store(self, original_filename: str, data: BinaryIO) -> Attachment:
        ...
