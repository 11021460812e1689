from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class NoteEntry:
    name: str
    content: str
    error: str | None = None


@dataclass(frozen=True)
class Attachment:
    filename: str
    url: str
    size: int
