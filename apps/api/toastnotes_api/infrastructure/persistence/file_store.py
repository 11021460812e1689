from __future__ import annotations

import logging
import os
import re
from collections.abc import Iterator
from pathlib import Path, PurePosixPath

from toastnotes_api.domain.entities import NoteEntry
from toastnotes_api.domain.exceptions import Conflict, InvalidPath, MissingName, NotFound, StorageError
from toastnotes_api.util import atomic_write_text, read_text

NOTE_SUFFIX = ".md"

_SEGMENT_RE = re.compile(r"[^a-zA-Z0-9_\-]")

logger = logging.getLogger("toastnotes.store")


def sanitize_note_name(name: str) -> str:
    """
    Map a user supplied note name onto the on-disk naming scheme.

    Empty segments are dropped and every character outside
    ``[A-Za-z0-9_-]`` becomes ``_``, so ``../secret`` turns into
    ``__/secret`` and ``my.note`` into ``my_note``.
    """
    return "/".join(_SEGMENT_RE.sub("_", part) for part in name.split("/") if part)


def note_name_from_relpath(rel: PurePosixPath) -> str:
    return rel.as_posix()[: -len(NOTE_SUFFIX)]


class FileNoteStore:
    def __init__(self, notes_dir: Path, *, max_list_depth: int = 32) -> None:
        self.notes_dir = notes_dir.resolve()
        self.max_list_depth = max_list_depth

    def _require_name(self, name: str | None, missing: str = MissingName.message) -> str:
        if not name:
            raise MissingName(missing)
        safe = sanitize_note_name(name)
        if not safe:
            raise MissingName(missing)
        return safe

    def _abs_path(self, safe_name: str) -> Path:
        return (self.notes_dir / PurePosixPath(safe_name + NOTE_SUFFIX)).resolve()

    def _ensure_under_root(self, abs_path: Path) -> None:
        if self.notes_dir not in abs_path.parents:
            raise InvalidPath()

    def resolve(self, name: str | None) -> Path:
        abs_path = self._abs_path(self._require_name(name))
        self._ensure_under_root(abs_path)
        return abs_path

    def save(self, name: str | None, content: str) -> str:
        safe = self._require_name(name)
        abs_path = self._abs_path(safe)
        self._ensure_under_root(abs_path)
        try:
            atomic_write_text(abs_path, content)
        except OSError as e:
            logger.warning("note_save_failed", extra={"note": safe, "error": str(e)})
            raise StorageError() from e
        logger.info("note_save", extra={"note": safe, "chars": len(content)})
        return safe

    def open(self, name: str | None) -> str:
        safe = self._require_name(name)
        abs_path = self._abs_path(safe)
        self._ensure_under_root(abs_path)
        try:
            return read_text(abs_path)
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError) as e:
            raise NotFound() from e
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError("Failed to read note") from e

    def delete(self, name: str | None) -> str:
        safe = self._require_name(name)
        abs_path = self._abs_path(safe)
        self._ensure_under_root(abs_path)
        if not abs_path.is_file():
            raise NotFound()
        try:
            abs_path.unlink()
        except FileNotFoundError as e:
            raise NotFound() from e
        except OSError as e:
            raise StorageError("Failed to delete note") from e
        logger.info("note_delete", extra={"note": safe})
        return safe

    def rename(self, old_name: str | None, new_name: str | None) -> str:
        missing = "Missing oldName or newName"
        safe_old = self._require_name(old_name, missing)
        safe_new = self._require_name(new_name, missing)
        old_abs = self._abs_path(safe_old)
        new_abs = self._abs_path(safe_new)
        self._ensure_under_root(old_abs)
        self._ensure_under_root(new_abs)
        if not old_abs.is_file():
            raise NotFound("Original note does not exist")
        if new_abs.exists():
            raise Conflict()
        try:
            new_abs.parent.mkdir(parents=True, exist_ok=True)
            old_abs.replace(new_abs)
        except OSError as e:
            raise StorageError(str(e)) from e
        logger.info("note_rename", extra={"note": safe_old, "to": safe_new})
        return safe_new

    def _walk(self, directory: Path, rel: PurePosixPath, depth: int) -> Iterator[PurePosixPath]:
        entries = sorted(os.scandir(directory), key=lambda e: e.name)
        for entry in entries:
            entry_rel = rel / entry.name
            if entry.is_dir(follow_symlinks=False):
                if depth < self.max_list_depth:
                    yield from self._walk(Path(entry.path), entry_rel, depth + 1)
            elif entry.is_file(follow_symlinks=False) and entry.name.endswith(NOTE_SUFFIX):
                yield entry_rel

    def list_names(self) -> list[str]:
        if not self.notes_dir.exists():
            return []
        try:
            return [note_name_from_relpath(rel) for rel in self._walk(self.notes_dir, PurePosixPath(), 0)]
        except OSError as e:
            logger.warning("note_list_failed", extra={"error": str(e)})
            raise StorageError("Failed to list notes") from e

    def list_with_content(self) -> list[NoteEntry]:
        entries: list[NoteEntry] = []
        for name in self.list_names():
            abs_path = self.notes_dir / PurePosixPath(name + NOTE_SUFFIX)
            try:
                content = read_text(abs_path)
            except (OSError, UnicodeDecodeError) as e:
                logger.warning("note_unreadable", extra={"note": name, "error": str(e)})
                entries.append(NoteEntry(name=name, content="", error="unreadable"))
                continue
            entries.append(NoteEntry(name=name, content=content))
        return entries
