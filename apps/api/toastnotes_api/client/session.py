"""
Editor session logic: one open document, its last saved snapshot and the
save traffic that keeps the two in sync.
"""

from __future__ import annotations

import enum
import logging
import threading
from typing import Callable, Optional

from toastnotes_api.client.notes_client import NotesClient
from toastnotes_api.domain.entities import NoteEntry
from toastnotes_api.domain.exceptions import MissingName, NoteStoreError, StorageError
from toastnotes_api.domain.tree import NoteTree, build_note_tree, filter_notes

logger = logging.getLogger("toastnotes.client")

AUTOSAVE_INTERVAL_S = 300.0


class SessionState(enum.Enum):
    CLEAN = "clean"
    DIRTY = "dirty"


class UnsavedChangesError(RuntimeError):
    pass


class SaveJob:
    """One queued save; ``result()`` blocks until it (or its replacement) lands."""

    def __init__(self, name: str, content: str, tag: object = None) -> None:
        self.name = name
        self.content = content
        self.tag = tag
        self._done = threading.Event()
        self._error: Optional[BaseException] = None
        self._replaced_by: Optional[SaveJob] = None

    @property
    def done(self) -> bool:
        return self._done.is_set()

    def _supersede(self, newer: SaveJob) -> None:
        self._replaced_by = newer
        self._done.set()

    def _finish(self, error: Optional[BaseException] = None) -> None:
        self._error = error
        self._done.set()

    def result(self, timeout: Optional[float] = None) -> SaveJob:
        """Return the job that carried this save; raise if that send failed."""
        job = self
        while True:
            if not job._done.wait(timeout):
                raise StorageError("save_timeout")
            if job._replaced_by is None:
                break
            job = job._replaced_by
        if job._error is not None:
            raise job._error
        return job


class SaveGate:
    """
    Single-flight guard for outgoing saves.

    At most one save is on the wire. A save submitted meanwhile is parked;
    a later save for the same name replaces the parked one. The caller that
    owns the in-flight request keeps sending until nothing is parked, and a
    failed send never discards the jobs queued behind it.
    """

    def __init__(self, send: Callable[[str, str], None], on_saved: Callable[[SaveJob], None]) -> None:
        self._send = send
        self._on_saved = on_saved
        self._lock = threading.Lock()
        self._in_flight = False
        self._pending: list[SaveJob] = []

    @property
    def busy(self) -> bool:
        with self._lock:
            return self._in_flight

    @property
    def queued(self) -> int:
        with self._lock:
            return len(self._pending)

    def submit(self, name: str, content: str, tag: object = None) -> SaveJob:
        """
        Queue a save. The returned job is finished when this call sent it,
        still running when it was parked behind another request.
        """
        job = SaveJob(name, content, tag)
        with self._lock:
            for parked in [p for p in self._pending if p.name == name]:
                self._pending.remove(parked)
                parked._supersede(job)
            self._pending.append(job)
            if self._in_flight:
                return job
            self._in_flight = True

        self._drain()
        return job

    def _drain(self) -> None:
        try:
            while True:
                with self._lock:
                    if not self._pending:
                        self._in_flight = False
                        return
                    job = self._pending.pop(0)
                try:
                    self._send(job.name, job.content)
                except Exception as e:
                    job._finish(e)
                    continue
                self._on_saved(job)
                job._finish()
        except BaseException as e:
            with self._lock:
                self._in_flight = False
                pending, self._pending = self._pending, []
            for job in pending:
                job._finish(e)
            raise


class EditorSession:
    def __init__(self, client: NotesClient) -> None:
        self.client = client
        self._lock = threading.RLock()
        self._name = ""
        self._content = ""
        self._saved: tuple[str, str] = ("", "")
        # bumped whenever the buffer switches to another note lineage
        self._generation = 0
        self.gate = SaveGate(client.save, self._mark_saved)

    @property
    def name(self) -> str:
        with self._lock:
            return self._name.strip()

    @property
    def content(self) -> str:
        with self._lock:
            return self._content

    @property
    def saved_snapshot(self) -> tuple[str, str]:
        with self._lock:
            return self._saved

    @property
    def state(self) -> SessionState:
        with self._lock:
            name = self._name.strip()
            if name and (name, self._content) != self._saved:
                return SessionState.DIRTY
            return SessionState.CLEAN

    @property
    def can_save(self) -> bool:
        return self.state is SessionState.DIRTY

    def set_content(self, content: str) -> SessionState:
        with self._lock:
            self._content = content
            return self.state

    def set_name(self, name: str) -> SessionState:
        with self._lock:
            self._name = name
            return self.state

    def _mark_saved(self, job: SaveJob) -> None:
        with self._lock:
            if job.tag != self._generation:
                return
            self._saved = (job.name, job.content)

    def _load(self, name: str, content: str) -> None:
        with self._lock:
            self._generation += 1
            self._name = name
            self._content = content
            self._saved = (name, content)

    def save(self, wait: bool = True) -> bool:
        """
        Save the current buffer.

        With ``wait`` the call blocks until the save has landed, also when it
        was parked behind another request, and store errors propagate.
        Without it a parked save returns False right away.
        """
        with self._lock:
            name = self._name.strip()
            content = self._content
            generation = self._generation
        if not name:
            raise MissingName("Enter a note name!")
        job = self.gate.submit(name, content, tag=generation)
        if not (wait or job.done):
            return False
        job.result()
        return True

    def autosave(self) -> bool:
        if not self.can_save:
            return False
        try:
            return self.save(wait=False)
        except NoteStoreError as e:
            logger.debug("autosave_failed", extra={"note": self.name, "error": e.message})
            return False

    def open_note(self, name: str, save_changes: Optional[bool] = None) -> bool:
        """
        Replace the buffer with the stored note.

        With unsaved changes the caller has to decide: ``save_changes=None``
        raises UnsavedChangesError, ``True`` saves first and aborts the open
        if that fails, ``False`` leaves the buffer alone and returns False.
        """
        if self.can_save:
            if save_changes is None:
                raise UnsavedChangesError(self.name)
            if not save_changes:
                return False
            self.save()

        content = self.client.open(name)
        self._load(name, content)
        logger.info("note_open", extra={"note": name})
        return True

    def rename(self, new_name: str) -> bool:
        old_name = self.name
        if not old_name:
            raise MissingName("No note selected to rename.")
        target = new_name.strip()
        if not target or target == old_name:
            return False
        self.client.rename(old_name, target)
        with self._lock:
            self._generation += 1
            self._name = target
            self._saved = (target, self._saved[1])
        logger.info("note_rename", extra={"note": old_name, "to": target})
        return True

    def delete(self) -> None:
        name = self.name
        if not name:
            raise MissingName("Enter a note name!")
        self.client.delete(name)
        self._load("", "")
        logger.info("note_delete", extra={"note": name})

    def new_note(self, folder: str = "") -> None:
        folder = folder.strip("/")
        self._load(f"{folder}/" if folder else "", "")

    def note_tree(self, term: Optional[str] = None) -> NoteTree:
        entries: list[NoteEntry] = filter_notes(self.client.list_with_content(), term)
        return build_note_tree(e.name for e in entries)

    def folder_tree(self) -> NoteTree:
        return self.client.tree(folders_only=True)

    def insert_image(self, filename: str, data: bytes, content_type: str = "application/octet-stream") -> str:
        """Upload an image and append its Markdown reference to the buffer."""
        url = self.client.upload_image(filename, data, content_type)
        snippet = f"![{filename}]({url})"
        with self._lock:
            self._content = self._content + snippet
        return snippet


class Autosaver:
    def __init__(self, session: EditorSession, interval_s: float = AUTOSAVE_INTERVAL_S) -> None:
        self.session = session
        self.interval_s = interval_s
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._run, name="autosave", daemon=True)
        self._thread.start()

    def _run(self) -> None:
        while not self._stop.wait(self.interval_s):
            self.session.autosave()

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
