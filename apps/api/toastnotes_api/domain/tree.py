from __future__ import annotations

from collections.abc import Iterable

from toastnotes_api.domain.entities import NoteEntry

NoteTree = dict[str, "NoteTree | None"]


def build_note_tree(names: Iterable[str]) -> NoteTree:
    """
    Fold flat note names into a nested mapping.

    Folders map to a child mapping and notes map to None. When the same
    name is both a note and a folder (``a`` and ``a/b``) the folder wins so
    that its children stay reachable.
    """
    root: NoteTree = {}
    for name in names:
        parts = [p for p in name.split("/") if p]
        if not parts:
            continue
        node = root
        for part in parts[:-1]:
            child = node.get(part)
            if child is None:
                child = {}
                node[part] = child
            node = child
        node.setdefault(parts[-1], None)
    return root


def build_folder_tree(names: Iterable[str]) -> NoteTree:
    """Like build_note_tree but only folders, every value is a mapping."""
    root: NoteTree = {}
    for name in names:
        parts = [p for p in name.split("/") if p]
        node = root
        for part in parts[:-1]:
            node = node.setdefault(part, {})
    return root


def filter_notes(entries: Iterable[NoteEntry], term: str | None) -> list[NoteEntry]:
    items = list(entries)
    needle = (term or "").lower()
    if not needle:
        return items
    return [e for e in items if needle in e.name.lower() or needle in e.content.lower()]
