import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Request, UploadFile
from fastapi.responses import JSONResponse

from toastnotes_api.dependencies import get_attachments, get_store
from toastnotes_api.domain.schemas import (
    ErrorOut,
    NameIn,
    NoteEntryOut,
    NoteListOut,
    NoteListWithContentOut,
    OkOut,
    OpenOut,
    RenameIn,
    SaveIn,
    TreeOut,
    UploadOut,
)
from toastnotes_api.domain.tree import build_folder_tree, build_note_tree
from toastnotes_api.infrastructure.persistence.attachments import ImageAttachmentStore
from toastnotes_api.infrastructure.persistence.file_store import FileNoteStore

router = APIRouter()
logger = logging.getLogger("toastnotes.api")


def _rid(request: Request) -> str:
    return getattr(request.state, "request_id", "")


@router.get("/health")
def health():
    return {"ok": True}


@router.post("/api/save", response_model=OkOut)
def save_note(payload: SaveIn, request: Request, store: FileNoteStore = Depends(get_store)):
    name = store.save(payload.name, payload.content)
    logger.debug("api_save", extra={"rid": _rid(request), "note": name})
    return OkOut()


@router.post("/api/delete", response_model=OkOut)
def delete_note(payload: NameIn, request: Request, store: FileNoteStore = Depends(get_store)):
    name = store.delete(payload.name)
    logger.debug("api_delete", extra={"rid": _rid(request), "note": name})
    return OkOut()


@router.post("/api/open", response_model=OpenOut)
def open_note(payload: NameIn, store: FileNoteStore = Depends(get_store)):
    return OpenOut(content=store.open(payload.name))


@router.post("/api/rename", response_model=OkOut)
def rename_note(payload: RenameIn, request: Request, store: FileNoteStore = Depends(get_store)):
    name = store.rename(payload.oldName, payload.newName)
    logger.debug("api_rename", extra={"rid": _rid(request), "note": name})
    return OkOut()


@router.get("/api/list", response_model=NoteListOut)
def list_notes(store: FileNoteStore = Depends(get_store)):
    return NoteListOut(notes=store.list_names())


@router.get("/api/list-with-content", response_model=NoteListWithContentOut, response_model_exclude_none=True)
def list_notes_with_content(store: FileNoteStore = Depends(get_store)):
    entries = store.list_with_content()
    return NoteListWithContentOut(notes=[NoteEntryOut(name=e.name, content=e.content, error=e.error) for e in entries])


@router.get("/api/tree", response_model=TreeOut)
def note_tree(folders_only: bool = False, store: FileNoteStore = Depends(get_store)):
    names = store.list_names()
    tree = build_folder_tree(names) if folders_only else build_note_tree(names)
    return TreeOut(tree=tree)


@router.post("/api/upload-image", response_model=UploadOut)
def upload_image(
    request: Request,
    image: Optional[UploadFile] = File(None),
    attachments: ImageAttachmentStore = Depends(get_attachments),
):
    if image is None:
        return JSONResponse(status_code=400, content=ErrorOut(error="No file uploaded").model_dump())
    attachment = attachments.store(image.filename or "", image.file)
    logger.debug("api_upload", extra={"rid": _rid(request), "file": attachment.filename})
    return UploadOut(url=attachment.url)
