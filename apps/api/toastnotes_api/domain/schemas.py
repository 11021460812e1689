from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field


class SaveIn(BaseModel):
    name: Optional[str] = None
    content: str = ""


class NameIn(BaseModel):
    name: Optional[str] = None


class RenameIn(BaseModel):
    oldName: Optional[str] = None
    newName: Optional[str] = None


class OkOut(BaseModel):
    success: bool = True


class ErrorOut(BaseModel):
    success: bool = False
    error: str


class OpenOut(BaseModel):
    success: bool = True
    content: str


class NoteListOut(BaseModel):
    success: bool = True
    notes: list[str] = Field(default_factory=list)


class NoteEntryOut(BaseModel):
    name: str
    content: str
    error: Optional[str] = None


class NoteListWithContentOut(BaseModel):
    success: bool = True
    notes: list[NoteEntryOut] = Field(default_factory=list)


class UploadOut(BaseModel):
    success: bool = True
    url: str


class TreeOut(BaseModel):
    success: bool = True
    tree: dict[str, Any] = Field(default_factory=dict)
