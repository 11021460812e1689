from __future__ import annotations

from typing import Any, BinaryIO

import httpx

from toastnotes_api.domain.entities import NoteEntry
from toastnotes_api.domain.exceptions import Conflict, InvalidPath, MissingName, NoteStoreError, NotFound, StorageError

_BY_MESSAGE: dict[str, type[NoteStoreError]] = {
    MissingName.message: MissingName,
    "Missing oldName or newName": MissingName,
    InvalidPath.message: InvalidPath,
    NotFound.message: NotFound,
    "Original note does not exist": NotFound,
    Conflict.message: Conflict,
}

_BY_STATUS: dict[int, type[NoteStoreError]] = {
    404: NotFound,
    409: Conflict,
}


def error_from_response(status_code: int, message: str | None) -> NoteStoreError:
    """Rebuild the store error a response describes."""
    msg = message or f"http_{status_code}"
    cls = _BY_MESSAGE.get(msg) or _BY_STATUS.get(status_code) or StorageError
    return cls(msg)


class NotesClient:
    def __init__(
        self,
        base_url: str = "http://localhost",
        *,
        http: httpx.Client | None = None,
        timeout_s: float = 30.0,
    ) -> None:
        self._owns_http = http is None
        self.http = http if http is not None else httpx.Client(base_url=base_url, timeout=timeout_s)

    def close(self) -> None:
        if self._owns_http:
            self.http.close()

    def __enter__(self) -> NotesClient:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _request(self, method: str, path: str, **kwargs: Any) -> dict:
        try:
            resp = self.http.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise StorageError("request_failed") from e

        try:
            data = resp.json()
        except ValueError as e:
            raise error_from_response(resp.status_code, None) from e
        if not isinstance(data, dict):
            raise StorageError("bad_response")
        if resp.status_code >= 400 or not data.get("success"):
            raise error_from_response(resp.status_code, data.get("error"))
        return data

    def save(self, name: str, content: str) -> None:
        self._request("POST", "/api/save", json={"name": name, "content": content})

    def open(self, name: str) -> str:
        data = self._request("POST", "/api/open", json={"name": name})
        return str(data.get("content") or "")

    def delete(self, name: str) -> None:
        self._request("POST", "/api/delete", json={"name": name})

    def rename(self, old_name: str, new_name: str) -> None:
        self._request("POST", "/api/rename", json={"oldName": old_name, "newName": new_name})

    def list_names(self) -> list[str]:
        data = self._request("GET", "/api/list")
        return [n for n in data.get("notes") or [] if isinstance(n, str)]

    def list_with_content(self) -> list[NoteEntry]:
        data = self._request("GET", "/api/list-with-content")
        out: list[NoteEntry] = []
        for item in data.get("notes") or []:
            if not isinstance(item, dict) or not isinstance(item.get("name"), str):
                continue
            out.append(NoteEntry(name=item["name"], content=item.get("content") or "", error=item.get("error")))
        return out

    def tree(self, *, folders_only: bool = False) -> dict:
        data = self._request("GET", "/api/tree", params={"folders_only": str(folders_only).lower()})
        return data.get("tree") or {}

    def upload_image(self, filename: str, data: BinaryIO | bytes, content_type: str = "application/octet-stream") -> str:
        resp = self._request("POST", "/api/upload-image", files={"image": (filename, data, content_type)})
        url = resp.get("url")
        if not isinstance(url, str) or not url:
            raise StorageError("bad_response")
        return url
