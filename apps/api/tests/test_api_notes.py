from __future__ import annotations


def test_save_open_rename_delete_scenario(client) -> None:
    r = client.post("/api/save", json={"name": "projects/x", "content": "# Hello"})
    assert r.status_code == 200
    assert r.json() == {"success": True}

    r = client.get("/api/list")
    assert r.json() == {"success": True, "notes": ["projects/x"]}

    r = client.post("/api/open", json={"name": "projects/x"})
    assert r.json() == {"success": True, "content": "# Hello"}

    r = client.post("/api/rename", json={"oldName": "projects/x", "newName": "projects/y"})
    assert r.json() == {"success": True}

    r = client.post("/api/open", json={"name": "projects/x"})
    assert r.status_code == 404
    assert r.json() == {"success": False, "error": "Note not found"}

    assert client.post("/api/open", json={"name": "projects/y"}).json()["content"] == "# Hello"

    assert client.post("/api/delete", json={"name": "projects/y"}).json() == {"success": True}
    assert client.post("/api/open", json={"name": "projects/y"}).status_code == 404


def test_missing_name_is_rejected(client, notes_dir) -> None:
    r = client.post("/api/save", json={"name": "", "content": "text"})
    assert r.status_code == 400
    assert r.json() == {"success": False, "error": "No note name"}
    assert list(notes_dir.rglob("*.md")) == []

    assert client.post("/api/open", json={}).status_code == 400
    assert client.post("/api/delete", json={"name": None}).status_code == 400

    r = client.post("/api/rename", json={"oldName": "a"})
    assert r.status_code == 400
    assert r.json()["error"] == "Missing oldName or newName"


def test_traversal_names_stay_inside_storage_root(client, notes_dir) -> None:
    r = client.post("/api/save", json={"name": "../secret", "content": "s"})
    assert r.status_code == 200
    assert (notes_dir / "__" / "secret.md").read_text(encoding="utf-8") == "s"
    assert not (notes_dir.parent / "secret.md").exists()


def test_delete_twice_and_rename_conflict(client) -> None:
    client.post("/api/save", json={"name": "a", "content": "alpha"})
    client.post("/api/save", json={"name": "b", "content": "beta"})

    r = client.post("/api/rename", json={"oldName": "a", "newName": "b"})
    assert r.status_code == 409
    assert r.json() == {"success": False, "error": "A note with the new name already exists"}

    r = client.post("/api/rename", json={"oldName": "zzz", "newName": "c"})
    assert r.status_code == 404
    assert r.json()["error"] == "Original note does not exist"

    assert client.post("/api/delete", json={"name": "a"}).status_code == 200
    r = client.post("/api/delete", json={"name": "a"})
    assert r.status_code == 404
    assert r.json() == {"success": False, "error": "Note not found"}


def test_list_with_content_reports_unreadable_entries(client, notes_dir) -> None:
    client.post("/api/save", json={"name": "ok", "content": "fine"})
    (notes_dir / "bad.md").write_bytes(b"\xff\xfe")

    r = client.get("/api/list-with-content")
    assert r.status_code == 200
    assert r.json() == {
        "success": True,
        "notes": [
            {"name": "bad", "content": "", "error": "unreadable"},
            {"name": "ok", "content": "fine"},
        ],
    }


def test_tree_endpoint(client) -> None:
    for name in ["work/a", "work/sub/b", "top"]:
        client.post("/api/save", json={"name": name, "content": ""})

    r = client.get("/api/tree")
    assert r.json() == {"success": True, "tree": {"top": None, "work": {"a": None, "sub": {"b": None}}}}

    r = client.get("/api/tree", params={"folders_only": "true"})
    assert r.json()["tree"] == {"work": {"sub": {}}}


def test_upload_image_is_served_from_public_prefix(client, notes_dir) -> None:
    r = client.post("/api/upload-image", files={"image": ("my photo (1).png", b"\x89PNG-data", "image/png")})
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    url = body["url"]
    assert url.startswith("/files/images/")
    assert url.endswith("-my_photo__1_.png")

    stored = list((notes_dir / "images").iterdir())
    assert len(stored) == 1
    assert stored[0].read_bytes() == b"\x89PNG-data"

    served = client.get(url)
    assert served.status_code == 200
    assert served.content == b"\x89PNG-data"


def test_upload_without_file_is_rejected(client) -> None:
    r = client.post("/api/upload-image", data={"other": "x"})
    assert r.status_code == 400
    assert r.json() == {"success": False, "error": "No file uploaded"}


def test_malformed_body_gets_error_envelope(client) -> None:
    r = client.post("/api/save", json={"name": ["not", "a", "string"], "content": "x"})
    assert r.status_code == 422
    assert r.json() == {"success": False, "error": "invalid_request"}
