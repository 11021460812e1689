from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from toastnotes_api.dependencies import clear_caches


@pytest.fixture(autouse=True)
def clear_provider_caches():
    clear_caches()
    yield
    clear_caches()


@pytest.fixture
def notes_dir(tmp_path, monkeypatch):
    root = tmp_path / "files"
    monkeypatch.setenv("NOTES_DIR", str(root))
    monkeypatch.delenv("NOTES_CONFIG", raising=False)
    monkeypatch.delenv("NOTES_MAX_BODY_BYTES", raising=False)
    monkeypatch.delenv("NOTES_PUBLIC_PREFIX", raising=False)
    return root


@pytest.fixture
def client(notes_dir) -> TestClient:
    from main import create_app

    return TestClient(create_app())
