from __future__ import annotations

import os
import re
import tempfile
import time
from pathlib import Path


def now_ms() -> int:
    return time.time_ns() // 1_000_000


def atomic_write_text(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            os.fchmod(f.fileno(), 0o644)
            f.write(content)
        tmp_path.replace(path)
    except OSError:
        tmp_path.unlink(missing_ok=True)
        raise


_UPLOAD_NAME_RE = re.compile(r"[^a-zA-Z0-9.\-_]")


def safe_upload_filename(original: str) -> str:
    return _UPLOAD_NAME_RE.sub("_", original)


def read_text(path: Path) -> str:
    with open(path, encoding="utf-8", newline="") as f:
        return f.read()
