from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

DEFAULT_MAX_BODY_BYTES = 10 * 1024 * 1024


@dataclass(frozen=True)
class Settings:
    notes_dir: Path
    public_prefix: str
    max_body_bytes: int
    max_list_depth: int
    static_dir: Path | None
    log_level: str
    api_debug_log: bool

    @property
    def images_dir(self) -> Path:
        return self.notes_dir / "images"


def load_config_file(config_path: Path | None) -> dict[str, Any]:
    """Read the optional YAML overrides; a missing file means no overrides."""
    if config_path is None or not config_path.exists():
        return {}
    with open(config_path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"config file {config_path} must contain a mapping")
    return {str(k).lower(): v for k, v in data.items()}


def _pick(env_key: str, file_cfg: dict[str, Any], file_key: str, default: Any) -> Any:
    if env_key in os.environ:
        return os.environ[env_key]
    if file_key in file_cfg and file_cfg[file_key] is not None:
        return file_cfg[file_key]
    return default


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def load_settings() -> Settings:
    config_env = os.environ.get("NOTES_CONFIG")
    file_cfg = load_config_file(Path(config_env)) if config_env else {}

    notes_dir = Path(_pick("NOTES_DIR", file_cfg, "notes_dir", "./files")).resolve()
    public_prefix = "/" + str(_pick("NOTES_PUBLIC_PREFIX", file_cfg, "public_prefix", "/files")).strip("/")
    max_body_bytes = int(_pick("NOTES_MAX_BODY_BYTES", file_cfg, "max_body_bytes", DEFAULT_MAX_BODY_BYTES))
    max_list_depth = int(_pick("NOTES_MAX_LIST_DEPTH", file_cfg, "max_list_depth", 32))
    static_raw = _pick("NOTES_STATIC_DIR", file_cfg, "static_dir", None)
    static_dir = Path(static_raw).resolve() if static_raw else None
    log_level = str(_pick("LOG_LEVEL", file_cfg, "log_level", "INFO")).upper()
    api_debug_log = _as_bool(_pick("API_DEBUG_LOG", file_cfg, "api_debug_log", False))
    return Settings(
        notes_dir=notes_dir,
        public_prefix=public_prefix,
        max_body_bytes=max_body_bytes,
        max_list_depth=max_list_depth,
        static_dir=static_dir,
        log_level=log_level,
        api_debug_log=api_debug_log,
    )
