from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field

MIB = 1024 * 1024

DEFAULT_ALLOW_HEADERS: tuple[str, ...] = (
    "X-CSRF-Token",
    "X-Requested-With",
    "X-Correlation-Id",
    "Accept",
    "Accept-Version",
    "Authorization",
    "Content-Length",
    "Content-MD5",
    "Content-Type",
    "Date",
    "X-Api-Version",
)
DEFAULT_ALLOW_METHODS: tuple[str, ...] = ("GET", "OPTIONS", "PATCH", "DELETE", "POST", "PUT")

ENV_PREFIX = "AUDIO_META_"
CONFIG_PATH_ENV = "AUDIO_META_CONFIG"
_TRUE_VALUES = {"1", "true", "yes", "on"}


class CorsPolicy(BaseModel):
    allowed_origin: str = "*"
    allow_credentials: bool = True
    allow_methods: tuple[str, ...] = DEFAULT_ALLOW_METHODS
    allow_headers: tuple[str, ...] = DEFAULT_ALLOW_HEADERS


class GatewaySettings(BaseModel):
    """Runtime limits and defaults for the ingestion gateway."""

    max_upload_bytes: int = Field(100 * MIB, gt=0)
    remote_timeout_seconds: float = Field(30.0, gt=0.0)
    download_chunk_bytes: int = Field(64 * 1024, gt=0)
    temp_dir: Path | None = None
    demo_mode: bool = False
    simulated_delay_seconds: float = Field(0.0, ge=0.0)
    fallback_upload_filename: str = "uploaded_file"
    fallback_upload_mime_type: str = "application/octet-stream"
    fallback_remote_filename: str = "remote_audio_file"
    fallback_remote_mime_type: str = "audio/mpeg"
    cors: CorsPolicy = Field(default_factory=CorsPolicy)


def load_settings_file(path: Path) -> GatewaySettings:
    return GatewaySettings.model_validate(_load_config_data(path))


@lru_cache(maxsize=1)
def load_settings() -> GatewaySettings:
    """Load settings from an optional config file, then environment overrides."""

    data: dict = {}
    config_path = os.getenv(CONFIG_PATH_ENV)
    if config_path:
        data = _load_config_data(Path(config_path))

    overrides = {
        "max_upload_bytes": os.getenv(f"{ENV_PREFIX}MAX_UPLOAD_BYTES"),
        "remote_timeout_seconds": os.getenv(f"{ENV_PREFIX}REMOTE_TIMEOUT_SECONDS"),
        "download_chunk_bytes": os.getenv(f"{ENV_PREFIX}DOWNLOAD_CHUNK_BYTES"),
        "temp_dir": os.getenv(f"{ENV_PREFIX}TEMP_DIR"),
        "simulated_delay_seconds": os.getenv(f"{ENV_PREFIX}SIMULATED_DELAY_SECONDS"),
    }
    data.update({key: value for key, value in overrides.items() if value is not None})

    demo_mode = os.getenv(f"{ENV_PREFIX}DEMO_MODE")
    if demo_mode is not None:
        data["demo_mode"] = demo_mode.lower() in _TRUE_VALUES

    allowed_origin = os.getenv(f"{ENV_PREFIX}ALLOWED_ORIGIN")
    if allowed_origin:
        cors = dict(data.get("cors") or {})
        cors["allowed_origin"] = allowed_origin
        data["cors"] = cors

    return GatewaySettings.model_validate(data)


def _load_config_data(path: Path) -> dict:
    if path.suffix.lower() in {".yaml", ".yml"}:
        try:
            import yaml
        except ImportError as exc:
            raise ImportError("PyYAML is required to load YAML configs.") from exc

        with path.open("r", encoding="utf-8") as handle:
            return yaml.safe_load(handle) or {}

    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)
