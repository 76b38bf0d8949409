"""Public package exports for the audio metadata gateway with lazy imports."""

from __future__ import annotations

from importlib import import_module
from typing import Any

__all__ = [
    "AnalyzeAudioSource",
    "AudioMetadata",
    "GatewayError",
    "GatewaySettings",
    "RawFormatRecord",
    "ResourceGuard",
    "SourceMaterializer",
    "create_app",
    "load_settings",
    "normalize",
    "resolve_source",
]

_EXPORT_MODULES: dict[str, str] = {
    "AnalyzeAudioSource": "audio_meta.application.analysis_service",
    "AudioMetadata": "audio_meta.domain.models",
    "GatewayError": "audio_meta.domain.errors",
    "GatewaySettings": "audio_meta.utils.config",
    "RawFormatRecord": "audio_meta.domain.models",
    "ResourceGuard": "audio_meta.infrastructure.temp_files",
    "SourceMaterializer": "audio_meta.application.materializer",
    "create_app": "audio_meta.api",
    "load_settings": "audio_meta.utils.config",
    "normalize": "audio_meta.application.normalizer",
    "resolve_source": "audio_meta.application.channel_resolver",
}


def __getattr__(name: str) -> Any:
    if name not in _EXPORT_MODULES:
        raise AttributeError(f"module 'audio_meta' has no attribute {name!r}")

    module = import_module(_EXPORT_MODULES[name])
    value = getattr(module, name)
    globals()[name] = value
    return value
