"""Domain models for source acquisition and metadata normalization."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Protocol, Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

UNKNOWN = "Unknown"


class AcquisitionMethod(str, Enum):
    """How the analysed bytes reached the gateway."""

    DIRECT_UPLOAD = "direct-upload"
    REMOTE_DOWNLOAD = "remote-download"
    SIMULATED = "simulated"


@dataclass(frozen=True, slots=True)
class BufferedUpload:
    """Inline bytes received in a multipart upload."""

    payload: bytes
    declared_filename: str | None = None
    declared_mime: str | None = None

    def __post_init__(self) -> None:
        if not self.payload:
            raise ValueError("BufferedUpload requires a non-empty payload.")


@dataclass(frozen=True, slots=True)
class RemoteUrl:
    """Audio referenced by URL, fetched by the gateway."""

    url: str


@dataclass(frozen=True, slots=True)
class Simulated:
    """Demonstration source that bypasses network and decoder."""

    declared_filename: str | None = None
    declared_mime: str | None = None
    declared_size_bytes: int = 0


SourceDescriptor = Union[BufferedUpload, RemoteUrl, Simulated]


class ReleasableResource(Protocol):
    """Temporary byte-store owned by a single request."""

    @property
    def path(self) -> Path: ...

    def release(self) -> bool: ...


@dataclass(slots=True)
class MaterializedSource:
    """Readable byte source plus the bookkeeping needed for the output record."""

    byte_source: Path | None
    origin_filename: str
    origin_mime_type: str
    declared_size_bytes: int
    acquisition_method: AcquisitionMethod
    guard: ReleasableResource | None = field(default=None, repr=False)

    def release(self) -> bool:
        """Release the backing resource; only the first call has any effect."""

        if self.guard is None:
            return False
        return self.guard.release()

    def __enter__(self) -> MaterializedSource:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()


@dataclass(frozen=True, slots=True)
class RawFormatRecord:
    """Format details reported by a decoder; containers may under-report."""

    container: str | None
    duration_seconds: float | None = None
    bitrate_bps: float | None = None
    sample_rate_hz: int | None = None
    channel_count: int | None = None
    codec: str | None = None
    codec_profile: str | None = None
    lossless: bool | None = None


class AudioMetadata(BaseModel):
    """Canonical analysis result. Every field is always present."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    filename: str = UNKNOWN
    mime_type: str = UNKNOWN
    size_bytes: int = 0
    format: str = UNKNOWN
    duration_seconds: float = 0.0
    bitrate_kbps: int = 0
    sample_rate_hz: int = 0
    channels: int = 0
    encoding: str = UNKNOWN
    is_lossless: bool = False
    timestamp: str
    analysis_method: AcquisitionMethod | None = None

    def to_response_body(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")
