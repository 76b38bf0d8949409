"""Map decoder output and source bookkeeping onto the canonical record."""

from __future__ import annotations

import math
from datetime import datetime, timezone

from audio_meta.domain.models import UNKNOWN, AudioMetadata, MaterializedSource, RawFormatRecord


def bitrate_to_kbps(bitrate_bps: float | None) -> int:
    """Round half up to whole kilobits per second; missing or invalid is 0."""

    if not bitrate_bps or not math.isfinite(bitrate_bps) or bitrate_bps < 0:
        return 0
    return int(math.floor(bitrate_bps / 1000 + 0.5))


def normalize(
    record: RawFormatRecord,
    source: MaterializedSource,
    *,
    now: datetime | None = None,
) -> AudioMetadata:
    timestamp = (now or datetime.now(tz=timezone.utc)).isoformat()
    duration = record.duration_seconds
    return AudioMetadata(
        filename=source.origin_filename or UNKNOWN,
        mime_type=source.origin_mime_type or UNKNOWN,
        size_bytes=source.declared_size_bytes or 0,
        format=record.container or UNKNOWN,
        duration_seconds=duration if duration and math.isfinite(duration) else 0.0,
        bitrate_kbps=bitrate_to_kbps(record.bitrate_bps),
        sample_rate_hz=record.sample_rate_hz or 0,
        channels=record.channel_count or 0,
        encoding=record.codec or record.codec_profile or UNKNOWN,
        is_lossless=bool(record.lossless),
        timestamp=timestamp,
        analysis_method=source.acquisition_method,
    )
