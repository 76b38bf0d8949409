"""Fixed demonstration record used by the simulated channel."""

from __future__ import annotations

from pathlib import PurePosixPath

from audio_meta.domain.models import MaterializedSource, RawFormatRecord

SIMULATED_DURATION_SECONDS = 245.5
SIMULATED_BITRATE_BPS = 320_000
SIMULATED_SAMPLE_RATE_HZ = 44_100
SIMULATED_CHANNELS = 2
SIMULATED_ENCODING = "LAME 3.99r"
DEFAULT_SIMULATED_CONTAINER = "MP3"


def simulated_record(source: MaterializedSource) -> RawFormatRecord:
    """Plausible record for ``source`` without touching network or decoder."""

    extension = PurePosixPath(source.origin_filename).suffix.lstrip(".")
    return RawFormatRecord(
        container=extension.upper() or DEFAULT_SIMULATED_CONTAINER,
        duration_seconds=SIMULATED_DURATION_SECONDS,
        bitrate_bps=SIMULATED_BITRATE_BPS,
        sample_rate_hz=SIMULATED_SAMPLE_RATE_HZ,
        channel_count=SIMULATED_CHANNELS,
        codec=SIMULATED_ENCODING,
        lossless=False,
    )
