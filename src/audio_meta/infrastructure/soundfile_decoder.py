"""Metadata decoder backed by libsndfile through soundfile."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import soundfile as sf

from audio_meta.application.decoder import DecoderError
from audio_meta.domain.models import RawFormatRecord

LOSSLESS_SUBTYPE_PREFIXES: tuple[str, ...] = ("PCM_", "FLOAT", "DOUBLE", "ALAC_", "DWVW_", "DPCM_")

# Bits per sample of uncompressed subtypes; FLAC stores these subtypes compressed.
UNCOMPRESSED_SUBTYPE_BITS = {
    "PCM_S8": 8,
    "PCM_U8": 8,
    "PCM_16": 16,
    "PCM_24": 24,
    "PCM_32": 32,
    "FLOAT": 32,
    "DOUBLE": 64,
}
_COMPRESSED_CONTAINERS = {"FLAC"}

_CODEC_BY_FORMAT = {"FLAC": "FLAC"}
_CODEC_BY_SUBTYPE = {
    "FLOAT": "IEEE Float",
    "DOUBLE": "IEEE Float",
    "VORBIS": "Vorbis",
    "OPUS": "Opus",
    "MPEG_LAYER_I": "MPEG 1 Layer 1",
    "MPEG_LAYER_II": "MPEG 1 Layer 2",
    "MPEG_LAYER_III": "MPEG 1 Layer 3",
    "ULAW": "G.711 u-law",
    "ALAW": "G.711 A-law",
}


def is_lossless_subtype(subtype: str) -> bool:
    return subtype.upper().startswith(LOSSLESS_SUBTYPE_PREFIXES)


def codec_name(container: str, subtype: str) -> str | None:
    if container in _CODEC_BY_FORMAT:
        return _CODEC_BY_FORMAT[container]
    if subtype in _CODEC_BY_SUBTYPE:
        return _CODEC_BY_SUBTYPE[subtype]
    if subtype.startswith("PCM_"):
        return "PCM"
    if subtype.startswith("ALAC_"):
        return "ALAC"
    return None


def stream_bitrate(container: str, subtype: str, sample_rate: int, channels: int) -> float | None:
    """Exact bitrate for uncompressed PCM, otherwise None."""

    bits = UNCOMPRESSED_SUBTYPE_BITS.get(subtype)
    if bits is None or container in _COMPRESSED_CONTAINERS or not sample_rate:
        return None
    return float(sample_rate * channels * bits)


@dataclass(frozen=True, slots=True)
class SoundFileDecoder:
    """Read container/stream parameters with ``soundfile.info``."""

    def decode(self, path: Path, *, filename: str | None = None, mime_type: str | None = None) -> RawFormatRecord:
        try:
            info = sf.info(str(path))
        except RuntimeError as error:
            raise DecoderError(str(error)) from error

        container = str(info.format or "").upper() or None
        subtype = str(info.subtype or "").upper()
        duration = float(info.duration) if info.samplerate else None

        bitrate = stream_bitrate(container or "", subtype, int(info.samplerate), int(info.channels))
        if bitrate is None and duration:
            bitrate = path.stat().st_size * 8 / duration

        return RawFormatRecord(
            container=container,
            duration_seconds=duration,
            bitrate_bps=bitrate,
            sample_rate_hz=int(info.samplerate) or None,
            channel_count=int(info.channels) or None,
            codec=codec_name(container or "", subtype),
            codec_profile=info.subtype_info or subtype or None,
            lossless=is_lossless_subtype(subtype) if subtype else None,
        )
