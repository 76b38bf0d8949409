"""Pure-Python header probe for WAV, FLAC and MP3 containers.

Only the leading bytes of the file are read, so the probe stays cheap for
large downloads. It is the fallback when libsndfile cannot open a stream.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from pathlib import Path

from audio_meta.application.decoder import DecoderError
from audio_meta.domain.models import RawFormatRecord

HEAD_BYTES = 1024 * 1024

_WAV_CODECS = {
    0x0001: ("PCM", True),
    0x0003: ("IEEE Float", True),
    0x0002: ("MS ADPCM", False),
    0x0006: ("G.711 A-law", False),
    0x0007: ("G.711 u-law", False),
    0x0011: ("IMA ADPCM", False),
    0x0055: ("MPEG 1 Layer 3", False),
}
_WAVE_FORMAT_EXTENSIBLE = 0xFFFE

_MP3_BITRATES_KBPS = [0, 32, 40, 48, 56, 64, 80, 96, 112, 128, 160, 192, 224, 256, 320, 0]
_MP3_SAMPLE_RATES = [44100, 48000, 32000, 0]


@dataclass(frozen=True, slots=True)
class HeaderProbeDecoder:
    head_bytes: int = HEAD_BYTES

    def decode(self, path: Path, *, filename: str | None = None, mime_type: str | None = None) -> RawFormatRecord:
        try:
            size_bytes = path.stat().st_size
            with path.open("rb") as handle:
                head = handle.read(self.head_bytes)
        except OSError as exc:
            raise DecoderError(f"Audio file is unreadable: {path.name}") from exc

        if not head:
            raise DecoderError("Audio file is empty.")
        return parse_header(head, size_bytes)


def parse_header(head: bytes, size_bytes: int) -> RawFormatRecord:
    if head.startswith(b"RIFF") and head[8:12] == b"WAVE":
        return _parse_wav(head, size_bytes)
    if head.startswith(b"fLaC"):
        return _parse_flac(head, size_bytes)
    if head.startswith(b"ID3") or head[:1] == b"\xFF":
        return _parse_mp3(head, size_bytes)
    raise DecoderError("Unsupported or unrecognized audio container.")


def _parse_wav(head: bytes, size_bytes: int) -> RawFormatRecord:
    offset = 12
    fmt_chunk: bytes | None = None
    data_size = None
    while offset + 8 <= len(head):
        chunk_id = head[offset : offset + 4]
        chunk_size = int.from_bytes(head[offset + 4 : offset + 8], "little")
        chunk_data_start = offset + 8
        if chunk_id == b"fmt ":
            if chunk_size < 16 or chunk_data_start + chunk_size > len(head):
                raise DecoderError("Corrupted WAV fmt chunk.")
            fmt_chunk = head[chunk_data_start : chunk_data_start + chunk_size]
        elif chunk_id == b"data":
            data_size = min(chunk_size, max(size_bytes - chunk_data_start, 0))
            break
        offset = chunk_data_start + chunk_size + (chunk_size % 2)

    if fmt_chunk is None or data_size is None:
        raise DecoderError("Incomplete WAV metadata.")

    format_code, channels, sample_rate, byte_rate = struct.unpack("<HHII", fmt_chunk[:12])
    bits_per_sample = int.from_bytes(fmt_chunk[14:16], "little")
    if format_code == _WAVE_FORMAT_EXTENSIBLE and len(fmt_chunk) >= 26:
        format_code = int.from_bytes(fmt_chunk[24:26], "little")
    if not sample_rate or not channels:
        raise DecoderError("Incomplete WAV metadata.")

    codec, lossless = _WAV_CODECS.get(format_code, (f"WAVE format 0x{format_code:04x}", None))
    duration = data_size / byte_rate if byte_rate else None
    return RawFormatRecord(
        container="WAV",
        duration_seconds=duration,
        bitrate_bps=byte_rate * 8 if byte_rate else None,
        sample_rate_hz=sample_rate,
        channel_count=channels,
        codec=codec,
        codec_profile=f"{bits_per_sample}-bit" if bits_per_sample else None,
        lossless=lossless,
    )


def _parse_flac(head: bytes, size_bytes: int) -> RawFormatRecord:
    if len(head) < 42:
        raise DecoderError("Corrupted FLAC header.")
    block_type = head[4] & 0x7F
    block_len = int.from_bytes(head[5:8], "big")
    if block_type != 0 or block_len != 34:
        raise DecoderError("Missing FLAC STREAMINFO metadata.")
    packed = int.from_bytes(head[18:26], "big")
    sample_rate = (packed >> 44) & 0xFFFFF
    channels = ((packed >> 41) & 0x7) + 1
    bits_per_sample = ((packed >> 36) & 0x1F) + 1
    total_samples = packed & 0xFFFFFFFFF
    duration = (total_samples / sample_rate) if sample_rate and total_samples else None
    return RawFormatRecord(
        container="FLAC",
        duration_seconds=duration,
        bitrate_bps=size_bytes * 8 / duration if duration else None,
        sample_rate_hz=sample_rate or None,
        channel_count=channels,
        codec="FLAC",
        codec_profile=f"{bits_per_sample}-bit",
        lossless=True,
    )


def _parse_mp3(head: bytes, size_bytes: int) -> RawFormatRecord:
    if len(head) < 4:
        raise DecoderError("Corrupted MP3 header.")

    offset = 0
    if head.startswith(b"ID3"):
        if len(head) < 10:
            raise DecoderError("Corrupted ID3v2 tag.")
        id3_size = (
            ((head[6] & 0x7F) << 21)
            | ((head[7] & 0x7F) << 14)
            | ((head[8] & 0x7F) << 7)
            | (head[9] & 0x7F)
        )
        offset = 10 + id3_size
        if head[5] & 0x10:
            offset += 10

    search_end = min(len(head) - 4, offset + 8192)
    header = None
    header_offset = offset
    while header_offset <= search_end:
        if head[header_offset] == 0xFF and (head[header_offset + 1] & 0xE0) == 0xE0:
            candidate = int.from_bytes(head[header_offset : header_offset + 4], "big")
            version_id = (candidate >> 19) & 0x3
            layer = (candidate >> 17) & 0x3
            bitrate_idx = (candidate >> 12) & 0xF
            sample_idx = (candidate >> 10) & 0x3
            # Only MPEG-1 Layer III is probed without libsndfile.
            if version_id == 0x3 and layer == 0x1 and bitrate_idx not in (0, 0xF) and sample_idx != 0x3:
                header = candidate
                break
        header_offset += 1

    if header is None:
        raise DecoderError("No valid MPEG-1 Layer III frame header found.")

    bitrate_kbps = _MP3_BITRATES_KBPS[(header >> 12) & 0xF]
    sample_rate = _MP3_SAMPLE_RATES[(header >> 10) & 0x3]
    channels = 1 if ((header >> 6) & 0x3) == 0x3 else 2
    audio_bytes = max(size_bytes - header_offset, 0)
    return RawFormatRecord(
        container="MP3",
        duration_seconds=(audio_bytes * 8) / (bitrate_kbps * 1000),
        bitrate_bps=bitrate_kbps * 1000,
        sample_rate_hz=sample_rate,
        channel_count=channels,
        codec="MPEG 1 Layer 3",
        lossless=False,
    )
