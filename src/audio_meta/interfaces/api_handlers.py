"""Service wiring shared by the HTTP and CLI entry points."""

from __future__ import annotations

import httpx

from audio_meta.application.analysis_service import AnalyzeAudioSource
from audio_meta.application.decoder import FallbackDecoder, MetadataDecoder
from audio_meta.application.event_publisher import EventPublisher
from audio_meta.application.materializer import SourceMaterializer
from audio_meta.infrastructure.header_decoder import HeaderProbeDecoder
from audio_meta.infrastructure.logging_event_publisher import LoggingEventPublisher
from audio_meta.infrastructure.soundfile_decoder import SoundFileDecoder
from audio_meta.utils.config import GatewaySettings


def default_decoder() -> MetadataDecoder:
    return FallbackDecoder((SoundFileDecoder(), HeaderProbeDecoder()))


def build_analysis_service(
    settings: GatewaySettings,
    *,
    decoder: MetadataDecoder | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    event_publisher: EventPublisher | None = None,
) -> AnalyzeAudioSource:
    return AnalyzeAudioSource(
        materializer=SourceMaterializer(settings, transport=transport),
        decoder=decoder or default_decoder(),
        event_publisher=event_publisher or LoggingEventPublisher(),
        simulated_delay_seconds=settings.simulated_delay_seconds,
    )


__all__ = ["build_analysis_service", "default_decoder"]
