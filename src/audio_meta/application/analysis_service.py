"""Application service orchestrating the metadata analysis use-case."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from uuid import uuid4

from audio_meta.application.decoder import DecoderError, MetadataDecoder
from audio_meta.application.event_publisher import EventPublisher, NullEventPublisher
from audio_meta.application.materializer import SourceMaterializer
from audio_meta.application.normalizer import normalize
from audio_meta.application.simulated import simulated_record
from audio_meta.domain.errors import DecodeFailed, GatewayError
from audio_meta.domain.events import AnalysisFailed, MetadataExtracted, ResourceReleased, SourceMaterialized
from audio_meta.domain.models import (
    AcquisitionMethod,
    AudioMetadata,
    MaterializedSource,
    RawFormatRecord,
    SourceDescriptor,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class AnalyzeAudioSource:
    """Use case that materializes a source, decodes it and normalizes the result.

    Stages run strictly in order. The materialized source is released in every
    case once decoding has been attempted.
    """

    materializer: SourceMaterializer
    decoder: MetadataDecoder
    event_publisher: EventPublisher = NullEventPublisher()
    simulated_delay_seconds: float = 0.0

    async def analyze(self, descriptor: SourceDescriptor, correlation_id: str | None = None) -> AudioMetadata:
        run_correlation_id = correlation_id or str(uuid4())

        try:
            source = await self.materializer.materialize(descriptor)
        except GatewayError as error:
            self._publish_failure(run_correlation_id, "materialize", error)
            raise

        self.event_publisher.publish(
            SourceMaterialized(
                correlation_id=run_correlation_id,
                payload_summary={
                    "acquisition_method": source.acquisition_method.value,
                    "filename": source.origin_filename,
                    "size_bytes": source.declared_size_bytes,
                },
            )
        )

        try:
            record = await self._extract(source)
            metadata = normalize(record, source)
        except GatewayError as error:
            self._publish_failure(run_correlation_id, "decode", error)
            raise
        finally:
            if source.release():
                self.event_publisher.publish(
                    ResourceReleased(
                        correlation_id=run_correlation_id,
                        payload_summary={"path": str(source.byte_source)},
                    )
                )

        self.event_publisher.publish(
            MetadataExtracted(
                correlation_id=run_correlation_id,
                payload_summary={
                    "format": metadata.format,
                    "duration_seconds": metadata.duration_seconds,
                    "analysis_method": source.acquisition_method.value,
                },
            )
        )
        return metadata

    async def _extract(self, source: MaterializedSource) -> RawFormatRecord:
        if source.acquisition_method is AcquisitionMethod.SIMULATED:
            if self.simulated_delay_seconds:
                await asyncio.sleep(self.simulated_delay_seconds)
            return simulated_record(source)

        if source.byte_source is None:
            raise DecodeFailed("Materialized source has no readable bytes.")

        try:
            return await asyncio.to_thread(
                self.decoder.decode,
                source.byte_source,
                filename=source.origin_filename,
                mime_type=source.origin_mime_type,
            )
        except DecoderError as error:
            logger.info(
                "Decoder rejected source",
                extra={"source_filename": source.origin_filename, "reason": str(error)},
            )
            raise DecodeFailed(str(error)) from error

    def _publish_failure(self, correlation_id: str, stage: str, error: GatewayError) -> None:
        self.event_publisher.publish(
            AnalysisFailed(
                correlation_id=correlation_id,
                payload_summary={"stage": stage, "code": error.code, "message": error.message},
            )
        )
