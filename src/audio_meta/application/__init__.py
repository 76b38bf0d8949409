"""DDD application layer."""

from .analysis_service import AnalyzeAudioSource
from .decoder import DecoderError, FallbackDecoder, MetadataDecoder
from .event_publisher import EventPublisher, NullEventPublisher
from .materializer import SourceMaterializer

__all__ = [
    "AnalyzeAudioSource",
    "DecoderError",
    "EventPublisher",
    "FallbackDecoder",
    "MetadataDecoder",
    "NullEventPublisher",
    "SourceMaterializer",
]
