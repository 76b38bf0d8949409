"""DDD domain layer."""

from .errors import (
    DecodeFailed,
    GatewayError,
    InternalFault,
    MalformedBody,
    MethodNotAllowed,
    MissingSource,
    PayloadTooLarge,
    RemoteFetchFailed,
    UnsupportedContentType,
)
from .events import AnalysisFailed, DomainEvent, MetadataExtracted, ResourceReleased, SourceMaterialized, SourceResolved
from .models import (
    AcquisitionMethod,
    AudioMetadata,
    BufferedUpload,
    MaterializedSource,
    RawFormatRecord,
    RemoteUrl,
    Simulated,
    SourceDescriptor,
)

__all__ = [
    "DomainEvent",
    "SourceResolved",
    "SourceMaterialized",
    "MetadataExtracted",
    "ResourceReleased",
    "AnalysisFailed",
    "AcquisitionMethod",
    "AudioMetadata",
    "BufferedUpload",
    "RemoteUrl",
    "Simulated",
    "SourceDescriptor",
    "MaterializedSource",
    "RawFormatRecord",
    "GatewayError",
    "UnsupportedContentType",
    "MalformedBody",
    "MissingSource",
    "PayloadTooLarge",
    "RemoteFetchFailed",
    "DecodeFailed",
    "InternalFault",
    "MethodNotAllowed",
]
