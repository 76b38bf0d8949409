"""Domain event contracts for the analysis pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


@dataclass(frozen=True, slots=True)
class DomainEvent:
    """Base domain event emitted by application services."""

    correlation_id: str
    payload_summary: dict[str, Any]
    occurred_at: datetime = field(default_factory=lambda: datetime.now(tz=timezone.utc))


@dataclass(frozen=True, slots=True)
class SourceResolved(DomainEvent):
    """An acquisition channel was selected for the request."""


@dataclass(frozen=True, slots=True)
class SourceMaterialized(DomainEvent):
    """The source bytes are readable from a request-owned resource."""


@dataclass(frozen=True, slots=True)
class MetadataExtracted(DomainEvent):
    """The decoder output was normalized into the canonical record."""


@dataclass(frozen=True, slots=True)
class ResourceReleased(DomainEvent):
    """The request-owned temporary resource was released."""


@dataclass(frozen=True, slots=True)
class AnalysisFailed(DomainEvent):
    """Pipeline execution failed for a correlation id."""
