"""Logging-backed implementation of the event publisher."""

from __future__ import annotations

import logging

from audio_meta.domain.events import AnalysisFailed, DomainEvent

LOGGER = logging.getLogger("audio_meta.events")


class LoggingEventPublisher:
    """Emit pipeline events as structured log records.

    Failures are logged at WARNING so they surface under default log levels;
    every other stage is INFO.
    """

    def __init__(self, logger: logging.Logger = LOGGER) -> None:
        self._logger = logger

    def publish(self, event: DomainEvent) -> None:
        level = logging.WARNING if isinstance(event, AnalysisFailed) else logging.INFO
        self._logger.log(
            level,
            "domain_event_emitted",
            extra={
                "event_name": type(event).__name__,
                "correlation_id": event.correlation_id,
                "payload_summary": event.payload_summary,
                "occurred_at": event.occurred_at.isoformat(),
            },
        )
