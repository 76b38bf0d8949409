"""Application port for metadata decoders."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, Sequence

from audio_meta.domain.models import RawFormatRecord

logger = logging.getLogger(__name__)


class DecoderError(ValueError):
    """Raised when a decoder cannot read the container or stream."""


class MetadataDecoder(Protocol):
    """Port implemented by infrastructure decoders."""

    def decode(self, path: Path, *, filename: str | None = None, mime_type: str | None = None) -> RawFormatRecord:
        """Read format details from the file at ``path``."""


@dataclass(frozen=True, slots=True)
class FallbackDecoder:
    """Try decoders in order; the first one that accepts the stream wins.

    When every decoder rejects the stream the primary decoder's message is
    raised unchanged.
    """

    decoders: Sequence[MetadataDecoder]

    def decode(self, path: Path, *, filename: str | None = None, mime_type: str | None = None) -> RawFormatRecord:
        if not self.decoders:
            raise DecoderError("No metadata decoder is configured.")

        errors: list[DecoderError] = []
        for decoder in self.decoders:
            try:
                return decoder.decode(path, filename=filename, mime_type=mime_type)
            except DecoderError as error:
                logger.debug(
                    "Decoder rejected stream",
                    extra={"decoder": type(decoder).__name__, "path": str(path), "reason": str(error)},
                )
                errors.append(error)

        raise DecoderError(str(errors[0])) from errors[0]
