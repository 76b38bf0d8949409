"""Temporary-file infrastructure helpers."""

from __future__ import annotations

import itertools
import logging
import os
import tempfile
from pathlib import Path
from typing import BinaryIO
from uuid import uuid4

logger = logging.getLogger(__name__)

_NAME_PREFIX = "audio-meta-"
_sequence = itertools.count(1)


def unique_resource_name(suffix: str = "") -> str:
    """Build a file name that cannot collide across concurrent requests."""

    return f"{_NAME_PREFIX}{os.getpid()}-{next(_sequence)}-{uuid4().hex[:12]}{suffix}"


class ResourceGuard:
    """Exclusive owner of one temporary file for the duration of a request."""

    def __init__(self, path: Path, handle: BinaryIO) -> None:
        self._path = path
        self._handle: BinaryIO | None = handle
        self._released = False
        self.bytes_written = 0

    @classmethod
    def acquire(cls, *, directory: Path | None = None, suffix: str = "") -> ResourceGuard:
        base = Path(directory) if directory is not None else Path(tempfile.gettempdir())
        path = base / unique_resource_name(suffix)
        handle = path.open("xb")
        logger.debug("Acquired temporary resource", extra={"path": str(path)})
        return cls(path, handle)

    @property
    def path(self) -> Path:
        return self._path

    @property
    def released(self) -> bool:
        return self._released

    def write(self, chunk: bytes) -> None:
        if self._handle is None:
            raise RuntimeError(f"Temporary resource {self._path} is not writable.")
        self._handle.write(chunk)
        self.bytes_written += len(chunk)

    def seal(self) -> Path:
        """Flush and close the write handle so readers can open the path."""

        if self._handle is not None:
            self._handle.flush()
            self._handle.close()
            self._handle = None
        return self._path

    def release(self) -> bool:
        """Delete the resource. Returns False when it was already released."""

        if self._released:
            return False
        self._released = True
        try:
            self._discard()
        except OSError as error:
            logger.warning(
                "Temporary resource cleanup failed; ignoring.",
                extra={"path": str(self._path)},
                exc_info=error,
            )
        return True

    def _discard(self) -> None:
        try:
            if self._handle is not None:
                handle, self._handle = self._handle, None
                handle.close()
        except OSError as error:
            logger.warning(
                "Temporary resource handle failed to close; deleting anyway.",
                extra={"path": str(self._path)},
                exc_info=error,
            )
        finally:
            self._path.unlink()
        logger.debug("Released temporary resource", extra={"path": str(self._path)})

    def __enter__(self) -> ResourceGuard:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()
