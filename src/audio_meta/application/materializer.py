"""Turn resolved source descriptors into readable, request-owned byte sources."""

from __future__ import annotations

import asyncio
import logging
import re
from pathlib import PurePosixPath
from typing import Callable

import httpx

from audio_meta.application.channel_resolver import filename_from_url, media_type
from audio_meta.domain.errors import PayloadTooLarge, RemoteFetchFailed
from audio_meta.domain.models import (
    AcquisitionMethod,
    BufferedUpload,
    MaterializedSource,
    RemoteUrl,
    Simulated,
    SourceDescriptor,
)
from audio_meta.infrastructure.temp_files import ResourceGuard
from audio_meta.utils.config import GatewaySettings

logger = logging.getLogger(__name__)

_SAFE_SUFFIX = re.compile(r"\.[A-Za-z0-9]{1,10}")

GuardFactory = Callable[..., ResourceGuard]


class SourceMaterializer:
    """Bind each descriptor to exactly one resource guard.

    If materialization fails partway (oversized payload, broken download) the
    guard acquired for it is released before the error propagates.
    """

    def __init__(
        self,
        settings: GatewaySettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        guard_factory: GuardFactory = ResourceGuard.acquire,
    ) -> None:
        self._settings = settings
        self._transport = transport
        self._guard_factory = guard_factory

    async def materialize(self, descriptor: SourceDescriptor) -> MaterializedSource:
        if isinstance(descriptor, BufferedUpload):
            return await self._materialize_upload(descriptor)
        if isinstance(descriptor, RemoteUrl):
            return await self._materialize_remote(descriptor)
        if isinstance(descriptor, Simulated):
            return self._materialize_simulated(descriptor)
        raise TypeError(f"Unsupported source descriptor: {type(descriptor).__name__}")

    async def _materialize_upload(self, descriptor: BufferedUpload) -> MaterializedSource:
        size_bytes = len(descriptor.payload)
        if size_bytes > self._settings.max_upload_bytes:
            raise PayloadTooLarge(size_bytes, self._settings.max_upload_bytes)

        filename = descriptor.declared_filename or self._settings.fallback_upload_filename
        guard = self._acquire(filename)
        try:
            await asyncio.to_thread(guard.write, descriptor.payload)
            path = await asyncio.to_thread(guard.seal)
        except BaseException:
            guard.release()
            raise

        return MaterializedSource(
            byte_source=path,
            origin_filename=filename,
            origin_mime_type=descriptor.declared_mime or self._settings.fallback_upload_mime_type,
            declared_size_bytes=size_bytes,
            acquisition_method=AcquisitionMethod.DIRECT_UPLOAD,
            guard=guard,
        )

    async def _materialize_remote(self, descriptor: RemoteUrl) -> MaterializedSource:
        filename = filename_from_url(descriptor.url) or self._settings.fallback_remote_filename
        guard = self._acquire(filename)
        try:
            mime_type = await self._download(descriptor.url, guard)
            path = await asyncio.to_thread(guard.seal)
        except BaseException:
            guard.release()
            raise

        logger.info(
            "Downloaded remote source",
            extra={"url": descriptor.url, "size_bytes": guard.bytes_written, "mime_type": mime_type},
        )
        return MaterializedSource(
            byte_source=path,
            origin_filename=filename,
            origin_mime_type=mime_type,
            declared_size_bytes=guard.bytes_written,
            acquisition_method=AcquisitionMethod.REMOTE_DOWNLOAD,
            guard=guard,
        )

    async def _download(self, url: str, guard: ResourceGuard) -> str:
        timeout = httpx.Timeout(self._settings.remote_timeout_seconds)
        try:
            async with httpx.AsyncClient(
                timeout=timeout,
                transport=self._transport,
                follow_redirects=True,
            ) as client:
                async with client.stream("GET", url) as response:
                    if not response.is_success:
                        raise RemoteFetchFailed(
                            url,
                            f"upstream responded with HTTP {response.status_code}",
                            upstream_status=response.status_code,
                        )
                    mime_type = media_type(response.headers.get("content-type"))
                    async for chunk in response.aiter_bytes(self._settings.download_chunk_bytes):
                        await asyncio.to_thread(guard.write, chunk)
        except httpx.TimeoutException as exc:
            raise RemoteFetchFailed(
                url, f"timed out after {self._settings.remote_timeout_seconds:g}s ({type(exc).__name__})"
            ) from exc
        except httpx.HTTPError as exc:
            raise RemoteFetchFailed(url, f"{type(exc).__name__}: {exc}") from exc
        except httpx.InvalidURL as exc:
            raise RemoteFetchFailed(url, f"invalid URL: {exc}") from exc

        if guard.bytes_written == 0:
            raise RemoteFetchFailed(url, "remote file is empty", upstream_status=response.status_code)
        return mime_type or self._settings.fallback_remote_mime_type

    def _materialize_simulated(self, descriptor: Simulated) -> MaterializedSource:
        return MaterializedSource(
            byte_source=None,
            origin_filename=descriptor.declared_filename or self._settings.fallback_upload_filename,
            origin_mime_type=descriptor.declared_mime or "audio/mpeg",
            declared_size_bytes=descriptor.declared_size_bytes,
            acquisition_method=AcquisitionMethod.SIMULATED,
        )

    def _acquire(self, filename: str) -> ResourceGuard:
        suffix = PurePosixPath(filename).suffix
        if not _SAFE_SUFFIX.fullmatch(suffix):
            suffix = ""
        return self._guard_factory(directory=self._settings.temp_dir, suffix=suffix)
