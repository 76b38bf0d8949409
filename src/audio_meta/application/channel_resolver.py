"""Acquisition channel selection for inbound analysis requests.

Selection is a pure function of the declared content type and which fields and
files are present:

* JSON bodies must carry a ``fileUrl`` (or ``url``) string.
* Multipart bodies prefer a ``fileUrl``/``url`` field over any attached file, so
  large files can bypass the upload ceiling by reference.
* Otherwise the file under ``file`` wins, then ``audio``, then the first file
  key received.
"""

from __future__ import annotations

import logging
from pathlib import PurePosixPath
from typing import Any, Awaitable, Protocol
from urllib.parse import unquote, urlsplit

from starlette.datastructures import FormData, UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.formparsers import MultiPartException

from audio_meta.domain.errors import MalformedBody, MissingSource, PayloadTooLarge, UnsupportedContentType
from audio_meta.domain.models import BufferedUpload, RemoteUrl, Simulated, SourceDescriptor

logger = logging.getLogger(__name__)

URL_FIELD_KEYS: tuple[str, ...] = ("fileUrl", "url")
FILE_FIELD_KEYS: tuple[str, ...] = ("file", "audio")

JSON_CONTENT_TYPE = "application/json"
MULTIPART_CONTENT_TYPE = "multipart/form-data"


class RequestBody(Protocol):
    """The parts of a Starlette request the resolver reads."""

    def json(self) -> Awaitable[Any]: ...

    def form(self) -> Awaitable[FormData]: ...


def media_type(content_type: str | None) -> str:
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def is_json_media_type(value: str) -> bool:
    return value == JSON_CONTENT_TYPE or value.endswith("+json")


async def resolve_source(
    content_type: str | None,
    body: RequestBody,
    *,
    max_upload_bytes: int,
) -> SourceDescriptor:
    """Pick exactly one acquisition channel for the request."""

    declared = media_type(content_type)
    if is_json_media_type(declared):
        return await _resolve_json(body)
    if declared == MULTIPART_CONTENT_TYPE:
        return await _resolve_multipart(body, max_upload_bytes=max_upload_bytes)
    raise UnsupportedContentType(content_type)


async def _resolve_json(body: RequestBody) -> SourceDescriptor:
    try:
        payload = await body.json()
    except ValueError as error:
        raise MalformedBody(f"Request body is not valid JSON: {error}") from error

    fields = payload if isinstance(payload, dict) else {}
    url = _first_url(fields)
    if url is None:
        raise MissingSource("Missing fileUrl in JSON body", received_fields=list(fields))
    return RemoteUrl(url=url)


async def _resolve_multipart(body: RequestBody, *, max_upload_bytes: int) -> SourceDescriptor:
    try:
        form = await body.form()
    except (MultiPartException, StarletteHTTPException) as error:
        detail = getattr(error, "message", None) or getattr(error, "detail", None) or str(error)
        raise MalformedBody(f"Multipart body could not be parsed: {detail}") from error

    try:
        return await select_from_form(form, max_upload_bytes=max_upload_bytes)
    finally:
        await form.close()


async def select_from_form(form: FormData, *, max_upload_bytes: int) -> SourceDescriptor:
    fields: dict[str, str] = {}
    files: dict[str, UploadFile] = {}
    for key, value in form.multi_items():
        if isinstance(value, UploadFile):
            files.setdefault(key, value)
        else:
            fields.setdefault(key, value)

    url = _first_url(fields)
    if url is not None:
        if files:
            logger.debug("URL field takes precedence over attached files", extra={"file_keys": list(files)})
        return RemoteUrl(url=url)

    upload = _first_usable_file(files)
    if upload is None:
        raise MissingSource(
            "No file uploaded and no fileUrl provided. "
            "Send the file under 'file' or 'audio', or its address as 'fileUrl'.",
            received_fields=list(fields),
            received_files=list(files),
        )

    if upload.size is not None and upload.size > max_upload_bytes:
        raise PayloadTooLarge(upload.size, max_upload_bytes)

    payload = await upload.read()
    if len(payload) > max_upload_bytes:
        raise PayloadTooLarge(len(payload), max_upload_bytes)
    if not payload:
        raise MissingSource(
            "Uploaded file is empty.",
            received_fields=list(fields),
            received_files=list(files),
        )

    return BufferedUpload(
        payload=payload,
        declared_filename=upload.filename or None,
        declared_mime=upload.content_type or None,
    )


def as_simulated(descriptor: SourceDescriptor) -> Simulated:
    """Convert a resolved descriptor into the demonstration channel."""

    if isinstance(descriptor, Simulated):
        return descriptor
    if isinstance(descriptor, BufferedUpload):
        return Simulated(
            declared_filename=descriptor.declared_filename,
            declared_mime=descriptor.declared_mime,
            declared_size_bytes=len(descriptor.payload),
        )
    return Simulated(declared_filename=filename_from_url(descriptor.url))


def filename_from_url(url: str) -> str | None:
    """Last path segment of ``url`` without query string, or None."""

    path = urlsplit(url).path
    name = PurePosixPath(unquote(path)).name
    return name or None


def _first_url(fields: dict[str, Any]) -> str | None:
    for key in URL_FIELD_KEYS:
        value = fields.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _first_usable_file(files: dict[str, UploadFile]) -> UploadFile | None:
    ordered_keys = [key for key in FILE_FIELD_KEYS if key in files]
    ordered_keys.extend(key for key in files if key not in FILE_FIELD_KEYS)
    for key in ordered_keys:
        upload = files[key]
        if upload.size == 0:
            continue
        return upload
    return None
