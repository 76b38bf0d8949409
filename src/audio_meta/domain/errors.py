"""Error taxonomy shared by every acquisition channel.

Each error knows the HTTP status it maps to and renders a stable JSON body, so
interface layers never need to inspect channel, decoder or network specifics.
"""

from __future__ import annotations

from typing import Any


class GatewayError(Exception):
    """Base class for failures surfaced to callers of the gateway."""

    code = "internal_fault"
    status_code = 500
    title = "Internal Server Error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def extra_fields(self) -> dict[str, Any]:
        return {}

    def as_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.title, "code": self.code, "message": self.message}
        body.update(self.extra_fields())
        return body


class UnsupportedContentType(GatewayError):
    """Request body is neither JSON nor multipart form data."""

    code = "unsupported_content_type"
    status_code = 400
    title = "Unsupported Content-Type"

    def __init__(self, content_type: str | None) -> None:
        received = content_type or "none"
        super().__init__(
            f"Content-Type '{received}' is not supported. "
            "Use multipart/form-data or application/json."
        )
        self.content_type = content_type

    def extra_fields(self) -> dict[str, Any]:
        return {"receivedContentType": self.content_type}


class MalformedBody(GatewayError):
    """Declared body format could not be parsed."""

    code = "malformed_body"
    status_code = 400
    title = "Malformed request body"


class MissingSource(GatewayError):
    """No URL field and no usable file were found in the request."""

    code = "missing_source"
    status_code = 400
    title = "No file or URL provided"

    def __init__(
        self,
        message: str,
        *,
        received_fields: list[str] | None = None,
        received_files: list[str] | None = None,
    ) -> None:
        super().__init__(message)
        self.received_fields = list(received_fields or [])
        self.received_files = list(received_files or [])

    def extra_fields(self) -> dict[str, Any]:
        return {"receivedFields": self.received_fields, "receivedFiles": self.received_files}


class PayloadTooLarge(GatewayError):
    code = "payload_too_large"
    status_code = 413
    title = "Payload Too Large"

    def __init__(self, size_bytes: int, limit_bytes: int) -> None:
        super().__init__(
            f"Uploaded file is {size_bytes} bytes, above the {limit_bytes}-byte upload limit. "
            "Host the file and send its address in a 'fileUrl' field instead."
        )
        self.size_bytes = size_bytes
        self.limit_bytes = limit_bytes

    def extra_fields(self) -> dict[str, Any]:
        return {"sizeBytes": self.size_bytes, "limitBytes": self.limit_bytes}


class RemoteFetchFailed(GatewayError):
    """Remote URL could not be downloaded."""

    code = "remote_fetch_failed"
    status_code = 500
    title = "Failed to fetch remote file"

    def __init__(self, url: str, details: str, *, upstream_status: int | None = None) -> None:
        super().__init__(f"Could not download '{url}': {details}")
        self.url = url
        self.details = details
        self.upstream_status = upstream_status

    def extra_fields(self) -> dict[str, Any]:
        return {"url": self.url, "details": self.details, "upstreamStatus": self.upstream_status}


class DecodeFailed(GatewayError):
    """Decoder rejected the byte source; the cause is passed through verbatim."""

    code = "decode_failed"
    status_code = 500
    title = "Failed to analyze audio file"

    def __init__(self, details: str) -> None:
        super().__init__(details)
        self.details = details

    def extra_fields(self) -> dict[str, Any]:
        return {"details": self.details}


class InternalFault(GatewayError):
    """Anything unanticipated, e.g. a temporary file that cannot be allocated."""

    @classmethod
    def from_exception(cls, error: BaseException) -> InternalFault:
        return cls(f"Unexpected failure while analyzing audio: {type(error).__name__}")


class MethodNotAllowed(GatewayError):
    code = "method_not_allowed"
    status_code = 405
    title = "Method Not Allowed"

    def __init__(self, method: str) -> None:
        super().__init__(f"Method {method} is not allowed. Use POST.")
        self.method = method
