"""Response mapping for the analysis endpoint.

Every outcome becomes a status code, exactly one JSON body (or none for the
pre-flight), and the cross-origin headers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from fastapi.responses import JSONResponse, Response

from audio_meta.domain.errors import GatewayError, InternalFault, MethodNotAllowed
from audio_meta.domain.models import AudioMetadata
from audio_meta.utils.config import CorsPolicy


@dataclass(frozen=True, slots=True)
class GatewayResponse:
    status_code: int
    body: dict[str, Any] | None
    headers: dict[str, str] = field(default_factory=dict)

    def to_response(self) -> Response:
        if self.body is None:
            return Response(status_code=self.status_code, headers=self.headers)
        return JSONResponse(status_code=self.status_code, content=self.body, headers=self.headers)


def cors_headers(policy: CorsPolicy) -> dict[str, str]:
    headers = {
        "Access-Control-Allow-Origin": policy.allowed_origin,
        "Access-Control-Allow-Methods": ",".join(policy.allow_methods),
        "Access-Control-Allow-Headers": ", ".join(policy.allow_headers),
    }
    if policy.allow_credentials:
        headers["Access-Control-Allow-Credentials"] = "true"
    return headers


def _headers(policy: CorsPolicy, correlation_id: str | None) -> dict[str, str]:
    headers = cors_headers(policy)
    if correlation_id:
        headers["X-Correlation-Id"] = correlation_id
    return headers


def success_response(
    metadata: AudioMetadata, policy: CorsPolicy, *, correlation_id: str | None = None
) -> GatewayResponse:
    return GatewayResponse(200, metadata.to_response_body(), _headers(policy, correlation_id))


def error_response(
    error: GatewayError, policy: CorsPolicy, *, correlation_id: str | None = None
) -> GatewayResponse:
    return GatewayResponse(error.status_code, error.as_dict(), _headers(policy, correlation_id))


def internal_fault_response(
    error: BaseException, policy: CorsPolicy, *, correlation_id: str | None = None
) -> GatewayResponse:
    return error_response(InternalFault.from_exception(error), policy, correlation_id=correlation_id)


def preflight_response(policy: CorsPolicy) -> GatewayResponse:
    return GatewayResponse(200, None, cors_headers(policy))


def method_not_allowed_response(method: str, policy: CorsPolicy) -> GatewayResponse:
    response = error_response(MethodNotAllowed(method), policy)
    response.headers["Allow"] = "OPTIONS, POST"
    return response
