"""FastAPI interface for the audio metadata gateway."""

from __future__ import annotations

import logging
from uuid import uuid4

import httpx
from fastapi import FastAPI, Header, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import Response

from .application.channel_resolver import as_simulated, resolve_source
from .application.decoder import MetadataDecoder
from .application.event_publisher import EventPublisher
from .domain.errors import GatewayError, MalformedBody
from .domain.events import SourceResolved
from .domain.models import BufferedUpload, RemoteUrl
from .interfaces.api_handlers import build_analysis_service
from .interfaces.responses import (
    cors_headers,
    error_response,
    internal_fault_response,
    method_not_allowed_response,
    preflight_response,
    success_response,
)
from .utils.config import GatewaySettings, load_settings

logger = logging.getLogger(__name__)

ANALYZE_PATH = "/api/analyze"
ANALYZE_METHODS = ["GET", "HEAD", "OPTIONS", "PATCH", "DELETE", "POST", "PUT"]


def _descriptor_summary(descriptor) -> dict[str, object]:
    if isinstance(descriptor, BufferedUpload):
        return {"channel": "upload", "filename": descriptor.declared_filename, "size_bytes": len(descriptor.payload)}
    if isinstance(descriptor, RemoteUrl):
        return {"channel": "url", "url": descriptor.url}
    return {"channel": "simulated", "filename": descriptor.declared_filename}


def create_app(
    settings: GatewaySettings | None = None,
    *,
    decoder: MetadataDecoder | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    event_publisher: EventPublisher | None = None,
) -> FastAPI:
    settings = settings or load_settings()
    service = build_analysis_service(
        settings,
        decoder=decoder,
        transport=transport,
        event_publisher=event_publisher,
    )

    app = FastAPI(title="Audio Metadata Gateway", version="0.1.0")
    app.state.settings = settings
    app.state.analysis_service = service

    @app.middleware("http")
    async def attach_cors_headers(request: Request, call_next):
        response = await call_next(request)
        response.headers.update(cors_headers(settings.cors))
        return response

    @app.exception_handler(RequestValidationError)
    async def reject_invalid_parameters(request: Request, exc: RequestValidationError) -> Response:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
        )
        error = MalformedBody(f"Invalid request parameters: {problems}")
        correlation_id = request.headers.get("x-correlation-id")
        return error_response(error, settings.cors, correlation_id=correlation_id).to_response()

    @app.get("/health")
    def health() -> dict[str, str]:
        """Health check endpoint."""

        return {"status": "ok"}

    @app.api_route(ANALYZE_PATH, methods=ANALYZE_METHODS)
    async def analyze(
        request: Request,
        simulate: bool = Query(False, description="Return a simulated record without decoding."),
        x_correlation_id: str | None = Header(default=None, alias="X-Correlation-Id"),
    ) -> Response:
        """Extract technical metadata from an uploaded or referenced audio file."""

        if request.method == "OPTIONS":
            return preflight_response(settings.cors).to_response()
        if request.method != "POST":
            return method_not_allowed_response(request.method, settings.cors).to_response()

        correlation_id = x_correlation_id or str(uuid4())
        try:
            descriptor = await resolve_source(
                request.headers.get("content-type"),
                request,
                max_upload_bytes=settings.max_upload_bytes,
            )
            if simulate or settings.demo_mode:
                descriptor = as_simulated(descriptor)
            service.event_publisher.publish(
                SourceResolved(correlation_id=correlation_id, payload_summary=_descriptor_summary(descriptor))
            )
            metadata = await service.analyze(descriptor, correlation_id=correlation_id)
        except GatewayError as error:
            logger.info(
                "Analysis request rejected",
                extra={"correlation_id": correlation_id, "code": error.code, "status_code": error.status_code},
            )
            return error_response(error, settings.cors, correlation_id=correlation_id).to_response()
        except Exception as error:  # noqa: BLE001
            logger.exception("Unexpected failure while analyzing audio", extra={"correlation_id": correlation_id})
            return internal_fault_response(error, settings.cors, correlation_id=correlation_id).to_response()

        return success_response(metadata, settings.cors, correlation_id=correlation_id).to_response()

    return app


app = create_app()
