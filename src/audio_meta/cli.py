"""CLI interface for the audio metadata gateway."""

import asyncio
import json
import logging
import mimetypes
from pathlib import Path
from uuid import uuid4

import typer

from .application.channel_resolver import as_simulated
from .domain.errors import GatewayError, InternalFault, MissingSource, PayloadTooLarge
from .domain.models import BufferedUpload, RemoteUrl, SourceDescriptor
from .interfaces.api_handlers import build_analysis_service
from .utils.config import GatewaySettings, load_settings, load_settings_file

logger = logging.getLogger(__name__)

app = typer.Typer(help="Audio metadata gateway command line interface")

_REMOTE_SCHEMES = ("http://", "https://")


def _load_cli_settings(config: Path | None) -> GatewaySettings:
    if config is not None:
        return load_settings_file(config)
    return load_settings()


def build_descriptor(source: str, settings: GatewaySettings) -> SourceDescriptor:
    """Map a CLI argument onto the upload or remote-download channel."""

    if source.lower().startswith(_REMOTE_SCHEMES):
        return RemoteUrl(url=source)

    path = Path(source)
    if not path.is_file():
        raise typer.BadParameter(f"Audio file not found: {path}", param_hint="SOURCE")

    size_bytes = path.stat().st_size
    if size_bytes > settings.max_upload_bytes:
        raise PayloadTooLarge(size_bytes, settings.max_upload_bytes)
    if size_bytes == 0:
        raise MissingSource("Uploaded file is empty.", received_files=[path.name])

    mime_type, _ = mimetypes.guess_type(path.name)
    return BufferedUpload(payload=path.read_bytes(), declared_filename=path.name, declared_mime=mime_type)


@app.command("analyze")
def analyze_command(
    source: str = typer.Argument(..., help="Local audio file path or http(s) URL"),
    simulate: bool = typer.Option(
        False,
        "--simulate",
        help="Return a simulated record without downloading or decoding.",
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Optional JSON/YAML settings file.",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log pipeline events to stderr."),
) -> None:
    """Print the normalized metadata record for SOURCE as JSON."""

    if verbose:
        logging.basicConfig(level=logging.INFO)

    settings = _load_cli_settings(config)
    service = build_analysis_service(settings)
    correlation_id = str(uuid4())
    try:
        descriptor = build_descriptor(source, settings)
        if simulate or settings.demo_mode:
            descriptor = as_simulated(descriptor)
        metadata = asyncio.run(service.analyze(descriptor, correlation_id=correlation_id))
    except GatewayError as error:
        typer.echo(json.dumps(error.as_dict(), indent=2), err=True)
        raise typer.Exit(code=1) from error
    except OSError as error:
        logger.exception("Unexpected failure while analyzing audio")
        typer.echo(json.dumps(InternalFault.from_exception(error).as_dict(), indent=2), err=True)
        raise typer.Exit(code=1) from error

    typer.echo(json.dumps(metadata.to_response_body(), indent=2))


@app.command("serve")
def serve_command(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind."),
    port: int = typer.Option(8000, "--port", min=1, max=65535, help="Port to listen on."),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes (development)."),
) -> None:
    """Run the HTTP API with uvicorn."""

    import uvicorn

    uvicorn.run("audio_meta.api:app", host=host, port=port, reload=reload)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
