"""Reel-Works Video Studio: FastAPI Application.

This module is the single entry point for the web service.  It defines the
FastAPI ``app`` instance, all REST API routes, and the ``main()`` CLI
function that launches the uvicorn server.

Architecture
------------
- **Job lifecycle** is handled by one
  :class:`~reelworks.core.controller.GenerationController` created at startup
  and stored on ``app.state``.  It runs at most one job at a time.
- **Progress** is streamed to the client as newline-delimited JSON, one
  :class:`~reelworks.core.models.JobEvent` per line, ending with exactly one
  terminal event carrying ``result`` or ``error``.
- **Gallery** is an in-memory list owned by this module's app state; the
  controller front-inserts every successful result.  Nothing is persisted.

Endpoints
---------
========  ==================  ==============================================
Method    Path                Purpose
========  ==================  ==============================================
GET       ``/api/config``     Version, modes, model id, polling settings
POST      ``/api/validate``   Pre-submit form check (no network access)
POST      ``/api/generate``   Run a job and stream its events (NDJSON)
POST      ``/api/cancel``     Cancel the active job
GET       ``/api/status``     Current (status, progress, message) snapshot
GET       ``/api/gallery``    Paginated gallery listing
========  ==================  ==============================================

Usage
-----
CLI (installed entry point)::

    reelworks

Direct invocation::

    python -m reelworks.api.main
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator, Iterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse

from reelworks import __version__
from reelworks.api.gallery_store import filter_gallery_entries, paginate_gallery_entries
from reelworks.api.models import GenerateRequest
from reelworks.core.config import config
from reelworks.core.controller import GenerationController
from reelworks.core.errors import JobInProgressError, ValidationError
from reelworks.core.kie_client import KieApiClient
from reelworks.core.models import ArtifactKind, GalleryEntry, GenerationRequest, JobEvent
from reelworks.core.pipelines import pipeline_registry

logger = logging.getLogger(__name__)


def configure_logging(level: str | None = None) -> None:
    """Apply the configured root logging level and format."""
    logging.basicConfig(
        level=(level or config.log_level).upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


# ---------------------------------------------------------------------------
# Application lifecycle: controller setup and teardown.
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application startup and shutdown lifecycle.

    On startup:
        Creates the shared HTTP client, the in-memory gallery list, and the
        :class:`GenerationController`, and stores them on ``app.state``.

    On shutdown:
        Cancels any job still in flight and closes the HTTP session.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control back to the application for the duration of its lifetime.
    """
    # --- Startup -----------------------------------------------------------
    client = KieApiClient(config)
    gallery: list[GalleryEntry] = []
    app.state.gallery = gallery
    app.state.controller = GenerationController(config, client=client, gallery=gallery)
    logger.info(f"GenerationController ready (modes: {pipeline_registry.list_available()})")

    yield  # Application runs here.

    # --- Shutdown ----------------------------------------------------------
    app.state.controller.cancel()
    client.close()
    logger.info("GenerationController shut down.")


# ---------------------------------------------------------------------------
# FastAPI application instance.
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Reel-Works Video Studio",
    description="Image + prompt + audio-style to video generation via a remote job API.",
    version=__version__,
    lifespan=lifespan,
)

# Allow cross-origin requests so a separately served frontend can call the
# API during development.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Helpers.
# ---------------------------------------------------------------------------


def _to_generation_request(req: GenerateRequest) -> GenerationRequest:
    """Build the immutable core request, applying server-side defaults.

    The configured ``api_key`` is used when the request carries no key, and
    the configured ``default_mode`` when it names no mode.
    """
    return GenerationRequest(
        prompt=req.prompt,
        reference_image_url=req.reference_image_url,
        audio_style=req.audio_style,
        mode=req.mode or config.default_mode,
        credential=req.api_key or config.api_key,
    )


def _validation_exception(error: ValidationError) -> HTTPException:
    return HTTPException(
        status_code=400,
        detail={"missing_field": error.missing_field, "message": error.message},
    )


def _ndjson(events: Iterator[JobEvent]) -> Iterator[str]:
    """Serialise job events as newline-delimited JSON."""
    try:
        for event in events:
            yield json.dumps(event.to_dict()) + "\n"
    except Exception as e:
        logger.error(f"Event stream aborted: {e}", exc_info=True)
        raise


# ---------------------------------------------------------------------------
# Routes.
# ---------------------------------------------------------------------------


@app.get("/api/config")
async def get_config() -> dict:
    """Return the service configuration for the frontend.

    Returns:
        Dictionary with keys ``version``, ``modes``, ``default_mode``,
        ``model_id``, ``poll_interval``, and ``has_default_api_key``.
    """
    modes = [pipeline_registry.get_pipeline_info(mode) for mode in pipeline_registry.list_modes()]
    return {
        "version": __version__,
        "modes": modes,
        "default_mode": config.default_mode.value,
        "model_id": config.model_id,
        "poll_interval": config.poll_interval,
        "has_default_api_key": bool(config.api_key),
    }


@app.post("/api/validate")
async def validate(req: GenerateRequest) -> dict:
    """Check a request without submitting it.

    Args:
        req: Validated :class:`GenerateRequest` payload.

    Returns:
        ``{"valid": True}`` when every required field is present.

    Raises:
        HTTPException: 400 naming the first missing field.
    """
    controller: GenerationController = app.state.controller
    try:
        controller.validate(_to_generation_request(req))
    except ValidationError as e:
        raise _validation_exception(e) from e
    return {"valid": True}


@app.post("/api/generate")
def generate(req: GenerateRequest) -> StreamingResponse:
    """Run a generation job and stream its progress.

    The response body is newline-delimited JSON.  Each line has the keys
    ``progress``, ``status``, ``message``, ``result``, and ``error``; the
    last line is the terminal event.

    Declared as a plain ``def`` so FastAPI runs it (and the blocking
    stream) in its threadpool.

    Args:
        req: Validated :class:`GenerateRequest` payload.

    Returns:
        Streaming NDJSON response.

    Raises:
        HTTPException: 400 for a missing field, 409 if a job is running.
    """
    controller: GenerationController = app.state.controller
    try:
        events = controller.generate(_to_generation_request(req))
    except ValidationError as e:
        raise _validation_exception(e) from e
    except JobInProgressError as e:
        raise HTTPException(status_code=409, detail=e.message) from e

    return StreamingResponse(_ndjson(events), media_type="application/x-ndjson")


@app.post("/api/cancel")
async def cancel() -> dict:
    """Cancel the active job.

    Returns:
        Dictionary with ``cancelled`` (``False`` when no job was running).
    """
    controller: GenerationController = app.state.controller
    return {"cancelled": controller.cancel()}


@app.get("/api/status")
async def get_status() -> dict:
    """Return the current job snapshot.

    Returns:
        Dictionary with ``status``, ``progress``, ``message``, and ``busy``.
    """
    controller: GenerationController = app.state.controller
    data = controller.snapshot.to_dict()
    data["busy"] = controller.is_busy
    return data


@app.get("/api/gallery")
async def get_gallery(
    page: int = 1,
    per_page: int = 20,
    kind: ArtifactKind | None = None,
) -> dict:
    """Return a paginated listing of resolved artifacts, newest first.

    Args:
        page: Page number (1-indexed).
        per_page: Number of items per page.
        kind: If provided, return only ``image`` or ``video`` entries.

    Returns:
        Dictionary with keys ``total``, ``page``, ``per_page``, ``pages``,
        and ``items``.
    """
    entries = filter_gallery_entries(app.state.gallery, kind=kind)
    return paginate_gallery_entries(entries, page, per_page)


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host and port from :data:`~reelworks.core.config.config` (which
    loads from ``REELWORKS_SERVER_HOST`` and ``REELWORKS_SERVER_PORT``
    environment variables).  Defaults to ``0.0.0.0:7860``.

    This function is registered as the ``reelworks`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    configure_logging()
    uvicorn.run(
        "reelworks.api.main:app",
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
